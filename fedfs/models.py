"""
fedfs 数据模型。

- FederationConfig：一个联邦源，uri 形如 "<root>/<可选前缀>"，perm 仅允许 "ro" / "rw"。
- FileMeta：聚合命名空间中的一个文件；线上 JSON（index.json、缓存）使用 contentType / lastModified 键名。
- FileListingCacheEntry：每个源一条的列表缓存，lastUpdated 为写入时间（epoch 毫秒）。
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal

Perm = Literal["ro", "rw"]
PERMS: tuple[str, ...] = ("ro", "rw")
DEFAULT_PERM: Perm = "ro"


@dataclass(frozen=True)
class FederationConfig:
    """单个联邦源配置；以 uri 作为身份。"""

    uri: str
    perm: Perm | None = None

    @property
    def root_uri(self) -> str:
        """uri 的第一段，如 "docs/sub" -> "docs"。"""
        return self.uri.split("/", 1)[0]

    @property
    def prefix(self) -> str:
        """uri 第一段之后的部分，如 "docs/sub" -> "sub"；无则为空串。"""
        parts = self.uri.split("/", 1)
        return parts[1] if len(parts) > 1 else ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uri": self.uri}
        if self.perm is not None:
            data["perm"] = self.perm
        return data


@dataclass
class FileMeta:
    name: str
    size: int = 0
    content_type: str = "application/octet-stream"
    perm: Perm = DEFAULT_PERM
    last_modified: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileMeta:
        """从 index.json / 缓存中的一项构造；name 必须为字符串，其余字段缺失时取默认值。"""
        name = data.get("name")
        if not isinstance(name, str):
            raise ValueError(f"entry without a string name: {data!r}")
        perm = data.get("perm")
        return cls(
            name=name,
            size=int(data.get("size") or 0),
            content_type=data.get("contentType") or "application/octet-stream",
            perm=perm if perm in PERMS else DEFAULT_PERM,
            last_modified=int(data.get("lastModified") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "size": self.size,
            "contentType": self.content_type,
            "perm": self.perm,
            "lastModified": self.last_modified,
        }

    def federated(self, config: FederationConfig) -> FileMeta:
        """按源配置改写：名称加 root 前缀，权限取源配置（默认 ro），忽略远端给出的 perm。"""
        return replace(self, name=f"{config.root_uri}/{self.name}", perm=config.perm or DEFAULT_PERM)


@dataclass
class FileListingCacheEntry:
    items: list[FileMeta] = field(default_factory=list)
    last_updated: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> FileListingCacheEntry | None:
        """解析缓存值；格式不对返回 None（视为无缓存）。"""
        if not isinstance(data, dict):
            return None
        try:
            items = [FileMeta.from_dict(item) for item in data.get("items") or []]
            return cls(items=items, last_updated=int(data["lastUpdated"]))
        except (KeyError, TypeError, ValueError, AttributeError):
            return None

    def to_dict(self) -> dict[str, Any]:
        return {"items": [item.to_dict() for item in self.items], "lastUpdated": self.last_updated}

    def is_fresh(self, now: int, ttl: int) -> bool:
        return now - self.last_updated < ttl


@dataclass
class ReadResult:
    """read_file 的返回：原始字节与元数据。"""

    data: bytes
    meta: FileMeta
