"""
联邦源配置：本地保存/读取要聚合的远端源列表。

配置文件 ~/.config/fedfs/config.json，格式：
    {"federate": ["silverbullet.md", {"uri": "docs.example.com/notes", "perm": "rw"}]}
每项可以是字符串 uri，也可以是 {"uri": ..., "perm": "ro" | "rw"}；perm 缺省即只读。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from fedfs.logger import get_logger
from fedfs.models import PERMS, FederationConfig, Perm

log = get_logger(__name__)

FEDERATE_KEY = "federate"


def _config_dir() -> Path:
    """配置目录：~/.config/fedfs（所有平台统一）。"""
    return Path.home() / ".config" / "fedfs"


def _config_path() -> Path:
    return _config_dir() / "config.json"


def normalize_uri(uri: str) -> str:
    """去掉旧写法的前导 "!" 与首尾斜杠。"""
    return uri.strip().lstrip("!").strip("/")


def load_config() -> dict[str, Any] | None:
    """读取本地配置；不存在或无效则返回 None。"""
    p = _config_path()
    if not p.exists():
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Ignoring unreadable config %s: %s", p, e)
        return None
    if not isinstance(data, dict):
        return None
    return data


def save_config(data: dict[str, Any]) -> None:
    """保存配置到本地。"""
    p = _config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def clear_config() -> bool:
    """清除本地配置；存在则删除并返回 True。"""
    p = _config_path()
    if p.exists():
        p.unlink()
        return True
    return False


def parse_federation_configs(raw: Any) -> list[FederationConfig]:
    """
    将 federate 列表解析为 FederationConfig，保持顺序。

    非法项（空 uri、未知 perm、类型不对）记录警告后跳过；重复 uri 只保留第一次出现。
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        log.warning("Ignoring %r: expected a list of sources", FEDERATE_KEY)
        return []
    configs: list[FederationConfig] = []
    seen: set[str] = set()
    for entry in raw:
        if isinstance(entry, str):
            uri, perm = entry, None
        elif isinstance(entry, dict) and isinstance(entry.get("uri"), str):
            uri, perm = entry["uri"], entry.get("perm")
        else:
            log.warning("Skipping invalid federation entry: %r", entry)
            continue
        uri = normalize_uri(uri)
        if not uri:
            log.warning("Skipping federation entry with empty uri: %r", entry)
            continue
        if perm is not None and perm not in PERMS:
            log.warning("Skipping federation entry %s: invalid perm %r", uri, perm)
            continue
        if uri in seen:
            continue
        seen.add(uri)
        configs.append(FederationConfig(uri=uri, perm=perm))
    return configs


def load_federation_configs() -> list[FederationConfig]:
    cfg = load_config()
    return parse_federation_configs(cfg.get(FEDERATE_KEY)) if cfg else []


async def read_federation_configs() -> list[FederationConfig]:
    """默认的源注册表：从本地配置文件读取。"""
    return load_federation_configs()


def save_federation_configs(configs: list[FederationConfig]) -> None:
    """写回 federate 列表，保留配置文件中的其他键。"""
    data = load_config() or {}
    data[FEDERATE_KEY] = [c.uri if c.perm is None else c.to_dict() for c in configs]
    save_config(data)


def add_source(uri: str, perm: Perm | None = None) -> FederationConfig:
    """新增源；同 uri 已存在时原位替换。"""
    uri = normalize_uri(uri)
    if not uri:
        raise ValueError("uri must not be empty")
    if perm is not None and perm not in PERMS:
        raise ValueError(f"invalid perm: {perm!r}")
    new = FederationConfig(uri=uri, perm=perm)
    configs = load_federation_configs()
    for idx, c in enumerate(configs):
        if c.uri == uri:
            configs[idx] = new
            break
    else:
        configs.append(new)
    save_federation_configs(configs)
    return new


def remove_source(uri: str) -> bool:
    """删除源；不存在返回 False。"""
    uri = normalize_uri(uri)
    configs = load_federation_configs()
    kept = [c for c in configs if c.uri != uri]
    if len(kept) == len(configs):
        return False
    save_federation_configs(kept)
    return True
