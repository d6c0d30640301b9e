"""
列表缓存使用的键值存储。

核心逻辑只依赖 KVStore 协议（get / set），具体实现由调用方注入：
- MemoryStore：进程内字典，测试与 --no-cache 使用
- JSONFileStore：整个存储保存为一个 JSON 文件，默认 ~/.cache/fedfs/store.json
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Protocol

from fedfs.logger import get_logger

log = get_logger(__name__)


class KVStore(Protocol):
    async def get(self, key: str) -> Any | None:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    def __init__(self, initial: dict[str, Any] | None = None):
        self.data: dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Any | None:
        return self.data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.data[key] = value


def default_store_path() -> Path:
    """缓存文件：~/.cache/fedfs/store.json（所有平台统一）。"""
    return Path.home() / ".cache" / "fedfs" / "store.json"


class JSONFileStore:
    """
    JSON 文件持久化的键值存储。

    首次访问时加载文件；每次 set 写临时文件后用 os.replace 替换（自动创建父目录）。
    文件不存在或内容损坏时视为空存储。值必须可 JSON 序列化。
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else default_store_path()
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            self._data = {}
            if self.path.exists():
                try:
                    data = json.loads(self.path.read_text(encoding="utf-8"))
                except (OSError, ValueError) as e:
                    log.warning("Ignoring unreadable store %s: %s", self.path, e)
                else:
                    if isinstance(data, dict):
                        self._data = data
                    else:
                        log.warning("Ignoring store %s: not a JSON object", self.path)
        return self._data

    async def get(self, key: str) -> Any | None:
        return self._load().get(key)

    async def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # 先写临时文件再原子替换，写到一半中断不会破坏已有缓存
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)
