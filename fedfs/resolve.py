"""联邦路径到 URL 的解析。"""

from __future__ import annotations

from urllib.parse import quote

# 本地主机走 http，其余一律 https
_PLAIN_HTTP_HOSTS = ("localhost", "127.0.0.1")


def _path_for_url(path: str) -> str:
    """将路径按段做 UTF-8 百分号编码，供 URL 使用。"""
    segments = path.strip("/").split("/") if path.strip("/") else []
    return "/" + "/".join(quote(seg, safe="") for seg in segments) if segments else ""


def federated_path_to_url(name: str) -> str:
    """
    将联邦名称解析为可请求的 URL。

    名称第一段为主机（可带端口），其余为路径：
    "silverbullet.md/Library/Core.md" -> "https://silverbullet.md/Library/Core.md"
    "localhost:3000/notes/a b.md" -> "http://localhost:3000/notes/a%20b.md"
    兼容旧写法的前导 "!"。
    """
    name = name.lstrip("!").strip("/")
    host, _, path = name.partition("/")
    if not host:
        raise ValueError(f"cannot resolve federated name without a host: {name!r}")
    scheme = "http" if host.split(":", 1)[0] in _PLAIN_HTTP_HOSTS else "https"
    return f"{scheme}://{host}{_path_for_url(path)}"
