"""
远端目录客户端：拉取单个联邦源的 index.json。

只负责请求与解析，不做前缀过滤、改名与权限赋值（这些由聚合器完成）。
"""

from __future__ import annotations

from typing import Any, Callable

import httpx

from fedfs.errors import MalformedIndexError
from fedfs.models import FederationConfig, FileMeta
from fedfs.resolve import federated_path_to_url

INDEX_FILE = "index.json"


def make_http_client(
    *,
    timeout: float = 30.0,
    verify: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """创建共享的异步 HTTP 客户端；超时交给 httpx。"""
    return httpx.AsyncClient(
        timeout=timeout,
        verify=verify,
        follow_redirects=True,
        transport=transport,
    )


def parse_index(payload: Any) -> list[FileMeta]:
    """将 index.json 内容解析为 FileMeta 列表；不是对象数组或缺少字符串 name 时抛 MalformedIndexError。"""
    if not isinstance(payload, list):
        raise MalformedIndexError(f"expected a JSON array, got {type(payload).__name__}")
    entries: list[FileMeta] = []
    for item in payload:
        if not isinstance(item, dict):
            raise MalformedIndexError(f"expected an object, got {item!r}")
        try:
            entries.append(FileMeta.from_dict(item))
        except (TypeError, ValueError) as e:
            raise MalformedIndexError(str(e)) from e
    return entries


class RemoteDirectoryClient:
    """
    单个联邦源的目录客户端。

    :param http: 共享的 httpx.AsyncClient
    :param resolver: 联邦名称 -> URL 的解析函数，默认 federated_path_to_url
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        resolver: Callable[[str], str] = federated_path_to_url,
    ):
        self.http = http
        self.resolver = resolver

    def index_url(self, config: FederationConfig) -> str:
        return f"{self.resolver(config.root_uri)}/{INDEX_FILE}"

    async def fetch_index(self, config: FederationConfig) -> tuple[int, list[FileMeta] | None]:
        """
        GET <root>/index.json（Accept: application/json）。

        :return: (状态码, 条目列表)；非 200 时条目为 None
        :raises httpx.HTTPError: 网络层失败
        :raises MalformedIndexError: 200 但内容不是合法的 index
        """
        r = await self.http.get(self.index_url(config), headers={"Accept": "application/json"})
        if r.status_code != 200:
            return r.status_code, None
        try:
            payload = r.json()
        except ValueError as e:
            raise MalformedIndexError(f"invalid JSON: {e}") from e
        return r.status_code, parse_index(payload)
