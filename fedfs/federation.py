"""
联邦文件系统：把多个远端源的列表与文件聚合到同一个命名空间。

- list_files：并发请求所有源的 index.json，每源 30 秒缓存，拉取失败时回退到旧缓存
- read_file / get_file_meta：对单个解析后的 URL 读取内容或元数据
- write_file / delete_file：联邦源只读，直接抛 UnsupportedOperationError
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

import httpx

from fedfs.client import RemoteDirectoryClient, make_http_client
from fedfs.config import read_federation_configs
from fedfs.errors import MalformedIndexError, NotFoundError, OfflineError, UnsupportedOperationError
from fedfs.logger import get_logger, summarize
from fedfs.models import DEFAULT_PERM, FederationConfig, FileListingCacheEntry, FileMeta, Perm, ReadResult
from fedfs.resolve import federated_path_to_url
from fedfs.store import JSONFileStore, KVStore

log = get_logger(__name__)

LISTING_CACHE_PREFIX = "federationListCache:"
LISTING_CACHE_TTL = 30 * 1000  # 毫秒，固定不可配置

ERROR_COULD_NOT_LOAD = "**Error**: Could not load"

Registry = Callable[[], Awaitable[list[FederationConfig]]]


def now_ms() -> int:
    return int(time.time() * 1000)


def cache_key(config: FederationConfig) -> str:
    return f"{LISTING_CACHE_PREFIX}{config.uri}"


def resolve_perm(name: str, configs: list[FederationConfig]) -> Perm:
    """第一个 uri 是 name 前缀的源决定权限；没有匹配或未设置 perm 时为 ro。"""
    for config in configs:
        if name.startswith(config.uri):
            return config.perm or DEFAULT_PERM
    return DEFAULT_PERM


def _int_header(headers: httpx.Headers, key: str) -> int:
    value = headers.get(key)
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def error_result(name: str, error: str) -> ReadResult:
    """可渲染的错误占位文档（markdown），作为正常返回值交给调用方。"""
    return ReadResult(
        data=error.encode("utf-8"),
        meta=FileMeta(name=name, size=0, content_type="text/markdown", perm="ro", last_modified=0),
    )


class ListingStatus(str, Enum):
    FRESH = "fresh"  # 缓存未过期，未访问网络
    FETCHED = "fetched"  # 远端拉取成功，已写缓存
    STALE = "stale"  # 拉取失败，回退到过期缓存
    FAILED = "failed"  # 拉取失败且无缓存


@dataclass
class SourceListing:
    """单个源一次列表请求的结果。"""

    config: FederationConfig
    status: ListingStatus
    items: list[FileMeta] = field(default_factory=list)
    error: str | None = None


class FederatedFS:
    """
    只读的联邦文件源。

    :param registry: 返回 FederationConfig 列表的异步函数，默认读取本地配置
    :param store: 列表缓存的键值存储，默认 ~/.cache/fedfs/store.json
    :param resolver: 联邦名称 -> URL
    :param http: 外部传入的 httpx.AsyncClient（不会由本对象关闭）；不传则自行创建
    :param clock: 当前时间（epoch 毫秒）
    :param timeout: 自建客户端时的请求超时秒数
    :param transport: 自建客户端时使用的 httpx transport（测试可传 MockTransport）
    """

    def __init__(
        self,
        registry: Registry = read_federation_configs,
        store: KVStore | None = None,
        *,
        resolver: Callable[[str], str] = federated_path_to_url,
        http: httpx.AsyncClient | None = None,
        clock: Callable[[], int] = now_ms,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.registry = registry
        self.store: KVStore = store if store is not None else JSONFileStore()
        self.resolver = resolver
        self.clock = clock
        self._owns_http = http is None
        self.http = http if http is not None else make_http_client(timeout=timeout, transport=transport)
        self.directory = RemoteDirectoryClient(self.http, resolver)

    async def aclose(self) -> None:
        """关闭自建的 HTTP 客户端。"""
        if self._owns_http and not self.http.is_closed:
            await self.http.aclose()

    async def __aenter__(self) -> FederatedFS:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    # ------------------------- 列表聚合 -------------------------

    async def list_files(self) -> list[FileMeta]:
        """所有源的文件并集；从不抛异常，失败时记录日志并返回部分或空结果。源之间的顺序不保证。"""
        try:
            listings = await self.list_sources()
        except Exception:
            log.exception("Error listing federation files")
            return []
        return [item for listing in listings for item in listing.items]

    async def list_sources(self) -> list[SourceListing]:
        """每个源一个任务并发执行，全部完成后返回各自的结果。"""
        configs = await self.registry()
        return list(await asyncio.gather(*(self._list_source(config) for config in configs)))

    async def _list_source(self, config: FederationConfig) -> SourceListing:
        key = cache_key(config)
        cached = FileListingCacheEntry.from_dict(await self.store.get(key))
        if cached is not None and cached.is_fresh(self.clock(), LISTING_CACHE_TTL):
            return SourceListing(config, ListingStatus.FRESH, cached.items)

        log.info("Fetching from federated %s", config.uri)
        index_url = config.uri
        try:
            index_url = self.directory.index_url(config)
            status, entries = await self.directory.fetch_index(config)
        # 无法解析或构造 URL 也只算该源拉取失败
        except (httpx.HTTPError, httpx.InvalidURL, MalformedIndexError, ValueError) as e:
            log.error("Failed to process %s: %s", index_url, summarize(e))
            return self._fallback(config, cached, str(e))
        if status != 200 or entries is None:
            log.error("Failed to fetch %s. Skipping. %s", index_url, status)
            return self._fallback(config, cached, f"HTTP {status}")

        items = [entry.federated(config) for entry in entries if entry.name.startswith(config.prefix)]
        entry = FileListingCacheEntry(items=items, last_updated=self.clock())
        try:
            await self.store.set(key, entry.to_dict())
        except Exception:
            log.exception("Failed to cache listing for %s", config.uri)
        return SourceListing(config, ListingStatus.FETCHED, items)

    def _fallback(
        self,
        config: FederationConfig,
        cached: FileListingCacheEntry | None,
        error: str,
    ) -> SourceListing:
        if cached is None:
            return SourceListing(config, ListingStatus.FAILED, [], error)
        log.info("Using cached listing for %s", config.uri)
        return SourceListing(config, ListingStatus.STALE, cached.items, error)

    # ------------------------- 单文件 -------------------------

    async def _response_to_meta(self, r: httpx.Response, name: str) -> FileMeta:
        configs = await self.registry()
        return FileMeta(
            name=name,
            size=_int_header(r.headers, "Content-length"),
            content_type=r.headers.get("Content-type") or "application/octet-stream",
            perm=resolve_perm(name, configs),
            last_modified=_int_header(r.headers, "X-Last-Modified"),
        )

    async def read_file(self, name: str) -> ReadResult:
        """
        GET 解析后的 URL。

        :raises OfflineError: 503
        :raises NotFoundError: 404
        其他非成功状态或网络失败返回 markdown 错误占位文档，而不是抛异常。
        """
        url = self.resolver(name)
        log.debug("Fetching %s", url)
        try:
            r = await self.http.get(url)
        except httpx.HTTPError as e:
            log.error("Failed to fetch %s: %s", url, summarize(e))
            return error_result(name, ERROR_COULD_NOT_LOAD)
        if r.status_code == 503:
            raise OfflineError(name)
        if r.status_code == 404:
            raise NotFoundError(name, r.status_code)
        if not r.is_success:
            log.error("Failed to fetch %s: %s", url, r.status_code)
            return error_result(name, ERROR_COULD_NOT_LOAD)
        return ReadResult(data=r.content, meta=await self._response_to_meta(r, name))

    async def get_file_meta(self, name: str) -> FileMeta:
        """
        HEAD 解析后的 URL，从响应头得到元数据。

        :raises OfflineError: 503
        :raises NotFoundError: 其他非成功状态或网络失败
        """
        url = self.resolver(name)
        log.debug("Fetching federation file meta %s", url)
        try:
            r = await self.http.head(url)
        except httpx.HTTPError as e:
            raise NotFoundError(name) from e
        if r.status_code == 503:
            raise OfflineError(name)
        if not r.is_success:
            raise NotFoundError(name, r.status_code)
        return await self._response_to_meta(r, name)

    async def write_file(self, name: str, data: bytes) -> FileMeta:
        raise UnsupportedOperationError("Writing", name)

    async def delete_file(self, name: str) -> None:
        raise UnsupportedOperationError("Deleting", name)
