"""
远端目录客户端单元测试：index.json 的 URL、请求头与解析。
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from fedfs import FederationConfig, MalformedIndexError, RemoteDirectoryClient
from fedfs.client import parse_index

from tests.config import ENTRY_REMOTE_RW, ENTRY_SUB, ENTRY_X


def _client(remote, resolver=None) -> RemoteDirectoryClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(remote.handler))
    return RemoteDirectoryClient(http) if resolver is None else RemoteDirectoryClient(http, resolver)


def test_index_url_uses_root_only() -> None:
    client = RemoteDirectoryClient(httpx.AsyncClient())
    assert client.index_url(FederationConfig("docs/sub")) == "https://docs/index.json"
    assert client.index_url(FederationConfig("localhost:3000/x")) == "http://localhost:3000/index.json"


def test_index_url_custom_resolver() -> None:
    client = RemoteDirectoryClient(httpx.AsyncClient(), lambda name: f"http://mirror.local/{name}")
    assert client.index_url(FederationConfig("docs/sub")) == "http://mirror.local/docs/index.json"


def test_fetch_index_returns_raw_entries(remote) -> None:
    """不做前缀过滤、改名与权限改写。"""
    remote.index("docs", [ENTRY_SUB, ENTRY_X, ENTRY_REMOTE_RW])

    status, entries = asyncio.run(_client(remote).fetch_index(FederationConfig("docs/sub")))

    assert status == 200
    assert entries is not None
    assert [e.name for e in entries] == ["sub/foo.md", "x.md", "y.md"]
    assert entries[2].perm == "rw"
    assert remote.calls[0].headers["Accept"] == "application/json"


def test_fetch_index_non_200_returns_status(remote) -> None:
    remote.index("docs", [], status=502)
    assert asyncio.run(_client(remote).fetch_index(FederationConfig("docs"))) == (502, None)


def test_fetch_index_transport_error_propagates(remote) -> None:
    remote.fail_index("docs")
    with pytest.raises(httpx.ConnectError):
        asyncio.run(_client(remote).fetch_index(FederationConfig("docs")))


def test_fetch_index_invalid_json_raises_malformed(remote) -> None:
    remote.add("GET", "https://docs/index.json", content=b"{not json")
    with pytest.raises(MalformedIndexError):
        asyncio.run(_client(remote).fetch_index(FederationConfig("docs")))


def test_parse_index_defaults_missing_fields() -> None:
    [meta] = parse_index([{"name": "a.md"}])
    assert meta.size == 0
    assert meta.last_modified == 0
    assert meta.perm == "ro"


@pytest.mark.parametrize("payload", [{}, None, [None], [{"name": 3}], [{"name": "a", "size": "big"}]])
def test_parse_index_rejects_malformed(payload) -> None:
    with pytest.raises(MalformedIndexError):
        parse_index(payload)
