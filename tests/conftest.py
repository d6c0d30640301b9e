"""
pytest 配置与共享 fixture。

远端通过 httpx.MockTransport 模拟（FakeRemote），缓存使用 MemoryStore，时间使用可手动推进的 FakeClock，
因此所有测试都不依赖网络。
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from fedfs import FederatedFS, FederationConfig, MemoryStore

from tests.config import NOW_MS


class FakeRemote:
    """按 (method, url) 注册响应的假远端；记录所有收到的请求。"""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[httpx.Request] = []

    def add(
        self,
        method: str,
        url: str,
        status: int = 200,
        *,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        error: type[httpx.HTTPError] | None = None,
    ) -> None:
        self.routes[(method, url)] = {
            "status": status,
            "json": json,
            "content": content,
            "headers": headers,
            "error": error,
        }

    def index(self, root: str, entries: Any, status: int = 200) -> None:
        """注册 https://<root>/index.json。"""
        self.add("GET", f"https://{root}/index.json", status, json=entries)

    def fail_index(self, root: str, error: type[httpx.HTTPError] = httpx.ConnectError) -> None:
        self.add("GET", f"https://{root}/index.json", error=error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404)
        if route["error"] is not None:
            raise route["error"]("boom", request=request)
        if route["json"] is not None:
            return httpx.Response(route["status"], json=route["json"], headers=route["headers"])
        return httpx.Response(route["status"], content=route["content"] or b"", headers=route["headers"])

    def calls_to(self, url: str) -> int:
        return sum(1 for r in self.calls if str(r.url) == url)


class FakeClock:
    def __init__(self, now: int = NOW_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def configs_from(*raw: dict[str, Any]) -> list[FederationConfig]:
    return [FederationConfig(uri=r["uri"], perm=r.get("perm")) for r in raw]


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_fs(remote: FakeRemote, store: MemoryStore, clock: FakeClock) -> Callable[..., FederatedFS]:
    """构造 FederatedFS 的工厂：make_fs(SOURCE_A, SOURCE_B, ...)。"""

    def factory(*sources: dict[str, Any]) -> FederatedFS:
        configs = configs_from(*sources)

        async def registry() -> list[FederationConfig]:
            return configs

        return FederatedFS(
            registry,
            store,
            transport=httpx.MockTransport(remote.handler),
            clock=clock,
        )

    return factory
