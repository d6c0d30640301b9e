"""fedfs 异常。单文件操作向调用方抛出这些异常；列表聚合内部吞掉并记录日志。"""

from __future__ import annotations


class FederationError(Exception):
    """所有 fedfs 异常的基类。"""


class OfflineError(FederationError):
    """远端返回 503。"""

    def __init__(self, name: str) -> None:
        super().__init__("Offline")
        self.name = name


class NotFoundError(FederationError):
    """远端返回 404（read_file）或任意非成功状态（get_file_meta）。"""

    def __init__(self, name: str, status_code: int | None = None) -> None:
        super().__init__("Not found")
        self.name = name
        self.status_code = status_code


class UnsupportedOperationError(FederationError, NotImplementedError):
    """联邦源只读：写入与删除一律不支持。"""

    def __init__(self, operation: str, name: str) -> None:
        super().__init__(f"{operation} federation file, not yet supported: {name}")
        self.operation = operation
        self.name = name


class MalformedIndexError(FederationError):
    """index.json 不是由带字符串 name 的对象组成的 JSON 数组。"""
