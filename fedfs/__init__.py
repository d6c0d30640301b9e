"""fedfs：把多个远端联邦源（index.json + HTTP 文件）聚合为一个只读文件命名空间。"""

from fedfs.client import RemoteDirectoryClient
from fedfs.errors import (
    FederationError,
    MalformedIndexError,
    NotFoundError,
    OfflineError,
    UnsupportedOperationError,
)
from fedfs.federation import (
    LISTING_CACHE_PREFIX,
    LISTING_CACHE_TTL,
    FederatedFS,
    ListingStatus,
    SourceListing,
    resolve_perm,
)
from fedfs.models import FederationConfig, FileListingCacheEntry, FileMeta, ReadResult
from fedfs.resolve import federated_path_to_url
from fedfs.store import JSONFileStore, KVStore, MemoryStore

__all__ = [
    "FederatedFS",
    "RemoteDirectoryClient",
    "FederationConfig",
    "FileMeta",
    "FileListingCacheEntry",
    "ReadResult",
    "ListingStatus",
    "SourceListing",
    "KVStore",
    "MemoryStore",
    "JSONFileStore",
    "FederationError",
    "OfflineError",
    "NotFoundError",
    "UnsupportedOperationError",
    "MalformedIndexError",
    "LISTING_CACHE_PREFIX",
    "LISTING_CACHE_TTL",
    "federated_path_to_url",
    "resolve_perm",
]
