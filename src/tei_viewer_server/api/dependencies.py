from functools import lru_cache

from ..storage.client import StorageClient


@lru_cache
def get_storage_client() -> StorageClient:
    return StorageClient()
