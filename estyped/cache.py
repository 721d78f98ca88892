"""
Key/value cache stored in an index

Every key is a document in the cache index, with the value stored under 'value'. The index has enabled=False
mappings, so values are stored but never indexed.

The cache index is created on first use if enable_keyed_cache is set. Checking and creating the index are two
requests, so two processes can both decide to create it. A lock serialises this within one process; between
processes the second create fails with resource_already_exists_exception, which is treated as success.
"""

import threading
from typing import Any, TypeVar

from pydantic import TypeAdapter

from estyped.client import SearchClient
from estyped.errors import RemoteError
from estyped.index import Index

T = TypeVar("T")

ALREADY_EXISTS = "resource_already_exists_exception"


class KeyedCache:
    def __init__(self, client: SearchClient, index_name: str | None = None):
        self.client = client
        self.index_name = index_name or client.settings.keyed_cache_index_name
        self._lock = threading.Lock()
        self._ready = False

    def __repr__(self):
        return f"<KeyedCache {self.index_name}>"

    def setup(self) -> bool:
        """
        Make sure the cache index exists, if the keyed cache is enabled in the settings
        :return: True if the index was created by this call
        """
        if not self.client.settings.enable_keyed_cache:
            return False
        with self._lock:
            if self._ready:
                return False
            self.client.logger.info("Keyed cache is enabled")
            if self.client.index_exists(self.index_name):
                self.client.logger.info(f"Keyed cache index {self.index_name} exists")
                self._ready = True
                return False
            index = Index.build(self.index_name, enabled=False, dynamic=True)
            try:
                self.client.create_index(index)
            except RemoteError as e:
                if e.error_type != ALREADY_EXISTS:
                    raise
                self.client.logger.info(f"Keyed cache index {self.index_name} was created concurrently")
                self._ready = True
                return False
            self._ready = True
            return True

    def get(self, key: str, decode_to: type[T] | Any = Any) -> T | None:
        """Get the value stored under key, validated into decode_to; None if there is no such key"""
        self.setup()
        result = self.client.get(self.index_name, key)
        if result is None or result.source is None:
            return None
        return TypeAdapter(decode_to).validate_python(result.source.get("value"))

    def set(self, key: str, value: Any) -> None:
        self.setup()
        self.client.index_document(self.index_name, {"value": TypeAdapter(Any).dump_python(value, mode="json")}, id=key)

    def remove(self, key: str) -> None:
        self.setup()
        self.client.delete_document(self.index_name, key, ignore_missing=True)
