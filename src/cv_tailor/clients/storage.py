"""Object storage and record store contracts used by the pipeline."""

from __future__ import annotations

from typing import Protocol


class StorageClientError(Exception):
    """A storage backend call failed."""


class ObjectNotFoundError(StorageClientError):
    """The requested object key does not exist in the bucket."""

    def __init__(self, bucket: str, key: str):
        super().__init__(f"object not found: {bucket}/{key}")
        self.bucket = bucket
        self.key = key


class RecordStoreError(Exception):
    """A record store query or insert failed."""


class ObjectStorage(Protocol):
    async def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None: ...

    async def download(self, bucket: str, key: str) -> bytes: ...

    def public_url(self, bucket: str, key: str) -> str: ...


class RecordStore(Protocol):
    async def insert(self, table: str, row: dict) -> str:
        """Insert ``row`` and return the new record id."""
        ...

    async def select_one(self, table: str, record_id: str) -> dict | None:
        """Return the row with ``id == record_id`` or None."""
        ...
