"""Supabase-backed object storage and record store."""

from __future__ import annotations

import asyncio
import logging
import os

from supabase import Client, PostgrestAPIError, StorageException, create_client

from cv_tailor.clients.storage import ObjectNotFoundError, RecordStoreError, StorageClientError

logger = logging.getLogger(__name__)

_NOT_FOUND_STATUSES = {"400", "404"}


def create_supabase_client(url: str | None = None, key: str | None = None) -> Client:
    """Create a client from explicit values or SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY."""
    url = url or os.getenv("SUPABASE_URL")
    key = key or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(url, key)


def _is_not_found(exc: StorageException) -> bool:
    status = getattr(exc, "status", None)
    if status is not None and str(status) in _NOT_FOUND_STATUSES:
        return True
    return "not found" in str(exc).lower()


class SupabaseObjectStorage:
    """Bucket storage through the Supabase storage API.

    The SDK client is synchronous; calls run in a worker thread.
    """

    def __init__(self, client: Client):
        self.client = client

    async def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        def _upload():
            self.client.storage.from_(bucket).upload(
                key, data, {"content-type": content_type, "upsert": "false"},
            )

        try:
            await asyncio.to_thread(_upload)
        except StorageException as e:
            raise StorageClientError(f"upload to {bucket}/{key} failed: {e}") from e
        logger.debug("Uploaded %s/%s (%d bytes)", bucket, key, len(data))

    async def download(self, bucket: str, key: str) -> bytes:
        try:
            return await asyncio.to_thread(self.client.storage.from_(bucket).download, key)
        except StorageException as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(bucket, key) from e
            raise StorageClientError(f"download of {bucket}/{key} failed: {e}") from e

    def public_url(self, bucket: str, key: str) -> str:
        return self.client.storage.from_(bucket).get_public_url(key)


class SupabaseRecordStore:
    """Table access through PostgREST."""

    def __init__(self, client: Client):
        self.client = client

    async def insert(self, table: str, row: dict) -> str:
        def _insert():
            return self.client.table(table).insert(row).execute()

        try:
            response = await asyncio.to_thread(_insert)
        except PostgrestAPIError as e:
            raise RecordStoreError(f"insert into {table} failed: {e}") from e
        if not response.data:
            raise RecordStoreError(f"insert into {table} returned no rows")
        return str(response.data[0]["id"])

    async def select_one(self, table: str, record_id: str) -> dict | None:
        def _select():
            return self.client.table(table).select("*").eq("id", record_id).limit(1).execute()

        try:
            response = await asyncio.to_thread(_select)
        except PostgrestAPIError as e:
            raise RecordStoreError(f"select from {table} failed: {e}") from e
        return response.data[0] if response.data else None
