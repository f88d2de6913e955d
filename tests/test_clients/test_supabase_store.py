"""Tests for the Supabase storage backends with a mocked SDK client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from supabase import PostgrestAPIError, StorageException

from cv_tailor.clients.storage import ObjectNotFoundError, RecordStoreError, StorageClientError
from cv_tailor.clients.supabase_store import (
    SupabaseObjectStorage,
    SupabaseRecordStore,
    create_supabase_client,
)


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


class TestCreateClient:
    def test_missing_env_raises(self, monkeypatch):
        for var in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_ANON_KEY"):
            monkeypatch.delenv(var, raising=False)
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            create_supabase_client()


class TestSupabaseObjectStorage:
    async def test_upload(self, client):
        storage = SupabaseObjectStorage(client)
        await storage.upload("tailored-resumes", "u1/a.pdf", b"%PDF", "application/pdf")

        client.storage.from_.assert_called_with("tailored-resumes")
        client.storage.from_.return_value.upload.assert_called_once_with(
            "u1/a.pdf", b"%PDF", {"content-type": "application/pdf", "upsert": "false"},
        )

    async def test_upload_failure(self, client):
        client.storage.from_.return_value.upload.side_effect = StorageException("Duplicate")
        with pytest.raises(StorageClientError):
            await SupabaseObjectStorage(client).upload("b", "k", b"x", "text/plain")

    async def test_download(self, client):
        client.storage.from_.return_value.download.return_value = b"%PDF"
        assert await SupabaseObjectStorage(client).download("resumes", "u1/cv.pdf") == b"%PDF"
        client.storage.from_.return_value.download.assert_called_once_with("u1/cv.pdf")

    async def test_missing_object(self, client):
        client.storage.from_.return_value.download.side_effect = StorageException("Object not found")
        with pytest.raises(ObjectNotFoundError):
            await SupabaseObjectStorage(client).download("resumes", "u1/cv.pdf")

    async def test_other_download_failure(self, client):
        client.storage.from_.return_value.download.side_effect = StorageException("permission denied")
        with pytest.raises(StorageClientError) as exc_info:
            await SupabaseObjectStorage(client).download("resumes", "u1/cv.pdf")
        assert not isinstance(exc_info.value, ObjectNotFoundError)

    def test_public_url(self, client):
        client.storage.from_.return_value.get_public_url.return_value = "https://x/object/public/b/k"
        assert SupabaseObjectStorage(client).public_url("b", "k") == "https://x/object/public/b/k"


class TestSupabaseRecordStore:
    async def test_insert_returns_id(self, client):
        client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[{"id": 42}])

        record_id = await SupabaseRecordStore(client).insert("tailored_resumes", {"status": "completed"})

        assert record_id == "42"
        client.table.assert_called_with("tailored_resumes")
        client.table.return_value.insert.assert_called_once_with({"status": "completed"})

    async def test_insert_without_rows(self, client):
        client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=[])
        with pytest.raises(RecordStoreError):
            await SupabaseRecordStore(client).insert("tailored_resumes", {})

    async def test_insert_api_error(self, client):
        client.table.return_value.insert.return_value.execute.side_effect = PostgrestAPIError(
            {"message": "violates foreign key", "code": "23503"}
        )
        with pytest.raises(RecordStoreError):
            await SupabaseRecordStore(client).insert("tailored_resumes", {})

    async def test_select_one(self, client):
        query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = MagicMock(data=[{"id": "r1", "file_path": "u1/cv.pdf"}])

        row = await SupabaseRecordStore(client).select_one("candidate_resumes", "r1")

        assert row["file_path"] == "u1/cv.pdf"
        client.table.return_value.select.return_value.eq.assert_called_once_with("id", "r1")

    async def test_select_missing(self, client):
        query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
        query.execute.return_value = MagicMock(data=[])
        assert await SupabaseRecordStore(client).select_one("jobs", "nope") is None
