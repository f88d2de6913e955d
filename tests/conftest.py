"""Shared test fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from cv_tailor.clients.llm_client import LLMClient, LLMResponse
from cv_tailor.clients.storage import ObjectNotFoundError, RecordStoreError, StorageClientError


class FakeObjectStorage:
    """In-memory bucket storage; keys listed in ``fail_uploads`` raise on upload."""

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.content_types: dict[tuple[str, str], str] = {}
        self.downloads: list[tuple[str, str]] = []
        self.fail_uploads: set[str] = set()
        self.fail_downloads: set[str] = set()

    async def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        if any(key.endswith(suffix) for suffix in self.fail_uploads):
            raise StorageClientError(f"upload of {bucket}/{key} refused")
        self.objects[(bucket, key)] = data
        self.content_types[(bucket, key)] = content_type

    async def download(self, bucket: str, key: str) -> bytes:
        self.downloads.append((bucket, key))
        if key in self.fail_downloads:
            raise StorageClientError(f"download of {bucket}/{key} refused")
        try:
            return self.objects[(bucket, key)]
        except KeyError:
            raise ObjectNotFoundError(bucket, key) from None

    def public_url(self, bucket: str, key: str) -> str:
        return f"https://storage.test/object/public/{bucket}/{key}"


class FakeRecordStore:
    def __init__(self):
        self.tables: dict[str, dict[str, dict]] = {}
        self.fail_inserts = False
        self._next_id = 1

    def add(self, table: str, row: dict) -> None:
        self.tables.setdefault(table, {})[row["id"]] = row

    async def insert(self, table: str, row: dict) -> str:
        if self.fail_inserts:
            raise RecordStoreError(f"insert into {table} refused")
        record_id = f"rec-{self._next_id}"
        self._next_id += 1
        self.add(table, {**row, "id": record_id})
        return record_id

    async def select_one(self, table: str, record_id: str) -> dict | None:
        return self.tables.get(table, {}).get(record_id)


@pytest.fixture
def fake_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def fake_records() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def sample_resume_text() -> str:
    return """Jane Doe
jane.doe@example.com | +1 555 0100 | Portland, OR

Summary
Backend engineer with six years of experience building Python and Go services.

Experience
Senior Software Engineer, Globex (2021 - present)
- Designed a PostgreSQL-backed billing API serving 2M requests per day
- Cut p99 latency by 40% by introducing Redis caching

Software Engineer, Initech (2018 - 2021)
- Built internal tooling in Python and Django

Education
B.S. Computer Science, Oregon State University (2014 - 2018)
"""


@pytest.fixture
def sample_jd_text() -> str:
    return (
        "Acme is hiring a Backend Engineer to build Python services on PostgreSQL "
        "and Redis, deployed with Kubernetes. You will design APIs, own reliability "
        "and mentor engineers."
    )


@pytest.fixture
def sample_tailored_markdown() -> str:
    return """**Jane Doe**
jane.doe@example.com | +1 555 0100
Portland, OR

## Professional Summary
Backend engineer with six years of experience building **Python** services on *PostgreSQL* and Redis.

## Key Skills
- **Languages:** Python, Go
- **Data:** PostgreSQL, Redis

## Professional Experience
### **Senior Software Engineer | Globex**
*2021 - present*
- Designed a PostgreSQL-backed billing API serving 2M requests per day
- Cut p99 latency by 40% by introducing Redis caching

---

## Education
B.S. Computer Science, Oregon State University
"""


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.generate = AsyncMock(
        return_value=LLMResponse(text="", input_tokens=100, output_tokens=50)
    )
    return client
