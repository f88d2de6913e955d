"""Filesystem object storage and SQLite record store for local runs."""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path

from cv_tailor.clients.storage import ObjectNotFoundError, RecordStoreError, StorageClientError


class LocalObjectStorage:
    """Stores objects as files under ``root/<bucket>/<key>``."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, bucket: str, key: str) -> Path:
        path = (self.root / bucket / key).resolve()
        bucket_root = (self.root / bucket).resolve()
        if bucket_root not in path.parents:
            raise StorageClientError(f"key escapes bucket: {key!r}")
        return path

    async def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        path = self._path(bucket, key)
        if path.exists():
            raise StorageClientError(f"object already exists: {bucket}/{key}")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def download(self, bucket: str, key: str) -> bytes:
        path = self._path(bucket, key)
        if not path.is_file():
            raise ObjectNotFoundError(bucket, key)
        return path.read_bytes()

    def public_url(self, bucket: str, key: str) -> str:
        return self._path(bucket, key).as_uri()


class SqliteRecordStore:
    """SQLite-backed record store with WAL mode.

    Every table shares one physical schema: an id and the row as JSON.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    id TEXT NOT NULL,
                    table_name TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (table_name, id)
                )
            """)

    async def insert(self, table: str, row: dict) -> str:
        record_id = str(row.get("id") or uuid.uuid4())
        data = {**row, "id": record_id}
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO records (id, table_name, data) VALUES (?, ?, ?)",
                    (record_id, table, json.dumps(data, ensure_ascii=False)),
                )
        except sqlite3.Error as e:
            raise RecordStoreError(f"insert into {table} failed: {e}") from e
        return record_id

    async def select_one(self, table: str, record_id: str) -> dict | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT data FROM records WHERE table_name = ? AND id = ?",
                    (table, record_id),
                ).fetchone()
        except sqlite3.Error as e:
            raise RecordStoreError(f"select from {table} failed: {e}") from e
        return json.loads(row[0]) if row else None
