"""
Object store — named collections of JSON documents keyed by id.
SQLAlchemy engine over SQLite by default; any SQLAlchemy URL with ON CONFLICT support works.
"""
import json
import logging
import random
import string
import time
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from config import settings
from core.errors import AppError, ErrorCode

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

DDL = """
CREATE TABLE IF NOT EXISTS documents (
    store   TEXT NOT NULL,
    id      TEXT NOT NULL,
    body    TEXT NOT NULL,
    PRIMARY KEY (store, id)
)"""


def generate_id() -> str:
    """Time-ordered id: epoch milliseconds plus nine random base-36 characters."""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


class ObjectStore:
    def __init__(self, url: str):
        self.url = url
        # request handlers run in a thread pool
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine: Engine = create_engine(url, pool_pre_ping=True, connect_args=connect_args)
        try:
            with self.engine.begin() as conn:
                conn.execute(text(DDL))
        except SQLAlchemyError as e:
            self.engine.dispose()
            raise AppError(ErrorCode.STORAGE_UNAVAILABLE, technical=str(e)) from e

    def put(self, store: str, doc_id: str, doc: dict) -> None:
        body = json.dumps(doc, default=str)
        with self.engine.begin() as conn:
            conn.execute(text(
                "INSERT INTO documents (store, id, body) VALUES (:store, :id, :body) "
                "ON CONFLICT (store, id) DO UPDATE SET body = excluded.body"
            ), {"store": store, "id": doc_id, "body": body})

    def get(self, store: str, doc_id: str) -> Optional[dict]:
        with self.engine.connect() as conn:
            row = conn.execute(text(
                "SELECT body FROM documents WHERE store = :store AND id = :id"
            ), {"store": store, "id": doc_id}).first()
        return json.loads(row[0]) if row else None

    def get_all(self, store: str) -> list[dict]:
        with self.engine.connect() as conn:
            rows = conn.execute(text(
                "SELECT body FROM documents WHERE store = :store ORDER BY id"
            ), {"store": store}).fetchall()
        return [json.loads(r[0]) for r in rows]

    def delete(self, store: str, doc_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(text(
                "DELETE FROM documents WHERE store = :store AND id = :id"
            ), {"store": store, "id": doc_id})
        return result.rowcount > 0

    def clear(self, store: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("DELETE FROM documents WHERE store = :store"), {"store": store})

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Store ping failed: %s", e)
            return False

    def dispose(self) -> None:
        self.engine.dispose()


_store: Optional[ObjectStore] = None


def get_store() -> ObjectStore:
    global _store
    if _store is None:
        _store = ObjectStore(settings.DATABASE_URL)
        logger.info("Object store opened at %s", settings.DATABASE_URL)
    return _store


def reset_store(url: Optional[str] = None) -> ObjectStore:
    """Swap the process-wide store (used by tests and on startup)."""
    global _store
    if _store is not None:
        _store.dispose()
    _store = ObjectStore(url or settings.DATABASE_URL)
    return _store
