"""
documents/store.py -- SQLAlchemy Core persistence layer for documents.

Pattern: Repository + Data Mapper (same as auth/store.py). DocumentStore is
the repository; _row_to_document is the mapper.

DocumentRepository is the capability interface DocsService depends on. Each
operation also has a *_tx variant that runs on a caller-owned Connection and
never commits:

    with store.begin() as conn:
        store.create_tx(conn, doc_a)
        store.delete_tx(conn, old_id)

Storage notes:
  grants     -- JSON array serialized as text (portable across SQLite/PostgreSQL)
  json_data  -- raw JSON text, NULL when the document has no embedded JSON
  created_at -- ISO 8601 UTC text, so ORDER BY sorts chronologically

Security: all queries use bound parameters. No f-strings in SQL.

Errors: SQLAlchemyError never leaves this module; it becomes StorageError.

Layer rule: no imports from api/, auth/, or cache/.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import datetime
from typing import Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import StorageError
from documents.models import Document

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_documents = Table(
    "documents",
    metadata,
    Column("id", String(36), primary_key=True),  # uuid4
    Column("name", String(255), nullable=False),
    Column("mime", String(255), nullable=False, server_default=""),
    Column("file", Integer, nullable=False, server_default="0"),  # boolean stored as 0/1
    Column("public", Integer, nullable=False, server_default="0"),  # boolean stored as 0/1
    Column("owner", String(36), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("grants", Text, nullable=False, server_default="[]"),
    Column("json_data", Text),
)


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class DocumentRepository(Protocol):
    def create(self, doc: Document) -> None: ...

    def list(self, owner: str, limit: int) -> list[Document]: ...

    def get_by_id(self, doc_id: str) -> Document | None: ...

    def delete(self, doc_id: str) -> bool: ...


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class DocumentStore:
    """Repository for Document entities.

    Usage:
        store = DocumentStore(engine)
        store.migrate()
        store.create(doc)                      # doc.id and doc.created_at set by caller
        docs = store.list(owner_id, limit=20)  # name ASC, created_at DESC
        doc = store.get_by_id(doc_id)          # None if absent
        store.delete(doc_id)                   # False if absent
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def migrate(self) -> None:
        """Create the documents table if it does not exist. Idempotent."""
        metadata.create_all(self.engine)

    def begin(self) -> AbstractContextManager[Connection]:
        """Open a transaction. Commits on clean exit, rolls back on error."""
        return self.engine.begin()

    # ------------------------------------------------------------------
    # Auto-commit operations
    # ------------------------------------------------------------------

    def create(self, doc: Document) -> None:
        with self._wrap_errors(), self.engine.begin() as conn:
            self.create_tx(conn, doc)

    def list(self, owner: str, limit: int) -> list[Document]:
        with self._wrap_errors(), self.engine.connect() as conn:
            return self.list_tx(conn, owner, limit)

    def get_by_id(self, doc_id: str) -> Document | None:
        with self._wrap_errors(), self.engine.connect() as conn:
            return self.get_by_id_tx(conn, doc_id)

    def delete(self, doc_id: str) -> bool:
        """Delete a document. Returns True if a row was removed."""
        with self._wrap_errors(), self.engine.begin() as conn:
            return self.delete_tx(conn, doc_id)

    # ------------------------------------------------------------------
    # Caller-managed transaction variants
    # ------------------------------------------------------------------

    def create_tx(self, conn: Connection, doc: Document) -> None:
        with self._wrap_errors():
            conn.execute(
                _documents.insert().values(
                    id=doc.id,
                    name=doc.name,
                    mime=doc.mime,
                    file=1 if doc.is_file else 0,
                    public=1 if doc.is_public else 0,
                    owner=doc.owner,
                    created_at=doc.created_at.isoformat() if doc.created_at else None,
                    grants=json.dumps(list(doc.grants)),
                    json_data=doc.json_data.decode("utf-8") if doc.json_data else None,
                )
            )

    def list_tx(self, conn: Connection, owner: str, limit: int) -> list[Document]:
        """Documents owned by `owner`, by name then newest first.

        limit goes to SQL as-is; callers decide what zero or negative means
        for their backend (SQLite treats a negative LIMIT as unlimited).
        """
        with self._wrap_errors():
            rows = conn.execute(
                _documents.select()
                .where(_documents.c.owner == owner)
                .order_by(_documents.c.name, _documents.c.created_at.desc())
                .limit(limit)
            ).fetchall()
        return [_row_to_document(r) for r in rows]

    def get_by_id_tx(self, conn: Connection, doc_id: str) -> Document | None:
        with self._wrap_errors():
            row = conn.execute(_documents.select().where(_documents.c.id == doc_id)).fetchone()
        return _row_to_document(row) if row is not None else None

    def delete_tx(self, conn: Connection, doc_id: str) -> bool:
        with self._wrap_errors():
            result = conn.execute(_documents.delete().where(_documents.c.id == doc_id))
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    @contextmanager
    def _wrap_errors() -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_document(row) -> Document:
    return Document(
        id=row.id,
        name=row.name,
        mime=row.mime or "",
        is_file=bool(row.file),
        is_public=bool(row.public),
        owner=row.owner,
        created_at=datetime.fromisoformat(row.created_at),
        grants=json.loads(row.grants) if row.grants else [],
        json_data=row.json_data.encode("utf-8") if row.json_data else None,
    )
