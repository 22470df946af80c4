"""
documents/service.py -- Thin orchestration between the routes and DocumentRepository.

create() is the only operation with logic of its own: it stamps a new uuid4 id
and a UTC creation time. Everything else passes straight through, including
StorageError from the repository.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone

from documents.models import Document
from documents.store import DocumentRepository


class DocsService:
    def __init__(self, documents: DocumentRepository) -> None:
        self.documents = documents

    def create(self, doc: Document) -> Document:
        """Persist a new document and return it with id and created_at set."""
        stored = replace(doc, id=str(uuid.uuid4()), created_at=datetime.now(timezone.utc))
        self.documents.create(stored)
        return stored

    def list(self, owner: str, limit: int) -> list[Document]:
        return self.documents.list(owner, limit)

    def get_by_id(self, doc_id: str) -> Document | None:
        return self.documents.get_by_id(doc_id)

    def delete(self, doc_id: str) -> bool:
        return self.documents.delete(doc_id)
