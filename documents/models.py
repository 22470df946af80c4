"""
documents/models.py -- Domain dataclass for stored documents.

Pure data container. A document is either file-backed (is_file=True, bytes
live in the uploads directory under `name`) or an embedded JSON blob
(json_data holds the raw JSON text as bytes). Both kinds may carry metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Document:
    """A stored document.

    id and created_at are None until DocsService.create() assigns them.
    grants is carried and persisted but not consulted by any access check.
    """

    name: str
    owner: str  # user id
    mime: str = ""
    is_file: bool = False
    is_public: bool = False
    grants: list[str] = field(default_factory=list)
    json_data: bytes | None = None
    id: str | None = None
    created_at: datetime | None = None
