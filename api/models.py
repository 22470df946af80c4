"""
API request and response models for the Astra docs REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py and
documents/models.py, which own the internal domain representation. Route
handlers map between the two.

Every JSON response uses one envelope:

    {"error": {"code": <http status>, "text": "..."}}   on failure
    {"response": ...}  or  {"data": ...}               on success

Fields that were never set are left out of the body (model_dump(exclude_unset=True)),
so {"data": null} is still emitted when a handler sets data to None on purpose.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from documents.models import Document

# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class APIError(BaseModel):
    """Machine-readable error payload. code mirrors the HTTP status."""

    model_config = ConfigDict(frozen=True)

    code: int
    text: str


class APIResponse(BaseModel):
    """Top-level envelope shared by success and error responses."""

    error: Optional[APIError] = None
    response: Any = None
    data: Any = None

    def body(self) -> dict:
        return self.model_dump(exclude_unset=True)


def error_body(code: int, text: str) -> dict:
    return APIResponse(error=APIError(code=code, text=text)).body()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/register.

    Format rules (length, character classes) are enforced by auth.validators
    so clients get the descriptive error texts instead of a generic 400.
    """

    token: str = Field(default="", max_length=255)
    login: str = Field(max_length=255)
    pswd: str = Field(max_length=72)  # byte limit checked in auth.validators


class AuthRequest(BaseModel):
    """Request body for POST /api/auth."""

    login: str = Field(max_length=255)
    pswd: str = Field(max_length=72)


class DocumentMeta(BaseModel):
    """The JSON `meta` form field of POST /api/docs."""

    name: str = ""
    file: bool = False
    public: bool = False
    mime: str = ""
    grants: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class DocumentOut(BaseModel):
    """One document in a list response.

    json is the parsed embedded JSON and is omitted when the document has none.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    mime: str
    file: bool
    public: bool
    owner: str
    created: str
    grants: list[str]
    json_: Any = Field(default=None, alias="json")

    @classmethod
    def from_document(cls, doc: Document) -> "DocumentOut":
        """Factory Method -- the domain-to-transport mapping lives here."""
        fields = {
            "id": doc.id or "",
            "name": doc.name,
            "mime": doc.mime,
            "file": doc.is_file,
            "public": doc.is_public,
            "owner": doc.owner,
            "created": doc.created_at.isoformat() if doc.created_at else "",
            "grants": list(doc.grants),
        }
        if doc.json_data:
            fields["json"] = json.loads(doc.json_data)
        return cls(**fields)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    sessions: int
    cache_entries: int
