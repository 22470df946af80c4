"""
api/routes/docs.py -- Document upload, listing, retrieval, and deletion.

Routes (all require a session, see auth.dependencies.require_session):
  POST        /api/docs        -- multipart upload (meta, json, file, token)
  GET|HEAD    /api/docs        -- list documents for the caller or ?login=
  GET|HEAD    /api/docs/{id}   -- embedded JSON, or the stored file as an attachment
  DELETE      /api/docs/{id}   -- delete a document

Read-through cache (app.state.cache, a cache.store.TTLCache):
  list:<owner_id>:<limit>   -- the Document list returned by DocsService.list()
  doc:<id>                  -- a single Document

Both reads check the cache first, then fall back to DocsService and store the
result. Every write (upload, delete) calls invalidate_all(): a new or removed
document can change any owner's list, and keys are not indexed by owner, so
the whole cache goes. Delete also drops doc:<id> explicitly before that.

Access: any session may read or delete any document by id. owner and grants
are stored but not checked here.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import pydantic
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse, Response

from api.models import APIResponse, DocumentMeta, DocumentOut
from auth.dependencies import AuthContext, require_session
from cache.store import TTLCache
from core.config import Settings
from core.errors import InternalError, NotFound, StorageError, ValidationError
from documents.models import Document
from documents.service import DocsService
from documents.uploads import resolve_upload, safe_filename, save_upload

logger = logging.getLogger("astra.docs")

router = APIRouter()

_DEFAULT_LIMIT = 20


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_limit(raw: Optional[str]) -> int:
    """Integer limit from the query string; 20 when absent or unparseable.

    Zero and negative values pass through unchanged.
    """
    if raw is None:
        return _DEFAULT_LIMIT
    try:
        return int(raw)
    except ValueError:
        return _DEFAULT_LIMIT


def _serve_document(request: Request, doc: Document) -> Response:
    """Render a Document: stream its file, or return its embedded JSON in the envelope."""
    if doc.is_file:
        settings: Settings = request.app.state.settings
        path = resolve_upload(settings.uploads_dir, doc.name)
        if path is None:
            raise NotFound("file not found")
        file_response = FileResponse(path, media_type=doc.mime or None, filename=doc.name)
        if request.method == "HEAD":
            return Response(
                headers={"content-disposition": file_response.headers["content-disposition"]},
                media_type=file_response.media_type,
            )
        return file_response

    data = json.loads(doc.json_data) if doc.json_data else None
    return JSONResponse(content=APIResponse(data=data).body())


# ---------------------------------------------------------------------------
# POST /docs -- upload
# ---------------------------------------------------------------------------


@router.post("/docs")
def upload_document(
    request: Request,
    auth: AuthContext = Depends(require_session),
    meta: Optional[str] = Form(default=None),
    json_field: Optional[str] = Form(default=None, alias="json"),
    file: Optional[UploadFile] = File(default=None),
) -> JSONResponse:
    """Store a new document owned by the caller.

    Form fields:
      meta  -- required JSON: {"name", "file", "public", "mime", "grants"}
      json  -- optional JSON payload embedded in the document
      file  -- the file part, required when meta.file is true

    The file is saved under its original filename in UPLOADS_DIR, replacing
    any earlier file with the same name. An empty meta.name takes the
    uploaded filename.
    """
    settings: Settings = request.app.state.settings
    docs_service: DocsService = request.app.state.docs_service
    cache: TTLCache = request.app.state.cache

    try:
        doc_meta = DocumentMeta.model_validate_json(meta or "")
    except pydantic.ValidationError as exc:
        raise ValidationError("invalid meta json") from exc

    json_obj = None
    json_data: Optional[bytes] = None
    if json_field:
        try:
            json_obj = json.loads(json_field)
        except json.JSONDecodeError as exc:
            raise ValidationError("invalid json field") from exc
        json_data = json_field.encode("utf-8")

    name = doc_meta.name
    if doc_meta.file:
        if file is None or not file.filename:
            raise ValidationError("file not found in form")
        try:
            saved = save_upload(settings.uploads_dir, file.filename, file.file)
        except ValueError as exc:
            raise ValidationError("invalid file name") from exc
        except OSError as exc:
            logger.error("Cannot save upload %r: %s", file.filename, exc)
            raise InternalError("cannot save file") from exc
        logger.info("Saved upload %s", saved)
        if not name:
            name = safe_filename(file.filename)

    doc = docs_service.create(
        Document(
            name=name,
            mime=doc_meta.mime,
            is_file=doc_meta.file,
            is_public=doc_meta.public,
            owner=auth.session.user_id,
            grants=doc_meta.grants,
            json_data=json_data,
        )
    )
    cache.invalidate_all()
    logger.info("Document %s created by %s; cache invalidated", doc.id, auth.session.login)

    return JSONResponse(content=APIResponse(data={"id": doc.id, "file": doc.name, "json": json_obj}).body())


# ---------------------------------------------------------------------------
# GET|HEAD /docs -- list
# ---------------------------------------------------------------------------


@router.api_route("/docs", methods=["GET", "HEAD"])
def list_documents(
    request: Request,
    auth: AuthContext = Depends(require_session),
    login: Optional[str] = None,
    limit: Optional[str] = None,
) -> JSONResponse:
    """List documents by name, newest first within a name.

    Query params:
      login -- list another user's documents instead of the caller's
      limit -- max rows (default 20)
    """
    docs_service: DocsService = request.app.state.docs_service
    cache: TTLCache = request.app.state.cache

    owner_id = auth.session.user_id
    if login:
        try:
            target = request.app.state.user_store.get_by_login(login)
        except StorageError as exc:
            logger.error("Login lookup failed for %r: %s", login, exc.text)
            target = None
        if target is None:
            raise ValidationError("unknown login")
        owner_id = target.id

    n = _parse_limit(limit)
    cache_key = f"list:{owner_id}:{n}"
    docs, found = cache.get(cache_key)
    if found:
        logger.debug("Cache hit %s", cache_key)
    else:
        logger.debug("Cache miss %s", cache_key)
        docs = docs_service.list(owner_id, n)
        cache.set(cache_key, docs)

    rows = [DocumentOut.from_document(d).to_json() for d in docs]
    return JSONResponse(content=APIResponse(data={"docs": rows}).body())


# ---------------------------------------------------------------------------
# GET|HEAD /docs/{doc_id} -- fetch one
# ---------------------------------------------------------------------------


@router.api_route("/docs/{doc_id}", methods=["GET", "HEAD"])
def get_document(
    request: Request,
    doc_id: str,
    auth: AuthContext = Depends(require_session),
) -> Response:
    """Return a document's JSON payload (null if it has none) or its file.

    File-backed documents are sent with the stored MIME type and
    Content-Disposition: attachment; HEAD sends the headers only.
    """
    docs_service: DocsService = request.app.state.docs_service
    cache: TTLCache = request.app.state.cache

    cache_key = f"doc:{doc_id}"
    doc, found = cache.get(cache_key)
    if found:
        logger.debug("Cache hit %s", cache_key)
    else:
        doc = docs_service.get_by_id(doc_id)
        if doc is None:
            raise NotFound("document not found")
        cache.set(cache_key, doc)

    return _serve_document(request, doc)


# ---------------------------------------------------------------------------
# DELETE /docs/{doc_id}
# ---------------------------------------------------------------------------


@router.delete("/docs/{doc_id}")
def delete_document(
    request: Request,
    doc_id: str,
    auth: AuthContext = Depends(require_session),
) -> JSONResponse:
    """Delete a document record. The uploaded file, if any, stays on disk."""
    docs_service: DocsService = request.app.state.docs_service
    cache: TTLCache = request.app.state.cache

    if not docs_service.delete(doc_id):
        raise NotFound("document not found")
    cache.invalidate(f"doc:{doc_id}")
    cache.invalidate_all()
    logger.info("Document %s deleted by %s; cache invalidated", doc_id, auth.session.login)

    return JSONResponse(content=APIResponse(response={doc_id: True}).body())
