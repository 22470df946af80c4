"""
core/errors.py -- Error taxonomy shared by services, stores, and the HTTP layer.

Services raise these exceptions with a short human-readable text. They are not
translated or wrapped on the way up: api/main.py renders any ServiceError as

    {"error": {"code": <status_code>, "text": <text>}}

so the text a service chooses is exactly what the client sees.

Layer rule: core/ is the kernel. No imports from api/, auth/, documents/, or cache/.
"""


class ServiceError(Exception):
    """Base class. status_code is the HTTP status the API layer responds with."""

    status_code: int = 500

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text


class ValidationError(ServiceError):
    """Malformed input, body, or credential format."""

    status_code = 400


class Unauthorized(ServiceError):
    """Missing or unknown session token, or a bad password."""

    status_code = 401


class PermissionDenied(ServiceError):
    """Caller is identified but not allowed to do this (e.g. wrong admin token)."""

    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class InternalError(ServiceError):
    status_code = 500


class StorageError(InternalError):
    """A persistence failure. Raised by stores in place of driver exceptions."""
