"""
Exceptions raised by the CouchDB client.

Server-reported errors ({"error": ..., "reason": ...}) are captured as data on
CouchResponse. Exceptions are reserved for transport failures, responses that
break the CouchDB wire contract, and keys that cannot be encoded.
"""
from typing import Optional


class CouchError(Exception):
    """Base class for all client errors."""


class CouchTransportError(CouchError):
    """The HTTP transport failed to send the request or deliver the body."""


class CouchContractError(CouchError):
    """A response body does not have the shape CouchDB promises."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedErrorBodyError(CouchContractError):
    """A non-2xx response whose body is not an {error, reason} object."""


class CouchServerError(CouchError):
    """Raised by CouchResponse.raise_for_error() for server-reported errors."""

    def __init__(self, status_code: int, error_id: str, reason: str):
        super().__init__(f"{status_code} {error_id}: {reason}")
        self.status_code = status_code
        self.error_id = error_id
        self.reason = reason


class KeyEncodingError(CouchError, TypeError):
    """A complex key component cannot be represented as JSON."""
