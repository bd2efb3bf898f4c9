"""
CouchDB client: response interpretation, complex view keys and httpx sessions.
"""
from .complex_key import ComplexKey, Literal, EmptyObject, EmptyArray, EMPTY_OBJECT, EMPTY_ARRAY
from .response import CouchResponse
from .errors import (
    CouchError,
    CouchTransportError,
    CouchContractError,
    MalformedErrorBodyError,
    CouchServerError,
    KeyEncodingError,
)
from .core import Config, setup_logging, CouchSession, AsyncCouchSession

__all__ = [
    # Keys
    "ComplexKey",
    "Literal",
    "EmptyObject",
    "EmptyArray",
    "EMPTY_OBJECT",
    "EMPTY_ARRAY",
    # Responses
    "CouchResponse",
    # Errors
    "CouchError",
    "CouchTransportError",
    "CouchContractError",
    "MalformedErrorBodyError",
    "CouchServerError",
    "KeyEncodingError",
    # Sessions
    "Config",
    "setup_logging",
    "CouchSession",
    "AsyncCouchSession",
]
