# Configuration and HTTP sessions
from .config import Config, setup_logging
from .couch import (
    CouchSession,
    AsyncCouchSession,
    doc_path,
    encode_key,
    encode_view_params,
    quote_segment,
)

__all__ = [
    # Config
    "Config",
    "setup_logging",
    # Sessions
    "CouchSession",
    "AsyncCouchSession",
    "doc_path",
    "encode_key",
    "encode_view_params",
    "quote_segment",
]
