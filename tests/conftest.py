"""
Pytest configuration for couchdb-client tests.

This file ensures that the src directory is in the Python path
so that tests can import couchdb_client without installing it.
"""
import sys
from pathlib import Path

import httpx
import pytest

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

COUCH_URL = "http://couch.test:5984"


@pytest.fixture
def make_exchange():
    """Build a completed httpx request/response pair."""
    def _make(method, path, status_code, body="", headers=None):
        request = httpx.Request(method, f"{COUCH_URL}{path}")
        response = httpx.Response(status_code, content=body.encode("utf-8"), headers=headers, request=request)
        return request, response
    return _make
