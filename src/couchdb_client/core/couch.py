"""
CouchDB sessions built on httpx.

Each call sends one request and returns a CouchResponse. Server-reported
errors come back as data on the response; transport failures raise
CouchTransportError.
"""
import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .config import Config
from ..complex_key import ComplexKey, to_json_value
from ..errors import CouchTransportError
from ..response import CouchResponse

logger = logging.getLogger(__name__)

# Read endpoints return documents and lists rather than {"ok": true}
READ_METHODS = ("GET", "HEAD")

VIEW_KEY_PARAMS = ("key", "keys", "startkey", "endkey", "start_key", "end_key")

# not_found reasons that mean the document itself is absent
MISSING_DOC_REASONS = ("missing", "deleted")


def quote_segment(name: str) -> str:
    """Percent-encode a database name or document id for use as one path segment."""
    return quote(name, safe="")


def doc_path(db_name: str, doc_id: str) -> str:
    """Build /{db}/{doc_id}, keeping the slash of _design/ and _local/ ids."""
    for prefix in ("_design/", "_local/"):
        if doc_id.startswith(prefix):
            return f"/{quote_segment(db_name)}/{prefix}{quote_segment(doc_id[len(prefix):])}"
    return f"/{quote_segment(db_name)}/{quote_segment(doc_id)}"


def encode_key(value: Any) -> str:
    """JSON-encode a view key: a ComplexKey, a plain value, or a list of either."""
    if isinstance(value, ComplexKey):
        return value.to_json_string()
    return json.dumps(to_json_value(value), separators=(",", ":"), allow_nan=False)


def encode_view_params(params: Dict[str, Any]) -> Dict[str, str]:
    """
    Convert view query options into query-string values.

    Key options are JSON encoded, booleans become true/false, everything else
    is passed through as a string. Options set to None are dropped.
    """
    encoded = {}
    for name, value in params.items():
        if value is None:
            continue
        if name in VIEW_KEY_PARAMS:
            encoded[name] = encode_key(value)
        elif isinstance(value, bool):
            encoded[name] = "true" if value else "false"
        else:
            encoded[name] = str(value)
    return encoded


def _expect_ok(method: str, expect_ok: Optional[bool]) -> bool:
    if expect_ok is None:
        return method not in READ_METHODS
    return expect_ok


def _client_options(base_url, username, password, timeout) -> Dict[str, Any]:
    base_url = (base_url or Config.COUCHDB_URL).rstrip('/')
    if username and password:
        auth = (username, password)
    elif username is None and password is None:
        auth = Config.get_auth()
    else:
        auth = None
    return {
        "base_url": base_url,
        "auth": auth,
        "timeout": Config.COUCHDB_TIMEOUT if timeout is None else timeout,
    }


class CouchSession:
    """Synchronous CouchDB session over an httpx.Client."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        log: Optional[logging.Logger] = None
    ):
        """
        Args:
            base_url: CouchDB server URL (defaults to Config.COUCHDB_URL)
            username: Basic auth user (defaults to Config.COUCHDB_USER)
            password: Basic auth password (defaults to Config.COUCHDB_PASSWORD)
            timeout: Request timeout in seconds (defaults to Config.COUCHDB_TIMEOUT)
            transport: Optional httpx transport (tests use httpx.MockTransport)
            log: Logger for request diagnostics
        """
        options = _client_options(base_url, username, password, timeout)
        self.base_url = options["base_url"]
        self.log = log if log is not None else logger
        self._client = httpx.Client(transport=transport, **options)
        self.log.info(f"CouchSession initialized for {self.base_url}")

    def request(
        self,
        method: str,
        path: str,
        payload: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        expect_ok: Optional[bool] = None
    ) -> CouchResponse:
        """
        Send a request to CouchDB and interpret the response.

        Args:
            method: HTTP method
            path: Server path (e.g., "/mydb/mydoc")
            payload: Optional JSON body
            params: Optional query parameters
            expect_ok: Require {"ok": true} on success; defaults to False for GET/HEAD

        Raises:
            CouchTransportError: The request could not be sent or its body read
        """
        method = method.upper()
        try:
            response = self._client.request(method, path, json=payload, params=params)
        except httpx.HTTPError as e:
            self.log.error(f"CouchDB connection error: {method} {path}: {e}")
            raise CouchTransportError(f"{method} {path} failed: {e}") from e

        return CouchResponse.from_exchange(
            response.request, response, expect_ok=_expect_ok(method, expect_ok), log=self.log
        )

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> CouchResponse:
        return self.request("GET", path, params=params)

    def head(self, path: str) -> CouchResponse:
        return self.request("HEAD", path)

    def put(self, path: str, payload: Optional[Any] = None, params: Optional[Dict[str, Any]] = None) -> CouchResponse:
        return self.request("PUT", path, payload=payload, params=params)

    def post(self, path: str, payload: Optional[Any] = None, params: Optional[Dict[str, Any]] = None) -> CouchResponse:
        return self.request("POST", path, payload=payload, params=params)

    def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> CouchResponse:
        return self.request("DELETE", path, params=params)

    # Databases

    def list_databases(self) -> List[str]:
        """Names of all databases on the server."""
        return self.get("/_all_dbs").raise_for_error().body_as_list()

    def create_database(self, db_name: str) -> CouchResponse:
        return self.put(f"/{quote_segment(db_name)}")

    def delete_database(self, db_name: str) -> CouchResponse:
        return self.delete(f"/{quote_segment(db_name)}")

    # Documents

    def get_document(self, db_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a document.

        Returns:
            The document, or None if it was never created or has been deleted

        Raises:
            CouchServerError: Any other error, including a missing database
        """
        response = self.get(doc_path(db_name, doc_id))
        if response.error_id == "not_found" and response.error_reason in MISSING_DOC_REASONS:
            self.log.debug(f"Document not found: {db_name}/{doc_id}")
            return None
        return response.raise_for_error().body_as_dict()

    def save_document(self, db_name: str, doc: Dict[str, Any], doc_id: Optional[str] = None) -> CouchResponse:
        """PUT the document under doc_id (or its _id); POST it when no id is known."""
        doc_id = doc_id or doc.get("_id")
        if doc_id:
            return self.put(doc_path(db_name, doc_id), payload=doc)
        return self.post(f"/{quote_segment(db_name)}", payload=doc)

    def delete_document(self, db_name: str, doc_id: str, rev: str) -> CouchResponse:
        return self.delete(doc_path(db_name, doc_id), params={"rev": rev})

    def bulk_save(self, db_name: str, docs: List[Dict[str, Any]]) -> CouchResponse:
        """POST docs to _bulk_docs; ok means CouchDB returned per-document results."""
        return self.post(f"/{quote_segment(db_name)}/_bulk_docs", payload={"docs": docs})

    # Views

    def query_view(
        self,
        db_name: str,
        design: str,
        view: str,
        key: Any = None,
        startkey: Any = None,
        endkey: Any = None,
        **params: Any
    ) -> CouchResponse:
        """
        Query a map/reduce view.

        Key arguments may be ComplexKey instances or plain JSON values.
        Other options (limit, descending, include_docs, ...) pass through.
        """
        params.update(key=key, startkey=startkey, endkey=endkey)
        path = f"/{quote_segment(db_name)}/_design/{quote_segment(design)}/_view/{quote_segment(view)}"
        return self.get(path, params=encode_view_params(params))

    def close(self):
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "CouchSession":
        return self

    def __exit__(self, *exc_info):
        self.close()


class AsyncCouchSession:
    """Async counterpart of CouchSession over an httpx.AsyncClient."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log: Optional[logging.Logger] = None
    ):
        options = _client_options(base_url, username, password, timeout)
        self.base_url = options["base_url"]
        self.log = log if log is not None else logger
        self._client = httpx.AsyncClient(transport=transport, **options)

    async def request(
        self,
        method: str,
        path: str,
        payload: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        expect_ok: Optional[bool] = None
    ) -> CouchResponse:
        """Send a request to CouchDB and interpret the response (see CouchSession.request)."""
        method = method.upper()
        try:
            # Not streamed, so the body is already read when interpretation starts
            response = await self._client.request(method, path, json=payload, params=params)
        except httpx.HTTPError as e:
            self.log.error(f"CouchDB connection error: {method} {path}: {e}")
            raise CouchTransportError(f"{method} {path} failed: {e}") from e

        return CouchResponse.from_exchange(
            response.request, response, expect_ok=_expect_ok(method, expect_ok), log=self.log
        )

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> CouchResponse:
        return await self.request("GET", path, params=params)

    async def head(self, path: str) -> CouchResponse:
        return await self.request("HEAD", path)

    async def put(self, path: str, payload: Optional[Any] = None, params: Optional[Dict[str, Any]] = None) -> CouchResponse:
        return await self.request("PUT", path, payload=payload, params=params)

    async def post(self, path: str, payload: Optional[Any] = None, params: Optional[Dict[str, Any]] = None) -> CouchResponse:
        return await self.request("POST", path, payload=payload, params=params)

    async def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> CouchResponse:
        return await self.request("DELETE", path, params=params)

    async def aclose(self):
        """Close the async client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncCouchSession":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
