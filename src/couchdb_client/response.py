"""
CouchDB response interpretation.

CouchResponse is built once per HTTP exchange from an httpx request/response
pair. It reads the body, decides whether the request succeeded, and, for
errors, extracts CouchDB's {"error": ..., "reason": ...} pair.

Success rules (status codes starting with "2"):
- POST /{db}/_bulk_docs returns an array of per-document results; the request
  is ok when that array is non-empty.
- Write endpoints return {"ok": true, ...}; anything else is a contract error.
- Read endpoints (expect_ok=False) return documents or lists; any valid JSON
  body is ok.

An empty body (HEAD requests, 204s) leaves both ok and error_id unset.
"""
import json
import logging
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .errors import CouchContractError, CouchServerError, CouchTransportError, MalformedErrorBodyError

logger = logging.getLogger(__name__)

# Matches the /{db}/_bulk_docs endpoint, not document ids that merely end in "_bulk_docs"
BULK_DOCS_SUFFIX = "/_bulk_docs"

_MISSING = object()


def _read_body(response: httpx.Response) -> str:
    try:
        response.read()
    except (httpx.HTTPError, httpx.StreamError) as e:
        raise CouchTransportError(f"Failed to read response body: {e}") from e
    return response.text


def _raw_headers(response: httpx.Response) -> Tuple[Tuple[str, str], ...]:
    """Headers in received order with the original name casing."""
    encoding = response.headers.encoding
    return tuple((name.decode(encoding), value.decode(encoding)) for name, value in response.headers.raw)


def _parse_json(body: str, status_code: int, error_cls=CouchContractError) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise error_cls(f"Response body is not valid JSON: {e}", status_code=status_code, body=body) from e


def _classify(
    path: str,
    status_code: int,
    body: str,
    expect_ok: bool
) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Decide the outcome of an exchange.

    Returns:
        Tuple of (ok, error_id, error_reason)

    Raises:
        CouchContractError: 2xx body does not match the endpoint's shape
        MalformedErrorBodyError: non-2xx body is not an {error, reason} object
    """
    if not body.strip():
        return False, None, None

    if str(status_code).startswith("2"):
        parsed = _parse_json(body, status_code)

        if path.endswith(BULK_DOCS_SUFFIX):
            if not isinstance(parsed, list):
                raise CouchContractError(
                    f"Expected a JSON array from {BULK_DOCS_SUFFIX}, got {type(parsed).__name__}",
                    status_code=status_code, body=body
                )
            return len(parsed) > 0, None, None

        if not expect_ok:
            return True, None, None

        ok = parsed.get("ok", _MISSING) if isinstance(parsed, dict) else _MISSING
        if ok is not True:
            raise CouchContractError(
                f"Expected {{\"ok\": true}} in {status_code} response, got ok={'<missing>' if ok is _MISSING else ok!r}",
                status_code=status_code, body=body
            )
        return True, None, None

    # Anything else is an error report
    parsed = _parse_json(body, status_code, MalformedErrorBodyError)
    if not isinstance(parsed, dict):
        raise MalformedErrorBodyError(
            f"Expected an error object in {status_code} response, got {type(parsed).__name__}",
            status_code=status_code, body=body
        )
    error_id = parsed.get("error")
    error_reason = parsed.get("reason")
    if not isinstance(error_id, str) or not isinstance(error_reason, str):
        raise MalformedErrorBodyError(
            f"Error response {status_code} lacks string 'error'/'reason' fields",
            status_code=status_code, body=body
        )
    return False, error_id, error_reason


@dataclass(frozen=True)
class CouchResponse:
    """Immutable result of one CouchDB HTTP exchange."""
    method: str
    path: str
    status_code: int
    phrase: str
    headers: Tuple[Tuple[str, str], ...]
    body: str
    ok: bool = False
    error_id: Optional[str] = None
    error_reason: Optional[str] = None
    expect_ok: bool = field(default=True, repr=False, compare=False)

    @classmethod
    def from_exchange(
        cls,
        request: httpx.Request,
        response: httpx.Response,
        *,
        expect_ok: bool = True,
        log: Optional[logging.Logger] = None
    ) -> "CouchResponse":
        """
        Interpret a completed request/response pair.

        Args:
            request: The request that was sent (method and path are recorded)
            response: The response received for it
            expect_ok: Require {"ok": true} on 2xx bodies (write endpoints)
            log: Where to send diagnostics (defaults to this module's logger)

        Raises:
            CouchTransportError: The body could not be read
            CouchContractError: The body does not match the CouchDB contract
        """
        if log is None:
            log = logger

        body = _read_body(response)
        path = request.url.path
        status_code = response.status_code

        log.debug(f"Status code: {status_code}")
        ok, error_id, error_reason = _classify(path, status_code, body, expect_ok)

        result = cls(
            method=request.method,
            path=path,
            status_code=status_code,
            phrase=response.reason_phrase,
            headers=_raw_headers(response),
            body=body,
            ok=ok,
            error_id=error_id,
            error_reason=error_reason,
            expect_ok=expect_ok,
        )
        log.debug(str(result))
        return result

    def __str__(self) -> str:
        return f"[{self.method}] {self.path} [{self.status_code}]  => {self.body}"

    @property
    def has_body(self) -> bool:
        return bool(self.body and self.body.strip())

    def body_as_list(self) -> Optional[List[Any]]:
        """Body as a JSON array (e.g. _all_dbs), or None when there is no body."""
        if not self.has_body:
            return None
        parsed = _parse_json(self.body, self.status_code)
        if not isinstance(parsed, list):
            raise CouchContractError(
                f"Expected a JSON array, got {type(parsed).__name__}",
                status_code=self.status_code, body=self.body
            )
        return parsed

    def body_as_dict(self) -> Optional[Dict[str, Any]]:
        """Body as a JSON object (e.g. a document), or None when there is no body."""
        if not self.has_body:
            return None
        parsed = _parse_json(self.body, self.status_code)
        if not isinstance(parsed, dict):
            raise CouchContractError(
                f"Expected a JSON object, got {type(parsed).__name__}",
                status_code=self.status_code, body=self.body
            )
        return parsed

    def header(self, name: str) -> Optional[str]:
        """Value of the first header named exactly `name`, or None."""
        for header_name, value in self.headers:
            if header_name == name:
                return value
        return None

    def with_status(self, status_code: int, phrase: Optional[str] = None) -> "CouchResponse":
        """
        Return a copy with a corrected status code (and phrase); this response is unchanged.

        The copy is classified again under the new status, so ok, error_id and
        error_reason always agree with status_code.

        Raises:
            CouchContractError: The body does not fit the corrected status
        """
        ok, error_id, error_reason = _classify(self.path, status_code, self.body, self.expect_ok)
        return dataclasses.replace(
            self,
            status_code=status_code,
            phrase=self.phrase if phrase is None else phrase,
            ok=ok,
            error_id=error_id,
            error_reason=error_reason,
        )

    def raise_for_error(self) -> "CouchResponse":
        """Raise CouchServerError if the server reported an error, else return self."""
        if self.error_id is not None:
            raise CouchServerError(self.status_code, self.error_id, self.error_reason)
        return self
