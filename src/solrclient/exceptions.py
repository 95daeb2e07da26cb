"""
solrclient Exceptions
=====================

    SolrClientError
    ├── SolrConnectionError        transport failure, no HTTP response
    └── SolrRequestError           non-2xx HTTP response
        ├── SolrError              server sent a structured error body
        └── SolrHTTPError          no structured body, synthesized from the status
"""

from typing import Any, List, Optional


class SolrClientError(Exception):
    """Base class for errors raised by solrclient."""


class SolrConnectionError(SolrClientError):
    """The request never produced an HTTP response (DNS, refused, timeout, TLS)."""


class SolrRequestError(SolrClientError):
    """
    The server answered with a non-2xx status.

    Attributes:
        http_status: HTTP status of the response
        code: Error code reported by Solr (the HTTP status when none)
        message: Human-readable error message
        metadata: Error metadata list reported by Solr, if any
    """

    def __init__(
        self,
        http_status: int,
        code: int,
        message: str,
        metadata: Optional[List[Any]] = None,
    ):
        super().__init__(
            f"Solr request failed with HTTP status {http_status} "
            f"and Solr code {code}: {message}"
        )
        self.http_status = http_status
        self.code = code
        self.message = message
        self.metadata = metadata


class SolrError(SolrRequestError):
    """Error described by Solr's ``{"error": {...}}`` response body."""


class SolrHTTPError(SolrRequestError):
    """HTTP failure without a structured Solr error body."""


def error_from_response(http_status: int, body: Any) -> SolrRequestError:
    """
    Map a failed response to the matching error variant.

    Args:
        http_status: HTTP status of the response
        body: Decoded response body (dict for JSON, str or bytes otherwise)

    Returns:
        SolrError when the body carries a Solr error object, else SolrHTTPError
    """
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and ("msg" in error or "code" in error):
        return SolrError(
            http_status,
            error.get("code", http_status),
            error.get("msg", ""),
            error.get("metadata"),
        )

    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    text = body if isinstance(body, str) else ("" if body is None else str(body))
    return SolrHTTPError(http_status, http_status, text or f"HTTP error {http_status}")
