"""
solrclient Responses — Typed Views over Search Responses
========================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SearchResult:
    """The ``response`` block of a search: matching documents and counts."""

    docs: List[Dict[str, Any]] = field(default_factory=list)
    num_found: int = 0
    start: int = 0
    num_found_exact: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SearchResult":
        data = data or {}
        return cls(
            docs=list(data.get("docs", [])),
            num_found=data.get("numFound", 0),
            start=data.get("start", 0),
            num_found_exact=data.get("numFoundExact", True),
        )


@dataclass
class SearchResponse:
    """
    A decoded search response.

    Known blocks are exposed as attributes; the full decoded body stays
    available as ``raw`` and through item access (``response["facets"]``).
    """

    response: SearchResult
    response_header: Dict[str, Any] = field(default_factory=dict)
    facets: Optional[Dict[str, Any]] = None
    facet_counts: Optional[Dict[str, Any]] = None
    highlighting: Optional[Dict[str, Any]] = None
    grouped: Optional[Dict[str, Any]] = None
    debug: Optional[Dict[str, Any]] = None
    next_cursor_mark: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchResponse":
        return cls(
            response=SearchResult.from_dict(data.get("response")),
            response_header=data.get("responseHeader", {}),
            facets=data.get("facets"),
            facet_counts=data.get("facet_counts"),
            highlighting=data.get("highlighting"),
            grouped=data.get("grouped"),
            debug=data.get("debug"),
            next_cursor_mark=data.get("nextCursorMark"),
            raw=data,
        )

    @property
    def docs(self) -> List[Dict[str, Any]]:
        return self.response.docs

    @property
    def num_found(self) -> int:
        return self.response.num_found

    def __getitem__(self, key: str) -> Any:
        return self.raw[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)
