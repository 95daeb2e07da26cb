"""
solrclient — Apache Solr Client
===============================

A client library for Apache Solr: fluent query builders, Collections API
commands and a thin HTTP client over Solr's request handlers.

Key Features:
- Flat form-encoded queries for every Solr version
- JSON Request API queries with JSON Facet API trees (Solr 7+)
- Collections API builder for SolrCloud administration
- Batched document streams and JSONL bulk loading
- Typed errors for transport and server failures

Usage:
    from solrclient import SolrClient, terms_facet

    client = SolrClient(core="goddess")
    client.add_documents({"id": "megumin", "name": "Megumin"}, {"commit": True})

    query = (
        client.create_json_query()
        .set_query("occupation:Student")
        .set_facets({"ages": terms_facet("age", limit=5)})
        .set_limit(10)
    )
    response = client.search_documents(query)

License: MIT
"""

__version__ = "0.1.0"

from .builder import DocumentStream, IndexBuilder
from .cluster import ClusterManager
from .collection import Collection
from .config import SolrClientConfig
from .core import SolrClient, create_client
from .exceptions import (
    SolrClientError,
    SolrConnectionError,
    SolrError,
    SolrHTTPError,
    SolrRequestError,
)
from .facets import arbitrary_range, facet_domain, query_facet, range_facet, terms_facet
from .query import JsonQuery, Query
from .responses import SearchResponse, SearchResult
from .utils import convert_dates_to_iso, escape_lucene_chars, format_date_to_iso

__all__ = [
    "SolrClient",
    "create_client",
    "SolrClientConfig",
    "Query",
    "JsonQuery",
    "Collection",
    "ClusterManager",
    "IndexBuilder",
    "DocumentStream",
    "SearchResponse",
    "SearchResult",
    "SolrClientError",
    "SolrConnectionError",
    "SolrRequestError",
    "SolrError",
    "SolrHTTPError",
    "terms_facet",
    "range_facet",
    "query_facet",
    "arbitrary_range",
    "facet_domain",
    "escape_lucene_chars",
    "convert_dates_to_iso",
    "format_date_to_iso",
]
