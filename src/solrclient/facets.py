"""
solrclient Facets — JSON Facet API Trees
========================================

Helpers for building and serializing JSON Facet API request trees.

A facet tree maps facet names to definitions:

    {
        "occupations": terms_facet("occupation", limit=10),
        "by_rate": query_facet(
            queries={"high": "rate:[9 TO *]", "low": "rate:[* TO 9}"},
        ),
        "avg_age": "avg(age)",
    }

Definitions are plain dicts, so hand-written trees work just as well as
the helpers below. Nested trees go under a definition's ``facet`` key and
are serialized as-is, however deep.
"""

from typing import Any, Dict, List, Optional, Union

from .utils import convert_dates_to_iso


FacetTree = Dict[str, Union[str, Dict[str, Any]]]


def _domain(
    exclude_tags: Optional[Union[str, List[str]]] = None,
    filter: Optional[Union[str, List[str]]] = None,
    graph: Optional[Union[str, Dict[str, str]]] = None,
    block_parent: Optional[str] = None,
    block_children: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    domain = {
        "excludeTags": exclude_tags,
        "filter": filter,
        "graph": graph,
        "blockParent": block_parent,
        "blockChildren": block_children,
    }
    domain = {k: v for k, v in domain.items() if v is not None}
    return domain or None


def _definition(facet_type: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    definition = {"type": facet_type}
    definition.update({k: v for k, v in fields.items() if v is not None})
    return definition


def facet_domain(**kwargs: Any) -> Optional[Dict[str, Any]]:
    """
    Build a facet ``domain`` block.

    Args:
        exclude_tags: Filter tag(s) to exclude (multi-select faceting)
        filter: Extra filter(s) applied to the domain
        graph: Graph query string or mapping
        block_parent: Parent filter for block-join domains
        block_children: Child filter for block-join domains

    Returns:
        The domain dict, or None when nothing was given
    """
    return _domain(**kwargs)


def terms_facet(
    field: str,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    mincount: Optional[int] = None,
    missing: Optional[bool] = None,
    num_buckets: Optional[bool] = None,
    all_buckets: Optional[bool] = None,
    sort: Optional[Union[str, Dict[str, str]]] = None,
    prefix: Optional[str] = None,
    method: Optional[str] = None,
    domain: Optional[Dict[str, Any]] = None,
    facet: Optional[FacetTree] = None,
) -> Dict[str, Any]:
    """
    Build a ``terms`` facet definition.

    Args:
        field: Field to bucket on
        limit: Number of buckets to return
        offset: Bucket offset for paging
        mincount: Minimum bucket count
        missing: Add a bucket for documents without the field
        num_buckets: Return the total number of buckets
        all_buckets: Add a bucket covering every term
        sort: Sort spec, e.g. "count desc" or {"index": "asc"}
        prefix: Restrict terms to this prefix
        method: Faceting method ("dv", "stream" or "uif")
        domain: Domain block (see facet_domain)
        facet: Nested facet tree

    Returns:
        Facet definition dict
    """
    return _definition("terms", {
        "field": field,
        "limit": limit,
        "offset": offset,
        "mincount": mincount,
        "missing": missing,
        "numBuckets": num_buckets,
        "allBuckets": all_buckets,
        "sort": sort,
        "prefix": prefix,
        "method": method,
        "domain": domain,
        "facet": facet,
    })


def range_facet(
    field: str,
    start: Any = None,
    end: Any = None,
    gap: Any = None,
    hardend: Optional[bool] = None,
    other: Optional[str] = None,
    include: Optional[str] = None,
    ranges: Optional[List[Dict[str, Any]]] = None,
    domain: Optional[Dict[str, Any]] = None,
    facet: Optional[FacetTree] = None,
) -> Dict[str, Any]:
    """
    Build a ``range`` facet definition.

    Either start/end/gap or an explicit ``ranges`` list is expected;
    the server rejects mixing them. Date bounds are converted to ISO
    strings when the tree is serialized.

    Returns:
        Facet definition dict
    """
    return _definition("range", {
        "field": field,
        "start": start,
        "end": end,
        "gap": gap,
        "hardend": hardend,
        "other": other,
        "include": include,
        "ranges": ranges,
        "domain": domain,
        "facet": facet,
    })


def arbitrary_range(
    start: Any = None,
    end: Any = None,
    inclusive_from: Optional[bool] = None,
    inclusive_to: Optional[bool] = None,
) -> Dict[str, Any]:
    """Build one entry of a range facet's ``ranges`` list."""
    entry = {
        "from": start,
        "to": end,
        "inclusive_from": inclusive_from,
        "inclusive_to": inclusive_to,
    }
    return {k: v for k, v in entry.items() if v is not None}


def query_facet(
    q: Optional[str] = None,
    queries: Optional[Dict[str, str]] = None,
    domain: Optional[Dict[str, Any]] = None,
    facet: Optional[FacetTree] = None,
) -> Dict[str, Any]:
    """
    Build a ``query`` facet definition.

    Pass ``q`` for a single bucket, or ``queries`` for several named
    buckets; each named bucket becomes a child query facet.
    """
    if queries:
        children: FacetTree = {
            name: {"type": "query", "q": query}
            for name, query in queries.items()
        }
        if facet:
            children.update(facet)
        return _definition("query", {"q": q or "*:*", "domain": domain, "facet": children})

    return _definition("query", {"q": q, "domain": domain, "facet": facet})


def serialize_facets(tree: FacetTree) -> Dict[str, Any]:
    """
    Serialize a facet tree for the wire.

    Returns a new tree with the same nesting; dates are converted to
    ISO strings and statistic strings like "avg(price)" pass through.
    """
    serialized: Dict[str, Any] = {}
    for name, definition in tree.items():
        if isinstance(definition, dict):
            serialized[name] = _serialize_definition(definition)
        else:
            serialized[name] = definition
    return serialized


def _serialize_definition(definition: Dict[str, Any]) -> Dict[str, Any]:
    result = {}
    for key, value in definition.items():
        if value is None:
            continue
        if key == "facet" and isinstance(value, dict):
            result[key] = serialize_facets(value)
        else:
            result[key] = convert_dates_to_iso(value)
    return result
