"""
solrclient Query — Search Request Builders
==========================================

Fluent builders for one Solr search request. Every setter returns the
builder, so calls chain:

    query = (
        Query()
        .set_query("occupation:Student")
        .add_filters([("age", "[* TO 18]"), ("rate", "[8.6 TO 9.0]")])
        .set_sort({"rate": "desc"})
        .set_limit(1)
    )
    str(query)  # q=occupation%3AStudent&fq=age%3A%5B%2A+TO+18%5D&...

Two wire protocols share the same setters:

    Query      → flat form-encoded parameters (every Solr version)
    JsonQuery  → JSON Request API body (Solr 7+), with JSON facet trees

Builders are plain accumulators. They do no validation (the server
decides what is valid) and are not safe to share between threads.
"""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union
from urllib.parse import parse_qsl, quote_plus

from .facets import FacetTree, serialize_facets
from .utils import convert_dates_to_iso, encode, format_value, join_values, to_list


COMPLEX_PHRASE_PREFIX = "{!complexphrase inOrder=true}"
MATCH_ALL = "*:*"

Q = TypeVar("Q", bound="BaseQuery")

FilterSpec = Union[Mapping[str, Any], Tuple[Any, ...]]


def _boosts(fields: Union[str, Mapping[str, Any]]) -> str:
    """Render {"title": 2, "body": 1} as "title^2 body^1"."""
    if isinstance(fields, str):
        return fields
    return " ".join(f"{name}^{format_value(boost)}" for name, boost in fields.items())


def _conjunction(query: Mapping[str, Any]) -> str:
    """Render {"a": 1, "b": "x"} as "a:1 AND b:x"."""
    return " AND ".join(f"{name}:{format_value(value)}" for name, value in query.items())


class BaseQuery:
    """
    Parameter accumulator shared by the flat and JSON builders.

    Parameters are kept as an ordered list of (name, value) pairs with
    unencoded values; subclasses decide how to put them on the wire.
    """

    def __init__(self):
        self._params: List[Tuple[Optional[str], Any]] = []

    def _push(self: Q, name: str, value: Any) -> Q:
        self._params.append((name, value))
        return self

    def _push_optional(self, name: str, value: Any) -> None:
        if value is not None:
            self._params.append((name, value))

    def _values(self, name: str) -> List[Any]:
        return [value for key, value in self._params if key == name]

    def _has_query(self) -> bool:
        """True when a main query was set, directly or in a raw fragment."""
        if self._values("q"):
            return True
        return any(
            fragment.startswith("q=")
            for raw in self._values(None)
            for fragment in raw.split("&")
        )

    @property
    def parameters(self) -> List[Tuple[Optional[str], Any]]:
        """Snapshot of the accumulated (name, value) pairs."""
        return list(self._params)

    # ------------------------------------------------------------------
    # Raw parameters and main query
    # ------------------------------------------------------------------

    def add_raw_parameter(self: Q, param: str) -> Q:
        """
        Add a pre-encoded ``name=value`` fragment.

        The fragment is sent verbatim in flat mode and decoded into the
        ``params`` bag in JSON mode. A ``q=`` fragment counts as the main
        query.
        """
        self._params.append((None, param))
        return self

    def add_parameter(self: Q, name: str, value: Any) -> Q:
        """Add any named parameter not otherwise modeled."""
        return self._push(name, value)

    def set_parser_type(self: Q, parser_type: str) -> Q:
        """Select the query parser (``defType``), e.g. "lucene" or "edismax"."""
        return self._push("defType", parser_type)

    def use_dismax(self: Q) -> Q:
        return self.set_parser_type("dismax")

    def use_extended_dismax(self: Q) -> Q:
        return self.set_parser_type("edismax")

    def set_request_handler(self: Q, handler_name: str) -> Q:
        return self._push("qt", handler_name)

    def set_query(
        self: Q,
        query: Union[str, Mapping[str, Any]],
        complex_phrase: bool = False,
    ) -> Q:
        """
        Set the main query.

        Args:
            query: Query string, or a mapping of field to value that is
                joined with AND
            complex_phrase: Prefix the query for the complex phrase parser

        Returns:
            This builder
        """
        text = query if isinstance(query, str) else _conjunction(query)
        prefix = COMPLEX_PHRASE_PREFIX if complex_phrase else ""
        return self._push("q", prefix + text)

    def set_query_operator(self: Q, operator: str) -> Q:
        """Set the default operator between terms ("AND" or "OR")."""
        return self._push("q.op", operator)

    def set_default_field(self: Q, field_name: str) -> Q:
        return self._push("df", field_name)

    # ------------------------------------------------------------------
    # Paging and sorting
    # ------------------------------------------------------------------

    def set_offset(self: Q, offset: int) -> Q:
        """Zero-based index of the first document to return."""
        return self._push("start", offset)

    def set_limit(self: Q, limit: int) -> Q:
        """
        Maximum number of documents to return.

        Zero is valid and returns only aggregate results (facets).
        """
        return self._push("rows", limit)

    def set_cursor(self: Q, cursor: str = "*") -> Q:
        """Enable cursor paging; pass the previous ``nextCursorMark``."""
        return self._push("cursorMark", cursor)

    def set_sort(self: Q, fields: Mapping[str, str]) -> Q:
        """
        Sort by one or more fields, in the order given.

        Args:
            fields: Mapping of field name to "asc" or "desc"
        """
        sort = ",".join(f"{field} {direction}" for field, direction in fields.items())
        return self._push("sort", sort)

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def add_match_filter(
        self: Q,
        field: str,
        value: Any,
        complex_phrase: bool = False,
    ) -> Q:
        """
        Add a ``field:value`` filter clause.

        Several values are OR-joined inside the clause; an empty list
        adds nothing. Dates are converted to ISO strings; text is not
        escaped (use ``escape_lucene_chars`` for literal user input).

        Args:
            field: Field to filter on
            value: Single value or list of values
            complex_phrase: Prefix the clause for the complex phrase parser
        """
        values = [format_value(convert_dates_to_iso(v)) for v in to_list(value)]
        if not values:
            return self
        value_string = f"({' OR '.join(values)})" if len(values) > 1 else values[0]
        prefix = COMPLEX_PHRASE_PREFIX if complex_phrase else ""
        return self._push("fq", f"{prefix}{field}:{value_string}")

    def add_filters(self: Q, filters: Union[FilterSpec, Iterable[FilterSpec]]) -> Q:
        """
        Add one or more filter clauses.

        A filter is either a mapping with ``field``, ``value`` and an
        optional ``complex_phrase`` flag, or a ``(field, value)`` /
        ``(field, value, complex_phrase)`` tuple. Each filter becomes its
        own clause, so they combine with AND.
        """
        if isinstance(filters, Mapping) or (
            isinstance(filters, tuple) and filters and isinstance(filters[0], str)
        ):
            filters = [filters]

        for spec in filters:
            if isinstance(spec, Mapping):
                self.add_match_filter(
                    spec["field"],
                    spec["value"],
                    complex_phrase=spec.get("complex_phrase", False),
                )
            else:
                self.add_match_filter(*spec)
        return self

    def add_range_filter(
        self: Q,
        ranges: Union[Mapping[str, Any], Iterable[Mapping[str, Any]]],
    ) -> Q:
        """
        Add a range filter clause.

        Args:
            ranges: A mapping with ``field`` and optional ``start``/``end``,
                or a list of them (AND-joined in one clause). A missing
                bound becomes ``*``.
        """
        normalized = convert_dates_to_iso(
            [ranges] if isinstance(ranges, Mapping) else list(ranges)
        )
        clauses = []
        for spec in normalized:
            start = spec.get("start")
            end = spec.get("end")
            clauses.append(
                f"{spec['field']}:[{'*' if start is None else format_value(start)} TO "
                f"{'*' if end is None else format_value(end)}]"
            )
        return self._push("fq", " AND ".join(clauses))

    def add_join_filter(
        self: Q,
        from_field: str,
        to_field: str,
        from_index: str,
        query: Optional[str] = None,
        field: Optional[str] = None,
        value: Any = None,
    ) -> Q:
        """
        Add a cross-core join filter.

        Args:
            from_field: Join field in the source core
            to_field: Join field in this core
            from_index: Source core or collection
            query: Sub-query to run on the source core
            field: Field for a ``field:value`` sub-query (when no query)
            value: Value for a ``field:value`` sub-query
        """
        sub_query = query if query is not None else f"{field}:{format_value(value)}"
        join = (
            f"{{!join fromIndex={from_index} from={from_field} to={to_field} "
            f"v='{sub_query}'}}"
        )
        return self._push("fq", join)

    # ------------------------------------------------------------------
    # Response shaping
    # ------------------------------------------------------------------

    def set_response_fields(self: Q, fields: Union[str, List[str]]) -> Q:
        return self._push("fl", join_values(fields))

    def set_timeout(self: Q, milliseconds: int) -> Q:
        """Limit search time on the server (``timeAllowed``)."""
        return self._push("timeAllowed", milliseconds)

    def enable_debug(self: Q) -> Q:
        return self._push("debugQuery", True)

    def group_by(self: Q, field_name: str) -> Q:
        return self.set_grouping(field=field_name)

    def set_grouping(
        self: Q,
        on: bool = True,
        field: Optional[Union[str, List[str]]] = None,
        query: Optional[Union[str, List[str]]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        sort: Optional[str] = None,
        format: Optional[str] = None,
        main: Optional[bool] = None,
        ngroups: Optional[bool] = None,
        truncate: Optional[bool] = None,
        cache: Optional[int] = None,
    ) -> Q:
        """
        Configure result grouping (field collapsing).

        Args:
            on: Enable grouping
            field: Field(s) to group by, one ``group.field`` each
            query: Query/queries to group by, one ``group.query`` each
            limit: Documents per group
            offset: Offset inside each group
            sort: Sort inside each group
            format: "grouped" or "simple"
            main: Return the simple format as the main result
            ngroups: Include the number of groups
            truncate: Compute facets on the most relevant document per group
            cache: Cache size as a percentage (``group.cache.percent``)
        """
        self._push("group", on)
        for name in to_list(field) if field is not None else []:
            self._push("group.field", name)
        for group_query in to_list(query) if query is not None else []:
            self._push("group.query", group_query)
        self._push_optional("group.limit", limit)
        self._push_optional("group.offset", offset)
        self._push_optional("group.sort", sort)
        self._push_optional("group.format", format)
        self._push_optional("group.main", main)
        self._push_optional("group.ngroups", ngroups)
        self._push_optional("group.truncate", truncate)
        self._push_optional("group.cache.percent", cache)
        return self

    def set_more_like_this(
        self: Q,
        fl: Union[str, List[str]],
        on: bool = True,
        count: Optional[int] = None,
        mintf: Optional[int] = None,
        mindf: Optional[int] = None,
        minwl: Optional[int] = None,
        maxwl: Optional[int] = None,
        maxqt: Optional[int] = None,
        maxntp: Optional[int] = None,
        boost: Optional[bool] = None,
        qf: Optional[Union[str, Mapping[str, Any]]] = None,
    ) -> Q:
        """
        Configure the MoreLikeThis component.

        Args:
            fl: Field(s) used for similarity
            on: Enable MoreLikeThis
            count: Similar documents per result
            mintf: Minimum term frequency
            mindf: Minimum document frequency
            minwl: Minimum word length
            maxwl: Maximum word length
            maxqt: Maximum query terms
            maxntp: Maximum tokens to parse per field
            boost: Boost terms by relevance
            qf: Query fields with boosts, string or {field: boost}
        """
        self._push("mlt", on)
        self._push("mlt.fl", join_values(fl))
        self._push_optional("mlt.count", count)
        self._push_optional("mlt.mintf", mintf)
        self._push_optional("mlt.mindf", mindf)
        self._push_optional("mlt.minwl", minwl)
        self._push_optional("mlt.maxwl", maxwl)
        self._push_optional("mlt.maxqt", maxqt)
        self._push_optional("mlt.maxntp", maxntp)
        self._push_optional("mlt.boost", boost)
        if qf is not None:
            self._push("mlt.qf", _boosts(qf))
        return self

    def set_highlighting(
        self: Q,
        on: bool = True,
        q: Optional[Union[str, Mapping[str, Any]]] = None,
        qparser: Optional[str] = None,
        fl: Optional[Union[str, List[str]]] = None,
        snippets: Optional[int] = None,
        fragsize: Optional[int] = None,
        merge_contiguous: Optional[bool] = None,
        require_field_match: Optional[bool] = None,
        max_analyzed_chars: Optional[int] = None,
        max_multi_valued_to_examine: Optional[int] = None,
        max_multi_valued_to_match: Optional[int] = None,
        alternate_field: Optional[str] = None,
        max_alternate_field_length: Optional[int] = None,
        formatter: Optional[str] = None,
        simple_pre: Optional[str] = None,
        simple_post: Optional[str] = None,
        fragmenter: Optional[str] = None,
        highlight_multi_term: Optional[bool] = None,
        use_phrase_highlighter: Optional[bool] = None,
        regex_slop: Optional[float] = None,
        regex_pattern: Optional[str] = None,
        regex_max_analyzed_chars: Optional[int] = None,
        preserve_multi: Optional[bool] = None,
        payloads: Optional[bool] = None,
    ) -> Q:
        """
        Configure highlighting.

        Only the options given are sent. When highlighting is on, the
        simple formatter markers default to ``<em>`` and ``</em>``.
        """
        self._push("hl", on)
        if q is not None:
            self._push("hl.q", q if isinstance(q, str) else _conjunction(q))
        self._push_optional("hl.qparser", qparser)
        if fl is not None:
            self._push("hl.fl", join_values(fl))
        self._push_optional("hl.snippets", snippets)
        self._push_optional("hl.fragsize", fragsize)
        self._push_optional("hl.mergeContiguous", merge_contiguous)
        self._push_optional("hl.requireFieldMatch", require_field_match)
        self._push_optional("hl.maxAnalyzedChars", max_analyzed_chars)
        self._push_optional("hl.maxMultiValuedToExamine", max_multi_valued_to_examine)
        self._push_optional("hl.maxMultiValuedToMatch", max_multi_valued_to_match)
        self._push_optional("hl.alternateField", alternate_field)
        self._push_optional("hl.maxAlternateFieldLength", max_alternate_field_length)
        self._push_optional("hl.formatter", formatter)
        if on:
            self._push("hl.simple.pre", "<em>" if simple_pre is None else simple_pre)
            self._push("hl.simple.post", "</em>" if simple_post is None else simple_post)
        else:
            self._push_optional("hl.simple.pre", simple_pre)
            self._push_optional("hl.simple.post", simple_post)
        self._push_optional("hl.fragmenter", fragmenter)
        self._push_optional("hl.highlightMultiTerm", highlight_multi_term)
        self._push_optional("hl.usePhraseHighlighter", use_phrase_highlighter)
        self._push_optional("hl.regex.slop", regex_slop)
        self._push_optional("hl.regex.pattern", regex_pattern)
        self._push_optional("hl.regex.maxAnalyzedChars", regex_max_analyzed_chars)
        self._push_optional("hl.preserveMulti", preserve_multi)
        self._push_optional("hl.payloads", payloads)
        return self

    def set_terms(
        self: Q,
        fl: str,
        on: bool = True,
        lower: Optional[str] = None,
        lower_incl: Optional[bool] = None,
        mincount: Optional[int] = None,
        maxcount: Optional[int] = None,
        prefix: Optional[str] = None,
        regex: Optional[str] = None,
        regex_flag: Optional[str] = None,
        limit: Optional[int] = None,
        upper: Optional[str] = None,
        upper_incl: Optional[bool] = None,
        raw: Optional[bool] = None,
        sort: Optional[str] = None,
    ) -> Q:
        """Configure the Terms component (use with the ``terms`` handler)."""
        self._push("terms", on)
        self._push("terms.fl", fl)
        self._push_optional("terms.lower", lower)
        self._push_optional("terms.lower.incl", lower_incl)
        self._push_optional("terms.mincount", mincount)
        self._push_optional("terms.maxcount", maxcount)
        self._push_optional("terms.prefix", prefix)
        self._push_optional("terms.regex", regex)
        self._push_optional("terms.regex.flag", regex_flag)
        self._push_optional("terms.limit", limit)
        self._push_optional("terms.upper", upper)
        self._push_optional("terms.upper.incl", upper_incl)
        self._push_optional("terms.raw", raw)
        self._push_optional("terms.sort", sort)
        return self

    # ------------------------------------------------------------------
    # DisMax / eDisMax tuning
    # ------------------------------------------------------------------

    def set_query_fields(self: Q, fields: Union[str, Mapping[str, Any]]) -> Q:
        """Set boosted query fields (``qf``), e.g. {"title": 2, "body": 1}."""
        return self._push("qf", _boosts(fields))

    def set_phrase_fields(self: Q, fields: Union[str, Mapping[str, Any]]) -> Q:
        return self._push("pf", _boosts(fields))

    def set_minimum_match(self: Q, minimum_match: Union[str, int]) -> Q:
        return self._push("mm", minimum_match)

    def set_phrase_slop(self: Q, slop: int) -> Q:
        return self._push("ps", slop)

    def set_query_slop(self: Q, slop: int) -> Q:
        return self._push("qs", slop)

    def set_tiebreaker(self: Q, tiebreaker: float) -> Q:
        return self._push("tie", tiebreaker)

    def set_boost_query(self: Q, boost_query: Union[str, Mapping[str, Any]]) -> Q:
        """Add a boost query (``bq``), e.g. {"category:books": 2}."""
        return self._push("bq", _boosts(boost_query))

    def set_boost_functions(self: Q, functions: str) -> Q:
        return self._push("bf", functions)

    def set_boost(self: Q, boost: str) -> Q:
        return self._push("boost", boost)


class Query(BaseQuery):
    """
    Search request serialized as flat form-encoded parameters.

    Example:
        query = Query().set_query("name:Megumin").set_limit(5)
        query.to_string()  # "q=name%3AMegumin&rows=5"
    """

    def set_facets(
        self,
        on: bool = True,
        query: Optional[str] = None,
        field: Optional[Union[str, List[str]]] = None,
        prefix: Optional[str] = None,
        sort: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        mincount: Optional[int] = None,
        missing: Optional[bool] = None,
        method: Optional[str] = None,
        pivot: Optional[Union[str, List[str]]] = None,
        pivot_mincount: Optional[int] = None,
    ) -> "Query":
        """
        Configure classic ``facet.*`` parameters.

        For nested aggregations use set_json_facets (or JsonQuery).

        Args:
            on: Enable faceting
            query: Facet query
            field: Field(s) to facet on, one ``facet.field`` each
            prefix: Term prefix
            sort: "count" or "index"
            limit: Buckets per field
            offset: Bucket offset
            mincount: Minimum bucket count
            missing: Count documents without a value
            method: Faceting method
            pivot: Pivot spec(s), e.g. "cat,author"
            pivot_mincount: Minimum count for pivot buckets
        """
        self._push("facet", on)
        self._push_optional("facet.query", query)
        for name in to_list(field) if field is not None else []:
            self._push("facet.field", name)
        self._push_optional("facet.prefix", prefix)
        self._push_optional("facet.sort", sort)
        self._push_optional("facet.limit", limit)
        self._push_optional("facet.offset", offset)
        self._push_optional("facet.mincount", mincount)
        self._push_optional("facet.missing", missing)
        self._push_optional("facet.method", method)
        for spec in to_list(pivot) if pivot is not None else []:
            self._push("facet.pivot", spec)
        self._push_optional("facet.pivot.mincount", pivot_mincount)
        return self

    def set_json_facets(self, facets: FacetTree) -> "Query":
        """Send a JSON Facet API tree as the ``json.facet`` parameter."""
        body = json.dumps(serialize_facets(facets), separators=(",", ":"))
        return self._push("json.facet", body)

    def to_string(self) -> str:
        """
        Build the query string.

        Returns:
            ``&``-joined, form-encoded ``name=value`` fragments
        """
        fragments = []
        if not self._has_query():
            fragments.append(f"q={quote_plus(MATCH_ALL)}")

        for name, value in self._params:
            if name is None:
                fragments.append(value)
            else:
                fragments.append(f"{quote_plus(name)}={encode(value)}")
        return "&".join(fragments)

    def __str__(self) -> str:
        return self.to_string()


class JsonQuery(BaseQuery):
    """
    Search request serialized as a JSON Request API body.

    First-class settings map to top-level keys (``query``, ``filter``,
    ``offset``, ``limit``, ``sort``, ``fields``, ``facet``); everything
    else goes to the ``params`` bag.

    Example:
        body = (
            JsonQuery()
            .add_filters(("age", 17))
            .set_facets({"jobs": terms_facet("occupation", limit=10)})
            .set_limit(0)
            .to_dict()
        )
    """

    _TOP_LEVEL = {
        "start": "offset",
        "rows": "limit",
        "sort": "sort",
        "fl": "fields",
    }

    def __init__(self):
        super().__init__()
        self._facets: Dict[str, Any] = {}

    def set_facets(self, facets: FacetTree) -> "JsonQuery":
        """
        Set the JSON facet tree.

        Later calls merge into the tree by facet name.
        """
        self._facets.update(facets)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """
        Build the request body.

        Returns:
            JSON-serializable dict; ``params`` is omitted when empty
        """
        body: Dict[str, Any] = {"query": MATCH_ALL}
        filters: List[Any] = []
        params: Dict[str, Any] = {}

        def add_param(name: str, value: Any) -> None:
            if name in params:
                current = params[name]
                params[name] = (current if isinstance(current, list) else [current]) + [value]
            else:
                params[name] = value

        for name, value in self._params:
            if name is None:
                for raw_name, raw_value in parse_qsl(value, keep_blank_values=True):
                    if raw_name == "q":
                        body["query"] = raw_value
                    else:
                        add_param(raw_name, raw_value)
            elif name == "q":
                body["query"] = value
            elif name == "fq":
                filters.append(value)
            elif name in self._TOP_LEVEL:
                body[self._TOP_LEVEL[name]] = value
            else:
                add_param(name, convert_dates_to_iso(value))

        if filters:
            body["filter"] = filters
        if self._facets:
            body["facet"] = serialize_facets(self._facets)
        if params:
            body["params"] = params
        return body

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def __str__(self) -> str:
        return self.to_json()
