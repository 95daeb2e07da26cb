"""
solrclient Core — Solr HTTP Client
==================================

SolrClient is the one place that talks to the network. It turns query
builders, admin builders, mappings or raw strings into HTTP requests
against Solr's request handlers and decodes the JSON responses.

Request handlers used:

    update              → add, delete, commit, optimize, rollback
    select              → search (flat or JSON Request API)
    get                 → Real-Time Get by id
    spell / terms       → spellcheck and Terms component
    admin/ping          → health check
    admin/collections   → Collections API (no core in the path)
    schema              → Schema API

Transport is ``elastic_transport.Transport`` with retries disabled:
failures surface immediately as SolrConnectionError or SolrRequestError.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from elastic_transport import NodeConfig, Transport, TransportError

from .builder import DocumentStream
from .collection import Collection
from .config import SolrClientConfig, basic_auth_header
from .exceptions import SolrClientError, SolrConnectionError, error_from_response
from .query import BaseQuery, JsonQuery, Query
from .responses import SearchResponse
from .serializer import build_serializers
from .utils import convert_dates_to_iso, encode, encode_params, escape_lucene_chars, format_value


logger = logging.getLogger(__name__)

QueryInput = Union[BaseQuery, Collection, Mapping[str, Any], str]

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"
ACCEPT = "application/json; charset=utf-8"


def create_client(config: Optional[SolrClientConfig] = None, **kwargs: Any) -> "SolrClient":
    """Create a SolrClient; keyword arguments override config fields."""
    return SolrClient(config, **kwargs)


class SolrClient:
    """
    Client for one Solr endpoint (a core, or a collection in SolrCloud).

    Example:
        client = SolrClient(core="goddess")
        client.add_documents({"id": "megumin", "name": "Megumin"}, {"commit": True})

        query = client.create_query().set_query("name:Megumin").set_limit(1)
        response = client.search_documents(query)
        response.docs[0]["name"]  # "Megumin"

    The client is safe to share between threads; the builders it creates
    are not.
    """

    HANDLERS = {
        "UPDATE": "update",
        "SELECT": "select",
        "COLLECTIONS": "admin/collections",
        "PING": "admin/ping",
        "GET": "get",
        "SPELL": "spell",
        "TERMS": "terms",
        "SCHEMA": "schema",
    }

    def __init__(
        self,
        config: Optional[SolrClientConfig] = None,
        transport: Optional[Any] = None,
        **overrides: Any
    ):
        """
        Open a client.

        Args:
            config: Connection settings (defaults to a local Solr)
            transport: Object with elastic_transport's ``perform_request``
                signature; built from the config when omitted
            **overrides: Config fields to override (host, port, core, ...)
        """
        self.config = (config or SolrClientConfig()).with_overrides(**overrides)
        self._transport = transport if transport is not None else self._build_transport()

        # Bound escaper, so callers holding a client need no extra import
        self.escape_special_characters = escape_lucene_chars

    def _build_transport(self) -> Transport:
        node_kwargs: Dict[str, Any] = {
            "request_timeout": self.config.request_timeout,
        }
        if self.config.secure:
            node_kwargs["verify_certs"] = self.config.verify_certs
            if self.config.ca_certs:
                node_kwargs["ca_certs"] = self.config.ca_certs

        node = NodeConfig(
            self.config.scheme,
            self.config.host,
            int(self.config.port),
            **node_kwargs
        )
        return Transport(
            [node],
            serializers=build_serializers(self.config.bigint),
            default_mimetype=JSON_CONTENT_TYPE,
            max_retries=0,
            meta_header=False,
        )

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _handler_path(self, handler: str) -> str:
        """Build ``<path>/<core>/<handler>``; collections requests skip the core."""
        if handler == self.HANDLERS["COLLECTIONS"]:
            parts = [self.config.path, handler]
        else:
            parts = [self.config.path, self.config.core, handler]
        path = "/".join(p.strip("/") for p in parts if p and p.strip("/"))
        return "/" + path

    def _execute_request(
        self,
        path: str,
        method: str,
        body: Any = None,
        content_type: Optional[str] = None,
    ) -> Any:
        """
        Send one request and decode the response.

        Args:
            path: Request target, including any query string
            method: "GET" or "POST"
            body: Request body (pre-encoded form string, JSON-able object, or bytes)
            content_type: Content type of the body

        Returns:
            Decoded response body

        Raises:
            SolrConnectionError: The request produced no HTTP response
            SolrError: Solr answered with a structured error
            SolrHTTPError: Non-2xx status without a structured error
        """
        headers = {"accept": ACCEPT}
        headers.update(self.config.headers)
        if self.config.authorization:
            headers["authorization"] = self.config.authorization
        if body is not None and method == "POST":
            headers["content-type"] = content_type or JSON_CONTENT_TYPE
        else:
            body = None

        try:
            response = self._transport.perform_request(
                method,
                path,
                body=body,
                headers=headers,
                request_timeout=self.config.request_timeout,
            )
        except TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise SolrConnectionError(f"{method} {path} failed: {e}") from e

        status = response.meta.status
        logger.debug("%s %s -> %s", method, path, status)

        if not 200 <= status < 300:
            error = error_from_response(status, response.body)
            logger.warning("%s %s -> %s: %s", method, path, status, error.message)
            raise error

        return response.body

    def _use_get(self, path: str, query_string: str) -> bool:
        limit = self.config.get_max_request_entity_size
        if limit is False:
            return True
        if limit is True:
            return False
        # Rough estimate of the request line plus headers
        url_length = len(path.encode("utf-8")) + len(query_string.encode("utf-8")) + 100
        return url_length <= limit

    def _execute_query(self, handler: str, query: QueryInput) -> Any:
        """Run a query-style request against a handler."""
        path = self._handler_path(handler)

        if isinstance(query, JsonQuery):
            return self._execute_request(
                f"{path}?wt=json", "POST", query.to_dict(), JSON_CONTENT_TYPE
            )

        if isinstance(query, (BaseQuery, Collection)):
            query_data = str(query)
        elif isinstance(query, Mapping):
            query_data = encode_params(query)
        else:
            query_data = query or ""

        query_string = f"{query_data}&wt=json" if query_data else "wt=json"

        if self._use_get(path, query_string):
            return self._execute_request(f"{path}?{query_string}", "GET")
        return self._execute_request(path, "POST", query_string, FORM_CONTENT_TYPE)

    def _update(self, data: Any, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """POST a JSON command or document list to the update handler."""
        query_string = encode_params({**(params or {}), "wt": "json"})
        path = f"{self._handler_path(self.HANDLERS['UPDATE'])}?{query_string}"
        return self._execute_request(path, "POST", data, JSON_CONTENT_TYPE)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def set_basic_auth(self, username: str, password: str) -> "SolrClient":
        """Send HTTP basic auth credentials with every request."""
        self.config.authorization = basic_auth_header(username, password)
        return self

    def clear_auth(self) -> "SolrClient":
        self.config.authorization = None
        return self

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def add_documents(
        self,
        documents: Union[Dict[str, Any], List[Dict[str, Any]]],
        params: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Add or replace one or more documents.

        Dates anywhere in the documents are sent as ISO strings. Atomic
        updates use the same call with modifier values, e.g.
        ``{"id": "1", "rate": {"inc": 1}}``.

        Args:
            documents: One document or a list of documents
            params: Update parameters, e.g. {"commit": True}

        Returns:
            Decoded update response
        """
        formatted = convert_dates_to_iso(documents)
        if not isinstance(formatted, list):
            formatted = [formatted]
        return self._update(formatted, params)

    atomic_update_documents = add_documents

    def get_documents_by_id(
        self,
        ids: Union[str, int, List[Union[str, int]]],
        query: Optional[QueryInput] = None,
    ) -> SearchResponse:
        """
        Fetch documents by id with Real-Time Get.

        Uncommitted documents are visible.

        Args:
            ids: One id or a list of ids
            query: Extra parameters (fl, fq, ...) as a builder, mapping or string

        Returns:
            Search response containing the found documents
        """
        id_list = ids if isinstance(ids, (list, tuple)) else [ids]
        ids_value = ",".join(format_value(i) for i in id_list)

        if query is None:
            final_query: QueryInput = {"ids": ids_value}
        elif isinstance(query, Mapping):
            final_query = {**query, "ids": ids_value}
        else:
            prefix = str(query)
            final_query = f"{prefix}&ids={encode(ids_value)}" if prefix else f"ids={encode(ids_value)}"

        return SearchResponse.from_dict(self._execute_query(self.HANDLERS["GET"], final_query))

    def add_remote_resource(
        self,
        path: str,
        format: str = "xml",
        content_type: str = "text/plain;charset=utf-8",
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Index a file or URL that Solr fetches itself (content streams).

        Args:
            path: Local path on the Solr host, or an http(s) URL
            format: "xml", "csv" or "json"
            content_type: Content type of the resource
            parameters: Extra update parameters (commit defaults to False)

        Returns:
            Decoded update response
        """
        params: Dict[str, Any] = dict(parameters or {})
        params.setdefault("commit", False)
        params["stream.contentType"] = content_type
        stream_key = "stream.url" if re.match(r"^https?://", path) else "stream.file"
        params[stream_key] = path

        handler = self.HANDLERS["UPDATE"]
        if format and format.lower() != "xml":
            handler = f"{handler}/{format.lower()}"

        return self._execute_query(handler, encode_params(params))

    def create_document_stream(
        self,
        options: Optional[Mapping[str, Any]] = None,
        batch_size: int = 1000,
    ) -> DocumentStream:
        """
        Open a stream that sends documents to the update handler in batches.

        Example:
            with client.create_document_stream({"commit": True}) as stream:
                for doc in docs:
                    stream.write(doc)
            stream.response  # last update response
        """
        return DocumentStream(self, options, batch_size=batch_size)

    def commit(self, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Commit pending changes (options such as waitSearcher go in the command)."""
        return self._update({"commit": dict(options or {})})

    def prepare_commit(self) -> Dict[str, Any]:
        return self._update({}, {"prepareCommit": True})

    def soft_commit(self) -> Dict[str, Any]:
        return self._update({}, {"softCommit": True})

    def delete_by_field(
        self,
        field: str,
        value: Any,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Delete documents whose field matches the value (escaped as a literal)."""
        literal = escape_lucene_chars(format_value(convert_dates_to_iso(value)))
        return self._update({"delete": {"query": f"{field}:{literal}"}}, options)

    def delete_by_range(
        self,
        field: str,
        start: Any,
        end: Any,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Delete documents with field values in ``[start TO end]``."""
        start_str = format_value(convert_dates_to_iso(start))
        end_str = format_value(convert_dates_to_iso(end))
        return self.delete_by_query(f"{field}:[{start_str} TO {end_str}]", options)

    def delete_by_id(
        self,
        id: Union[str, int],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        return self._update({"delete": {"id": id}}, options)

    def delete_by_query(
        self,
        query: str,
        options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        return self._update({"delete": {"query": query}}, options)

    def delete_all_documents(self, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Delete every document in the core. Use with caution!"""
        return self.delete_by_query("*:*", options)

    def optimize_index(self, options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Merge index segments (options such as maxSegments go in the command)."""
        return self._update({"optimize": dict(options or {})})

    def rollback_changes(self) -> Dict[str, Any]:
        """Discard uncommitted changes."""
        return self._update({"rollback": {}})

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_documents(self, query: QueryInput) -> SearchResponse:
        """
        Search the core.

        Args:
            query: Query or JsonQuery builder, a parameter mapping, or a
                pre-encoded query string

        Returns:
            Decoded search response
        """
        return SearchResponse.from_dict(self._execute_query(self.HANDLERS["SELECT"], query))

    def search_all_documents(self) -> SearchResponse:
        return self.search_documents("q=*:*")

    def spell_check(self, query: QueryInput) -> Dict[str, Any]:
        return self._execute_query(self.HANDLERS["SPELL"], query)

    def search_terms(self, query: QueryInput) -> Dict[str, Any]:
        """Query the Terms component (see Query.set_terms)."""
        return self._execute_query(self.HANDLERS["TERMS"], query)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def manage_collection(self, collection: Union[Collection, Mapping[str, Any], str]) -> Dict[str, Any]:
        """
        Run a Collections API command.

        Args:
            collection: Collection builder, parameter mapping, or query string

        Returns:
            Decoded admin response
        """
        return self._execute_query(self.HANDLERS["COLLECTIONS"], collection)

    def ping_server(self) -> Dict[str, Any]:
        """Ping the core; ``status`` is "OK" when healthy."""
        return self._execute_query(self.HANDLERS["PING"], "")

    def create_schema_field(self, field_name: str, field_type: str) -> Dict[str, Any]:
        """
        Add a stored, single-valued field through the Schema API.

        Failures are logged and an empty dict is returned, so this can be
        called when the field may already exist.
        """
        command = {
            "add-field": {
                "name": field_name,
                "type": field_type,
                "multiValued": False,
                "stored": True,
            }
        }
        try:
            return self._execute_request(
                self._handler_path(self.HANDLERS["SCHEMA"]), "POST", command, JSON_CONTENT_TYPE
            )
        except SolrClientError as e:
            logger.warning("Failed to create schema field %s: %s", field_name, e)
            return {}

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def create_query(self) -> Query:
        return Query()

    def create_json_query(self) -> JsonQuery:
        return JsonQuery()

    def create_collection(self) -> Collection:
        return Collection()

    def close(self):
        """Close the underlying HTTP connections."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
