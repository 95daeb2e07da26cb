"""Unit tests for SolrClient request dispatch, over an in-memory transport and a stub HTTP server."""

from __future__ import annotations

import json
import socket
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from elastic_transport import ConnectionError as TransportConnectionError

from solrclient import (
    Collection,
    SolrClient,
    SolrClientConfig,
    SolrConnectionError,
    SolrError,
    SolrHTTPError,
    SolrRequestError,
    create_client,
)
from solrclient.responses import SearchResponse


SEARCH_BODY = {
    "responseHeader": {"status": 0, "QTime": 1},
    "response": {"numFound": 2, "start": 0, "docs": [{"id": "megumin"}, {"id": "nao_tomori"}]},
    "facets": {"count": 2},
}


class TestPaths:
    def test_core_handler_path(self, client: SolrClient) -> None:
        assert client._handler_path("select") == "/solr/goddess/select"

    def test_collections_skip_core(self, client: SolrClient) -> None:
        assert client._handler_path("admin/collections") == "/solr/admin/collections"

    def test_empty_parts_dropped(self, transport) -> None:
        client = SolrClient(transport=transport, path="", core="")
        assert client._handler_path("select") == "/select"

    def test_slashes_normalized(self, transport) -> None:
        client = SolrClient(transport=transport, path="/search/", core="/goddess/")
        assert client._handler_path("update") == "/search/goddess/update"


class TestQueryDispatch:
    def test_get_by_default(self, client: SolrClient, transport) -> None:
        client.search_documents(client.create_query().set_query("name:Megumin"))
        request = transport.last
        assert request.method == "GET"
        assert request.target == "/solr/goddess/select?q=name%3AMegumin&wt=json"
        assert request.body is None
        assert "content-type" not in request.headers

    def test_post_when_url_too_long(self, transport) -> None:
        client = SolrClient(transport=transport, core="goddess", get_max_request_entity_size=50)
        client.search_documents(client.create_query().set_query("name:" + "x" * 100))
        request = transport.last
        assert request.method == "POST"
        assert request.target == "/solr/goddess/select"
        assert request.body.endswith("&wt=json")
        assert request.headers["content-type"].startswith("application/x-www-form-urlencoded")

    def test_get_when_url_fits(self, transport) -> None:
        client = SolrClient(transport=transport, core="goddess", get_max_request_entity_size=4096)
        client.search_documents(client.create_query())
        assert transport.last.method == "GET"

    def test_always_post(self, transport) -> None:
        client = SolrClient(transport=transport, core="goddess", get_max_request_entity_size=True)
        client.search_documents(client.create_query())
        assert transport.last.method == "POST"

    def test_json_query_posted_as_body(self, client: SolrClient, transport) -> None:
        client.search_documents(client.create_json_query().set_limit(0))
        request = transport.last
        assert request.method == "POST"
        assert request.target == "/solr/goddess/select?wt=json"
        assert request.body == {"query": "*:*", "limit": 0}
        assert request.headers["content-type"] == "application/json"

    def test_mapping_query(self, client: SolrClient, transport) -> None:
        client.search_documents({"q": "*:*", "fq": ["a:1", "b:2"]})
        assert transport.last.target == "/solr/goddess/select?q=%2A%3A%2A&fq=a%3A1&fq=b%3A2&wt=json"

    def test_raw_string_query(self, client: SolrClient, transport) -> None:
        client.search_all_documents()
        assert transport.last.target == "/solr/goddess/select?q=*:*&wt=json"

    def test_search_response_decoded(self, client: SolrClient, transport) -> None:
        transport.queue(SEARCH_BODY)
        response = client.search_documents(client.create_query())
        assert isinstance(response, SearchResponse)
        assert response.num_found == 2
        assert [d["id"] for d in response.docs] == ["megumin", "nao_tomori"]
        assert response.facets == {"count": 2}
        assert response["responseHeader"]["QTime"] == 1

    def test_spell_and_terms_handlers(self, client: SolrClient, transport) -> None:
        client.spell_check("q=megumn")
        assert transport.last.target.startswith("/solr/goddess/spell?")
        client.search_terms(client.create_query().set_terms("name"))
        assert transport.last.target.startswith("/solr/goddess/terms?")

    def test_ping(self, client: SolrClient, transport) -> None:
        transport.queue({"status": "OK"})
        assert client.ping_server() == {"status": "OK"}
        assert transport.last.target == "/solr/goddess/admin/ping?wt=json"

    def test_manage_collection(self, client: SolrClient, transport) -> None:
        client.manage_collection(Collection().create(name="coll1", num_shards=2))
        assert transport.last.target == "/solr/admin/collections?action=CREATE&name=coll1&numShards=2&wt=json"

    def test_request_timeout_passed(self, client: SolrClient, transport) -> None:
        client.ping_server()
        assert transport.last.request_timeout == 10.0


class TestDocuments:
    def test_add_single_document_sent_as_list(self, client: SolrClient, transport) -> None:
        client.add_documents(
            {"id": "megumin", "born": datetime(2000, 12, 4, tzinfo=timezone.utc)},
            {"commit": True},
        )
        request = transport.last
        assert request.method == "POST"
        assert request.target == "/solr/goddess/update?commit=true&wt=json"
        assert request.body == [{"id": "megumin", "born": "2000-12-04T00:00:00.000Z"}]
        assert request.headers["content-type"] == "application/json"

    def test_atomic_update_is_alias(self) -> None:
        assert SolrClient.atomic_update_documents is SolrClient.add_documents

    def test_get_documents_by_id(self, client: SolrClient, transport) -> None:
        transport.queue({"response": {"numFound": 1, "start": 0, "docs": [{"id": "a"}]}})
        response = client.get_documents_by_id(["a", "b c"])
        assert transport.last.target == "/solr/goddess/get?ids=a%2Cb+c&wt=json"
        assert response.docs == [{"id": "a"}]

    def test_get_documents_by_id_with_query(self, client: SolrClient, transport) -> None:
        client.get_documents_by_id("a", client.create_query().set_response_fields("id"))
        assert transport.last.target.endswith("&fl=id&ids=a&wt=json")

    def test_delete_by_id(self, client: SolrClient, transport) -> None:
        client.delete_by_id("megumin")
        assert transport.last.body == {"delete": {"id": "megumin"}}
        assert transport.last.target == "/solr/goddess/update?wt=json"

    def test_delete_by_field_escapes_value(self, client: SolrClient, transport) -> None:
        client.delete_by_field("name", "Konami: Kirie")
        assert transport.last.body == {"delete": {"query": r"name:Konami\: Kirie"}}

    def test_delete_by_range(self, client: SolrClient, transport) -> None:
        client.delete_by_range("born", datetime(2000, 1, 1), datetime(2001, 1, 1))
        assert transport.last.body == {
            "delete": {"query": "born:[2000-01-01T00:00:00.000Z TO 2001-01-01T00:00:00.000Z]"}
        }

    def test_delete_all(self, client: SolrClient, transport) -> None:
        client.delete_all_documents({"commit": True})
        assert transport.last.body == {"delete": {"query": "*:*"}}
        assert "commit=true" in transport.last.target

    def test_commit_and_maintenance_commands(self, client: SolrClient, transport) -> None:
        client.commit({"waitSearcher": False})
        assert transport.last.body == {"commit": {"waitSearcher": False}}
        client.optimize_index({"maxSegments": 1})
        assert transport.last.body == {"optimize": {"maxSegments": 1}}
        client.rollback_changes()
        assert transport.last.body == {"rollback": {}}
        client.soft_commit()
        assert "softCommit=true" in transport.last.target
        client.prepare_commit()
        assert "prepareCommit=true" in transport.last.target

    def test_remote_url_resource(self, client: SolrClient, transport) -> None:
        client.add_remote_resource("http://example.com/goddess.csv", format="csv")
        target = transport.last.target
        assert target.startswith("/solr/goddess/update/csv?")
        assert "stream.url=http%3A%2F%2Fexample.com%2Fgoddess.csv" in target
        assert "commit=false" in target

    def test_remote_file_resource(self, client: SolrClient, transport) -> None:
        client.add_remote_resource("/data/goddess.xml")
        target = transport.last.target
        assert target.startswith("/solr/goddess/update?")
        assert "stream.file=%2Fdata%2Fgoddess.xml" in target

    def test_create_schema_field(self, client: SolrClient, transport) -> None:
        client.create_schema_field("nickname", "string")
        request = transport.last
        assert request.target == "/solr/goddess/schema"
        assert request.body["add-field"]["name"] == "nickname"

    def test_create_schema_field_failure_returns_empty(self, client: SolrClient, transport) -> None:
        transport.queue({"error": {"code": 400, "msg": "field already exists"}}, status=400)
        assert client.create_schema_field("nickname", "string") == {}


class TestErrors:
    def test_structured_error(self, client: SolrClient, transport) -> None:
        transport.queue(
            {"error": {"code": 400, "msg": "undefined field foo", "metadata": ["error-class", "x"]}},
            status=400,
        )
        with pytest.raises(SolrError) as exc_info:
            client.search_documents("q=foo:1")
        err = exc_info.value
        assert err.http_status == 400
        assert err.code == 400
        assert err.message == "undefined field foo"
        assert err.metadata == ["error-class", "x"]
        assert isinstance(err, SolrRequestError)

    def test_unstructured_error(self, client: SolrClient, transport) -> None:
        transport.queue("<html>Not Found</html>", status=404)
        with pytest.raises(SolrHTTPError) as exc_info:
            client.ping_server()
        assert exc_info.value.code == 404
        assert exc_info.value.message == "<html>Not Found</html>"

    def test_empty_error_body(self, client: SolrClient, transport) -> None:
        transport.queue(None, status=503)
        with pytest.raises(SolrHTTPError) as exc_info:
            client.ping_server()
        assert exc_info.value.message == "HTTP error 503"

    def test_transport_failure(self, client: SolrClient, transport) -> None:
        transport.responses.append(TransportConnectionError("connection refused"))
        with pytest.raises(SolrConnectionError):
            client.ping_server()


class TestAuthAndLifecycle:
    def test_basic_auth_header(self, client: SolrClient, transport) -> None:
        client.set_basic_auth("kazuma", "explosion")
        client.ping_server()
        assert transport.last.headers["authorization"] == "Basic a2F6dW1hOmV4cGxvc2lvbg=="

    def test_clear_auth(self, client: SolrClient, transport) -> None:
        client.set_basic_auth("kazuma", "explosion").clear_auth()
        client.ping_server()
        assert "authorization" not in transport.last.headers

    def test_extra_headers(self, transport) -> None:
        client = SolrClient(SolrClientConfig(headers={"x-request-id": "1"}), transport=transport)
        client.ping_server()
        assert transport.last.headers["x-request-id"] == "1"

    def test_context_manager_closes_transport(self, transport) -> None:
        with SolrClient(transport=transport) as client:
            client.ping_server()
        assert transport.closed

    def test_escaper_bound(self, client: SolrClient) -> None:
        assert client.escape_special_characters("a:b") == r"a\:b"

    def test_create_client_overrides(self, transport) -> None:
        client = create_client(SolrClientConfig(host="solr1"), transport=transport, core="goddess")
        assert client.config.host == "solr1"
        assert client.config.core == "goddess"

    def test_factories_return_fresh_builders(self, client: SolrClient) -> None:
        assert client.create_query() is not client.create_query()
        assert json.loads(str(client.create_json_query())) == {"query": "*:*"}
        assert str(client.create_collection().list_collections()) == "action=LIST"


class TestHttpTransport:
    @pytest.fixture
    def http_client(self, solr_server):
        client = SolrClient(host="127.0.0.1", port=solr_server.port, core="goddess")
        yield client
        client.close()

    def test_json_search(self, http_client: SolrClient, solr_server) -> None:
        solr_server.queue(SEARCH_BODY)
        response = http_client.search_documents(http_client.create_query().set_query("name:Megumin"))

        assert response.num_found == 2
        assert response.docs[0]["id"] == "megumin"
        request = solr_server.requests[-1]
        assert request.method == "GET"
        assert request.path.startswith("/solr/goddess/select?q=name%3AMegumin")
        assert request.path.endswith("wt=json")

    def test_text_plain_json_search(self, http_client: SolrClient, solr_server) -> None:
        solr_server.queue(SEARCH_BODY, content_type="text/plain; charset=utf-8")
        response = http_client.search_documents("q=*:*")

        assert isinstance(response, SearchResponse)
        assert [doc["id"] for doc in response.docs] == ["megumin", "nao_tomori"]

    def test_text_plain_structured_error(self, http_client: SolrClient, solr_server) -> None:
        solr_server.queue(
            {"error": {"code": 400, "msg": "undefined field nope"}},
            status=400,
            content_type="text/plain; charset=utf-8",
        )
        with pytest.raises(SolrError) as exc_info:
            http_client.search_documents("q=nope:1")

        assert exc_info.value.http_status == 400
        assert exc_info.value.code == 400
        assert exc_info.value.message == "undefined field nope"

    def test_unknown_content_type_error(self, http_client: SolrClient, solr_server) -> None:
        solr_server.queue(b"<response><str>boom</str></response>", status=500, content_type="application/xml")
        with pytest.raises(SolrHTTPError) as exc_info:
            http_client.ping_server()

        assert exc_info.value.http_status == 500
        assert "boom" in exc_info.value.message

    def test_html_error_page(self, http_client: SolrClient, solr_server) -> None:
        solr_server.queue(b"<html>Bad Gateway</html>", status=500, content_type="text/html")
        with pytest.raises(SolrHTTPError) as exc_info:
            http_client.ping_server()

        assert exc_info.value.http_status == 500

    def test_form_post_for_long_queries(self, solr_server) -> None:
        solr_server.queue(SEARCH_BODY)
        with SolrClient(
            host="127.0.0.1", port=solr_server.port, core="goddess", get_max_request_entity_size=10
        ) as client:
            response = client.search_documents(client.create_query().set_query("name:Megumin"))

        assert response.num_found == 2
        request = solr_server.requests[-1]
        assert request.method == "POST"
        assert request.path == "/solr/goddess/select"
        assert request.content_type.startswith("application/x-www-form-urlencoded")
        assert request.body.startswith(b"q=name%3AMegumin")
        assert request.body.endswith(b"wt=json")

    def test_add_documents_sends_json(self, http_client: SolrClient, solr_server) -> None:
        http_client.add_documents({"id": "megumin", "rate": 9}, {"commit": True})

        request = solr_server.requests[-1]
        assert request.method == "POST"
        assert request.path == "/solr/goddess/update?commit=true&wt=json"
        assert request.content_type.startswith("application/json")
        assert json.loads(request.body) == [{"id": "megumin", "rate": 9}]

    def test_bigint_over_text_plain(self, solr_server) -> None:
        solr_server.queue(
            b'{"response":{"numFound":1,"start":0,"docs":[{"id":"1","rate":0.1}]}}',
            content_type="text/plain",
        )
        with SolrClient(host="127.0.0.1", port=solr_server.port, core="goddess", bigint=True) as client:
            response = client.search_documents("q=*:*")

        assert response.docs[0]["rate"] == Decimal("0.1")

    def test_connection_refused(self) -> None:
        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        with SolrClient(host="127.0.0.1", port=port, core="goddess") as client:
            with pytest.raises(SolrConnectionError):
                client.ping_server()
