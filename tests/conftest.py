"""Shared fixtures: a client wired to an in-memory transport, and a stub Solr HTTP server."""

from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from types import SimpleNamespace
from typing import Any, List

import pytest

from solrclient import SolrClient, SolrClientConfig


class FakeTransport:
    """Records requests and replays queued (status, body) responses."""

    def __init__(self) -> None:
        self.requests: List[SimpleNamespace] = []
        self.responses: List[Any] = []
        self.closed = False

    def queue(self, body: Any = None, status: int = 200) -> None:
        self.responses.append((status, body))

    def perform_request(self, method, target, body=None, headers=None, request_timeout=None):
        self.requests.append(
            SimpleNamespace(
                method=method,
                target=target,
                body=body,
                headers=dict(headers or {}),
                request_timeout=request_timeout,
            )
        )
        if self.responses:
            item = self.responses.pop(0)
            if isinstance(item, Exception):
                raise item
            status, response_body = item
        else:
            status, response_body = 200, {"responseHeader": {"status": 0}}
        return SimpleNamespace(meta=SimpleNamespace(status=status), body=response_body)

    def close(self) -> None:
        self.closed = True

    @property
    def last(self) -> SimpleNamespace:
        return self.requests[-1]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> SolrClient:
    return SolrClient(SolrClientConfig(core="goddess"), transport=transport)


class _StubSolrHandler(BaseHTTPRequestHandler):
    """Replies with the server's queued (status, content type, body) responses."""

    def _reply(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        self.server.requests.append(
            SimpleNamespace(
                method=self.command,
                path=self.path,
                content_type=self.headers.get("Content-Type"),
                body=self.rfile.read(length) if length else b"",
            )
        )
        if self.server.responses:
            status, content_type, payload = self.server.responses.pop(0)
        else:
            status, content_type, payload = 200, "application/json", b'{"responseHeader":{"status":0}}'

        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_GET = _reply
    do_POST = _reply

    def log_message(self, format: str, *args: Any) -> None:
        pass


class StubSolrServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _StubSolrHandler)
        self.requests: List[SimpleNamespace] = []
        self.responses: List[Any] = []

    @property
    def port(self) -> int:
        return self.server_address[1]

    def queue(self, body: Any, status: int = 200, content_type: str = "application/json") -> None:
        payload = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
        self.responses.append((status, content_type, payload))


@pytest.fixture
def solr_server():
    server = StubSolrServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
