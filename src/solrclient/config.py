"""
solrclient Config — Connection Settings
=======================================

Connection settings for SolrClient, with defaults matching a local
standalone Solr (``http://127.0.0.1:8983/solr``).

Settings can also come from the environment (or a ``.env`` file):

    SOLR_HOST, SOLR_PORT, SOLR_CORE, SOLR_PATH, SOLR_SECURE,
    SOLR_USERNAME, SOLR_PASSWORD, SOLR_TIMEOUT, SOLR_BIGINT
"""

import base64
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Union

from dotenv import find_dotenv, load_dotenv


_TRUE = {"1", "true", "yes", "on"}


def basic_auth_header(username: str, password: str) -> str:
    """Build an ``Authorization`` header value for HTTP basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


@dataclass
class SolrClientConfig:
    """
    Settings for one Solr endpoint.

    Attributes:
        host: Hostname or IP of the Solr server
        port: HTTP port
        core: Core or collection name; empty for core-less requests
        path: Base path of the Solr web app
        secure: Use HTTPS
        bigint: Decode JSON floats as Decimal to keep full precision
        get_max_request_entity_size: False to always GET queries, or the
            largest estimated URL size (bytes) sent with GET before
            switching to a form-encoded POST
        request_timeout: Per-request timeout in seconds
        verify_certs: Verify TLS certificates
        ca_certs: Path to a CA bundle
        authorization: ``Authorization`` header value sent with each request
        headers: Extra headers sent with each request
    """

    host: str = "127.0.0.1"
    port: int = 8983
    core: str = ""
    path: str = "/solr"
    secure: bool = False
    bigint: bool = False
    get_max_request_entity_size: Union[bool, int] = False
    request_timeout: Optional[float] = 10.0
    verify_certs: bool = True
    ca_certs: Optional[str] = None
    authorization: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def scheme(self) -> str:
        return "https" if self.secure else "http"

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    def with_overrides(self, **overrides: Any) -> "SolrClientConfig":
        """Copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        changes.setdefault("headers", self.headers)
        changes["headers"] = dict(changes["headers"])
        return replace(self, **changes)

    @classmethod
    def from_env(
        cls,
        dotenv: bool = True,
        env_file: Optional[str] = None,
        **overrides: Any
    ) -> "SolrClientConfig":
        """
        Load settings from ``SOLR_*`` environment variables.

        Args:
            dotenv: Load a ``.env`` file first (existing variables win)
            env_file: Path of the file to load (default: nearest ``.env``
                from the working directory up)
            **overrides: Explicit values that take precedence

        Returns:
            New config
        """
        if dotenv:
            load_dotenv(env_file or find_dotenv(usecwd=True))

        config = cls(
            host=os.getenv("SOLR_HOST", cls.host),
            port=int(os.getenv("SOLR_PORT", cls.port)),
            core=os.getenv("SOLR_CORE", cls.core),
            path=os.getenv("SOLR_PATH", cls.path),
            secure=os.getenv("SOLR_SECURE", "false").lower() in _TRUE,
            bigint=os.getenv("SOLR_BIGINT", "false").lower() in _TRUE,
        )

        timeout = os.getenv("SOLR_TIMEOUT")
        if timeout:
            config.request_timeout = float(timeout)

        username = os.getenv("SOLR_USERNAME")
        password = os.getenv("SOLR_PASSWORD")
        if username and password:
            config.authorization = basic_auth_header(username, password)

        return config.with_overrides(**overrides)
