"""
solrclient Serializers — Wire Codecs for the HTTP Transport
===========================================================

Serializers plugged into ``elastic_transport.Transport``, keyed by
mimetype:

    application/json                     → SolrJsonSerializer
    application/x-www-form-urlencoded    → FormSerializer
    text/*, application/*                → LenientSerializer (JSON if it parses, else text)

With ``bigint=True`` the JSON codec decodes floats as ``Decimal`` so no
precision is lost on the way in (Python ints are already arbitrary
precision). ``Decimal`` values are always encoded losslessly: integral
ones as JSON numbers, the rest as strings, which Solr parses for
numeric fields.
"""

import json
from datetime import date
from decimal import Decimal
from typing import Any, Dict

from elastic_transport import SerializationError, Serializer

from .utils import format_date_to_iso


class _SolrJSONEncoder(json.JSONEncoder):
    def default(self, o: Any) -> Any:
        if isinstance(o, date):
            return format_date_to_iso(o)
        if isinstance(o, Decimal):
            return int(o) if o.is_finite() and o == o.to_integral_value() else str(o)
        if isinstance(o, (set, frozenset)):
            return list(o)
        return super().default(o)


class SolrJsonSerializer(Serializer):
    """JSON codec, optionally precision-preserving."""

    mimetype = "application/json"

    def __init__(self, bigint: bool = False):
        self.bigint = bigint

    def loads(self, data: bytes) -> Any:
        if not data:
            return None
        try:
            if self.bigint:
                return json.loads(data, parse_float=Decimal)
            return json.loads(data)
        except ValueError as e:
            raise SerializationError(
                f"Unable to deserialize as JSON: {data!r}", errors=(e,)
            )

    def dumps(self, data: Any) -> bytes:
        # Pre-encoded bodies are forwarded as-is
        if isinstance(data, str):
            return data.encode("utf-8", "surrogatepass")
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        try:
            return json.dumps(
                data, cls=_SolrJSONEncoder, separators=(",", ":"), ensure_ascii=False
            ).encode("utf-8", "surrogatepass")
        except (ValueError, TypeError) as e:
            raise SerializationError(
                f"Unable to serialize to JSON: {data!r} (type: {type(data).__name__})",
                errors=(e,),
            )


class LenientSerializer(SolrJsonSerializer):
    """
    Fallback codec for responses that are not labelled ``application/json``.

    Solr often serves JSON as ``text/plain``, and proxies answer errors
    with HTML or XML. Bodies are decoded as JSON when they parse, and
    returned as text otherwise.
    """

    mimetype = "text/*"

    def loads(self, data: bytes) -> Any:
        try:
            return super().loads(data)
        except SerializationError:
            return data.decode("utf-8", "replace")


class FormSerializer(Serializer):
    """Pass-through codec for pre-encoded form bodies."""

    mimetype = "application/x-www-form-urlencoded"

    def loads(self, data: bytes) -> Any:
        return data.decode("utf-8", "surrogatepass")

    def dumps(self, data: Any) -> bytes:
        if isinstance(data, str):
            return data.encode("utf-8")
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        raise SerializationError(
            f"Form bodies must be pre-encoded strings, got {type(data).__name__}"
        )


def build_serializers(bigint: bool = False) -> Dict[str, Serializer]:
    """Serializers to register on the transport for a given JSON mode."""
    lenient = LenientSerializer(bigint=bigint)
    return {
        SolrJsonSerializer.mimetype: SolrJsonSerializer(bigint=bigint),
        FormSerializer.mimetype: FormSerializer(),
        "text/*": lenient,
        "application/*": lenient,
    }
