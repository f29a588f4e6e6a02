"""HTTP-like event and response models for serverless-style handlers.

Events follow the shape API gateways and Netlify Functions deliver:
``httpMethod``, ``headers``, ``queryStringParameters``, ``body``,
``isBase64Encoded`` and ``requestContext``.
"""

import base64
import binascii
import json
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

UNKNOWN_CALLER = "unknown"
ALLOWED_REQUEST_HEADERS = "Content-Type, X-Function-Secret"


class HttpEvent(BaseModel):
    """An inbound request as delivered to a function handler."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    http_method: str = Field(default="GET", alias="httpMethod")
    path: str = Field(default="/")
    headers: dict[str, str] = Field(default_factory=dict)
    query_parameters: dict[str, str] = Field(
        default_factory=dict, alias="queryStringParameters"
    )
    body: str | None = Field(default=None)
    is_base64_encoded: bool = Field(default=False, alias="isBase64Encoded")
    request_context: dict[str, Any] = Field(
        default_factory=dict, alias="requestContext"
    )

    @field_validator("http_method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> str:
        """Upper-case the method; a missing method is treated as GET."""
        if not v:
            return "GET"
        return str(v).upper()

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> dict[str, str]:
        """Lower-case header names and stringify values."""
        if not isinstance(v, dict):
            return {}
        return {str(k).lower(): str(val) for k, val in v.items() if val is not None}

    @field_validator("path", mode="before")
    @classmethod
    def default_path(cls, v: Any) -> str:
        return "/" if v is None else str(v)

    @field_validator("query_parameters", mode="before")
    @classmethod
    def normalize_query(cls, v: Any) -> dict[str, str]:
        """Null becomes empty; scalar values such as ``5`` are stringified."""
        if not isinstance(v, dict):
            return {}
        return {str(k): str(val) for k, val in v.items() if val is not None}

    @field_validator("request_context", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> dict:
        """Gateways send null instead of an empty object."""
        return v if isinstance(v, dict) else {}

    @field_validator("body", mode="before")
    @classmethod
    def encode_body(cls, v: Any) -> str | None:
        """Re-encode bodies a local runtime passed as parsed JSON."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return str(v)

    @classmethod
    def from_raw(cls, raw_event: dict[str, Any] | None) -> "HttpEvent":
        """Build an event from the dict a function runtime passes in.

        Raises:
            ValidationError: If a field cannot be coerced, such as a
                non-boolean ``isBase64Encoded``.
        """
        return cls.model_validate(raw_event or {})

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    def query(self, name: str) -> str | None:
        value = self.query_parameters.get(name)
        return value if value else None

    def body_text(self) -> str | None:
        """Request body as text, decoding base64 bodies.

        A body flagged as base64 that fails to decode is returned
        unchanged, so it fails JSON parsing downstream.
        """
        if self.body is None or not self.is_base64_encoded:
            return self.body
        try:
            return base64.b64decode(self.body, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            logger.warning("Could not decode base64 request body")
            return self.body

    def json_body(self) -> dict[str, Any] | None:
        """Body decoded as a JSON object; {} when empty, None when invalid."""
        text = self.body_text()
        if text is None or not text.strip():
            return {}
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            return None
        return decoded if isinstance(decoded, dict) else None

    @property
    def source_ip(self) -> str | None:
        """Client address reported by the gateway itself, if any."""
        identity = self.request_context.get("identity")
        if isinstance(identity, dict) and identity.get("sourceIp"):
            return str(identity["sourceIp"])
        http = self.request_context.get("http")
        if isinstance(http, dict) and http.get("sourceIp"):
            return str(http["sourceIp"])
        return None


def caller_key(event: HttpEvent) -> str:
    """Resolve the rate-limit bucket for a request.

    Order: Netlify's client IP header, the first hop of X-Forwarded-For,
    the gateway's source IP, then the literal "unknown".
    """
    netlify_ip = (event.header("x-nf-client-connection-ip") or "").strip()
    if netlify_ip:
        return netlify_ip
    forwarded = (event.header("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return event.source_ip or UNKNOWN_CALLER


class HttpResponse(BaseModel):
    """Handler result in the shape function runtimes expect."""

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
        }

    def json_payload(self) -> Any:
        """Decoded JSON body, or None for an empty body."""
        return json.loads(self.body) if self.body else None


def cors_headers(
    allowed_origins: Iterable[str],
    methods: Iterable[str],
    request_origin: str | None = None,
) -> dict[str, str]:
    """Build CORS response headers.

    A wildcard in ``allowed_origins`` allows any origin. Otherwise the
    request's Origin is echoed back when allow-listed, falling back to the
    first configured origin.
    """
    origins = list(allowed_origins) or ["*"]
    if "*" in origins:
        allow_origin = "*"
    elif request_origin and request_origin in origins:
        allow_origin = request_origin
    else:
        allow_origin = origins[0]

    headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": ", ".join([*methods, "OPTIONS"]),
        "Access-Control-Allow-Headers": ALLOWED_REQUEST_HEADERS,
    }
    if allow_origin != "*":
        headers["Vary"] = "Origin"
    return headers


def json_response(
    status_code: int, payload: Any, headers: dict[str, str]
) -> HttpResponse:
    """Serialize ``payload`` as the JSON body of a response."""
    return HttpResponse(
        status_code=status_code,
        headers=headers,
        body=json.dumps(payload, default=str),
    )
