"""Tests for HTTP event parsing, CORS and the function entry points."""

import base64
import json

import pytest

from src.api import functions
from src.api.events import HttpEvent, caller_key, cors_headers


class TestHttpEvent:
    """Tests for HttpEvent parsing."""

    def test_from_raw_gateway_shape(self) -> None:
        event = HttpEvent.from_raw(
            {
                "httpMethod": "post",
                "headers": {"Content-Type": "application/json", "X-Empty": None},
                "queryStringParameters": None,
                "body": '{"a": 1}',
                "isBase64Encoded": False,
                "requestContext": {"identity": {"sourceIp": "192.0.2.10"}},
            }
        )

        assert event.http_method == "POST"
        assert event.header("content-type") == "application/json"
        assert event.header("X-Empty") is None
        assert event.query_parameters == {}
        assert event.json_body() == {"a": 1}
        assert event.source_ip == "192.0.2.10"

    def test_empty_event(self) -> None:
        event = HttpEvent.from_raw(None)
        assert event.http_method == "GET"
        assert event.json_body() == {}
        assert event.source_ip is None

    def test_base64_body(self) -> None:
        encoded = base64.b64encode(b'{"title": "hi"}').decode()
        event = HttpEvent.from_raw({"body": encoded, "isBase64Encoded": True})
        assert event.json_body() == {"title": "hi"}

    def test_bad_base64_fails_json(self) -> None:
        event = HttpEvent.from_raw({"body": "!!!not base64", "isBase64Encoded": True})
        assert event.json_body() is None

    def test_non_object_json(self) -> None:
        assert HttpEvent.from_raw({"body": "[1, 2]"}).json_body() is None

    def test_http_api_source_ip(self) -> None:
        event = HttpEvent.from_raw({"requestContext": {"http": {"sourceIp": "::1"}}})
        assert event.source_ip == "::1"

    def test_empty_query_values_ignored(self) -> None:
        event = HttpEvent.from_raw({"queryStringParameters": {"status": ""}})
        assert event.query("status") is None

    def test_scalar_query_values_stringified(self) -> None:
        event = HttpEvent.from_raw({"queryStringParameters": {"limit": 5, "x": None}})
        assert event.query_parameters == {"limit": "5"}

    def test_null_path(self) -> None:
        assert HttpEvent.from_raw({"path": None}).path == "/"

    def test_parsed_json_body_reencoded(self) -> None:
        event = HttpEvent.from_raw({"body": {"department": "CS"}})
        assert event.json_body() == {"department": "CS"}


class TestCallerKey:
    """Tests for rate-limit key resolution."""

    def test_netlify_header_first(self) -> None:
        event = HttpEvent.from_raw(
            {
                "headers": {
                    "x-nf-client-connection-ip": "203.0.113.1",
                    "x-forwarded-for": "198.51.100.1",
                },
                "requestContext": {"identity": {"sourceIp": "192.0.2.1"}},
            }
        )
        assert caller_key(event) == "203.0.113.1"

    def test_first_forwarded_hop(self) -> None:
        event = HttpEvent.from_raw(
            {"headers": {"X-Forwarded-For": " 198.51.100.1 , 10.0.0.2"}}
        )
        assert caller_key(event) == "198.51.100.1"

    def test_source_ip_then_unknown(self) -> None:
        with_ip = HttpEvent.from_raw(
            {"requestContext": {"identity": {"sourceIp": "192.0.2.1"}}}
        )
        assert caller_key(with_ip) == "192.0.2.1"
        assert caller_key(HttpEvent()) == "unknown"


class TestCorsHeaders:
    """Tests for CORS header construction."""

    def test_wildcard(self) -> None:
        headers = cors_headers(["*"], ["GET"], "https://anywhere.example")
        assert headers["Access-Control-Allow-Origin"] == "*"
        assert headers["Access-Control-Allow-Methods"] == "GET, OPTIONS"
        assert "X-Function-Secret" in headers["Access-Control-Allow-Headers"]
        assert "Vary" not in headers

    def test_unlisted_origin_gets_first(self) -> None:
        headers = cors_headers(
            ["https://univoice.app", "https://staging.univoice.app"],
            ["POST"],
            "https://evil.example",
        )
        assert headers["Access-Control-Allow-Origin"] == "https://univoice.app"
        assert headers["Vary"] == "Origin"


class TestFunctionEntryPoints:
    """Tests for the runtime-facing entry points."""

    @pytest.fixture(autouse=True)
    def fresh_handlers(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        monkeypatch.setenv("AUDIT_LOG_DIR", str(tmp_path / "audit"))
        monkeypatch.delenv("FUNCTION_SECRET", raising=False)
        monkeypatch.delenv("RATE_LIMIT_MAX", raising=False)
        monkeypatch.delenv("RATE_LIMIT_WINDOW_SECONDS", raising=False)
        monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
        functions.reset_handlers()
        yield
        functions.reset_handlers()

    def test_submit_then_list(self, valid_payload) -> None:
        created = functions.submit_handler(
            {"httpMethod": "POST", "body": json.dumps(valid_payload)}, None
        )
        listed = functions.list_handler({"httpMethod": "GET"})

        assert created["statusCode"] == 201
        assert created["headers"]["Content-Type"] == "application/json"
        complaint_id = json.loads(created["body"])["complaintId"]
        assert [c["complaintId"] for c in json.loads(listed["body"])] == [complaint_id]

    def test_full_lifecycle(self, valid_payload) -> None:
        complaint_id = json.loads(
            functions.submit_handler(
                {"httpMethod": "POST", "body": json.dumps(valid_payload)}
            )["body"]
        )["complaintId"]
        by_id = {"queryStringParameters": {"complaintId": complaint_id}}

        updated = functions.update_handler(
            {
                "httpMethod": "POST",
                "body": json.dumps({"complaintId": complaint_id, "action": "approve"}),
            }
        )
        fetched = functions.get_handler({"httpMethod": "GET", **by_id})
        deleted = functions.delete_handler({"httpMethod": "DELETE", **by_id})
        missing = functions.get_handler({"httpMethod": "GET", **by_id})

        assert updated["statusCode"] == 200
        assert json.loads(fetched["body"])["status"] == "approved"
        assert deleted["statusCode"] == 200
        assert missing["statusCode"] == 404

    def test_rate_limit_survives_warm_invocations(
        self, monkeypatch, valid_payload
    ) -> None:
        monkeypatch.setenv("RATE_LIMIT_MAX", "1")
        functions.reset_handlers()
        event = {
            "httpMethod": "POST",
            "headers": {"x-nf-client-connection-ip": "198.51.100.77"},
            "body": json.dumps(valid_payload),
        }

        assert functions.submit_handler(event)["statusCode"] == 201
        assert functions.submit_handler(event)["statusCode"] == 429

    def test_loosely_typed_events_handled(self, valid_payload) -> None:
        """Non-string query values, null paths and dict bodies are accepted."""
        listed = functions.list_handler(
            {"httpMethod": "GET", "queryStringParameters": {"limit": 5}}
        )
        no_path = functions.list_handler({"httpMethod": "GET", "path": None})
        created = functions.submit_handler(
            {"httpMethod": "POST", "body": valid_payload}
        )
        partial = functions.submit_handler(
            {"httpMethod": "POST", "body": {"department": "CS"}}
        )

        assert listed["statusCode"] == 200
        assert no_path["statusCode"] == 200
        assert created["statusCode"] == 201
        assert partial["statusCode"] == 400

    def test_unparseable_event_is_bad_request(self) -> None:
        response = functions.list_handler(
            {"httpMethod": "GET", "isBase64Encoded": "sometimes"}
        )

        assert response["statusCode"] == 400
        assert json.loads(response["body"]) == {"error": "Invalid request"}
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"

    def test_handlers_cached(self) -> None:
        assert functions.get_handlers() is functions.get_handlers()
