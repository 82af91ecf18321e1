"""Tests for log context binding and log masking."""

from structlog.contextvars import get_contextvars

from coursemaster.core.context import (
    bind_identity,
    clear_request_context,
    get_request_id,
    new_request_context,
)
from coursemaster.core.logging import filter_sensitive_data
from coursemaster.core.middleware import trace_id_from_traceparent


class TestRequestContext:
    def teardown_method(self) -> None:
        clear_request_context()

    def test_generates_request_id(self) -> None:
        request_id = new_request_context()

        assert request_id
        assert get_request_id() == request_id

    def test_keeps_incoming_ids(self) -> None:
        new_request_context(request_id="req-1", trace_id="trace-1")

        assert get_contextvars() == {"request_id": "req-1", "trace_id": "trace-1"}

    def test_new_request_drops_previous_identity(self) -> None:
        new_request_context(request_id="req-1")
        bind_identity("11111111-1111-1111-1111-111111111111", "student")

        new_request_context(request_id="req-2")

        assert "user_id" not in get_contextvars()

    def test_traceparent(self) -> None:
        header = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"

        assert trace_id_from_traceparent(header) == "4bf92f3577b34da6a3ce929d0e0e4736"
        assert trace_id_from_traceparent("garbage") is None
        assert trace_id_from_traceparent(None) is None


class TestLogMasking:
    def test_recipient_addresses_keep_domain(self) -> None:
        event = filter_sensitive_data(
            None,
            "info",
            {"event": "email_sent", "to": ["ana@example.com", "bo@school.edu"]},
        )

        assert event["to"] == ["a***@example.com", "b***@school.edu"]
        assert event["event"] == "email_sent"

    def test_secrets_masked(self) -> None:
        event = filter_sensitive_data(
            None, "info", {"cassandra_password": "hunter22", "nested": {"secret": "ab"}}
        )

        assert event["cassandra_password"] == "hu****22"
        assert event["nested"]["secret"] == "***"
