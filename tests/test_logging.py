"""
Test request and error logging context.
"""
import pytest
from httpx import AsyncClient
from structlog.contextvars import get_contextvars

import fict.main
from fict.core.exceptions import InvalidStateError
from fict.core.logging import log_error_details, log_request_details, redact_state


class RecordingLogger:
    """Collects log calls together with the bound context at call time."""

    def __init__(self):
        self.records = []

    def _record(self, event, **kwargs):
        self.records.append((event, kwargs, dict(get_contextvars())))

    info = warning = error = debug = _record


def test_request_details_leave_request_id_to_context():
    context = log_request_details(method="GET", path="/health", client_ip="10.0.0.1")

    assert context == {"method": "GET", "path": "/health", "client_ip": "10.0.0.1"}


def test_request_details_omit_unknown_client():
    assert "client_ip" not in log_request_details(method="GET", path="/health")


def test_error_details():
    context = log_error_details(InvalidStateError(provider="github"), path="/cb", status_code=400)

    assert context["error_type"] == "InvalidStateError"
    assert "Unfamiliar state" in context["error_message"]
    assert context["path"] == "/cb"
    assert context["status_code"] == 400
    assert "request_id" not in context


def test_redact_state():
    assert redact_state("abcdefghijklmnopqrst") == "abcdefgh"
    assert redact_state(None) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("sent_id", [None, "req-123"])
async def test_request_logs_carry_bound_request_id(client: AsyncClient, monkeypatch, sent_id):
    recorder = RecordingLogger()
    monkeypatch.setattr(fict.main, "logger", recorder)
    headers = {"X-Request-ID": sent_id} if sent_id else {}

    response = await client.get("/api/v1/health", headers=headers)

    request_id = response.headers["X-Request-ID"]
    assert request_id
    if sent_id:
        assert request_id == sent_id
    started = [record for record in recorder.records if record[0] == "Request started"]
    assert len(started) == 1
    _, kwargs, bound = started[0]
    assert "request_id" not in kwargs
    assert bound["request_id"] == request_id
