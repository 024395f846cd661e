"""Security events are structured and never carry token material."""

from __future__ import annotations

import json
import logging

import pytest
from authcore.core.logger import JSONFormatter
from authcore.services._shared.base import ServiceContext
from authcore.services._shared.errors import UnauthorizedError

SECURITY_LOGGER = "authcore.security"


@pytest.fixture
def security_records(caplog):
    caplog.set_level(logging.INFO, logger=SECURITY_LOGGER)

    def _records(event: str | None = None):
        return [
            r
            for r in caplog.records
            if r.name == SECURITY_LOGGER and (event is None or getattr(r, "event", None) == event)
        ]

    return _records


def test_issue_and_rotate_events(service, make_user, security_records):
    user = make_user()
    pair = service.issue_pair(user.user_id, user)
    service.rotate(pair.refresh_token)

    assert security_records("session.issued")[0].user_id == user.user_id
    rotated = security_records("session.rotated")[0]
    assert rotated.outcome == "rotated"


def test_reuse_is_logged_as_warning_with_revoked_count(service, make_user, security_records):
    user = make_user()
    pair = service.issue_pair(user.user_id, user)
    service.issue_pair(user.user_id, user)
    service.rotate(pair.refresh_token)

    with pytest.raises(UnauthorizedError):
        service.rotate(pair.refresh_token)

    [reuse] = security_records("session.reuse_detected")
    assert reuse.levelno == logging.WARNING
    assert reuse.user_id == user.user_id
    assert reuse.revoked == 2
    assert security_records("session.rejected")[0].outcome == "reused"


def test_tokens_and_session_ids_never_reach_the_log(service, make_user, security_records):
    user = make_user()
    pair = service.issue_pair(user.user_id, user)
    sid = service.decode_refresh(pair.refresh_token).session_id
    service.rotate(pair.refresh_token)
    service.logout(pair.refresh_token)

    formatter = JSONFormatter()
    rendered = "\n".join(formatter.format(r) for r in security_records())
    assert sid not in rendered
    assert pair.refresh_token not in rendered
    assert pair.access_token not in rendered


def test_json_formatter_renders_extras():
    record = logging.LogRecord(SECURITY_LOGGER, logging.INFO, __file__, 1, "session.logout", (), None)
    record.event = "session.logout"
    record.user_id = "9"

    payload = json.loads(JSONFormatter().format(record))
    assert payload["event"] == "session.logout"
    assert payload["user_id"] == "9"
    assert payload["level"] == "INFO"


def test_events_carry_the_callers_request_context(service, make_user, security_records):
    service.ctx = ServiceContext(request_id="req-42", remote_addr="203.0.113.7")
    user = make_user()

    service.issue_pair(user.user_id, user)

    [issued] = security_records("session.issued")
    assert issued.request_id == "req-42"
    assert issued.remote_addr == "203.0.113.7"
    payload = json.loads(JSONFormatter().format(issued))
    assert payload["remote_addr"] == "203.0.113.7"
    assert payload["request_id"] == "req-42"
