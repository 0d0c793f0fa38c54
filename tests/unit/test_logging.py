from __future__ import annotations

import json
import logging

from party_meetings.common.config import get_settings
from party_meetings.common.logging import JsonFormatter, _build_formatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="party-meetings",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="meeting_end_step",
        args=(),
        exc_info=None,
    )
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_json_line_carries_service_and_payload() -> None:
    line = JsonFormatter().format(
        _record(payload={"party_id": "p-1", "meeting_id": "m-1", "step": "resolve", "outcome": "ok"})
    )
    data = json.loads(line)

    assert data["service"] == get_settings().service_name
    assert data["msg"] == "meeting_end_step"
    assert data["level"] == "INFO"
    assert data["payload"]["step"] == "resolve"
    assert data["ts"].endswith("Z")


def test_non_dict_payload_is_dropped() -> None:
    data = json.loads(JsonFormatter().format(_record(payload="raw")))
    assert "payload" not in data


def test_text_format_for_local_runs() -> None:
    s = get_settings()
    snapshot = s.log_format
    try:
        s.log_format = "text"
        assert not isinstance(_build_formatter(), JsonFormatter)
        s.log_format = "json"
        assert isinstance(_build_formatter(), JsonFormatter)
    finally:
        s.log_format = snapshot
