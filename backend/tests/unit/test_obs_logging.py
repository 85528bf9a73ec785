import json
import logging

from jobboard.obs.logging import JSONLogFormatter, bind_context, current_request_id, reset_context


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("jobboard.test", logging.WARNING, __file__, 1, "banned content blocked", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_includes_bound_request_context() -> None:
    tokens = bind_context(request_id="req-1", user_id="user-1", client_ip="10.0.0.1")
    try:
        assert current_request_id() == "req-1"
        payload = json.loads(JSONLogFormatter().format(_record(actor_id="user-1")))
    finally:
        reset_context(tokens)
    assert payload["msg"] == "banned content blocked"
    assert payload["request_id"] == "req-1"
    assert payload["ip"] == "10.0.0.1"
    assert payload["actor_id"] == "user-1"
    assert "route" not in payload
    assert current_request_id() is None


def test_formatter_redacts_and_clips_extras() -> None:
    payload = json.loads(
        JSONLogFormatter().format(
            _record(admin_token="s3cret", content_excerpt="x" * 300, triggered_words=[str(i) for i in range(12)])
        )
    )
    assert payload["admin_token"] == "[redacted]"
    assert len(payload["content_excerpt"]) == 257
    assert payload["triggered_words"][-1] == "+2 more"
    assert len(payload["triggered_words"]) == 11
