import json
import uuid
from datetime import datetime, timedelta

from recipe_manager.app.db import models
from recipe_manager.app.services import ai_debug_log_service
from recipe_manager.app.services.ai_debug_log_service import AiDebugLogService, sanitize_payload


def test_sanitize_redacts_sensitive_keys():
    payload = json.dumps(
        {
            "Authorization": "Bearer sk-123",
            "headers": {"x-api-key": "ak-1", "Content-Type": "application/json"},
            "api_key": "k",
            "model": "gpt",
        }
    )
    sanitized = json.loads(sanitize_payload(payload))
    assert sanitized["Authorization"] == "[REDACTED]"
    assert sanitized["headers"] == {"x-api-key": "[REDACTED]", "Content-Type": "application/json"}
    assert sanitized["api_key"] == "[REDACTED]"
    assert sanitized["model"] == "gpt"


def test_sanitize_drops_image_and_base64_data():
    payload = json.dumps(
        {
            "messages": [
                {"content": [{"image_url": "data:image/png;base64,AAAA"}, {"text": "hello"}]},
                {"source": {"data": "A" * 500}},
                {"source": {"data": "short"}},
            ]
        }
    )
    sanitized = json.loads(sanitize_payload(payload))
    assert sanitized["messages"][0]["content"] == [{"image_url": "[REDACTED_IMAGE_DATA]"}, {"text": "hello"}]
    assert sanitized["messages"][1]["source"]["data"] == "[REDACTED_BASE64]"
    assert sanitized["messages"][2]["source"]["data"] == "short"


def test_sanitize_truncates_long_strings():
    sanitized = json.loads(sanitize_payload(json.dumps({"content": "x" * 5000})))
    assert sanitized["content"] == "x" * 4000 + "...[TRUNCATED]"


def test_sanitize_non_json_payload():
    assert sanitize_payload("upstream said bearer sk-abc ok") == "upstream said Bearer [REDACTED] ok"
    assert sanitize_payload("") == ""
    assert sanitize_payload(None) == ""
    long_text = "y" * 31000
    assert sanitize_payload(long_text) == "y" * 30000 + "...[TRUNCATED]"


def test_log_persists_sanitized_row(session_factory, db_session):
    service = AiDebugLogService(session_factory)

    service.log(
        "house-1",
        "user-1",
        "OpenAI",
        "gpt-4o-mini",
        models.AiOperation.MEAL_ASSISTANT,
        json.dumps({"model": "gpt-4o-mini", "api_key": "sk-secret"}),
        '{"choices": []}',
        200,
        True,
        None,
    )

    items, total = ai_debug_log_service.list_logs(db_session, "house-1")
    assert total == 1
    row = items[0]
    assert row.operation == "MealAssistant"
    assert row.success is True
    assert "sk-secret" not in row.request_json_sanitized
    assert row.response_json_sanitized == '{"choices":[]}'
    assert row.error is None


def test_log_failures_do_not_raise():
    def _broken_factory():
        raise RuntimeError("database is down")

    AiDebugLogService(_broken_factory).log(
        "house-1", None, "OpenAI", "m", "MealAssistant", "{}", None, None, False, "boom"
    )


def _add_row(db, household_id, provider="OpenAI", success=True, created_at=None):
    db.add(
        models.AiDebugLog(
            id=str(uuid.uuid4()),
            created_at=created_at or datetime.utcnow(),
            household_id=household_id,
            provider=provider,
            model="m",
            operation="MealAssistant",
            request_json_sanitized="{}",
            response_json_sanitized="{}",
            success=success,
        )
    )


def test_list_logs_filters_and_pages(db_session):
    base = datetime.utcnow()
    for i in range(5):
        _add_row(db_session, "house-1", created_at=base - timedelta(minutes=i))
    _add_row(db_session, "house-1", provider="Anthropic", success=False)
    _add_row(db_session, "house-2")
    db_session.commit()

    items, total = ai_debug_log_service.list_logs(db_session, "house-1", provider="OpenAI", page=2, page_size=2)
    assert total == 5
    assert [i.created_at for i in items] == [base - timedelta(minutes=2), base - timedelta(minutes=3)]

    failed, failed_total = ai_debug_log_service.list_logs(db_session, "house-1", success=False)
    assert failed_total == 1
    assert failed[0].provider == "Anthropic"

    _, everything = ai_debug_log_service.list_logs(db_session, "house-1", provider="  ", page=0, page_size=10_000)
    assert everything == 6


def test_purge_older_than(db_session):
    _add_row(db_session, "house-1", created_at=datetime.utcnow() - timedelta(days=45))
    _add_row(db_session, "house-1", created_at=datetime.utcnow() - timedelta(days=1))
    db_session.commit()

    assert ai_debug_log_service.purge_older_than(db_session, 30) == 1
    _, total = ai_debug_log_service.list_logs(db_session, "house-1")
    assert total == 1
