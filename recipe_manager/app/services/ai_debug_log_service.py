"""
Audit trail of AI provider calls.

Every request/response pair is stored after sanitization: credentials are
redacted, image data URIs and base64 blobs are dropped, and long strings are
truncated so that a single row stays readable.
"""
import json
import logging
import re
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Tuple, Union

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from recipe_manager.app.db import models

logger = logging.getLogger(__name__)

MAX_PAYLOAD_LENGTH = 30_000
MAX_STRING_LENGTH = 4_000
MAX_DATA_FIELD_LENGTH = 200
MAX_PAGE_SIZE = 200
TRUNCATED_SUFFIX = "...[TRUNCATED]"

SENSITIVE_KEYS = ("authorization", "api_key", "apikey", "x-api-key", "token", "secret", "password", "key")
_BEARER = re.compile(r"bearer\s+\S+", re.IGNORECASE)


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(token in lowered for token in SENSITIVE_KEYS)


def truncate(value: Optional[str], limit: int = MAX_PAYLOAD_LENGTH) -> str:
    if not value:
        return ""
    if len(value) <= limit:
        return value
    return f"{value[:limit]}{TRUNCATED_SUFFIX}"


DESCEND = object()


def visit_tree(value: Any, visitor: Callable[[Any, Optional[str]], Any], key_name: Optional[str] = None) -> Any:
    """Return a copy of a decoded JSON tree with `visitor` applied to every node.

    `visitor(node, key_name)` returns either a replacement for the node or DESCEND,
    which keeps the node and, for objects and arrays, continues into the children.
    Array items inherit the key of the member holding the array.
    """
    replacement = visitor(value, key_name)
    if replacement is not DESCEND:
        return replacement
    if isinstance(value, dict):
        return {key: visit_tree(child, visitor, key) for key, child in value.items()}
    if isinstance(value, list):
        return [visit_tree(item, visitor, key_name) for item in value]
    return value


def _sanitize_node(value: Any, key_name: Optional[str]) -> Any:
    if key_name is not None and _is_sensitive_key(key_name):
        return "[REDACTED]"
    if not isinstance(value, str):
        return DESCEND
    if value.lower().startswith("data:image/"):
        return "[REDACTED_IMAGE_DATA]"
    if key_name is not None and key_name.lower() == "data" and len(value) > MAX_DATA_FIELD_LENGTH:
        return "[REDACTED_BASE64]"
    if len(value) > MAX_STRING_LENGTH:
        return f"{value[:MAX_STRING_LENGTH]}{TRUNCATED_SUFFIX}"
    return DESCEND


def _redact_raw(value: str) -> str:
    return _BEARER.sub("Bearer [REDACTED]", value)


def sanitize_payload(payload: Optional[Union[str, bytes]]) -> str:
    if payload is None:
        return ""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    if not payload.strip():
        return ""
    try:
        tree = json.loads(payload)
    except ValueError:
        return truncate(_redact_raw(payload))
    sanitized = visit_tree(tree, _sanitize_node)
    return truncate(json.dumps(sanitized, separators=(",", ":"), ensure_ascii=False))


class AiDebugLogService:
    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from recipe_manager.app.db.session import SessionLocal

            session_factory = SessionLocal
        self._session_factory = session_factory

    def log(
        self,
        household_id: Optional[str],
        user_id: Optional[str],
        provider: str,
        model: str,
        operation: Union[models.AiOperation, str],
        request_json: Optional[str],
        response_json: Optional[str],
        status_code: Optional[int],
        success: bool,
        error: Optional[str],
    ) -> None:
        if isinstance(operation, models.AiOperation):
            operation = operation.value
        try:
            with self._session_factory() as db:
                entry = models.AiDebugLog(
                    id=str(uuid.uuid4()),
                    created_at=datetime.utcnow(),
                    household_id=str(household_id) if household_id is not None else None,
                    user_id=str(user_id) if user_id is not None else None,
                    provider=provider,
                    model=model,
                    operation=operation,
                    request_json_sanitized=sanitize_payload(request_json),
                    response_json_sanitized=sanitize_payload(response_json),
                    status_code=status_code,
                    success=success,
                    error=truncate(error) or None,
                )
                db.add(entry)
                db.commit()
        except Exception:  # noqa: BLE001
            logger.exception("Failed to persist AI debug log")


def list_logs(
    db: Session,
    household_id: str,
    provider: Optional[str] = None,
    operation: Optional[str] = None,
    success: Optional[bool] = None,
    page: int = 1,
    page_size: int = 100,
) -> Tuple[List[models.AiDebugLog], int]:
    page = max(1, page)
    page_size = min(max(1, page_size), MAX_PAGE_SIZE)

    stmt = select(models.AiDebugLog).where(models.AiDebugLog.household_id == str(household_id))
    if provider and provider.strip():
        stmt = stmt.where(models.AiDebugLog.provider == provider)
    if operation and operation.strip():
        stmt = stmt.where(models.AiDebugLog.operation == operation)
    if success is not None:
        stmt = stmt.where(models.AiDebugLog.success == success)

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    items = db.scalars(
        stmt.order_by(models.AiDebugLog.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
    ).all()
    return list(items), total


def purge_older_than(db: Session, days: int) -> int:
    cutoff = datetime.utcnow() - timedelta(days=days)
    result = db.execute(delete(models.AiDebugLog).where(models.AiDebugLog.created_at < cutoff))
    db.commit()
    return result.rowcount or 0
