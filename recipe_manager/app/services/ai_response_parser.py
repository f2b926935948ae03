"""
Extraction helpers for AI provider responses.

Providers answer in two shapes:
  - chat completions: {"choices": [{"message": {"content": str | [parts]}}]}
  - messages:         {"content": [parts]}

A part is either a plain string or an object carrying a "text" field. The
assistant text itself is free-form and may wrap the JSON we asked for in code
fences or prose, so `extract_json_object_text` tries several candidates.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

ResponseBody = Union[str, bytes, Dict[str, Any]]


def _load_body(body: ResponseBody) -> Optional[Dict[str, Any]]:
    if isinstance(body, dict):
        return body
    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        logger.warning("AI response body is not valid JSON")
        return None
    return data if isinstance(data, dict) else None


def _join_text_parts(parts: List[Any]) -> Optional[str]:
    texts: List[str] = []
    for part in parts:
        if isinstance(part, str):
            texts.append(part)
        elif isinstance(part, dict) and isinstance(part.get("text"), str):
            texts.append(part["text"])
    texts = [t for t in texts if t.strip()]
    if not texts:
        return None
    return "\n".join(texts)


def extract_chat_completion_content(body: ResponseBody) -> Optional[str]:
    data = _load_body(body)
    if data is None:
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if isinstance(content, str):
        return content or None
    if isinstance(content, list):
        return _join_text_parts(content)
    return None


def extract_messages_text(body: ResponseBody) -> Optional[str]:
    data = _load_body(body)
    if data is None:
        return None
    content = data.get("content")
    if not isinstance(content, list):
        return None
    return _join_text_parts(content)


def _extract_code_fence(content: str) -> Optional[str]:
    start_fence = content.find("```")
    if start_fence < 0:
        return None
    first_line_end = content.find("\n", start_fence)
    if first_line_end < 0:
        return None
    end_fence = content.find("```", first_line_end)
    if end_fence < 0:
        return None
    inner = content[first_line_end + 1 : end_fence].strip()
    return inner or None


def _extract_first_object(text: str) -> Optional[str]:
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]
    return None


def extract_json_object_text(content: Optional[str]) -> Optional[str]:
    """Return the first candidate substring of `content` that decodes to a JSON object."""
    if not content or not content.strip():
        return None

    candidates = [content.strip(), _extract_code_fence(content), _extract_first_object(content)]
    seen = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return candidate
    return None


def parse_json_object(content: Optional[str]) -> Optional[Dict[str, Any]]:
    text = extract_json_object_text(content)
    if text is None:
        return None
    return json.loads(text)
