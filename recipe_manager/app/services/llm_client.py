import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import httpx

from recipe_manager.app.core.config import Settings, get_settings
from recipe_manager.app.db.models import AiOperation
from recipe_manager.app.schemas.meal_assistant import AiSuggestion, CandidateScore, SeasonContext
from recipe_manager.app.services import ai_response_parser
from recipe_manager.app.services.ai_debug_log_service import AiDebugLogService
from recipe_manager.app.services.errors import AiProviderError, UnsupportedProviderError

logger = logging.getLogger(__name__)

MEAL_ASSISTANT_INSTRUCTION = (
    'Return JSON only in this exact shape: {"suggestions":[{"recipeId":"<guid>","reason":"<short text>"}]}. '
    "Choose exactly 3 unique recipeId values from the provided candidate list only. "
    "Respect seasonality by default unless user prompt requests otherwise."
)


class ProviderAdapter(ABC):
    """Request/response conventions of one AI provider."""

    name: str

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    @abstractmethod
    def endpoint(self) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def headers(self, api_key: str) -> Dict[str, str]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def build_payload(self, model: str, user_message: str) -> Dict[str, Any]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def extract_text(self, body: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError


class OpenAIAdapter(ProviderAdapter):
    name = "OpenAI"

    @property
    def endpoint(self) -> str:
        return f"{self.settings.openai_base_url.rstrip('/')}/v1/chat/completions"

    def headers(self, api_key: str) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}

    def build_payload(self, model: str, user_message: str) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": user_message}],
            "response_format": {"type": "json_object"},
        }

    def extract_text(self, body: str) -> Optional[str]:
        return ai_response_parser.extract_chat_completion_content(body)


class AnthropicAdapter(ProviderAdapter):
    name = "Anthropic"

    @property
    def endpoint(self) -> str:
        return f"{self.settings.anthropic_base_url.rstrip('/')}/v1/messages"

    def headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self.settings.anthropic_version,
        }

    def build_payload(self, model: str, user_message: str) -> Dict[str, Any]:
        return {
            "model": model,
            "max_tokens": self.settings.anthropic_max_tokens,
            "messages": [{"role": "user", "content": user_message}],
        }

    def extract_text(self, body: str) -> Optional[str]:
        return ai_response_parser.extract_messages_text(body)


_ADAPTERS = {adapter.name: adapter for adapter in (OpenAIAdapter, AnthropicAdapter)}


def get_provider_adapter(provider: Optional[str], settings: Optional[Settings] = None) -> ProviderAdapter:
    adapter_cls = _ADAPTERS.get((provider or "").strip())
    if adapter_cls is None:
        raise UnsupportedProviderError(f"Unsupported AI provider '{provider}'.")
    return adapter_cls(settings)


def build_user_message(prompt: str, season: SeasonContext, candidates: Sequence[CandidateScore]) -> str:
    candidate_json = json.dumps([{"recipeId": str(c.recipe_id), "title": c.title} for c in candidates])
    return (
        f"User prompt: {prompt}\n"
        f"Season: {season.season} ({season.hemisphere} hemisphere), month: {season.month}.\n"
        f"Candidates: {candidate_json}\n"
        f"{MEAL_ASSISTANT_INSTRUCTION}"
    )


def parse_ai_suggestions(content: Optional[str]) -> List[AiSuggestion]:
    data = ai_response_parser.parse_json_object(content)
    if data is None:
        if content:
            logger.warning("AI meal ranking returned no JSON object")
        return []
    items = data.get("suggestions")
    if not isinstance(items, list):
        return []

    suggestions: List[AiSuggestion] = []
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get("recipeId"), str):
            continue
        try:
            recipe_id = UUID(item["recipeId"].strip())
        except ValueError:
            continue
        reason = item.get("reason")
        suggestions.append(AiSuggestion(recipe_id=recipe_id, reason=reason if isinstance(reason, str) else ""))
    return suggestions


async def rank_candidates(
    adapter: ProviderAdapter,
    model: str,
    api_key: str,
    prompt: str,
    season: SeasonContext,
    candidates: Sequence[CandidateScore],
    debug_log: Optional[AiDebugLogService] = None,
    household_id: Optional[str] = None,
    user_id: Optional[str] = None,
    timeout_seconds: Optional[float] = None,
) -> List[AiSuggestion]:
    """
    Ask the provider to pick three recipes out of `candidates`.

    Only ids and titles leave the process. Returned ids that are not part of the
    candidate set are dropped. Transport failures and non-2xx answers raise
    AiProviderError after being written to the debug log.
    """
    settings = adapter.settings
    candidates = list(candidates)[: settings.meal_assistant_candidate_limit]
    payload = adapter.build_payload(model, build_user_message(prompt, season, candidates))
    payload_json = json.dumps(payload)
    timeout_seconds = timeout_seconds or settings.ai_request_timeout_seconds
    timeout = httpx.Timeout(timeout_seconds, read=timeout_seconds, connect=min(10.0, timeout_seconds))

    async def _audit(body: Optional[str], status_code: Optional[int], success: bool, error: Optional[str]) -> None:
        if debug_log is None:
            return
        # audit rows go through a blocking session, keep them off the event loop
        await asyncio.to_thread(
            debug_log.log,
            household_id,
            user_id,
            adapter.name,
            model,
            AiOperation.MEAL_ASSISTANT,
            payload_json,
            body,
            status_code,
            success,
            error,
        )

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(adapter.endpoint, json=payload, headers=adapter.headers(api_key))
    except httpx.HTTPError as exc:
        await _audit(None, None, False, f"{adapter.name} meal assistant request error: {exc}")
        raise AiProviderError(f"{adapter.name} meal assistant request error: {exc}") from exc

    body = resp.text
    if not 200 <= resp.status_code < 300:
        await _audit(body, resp.status_code, False, f"{adapter.name} meal assistant request failed")
        raise AiProviderError(
            f"{adapter.name} meal assistant request failed with status {resp.status_code}",
            status_code=resp.status_code,
            body=body,
        )
    await _audit(body, resp.status_code, True, None)

    content = adapter.extract_text(body)
    if not content:
        logger.warning("%s meal assistant returned empty content", adapter.name)
        return []

    candidate_ids = {c.recipe_id for c in candidates}
    validated: List[AiSuggestion] = []
    for suggestion in parse_ai_suggestions(content):
        if suggestion.recipe_id not in candidate_ids:
            logger.debug("AI suggested recipe_id=%s not in candidates, skipping", suggestion.recipe_id)
            continue
        validated.append(suggestion)
    return validated
