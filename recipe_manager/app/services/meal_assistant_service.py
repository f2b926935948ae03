import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from recipe_manager.app.core.config import get_settings
from recipe_manager.app.schemas.meal_assistant import (
    AiSuggestion,
    CandidateScore,
    HouseholdAiConfig,
    MealAssistantResponse,
    RankedSuggestion,
    SeasonContext,
)
from recipe_manager.app.schemas.recipe import RecipeRead, UserPreferenceSet
from recipe_manager.app.services import candidate_scorer, llm_client
from recipe_manager.app.services.ai_debug_log_service import AiDebugLogService
from recipe_manager.app.services.household_ai_settings_service import HouseholdAiSettingsService
from recipe_manager.app.services.season_resolver import resolve_season

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

WARNING_NO_LOCATION = "Household location is not configured, using neutral season defaults."
WARNING_NO_RECIPES = "No recipes available in this household yet."
WARNING_NO_ELIGIBLE = "No eligible recipes found after applying allergen filters."
WARNING_AI_INCOMPLETE = "Household AI settings are incomplete; showing deterministic suggestions."
WARNING_AI_FAILED = "AI meal ranking failed; showing deterministic suggestions."


def _to_suggestion(candidate: CandidateScore, reason: Optional[str] = None) -> RankedSuggestion:
    return RankedSuggestion(
        recipe_id=candidate.recipe_id,
        title=candidate.title,
        reason=reason if reason and reason.strip() else candidate.reason,
        warning=candidate.warning,
        title_image_url=candidate.title_image_url,
    )


def merge_suggestions(
    candidates: Sequence[CandidateScore],
    ai_suggestions: Optional[Sequence[AiSuggestion]],
    fallback: Sequence[CandidateScore],
    limit: int = MAX_SUGGESTIONS,
) -> Tuple[List[RankedSuggestion], bool]:
    """AI picks first (in the order returned), then deterministic fallback fills the remaining slots."""
    lookup: Dict[UUID, CandidateScore] = {c.recipe_id: c for c in candidates}
    selected: List[RankedSuggestion] = []
    selected_ids = set()

    for item in ai_suggestions or []:
        if len(selected) >= limit:
            break
        candidate = lookup.get(item.recipe_id)
        if candidate is None or candidate.recipe_id in selected_ids:
            continue
        selected.append(_to_suggestion(candidate, item.reason))
        selected_ids.add(candidate.recipe_id)

    used_ai = bool(selected)

    for candidate in fallback:
        if len(selected) >= limit:
            break
        if candidate.recipe_id in selected_ids:
            continue
        selected.append(_to_suggestion(candidate))
        selected_ids.add(candidate.recipe_id)

    return selected, used_ai


def _empty_response(season: SeasonContext, warning: str) -> MealAssistantResponse:
    return MealAssistantResponse(
        season=season.season,
        hemisphere=season.hemisphere,
        month=season.month,
        used_ai=False,
        warnings=[warning],
        suggestions=[],
    )


async def suggest_meals(
    household_id: str,
    user_id: str,
    prompt: str,
    recipes: Sequence[RecipeRead],
    preferences: Optional[UserPreferenceSet],
    ai_config: Optional[HouseholdAiConfig],
    latitude: Optional[float] = None,
    now: Optional[datetime] = None,
    ai_settings: Optional[HouseholdAiSettingsService] = None,
    debug_log: Optional[AiDebugLogService] = None,
    timeout_seconds: Optional[float] = None,
) -> MealAssistantResponse:
    """
    Suggest up to three recipes for a free-text request.

    The deterministic ranking always runs; the household's AI provider, when
    fully configured, may re-rank the top candidates. Any AI failure (bad key,
    transport error, non-2xx status, unusable output) falls back to the
    deterministic top three. Cancelling the awaiting task aborts the provider
    call and propagates.
    """
    settings = get_settings()
    prompt = prompt or ""
    season = resolve_season(latitude, now or datetime.now(timezone.utc))
    warnings: List[str] = []
    if not season.has_location:
        warnings.append(WARNING_NO_LOCATION)

    if not recipes:
        return _empty_response(season, WARNING_NO_RECIPES)

    fallback_top = candidate_scorer.rank_for_prompt(recipes, preferences, prompt, season, MAX_SUGGESTIONS)
    if not fallback_top:
        return _empty_response(season, WARNING_NO_ELIGIBLE)

    candidates = candidate_scorer.rank_for_prompt(
        recipes, preferences, prompt, season, settings.meal_assistant_candidate_limit
    )

    ai_suggestions: List[AiSuggestion] = []
    if ai_config is not None and ai_config.is_complete():
        try:
            adapter = llm_client.get_provider_adapter(ai_config.provider, settings)
            api_key = (ai_settings or HouseholdAiSettingsService()).decrypt(ai_config.api_key_encrypted).strip()
            ai_suggestions = await llm_client.rank_candidates(
                adapter,
                ai_config.model.strip(),
                api_key,
                prompt,
                season,
                candidates,
                debug_log=debug_log,
                household_id=household_id,
                user_id=user_id,
                timeout_seconds=timeout_seconds,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Meal assistant AI call failed, using deterministic fallback: %s", exc)
            warnings.append(WARNING_AI_FAILED)
    else:
        warnings.append(WARNING_AI_INCOMPLETE)

    suggestions, used_ai = merge_suggestions(candidates, ai_suggestions, fallback_top)
    logger.info(
        "Meal assistant for household %s: %d candidates, %d AI picks, used_ai=%s",
        household_id,
        len(candidates),
        len(ai_suggestions),
        used_ai,
    )
    return MealAssistantResponse(
        season=season.season,
        hemisphere=season.hemisphere,
        month=season.month,
        used_ai=used_ai,
        warnings=warnings,
        suggestions=suggestions,
    )
