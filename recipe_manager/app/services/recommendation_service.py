import json
import logging
import random
from datetime import datetime
from typing import List, Mapping, Optional, Sequence
from uuid import UUID

from recipe_manager.app.core.config import get_settings
from recipe_manager.app.schemas.recipe import CookStat, RecipeRead, UserPreferenceSet
from recipe_manager.app.services import candidate_scorer
from recipe_manager.app.services.recommendation_cache import RecommendationCache, get_recommendation_cache

logger = logging.getLogger(__name__)


def _cache_key(user_id: str) -> str:
    return f"recommendations_{user_id}"


def _from_cached_ids(
    raw: str, recipes: Sequence[RecipeRead], preferences: Optional[UserPreferenceSet]
) -> Optional[List[RecipeRead]]:
    try:
        ids = [UUID(value) for value in json.loads(raw)]
    except (TypeError, ValueError):
        return None
    by_id = {r.id: r for r in recipes}
    cached = [by_id[i] for i in ids if i in by_id]
    allergens = preferences.allergens if preferences else []
    return candidate_scorer.exclude_allergens(cached, allergens)


def get_recommended_recipes(
    user_id: str,
    recipes: Sequence[RecipeRead],
    preferences: Optional[UserPreferenceSet],
    cook_stats: Optional[Mapping[UUID, CookStat]] = None,
    count: int = 10,
    cache: Optional[RecommendationCache] = None,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[RecipeRead]:
    """
    Ranked "recommended for you" listing for one user.

    Results are cached per user for RECOMMENDATION_CACHE_TTL_SECONDS. Allergen
    exclusion is re-applied on cache hits so a stale entry cannot resurface a
    recipe the user has since marked as an allergen.
    """
    cache = cache or get_recommendation_cache()
    key = _cache_key(user_id)

    raw = cache.get(key)
    if raw is not None:
        cached = _from_cached_ids(raw, recipes, preferences)
        if cached is not None:
            return cached
        logger.warning("Discarding unreadable recommendation cache entry for user %s", user_id)

    ranked = candidate_scorer.rank_for_feed(
        recipes,
        preferences,
        cook_stats,
        max_results=count,
        now=now,
        rng=rng,
    )
    by_id = {r.id: r for r in recipes}
    result = [by_id[c.recipe_id] for c in ranked]
    cache.set(key, json.dumps([str(r.id) for r in result]), get_settings().recommendation_cache_ttl_seconds)
    return result


def invalidate_recommendations(user_id: str, cache: Optional[RecommendationCache] = None) -> None:
    (cache or get_recommendation_cache()).delete(_cache_key(user_id))
