"""
Deterministic recipe scoring shared by the recommendation feed and the meal assistant.

Two weight profiles exist and are intentionally kept apart:

  FEED_PROFILE    general "recommended for you" listings; rewards recipes that
                  have not been cooked lately and breaks ties randomly so the
                  feed does not look static.
  PROMPT_PROFILE  meal assistant ranking; rewards matches against the user's
                  free-text request, penalizes seasonal mismatches and breaks
                  ties by title so repeated requests rank identically.

Allergen matches are removed before scoring in both profiles.
"""
import random
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union
from uuid import UUID

from recipe_manager.app.schemas.meal_assistant import CandidateScore, SeasonContext
from recipe_manager.app.schemas.recipe import CookStat, RecipeRead, UserPreferenceSet

BASE_SCORE = 100.0
MIN_TOKEN_LENGTH = 3
STALE_AFTER_DAYS = 14
MAX_WARNING_MATCHES = 2

_TOKEN_SPLIT = re.compile(r"[\s,.;:/\\!?\-_]+")


@dataclass(frozen=True)
class ScoringProfile:
    name: str
    disliked_penalty: float
    favorite_cuisine_bonus: float
    prompt_ingredient_bonus: float = 0.0
    prompt_tag_bonus: float = 0.0
    never_cooked_bonus: float = 0.0
    stale_bonus: float = 0.0
    winter_mismatch_penalty: float = 0.0
    summer_mismatch_penalty: float = 0.0
    deterministic_ties: bool = True
    annotate_warnings: bool = False
    reason_template: str = "Recommended for you."


FEED_PROFILE = ScoringProfile(
    name="feed",
    disliked_penalty=10,
    favorite_cuisine_bonus=20,
    never_cooked_bonus=30,
    stale_bonus=15,
    deterministic_ties=False,
)

PROMPT_PROFILE = ScoringProfile(
    name="prompt",
    disliked_penalty=15,
    favorite_cuisine_bonus=18,
    prompt_ingredient_bonus=9,
    prompt_tag_bonus=6,
    winter_mismatch_penalty=10,
    summer_mismatch_penalty=8,
    annotate_warnings=True,
    reason_template="Good match for your prompt and {season} season.",
)

WINTER_MISMATCH_TAGS = ("bbq", "grill", "salad")
SUMMER_MISMATCH_TAGS = ("stew", "soup", "roast")


def tokenize(prompt: Optional[str]) -> Set[str]:
    if not prompt:
        return set()
    return {tok.lower() for tok in _TOKEN_SPLIT.split(prompt) if len(tok) >= MIN_TOKEN_LENGTH}


def _clean_terms(terms: Optional[Iterable[str]]) -> List[str]:
    return [t.strip().lower() for t in terms or [] if t and t.strip()]


def _matches_any(value: str, terms: Sequence[str]) -> bool:
    lowered = value.lower()
    return any(term in lowered for term in terms)


def has_allergen(recipe: RecipeRead, allergens: Sequence[str]) -> bool:
    terms = _clean_terms(allergens)
    if not terms:
        return False
    return any(_matches_any(ing.name, terms) for ing in recipe.ingredients)


def exclude_allergens(recipes: Iterable[RecipeRead], allergens: Sequence[str]) -> List[RecipeRead]:
    return [r for r in recipes if not has_allergen(r, allergens)]


def build_warning(recipe: RecipeRead, disliked: Sequence[str]) -> Optional[str]:
    terms = _clean_terms(disliked)
    if not terms:
        return None
    matches: List[str] = []
    seen: Set[str] = set()
    for ing in recipe.ingredients:
        if not _matches_any(ing.name, terms) or ing.name.lower() in seen:
            continue
        seen.add(ing.name.lower())
        matches.append(ing.name)
        if len(matches) >= MAX_WARNING_MATCHES:
            break
    if not matches:
        return None
    return f"Contains disliked ingredient(s): {', '.join(matches)}"


def score_recipe(
    recipe: RecipeRead,
    profile: ScoringProfile,
    disliked: Sequence[str],
    favorite_cuisines: Sequence[str],
    prompt_tokens: Set[str],
    season: str,
    cook_stat: Optional[CookStat] = None,
    now: Optional[datetime] = None,
) -> float:
    score = BASE_SCORE
    disliked = _clean_terms(disliked)
    favorite_cuisines = _clean_terms(favorite_cuisines)
    tokens = sorted(prompt_tokens)

    for ing in recipe.ingredients:
        if _matches_any(ing.name, disliked):
            score -= profile.disliked_penalty
        if profile.prompt_ingredient_bonus and _matches_any(ing.name, tokens):
            score += profile.prompt_ingredient_bonus

    for tag in recipe.tags:
        if _matches_any(tag, favorite_cuisines):
            score += profile.favorite_cuisine_bonus
        if profile.prompt_tag_bonus and _matches_any(tag, tokens):
            score += profile.prompt_tag_bonus

    if profile.never_cooked_bonus or profile.stale_bonus:
        if cook_stat is None:
            score += profile.never_cooked_bonus
        else:
            now = now or datetime.now(timezone.utc)
            last_cooked = cook_stat.last_cooked_at
            if last_cooked.tzinfo is None:
                last_cooked = last_cooked.replace(tzinfo=timezone.utc)
            if (now - last_cooked).days > STALE_AFTER_DAYS:
                score += profile.stale_bonus

    if season == "Winter" and any(_matches_any(tag, WINTER_MISMATCH_TAGS) for tag in recipe.tags):
        score -= profile.winter_mismatch_penalty
    elif season == "Summer" and any(_matches_any(tag, SUMMER_MISMATCH_TAGS) for tag in recipe.tags):
        score -= profile.summer_mismatch_penalty

    return score


def score_candidates(
    recipes: Iterable[RecipeRead],
    preferences: Optional[UserPreferenceSet],
    prompt: str,
    season: Union[str, SeasonContext],
    max_results: int,
    profile: ScoringProfile,
    cook_stats: Optional[Mapping[UUID, CookStat]] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[CandidateScore]:
    preferences = preferences or UserPreferenceSet()
    if isinstance(season, SeasonContext):
        season = season.season
    cook_stats = cook_stats or {}
    prompt_tokens = tokenize(prompt)
    if now is None:
        now = datetime.now(timezone.utc)
    if not profile.deterministic_ties and rng is None:
        rng = random.Random()

    scored: List[CandidateScore] = []
    tie_keys: Dict[UUID, object] = {}
    for recipe in exclude_allergens(recipes, preferences.allergens):
        score = score_recipe(
            recipe,
            profile,
            preferences.disliked_ingredients,
            preferences.favorite_cuisines,
            prompt_tokens,
            season,
            cook_stat=cook_stats.get(recipe.id),
            now=now,
        )
        scored.append(
            CandidateScore(
                recipe_id=recipe.id,
                title=recipe.title,
                score=score,
                reason=profile.reason_template.format(season=season.lower()),
                warning=build_warning(recipe, preferences.disliked_ingredients) if profile.annotate_warnings else None,
                title_image_url=recipe.title_image_url(),
            )
        )
        tie_keys[recipe.id] = (recipe.title.casefold(), recipe.title) if profile.deterministic_ties else rng.random()

    scored.sort(key=lambda c: (-c.score, tie_keys[c.recipe_id]))
    return scored[: max(1, max_results)]


def rank_for_feed(
    recipes: Iterable[RecipeRead],
    preferences: Optional[UserPreferenceSet],
    cook_stats: Optional[Mapping[UUID, CookStat]],
    max_results: int = 10,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> List[CandidateScore]:
    return score_candidates(
        recipes,
        preferences,
        prompt="",
        season="Unknown",
        max_results=max_results,
        profile=FEED_PROFILE,
        cook_stats=cook_stats,
        now=now,
        rng=rng,
    )


def rank_for_prompt(
    recipes: Iterable[RecipeRead],
    preferences: Optional[UserPreferenceSet],
    prompt: str,
    season: Union[str, SeasonContext],
    max_results: int,
) -> List[CandidateScore]:
    return score_candidates(recipes, preferences, prompt, season, max_results, PROMPT_PROFILE)
