from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

Season = Literal["Winter", "Spring", "Summer", "Autumn", "Unknown"]
Hemisphere = Literal["Northern", "Southern", "Unknown"]


class SeasonContext(BaseModel):
    season: Season
    hemisphere: Hemisphere
    month: str
    has_location: bool

    model_config = ConfigDict(frozen=True)


class CandidateScore(BaseModel):
    recipe_id: UUID
    title: str
    score: float
    reason: str
    warning: Optional[str] = None
    title_image_url: Optional[str] = None


class AiSuggestion(BaseModel):
    recipe_id: UUID
    reason: str = ""


class RankedSuggestion(BaseModel):
    recipe_id: UUID
    title: str
    reason: str
    warning: Optional[str] = None
    title_image_url: Optional[str] = None


class HouseholdAiConfig(BaseModel):
    provider: Optional[str] = None
    model: Optional[str] = None
    api_key_encrypted: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    def is_complete(self) -> bool:
        return all(value and value.strip() for value in (self.provider, self.model, self.api_key_encrypted))


class MealAssistantResponse(BaseModel):
    season: Season
    hemisphere: Hemisphere
    month: str
    used_ai: bool = False
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[RankedSuggestion] = Field(default_factory=list)
