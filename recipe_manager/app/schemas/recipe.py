from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class IngredientRead(BaseModel):
    name: str
    quantity: Optional[str] = None
    unit: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ImageRead(BaseModel):
    url: str
    is_title_image: bool = False
    order_index: int = 0

    model_config = ConfigDict(from_attributes=True)


class RecipeRead(BaseModel):
    id: UUID
    title: str
    ingredients: List[IngredientRead] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    images: List[ImageRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    def title_image_url(self) -> Optional[str]:
        for image in self.images:
            if image.is_title_image:
                return image.url
        if not self.images:
            return None
        return min(self.images, key=lambda i: i.order_index).url


class UserPreferenceSet(BaseModel):
    allergens: List[str] = Field(default_factory=list)
    disliked_ingredients: List[str] = Field(default_factory=list)
    favorite_cuisines: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class CookStat(BaseModel):
    count: int = 0
    last_cooked_at: datetime
