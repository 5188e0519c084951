"""
app/models.py — All Pydantic data schemas
Request schemas sanitize untrusted JSON before it reaches Gemini or
Supabase; read models mirror the recipes / feedback / ingredients /
cuisines tables.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)


# ──────────────────────────────────────────────────────────────────────────────
# Enumerations
# ──────────────────────────────────────────────────────────────────────────────

class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


class IngredientCategory(str, Enum):
    FAT = "fat"
    FOUNDATION = "foundation"
    FEATURE = "feature"
    FLAVOR = "flavor"
    FINISH = "finish"


class Rating(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


INGREDIENT_CATEGORIES: list[IngredientCategory] = list(IngredientCategory)

CATEGORY_LABELS: dict[IngredientCategory, str] = {
    IngredientCategory.FAT: "Fat",
    IngredientCategory.FOUNDATION: "Foundation",
    IngredientCategory.FEATURE: "Feature",
    IngredientCategory.FLAVOR: "Flavor",
    IngredientCategory.FINISH: "Finish",
}


# ──────────────────────────────────────────────────────────────────────────────
# Constrained field types
# ──────────────────────────────────────────────────────────────────────────────

# Letters, digits, whitespace and , . - ' & ( ) only. Blocks markup before
# names are interpolated into prompts or rendered.
SANITIZED_PATTERN = r"^[a-zA-Z0-9\s,.\-'&()]+$"
RECIPE_ID_PATTERN = r"^[a-zA-Z0-9\-]+$"
MAX_RECIPE_TEXT = 50_000
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50

SanitizedStr = Annotated[
    str,
    StringConstraints(min_length=1, max_length=100, pattern=SANITIZED_PATTERN),
]
RecipeText = Annotated[str, StringConstraints(min_length=1, max_length=MAX_RECIPE_TEXT)]
RecipeId = Annotated[
    str,
    StringConstraints(min_length=8, max_length=36, pattern=RECIPE_ID_PATTERN),
]


def _reject_bool_and_str(value: Any) -> Any:
    # Lax int would coerce true -> 1 and "4" -> 4
    if isinstance(value, (bool, str)):
        raise ValueError("Input should be a valid integer")
    return value


# Whole numbers 1-12; 4.0 passes, 2.5, "4" and true do not
Servings = Annotated[int, BeforeValidator(_reject_bool_and_str), Field(ge=1, le=12)]


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("Field may be omitted but not null")
    return value


# ──────────────────────────────────────────────────────────────────────────────
# Request schemas
# ──────────────────────────────────────────────────────────────────────────────

class IngredientRef(BaseModel):
    """An ingredient as sent by the client. Only name is used downstream."""

    model_config = ConfigDict(extra="ignore")

    name: SanitizedStr
    id: Optional[str] = None
    category: Optional[IngredientCategory] = None
    tags: Optional[list[str]] = None

    @field_validator("id", "category", "tags", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


class SelectedIngredients(BaseModel):
    model_config = ConfigDict(extra="ignore")

    fat: IngredientRef
    foundation: IngredientRef
    feature: IngredientRef
    flavor: IngredientRef
    finish: IngredientRef


class GenerateRecipeRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cuisine: SanitizedStr
    season: Season
    servings: Servings
    ingredients: SelectedIngredients


class SaveRecipeRequest(GenerateRecipeRequest):
    recipe_text: RecipeText


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    recipe_inputs: GenerateRecipeRequest
    recipe_text: Optional[RecipeText] = None
    rating: Rating

    @field_validator("recipe_text", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        return _reject_null(value)


class RecipeListQuery(BaseModel):
    """Query string of GET /api/recipes. Values arrive as strings."""

    model_config = ConfigDict(extra="ignore")

    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)


# ──────────────────────────────────────────────────────────────────────────────
# Read models (Supabase rows)
# ──────────────────────────────────────────────────────────────────────────────

class Cuisine(BaseModel):
    id: str
    name: str


class Ingredient(BaseModel):
    id: str
    name: str
    category: IngredientCategory
    tags: list[str] = []


class RecipeSummary(BaseModel):
    """A saved recipe without its text, as shown in recipe listings."""

    id: str
    cuisine: str
    season: Season
    servings: int
    ingredients: dict[str, Any]
    created_at: Optional[datetime] = None


class PantryIngredient(Ingredient):
    is_core_staple: bool = False


class PantryGroup(BaseModel):
    core_staples: list[PantryIngredient] = []
    nice_to_have: list[PantryIngredient] = []


class PantryResponse(BaseModel):
    ingredients: list[PantryIngredient]
    groups: dict[IngredientCategory, PantryGroup]


class CuisinesResponse(BaseModel):
    cuisines: list[Cuisine]


class CuisineIngredientsResponse(BaseModel):
    cuisine_id: str
    ingredients: list[Ingredient]


class RecipeListResponse(BaseModel):
    recipes: list[RecipeSummary]
    total: int
    limit: int
    offset: int


# ──────────────────────────────────────────────────────────────────────────────
# Response bodies
# ──────────────────────────────────────────────────────────────────────────────

class GenerateRecipeResponse(BaseModel):
    recipe: str


class SaveRecipeResponse(BaseModel):
    id: str


class FeedbackResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
    details: Optional[dict[str, list[str]]] = None
