"""
app/utils/pantry.py — Core staples vs. nice-to-have classification
Core staples are the cross-cuisine workhorses every kitchen keeps stocked;
everything else is cuisine-specific.
"""
from __future__ import annotations

from typing import Any, Iterable

from app.models import (
    INGREDIENT_CATEGORIES,
    Ingredient,
    IngredientCategory,
    PantryGroup,
    PantryIngredient,
)

# Manually curated; matched exactly (case-insensitive), never by substring
CORE_STAPLES: dict[IngredientCategory, list[str]] = {
    IngredientCategory.FAT: [
        "vegetable oil",
        "olive oil",
        "extra virgin olive oil",
        "butter",
    ],
    IngredientCategory.FOUNDATION: [
        "onion",
        "garlic",
        "ginger",
        "carrot",
        "shallots",
        "tomato paste",
    ],
    IngredientCategory.FEATURE: [
        "white beans",
        "eggs",
        "chicken thighs",
        "ground beef",
        "lentils (red or yellow)",
    ],
    IngredientCategory.FLAVOR: [
        "vegetable stock",
        "coconut milk",
        "fish sauce",
        "thai curry paste (red)",
        "bbq sauce",
        "curry powder",
    ],
    IngredientCategory.FINISH: [
        "lemon juice",
        "lime juice",
        "red pepper flakes",
        "honey",
        "sesame seeds",
        "sherry vinegar",
    ],
}


def is_core_staple(name: str, category: IngredientCategory) -> bool:
    normalized = name.lower().strip()
    return normalized in CORE_STAPLES.get(IngredientCategory(category), [])


def to_ingredient(row: dict[str, Any]) -> Ingredient:
    """Supabase ingredient row → Ingredient, tags defaulting to [].

    Raises ValueError (pydantic ValidationError) for a category outside the
    five known ones.
    """
    return Ingredient(
        id=str(row["id"]),
        name=row["name"],
        category=row["category"],
        tags=row.get("tags") or [],
    )


def to_pantry_ingredients(rows: Iterable[dict[str, Any]]) -> list[PantryIngredient]:
    pantry = []
    for row in rows:
        ingredient = to_ingredient(row)
        pantry.append(PantryIngredient(
            **ingredient.model_dump(),
            is_core_staple=is_core_staple(ingredient.name, ingredient.category),
        ))
    return pantry


def group_pantry(
    ingredients: Iterable[PantryIngredient],
) -> dict[IngredientCategory, PantryGroup]:
    """Split each category into core staples and nice-to-haves, order kept."""
    groups = {category: PantryGroup() for category in INGREDIENT_CATEGORIES}
    for ingredient in ingredients:
        group = groups[ingredient.category]
        if ingredient.is_core_staple:
            group.core_staples.append(ingredient)
        else:
            group.nice_to_have.append(ingredient)
    return groups
