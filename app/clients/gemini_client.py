"""
app/clients/gemini_client.py — Google Gemini recipe writer
One call per recipe: system instruction + a short user message listing the
cuisine, season, servings and the five ingredients. No retry here; a
failed call is surfaced to the route, which maps it to a fixed message.
"""
from __future__ import annotations

import time
from functools import lru_cache
from typing import Any, Optional

import google.generativeai as genai

from app.config import get_settings
from app.core import logging as app_logging
from app.models import CATEGORY_LABELS, INGREDIENT_CATEGORIES, GenerateRecipeRequest

settings = get_settings()


RECIPE_SYSTEM_PROMPT = """You are a recipe writer for GUT (Grand Unified Theory of Cooking), a meal planning app. Write simple, confident recipes in the style of a food magazine.

## The Framework

Every recipe is built from five components:

- **Fat:** The cooking medium (oil, butter, etc.), goes in first
- **Foundation:** Aromatics and base vegetables, builds the flavor base
- **Feature:** The star of the dish
- **Flavor:** Liquids, sauces, braising medium, brings it together
- **Finish:** Brightness, balance, contrast, added right before serving

You will receive these five ingredients along with cuisine, season, and serving count.

## Your Task

Write a complete recipe that:

1. Uses ALL five provided ingredients appropriately
2. Feels authentic to the specified cuisine
3. Matches the season (hearty in winter, light in summer)
4. Is achievable for a home cook on a weeknight (unless it's clearly a braise or stew)
5. Uses only ingredients available at a typical supermarket

## Output Format

### [Recipe Title]

[One to two sentence headnote.]

**Ingredients**

- [Quantity] [ingredient], [prep if needed]

**Instructions**

1. [5-6 steps total. Combine related actions. Include times and sensory cues.]

[Final line: accompaniment suggestion, casual tone]

## Constraints

- Do not add ingredients beyond the five provided, EXCEPT kosher salt, black pepper, water and the appropriate starch or accompaniment
- If an ingredient doesn't quite fit the cuisine, make it work
- Never apologize or hedge
- Never explain the five-component framework to the reader. Just write the recipe."""


# ──────────────────────────────────────────────────────────────────────────────
# Prompt + cost helpers
# ──────────────────────────────────────────────────────────────────────────────

def build_user_message(request: GenerateRecipeRequest) -> str:
    """Cuisine / capitalised season / servings, then one line per ingredient."""
    header = [
        f"Cuisine: {request.cuisine}",
        f"Season: {request.season.value.capitalize()}",
        f"Servings: {request.servings}",
    ]
    picks = [
        f"{CATEGORY_LABELS[category]}: {getattr(request.ingredients, category.value).name}"
        for category in INGREDIENT_CATEGORIES
    ]
    return "\n".join(header) + "\n\n" + "\n".join(picks)


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """USD cost of a call. Unknown models are priced as zero."""
    pricing = settings.gemini_pricing.get(model)
    if pricing is None:
        return 0.0
    return (input_tokens * pricing["input"]) + (output_tokens * pricing["output"])


def extract_text(response: Any) -> str:
    """Concatenate the text parts of the first candidate ("" if none)."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(getattr(part, "text", "") or "" for part in parts)


# ──────────────────────────────────────────────────────────────────────────────
# Client
# ──────────────────────────────────────────────────────────────────────────────

class RecipeWriter:
    """Thin async wrapper over a configured GenerativeModel."""

    def __init__(
        self,
        api_key: str,
        model: str,
        max_output_tokens: int,
        system_prompt: str = RECIPE_SYSTEM_PROMPT,
        generative_model: Optional[Any] = None,
    ) -> None:
        self.model = model
        if generative_model is None:
            genai.configure(api_key=api_key)
            generative_model = genai.GenerativeModel(
                model,
                system_instruction=system_prompt,
                generation_config=genai.types.GenerationConfig(
                    max_output_tokens=max_output_tokens,
                ),
            )
        self._model = generative_model

    async def write(self, user_message: str) -> str:
        """Generate one recipe. Provider errors propagate unchanged."""
        start_time = time.monotonic()
        response = await self._model.generate_content_async(user_message)
        latency_ms = (time.monotonic() - start_time) * 1000

        usage = getattr(response, "usage_metadata", None)
        input_tokens = getattr(usage, "prompt_token_count", 0) or 0
        output_tokens = getattr(usage, "candidates_token_count", 0) or 0
        app_logging.log_llm_call(
            model=self.model,
            operation="generate_recipe",
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=calculate_cost(self.model, input_tokens, output_tokens),
            latency_ms=latency_ms,
        )
        return extract_text(response)

    async def write_recipe(self, request: GenerateRecipeRequest) -> str:
        return await self.write(build_user_message(request))


@lru_cache()
def get_recipe_writer() -> RecipeWriter:
    """FastAPI dependency: one RecipeWriter per process."""
    return RecipeWriter(
        api_key=settings.gemini_api_key,
        model=settings.gemini_recipe_model,
        max_output_tokens=settings.recipe_max_output_tokens,
    )
