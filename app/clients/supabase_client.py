"""
app/clients/supabase_client.py — Supabase (Postgres) persistence client
Tables: recipes, feedback, ingredients, cuisines, cuisine_ingredients.
Errors reported by PostgREST are re-raised as DatabaseError so routes can
tell "database said no" apart from unexpected failures.
"""
from __future__ import annotations

import time
from functools import lru_cache
from typing import Any, Callable, Optional

from loguru import logger
from postgrest.exceptions import APIError
from supabase import Client, create_client

from app.config import get_settings
from app.core import logging as app_logging
from app.core.errors import DatabaseError

settings = get_settings()

RECIPES_TABLE = "recipes"
FEEDBACK_TABLE = "feedback"
INGREDIENTS_TABLE = "ingredients"
CUISINES_TABLE = "cuisines"
CUISINE_INGREDIENTS_TABLE = "cuisine_ingredients"

RECIPE_SUMMARY_COLUMNS = "id, cuisine, season, servings, ingredients, created_at"
INGREDIENT_COLUMNS = "id, name, category, tags"


class RecipeDatabase:
    """Synchronous wrapper; routes call it through run_in_threadpool."""

    def __init__(self, client: Optional[Client]) -> None:
        self._client = client

    def _execute(
        self,
        table: str,
        operation: str,
        build: Callable[[Client], Any],
    ) -> Any:
        """Run one PostgREST query, log it, and return the response."""
        if self._client is None:
            raise DatabaseError("Supabase is not configured")

        start_time = time.monotonic()
        try:
            response = build(self._client).execute()
        except APIError as exc:
            latency_ms = (time.monotonic() - start_time) * 1000
            app_logging.log_db_operation(
                table, operation, success=False, latency_ms=latency_ms, error=exc.message,
            )
            raise DatabaseError(exc.message or "Database error") from exc

        latency_ms = (time.monotonic() - start_time) * 1000
        app_logging.log_db_operation(
            table, operation, success=True, latency_ms=latency_ms,
            rows=len(response.data or []),
        )
        return response

    def _rows(
        self,
        table: str,
        operation: str,
        build: Callable[[Client], Any],
    ) -> list[dict[str, Any]]:
        return self._execute(table, operation, build).data or []

    # ── recipes ───────────────────────────────────────────────────────────────

    def insert_recipe(self, row: dict[str, Any]) -> None:
        self._execute(
            RECIPES_TABLE, "insert",
            lambda c: c.table(RECIPES_TABLE).insert(row),
        )

    def get_recipe(self, recipe_id: str) -> Optional[dict[str, Any]]:
        """Return the recipe row, or None if no row has this id."""
        rows = self._rows(
            RECIPES_TABLE, "select",
            lambda c: c.table(RECIPES_TABLE).select("*").eq("id", recipe_id).limit(1),
        )
        return rows[0] if rows else None

    def list_recipes(self, limit: int, offset: int) -> tuple[list[dict[str, Any]], int]:
        """Newest first, without recipe_text. Returns (page, total row count)."""
        response = self._execute(
            RECIPES_TABLE, "select",
            lambda c: c.table(RECIPES_TABLE)
            .select(RECIPE_SUMMARY_COLUMNS, count="exact")
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1),
        )
        rows = response.data or []
        total = response.count if response.count is not None else len(rows)
        return rows, total

    # ── feedback ──────────────────────────────────────────────────────────────

    def insert_feedback(self, row: dict[str, Any]) -> None:
        self._execute(
            FEEDBACK_TABLE, "insert",
            lambda c: c.table(FEEDBACK_TABLE).insert(row),
        )

    # ── catalogue ─────────────────────────────────────────────────────────────

    def list_ingredients(self) -> list[dict[str, Any]]:
        return self._rows(
            INGREDIENTS_TABLE, "select",
            lambda c: c.table(INGREDIENTS_TABLE)
            .select(INGREDIENT_COLUMNS)
            .order("name"),
        )

    def list_cuisines(self) -> list[dict[str, Any]]:
        return self._rows(
            CUISINES_TABLE, "select",
            lambda c: c.table(CUISINES_TABLE).select("id, name").order("name"),
        )

    def list_cuisine_ingredients(
        self,
        cuisine_id: str,
        category: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """
        Ingredients linked to a cuisine, optionally one category only.
        Two queries: link table for the ids, then the ingredients themselves.
        """
        links = self._rows(
            CUISINE_INGREDIENTS_TABLE, "select",
            lambda c: c.table(CUISINE_INGREDIENTS_TABLE)
            .select("ingredient_id")
            .eq("cuisine_id", cuisine_id),
        )
        ingredient_ids = [link["ingredient_id"] for link in links]
        if not ingredient_ids:
            return []

        def build(c: Client) -> Any:
            query = c.table(INGREDIENTS_TABLE).select(INGREDIENT_COLUMNS)
            if category is not None:
                query = query.eq("category", category)
            return query.in_("id", ingredient_ids).order("name")

        return self._rows(INGREDIENTS_TABLE, "select", build)


@lru_cache()
def get_database() -> RecipeDatabase:
    """
    FastAPI dependency: one client per process. Without credentials every
    query raises DatabaseError instead of failing at import time.
    """
    if not settings.supabase_configured:
        logger.warning(
            "Supabase credentials not found. Set SUPABASE_URL and SUPABASE_ANON_KEY."
        )
        return RecipeDatabase(client=None)
    return RecipeDatabase(create_client(settings.supabase_url, settings.supabase_anon_key))
