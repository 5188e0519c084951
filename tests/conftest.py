"""
tests/conftest.py — Shared pytest fixtures
"""
from __future__ import annotations

import os

# Settings are cached on first import; pin them before any app module loads.
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.clients.gemini_client import RecipeWriter, get_recipe_writer
from app.clients.supabase_client import RecipeDatabase, get_database
from app.core.rate_limiter import RateLimitStore, get_rate_limit_store, limiter
from app.main import app

START_MS = 1_700_000_000_000.0

VALID_RECIPE_REQUEST = {
    "cuisine": "Italian",
    "season": "summer",
    "servings": 4,
    "ingredients": {
        "fat": {"name": "Olive oil"},
        "foundation": {"name": "Garlic and onion"},
        "feature": {"name": "Chicken breast"},
        "flavor": {"name": "White wine"},
        "finish": {"name": "Fresh basil"},
    },
}

SAVED_RECIPE_ROW = {
    "id": "test123456",
    "cuisine": "Italian",
    "season": "summer",
    "servings": 4,
    "ingredients": {},
    "recipe_text": "Test recipe",
    "created_at": "2024-01-01T00:00:00Z",
}


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: float = START_MS) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> RateLimitStore:
    return RateLimitStore(clock=clock)


@pytest.fixture
def recipe_request() -> dict:
    return copy.deepcopy(VALID_RECIPE_REQUEST)


@pytest.fixture
def save_request(recipe_request) -> dict:
    return {**recipe_request, "recipe_text": "Test recipe content here"}


@pytest.fixture
def feedback_request(recipe_request) -> dict:
    return {
        "recipe_inputs": recipe_request,
        "recipe_text": "Test recipe content",
        "rating": "positive",
    }


@pytest.fixture
def mock_db() -> MagicMock:
    db = MagicMock(spec=RecipeDatabase)
    db.insert_recipe.return_value = None
    db.insert_feedback.return_value = None
    db.get_recipe.return_value = dict(SAVED_RECIPE_ROW)
    db.list_ingredients.return_value = []
    db.list_cuisines.return_value = []
    db.list_cuisine_ingredients.return_value = []
    db.list_recipes.return_value = ([], 0)
    return db


@pytest.fixture
def mock_writer() -> MagicMock:
    writer = MagicMock(spec=RecipeWriter)
    writer.write_recipe = AsyncMock(
        return_value="### Test Recipe\n\nA delicious test recipe."
    )
    return writer


@pytest.fixture
def client(store, mock_db, mock_writer):
    limiter.reset()
    app.dependency_overrides[get_rate_limit_store] = lambda: store
    app.dependency_overrides[get_database] = lambda: mock_db
    app.dependency_overrides[get_recipe_writer] = lambda: mock_writer
    yield TestClient(app)
    app.dependency_overrides.clear()
