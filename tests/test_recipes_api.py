"""
tests/test_recipes_api.py — POST /api/recipes, GET /api/recipes and GET /api/recipes/{id}
"""
from __future__ import annotations

from unittest.mock import patch

from app.core.errors import DatabaseError


# ──────────────────────────────────────────────────────────────────────────────
# Save
# ──────────────────────────────────────────────────────────────────────────────

@patch("app.routers.api.generate_short_id", return_value="abc123xyz789")
def test_save_returns_short_id(_gen, client, save_request):
    response = client.post("/api/recipes", json=save_request)
    assert response.status_code == 200
    assert response.json() == {"id": "abc123xyz789"}
    assert response.headers["X-RateLimit-Remaining"] == "59"


@patch("app.routers.api.generate_short_id", return_value="abc123xyz789")
def test_save_inserts_sanitized_row(_gen, client, save_request, mock_db):
    client.post("/api/recipes", json=save_request)
    mock_db.insert_recipe.assert_called_once()
    row = mock_db.insert_recipe.call_args.args[0]
    assert row["id"] == "abc123xyz789"
    assert row["cuisine"] == "Italian"
    assert row["season"] == "summer"
    assert row["servings"] == 4
    assert row["recipe_text"] == "Test recipe content here"
    assert row["ingredients"]["fat"] == {"name": "Olive oil"}


def test_save_missing_recipe_text_never_reaches_database(client, recipe_request, mock_db):
    response = client.post("/api/recipes", json=recipe_request)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request data"
    assert "recipe_text" in response.json()["details"]
    assert mock_db.insert_recipe.call_count == 0


def test_save_empty_recipe_text_rejected(client, save_request, mock_db):
    save_request["recipe_text"] = ""
    response = client.post("/api/recipes", json=save_request)
    assert response.status_code == 400
    mock_db.insert_recipe.assert_not_called()


def test_save_invalid_season_rejected(client, save_request):
    save_request["season"] = "autumn"
    response = client.post("/api/recipes", json=save_request)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request data"


def test_save_rate_limited(client, save_request, mock_db):
    for _ in range(60):
        assert client.post("/api/recipes", json=save_request).status_code == 200
    mock_db.insert_recipe.reset_mock()

    response = client.post("/api/recipes", json=save_request)
    assert response.status_code == 429
    assert "Too many requests" in response.json()["error"]
    mock_db.insert_recipe.assert_not_called()


def test_save_database_error_maps_to_fixed_message(client, save_request, mock_db):
    mock_db.insert_recipe.side_effect = DatabaseError("duplicate key value violates unique constraint")
    response = client.post("/api/recipes", json=save_request)
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save recipe"}


def test_save_unexpected_error_maps_to_fixed_message(client, save_request, mock_db):
    mock_db.insert_recipe.side_effect = ConnectionError("connection reset")
    response = client.post("/api/recipes", json=save_request)
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save recipe"}


# ──────────────────────────────────────────────────────────────────────────────
# Fetch
# ──────────────────────────────────────────────────────────────────────────────

def test_get_returns_recipe(client, mock_db):
    response = client.get("/api/recipes/test123456")
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == "test123456"
    assert data["cuisine"] == "Italian"
    assert data["recipe_text"] == "Test recipe"
    mock_db.get_recipe.assert_called_once_with("test123456")


def test_get_rate_limited(client, mock_db):
    for _ in range(60):
        client.get("/api/recipes/test123456")
    response = client.get("/api/recipes/test123456")
    assert response.status_code == 429
    assert response.headers["Retry-After"] == "60"


def test_get_short_id_rejected(client, mock_db):
    response = client.get("/api/recipes/abc")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid recipe ID format"}
    mock_db.get_recipe.assert_not_called()


def test_get_id_with_special_characters_rejected(client, mock_db):
    response = client.get("/api/recipes/test_1234!")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid recipe ID format"}


def test_get_missing_recipe_404(client, mock_db):
    mock_db.get_recipe.return_value = None
    response = client.get("/api/recipes/notfound1234")
    assert response.status_code == 404
    assert response.json() == {"error": "Recipe not found"}


def test_get_database_error_reported_as_not_found(client, mock_db):
    mock_db.get_recipe.side_effect = DatabaseError("invalid input syntax")
    response = client.get("/api/recipes/test123456")
    assert response.status_code == 404
    assert response.json() == {"error": "Recipe not found"}


def test_get_unexpected_error_500(client, mock_db):
    mock_db.get_recipe.side_effect = RuntimeError("boom")
    response = client.get("/api/recipes/test123456")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch recipe"}


# ──────────────────────────────────────────────────────────────────────────────
# List
# ──────────────────────────────────────────────────────────────────────────────

SUMMARY_ROW = {
    "id": "abc123xyz789",
    "cuisine": "Thai",
    "season": "winter",
    "servings": 2,
    "ingredients": {"fat": {"name": "Coconut oil"}},
    "created_at": "2025-01-15T10:00:00+00:00",
}


def test_list_returns_page_and_total(client, mock_db):
    mock_db.list_recipes.return_value = ([SUMMARY_ROW], 40)
    response = client.get("/api/recipes?limit=3")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 40
    assert (data["limit"], data["offset"]) == (3, 0)
    assert [r["id"] for r in data["recipes"]] == ["abc123xyz789"]
    assert "recipe_text" not in data["recipes"][0]
    assert response.headers["X-RateLimit-Remaining"] == "59"
    mock_db.list_recipes.assert_called_once_with(3, 0)


def test_list_defaults_to_first_page_of_twelve(client, mock_db):
    response = client.get("/api/recipes")
    assert response.status_code == 200
    assert response.json() == {"recipes": [], "total": 0, "limit": 12, "offset": 0}
    mock_db.list_recipes.assert_called_once_with(12, 0)


def test_list_passes_offset(client, mock_db):
    client.get("/api/recipes?limit=12&offset=24")
    mock_db.list_recipes.assert_called_once_with(12, 24)


def test_list_invalid_query_rejected(client, mock_db):
    response = client.get("/api/recipes?limit=500&offset=-1")
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Invalid request data"
    assert {"limit", "offset"} <= set(data["details"])
    mock_db.list_recipes.assert_not_called()


def test_list_rate_limited(client, mock_db):
    for _ in range(60):
        assert client.get("/api/recipes").status_code == 200
    response = client.get("/api/recipes")
    assert response.status_code == 429
    assert response.headers["Retry-After"] == "60"


def test_list_database_error_maps_to_fixed_message(client, mock_db):
    mock_db.list_recipes.side_effect = DatabaseError("permission denied")
    response = client.get("/api/recipes")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch recipes"}
