"""
app/core/errors.py — API error taxonomy
Each error renders as {"error": message} (+ "details" for field errors).
Messages are fixed strings; collaborator exception text never reaches
the client.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import status


class APIError(Exception):
    """Base class for errors rendered by the app-level exception handler."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.headers = headers or {}

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            content["details"] = self.details
        return content


class RateLimitExceededError(APIError):
    """Quota exhausted for this identifier; retry after the window resets."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after: int):
        super().__init__(
            TOO_MANY_REQUESTS,
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Remaining": "0",
            },
        )
        self.retry_after = retry_after


class InvalidRequestError(APIError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(APIError):
    status_code = status.HTTP_404_NOT_FOUND


class OperationFailedError(APIError):
    """A collaborator (Gemini, Supabase) failed; message is operation-specific."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DatabaseError(Exception):
    """Supabase reported an error for a query."""


# ── Fixed client-facing messages ──────────────────────────────────────────────

TOO_MANY_REQUESTS = "Too many requests. Please try again later."
INVALID_REQUEST_DATA = "Invalid request data"
INVALID_RECIPE_ID = "Invalid recipe ID format"
RECIPE_NOT_FOUND = "Recipe not found"

OPERATION_FAILURES = {
    "generate": "Failed to generate recipe",
    "saveRecipe": "Failed to save recipe",
    "getRecipe": "Failed to fetch recipe",
    "listRecipes": "Failed to fetch recipes",
    "feedback": "Failed to process feedback",
    "feedback_db": "Failed to save feedback",
    "pantry": "Failed to fetch ingredients",
    "cuisines": "Failed to fetch cuisines",
    "cuisine_ingredients": "Failed to fetch ingredients",
}
