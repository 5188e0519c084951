"""
app/routers/api.py — Recipe API endpoints
Endpoints: /api/generate, /api/recipes (POST, GET), /api/recipes/{id},
           /api/feedback, /api/pantry, /api/cuisines,
           /api/cuisines/{id}/ingredients, /api/health
Protected operations run, in order: client IP → rate limit → validation →
collaborator. A request that fails either gate never touches Gemini or
Supabase.
"""

from typing import Any, Callable

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool
from loguru import logger

from app.clients.gemini_client import RecipeWriter, get_recipe_writer
from app.clients.supabase_client import RecipeDatabase, get_database
from app.config import get_settings
from app.core import logging as app_logging
from app.core.errors import (
    INVALID_RECIPE_ID,
    INVALID_REQUEST_DATA,
    OPERATION_FAILURES,
    RECIPE_NOT_FOUND,
    DatabaseError,
    InvalidRequestError,
    NotFoundError,
    OperationFailedError,
)
from app.core.rate_limiter import (
    RateLimitResult,
    RateLimitStore,
    enforce_rate_limit,
    get_rate_limit_store,
    limiter,
)
from app.models import (
    Cuisine,
    CuisineIngredientsResponse,
    CuisinesResponse,
    ErrorResponse,
    FeedbackResponse,
    GenerateRecipeResponse,
    PantryResponse,
    RecipeListResponse,
    RecipeSummary,
    SaveRecipeResponse,
)
from app.utils.pantry import group_pantry, to_ingredient, to_pantry_ingredients
from app.utils.short_id import generate_short_id
from app.utils.validators import (
    MALFORMED_JSON,
    ValidationResult,
    safe_parse_json,
    validate_category,
    validate_feedback_request,
    validate_generate_request,
    validate_list_query,
    validate_recipe_id,
    validate_save_request,
)

router = APIRouter()
settings = get_settings()

# OpenAPI shapes of the {"error", "details"?} bodies
ERROR_RESPONSES: dict[int, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 404, 429, 500)
}


# ──────────────────────────────────────────────────────────────────────────────
# Request shaping helpers
# ──────────────────────────────────────────────────────────────────────────────

def _set_quota_header(response: Response, quota: RateLimitResult) -> None:
    response.headers["X-RateLimit-Remaining"] = str(quota.remaining)


async def _validated_body(
    request: Request,
    validator: Callable[[Any], ValidationResult],
) -> Any:
    """Decode the JSON body and validate it; 400 with field details otherwise."""
    data = safe_parse_json(await request.body(), default=MALFORMED_JSON)
    if data is MALFORMED_JSON:
        raise InvalidRequestError(
            INVALID_REQUEST_DATA,
            details={"body": ["Malformed JSON body"]},
        )
    result = validator(data)
    if not result.ok:
        logger.debug(f"Rejected {request.url.path}: {sorted(result.errors)}")
        raise InvalidRequestError(INVALID_REQUEST_DATA, details=result.errors)
    return result.value


# ──────────────────────────────────────────────────────────────────────────────
# POST /api/generate — Gemini writes a recipe from the five ingredients
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/generate", response_model=GenerateRecipeResponse, responses=ERROR_RESPONSES)
async def generate_recipe(
    request: Request,
    response: Response,
    store: RateLimitStore = Depends(get_rate_limit_store),
    writer: RecipeWriter = Depends(get_recipe_writer),
) -> GenerateRecipeResponse:
    quota = enforce_rate_limit(request, "generate", store)
    body = await _validated_body(request, validate_generate_request)

    try:
        recipe = await writer.write_recipe(body)
    except Exception as exc:
        app_logging.log_error("recipes_api", "generate", exc, {"cuisine": body.cuisine})
        raise OperationFailedError(OPERATION_FAILURES["generate"]) from exc

    _set_quota_header(response, quota)
    return GenerateRecipeResponse(recipe=recipe)


# ──────────────────────────────────────────────────────────────────────────────
# POST /api/recipes — persist a generated recipe under a short public ID
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/recipes", response_model=SaveRecipeResponse, responses=ERROR_RESPONSES)
async def save_recipe(
    request: Request,
    response: Response,
    store: RateLimitStore = Depends(get_rate_limit_store),
    db: RecipeDatabase = Depends(get_database),
) -> SaveRecipeResponse:
    quota = enforce_rate_limit(request, "saveRecipe", store)
    body = await _validated_body(request, validate_save_request)

    recipe_id = generate_short_id()
    row = {
        "id": recipe_id,
        "cuisine": body.cuisine,
        "season": body.season.value,
        "servings": body.servings,
        "ingredients": body.ingredients.model_dump(mode="json", exclude_none=True),
        "recipe_text": body.recipe_text,
    }
    try:
        await run_in_threadpool(db.insert_recipe, row)
    except Exception as exc:
        app_logging.log_error("recipes_api", "save_recipe", exc, {"recipe_id": recipe_id})
        raise OperationFailedError(OPERATION_FAILURES["saveRecipe"]) from exc

    _set_quota_header(response, quota)
    return SaveRecipeResponse(id=recipe_id)


# ──────────────────────────────────────────────────────────────────────────────
# GET /api/recipes — newest saved recipes, paginated by limit / offset
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/recipes", response_model=RecipeListResponse, responses=ERROR_RESPONSES)
async def list_recipes(
    request: Request,
    response: Response,
    store: RateLimitStore = Depends(get_rate_limit_store),
    db: RecipeDatabase = Depends(get_database),
) -> RecipeListResponse:
    quota = enforce_rate_limit(request, "listRecipes", store)
    checked = validate_list_query(dict(request.query_params))
    if not checked.ok:
        raise InvalidRequestError(INVALID_REQUEST_DATA, details=checked.errors)
    page = checked.value

    try:
        rows, total = await run_in_threadpool(db.list_recipes, page.limit, page.offset)
        recipes = [RecipeSummary.model_validate(row) for row in rows]
    except Exception as exc:
        app_logging.log_error("recipes_api", "list_recipes", exc, {"offset": page.offset})
        raise OperationFailedError(OPERATION_FAILURES["listRecipes"]) from exc

    _set_quota_header(response, quota)
    return RecipeListResponse(
        recipes=recipes, total=total, limit=page.limit, offset=page.offset,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /api/recipes/{recipe_id} — shared recipe page data
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/recipes/{recipe_id}", responses=ERROR_RESPONSES)
async def get_recipe(
    recipe_id: str,
    request: Request,
    response: Response,
    store: RateLimitStore = Depends(get_rate_limit_store),
    db: RecipeDatabase = Depends(get_database),
) -> dict[str, Any]:
    quota = enforce_rate_limit(request, "getRecipe", store)
    if not validate_recipe_id(recipe_id).ok:
        raise InvalidRequestError(INVALID_RECIPE_ID)

    try:
        recipe = await run_in_threadpool(db.get_recipe, recipe_id)
    except DatabaseError as exc:
        # PostgREST errors on a lookup are reported as a miss
        logger.info(f"Recipe lookup error for {recipe_id!r}: {exc}")
        raise NotFoundError(RECIPE_NOT_FOUND) from exc
    except Exception as exc:
        app_logging.log_error("recipes_api", "get_recipe", exc, {"recipe_id": recipe_id})
        raise OperationFailedError(OPERATION_FAILURES["getRecipe"]) from exc

    if recipe is None:
        raise NotFoundError(RECIPE_NOT_FOUND)

    _set_quota_header(response, quota)
    return recipe


# ──────────────────────────────────────────────────────────────────────────────
# POST /api/feedback — thumbs up / down on a generated recipe
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/feedback", response_model=FeedbackResponse, responses=ERROR_RESPONSES)
async def submit_feedback(
    request: Request,
    response: Response,
    store: RateLimitStore = Depends(get_rate_limit_store),
    db: RecipeDatabase = Depends(get_database),
) -> FeedbackResponse:
    quota = enforce_rate_limit(request, "feedback", store)
    body = await _validated_body(request, validate_feedback_request)

    row = {
        "recipe_inputs": body.recipe_inputs.model_dump(mode="json", exclude_none=True),
        "recipe_text": body.recipe_text,
        "rating": body.rating.value,
    }
    try:
        await run_in_threadpool(db.insert_feedback, row)
    except DatabaseError as exc:
        app_logging.log_error("recipes_api", "feedback", exc)
        raise OperationFailedError(OPERATION_FAILURES["feedback_db"]) from exc
    except Exception as exc:
        app_logging.log_error("recipes_api", "feedback", exc)
        raise OperationFailedError(OPERATION_FAILURES["feedback"]) from exc

    _set_quota_header(response, quota)
    return FeedbackResponse(success=True)


# ──────────────────────────────────────────────────────────────────────────────
# Catalogue reads — slowapi per-IP limit, no body to validate
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/pantry", response_model=PantryResponse, responses=ERROR_RESPONSES)
@limiter.limit(settings.catalog_rate_limit)
async def pantry(
    request: Request,
    db: RecipeDatabase = Depends(get_database),
) -> PantryResponse:
    """Every ingredient, split per category into core staples and nice-to-haves."""
    try:
        rows = await run_in_threadpool(db.list_ingredients)
        ingredients = to_pantry_ingredients(rows)
    except Exception as exc:
        app_logging.log_error("recipes_api", "pantry", exc)
        raise OperationFailedError(OPERATION_FAILURES["pantry"]) from exc

    return PantryResponse(ingredients=ingredients, groups=group_pantry(ingredients))


@router.get("/cuisines", response_model=CuisinesResponse, responses=ERROR_RESPONSES)
@limiter.limit(settings.catalog_rate_limit)
async def cuisines(
    request: Request,
    db: RecipeDatabase = Depends(get_database),
) -> CuisinesResponse:
    try:
        rows = await run_in_threadpool(db.list_cuisines)
        return CuisinesResponse(
            cuisines=[Cuisine(id=str(row["id"]), name=row["name"]) for row in rows]
        )
    except Exception as exc:
        app_logging.log_error("recipes_api", "cuisines", exc)
        raise OperationFailedError(OPERATION_FAILURES["cuisines"]) from exc


@router.get(
    "/cuisines/{cuisine_id}/ingredients",
    response_model=CuisineIngredientsResponse,
    responses=ERROR_RESPONSES,
)
@limiter.limit(settings.catalog_rate_limit)
async def cuisine_ingredients(
    cuisine_id: str,
    request: Request,
    db: RecipeDatabase = Depends(get_database),
) -> CuisineIngredientsResponse:
    """Ingredients linked to one cuisine; ?category= narrows to one of the five."""
    category = request.query_params.get("category")
    if category is not None:
        checked = validate_category(category)
        if not checked.ok:
            raise InvalidRequestError(INVALID_REQUEST_DATA, details=checked.errors)
        category = checked.value.value

    try:
        rows = await run_in_threadpool(db.list_cuisine_ingredients, cuisine_id, category)
        ingredients = [to_ingredient(row) for row in rows]
    except Exception as exc:
        app_logging.log_error(
            "recipes_api", "cuisine_ingredients", exc, {"cuisine_id": cuisine_id},
        )
        raise OperationFailedError(OPERATION_FAILURES["cuisine_ingredients"]) from exc

    return CuisineIngredientsResponse(cuisine_id=cuisine_id, ingredients=ingredients)



# ──────────────────────────────────────────────────────────────────────────────
# GET /api/health — public, config presence only (no external calls)
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    checks = {
        "gemini_api_key_set": bool(settings.gemini_api_key),
        "supabase_configured": settings.supabase_configured,
        "rate_limit_entries": len(request.app.state.rate_limit_store),
    }
    healthy = checks["gemini_api_key_set"] and checks["supabase_configured"]
    return {
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
    }
