"""
app/main.py — FastAPI application entry point
Includes: lifespan management (logging, rate-limit sweeper), CORS,
          slowapi + fixed-window rate limiting, security headers,
          startup validation, JSON error rendering.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.config import get_settings
from app.core.errors import TOO_MANY_REQUESTS, APIError
from app.core.logging import setup_logging
from app.core.rate_limiter import RateLimitStore, limiter
from app.routers import api

settings = get_settings()


# ──────────────────────────────────────────────────────────────────────────────
# Application Lifespan
# ──────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan: startup → yield → shutdown.
    Startup: initialize logging, validate credentials, start the sweeper
             that drops expired rate-limit entries.
    Shutdown: stop the sweeper.
    """
    setup_logging(settings.log_level)
    logger.info("GUT Recipes API starting up...")

    _validate_env()

    store: RateLimitStore = app.state.rate_limit_store
    store.start()

    logger.info("Startup complete.")
    yield
    store.stop()
    logger.info("Shutting down GUT Recipes API.")


def _validate_env() -> None:
    """
    Report missing credentials loudly. The app still starts; affected
    endpoints answer with their fixed 500 messages until they are set.
    """
    required = [
        ("gemini_api_key", "GEMINI_API_KEY"),
        ("supabase_url", "SUPABASE_URL"),
        ("supabase_anon_key", "SUPABASE_ANON_KEY"),
    ]
    missing = [env_name for attr, env_name in required if not getattr(settings, attr, None)]

    if missing:
        logger.critical(f"Missing env vars: {', '.join(missing)}")
        logger.warning("App will start but affected features will be unavailable until credentials are set.")


# ──────────────────────────────────────────────────────────────────────────────
# FastAPI App
# ──────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="GUT Recipes API",
    description=(
        "Recipe generation from five categorized ingredients: "
        "Fat, Foundation, Feature, Flavor, Finish."
    ),
    version="1.0.0",
    docs_url="/docs" if not settings.is_production else None,
    redoc_url=None,
    lifespan=lifespan,
)

# ── Rate limiting ─────────────────────────────────────────────────────────────
# Fixed-window store for the protected operations
app.state.rate_limit_store = RateLimitStore(
    sweep_interval_seconds=settings.rate_limit_sweep_seconds,
)

# slowapi for the catalogue reads
app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    lambda req, exc: JSONResponse(
        status_code=429,
        content={"error": TOO_MANY_REQUESTS},
    ),
)
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_content(),
        headers=exc.headers,
    )


# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "X-RateLimit-Remaining"],
)


# ── Security headers middleware ───────────────────────────────────────────────
@app.middleware("http")
async def add_security_headers(request: Request, call_next) -> Response:
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
    return response


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(api.router, prefix="/api", tags=["api"])


@app.get("/api/ping", tags=["health"])
async def ping():
    """Keep-alive probe. Does NOT call any external services."""
    return {"status": "ok", "version": "1.0.0"}
