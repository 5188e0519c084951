"""
app/core/logging.py — loguru structured JSON logging setup
Every LLM call, database operation and collaborator failure is logged
as a JSON record with component + operation keys.
"""
from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure loguru for structured JSON output to stdout.
    The hosting platform captures stdout; no file sinks.
    """
    # Remove default loguru handler
    logger.remove()

    logger.add(
        sys.stdout,
        level=log_level.upper(),
        format="{message}",
        serialize=True,       # loguru built-in JSON serialization
        backtrace=False,
        diagnose=False,       # no locals in tracebacks
        colorize=False,
    )


def _build_log_record(
    component: str,
    operation: str,
    extra: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build a base structured log record."""
    record: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "component": component,
        "operation": operation,
    }
    if extra:
        record.update(extra)
    return record


# ──────────────────────────────────────────────────────────────────────────────
# Event helpers
# ──────────────────────────────────────────────────────────────────────────────

def log_llm_call(
    model: str,
    operation: str,
    input_tokens: int,
    output_tokens: int,
    cost_usd: float,
    latency_ms: float,
) -> None:
    """Every Gemini call is logged with token usage and cost."""
    record = _build_log_record("gemini_client", operation, {
        "model": model,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "cost_usd": round(cost_usd, 8),
        "latency_ms": round(latency_ms, 2),
    })
    logger.info(json.dumps(record))


def log_db_operation(
    table: str,
    operation: str,  # insert | select
    success: bool,
    latency_ms: float,
    rows: Optional[int] = None,
    error: Optional[str] = None,
) -> None:
    """Every Supabase read/write is logged."""
    record = _build_log_record("supabase_client", operation, {
        "table": table,
        "success": success,
        "latency_ms": round(latency_ms, 2),
        "rows": rows,
        "error": error,
    })
    logger.info(json.dumps(record))


def log_rate_limited(
    operation: str,
    identifier: str,
    retry_after: int,
) -> None:
    """Quota rejections are expected traffic: info level, not an error."""
    record = _build_log_record("rate_limiter", operation, {
        "identifier": identifier,
        "retry_after": retry_after,
    })
    logger.info(json.dumps(record))


def log_error(
    component: str,
    operation: str,
    error: Exception,
    context: Optional[dict[str, Any]] = None,
) -> None:
    """Log a collaborator failure. Message only, no stack trace."""
    record = _build_log_record(component, operation, {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context or {},
    })
    logger.error(json.dumps(record))
