from __future__ import annotations

import logging
import sys
from typing import Any

from cosmic_notes.config import settings


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process or a gather job."""

    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout
    )

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    # Every PostgREST call is an httpx request; a gather pass makes hundreds
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logging.info("Logging configured", extra={"level": level or settings.log_level})


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)


def cluster_context(tag: str | int | None, category: str | None = None, **extra: Any) -> dict[str, Any]:
    """Build the `extra=` payload attached to clustering log records."""
    context: dict[str, Any] = {"tag": tag}
    if category is not None:
        context["category"] = category
    context.update(extra)
    return context
