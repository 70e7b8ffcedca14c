from __future__ import annotations

from functools import lru_cache

from openai import AsyncOpenAI

from cosmic_notes.config import settings
from cosmic_notes.utils.logging import get_logger


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    """Return the shared async OpenAI client used for embeddings and synthesis.

    Cluster synthesis prompts carry every note under a tag, so the timeout is
    configurable separately from the SDK default. Falls back to OPENAI_API_KEY
    from the environment when `APP_OPENAI_API_KEY` is not set.
    """
    logger = get_logger(__name__)
    options = {
        "timeout": settings.openai_timeout_seconds,
        "max_retries": settings.openai_max_retries,
    }
    if settings.openai_api_key:
        logger.debug("Initializing OpenAI client with APP_OPENAI_API_KEY")
        return AsyncOpenAI(api_key=settings.openai_api_key, **options)
    logger.debug("Initializing OpenAI client from environment")
    return AsyncOpenAI(**options)
