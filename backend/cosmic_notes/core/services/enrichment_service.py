from __future__ import annotations

from typing import TYPE_CHECKING

from cosmic_notes.config import settings
from cosmic_notes.core.models.note import NoteCategory, NoteZone
from cosmic_notes.core.schemas.enrichment import NoteEnrichmentResult, NoteFieldsResult
from cosmic_notes.core.services.embedding_service import build_note_text
from cosmic_notes.utils.logging import get_logger
from cosmic_notes.utils.openai_client import get_openai_client
from cosmic_notes.utils.text import extract_hashtags, normalize_tag_names

if TYPE_CHECKING:
    from openai import AsyncOpenAI

    from cosmic_notes.core.schemas.taxonomy import TagVocabulary

logger = get_logger(__name__)

CATEGORY_DESCRIPTIONS = {
    NoteCategory.TODO: "Tasks or action items to complete",
    NoteCategory.SCRATCHPAD: "Quick, unstructured thoughts and fragments",
    NoteCategory.COLLECTION: "Lists of things such as books, links, recipes or places",
    NoteCategory.BRAINSTORM: "Ideas being explored or generated",
    NoteCategory.JOURNAL: "Personal reflections and day-to-day entries",
    NoteCategory.MEETING: "Notes taken during or about a meeting",
    NoteCategory.RESEARCH: "Findings, sources and analysis on a topic",
    NoteCategory.LEARNING: "Study notes about a concept or skill",
    NoteCategory.FEEDBACK: "Feedback given or received",
}

ZONE_DESCRIPTIONS = {
    NoteZone.PERSONAL: "Personal life, hobbies or non-work activities",
    NoteZone.WORK: "Professional work, job tasks or career",
    NoteZone.OTHER: "Doesn't clearly fit personal or work",
}


def _describe(descriptions: dict) -> str:
    return "\n".join(f"- {key.value}: {text}" for key, text in descriptions.items())


async def generate_note_fields(*, content: str, client: AsyncOpenAI | None = None) -> NoteFieldsResult | None:
    """Generate a title, category and zone for a note's content.

    Returns None when the content is empty or the model call fails; callers
    fall back to the note's defaults.
    """
    text = (content or "").strip()
    if not text:
        return None

    client = client or get_openai_client()
    prompt = (
        "Generate a concise title and determine the most appropriate category "
        "and zone for the following note.\n\n"
        f"# Note\n{text}\n\n"
        f"# Categories\n{_describe(CATEGORY_DESCRIPTIONS)}\n\n"
        f"# Zones\n{_describe(ZONE_DESCRIPTIONS)}"
    )

    try:
        response = await client.responses.parse(
            model=settings.enrichment_model,
            input=[
                {
                    "role": "system",
                    "content": "You organize and categorize personal notes.",
                },
                {"role": "user", "content": prompt},
            ],
            reasoning={"effort": settings.enrichment_model_reasoning},
            text_format=NoteFieldsResult,
        )
    except Exception as err:  # pragma: no cover - network/parse errors
        logger.error("Failed to generate note fields: %s", err)
        return None

    result = getattr(response, "output_parsed", None)
    if result is None:
        logger.warning("Note field generation returned no parsed output")
        return None

    logger.info("Generated note fields - category: %s, zone: %s", result.category.value, result.zone.value)
    return result


async def suggest_note_tags(
    *,
    title: str | None,
    content: str | None,
    vocabulary: TagVocabulary | None = None,
    existing_tags: list[str] | None = None,
    client: AsyncOpenAI | None = None,
) -> list[str]:
    """Suggest tags for a note: its hashtags first, then model suggestions.

    The model is asked to prefer names from the existing vocabulary. A failed
    model call still returns the hashtags.
    """
    hashtags, cleaned = extract_hashtags(content or "")
    text = build_note_text(title, cleaned)
    if not text:
        return hashtags

    tag_vocab = vocabulary.tag_vocab if vocabulary else []
    current = normalize_tag_names(existing_tags)

    instructions = (
        "You are extracting concise organizational tags from a personal note. "
        "Return JSON only, matching the provided schema.\n"
        "- Identify 3-5 tags; include some that are more and some that are less specific.\n"
        "- Prefer reusing tags from tag_vocab; only propose a new tag if no existing tag fits.\n"
        "- Keep tags lowercase and short (people, places, projects, topics)."
    )
    context = {"tag_vocab": tag_vocab, "existing_tags": current}
    composed_input = "NOTE:\n" + text + "\n\n" + "CONTEXT:\n" + str(context)

    client = client or get_openai_client()
    try:
        response = await client.responses.parse(
            model=settings.enrichment_model,
            input=[
                {"role": "system", "content": instructions},
                {"role": "user", "content": composed_input},
            ],
            reasoning={"effort": settings.enrichment_model_reasoning},
            text={"verbosity": "low"},
            text_format=NoteEnrichmentResult,
        )
    except Exception as err:  # pragma: no cover - network/parse errors
        logger.error("Failed to suggest tags: %s", err)
        return hashtags

    result = getattr(response, "output_parsed", None)
    suggested = result.tags if result else []
    merged = normalize_tag_names(hashtags + list(suggested))
    logger.debug("Suggested tags: %s", merged)
    return merged
