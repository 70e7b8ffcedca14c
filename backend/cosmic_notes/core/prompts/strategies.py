"""Category → synthesis strategy table.

Every `NoteCategory` maps to exactly one strategy; the table is checked for
completeness at import time so an unmapped category can only show up as an
untrusted string, which `get_synthesis_strategy` rejects.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import ConfigDict

from cosmic_notes.core.errors import ConfigurationError, UnknownCategoryError
from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.models.note import NoteCategory

from . import instructions

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cosmic_notes.core.models.note import Note


class OutputKind(str, Enum):
    SUMMARY = "summary"
    ITEMS = "items"


class SynthesisMode(str, Enum):
    REORGANIZE = "reorganize"          # restructure without summarizing
    THEMES = "themes"                  # reorganize and bucket by theme
    CHRONOLOGICAL = "chronological"    # one dated entry per note
    ITEMS = "items"                    # discrete action items


class ModelTier(str, Enum):
    LIGHT = "light"
    STANDARD = "standard"
    ADVANCED = "advanced"


class SynthesisStrategy(AppBaseModel):
    """How one category's notes are rendered and what output is requested."""

    model_config = ConfigDict(frozen=True)

    category: NoteCategory
    output: OutputKind = OutputKind.SUMMARY
    mode: SynthesisMode
    tier: ModelTier = ModelTier.STANDARD
    system: str
    instruction: str
    output_key: str
    output_description: str
    include_title: bool = True
    include_date: bool = False
    include_id: bool = False

    def format_note(self, note: Note) -> str:
        lines: list[str] = []
        if self.include_title:
            lines.append(f"## Note Title: {note.title or 'Untitled'}")
        meta: list[str] = []
        if self.include_id:
            meta.append(f"ID: [{note.id}]")
        if self.include_date:
            meta.append(f"Date: {note.created_at:%m/%d/%y}")
        if meta:
            lines.append(" ".join(meta))
        lines.append(f"Content: {note.content}")
        return "\n".join(lines)

    def _ordered(self, notes: Sequence[Note]) -> list[Note]:
        if self.mode is SynthesisMode.CHRONOLOGICAL:
            return sorted(notes, key=lambda n: n.created_at)
        return list(notes)

    def render_prompt(self, notes: Sequence[Note]) -> str:
        body = "\n\n".join(self.format_note(n) for n in self._ordered(notes))
        return f"{self.instruction}\n\n{body}"

    def render_items_prompt(self, notes: Sequence[Note], existing_items: Sequence[str]) -> str:
        body = "\n\n".join(self.format_note(n) for n in self._ordered(notes))
        existing = "\n".join(f"- {item}" for item in existing_items) or "(none)"
        return f"{self.instruction}\n\n# Notes\n{body}\n\n# Existing Items\n{existing}"


def _reorganize(what: str) -> str:
    return (
        f"Please reorganize the following {what} into a single coherent document. "
        "Make it more readable, but do not summarize: keep all of the original content."
    )


def _chronological(what: str) -> str:
    return (
        f"Please organize the following {what} chronologically, one entry per note, "
        "keeping each note's date and id reference."
    )


SYNTHESIS_STRATEGIES: dict[NoteCategory, SynthesisStrategy] = {
    NoteCategory.TODO: SynthesisStrategy(
        category=NoteCategory.TODO,
        output=OutputKind.ITEMS,
        mode=SynthesisMode.ITEMS,
        tier=ModelTier.LIGHT,
        system=instructions.TODO,
        instruction=(
            "Convert these to-do notes into a single list of actionable items. "
            "Return only items that are not already in the existing items."
        ),
        output_key="items",
        output_description="The list of new actionable items",
    ),
    NoteCategory.SCRATCHPAD: SynthesisStrategy(
        category=NoteCategory.SCRATCHPAD,
        mode=SynthesisMode.REORGANIZE,
        system=instructions.SCRATCHPAD,
        instruction=_reorganize("scratchpad notes"),
        output_key="document",
        output_description="The organized scratchpad notes in markdown",
    ),
    NoteCategory.COLLECTION: SynthesisStrategy(
        category=NoteCategory.COLLECTION,
        mode=SynthesisMode.REORGANIZE,
        system=instructions.COLLECTION,
        instruction=_reorganize("collection notes"),
        output_key="collection",
        output_description="The organized collection in markdown",
    ),
    NoteCategory.RESEARCH: SynthesisStrategy(
        category=NoteCategory.RESEARCH,
        mode=SynthesisMode.REORGANIZE,
        tier=ModelTier.ADVANCED,
        system=instructions.RESEARCH,
        instruction=_reorganize("research notes"),
        output_key="research",
        output_description="The organized research notes in markdown",
        include_title=False,
    ),
    NoteCategory.LEARNING: SynthesisStrategy(
        category=NoteCategory.LEARNING,
        mode=SynthesisMode.REORGANIZE,
        tier=ModelTier.ADVANCED,
        system=instructions.LEARNING,
        instruction=_reorganize("learning notes"),
        output_key="learning",
        output_description="The organized study guide in markdown",
        include_title=False,
    ),
    NoteCategory.BRAINSTORM: SynthesisStrategy(
        category=NoteCategory.BRAINSTORM,
        mode=SynthesisMode.THEMES,
        tier=ModelTier.ADVANCED,
        system=instructions.BRAINSTORM,
        instruction=(
            "Please reorganize the following brainstorm notes into themes. "
            "Bucket every idea under the theme it belongs to and keep all of the ideas."
        ),
        output_key="brainstorm",
        output_description="The brainstorm ideas bucketed by theme in markdown",
        include_title=False,
    ),
    NoteCategory.JOURNAL: SynthesisStrategy(
        category=NoteCategory.JOURNAL,
        mode=SynthesisMode.CHRONOLOGICAL,
        system=instructions.JOURNAL,
        instruction=_chronological("journal entries"),
        output_key="journal",
        output_description="The chronological journal in markdown",
        include_date=True,
        include_id=True,
    ),
    NoteCategory.MEETING: SynthesisStrategy(
        category=NoteCategory.MEETING,
        mode=SynthesisMode.CHRONOLOGICAL,
        system=instructions.MEETING,
        instruction=_chronological("meeting notes"),
        output_key="meetings",
        output_description="The chronological meeting records in markdown",
        include_date=True,
        include_id=True,
    ),
    NoteCategory.FEEDBACK: SynthesisStrategy(
        category=NoteCategory.FEEDBACK,
        mode=SynthesisMode.CHRONOLOGICAL,
        system=instructions.FEEDBACK,
        instruction=_chronological("feedback notes"),
        output_key="feedback",
        output_description="The feedback report in markdown",
        include_date=True,
        include_id=True,
    ),
}

_unmapped = [c.value for c in NoteCategory if c not in SYNTHESIS_STRATEGIES]
if _unmapped:
    raise ConfigurationError(f"No synthesis strategy for categories: {_unmapped}")


def get_synthesis_strategy(category: NoteCategory | str) -> SynthesisStrategy:
    """Return the strategy for a category.

    Raises:
        UnknownCategoryError: for values outside `NoteCategory`
    """
    parsed = NoteCategory.parse(category)
    try:
        return SYNTHESIS_STRATEGIES[parsed]
    except KeyError as err:  # pragma: no cover - guarded by the import-time check
        raise UnknownCategoryError(category) from err
