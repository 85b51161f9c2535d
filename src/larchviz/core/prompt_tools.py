"""Helpers for hand-editing prompts and exporting a session.

Suggestions
-----------
``SUGGESTIONS`` is a small catalogue of technical terms grouped by category
(planting, material, structural, atmosphere). :func:`append_suggestion` adds
one to a prompt being edited, joining with a comma unless the text already
ends a sentence.

Export
------
:func:`export_session` renders a collection as the plain-text document users
download to keep a record of a session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .models import PromptEntity

SEPARATOR = "-" * 50


@dataclass(frozen=True)
class Suggestion:
    label: str
    category: str


SUGGESTIONS: list[Suggestion] = [
    Suggestion("Acer palmatum", "Planting"),
    Suggestion("Betula pendula", "Planting"),
    Suggestion("Miscanthus sinensis", "Planting"),
    Suggestion("Lavandula", "Planting"),
    Suggestion("Salvia nemorosa", "Planting"),
    Suggestion("Corten Steel", "Material"),
    Suggestion("Limestone Pavers", "Material"),
    Suggestion("Poured Concrete", "Material"),
    Suggestion("Reclaimed Timber", "Material"),
    Suggestion("Basalt Setts", "Material"),
    Suggestion("Bioswale", "Structural"),
    Suggestion("Rain Garden", "Structural"),
    Suggestion("Sunken Terrace", "Structural"),
    Suggestion("Gabion Wall", "Structural"),
    Suggestion("Infinity Edge", "Structural"),
    Suggestion("Dappled Shade", "Atmosphere"),
    Suggestion("Golden Hour", "Atmosphere"),
    Suggestion("Misty Morning", "Atmosphere"),
    Suggestion("Twilight Glow", "Atmosphere"),
]


def suggestions_by_category() -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for suggestion in SUGGESTIONS:
        grouped.setdefault(suggestion.category, []).append(suggestion.label)
    return grouped


def append_suggestion(text: str, suggestion: str) -> str:
    """Append *suggestion* to prompt *text*.

    Args:
        text: Current prompt text.
        suggestion: Term to add.

    Returns:
        ``"<text>, <suggestion>"``, or ``"<text> <suggestion>"`` when the text
        already ends with a period.

    Examples:
        >>> append_suggestion("A courtyard garden", "Golden Hour")
        'A courtyard garden, Golden Hour'
        >>> append_suggestion("A courtyard garden.", "Golden Hour")
        'A courtyard garden. Golden Hour'
    """
    trimmed = text.strip()
    joiner = "" if trimmed.endswith(".") else ","
    return f"{trimmed}{joiner} {suggestion}"


def export_session(
    entities: list[PromptEntity],
    scope: str,
    style: str,
    category: str,
    now: datetime | None = None,
) -> str:
    """Render *entities* as a plain-text session document.

    Returns an empty string for an empty collection.
    """
    if not entities:
        return ""

    now = now or datetime.now()
    lines = [
        f"LA Visual Prompt Engine - {scope.upper()} SESSION",
        f"Date: {now:%Y-%m-%d %H:%M:%S}",
        f"Design Style: {style}",
        f"Category: {category}",
        SEPARATOR,
        "",
    ]
    for index, entity in enumerate(entities, start=1):
        lines += [
            f"[{index}] {entity.title}",
            f"Perspective: {entity.perspective}",
            f"Technical Details: {', '.join(entity.technical_details)}",
            "",
            "PROMPT:",
            entity.content,
            SEPARATOR,
            "",
        ]
    return "\n".join(lines) + "\n"


def export_filename(scope: str, now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"la-visual-{scope}-session-{int(now.timestamp() * 1000)}.txt"
