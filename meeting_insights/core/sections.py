"""
Markdown section extraction.

Deeper-insight documents are split into sections by level-3 headings
("### Title"). These helpers pull bullet items out of a named section and
strip named sections from a document body.
"""

from typing import Iterable, List

HEADING_PREFIX = "### "
BULLET_MARKERS = ("- ", "• ", "* ")

OPEN_ITEMS_SECTION = "Open Items"
COMPLETED_ITEMS_SECTION = "Completed Items"


def _heading_title(line: str):
    """Return the heading text of a level-3 heading line, or None."""
    stripped = line.strip()
    if stripped.startswith(HEADING_PREFIX):
        return stripped[len(HEADING_PREFIX) :].strip()
    return None


def _matches_any(title: str, prefixes: Iterable[str]) -> bool:
    lowered = title.lower()
    return any(lowered.startswith(prefix.lower()) for prefix in prefixes)


def _strip_bullet(line: str):
    stripped = line.strip()
    for marker in BULLET_MARKERS:
        if stripped.startswith(marker):
            return stripped[len(marker) :].strip()
    return None


def extract_section_items(document: str, section_title_prefix: str) -> List[str]:
    """
    Collect bullet items from the section whose heading starts with the prefix.

    Args:
        document: Markdown text
        section_title_prefix: Case-insensitive heading prefix, e.g. "Open Items"

    Returns:
        Non-empty bullet texts in document order, markers removed
    """
    items: List[str] = []
    inside = False

    for line in document.splitlines():
        title = _heading_title(line)
        if title is not None:
            inside = _matches_any(title, [section_title_prefix])
            continue
        if not inside:
            continue
        item = _strip_bullet(line)
        if item:
            items.append(item)

    return items


def strip_sections(document: str, title_prefixes: Iterable[str]) -> str:
    """
    Remove every section whose heading starts with one of the prefixes.

    The matching heading line and its body are dropped; everything else is
    kept in order. The result is trimmed.
    """
    prefixes = list(title_prefixes)
    kept: List[str] = []
    removing = False

    for line in document.splitlines():
        title = _heading_title(line)
        if title is not None:
            removing = _matches_any(title, prefixes)
        if not removing:
            kept.append(line)

    return "\n".join(kept).strip()
