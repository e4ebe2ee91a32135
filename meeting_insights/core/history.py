"""
Historical deeper-insight corpus loading.

Prior deeper-insight documents are read through a repository abstraction so
the flat-file store can be swapped for another keyed store. Loading selects
a capped, date-ordered slice of history, extracts the open and completed
items from each document and builds a sanitized combined context.
"""

import logging
import re
from pathlib import Path
from typing import List, Literal, Protocol, Union

from .sections import COMPLETED_ITEMS_SECTION, OPEN_ITEMS_SECTION, extract_section_items, strip_sections
from .timing import timer
from .types import UNKNOWN_DATE_TAG, HistoryLoadResult, InsightDocument

logger = logging.getLogger(__name__)

DEEPER_INSIGHTS_SUFFIX = "-deeper-insights.md"
DOCUMENT_SEPARATOR = "\n\n---\n\n"

_DATE_TAG = re.compile(r"^(\d{4}_\d{2}_\d{2})")


def parse_date_tag(filename: str) -> str:
    """Leading YYYY_MM_DD tag of a filename, or 0000_00_00 if there is none."""
    match = _DATE_TAG.match(filename)
    return match.group(1) if match else UNKNOWN_DATE_TAG


class InsightRepository(Protocol):
    """Anything that can list stored deeper-insight documents by name and read one."""

    def list_names(self) -> List[str]: ...

    def read(self, filename: str) -> InsightDocument: ...


class FileInsightRepository:
    """
    Deeper-insight documents stored as flat markdown files in one directory.

    Only files whose names end with the deeper-insights suffix are listed.
    OSError propagates from list_names when the directory is missing or
    unreadable; read raises OSError or UnicodeDecodeError for a bad file.
    """

    def __init__(self, directory: Union[str, Path], suffix: str = DEEPER_INSIGHTS_SUFFIX):
        self.directory = Path(directory)
        self.suffix = suffix

    def list_names(self) -> List[str]:
        return sorted(entry.name for entry in self.directory.iterdir() if entry.is_file() and entry.name.endswith(self.suffix))

    def read(self, filename: str) -> InsightDocument:
        content = (self.directory / filename).read_text(encoding="utf-8")
        return InsightDocument(filename=filename, date_tag=parse_date_tag(filename), raw_content=content)


def select_names(
    names: List[str],
    current_date_tag: str,
    max_documents: int,
    order: Literal["oldest", "newest"] = "oldest",
) -> List[str]:
    """
    Drop names from the current day, sort by date tag and keep at most
    max_documents.

    "oldest" keeps the first N after an ascending sort; "newest" keeps the
    last N. Either way the result stays in ascending date order. Sorting is
    lexical on the zero-padded tag, which is chronological.
    """
    candidates = [name for name in names if not (current_date_tag and name.startswith(current_date_tag))]
    candidates.sort(key=parse_date_tag)
    if max_documents <= 0:
        return []
    if order == "newest":
        return candidates[-max_documents:]
    return candidates[:max_documents]


def sanitize_document(document: InsightDocument) -> str:
    """Document body without its open/completed item sections, labelled with its filename."""
    body = strip_sections(document.raw_content, [OPEN_ITEMS_SECTION, COMPLETED_ITEMS_SECTION])
    return f"### Source: {document.filename}\n\n{body}"


@timer
def load_history(
    source: Union[str, Path, InsightRepository],
    current_date_tag: str,
    max_documents: int,
    order: Literal["oldest", "newest"] = "oldest",
) -> HistoryLoadResult:
    """
    Load prior deeper-insight documents and extract their items.

    Args:
        source: Directory path or repository of deeper-insight documents
        current_date_tag: Today's YYYY_MM_DD tag; documents prefixed with it are skipped
        max_documents: Maximum number of documents to use
        order: Which end of the ascending date order to keep

    Returns:
        HistoryLoadResult. An unlistable store yields an empty result; a
        single unreadable document is skipped with a warning.
    """
    repository = FileInsightRepository(source) if isinstance(source, (str, Path)) else source

    try:
        names = repository.list_names()
    except OSError as e:
        logger.warning(f"No historical insights available ({e}); continuing without history")
        return HistoryLoadResult()

    documents: List[InsightDocument] = []
    for name in select_names(names, current_date_tag, max_documents, order):
        try:
            documents.append(repository.read(name))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable history document {name}: {e}")

    open_items: List[str] = []
    closed_items: List[str] = []
    sanitized: List[str] = []
    for document in documents:
        open_items.extend(extract_section_items(document.raw_content, OPEN_ITEMS_SECTION))
        closed_items.extend(extract_section_items(document.raw_content, COMPLETED_ITEMS_SECTION))
        sanitized.append(sanitize_document(document))

    logger.info(f"Loaded {len(documents)} historical insight document(s): {len(open_items)} open, {len(closed_items)} completed items")

    return HistoryLoadResult(
        documents=documents,
        historical_open_items=open_items,
        historical_closed_items=closed_items,
        combined_sanitized_content=DOCUMENT_SEPARATOR.join(sanitized),
    )
