"""
Domain-term glossary.

Transcription and summarization both get a list of names and terms that
speech recognition tends to get wrong. The glossary file holds one
"Category: term, term, ..." line per category; blank lines and lines
starting with '#' are ignored.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union


class GlossaryError(Exception):
    """Raised when a glossary file cannot be read."""

    pass


def parse_glossary(text: str) -> Dict[str, List[str]]:
    """
    Parse glossary text into an ordered category -> terms mapping.

    Lines without a colon go into an "Other" category. Terms keep their
    original spelling and any parenthesised hint, e.g. "Mews (often heard as muse)".
    """
    categories: Dict[str, List[str]] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        category, sep, terms = line.partition(":")
        if not sep:
            category, terms = "Other", line
        names = [term.strip() for term in terms.split(",") if term.strip()]
        if names:
            categories.setdefault(category.strip(), []).extend(names)
    return categories


def format_glossary(categories: Dict[str, List[str]]) -> str:
    """Render categories as 'Category: a, b' lines joined with ',\\n'."""
    return ",\n".join(f"{category}: {', '.join(terms)}" for category, terms in categories.items() if terms)


def load_glossary(path: Optional[Union[str, Path]]) -> str:
    """
    Load and format a glossary file; no path means an empty glossary.

    Raises:
        GlossaryError: If the file is given but cannot be read
    """
    if not path:
        return ""
    glossary_path = Path(path)
    try:
        text = glossary_path.read_text(encoding="utf-8")
    except OSError as e:
        raise GlossaryError(f"Failed to read glossary '{glossary_path}': {e}")
    return format_glossary(parse_glossary(text))


def transcription_prompt(glossary: str) -> str:
    """Prompt that primes the speech recognizer with the glossary terms."""
    if not glossary.strip():
        return ""
    return (
        "The following list contains domain-specific terms, tools, and names that are crucial for "
        f"accurate transcription which we are using and might be transcribed wrongly:\n{glossary}"
    )
