"""
Prompt construction for the summary and deeper-insight stages.

Also owns the "## Meeting Date:" header contract shared by generated
documents, and the YYYY_MM_DD date tag used to name them.
"""

from datetime import datetime
from typing import Dict, List, Optional

from .types import ReconciliationResult

DATE_HEADER_MARKER = "## Meeting Date:"

INSIGHT_SECTIONS = [
    "Executive Summary",
    "Key Risks & Concerns",
    "Patterns & Trends",
    "Open Items (Carried Forward)",
    "Completed Items",
    "New Action Items",
    "Recommendations",
]


def format_meeting_date(now: datetime) -> str:
    """Full date in the form 'Wednesday, July 2, 2025'."""
    return f"{now:%A}, {now:%B} {now.day}, {now.year}"


def date_header(now: datetime) -> str:
    return f"{DATE_HEADER_MARKER} {format_meeting_date(now)}"


def date_tag(now: datetime) -> str:
    """Zero-padded YYYY_MM_DD tag; lexical order equals chronological order."""
    return now.strftime("%Y_%m_%d")


def ensure_date_header(text: str, now: datetime) -> str:
    """Prepend a date header unless the text already starts with one."""
    if text.lstrip().startswith(DATE_HEADER_MARKER):
        return text
    return f"{date_header(now)}\n\n{text.lstrip()}"


def build_summary_messages(live_transcript: str, accurate_transcript: str, glossary: str, now: datetime) -> List[Dict[str, str]]:
    """
    Messages asking for a corrected, structured meeting summary.

    The live-caption transcript carries trustworthy speaker labels with
    inaccurate text; the accurate transcript carries correct text without
    speakers. The glossary lists terms that transcription tends to mangle.
    """
    glossary_block = f"Pay special attention to the following correct terms and names:\n{glossary}\n" if glossary.strip() else ""

    system_prompt = f"""{date_header(now)}

You are provided with two transcripts from the same meeting:

- **Transcript 1 (Live Captioning)**: Contains speaker labels but may have inaccuracies. The speaker labels are always correct, but the content may not be.
- **Transcript 2 (Accurate Transcript)**: Contains accurate text but lacks speaker labels.

Certain technical terms, tools and participant names may have been transcribed incorrectly.
{glossary_block}
### Instructions:

1. **Cross-reference** both transcripts:
   - Use **Transcript 1** to identify who said what.
   - Use **Transcript 2** to verify and correct the content.

2. **Evaluate carefully**:
   - Trust the speaker labels in Transcript 1.
   - Treat the content of Transcript 1 as unreliable.
   - Transcript 2 is generally accurate but may still contain minor errors.
   - Use context, the correct terms and names above, and your judgment to settle conflicts.

3. **Exclude** greetings, small talk and irrelevant conversation.

4. **Output** markdown following this structure exactly:

{DATE_HEADER_MARKER} <full date>

## Summary:
A concise summary of the entire meeting (50 words max), including brief mentions of each participant's contributions.

## Topics:
All relevant information organised by topic rather than by participant, as numbered topics with bulleted details. Do not repeat action points here.

## Action Points:
Every actionable task grouped by participant name, as nested bullets. Include small or trivial tasks."""

    user_prompt = f"""Transcript 1 (Live Captioning):
{live_transcript.strip() or "(not available)"}

Transcript 2 (Accurate Transcript):
{accurate_transcript.strip() or "(not available)"}"""

    return [{"role": "system", "content": system_prompt}, {"role": "user", "content": user_prompt}]


def _bullets(items: List[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def build_insight_messages(summary: str, reconciliation: Optional[ReconciliationResult], now: datetime) -> List[Dict[str, str]]:
    """
    Messages asking for a deeper-insight document.

    The carried-forward open items block is included only when there are
    open items; the historical context block only when history exists.
    """
    sections = "\n".join(f"### {title}" for title in INSIGHT_SECTIONS)

    system_prompt = f"""You are a senior engineering lead reviewing a series of meetings for one team.
Produce a deeper-insight analysis of the current meeting that looks beyond the summary: risks, hidden dependencies, recurring themes and the state of work items across meetings.

Rules:
- Start the document with the line: {date_header(now)}
- Use EXACTLY these level-3 headings, in this order:
{sections}
- Under "Open Items (Carried Forward)" list, as "- " bullets, every still-unresolved item from previous meetings plus new unresolved items from this meeting. One item per bullet, no nesting.
- Under "Completed Items" list, as "- " bullets, every carried-forward item this meeting shows as done.
- Never list the same item under both headings.
- Do not invent facts that are not supported by the summary or the history."""

    parts = [f"## Current Meeting Summary\n\n{summary.strip()}"]

    if reconciliation and reconciliation.historical_open_items:
        parts.append(
            "## Carried-Forward Open Items\n\n"
            "These items were still open after previous meetings. Decide for each whether it is still open or now completed.\n\n"
            f"{_bullets(reconciliation.historical_open_items)}"
        )

    if reconciliation and reconciliation.files_count > 0:
        parts.append(
            f"## Historical Context ({reconciliation.files_count} previous meeting(s))\n\n"
            f"{reconciliation.historical_content.strip()}"
        )

    user_prompt = "\n\n".join(parts)

    return [{"role": "system", "content": system_prompt}, {"role": "user", "content": user_prompt}]
