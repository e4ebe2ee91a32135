"""
Meeting insight pipeline.

Runs the two generation stages in order:

    summary -> history load -> reconcile -> deeper insight -> finalize

The summary is generated from the meeting transcripts unless one is
supplied. History is loaded from the output directory (excluding the
current day), reconciled into carried-forward open items and fed, together
with the summary, into the deeper-insight stage. The finished document
always starts with a "## Meeting Date:" header.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Optional, Union

from .config import config
from .generation import generate_with_retry
from .history import InsightRepository, load_history
from .matching import SimilarityMatcher, get_matcher
from .progress import reporter
from .prompt import build_insight_messages, build_summary_messages, date_tag, ensure_date_header
from .reconcile import build_reconciliation
from .types import ChatResult, PipelineResult, ReconciliationResult

logger = logging.getLogger(__name__)


@dataclass
class PipelineSettings:
    """Knobs of one pipeline run; defaults come from the environment."""

    max_attempts: int = field(default_factory=lambda: config.generation_attempts)
    retry_delay: float = field(default_factory=lambda: config.retry_delay_seconds)
    deadline: Optional[float] = field(default_factory=lambda: config.generation_deadline_seconds)
    history_max_documents: int = field(default_factory=lambda: config.history_max_documents)
    history_order: Literal["oldest", "newest"] = field(default_factory=lambda: config.history_order)  # type: ignore[assignment]


class MeetingInsightPipeline:
    """
    Orchestrates summary and deeper-insight generation for one meeting.

    The handler must provide async make_summary_request(messages) and
    make_insight_request(messages) returning ChatResult.
    """

    def __init__(
        self,
        handler: Any,
        history_source: Union[str, Path, InsightRepository],
        settings: Optional[PipelineSettings] = None,
        matcher: Optional[SimilarityMatcher] = None,
    ):
        self.handler = handler
        self.history_source = history_source
        self.settings = settings or PipelineSettings()
        self.matcher = matcher or get_matcher()

    async def _generate(self, operation, label: str) -> ChatResult:
        return await generate_with_retry(
            operation,
            lambda result: result.text,
            self.settings.max_attempts,
            retry_delay=self.settings.retry_delay,
            deadline=self.settings.deadline,
            label=label,
        )

    async def generate_summary(self, live_transcript: str, accurate_transcript: str, glossary: str, now: datetime) -> ChatResult:
        messages = build_summary_messages(live_transcript, accurate_transcript, glossary, now)
        return await self._generate(lambda: self.handler.make_summary_request(messages), "summary")

    def load_reconciliation(self, now: datetime) -> ReconciliationResult:
        history = load_history(
            self.history_source,
            date_tag(now),
            self.settings.history_max_documents,
            self.settings.history_order,
        )
        return build_reconciliation(history, self.matcher)

    async def generate_insights(self, summary: str, reconciliation: ReconciliationResult, now: datetime) -> ChatResult:
        messages = build_insight_messages(summary, reconciliation, now)
        return await self._generate(lambda: self.handler.make_insight_request(messages), "deeper insights")

    async def run(
        self,
        *,
        now: datetime,
        live_transcript: str = "",
        accurate_transcript: str = "",
        glossary: str = "",
        existing_summary: Optional[str] = None,
    ) -> PipelineResult:
        """
        Produce the summary and deeper-insight documents.

        Args:
            now: Clock value for the date header and same-day exclusion
            live_transcript: Live-caption transcript with speaker labels
            accurate_transcript: Accurate transcript without speakers
            glossary: Formatted domain-term glossary
            existing_summary: Reuse this summary instead of generating one

        Returns:
            PipelineResult; contents may be best-effort if retries ran out
        """
        summary_tokens = 0
        if existing_summary is not None:
            reporter.step("Reusing existing summary…")
            summary_text = existing_summary
        else:
            reporter.step("Generating summary…")
            summary = await self.generate_summary(live_transcript, accurate_transcript, glossary, now)
            summary_text = summary.text
            summary_tokens = summary.total_tokens

        reporter.step("Loading historical insights…")
        reconciliation = self.load_reconciliation(now)
        reporter.complete_sub_step(
            f"{reconciliation.files_count} historical document(s), {len(reconciliation.historical_open_items)} carried-forward open item(s)"
        )

        reporter.step("Generating deeper insights…")
        insight = await self.generate_insights(summary_text, reconciliation, now)

        return PipelineResult(
            summary_text=summary_text,
            deeper_insights_text=ensure_date_header(insight.text, now),
            summary_reused=existing_summary is not None,
            summary_tokens=summary_tokens,
            insight_tokens=insight.total_tokens,
            history_files_count=reconciliation.files_count,
            carried_forward_open_items=reconciliation.historical_open_items,
        )
