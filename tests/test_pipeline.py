"""
Tests for the meeting insight pipeline orchestrator.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import pytest

from meeting_insights.core.pipeline import MeetingInsightPipeline, PipelineSettings
from meeting_insights.core.prompt import build_insight_messages, build_summary_messages, date_tag, ensure_date_header, format_meeting_date
from meeting_insights.core.types import ChatResult, ReconciliationResult

NOW = datetime(2025, 7, 9, 14, 30)
SUMMARY = "## Summary:\nThe team reviewed the migration plan and agreed on a new release date."
INSIGHT_BODY = "### Executive Summary\nMigration is on track but the release depends on the billing cut-over."


def write_file(path: Path, content: str) -> None:
    """Helper to write a text file with UTF-8 encoding."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class FakeHandler:
    """In-process generation backend recording every request."""

    def __init__(self, summaries: List[str] = None, insights: List[str] = None):
        self.summaries = list(summaries or [SUMMARY])
        self.insights = list(insights or [INSIGHT_BODY])
        self.summary_calls: List[List[Dict[str, str]]] = []
        self.insight_calls: List[List[Dict[str, str]]] = []

    async def make_summary_request(self, messages):
        self.summary_calls.append(messages)
        text = self.summaries[min(len(self.summary_calls), len(self.summaries)) - 1]
        return ChatResult(text=text, model="fake", total_tokens=100)

    async def make_insight_request(self, messages):
        self.insight_calls.append(messages)
        text = self.insights[min(len(self.insight_calls), len(self.insights)) - 1]
        return ChatResult(text=text, model="fake", total_tokens=200)


def settings(**overrides) -> PipelineSettings:
    values = dict(max_attempts=3, retry_delay=0.0, deadline=None, history_max_documents=6, history_order="oldest")
    values.update(overrides)
    return PipelineSettings(**values)


def run_pipeline(handler: FakeHandler, history_dir: Path, **kwargs):
    pipeline = MeetingInsightPipeline(handler, history_dir, settings())
    return asyncio.run(pipeline.run(now=NOW, **kwargs))


class TestPromptHelpers:
    """Test date helpers and prompt assembly."""

    def test_format_meeting_date(self):
        assert format_meeting_date(datetime(2025, 7, 2)) == "Wednesday, July 2, 2025"

    def test_date_tag_zero_padded(self):
        assert date_tag(datetime(2025, 1, 5)) == "2025_01_05"

    def test_ensure_date_header_prepends(self):
        assert ensure_date_header("Body", NOW).startswith("## Meeting Date: Wednesday, July 9, 2025\n\nBody")

    def test_ensure_date_header_keeps_existing(self):
        text = "## Meeting Date: Tuesday, July 8, 2025\n\nBody"
        assert ensure_date_header(text, NOW) == text

    def test_summary_messages_embed_transcripts_and_glossary(self):
        messages = build_summary_messages("You: hello", "hello there", "People: Laura, Lina", NOW)
        assert [m["role"] for m in messages] == ["system", "user"]
        assert "People: Laura, Lina" in messages[0]["content"]
        assert messages[0]["content"].startswith("## Meeting Date: Wednesday, July 9, 2025")
        assert "You: hello" in messages[1]["content"]
        assert "hello there" in messages[1]["content"]

    def test_insight_messages_without_history(self):
        messages = build_insight_messages(SUMMARY, ReconciliationResult(), NOW)
        user = messages[1]["content"]
        assert SUMMARY in user
        assert "Historical Context" not in user
        assert "Carried-Forward Open Items" not in user

    def test_insight_messages_with_history(self):
        reconciliation = ReconciliationResult(historical_content="### Source: a\n\nOld body", files_count=2, historical_open_items=["Write docs"])
        user = build_insight_messages(SUMMARY, reconciliation, NOW)[1]["content"]
        assert "## Carried-Forward Open Items" in user
        assert "- Write docs" in user
        assert "## Historical Context (2 previous meeting(s))" in user
        assert "Old body" in user

    def test_insight_messages_history_without_open_items(self):
        reconciliation = ReconciliationResult(historical_content="Old body", files_count=1)
        user = build_insight_messages(SUMMARY, reconciliation, NOW)[1]["content"]
        assert "Carried-Forward Open Items" not in user
        assert "Historical Context" in user


class TestMeetingInsightPipeline:
    """Test stage sequencing, reuse and finalization."""

    def test_cold_start_generates_both_stages(self, tmp_path: Path):
        handler = FakeHandler()
        result = run_pipeline(handler, tmp_path / "missing", live_transcript="You: hi", accurate_transcript="hi", glossary="")
        assert len(handler.summary_calls) == 1
        assert len(handler.insight_calls) == 1
        assert result.summary_text == SUMMARY
        assert result.history_files_count == 0
        assert result.summary_tokens == 100
        assert result.insight_tokens == 200
        insight_user = handler.insight_calls[0][1]["content"]
        assert "Historical Context" not in insight_user
        assert SUMMARY in insight_user

    def test_existing_summary_skips_summary_stage(self, tmp_path: Path):
        handler = FakeHandler()
        result = run_pipeline(handler, tmp_path, existing_summary="## Summary:\nProvided summary text that is long enough to use.")
        assert handler.summary_calls == []
        assert result.summary_reused
        assert result.summary_text.startswith("## Summary:\nProvided")
        assert "Provided summary text" in handler.insight_calls[0][1]["content"]

    def test_date_header_added_when_missing(self, tmp_path: Path):
        result = run_pipeline(FakeHandler(), tmp_path, existing_summary=SUMMARY)
        assert result.deeper_insights_text.startswith("## Meeting Date: Wednesday, July 9, 2025\n\n### Executive Summary")

    def test_date_header_not_duplicated(self, tmp_path: Path):
        generated = "## Meeting Date: Wednesday, July 9, 2025\n\n" + INSIGHT_BODY
        result = run_pipeline(FakeHandler(insights=[generated]), tmp_path, existing_summary=SUMMARY)
        assert result.deeper_insights_text == generated
        assert result.deeper_insights_text.count("## Meeting Date:") == 1

    def test_retries_invalid_summary(self, tmp_path: Path):
        handler = FakeHandler(summaries=["", "short", SUMMARY])
        result = run_pipeline(handler, tmp_path)
        assert len(handler.summary_calls) == 3
        assert result.summary_text == SUMMARY

    def test_exhausted_insight_retries_still_finalize(self, tmp_path: Path):
        handler = FakeHandler(insights=[""])
        result = run_pipeline(handler, tmp_path, existing_summary=SUMMARY)
        assert len(handler.insight_calls) == 3
        assert result.deeper_insights_text.startswith("## Meeting Date:")

    def test_history_is_reconciled_into_insight_prompt(self, tmp_path: Path):
        write_file(
            tmp_path / "2025_07_01-deeper-insights.md",
            "### Executive Summary\nFirst week\n\n### Open Items (Carried Forward)\n- Fix the login bug issue\n- Write docs\n",
        )
        write_file(
            tmp_path / "2025_07_02-deeper-insights.md",
            "### Executive Summary\nSecond week\n\n### Open Items (Carried Forward)\n- write docs!\n\n### Completed Items\n- Fix login bug\n",
        )
        write_file(tmp_path / "2025_07_09-deeper-insights.md", "### Open Items\n- Same-day partial run\n")

        handler = FakeHandler()
        result = run_pipeline(handler, tmp_path, existing_summary=SUMMARY)

        assert result.history_files_count == 2
        assert result.carried_forward_open_items == ["Write docs"]
        user = handler.insight_calls[0][1]["content"]
        assert "- Write docs" in user
        assert "Same-day partial run" not in user
        assert "First week" in user and "Second week" in user
        assert "Fix the login bug issue" not in user

    def test_history_cap_applies(self, tmp_path: Path):
        for day in range(1, 9):
            write_file(tmp_path / f"2025_07_0{day}-deeper-insights.md", f"### Open Items\n- Task from day {day}\n")
        handler = FakeHandler()
        pipeline = MeetingInsightPipeline(handler, tmp_path, settings(history_max_documents=2))
        result = asyncio.run(pipeline.run(now=NOW, existing_summary=SUMMARY))
        assert result.history_files_count == 2
        assert result.carried_forward_open_items == ["Task from day 1", "Task from day 2"]

    @pytest.mark.parametrize("order,expected", [("oldest", ["Task from day 1"]), ("newest", ["Task from day 8"])])
    def test_history_order_setting(self, tmp_path: Path, order, expected):
        for day in range(1, 9):
            write_file(tmp_path / f"2025_07_0{day}-deeper-insights.md", f"### Open Items\n- Task from day {day}\n")
        pipeline = MeetingInsightPipeline(FakeHandler(), tmp_path, settings(history_max_documents=1, history_order=order))
        result = asyncio.run(pipeline.run(now=NOW, existing_summary=SUMMARY))
        assert result.carried_forward_open_items == expected
