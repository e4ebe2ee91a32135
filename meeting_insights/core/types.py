"""
Type definitions for Meeting Insights.

This module defines the data structures passed between the history loader,
the item reconciler, the validated generator and the pipeline orchestrator.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_DATE_TAG = "0000_00_00"


class InsightDocument(BaseModel):
    """
    A previously generated deeper-insight document.

    Attributes:
        filename: Name of the document within its store
        date_tag: Leading YYYY_MM_DD tag, or 0000_00_00 when absent
        raw_content: Markdown content as stored
    """

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., description="Document name within its store")
    date_tag: str = Field(default=UNKNOWN_DATE_TAG, description="YYYY_MM_DD tag parsed from the filename")
    raw_content: str = Field(default="", description="Markdown content")


class HistoryLoadResult(BaseModel):
    """Documents selected from history plus the items and sanitized text extracted from them."""

    documents: List[InsightDocument] = Field(default_factory=list)
    historical_open_items: List[str] = Field(default_factory=list, description="Open items in file-processing order")
    historical_closed_items: List[str] = Field(default_factory=list, description="Completed items in file-processing order")
    combined_sanitized_content: str = Field(default="", description="Documents without their item sections, labelled by filename")

    @property
    def files_count(self) -> int:
        return len(self.documents)


class ReconciledItems(BaseModel):
    """Deduplicated open and closed items after closed-over-open precedence."""

    unique_open_items: List[str] = Field(default_factory=list)
    unique_closed_items: List[str] = Field(default_factory=list)


class ReconciliationResult(BaseModel):
    """
    Historical context handed to the deeper-insight stage.

    Built fresh on every pipeline run and never persisted.
    """

    historical_content: str = Field(default="", description="Concatenation of sanitized historical documents")
    files_count: int = Field(default=0, ge=0)
    historical_open_items: List[str] = Field(default_factory=list, description="Carried-forward open items")
    historical_closed_items: List[str] = Field(default_factory=list, description="Deduplicated completed items")


class ChatResult(BaseModel):
    """Text payload and token usage returned by one backend call."""

    text: str = Field(default="")
    model: str = Field(default="")
    total_tokens: int = Field(default=0, ge=0)


class GenerationAttempt(BaseModel):
    """One pass of the validated generator's retry loop."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    attempt_number: int = Field(..., ge=1)
    raw_result: Optional[Any] = None
    extracted_content: str = ""
    valid: bool = False
    timed_out: bool = False


class PipelineResult(BaseModel):
    """Output of one pipeline run."""

    summary_text: str = ""
    deeper_insights_text: str = ""
    summary_reused: bool = False
    summary_tokens: int = 0
    insight_tokens: int = 0
    history_files_count: int = 0
    carried_forward_open_items: List[str] = Field(default_factory=list)
