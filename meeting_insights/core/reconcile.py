"""
Carried-forward item reconciliation.

Merges the open and completed items found across historical deeper-insight
documents into one deduplicated open list. Completed items take precedence:
any open item that fuzzy-matches a completed one is dropped. Open items are
only ever deduplicated against each other by exact normalized key, so two
distinct open items can never be merged by the fuzzy heuristic.
"""

import logging
from typing import Iterable, List, Optional

from .matching import SimilarityMatcher, get_matcher, normalize
from .timing import timer
from .types import HistoryLoadResult, ReconciledItems, ReconciliationResult

logger = logging.getLogger(__name__)


def dedupe_by_key(items: Iterable[str]) -> List[str]:
    """
    First occurrence of each normalized key wins.

    Blank items are dropped. Items whose key is empty (punctuation only) are
    kept as they are and never deduplicated, since "" is not a valid key.
    """
    seen = set()
    unique: List[str] = []
    for item in items:
        if not item or not item.strip():
            continue
        key = normalize(item)
        if key:
            if key in seen:
                continue
            seen.add(key)
        unique.append(item)
    return unique


@timer
def reconcile(
    historical_open_items: List[str],
    historical_closed_items: List[str],
    matcher: Optional[SimilarityMatcher] = None,
) -> ReconciledItems:
    """
    Reconcile historical open items against completed ones.

    Args:
        historical_open_items: Open items in encounter order
        historical_closed_items: Completed items in encounter order
        matcher: Similarity matcher; defaults to the configured one

    Returns:
        ReconciledItems with unique open and closed lists
    """
    matcher = matcher or get_matcher()

    unique_closed = dedupe_by_key(historical_closed_items)
    still_open = [item for item in historical_open_items if not any(matcher.is_same_item(item, closed) for closed in unique_closed)]
    unique_open = dedupe_by_key(still_open)

    dropped = len(historical_open_items) - len(still_open)
    if dropped:
        logger.info(f"Dropped {dropped} open item(s) matching completed items")

    return ReconciledItems(unique_open_items=unique_open, unique_closed_items=unique_closed)


def build_reconciliation(history: HistoryLoadResult, matcher: Optional[SimilarityMatcher] = None) -> ReconciliationResult:
    """Reconcile a loaded history into the context consumed by the insight stage."""
    items = reconcile(history.historical_open_items, history.historical_closed_items, matcher)
    return ReconciliationResult(
        historical_content=history.combined_sanitized_content,
        files_count=history.files_count,
        historical_open_items=items.unique_open_items,
        historical_closed_items=items.unique_closed_items,
    )
