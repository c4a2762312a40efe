"""
Best-Candidate Selection (v1.0.0)
Pure reduction over scored candidates plus the pinned-item post-check.
"""
import logging
from typing import Iterable, List, Sequence

from ootd_service.core.errors import PipelineParseError, SelectionConstraintViolation

logger = logging.getLogger(__name__)


def candidate_item_ids(candidate: dict) -> List[str]:
    return [str(item.get("item_id")) for item in candidate.get("items", []) if item.get("item_id")]


def select_best(candidates: Sequence[dict]) -> dict:
    """
    Return the candidate with the highest score.

    Ties go to the earliest candidate.

    Raises:
        PipelineParseError: If there are no candidates
    """
    if not candidates:
        raise PipelineParseError("AI returned no usable outfit candidates")

    best = candidates[0]
    for candidate in candidates[1:]:
        if candidate["score"] > best["score"]:
            best = candidate

    logger.info(f"Selected '{best.get('title', 'untitled')}' (score={best['score']}) from {len(candidates)} candidates")
    return best


def ensure_pinned_included(candidate: dict, pinned_ids: Iterable[str]) -> None:
    """
    Verify every pinned item made it into the winner.

    Raises:
        SelectionConstraintViolation: Listing the missing ids
    """
    pinned = list(pinned_ids)
    if not pinned:
        return

    chosen = set(candidate_item_ids(candidate))
    missing = [item_id for item_id in pinned if item_id not in chosen]
    if missing:
        logger.warning(f"Winning candidate omitted pinned items: {missing}")
        raise SelectionConstraintViolation(
            "The generated outfit did not include your selected items. Please try again.",
            details={"missing_item_ids": missing},
        )


def summarize_candidates(candidates: Sequence[dict], winner: dict) -> List[dict]:
    """Short per-candidate view for the response."""
    return [
        {
            "title": candidate.get("title"),
            "score": candidate["score"],
            "score_breakdown": candidate.get("score_breakdown", {}),
            "item_ids": candidate_item_ids(candidate),
            "selected": candidate is winner,
        }
        for candidate in candidates
    ]
