"""
Pinterest Trend Context (v1.0.0)
Collects trend snippets from the request and, optionally, a Pinterest board.
"""
import logging
from typing import Any, List, Optional
from dataclasses import dataclass, field
import httpx

from ootd_service.config.settings import get_settings

logger = logging.getLogger(__name__)

PINTEREST_API_URL = "https://api.pinterest.com/v5"
TIMEOUT_SECONDS = 10.0
BOARD_PAGE_SIZE = 25


@dataclass
class TrendContext:
    """Trend inspiration handed to the candidate generator."""
    summary: Optional[str] = None
    snippets: List[str] = field(default_factory=list)
    board_id: Optional[str] = None

    @property
    def used(self) -> bool:
        return bool(self.summary or self.snippets)

    def to_dict(self) -> dict:
        return {"summary": self.summary, "snippets": self.snippets, "board_id": self.board_id}


def pin_snippet(pin: Any) -> Optional[str]:
    """One line of inspiration from a pin (request model or API dict)."""
    if isinstance(pin, dict):
        title, description = pin.get("title"), pin.get("description")
    else:
        title, description = getattr(pin, "title", None), getattr(pin, "description", None)

    parts = [part.strip() for part in (title, description) if part and part.strip()]
    if not parts:
        return None
    return " - ".join(parts)[:200]


async def fetch_board_pins(board_id: str) -> List[dict]:
    """
    Fetch pins from a Pinterest board.

    Returns:
        Pin dicts, empty on any failure
    """
    settings = get_settings()
    if not settings.has_pinterest():
        logger.info("PINTEREST_ACCESS_TOKEN not set - board pins skipped")
        return []

    try:
        async with httpx.AsyncClient(timeout=TIMEOUT_SECONDS) as client:
            response = await client.get(
                f"{PINTEREST_API_URL}/boards/{board_id}/pins",
                params={"page_size": BOARD_PAGE_SIZE},
                headers={"Authorization": f"Bearer {settings.pinterest_access_token}"},
            )
            response.raise_for_status()
            pins = response.json().get("items") or []
            logger.info(f"Fetched {len(pins)} pins from board {board_id}")
            return pins

    except httpx.TimeoutException:
        logger.warning(f"Pinterest API timeout for board {board_id}")
        return []
    except Exception as e:
        logger.warning(f"Pinterest board fetch failed for {board_id}: {e}")
        return []


async def build_trend_context(
    pinterest_context: Optional[str],
    pinterest_pins: Optional[list],
    board_id: Optional[str],
    max_snippets: Optional[int] = None,
) -> TrendContext:
    """
    Merge request trend context with board pins.

    Args:
        pinterest_context: Free-text trend summary from the client
        pinterest_pins: Pins the client already fetched
        board_id: Board to pull pins from (needs a Pinterest token)
        max_snippets: Cap on snippets (defaults to OOTD_MAX_TREND_SNIPPETS)

    Returns:
        TrendContext (empty when nothing is available)
    """
    if max_snippets is None:
        max_snippets = get_settings().max_trend_snippets

    pins: list = list(pinterest_pins or [])
    if board_id:
        pins.extend(await fetch_board_pins(board_id))

    snippets: List[str] = []
    for pin in pins:
        snippet = pin_snippet(pin)
        if snippet and snippet not in snippets:
            snippets.append(snippet)
        if len(snippets) >= max_snippets:
            break

    summary = pinterest_context.strip() if pinterest_context and pinterest_context.strip() else None
    context = TrendContext(summary=summary, snippets=snippets, board_id=board_id)
    logger.info(f"Trend context: summary={'yes' if summary else 'no'}, snippets={len(snippets)}")
    return context
