"""
Inventory Normalizer (v1.0.0)
Maps raw wardrobe records into the canonical taxonomy and filters them by the
active style context.

Filtering runs in two phases:
    1. Heuristic: drop items whose category or style hits the context's
       excluded vocabulary.
    2. Override: pinned items are always re-included, marked overridden.

Every item gets a FilterDecision so the pipeline trace shows why it was kept
or dropped. Unmapped items are dropped unless pinned; a pinned unmapped item is
offered under "other" and counts like any other eligible item.
"""
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Optional

from ootd_service.core.errors import InventoryInsufficientError
from ootd_service.core.style_context import StyleContext, find_excluded_term, find_term

logger = logging.getLogger(__name__)


# ==================== TAXONOMY ====================

# Checked in order; first substring match wins
CATEGORY_MAPPINGS = (
    ("top", ("shirt", "blouse", "t-shirt", "sweater", "tank top", "crop top", "top", "tee", "polo", "camisole")),
    ("bottom", ("pants", "jeans", "skirt", "shorts", "trousers", "leggings", "chinos", "joggers")),
    ("dress", ("dress", "jumpsuit", "gown", "romper")),
    ("outerwear", ("jacket", "coat", "blazer", "cardigan", "hoodie", "parka", "vest")),
    ("footwear", ("shoes", "boots", "sneakers", "sandals", "heels", "oxford", "loafer", "flats", "trainers")),
    ("accessories", ("belt", "necklace", "scarf", "hat", "bag", "watch", "earring", "bracelet", "sunglasses")),
)

MAIN_CATEGORIES = tuple(name for name, _ in CATEGORY_MAPPINGS)
OTHER = "other"
BUCKETS = MAIN_CATEGORIES + (OTHER,)
MIN_ELIGIBLE_ITEMS = 2

DEFAULT_COLOR = "neutral"
DEFAULT_STYLE = "casual"
DEFAULT_SEASON = "all"
DEFAULT_VERSATILITY = 7

# style_score bands
SCORE_PRIORITY = 1.0
SCORE_ALLOWED = 0.75
SCORE_NEUTRAL = 0.5
SCORE_PIN_OVERRIDE = 0.25


def map_main_category(raw_category: Optional[str]) -> str:
    """Map a free-text category ("Navy Trousers") to a main category."""
    normalized = (raw_category or "").lower()
    for main_category, keywords in CATEGORY_MAPPINGS:
        if any(keyword in normalized for keyword in keywords):
            return main_category
    return OTHER


def formality_from_style(style: Optional[str]) -> str:
    if style == "formal":
        return "formal"
    if style == "business":
        return "semi-formal"
    return "casual"


def parse_ai_metadata(raw: Any) -> Optional[dict]:
    """
    Parse stored AI metadata; anything malformed counts as absent.

    Args:
        raw: JSON string, dict or None
    """
    if raw is None or raw == "":
        return None

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unparseable AI metadata")
            return None

    if isinstance(raw, dict):
        return raw
    return None


# ==================== MODELS ====================

@dataclass
class ItemAnalysis:
    category: str
    main_category: str
    color: str
    style: str
    formality: str
    season: str
    versatility: Any
    style_score: float = SCORE_NEUTRAL

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class NormalizedItem:
    """A wardrobe record plus its resolved analysis."""
    item: dict
    analysis: ItemAnalysis

    @property
    def id(self) -> str:
        return str(self.item.get("id"))

    @property
    def main_category(self) -> str:
        return self.analysis.main_category

    def to_prompt_dict(self) -> dict:
        """Compact shape handed to the model."""
        return {
            "id": self.id,
            "name": self.item.get("category"),
            "color": self.analysis.color,
            "style": self.analysis.style,
            "formality": self.analysis.formality,
            "season": self.analysis.season,
            "style_score": self.analysis.style_score,
        }

    def to_dict(self) -> dict:
        data = dict(self.item)
        data["analysis"] = self.analysis.to_dict()
        return data


@dataclass
class FilterDecision:
    item_id: str
    kept: bool
    reason: str
    overridden: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Inventory:
    """Filtered wardrobe grouped by main category ("other" holds pinned unmapped items)."""
    context: StyleContext
    by_category: Dict[str, List[NormalizedItem]] = field(
        default_factory=lambda: {name: [] for name in BUCKETS}
    )
    decisions: List[FilterDecision] = field(default_factory=list)
    analyzed_count: int = 0

    @property
    def eligible_items(self) -> List[NormalizedItem]:
        return [item for name in BUCKETS for item in self.by_category[name]]

    @property
    def eligible_count(self) -> int:
        return len(self.eligible_items)

    def get(self, item_id: str) -> Optional[NormalizedItem]:
        for item in self.eligible_items:
            if item.id == item_id:
                return item
        return None

    def category_counts(self) -> Dict[str, int]:
        return {name: len(items) for name, items in self.by_category.items()}

    def to_prompt_dict(self) -> Dict[str, List[dict]]:
        return {
            name: [item.to_prompt_dict() for item in items]
            for name, items in self.by_category.items()
        }


# ==================== NORMALIZATION ====================

def build_analysis(item: dict) -> ItemAnalysis:
    """Resolve analysis fields: AI metadata, then raw fields, then defaults."""
    main_category = map_main_category(item.get("category"))
    raw_style = item.get("style") or DEFAULT_STYLE

    fallback = ItemAnalysis(
        category=item.get("category") or "",
        main_category=main_category,
        color=item.get("color") or DEFAULT_COLOR,
        style=raw_style,
        formality=formality_from_style(item.get("style")),
        season=DEFAULT_SEASON,
        versatility=DEFAULT_VERSATILITY,
    )

    ai_data = parse_ai_metadata(item.get("ai_detected_metadata"))
    if ai_data is None:
        return fallback

    return ItemAnalysis(
        category=ai_data.get("category") or fallback.category,
        main_category=main_category,
        color=ai_data.get("color") or fallback.color,
        style=ai_data.get("style") or fallback.style,
        formality=ai_data.get("formality") or fallback.formality,
        season=ai_data.get("season") or fallback.season,
        versatility=ai_data.get("versatility") or fallback.versatility,
    )


def _item_texts(item: dict, analysis: ItemAnalysis) -> List[str]:
    # Resolved style only counts when it came from data, not the default
    texts = [item.get("category") or "", item.get("style") or ""]
    if analysis.style != DEFAULT_STYLE or item.get("style"):
        texts.append(analysis.style)
    if analysis.category != texts[0]:
        texts.append(analysis.category)
    return [text for text in texts if text]


def heuristic_decision(item: dict, analysis: ItemAnalysis, context: StyleContext) -> FilterDecision:
    """Phase 1: keep/drop from the context's excluded vocabulary."""
    item_id = str(item.get("id"))

    if analysis.main_category == OTHER:
        return FilterDecision(item_id, kept=False, reason="unmapped category")

    for text in _item_texts(item, analysis):
        term = find_excluded_term(text, context)
        if term:
            return FilterDecision(item_id, kept=False, reason=f"excluded by {context.name}: {term}")

    return FilterDecision(item_id, kept=True, reason="allowed")


def apply_pin_overrides(decisions: Iterable[FilterDecision], pinned_ids: Iterable[str]) -> List[FilterDecision]:
    """Phase 2: re-include every pinned item the heuristic dropped."""
    pinned = set(pinned_ids)
    result = []
    for decision in decisions:
        if not decision.kept and decision.item_id in pinned:
            decision = FilterDecision(
                decision.item_id,
                kept=True,
                reason=f"pinned by user ({decision.reason})",
                overridden=True,
            )
        result.append(decision)
    return result


def score_item(item: dict, analysis: ItemAnalysis, context: StyleContext, overridden: bool) -> float:
    if overridden:
        return SCORE_PIN_OVERRIDE

    texts = _item_texts(item, analysis)
    if any(find_term(text, context.priority) for text in texts):
        return SCORE_PRIORITY
    if any(find_term(text, context.allowed) for text in texts):
        return SCORE_ALLOWED
    return SCORE_NEUTRAL


def normalize(item: dict, context: StyleContext, pinned_ids: Iterable[str] = ()) -> Optional[NormalizedItem]:
    """
    Normalize one wardrobe item under a style context.

    Returns:
        NormalizedItem, or None when the context excludes it and it is not pinned
    """
    analysis = build_analysis(item)
    decision = apply_pin_overrides([heuristic_decision(item, analysis, context)], pinned_ids)[0]
    if not decision.kept:
        return None

    analysis.style_score = score_item(item, analysis, context, decision.overridden)
    return NormalizedItem(item=item, analysis=analysis)


def build_inventory(items: List[dict], context: StyleContext, pinned_ids: Iterable[str] = ()) -> Inventory:
    """
    Normalize and filter a whole wardrobe.

    Args:
        items: Raw clothing records
        context: Active style context
        pinned_ids: Ids the user requires in the outfit

    Returns:
        Inventory with items bucketed by main category and an audit trail
    """
    pinned = set(pinned_ids)
    inventory = Inventory(context=context, analyzed_count=len(items))

    analyses = [build_analysis(item) for item in items]
    decisions = [
        heuristic_decision(item, analysis, context)
        for item, analysis in zip(items, analyses)
    ]
    decisions = apply_pin_overrides(decisions, pinned)

    for item, analysis, decision in zip(items, analyses, decisions):
        inventory.decisions.append(decision)
        if not decision.kept:
            continue

        analysis.style_score = score_item(item, analysis, context, decision.overridden)
        inventory.by_category[analysis.main_category].append(NormalizedItem(item=item, analysis=analysis))

    dropped = [d for d in inventory.decisions if not d.kept]
    overridden = [d for d in inventory.decisions if d.overridden]
    logger.info(
        f"Inventory [{context.name}]: {inventory.eligible_count}/{len(items)} eligible, "
        f"{len(dropped)} dropped, {len(overridden)} pin overrides, counts={inventory.category_counts()}"
    )
    return inventory


def ensure_sufficient(inventory: Inventory) -> None:
    """
    Raises:
        InventoryInsufficientError: If fewer than two items survived filtering
    """
    if inventory.eligible_count >= MIN_ELIGIBLE_ITEMS:
        return

    suggestions = inventory.context.suggested_categories()
    raise InventoryInsufficientError(
        f"Not enough suitable items for a {inventory.context.name} outfit. "
        f"Try adding: {', '.join(suggestions)}.",
        details={
            "style_context": inventory.context.name,
            "eligible_items": inventory.eligible_count,
            "suggested_categories": suggestions,
        },
    )
