"""
Style Context Detection (v1.0.0)
Keyword rules that decide which occasion governs wardrobe filtering.

Exactly one context is active per request. Contexts are tried in a fixed
order and the first whose keywords appear in the prompt wins; "casual" is the
fallback. Terms are matched as whole words with an optional plural suffix, so
"sneaker" matches "Sneakers" but "run" does not match "brunch". Excluded
vocabulary also matches inside compound words ("Raincoat", "Woolen").
"""
import re
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StyleContext:
    """Named rule bundle for one occasion."""
    name: str
    keywords: Tuple[str, ...]
    priority: Tuple[str, ...]
    allowed: Tuple[str, ...]
    excluded: Tuple[str, ...]

    @property
    def vocabulary(self) -> Tuple[str, ...]:
        return self.priority + self.allowed

    def suggested_categories(self, limit: int = 5) -> List[str]:
        return list(self.vocabulary[:limit])

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "priority": list(self.priority),
            "allowed": list(self.allowed),
            "excluded": list(self.excluded),
        }


# ==================== CONTEXT TABLE ====================

BUSINESS = StyleContext(
    name="business",
    keywords=("business", "office", "meeting", "work", "interview", "professional", "corporate", "conference"),
    priority=("blazer", "suit", "trousers", "dress shirt", "button-down", "oxford", "loafer", "pencil skirt"),
    allowed=("shirt", "blouse", "sweater", "cardigan", "chinos", "pants", "skirt", "dress", "heels", "flats",
             "belt", "watch", "coat", "bag"),
    excluded=("sneaker", "hoodie", "shorts", "tank top", "flip flop", "sweatpant", "jogger", "crop top",
              "graphic tee", "sandal", "athletic", "sporty"),
)

FORMAL = StyleContext(
    name="formal",
    keywords=("formal", "gala", "wedding", "black tie", "cocktail", "ceremony", "opera", "prom"),
    priority=("suit", "tuxedo", "gown", "evening dress", "blazer", "heels", "oxford"),
    allowed=("dress", "shirt", "blouse", "trousers", "skirt", "coat", "loafer", "clutch", "necklace",
             "watch", "tie", "belt"),
    excluded=("sneaker", "hoodie", "jeans", "denim", "shorts", "t-shirt", "tank top", "flip flop",
              "sweatpant", "jogger", "athletic", "sporty"),
)

ATHLETIC = StyleContext(
    name="athletic",
    keywords=("gym", "workout", "run", "running", "athletic", "sport", "sporty", "training", "yoga",
              "hike", "hiking", "exercise", "jog", "jogging"),
    priority=("leggings", "jogger", "sneaker", "sports bra", "tank top", "shorts", "athletic"),
    allowed=("t-shirt", "tee", "hoodie", "sweatshirt", "sweatpant", "jacket", "cap", "sock", "track"),
    excluded=("heels", "blazer", "suit", "loafer", "oxford", "silk", "formal", "business", "gown"),
)

DATE = StyleContext(
    name="date",
    keywords=("date", "romantic", "dinner", "valentine", "anniversary"),
    priority=("dress", "blouse", "heels", "blazer", "skirt"),
    allowed=("shirt", "jeans", "trousers", "boot", "jacket", "necklace", "earring", "bag", "sweater"),
    excluded=("sweatpant", "hoodie", "gym", "athletic", "flip flop", "jogger"),
)

STREETWEAR = StyleContext(
    name="streetwear",
    keywords=("streetwear", "street", "urban", "skate", "hypebeast"),
    priority=("hoodie", "sneaker", "graphic tee", "cargo", "jogger", "bomber"),
    allowed=("t-shirt", "jeans", "jacket", "cap", "beanie", "shorts", "sweatshirt", "boot", "bag",
             "tracksuit"),
    excluded=("suit", "tie", "formal", "pencil skirt", "heels", "gown", "tuxedo"),
)

CASUAL = StyleContext(
    name="casual",
    keywords=("casual", "weekend", "brunch", "relaxed", "everyday", "errands", "coffee"),
    priority=("jeans", "t-shirt", "tee", "sneaker", "sweater"),
    allowed=("shirt", "blouse", "shorts", "skirt", "dress", "cardigan", "jacket", "boot", "sandal",
             "bag", "hat", "jumpsuit"),
    excluded=("suit", "tuxedo", "gown", "black tie"),
)

SUMMER = StyleContext(
    name="summer",
    keywords=("summer", "beach", "vacation", "tropical", "pool", "sunny"),
    priority=("shorts", "sundress", "linen", "sandal", "tank top"),
    allowed=("t-shirt", "skirt", "dress", "shirt", "hat", "sunglasses", "sneaker", "blouse"),
    excluded=("coat", "parka", "wool", "boot", "turtleneck", "puffer", "scarf", "glove"),
)

# Detection order; first match wins
CONTEXTS: Tuple[StyleContext, ...] = (BUSINESS, FORMAL, ATHLETIC, DATE, STREETWEAR, CASUAL, SUMMER)
DEFAULT_CONTEXT = CASUAL
CONTEXTS_BY_NAME = {context.name: context for context in CONTEXTS}


# ==================== MATCHING ====================

@lru_cache(maxsize=512)
def _term_pattern(term: str) -> "re.Pattern":
    # Spaces and hyphens inside a term are interchangeable ("flip flop" ~ "flip-flops")
    parts = [re.escape(part) for part in re.split(r"[\s-]+", term.strip().lower()) if part]
    body = r"[\s-]+".join(parts)
    return re.compile(rf"\b{body}(?:s|es)?\b")


def find_term(text: Optional[str], terms: Iterable[str]) -> Optional[str]:
    """Return the first term that occurs in `text` as a whole word, or None."""
    if not text:
        return None
    lowered = text.lower()
    for term in terms:
        if _term_pattern(term).search(lowered):
            return term
    return None


_WORD = re.compile(r"[a-z]+")


def _compact(term: str) -> str:
    return re.sub(r"[\s-]+", "", term.strip().lower())


def _in_compound(word: str, term: str) -> bool:
    stem = _compact(term)
    if len(word) <= len(stem):
        return False
    if word.endswith(stem):
        return True
    # Short stems only match as suffixes ("tiered" is not a tie)
    return len(stem) >= 4 and word.startswith(stem)


def find_excluded_term(text: Optional[str], context: StyleContext) -> Optional[str]:
    """
    Return the first excluded term found in `text`, or None.

    Whole words are checked first, then compound words ("Raincoat" hits coat,
    "Woolen" hits wool). A word that starts with the context's own vocabulary
    is never a compound hit ("Tracksuit" under athletic).
    """
    term = find_term(text, context.excluded)
    if term or not text:
        return term

    stems = [_compact(t) for t in context.vocabulary]
    for word in _WORD.findall(text.lower()):
        if any(word.startswith(stem) for stem in stems):
            continue
        for term in context.excluded:
            if _in_compound(word, term):
                return term
    return None


def detect_context(prompt: str) -> StyleContext:
    """
    Pick the style context for a free-text prompt.

    Args:
        prompt: User request text

    Returns:
        First context (in detection order) whose keywords match, else casual
    """
    for context in CONTEXTS:
        keyword = find_term(prompt, context.keywords)
        if keyword:
            logger.info(f"Style context: {context.name} (matched '{keyword}')")
            return context

    logger.info(f"Style context: {DEFAULT_CONTEXT.name} (default)")
    return DEFAULT_CONTEXT


def get_context(name: str) -> StyleContext:
    return CONTEXTS_BY_NAME.get(name, DEFAULT_CONTEXT)
