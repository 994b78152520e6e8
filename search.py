import logging
import re
from dataclasses import dataclass

from rapidfuzz import fuzz, process

from caption_utils import STOP_TERMS

logger = logging.getLogger(__name__)

SUGGEST_LIMIT = 3
SUGGEST_CUTOFF = 60


class EmptyQueryError(ValueError):
    """Raised when a query has nothing left to search for after cleaning."""


@dataclass(frozen=True)
class QueryPattern:
    text: str
    tokens: tuple

    def to_mongo(self, field="caption"):
        # one case-insensitive literal regex per token, all required
        return {
            "$and": [
                {field: {"$regex": re.escape(tok), "$options": "i"}}
                for tok in self.tokens
            ]
        }


def clean_query(query: str) -> str:
    query = re.sub(r"[^\w\s]", "", query or "")
    return re.sub(r"\s+", " ", query).strip()


def build_pattern(query: str) -> QueryPattern:
    text = clean_query(query)
    tokens = [t.lower() for t in text.split()]
    # "movies"/"webseries" only narrow the search when something else is asked for
    useful = [t for t in tokens if t not in STOP_TERMS]
    if useful:
        tokens = useful
    if not tokens:
        raise EmptyQueryError("Please enter a valid movie name.")
    return QueryPattern(text=text, tokens=tuple(dict.fromkeys(tokens)))


def matches(caption: str, pattern: QueryPattern) -> bool:
    haystack = (caption or "").lower()
    return all(tok in haystack for tok in pattern.tokens)


def suggest(query: str, captions, limit=SUGGEST_LIMIT, cutoff=SUGGEST_CUTOFF):
    """Closest stored captions for a query that matched nothing."""
    captions = list(dict.fromkeys(c for c in captions if c))
    if not captions:
        return []
    results = process.extract(
        clean_query(query).lower(),
        captions,
        scorer=fuzz.token_set_ratio,
        processor=str.lower,
        limit=limit,
        score_cutoff=cutoff,
    )
    logger.debug(f"Suggestions for {query!r}: {results}")
    return [caption for caption, score, _ in results]
