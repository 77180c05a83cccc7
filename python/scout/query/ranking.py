"""
Name matching and relevance ranking for symbol search.

Tiers, most relevant first:
    0. exact name equality
    1. name starts with the term
    2. term occurs at a word boundary (``\\b<term>``)
    3. any other substring match

Every prefix match is also a word-boundary match, so tier 1 never reorders
anything tier 2 would not; both tiers are kept so the ordering stays
identical to existing consumers.

Within a tier: shorter relative path first, then path order, then position.
"""

import re
from typing import Iterable, Optional

from scout.models import SymbolLocation

TIER_EXACT = 0
TIER_PREFIX = 1
TIER_WORD_BOUNDARY = 2
TIER_SUBSTRING = 3


def normalize(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.lower()


def name_matches(name: str, term: str, case_sensitive: bool = False, exact_match: bool = False) -> bool:
    """Exact equality when exact_match, otherwise substring containment."""
    candidate = normalize(name, case_sensitive)
    needle = normalize(term, case_sensitive)
    return candidate == needle if exact_match else needle in candidate


def word_boundary_pattern(term: str, case_sensitive: bool) -> re.Pattern:
    return re.compile(r"\b" + re.escape(term), 0 if case_sensitive else re.IGNORECASE)


def rank_tier(name: str, term: str, case_sensitive: bool = False, boundary: Optional[re.Pattern] = None) -> int:
    candidate = normalize(name, case_sensitive)
    needle = normalize(term, case_sensitive)
    if candidate == needle:
        return TIER_EXACT
    if candidate.startswith(needle):
        return TIER_PREFIX
    boundary = boundary or word_boundary_pattern(term, case_sensitive)
    if boundary.search(name):
        return TIER_WORD_BOUNDARY
    return TIER_SUBSTRING


def rank_locations(
    locations: Iterable[SymbolLocation],
    term: str,
    case_sensitive: bool = False,
) -> list[SymbolLocation]:
    """Return locations sorted by relevance to term."""
    boundary = word_boundary_pattern(term, case_sensitive)

    def sort_key(loc: SymbolLocation):
        return (
            rank_tier(loc.name, term, case_sensitive, boundary),
            len(loc.relative_path),
            loc.relative_path,
            loc.line,
            loc.character,
        )

    return sorted(locations, key=sort_key)


def filter_by_kind(
    locations: Iterable[SymbolLocation],
    kinds: Optional[Iterable[str]],
    keep_unknown: bool = False,
) -> list[SymbolLocation]:
    """
    Keep locations whose kind is in kinds. An empty/None kinds keeps everything.

    keep_unknown lets symbols without a recorded kind through the filter.
    """
    allowed = set(kinds or [])
    if not allowed:
        return list(locations)
    return [
        loc for loc in locations
        if (loc.kind in allowed) or (keep_unknown and not loc.kind)
    ]
