"""Ranked symbol search and reference lookup."""

from scout.query.engine import QueryEngine
from scout.query.ranking import filter_by_kind, name_matches, rank_locations, rank_tier

__all__ = ["QueryEngine", "filter_by_kind", "name_matches", "rank_locations", "rank_tier"]
