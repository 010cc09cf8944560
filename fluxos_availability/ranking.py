"""Ranking of scored slots."""

from collections.abc import Iterable

from .models import ScoredSlot

DEFAULT_LIMIT = 10


def rank_slots(slots: Iterable[ScoredSlot], limit: int = DEFAULT_LIMIT) -> list[ScoredSlot]:
    """Order by score descending, earliest start first among equal scores, and truncate."""
    ordered = sorted(slots, key=lambda s: (-s.score, s.interval.start, s.interval.end))
    return ordered[:limit]
