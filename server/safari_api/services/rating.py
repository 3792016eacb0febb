"""Incremental rating aggregation for tours and parks."""

from typing import Protocol

from ..core.exceptions import ValidationError


class Rated(Protocol):
    rating_average: float
    rating_count: int


def update_rating(entity: Rated, score: float) -> Rated:
    """
    Fold one score into an entity's running mean.

    ``average = (average * count + score) / (count + 1)``; ``count += 1``.
    The caller holds the entity's critical section.
    """
    if score < 1 or score > 5:
        raise ValidationError(detail="Rating must be between 1 and 5")

    count = entity.rating_count or 0
    average = entity.rating_average or 0.0

    entity.rating_average = (average * count + score) / (count + 1)
    entity.rating_count = count + 1
    return entity
