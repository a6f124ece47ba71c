"""Aggregate statistics over the records currently on display."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from models.image_record import ImageRecord, Rarity

TOP_TAG_LIMIT = 8


@dataclass(frozen=True)
class RarityShare:
    count: int
    percentage: float


@dataclass(frozen=True)
class CollectionStatistics:
    """Summary of a record sequence.

    Attributes:
        total_images: Number of records summarised.
        average_rating: Mean rating, 0.0 when there are no records.
        rarity_distribution: Count and percentage per rarity tier.
        top_style_tags: Up to eight ``(tag, count)`` pairs, most frequent first.
        remote_total: Total held by the contract, when known.
    """

    total_images: int
    average_rating: float
    rarity_distribution: Dict[str, RarityShare]
    top_style_tags: List[Tuple[str, int]] = field(default_factory=list)
    remote_total: Optional[int] = None


def compute_statistics(
    records: Iterable[ImageRecord],
    remote_total: Optional[int] = None,
    tag_limit: int = TOP_TAG_LIMIT,
) -> CollectionStatistics:
    records = list(records)
    total = len(records)
    rarity_counts = Counter(record.analysis.rarity for record in records)
    tag_counts: Counter = Counter()
    for record in records:
        tag_counts.update(record.analysis.style_tags)

    distribution = {
        rarity.value: RarityShare(
            count=rarity_counts.get(rarity, 0),
            percentage=(rarity_counts.get(rarity, 0) / total * 100.0) if total else 0.0,
        )
        for rarity in Rarity
    }
    average = sum(record.analysis.rating for record in records) / total if total else 0.0

    # most_common keeps first-seen order among equal counts.
    return CollectionStatistics(
        total_images=total,
        average_rating=average,
        rarity_distribution=distribution,
        top_style_tags=tag_counts.most_common(tag_limit),
        remote_total=remote_total,
    )
