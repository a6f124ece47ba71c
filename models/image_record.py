from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Rarity(str, Enum):
    """Rarity tier assigned to an image by the remote analysis pipeline."""

    UNIQUE = "unique"
    RARE = "rare"
    COMMON = "common"


@dataclass(frozen=True)
class ImageAnalysis:
    """AI analysis attached to a record. Produced once by the remote service.

    Attributes:
        rating: Score in the nominal range 0.0-10.0.
        rarity: Rarity tier.
        color_profile: Free-text description of the palette.
        dominant_colors: Ordered "#RRGGBB" tokens.
        style_tags: Ordered short style labels.
        emotion: Free-text emotional reading.
        rationale: Model-provided explanation of the rating.
    """

    rating: float
    rarity: Rarity
    color_profile: str = ""
    dominant_colors: Tuple[str, ...] = ()
    style_tags: Tuple[str, ...] = ()
    emotion: str = ""
    rationale: str = ""


@dataclass(frozen=True, eq=False)
class ImageRecord:
    """In-memory view of one uploaded image and its analysis.

    Two records are the same entity when their ids match, whatever the other
    fields hold.
    """

    id: str
    title: str
    uploader: str
    timestamp: str
    image_base64: str
    analysis: ImageAnalysis

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class ComparisonResult:
    """Verdict for a head-to-head comparison. Never cached."""

    verdict: str
    image_a: ImageRecord
    image_b: ImageRecord
