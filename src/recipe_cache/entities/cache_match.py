"""Cache match domain entity."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CacheMatchEntity:
    """Domain entity for a vector search result.

    Attributes:
        content: The matched row's content text
        distance: Cosine distance (0 = identical, 2 = opposite)
        metadata: The metadata stored with the row
    """

    content: str
    distance: float
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def cosine_similarity(self) -> float:
        """Convert cosine distance to similarity (1 - distance)."""
        return max(0.0, 1.0 - self.distance)
