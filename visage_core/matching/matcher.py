"""
Similarity Matcher
==================

Nearest-neighbour identity matching over the descriptor gallery.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING
import numpy as np

from visage_core.matching.gallery import FaceGallery

if TYPE_CHECKING:
    from visage_core.pipeline.features import DetectorSession


MATCH_THRESHOLD = 0.5


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity of two vectors, in [-1, 1].

    Returns 0 when either vector has zero magnitude or the lengths differ.
    """
    a = np.asarray(a, dtype=np.float64).ravel()
    b = np.asarray(b, dtype=np.float64).ravel()
    if a.shape != b.shape:
        return 0.0

    magnitude = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if magnitude == 0:
        return 0.0
    return float(np.dot(a, b)) / magnitude


@dataclass(frozen=True)
class MatchResult:
    """
    Nearest gallery entry for a query descriptor.

    Attributes:
        name: Nearest identity name
        score: Raw cosine similarity
        is_match: Whether score exceeds the threshold
        reference_image: The nearest identity's enrolled image
        index: Gallery position at search time
    """
    name: str
    score: float
    is_match: bool
    reference_image: Any = None
    index: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "score": self.score,
            "is_match": self.is_match,
            "index": self.index,
        }


class SimilarityMatcher:
    """
    Finds the most similar enrolled face for a descriptor.

    Example:
        >>> matcher = SimilarityMatcher(gallery)
        >>> result = matcher.find_match(face.embedding)
        >>> if result and result.is_match:
        ...     print(f"Identity verified: {result.name}")
    """

    def __init__(
        self,
        gallery: FaceGallery,
        session: Optional["DetectorSession"] = None,
        threshold: float = MATCH_THRESHOLD,
    ):
        """
        Initialize the matcher.

        Args:
            gallery: Enrolled faces to search
            session: Detector session; matching is unavailable until it is ready
            threshold: Similarity must be strictly greater than this to match
        """
        self.gallery = gallery
        self.session = session
        self.threshold = threshold

    @property
    def available(self) -> bool:
        return self.session is None or self.session.ready

    def find_match(self, query: np.ndarray) -> Optional[MatchResult]:
        """
        Match a descriptor against the gallery.

        Args:
            query: Query descriptor

        Returns:
            MatchResult for the nearest entry (earliest wins ties), or None if
            the gallery is empty or the matcher is unavailable
        """
        if not self.available:
            return None

        entries = self.gallery.entries()
        if not entries:
            return None

        best_index = 0
        best_score = cosine_similarity(query, entries[0].descriptor)
        for index in range(1, len(entries)):
            score = cosine_similarity(query, entries[index].descriptor)
            if score > best_score:
                best_index, best_score = index, score

        best = entries[best_index]
        return MatchResult(
            name=best.name,
            score=best_score,
            is_match=best_score > self.threshold,
            reference_image=best.reference_image,
            index=best_index,
        )

    def __repr__(self) -> str:
        return f"SimilarityMatcher(threshold={self.threshold}, gallery={self.gallery!r})"
