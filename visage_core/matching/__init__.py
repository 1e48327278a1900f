"""
Identity Matching Module
========================

Enrolled-face gallery and nearest-neighbour similarity matching.
"""

from visage_core.matching.gallery import EnrolledFace, EnrollStatus, FaceGallery
from visage_core.matching.matcher import (
    MATCH_THRESHOLD,
    MatchResult,
    SimilarityMatcher,
    cosine_similarity,
)

__all__ = [
    "EnrolledFace",
    "EnrollStatus",
    "FaceGallery",
    "MATCH_THRESHOLD",
    "MatchResult",
    "SimilarityMatcher",
    "cosine_similarity",
]
