"""
Descriptor Gallery
==================

In-memory store of enrolled identities.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Tuple
import logging

import numpy as np


logger = logging.getLogger(__name__)


class EnrollStatus(str, Enum):
    """Outcome of an enrollment attempt."""
    ENROLLED = "enrolled"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class EnrolledFace:
    """
    A known identity.

    Attributes:
        name: Display name, unique within a gallery
        descriptor: Face descriptor vector
        reference_image: Opaque handle to the enrolled image
    """
    name: str
    descriptor: np.ndarray
    reference_image: Any = None


class FaceGallery:
    """
    Ordered, name-unique collection of enrolled faces.

    Mutations and snapshot reads share one lock, so a search always sees a
    consistent list even if enrollment happens from another thread.

    Example:
        >>> gallery = FaceGallery()
        >>> gallery.enroll("alice", descriptor, image)
        <EnrollStatus.ENROLLED: 'enrolled'>
        >>> gallery.enroll("alice", other, image)
        <EnrollStatus.DUPLICATE: 'duplicate'>
    """

    def __init__(self):
        self._faces: List[EnrolledFace] = []
        self._lock = threading.RLock()

    def enroll(self, name: str, descriptor: np.ndarray, reference_image: Any = None) -> EnrollStatus:
        """
        Append a face unless the name is already enrolled.

        Args:
            name: Identity name
            descriptor: Face descriptor
            reference_image: Image handle shown next to matches

        Returns:
            ENROLLED or DUPLICATE
        """
        descriptor = np.asarray(descriptor, dtype=np.float32).ravel()
        with self._lock:
            if any(face.name == name for face in self._faces):
                logger.info(f"Skipping duplicate: {name}")
                return EnrollStatus.DUPLICATE
            self._faces.append(EnrolledFace(name, descriptor, reference_image))
        return EnrollStatus.ENROLLED

    def remove_at(self, index: int) -> None:
        """Remove by position; out-of-range indices are ignored."""
        with self._lock:
            if 0 <= index < len(self._faces):
                del self._faces[index]

    def clear(self) -> None:
        """Remove all faces."""
        with self._lock:
            self._faces = []

    def size(self) -> int:
        with self._lock:
            return len(self._faces)

    def entries(self) -> Tuple[EnrolledFace, ...]:
        """Read-only snapshot in insertion order."""
        with self._lock:
            return tuple(self._faces)

    def names(self) -> Tuple[str, ...]:
        return tuple(face.name for face in self.entries())

    def __contains__(self, name: object) -> bool:
        return any(face.name == name for face in self.entries())

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[EnrolledFace]:
        return iter(self.entries())

    def __repr__(self) -> str:
        return f"FaceGallery(size={self.size()})"
