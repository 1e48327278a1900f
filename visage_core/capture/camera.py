"""
Camera Capture
==============

Live frame sources for the detection loop.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
import logging

import cv2
import numpy as np

from visage_core.exceptions import CaptureError
from visage_core.utils.device import CameraConstraints


logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """A live video source that yields RGB frames."""

    paused: bool = False

    @abstractmethod
    def open(self, constraints: CameraConstraints) -> None:
        """Start capture; raise CaptureError if the device is unavailable."""
        pass

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """True once the source is producing frames."""
        pass

    @abstractmethod
    def read(self) -> Optional[np.ndarray]:
        """Current frame (RGB), or None if no frame is available."""
        pass

    @abstractmethod
    def release(self) -> None:
        """Stop capture and free the device."""
        pass


class CameraSource(FrameSource):
    """
    OpenCV webcam source.

    Example:
        >>> source = CameraSource(index=0)
        >>> source.open(CameraConstraints(width=1920, height=1440))
        >>> frame = source.read()
    """

    def __init__(self, index: int = 0):
        self.index = index
        self.paused = False
        self._cap: Optional[cv2.VideoCapture] = None

    def open(self, constraints: CameraConstraints) -> None:
        if self._cap is not None:
            self._cap.release()

        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CaptureError(f"Could not open camera index {self.index}")

        # Drivers pick the closest supported mode to the requested size
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height)

        self._cap = cap
        logger.info(
            f"Camera {self.index} opened at "
            f"{int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))}"
        )

    @property
    def is_ready(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __repr__(self) -> str:
        return f"CameraSource(index={self.index}, ready={self.is_ready})"


def list_available_cameras(max_index: int = 5) -> list:
    """Probe camera indices that can be opened."""
    available = []
    for index in range(max_index):
        cap = cv2.VideoCapture(index)
        if cap.isOpened():
            available.append(index)
        cap.release()
    return available
