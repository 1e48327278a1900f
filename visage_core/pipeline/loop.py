"""
Detection Loop Controller
=========================

Drives the capture -> detect -> match -> present cycle as an explicit state
machine. Each tick runs at most one detection; a surfaced match suspends
the loop until the presentation layer clears it.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple
import logging

import numpy as np

from visage_core.capture.camera import FrameSource
from visage_core.config import SystemConfig
from visage_core.detection.base import FaceDetection
from visage_core.exceptions import CaptureError
from visage_core.matching.matcher import MatchResult, SimilarityMatcher
from visage_core.pipeline.features import DetectorSession, select_features
from visage_core.utils.device import CameraConstraints
from visage_core.utils.image_utils import crop_face


logger = logging.getLogger(__name__)

# Seconds run() sleeps between ticks while no frame is available
MIN_WAIT_INTERVAL = 0.01
RESUME_POLL_INTERVAL = 0.05


class LoopState(str, Enum):
    """Lifecycle of the detection loop."""
    IDLE = "idle"
    CAPTURING = "capturing"
    SUSPENDED = "suspended"
    STOPPED = "stopped"


class TickOutcome(str, Enum):
    """What a single tick did."""
    INACTIVE = "inactive"      # not started or stopped; do not reschedule
    WAITING = "waiting"        # no frame or detector yet; reschedule
    SUSPENDED = "suspended"    # interruption flag set; reschedule
    SKIPPED = "skipped"        # detection raised; frame dropped, reschedule
    PROCESSED = "processed"    # frame detected and annotated; reschedule
    MATCHED = "matched"        # match surfaced; wait for resume()


@dataclass
class FaceAnnotation:
    """Per-face presentation data for one frame."""
    bbox: Tuple[float, float, float, float]
    label: str = "Unknown"
    sub_label: str = ""
    points: int = 0
    match: Optional[MatchResult] = None


@dataclass
class FrameReport:
    """Everything the presentation layer needs to draw a processed frame."""
    faces: List[FaceAnnotation] = field(default_factory=list)
    fps: int = 0
    frame: Optional[np.ndarray] = None


@dataclass
class MatchEvent:
    """
    A surfaced identity match.

    Attributes:
        name: Matched identity
        score: Raw similarity score
        live_image: Padded crop of the face from the live frame
        reference_image: The enrolled image for the identity
        bbox: Face box in the live frame
    """
    name: str
    score: float
    live_image: Optional[np.ndarray]
    reference_image: Any
    bbox: Tuple[float, float, float, float]


class DetectionLoopController:
    """
    Continuous detection loop with suspend/resume gating.

    Example:
        >>> controller = DetectionLoopController(session, matcher, CameraSource())
        >>> controller.start(constraints)
        >>> while controller.tick() != TickOutcome.INACTIVE:
        ...     pass
    """

    def __init__(
        self,
        session: DetectorSession,
        matcher: SimilarityMatcher,
        source: FrameSource,
        config: Optional[SystemConfig] = None,
        on_frame: Optional[Callable[[FrameReport], None]] = None,
        on_match: Optional[Callable[[MatchEvent], None]] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Initialize the controller.

        Args:
            session: Initialized detector session
            matcher: Matcher over the enrolled gallery
            source: Live frame source
            config: System configuration (defaults if None)
            on_frame: Called with a FrameReport after each processed frame
            on_match: Called with a MatchEvent when a match is surfaced
            clock: Monotonic clock in seconds
        """
        self.session = session
        self.matcher = matcher
        self.source = source
        self.config = config or SystemConfig()
        self.on_frame = on_frame
        self.on_match = on_match
        self._clock = clock

        self.state = LoopState.IDLE
        self.status = "Ready to Start"
        self.fps = 0
        self.frames_processed = 0
        self.failed_frames = 0
        self.last_match: Optional[MatchEvent] = None
        self.performance_mode = self.config.detector.performance_mode

        self._lock = threading.RLock()
        self._resume_event = threading.Event()
        self._resume_event.set()
        self._stop_event = threading.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def suspended(self) -> bool:
        return self.state == LoopState.SUSPENDED

    def start(self, constraints: CameraConstraints) -> None:
        """
        Attach the camera and enter the capturing state.

        Raises:
            CaptureError: If the camera cannot be opened; the loop stays idle
        """
        with self._lock:
            if self.state in (LoopState.CAPTURING, LoopState.SUSPENDED):
                return
            self.status = "Starting Camera..."

        try:
            self.source.open(constraints)
        except Exception as e:
            with self._lock:
                self.state = LoopState.IDLE
                self.status = f"Camera Error: {e}"
            logger.error(f"Camera setup failed: {e}")
            if isinstance(e, CaptureError):
                raise
            raise CaptureError(str(e)) from e

        with self._lock:
            self.state = LoopState.CAPTURING
            self.status = "Active"
            self._stop_event.clear()
            self._resume_event.set()

    def stop(self) -> None:
        """Release the camera and end the loop."""
        with self._lock:
            self.state = LoopState.STOPPED
            self.status = "Stopped"
            self._stop_event.set()
            self._resume_event.set()
        self.source.release()

    def suspend(self) -> None:
        """Set the interruption flag; detection pauses from the next tick."""
        with self._lock:
            if self.state == LoopState.CAPTURING:
                self.state = LoopState.SUSPENDED
                self._resume_event.clear()

    def resume(self) -> None:
        """Clear the interruption flag and continue detecting."""
        with self._lock:
            if self.state == LoopState.SUSPENDED:
                self.state = LoopState.CAPTURING
                self.last_match = None
            self._resume_event.set()

    def set_performance_mode(self, enabled: bool) -> None:
        """Swap the detector features live; the hardware tier is reused."""
        if enabled:
            logger.info("Switching to High Performance (Less Accuracy)")
        else:
            logger.info("Switching to High Accuracy (Lower FPS)")

        features = select_features(self.session.tier, enabled)
        self.session.detector.configure(features)
        self.session.features = features
        self.performance_mode = enabled

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def tick(self) -> TickOutcome:
        """Run one scheduling cycle."""
        with self._lock:
            state = self.state

        if state in (LoopState.IDLE, LoopState.STOPPED):
            return TickOutcome.INACTIVE
        if not self.source.is_ready or self.source.paused or not self.session.ready:
            return TickOutcome.WAITING
        if state == LoopState.SUSPENDED:
            return TickOutcome.SUSPENDED

        t0 = self._clock()

        frame = self.source.read()
        if frame is None:
            return TickOutcome.WAITING

        try:
            faces = self.session.detector.detect_frame(frame)
        except Exception as e:
            self.failed_frames += 1
            logger.warning(f"Detection failed, skipping frame: {e}")
            return TickOutcome.SKIPPED

        annotations = []
        for face in faces:
            annotation = FaceAnnotation(bbox=face.bbox, points=face.points)

            if face.embedding is not None:
                match = self.matcher.find_match(face.embedding)
                if match is not None:
                    if match.is_match:
                        if not self._surface_match(frame, face, match):
                            # Stopped or suspended while detecting
                            if self.state == LoopState.SUSPENDED:
                                return TickOutcome.SUSPENDED
                            return TickOutcome.INACTIVE
                        self._update_fps(t0)
                        return TickOutcome.MATCHED
                    score = f"{match.score:.4f}"
                    annotation.label = f"Unknown ({score})"
                    annotation.sub_label = f"Nearest: {match.name} ({score})"
                    annotation.match = match

            annotations.append(annotation)

        self._update_fps(t0)
        self.frames_processed += 1

        if self.on_frame is not None:
            self.on_frame(FrameReport(faces=annotations, fps=self.fps, frame=frame))

        return TickOutcome.PROCESSED

    def run(self, max_ticks: Optional[int] = None) -> int:
        """
        Drive tick() until stopped.

        While matched or suspended this blocks until resume() or stop() is
        called. While waiting for a frame it sleeps at least
        MIN_WAIT_INTERVAL between ticks.

        Args:
            max_ticks: Stop after this many ticks (unbounded if None)

        Returns:
            Number of ticks executed
        """
        ticks = 0
        interval = self.config.loop.tick_interval

        while not self._stop_event.is_set():
            if max_ticks is not None and ticks >= max_ticks:
                break

            outcome = self.tick()
            ticks += 1

            if outcome == TickOutcome.INACTIVE:
                break
            if outcome in (TickOutcome.MATCHED, TickOutcome.SUSPENDED):
                self._wait_for_resume()
                continue
            if outcome == TickOutcome.WAITING:
                self._stop_event.wait(max(interval, MIN_WAIT_INTERVAL))
            elif interval > 0:
                self._stop_event.wait(interval)

        return ticks

    def _wait_for_resume(self) -> None:
        while not self._resume_event.wait(RESUME_POLL_INTERVAL):
            if self._stop_event.is_set():
                return

    def _surface_match(self, frame: np.ndarray, face: FaceDetection, match: MatchResult) -> bool:
        """Suspend and emit a MatchEvent; False if the loop is no longer capturing."""
        with self._lock:
            if self.state != LoopState.CAPTURING:
                logger.debug(f"Dropping match for {match.name}, loop is {self.state.value}")
                return False
            self.state = LoopState.SUSPENDED
            self._resume_event.clear()

        live_image = crop_face(
            frame,
            face.bbox,
            padding=self.config.matching.crop_padding,
            mirror=self.config.camera.mirror,
        )
        event = MatchEvent(
            name=match.name,
            score=match.score,
            live_image=live_image,
            reference_image=match.reference_image,
            bbox=face.bbox,
        )
        self.last_match = event
        logger.info(f"Identity verified: {match.name} ({match.score:.4f})")

        if self.on_match is not None:
            self.on_match(event)
        return True

    def _update_fps(self, t0: float) -> None:
        elapsed_ms = (self._clock() - t0) * 1000.0
        if elapsed_ms > 0:
            self.fps = round(1000.0 / elapsed_ms)

    def __repr__(self) -> str:
        return (
            f"DetectionLoopController(state={self.state.value}, "
            f"fps={self.fps}, frames={self.frames_processed})"
        )
