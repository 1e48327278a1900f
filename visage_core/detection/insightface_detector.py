"""
InsightFace Face Detector
=========================

Face detection, landmarks, and identity embeddings via InsightFace
FaceAnalysis. Optional sub-detectors are switched by FeatureConfig.
"""

from __future__ import annotations

from typing import List, Optional, Set, Tuple
import logging

import cv2
import numpy as np

from visage_core.config import FeatureConfig
from visage_core.detection.base import FaceDetector, FaceDetection
from visage_core.exceptions import DetectionError
from visage_core.utils.device import gpu_available, resolve_providers
from visage_core.utils.image_utils import (
    crop_face,
    rotate_image,
    sharpness_score,
    unrotate_points,
)


logger = logging.getLogger(__name__)

# Eye contour points in the 68-point layout
EYE_POINT_INDICES = list(range(36, 48))


def required_modules(features: FeatureConfig) -> Set[str]:
    """FaceAnalysis modules needed for a feature set."""
    modules = {"detection"}
    if features.description:
        modules.add("recognition")
    if features.mesh:
        modules.add("landmark_2d_106")
    if features.iris:
        modules.add("landmark_3d_68")
    return modules


class InsightFaceDetector(FaceDetector):
    """
    Face detector using an InsightFace model pack (RetinaFace/SCRFD + ArcFace).

    Feature mapping:
        mesh        -> 106-point 2D landmarks
        iris        -> eye contour points from the 68-point 3D landmarks
        description -> ArcFace recognition embedding
        rotation    -> retry on frames rotated 90 degrees when nothing is found
        liveness / antispoof -> sharpness-based live score on the face crop
        max_faces   -> FaceAnalysis max_num

    Example:
        >>> detector = InsightFaceDetector(pack_name="buffalo_l")
        >>> detector.initialize(FeatureConfig(), backend="gpu")
        >>> faces = detector.detect(image)
    """

    def __init__(
        self,
        pack_name: str = "buffalo_l",
        pack_root: Optional[str] = None,
        det_size: Tuple[int, int] = (640, 640),
        confidence_threshold: float = 0.5,
        max_cached_frames: int = 5,
    ):
        """
        Initialize the InsightFace detector.

        Args:
            pack_name: Model pack (buffalo_l, buffalo_s, buffalo_sc)
            pack_root: Directory holding model packs (InsightFace default if None)
            det_size: Detector input size
            confidence_threshold: Minimum detection confidence
            max_cached_frames: Consecutive frames a cached result may be reused
        """
        super().__init__(max_cached_frames=max_cached_frames)
        self.pack_name = pack_name
        self.pack_root = pack_root
        self.det_size = tuple(det_size)
        self.confidence_threshold = confidence_threshold

        self._app = None
        self._loaded_modules: Set[str] = set()

    def _load(self, backend: str) -> None:
        """Load the FaceAnalysis app for a backend."""
        try:
            from insightface.app import FaceAnalysis
        except ImportError:
            raise ImportError(
                "insightface package is required. "
                "Install with: pip install insightface onnxruntime"
            )

        providers = resolve_providers(backend)
        if backend == "gpu" and not gpu_available():
            raise RuntimeError("CUDAExecutionProvider is not available")

        modules = required_modules(self.features)
        kwargs = {
            "name": self.pack_name,
            "providers": providers,
            "allowed_modules": sorted(modules),
        }
        if self.pack_root:
            kwargs["root"] = self.pack_root

        logger.info(f"Loading {self.pack_name} on {backend} with modules {sorted(modules)}")
        app = FaceAnalysis(**kwargs)
        app.prepare(
            ctx_id=0 if backend == "gpu" else -1,
            det_thresh=self.confidence_threshold,
            det_size=self.det_size,
        )

        self._app = app
        self._loaded_modules = modules

    def configure(self, features: FeatureConfig) -> None:
        """Swap features; reload lazily if a newly enabled module is missing."""
        super().configure(features)
        if not required_modules(features) <= self._loaded_modules:
            logger.info("Feature change needs additional models, reloading")
            self._load(self.backend or "cpu")

    def detect(self, image: np.ndarray) -> List[FaceDetection]:
        """
        Detect faces in an RGB image.

        Args:
            image: RGB image as numpy array (H, W, C)

        Returns:
            List of FaceDetection objects
        """
        if self._app is None:
            raise DetectionError("Detector not initialized")

        detections = self._detect_upright(image, quarter_turns=0)

        if not detections and self.features.rotation:
            for quarter_turns in (1, 3):
                detections = self._detect_upright(image, quarter_turns)
                if detections:
                    break

        if self.features.liveness or self.features.antispoof:
            for detection in detections:
                crop = crop_face(image, detection.bbox, padding=0.0)
                detection.live_score = sharpness_score(crop)

        return detections

    def _detect_upright(self, image: np.ndarray, quarter_turns: int) -> List[FaceDetection]:
        """Run FaceAnalysis on a rotated copy and map results back."""
        h, w = image.shape[:2]
        rotated = rotate_image(image, quarter_turns)

        # InsightFace expects BGR
        bgr = cv2.cvtColor(rotated, cv2.COLOR_RGB2BGR)
        try:
            faces = self._app.get(bgr, max_num=self.features.max_faces)
        except Exception as e:
            raise DetectionError(f"Face analysis failed: {e}") from e

        detections = []
        for face in faces:
            corners = np.array(
                [[face.bbox[0], face.bbox[1]], [face.bbox[2], face.bbox[3]]],
                dtype=np.float32,
            )
            corners = unrotate_points(corners, quarter_turns, (w, h))
            x1, y1 = corners.min(axis=0)
            x2, y2 = corners.max(axis=0)

            mesh = None
            if self.features.mesh and getattr(face, "landmark_2d_106", None) is not None:
                mesh = unrotate_points(face.landmark_2d_106, quarter_turns, (w, h))

            iris = None
            if self.features.iris and getattr(face, "landmark_3d_68", None) is not None:
                eyes = face.landmark_3d_68[EYE_POINT_INDICES]
                iris = unrotate_points(eyes, quarter_turns, (w, h))

            embedding = None
            if self.features.description and getattr(face, "embedding", None) is not None:
                embedding = np.asarray(face.embedding, dtype=np.float32)

            detections.append(FaceDetection(
                bbox=(float(x1), float(y1), float(x2 - x1), float(y2 - y1)),
                confidence=float(face.det_score),
                mesh=mesh,
                iris=iris,
                embedding=embedding,
            ))

        return detections

    def __repr__(self) -> str:
        return (
            f"InsightFaceDetector(pack={self.pack_name}, "
            f"backend={self.backend}, ready={self.is_ready})"
        )
