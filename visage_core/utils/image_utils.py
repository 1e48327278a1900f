"""
Image Utilities
===============

Common image processing utilities.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union
import logging

import cv2
import numpy as np
from PIL import Image


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".webp"}

LABEL_COLOR = (255, 255, 255)
BOX_COLOR = (0, 255, 255)


def load_image(
    path: Union[str, Path],
    max_size: Optional[int] = None,
) -> np.ndarray:
    """
    Load an image from file as RGB.

    Args:
        path: Path to image file
        max_size: Maximum dimension (preserves aspect ratio)

    Returns:
        Image as numpy array (H, W, 3), uint8
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    img = Image.open(path)
    if img.mode != "RGB":
        img = img.convert("RGB")

    if max_size is not None:
        w, h = img.size
        if w > max_size or h > max_size:
            scale = max_size / max(w, h)
            new_size = (int(w * scale), int(h * scale))
            img = img.resize(new_size, Image.LANCZOS)

    return np.array(img)


def is_image_file(path: Union[str, Path]) -> bool:
    """Check the file extension against the supported image types."""
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def crop_face(
    image: np.ndarray,
    bbox: Tuple[float, float, float, float],
    padding: float = 0.5,
    mirror: bool = False,
) -> np.ndarray:
    """
    Crop a face region with padding, clamped to the image.

    Args:
        image: Input image
        bbox: Bounding box (x, y, w, h)
        padding: Padding on each side (fraction of box size)
        mirror: Flip the crop horizontally

    Returns:
        Cropped face image
    """
    img_h, img_w = image.shape[:2]
    x, y, w, h = bbox

    pad_w = w * padding
    pad_h = h * padding

    x1 = max(0, int(x - pad_w))
    y1 = max(0, int(y - pad_h))
    x2 = min(img_w, int(x1 + w + pad_w * 2))
    y2 = min(img_h, int(y1 + h + pad_h * 2))

    crop = image[y1:y2, x1:x2]
    if mirror:
        crop = crop[:, ::-1]
    return crop.copy()


def rotate_image(image: np.ndarray, quarter_turns: int) -> np.ndarray:
    """Rotate an image by multiples of 90 degrees clockwise."""
    quarter_turns %= 4
    if quarter_turns == 1:
        return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
    if quarter_turns == 2:
        return cv2.rotate(image, cv2.ROTATE_180)
    if quarter_turns == 3:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)
    return image


def unrotate_points(
    points: np.ndarray,
    quarter_turns: int,
    original_size: Tuple[int, int],
) -> np.ndarray:
    """
    Map (x, y) points found on a rotated image back to the original image.

    Args:
        points: Array (N, 2+) in rotated image coordinates
        quarter_turns: Clockwise quarter turns that were applied
        original_size: Original image size (width, height)

    Returns:
        Array (N, 2+) in original image coordinates
    """
    w, h = original_size
    out = np.array(points, dtype=np.float32, copy=True)
    xr, yr = out[:, 0].copy(), out[:, 1].copy()
    quarter_turns %= 4
    if quarter_turns == 1:
        out[:, 0], out[:, 1] = yr, (h - 1) - xr
    elif quarter_turns == 2:
        out[:, 0], out[:, 1] = (w - 1) - xr, (h - 1) - yr
    elif quarter_turns == 3:
        out[:, 0], out[:, 1] = (w - 1) - yr, xr
    return out


def frame_thumbnail(image: np.ndarray, size: int = 32) -> np.ndarray:
    """Small grayscale float thumbnail for cheap frame comparison."""
    if image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    else:
        gray = image
    small = cv2.resize(gray, (size, size), interpolation=cv2.INTER_AREA)
    return small.astype(np.float32) / 255.0


def sharpness_score(image: np.ndarray, scale: float = 300.0) -> float:
    """
    Variance of the Laplacian, squashed into [0, 1].

    Printed photos and screens held up to the camera tend to be blurrier
    than a live face at the same distance.
    """
    if image.size == 0:
        return 0.0
    if image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    else:
        gray = image
    variance = float(cv2.Laplacian(gray, cv2.CV_64F).var())
    return variance / (variance + scale)


def draw_annotations(
    image: np.ndarray,
    annotations: Iterable,
    mirror: bool = False,
) -> np.ndarray:
    """
    Draw boxes and labels for a frame report.

    Args:
        image: RGB frame the annotations were computed on
        annotations: FaceAnnotation objects (bbox, label, sub_label, points)
        mirror: Flip the frame for display, keeping text readable

    Returns:
        Annotated RGB image
    """
    canvas = image.copy()
    img_w = canvas.shape[1]
    if mirror:
        canvas = np.ascontiguousarray(canvas[:, ::-1])

    for ann in annotations:
        x, y, w, h = (int(v) for v in ann.bbox)
        if mirror:
            x = img_w - x - w

        overlay = canvas.copy()
        cv2.rectangle(overlay, (x, y), (x + w, y + h), BOX_COLOR, -1)
        cv2.addWeighted(overlay, 0.2, canvas, 0.8, 0, dst=canvas)
        cv2.rectangle(canvas, (x, y), (x + w, y + h), BOX_COLOR, 4)

        _put_text(canvas, ann.label, (x, y - 30), 0.9, 2)
        if ann.sub_label:
            _put_text(canvas, ann.sub_label, (x, y - 10), 0.6, 1)
        _put_text(canvas, f"Points: {ann.points}", (x, y + h + 20), 0.6, 1)

    return canvas


def _put_text(
    canvas: np.ndarray,
    text: str,
    origin: Sequence[int],
    scale: float,
    thickness: int,
) -> None:
    # Dark outline under white text
    cv2.putText(canvas, text, tuple(origin), cv2.FONT_HERSHEY_SIMPLEX, scale,
                (0, 0, 0), thickness + 3, cv2.LINE_AA)
    cv2.putText(canvas, text, tuple(origin), cv2.FONT_HERSHEY_SIMPLEX, scale,
                LABEL_COLOR, thickness, cv2.LINE_AA)
