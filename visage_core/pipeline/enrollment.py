"""
Enrollment Importer
===================

Extracts one descriptor per supplied image and adds it to the gallery.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union
import logging
import re

import numpy as np

from visage_core.exceptions import DetectorNotReadyError
from visage_core.matching.gallery import EnrollStatus, FaceGallery
from visage_core.pipeline.features import DetectorSession
from visage_core.utils.image_utils import is_image_file, load_image


logger = logging.getLogger(__name__)

ImportItem = Union[str, Path, Tuple[str, np.ndarray]]

_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")


class ImportStatus(str, Enum):
    """Overall batch outcome."""
    NONE = "none"
    PARTIAL = "partial"
    COMPLETE = "complete"


@dataclass
class ImportReport:
    """
    Counts for an enrollment batch.

    Attributes:
        enrolled: Newly enrolled faces
        duplicates: Items skipped because the name already exists
        no_face: Items where no face or no descriptor was found
        failed: Items that raised while loading or detecting
        names: Names enrolled in this batch, in order
    """
    enrolled: int = 0
    duplicates: int = 0
    no_face: int = 0
    failed: int = 0
    names: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.enrolled + self.duplicates + self.no_face + self.failed

    @property
    def status(self) -> ImportStatus:
        if self.enrolled == 0:
            return ImportStatus.NONE
        if self.enrolled == self.total:
            return ImportStatus.COMPLETE
        return ImportStatus.PARTIAL


def derive_name(filename: Union[str, Path]) -> str:
    """
    Base file name without its last extension.

    A dotfile such as ".alice" is all extension and yields an empty name.
    """
    return _EXTENSION_PATTERN.sub("", Path(filename).name)


class EnrollmentImporter:
    """
    Batch enrollment from named images.

    Example:
        >>> importer = EnrollmentImporter(session, gallery)
        >>> report = importer.import_directory("./faces")
        >>> print(f"Imported {report.enrolled} faces")
    """

    def __init__(self, session: Optional[DetectorSession], gallery: FaceGallery):
        self.session = session
        self.gallery = gallery

    def extract_descriptor(self, image: np.ndarray) -> Optional[np.ndarray]:
        """Descriptor of the first detected face, or None."""
        if self.session is None or not self.session.ready:
            raise DetectorNotReadyError("Detector session is not initialized")

        faces = self.session.detector.detect(image)
        if not faces:
            return None
        return faces[0].embedding

    def import_batch(self, items: Iterable[ImportItem]) -> ImportReport:
        """
        Enroll a batch of images.

        Each item is either a path, loaded from disk, or a (filename, image)
        pair. Failures are per item; the batch always runs to the end.

        Args:
            items: Paths or (filename, RGB image) pairs

        Returns:
            ImportReport
        """
        if self.session is None or not self.session.ready:
            raise DetectorNotReadyError("Detector session is not initialized")

        report = ImportReport()

        for item in items:
            if isinstance(item, tuple):
                filename, image = item
            else:
                filename, image = item, None

            name = derive_name(filename)
            if name in self.gallery:
                logger.info(f"Skipping duplicate: {name}")
                report.duplicates += 1
                continue

            try:
                if image is None:
                    image = load_image(filename)
                descriptor = self.extract_descriptor(image)
            except Exception as e:
                logger.error(f"Failed to process {filename}: {e}")
                report.failed += 1
                continue

            if descriptor is None:
                logger.warning(f"No face found in {filename}")
                report.no_face += 1
                continue

            status = self.gallery.enroll(name, descriptor, image)
            if status == EnrollStatus.DUPLICATE:
                report.duplicates += 1
                continue

            report.enrolled += 1
            report.names.append(name)

        if report.status == ImportStatus.NONE:
            logger.warning("No valid faces found in imported photos")
        else:
            logger.info(f"Imported {report.enrolled} faces")

        return report

    def import_directory(self, directory: Union[str, Path]) -> ImportReport:
        """Enroll every image file in a directory, in name order."""
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Directory not found: {directory}")

        paths = sorted(p for p in directory.iterdir() if p.is_file() and is_image_file(p))
        return self.import_batch(paths)
