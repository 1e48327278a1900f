"""
Test Enrollment Importer
========================
"""

import numpy as np
import pytest
from PIL import Image

from visage_core.detection.base import FaceDetection
from visage_core.exceptions import DetectorNotReadyError
from visage_core.matching.gallery import FaceGallery
from visage_core.pipeline.enrollment import (
    EnrollmentImporter,
    ImportReport,
    ImportStatus,
    derive_name,
)

from conftest import StubDetector, make_session


NO_FACE = 0
BROKEN = 1


def image_of(value):
    return np.full((8, 8, 3), value, dtype=np.uint8)


def faces_by_pixel(image):
    """Face content keyed on the first pixel value."""
    value = int(image[0, 0, 0])
    if value == NO_FACE:
        return []
    if value == BROKEN:
        raise RuntimeError("corrupt image")
    embedding = np.array([value, 255 - value, 1.0], dtype=np.float32)
    return [
        FaceDetection(bbox=(0, 0, 4, 4), embedding=embedding),
        FaceDetection(bbox=(4, 4, 4, 4), embedding=-embedding),
    ]


@pytest.fixture
def importer():
    detector = StubDetector(faces=faces_by_pixel)
    return EnrollmentImporter(make_session(detector), FaceGallery())


class TestDeriveName:
    """Tests for derive_name."""

    def test_strips_last_extension(self):
        assert derive_name("alice.jpg") == "alice"
        assert derive_name("mary.jane.png") == "mary.jane"
        assert derive_name("photos/bob.jpeg") == "bob"

    def test_dotfile_and_bare_names(self):
        """Only a trailing extension is removed."""
        assert derive_name(".alice") == ""
        assert derive_name("photos/.alice.png") == ".alice"
        assert derive_name("carol") == "carol"


class TestImportReport:
    """Tests for ImportReport status."""

    def test_status(self):
        assert ImportReport().status == ImportStatus.NONE
        assert ImportReport(enrolled=2, names=["a", "b"]).status == ImportStatus.COMPLETE
        assert ImportReport(enrolled=1, no_face=1).status == ImportStatus.PARTIAL
        assert ImportReport(duplicates=3).status == ImportStatus.NONE


class TestImportBatch:
    """Tests for EnrollmentImporter.import_batch."""

    def test_enrolls_first_face(self, importer):
        """One descriptor per image, taken from the first face."""
        report = importer.import_batch([("alice.jpg", image_of(10)), ("bob.png", image_of(20))])

        assert report.enrolled == 2
        assert report.names == ["alice", "bob"]
        assert report.status == ImportStatus.COMPLETE

        alice = importer.gallery.entries()[0]
        assert alice.name == "alice"
        np.testing.assert_allclose(alice.descriptor, [10, 245, 1])
        assert alice.reference_image.shape == (8, 8, 3)

    def test_duplicate_names_skipped(self, importer):
        """A name already in the gallery is skipped before detection."""
        importer.import_batch([("alice.jpg", image_of(10))])
        detect_calls = importer.session.detector.detect_calls

        report = importer.import_batch([("alice.png", image_of(30)), ("carol.jpg", image_of(40))])

        assert report.duplicates == 1
        assert report.enrolled == 1
        assert importer.session.detector.detect_calls == detect_calls + 1
        assert importer.gallery.names() == ("alice", "carol")
        assert report.status == ImportStatus.PARTIAL

    def test_duplicate_within_batch(self, importer):
        report = importer.import_batch([("dave.jpg", image_of(10)), ("dave.png", image_of(20))])

        assert report.enrolled == 1
        assert report.duplicates == 1

    def test_no_face(self, importer):
        report = importer.import_batch([("empty.jpg", image_of(NO_FACE))])

        assert report.no_face == 1
        assert report.enrolled == 0
        assert report.status == ImportStatus.NONE
        assert importer.gallery.size() == 0

    def test_failure_does_not_abort(self, importer):
        """One bad item is counted and the batch continues."""
        report = importer.import_batch([
            ("broken.jpg", image_of(BROKEN)),
            ("erin.jpg", image_of(50)),
            ("missing.jpg", image_of(NO_FACE)),
        ])

        assert report.failed == 1
        assert report.enrolled == 1
        assert report.no_face == 1
        assert report.total == 3
        assert report.status == ImportStatus.PARTIAL

    def test_missing_file(self, importer, tmp_path):
        report = importer.import_batch([tmp_path / "ghost.jpg"])

        assert report.failed == 1
        assert report.status == ImportStatus.NONE

    def test_unready_session(self, importer):
        importer.session.ready = False

        with pytest.raises(DetectorNotReadyError):
            importer.import_batch([("alice.jpg", image_of(10))])

    def test_no_session(self):
        importer = EnrollmentImporter(None, FaceGallery())

        with pytest.raises(DetectorNotReadyError):
            importer.extract_descriptor(image_of(10))


class TestImportDirectory:
    """Tests for EnrollmentImporter.import_directory."""

    def test_directory(self, importer, tmp_path):
        """Image files are enrolled in name order; other files are ignored."""
        Image.fromarray(image_of(60)).save(tmp_path / "zoe.png")
        Image.fromarray(image_of(70)).save(tmp_path / "adam.png")
        (tmp_path / "notes.txt").write_text("not an image")

        report = importer.import_directory(tmp_path)

        assert report.enrolled == 2
        assert importer.gallery.names() == ("adam", "zoe")

    def test_missing_directory(self, importer, tmp_path):
        with pytest.raises(FileNotFoundError):
            importer.import_directory(tmp_path / "nope")
