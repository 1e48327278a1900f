"""
Error Types
===========

Exceptions raised by the Visage pipeline.
"""


class VisageError(Exception):
    """Base class for all Visage errors."""


class DetectorInitError(VisageError):
    """The detector could not start under the primary or fallback backend."""


class DetectorNotReadyError(VisageError):
    """An operation needed an initialized detector session."""


class CaptureError(VisageError):
    """The camera could not be opened for this session."""


class DetectionError(VisageError):
    """Detection failed on a single frame or image."""
