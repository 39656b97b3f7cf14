"""
Errors Module - Exception Hierarchy
===================================
Exceptions raised by the photobooth core and its collaborators.
"""


class PhotoboothError(Exception):
    """Base class for all photobooth errors."""


class InvalidLayoutError(PhotoboothError, ValueError):
    """Raised when a strip layout is requested with an unsupported photo count."""


class CameraError(PhotoboothError):
    """Raised when the camera cannot be opened or stops delivering frames."""


class HandTrackingError(PhotoboothError):
    """Raised when the hand landmark provider cannot be initialized."""


class DecodeError(PhotoboothError):
    """Raised when a captured photo buffer cannot be decoded."""
