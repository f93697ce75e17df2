# leaf_scanner/services/errors.py


class ScannerError(Exception):
    """Base class for errors raised by the scan pipeline."""


class ImageDecodeError(ScannerError):
    """The uploaded blob could not be decoded into a bitmap."""


class CameraUnavailableError(ScannerError):
    """The capture device could not be opened or did not deliver a frame."""


class ScanValidationError(ScannerError):
    """A scan was requested without a user identity or without an image."""
