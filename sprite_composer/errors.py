"""Exception hierarchy.

Only conditions without a defined fallback raise. Missing selections, unknown
``relative_to`` targets and positioning cycles are handled in place and never
surface as exceptions.
"""

from typing import Optional


class CompositorError(Exception):
    """Base class for every error raised by ``sprite_composer``."""


class InvalidDescriptor(CompositorError, ValueError):
    """A sprite sheet descriptor cannot be sliced (e.g. ``columns <= 0``)."""


class InvalidConfig(CompositorError, ValueError):
    """A configuration document is malformed or missing required fields."""


class LoadFailure(CompositorError):
    """A sprite sheet image could not be acquired; the frame is aborted."""

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        message = f"Failed to load image {url!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ExportFailure(CompositorError):
    """The finished raster could not be encoded with the requested options."""


class UploadFailure(CompositorError):
    """The upload endpoint rejected the request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
