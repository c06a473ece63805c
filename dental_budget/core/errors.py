"""
Exceptions raised by the annotation and budget core.

Every error is local and recoverable: the caller reports it to the user
and the core keeps its previous state.
"""


class DentalBudgetError(Exception):
    """Base class for all errors raised by dental_budget."""


class ImageDecodeError(DentalBudgetError):
    """Raised when image bytes are not a supported raster format."""


class ImageRejectedError(DentalBudgetError):
    """Raised when an upload violates the visit limits (size, count)."""


class SurfaceNotReadyError(DentalBudgetError):
    """Raised when a marker operation runs on a surface without an image."""


class InvalidSessionCount(DentalBudgetError, ValueError):
    """Raised when a session plan is requested for less than one session."""


class CatalogUnavailableError(DentalBudgetError):
    """Raised by a cost lookup when the treatment catalog cannot be read."""
