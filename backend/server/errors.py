"""
Error types raised by the scrape and bundle pipeline.

Core modules raise these; the FastAPI routes translate them into
HTTP responses with a short public message.
"""


class PhotoScraperError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(PhotoScraperError):
    """A required request field is missing or empty."""


class FetchError(PhotoScraperError):
    """A remote page or image could not be fetched."""


class EmptyResultError(PhotoScraperError):
    """Scraping a page produced no image references."""


class ConversionError(PhotoScraperError):
    """An image could not be converted to JPEG."""


class ArchiveError(PhotoScraperError):
    """The zip archive could not be built."""


class DeliveryError(PhotoScraperError):
    """The finished archive could not be handed to the caller."""
