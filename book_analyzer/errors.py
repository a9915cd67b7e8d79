"""Exceptions raised by the book analyzer."""


class BookAnalyzerError(Exception):
    """Base class for all book analyzer errors."""


class ConfigurationError(BookAnalyzerError):
    """A required setting is missing or has an invalid value."""


class ChapterListEmpty(BookAnalyzerError):
    """No usable chapters were left after validation."""

    def __init__(
        self,
        message: str = "Could not identify chapters: no valid chapters found. "
        "Please check if the PDF has a proper table of contents.",
    ):
        super().__init__(message)


class ModelResponseError(BookAnalyzerError):
    """The model call failed or returned something we could not use."""


class RunCancelled(BookAnalyzerError):
    """The run was cancelled between chapters."""
