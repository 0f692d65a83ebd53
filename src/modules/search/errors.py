# src/modules/search/errors.py

class SearchError(Exception):
    """Base class for intelligent search failures."""

class SearchValidationError(SearchError):
    """The request cannot be searched (e.g. a blank query). Raised before any I/O."""

class SourceUnavailable(SearchError):
    """One content collection could not be queried; it contributes no results."""

    def __init__(self, source: str, cause: BaseException):
        super().__init__(f"Search source '{source}' unavailable: {cause!r}")
        self.source = source
        self.cause = cause

class EnhancementFailed(SearchError):
    """The AI enhancement call failed or returned unusable data."""

class PersistenceFailed(SearchError):
    """The search log row could not be written."""
