"""Exception taxonomy for corpus loading and concordance search."""

from __future__ import annotations


class ConcordanceBrowserError(Exception):
    """Base class for all user-facing application errors."""


class ConfigError(ConcordanceBrowserError):
    """The application manifest could not be read or parsed."""


class CorpusError(ConcordanceBrowserError):
    """The corpus table could not be read or contained a malformed row."""


class SearchPreconditionError(ConcordanceBrowserError):
    """A search was rejected locally before any network call."""


class EmptyQueryError(SearchPreconditionError):
    def __init__(self) -> None:
        super().__init__("Enter a search expression.")


class EmptyCorpusError(SearchPreconditionError):
    def __init__(self) -> None:
        super().__init__("The corpus has not been loaded or contains no documents.")


class EmptySelectionError(SearchPreconditionError):
    def __init__(self) -> None:
        super().__init__("No documents are included in the search.")


class NoValidIdsError(SearchPreconditionError):
    def __init__(self) -> None:
        super().__init__("None of the included documents has a numeric id.")


class SearchServiceError(ConcordanceBrowserError):
    """The concordance service failed or returned an unusable response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "ConcordanceBrowserError",
    "ConfigError",
    "CorpusError",
    "EmptyCorpusError",
    "EmptyQueryError",
    "EmptySelectionError",
    "NoValidIdsError",
    "SearchPreconditionError",
    "SearchServiceError",
]
