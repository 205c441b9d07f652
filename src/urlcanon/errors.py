from __future__ import annotations


class NormalizeError(ValueError):
    """Base class for URL canonicalization failures."""


class UrlParseError(NormalizeError):
    """Raised when the input string is not a usable URL."""

    def __init__(self, url: str, reason: str | None = None) -> None:
        message = f"Invalid URL {url!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url
        self.reason = reason


class RegexParseError(NormalizeError):
    """Raised when a parameter removal pattern does not compile."""

    def __init__(self, pattern: str, reason: str | None = None) -> None:
        message = f"Invalid removal pattern {pattern!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.pattern = pattern


class UrlEncodeError(NormalizeError):
    """Raised when a path segment cannot be percent-encoded."""


class InternalError(NormalizeError):
    """Raised when segment bookkeeping is inconsistent. Indicates a bug."""
