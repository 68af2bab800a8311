"""
Custom exceptions for the proxy module.

A FetchError on the AI content path is caught by the request handler, which
serves the unmodified request instead. Everything else reaches the HTTP
surface, which maps it to an error status.
"""


class ProxyError(Exception):
    """
    Base exception for all proxy-related errors.

    All other proxy exceptions inherit from this class,
    allowing for broad exception catching when needed.
    """

    pass


class FetchError(ProxyError):
    """
    Raised when an outbound fetch fails.

    Covers transport failures (connection refused, DNS, TLS) and timeouts.

    Attributes:
        url: The URL that was being fetched (optional)
        reason: Short description of the underlying failure (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        reason: str | None = None,
    ):
        self.url = url
        self.reason = reason
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with URL and reason context."""
        parts = [self.message]
        if self.url:
            parts.append(f"url='{self.url}'")
        if self.reason:
            parts.append(f"reason: {self.reason}")
        return " - ".join(parts)


class ConfigurationError(ProxyError):
    """
    Raised when required configuration is missing or invalid.

    Attributes:
        field: The settings field at fault (optional)
        message: Detailed error message
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with field context."""
        if self.field:
            return f"{self.message} (field='{self.field}')"
        return self.message


class LoopDetectedError(ProxyError):
    """
    Raised when a request reaches the proxy a second time.

    Happens when the configured origin routes back to this proxy.

    Attributes:
        url: The URL of the looping request
        message: Detailed error message
    """

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with URL context."""
        if self.url:
            return f"{self.message} - url='{self.url}'"
        return self.message
