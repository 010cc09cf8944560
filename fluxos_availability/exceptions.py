"""Exceptions for the availability engine."""


class AvailabilityError(Exception):
    """Base exception for all availability engine errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """
        Initialize AvailabilityError.

        Args:
            message: Error message
            status_code: HTTP status code if applicable
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class AvailabilityConfigError(AvailabilityError):
    """Raised when engine or service configuration is invalid."""


class InvalidInputError(AvailabilityError):
    """Raised when request parameters fail validation.

    Always raised before any collaborator is called.
    """

    def __init__(self, message: str = "Invalid input") -> None:
        """Initialize InvalidInputError."""
        super().__init__(message, status_code=422)


class UpstreamFetchError(AvailabilityError):
    """Raised when a calendar or free/busy fetch fails.

    The engine never retries and never falls back to partial results;
    retry policy belongs to the caller.
    """

    def __init__(
        self,
        message: str = "Upstream calendar service failed",
        source: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """
        Initialize UpstreamFetchError.

        Args:
            message: Error message
            source: Which collaborator failed ("events", "free_busy", "calendars")
            status_code: Upstream HTTP status code, 502 when none was received
        """
        self.source = source
        super().__init__(message, status_code=status_code or 502)
