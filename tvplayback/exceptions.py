"""Exceptions for the tvplayback capability engine."""

from __future__ import annotations


class TvPlaybackError(Exception):
    """Base exception for tvplayback.

    Carries an optional translation key so a UI layer can present a
    localized message.

    Attributes:
        translation_key: Key for looking up translated message.
        translation_placeholders: Values to substitute in translated message.
    """

    def __init__(
        self,
        message: str,
        translation_key: str | None = None,
        translation_placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: The error message (English, for logs).
            translation_key: Optional translation key for the UI.
            translation_placeholders: Optional placeholders for translation.
        """
        super().__init__(message)
        self.translation_key = translation_key
        self.translation_placeholders = translation_placeholders or {}


class LunaConnectionError(TvPlaybackError):
    """Exception raised when the native service bridge cannot be reached.

    This includes network errors, timeouts, and DNS resolution failures.
    """

    def __init__(self, message: str, url: str = "") -> None:
        """Initialize with connection details.

        Args:
            message: The error message.
            url: The sanitized bridge URL (for translation placeholder).
        """
        super().__init__(
            message,
            translation_key="luna_connection_failed",
            translation_placeholders={"url": url},
        )


class LunaTimeoutError(LunaConnectionError):
    """Exception raised when a native service call times out.

    Inherits from LunaConnectionError as timeouts are a form of connection failure.
    """

    def __init__(self, message: str, url: str = "") -> None:
        """Initialize timeout error.

        Args:
            message: The error message.
            url: The sanitized bridge URL.
        """
        super().__init__(message, url=url)
        self.translation_key = "luna_timeout"


class LunaServiceError(TvPlaybackError):
    """Exception raised when a native service reports a failed call.

    Raised when the response carries ``returnValue: false``.
    """

    def __init__(self, message: str, service: str = "", error_code: int | None = None) -> None:
        """Initialize service error.

        Args:
            message: The error message (the service's errorText when present).
            service: The service that failed.
            error_code: The service's errorCode, if reported.
        """
        super().__init__(
            message,
            translation_key="luna_service_failed",
            translation_placeholders={"service": service},
        )
        self.error_code = error_code


class LunaResponseError(TvPlaybackError):
    """Exception raised when a native service response cannot be parsed."""

    def __init__(self, message: str) -> None:
        """Initialize response error.

        Args:
            message: The error message.
        """
        super().__init__(message, translation_key="luna_invalid_response")


class ConfigurationError(TvPlaybackError):
    """Exception raised when engine options fail validation."""

    def __init__(self, message: str, option: str = "") -> None:
        """Initialize configuration error.

        Args:
            message: The error message.
            option: The offending option key, if known.
        """
        super().__init__(
            message,
            translation_key="invalid_option",
            translation_placeholders={"option": option},
        )
        self.option = option
