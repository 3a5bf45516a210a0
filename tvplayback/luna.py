"""Native device-info service client.

The TV exposes its system services (Luna) through a local HTTP bridge that
accepts a JSON parameter object and answers with a JSON payload carrying a
``returnValue`` flag.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, Self

import aiohttp

from .const import (
    DEFAULT_PROBE_TIMEOUT,
    LUNA_HEADER_CONTENT_TYPE,
    USER_AGENT_TEMPLATE,
    VERSION,
    sanitize_url,
)
from .exceptions import (
    LunaConnectionError,
    LunaResponseError,
    LunaServiceError,
    LunaTimeoutError,
)

_LOGGER = logging.getLogger(__name__)


class NativeServiceTransport(Protocol):
    """Anything able to call a native service method."""

    async def async_call(
        self,
        service: str,
        method: str,
        parameters: dict[str, Any],
    ) -> dict[str, Any]:
        """Call ``service``/``method`` and return the decoded payload."""
        ...


class LunaServiceClient:
    """Async client for the native service bridge.

    Attributes:
        url: Base URL of the bridge, e.g. ``http://127.0.0.1:9998``.

    Example:
        ```python
        async with LunaServiceClient("http://127.0.0.1:9998") as client:
            payload = await client.async_call(
                "com.webos.service.config",
                "getConfigs",
                {"configNames": ["tv.model.*"]},
            )
        ```
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Base URL of the bridge.
            timeout: Request timeout in seconds.
            session: Optional aiohttp session to reuse. If not provided,
                     a new session will be created.
        """
        self._url = url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> Self:
        """Enter async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager."""
        await self.close()

    @property
    def url(self) -> str:
        """Return the bridge base URL."""
        return self._url

    def _get_headers(self) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT_TEMPLATE.format(version=VERSION),
            "Accept": LUNA_HEADER_CONTENT_TYPE,
            "Content-Type": LUNA_HEADER_CONTENT_TYPE,
        }

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def async_call(
        self,
        service: str,
        method: str,
        parameters: dict[str, Any],
    ) -> dict[str, Any]:
        """Call a native service method.

        Args:
            service: Service name, e.g. ``com.webos.service.config``.
            method: Method name, e.g. ``getConfigs``.
            parameters: JSON parameter object.

        Returns:
            The decoded response payload.

        Raises:
            LunaConnectionError: The bridge could not be reached.
            LunaTimeoutError: The call timed out.
            LunaServiceError: The service reported ``returnValue: false``.
            LunaResponseError: The response was not a JSON object.
        """
        url = f"{self._url}/{service}/{method}"
        safe_url = sanitize_url(self._url)

        _LOGGER.debug("Luna request: %s/%s via %s", service, method, safe_url)

        session = await self._get_session()

        try:
            async with session.post(
                url,
                json=parameters,
                headers=self._get_headers(),
                timeout=self._timeout,
            ) as response:
                _LOGGER.debug(
                    "Luna response: %s %s for %s/%s",
                    response.status,
                    response.reason,
                    service,
                    method,
                )
                response.raise_for_status()

                try:
                    payload = await response.json(content_type=None)
                except ValueError as err:
                    _LOGGER.error(
                        "Luna service %s/%s returned invalid JSON: %s",
                        service,
                        method,
                        err,
                    )
                    raise LunaResponseError(f"Service returned invalid JSON: {err}") from err

        except TimeoutError as err:
            _LOGGER.error("Luna timeout for %s/%s", service, method)
            raise LunaTimeoutError(
                f"Request timed out after {self._timeout.total}s", url=safe_url
            ) from err

        except aiohttp.ClientConnectorError as err:
            _LOGGER.error(
                "Luna connection error for %s/%s: %s",
                service,
                method,
                err,
            )
            raise LunaConnectionError(
                f"Failed to connect to {safe_url}: {err}", url=safe_url
            ) from err

        except aiohttp.ClientResponseError as err:
            _LOGGER.error(
                "Luna bridge error: %s %s for %s/%s",
                err.status,
                err.message,
                service,
                method,
            )
            raise LunaConnectionError(f"HTTP error: {err.status}", url=safe_url) from err

        except aiohttp.ClientError as err:
            _LOGGER.error("Luna client error for %s/%s: %s", service, method, err)
            raise LunaConnectionError(f"Client error: {err}", url=safe_url) from err

        if not isinstance(payload, dict):
            raise LunaResponseError(
                f"Unexpected payload type from {service}/{method}: {type(payload).__name__}"
            )

        if payload.get("returnValue") is False:
            error_text = payload.get("errorText") or "unknown error"
            error_code = payload.get("errorCode")
            raise LunaServiceError(
                f"{service}/{method} failed: {error_text}",
                service=service,
                error_code=error_code if isinstance(error_code, int) else None,
            )

        return payload

    async def close(self) -> None:
        """Close the client session.

        Only closes the session if it was created by this client.
        Sessions provided externally are not closed.
        """
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()


__all__ = ["LunaServiceClient", "NativeServiceTransport"]
