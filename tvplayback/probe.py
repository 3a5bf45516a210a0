"""Native capability probe.

Queries the device-info service once per session and caches the outcome.
Concurrent callers share the single in-flight query, the same way the
request coalescer shares identical API calls. The probe never rejects: any
failure resolves to an empty ProbeResult so playback falls back to the tier
defaults.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .const import (
    DEFAULT_PROBE_TIMEOUT,
    LUNA_CONFIG_METHOD,
    LUNA_CONFIG_NAMES,
    LUNA_CONFIG_SERVICE,
)
from .exceptions import LunaResponseError, TvPlaybackError
from .models import ProbeResult, ProbeState

if TYPE_CHECKING:
    from .luna import NativeServiceTransport

_LOGGER = logging.getLogger(__name__)


class CapabilityProbe:
    """Cached, coalesced query of the native device-info service.

    Attributes:
        _in_flight: Future of the running query, if any.
        _total_requests: Number of ``async_get`` calls.
        _coalesced_requests: Calls that joined a running query.
    """

    def __init__(
        self,
        transport: NativeServiceTransport | None,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> None:
        """Initialize the probe.

        Args:
            transport: Native service transport, or None when the platform
                has no native service.
            timeout: Seconds to wait for the service before giving up.
        """
        self._transport = transport
        self._timeout = timeout
        self._result: ProbeResult | None = None
        self._in_flight: asyncio.Future[ProbeResult] | None = None
        self._task: asyncio.Task[ProbeResult] | None = None
        self._total_requests = 0
        self._coalesced_requests = 0
        self._last_error: str | None = None

    @property
    def state(self) -> ProbeState:
        """Return the probe lifecycle state."""
        if self._result is not None:
            return ProbeState.LOADED
        if self._in_flight is not None:
            return ProbeState.PENDING
        return ProbeState.NOT_LOADED

    @property
    def result(self) -> ProbeResult | None:
        """Return the cached result, or None until the probe has completed."""
        return self._result

    @property
    def last_error(self) -> str | None:
        """Return the reason the last query resolved empty, if it failed."""
        return self._last_error

    async def async_get(self) -> ProbeResult:
        """Return the probe result, querying the service at most once.

        Never raises. Cancelling one waiter does not cancel the shared query.
        """
        self._total_requests += 1

        if self._result is not None:
            return self._result

        if self._in_flight is not None:
            self._coalesced_requests += 1
            _LOGGER.debug("Joining in-flight capability probe")
            return await asyncio.shield(self._in_flight)

        loop = asyncio.get_running_loop()
        self._in_flight = loop.create_future()
        self._task = loop.create_task(self._async_query())
        self._task.add_done_callback(self._finish)
        return await asyncio.shield(self._in_flight)

    def _finish(self, task: asyncio.Task[ProbeResult]) -> None:
        future = self._in_flight
        self._in_flight = None
        self._task = None
        if task.cancelled():
            result = ProbeResult()
            self._last_error = "cancelled"
        else:
            result = task.result()
        self._result = result
        if future is not None and not future.done():
            future.set_result(result)

    async def _async_query(self) -> ProbeResult:
        if self._transport is None:
            _LOGGER.debug("No native service transport, capability probe is empty")
            return ProbeResult()

        try:
            async with asyncio.timeout(self._timeout):
                payload = await self._transport.async_call(
                    LUNA_CONFIG_SERVICE,
                    LUNA_CONFIG_METHOD,
                    {"configNames": list(LUNA_CONFIG_NAMES)},
                )
            configs = _extract_configs(payload)
        except TimeoutError:
            self._last_error = "timeout"
            _LOGGER.warning(
                "Capability probe timed out after %ss, using platform defaults",
                self._timeout,
            )
            return ProbeResult()
        except TvPlaybackError as err:
            self._last_error = str(err)
            _LOGGER.warning("Capability probe failed, using platform defaults: %s", err)
            return ProbeResult()
        except Exception as err:  # pylint: disable=broad-exception-caught
            # Third-party transports may raise anything
            self._last_error = str(err)
            _LOGGER.warning(
                "Capability probe raised unexpected %s, using platform defaults: %s",
                type(err).__name__,
                err,
            )
            return ProbeResult()

        result = ProbeResult.from_configs(configs)
        self._last_error = None
        _LOGGER.debug(
            "Capability probe loaded: model=%s sdk=%s hdr10=%s dv=%s",
            result.model_name,
            result.sdk_version,
            result.hdr10,
            result.dolby_vision,
        )
        return result

    def clear(self) -> None:
        """Drop the cached result so the next call queries again."""
        self._result = None
        self._last_error = None

    def get_stats(self) -> dict[str, int]:
        """Get probe statistics.

        Returns:
            Dictionary with:
            - total_requests: Total number of async_get() calls
            - coalesced_requests: Calls that waited on a running query
            - in_flight: 1 while a query is running, else 0
        """
        return {
            "total_requests": self._total_requests,
            "coalesced_requests": self._coalesced_requests,
            "in_flight": int(self._in_flight is not None),
        }


def _extract_configs(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise LunaResponseError("Probe payload is not an object")
    configs = payload.get("configs")
    if not isinstance(configs, dict):
        raise LunaResponseError("Probe payload has no configs map")
    return configs


__all__ = ["CapabilityProbe"]
