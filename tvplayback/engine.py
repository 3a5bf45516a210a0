"""Playback engine session.

Owns the capability snapshot for one session. The snapshot starts from the
user-agent tier and is upgraded exactly once, after the native probe settles.
The device profile and every playback decision are derived from the same
snapshot, so they always agree.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Self

from .config import EngineOptions
from .features import resolve_capabilities
from .luna import LunaServiceClient
from .models import (
    CapabilityFlags,
    MediaSource,
    PlatformTier,
    PlaybackDecision,
    ProbeResult,
)
from .playback import determine_play_method, select_media_source
from .probe import CapabilityProbe
from .profile import build_device_profile
from .strategy import decide
from .version import EngineSignal, parse_user_agent, resolve_platform_tier, tier_from_sdk_version

if TYPE_CHECKING:
    import aiohttp

    from .const import DeviceProfile

_LOGGER = logging.getLogger(__name__)


class PlaybackEngine:
    """Capability snapshot and playback decisions for one TV session.

    Example:
        ```python
        async with PlaybackEngine(user_agent, options=load_options(raw)) as engine:
            await engine.async_upgrade()
            profile = engine.device_profile
            decision = engine.decide(MediaSource.from_api(info))
        ```
    """

    def __init__(
        self,
        user_agent: str | None,
        *,
        options: EngineOptions | None = None,
        probe: CapabilityProbe | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            user_agent: User-agent of the TV's browser engine.
            options: Validated engine options.
            probe: Capability probe to use. When omitted and probing is
                enabled with a bridge URL, one is created over the bridge.
            session: Optional aiohttp session for the bridge client.
        """
        self._options = options or EngineOptions()
        self._signal: EngineSignal = parse_user_agent(user_agent)
        self._user_agent_tier = resolve_platform_tier(
            self._signal.engine_version,
            self._signal.secondary_version,
            legacy=self._signal.legacy,
        )
        self._client: LunaServiceClient | None = None

        if probe is None and self._options.enable_probe and self._options.luna_url:
            self._client = LunaServiceClient(
                self._options.luna_url,
                timeout=self._options.probe_timeout,
                session=session,
            )
            probe = CapabilityProbe(self._client, timeout=self._options.probe_timeout)
        self._probe = probe if self._options.enable_probe else None

        self._capabilities = resolve_capabilities(self._user_agent_tier)
        self._profile: DeviceProfile | None = None
        self._upgraded = False

        _LOGGER.debug(
            "Playback engine created: tier %s from user agent (tv=%s, legacy=%s)",
            int(self._user_agent_tier),
            self._signal.is_tv,
            self._signal.legacy,
        )

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
    def options(self) -> EngineOptions:
        """Return the engine options."""
        return self._options

    @property
    def signal(self) -> EngineSignal:
        """Return the version signal parsed from the user agent."""
        return self._signal

    @property
    def user_agent_tier(self) -> PlatformTier:
        """Return the tier resolved from the user agent alone."""
        return self._user_agent_tier

    @property
    def probe(self) -> CapabilityProbe | None:
        """Return the capability probe, if probing is enabled."""
        return self._probe

    @property
    def capabilities(self) -> CapabilityFlags:
        """Return the current capability snapshot."""
        return self._capabilities

    @property
    def is_upgraded(self) -> bool:
        """Return True once the probe upgrade has run."""
        return self._upgraded

    async def async_upgrade(self) -> CapabilityFlags:
        """Apply the native probe result to the capability snapshot.

        Runs once per engine; later calls return the current snapshot. The
        previous snapshot is never modified, a new one replaces it and the
        cached device profile is dropped.

        Returns:
            The upgraded capability snapshot.
        """
        if self._upgraded:
            return self._capabilities

        result = ProbeResult()
        if self._probe is not None:
            result = await self._probe.async_get()

        # A concurrent caller may have finished the upgrade while we waited
        if self._upgraded:
            return self._capabilities

        tier = tier_from_sdk_version(result.sdk_version) or self._user_agent_tier
        if tier != self._user_agent_tier:
            _LOGGER.debug(
                "SDK version %s refines tier %s -> %s",
                result.sdk_version,
                int(self._user_agent_tier),
                int(tier),
            )

        self._capabilities = resolve_capabilities(tier, result)
        self._profile = None
        self._upgraded = True
        return self._capabilities

    @property
    def device_profile(self) -> DeviceProfile:
        """Return the device profile for the current snapshot."""
        if self._profile is None:
            self._profile = build_device_profile(
                self._capabilities,
                name=self._options.client_name,
                max_streaming_bitrate=self._options.max_streaming_bitrate,
            )
        return self._profile

    def decide(self, source: MediaSource) -> PlaybackDecision:
        """Decide how to deliver a media source with the current snapshot."""
        return decide(source, self._capabilities)

    def determine_play_method(self, source: MediaSource) -> PlaybackDecision:
        """Reconcile the decision for a source with the server's flags."""
        return determine_play_method(
            source,
            self._capabilities,
            force_direct_play=self._options.force_direct_play,
        )

    def select_media_source(
        self,
        sources: Sequence[MediaSource],
        media_source_id: str | None = None,
    ) -> MediaSource | None:
        """Pick the best media source with the current snapshot."""
        return select_media_source(sources, self._capabilities, media_source_id)

    async def close(self) -> None:
        """Close the bridge client if the engine created it."""
        if self._client is not None:
            await self._client.close()


__all__ = ["PlaybackEngine"]
