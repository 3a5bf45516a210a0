"""Tests for the playback engine session."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tvplayback.models import MediaSource


class TestPlaybackEngineInit:
    """Test engine construction."""

    def test_tier_from_user_agent(self, webos4_user_agent: str) -> None:
        """Test the initial snapshot comes from the user agent."""
        from tvplayback.engine import PlaybackEngine
        from tvplayback.models import PlatformTier

        engine = PlaybackEngine(webos4_user_agent)

        assert engine.user_agent_tier is PlatformTier.WEBOS_4
        assert engine.capabilities.tier is PlatformTier.WEBOS_4
        assert engine.is_upgraded is False
        assert engine.probe is None

    def test_unknown_user_agent_uses_default(self) -> None:
        """Test an unidentifiable client gets the default tier."""
        from tvplayback.engine import PlaybackEngine
        from tvplayback.models import PlatformTier

        engine = PlaybackEngine(None)

        assert engine.user_agent_tier is PlatformTier.DEFAULT

    def test_probe_created_from_options(self, webos4_user_agent: str) -> None:
        """Test a bridge URL creates a probe over the bridge client."""
        from tvplayback.config import load_options
        from tvplayback.engine import PlaybackEngine

        engine = PlaybackEngine(
            webos4_user_agent, options=load_options({"luna_url": "http://127.0.0.1:9998"})
        )

        assert engine.probe is not None

    def test_probe_disabled(self, webos4_user_agent: str, mock_transport: AsyncMock) -> None:
        """Test enable_probe false ignores any probe."""
        from tvplayback.config import load_options
        from tvplayback.engine import PlaybackEngine
        from tvplayback.probe import CapabilityProbe

        engine = PlaybackEngine(
            webos4_user_agent,
            options=load_options({"enable_probe": False}),
            probe=CapabilityProbe(mock_transport),
        )

        assert engine.probe is None


class TestAsyncUpgrade:
    """Test the one-time capability upgrade."""

    @pytest.mark.asyncio
    async def test_upgrade_applies_probe(
        self, webos4_user_agent: str, mock_transport: AsyncMock
    ) -> None:
        """Test the probe result and SDK version refine the snapshot."""
        from tvplayback.engine import PlaybackEngine
        from tvplayback.models import PlatformTier
        from tvplayback.probe import CapabilityProbe

        engine = PlaybackEngine(webos4_user_agent, probe=CapabilityProbe(mock_transport))
        before = engine.capabilities

        flags = await engine.async_upgrade()

        assert engine.is_upgraded is True
        assert flags is engine.capabilities
        assert flags.tier is PlatformTier.WEBOS_23
        assert flags.dolby_vision is True
        assert flags.uhd is True
        assert flags.dts_containers == frozenset({"mkv", "mp4", "ts"})
        assert before.tier is PlatformTier.WEBOS_4
        assert before.dolby_vision is False

    @pytest.mark.asyncio
    async def test_upgrade_runs_once(
        self, webos4_user_agent: str, mock_transport: AsyncMock
    ) -> None:
        """Test repeated upgrades reuse the first result."""
        from tvplayback.engine import PlaybackEngine
        from tvplayback.probe import CapabilityProbe

        engine = PlaybackEngine(webos4_user_agent, probe=CapabilityProbe(mock_transport))

        first = await engine.async_upgrade()
        second = await engine.async_upgrade()

        assert first is second
        assert mock_transport.async_call.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_upgrades(
        self, webos4_user_agent: str, mock_transport: AsyncMock
    ) -> None:
        """Test concurrent upgrades settle on one snapshot."""
        from tvplayback.engine import PlaybackEngine
        from tvplayback.probe import CapabilityProbe

        engine = PlaybackEngine(webos4_user_agent, probe=CapabilityProbe(mock_transport))

        results = await asyncio.gather(*(engine.async_upgrade() for _ in range(3)))

        assert all(result is engine.capabilities for result in results)
        assert mock_transport.async_call.await_count == 1

    @pytest.mark.asyncio
    async def test_upgrade_without_probe(self, webos4_user_agent: str) -> None:
        """Test upgrading without a probe keeps the user-agent tier."""
        from tvplayback.engine import PlaybackEngine

        engine = PlaybackEngine(webos4_user_agent)
        before = engine.capabilities

        flags = await engine.async_upgrade()

        assert flags == before
        assert engine.is_upgraded is True

    @pytest.mark.asyncio
    async def test_failed_probe_keeps_tier_defaults(self, webos23_user_agent: str) -> None:
        """Test a failing probe leaves the tier defaults in place."""
        from tvplayback.engine import PlaybackEngine
        from tvplayback.models import PlatformTier
        from tvplayback.probe import CapabilityProbe

        transport = AsyncMock()
        transport.async_call = AsyncMock(side_effect=RuntimeError("no bridge"))
        engine = PlaybackEngine(webos23_user_agent, probe=CapabilityProbe(transport))

        flags = await engine.async_upgrade()

        assert flags.tier is PlatformTier.WEBOS_23
        assert flags.dolby_vision is False

    @pytest.mark.asyncio
    async def test_upgrade_invalidates_profile(
        self, webos4_user_agent: str, mock_transport: AsyncMock
    ) -> None:
        """Test the device profile is rebuilt after an upgrade."""
        from tvplayback.engine import PlaybackEngine
        from tvplayback.probe import CapabilityProbe

        engine = PlaybackEngine(webos4_user_agent, probe=CapabilityProbe(mock_transport))

        before = engine.device_profile
        assert engine.device_profile is before

        await engine.async_upgrade()
        after = engine.device_profile

        assert after is not before
        hevc_before = [p for p in before["CodecProfiles"] if p.get("Codec") == "hevc"]
        hevc_after = [p for p in after["CodecProfiles"] if p.get("Codec") == "hevc"]
        assert len(hevc_before) == 1
        assert len(hevc_after) == 2


class TestEngineDecisions:
    """Test decisions go through the current snapshot."""

    @pytest.mark.asyncio
    async def test_decision_follows_upgrade(
        self,
        webos4_user_agent: str,
        mock_transport: AsyncMock,
        make_source: Callable[..., MediaSource],
    ) -> None:
        """Test a Dolby Vision source direct plays after the upgrade."""
        from tvplayback.engine import PlaybackEngine
        from tvplayback.models import PlayMethod
        from tvplayback.probe import CapabilityProbe

        engine = PlaybackEngine(webos4_user_agent, probe=CapabilityProbe(mock_transport))
        source = make_source(container="mp4", range_type="DOVIWithHDR10")

        assert engine.decide(source).method is PlayMethod.TRANSCODE

        await engine.async_upgrade()

        assert engine.decide(source).method is PlayMethod.DIRECT_PLAY

    def test_force_direct_play_option(
        self, webos4_user_agent: str, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test the force_direct_play option reaches the reconciliation."""
        from tvplayback.config import load_options
        from tvplayback.engine import PlaybackEngine
        from tvplayback.models import DecisionReason

        engine = PlaybackEngine(
            webos4_user_agent, options=load_options({"force_direct_play": True})
        )

        decision = engine.determine_play_method(make_source(range_type="DOVI"))

        assert decision.reason is DecisionReason.FORCED_DIRECT_PLAY

    def test_select_media_source(
        self, webos4_user_agent: str, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test source selection uses the current snapshot."""
        from tvplayback.engine import PlaybackEngine

        engine = PlaybackEngine(webos4_user_agent)
        dv = make_source(source_id="dv", range_type="DOVI")
        sdr = make_source(source_id="sdr")

        assert engine.select_media_source([dv, sdr]) is sdr
        assert engine.select_media_source([dv, sdr], "dv") is dv

    def test_profile_uses_options(self, webos4_user_agent: str) -> None:
        """Test the profile carries the configured name and bitrate."""
        from tvplayback.config import load_options
        from tvplayback.engine import PlaybackEngine

        engine = PlaybackEngine(
            webos4_user_agent,
            options=load_options({"client_name": "Den", "max_streaming_bitrate": 8_000_000}),
        )

        assert engine.device_profile["Name"] == "Den"
        assert engine.device_profile["MaxStreamingBitrate"] == 8_000_000


class TestEngineLifecycle:
    """Test engine cleanup."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(
        self, webos4_user_agent: str, mock_configs: dict[str, Any]
    ) -> None:
        """Test leaving the context closes the bridge session."""
        from tvplayback.config import load_options
        from tvplayback.engine import PlaybackEngine

        with patch("aiohttp.ClientSession") as mock_session_class:
            mock_response = MagicMock()
            mock_response.status = 200
            mock_response.reason = "OK"
            mock_response.json = AsyncMock(return_value=mock_configs)
            mock_response.raise_for_status = MagicMock()
            mock_response.__aenter__ = AsyncMock(return_value=mock_response)
            mock_response.__aexit__ = AsyncMock(return_value=None)

            mock_session = MagicMock()
            mock_session.post = MagicMock(return_value=mock_response)
            mock_session.closed = False
            mock_session.close = AsyncMock()
            mock_session_class.return_value = mock_session

            options = load_options({"luna_url": "http://127.0.0.1:9998"})
            async with PlaybackEngine(webos4_user_agent, options=options) as engine:
                flags = await engine.async_upgrade()
                assert flags.dolby_vision is True

            mock_session.close.assert_awaited_once()
