"""Fixtures for tvplayback tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from tvplayback.models import CapabilityFlags, MediaSource, PlatformTier

WEBOS_4_USER_AGENT = (
    "Mozilla/5.0 (Web0S; Linux/SmartTV) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/53.0.2785.34 Safari/537.36 WebAppManager"
)
WEBOS_23_USER_AGENT = (
    "Mozilla/5.0 (Web0S; Linux/SmartTV) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/94.0.4606.128 Safari/537.36 WebAppManager"
)


@pytest.fixture
def webos4_user_agent() -> str:
    """Return a webOS 4 (Chromium 53) user agent."""
    return WEBOS_4_USER_AGENT


@pytest.fixture
def webos23_user_agent() -> str:
    """Return a webOS 23 (Chromium 94) user agent."""
    return WEBOS_23_USER_AGENT


@pytest.fixture
def mock_configs() -> dict[str, Any]:
    """Return a getConfigs payload for a 2023 OLED with Dolby Vision."""
    return {
        "returnValue": True,
        "configs": {
            "tv.model.modelname": "OLED65C3",
            "tv.model.sdkVersion": "8.2.0",
            "tv.model.serialnumber": "301MXYZ12345",
            "tv.model.supportHDR": True,
            "tv.model.supportDolbyVisionHDR": True,
            "tv.model.dolbyVisionProfiles": "5,8",
            "tv.model.soundModeType": "Standard,Dolby Atmos",
            "tv.model.edidType": "ac3,eac3,dts",
            "tv.hw.supportHEVC": True,
            "tv.hw.supportAV1": True,
            "tv.hw.supportVP9": True,
            "tv.hw.panelResolution": "UD",
            "tv.hw.bSupport_8K_resolution": False,
        },
    }


@pytest.fixture
def mock_transport(mock_configs: dict[str, Any]) -> AsyncMock:
    """Create a native service transport answering with mock_configs."""
    transport = AsyncMock()
    transport.async_call = AsyncMock(return_value=mock_configs)
    return transport


@pytest.fixture
def tier4_flags() -> CapabilityFlags:
    """Return tier-only capabilities for webOS 4."""
    from tvplayback.features import resolve_capabilities

    return resolve_capabilities(PlatformTier.WEBOS_4)


@pytest.fixture
def make_source() -> Callable[..., MediaSource]:
    """Return a factory building a MediaSource from a server MediaSourceInfo."""

    def _make(
        container: str = "mkv",
        video_codec: str | None = "hevc",
        range_type: str = "SDR",
        audio_codec: str | None = "aac",
        width: int = 1920,
        bit_rate: int | None = None,
        source_id: str = "source-1",
        supports_direct_play: bool = True,
        supports_direct_stream: bool = True,
        extra_audio: list[dict[str, Any]] | None = None,
    ) -> MediaSource:
        streams: list[dict[str, Any]] = []
        if video_codec is not None:
            video: dict[str, Any] = {
                "Index": 0,
                "Type": "Video",
                "Codec": video_codec,
                "VideoRangeType": range_type,
                "Width": width,
                "Height": width * 9 // 16,
            }
            if bit_rate is not None:
                video["BitRate"] = bit_rate
            streams.append(video)
        if audio_codec is not None:
            streams.append({"Index": 1, "Type": "Audio", "Codec": audio_codec, "Channels": 2})
        streams.extend(extra_audio or [])
        return MediaSource.from_api(
            {
                "Id": source_id,
                "Container": container,
                "SupportsDirectPlay": supports_direct_play,
                "SupportsDirectStream": supports_direct_stream,
                "MediaStreams": streams,
            }
        )

    return _make
