"""TV playback capability engine.

Resolves what a smart TV can decode from its browser engine version (and,
where available, the native device-info service), publishes that as a media
server device profile, and decides per media source whether to direct play,
remux or transcode.

Example:
    engine = PlaybackEngine(user_agent, options=load_options({"luna_url": url}))
    await engine.async_upgrade()
    profile = engine.device_profile
"""

from __future__ import annotations

from .config import EngineOptions, load_options
from .const import VERSION
from .engine import PlaybackEngine
from .exceptions import (
    ConfigurationError,
    LunaConnectionError,
    LunaResponseError,
    LunaServiceError,
    LunaTimeoutError,
    TvPlaybackError,
)
from .features import resolve_capabilities
from .models import (
    CapabilityFlags,
    DecisionReason,
    MediaSource,
    PlatformTier,
    PlaybackDecision,
    PlayMethod,
    ProbeResult,
    ProbeState,
)
from .profile import build_device_profile
from .strategy import decide
from .version import resolve_platform_tier, tier_from_user_agent

__version__ = VERSION

__all__ = [
    "CapabilityFlags",
    "ConfigurationError",
    "DecisionReason",
    "EngineOptions",
    "LunaConnectionError",
    "LunaResponseError",
    "LunaServiceError",
    "LunaTimeoutError",
    "MediaSource",
    "PlatformTier",
    "PlayMethod",
    "PlaybackDecision",
    "PlaybackEngine",
    "ProbeResult",
    "ProbeState",
    "TvPlaybackError",
    "build_device_profile",
    "decide",
    "load_options",
    "resolve_capabilities",
    "resolve_platform_tier",
    "tier_from_user_agent",
]
