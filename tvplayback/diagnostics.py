"""Diagnostics for a playback engine session."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from .const import CONF_LUNA_URL, sanitize_url

if TYPE_CHECKING:
    from .engine import PlaybackEngine

# Keys to redact from diagnostics output
TO_REDACT = {"serial_number", "serial", "serialnumber", "token", "password"}

REDACTED = "**REDACTED**"


def redact_data(data: Mapping[str, Any], to_redact: set[str]) -> dict[str, Any]:
    """Return a copy of ``data`` with sensitive keys masked, recursively."""
    redacted: dict[str, Any] = {}
    for key, value in data.items():
        if key in to_redact and value is not None:
            redacted[key] = REDACTED
        elif isinstance(value, Mapping):
            redacted[key] = redact_data(value, to_redact)
        else:
            redacted[key] = value
    return redacted


def get_engine_diagnostics(engine: PlaybackEngine) -> dict[str, Any]:
    """Return diagnostics for an engine.

    Args:
        engine: The engine to describe.

    Returns:
        Dictionary containing diagnostic information.
    """
    options = engine.options.as_dict()
    if options.get(CONF_LUNA_URL):
        options[CONF_LUNA_URL] = sanitize_url(options[CONF_LUNA_URL])

    probe_info: dict[str, Any] = {"enabled": engine.probe is not None}
    if engine.probe is not None:
        result = engine.probe.result
        probe_info.update(
            {
                "state": str(engine.probe.state),
                "last_error": engine.probe.last_error,
                "stats": engine.probe.get_stats(),
                "result": (
                    redact_data(asdict(result), TO_REDACT)
                    if result is not None
                    else None
                ),
            }
        )

    profile = engine.device_profile
    signal = engine.signal

    return {
        "options": options,
        "platform": {
            "user_agent_tier": int(engine.user_agent_tier),
            "tier": int(engine.capabilities.tier),
            "engine_version": signal.engine_version,
            "secondary_version": signal.secondary_version,
            "legacy": signal.legacy,
            "is_tv": signal.is_tv,
            "upgraded": engine.is_upgraded,
        },
        "capabilities": engine.capabilities.to_dict(),
        "probe": probe_info,
        "profile": {
            "direct_play_count": len(profile["DirectPlayProfiles"]),
            "transcoding_order": [
                f"{target['Container']}/{target.get('Protocol', 'http')}"
                for target in profile["TranscodingProfiles"]
            ],
            "codec_profile_count": len(profile["CodecProfiles"]),
            "container_profile_count": len(profile["ContainerProfiles"]),
        },
    }
