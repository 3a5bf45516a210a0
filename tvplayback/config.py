"""Engine options."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Self

import voluptuous as vol

from .const import (
    CONF_CLIENT_NAME,
    CONF_ENABLE_PROBE,
    CONF_FORCE_DIRECT_PLAY,
    CONF_LUNA_URL,
    CONF_MAX_STREAMING_BITRATE,
    CONF_PROBE_TIMEOUT,
    DEFAULT_CLIENT_NAME,
    DEFAULT_ENABLE_PROBE,
    DEFAULT_FORCE_DIRECT_PLAY,
    DEFAULT_MAX_STREAMING_BITRATE,
    DEFAULT_PROBE_TIMEOUT,
    MAX_PROBE_TIMEOUT,
    MAX_STREAMING_BITRATE,
    MIN_PROBE_TIMEOUT,
    MIN_STREAMING_BITRATE,
)
from .exceptions import ConfigurationError

_LOGGER = logging.getLogger(__name__)

OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_CLIENT_NAME, default=DEFAULT_CLIENT_NAME): vol.All(
            str, vol.Length(min=1)
        ),
        vol.Optional(
            CONF_MAX_STREAMING_BITRATE,
            default=DEFAULT_MAX_STREAMING_BITRATE,
        ): vol.All(
            vol.Coerce(int),
            vol.Range(min=MIN_STREAMING_BITRATE, max=MAX_STREAMING_BITRATE),
        ),
        vol.Optional(CONF_PROBE_TIMEOUT, default=DEFAULT_PROBE_TIMEOUT): vol.All(
            vol.Coerce(float),
            vol.Range(min=MIN_PROBE_TIMEOUT, max=MAX_PROBE_TIMEOUT),
        ),
        vol.Optional(CONF_ENABLE_PROBE, default=DEFAULT_ENABLE_PROBE): bool,
        vol.Optional(CONF_LUNA_URL, default=None): vol.Any(None, vol.Url()),
        vol.Optional(CONF_FORCE_DIRECT_PLAY, default=DEFAULT_FORCE_DIRECT_PLAY): bool,
    }
)


@dataclass(frozen=True, slots=True)
class EngineOptions:
    """Validated engine options.

    Attributes:
        client_name: Name reported in the device profile.
        max_streaming_bitrate: Streaming bitrate ceiling in bits per second.
        probe_timeout: Seconds to wait for the native capability probe.
        enable_probe: Query the native service at all.
        luna_url: Base URL of the native service bridge, if any.
        force_direct_play: Direct play whenever the server allows it.
    """

    client_name: str = DEFAULT_CLIENT_NAME
    max_streaming_bitrate: int = DEFAULT_MAX_STREAMING_BITRATE
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    enable_probe: bool = DEFAULT_ENABLE_PROBE
    luna_url: str | None = None
    force_direct_play: bool = DEFAULT_FORCE_DIRECT_PLAY

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Self:
        """Create from already-validated option data."""
        return cls(
            client_name=data[CONF_CLIENT_NAME],
            max_streaming_bitrate=data[CONF_MAX_STREAMING_BITRATE],
            probe_timeout=data[CONF_PROBE_TIMEOUT],
            enable_probe=data[CONF_ENABLE_PROBE],
            luna_url=data[CONF_LUNA_URL],
            force_direct_play=data[CONF_FORCE_DIRECT_PLAY],
        )

    def as_dict(self) -> dict[str, Any]:
        """Return the options keyed by option name."""
        return asdict(self)


def load_options(data: Mapping[str, Any] | None = None) -> EngineOptions:
    """Validate raw options and apply defaults.

    Args:
        data: Raw option mapping, e.g. parsed from a settings file.

    Returns:
        The validated options.

    Raises:
        ConfigurationError: An option is unknown or out of range.
    """
    try:
        validated = OPTIONS_SCHEMA(dict(data or {}))
    except vol.Invalid as err:
        option = str(err.path[0]) if err.path else ""
        _LOGGER.error("Invalid engine option %s: %s", option or "<root>", err)
        raise ConfigurationError(f"Invalid option {option}: {err.msg}", option=option) from err
    return EngineOptions.from_mapping(validated)


__all__ = ["OPTIONS_SCHEMA", "EngineOptions", "load_options"]
