"""Tests for engine options."""

from __future__ import annotations

from typing import Any

import pytest


class TestLoadOptions:
    """Test load_options()."""

    def test_defaults(self) -> None:
        """Test empty input yields the defaults."""
        from tvplayback.config import EngineOptions, load_options

        options = load_options()

        assert options == EngineOptions()
        assert options.client_name == "TV Player"
        assert options.max_streaming_bitrate == 120_000_000
        assert options.probe_timeout == 5.0
        assert options.enable_probe is True
        assert options.luna_url is None
        assert options.force_direct_play is False

    def test_values_coerced(self) -> None:
        """Test numeric options are coerced."""
        from tvplayback.config import load_options

        options = load_options(
            {
                "client_name": "Bedroom TV",
                "max_streaming_bitrate": "20000000",
                "probe_timeout": 2,
                "luna_url": "http://127.0.0.1:9998",
                "force_direct_play": True,
            }
        )

        assert options.client_name == "Bedroom TV"
        assert options.max_streaming_bitrate == 20_000_000
        assert options.probe_timeout == 2.0
        assert isinstance(options.probe_timeout, float)
        assert options.luna_url == "http://127.0.0.1:9998"
        assert options.force_direct_play is True

    @pytest.mark.parametrize(
        ("data", "option"),
        [
            ({"max_streaming_bitrate": 1000}, "max_streaming_bitrate"),
            ({"max_streaming_bitrate": "fast"}, "max_streaming_bitrate"),
            ({"probe_timeout": 0}, "probe_timeout"),
            ({"probe_timeout": 120}, "probe_timeout"),
            ({"client_name": ""}, "client_name"),
            ({"luna_url": "not a url"}, "luna_url"),
            ({"enable_probe": "maybe"}, "enable_probe"),
            ({"unknown_option": 1}, "unknown_option"),
        ],
    )
    def test_invalid(self, data: dict[str, Any], option: str) -> None:
        """Test invalid options raise ConfigurationError naming the option."""
        from tvplayback.config import load_options
        from tvplayback.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError) as exc_info:
            load_options(data)

        assert exc_info.value.option == option
        assert exc_info.value.translation_key == "invalid_option"
        assert exc_info.value.translation_placeholders == {"option": option}


class TestEngineOptions:
    """Test EngineOptions."""

    def test_as_dict_round_trips_through_schema(self) -> None:
        """Test as_dict output is itself valid input."""
        from tvplayback.config import load_options

        options = load_options({"client_name": "Den", "probe_timeout": 1.5})

        assert load_options(options.as_dict()) == options

    def test_frozen(self) -> None:
        """Test options cannot be changed after validation."""
        from dataclasses import FrozenInstanceError

        from tvplayback.config import EngineOptions

        options = EngineOptions()
        with pytest.raises(FrozenInstanceError):
            options.client_name = "Other"  # type: ignore[misc]
