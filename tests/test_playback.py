"""Tests for playback helpers."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from tvplayback.models import CapabilityFlags, MediaSource, PlatformTier


class TestDeterminePlayMethod:
    """Test reconciliation of client and server decisions."""

    def test_direct_play_allowed(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test a compatible source the server allows plays directly."""
        from tvplayback.models import PlayMethod
        from tvplayback.playback import determine_play_method

        decision = determine_play_method(make_source(), tier4_flags)

        assert decision.method is PlayMethod.DIRECT_PLAY

    def test_server_refuses_direct_play(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test the server can downgrade direct play to direct stream."""
        from tvplayback.models import DecisionReason, PlayMethod
        from tvplayback.playback import determine_play_method

        decision = determine_play_method(make_source(supports_direct_play=False), tier4_flags)

        assert decision.method is PlayMethod.DIRECT_STREAM
        assert decision.reason is DecisionReason.SERVER_FALLBACK
        assert decision.detail == "DirectPlay"

    def test_server_refuses_everything(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test the server can force a transcode."""
        from tvplayback.models import PlayMethod
        from tvplayback.playback import determine_play_method

        source = make_source(supports_direct_play=False, supports_direct_stream=False)

        assert determine_play_method(source, tier4_flags).method is PlayMethod.TRANSCODE

    def test_client_transcode_is_final(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test a server allowing direct play cannot override a client transcode."""
        from tvplayback.models import DecisionReason, PlayMethod
        from tvplayback.playback import determine_play_method

        decision = determine_play_method(make_source(range_type="DOVI"), tier4_flags)

        assert decision.method is PlayMethod.TRANSCODE
        assert decision.reason is DecisionReason.VIDEO_RANGE_UNSUPPORTED

    def test_force_direct_play(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test forcing direct play skips the compatibility checks."""
        from tvplayback.models import DecisionReason, PlayMethod
        from tvplayback.playback import determine_play_method

        source = make_source(range_type="DOVI")
        decision = determine_play_method(source, tier4_flags, force_direct_play=True)

        assert decision.method is PlayMethod.DIRECT_PLAY
        assert decision.reason is DecisionReason.FORCED_DIRECT_PLAY

    def test_force_direct_play_respects_server(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test forcing is ignored when the server refuses direct play."""
        from tvplayback.models import PlayMethod
        from tvplayback.playback import determine_play_method

        source = make_source(supports_direct_play=False)
        decision = determine_play_method(source, tier4_flags, force_direct_play=True)

        assert decision.method is PlayMethod.DIRECT_STREAM


class TestAudioHelpers:
    """Test audio codec helpers."""

    def test_supported_audio_codecs_tier5(self) -> None:
        """Test DTS tags are absent during the DTS gap."""
        from tvplayback.features import resolve_capabilities
        from tvplayback.playback import supported_audio_codecs

        codecs = supported_audio_codecs(resolve_capabilities(PlatformTier.WEBOS_5), "mkv")

        assert "aac" in codecs
        assert "opus" in codecs
        assert "dts" not in codecs
        assert "dca" not in codecs

    def test_supported_audio_codecs_respect_container(self, tier4_flags: CapabilityFlags) -> None:
        """Test DTS tags follow the container allow-list."""
        from tvplayback.playback import supported_audio_codecs

        assert "dca" in supported_audio_codecs(tier4_flags, "mkv")
        assert "dca" not in supported_audio_codecs(tier4_flags, "mp4")
        assert "dca" in supported_audio_codecs(tier4_flags)

    def test_find_compatible_audio_stream(
        self, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test the first playable track is chosen."""
        from tvplayback.features import resolve_capabilities
        from tvplayback.playback import find_compatible_audio_stream_index

        flags = resolve_capabilities(PlatformTier.WEBOS_5)
        source = make_source(
            audio_codec="dts",
            extra_audio=[{"Index": 2, "Type": "Audio", "Codec": "ac3", "Channels": 6}],
        )

        assert find_compatible_audio_stream_index(source, flags) == 2

    def test_no_compatible_audio_stream(self, make_source: Callable[..., MediaSource]) -> None:
        """Test -1 when no track plays."""
        from tvplayback.features import resolve_capabilities
        from tvplayback.playback import find_compatible_audio_stream_index

        flags = resolve_capabilities(PlatformTier.WEBOS_5)

        assert find_compatible_audio_stream_index(make_source(audio_codec="dts"), flags) == -1
        assert find_compatible_audio_stream_index(make_source(audio_codec=None), flags) == -1

    @pytest.mark.parametrize(
        ("container", "expected"),
        [
            ("mkv", "video/x-matroska"),
            ("mov,mp4,m4a", "video/quicktime"),
            ("TS", "video/mp2t"),
            ("xyz", "video/mp4"),
            (None, "video/mp4"),
        ],
    )
    def test_mime_type_for_container(self, container: str | None, expected: str) -> None:
        """Test container MIME types."""
        from tvplayback.playback import mime_type_for_container

        assert mime_type_for_container(container) == expected


class TestSelectMediaSource:
    """Test media source selection."""

    def test_empty(self, tier4_flags: CapabilityFlags) -> None:
        """Test no sources yields None."""
        from tvplayback.playback import select_media_source

        assert select_media_source([], tier4_flags) is None

    def test_explicit_id_wins(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test an explicitly requested source is returned unscored."""
        from tvplayback.playback import select_media_source

        good = make_source(source_id="good")
        bad = make_source(source_id="bad", range_type="DOVI")

        assert select_media_source([good, bad], tier4_flags, "bad") is bad

    def test_unknown_id_falls_back_to_scoring(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test a missing requested id scores every source."""
        from tvplayback.playback import select_media_source

        bad = make_source(source_id="bad", range_type="DOVI")
        good = make_source(source_id="good")

        assert select_media_source([bad, good], tier4_flags, "missing") is good

    def test_direct_play_preferred(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test a direct playable source beats a higher resolution transcode."""
        from tvplayback.playback import select_media_source

        uhd_dv = make_source(source_id="uhd", width=3840, range_type="DOVI")
        fhd = make_source(source_id="fhd", width=1920)

        assert select_media_source([uhd_dv, fhd], tier4_flags) is fhd

    def test_resolution_breaks_ties(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test higher resolution wins between equally playable sources."""
        from tvplayback.playback import score_media_source, select_media_source

        hd = make_source(source_id="hd", width=1280)
        fhd = make_source(source_id="fhd", width=1920)

        assert score_media_source(fhd, tier4_flags) > score_media_source(hd, tier4_flags)
        assert select_media_source([hd, fhd], tier4_flags) is fhd

    def test_surround_audio_preferred(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test an E-AC-3 track outscores stereo AAC."""
        from tvplayback.playback import select_media_source

        stereo = make_source(source_id="stereo", audio_codec="aac")
        surround = make_source(source_id="surround", audio_codec="eac3")

        assert select_media_source([stereo, surround], tier4_flags) is surround

    def test_first_source_wins_ties(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test equal scores keep server order."""
        from tvplayback.playback import select_media_source

        first = make_source(source_id="first")
        second = make_source(source_id="second")

        assert select_media_source([first, second], tier4_flags) is first

    def test_score_components(
        self, tier4_flags: CapabilityFlags, make_source: Callable[..., MediaSource]
    ) -> None:
        """Test the score of a plain direct playable source."""
        from tvplayback.playback import score_media_source

        source = make_source(width=1920, range_type="HDR10", audio_codec="aac")

        # direct play + both server flags + 1080p + HDR10 + stereo track
        assert score_media_source(source, tier4_flags) == 1000 + 200 + 100 + 15 + 5 + 3

    def test_truehd_scores_as_multichannel(self, make_source: Callable[..., MediaSource]) -> None:
        """Test a TrueHD track earns the multichannel bonus, below AC-3."""
        from tvplayback.features import resolve_capabilities
        from tvplayback.playback import score_media_source

        flags = resolve_capabilities(PlatformTier.WEBOS_23)
        truehd = make_source(
            source_id="truehd",
            audio_codec="aac",
            extra_audio=[{"Index": 2, "Type": "Audio", "Codec": "truehd", "Channels": 8}],
        )
        ac3 = make_source(
            source_id="ac3",
            audio_codec="aac",
            extra_audio=[{"Index": 2, "Type": "Audio", "Codec": "ac3", "Channels": 6}],
        )
        stereo = make_source(source_id="stereo", audio_codec="aac")

        assert score_media_source(truehd, flags) == score_media_source(stereo, flags) + 2
        assert score_media_source(ac3, flags) == score_media_source(stereo, flags) + 5
