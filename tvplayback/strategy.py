"""Playback strategy resolver.

Decides, per concrete media source, whether the TV plays the file untouched
(DirectPlay), needs a remux (DirectStream) or needs a full transcode. The
checks short-circuit in a fixed order: video problems force a transcode,
container and audio problems only force a remux.

Decisions are never cached; capabilities can be upgraded during a session.
"""

from __future__ import annotations

import logging

from .const import (
    DOLBY_VISION_CONTAINERS,
    DOVI_FALLBACK_RANGES,
    DOVI_PROFILE8_RANGES,
    RANGE_DOVI,
    RANGE_HDR10,
    RANGE_HDR10_PLUS,
    RANGE_HLG,
    RANGE_SDR,
)
from .features import (
    RANGE_FAMILY_DOLBY_VISION,
    RANGE_FAMILY_HLG,
    RANGE_FAMILY_SDR,
    audio_codec_allowed_in_container,
    audio_codec_enabled,
    build_video_range_types,
    canonical_audio_codec,
    canonical_video_codec,
    container_parts,
    enabled_containers,
    enabled_video_codecs,
    max_video_bitrate,
    range_family,
    without_dolby_vision,
)
from .models import (
    AudioStream,
    CapabilityFlags,
    DecisionReason,
    MediaSource,
    PlaybackDecision,
    PlayMethod,
    VideoStream,
)

_LOGGER = logging.getLogger(__name__)

# Range names the server reports, keyed case-insensitively
_KNOWN_RANGES: dict[str, str] = {
    value.lower(): value
    for value in (
        RANGE_SDR,
        RANGE_HDR10,
        RANGE_HDR10_PLUS,
        RANGE_HLG,
        RANGE_DOVI,
        *DOVI_PROFILE8_RANGES,
        *DOVI_FALLBACK_RANGES,
    )
}


def video_codec_supported(codec: str | None, flags: CapabilityFlags) -> bool:
    """Return True if the video codec is in the enabled codec set.

    Dolby Vision tagged HEVC needs both HEVC and Dolby Vision.
    """
    canonical = canonical_video_codec(codec)
    if not canonical:
        return False
    return canonical in enabled_video_codecs(flags)


def video_range_types_for_container(
    container: str | None, flags: CapabilityFlags
) -> tuple[str, ...]:
    """Return the acceptable VideoRangeType values for a container.

    Dolby Vision ranges only count when some part of the container is one
    that carries trusted Dolby Vision metadata.
    """
    ranges = build_video_range_types(flags)
    if any(part in DOLBY_VISION_CONTAINERS for part in container_parts(container)):
        return ranges
    return without_dolby_vision(ranges)


def video_range_supported(
    range_type: str | None, flags: CapabilityFlags, container: str | None = None
) -> bool:
    """Return True if the dynamic range is in the range composite.

    Ranges outside the known vocabulary are matched by their family, so an
    unknown HDR format still needs HDR10 support.
    """
    ranges = video_range_types_for_container(container, flags)
    if not range_type:
        return RANGE_SDR in ranges
    known = _KNOWN_RANGES.get(range_type.strip().lower())
    if known is not None:
        return known in ranges
    family = range_family(range_type)
    if family == RANGE_FAMILY_SDR:
        return RANGE_SDR in ranges
    if family == RANGE_FAMILY_DOLBY_VISION:
        return RANGE_DOVI in ranges
    if family == RANGE_FAMILY_HLG:
        return RANGE_HLG in ranges
    return RANGE_HDR10 in ranges


def video_bitrate_supported(video: VideoStream, flags: CapabilityFlags) -> bool:
    """Return True unless a known bitrate exceeds the decoder ceiling."""
    if not video.bit_rate:
        return True
    return video.bit_rate <= max_video_bitrate(flags, canonical_video_codec(video.codec))


def container_supported(container: str | None, flags: CapabilityFlags) -> bool:
    """Return True if any part of the container is natively demuxed.

    An unknown container passes; the server knows better.
    """
    parts = container_parts(container)
    if not parts:
        return True
    supported = enabled_containers(flags)
    return any(part in supported for part in parts)


def audio_codec_playable(codec: str | None, container: str | None, flags: CapabilityFlags) -> bool:
    """Return True if an audio codec passes both the codec and container gates."""
    return audio_codec_enabled(codec, flags) and audio_codec_allowed_in_container(
        codec, container, flags
    )


def find_compatible_audio_stream_index(source: MediaSource, flags: CapabilityFlags) -> int:
    """Return the index of the first playable audio stream, or -1.

    A stream without a reported codec is assumed playable.
    """
    for stream in source.audio_streams:
        if stream.index is None:
            continue
        if audio_codec_playable(stream.codec, source.container, flags):
            return stream.index
    return -1


def decide(source: MediaSource, flags: CapabilityFlags) -> PlaybackDecision:
    """Decide how to deliver one media source.

    Args:
        source: The media source to play.
        flags: Current capability snapshot.

    Returns:
        The playback decision and the reason it was reached.
    """
    decision = _decide(source, flags)
    _LOGGER.debug(
        "Playback decision for %s (container=%s): %s (%s)",
        source.source_id or "<unknown>",
        source.container,
        decision.method,
        decision.reason,
    )
    return decision


def _decide(source: MediaSource, flags: CapabilityFlags) -> PlaybackDecision:
    video = source.video_stream
    if video is None:
        return PlaybackDecision(PlayMethod.DIRECT_PLAY, DecisionReason.AUDIO_ONLY)

    if not video_codec_supported(video.codec, flags):
        return PlaybackDecision(
            PlayMethod.TRANSCODE,
            DecisionReason.VIDEO_CODEC_UNSUPPORTED,
            video.codec or None,
        )

    if not video_range_supported(video.range_type, flags, source.container):
        return PlaybackDecision(
            PlayMethod.TRANSCODE,
            DecisionReason.VIDEO_RANGE_UNSUPPORTED,
            video.range_type,
        )

    if not video_bitrate_supported(video, flags):
        return PlaybackDecision(
            PlayMethod.TRANSCODE,
            DecisionReason.VIDEO_BITRATE_EXCEEDED,
            str(video.bit_rate),
        )

    if not container_supported(source.container, flags):
        return PlaybackDecision(
            PlayMethod.DIRECT_STREAM,
            DecisionReason.CONTAINER_UNSUPPORTED,
            source.container,
        )

    audio = source.audio_stream
    if audio is not None and not audio_codec_playable(audio.codec, source.container, flags):
        return _decide_audio_fallback(source, audio, flags)

    return PlaybackDecision(PlayMethod.DIRECT_PLAY, DecisionReason.COMPATIBLE)


def _decide_audio_fallback(
    source: MediaSource, audio: AudioStream, flags: CapabilityFlags
) -> PlaybackDecision:
    # Another track the TV can play keeps the file untouched
    index = find_compatible_audio_stream_index(source, flags)
    if index != -1:
        return PlaybackDecision(PlayMethod.DIRECT_PLAY, DecisionReason.COMPATIBLE, str(index))

    codec = canonical_audio_codec(audio.codec)
    if not audio_codec_enabled(audio.codec, flags):
        return PlaybackDecision(
            PlayMethod.DIRECT_STREAM, DecisionReason.AUDIO_CODEC_UNSUPPORTED, codec
        )
    return PlaybackDecision(
        PlayMethod.DIRECT_STREAM,
        DecisionReason.AUDIO_CONTAINER_RESTRICTED,
        f"{codec} in {source.container}",
    )


__all__ = [
    "audio_codec_playable",
    "container_supported",
    "decide",
    "find_compatible_audio_stream_index",
    "video_bitrate_supported",
    "video_codec_supported",
    "video_range_supported",
    "video_range_types_for_container",
]
