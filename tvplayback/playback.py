"""Playback helpers built on the strategy resolver.

Chooses between several media sources of one item, reconciles the client
decision with what the server allows for a source, and finds an audio track
the TV can play.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .const import DEFAULT_MIME_TYPE, MIME_TYPES
from .features import (
    RANGE_FAMILY_DOLBY_VISION,
    RANGE_FAMILY_HDR10,
    canonical_audio_codec,
    range_family,
)
from .models import (
    AudioStream,
    CapabilityFlags,
    DecisionReason,
    MediaSource,
    PlaybackDecision,
    PlayMethod,
)
from .strategy import audio_codec_playable, decide, find_compatible_audio_stream_index

_LOGGER = logging.getLogger(__name__)

# Every audio tag the server may report, in preference order
_AUDIO_CODEC_TAGS: tuple[str, ...] = (
    "aac",
    "mp3",
    "mp2",
    "mp1",
    "flac",
    "pcm_s16le",
    "pcm_s24le",
    "lpcm",
    "wav",
    "ac3",
    "dolby",
    "eac3",
    "ec3",
    "dts",
    "dca",
    "dts-hd",
    "dtshd",
    "truehd",
    "mlp",
    "opus",
    "vorbis",
    "wma",
    "amr",
    "amrnb",
    "amrwb",
)

# Source scoring weights
SCORE_DIRECT_PLAY = 1000
SCORE_DIRECT_STREAM = 500
SCORE_SERVER_DIRECT_PLAY = 200
SCORE_SERVER_DIRECT_STREAM = 100
SCORE_NO_COMPATIBLE_AUDIO = -10


def supported_audio_codecs(flags: CapabilityFlags, container: str = "") -> list[str]:
    """Return every audio codec tag playable in a container.

    Args:
        flags: Current capability snapshot.
        container: Container of the source. Empty means no container
            restriction.

    Returns:
        Codec tags, aliases included, in preference order.
    """
    return [tag for tag in _AUDIO_CODEC_TAGS if audio_codec_playable(tag, container, flags)]


def determine_play_method(
    source: MediaSource,
    flags: CapabilityFlags,
    *,
    force_direct_play: bool = False,
) -> PlaybackDecision:
    """Reconcile the client decision with the server's flags for a source.

    A client Transcode is final: the server is never allowed to talk the
    client into streaming something it cannot decode.

    Args:
        source: The media source.
        flags: Current capability snapshot.
        force_direct_play: Skip compatibility checks when the server allows
            direct play.

    Returns:
        The final playback decision.
    """
    if force_direct_play and source.supports_direct_play:
        _LOGGER.debug("Forcing direct play for %s", source.source_id)
        return PlaybackDecision(PlayMethod.DIRECT_PLAY, DecisionReason.FORCED_DIRECT_PLAY)

    decision = decide(source, flags)
    if decision.method is PlayMethod.TRANSCODE:
        return decision
    if decision.method is PlayMethod.DIRECT_PLAY and source.supports_direct_play:
        return decision
    if decision.method is PlayMethod.DIRECT_STREAM and source.supports_direct_stream:
        return decision

    _LOGGER.debug(
        "Server refused %s for %s (direct_play=%s, direct_stream=%s)",
        decision.method,
        source.source_id,
        source.supports_direct_play,
        source.supports_direct_stream,
    )
    if source.supports_direct_stream:
        return PlaybackDecision(
            PlayMethod.DIRECT_STREAM, DecisionReason.SERVER_FALLBACK, str(decision.method)
        )
    return PlaybackDecision(
        PlayMethod.TRANSCODE, DecisionReason.SERVER_FALLBACK, str(decision.method)
    )


def _audio_track_score(stream: AudioStream) -> int:
    codec = canonical_audio_codec(stream.codec)
    if codec == "eac3":
        return 10
    if codec == "ac3":
        return 8
    if (stream.channels or 0) >= 6:
        return 5
    return 3


def score_media_source(source: MediaSource, flags: CapabilityFlags) -> int:
    """Score a media source; higher is better.

    Weighs the client decision, the server flags, resolution, HDR match and
    the best playable audio track.
    """
    score = 0
    method = decide(source, flags).method
    if method is PlayMethod.DIRECT_PLAY:
        score += SCORE_DIRECT_PLAY
    elif method is PlayMethod.DIRECT_STREAM:
        score += SCORE_DIRECT_STREAM

    if source.supports_direct_play:
        score += SCORE_SERVER_DIRECT_PLAY
    if source.supports_direct_stream:
        score += SCORE_SERVER_DIRECT_STREAM

    video = source.video_stream
    if video is not None:
        width = video.width or 0
        if width >= 3840:
            score += 20
        elif width >= 1920:
            score += 15
        elif width >= 1280:
            score += 10

        if video.range_type:
            family = range_family(video.range_type)
            if family == RANGE_FAMILY_DOLBY_VISION and flags.dolby_vision:
                score += 10
            elif family == RANGE_FAMILY_HDR10 and flags.hdr10:
                score += 5

    playable = [
        stream
        for stream in source.audio_streams
        if audio_codec_playable(stream.codec, source.container, flags)
    ]
    if playable:
        score += max(_audio_track_score(stream) for stream in playable)
    elif source.audio_streams:
        score += SCORE_NO_COMPATIBLE_AUDIO

    return score


def select_media_source(
    sources: Sequence[MediaSource],
    flags: CapabilityFlags,
    media_source_id: str | None = None,
) -> MediaSource | None:
    """Pick the media source to play.

    An explicitly requested source id wins; otherwise the highest scoring
    source is chosen (first one on ties).

    Returns:
        The selected source, or None if there are no sources.
    """
    if not sources:
        return None

    if media_source_id:
        for source in sources:
            if source.source_id == media_source_id:
                return source
        _LOGGER.debug("Requested media source %s not found, scoring all", media_source_id)

    scored = [(score_media_source(source, flags), source) for source in sources]
    best_score, best = max(scored, key=lambda item: item[0])
    _LOGGER.debug("Selected media source %s with score %d", best.source_id, best_score)
    return best


def mime_type_for_container(container: str | None) -> str:
    """Return the MIME type for a container, defaulting to MP4."""
    if not container:
        return DEFAULT_MIME_TYPE
    first = container.split(",", 1)[0].strip().lower()
    return MIME_TYPES.get(first, DEFAULT_MIME_TYPE)


__all__ = [
    "audio_codec_playable",
    "determine_play_method",
    "find_compatible_audio_stream_index",
    "mime_type_for_container",
    "score_media_source",
    "select_media_source",
    "supported_audio_codecs",
]
