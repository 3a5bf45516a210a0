"""Device profile builder.

Projects a CapabilityFlags snapshot onto the DeviceProfile document the media
server uses for playback negotiation. The document tells the server which
container/codec combinations the TV plays directly and what to transcode to
otherwise.

Building is pure and total: a capability gap omits the corresponding rule,
never raises. A profile with no direct play rules is valid and leaves the
server with transcoding only.

Usage:
    from tvplayback.profile import build_device_profile

    profile = build_device_profile(flags, name="Living Room TV")
"""

from __future__ import annotations

import logging

from .const import (
    AUDIO_CHANNELS_ATMOS,
    AUDIO_CHANNELS_STEREO,
    AUDIO_CHANNELS_SURROUND,
    AV1_MAX_LEVEL,
    AV1_PROFILES,
    CONDITION_EQUALS,
    CONDITION_EQUALS_ANY,
    CONDITION_LESS_THAN_EQUAL,
    CONDITION_NOT_EQUALS,
    CONTEXT_STATIC,
    CONTEXT_STREAMING,
    DEFAULT_CLIENT_NAME,
    DEFAULT_MAX_STATIC_BITRATE,
    DEFAULT_MAX_STREAMING_BITRATE,
    DEFAULT_MUSIC_TRANSCODING_BITRATE,
    DOLBY_VISION_CONTAINERS,
    H264_PROFILES,
    HEVC_PROFILES,
    IMAGE_SUBTITLE_FORMATS,
    LOSSLESS_MAX_CHANNELS,
    MAX_VIDEO_FRAMERATE,
    MIME_TYPES,
    PROFILE_TYPE_AUDIO,
    PROFILE_TYPE_VIDEO,
    PROFILE_TYPE_VIDEO_AUDIO,
    PROTOCOL_HLS,
    PROTOCOL_HTTP,
    RANGE_SDR,
    SUBTITLE_METHOD_ENCODE,
    SUBTITLE_METHOD_EXTERNAL,
    TEXT_SUBTITLE_FORMATS,
    CodecProfile,
    ContainerProfile,
    DeviceProfile,
    DirectPlayProfile,
    ProfileCondition,
    ResponseProfile,
    SubtitleProfile,
    TranscodingProfile,
)
from .features import (
    build_video_range_types,
    join_values,
    max_video_bitrate,
    max_video_resolution,
    without_dolby_vision,
)
from .models import CapabilityFlags, PlatformTier

_LOGGER = logging.getLogger(__name__)

# Wire tags emitted for DTS and PCM tracks
_DTS_TAGS: tuple[str, ...] = ("dca", "dts")
_PCM_TAGS: tuple[str, ...] = ("pcm_s16le", "pcm_s24le")

# HLS audio the tier 4 player stack handles reliably
_TIER4_HLS_AUDIO: tuple[str, ...] = ("aac", "mp3")


def _condition(
    condition: str,
    prop: str,
    value: str | int,
    is_required: bool = False,
) -> ProfileCondition:
    return {
        "Condition": condition,
        "Property": prop,
        "Value": str(value),
        "IsRequired": is_required,
    }


def _csv(values: tuple[str, ...] | list[str]) -> str:
    return ",".join(values)


# =============================================================================
# Codec lists
# =============================================================================


def _dts_codecs(flags: CapabilityFlags, container: str) -> list[str]:
    """Return DTS tags if both the DTS gate and the container allow-list pass."""
    if flags.dts and container in flags.dts_containers:
        return list(_DTS_TAGS)
    return []


def _mp4_video_codecs(flags: CapabilityFlags) -> list[str]:
    codecs = []
    if flags.h264:
        codecs.append("h264")
    if flags.hevc:
        codecs.append("hevc")
    if flags.av1:
        codecs.append("av1")
    return codecs


def _mp4_audio_codecs(flags: CapabilityFlags) -> list[str]:
    codecs = []
    if flags.aac:
        codecs.append("aac")
    if flags.mp3:
        codecs.append("mp3")
    if flags.ac3:
        codecs.append("ac3")
    if flags.eac3:
        codecs.append("eac3")
    codecs.extend(_dts_codecs(flags, "mp4"))
    return codecs


def _ts_audio_codecs(flags: CapabilityFlags) -> list[str]:
    codecs = []
    if flags.aac:
        codecs.append("aac")
    if flags.mp3:
        codecs.append("mp3")
    if flags.pcm:
        codecs.extend(_PCM_TAGS)
    if flags.ac3:
        codecs.append("ac3")
    if flags.eac3:
        codecs.append("eac3")
    codecs.extend(_dts_codecs(flags, "ts"))
    return codecs


def _mkv_audio_codecs(flags: CapabilityFlags) -> list[str]:
    codecs = []
    if flags.aac:
        codecs.append("aac")
    if flags.mp3:
        codecs.append("mp3")
    if flags.pcm:
        codecs.extend(_PCM_TAGS)
    if flags.ac3:
        codecs.append("ac3")
    if flags.eac3:
        codecs.append("eac3")
    codecs.extend(_dts_codecs(flags, "mkv"))
    if flags.opus:
        codecs.append("opus")
    return codecs


def _video_rule(
    container: str,
    video_codecs: list[str],
    audio_codecs: list[str],
) -> DirectPlayProfile | None:
    """Return a video direct play rule, or None if either codec list is empty."""
    if not video_codecs or not audio_codecs:
        return None
    return {
        "Container": container,
        "Type": PROFILE_TYPE_VIDEO,
        "VideoCodec": _csv(video_codecs),
        "AudioCodec": _csv(audio_codecs),
    }


def _audio_rule(container: str, audio_codecs: list[str]) -> DirectPlayProfile | None:
    if not audio_codecs:
        return None
    return {
        "Container": container,
        "Type": PROFILE_TYPE_AUDIO,
        "AudioCodec": _csv(audio_codecs),
    }


# =============================================================================
# DirectPlayProfiles
# =============================================================================


def build_direct_play_profiles(flags: CapabilityFlags) -> list[DirectPlayProfile]:
    """Build the direct play rules in fixed container order.

    Containers: webm, mp4/m4v, mkv, ts/mpegts, m2ts, asf, wmv, avi,
    mpg/mpeg, mov, hls, then the audio-only containers.
    """
    candidates: list[DirectPlayProfile | None] = []
    mp4_video = _mp4_video_codecs(flags)
    mp4_audio = _mp4_audio_codecs(flags)
    ts_audio = _ts_audio_codecs(flags)

    if flags.webm:
        webm_video = ["vp8"]
        if flags.vp9:
            webm_video.append("vp9")
        if flags.av1:
            webm_video.append("av1")
        webm_audio = []
        if flags.vorbis:
            webm_audio.append("vorbis")
        if flags.opus:
            webm_audio.append("opus")
        candidates.append(_video_rule("webm", webm_video, webm_audio))

    if flags.mp4:
        candidates.append(_video_rule("mp4,m4v", mp4_video, mp4_audio))

    if flags.mkv:
        mkv_video = ["mpeg4", "mpeg2video", "vp8"]
        if flags.h264:
            mkv_video.insert(0, "h264")
        if flags.hevc:
            mkv_video.append("hevc")
        if flags.vp9:
            mkv_video.append("vp9")
        if flags.av1:
            mkv_video.append("av1")
        candidates.append(_video_rule("mkv", mkv_video, _mkv_audio_codecs(flags)))

    if flags.ts:
        ts_video = []
        if flags.h264:
            ts_video.append("h264")
        if flags.hevc:
            ts_video.append("hevc")
        ts_video.extend(["vc1", "mpeg2video"])
        candidates.append(_video_rule("ts,mpegts", ts_video, ts_audio))

        m2ts_video = ["h264"] if flags.h264 else []
        m2ts_video.extend(["vc1", "mpeg2video"])
        candidates.append(_video_rule("m2ts", m2ts_video, ts_audio))

    if flags.asf:
        asf_audio = ["wmav2", "wmapro"]
        if flags.mp3:
            asf_audio.append("mp3")
        candidates.append(_video_rule("asf", ["vc1", "wmv3"], asf_audio))
        candidates.append(_video_rule("wmv", ["vc1", "wmv3"], asf_audio))

    if flags.avi:
        avi_video = ["mpeg4", "mjpeg"]
        if flags.h264:
            avi_video.insert(0, "h264")
        avi_audio = []
        if flags.mp3:
            avi_audio.append("mp3")
        if flags.pcm:
            avi_audio.extend(_PCM_TAGS)
        if flags.ac3:
            avi_audio.append("ac3")
        avi_audio.extend(_dts_codecs(flags, "avi"))
        candidates.append(_video_rule("avi", avi_video, avi_audio))

    if flags.ts:
        mpg_audio = ["mp2"]
        if flags.mp3:
            mpg_audio.append("mp3")
        if flags.ac3:
            mpg_audio.append("ac3")
        candidates.append(_video_rule("mpg,mpeg", ["mpeg1video", "mpeg2video"], mpg_audio))

    if flags.mp4:
        mov_video = ["h264"] if flags.h264 else []
        mov_video.append("mpeg4")
        if flags.hevc:
            mov_video.append("hevc")
        if flags.av1:
            mov_video.append("av1")
        candidates.append(_video_rule("mov", mov_video, mp4_audio))

    if flags.native_hls:
        hls_audio = ts_audio
        if flags.tier == PlatformTier.WEBOS_4:
            hls_audio = [codec for codec in ts_audio if codec in _TIER4_HLS_AUDIO]
        candidates.append(_video_rule("hls", mp4_video, hls_audio))

    # Audio-only containers
    candidates.append(_audio_rule("mp3", ["mp3"] if flags.mp3 else []))
    candidates.append(_audio_rule("flac", ["flac"] if flags.flac else []))
    candidates.append(_audio_rule("aac", ["aac"] if flags.aac else []))
    ogg_audio = []
    if flags.vorbis:
        ogg_audio.append("vorbis")
    if flags.opus:
        ogg_audio.append("opus")
    candidates.append(_audio_rule("ogg", ogg_audio))
    candidates.append(_audio_rule("wav", list(_PCM_TAGS) if flags.pcm else []))
    candidates.append(_audio_rule("webm", ["opus"] if flags.webm and flags.opus else []))
    candidates.append(_audio_rule("m4a", ["aac"] if flags.aac else []))
    candidates.append(_audio_rule("m4b", ["aac"] if flags.aac else []))

    return [rule for rule in candidates if rule is not None]


# =============================================================================
# TranscodingProfiles
# =============================================================================


def max_audio_channels(flags: CapabilityFlags) -> int:
    """Return the global audio channel ceiling."""
    if flags.dolby_atmos:
        return AUDIO_CHANNELS_ATMOS
    if flags.ac3 or flags.eac3:
        return AUDIO_CHANNELS_SURROUND
    return AUDIO_CHANNELS_STEREO


def _hls_audio_codecs(flags: CapabilityFlags) -> str:
    if flags.tier == PlatformTier.WEBOS_4:
        return _csv(_TIER4_HLS_AUDIO)
    codecs = ["aac", "mp2"]
    if flags.ac3:
        codecs.append("ac3")
    if flags.eac3:
        codecs.append("eac3")
    return _csv(codecs)


def build_transcoding_profiles(flags: CapabilityFlags) -> list[TranscodingProfile]:
    """Build transcoding targets in server preference order.

    fMP4-HLS first (when supported), then TS-HLS, then the static MP4
    fallback, then audio. H.264 and AAC are always offered.
    """
    video_codecs = ["hevc", "h264"] if flags.hevc else ["h264"]
    channels = str(max_audio_channels(flags))
    audio_codecs = _hls_audio_codecs(flags)

    profiles: list[TranscodingProfile] = []
    hls_containers = ["mp4", "ts"] if flags.native_hls_fmp4 else ["ts"]
    for container in hls_containers:
        profiles.append(
            {
                "Container": container,
                "Type": PROFILE_TYPE_VIDEO,
                "VideoCodec": _csv(video_codecs),
                "AudioCodec": audio_codecs,
                "Protocol": PROTOCOL_HLS,
                "Context": CONTEXT_STREAMING,
                "MaxAudioChannels": channels,
                "MinSegments": "1",
                "BreakOnNonKeyFrames": False,
            }
        )

    profiles.append(
        {
            "Container": "mp4",
            "Type": PROFILE_TYPE_VIDEO,
            "VideoCodec": "h264",
            "AudioCodec": "aac,ac3",
            "Context": CONTEXT_STATIC,
        }
    )
    for audio in ("mp3", "aac"):
        profiles.append(
            {
                "Container": audio,
                "Type": PROFILE_TYPE_AUDIO,
                "AudioCodec": audio,
                "Protocol": PROTOCOL_HTTP,
                "Context": CONTEXT_STREAMING,
            }
        )
    return profiles


# =============================================================================
# ContainerProfiles / CodecProfiles
# =============================================================================


def build_container_profiles(flags: CapabilityFlags) -> list[ContainerProfile]:
    """Build container restrictions.

    Without native Matroska support, mkv is forced through a remux.
    """
    if flags.mkv:
        return []
    return [
        {
            "Type": PROFILE_TYPE_VIDEO,
            "Container": "mkv",
            "Conditions": [
                _condition(CONDITION_NOT_EQUALS, "SupportsDirectPlay", "true", is_required=True)
            ],
        }
    ]


def _ceiling_conditions(flags: CapabilityFlags, codec: str) -> list[ProfileCondition]:
    width, height = max_video_resolution(flags, codec)
    return [
        _condition(CONDITION_LESS_THAN_EQUAL, "Width", width),
        _condition(CONDITION_LESS_THAN_EQUAL, "Height", height),
        _condition(CONDITION_LESS_THAN_EQUAL, "VideoFramerate", MAX_VIDEO_FRAMERATE),
        _condition(CONDITION_LESS_THAN_EQUAL, "VideoBitrate", max_video_bitrate(flags, codec)),
    ]


def build_codec_profiles(flags: CapabilityFlags) -> list[CodecProfile]:
    """Build the codec condition sets.

    Codec-specific audio ceilings apply in addition to the global channel
    ceiling. Video ceilings are advisory (IsRequired false).
    """
    ranges = build_video_range_types(flags)
    non_dv_ranges = join_values(without_dolby_vision(ranges))
    profiles: list[CodecProfile] = [
        {
            "Type": PROFILE_TYPE_VIDEO_AUDIO,
            "Conditions": [
                _condition(CONDITION_LESS_THAN_EQUAL, "AudioChannels", max_audio_channels(flags))
            ],
        }
    ]

    if not flags.secondary_audio:
        # Hide secondary tracks from negotiation rather than fail at playback
        profiles.append(
            {
                "Type": PROFILE_TYPE_VIDEO_AUDIO,
                "Codec": "aac",
                "Conditions": [_condition(CONDITION_EQUALS, "IsSecondaryAudio", "false")],
            }
        )
        profiles.append(
            {
                "Type": PROFILE_TYPE_VIDEO_AUDIO,
                "Conditions": [_condition(CONDITION_EQUALS, "IsSecondaryAudio", "false")],
            }
        )

    profiles.append(
        {
            "Type": PROFILE_TYPE_VIDEO_AUDIO,
            "Codec": "flac",
            "Conditions": [
                _condition(CONDITION_LESS_THAN_EQUAL, "AudioChannels", LOSSLESS_MAX_CHANNELS)
            ],
        }
    )

    if flags.h264:
        profiles.append(
            {
                "Type": PROFILE_TYPE_VIDEO,
                "Codec": "h264",
                "Conditions": [
                    _condition(CONDITION_EQUALS_ANY, "VideoProfile", H264_PROFILES),
                    _condition(CONDITION_EQUALS_ANY, "VideoRangeType", RANGE_SDR),
                    _condition(CONDITION_LESS_THAN_EQUAL, "VideoLevel", flags.max_h264_level),
                    *_ceiling_conditions(flags, "h264"),
                ],
            }
        )

    if flags.hevc:
        if flags.dolby_vision:
            # Outside mp4/ts the Dolby Vision metadata is not trusted
            profiles.append(
                {
                    "Type": PROFILE_TYPE_VIDEO,
                    "Codec": "hevc",
                    "Container": "-" + _csv(DOLBY_VISION_CONTAINERS),
                    "Conditions": [
                        _condition(CONDITION_EQUALS_ANY, "VideoRangeType", non_dv_ranges)
                    ],
                }
            )
        profiles.append(
            {
                "Type": PROFILE_TYPE_VIDEO,
                "Codec": "hevc",
                "Conditions": [
                    _condition(CONDITION_EQUALS_ANY, "VideoProfile", HEVC_PROFILES),
                    _condition(CONDITION_EQUALS_ANY, "VideoRangeType", join_values(ranges)),
                    _condition(CONDITION_LESS_THAN_EQUAL, "VideoLevel", flags.max_hevc_level),
                    *_ceiling_conditions(flags, "hevc"),
                ],
            }
        )

    if flags.vp9:
        profiles.append(
            {
                "Type": PROFILE_TYPE_VIDEO,
                "Codec": "vp9",
                "Conditions": [_condition(CONDITION_EQUALS_ANY, "VideoRangeType", non_dv_ranges)],
            }
        )

    if flags.av1:
        profiles.append(
            {
                "Type": PROFILE_TYPE_VIDEO,
                "Codec": "av1",
                "Conditions": [
                    _condition(CONDITION_EQUALS_ANY, "VideoProfile", AV1_PROFILES),
                    _condition(CONDITION_EQUALS_ANY, "VideoRangeType", non_dv_ranges),
                    _condition(CONDITION_LESS_THAN_EQUAL, "VideoLevel", AV1_MAX_LEVEL),
                ],
            }
        )

    return profiles


# =============================================================================
# Subtitles / responses
# =============================================================================


def build_subtitle_profiles() -> list[SubtitleProfile]:
    """Deliver text subtitles externally and burn in image subtitles."""
    profiles: list[SubtitleProfile] = [
        {"Format": fmt, "Method": SUBTITLE_METHOD_EXTERNAL} for fmt in TEXT_SUBTITLE_FORMATS
    ]
    profiles.extend(
        {"Format": fmt, "Method": SUBTITLE_METHOD_ENCODE} for fmt in IMAGE_SUBTITLE_FORMATS
    )
    return profiles


def build_response_profiles(flags: CapabilityFlags) -> list[ResponseProfile]:
    """Build MIME overrides for containers served to the TV."""
    profiles: list[ResponseProfile] = [
        {"Type": PROFILE_TYPE_VIDEO, "Container": "m4v", "MimeType": MIME_TYPES["m4v"]}
    ]
    if flags.mkv:
        profiles.append(
            {"Type": PROFILE_TYPE_VIDEO, "Container": "mkv", "MimeType": MIME_TYPES["mkv"]}
        )
    return profiles


# =============================================================================
# Full profile
# =============================================================================


def build_device_profile(
    flags: CapabilityFlags,
    *,
    name: str = DEFAULT_CLIENT_NAME,
    max_streaming_bitrate: int = DEFAULT_MAX_STREAMING_BITRATE,
) -> DeviceProfile:
    """Build the complete device profile for a capability snapshot.

    Building twice from equal flags produces identical documents.

    Args:
        flags: Resolved capabilities.
        name: Profile name reported to the server.
        max_streaming_bitrate: Streaming bitrate ceiling in bits per second.

    Returns:
        The DeviceProfile document.
    """
    profile: DeviceProfile = {
        "Name": name,
        "MaxStreamingBitrate": max_streaming_bitrate,
        "MaxStaticBitrate": DEFAULT_MAX_STATIC_BITRATE,
        "MusicStreamingTranscodingBitrate": min(
            max_streaming_bitrate, DEFAULT_MUSIC_TRANSCODING_BITRATE
        ),
        "DirectPlayProfiles": build_direct_play_profiles(flags),
        "TranscodingProfiles": build_transcoding_profiles(flags),
        "ContainerProfiles": build_container_profiles(flags),
        "CodecProfiles": build_codec_profiles(flags),
        "SubtitleProfiles": build_subtitle_profiles(),
        "ResponseProfiles": build_response_profiles(flags),
    }
    _LOGGER.debug(
        "Built device profile for tier %s: %d direct play, %d transcoding, %d codec rules",
        int(flags.tier),
        len(profile["DirectPlayProfiles"]),
        len(profile["TranscodingProfiles"]),
        len(profile["CodecProfiles"]),
    )
    return profile


__all__ = [
    "build_codec_profiles",
    "build_container_profiles",
    "build_device_profile",
    "build_direct_play_profiles",
    "build_response_profiles",
    "build_subtitle_profiles",
    "build_transcoding_profiles",
    "max_audio_channels",
]
