"""Constants for the tvplayback capability engine."""

from __future__ import annotations

from typing import Final, TypedDict

VERSION: Final = "0.1.0"

DEFAULT_CLIENT_NAME: Final = "TV Player"

# =============================================================================
# Option keys and defaults
# =============================================================================

CONF_CLIENT_NAME: Final = "client_name"
CONF_MAX_STREAMING_BITRATE: Final = "max_streaming_bitrate"
CONF_PROBE_TIMEOUT: Final = "probe_timeout"
CONF_ENABLE_PROBE: Final = "enable_probe"
CONF_LUNA_URL: Final = "luna_url"
CONF_FORCE_DIRECT_PLAY: Final = "force_direct_play"

DEFAULT_MAX_STREAMING_BITRATE: Final = 120_000_000  # 120 Mbps
DEFAULT_MAX_STATIC_BITRATE: Final = 100_000_000  # 100 Mbps
DEFAULT_MUSIC_TRANSCODING_BITRATE: Final = 384_000  # 384 kbps
DEFAULT_PROBE_TIMEOUT: Final = 5.0  # seconds
DEFAULT_ENABLE_PROBE: Final = True
DEFAULT_FORCE_DIRECT_PLAY: Final = False

MIN_STREAMING_BITRATE: Final = 1_000_000
MAX_STREAMING_BITRATE: Final = 1_000_000_000
MIN_PROBE_TIMEOUT: Final = 0.1
MAX_PROBE_TIMEOUT: Final = 60.0

# =============================================================================
# Platform version tables
# =============================================================================

# (minimum Chromium major, platform tier), highest threshold first
CHROMIUM_TIER_TABLE: Final[tuple[tuple[int, int], ...]] = (
    (120, 25),
    (108, 24),
    (94, 23),
    (87, 22),
    (79, 6),
    (68, 5),
    (53, 4),
    (38, 3),
    (34, 2),
    (26, 1),
)

# (minimum WebKit/Safari major, platform tier) for pre-Chromium engines
WEBKIT_TIER_TABLE: Final[tuple[tuple[int, int], ...]] = (
    (538, 2),
    (537, 1),
)

# Internal SDK majors from 7 on map to year-based marketing tiers (7 -> 22)
SDK_MARKETING_SWITCH: Final = 7
SDK_MARKETING_OFFSET: Final = 15

# User-agent markers
UA_TV_MARKERS: Final[tuple[str, ...]] = ("web0s", "webos")
UA_LEGACY_MARKERS: Final[tuple[str, ...]] = ("netcast",)

# =============================================================================
# Native capability service (Luna)
# =============================================================================

LUNA_CONFIG_SERVICE: Final = "com.webos.service.config"
LUNA_CONFIG_METHOD: Final = "getConfigs"
LUNA_CONFIG_NAMES: Final[tuple[str, ...]] = ("tv.model.*", "tv.hw.*")

CFG_MODEL_NAME: Final = "tv.model.modelname"
CFG_SDK_VERSION: Final = "tv.model.sdkVersion"
CFG_SUPPORT_HDR: Final = "tv.model.supportHDR"
CFG_SUPPORT_DOLBY_VISION: Final = "tv.model.supportDolbyVisionHDR"
CFG_DOLBY_VISION_PROFILES: Final = "tv.model.dolbyVisionProfiles"
CFG_SOUND_MODE_TYPE: Final = "tv.model.soundModeType"
CFG_EDID_TYPE: Final = "tv.model.edidType"
CFG_SERIAL_NUMBER: Final = "tv.model.serialnumber"
CFG_SUPPORT_HEVC: Final = "tv.hw.supportHEVC"
CFG_SUPPORT_AV1: Final = "tv.hw.supportAV1"
CFG_SUPPORT_VP9: Final = "tv.hw.supportVP9"
CFG_PANEL_RESOLUTION: Final = "tv.hw.panelResolution"
CFG_SUPPORT_8K: Final = "tv.hw.bSupport_8K_resolution"

PANEL_UHD_VALUES: Final[frozenset[str]] = frozenset({"UD", "8K"})
PANEL_8K_VALUE: Final = "8K"
DOLBY_ATMOS_MARKER: Final = "Dolby Atmos"
DOLBY_VISION_PROFILE_8: Final = "8"

LUNA_HEADER_CONTENT_TYPE: Final = "application/json"
USER_AGENT_TEMPLATE: Final = "tvplayback/{version}"

# =============================================================================
# Codec, container and range vocabulary
# =============================================================================

# Aliases resolved before any comparison. Keys are lower case.
VIDEO_CODEC_ALIASES: Final[dict[str, str]] = {
    "avc": "h264",
    "avc1": "h264",
    "h.264": "h264",
    "h265": "hevc",
    "h.265": "hevc",
    "hev1": "hevc",
    "hvc1": "hevc",
    "av01": "av1",
    "dvhe": "dvhe",
    "dvh1": "dvhe",
    "dovi": "dvhe",
    "mpeg2": "mpeg2video",
    "mpeg1": "mpeg1video",
    "vc-1": "vc1",
    "wvc1": "vc1",
}

AUDIO_CODEC_ALIASES: Final[dict[str, str]] = {
    "dca": "dts",
    "dts-hd": "dts",
    "dtshd": "dts",
    "ec3": "eac3",
    "ec-3": "eac3",
    "ac-3": "ac3",
    "dolby": "ac3",
    "mlp": "truehd",
    "lpcm": "pcm",
    "wav": "pcm",
    "pcm_s16le": "pcm",
    "pcm_s24le": "pcm",
    "mp4a": "aac",
    "amrnb": "amr",
    "amrwb": "amr",
    "wmav1": "wma",
    "wmav2": "wma",
    "wmapro": "wma",
}

CONTAINER_ALIASES: Final[dict[str, str]] = {
    "matroska": "mkv",
    "mpegts": "ts",
    "mts": "ts",
    "m2ts": "ts",
    "m4v": "mp4",
    "mov": "mp4",
    "3gp": "mp4",
    "3g2": "mp4",
    "mpeg": "mpg",
    "vob": "mpg",
    "dat": "mpg",
    "wmv": "asf",
    "m3u8": "hls",
}

# Decoded on every tier regardless of flags
BASELINE_VIDEO_CODECS: Final[tuple[str, ...]] = (
    "mpeg4",
    "mpeg2video",
    "mpeg1video",
    "vp8",
    "vc1",
    "wmv3",
    "mjpeg",
)

# Audio codecs that pass the general codec gate on every tier
ALWAYS_ENABLED_AUDIO_CODECS: Final[frozenset[str]] = frozenset(
    {"mp3", "mp2", "mp1", "flac", "truehd", "pcm", "vorbis", "wma", "amr"}
)

RANGE_SDR: Final = "SDR"
RANGE_HDR10: Final = "HDR10"
RANGE_HDR10_PLUS: Final = "HDR10Plus"
RANGE_HLG: Final = "HLG"
RANGE_DOVI: Final = "DOVI"
DOVI_PROFILE8_RANGES: Final[tuple[str, ...]] = (
    "DOVIWithHDR10",
    "DOVIWithHLG",
    "DOVIWithSDR",
    "DOVIWithHDR10Plus",
)
DOVI_FALLBACK_RANGES: Final[tuple[str, ...]] = (
    "DOVIWithEL",
    "DOVIWithELHDR10Plus",
    "DOVIInvalid",
)

# Dolby Vision metadata is trusted only inside these containers
DOLBY_VISION_CONTAINERS: Final[tuple[str, ...]] = ("mp4", "ts")

# =============================================================================
# Decoder ceilings
# =============================================================================

H264_PROFILES: Final = "high|main|baseline|constrained baseline"
HEVC_PROFILES: Final = "main|main 10"
AV1_PROFILES: Final = "main"
H264_LEVEL_UHD: Final = 51
H264_LEVEL_FHD: Final = 42
HEVC_LEVEL_8K: Final = 186
HEVC_LEVEL_UHD: Final = 153
HEVC_LEVEL_FHD: Final = 123
AV1_MAX_LEVEL: Final = 15
MAX_VIDEO_FRAMERATE: Final = 60

BITRATE_8K: Final = 100_000_000
BITRATE_UHD_HEVC: Final = 60_000_000
BITRATE_UHD_H264: Final = 50_000_000
BITRATE_UHD_OTHER: Final = 60_000_000
BITRATE_FHD: Final = 40_000_000

RESOLUTION_8K: Final[tuple[int, int]] = (7680, 4320)
RESOLUTION_UHD: Final[tuple[int, int]] = (3840, 2160)
RESOLUTION_FHD: Final[tuple[int, int]] = (1920, 1080)

AUDIO_CHANNELS_ATMOS: Final = 8
AUDIO_CHANNELS_SURROUND: Final = 6
AUDIO_CHANNELS_STEREO: Final = 2
LOSSLESS_MAX_CHANNELS: Final = 2

# =============================================================================
# Profile vocabulary
# =============================================================================

PROFILE_TYPE_VIDEO: Final = "Video"
PROFILE_TYPE_AUDIO: Final = "Audio"
PROFILE_TYPE_VIDEO_AUDIO: Final = "VideoAudio"

CONDITION_EQUALS: Final = "Equals"
CONDITION_NOT_EQUALS: Final = "NotEquals"
CONDITION_EQUALS_ANY: Final = "EqualsAny"
CONDITION_LESS_THAN_EQUAL: Final = "LessThanEqual"

CONTEXT_STREAMING: Final = "Streaming"
CONTEXT_STATIC: Final = "Static"
PROTOCOL_HLS: Final = "hls"
PROTOCOL_HTTP: Final = "http"

SUBTITLE_METHOD_EXTERNAL: Final = "External"
SUBTITLE_METHOD_ENCODE: Final = "Encode"
TEXT_SUBTITLE_FORMATS: Final[tuple[str, ...]] = (
    "vtt",
    "srt",
    "subrip",
    "ass",
    "ssa",
    "sub",
    "smi",
    "ttml",
)
IMAGE_SUBTITLE_FORMATS: Final[tuple[str, ...]] = (
    "idx",
    "pgs",
    "pgssub",
    "dvdsub",
    "dvbsub",
)

# MIME type mapping for direct URLs, keyed by container as reported
MIME_TYPES: Final[dict[str, str]] = {
    "mp4": "video/mp4",
    "m4v": "video/mp4",
    "mkv": "video/x-matroska",
    "matroska": "video/x-matroska",
    "webm": "video/webm",
    "ts": "video/mp2t",
    "mpegts": "video/mp2t",
    "m2ts": "video/mp2t",
    "mts": "video/mp2t",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    "m3u8": "application/x-mpegURL",
    "mpd": "application/dash+xml",
    "3gp": "video/3gpp",
    "3g2": "video/3gpp2",
    "mpg": "video/mpeg",
    "mpeg": "video/mpeg",
    "vob": "video/mpeg",
    "dat": "video/mpeg",
    "asf": "video/x-ms-asf",
    "wmv": "video/x-ms-wmv",
}
DEFAULT_MIME_TYPE: Final = "video/mp4"

# =============================================================================
# TypedDicts for the playback-negotiation wire format
# =============================================================================


class MediaStreamInfo(TypedDict, total=False):
    """Individual stream (video/audio/subtitle) information.

    Mirrors the server's MediaStream object; only the fields the engine
    reads are declared.
    """

    Index: int
    Type: str  # "Video", "Audio", "Subtitle"
    Codec: str
    IsDefault: bool

    # Video-specific fields
    Width: int
    Height: int
    BitRate: int
    BitDepth: int
    Profile: str
    Level: float
    VideoRangeType: str

    # Audio-specific fields
    Channels: int


class MediaSourceInfo(TypedDict, total=False):
    """Media source information from a PlaybackInfo response."""

    Id: str
    Container: str
    SupportsDirectPlay: bool
    SupportsDirectStream: bool
    SupportsTranscoding: bool
    TranscodingUrl: str
    MediaStreams: list[MediaStreamInfo]
    DefaultAudioStreamIndex: int


class DirectPlayProfile(TypedDict, total=False):
    """Direct play capability declaration.

    Defines what container/codec combinations the device
    can play directly without transcoding.
    """

    Container: str  # Comma-separated: "mp4,m4v"
    Type: str  # "Video", "Audio"
    VideoCodec: str  # Comma-separated: "h264,hevc"
    AudioCodec: str  # Comma-separated: "aac,mp3,ac3"


class TranscodingProfile(TypedDict, total=False):
    """Transcoding target, in server preference order."""

    Container: str
    Type: str  # "Video", "Audio"
    VideoCodec: str
    AudioCodec: str
    Protocol: str  # "hls" or "http"
    Context: str  # "Streaming" or "Static"
    MaxAudioChannels: str
    MinSegments: str
    BreakOnNonKeyFrames: bool


class ProfileCondition(TypedDict):
    """A single predicate inside a codec or container profile."""

    Condition: str  # "Equals", "NotEquals", "EqualsAny", "LessThanEqual"
    Property: str
    Value: str
    IsRequired: bool


class CodecProfile(TypedDict, total=False):
    """Conditions applied to a codec, optionally filtered by container."""

    Type: str  # "Video", "VideoAudio"
    Codec: str
    Container: str  # "-mp4,ts" excludes the listed containers
    Conditions: list[ProfileCondition]


class ContainerProfile(TypedDict, total=False):
    """Conditions applied to a whole container."""

    Type: str
    Container: str
    Conditions: list[ProfileCondition]


class SubtitleProfile(TypedDict, total=False):
    """Subtitle delivery options."""

    Format: str
    Method: str  # "Encode", "External"


class ResponseProfile(TypedDict, total=False):
    """MIME override for a container served to the device."""

    Type: str
    Container: str
    MimeType: str


class DeviceProfile(TypedDict, total=False):
    """Device capability profile for playback negotiation.

    Field names are a wire contract with the media server and must not be
    renamed.
    """

    Name: str
    MaxStreamingBitrate: int
    MaxStaticBitrate: int
    MusicStreamingTranscodingBitrate: int
    DirectPlayProfiles: list[DirectPlayProfile]
    TranscodingProfiles: list[TranscodingProfile]
    ContainerProfiles: list[ContainerProfile]
    CodecProfiles: list[CodecProfile]
    SubtitleProfiles: list[SubtitleProfile]
    ResponseProfiles: list[ResponseProfile]


def sanitize_url(url: str | None) -> str:
    """Return a URL reduced to scheme and host for logs and diagnostics.

    Args:
        url: The URL to sanitize.

    Returns:
        "scheme://host" or "***" when the URL cannot be reduced.
    """
    if not url:
        return "***"
    scheme, sep, rest = url.partition("://")
    if not sep:
        return "***"
    host = rest.split("/", 1)[0].rsplit("@", 1)[-1]
    return f"{scheme}://{host}"
