"""Data models for the tvplayback capability engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Self

from .const import (
    CFG_DOLBY_VISION_PROFILES,
    CFG_EDID_TYPE,
    CFG_MODEL_NAME,
    CFG_PANEL_RESOLUTION,
    CFG_SDK_VERSION,
    CFG_SERIAL_NUMBER,
    CFG_SOUND_MODE_TYPE,
    CFG_SUPPORT_8K,
    CFG_SUPPORT_AV1,
    CFG_SUPPORT_DOLBY_VISION,
    CFG_SUPPORT_HDR,
    CFG_SUPPORT_HEVC,
    CFG_SUPPORT_VP9,
    DOLBY_ATMOS_MARKER,
    DOLBY_VISION_PROFILE_8,
    PANEL_8K_VALUE,
    PANEL_UHD_VALUES,
)

if TYPE_CHECKING:
    from .const import MediaSourceInfo, MediaStreamInfo


class PlatformTier(IntEnum):
    """Platform capability generation.

    Values are not contiguous: 6 is followed by the year-based 22. Only
    threshold comparisons are meaningful; never do arithmetic on members.
    """

    WEBOS_1 = 1
    WEBOS_2 = 2
    WEBOS_3 = 3
    WEBOS_4 = 4
    WEBOS_5 = 5
    WEBOS_6 = 6
    WEBOS_22 = 22
    WEBOS_23 = 23
    WEBOS_24 = 24
    WEBOS_25 = 25

    # Conservative tier for devices whose version cannot be determined
    DEFAULT = 4

    @classmethod
    def coerce(cls, value: int) -> PlatformTier:
        """Return the highest tier whose value does not exceed ``value``.

        Values below the first generation map to the lowest tier.
        """
        eligible = [tier for tier in cls if tier <= value]
        if not eligible:
            return cls.WEBOS_1
        return max(eligible)


class ProbeState(StrEnum):
    """Lifecycle of the native capability probe."""

    NOT_LOADED = "not_loaded"
    PENDING = "pending"
    LOADED = "loaded"


class PlayMethod(StrEnum):
    """Delivery strategy for one media source."""

    DIRECT_PLAY = "DirectPlay"
    DIRECT_STREAM = "DirectStream"
    TRANSCODE = "Transcode"


class DecisionReason(StrEnum):
    """Why a playback decision was reached."""

    COMPATIBLE = "compatible"
    AUDIO_ONLY = "audio_only"
    VIDEO_CODEC_UNSUPPORTED = "video_codec_unsupported"
    VIDEO_RANGE_UNSUPPORTED = "video_range_unsupported"
    VIDEO_BITRATE_EXCEEDED = "video_bitrate_exceeded"
    CONTAINER_UNSUPPORTED = "container_unsupported"
    AUDIO_CODEC_UNSUPPORTED = "audio_codec_unsupported"
    AUDIO_CONTAINER_RESTRICTED = "audio_container_restricted"
    NO_MEDIA_SOURCE = "no_media_source"
    FORCED_DIRECT_PLAY = "forced_direct_play"
    SERVER_FALLBACK = "server_fallback"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Ground-truth flags reported by the native device-info service.

    Every flag is tri-state: None means the service did not report it, which
    is different from an explicit False.

    Attributes:
        model_name: Marketing model name of the device.
        sdk_version: Native SDK version string (e.g. "7.3.0").
        hdr10: Panel/decoder HDR10 support.
        dolby_vision: Native Dolby Vision support.
        dolby_vision_profile8: Profile 8 Dolby Vision decode support.
        dolby_atmos: Dolby Atmos sound mode available.
        edid_has_dts: EDID audio descriptor advertises DTS.
        hevc: Hardware HEVC decoder present.
        av1: Hardware AV1 decoder present.
        vp9: Hardware VP9 decoder present.
        uhd: Panel is 4K or better.
        uhd_8k: Panel is 8K.
        serial_number: Device serial, kept for diagnostics only.
    """

    model_name: str | None = None
    sdk_version: str | None = None
    hdr10: bool | None = None
    dolby_vision: bool | None = None
    dolby_vision_profile8: bool | None = None
    dolby_atmos: bool | None = None
    edid_has_dts: bool | None = None
    hevc: bool | None = None
    av1: bool | None = None
    vp9: bool | None = None
    uhd: bool | None = None
    uhd_8k: bool | None = None
    serial_number: str | None = None

    @property
    def is_empty(self) -> bool:
        """Return True if the service reported nothing usable."""
        return all(getattr(self, f.name) is None for f in fields(self))

    @classmethod
    def from_configs(cls, configs: Mapping[str, object]) -> Self:
        """Create from the flat key/value map returned by getConfigs.

        A key the device did not report stays None.
        """
        panel = configs.get(CFG_PANEL_RESOLUTION)
        uhd: bool | None = None
        uhd_8k: bool | None = None
        if isinstance(panel, str):
            uhd = panel in PANEL_UHD_VALUES
            uhd_8k = panel == PANEL_8K_VALUE
        support_8k = _config_bool(configs.get(CFG_SUPPORT_8K))
        if support_8k:
            uhd_8k = True
            uhd = True
        elif support_8k is False and uhd_8k is None:
            uhd_8k = False

        profiles = configs.get(CFG_DOLBY_VISION_PROFILES)
        profile8: bool | None = None
        if isinstance(profiles, str):
            profile8 = DOLBY_VISION_PROFILE_8 in [p.strip() for p in profiles.split(",")]
        elif isinstance(profiles, list | tuple):
            profile8 = DOLBY_VISION_PROFILE_8 in [str(p).strip() for p in profiles]

        sound_mode = configs.get(CFG_SOUND_MODE_TYPE)
        edid_type = configs.get(CFG_EDID_TYPE)

        return cls(
            model_name=_config_str(configs.get(CFG_MODEL_NAME)),
            sdk_version=_config_str(configs.get(CFG_SDK_VERSION)),
            hdr10=_config_bool(configs.get(CFG_SUPPORT_HDR)),
            dolby_vision=_config_bool(configs.get(CFG_SUPPORT_DOLBY_VISION)),
            dolby_vision_profile8=profile8,
            dolby_atmos=(
                DOLBY_ATMOS_MARKER in sound_mode if isinstance(sound_mode, str) else None
            ),
            edid_has_dts=("dts" in edid_type.lower() if isinstance(edid_type, str) else None),
            hevc=_config_bool(configs.get(CFG_SUPPORT_HEVC)),
            av1=_config_bool(configs.get(CFG_SUPPORT_AV1)),
            vp9=_config_bool(configs.get(CFG_SUPPORT_VP9)),
            uhd=uhd,
            uhd_8k=uhd_8k,
            serial_number=_config_str(configs.get(CFG_SERIAL_NUMBER)),
        )


def _config_bool(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return None


def _config_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True, slots=True)
class CapabilityFlags:
    """Resolved capabilities for one session.

    Immutable: a capability change produces a new instance via
    ``with_changes`` rather than editing this one.

    Attributes:
        tier: Platform tier the flags were derived from.
        dts_containers: Canonical containers allowed to carry DTS. Consulted
            in addition to ``dts``, never instead of it.
        max_h264_level: Highest H.264 level (x10) the decoder accepts.
        max_hevc_level: Highest HEVC level (x30) the decoder accepts.
    """

    tier: PlatformTier = PlatformTier.DEFAULT

    # Video decode
    h264: bool = False
    hevc: bool = False
    av1: bool = False
    vp9: bool = False

    # Dynamic range
    hdr10: bool = False
    hdr10_plus: bool = False
    hlg: bool = False
    dolby_vision: bool = False
    dolby_vision_profile8: bool = False

    # Audio decode / passthrough
    aac: bool = False
    ac3: bool = False
    eac3: bool = False
    dts: bool = False
    opus: bool = False
    dolby_atmos: bool = False
    truehd: bool = False
    mp3: bool = False
    flac: bool = False
    vorbis: bool = False
    pcm: bool = False

    # Containers
    mkv: bool = False
    webm: bool = False
    ts: bool = False
    mp4: bool = False
    avi: bool = False
    asf: bool = False

    # Delivery
    native_hls: bool = False
    native_hls_fmp4: bool = False
    secondary_audio: bool = False

    # Panel
    uhd: bool = False
    uhd_8k: bool = False

    max_h264_level: int = 42
    max_hevc_level: int = 123
    dts_containers: frozenset[str] = field(default_factory=frozenset)

    def with_changes(self, **changes: object) -> Self:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-friendly dictionary with stable ordering."""
        data = asdict(self)
        data["tier"] = int(self.tier)
        data["dts_containers"] = sorted(self.dts_containers)
        return data


@dataclass(frozen=True, slots=True)
class VideoStream:
    """Video stream of a media source.

    Attributes:
        codec: Codec tag as reported by the server (any alias).
        profile: Codec profile, e.g. "Main 10".
        level: Codec level as reported by the server.
        bit_depth: Bits per sample.
        range_type: VideoRangeType, e.g. "SDR", "HDR10", "DOVIWithHDR10".
        width: Frame width in pixels.
        height: Frame height in pixels.
        bit_rate: Stream bitrate in bits per second.
    """

    codec: str = ""
    profile: str | None = None
    level: float | None = None
    bit_depth: int | None = None
    range_type: str | None = None
    width: int | None = None
    height: int | None = None
    bit_rate: int | None = None

    @classmethod
    def from_api(cls, stream: MediaStreamInfo) -> Self:
        """Create from a server MediaStream object."""
        return cls(
            codec=stream.get("Codec") or "",
            profile=stream.get("Profile"),
            level=stream.get("Level"),
            bit_depth=stream.get("BitDepth"),
            range_type=stream.get("VideoRangeType"),
            width=stream.get("Width"),
            height=stream.get("Height"),
            bit_rate=stream.get("BitRate"),
        )


@dataclass(frozen=True, slots=True)
class AudioStream:
    """Audio stream of a media source."""

    codec: str = ""
    channels: int | None = None
    index: int | None = None
    is_default: bool = False

    @classmethod
    def from_api(cls, stream: MediaStreamInfo) -> Self:
        """Create from a server MediaStream object."""
        return cls(
            codec=stream.get("Codec") or "",
            channels=stream.get("Channels"),
            index=stream.get("Index"),
            is_default=bool(stream.get("IsDefault", False)),
        )


@dataclass(frozen=True, slots=True)
class MediaSource:
    """One concrete playable item as described by the media catalog.

    Attributes:
        container: Container tag, possibly comma-separated ("mov,mp4,m4a").
        video_stream: Primary video stream, or None for audio-only items.
        audio_stream: Audio stream that playback will start with.
        audio_streams: Every audio stream, in server order.
        source_id: Server media source id.
        supports_direct_play: Server allows direct play of this source.
        supports_direct_stream: Server allows remuxing this source.
    """

    container: str = ""
    video_stream: VideoStream | None = None
    audio_stream: AudioStream | None = None
    audio_streams: tuple[AudioStream, ...] = field(default_factory=tuple)
    source_id: str | None = None
    supports_direct_play: bool = True
    supports_direct_stream: bool = True

    @classmethod
    def from_api(cls, info: MediaSourceInfo) -> Self:
        """Create from a server MediaSourceInfo object.

        The playback audio stream is the one at DefaultAudioStreamIndex, then
        the first stream flagged IsDefault, then the first audio stream.
        """
        streams = info.get("MediaStreams") or []
        video = next((s for s in streams if s.get("Type") == "Video"), None)
        audio_infos = [s for s in streams if s.get("Type") == "Audio"]
        audio_streams = tuple(AudioStream.from_api(s) for s in audio_infos)

        selected: AudioStream | None = None
        default_index = info.get("DefaultAudioStreamIndex")
        if default_index is not None:
            selected = next((a for a in audio_streams if a.index == default_index), None)
        if selected is None:
            selected = next((a for a in audio_streams if a.is_default), None)
        if selected is None and audio_streams:
            selected = audio_streams[0]

        return cls(
            container=info.get("Container") or "",
            video_stream=VideoStream.from_api(video) if video is not None else None,
            audio_stream=selected,
            audio_streams=audio_streams,
            source_id=info.get("Id"),
            supports_direct_play=bool(info.get("SupportsDirectPlay", True)),
            supports_direct_stream=bool(info.get("SupportsDirectStream", True)),
        )


@dataclass(frozen=True, slots=True)
class PlaybackDecision:
    """Outcome of the playback strategy for one media source."""

    method: PlayMethod
    reason: DecisionReason = DecisionReason.COMPATIBLE
    detail: str | None = None

    @property
    def is_direct_play(self) -> bool:
        """Return True when the source can be played untouched."""
        return self.method is PlayMethod.DIRECT_PLAY
