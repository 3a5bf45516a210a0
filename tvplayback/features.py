"""Feature gate table.

Pure functions mapping a platform tier, plus optional native probe results,
to individual capability flags. A probe value that is explicitly True or
False always wins over the tier default; None leaves the tier default alone.
"""

from __future__ import annotations

import logging
from typing import Final

from .const import (
    ALWAYS_ENABLED_AUDIO_CODECS,
    AUDIO_CODEC_ALIASES,
    BASELINE_VIDEO_CODECS,
    BITRATE_8K,
    BITRATE_FHD,
    BITRATE_UHD_H264,
    BITRATE_UHD_HEVC,
    BITRATE_UHD_OTHER,
    CONTAINER_ALIASES,
    DOVI_FALLBACK_RANGES,
    DOVI_PROFILE8_RANGES,
    H264_LEVEL_FHD,
    H264_LEVEL_UHD,
    HEVC_LEVEL_8K,
    HEVC_LEVEL_FHD,
    HEVC_LEVEL_UHD,
    RANGE_DOVI,
    RANGE_HDR10,
    RANGE_HDR10_PLUS,
    RANGE_HLG,
    RANGE_SDR,
    RESOLUTION_8K,
    RESOLUTION_FHD,
    RESOLUTION_UHD,
    VIDEO_CODEC_ALIASES,
)
from .models import CapabilityFlags, PlatformTier, ProbeResult

_LOGGER = logging.getLogger(__name__)

# Tier thresholds
HEVC_MIN_TIER: Final = PlatformTier.WEBOS_3
AV1_MIN_TIER: Final = PlatformTier.WEBOS_5
VP9_MIN_TIER: Final = PlatformTier.WEBOS_4
HDR_MIN_TIER: Final = PlatformTier.WEBOS_4
DOLBY_VISION_P8_MIN_TIER: Final = PlatformTier.WEBOS_4
OPUS_MIN_TIER: Final = PlatformTier.WEBOS_4
MKV_MIN_TIER: Final = PlatformTier.WEBOS_4
WEBM_MIN_TIER: Final = PlatformTier.WEBOS_5
HLS_FMP4_MIN_TIER: Final = PlatformTier.WEBOS_4
SECONDARY_AUDIO_MIN_TIER: Final = PlatformTier.WEBOS_4
UHD_H264_MIN_TIER: Final = PlatformTier.WEBOS_4

# DTS decode was dropped for tiers 5 through 22 and restored from 23
DTS_LAST_TIER_BEFORE_GAP: Final = PlatformTier.WEBOS_4
DTS_FIRST_TIER_AFTER_GAP: Final = PlatformTier.WEBOS_23
DTS_EDID_MIN_TIER: Final = PlatformTier.WEBOS_23

RANGE_FAMILY_SDR: Final = "sdr"
RANGE_FAMILY_HDR10: Final = "hdr10"
RANGE_FAMILY_HLG: Final = "hlg"
RANGE_FAMILY_DOLBY_VISION: Final = "dolby_vision"


def _prefer_probe(probe_value: bool | None, default: bool) -> bool:
    if probe_value is None:
        return default
    return probe_value


# =============================================================================
# Individual rules
# =============================================================================


def supports_hevc(tier: PlatformTier) -> bool:
    """Return True if the tier decodes HEVC."""
    return tier >= HEVC_MIN_TIER


def supports_av1(tier: PlatformTier) -> bool:
    """Return True if the tier decodes AV1."""
    return tier >= AV1_MIN_TIER


def supports_vp9(tier: PlatformTier) -> bool:
    """Return True if the tier decodes VP9."""
    return tier >= VP9_MIN_TIER


def supports_hdr10(tier: PlatformTier) -> bool:
    """Return True if the tier decodes HDR10/HLG through HEVC Main10."""
    return tier >= HDR_MIN_TIER


def supports_dts(tier: PlatformTier) -> bool:
    """Return True if the tier decodes DTS at all.

    Tiers 5 through 22 (inclusive) lost DTS decode in hardware.
    """
    return tier <= DTS_LAST_TIER_BEFORE_GAP or tier >= DTS_FIRST_TIER_AFTER_GAP


def supports_opus(tier: PlatformTier) -> bool:
    """Return True if the tier decodes Opus."""
    return tier >= OPUS_MIN_TIER


def supports_mkv(tier: PlatformTier) -> bool:
    """Return True if the native pipeline demuxes Matroska."""
    return tier >= MKV_MIN_TIER


def supports_webm(tier: PlatformTier) -> bool:
    """Return True if the native pipeline demuxes WebM."""
    return tier >= WEBM_MIN_TIER


def supports_native_hls_fmp4(tier: PlatformTier) -> bool:
    """Return True if HLS with fragmented-MP4 segments plays."""
    return tier >= HLS_FMP4_MIN_TIER


def supports_secondary_audio(tier: PlatformTier) -> bool:
    """Return True if the player can switch to a secondary audio track."""
    return tier >= SECONDARY_AUDIO_MIN_TIER


def supports_dolby_vision_profile8(
    tier: PlatformTier,
    dolby_vision: bool,
    probe_value: bool | None = None,
) -> bool:
    """Return True if Dolby Vision profile 8 content is decodable.

    Requires Dolby Vision itself; a decode check reported by the probe
    replaces the tier default.
    """
    if not dolby_vision:
        return False
    return _prefer_probe(probe_value, tier >= DOLBY_VISION_P8_MIN_TIER)


def dts_container_support(tier: PlatformTier, edid_has_dts: bool | None = None) -> frozenset[str]:
    """Return the containers in which DTS may be passed to the decoder.

    Independent of ``supports_dts``: consumers require both. From tier 23 the
    EDID descriptor is authoritative and an unknown EDID means no DTS.

    Args:
        tier: Platform tier.
        edid_has_dts: Whether the EDID audio descriptor lists DTS.

    Returns:
        Canonical container names.
    """
    if tier >= DTS_EDID_MIN_TIER:
        if edid_has_dts:
            return frozenset({"mkv", "mp4", "ts"})
        return frozenset()
    if tier > DTS_LAST_TIER_BEFORE_GAP:
        return frozenset({"mkv"})
    return frozenset({"mkv", "avi"})


def max_h264_level(tier: PlatformTier, uhd: bool, uhd_8k: bool) -> int:
    """Return the H.264 level ceiling (level x10)."""
    if tier >= UHD_H264_MIN_TIER and (uhd or uhd_8k):
        return H264_LEVEL_UHD
    return H264_LEVEL_FHD


def max_hevc_level(uhd: bool, uhd_8k: bool) -> int:
    """Return the HEVC level ceiling (level x30) for the panel resolution."""
    if uhd_8k:
        return HEVC_LEVEL_8K
    if uhd:
        return HEVC_LEVEL_UHD
    return HEVC_LEVEL_FHD


def max_video_bitrate(flags: CapabilityFlags, codec: str) -> int:
    """Return the decoder bitrate ceiling in bits per second.

    Args:
        flags: Resolved capabilities (panel resolution).
        codec: Canonical video codec.
    """
    if flags.uhd_8k:
        return BITRATE_8K
    if flags.uhd:
        if codec in ("hevc", "dvhe"):
            return BITRATE_UHD_HEVC
        if codec == "h264":
            return BITRATE_UHD_H264
        return BITRATE_UHD_OTHER
    return BITRATE_FHD


def max_video_resolution(flags: CapabilityFlags, codec: str) -> tuple[int, int]:
    """Return the (width, height) decode ceiling for a canonical codec."""
    if codec == "h264":
        if flags.max_h264_level >= H264_LEVEL_UHD:
            return RESOLUTION_UHD
        return RESOLUTION_FHD
    if flags.uhd_8k:
        return RESOLUTION_8K
    if flags.uhd:
        return RESOLUTION_UHD
    return RESOLUTION_FHD


# =============================================================================
# Capability resolution
# =============================================================================


def resolve_capabilities(
    tier: PlatformTier,
    probe: ProbeResult | None = None,
) -> CapabilityFlags:
    """Resolve every capability flag for a tier.

    Deterministic and free of I/O: the same tier and probe always produce an
    equal CapabilityFlags.

    Args:
        tier: Platform tier.
        probe: Optional native probe result whose explicit values override
            the tier defaults.

    Returns:
        A new immutable CapabilityFlags.
    """
    probe = probe or ProbeResult()

    hdr10 = _prefer_probe(probe.hdr10, supports_hdr10(tier))
    dolby_vision = _prefer_probe(probe.dolby_vision, False)
    uhd_8k = _prefer_probe(probe.uhd_8k, False)
    uhd = _prefer_probe(probe.uhd, False) or uhd_8k

    flags = CapabilityFlags(
        tier=tier,
        h264=True,
        hevc=_prefer_probe(probe.hevc, supports_hevc(tier)),
        av1=_prefer_probe(probe.av1, supports_av1(tier)),
        vp9=_prefer_probe(probe.vp9, supports_vp9(tier)),
        hdr10=hdr10,
        # HDR10+ dynamic metadata is ignored by HDR10 decoders, not rejected
        hdr10_plus=hdr10,
        hlg=hdr10,
        dolby_vision=dolby_vision,
        dolby_vision_profile8=supports_dolby_vision_profile8(
            tier, dolby_vision, probe.dolby_vision_profile8
        ),
        aac=True,
        ac3=True,
        eac3=True,
        dts=supports_dts(tier),
        opus=supports_opus(tier),
        dolby_atmos=_prefer_probe(probe.dolby_atmos, False),
        # TrueHD is passthrough-only; never decoded on the device
        truehd=False,
        mp3=True,
        flac=True,
        vorbis=True,
        pcm=True,
        mkv=supports_mkv(tier),
        webm=supports_webm(tier),
        ts=True,
        mp4=True,
        avi=True,
        asf=True,
        native_hls=True,
        native_hls_fmp4=supports_native_hls_fmp4(tier),
        secondary_audio=supports_secondary_audio(tier),
        uhd=uhd,
        uhd_8k=uhd_8k,
        max_h264_level=max_h264_level(tier, uhd, uhd_8k),
        max_hevc_level=max_hevc_level(uhd, uhd_8k),
        dts_containers=dts_container_support(tier, probe.edid_has_dts),
    )
    _LOGGER.debug(
        "Resolved capabilities for tier %s (probe=%s): hevc=%s av1=%s hdr10=%s dv=%s dts=%s",
        int(tier),
        not probe.is_empty,
        flags.hevc,
        flags.av1,
        flags.hdr10,
        flags.dolby_vision,
        flags.dts,
    )
    return flags


# =============================================================================
# HDR range composite
# =============================================================================


def build_video_range_types(flags: CapabilityFlags) -> tuple[str, ...]:
    """Build the ordered set of acceptable VideoRangeType values.

    Consumers match on membership, so the order of construction is part of
    the contract: SDR, then HDR10 variants, then HLG, then Dolby Vision.
    """
    ranges = [RANGE_SDR]
    if flags.hdr10:
        ranges.append(RANGE_HDR10)
        ranges.append(RANGE_HDR10_PLUS)
    if flags.hdr10 and flags.hlg:
        ranges.append(RANGE_HLG)
    if flags.dolby_vision:
        ranges.append(RANGE_DOVI)
        if flags.dolby_vision_profile8:
            ranges.extend(DOVI_PROFILE8_RANGES)
        ranges.extend(DOVI_FALLBACK_RANGES)
    return tuple(ranges)


def without_dolby_vision(ranges: tuple[str, ...]) -> tuple[str, ...]:
    """Drop every Dolby Vision range from a range composite."""
    return tuple(value for value in ranges if not value.startswith(RANGE_DOVI))


def join_values(values: tuple[str, ...] | list[str]) -> str:
    """Render values as a pipe-delimited condition value."""
    return "|".join(values)


def range_family(range_type: str | None) -> str:
    """Classify a VideoRangeType into a family.

    Unknown non-SDR ranges are treated as HDR10-family so they still require
    HDR support.
    """
    if not range_type:
        return RANGE_FAMILY_SDR
    value = range_type.strip().upper()
    if value == "SDR":
        return RANGE_FAMILY_SDR
    if value.startswith("DOVI") or "DOLBY" in value or value == "DV":
        return RANGE_FAMILY_DOLBY_VISION
    if value.startswith("HLG"):
        return RANGE_FAMILY_HLG
    return RANGE_FAMILY_HDR10


# =============================================================================
# Canonical vocabulary
# =============================================================================


def canonical_video_codec(codec: str | None) -> str:
    """Map a video codec tag to its canonical name (lower case)."""
    value = (codec or "").strip().lower()
    return VIDEO_CODEC_ALIASES.get(value, value)


def canonical_audio_codec(codec: str | None) -> str:
    """Map an audio codec tag to its canonical name (lower case)."""
    value = (codec or "").strip().lower()
    return AUDIO_CODEC_ALIASES.get(value, value)


def canonical_container(container: str | None) -> str:
    """Map a single container tag to its canonical family name."""
    value = (container or "").strip().lower()
    return CONTAINER_ALIASES.get(value, value)


def container_parts(container: str | None) -> list[str]:
    """Split a possibly comma-separated container into canonical parts."""
    if not container:
        return []
    return [canonical_container(part) for part in container.split(",") if part.strip()]


def enabled_video_codecs(flags: CapabilityFlags) -> frozenset[str]:
    """Return the canonical video codecs the device decodes."""
    codecs = set(BASELINE_VIDEO_CODECS)
    if flags.h264:
        codecs.add("h264")
    if flags.hevc:
        codecs.add("hevc")
        if flags.dolby_vision:
            codecs.add("dvhe")
    if flags.av1:
        codecs.add("av1")
    if flags.vp9:
        codecs.add("vp9")
    return frozenset(codecs)


def enabled_containers(flags: CapabilityFlags) -> frozenset[str]:
    """Return the canonical containers the native pipeline demuxes."""
    containers: set[str] = set()
    for name in ("mp4", "ts", "avi", "mkv", "webm", "asf"):
        if getattr(flags, name):
            containers.add(name)
    # Program streams go through the transport-stream demuxer
    if flags.ts:
        containers.add("mpg")
    if flags.native_hls:
        containers.add("hls")
    return frozenset(containers)


def audio_codec_enabled(codec: str | None, flags: CapabilityFlags) -> bool:
    """Return True if an audio codec passes the general codec gate.

    An empty codec passes: the server did not report one.
    """
    canonical = canonical_audio_codec(codec)
    if not canonical:
        return True
    if canonical in ALWAYS_ENABLED_AUDIO_CODECS:
        return True
    if canonical == "aac":
        return flags.aac
    if canonical == "ac3":
        return flags.ac3
    if canonical == "eac3":
        return flags.eac3
    if canonical == "dts":
        return flags.dts
    if canonical == "opus":
        return flags.opus
    return False


def audio_codec_allowed_in_container(
    codec: str | None,
    container: str | None,
    flags: CapabilityFlags,
) -> bool:
    """Return True unless a container-specific restriction rejects the codec.

    DTS is only passed through inside the containers of ``dts_containers``.
    Without a container, DTS is allowed if any container allows it.
    """
    if canonical_audio_codec(codec) != "dts":
        return True
    parts = container_parts(container)
    if not parts:
        return bool(flags.dts_containers)
    return any(part in flags.dts_containers for part in parts)
