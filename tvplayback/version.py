"""Platform version resolution.

Maps the engine version found in a user-agent (or the native SDK version)
to a discrete PlatformTier. Every input produces a tier; unknown devices get
the conservative default rather than an error.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .const import (
    CHROMIUM_TIER_TABLE,
    SDK_MARKETING_OFFSET,
    SDK_MARKETING_SWITCH,
    UA_LEGACY_MARKERS,
    UA_TV_MARKERS,
    WEBKIT_TIER_TABLE,
)
from .models import PlatformTier

_LOGGER = logging.getLogger(__name__)

_LEADING_VERSION_RE = re.compile(r"^\s*(?:[a-z]+/)?(\d+)", re.IGNORECASE)
_CHROME_RE = re.compile(r"chrome/(\d+)")
_SAFARI_RE = re.compile(r"safari/(\d+)")


@dataclass(frozen=True, slots=True)
class EngineSignal:
    """Version tokens extracted from a user-agent string.

    Attributes:
        engine_version: Chromium version token, if any.
        secondary_version: WebKit/Safari version token, if any.
        legacy: A classic TV browser whose version says nothing about capability.
        is_tv: The user-agent identifies the TV platform.
    """

    engine_version: str | None = None
    secondary_version: str | None = None
    legacy: bool = False
    is_tv: bool = False


def extract_leading_version(value: str | None) -> int | None:
    """Return the leading integer of a version token.

    Accepts bare versions ("87.0.4280.88") and product tokens ("Chrome/87.0").

    Args:
        value: The version token.

    Returns:
        The major version, or None if the token does not start with one.
    """
    if not value:
        return None
    match = _LEADING_VERSION_RE.match(value)
    if match is None:
        return None
    return int(match.group(1))


def _lookup(version: int | None, table: tuple[tuple[int, int], ...]) -> PlatformTier | None:
    if version is None:
        return None
    for threshold, tier in table:
        if version >= threshold:
            return PlatformTier(tier)
    return None


def resolve_platform_tier(
    engine_version: str | None,
    secondary_version: str | None = None,
    *,
    legacy: bool = False,
) -> PlatformTier:
    """Resolve a platform tier from engine version signals.

    Args:
        engine_version: Primary (Chromium) version token.
        secondary_version: Rendering-engine (WebKit) version token, used when
            the primary signal is absent or below every known threshold.
        legacy: The signal came from a classic TV browser.

    Returns:
        The platform tier. Never raises.
    """
    if legacy:
        _LOGGER.debug("Legacy TV browser signal, using tier %s", int(PlatformTier.WEBOS_1))
        return PlatformTier.WEBOS_1

    tier = _lookup(extract_leading_version(engine_version), CHROMIUM_TIER_TABLE)
    if tier is not None:
        return tier

    tier = _lookup(extract_leading_version(secondary_version), WEBKIT_TIER_TABLE)
    if tier is not None:
        return tier

    _LOGGER.debug(
        "Unable to resolve platform tier from %r / %r, using default %s",
        engine_version,
        secondary_version,
        int(PlatformTier.DEFAULT),
    )
    return PlatformTier.DEFAULT


def parse_user_agent(user_agent: str | None) -> EngineSignal:
    """Extract version signals from a user-agent string."""
    if not user_agent:
        return EngineSignal()

    normalized = user_agent.lower()
    chrome = _CHROME_RE.search(normalized)
    safari = _SAFARI_RE.search(normalized)
    is_webos = any(marker in normalized for marker in UA_TV_MARKERS)
    # Early webOS browsers also advertise NetCast compatibility
    legacy = not is_webos and any(marker in normalized for marker in UA_LEGACY_MARKERS)
    return EngineSignal(
        engine_version=chrome.group(1) if chrome else None,
        secondary_version=safari.group(1) if safari else None,
        legacy=legacy,
        is_tv=is_webos or legacy,
    )


def tier_from_user_agent(user_agent: str | None) -> PlatformTier:
    """Resolve the platform tier for a user-agent string."""
    signal = parse_user_agent(user_agent)
    return resolve_platform_tier(
        signal.engine_version,
        signal.secondary_version,
        legacy=signal.legacy,
    )


def tier_from_sdk_version(sdk_version: str | None) -> PlatformTier | None:
    """Resolve the platform tier from a native SDK version.

    The SDK reports sequential internal majors; from 7 on, tiers follow the
    year-based marketing numbers (internal 7 is tier 22).

    Args:
        sdk_version: SDK version string such as "4.9.0" or "8.2.0".

    Returns:
        The platform tier, or None if the version cannot be parsed.
    """
    major = extract_leading_version(sdk_version)
    if major is None or major < 1:
        return None
    if major >= SDK_MARKETING_SWITCH:
        major += SDK_MARKETING_OFFSET
    return PlatformTier.coerce(major)
