"""Device classification from host family/type descriptors."""

from __future__ import annotations

import re

from slc_addressing_mcp.models.devices import DeviceCategory

# Checked in order; the first table entry with a matching keyword wins.
# Keywords are whole words, or space-separated phrases of whole words.
_KEYWORDS: list[tuple[DeviceCategory, tuple[str, ...]]] = [
    (DeviceCategory.ISOLATOR, ("ISOLATOR", "SCI", "FAULT ISOLATION", "SHORT CIRCUIT")),
    (DeviceCategory.REPEATER, ("REPEATER", "TRANSLATOR", "WIRELESS", "GATEWAY")),
    (DeviceCategory.SPEAKER_STROBE, ("SPEAKER STROBE",)),
    (DeviceCategory.HORN_STROBE, ("HORN STROBE",)),
    (DeviceCategory.SPEAKER, ("SPEAKER", "VOICE", "EVACUATION")),
    (DeviceCategory.STROBE, ("STROBE", "BEACON", "VISUAL")),
    (DeviceCategory.HORN_STROBE, ("HORN", "BELL", "CHIME")),
    (DeviceCategory.SMOKE_DETECTOR, (
        "SMOKE", "SMK", "PHOTOELECTRIC", "PHOTO", "IONIZATION", "BEAM",
        "ASPIRATING", "VESDA", "DUCT",
    )),
    (DeviceCategory.HEAT_DETECTOR, ("HEAT", "THERMAL", "ROR", "FIXED TEMP", "TEMPERATURE")),
    (DeviceCategory.MANUAL_STATION, ("PULL", "MANUAL", "STATION", "MPS", "CALL POINT", "BREAK GLASS")),
    (DeviceCategory.MODULE, (
        "MODULE", "MONITOR", "CONTROL", "RELAY", "INPUT", "OUTPUT", "IO", "I O",
    )),
]


def _words(text: str) -> str:
    """Upper-cased words joined by single spaces, padded for phrase lookup."""
    return " " + " ".join(re.findall(r"[A-Z0-9]+", text.upper())) + " "


def classify_device(
    family_name: str,
    type_name: str = "",
    has_strobe: bool = False,
    has_speaker: bool = False,
    is_isolator: bool = False,
    is_repeater: bool = False,
) -> DeviceCategory:
    """Map host descriptors and feature flags to a device category.

    Feature flags take precedence over names.

    Examples:
        >>> classify_device("FA Smoke Detector", "Photo")
        <DeviceCategory.SMOKE_DETECTOR: 'smoke_detector'>
        >>> classify_device("Wall Device", "", has_strobe=True, has_speaker=True)
        <DeviceCategory.SPEAKER_STROBE: 'speaker_strobe'>
    """
    if is_isolator:
        return DeviceCategory.ISOLATOR
    if is_repeater:
        return DeviceCategory.REPEATER
    if has_speaker and has_strobe:
        return DeviceCategory.SPEAKER_STROBE

    text = _words(f"{family_name} {type_name}")
    for category, keywords in _KEYWORDS:
        if any(f" {keyword} " in text for keyword in keywords):
            return category

    if has_speaker:
        return DeviceCategory.SPEAKER
    if has_strobe:
        return DeviceCategory.STROBE
    return DeviceCategory.OTHER
