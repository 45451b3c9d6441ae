"""Tests for device classification."""

import pytest

from slc_addressing_mcp.core.classification import classify_device
from slc_addressing_mcp.models.devices import DeviceCategory


class TestKeywords:
    @pytest.mark.parametrize("family, expected", [
        ("FA Smoke Detector", DeviceCategory.SMOKE_DETECTOR),
        ("Photoelectric Detector", DeviceCategory.SMOKE_DETECTOR),
        ("Heat Detector - ROR", DeviceCategory.HEAT_DETECTOR),
        ("Manual Pull Station", DeviceCategory.MANUAL_STATION),
        ("Monitor Module", DeviceCategory.MODULE),
        ("Fault Isolation Module", DeviceCategory.ISOLATOR),
        ("Wall Strobe", DeviceCategory.STROBE),
        ("Horn Strobe", DeviceCategory.HORN_STROBE),
        ("Ceiling Speaker", DeviceCategory.SPEAKER),
        ("Speaker Strobe", DeviceCategory.SPEAKER_STROBE),
        ("Fire Bell", DeviceCategory.HORN_STROBE),
        ("Exit Sign", DeviceCategory.OTHER),
    ])
    def test_family_names(self, family, expected):
        assert classify_device(family) == expected

    def test_type_name_used(self):
        assert classify_device("Generic Device", "Photo") == DeviceCategory.SMOKE_DETECTOR

    def test_whole_words_only(self):
        # "Bio" must not match the I/O module keyword
        assert classify_device("Biometric Panel") == DeviceCategory.OTHER


class TestFlags:
    def test_isolator_flag_wins(self):
        assert classify_device("Smoke Detector", is_isolator=True) == DeviceCategory.ISOLATOR

    def test_repeater_flag(self):
        assert classify_device("", is_repeater=True) == DeviceCategory.REPEATER

    def test_speaker_and_strobe(self):
        result = classify_device("Wall Device", has_strobe=True, has_speaker=True)
        assert result == DeviceCategory.SPEAKER_STROBE

    def test_flag_fallbacks(self):
        assert classify_device("", has_strobe=True) == DeviceCategory.STROBE
        assert classify_device("", has_speaker=True) == DeviceCategory.SPEAKER
