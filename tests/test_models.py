"""Tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from slc_addressing_mcp.models import (
    AddressingConfig,
    AssignedOutcome,
    AutoAssignmentResult,
    Device,
    DeviceSnapshot,
    ExportRecord,
    FailedOutcome,
    LockState,
    PanelValidationResult,
    SkippedOutcome,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)


def _issue(code="X", severity=ValidationSeverity.WARNING, blocking=False):
    return ValidationIssue(code=code, message=code, severity=severity, blocking=blocking)


class TestDeviceSnapshot:
    def test_coerces_host_values(self):
        snap = DeviceSnapshot(element_id=1001, address=" 7 ", circuit_number=3)
        assert snap.element_id == "1001"
        assert snap.address == 7
        assert snap.circuit_number == "3"

    def test_blank_values_are_none(self):
        snap = DeviceSnapshot(element_id="1", address="", circuit_number="  ")
        assert snap.address is None
        assert snap.circuit_number is None

    def test_rejects_zero_address(self):
        with pytest.raises(ValidationError):
            DeviceSnapshot(element_id="1", address=0)

    def test_rejects_empty_id(self):
        with pytest.raises(ValidationError):
            DeviceSnapshot(element_id="  ")

    def test_lock_state_value(self):
        assert DeviceSnapshot(element_id="1", lock_state="manual").lock_state == LockState.MANUAL


class TestDevice:
    def test_from_snapshot_is_unplaced(self):
        snap = DeviceSnapshot(
            element_id="1", has_speaker=True, circuit_number="P1-C1", address=4,
            type_name="Wall Speaker",
        )
        device = Device.from_snapshot(snap)
        assert device.is_notification
        assert device.family_name == "Wall Speaker"
        assert device.circuit_number is None
        assert device.address is None
        assert not device.is_addressed

    def test_lock_properties(self):
        device = Device(device_id="1", lock_state=LockState.MANUAL)
        assert not device.is_locked
        device.lock_state = LockState.LOCKED
        assert device.is_locked

    def test_location_key(self):
        assert Device(device_id="1", level="L1", room="R1").location_key == ("L1", "R1")


class TestValidationResult:
    def test_empty_is_valid(self):
        result = ValidationResult()
        assert result.is_valid
        assert result.severity == ValidationSeverity.VALID
        assert result.message == ""

    def test_highest_severity(self):
        result = ValidationResult()
        result.add(_issue("W"))
        result.add(_issue("C", ValidationSeverity.CRITICAL))
        assert result.severity == ValidationSeverity.CRITICAL
        assert result.is_valid

    def test_blocking_issue(self):
        result = ValidationResult()
        result.add(_issue("E1", ValidationSeverity.ERROR, blocking=True))
        result.add(_issue("E2", ValidationSeverity.ERROR, blocking=True))
        assert not result.is_valid
        assert result.message == "E1; E2"

    def test_merge_dedupes_suggestions(self):
        a = ValidationResult(suggested_alternatives=[1, 2])
        b = ValidationResult(suggested_alternatives=[2, 3], issues=[_issue()])
        a.merge(b)
        assert a.suggested_alternatives == [1, 2, 3]
        assert len(a.issues) == 1

    def test_summary(self):
        summary = ValidationResult(issues=[_issue()]).summary()
        assert summary["is_valid"] is True
        assert summary["severity"] == "warning"


class TestResults:
    def test_auto_assign_counts(self):
        result = AutoAssignmentResult()
        result.record(AssignedOutcome(device_id="1", circuit_id="C", address=1))
        result.record(SkippedOutcome(device_id="2", reason="locked"))
        result.record(FailedOutcome(device_id="3", code="ADDR_005", message="full"))
        assert (result.devices_processed, result.devices_assigned) == (3, 1)
        assert (result.devices_skipped, result.devices_failed) == (1, 1)
        assert not result.success

    def test_outcomes_discriminated_on_load(self):
        result = AutoAssignmentResult.model_validate({
            "outcomes": [{"status": "skipped", "device_id": "1", "reason": "x"}]
        })
        assert isinstance(result.outcomes[0], SkippedOutcome)

    def test_panel_validation_counts(self):
        result = PanelValidationResult()
        result.add(_issue("E", ValidationSeverity.ERROR, blocking=True))
        result.add(_issue("W"))
        result.add(_issue("I", ValidationSeverity.VALID))
        assert not result.is_valid
        assert (result.error_count, result.warning_count, result.info_count) == (1, 1, 1)


class TestExportRecord:
    def test_row_round_trip(self):
        record = ExportRecord(panel_id="P1", circuit_number="P1-C1", device_id="1", address=3)
        assert ExportRecord.from_row(record.to_row()) == record

    def test_short_row(self):
        with pytest.raises(ValueError):
            ExportRecord.from_row(["P1", "P1-C1"])


class TestConfig:
    def test_defaults(self):
        config = AddressingConfig()
        assert config.circuit.max_devices == 25
        assert config.circuit.max_address == 250
        assert config.circuit.max_current == 7.0
        assert config.default_target_utilization == pytest.approx(0.8)

    def test_rejects_invalid_limits(self):
        with pytest.raises(ValidationError):
            AddressingConfig(circuit={"max_devices": 0})
