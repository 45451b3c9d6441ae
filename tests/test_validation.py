"""Tests for ValidationEngine."""

import pytest

from slc_addressing_mcp.core.circuits import Circuit
from slc_addressing_mcp.core.validation import ValidationEngine
from slc_addressing_mcp.models.config import CircuitLimits
from slc_addressing_mcp.models.devices import LockState
from slc_addressing_mcp.models.results import ValidationSeverity


def _codes(result):
    return [i.code for i in result.issues]


def _populate(circuit, make_device, count, draw=0.0):
    devices = []
    for i in range(1, count + 1):
        d = make_device(f"m{i}", current_draw=draw)
        circuit.add_device(d)
        devices.append(d)
    return devices


class TestAddressRules:
    @pytest.mark.parametrize("address", [0, 11])
    def test_out_of_range(self, validator, circuit, make_device, address):
        result = validator.validate_address(address, make_device("d"), circuit)
        assert not result.is_valid
        assert _codes(result) == ["ADDR_001"]
        assert result.severity == ValidationSeverity.ERROR
        assert result.suggested_alternatives == []

    def test_duplicate_suggests_nearby(self, validator, circuit, make_device):
        occupant = make_device("a")
        circuit.add_device(occupant)
        circuit.pool.assign(5, occupant)

        result = validator.validate_address(5, make_device("b"), circuit)

        assert not result.is_valid
        assert _codes(result) == ["ADDR_002"]
        assert result.suggested_alternatives == [6, 4, 7, 3, 8]

    def test_locked_occupant_is_refused(self, validator, circuit, make_device):
        d1 = make_device("D1", lock_state=LockState.LOCKED)
        circuit.add_device(d1)
        circuit.pool.assign(5, d1)
        d2 = make_device("D2", lock_state=LockState.LOCKED)

        result = validator.validate_address(5, d2, circuit)

        assert not result.is_valid
        assert result.errors[0].code == "ADDR_003"
        assert result.errors[0].severity == ValidationSeverity.ERROR
        assert 5 not in result.suggested_alternatives
        assert result.suggested_alternatives

    def test_own_address_is_not_a_conflict(self, validator, circuit, make_device):
        d = make_device("a")
        circuit.add_device(d)
        circuit.pool.assign(1, d)
        result = validator.validate_address(1, d, circuit)
        assert result.is_valid
        assert result.issues == []
        assert result.severity == ValidationSeverity.VALID

    def test_position_hint(self, validator, circuit, make_device):
        _populate(circuit, make_device, 1)
        d = make_device("x")
        circuit.add_device(d)  # position 2

        result = validator.validate_address(7, d, circuit)

        assert result.is_valid
        assert "OPT_001" in _codes(result)
        assert 2 in result.suggested_alternatives
        assert result.severity == ValidationSeverity.WARNING

    def test_no_hint_when_natural_address_taken(self, validator, circuit, make_device):
        first = _populate(circuit, make_device, 1)[0]
        d = make_device("x")
        circuit.add_device(d)
        circuit.pool.assign(2, first)
        result = validator.validate_address(7, d, circuit)
        assert "OPT_001" not in _codes(result)


class TestCapacityRules:
    def test_above_safe_threshold_warns(self, make_device, validator):
        c = Circuit("C", limits=CircuitLimits(max_devices=10, max_address=50, max_current=7.0))
        _populate(c, make_device, 8)
        result = validator.validate_address(20, make_device("new"), c)
        assert result.is_valid
        assert "CAP_003" in _codes(result)

    def test_above_critical_is_advisory(self, make_device, validator):
        c = Circuit("C", limits=CircuitLimits(max_devices=4, max_address=50, max_current=7.0))
        _populate(c, make_device, 3)
        result = validator.validate_address(20, make_device("new"), c)
        assert result.is_valid
        assert "CAP_002" in _codes(result)
        assert result.severity == ValidationSeverity.CRITICAL

    def test_device_ceiling_blocks(self, make_device, validator):
        c = Circuit("C", limits=CircuitLimits(max_devices=4, max_address=50, max_current=7.0))
        _populate(c, make_device, 4)
        result = validator.validate_address(20, make_device("new"), c)
        assert not result.is_valid
        assert "CAP_001" in _codes(result)

    def test_engine_threshold_overrides_circuit(self, make_device):
        c = Circuit("C", limits=CircuitLimits(max_devices=10, max_address=50, max_current=7.0))
        _populate(c, make_device, 5)
        strict = ValidationEngine(safe_capacity_threshold=0.5)
        result = strict.validate_address(20, make_device("new"), c)
        assert "CAP_003" in _codes(result)


class TestElectricalRules:
    def test_over_current_scenario(self, validator, circuit, make_device):
        _populate(circuit, make_device, 3, draw=0.5)
        result = validator.validate_electrical(make_device("d4", current_draw=2.0), circuit)
        assert not result.is_valid
        assert result.errors[0].code == "ELEC_001"
        assert result.errors[0].entity_id == "d4"

    def test_near_limit_warns(self, validator, circuit, make_device):
        _populate(circuit, make_device, 3, draw=0.5)
        result = validator.validate_electrical(make_device("d4", current_draw=1.3), circuit)
        assert result.is_valid
        assert _codes(result) == ["ELEC_002"]

    def test_member_draw_counted_once(self, validator, circuit, make_device):
        members = _populate(circuit, make_device, 3, draw=1.0)
        result = validator.validate_electrical(members[0], circuit)
        assert result.is_valid
        assert _codes(result) == ["ELEC_002"]

    def test_validate_address_includes_electrical(self, validator, circuit, make_device):
        _populate(circuit, make_device, 3, draw=0.5)
        result = validator.validate_address(9, make_device("d4", current_draw=2.0), circuit)
        assert not result.is_valid
        assert "ELEC_001" in _codes(result)


class TestCircuitValidation:
    def test_clean_circuit(self, validator, circuit, make_device):
        for i, d in enumerate(_populate(circuit, make_device, 3, draw=0.1), start=1):
            circuit.pool.assign(i, d)
        result = validator.validate_circuit(circuit)
        assert result.is_valid
        assert result.issues == []

    def test_over_current_circuit_is_invalid(self, validator, circuit, make_device):
        _populate(circuit, make_device, 2, draw=2.0)
        result = validator.validate_circuit(circuit)
        assert not result.is_valid
        issue = next(i for i in result.issues if i.code == "ELEC_003")
        assert issue.severity == ValidationSeverity.ERROR
        assert issue.entity_id == "P1-C1"
        assert issue.entity_type == "circuit"

    def test_over_device_count(self, validator, make_device):
        c = Circuit("C", limits=CircuitLimits(max_devices=2, max_address=10, max_current=7.0))
        _populate(c, make_device, 3)
        result = validator.validate_circuit(c)
        assert not result.is_valid
        assert "CAP_001" in _codes(result)
        assert "CAP_002" in _codes(result)

    def test_duplicate_scan(self, validator, circuit, make_device):
        a, b = _populate(circuit, make_device, 2)
        # Bypasses the pool on purpose
        a.address = 3
        b.address = 3
        result = validator.validate_circuit(circuit)
        assert not result.is_valid
        assert "ADDR_004" in _codes(result)

    def test_out_of_range_device_address(self, validator, circuit, make_device):
        (a,) = _populate(circuit, make_device, 1)
        a.address = 42
        result = validator.validate_circuit(circuit)
        assert "ADDR_001" in _codes(result)
