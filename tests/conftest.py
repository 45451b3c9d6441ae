"""Shared test fixtures."""

from __future__ import annotations

import pytest

from slc_addressing_mcp.core.assignment import AssignmentEngine
from slc_addressing_mcp.core.circuits import Circuit
from slc_addressing_mcp.core.session import AddressingSession
from slc_addressing_mcp.core.validation import ValidationEngine
from slc_addressing_mcp.models.config import AddressingConfig, CircuitLimits
from slc_addressing_mcp.models.devices import Device


@pytest.fixture
def make_device():
    """Factory for devices: ``make_device("1", current_draw=0.5)``."""

    def _make(device_id: str, **kwargs) -> Device:
        return Device(device_id=device_id, **kwargs)

    return _make


@pytest.fixture
def small_limits() -> CircuitLimits:
    """maxAddress=10 / maxCurrent=3.0 circuit limits."""
    return CircuitLimits(max_devices=25, max_address=10, max_current=3.0)


@pytest.fixture
def circuit(small_limits) -> Circuit:
    return Circuit("P1-C1", panel_id="P1", limits=small_limits)


@pytest.fixture
def validator() -> ValidationEngine:
    return ValidationEngine()


@pytest.fixture
def engine(validator) -> AssignmentEngine:
    return AssignmentEngine(validator)


@pytest.fixture
def host_snapshots() -> list[dict]:
    """Two panels, three circuits, one unassigned device."""
    return [
        {"element_id": "101", "level": "L1", "room": "R1", "family_name": "FA Smoke Detector",
         "current_draw": 0.05, "circuit_number": "P1-C1"},
        {"element_id": "102", "level": "L1", "room": "R1", "family_name": "FA Smoke Detector",
         "current_draw": 0.05, "circuit_number": "P1-C1"},
        {"element_id": "103", "level": "L1", "room": "R2", "family_name": "Heat Detector",
         "current_draw": 0.05, "circuit_number": "P1-C1"},
        {"element_id": "104", "level": "L2", "room": "R3", "family_name": "Manual Pull Station",
         "current_draw": 0.05, "circuit_number": "P1-C1"},
        {"element_id": "201", "level": "L2", "room": "R4", "device_type": "module",
         "current_draw": 0.1, "circuit_number": "P1-C2", "address": "5", "lock_state": "locked"},
        {"element_id": "301", "level": "L3", "room": "R5", "has_strobe": True,
         "current_draw": 0.2, "circuit_number": "P2-C1", "address": 1},
        {"element_id": "401", "level": "L3", "room": "R6", "family_name": "Speaker Strobe",
         "current_draw": 0.3},
    ]


@pytest.fixture
def session(host_snapshots) -> AddressingSession:
    s = AddressingSession(AddressingConfig())
    s.initialize_panels(host_snapshots)
    return s
