"""Tests for BalancingEngine."""

import threading

import pytest

from slc_addressing_mcp.core.assignment import AssignmentEngine
from slc_addressing_mcp.core.balancing import BalancingEngine, imbalance
from slc_addressing_mcp.core.circuits import Circuit
from slc_addressing_mcp.core.validation import ValidationEngine
from slc_addressing_mcp.models.config import CircuitLimits
from slc_addressing_mcp.models.devices import Device, LockState
from slc_addressing_mcp.models.options import BalancingOptions

LIMITS = CircuitLimits(max_devices=10, max_address=10, max_current=7.0)


def _circuit(number, devices):
    circuit = Circuit(number, limits=LIMITS)
    for address, device in enumerate(devices, start=1):
        circuit.add_device(device)
        circuit.pool.assign(address, device)
    return circuit


@pytest.fixture
def circuits():
    """A: 9 devices (overloaded), B: 1, C: 2 (both underloaded)."""
    a_devices = [Device(device_id=f"a{i}", level="L1", room="R1") for i in range(1, 9)]
    a_devices.append(Device(device_id="a9", level="L2", room="R9"))
    a = _circuit("A", a_devices)
    b = _circuit("B", [Device(device_id="b1")])
    c = _circuit("C", [Device(device_id="c1"), Device(device_id="c2")])
    return a, b, c


@pytest.fixture
def balancer():
    return BalancingEngine(AssignmentEngine(ValidationEngine()))


class TestImbalance:
    def test_empty(self):
        assert imbalance([]) == 0.0

    def test_equal_load_is_zero(self):
        c1 = _circuit("X", [Device(device_id="x")])
        c2 = _circuit("Y", [Device(device_id="y")])
        assert imbalance([c1, c2]) == 0.0

    def test_population_std_dev(self):
        c1 = _circuit("X", [Device(device_id=f"x{i}") for i in range(5)])
        c2 = _circuit("Y", [Device(device_id="y")])
        assert imbalance([c1, c2]) == pytest.approx(0.2)


class TestBalance:
    def test_moves_smallest_location_group_first(self, balancer, circuits):
        a, b, c = circuits
        result = balancer.balance(circuits)

        assert result.success
        assert result.devices_moved == 1
        assert result.imbalance_after < result.imbalance_before
        move = result.moves[0]
        assert (move.device_id, move.from_circuit, move.to_circuit) == ("a9", "A", "B")

        a9 = b.get_device("a9")
        assert a9 is not None
        assert a9.address == 2
        assert a.device_count == 8
        assert a.pool.is_available(9)

    def test_locked_device_stays(self, balancer, circuits):
        a, b, _ = circuits
        a.get_device("a9").lock_state = LockState.LOCKED

        result = balancer.balance(circuits)

        assert result.moves[0].device_id == "a1"
        assert a.contains("a9")
        assert b.contains("a1")

    def test_no_qualifying_target(self, balancer, circuits):
        a, b, c = circuits
        a.get_device("a9").current_draw = 7.5

        result = balancer.balance(circuits)

        assert result.devices_moved == 0
        assert not result.success
        move = result.moves[0]
        assert move.to_circuit == ""
        assert not move.success
        assert move.message == "No qualifying target circuit"
        assert a.contains("a9")

    def test_failure_restores_state(self, balancer, circuits, monkeypatch):
        a, b, _ = circuits

        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(balancer.assignment, "assign_device", boom)
        result = balancer.balance(circuits)

        assert result.error == "boom"
        assert result.devices_moved == 0
        a9 = a.get_device("a9")
        assert a9 is not None
        assert a9.address == 9
        assert a9.physical_position == 9
        assert b.device_count == 1

    def test_no_improvement_reverts(self, balancer, circuits, monkeypatch):
        a, b, _ = circuits
        monkeypatch.setattr(
            "slc_addressing_mcp.core.balancing.imbalance", lambda circuits: 0.5
        )

        result = balancer.balance(circuits)

        assert not result.success
        assert result.devices_moved == 0
        assert a.get_device("a9").address == 9
        assert b.device_count == 1
        assert b.pool.is_available(2)

    def test_cancelled(self, balancer, circuits):
        event = threading.Event()
        event.set()
        result = balancer.balance(circuits, cancel_event=event)
        assert result.cancelled
        assert result.devices_moved == 0
        assert circuits[0].device_count == 9

    def test_target_from_options(self, balancer, circuits):
        result = balancer.balance(circuits, BalancingOptions(target_utilization=0.95))
        assert result.target_utilization == 0.95
        assert result.moves == []

    def test_default_target(self, balancer, circuits):
        assert balancer.balance(circuits).target_utilization == 0.8

    def test_target_stays_under_limit(self, balancer):
        a = _circuit("A", [Device(device_id=f"a{i}") for i in range(1, 10)])
        b = Circuit("B", limits=LIMITS)

        result = balancer.balance([a, b], BalancingOptions(target_utilization=0.2))

        # A second move would bring B to exactly 0.2
        assert result.devices_moved == 1
        assert b.device_count == 1
        assert [m.success for m in result.moves][:2] == [True, False]
        assert result.moves[1].message == "No qualifying target circuit"
