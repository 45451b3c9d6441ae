"""Tests for ordering strategies."""

import pytest

from slc_addressing_mcp.core.strategies import (
    ByDeviceTypeStrategy,
    ByFloorStrategy,
    ByZoneStrategy,
    OptimizedStrategy,
    SequentialStrategy,
    create_default_registry,
)
from slc_addressing_mcp.models.options import AssignmentStrategy


def _ids(devices):
    return [d.device_id for d in devices]


class TestSequential:
    def test_numeric_ids_sort_naturally(self, make_device):
        devices = [make_device(i) for i in ("10", "2", "1")]
        assert _ids(SequentialStrategy().order(devices)) == ["1", "2", "10"]

    def test_numeric_before_text(self, make_device):
        devices = [make_device(i) for i in ("B", "10", "A", "2")]
        assert _ids(SequentialStrategy().order(devices)) == ["2", "10", "A", "B"]

    def test_input_not_modified(self, make_device):
        devices = [make_device(i) for i in ("3", "1")]
        SequentialStrategy().order(devices)
        assert _ids(devices) == ["3", "1"]


class TestGrouped:
    def test_by_floor(self, make_device):
        devices = [
            make_device("3", level="L2"),
            make_device("2", level="L1"),
            make_device("1", level="L2"),
        ]
        assert _ids(ByFloorStrategy().order(devices)) == ["2", "1", "3"]

    def test_by_zone_uses_room(self, make_device):
        devices = [
            make_device("1", room="R2"),
            make_device("2", room="R1"),
            make_device("3", room="R1"),
        ]
        assert _ids(ByZoneStrategy().order(devices)) == ["2", "3", "1"]

    def test_by_zone_falls_back_to_zone(self, make_device):
        devices = [
            make_device("1", zone="Z2"),
            make_device("2", zone="Z1"),
        ]
        assert _ids(ByZoneStrategy().order(devices)) == ["2", "1"]

    def test_by_device_type(self, make_device):
        devices = [
            make_device("1", device_type="strobe"),
            make_device("2", device_type="module"),
            make_device("3", device_type="heat_detector"),
        ]
        assert _ids(ByDeviceTypeStrategy().order(devices)) == ["3", "2", "1"]


class TestOptimized:
    def test_level_then_position_then_draw(self, make_device):
        devices = [
            make_device("a", level="L2", x=0.0, y=0.0),
            make_device("b", level="L1", x=5.0, y=0.0),
            make_device("c", level="L1", x=1.0, y=3.0),
            make_device("d", level="L1", x=1.0, y=2.0, current_draw=0.2),
            make_device("e", level="L1", x=1.0, y=2.0, current_draw=0.1),
        ]
        assert _ids(OptimizedStrategy().order(devices)) == ["e", "d", "c", "b", "a"]


class TestRegistry:
    def test_all_strategies_registered(self):
        registry = create_default_registry()
        names = {s.strategy for s in registry.strategies}
        assert names == set(AssignmentStrategy)

    def test_lookup_by_value(self, make_device):
        registry = create_default_registry()
        assert isinstance(registry.get("by_floor"), ByFloorStrategy)
        devices = [make_device("2"), make_device("1")]
        assert _ids(registry.order(devices, AssignmentStrategy.SEQUENTIAL)) == ["1", "2"]

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            create_default_registry().get("random")
