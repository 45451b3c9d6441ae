"""Group-then-identity strategies.

Each strategy sorts by one location or type attribute, then by natural device
identity so that addresses are deterministic within a group.
"""

from __future__ import annotations

from slc_addressing_mcp.core.strategies.base import BaseOrderingStrategy, identity_key
from slc_addressing_mcp.models.devices import Device
from slc_addressing_mcp.models.options import AssignmentStrategy


class ByFloorStrategy(BaseOrderingStrategy):

    @property
    def strategy(self) -> AssignmentStrategy:
        return AssignmentStrategy.BY_FLOOR

    @property
    def description(self) -> str:
        return "층별 그룹 후 ID 순서"

    def sort_key(self, device: Device) -> tuple:
        return (device.level, identity_key(device))


class ByZoneStrategy(BaseOrderingStrategy):

    @property
    def strategy(self) -> AssignmentStrategy:
        return AssignmentStrategy.BY_ZONE

    @property
    def description(self) -> str:
        return "실(존)별 그룹 후 ID 순서"

    def sort_key(self, device: Device) -> tuple:
        # Room when known, otherwise the coarser zone name
        return (device.room or device.zone, identity_key(device))


class ByDeviceTypeStrategy(BaseOrderingStrategy):

    @property
    def strategy(self) -> AssignmentStrategy:
        return AssignmentStrategy.BY_DEVICE_TYPE

    @property
    def description(self) -> str:
        return "디바이스 종류별 그룹 후 ID 순서"

    def sort_key(self, device: Device) -> tuple:
        return (device.device_type, identity_key(device))
