"""Location-proximity strategy."""

from __future__ import annotations

from slc_addressing_mcp.core.strategies.base import BaseOrderingStrategy, identity_key
from slc_addressing_mcp.models.devices import Device
from slc_addressing_mcp.models.options import AssignmentStrategy


class OptimizedStrategy(BaseOrderingStrategy):
    """Level, then x, then y, then ascending current draw.

    Neighbouring devices on the same level end up with neighbouring
    addresses. Identity breaks exact ties.
    """

    @property
    def strategy(self) -> AssignmentStrategy:
        return AssignmentStrategy.OPTIMIZED

    @property
    def description(self) -> str:
        return "위치 근접도 + 전류 부하 순서"

    def sort_key(self, device: Device) -> tuple:
        return (device.level, device.x, device.y, device.current_draw, identity_key(device))
