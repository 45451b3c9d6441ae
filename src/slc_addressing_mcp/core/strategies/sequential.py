"""Identity-order strategy."""

from __future__ import annotations

from slc_addressing_mcp.core.strategies.base import BaseOrderingStrategy, identity_key
from slc_addressing_mcp.models.devices import Device
from slc_addressing_mcp.models.options import AssignmentStrategy


class SequentialStrategy(BaseOrderingStrategy):
    """Devices in natural identity order (``"2"`` before ``"10"``)."""

    @property
    def strategy(self) -> AssignmentStrategy:
        return AssignmentStrategy.SEQUENTIAL

    @property
    def description(self) -> str:
        return "디바이스 ID 순서"

    def sort_key(self, device: Device) -> tuple:
        return identity_key(device)
