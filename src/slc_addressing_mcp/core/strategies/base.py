"""Base ordering strategy and strategy registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from slc_addressing_mcp.models.devices import Device
from slc_addressing_mcp.models.options import AssignmentStrategy


def identity_key(device: Device) -> tuple[int, int | str]:
    """Natural sort key for device ids: numeric ids compare as numbers."""
    device_id = device.device_id.strip()
    if device_id.isdigit():
        return (0, int(device_id))
    return (1, device_id)


class BaseOrderingStrategy(ABC):
    """Abstract base class for auto-assignment ordering strategies."""

    @property
    @abstractmethod
    def strategy(self) -> AssignmentStrategy:
        """Strategy identifier."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable strategy description."""
        ...

    @abstractmethod
    def sort_key(self, device: Device) -> tuple:
        ...

    def order(self, devices: Sequence[Device]) -> list[Device]:
        """Return a new list in assignment order. The input is not modified."""
        return sorted(devices, key=self.sort_key)


class StrategyRegistry:
    """Registry for ordering strategy lookup."""

    def __init__(self) -> None:
        self._strategies: dict[AssignmentStrategy, BaseOrderingStrategy] = {}

    def register(self, strategy: BaseOrderingStrategy) -> None:
        self._strategies[strategy.strategy] = strategy

    def get(self, strategy: AssignmentStrategy | str) -> BaseOrderingStrategy:
        """Get a strategy by identifier.

        Raises:
            ValueError: if ``strategy`` is not a known identifier
            KeyError: if no strategy is registered under that identifier
        """
        return self._strategies[AssignmentStrategy(strategy)]

    def order(
        self, devices: Sequence[Device], strategy: AssignmentStrategy | str
    ) -> list[Device]:
        return self.get(strategy).order(devices)

    @property
    def strategies(self) -> list[BaseOrderingStrategy]:
        return list(self._strategies.values())
