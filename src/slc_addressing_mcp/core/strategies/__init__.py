"""Ordering strategies for batch auto-assignment."""

from slc_addressing_mcp.core.strategies.base import (
    BaseOrderingStrategy,
    StrategyRegistry,
    identity_key,
)
from slc_addressing_mcp.core.strategies.grouped import (
    ByDeviceTypeStrategy,
    ByFloorStrategy,
    ByZoneStrategy,
)
from slc_addressing_mcp.core.strategies.optimized import OptimizedStrategy
from slc_addressing_mcp.core.strategies.sequential import SequentialStrategy


def create_default_registry() -> StrategyRegistry:
    """Create a registry with all built-in strategies."""
    registry = StrategyRegistry()
    registry.register(SequentialStrategy())
    registry.register(ByFloorStrategy())
    registry.register(ByZoneStrategy())
    registry.register(ByDeviceTypeStrategy())
    registry.register(OptimizedStrategy())
    return registry


__all__ = [
    "BaseOrderingStrategy",
    "StrategyRegistry",
    "identity_key",
    "SequentialStrategy",
    "ByFloorStrategy",
    "ByZoneStrategy",
    "ByDeviceTypeStrategy",
    "OptimizedStrategy",
    "create_default_registry",
]
