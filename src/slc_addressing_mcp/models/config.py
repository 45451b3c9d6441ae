"""Configuration models supplied by the host."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CircuitLimits(BaseModel):
    """Per-circuit capacity limits."""

    max_devices: int = Field(default=25, gt=0, description="회로당 최대 디바이스 수")
    max_address: int = Field(default=250, gt=0, description="최대 주소 값")
    max_current: float = Field(default=7.0, gt=0, description="최대 전류 (A)")


class AddressingConfig(BaseModel):
    """Session-wide addressing configuration."""

    circuit: CircuitLimits = Field(default_factory=CircuitLimits)
    safe_capacity_threshold: float = Field(default=0.8, gt=0, le=1)
    spare_capacity: float = Field(default=0.2, ge=0, lt=1, description="예비 용량 비율")
    start_address: int = Field(default=1, ge=1)
    panel_separator: str = Field(default="-", min_length=1)
    default_panel_id: str = Field(default="DefaultPanel", min_length=1)

    @property
    def default_target_utilization(self) -> float:
        """Balancing target when the caller supplies none."""
        return 1.0 - self.spare_capacity
