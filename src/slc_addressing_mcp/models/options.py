"""Option models for assignment, balancing and import operations."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class AssignmentStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    BY_FLOOR = "by_floor"
    BY_ZONE = "by_zone"
    BY_DEVICE_TYPE = "by_device_type"
    OPTIMIZED = "optimized"


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


class AssignmentOptions(BaseModel):
    """Options for assigning a single device to a circuit."""

    auto_assign_address: bool = Field(default=True)
    validate_electrical: bool = Field(default=True)
    preserve_existing: bool = Field(default=False, description="기존 주소 유지")
    start_address: int = Field(default=1, ge=1)


class AutoAssignOptions(BaseModel):
    """Options for batch auto-assignment."""

    respect_locks: bool = Field(default=True, description="manual 잠금 주소도 보존")
    overwrite_existing: bool = Field(default=False)
    strategy: AssignmentStrategy = Field(default=AssignmentStrategy.SEQUENTIAL)
    start_address: int = Field(default=1, ge=1)
    validate_electrical: bool = Field(default=True)


class BalancingOptions(BaseModel):
    """Options for circuit balancing."""

    target_utilization: float | None = Field(
        default=None, gt=0, le=1, description="None이면 1 - spare_capacity"
    )
    maintain_location_grouping: bool = Field(default=True)


class ImportOptions(BaseModel):
    """Options for snapshot import."""

    overwrite_existing: bool = Field(default=False)
    validate_before_import: bool = Field(default=True)
    create_missing: bool = Field(default=True, description="없는 패널/회로/디바이스 생성")
