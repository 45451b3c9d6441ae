"""Pydantic models for the SLC addressing engine."""

from slc_addressing_mcp.models.config import AddressingConfig, CircuitLimits
from slc_addressing_mcp.models.devices import (
    Device,
    DeviceCategory,
    DeviceSnapshot,
    LockState,
)
from slc_addressing_mcp.models.export import (
    EXPORT_COLUMNS,
    AddressingSnapshot,
    CircuitExport,
    ExportRecord,
    PanelExport,
)
from slc_addressing_mcp.models.options import (
    AssignmentOptions,
    AssignmentStrategy,
    AutoAssignOptions,
    BalancingOptions,
    ExportFormat,
    ImportOptions,
)
from slc_addressing_mcp.models.results import (
    AddressingStatistics,
    AllocationStatus,
    ApplyChangesResult,
    AssignedOutcome,
    AssignmentOutcome,
    AutoAssignmentResult,
    BalancingResult,
    CircuitUtilization,
    DeviceMove,
    FailedOutcome,
    ImportResult,
    PanelInitResult,
    PanelValidationResult,
    SkippedOutcome,
    UpdateResult,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)

__all__ = [
    # Config
    "AddressingConfig",
    "CircuitLimits",
    # Devices
    "Device",
    "DeviceCategory",
    "DeviceSnapshot",
    "LockState",
    # Export
    "EXPORT_COLUMNS",
    "AddressingSnapshot",
    "CircuitExport",
    "ExportRecord",
    "PanelExport",
    # Options
    "AssignmentOptions",
    "AssignmentStrategy",
    "AutoAssignOptions",
    "BalancingOptions",
    "ExportFormat",
    "ImportOptions",
    # Results
    "AddressingStatistics",
    "AllocationStatus",
    "ApplyChangesResult",
    "AssignedOutcome",
    "AssignmentOutcome",
    "AutoAssignmentResult",
    "BalancingResult",
    "CircuitUtilization",
    "DeviceMove",
    "FailedOutcome",
    "ImportResult",
    "PanelInitResult",
    "PanelValidationResult",
    "SkippedOutcome",
    "UpdateResult",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
]
