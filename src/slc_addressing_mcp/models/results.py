"""Result models returned by the addressing engine.

Every failure path is returned as data: a code, a message, a severity and the
affected entity id, so callers can render diagnostics without re-deriving them.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class ValidationSeverity(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    ValidationSeverity.VALID: 0,
    ValidationSeverity.WARNING: 1,
    ValidationSeverity.ERROR: 2,
    ValidationSeverity.CRITICAL: 3,
}


class ValidationIssue(BaseModel):
    """A single validation finding."""

    code: str = Field(..., description="예: ADDR_001, ELEC_001")
    message: str
    severity: ValidationSeverity
    entity_id: str | None = Field(default=None)
    entity_type: Literal["device", "circuit", "panel", "system"] = "device"
    blocking: bool = Field(default=False, description="True면 할당을 막는 오류")


class ValidationResult(BaseModel):
    """Severity-graded outcome of an address or circuit check."""

    issues: list[ValidationIssue] = Field(default_factory=list)
    suggested_alternatives: list[int] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(issue.blocking for issue in self.issues)

    @property
    def severity(self) -> ValidationSeverity:
        highest = ValidationSeverity.VALID
        for issue in self.issues:
            if issue.severity.rank > highest.rank:
                highest = issue.severity
        return highest

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.blocking]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if not i.blocking]

    @property
    def message(self) -> str:
        """Blocking messages joined, or an empty string when valid."""
        return "; ".join(i.message for i in self.errors)

    def add(self, issue: ValidationIssue) -> None:
        self.issues.append(issue)

    def merge(self, other: ValidationResult) -> None:
        self.issues.extend(other.issues)
        for address in other.suggested_alternatives:
            if address not in self.suggested_alternatives:
                self.suggested_alternatives.append(address)

    def summary(self) -> dict:
        """JSON-friendly view including the derived fields."""
        data = self.model_dump(mode="json")
        data["is_valid"] = self.is_valid
        data["severity"] = self.severity.value
        return data


# ── Assignment outcomes ────────────────────────────────────────────────


class AssignedOutcome(BaseModel):
    status: Literal["assigned"] = "assigned"
    device_id: str
    circuit_id: str
    address: int | None = None
    warnings: list[str] = Field(default_factory=list)


class SkippedOutcome(BaseModel):
    status: Literal["skipped"] = "skipped"
    device_id: str
    reason: str


class FailedOutcome(BaseModel):
    status: Literal["failed"] = "failed"
    device_id: str
    circuit_id: str | None = None
    code: str
    message: str
    issues: list[ValidationIssue] = Field(default_factory=list)
    suggested_alternatives: list[int] = Field(default_factory=list)


AssignmentOutcome = Annotated[
    Union[AssignedOutcome, SkippedOutcome, FailedOutcome],
    Field(discriminator="status"),
]


class AutoAssignmentResult(BaseModel):
    """Batch auto-assignment summary."""

    devices_processed: int = 0
    devices_assigned: int = 0
    devices_skipped: int = 0
    devices_failed: int = 0
    cancelled: bool = False
    outcomes: list[AssignmentOutcome] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.devices_failed == 0 and not self.cancelled

    def record(self, outcome: AssignedOutcome | SkippedOutcome | FailedOutcome) -> None:
        self.outcomes.append(outcome)
        self.devices_processed += 1
        if isinstance(outcome, AssignedOutcome):
            self.devices_assigned += 1
        elif isinstance(outcome, SkippedOutcome):
            self.devices_skipped += 1
        else:
            self.devices_failed += 1


class UpdateResult(BaseModel):
    """Result of a single device address update."""

    success: bool
    device_id: str
    old_value: int | None = None
    new_value: int | None = None
    code: str = ""
    error_message: str = ""
    validation: ValidationResult | None = None


# ── Circuit / panel reporting ──────────────────────────────────────────


class CircuitUtilization(BaseModel):
    """Point-in-time utilization of one circuit."""

    circuit_id: str
    panel_id: str = ""
    device_count: int = 0
    max_devices: int = 0
    device_utilization: float = 0.0
    current_draw: float = 0.0
    max_current: float = 0.0
    current_utilization: float = 0.0
    used_addresses: int = 0
    available_addresses: int = 0
    address_utilization: float = 0.0
    spare_devices: int = Field(default=0, description="예비 용량 기준 남은 디바이스 수")


class AllocationStatus(BaseModel):
    """Address range report for a circuit."""

    circuit_id: str
    total_addresses: int
    used_addresses: int
    available_addresses: int
    utilization_percentage: float
    allocated_addresses: list[int] = Field(default_factory=list)
    available_address_list: list[int] = Field(default_factory=list)


class PanelValidationResult(BaseModel):
    """Aggregated validation over one panel or the whole system."""

    is_valid: bool = True
    messages: list[ValidationIssue] = Field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0

    def add(self, issue: ValidationIssue) -> None:
        self.messages.append(issue)
        if issue.blocking:
            self.is_valid = False
        if issue.severity in (ValidationSeverity.ERROR, ValidationSeverity.CRITICAL):
            self.error_count += 1
        elif issue.severity == ValidationSeverity.WARNING:
            self.warning_count += 1
        else:
            self.info_count += 1


class DeviceMove(BaseModel):
    device_id: str
    from_circuit: str
    to_circuit: str
    reason: str = "Load balancing"
    success: bool = False
    message: str = ""


class BalancingResult(BaseModel):
    success: bool = False
    devices_moved: int = 0
    imbalance_before: float = 0.0
    imbalance_after: float = 0.0
    target_utilization: float = 0.0
    cancelled: bool = False
    moves: list[DeviceMove] = Field(default_factory=list)
    error: str | None = None


class AddressingStatistics(BaseModel):
    total_panels: int = 0
    total_circuits: int = 0
    total_devices: int = 0
    addressed_devices: int = 0
    unaddressed_devices: int = 0
    locked_devices: int = 0
    unassigned_devices: int = 0
    average_circuit_utilization: float = 0.0
    average_current_draw: float = 0.0
    system_imbalance: float = 0.0
    devices_by_type: dict[str, int] = Field(default_factory=dict)
    devices_by_floor: dict[str, int] = Field(default_factory=dict)
    error: str | None = None


class ImportResult(BaseModel):
    success: bool = True
    records_processed: int = 0
    records_imported: int = 0
    records_failed: int = 0
    errors: list[str] = Field(default_factory=list)


class ApplyChangesResult(BaseModel):
    success: bool = True
    changes_applied: int = 0
    changes_failed: int = 0
    errors: list[str] = Field(default_factory=list)
    processing_time: float = Field(default=0.0, description="초")


class PanelInitResult(BaseModel):
    """Summary returned after building panels from host devices."""

    panel_ids: list[str] = Field(default_factory=list)
    circuit_count: int = 0
    total_devices: int = 0
    addressed_devices: int = 0
    unaddressed_devices: int = 0
    unassigned_devices: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
