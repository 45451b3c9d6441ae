"""Address and circuit validation rules."""

from __future__ import annotations

from collections import defaultdict

from slc_addressing_mcp.core.circuits import Circuit
from slc_addressing_mcp.models.devices import Device
from slc_addressing_mcp.models.results import (
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)

# Device-count utilization above this is critical (advisory only)
CRITICAL_UTILIZATION = 0.95

# Fraction of the current ceiling that triggers a warning
CURRENT_WARNING_FRACTION = 0.9

# Alternatives offered after an address conflict
SUGGESTION_COUNT = 5


class ValidationEngine:
    """Stateless checks gating every address mutation.

    Hard errors (range, duplicate, lock) stop at the first failing rule;
    capacity, electrical and positional findings accumulate.
    """

    def __init__(self, safe_capacity_threshold: float | None = None) -> None:
        # None means: use each circuit's own threshold
        self.safe_capacity_threshold = safe_capacity_threshold

    def validate_address(
        self, address: int, device: Device, circuit: Circuit
    ) -> ValidationResult:
        """Validate giving ``address`` on ``circuit`` to ``device``."""
        result = ValidationResult()

        if not self._check_range(address, device, circuit, result):
            return result
        if not self._check_occupant(address, device, circuit, result):
            return result

        self._check_capacity(device, circuit, result)
        self._check_electrical(device, circuit, result)
        self._check_position_hint(address, device, circuit, result)
        return result

    def validate_electrical(self, device: Device, circuit: Circuit) -> ValidationResult:
        """Device-count ceiling and current checks for placing ``device``."""
        result = ValidationResult()
        self._check_device_ceiling(device, circuit, result)
        self._check_electrical(device, circuit, result)
        return result

    def validate_circuit(self, circuit: Circuit) -> ValidationResult:
        """Validate a whole circuit's current state."""
        result = ValidationResult()

        for device in circuit.devices:
            if device.address is not None and not 1 <= device.address <= circuit.max_address:
                result.add(ValidationIssue(
                    code="ADDR_001",
                    message=(
                        f"Device {device.device_id} address {device.address} is outside "
                        f"valid range (1-{circuit.max_address})"
                    ),
                    severity=ValidationSeverity.ERROR,
                    entity_id=device.device_id,
                    blocking=True,
                ))

        # Structurally impossible with the pool, still checked
        by_address: dict[int, list[str]] = defaultdict(list)
        for device in circuit.devices:
            if device.address is not None:
                by_address[device.address].append(device.device_id)
        for address, ids in sorted(by_address.items()):
            if len(ids) > 1:
                result.add(ValidationIssue(
                    code="ADDR_004",
                    message=(
                        f"Address {address} in circuit {circuit.number} assigned to "
                        f"multiple devices: {', '.join(ids)}"
                    ),
                    severity=ValidationSeverity.ERROR,
                    entity_id=circuit.number,
                    entity_type="circuit",
                    blocking=True,
                ))

        if circuit.device_count > circuit.max_devices:
            result.add(ValidationIssue(
                code="CAP_001",
                message=(
                    f"Circuit {circuit.number} exceeds maximum device count "
                    f"({circuit.device_count} > {circuit.max_devices})"
                ),
                severity=ValidationSeverity.ERROR,
                entity_id=circuit.number,
                entity_type="circuit",
                blocking=True,
            ))

        self._add_utilization_issues(
            circuit.device_utilization, circuit, result, circuit.number, "circuit"
        )

        total = circuit.total_current
        if total > circuit.max_current:
            result.add(ValidationIssue(
                code="ELEC_003",
                message=(
                    f"Circuit {circuit.number} current draw ({total:.2f}A) exceeds "
                    f"maximum ({circuit.max_current:.2f}A)"
                ),
                severity=ValidationSeverity.ERROR,
                entity_id=circuit.number,
                entity_type="circuit",
                blocking=True,
            ))
        elif total > circuit.max_current * CURRENT_WARNING_FRACTION:
            result.add(ValidationIssue(
                code="ELEC_002",
                message=(
                    f"Circuit {circuit.number} current draw ({total:.2f}A) approaching "
                    f"{circuit.max_current:.2f}A limit"
                ),
                severity=ValidationSeverity.WARNING,
                entity_id=circuit.number,
                entity_type="circuit",
            ))

        return result

    # ── Rules ──────────────────────────────────────────────────────────

    def _check_range(
        self, address: int, device: Device, circuit: Circuit, result: ValidationResult
    ) -> bool:
        if 1 <= address <= circuit.max_address:
            return True
        result.add(ValidationIssue(
            code="ADDR_001",
            message=f"Address {address} is outside valid range (1-{circuit.max_address})",
            severity=ValidationSeverity.ERROR,
            entity_id=device.device_id,
            blocking=True,
        ))
        return False

    def _check_occupant(
        self, address: int, device: Device, circuit: Circuit, result: ValidationResult
    ) -> bool:
        occupant = circuit.pool.occupant(address)
        if occupant is None or occupant.device_id == device.device_id:
            return True

        if occupant.is_locked:
            code = "ADDR_003"
            message = (
                f"Address {address} is locked by {occupant.device_id} "
                "(device installed in field)"
            )
        else:
            code = "ADDR_002"
            message = f"Address {address} is already assigned to {occupant.device_id}"

        result.add(ValidationIssue(
            code=code,
            message=message,
            severity=ValidationSeverity.ERROR,
            entity_id=device.device_id,
            blocking=True,
        ))
        result.suggested_alternatives = circuit.pool.nearby_available(
            address, SUGGESTION_COUNT
        )
        return False

    def _check_device_ceiling(
        self, device: Device, circuit: Circuit, result: ValidationResult
    ) -> None:
        count = circuit.projected_device_count(device)
        if count > circuit.max_devices:
            result.add(ValidationIssue(
                code="CAP_001",
                message=(
                    f"Circuit {circuit.number} is at maximum device count "
                    f"({count - 1}/{circuit.max_devices})"
                ),
                severity=ValidationSeverity.ERROR,
                entity_id=device.device_id,
                blocking=True,
            ))

    def _check_capacity(
        self, device: Device, circuit: Circuit, result: ValidationResult
    ) -> None:
        self._check_device_ceiling(device, circuit, result)
        utilization = circuit.projected_device_count(device) / circuit.max_devices
        self._add_utilization_issues(utilization, circuit, result, device.device_id, "device")

    def _add_utilization_issues(
        self,
        utilization: float,
        circuit: Circuit,
        result: ValidationResult,
        entity_id: str,
        entity_type: str,
    ) -> None:
        threshold = self.safe_capacity_threshold or circuit.safe_capacity_threshold
        if utilization > CRITICAL_UTILIZATION:
            result.add(ValidationIssue(
                code="CAP_002",
                message=(
                    f"Circuit {circuit.number} at {utilization:.1%} capacity - "
                    "risk of exceeding limits"
                ),
                severity=ValidationSeverity.CRITICAL,
                entity_id=entity_id,
                entity_type=entity_type,
            ))
        elif utilization > threshold:
            result.add(ValidationIssue(
                code="CAP_003",
                message=(
                    f"Circuit {circuit.number} at {utilization:.1%} capacity - "
                    f"above safe threshold {threshold:.0%}"
                ),
                severity=ValidationSeverity.WARNING,
                entity_id=entity_id,
                entity_type=entity_type,
            ))

    def _check_electrical(
        self, device: Device, circuit: Circuit, result: ValidationResult
    ) -> None:
        total = circuit.projected_current(device)
        if total > circuit.max_current:
            result.add(ValidationIssue(
                code="ELEC_001",
                message=(
                    f"Circuit {circuit.number} current {total:.2f}A would exceed "
                    f"{circuit.max_current:.2f}A limit"
                ),
                severity=ValidationSeverity.ERROR,
                entity_id=device.device_id,
                blocking=True,
            ))
        elif total > circuit.max_current * CURRENT_WARNING_FRACTION:
            result.add(ValidationIssue(
                code="ELEC_002",
                message=(
                    f"Circuit {circuit.number} current {total:.2f}A approaching "
                    f"{circuit.max_current:.2f}A limit"
                ),
                severity=ValidationSeverity.WARNING,
                entity_id=device.device_id,
            ))

    def _check_position_hint(
        self, address: int, device: Device, circuit: Circuit, result: ValidationResult
    ) -> None:
        natural = device.physical_position
        if natural == address or natural < 1:
            return
        if not circuit.pool.is_available(natural):
            return
        result.add(ValidationIssue(
            code="OPT_001",
            message=(
                f"Consider address {natural} to match physical position "
                f"{device.physical_position}"
            ),
            severity=ValidationSeverity.WARNING,
            entity_id=device.device_id,
        ))
        if natural not in result.suggested_alternatives:
            result.suggested_alternatives.append(natural)
