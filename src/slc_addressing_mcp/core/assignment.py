"""Single-device and batch address assignment."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping

from slc_addressing_mcp.core.circuits import Circuit
from slc_addressing_mcp.core.strategies import StrategyRegistry, create_default_registry
from slc_addressing_mcp.core.transaction import UnitOfWork
from slc_addressing_mcp.core.validation import ValidationEngine
from slc_addressing_mcp.models.devices import Device, LockState
from slc_addressing_mcp.models.options import AssignmentOptions, AutoAssignOptions
from slc_addressing_mcp.models.results import (
    AllocationStatus,
    AssignedOutcome,
    AutoAssignmentResult,
    FailedOutcome,
    SkippedOutcome,
    UpdateResult,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# Failure codes produced here (validation codes come from ValidationEngine)
LOCKED_ELSEWHERE = "LOCK_001"
OTHER_CIRCUIT = "CIRC_001"
NOT_ON_CIRCUIT = "CIRC_002"
ADDRESS_EXHAUSTED = "ADDR_005"


class AssignmentEngine:
    """Assigns devices to circuits and addresses to devices.

    Every mutation goes through the circuit's address pool and is registered
    with the unit of work. Failures are returned as outcomes, never raised,
    and leave the device untouched.
    """

    def __init__(
        self,
        validator: ValidationEngine,
        unit_of_work: UnitOfWork | None = None,
        registry: StrategyRegistry | None = None,
    ) -> None:
        self.validator = validator
        self.unit_of_work = unit_of_work
        self.registry = registry or create_default_registry()

    # ── Single device ──────────────────────────────────────────────────

    def assign_device(
        self,
        device: Device,
        circuit: Circuit,
        options: AssignmentOptions | None = None,
    ) -> AssignedOutcome | FailedOutcome:
        """Place ``device`` on ``circuit`` and optionally give it an address."""
        options = options or AssignmentOptions()

        if device.circuit_number is not None and device.circuit_number != circuit.number:
            if device.is_locked:
                return self._failed(
                    device, circuit, LOCKED_ELSEWHERE,
                    f"Device {device.device_id} is locked on circuit {device.circuit_number}",
                )
            return self._failed(
                device, circuit, OTHER_CIRCUIT,
                f"Device {device.device_id} belongs to circuit {device.circuit_number}; "
                "remove it first",
            )

        validation = ValidationResult()
        if options.validate_electrical:
            validation = self.validator.validate_electrical(device, circuit)
            if not validation.is_valid:
                return self._failed_validation(device, circuit, validation)

        address: int | None = None
        if options.auto_assign_address:
            address = self._choose_address(device, circuit, options)
            if address is None:
                return self._failed(
                    device, circuit, ADDRESS_EXHAUSTED,
                    f"No available addresses on circuit {circuit.number} "
                    f"at or above {options.start_address}",
                )

        self._track(device)
        circuit.add_device(device)
        if address is not None:
            circuit.pool.assign(address, device)

        logger.debug(f"Assigned {device.device_id} to {circuit.number} at {device.address}")
        return AssignedOutcome(
            device_id=device.device_id,
            circuit_id=circuit.number,
            address=device.address,
            warnings=[issue.message for issue in validation.warnings],
        )

    def remove_device(self, device: Device, circuit: Circuit) -> bool:
        """Detach a device, releasing its address and clearing its lock.

        Returns False (no-op) when the device is not on ``circuit``.
        """
        if not circuit.contains(device.device_id):
            return False
        self._track(device)
        circuit.remove_device(device)
        device.lock_state = LockState.UNLOCKED
        logger.debug(f"Removed {device.device_id} from {circuit.number}")
        return True

    def update_address(
        self,
        device: Device,
        circuit: Circuit | None,
        new_address: int | None,
        validate: bool = True,
    ) -> UpdateResult:
        """Move ``device`` to ``new_address`` on its circuit (``None`` clears it)."""
        old_address = device.address

        def failed(code: str, message: str, validation: ValidationResult | None = None):
            return UpdateResult(
                success=False,
                device_id=device.device_id,
                old_value=old_address,
                new_value=new_address,
                code=code,
                error_message=message,
                validation=validation,
            )

        if device.is_locked:
            return failed(LOCKED_ELSEWHERE, f"Device {device.device_id} is locked")
        if circuit is None or not circuit.contains(device.device_id):
            return failed(NOT_ON_CIRCUIT, f"Device {device.device_id} is not assigned to a circuit")

        if new_address is None:
            if old_address is not None:
                self._track(device)
                circuit.pool.release(old_address)
            return UpdateResult(success=True, device_id=device.device_id, old_value=old_address)

        validation: ValidationResult | None = None
        if validate:
            validation = self.validator.validate_address(new_address, device, circuit)
            if not validation.is_valid:
                first = validation.errors[0]
                return failed(first.code, validation.message, validation)

        if not circuit.pool.in_range(new_address):
            return failed(
                "ADDR_001",
                f"Address {new_address} is outside valid range (1-{circuit.max_address})",
            )
        holder = circuit.pool.occupant(new_address)
        if holder is not None and holder.device_id != device.device_id:
            return failed("ADDR_002", f"Address {new_address} is already assigned to {holder.device_id}")

        self._track(device)
        circuit.pool.assign(new_address, device)
        return UpdateResult(
            success=True,
            device_id=device.device_id,
            old_value=old_address,
            new_value=new_address,
            validation=validation,
        )

    def lock_device(self, device: Device, state: LockState = LockState.LOCKED) -> None:
        self._track(device)
        device.lock_state = state

    def unlock_device(self, device: Device) -> None:
        self.lock_device(device, LockState.UNLOCKED)

    def clear_addresses(self, circuit: Circuit) -> int:
        """Release every unlocked address on ``circuit``; returns the count."""
        cleared = 0
        for device in circuit.devices:
            if device.is_locked or device.address is None:
                continue
            self._track(device)
            circuit.pool.release(device.address)
            cleared += 1
        return cleared

    def allocation_status(self, circuit: Circuit) -> AllocationStatus:
        pool = circuit.pool
        return AllocationStatus(
            circuit_id=circuit.number,
            total_addresses=pool.max_address,
            used_addresses=pool.assigned_count,
            available_addresses=pool.available_count,
            utilization_percentage=pool.utilization * 100,
            allocated_addresses=pool.occupied(),
            available_address_list=list(pool.all_free()),
        )

    # ── Batch ──────────────────────────────────────────────────────────

    def auto_assign(
        self,
        devices: Iterable[Device],
        circuits: Mapping[str, Circuit],
        options: AutoAssignOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> AutoAssignmentResult:
        """Address every eligible device in strategy order.

        A per-device failure is recorded and the batch continues. The cancel
        event is checked before each device.
        """
        options = options or AutoAssignOptions()
        result = AutoAssignmentResult()
        ordered = self.registry.order(list(devices), options.strategy)

        for device in ordered:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                logger.info(f"Auto-assignment cancelled after {result.devices_processed} device(s)")
                break
            result.record(self._auto_assign_one(device, circuits, options))

        logger.info(
            f"Auto-assignment ({options.strategy.value}): {result.devices_assigned} assigned, "
            f"{result.devices_skipped} skipped, {result.devices_failed} failed"
        )
        return result

    def _auto_assign_one(
        self,
        device: Device,
        circuits: Mapping[str, Circuit],
        options: AutoAssignOptions,
    ) -> AssignedOutcome | SkippedOutcome | FailedOutcome:
        if device.is_locked:
            return SkippedOutcome(device_id=device.device_id, reason="Device is locked")
        if (
            options.respect_locks
            and device.lock_state == LockState.MANUAL
            and device.is_addressed
        ):
            return SkippedOutcome(device_id=device.device_id, reason="Manual address preserved")
        if device.is_addressed and not options.overwrite_existing:
            return SkippedOutcome(device_id=device.device_id, reason="Already addressed")

        circuit = circuits.get(device.circuit_number) if device.circuit_number else None
        if circuit is None:
            return SkippedOutcome(device_id=device.device_id, reason="No circuit assigned")

        address = self._first_address_for(device, circuit, options.start_address)
        if address is None:
            return self._failed(
                device, circuit, ADDRESS_EXHAUSTED,
                f"No available addresses on circuit {circuit.number}",
            )

        validation = ValidationResult()
        if options.validate_electrical:
            validation = self.validator.validate_address(address, device, circuit)
            if not validation.is_valid:
                return self._failed_validation(device, circuit, validation)

        self._track(device)
        circuit.pool.assign(address, device)
        return AssignedOutcome(
            device_id=device.device_id,
            circuit_id=circuit.number,
            address=address,
            warnings=[issue.message for issue in validation.warnings],
        )

    # ── Helpers ────────────────────────────────────────────────────────

    def _choose_address(
        self, device: Device, circuit: Circuit, options: AssignmentOptions
    ) -> int | None:
        current = circuit.pool.address_of(device.device_id)
        if current is not None and (options.preserve_existing or device.is_locked):
            return current
        return self._first_address_for(device, circuit, options.start_address)

    @staticmethod
    def _first_address_for(device: Device, circuit: Circuit, start: int) -> int | None:
        """Lowest address >= ``start`` that is free or already the device's own."""
        free = circuit.pool.next_available(start)
        own = circuit.pool.address_of(device.device_id)
        if own is not None and own >= start and (free is None or own < free):
            return own
        return free

    def _track(self, device: Device) -> None:
        if self.unit_of_work is not None:
            self.unit_of_work.register_modified(device, device.device_id)

    @staticmethod
    def _failed(device: Device, circuit: Circuit, code: str, message: str) -> FailedOutcome:
        logger.debug(f"Assignment of {device.device_id} failed: {message}")
        return FailedOutcome(
            device_id=device.device_id,
            circuit_id=circuit.number,
            code=code,
            message=message,
        )

    @staticmethod
    def _failed_validation(
        device: Device, circuit: Circuit, validation: ValidationResult
    ) -> FailedOutcome:
        logger.debug(f"Assignment of {device.device_id} failed: {validation.message}")
        return FailedOutcome(
            device_id=device.device_id,
            circuit_id=circuit.number,
            code=validation.errors[0].code,
            message=validation.message,
            issues=validation.issues,
            suggested_alternatives=validation.suggested_alternatives,
        )
