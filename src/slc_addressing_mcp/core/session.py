"""Addressing session: the caller-owned facade over panels and engines.

One session holds the loaded panels, the unassigned devices and the engines
that mutate them. Every mutating operation joins the session's unit of work;
``rollback`` restores the in-memory state captured when the batch began.
"""

from __future__ import annotations

import logging
import statistics
import threading
import time
from collections import Counter
from collections.abc import Iterable

from slc_addressing_mcp.core.assignment import AssignmentEngine
from slc_addressing_mcp.core.balancing import BalancingEngine, imbalance
from slc_addressing_mcp.core.circuits import (
    Circuit,
    CircuitStateSnapshot,
    Panel,
    extract_panel_id,
)
from slc_addressing_mcp.core.classification import classify_device
from slc_addressing_mcp.core.transaction import PersistenceBackend, UnitOfWork
from slc_addressing_mcp.core.validation import ValidationEngine
from slc_addressing_mcp.errors import (
    AddressError,
    CircuitNotFoundError,
    DeviceNotFoundError,
    InputError,
    TransactionError,
)
from slc_addressing_mcp.formats.snapshot import decode_snapshot, encode_snapshot
from slc_addressing_mcp.models.config import AddressingConfig
from slc_addressing_mcp.models.devices import Device, DeviceSnapshot, LockState
from slc_addressing_mcp.models.export import (
    AddressingSnapshot,
    CircuitExport,
    ExportRecord,
    PanelExport,
)
from slc_addressing_mcp.models.options import (
    AssignmentOptions,
    AutoAssignOptions,
    BalancingOptions,
    ExportFormat,
    ImportOptions,
)
from slc_addressing_mcp.models.results import (
    AddressingStatistics,
    ApplyChangesResult,
    AssignedOutcome,
    AutoAssignmentResult,
    BalancingResult,
    CircuitUtilization,
    FailedOutcome,
    ImportResult,
    PanelInitResult,
    PanelValidationResult,
    UpdateResult,
    ValidationIssue,
    ValidationSeverity,
)

logger = logging.getLogger(__name__)


class _SessionMemento:
    """Panels, circuit membership and unassigned devices at batch start."""

    def __init__(self, session: AddressingSession) -> None:
        self._session = session
        self._panels = {
            panel_id: (panel, panel.circuits)
            for panel_id, panel in session._panels.items()
        }
        self._circuits = CircuitStateSnapshot(
            c for panel in session._panels.values() for c in panel.circuits
        )
        self._unassigned = [(d, d.lock_state) for d in session._unassigned]

    def restore(self) -> None:
        session = self._session
        session._panels = {}
        for panel_id, (panel, circuits) in self._panels.items():
            panel._circuits = {c.number: c for c in circuits}
            session._panels[panel_id] = panel

        self._circuits.restore()

        session._unassigned = []
        for device, lock_state in self._unassigned:
            device.circuit_number = None
            device.address = None
            device.physical_position = 0
            device.lock_state = lock_state
            session._unassigned.append(device)


class AddressingSession:
    """Explicitly constructed, caller-owned addressing state.

    Example:
        >>> session = AddressingSession(load_config())
        >>> session.initialize_panels(snapshots)
        >>> session.auto_assign_all()
        >>> session.commit()
    """

    def __init__(
        self,
        config: AddressingConfig | None = None,
        backend: PersistenceBackend | None = None,
    ) -> None:
        self.config = config or AddressingConfig()
        self._panels: dict[str, Panel] = {}
        self._unassigned: list[Device] = []

        self.unit_of_work = UnitOfWork(backend, capture=lambda: _SessionMemento(self))
        self.validator = ValidationEngine(self.config.safe_capacity_threshold)
        self.assignment = AssignmentEngine(self.validator, self.unit_of_work)
        self.balancing = BalancingEngine(
            self.assignment, self.config.default_target_utilization
        )

    # ── Lookups ────────────────────────────────────────────────────────

    @property
    def panels(self) -> list[Panel]:
        return list(self._panels.values())

    @property
    def circuits(self) -> list[Circuit]:
        return [c for panel in self._panels.values() for c in panel.circuits]

    @property
    def unassigned_devices(self) -> list[Device]:
        return list(self._unassigned)

    @property
    def devices(self) -> list[Device]:
        return [d for c in self.circuits for d in c.devices] + self._unassigned

    def get_panel(self, panel_id: str) -> Panel | None:
        return self._panels.get(panel_id)

    def find_device(self, device_id: str) -> Device | None:
        for circuit in self.circuits:
            device = circuit.get_device(device_id)
            if device is not None:
                return device
        for device in self._unassigned:
            if device.device_id == device_id:
                return device
        return None

    def find_circuit(self, circuit_id: str) -> Circuit | None:
        for panel in self._panels.values():
            circuit = panel.get_circuit(circuit_id)
            if circuit is not None:
                return circuit
        return None

    def require_device(self, device_id: str) -> Device:
        if not device_id or not device_id.strip():
            raise InputError("Device ID cannot be empty")
        device = self.find_device(device_id)
        if device is None:
            raise DeviceNotFoundError(f"Device not found: {device_id}")
        return device

    def require_circuit(self, circuit_id: str) -> Circuit:
        if not circuit_id or not circuit_id.strip():
            raise InputError("Circuit ID cannot be empty")
        circuit = self.find_circuit(circuit_id)
        if circuit is None:
            raise CircuitNotFoundError(f"Circuit not found: {circuit_id}")
        return circuit

    # ── Transaction control ────────────────────────────────────────────

    def begin(self) -> None:
        self.unit_of_work.begin()

    def commit(self) -> int:
        return self.unit_of_work.commit()

    def rollback(self) -> None:
        self.unit_of_work.rollback()

    def save_changes(self) -> int:
        """Write pending changes to the backend and keep the batch open.

        Raises:
            TransactionError: if no batch is open
        """
        return self.unit_of_work.save_changes()

    def apply_changes(self) -> ApplyChangesResult:
        """Commit the open batch and report timing instead of raising."""
        started = time.perf_counter()
        try:
            applied = self.commit()
        except Exception as e:
            logger.warning(f"Apply changes failed: {e}")
            return ApplyChangesResult(
                success=False,
                changes_failed=1,
                errors=[str(e)],
                processing_time=time.perf_counter() - started,
            )
        return ApplyChangesResult(
            changes_applied=applied,
            processing_time=time.perf_counter() - started,
        )

    def revert_changes(self) -> None:
        self.rollback()

    def _begin_if_idle(self) -> bool:
        """Start a batch unless one is open; True if this call started it."""
        if self.unit_of_work.is_active:
            return False
        self.unit_of_work.begin()
        return True

    # ── Panels ─────────────────────────────────────────────────────────

    def initialize_panels(
        self, snapshots: Iterable[DeviceSnapshot | dict] | None
    ) -> PanelInitResult:
        """Replace the session state with panels built from host devices.

        Devices with a circuit number are placed on it in input order; their
        existing address is claimed through the pool. Devices without one
        are kept as unassigned. Previously loaded devices missing from
        ``snapshots`` are registered as deleted.

        Raises:
            InputError: if ``snapshots`` is None
            TransactionError: if a batch is already open
        """
        if snapshots is None:
            raise InputError("Device snapshots cannot be None")
        if self.unit_of_work.is_active:
            raise TransactionError(
                "Commit or roll back the open transaction before initializing panels"
            )

        self.unit_of_work.begin()
        try:
            result = self._build_panels(snapshots)
            self.unit_of_work.commit()
        except Exception:
            self.unit_of_work.rollback()
            raise

        logger.info(
            f"Initialized {len(result.panel_ids)} panel(s), {result.circuit_count} circuit(s), "
            f"{result.total_devices} device(s)"
        )
        return result

    def _build_panels(self, snapshots: Iterable[DeviceSnapshot | dict]) -> PanelInitResult:
        previous = self.devices
        self._panels = {}
        self._unassigned = []
        result = PanelInitResult()
        seen: set[str] = set()

        for raw in snapshots:
            snapshot = (
                raw if isinstance(raw, DeviceSnapshot) else DeviceSnapshot.model_validate(raw)
            )
            if snapshot.element_id in seen:
                result.warnings.append(f"Duplicate device id skipped: {snapshot.element_id}")
                continue
            seen.add(snapshot.element_id)

            device = self._device_from_snapshot(snapshot)
            self.unit_of_work.register_new(device, device.device_id)

            if not snapshot.circuit_number:
                self._unassigned.append(device)
                continue

            circuit = self._get_or_create_circuit(snapshot.circuit_number)
            circuit.add_device(device)
            if snapshot.address is not None:
                try:
                    circuit.pool.claim(snapshot.address, device)
                except AddressError as e:
                    result.warnings.append(f"{device.device_id}: {e}")

        for device in previous:
            if device.device_id not in seen:
                self.unit_of_work.register_deleted(device, device.device_id)

        result.panel_ids = list(self._panels)
        result.circuit_count = len(self.circuits)
        result.total_devices = len(seen)
        result.addressed_devices = sum(1 for d in self.devices if d.is_addressed)
        result.unaddressed_devices = result.total_devices - result.addressed_devices
        result.unassigned_devices = [d.device_id for d in self._unassigned]
        return result

    def _device_from_snapshot(self, snapshot: DeviceSnapshot) -> Device:
        device = Device.from_snapshot(snapshot)
        device.lock_state = snapshot.lock_state
        if not device.device_type:
            device.device_type = classify_device(
                snapshot.family_name,
                snapshot.type_name,
                has_strobe=snapshot.has_strobe,
                has_speaker=snapshot.has_speaker,
                is_isolator=snapshot.is_isolator,
                is_repeater=snapshot.is_repeater,
            ).value
        return device

    def _get_or_create_circuit(self, circuit_number: str, panel_id: str = "") -> Circuit:
        circuit = self.find_circuit(circuit_number)
        if circuit is not None:
            return circuit
        panel_id = panel_id or extract_panel_id(
            circuit_number,
            separator=self.config.panel_separator,
            default=self.config.default_panel_id,
        )
        panel = self._panels.get(panel_id)
        if panel is None:
            panel = Panel(panel_id)
            self._panels[panel_id] = panel
        circuit = Circuit(
            circuit_number,
            limits=self.config.circuit,
            safe_capacity_threshold=self.config.safe_capacity_threshold,
        )
        panel.add_circuit(circuit)
        return circuit

    # ── Single-entity operations ───────────────────────────────────────

    def assign_device_to_circuit(
        self,
        device_id: str,
        circuit_id: str,
        options: AssignmentOptions | None = None,
    ) -> AssignedOutcome | FailedOutcome:
        device = self.require_device(device_id)
        circuit = self.require_circuit(circuit_id)
        options = options or AssignmentOptions(start_address=self.config.start_address)

        self._begin_if_idle()
        outcome = self.assignment.assign_device(device, circuit, options)
        if isinstance(outcome, AssignedOutcome) and device in self._unassigned:
            self._unassigned.remove(device)
        return outcome

    def remove_device_from_circuit(self, device_id: str, circuit_id: str) -> bool:
        """Detach a device; False when ids are empty or unknown, or not attached."""
        if not device_id or not circuit_id:
            return False
        device = self.find_device(device_id)
        circuit = self.find_circuit(circuit_id)
        if device is None or circuit is None or not circuit.contains(device_id):
            return False

        self._begin_if_idle()
        if not self.assignment.remove_device(device, circuit):
            return False
        self._unassigned.append(device)
        return True

    def update_device_address(
        self,
        device_id: str,
        new_address: int | str | None,
        validate: bool = True,
    ) -> UpdateResult:
        """Set a device's address on its circuit (blank or None clears it)."""
        device = self.require_device(device_id)

        if isinstance(new_address, str):
            text = new_address.strip()
            if text and not text.isdecimal():
                return UpdateResult(
                    success=False,
                    device_id=device.device_id,
                    old_value=device.address,
                    code="ADDR_001",
                    error_message=f"Address must be a positive integer, got {new_address!r}",
                )
            new_address = int(text) if text else None

        circuit = self.find_circuit(device.circuit_number) if device.circuit_number else None
        self._begin_if_idle()
        return self.assignment.update_address(device, circuit, new_address, validate=validate)

    def set_device_lock(self, device_id: str, lock_state: LockState | str) -> Device:
        device = self.require_device(device_id)
        self._begin_if_idle()
        self.assignment.lock_device(device, LockState(lock_state))
        return device

    # ── Batch operations ───────────────────────────────────────────────

    def auto_assign_all(
        self,
        options: AutoAssignOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> AutoAssignmentResult:
        options = options or AutoAssignOptions(start_address=self.config.start_address)
        circuits = {c.number: c for c in self.circuits}
        devices = [d for c in circuits.values() for d in c.devices]

        self._begin_if_idle()
        return self.assignment.auto_assign(devices, circuits, options, cancel_event)

    def validate_panel(self, panel_id: str | None = None) -> PanelValidationResult:
        """Validate one panel, or every panel plus unassigned devices."""
        if panel_id is not None and panel_id not in self._panels:
            raise InputError(f"Panel not found: {panel_id}")

        result = PanelValidationResult()
        try:
            panels = [self._panels[panel_id]] if panel_id is not None else self.panels
            for panel in panels:
                for circuit in panel.circuits:
                    for issue in self.validator.validate_circuit(circuit).issues:
                        result.add(issue)
            if panel_id is None:
                for device in self._unassigned:
                    result.add(ValidationIssue(
                        code="INFO_001",
                        message=f"Device {device.device_id} is not assigned to a circuit",
                        severity=ValidationSeverity.VALID,
                        entity_id=device.device_id,
                    ))
        except Exception as e:
            logger.error(f"Panel validation failed: {e}")
            result.add(ValidationIssue(
                code="SYS_001",
                message=f"Validation failed: {e}",
                severity=ValidationSeverity.CRITICAL,
                entity_type="system",
                blocking=True,
            ))
        return result

    def get_circuit_utilization(self, circuit_id: str) -> CircuitUtilization:
        circuit = self.require_circuit(circuit_id)
        return circuit.utilization(self.config.spare_capacity)

    def balance_circuits(
        self,
        options: BalancingOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BalancingResult:
        self._begin_if_idle()
        return self.balancing.balance(self.circuits, options, cancel_event)

    def get_statistics(self) -> AddressingStatistics:
        try:
            circuits = self.circuits
            devices = [d for c in circuits for d in c.devices]
            addressed = sum(1 for d in devices if d.is_addressed)
            return AddressingStatistics(
                total_panels=len(self._panels),
                total_circuits=len(circuits),
                total_devices=len(devices),
                addressed_devices=addressed,
                unaddressed_devices=len(devices) - addressed,
                locked_devices=sum(1 for d in devices if d.is_locked),
                unassigned_devices=len(self._unassigned),
                average_circuit_utilization=(
                    statistics.fmean(c.device_utilization for c in circuits) if circuits else 0.0
                ),
                average_current_draw=(
                    statistics.fmean(c.total_current for c in circuits) if circuits else 0.0
                ),
                system_imbalance=imbalance(circuits),
                devices_by_type=dict(Counter(d.device_type or "Unknown" for d in devices)),
                devices_by_floor=dict(Counter(d.level or "Unknown" for d in devices)),
            )
        except Exception as e:
            logger.error(f"Statistics failed: {e}")
            return AddressingStatistics(error=str(e))

    # ── Snapshots ──────────────────────────────────────────────────────

    def build_snapshot(self) -> AddressingSnapshot:
        panels: list[PanelExport] = []
        for panel in self._panels.values():
            circuits: list[CircuitExport] = []
            for circuit in panel.circuits:
                records = [
                    ExportRecord(
                        panel_id=panel.panel_id,
                        circuit_number=circuit.number,
                        device_id=d.device_id,
                        address=d.address,
                        device_type=d.device_type,
                        level=d.level,
                        room=d.room,
                        current_draw=d.current_draw,
                    )
                    for d in circuit.devices
                ]
                circuits.append(CircuitExport(
                    circuit_number=circuit.number,
                    device_count=circuit.device_count,
                    device_utilization=circuit.device_utilization,
                    devices=records,
                ))
            panels.append(PanelExport(panel_id=panel.panel_id, circuits=circuits))
        return AddressingSnapshot(panels=panels)

    def export_snapshot(self, fmt: ExportFormat | str = ExportFormat.CSV) -> bytes:
        return encode_snapshot(self.build_snapshot(), fmt)

    def import_snapshot(self, data: bytes, options: ImportOptions | None = None) -> ImportResult:
        """Apply exported records to the session.

        When no batch is open the import runs as its own batch: it commits
        only if every record succeeded and is rolled back otherwise.

        Raises:
            ImportFormatError: if the payload cannot be decoded at all
        """
        options = options or ImportOptions()
        records, row_errors = decode_snapshot(data)

        result = ImportResult(
            records_processed=len(records) + len(row_errors),
            records_failed=len(row_errors),
            errors=list(row_errors),
        )

        owns_batch = self._begin_if_idle()
        for record in records:
            error = self._import_record(record, options)
            if error is None:
                result.records_imported += 1
            else:
                result.records_failed += 1
                result.errors.append(error)
                logger.warning(f"Import record failed: {error}")

        result.success = result.records_failed == 0
        if owns_batch:
            if result.success:
                self.unit_of_work.commit()
            else:
                self.unit_of_work.rollback()
                result.records_imported = 0
                result.errors.append("Import rolled back")

        logger.info(
            f"Import: {result.records_imported} imported, {result.records_failed} failed"
        )
        return result

    def _import_record(self, record: ExportRecord, options: ImportOptions) -> str | None:
        """Apply one record; returns an error message or None."""
        device_id = record.device_id.strip()
        if not device_id:
            return "Record has no device id"
        if not record.circuit_number:
            return f"Device {device_id}: record has no circuit number"
        if (
            options.validate_before_import
            and record.address is not None
            and not 1 <= record.address <= self.config.circuit.max_address
        ):
            return (
                f"Device {device_id}: address {record.address} is outside valid range "
                f"(1-{self.config.circuit.max_address})"
            )

        circuit = self.find_circuit(record.circuit_number)
        if circuit is None:
            if not options.create_missing:
                return f"Device {device_id}: circuit not found: {record.circuit_number}"
            circuit = self._get_or_create_circuit(record.circuit_number, record.panel_id)

        device = self.find_device(device_id)
        if device is None:
            if not options.create_missing:
                return f"Device not found: {device_id}"
            device = Device(
                device_id=device_id,
                device_type=record.device_type,
                level=record.level,
                room=record.room,
                current_draw=record.current_draw,
            )
            self.unit_of_work.register_new(device, device_id)
            self._unassigned.append(device)

        if device.circuit_number != circuit.number:
            if device.circuit_number is not None:
                if not options.overwrite_existing:
                    return f"Device {device_id} is on circuit {device.circuit_number}"
                previous = self.find_circuit(device.circuit_number)
                if previous is not None:
                    self.assignment.remove_device(device, previous)
            outcome = self.assignment.assign_device(
                device,
                circuit,
                AssignmentOptions(
                    auto_assign_address=False,
                    validate_electrical=options.validate_before_import,
                ),
            )
            if isinstance(outcome, FailedOutcome):
                if device.circuit_number is None and device not in self._unassigned:
                    self._unassigned.append(device)
                return f"Device {device_id}: {outcome.message}"
            if device in self._unassigned:
                self._unassigned.remove(device)

        if record.address is not None and device.address != record.address:
            if device.address is not None and not options.overwrite_existing:
                return f"Device {device_id} already has address {device.address}"
            update = self.assignment.update_address(
                device, circuit, record.address, validate=options.validate_before_import
            )
            if not update.success:
                return f"Device {device_id}: {update.error_message}"
        return None
