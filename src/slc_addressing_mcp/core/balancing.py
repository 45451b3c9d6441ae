"""Circuit load balancing."""

from __future__ import annotations

import logging
import statistics
import threading
from collections import Counter
from collections.abc import Sequence

from slc_addressing_mcp.core.assignment import AssignmentEngine
from slc_addressing_mcp.core.circuits import Circuit, CircuitStateSnapshot
from slc_addressing_mcp.models.devices import Device
from slc_addressing_mcp.models.options import AssignmentOptions, BalancingOptions
from slc_addressing_mcp.models.results import AssignedOutcome, BalancingResult, DeviceMove

logger = logging.getLogger(__name__)


def imbalance(circuits: Sequence[Circuit]) -> float:
    """Population standard deviation of device utilization (0 for none)."""
    if not circuits:
        return 0.0
    return statistics.pstdev(c.device_utilization for c in circuits)


class BalancingEngine:
    """Moves devices from overloaded to underloaded circuits.

    A circuit is overloaded above the target utilization and underloaded
    below half of it. The run is kept only if the imbalance strictly
    decreases; otherwise every circuit is restored to its pre-run state.
    """

    def __init__(self, assignment: AssignmentEngine, default_target: float = 0.8) -> None:
        self.assignment = assignment
        self.default_target = default_target

    def balance(
        self,
        circuits: Sequence[Circuit],
        options: BalancingOptions | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BalancingResult:
        options = options or BalancingOptions()
        target = options.target_utilization or self.default_target
        circuits = list(circuits)
        snapshot = CircuitStateSnapshot(circuits)
        result = BalancingResult(target_utilization=target)

        try:
            result.imbalance_before = imbalance(circuits)

            overloaded = [c for c in circuits if c.device_utilization > target]
            underloaded = [c for c in circuits if c.device_utilization < target / 2]

            for source in overloaded:
                if result.cancelled:
                    break
                for device in self._select_devices(source, target, options):
                    if cancel_event is not None and cancel_event.is_set():
                        result.cancelled = True
                        break
                    move = self._move(device, source, underloaded, target)
                    result.moves.append(move)
                    if move.success:
                        result.devices_moved += 1

            result.imbalance_after = imbalance(circuits)
            result.success = result.imbalance_after < result.imbalance_before
        except Exception as e:
            snapshot.restore()
            logger.error(f"Balancing failed, circuits restored: {e}")
            return BalancingResult(
                target_utilization=target,
                imbalance_before=result.imbalance_before,
                imbalance_after=result.imbalance_before,
                error=str(e),
            )

        if not result.success and result.devices_moved:
            snapshot.restore()
            result.imbalance_after = imbalance(circuits)
            result.devices_moved = 0
            logger.warning("Balancing did not reduce imbalance, circuits restored")

        logger.info(
            f"Balancing: {result.devices_moved} move(s), imbalance "
            f"{result.imbalance_before:.4f} -> {result.imbalance_after:.4f}"
        )
        return result

    def _select_devices(
        self, circuit: Circuit, target: float, options: BalancingOptions
    ) -> list[Device]:
        candidates = [d for d in circuit.devices if not d.is_locked]
        if options.maintain_location_grouping:
            group_sizes = Counter(d.location_key for d in circuit.devices)
            # Stable sort keeps wiring order within equal group sizes
            candidates.sort(key=lambda d: group_sizes[d.location_key])

        selected: list[Device] = []
        for device in candidates:
            projected = (circuit.device_count - len(selected)) / circuit.max_devices
            if projected <= target:
                break
            selected.append(device)
        return selected

    @staticmethod
    def _find_target(
        device: Device, source: Circuit, candidates: Sequence[Circuit], target: float
    ) -> Circuit | None:
        qualifying = [
            c for c in candidates
            if c is not source
            and (c.device_count + 1) / c.max_devices < target
            and c.projected_current(device) <= c.max_current
        ]
        if not qualifying:
            return None
        return min(qualifying, key=lambda c: c.device_utilization)

    def _move(
        self,
        device: Device,
        source: Circuit,
        candidates: Sequence[Circuit],
        target_utilization: float,
    ) -> DeviceMove:
        target = self._find_target(device, source, candidates, target_utilization)
        if target is None:
            return DeviceMove(
                device_id=device.device_id,
                from_circuit=source.number,
                to_circuit="",
                message="No qualifying target circuit",
            )

        move = DeviceMove(
            device_id=device.device_id,
            from_circuit=source.number,
            to_circuit=target.number,
        )

        check = self.assignment.validator.validate_electrical(device, target)
        if not check.is_valid:
            move.message = check.message
            return move

        position = device.physical_position
        address = device.address
        lock_state = device.lock_state

        self.assignment.remove_device(device, source)
        outcome = self.assignment.assign_device(device, target, AssignmentOptions())

        if isinstance(outcome, AssignedOutcome):
            move.success = True
            move.message = f"Moved to address {outcome.address}"
            logger.debug(f"Moved {device.device_id}: {source.number} -> {target.number}")
            return move

        # Put the device back where it was
        source.add_device(device, position=position)
        if address is not None:
            source.pool.assign(address, device)
        device.lock_state = lock_state
        move.message = outcome.message
        logger.warning(f"Move of {device.device_id} failed, restored to {source.number}: {outcome.message}")
        return move
