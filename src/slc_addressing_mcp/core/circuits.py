"""Circuit and panel records."""

from __future__ import annotations

from collections.abc import Iterable

from slc_addressing_mcp.core.address_pool import AddressPool
from slc_addressing_mcp.errors import DuplicateCircuitError
from slc_addressing_mcp.models.config import CircuitLimits
from slc_addressing_mcp.models.devices import Device, LockState
from slc_addressing_mcp.models.results import CircuitUtilization


class Circuit:
    """A signaling line circuit owning its devices and address pool.

    Utilization values are properties over the live device list, so they are
    always consistent with the current collection.
    """

    def __init__(
        self,
        number: str,
        panel_id: str = "",
        limits: CircuitLimits | None = None,
        safe_capacity_threshold: float = 0.8,
    ) -> None:
        limits = limits or CircuitLimits()
        self.number = number
        self.panel_id = panel_id
        self.max_devices = limits.max_devices
        self.max_address = limits.max_address
        self.max_current = limits.max_current
        self.safe_capacity_threshold = safe_capacity_threshold
        self.pool = AddressPool(limits.max_address)
        self._devices: list[Device] = []

    def __repr__(self) -> str:
        return f"Circuit({self.number!r}, devices={len(self._devices)})"

    @property
    def devices(self) -> tuple[Device, ...]:
        return tuple(self._devices)

    @property
    def device_count(self) -> int:
        return len(self._devices)

    @property
    def addressed_count(self) -> int:
        return self.pool.assigned_count

    @property
    def total_current(self) -> float:
        return sum(d.current_draw for d in self._devices)

    @property
    def total_unit_loads(self) -> int:
        return sum(d.unit_loads for d in self._devices)

    @property
    def device_utilization(self) -> float:
        return len(self._devices) / self.max_devices

    @property
    def current_utilization(self) -> float:
        return self.total_current / self.max_current

    @property
    def address_utilization(self) -> float:
        return self.pool.utilization

    @property
    def is_near_capacity(self) -> bool:
        return self.device_utilization > self.safe_capacity_threshold

    def contains(self, device_id: str) -> bool:
        return self.get_device(device_id) is not None

    def get_device(self, device_id: str) -> Device | None:
        for device in self._devices:
            if device.device_id == device_id:
                return device
        return None

    def projected_device_count(self, device: Device) -> int:
        """Member count if ``device`` were on this circuit."""
        return len(self._devices) + (0 if self.contains(device.device_id) else 1)

    def projected_current(self, device: Device) -> float:
        """Total draw if ``device`` were on this circuit (counted once)."""
        others = sum(d.current_draw for d in self._devices if d.device_id != device.device_id)
        return others + device.current_draw

    def add_device(self, device: Device, position: int | None = None) -> None:
        """Attach a device at the end of the wiring order (or at ``position``)."""
        if self.contains(device.device_id):
            return
        device.circuit_number = self.number
        device.physical_position = self._next_physical_position()
        self._devices.append(device)
        if position is not None:
            self.reorder_device(device, position)

    def remove_device(self, device: Device) -> bool:
        """Detach a device, returning its address to the pool."""
        member = self.get_device(device.device_id)
        if member is None:
            return False
        address = self.pool.address_of(member.device_id)
        if address is not None:
            self.pool.release(address)
        self._devices.remove(member)
        member.circuit_number = None
        member.physical_position = 0
        self._resequence()
        return True

    def reorder_device(self, device: Device, new_position: int) -> None:
        """Change wiring order only; the address stays with the device."""
        member = self.get_device(device.device_id)
        if member is None:
            return
        ordered = sorted(self._devices, key=lambda d: d.physical_position)
        ordered.remove(member)
        index = min(max(new_position, 1), len(ordered) + 1) - 1
        ordered.insert(index, member)
        for i, d in enumerate(ordered, start=1):
            d.physical_position = i
        self._devices = ordered

    def utilization(self, spare_capacity: float = 0.0) -> CircuitUtilization:
        usable = int(self.max_devices * (1 - spare_capacity))
        return CircuitUtilization(
            circuit_id=self.number,
            panel_id=self.panel_id,
            device_count=self.device_count,
            max_devices=self.max_devices,
            device_utilization=self.device_utilization,
            current_draw=self.total_current,
            max_current=self.max_current,
            current_utilization=self.current_utilization,
            used_addresses=self.pool.assigned_count,
            available_addresses=self.pool.available_count,
            address_utilization=self.address_utilization,
            spare_devices=max(usable - self.device_count, 0),
        )

    def _next_physical_position(self) -> int:
        if not self._devices:
            return 1
        return max(d.physical_position for d in self._devices) + 1

    def _resequence(self) -> None:
        self._devices.sort(key=lambda d: d.physical_position)
        for i, device in enumerate(self._devices, start=1):
            device.physical_position = i


class Panel:
    """A named group of circuits with unique circuit numbers."""

    def __init__(self, panel_id: str) -> None:
        self.panel_id = panel_id
        self._circuits: dict[str, Circuit] = {}

    def __repr__(self) -> str:
        return f"Panel({self.panel_id!r}, circuits={len(self._circuits)})"

    @property
    def circuits(self) -> list[Circuit]:
        return list(self._circuits.values())

    @property
    def total_devices(self) -> int:
        return sum(c.device_count for c in self._circuits.values())

    @property
    def total_addressed(self) -> int:
        return sum(c.addressed_count for c in self._circuits.values())

    @property
    def total_current(self) -> float:
        return sum(c.total_current for c in self._circuits.values())

    def add_circuit(self, circuit: Circuit) -> None:
        if circuit.number in self._circuits:
            raise DuplicateCircuitError(
                f"Panel {self.panel_id} already contains circuit {circuit.number}"
            )
        circuit.panel_id = self.panel_id
        self._circuits[circuit.number] = circuit

    def get_circuit(self, number: str) -> Circuit | None:
        return self._circuits.get(number)


def extract_panel_id(circuit_number: str | None, separator: str = "-",
                     default: str = "DefaultPanel") -> str:
    """Panel id is the circuit number prefix (``"P1-C3"`` -> ``"P1"``)."""
    if not circuit_number:
        return default
    prefix = circuit_number.split(separator, 1)[0].strip()
    return prefix or default


class CircuitStateSnapshot:
    """Memento of circuit membership, wiring order, addresses and locks."""

    def __init__(self, circuits: Iterable[Circuit]) -> None:
        self._entries: list[tuple[Circuit, list[tuple[Device, int, int | None, LockState]]]] = []
        self._devices: dict[str, Device] = {}
        for circuit in circuits:
            members = [
                (d, d.physical_position, d.address, d.lock_state)
                for d in circuit.devices
            ]
            self._entries.append((circuit, members))
            for device, *_ in members:
                self._devices[device.device_id] = device

    def device_ids(self) -> set[str]:
        return set(self._devices)

    def restore(self) -> None:
        """Put every captured circuit back exactly as captured."""
        for circuit, _ in self._entries:
            for device in list(circuit.devices):
                circuit.remove_device(device)
            circuit.pool.clear()

        for circuit, members in self._entries:
            for device, position, address, lock_state in members:
                circuit.add_device(device)
                device.physical_position = position
                device.lock_state = lock_state
                device.address = None
                if address is not None:
                    circuit.pool.claim(address, device)
            circuit._resequence()
