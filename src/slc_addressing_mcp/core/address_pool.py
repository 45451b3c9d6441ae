"""Per-circuit address pool."""

from __future__ import annotations

from collections.abc import Iterator

from slc_addressing_mcp.errors import AddressConflictError, AddressRangeError
from slc_addressing_mcp.models.devices import Device


class AddressPool:
    """Address -> device occupancy map for one circuit.

    At most one device occupies an address. The pool is the only writer of
    ``Device.address`` so the device and the pool never disagree.
    """

    def __init__(self, max_address: int) -> None:
        if max_address < 1:
            raise AddressRangeError(f"max_address must be >= 1, got {max_address}")
        self._max_address = max_address
        self._occupants: dict[int, Device] = {}
        self._by_device: dict[str, int] = {}

    @property
    def max_address(self) -> int:
        return self._max_address

    @property
    def assigned_count(self) -> int:
        return len(self._occupants)

    @property
    def available_count(self) -> int:
        return self._max_address - len(self._occupants)

    @property
    def utilization(self) -> float:
        return len(self._occupants) / self._max_address

    def in_range(self, address: int) -> bool:
        return 1 <= address <= self._max_address

    def is_available(self, address: int) -> bool:
        return self.in_range(address) and address not in self._occupants

    def occupant(self, address: int) -> Device | None:
        return self._occupants.get(address)

    def address_of(self, device_id: str) -> int | None:
        return self._by_device.get(device_id)

    def occupied(self) -> list[int]:
        return sorted(self._occupants)

    def assign(self, address: int, device: Device) -> bool:
        """Give ``address`` to ``device``, releasing its previous slot.

        Returns False without mutating anything if the address is out of
        range or held by a different device (locked or not).
        """
        if not self.in_range(address):
            return False

        current = self._occupants.get(address)
        if current is not None:
            return current.device_id == device.device_id

        previous = self._by_device.get(device.device_id)
        if previous is not None:
            del self._occupants[previous]

        self._occupants[address] = device
        self._by_device[device.device_id] = address
        device.address = address
        return True

    def claim(self, address: int, device: Device) -> None:
        """Strict ``assign`` used when restoring known-good state."""
        if not self.in_range(address):
            raise AddressRangeError(
                f"Address {address} is outside valid range (1-{self._max_address})"
            )
        if not self.assign(address, device):
            holder = self._occupants[address]
            raise AddressConflictError(
                f"Address {address} is already assigned to {holder.device_id}"
            )

    def release(self, address: int) -> None:
        """Return ``address`` to the pool. No-op if it is not occupied."""
        device = self._occupants.pop(address, None)
        if device is None:
            return
        self._by_device.pop(device.device_id, None)
        device.address = None

    def clear(self) -> None:
        for address in list(self._occupants):
            self.release(address)

    def next_available(self, start: int = 1) -> int | None:
        for address in self.all_free():
            if address >= start:
                return address
        return None

    def nearby_available(self, address: int, count: int) -> list[int]:
        """Free addresses searched outward from ``address``.

        Closest first; on equal distance the higher address wins.
        """
        nearby: list[int] = []
        offset = 1
        while len(nearby) < count and offset <= self._max_address:
            if self.is_available(address + offset):
                nearby.append(address + offset)
            if len(nearby) < count and self.is_available(address - offset):
                nearby.append(address - offset)
            offset += 1
        return nearby

    def all_free(self, max_address: int | None = None) -> Iterator[int]:
        """Ascending free addresses from 1, recomputed on every call."""
        upper = self._max_address if max_address is None else min(max_address, self._max_address)
        for address in range(1, upper + 1):
            if address not in self._occupants:
                yield address
