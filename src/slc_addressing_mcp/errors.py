"""Custom exception hierarchy for the SLC addressing engine."""


class AddressingError(Exception):
    """Base exception for all addressing engine errors."""


class InputError(AddressingError):
    """Empty or invalid identifiers, missing collections."""


class DeviceNotFoundError(InputError):
    """Raised when a device id is not known to the session."""


class CircuitNotFoundError(InputError):
    """Raised when a circuit id is not known to the session."""


class DuplicateCircuitError(InputError):
    """Raised when a panel already contains the circuit number."""


class AddressError(AddressingError):
    """Address pool errors."""


class AddressRangeError(AddressError):
    """Raised when an address is outside the circuit's valid range."""


class AddressConflictError(AddressError):
    """Raised when an address is already occupied by another device."""


class TransactionError(AddressingError):
    """Transaction boundary misuse (begin while active, commit with no batch)."""


class ImportFormatError(AddressingError):
    """Snapshot payload could not be parsed."""
