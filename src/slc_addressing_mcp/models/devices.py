"""Device models for signaling line circuit addressing."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class LockState(str, Enum):
    UNLOCKED = "unlocked"
    LOCKED = "locked"  # Installed in field, address may never move
    MANUAL = "manual"  # Hand-picked address


class DeviceCategory(str, Enum):
    SMOKE_DETECTOR = "smoke_detector"
    HEAT_DETECTOR = "heat_detector"
    MANUAL_STATION = "manual_station"
    STROBE = "strobe"
    HORN_STROBE = "horn_strobe"
    SPEAKER = "speaker"
    SPEAKER_STROBE = "speaker_strobe"
    MODULE = "module"
    ISOLATOR = "isolator"
    REPEATER = "repeater"
    OTHER = "other"


class DeviceSnapshot(BaseModel):
    """A device record as supplied by the host model.

    Addresses and circuit numbers may arrive as strings; they are parsed here
    so the engine only ever sees integers and ``None``.
    """

    element_id: str = Field(..., min_length=1, description="외부 식별자")
    level: str = Field(default="")
    zone: str = Field(default="")
    room: str = Field(default="")
    family_name: str = Field(default="")
    type_name: str = Field(default="")
    device_type: str = Field(default="")
    x: float = Field(default=0.0)
    y: float = Field(default=0.0)
    z: float = Field(default=0.0)
    current_draw: float = Field(default=0.0, ge=0, description="알람 전류 (A)")
    unit_loads: int = Field(default=1, ge=0)
    has_strobe: bool = Field(default=False)
    has_speaker: bool = Field(default=False)
    is_isolator: bool = Field(default=False)
    is_repeater: bool = Field(default=False)
    circuit_number: str | None = Field(default=None, description="기존 회로 번호")
    address: int | None = Field(default=None, ge=1, description="기존 주소")
    lock_state: LockState = Field(default=LockState.UNLOCKED)

    @field_validator("element_id", mode="before")
    @classmethod
    def _coerce_element_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("circuit_number", mode="before")
    @classmethod
    def _blank_circuit_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("address", mode="before")
    @classmethod
    def _blank_address_is_none(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return int(value) if value else None
        return value


class Device(BaseModel):
    """An addressable device on a signaling line circuit.

    ``circuit_number`` is a back-reference only; the owning ``Circuit`` holds
    the device. ``address`` is written by the circuit's address pool and is
    meaningful only relative to that circuit.
    """

    device_id: str = Field(..., min_length=1)
    device_type: str = Field(default="")
    family_name: str = Field(default="")
    level: str = Field(default="")
    zone: str = Field(default="")
    room: str = Field(default="")
    x: float = Field(default=0.0)
    y: float = Field(default=0.0)
    z: float = Field(default=0.0)
    current_draw: float = Field(default=0.0, ge=0)
    unit_loads: int = Field(default=1, ge=0)
    is_notification: bool = Field(default=False)
    is_isolator: bool = Field(default=False)
    is_repeater: bool = Field(default=False)
    physical_position: int = Field(default=0, ge=0, description="설치(배선) 순서")
    address: int | None = Field(default=None, ge=1)
    lock_state: LockState = Field(default=LockState.UNLOCKED)
    circuit_number: str | None = Field(default=None)

    @property
    def is_addressed(self) -> bool:
        return self.address is not None

    @property
    def is_locked(self) -> bool:
        return self.lock_state == LockState.LOCKED

    @property
    def location_key(self) -> tuple[str, str]:
        """Level + room grouping key used by balancing."""
        return (self.level, self.room)

    @classmethod
    def from_snapshot(cls, snapshot: DeviceSnapshot) -> Device:
        """Create an unplaced device from a host snapshot.

        The snapshot's circuit and address are not applied here; the session
        places the device and claims the address through the pool.
        """
        return cls(
            device_id=snapshot.element_id,
            device_type=snapshot.device_type,
            family_name=snapshot.family_name or snapshot.type_name,
            level=snapshot.level,
            zone=snapshot.zone,
            room=snapshot.room,
            x=snapshot.x,
            y=snapshot.y,
            z=snapshot.z,
            current_draw=snapshot.current_draw,
            unit_loads=snapshot.unit_loads,
            is_notification=snapshot.has_strobe or snapshot.has_speaker,
            is_isolator=snapshot.is_isolator,
            is_repeater=snapshot.is_repeater,
        )
