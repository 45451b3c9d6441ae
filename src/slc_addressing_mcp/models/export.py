"""Snapshot export/import models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

# Tabular column order (CSV header)
EXPORT_COLUMNS = [
    "Panel",
    "Circuit",
    "DeviceId",
    "Address",
    "DeviceType",
    "Level",
    "Room",
    "CurrentDraw",
]


class ExportRecord(BaseModel):
    """One device row of the tabular snapshot."""

    panel_id: str = Field(default="")
    circuit_number: str = Field(default="")
    device_id: str = Field(default="")
    address: int | None = Field(default=None)
    device_type: str = Field(default="")
    level: str = Field(default="")
    room: str = Field(default="")
    current_draw: float = Field(default=0.0, ge=0)

    @field_validator("address", mode="before")
    @classmethod
    def _blank_address_is_none(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return int(value) if value else None
        return value

    def to_row(self) -> list[str]:
        return [
            self.panel_id,
            self.circuit_number,
            self.device_id,
            "" if self.address is None else str(self.address),
            self.device_type,
            self.level,
            self.room,
            repr(self.current_draw),
        ]

    @classmethod
    def from_row(cls, row: list[str]) -> ExportRecord:
        """Build a record from a CSV row in ``EXPORT_COLUMNS`` order."""
        if len(row) < len(EXPORT_COLUMNS):
            raise ValueError(
                f"Expected {len(EXPORT_COLUMNS)} columns, got {len(row)}"
            )
        panel, circuit, device_id, address, device_type, level, room, draw = (
            field.strip() for field in row[: len(EXPORT_COLUMNS)]
        )
        return cls(
            panel_id=panel,
            circuit_number=circuit,
            device_id=device_id,
            address=address,
            device_type=device_type,
            level=level,
            room=room,
            current_draw=float(draw) if draw else 0.0,
        )


class CircuitExport(BaseModel):
    circuit_number: str
    device_count: int = 0
    device_utilization: float = 0.0
    devices: list[ExportRecord] = Field(default_factory=list)


class PanelExport(BaseModel):
    panel_id: str
    circuits: list[CircuitExport] = Field(default_factory=list)


class AddressingSnapshot(BaseModel):
    """Structured (JSON) snapshot of every panel, circuit and device."""

    exported_at: datetime = Field(default_factory=datetime.now)
    panels: list[PanelExport] = Field(default_factory=list)

    def records(self) -> list[ExportRecord]:
        """Flatten to tabular records."""
        rows: list[ExportRecord] = []
        for panel in self.panels:
            for circuit in panel.circuits:
                rows.extend(circuit.devices)
        return rows
