"""Cell — a capacity-bounded housing unit."""

from datetime import datetime
from enum import Enum
from typing import Tuple

from pydantic import Field, computed_field, model_validator

from prison_records.errors import StateError
from prison_records.models.base import LocalDateTime, Record, RequiredStr


class CellType(str, Enum):
    SINGLE = "Single"
    DOUBLE = "Double"
    GENERAL = "General"


class SecurityLevel(str, Enum):
    MINIMUM = "Minimum"
    MEDIUM = "Medium"
    MAXIMUM = "Maximum"


class CellStatus(str, Enum):
    VACANT = "Vacant"
    OCCUPIED = "Occupied"
    FULL = "Full"
    UNDER_MAINTENANCE = "Under Maintenance"


class Cell(Record):
    """
    A cell holds at most `capacity` occupants.

    Status is a function of occupancy and the maintenance flag. Assigning or
    removing occupants never clears maintenance; only `end_maintenance` does.
    """

    id_field = "cell_number"
    lifecycle_fields = frozenset({"occupant_ids", "under_maintenance", "created_at"})

    cell_number: RequiredStr
    cell_type: CellType
    capacity: int = Field(gt=0)
    security_level: SecurityLevel
    occupant_ids: Tuple[str, ...] = ()
    under_maintenance: bool = False
    created_at: LocalDateTime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def validate_occupancy(self):
        if len(self.occupant_ids) > self.capacity:
            raise ValueError(
                f"Occupancy {len(self.occupant_ids)} exceeds capacity {self.capacity}"
            )
        if len(set(self.occupant_ids)) != len(self.occupant_ids):
            raise ValueError("Occupant IDs must be unique")
        return self

    @computed_field
    @property
    def current_occupancy(self) -> int:
        return len(self.occupant_ids)

    @computed_field
    @property
    def status(self) -> CellStatus:
        if self.under_maintenance:
            return CellStatus.UNDER_MAINTENANCE
        if self.current_occupancy == 0:
            return CellStatus.VACANT
        if self.current_occupancy >= self.capacity:
            return CellStatus.FULL
        return CellStatus.OCCUPIED

    @property
    def available_space(self) -> int:
        return self.capacity - self.current_occupancy

    @property
    def occupancy_percentage(self) -> float:
        return self.current_occupancy / self.capacity * 100

    @property
    def is_available(self) -> bool:
        """Open for new assignments: not in maintenance and not full."""
        return self.status in (CellStatus.VACANT, CellStatus.OCCUPIED)

    def has_occupant(self, occupant_id: str) -> bool:
        return occupant_id in self.occupant_ids

    def assign(self, occupant_id: str) -> "Cell":
        if self.has_occupant(occupant_id):
            return self
        if self.current_occupancy >= self.capacity:
            raise StateError(
                f"Cell {self.cell_number} is full ({self.current_occupancy}/{self.capacity})"
            )
        return self.model_copy(update={"occupant_ids": self.occupant_ids + (occupant_id,)})

    def remove(self, occupant_id: str) -> "Cell":
        if not self.has_occupant(occupant_id):
            raise StateError(f"{occupant_id} is not assigned to cell {self.cell_number}")
        remaining = tuple(o for o in self.occupant_ids if o != occupant_id)
        return self.model_copy(update={"occupant_ids": remaining})

    def start_maintenance(self) -> "Cell":
        if self.under_maintenance:
            raise StateError(f"Cell {self.cell_number} is already under maintenance")
        return self.model_copy(update={"under_maintenance": True})

    def end_maintenance(self) -> "Cell":
        if not self.under_maintenance:
            raise StateError(f"Cell {self.cell_number} is not under maintenance")
        return self.model_copy(update={"under_maintenance": False})
