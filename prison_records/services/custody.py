"""
Custody Service — prisoners and the cells that house them.

Keeps a prisoner's `cell_number` and the cell's occupant list consistent:
every move writes both sides, reverting the first write if the second fails.
"""

import logging
from datetime import datetime
from typing import List, Optional

from prison_records.errors import StateError
from prison_records.models.cell import Cell
from prison_records.models.people import Prisoner
from prison_records.persistence.repository import Repository
from prison_records.reporting.filters import filter_by_field, filter_by_status
from prison_records.services.base import RecordService

logger = logging.getLogger(__name__)


class CustodyService(RecordService):
    def __init__(self, prisoners: Repository[Prisoner], cells: Repository[Cell]):
        self.prisoners = prisoners
        self.cells = cells

    # --- Prisoners ---

    def admit_prisoner(self, **fields) -> Prisoner:
        """Register a prisoner, optionally placing them straight into a cell."""
        cell_number = fields.pop("cell_number", None)
        prisoner = self._create(self.prisoners, Prisoner.create(**fields))
        if cell_number:
            prisoner = self.assign_prisoner_to_cell(prisoner.record_id, cell_number)
        return prisoner

    def get_prisoner(self, prisoner_id: str) -> Prisoner:
        return self.prisoners.require(prisoner_id)

    def list_prisoners(
        self, status: Optional[str] = None, cell_number: Optional[str] = None
    ) -> List[Prisoner]:
        prisoners = self.prisoners.list_all()
        if status:
            prisoners = filter_by_status(prisoners, status)
        if cell_number:
            prisoners = filter_by_field(prisoners, "cell_number", cell_number)
        return prisoners

    def release_prisoner(self, prisoner_id: str, now: Optional[datetime] = None) -> Prisoner:
        return self._leave_custody(prisoner_id, "Released", lambda p: p.release(now))

    def transfer_prisoner(self, prisoner_id: str, facility: str) -> Prisoner:
        return self._leave_custody(
            prisoner_id, f"Transferred to {facility}", lambda p: p.transfer(facility)
        )

    def _leave_custody(self, prisoner_id: str, action: str, transition) -> Prisoner:
        prisoner = self.prisoners.require(prisoner_id)
        updated = transition(prisoner)
        writes = [(self.prisoners, updated, prisoner)]
        cell = self._current_cell(prisoner)
        if cell is not None:
            writes.insert(0, (self.cells, cell.remove(prisoner_id), cell))
        self._write_all(writes)
        logger.info(f"{action}: Prisoner {prisoner_id}")
        return updated

    # --- Cells ---

    def add_cell(self, **fields) -> Cell:
        return self._create(self.cells, Cell.create(**fields))

    def get_cell(self, cell_number: str) -> Cell:
        return self.cells.require(cell_number)

    def list_cells(
        self, status: Optional[str] = None, security_level: Optional[str] = None
    ) -> List[Cell]:
        cells = self.cells.list_all()
        if status:
            cells = filter_by_status(cells, status)
        if security_level:
            cells = filter_by_field(cells, "security_level", security_level)
        return cells

    def available_cells(self, security_level: Optional[str] = None) -> List[Cell]:
        return [c for c in self.list_cells(security_level=security_level) if c.is_available]

    def set_maintenance(self, cell_number: str, under_maintenance: bool) -> Cell:
        if under_maintenance:
            return self._apply(
                self.cells, cell_number, "Maintenance started", lambda c: c.start_maintenance()
            )
        return self._apply(
            self.cells, cell_number, "Maintenance ended", lambda c: c.end_maintenance()
        )

    # --- Assignment ---

    def assign_prisoner_to_cell(self, prisoner_id: str, cell_number: str) -> Prisoner:
        """
        Place a prisoner in a cell, vacating their previous cell.

        Raises StateError when the prisoner is not in custody or the cell is
        full; nothing is written in that case.
        """
        prisoner = self.prisoners.require(prisoner_id)
        target = self.cells.require(cell_number)
        if prisoner.cell_number == cell_number and target.has_occupant(prisoner_id):
            return prisoner

        moved = prisoner.move_to_cell(cell_number)
        writes = [(self.cells, target.assign(prisoner_id), target)]
        previous = self._current_cell(prisoner)
        if previous is not None and previous.cell_number != cell_number:
            writes.append((self.cells, previous.remove(prisoner_id), previous))
        writes.append((self.prisoners, moved, prisoner))

        self._write_all(writes)
        logger.info(f"Assigned prisoner {prisoner_id} to cell {cell_number}")
        return moved

    def remove_prisoner_from_cell(self, prisoner_id: str) -> Prisoner:
        prisoner = self.prisoners.require(prisoner_id)
        cell = self._current_cell(prisoner)
        if cell is None:
            raise StateError(f"Prisoner {prisoner_id} is not assigned to a cell")
        unassigned = prisoner.move_to_cell(None)
        self._write_all([
            (self.cells, cell.remove(prisoner_id), cell),
            (self.prisoners, unassigned, prisoner),
        ])
        logger.info(f"Removed prisoner {prisoner_id} from cell {cell.cell_number}")
        return unassigned

    def _current_cell(self, prisoner: Prisoner) -> Optional[Cell]:
        if not prisoner.cell_number:
            return None
        cell = self.cells.get(prisoner.cell_number)
        if cell is None or not cell.has_occupant(prisoner.record_id):
            return None
        return cell
