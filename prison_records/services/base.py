"""
Shared command plumbing for the record services.

A command loads the stored record, computes the transitioned copy and
persists it. Nothing is applied optimistically: if the transition is refused
nothing is written, and if the write fails the stored row and every
previously returned record stay as they were.
"""

import logging
from typing import Callable, List, Sequence, Tuple, TypeVar

from prison_records.errors import PersistenceError
from prison_records.models.base import Record
from prison_records.persistence.repository import Repository

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

# (repository, new record, stored record it replaces)
Write = Tuple[Repository, Record, Record]


class RecordService:
    def _apply(
        self,
        repository: Repository[R],
        record_id: str,
        action: str,
        transition: Callable[[R], R],
    ) -> R:
        current = repository.require(record_id)
        updated = transition(current)
        repository.update(updated)
        logger.info(f"{action}: {type(updated).__name__} {record_id}")
        return updated

    def _create(self, repository: Repository[R], record: R) -> R:
        repository.create(record)
        logger.info(f"Created {type(record).__name__} {record.record_id}")
        return record

    def _write_all(self, writes: Sequence[Write]) -> None:
        """
        Persist several updates as one command.

        On failure the writes already made are reverted in reverse order
        before the error propagates.
        """
        done: List[Write] = []
        try:
            for write in writes:
                repository, new, _ = write
                repository.update(new)
                done.append(write)
        except PersistenceError:
            for repository, new, old in reversed(done):
                try:
                    repository.update(old)
                except PersistenceError as e:
                    logger.error(
                        f"Rollback of {type(new).__name__} {new.record_id} failed: {e}"
                    )
            raise
