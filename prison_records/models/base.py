"""
Record base — the shared shape of every facility record.

Records are frozen pydantic models. Status and lifecycle fields are never
assigned directly: a guarded transition method returns a new record and the
receiver is left untouched, so a record's status is always the product of
the transitions that produced it.
"""

import logging
from datetime import datetime
from typing import Annotated, ClassVar, FrozenSet, Iterable, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from prison_records.errors import StateError, ValidationError

logger = logging.getLogger(__name__)

# Stripped, non-empty text
RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def to_local_naive(value: datetime) -> datetime:
    """Convert an offset-aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# Every stored timestamp is naive local time
LocalDateTime = Annotated[datetime, AfterValidator(to_local_naive)]


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Wall-clock time unless the caller pins one."""
    return to_local_naive(now) if now is not None else datetime.now()


class Record(BaseModel):
    """Base class for all facility records. Identity is the only equality key."""

    model_config = ConfigDict(frozen=True)

    id_field: ClassVar[str] = "id"
    # Fields only transitions (or restore from storage) may set
    lifecycle_fields: ClassVar[FrozenSet[str]] = frozenset()

    @property
    def record_id(self) -> str:
        return getattr(self, self.id_field)

    @classmethod
    def create(cls, **fields):
        """Validate required fields and build a record in its initial state."""
        protected = cls.lifecycle_fields.intersection(fields)
        if protected:
            raise ValidationError(
                f"{cls.__name__}: {', '.join(sorted(protected))} "
                f"can only be set by transitions"
            )
        return cls.restore(**fields)

    @classmethod
    def restore(cls, **fields):
        """Rehydrate a stored record, lifecycle fields included."""
        try:
            return cls(**fields)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {cls.__name__}: {e}") from e

    def _transition(self, action: str, allowed_from: Iterable, **updates):
        """Return a copy with `updates` applied if the current status allows `action`."""
        current = getattr(self, "status")
        if current not in tuple(allowed_from):
            logger.warning(
                f"Refused {action} on {type(self).__name__} {self.record_id} "
                f"in status {current.value}"
            )
            raise StateError(
                f"Cannot {action} {type(self).__name__} {self.record_id}: "
                f"status is {current.value}"
            )
        return self.model_copy(update=updates)

    def __eq__(self, other):
        if not isinstance(other, Record):
            return NotImplemented
        return type(self) is type(other) and self.record_id == other.record_id

    def __hash__(self):
        return hash((type(self).__name__, self.record_id))
