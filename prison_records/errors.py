"""Error taxonomy shared by records, repositories and services."""


class RecordsError(Exception):
    """Base class for all prison records errors."""


class ValidationError(RecordsError, ValueError):
    """Raised when required input is missing or outside its domain."""


class StateError(RecordsError):
    """Raised when a transition's status precondition is not met."""


class PersistenceError(RecordsError):
    """Raised when the data store fails to read or write a record."""


class RecordNotFoundError(PersistenceError):
    """Raised when a record ID has no stored row."""
