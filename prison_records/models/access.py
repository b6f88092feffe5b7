"""Access Control — per-employee, per-module permission grants."""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field

from prison_records.models.base import LocalDateTime, Record, RequiredStr, resolve_now

logger = logging.getLogger(__name__)


class PermissionLevel(str, Enum):
    """Ordered permission levels: None < View < Edit < Full."""
    NONE = "None"
    VIEW = "View"
    EDIT = "Edit"
    FULL = "Full"

    @property
    def rank(self) -> int:
        return _PERMISSION_RANK[self]

    def allows(self, required: "PermissionLevel") -> bool:
        return self.rank >= required.rank


_PERMISSION_RANK = {
    PermissionLevel.NONE: 0,
    PermissionLevel.VIEW: 1,
    PermissionLevel.EDIT: 2,
    PermissionLevel.FULL: 3,
}


class AccessStatus(str, Enum):
    ACTIVE = "Active"
    REVOKED = "Revoked"
    EXPIRED = "Expired"                     # Derived, never stored


class AccessControl(Record):
    """
    A permission grant for one system module.

    Status is not stored. It is derived from the active flag and the expiry
    date each time it is read, so an expired grant needs no write to become
    Expired.
    """

    id_field = "control_id"
    lifecycle_fields = frozenset({"is_active", "revoked_by", "revoked_at", "granted_date"})

    control_id: RequiredStr
    employee_id: RequiredStr
    employee_name: RequiredStr
    module: RequiredStr                     # e.g., "PRISONER_MANAGEMENT", "SECURITY"
    permission_level: PermissionLevel
    granted_by: Optional[str] = None
    granted_date: date = Field(default_factory=date.today)
    expires_on: Optional[str] = None        # ISO date; None for permanent grants
    is_active: bool = True
    revoked_by: Optional[str] = None
    revoked_at: Optional[LocalDateTime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        True when the expiry date is strictly before today.

        A malformed expiry date never expires the grant.
        """
        if not self.expires_on:
            return False
        try:
            expiry = date.fromisoformat(self.expires_on.strip())
        except ValueError:
            logger.warning(
                f"Unparseable expiry date {self.expires_on!r} on access "
                f"control {self.control_id}; treating as not expired"
            )
            return False
        return resolve_now(now).date() > expiry

    def effective_status(self, now: Optional[datetime] = None) -> AccessStatus:
        if not self.is_active:
            return AccessStatus.REVOKED
        if self.is_expired(now):
            return AccessStatus.EXPIRED
        return AccessStatus.ACTIVE

    @computed_field
    @property
    def status(self) -> AccessStatus:
        return self.effective_status()

    def grants(self, required: PermissionLevel, now: Optional[datetime] = None) -> bool:
        return (
            self.effective_status(now) == AccessStatus.ACTIVE
            and self.permission_level.allows(required)
        )

    def can_view(self, now: Optional[datetime] = None) -> bool:
        return self.grants(PermissionLevel.VIEW, now)

    def can_edit(self, now: Optional[datetime] = None) -> bool:
        return self.grants(PermissionLevel.EDIT, now)

    def has_full_access(self, now: Optional[datetime] = None) -> bool:
        return self.grants(PermissionLevel.FULL, now)

    def revoke(
        self, revoked_by: Optional[str] = None, now: Optional[datetime] = None
    ) -> "AccessControl":
        """Deactivate the grant. Expired grants may still be revoked."""
        return self._transition(
            "revoke",
            (AccessStatus.ACTIVE, AccessStatus.EXPIRED),
            is_active=False,
            revoked_by=revoked_by,
            revoked_at=resolve_now(now),
        )
