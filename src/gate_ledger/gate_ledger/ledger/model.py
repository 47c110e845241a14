from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import Direction, UserType


@dataclass(frozen=True)
class LedgerEntry:
    """One check-in, optionally closed by a check-out.

    `name is None` marks an entry logged for a regNo that was not registered
    at scan time (user_type UNKNOWN).
    """

    entry_id: str
    reg_no: str
    name: Optional[str]
    department: Optional[str]
    user_type: UserType
    check_in_time: datetime
    check_out_time: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None

    @property
    def is_unresolved(self) -> bool:
        return self.name is None

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "regNo": self.reg_no,
            "name": self.name,
            "department": self.department,
            "userType": self.user_type.value,
            "checkInTime": isoformat_or_none(self.check_in_time),
            "checkOutTime": isoformat_or_none(self.check_out_time),
        }


@dataclass(frozen=True)
class ScanResult:
    entry: LedgerEntry
    direction: Direction

    def to_dict(self) -> dict:
        return {"entry": self.entry.to_dict(), "direction": self.direction.value}


@dataclass(frozen=True)
class UnknownSummary:
    """Read-model for the unknown-entries screen: one row per unresolved regNo."""

    reg_no: str
    scan_count: int
    last_seen: datetime
    suggested_type: UserType

    def to_dict(self) -> dict:
        return {
            "regNo": self.reg_no,
            "count": self.scan_count,
            "lastSeen": isoformat_or_none(self.last_seen),
            "suggestedType": self.suggested_type.value,
        }
