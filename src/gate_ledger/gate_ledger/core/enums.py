from __future__ import annotations

from enum import Enum


class UserType(str, Enum):
    """Who a ledger entry belongs to. STUDENT/STAFF double as the identity variant."""

    STUDENT = "STUDENT"
    STAFF = "STAFF"
    UNKNOWN = "UNKNOWN"


class Direction(str, Enum):
    """Which transition a scan produced."""

    IN = "IN"
    OUT = "OUT"
