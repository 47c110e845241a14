from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from ..core.enums import UserType


@dataclass(frozen=True)
class Identity:
    """A registered person. `user_type` is the variant tag (STUDENT or STAFF)."""

    reg_no: str
    name: str
    department: str
    user_type: UserType

    def to_dict(self) -> dict:
        return {
            "regNo": self.reg_no,
            "name": self.name,
            "department": self.department,
            "userType": self.user_type.value,
        }


@dataclass(frozen=True)
class ImportReport:
    imported: int
    skipped: List[Tuple[str, str]]

    def to_dict(self) -> dict:
        return {
            "imported": self.imported,
            "skipped": [{"regNo": reg_no, "reason": reason} for reg_no, reason in self.skipped],
        }
