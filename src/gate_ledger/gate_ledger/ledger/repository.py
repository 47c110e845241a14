from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import UserType
from .model import LedgerEntry


class LedgerRepository(Protocol):
    def find_open_entry(self, reg_no: str) -> Optional[LedgerEntry]:
        raise NotImplementedError

    def get_by_id(self, entry_id: str) -> Optional[LedgerEntry]:
        raise NotImplementedError

    def create(self, entry: LedgerEntry) -> None:
        """Persist an open entry. Raises ConflictError if the regNo already has one."""

        raise NotImplementedError

    def close(self, entry_id: str, at: datetime) -> bool:
        """Set check_out_time on an open entry. False if nothing was open under that id."""

        raise NotImplementedError

    def close_all_open(self, at: datetime) -> int:
        raise NotImplementedError

    def find_by_reg_no(self, reg_no: str) -> Sequence[LedgerEntry]:
        raise NotImplementedError

    def find_unresolved(self) -> Sequence[LedgerEntry]:
        raise NotImplementedError

    def list_all(self) -> Sequence[LedgerEntry]:
        """Newest check-in first."""

        raise NotImplementedError

    def list_open(self) -> Sequence[LedgerEntry]:
        raise NotImplementedError

    def resolve_unknown(self, *, reg_no: str, name: str, department: str, user_type: UserType) -> int:
        """Fill identity fields on rows of reg_no whose name is still NULL. Returns rows touched."""

        raise NotImplementedError
