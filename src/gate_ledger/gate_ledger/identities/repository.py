from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import UserType
from .model import Identity


class IdentityRepository(Protocol):
    """Two variant tables (students, staff) sharing one regNo keyspace."""

    def lookup(self, reg_no: str) -> Optional[Identity]:
        """Students first, then staff."""

        raise NotImplementedError

    def upsert(self, identity: Identity) -> None:
        """Insert or overwrite in the identity's own table.

        Raises ConflictError if the regNo is registered under the other variant.
        """

        raise NotImplementedError

    def delete_many(self, reg_nos: Iterable[str]) -> int:
        """Delete from both tables. Returns how many regNos were processed."""

        raise NotImplementedError

    def list_by_type(self, user_type: UserType) -> Sequence[Identity]:
        raise NotImplementedError
