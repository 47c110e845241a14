from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence

from ..common.validators import normalize_reg_no, require_non_empty, require_variant
from ..core.enums import UserType
from ..core.exceptions import ConflictError, ValidationError
from .classifier import classify
from .model import Identity, ImportReport
from .repository import IdentityRepository

logger = logging.getLogger(__name__)


def build_identity(
    *,
    reg_no: Optional[str],
    name: Optional[str],
    department: Optional[str],
    user_type: UserType | str | None,
) -> Identity:
    """Validate raw form/JSON fields into an Identity."""
    return Identity(
        reg_no=normalize_reg_no(reg_no),
        name=require_non_empty(name, "Name"),
        department=require_non_empty(department, "Department"),
        user_type=require_variant(user_type),
    )


class IdentityService:
    """Use case: master-table administration (students and staff)."""

    def __init__(self, identities: IdentityRepository):
        self._identities = identities

    def lookup(self, reg_no: str) -> Optional[Identity]:
        return self._identities.lookup(normalize_reg_no(reg_no))

    def list_identities(self, user_type: UserType | str) -> Sequence[Identity]:
        return self._identities.list_by_type(require_variant(user_type))

    def upsert_identity(
        self,
        *,
        reg_no: str,
        name: str,
        department: str,
        user_type: UserType | str,
    ) -> Identity:
        identity = build_identity(reg_no=reg_no, name=name, department=department, user_type=user_type)
        self._identities.upsert(identity)
        logger.info("Saved %s %s", identity.user_type.value, identity.reg_no)
        return identity

    def add_identity(self, *, reg_no: str, name: str, department: str) -> Identity:
        """Upsert with the variant guessed from the regNo prefix."""
        reg_no = normalize_reg_no(reg_no)
        return self.upsert_identity(reg_no=reg_no, name=name, department=department, user_type=classify(reg_no))

    def import_identities(self, rows: Iterable[Mapping[str, Optional[str]]]) -> ImportReport:
        """Bulk upsert of {regNo, name, department} rows.

        A bad row is skipped and reported; it does not stop the rest.
        """
        imported = 0
        skipped: list[tuple[str, str]] = []

        for row in rows:
            reg_no = (row.get("regNo") or "").strip()
            try:
                self.add_identity(reg_no=reg_no, name=row.get("name"), department=row.get("department"))
                imported += 1
            except (ValidationError, ConflictError) as e:
                logger.warning("Skipped import row %r: %s", reg_no, e)
                skipped.append((reg_no, str(e)))

        logger.info("Imported %d identities (%d skipped)", imported, len(skipped))
        return ImportReport(imported=imported, skipped=skipped)

    def delete_identities(self, reg_nos: Iterable[str]) -> int:
        """Remove from both tables. The count is regNos processed, not rows found."""
        cleaned = []
        seen = set()
        for r in reg_nos:
            r = (r or "").strip()
            if r and r not in seen:
                seen.add(r)
                cleaned.append(r)

        count = self._identities.delete_many(cleaned)
        logger.info("Deleted %d regNos from master tables", count)
        return count
