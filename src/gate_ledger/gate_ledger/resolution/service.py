from __future__ import annotations

import logging

from ..core.enums import UserType
from ..identities.model import Identity
from ..identities.repository import IdentityRepository
from ..identities.service import build_identity
from ..ledger.repository import LedgerRepository
from .repository import RegistrationRepository

logger = logging.getLogger(__name__)


class ResolutionService:
    """Use case: attach identities to ledger rows that were logged as UNKNOWN.

    Both entry points only ever move a row's name from NULL to a value, so
    running them again (or concurrently) converges on the same ledger.
    """

    def __init__(
        self,
        identities: IdentityRepository,
        ledger: LedgerRepository,
        registrations: RegistrationRepository,
    ):
        self._identities = identities
        self._ledger = ledger
        self._registrations = registrations

    def _apply(self, identity: Identity) -> int:
        return self._ledger.resolve_unknown(
            reg_no=identity.reg_no,
            name=identity.name,
            department=identity.department,
            user_type=identity.user_type,
        )

    def register_and_resolve(
        self,
        *,
        reg_no: str,
        name: str,
        department: str,
        user_type: UserType | str,
    ) -> int:
        """Register the identity under the caller's variant and fix its unknown rows.

        Both writes commit together or not at all. Returns the number of
        ledger rows updated.
        """
        identity = build_identity(reg_no=reg_no, name=name, department=department, user_type=user_type)
        touched = self._registrations.register_and_resolve(identity)
        logger.info("Registered %s as %s, resolved %d entries", identity.reg_no, identity.user_type.value, touched)
        return touched

    def sweep_unresolved(self) -> int:
        """Resolve every unknown regNo that has since been registered.

        Returns how many regNos (not rows) were resolved.
        """
        unresolved = self._ledger.find_unresolved()
        reg_nos = sorted({e.reg_no for e in unresolved})
        logger.info("Sweep: %d unknown entries across %d regNos", len(unresolved), len(reg_nos))

        resolved = 0
        for reg_no in reg_nos:
            identity = self._identities.lookup(reg_no)
            if identity is None:
                continue
            self._apply(identity)
            resolved += 1
            logger.info("Sweep: resolved %s as %s", reg_no, identity.user_type.value)

        return resolved
