from __future__ import annotations

from typing import Protocol

from ..identities.model import Identity


class RegistrationRepository(Protocol):
    def register_and_resolve(self, identity: Identity) -> int:
        """Upsert the identity and fill its unresolved ledger rows as one transaction.

        Raises ConflictError if the regNo is registered under the other variant.
        Returns the number of ledger rows updated.
        """

        raise NotImplementedError
