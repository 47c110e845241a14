from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from ..identities.model import Identity
from ..identities.mysql_identity_repository import upsert_on
from ..ledger.mysql_ledger_repository import resolve_unknown_on
from .repository import RegistrationRepository


class MySQLRegistrationRepository(RegistrationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def register_and_resolve(self, identity: Identity) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            upsert_on(cur, identity)
            return resolve_unknown_on(
                cur,
                reg_no=identity.reg_no,
                name=identity.name,
                department=identity.department,
                user_type=identity.user_type,
            )
