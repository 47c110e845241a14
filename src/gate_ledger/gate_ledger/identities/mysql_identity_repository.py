from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import UserType
from ..core.exceptions import ConflictError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Identity
from .repository import IdentityRepository

_TABLES = {
    UserType.STUDENT: "students",
    UserType.STAFF: "staff",
}


def _table_for(user_type: UserType) -> str:
    try:
        return _TABLES[user_type]
    except KeyError:
        raise ValidationError(f"No identity table for user type {user_type.value}")


def _other(user_type: UserType) -> UserType:
    return UserType.STAFF if user_type == UserType.STUDENT else UserType.STUDENT


def upsert_on(cur, identity: Identity) -> None:
    """Upsert inside the caller's transaction."""
    table = _table_for(identity.user_type)
    other = _table_for(_other(identity.user_type))

    # Lock the other table's row (or gap) so a concurrent registration
    # under the other variant cannot slip in before this insert.
    cur.execute(f"SELECT reg_no FROM {other} WHERE reg_no=%s FOR UPDATE", (identity.reg_no,))
    if fetchone(cur):
        raise ConflictError(f"{identity.reg_no} is already registered as {_other(identity.user_type).value}")

    cur.execute(
        f"""
        INSERT INTO {table}(reg_no, name, department)
        VALUES(%s,%s,%s)
        ON DUPLICATE KEY UPDATE name=VALUES(name), department=VALUES(department)
        """,
        (identity.reg_no, identity.name, identity.department),
    )


class MySQLIdentityRepository(IdentityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def lookup(self, reg_no: str) -> Optional[Identity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT reg_no, name, department, 'STUDENT' AS user_type, 0 AS preference
                FROM students WHERE reg_no=%s
                UNION ALL
                SELECT reg_no, name, department, 'STAFF' AS user_type, 1 AS preference
                FROM staff WHERE reg_no=%s
                ORDER BY preference
                LIMIT 1
                """,
                (reg_no, reg_no),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Identity(
                reg_no=r["reg_no"],
                name=r["name"],
                department=r["department"],
                user_type=UserType(r["user_type"]),
            )

    def upsert(self, identity: Identity) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            upsert_on(cur, identity)

    def delete_many(self, reg_nos: Iterable[str]) -> int:
        reg_nos = list(reg_nos)
        if not reg_nos:
            return 0

        params = [(r,) for r in reg_nos]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany("DELETE FROM students WHERE reg_no=%s", params)
            cur.executemany("DELETE FROM staff WHERE reg_no=%s", params)
        return len(reg_nos)

    def list_by_type(self, user_type: UserType) -> Sequence[Identity]:
        table = _table_for(user_type)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT reg_no, name, department FROM {table} ORDER BY reg_no")
            return [
                Identity(
                    reg_no=r["reg_no"],
                    name=r["name"],
                    department=r["department"],
                    user_type=user_type,
                )
                for r in fetchall(cur)
            ]
