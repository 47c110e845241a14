from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector import errors

from ..core.enums import UserType
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import LedgerEntry
from .repository import LedgerRepository

_COLUMNS = "entry_id, reg_no, name, department, user_type, check_in_time, check_out_time"


def _row_to_entry(r: dict) -> LedgerEntry:
    return LedgerEntry(
        entry_id=r["entry_id"],
        reg_no=r["reg_no"],
        name=r.get("name"),
        department=r.get("department"),
        user_type=UserType(r["user_type"]),
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
    )


def resolve_unknown_on(cur, *, reg_no: str, name: str, department: str, user_type: UserType) -> int:
    """Fill identity fields of the regNo's unresolved rows inside the caller's transaction."""
    cur.execute(
        """
        UPDATE log_entries
        SET name=%s, department=%s, user_type=%s
        WHERE reg_no=%s AND name IS NULL
        """,
        (name, department, user_type.value, reg_no),
    )
    return int(cur.rowcount)


class MySQLLedgerRepository(LedgerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str = "", params: tuple = (), order: str = "check_in_time DESC") -> list[LedgerEntry]:
        sql = f"SELECT {_COLUMNS} FROM log_entries"
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {order}"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_entry(r) for r in fetchall(cur)]

    def find_open_entry(self, reg_no: str) -> Optional[LedgerEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM log_entries WHERE open_reg_no=%s", (reg_no,))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def get_by_id(self, entry_id: str) -> Optional[LedgerEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM log_entries WHERE entry_id=%s", (entry_id,))
            r = fetchone(cur)
            return _row_to_entry(r) if r else None

    def create(self, entry: LedgerEntry) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO log_entries(entry_id, reg_no, name, department, user_type, check_in_time)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        entry.entry_id,
                        entry.reg_no,
                        entry.name,
                        entry.department,
                        entry.user_type.value,
                        entry.check_in_time,
                    ),
                )
        except errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError(f"{entry.reg_no} already has an open entry") from e
            raise

    def close(self, entry_id: str, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE log_entries
                SET check_out_time=%s
                WHERE entry_id=%s AND check_out_time IS NULL
                """,
                (at, entry_id),
            )
            return cur.rowcount > 0

    def close_all_open(self, at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE log_entries SET check_out_time=%s WHERE check_out_time IS NULL", (at,))
            return int(cur.rowcount)

    def find_by_reg_no(self, reg_no: str) -> Sequence[LedgerEntry]:
        return self._select("reg_no=%s", (reg_no,))

    def find_unresolved(self) -> Sequence[LedgerEntry]:
        return self._select("name IS NULL")

    def list_all(self) -> Sequence[LedgerEntry]:
        return self._select()

    def list_open(self) -> Sequence[LedgerEntry]:
        return self._select("check_out_time IS NULL", order="check_in_time ASC")

    def resolve_unknown(self, *, reg_no: str, name: str, department: str, user_type: UserType) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return resolve_unknown_on(cur, reg_no=reg_no, name=name, department=department, user_type=user_type)
