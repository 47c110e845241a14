from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from mysql.connector import errors

from ..core.exceptions import StoreUnavailableError
from .connection import DatabaseConnection

# MySQL error number for a UNIQUE/PRIMARY KEY violation.
ER_DUP_ENTRY = 1062


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One connection, one transaction: commit on success, rollback on error.

    Lost connections surface as StoreUnavailableError; every other error is
    re-raised unchanged after rollback.
    """
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except (errors.InterfaceError, errors.OperationalError) as e:
        # The server is gone; a rollback would fail the same way and the
        # uncommitted transaction is discarded with the connection.
        raise StoreUnavailableError("Database connection lost") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def is_duplicate_key(e: errors.Error) -> bool:
    return isinstance(e, errors.IntegrityError) and getattr(e, "errno", None) == ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
