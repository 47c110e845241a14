from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

import pytest

from src.gate_ledger.gate_ledger.container import build_services
from src.gate_ledger.gate_ledger.core.enums import UserType
from src.gate_ledger.gate_ledger.core.exceptions import ConflictError, StoreUnavailableError
from src.gate_ledger.gate_ledger.identities.model import Identity
from src.gate_ledger.gate_ledger.ledger.model import LedgerEntry


class InMemoryIdentities:
    def __init__(self):
        self.tables: dict[UserType, dict[str, Identity]] = {UserType.STUDENT: {}, UserType.STAFF: {}}
        self.unavailable = False
        self.lookups: list[str] = []

    def add(self, reg_no: str, name: str, department: str, user_type: UserType) -> Identity:
        identity = Identity(reg_no=reg_no, name=name, department=department, user_type=user_type)
        self.tables[user_type][reg_no] = identity
        return identity

    def lookup(self, reg_no: str) -> Optional[Identity]:
        if self.unavailable:
            raise StoreUnavailableError("identity store down")
        self.lookups.append(reg_no)
        for user_type in (UserType.STUDENT, UserType.STAFF):
            found = self.tables[user_type].get(reg_no)
            if found:
                return found
        return None

    def upsert(self, identity: Identity) -> None:
        if self.unavailable:
            raise StoreUnavailableError("identity store down")
        other = UserType.STAFF if identity.user_type == UserType.STUDENT else UserType.STUDENT
        if identity.reg_no in self.tables[other]:
            raise ConflictError(f"{identity.reg_no} is already registered as {other.value}")
        self.tables[identity.user_type][identity.reg_no] = identity

    def delete_many(self, reg_nos: Iterable[str]) -> int:
        reg_nos = list(reg_nos)
        for r in reg_nos:
            self.tables[UserType.STUDENT].pop(r, None)
            self.tables[UserType.STAFF].pop(r, None)
        return len(reg_nos)

    def list_by_type(self, user_type: UserType):
        return sorted(self.tables[user_type].values(), key=lambda i: i.reg_no)


class InMemoryLedger:
    """Mirrors the MySQL store's guarantees: one open entry per regNo, close-once."""

    def __init__(self):
        self.entries: dict[str, LedgerEntry] = {}
        self._open: dict[str, str] = {}
        self.writes = 0
        self.fail_writes = False

    def _guard_write(self) -> None:
        if self.fail_writes:
            raise StoreUnavailableError("ledger store down")

    def find_open_entry(self, reg_no: str) -> Optional[LedgerEntry]:
        entry_id = self._open.get(reg_no)
        return self.entries[entry_id] if entry_id else None

    def get_by_id(self, entry_id: str) -> Optional[LedgerEntry]:
        return self.entries.get(entry_id)

    def create(self, entry: LedgerEntry) -> None:
        self._guard_write()
        if entry.reg_no in self._open:
            raise ConflictError(f"{entry.reg_no} already has an open entry")
        self.entries[entry.entry_id] = entry
        self._open[entry.reg_no] = entry.entry_id
        self.writes += 1

    def close(self, entry_id: str, at: datetime) -> bool:
        self._guard_write()
        entry = self.entries.get(entry_id)
        if not entry or entry.check_out_time is not None:
            return False
        self.entries[entry_id] = replace(entry, check_out_time=at)
        del self._open[entry.reg_no]
        self.writes += 1
        return True

    def close_all_open(self, at: datetime) -> int:
        self._guard_write()
        ids = list(self._open.values())
        for entry_id in ids:
            self.close(entry_id, at)
        return len(ids)

    def find_by_reg_no(self, reg_no: str):
        return [e for e in self.entries.values() if e.reg_no == reg_no]

    def find_unresolved(self):
        return [e for e in self.entries.values() if e.name is None]

    def list_all(self):
        return sorted(self.entries.values(), key=lambda e: e.check_in_time, reverse=True)

    def list_open(self):
        return sorted((self.entries[i] for i in self._open.values()), key=lambda e: e.check_in_time)

    def resolve_unknown(self, *, reg_no: str, name: str, department: str, user_type: UserType) -> int:
        self._guard_write()
        touched = 0
        for entry_id, e in list(self.entries.items()):
            if e.reg_no == reg_no and e.name is None:
                self.entries[entry_id] = replace(e, name=name, department=department, user_type=user_type)
                touched += 1
        self.writes += touched
        return touched


class InMemoryRegistrations:
    """Upsert plus resolve over the two fakes; on failure the identity tables are restored."""

    def __init__(self, identities: InMemoryIdentities, ledger: InMemoryLedger):
        self._identities = identities
        self._ledger = ledger

    def register_and_resolve(self, identity: Identity) -> int:
        snapshot = {t: dict(rows) for t, rows in self._identities.tables.items()}
        try:
            self._identities.upsert(identity)
            return self._ledger.resolve_unknown(
                reg_no=identity.reg_no,
                name=identity.name,
                department=identity.department,
                user_type=identity.user_type,
            )
        except Exception:
            self._identities.tables = snapshot
            raise


@pytest.fixture
def identities() -> InMemoryIdentities:
    return InMemoryIdentities()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def registrations(identities, ledger) -> InMemoryRegistrations:
    return InMemoryRegistrations(identities, ledger)


@pytest.fixture
def container(identities, ledger, registrations):
    return build_services(identities, ledger, registrations)


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.gate_ledger.gate_ledger.main import create_app

    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()
