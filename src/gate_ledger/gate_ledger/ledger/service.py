from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import BinaryIO, Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.keyed_lock import KeyedLock
from ..common.validators import normalize_reg_no, require_non_empty
from ..core.enums import Direction, UserType
from ..core.exceptions import ConflictError, NotFoundError
from ..identities.classifier import classify
from ..identities.repository import IdentityRepository
from .model import LedgerEntry, ScanResult, UnknownSummary
from .repository import LedgerRepository

logger = logging.getLogger(__name__)


def _not_before(at: datetime, entry: LedgerEntry) -> datetime:
    """A clock stepped backwards still yields a check-out, stamped at check-in."""
    if at < entry.check_in_time:
        logger.warning("Clock behind check-in for %s, clamping check-out time", entry.reg_no)
        return entry.check_in_time
    return at


class LedgerService:
    """Check-in/check-out state machine plus administrative overrides.

    A regNo is IN exactly when it has an open entry; nothing else stores the
    state. Each scan reads the open entry and then creates or closes one
    while holding that regNo's lock, so two scans of the same card cannot
    both check in.
    """

    def __init__(
        self,
        ledger: LedgerRepository,
        identities: IdentityRepository,
        *,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._ledger = ledger
        self._identities = identities
        self._locks = locks or KeyedLock()
        self._clock = clock

    def scan(self, reg_no: str, *, now: Optional[datetime] = None) -> ScanResult:
        reg_no = normalize_reg_no(reg_no)

        # Resolved before any write: a lookup failure leaves the ledger untouched.
        identity = self._identities.lookup(reg_no)

        with self._locks.hold(reg_no):
            at = now or self._clock()
            open_entry = self._ledger.find_open_entry(reg_no)

            if open_entry:
                return self._check_out(open_entry, at)

            if identity:
                entry = LedgerEntry(
                    entry_id=str(uuid.uuid4()),
                    reg_no=reg_no,
                    name=identity.name,
                    department=identity.department,
                    user_type=identity.user_type,
                    check_in_time=at,
                )
            else:
                entry = LedgerEntry(
                    entry_id=str(uuid.uuid4()),
                    reg_no=reg_no,
                    name=None,
                    department=None,
                    user_type=UserType.UNKNOWN,
                    check_in_time=at,
                )
            self._ledger.create(entry)

        logger.info("IN  %s (%s)", reg_no, entry.user_type.value)
        return ScanResult(entry=entry, direction=Direction.IN)

    def scan_image(self, stream: BinaryIO, *, now: Optional[datetime] = None) -> ScanResult:
        # pyzbar loads the native zbar library on import; only pay for it here.
        from .barcode import decode_reg_no

        return self.scan(decode_reg_no(stream), now=now)

    def _check_out(self, entry: LedgerEntry, at: datetime) -> ScanResult:
        # Identity fields stay as logged at check-in; resolution owns them.
        at = _not_before(at, entry)
        if not self._ledger.close(entry.entry_id, at):
            raise ConflictError(f"Entry {entry.entry_id} was closed concurrently")

        logger.info("OUT %s (%s)", entry.reg_no, entry.user_type.value)
        return ScanResult(entry=replace(entry, check_out_time=at), direction=Direction.OUT)

    def close_entry(self, entry_id: str, *, now: Optional[datetime] = None) -> LedgerEntry:
        """Manual checkout of one entry, bypassing scan inference."""
        entry_id = require_non_empty(entry_id, "Entry id")
        entry = self._ledger.get_by_id(entry_id)
        if not entry:
            raise NotFoundError(f"Entry {entry_id} not found")
        if not entry.is_open:
            raise ConflictError(f"Entry {entry_id} is already checked out")

        with self._locks.hold(entry.reg_no):
            at = _not_before(now or self._clock(), entry)
            if not self._ledger.close(entry_id, at):
                raise ConflictError(f"Entry {entry_id} is already checked out")

        logger.info("Manual checkout %s (%s)", entry.reg_no, entry_id)
        return replace(entry, check_out_time=at)

    def close_all_open(self, *, now: Optional[datetime] = None) -> int:
        """Bulk end-of-day checkout. Already closed entries are not touched."""
        count = self._ledger.close_all_open(now or self._clock())
        logger.info("Checked out %d open entries", count)
        return count

    def list_entries(self) -> Sequence[LedgerEntry]:
        return self._ledger.list_all()

    def list_open_entries(self) -> Sequence[LedgerEntry]:
        return self._ledger.list_open()

    def unknown_summary(self) -> list[UnknownSummary]:
        grouped: dict[str, list[LedgerEntry]] = {}
        for e in self._ledger.find_unresolved():
            grouped.setdefault(e.reg_no, []).append(e)

        out = [
            UnknownSummary(
                reg_no=reg_no,
                scan_count=len(items),
                last_seen=max(e.check_in_time for e in items),
                suggested_type=classify(reg_no),
            )
            for reg_no, items in grouped.items()
        ]
        out.sort(key=lambda s: s.last_seen, reverse=True)
        return out
