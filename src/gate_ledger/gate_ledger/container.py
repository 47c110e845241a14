from __future__ import annotations

from dataclasses import dataclass

from .common.keyed_lock import KeyedLock
from .database.connection import DBConfig, DatabaseConnection
from .identities.mysql_identity_repository import MySQLIdentityRepository
from .identities.repository import IdentityRepository
from .identities.service import IdentityService
from .ledger.mysql_ledger_repository import MySQLLedgerRepository
from .ledger.repository import LedgerRepository
from .ledger.service import LedgerService
from .resolution.mysql_registration_repository import MySQLRegistrationRepository
from .resolution.repository import RegistrationRepository
from .resolution.service import ResolutionService


@dataclass(frozen=True)
class Container:
    identities_repo: IdentityRepository
    ledger_repo: LedgerRepository
    registrations_repo: RegistrationRepository

    identity_service: IdentityService
    ledger_service: LedgerService
    resolution_service: ResolutionService


def build_services(
    identities_repo: IdentityRepository,
    ledger_repo: LedgerRepository,
    registrations_repo: RegistrationRepository,
) -> Container:
    return Container(
        identities_repo=identities_repo,
        ledger_repo=ledger_repo,
        registrations_repo=registrations_repo,
        identity_service=IdentityService(identities_repo),
        ledger_service=LedgerService(ledger_repo, identities_repo, locks=KeyedLock()),
        resolution_service=ResolutionService(identities_repo, ledger_repo, registrations_repo),
    )


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        connect_timeout=int(db_config.get("connect_timeout", 5)),
    )
    conn = DatabaseConnection.get_instance(config)

    return build_services(
        MySQLIdentityRepository(conn),
        MySQLLedgerRepository(conn),
        MySQLRegistrationRepository(conn),
    )
