from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.responses import domain_error, fail, ok, unexpected_error
from ..container import Container
from ..core.constants import IMPORT_CSV_HEADER
from ..core.enums import UserType
from ..core.exceptions import DomainError


def _read_csv_upload(field: str = "file") -> list[list[str]]:
    raw = request.files[field].read().decode("utf-8-sig")
    return [row for row in csv.reader(io.StringIO(raw)) if any(cell.strip() for cell in row)]


def _drop_header(rows: list[list[str]]) -> list[list[str]]:
    if rows and rows[0] and rows[0][0].strip().lower() == IMPORT_CSV_HEADER[0].lower():
        return rows[1:]
    return rows


def register(app: Flask, container: Container) -> None:
    svc = container.identity_service

    @app.route("/api/lookup/<reg_no>", methods=["GET"], endpoint="api_lookup")
    def api_lookup(reg_no: str):
        try:
            identity = svc.lookup(reg_no)
        except DomainError as e:
            return domain_error(e)
        if not identity:
            return fail(f"{reg_no} is not registered", 404)
        return ok(identity=identity.to_dict())

    def _list(user_type: UserType):
        try:
            return ok(identities=[i.to_dict() for i in svc.list_identities(user_type)])
        except DomainError as e:
            return domain_error(e)

    def _save(user_type: UserType):
        data = request.get_json(silent=True) or {}
        try:
            identity = svc.upsert_identity(
                reg_no=data.get("regNo"),
                name=data.get("name"),
                department=data.get("department"),
                user_type=user_type,
            )
            return ok(f"Saved {identity.reg_no}", status=201, identity=identity.to_dict())
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("saving identity")

    @app.route("/api/students", methods=["GET", "POST"], endpoint="api_students")
    def api_students():
        if request.method == "POST":
            return _save(UserType.STUDENT)
        return _list(UserType.STUDENT)

    @app.route("/api/staff", methods=["GET", "POST"], endpoint="api_staff")
    def api_staff():
        if request.method == "POST":
            return _save(UserType.STAFF)
        return _list(UserType.STAFF)

    @app.route("/api/identities", methods=["POST"], endpoint="api_identities_add")
    def api_identities_add():
        """Add a person; the table is chosen from the regNo prefix."""
        data = request.get_json(silent=True) or {}
        try:
            identity = svc.add_identity(
                reg_no=data.get("regNo"),
                name=data.get("name"),
                department=data.get("department"),
            )
            return ok(f"Added to {identity.user_type.value}", status=201, identity=identity.to_dict())
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("saving identity")

    @app.route("/api/identities/import", methods=["POST"], endpoint="api_identities_import")
    def api_identities_import():
        """CSV upload with columns regNo, name, department."""
        if "file" not in request.files:
            return fail("Missing CSV file", 400)
        try:
            rows = _drop_header(_read_csv_upload())
        except UnicodeDecodeError:
            return fail("CSV must be UTF-8 encoded", 400)

        records = [dict(zip(IMPORT_CSV_HEADER, (cell.strip() for cell in row))) for row in rows]
        try:
            report = svc.import_identities(records)
            return ok(f"Imported {report.imported} users", **report.to_dict())
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("importing identities")

    @app.route("/api/bulk-delete", methods=["POST"], endpoint="api_bulk_delete")
    def api_bulk_delete():
        """Accepts {"regNos": [...]} or a CSV upload whose first column is the regNo."""
        if "file" in request.files:
            try:
                reg_nos = [row[0] for row in _drop_header(_read_csv_upload())]
            except UnicodeDecodeError:
                return fail("CSV must be UTF-8 encoded", 400)
        else:
            data = request.get_json(silent=True) or {}
            reg_nos = data.get("regNos") or []
            if not isinstance(reg_nos, list):
                return fail("regNos must be a list", 400)

        try:
            count = svc.delete_identities(r for r in reg_nos if isinstance(r, str))
            return ok(f"Processed {count} registration numbers", deletedCount=count)
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("deleting identities")
