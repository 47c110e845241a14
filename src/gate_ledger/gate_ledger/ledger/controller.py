from __future__ import annotations

from flask import Flask, request

from ..common.responses import domain_error, fail, ok, unexpected_error
from ..container import Container
from ..core.enums import Direction
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    svc = container.ledger_service

    def _scan_response(result):
        action = "Check-in" if result.direction == Direction.IN else "Check-out"
        who = result.entry.name or f"Unknown user ({result.entry.reg_no})"
        return ok(f"{action}: {who}", **result.to_dict())

    @app.route("/api/scan", methods=["POST"], endpoint="api_scan")
    def api_scan():
        """Toggle check-in/check-out for a scanned registration number."""
        data = request.get_json(silent=True) or {}
        try:
            return _scan_response(svc.scan(data.get("regNo", "")))
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("recording scan")

    @app.route("/api/scan/image", methods=["POST"], endpoint="api_scan_image")
    def api_scan_image():
        """Accept an uploaded ID-card photo, decode its barcode and toggle."""
        if "image" not in request.files:
            return fail("Missing image file", 400)
        try:
            return _scan_response(svc.scan_image(request.files["image"].stream))
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("recording scan")

    @app.route("/api/entries", methods=["GET"], endpoint="api_entries")
    def api_entries():
        try:
            return ok(entries=[e.to_dict() for e in svc.list_entries()])
        except DomainError as e:
            return domain_error(e)

    @app.route("/api/entries/open", methods=["GET"], endpoint="api_entries_open")
    def api_entries_open():
        try:
            return ok(entries=[e.to_dict() for e in svc.list_open_entries()])
        except DomainError as e:
            return domain_error(e)

    @app.route("/api/entries/unknown", methods=["GET"], endpoint="api_entries_unknown")
    def api_entries_unknown():
        try:
            return ok(unknown=[s.to_dict() for s in svc.unknown_summary()])
        except DomainError as e:
            return domain_error(e)

    @app.route("/api/entries/<entry_id>/checkout", methods=["PUT"], endpoint="api_entry_checkout")
    def api_entry_checkout(entry_id: str):
        try:
            entry = svc.close_entry(entry_id)
            return ok("Checked out", entry=entry.to_dict())
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("checking out entry")

    @app.route("/api/entries/checkout-all", methods=["PUT"], endpoint="api_checkout_all")
    def api_checkout_all():
        try:
            count = svc.close_all_open()
            return ok(f"Checked out {count} entries", closedCount=count)
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("checking out all entries")
