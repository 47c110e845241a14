from __future__ import annotations

from flask import Flask, request

from ..common.responses import domain_error, ok, unexpected_error
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    svc = container.resolution_service

    @app.route("/api/register-unknown", methods=["POST"], endpoint="api_register_unknown")
    def api_register_unknown():
        data = request.get_json(silent=True) or {}
        try:
            touched = svc.register_and_resolve(
                reg_no=data.get("regNo"),
                name=data.get("name"),
                department=data.get("department"),
                user_type=data.get("userType"),
            )
            return ok("User registered and logs updated", updatedCount=touched)
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("registering user")

    @app.route("/api/sync-unknown", methods=["POST"], endpoint="api_sync_unknown")
    def api_sync_unknown():
        try:
            count = svc.sweep_unresolved()
            return ok(f"Resolved {count} registration numbers", resolvedCount=count)
        except DomainError as e:
            return domain_error(e)
        except Exception:
            return unexpected_error("syncing unknown entries")
