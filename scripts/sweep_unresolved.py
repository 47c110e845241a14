"""Resolve unknown ledger entries whose regNo has since been registered.

Safe to run repeatedly (cron, systemd timer); a run with nothing to do
resolves 0 and writes nothing.
"""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.gate_ledger.gate_ledger.container import build_container
from src.gate_ledger.gate_ledger.core.exceptions import StoreUnavailableError


def main() -> int:
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format="%(levelname)s: %(message)s")

    container = build_container(db_config=dict(settings.DB_CONFIG))
    try:
        resolved = container.resolution_service.sweep_unresolved()
    except StoreUnavailableError as e:
        print(f"FAILED: {e}", file=sys.stderr)
        return 1

    print(f"OK: Resolved {resolved} registration numbers")
    return 0


if __name__ == "__main__":
    sys.exit(main())
