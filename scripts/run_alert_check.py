#!/usr/bin/env python3
"""Run the internship expiration alert sweep locally.

Usage:
    python scripts/run_alert_check.py

Creates expiration_warning alerts for internships ending within
ALERT_WINDOW_DAYS and generates WhatsApp links for their advisors.
Exits 0 on success, 1 on failure.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from estagiopro.services.alerts.jobs import run_expiration_sweep


def main() -> int:
    try:
        result = run_expiration_sweep()
        print(
            f"status={result['status']} "
            f"alerts_created={result['alerts_created']} "
            f"internships_scanned={result['internships_scanned']} "
            f"alerts_dispatched={result['alerts_dispatched']}"
        )
        return 0 if result["status"] == "completed" else 1
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
