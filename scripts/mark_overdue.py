"""Daily billing job: flag past-due statements and charge the late fee."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(REPO_ROOT / "src"))

from university_erp.config import get_settings_module
from university_erp.container import build_container_from_settings


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=getattr(settings, "LOG_LEVEL", "INFO"), format="%(levelname)s %(message)s")
    container = build_container_from_settings(settings)

    flagged = container.billing_service.mark_overdue()
    logging.info("Marked %d statement(s) overdue", len(flagged))


if __name__ == "__main__":
    main()
