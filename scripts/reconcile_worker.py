"""Run absentee reconciliation as its own process.

Uses MySQL named locks, so it can run next to web workers that reconcile
opportunistically without double-fining anyone.

    python scripts/reconcile_worker.py          # loop forever
    python scripts/reconcile_worker.py --once   # single pass, e.g. from cron
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from decimal import Decimal
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from apscheduler.schedulers.blocking import BlockingScheduler
from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_fines.attendance_fines.container import build_container
from src.attendance_fines.attendance_fines.fines.model import FineSettings
from src.attendance_fines.attendance_fines.fines.worker import ReconcileWorker

logger = logging.getLogger("reconcile_worker")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--once", action="store_true", help="run a single pass and exit")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(
        level=getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        default_settings=FineSettings(
            student_fine=Decimal(str(settings.DEFAULT_STUDENT_FINE)),
            officer_fine=Decimal(str(settings.DEFAULT_OFFICER_FINE)),
        ),
        reconcile_interval_seconds=float(settings.RECONCILE_INTERVAL_SECONDS),
    )

    if args.once:
        reports = container.worker.run_once()
        logger.info("single pass done: %d event(s) looked at", len(reports))
        return

    # Foreground process: the blocking scheduler owns the main thread.
    worker = ReconcileWorker(
        container.reconciler,
        interval_seconds=float(settings.RECONCILE_INTERVAL_SECONDS),
        scheduler=BlockingScheduler(),
    )
    try:
        worker.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("stopping")


if __name__ == "__main__":
    main()
