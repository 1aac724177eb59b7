from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_RECONCILE_INTERVAL_SECONDS
from .reconciler import AbsenteeReconciler, ReconcileReport

logger = logging.getLogger(__name__)

JOB_ID = "reconcile-due"


class ReconcileWorker:
    """Interval job that reconciles every ended, unprocessed event.

    Runs on an APScheduler background scheduler; at most one pass runs at a
    time and missed runs are coalesced into one.
    """

    def __init__(
        self,
        reconciler: AbsenteeReconciler,
        *,
        interval_seconds: float = DEFAULT_RECONCILE_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = now_local,
        scheduler: Optional[BaseScheduler] = None,
    ):
        self._reconciler = reconciler
        self._interval = float(interval_seconds)
        self._clock = clock
        self._scheduler = scheduler or BackgroundScheduler(daemon=True)

    @property
    def scheduler(self) -> BaseScheduler:
        return self._scheduler

    @property
    def is_running(self) -> bool:
        return bool(self._scheduler.running)

    def run_once(self) -> list[ReconcileReport]:
        reports = self._reconciler.reconcile_due(now=self._clock())
        ran = [r for r in reports if r.ran]
        if ran:
            logger.info("reconcile pass: %d event(s) processed", len(ran))
        return reports

    def tick(self) -> None:
        try:
            self.run_once()
        except Exception:
            logger.exception("reconcile pass failed")

    def start(self) -> None:
        if self.is_running:
            return
        self._scheduler.add_job(
            self.tick,
            "interval",
            seconds=self._interval,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(),
        )
        logger.info("reconcile worker starting (interval=%ss)", self._interval)
        self._scheduler.start()

    def stop(self, wait: bool = True) -> None:
        if self.is_running:
            self._scheduler.shutdown(wait=wait)
