"""
Stock Audit Scheduler - periodic ledger/cache consistency check

Runs ``StockService.check_consistency`` on an interval and logs products
whose cached ``current_stock`` has drifted from the ledger replay. It only
reports; repairs go through ``StockService.rebuild_cached_stock``.
"""
from typing import List, Dict, Optional
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from mfgflow.core.config import settings
from mfgflow.core.database import SessionLocal
from mfgflow.services import StockService

logger = logging.getLogger(__name__)

_scheduler = None


def run_stock_audit() -> List[Dict]:
    """Run one consistency pass and log every drifted product"""
    db = SessionLocal()
    try:
        report = StockService.check_consistency(db)
        drifted = [row for row in report if not row["consistent"]]

        for row in drifted:
            logger.warning(
                f"Stock drift on {row['product_name']} (id={row['product_id']}): "
                f"cached={row['cached_stock']} ledger={row['ledger_stock']} "
                f"difference={row['difference']}"
            )

        logger.info(f"Stock audit checked {len(report)} products, {len(drifted)} drifted")
        return drifted
    finally:
        db.close()


class StockAuditScheduler:
    """Wraps an AsyncIOScheduler running the stock audit job"""

    JOB_ID = "stock_audit"

    def __init__(self, interval_minutes: Optional[int] = None):
        self.scheduler = AsyncIOScheduler()
        self.interval_minutes = interval_minutes or settings.STOCK_AUDIT_INTERVAL_MINUTES
        self.is_running = False

    def start(self):
        if self.is_running:
            return

        self.scheduler.add_job(
            func=self._run,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=self.JOB_ID,
            name="Stock ledger consistency audit",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        self.is_running = True
        logger.info(f"Stock audit scheduler started (every {self.interval_minutes} minutes)")

    def stop(self):
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Stock audit scheduler stopped")

    def _run(self):
        try:
            run_stock_audit()
        except Exception:
            logger.exception("Stock audit failed")


# ========== Global Functions ==========

def get_scheduler() -> StockAuditScheduler:
    """Get or create the global scheduler instance"""
    global _scheduler
    if _scheduler is None:
        _scheduler = StockAuditScheduler()
    return _scheduler


def start_scheduler():
    get_scheduler().start()


def stop_scheduler():
    global _scheduler
    if _scheduler:
        _scheduler.stop()
        _scheduler = None
