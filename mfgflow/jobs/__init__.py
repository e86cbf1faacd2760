# Jobs Package - Scheduled background tasks
from .stock_audit import StockAuditScheduler, run_stock_audit, start_scheduler, stop_scheduler

__all__ = ["StockAuditScheduler", "run_stock_audit", "start_scheduler", "stop_scheduler"]
