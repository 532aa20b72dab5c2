from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime

from railqual.utils.logging_config import get_logger

logger = get_logger(__name__)


class ComplianceScheduler:
    """Background scheduler for the compliance engine.

    Runs the daily fleet-wide status recalculation and executes one-off
    fire-and-forget jobs (history fan-out after bulk updates). Every job runs
    inside an application context.
    """

    def __init__(self, app=None):
        self.app = None
        self.scheduler = None
        self.run_inline = False
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        self.run_inline = not app.config.get('AUDIT_ASYNC', True)
        app.extensions['compliance_scheduler'] = self

    def _ensure_scheduler(self):
        if self.scheduler is None:
            self.scheduler = BackgroundScheduler()
        if not self.scheduler.running:
            self.scheduler.start()
        return self.scheduler

    def start(self):
        """Start the scheduler with the daily recalculation job."""
        scheduler = self._ensure_scheduler()

        scheduler.add_job(
            func=self.daily_status_recalculation,
            trigger=CronTrigger(
                hour=self.app.config.get('RECALC_CRON_HOUR', 2),
                minute=self.app.config.get('RECALC_CRON_MINUTE', 0)
            ),
            id='daily_status_recalculation',
            name='Daily qualification status recalculation',
            replace_existing=True
        )
        logger.info("Compliance scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Compliance scheduler stopped")

    def submit(self, func, *args, **kwargs):
        """Run func once, in the background unless configured inline.

        Failures inside func are the caller's concern: submitted work is
        expected to log its own errors.
        """
        if self.run_inline:
            self._run_in_context(func, args, kwargs)
            return

        self._ensure_scheduler().add_job(
            func=self._run_in_context,
            args=[func, args, kwargs],
            misfire_grace_time=None
        )

    def _run_in_context(self, func, args, kwargs):
        from flask import has_app_context

        if has_app_context():
            return func(*args, **kwargs)
        with self.app.app_context():
            return func(*args, **kwargs)

    def daily_status_recalculation(self):
        """Recalculate every qualification status against one snapshot date"""
        from railqual.services.recalculation import RecalculationService

        now = datetime.utcnow().date()
        logger.info(f"Running daily status recalculation for {now}")

        with self.app.app_context():
            result = RecalculationService.recalculate_all_statuses(now)

        logger.info(f"Daily status recalculation updated {result['updated']} record(s)")
        return result
