import atexit
import logging
import os

from apscheduler.schedulers.background import BackgroundScheduler

from .extensions import db
from .services.inactivity import run_inactivity_scan

logger = logging.getLogger(__name__)

INACTIVITY_JOB_ID = "inactive-clients-check"


def scan_inactive_clients(app):
    """Daily job body. Errors are logged; the next try is the next run."""
    with app.app_context():
        try:
            run_inactivity_scan(
                app.extensions["notifications"],
                window_days=app.config["INACTIVITY_WINDOW_DAYS"],
            )
        except Exception:
            logger.exception("[SCHEDULER] Error in inactive clients check")
            db.session.rollback()
        finally:
            db.session.remove()


def init_scheduler(app):
    """Start the APScheduler background scheduler for ``app``.

    The scheduler is kept in ``app.extensions["scheduler"]`` and shut down
    at interpreter exit.
    """
    # With the reloader on, only the child process runs jobs
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        return None

    scheduler = app.extensions.get("scheduler")
    if scheduler is not None and scheduler.running:
        logger.info("[SCHEDULER] Scheduler already running (skipping duplicate start)")
        return scheduler

    scheduler = BackgroundScheduler()
    hour = app.config["INACTIVITY_SCAN_HOUR"]
    scheduler.add_job(
        scan_inactive_clients,
        trigger="cron",
        hour=hour,
        minute=0,
        args=[app],
        id=INACTIVITY_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    app.extensions["scheduler"] = scheduler
    logger.info("[SCHEDULER] Inactive clients check scheduled daily at %02d:00", hour)

    atexit.register(shutdown_scheduler, app)
    return scheduler


def shutdown_scheduler(app):
    scheduler = app.extensions.get("scheduler")
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("[SCHEDULER] Scheduler stopped")
