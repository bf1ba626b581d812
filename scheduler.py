"""
APScheduler - periodic temporary file purge.
Runs as background job when Flask app starts.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import PURGE_INTERVAL_HOURS, TEMPORARY_MAX_AGE
from purge_files import purge_temporary_files


def run_purge_job(app):
    """
    Job executed by scheduler.
    Failures are reported and the next run tries again.
    """
    try:
        with app.app_context():
            count = purge_temporary_files(
                app.extensions['entity_store'],
                app.extensions['file_storage'],
                max_age=TEMPORARY_MAX_AGE,
            )
        print(f"[Scheduler] Purged {count} temporary file(s).")
    except Exception as e:
        print(f"[Scheduler] Temporary file purge failed: {e}")


def start_scheduler(app):
    """
    Start APScheduler.
    Job runs every PURGE_INTERVAL_HOURS.
    """
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_purge_job,
        trigger=IntervalTrigger(hours=PURGE_INTERVAL_HOURS),
        args=[app],
        id='purge_job',
        replace_existing=True,
    )
    scheduler.start()
    print(f"[Scheduler] Temporary file purge scheduled (every {PURGE_INTERVAL_HOURS}h).")
    return scheduler
