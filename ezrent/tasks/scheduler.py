# ezrent/tasks/scheduler.py
from __future__ import annotations

import atexit
import os

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger


def start_scheduler(app):
    """
    Starts the rental monitor on an interval.
    - Skips the secondary process of the debug reloader.
    - Stops the scheduler when the process exits.
    """
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        app.logger.info("[scheduler] Debug reloader secondary process: scheduler skipped.")
        return None

    # imported here to avoid a models import cycle at app creation
    from ezrent.tasks.rental_monitor import run_rental_monitor_job

    minutes = int(app.config.get("RENTAL_MONITOR_INTERVAL_MINUTES", 10))
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        func=run_rental_monitor_job,
        args=[app],
        trigger=IntervalTrigger(minutes=minutes),
        id="rental_monitor_job",
        replace_existing=True,
        max_instances=1,        # no overlapping runs
        coalesce=True,          # collapse missed runs into one
        misfire_grace_time=120
    )
    scheduler.start()
    app.logger.info(f"[scheduler] Rental monitor started (every {minutes} minutes).")

    app.extensions["apscheduler"] = scheduler

    atexit.register(lambda: scheduler.shutdown(wait=False) if scheduler.running else None)
    return scheduler
