import logging
from apscheduler.schedulers.background import BackgroundScheduler

from tapflow.core.config import settings
from tapflow.workers.pipeline import bus
from tapflow.workers.pipeline.outreach_sender import release_scheduled_messages

logger = logging.getLogger(__name__)
scheduler = BackgroundScheduler()

# ---------------------------------------------------------
# WRAPPER: Event Dispatch
# ---------------------------------------------------------
def run_event_dispatch():
    """One dispatch round across every pipeline function."""
    try:
        executed = bus.dispatch()
        if executed:
            logger.info(f"⚙️  Dispatcher: executed {executed} pipeline runs")
    except Exception as e:
        logger.error(f"❌ Scheduler Error (Event Dispatch): {str(e)}")

# ---------------------------------------------------------
# SCHEDULER SETUP
# ---------------------------------------------------------
def start_scheduler():
    if scheduler.running:
        return

    # 1. Pipeline events (every few seconds, never overlapping)
    scheduler.add_job(
        run_event_dispatch,
        "interval",
        seconds=settings.DISPATCH_INTERVAL_SECONDS,
        id="event_dispatch",
        max_instances=1,
        coalesce=True,
    )

    # 2. Scheduled outreach (every minute)
    scheduler.add_job(release_scheduled_messages, "interval", minutes=1, id="scheduled_outreach")

    scheduler.start()
    logger.info("🚀 Background Scheduler Started.")
