from apscheduler.schedulers.background import BackgroundScheduler
from config.config import settings
from courtside.utils.logger import get_logger
import atexit

logger = get_logger(__name__)


def create_scheduler(invite_service, start: bool = True) -> BackgroundScheduler:
    """Background jobs: the invite expiry sweep and expiry reminders"""
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        func=invite_service.expire_stale_invites,
        trigger='interval',
        minutes=settings.EXPIRY_SWEEP_MINUTES,
        id='expire_pending_match_invites',
        replace_existing=True
    )

    scheduler.add_job(
        func=invite_service.send_expiry_reminders,
        trigger='interval',
        hours=1,
        id='send_invite_reminders',
        replace_existing=True
    )

    if start:
        scheduler.start()
        atexit.register(lambda: scheduler.shutdown(wait=False))
        logger.info(
            f"Scheduler started: expiry sweep every {settings.EXPIRY_SWEEP_MINUTES} minutes, "
            f"reminders hourly"
        )

    return scheduler
