"""
Purge of past reservations.

Two independent deletions, regardless of status:
  - every reservation dated before today
  - every reservation of today whose end_time is at or before now

Runs once on startup and then on a fixed interval from a background
scheduler. It is not isolated from requests; a week view fetched just
before a purge may still show the removed rows.
"""
import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from clock import Clock
from database import Database
from repository import ReservationRepository

logger = logging.getLogger(__name__)

CLEANUP_JOB_ID = "purge_expired_reservations"


def purge_expired(db: Session, now: datetime) -> int:
    repo = ReservationRepository(db)
    today = now.date().isoformat()
    deleted = repo.delete_before(today)
    deleted += repo.delete_ended_on(today, now.strftime("%H:%M"))
    return deleted


def run_cleanup_job(database: Database, clock: Clock) -> int:
    db = database.session()
    try:
        deleted = purge_expired(db, clock.now())
        if deleted:
            logger.info("Purged %d past reservations", deleted)
        return deleted
    except Exception as e:
        db.rollback()
        logger.warning("Cleanup job failed: %s", e, exc_info=True)
        return 0
    finally:
        db.close()


class CleanupScheduler:
    def __init__(self, database: Database, clock: Clock, interval_seconds: int = 60):
        self.database = database
        self.clock = clock
        self.interval_seconds = interval_seconds
        self._scheduler = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self):
        if self.running:
            return
        self._scheduler = BackgroundScheduler(timezone=self.clock.tz)
        self._scheduler.add_job(
            run_cleanup_job,
            "interval",
            seconds=self.interval_seconds,
            args=[self.database, self.clock],
            id=CLEANUP_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Cleanup scheduled every %ss", self.interval_seconds)

    def shutdown(self):
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Cleanup stopped")
        self._scheduler = None
