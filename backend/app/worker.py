import logging
from typing import Any

from arq import cron

from app.core.database import SessionLocal
from app.repositories.idempotency_repository import IdempotencyRepository
from app.services.booking_service import expire_stale_bookings
from app.services.payment_service import reconcile_pending_attempts
from app.tasks import redis_settings

logger = logging.getLogger(__name__)


async def reconcile_payment_attempts_task(ctx: dict[str, Any]) -> int:
    """Background task: settle payment attempts stuck in pending.

    Runs every 5 minutes. Attempts without a gateway transfer are failed,
    the rest are re-fetched from the gateway.
    """
    db = SessionLocal()
    try:
        count = reconcile_pending_attempts(db)
        if count > 0:
            logger.info("Reconciled %d pending payment attempts", count)
        return count
    finally:
        db.close()


async def expire_stale_bookings_task(ctx: dict[str, Any]) -> int:
    """Background task: expire past draft/pending bookings and free their slots.

    Runs hourly.
    """
    db = SessionLocal()
    try:
        return expire_stale_bookings(db)
    finally:
        db.close()


async def cleanup_idempotency_records_task(ctx: dict[str, Any]) -> int:
    """Background task: drop cached idempotent responses older than a day."""
    db = SessionLocal()
    try:
        count = IdempotencyRepository(db).delete_expired(max_age_hours=24)
        if count > 0:
            logger.info("Deleted %d expired idempotency records", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        reconcile_payment_attempts_task,
        expire_stale_bookings_task,
        cleanup_idempotency_records_task,
    ]
    cron_jobs = [
        cron(
            reconcile_payment_attempts_task,
            minute={0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55},
        ),
        cron(expire_stale_bookings_task, minute={0}),  # hourly
        cron(cleanup_idempotency_records_task, hour=3, minute=0),  # daily
    ]
    redis_settings = redis_settings
