"""Tests for worker background tasks and cron job registration."""

from datetime import UTC, datetime, time, timedelta
from unittest.mock import patch

import pytest

from app.core import database as db_module
from app.models.idempotency_record import IdempotencyRecord
from app.models.service_application import ServiceApplication, ServiceApplicationStatus
from app.worker import (
    WorkerSettings,
    cleanup_idempotency_records_task,
    expire_stale_bookings_task,
    reconcile_payment_attempts_task,
)
from tests.conftest import RESIDENT_ID


class TestReconcilePaymentAttemptsTask:
    @pytest.mark.asyncio
    async def test_delegates_to_reconciliation(self):
        with (
            patch("app.worker.SessionLocal", db_module.SessionLocal),
            patch("app.worker.reconcile_pending_attempts", return_value=2) as reconcile,
        ):
            result = await reconcile_payment_attempts_task({})

        assert result == 2
        reconcile.assert_called_once()

    @pytest.mark.asyncio
    async def test_nothing_pending(self):
        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            result = await reconcile_payment_attempts_task({})
        assert result == 0


class TestExpireStaleBookingsTask:
    @pytest.mark.asyncio
    async def test_expires_past_pending_booking(self, db_session, facility):
        booking = ServiceApplication(
            user_id=RESIDENT_ID,
            title="Old booking",
            status=ServiceApplicationStatus.PENDING.value,
            facility_id=facility.id,
            booking_date=datetime.now(UTC).date() - timedelta(days=3),
            start_time=time(10, 0),
            end_time=time(11, 0),
        )
        db_session.add(booking)
        db_session.commit()

        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            result = await expire_stale_bookings_task({})

        assert result == 1
        db_session.refresh(booking)
        assert booking.status == "expired"


class TestCleanupIdempotencyRecordsTask:
    @pytest.mark.asyncio
    async def test_deletes_old_records(self, db_session):
        old = IdempotencyRecord(
            user_id=RESIDENT_ID,
            idempotency_key="old",
            request_method="POST",
            request_path="/v1/bookings/",
            created_at=datetime.now(UTC) - timedelta(days=2),
        )
        fresh = IdempotencyRecord(
            user_id=RESIDENT_ID,
            idempotency_key="fresh",
            request_method="POST",
            request_path="/v1/bookings/",
        )
        db_session.add_all([old, fresh])
        db_session.commit()

        with patch("app.worker.SessionLocal", db_module.SessionLocal):
            result = await cleanup_idempotency_records_task({})

        assert result == 1
        keys = [r.idempotency_key for r in db_session.query(IdempotencyRecord).all()]
        assert keys == ["fresh"]


class TestWorkerSettings:
    def test_functions_registered(self):
        names = {f.__name__ for f in WorkerSettings.functions}
        assert names == {
            "reconcile_payment_attempts_task",
            "expire_stale_bookings_task",
            "cleanup_idempotency_records_task",
        }

    def test_cron_jobs(self):
        assert len(WorkerSettings.cron_jobs) == 3
