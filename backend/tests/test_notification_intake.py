"""Tests for NotificationIntakeService.record_event."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from vessel_digest.models.email_notification import DigestType, EmailNotification, NotificationState
from vessel_digest.models.vessel import Vessel
from vessel_digest.services.notification_intake import (
    IntakeOutcome,
    NotificationIntakeService,
)
from tests.conftest import create_user, create_vessel


def _make_scheduler(side_effect=None):  # type: ignore[no-untyped-def]
    scheduler = MagicMock()
    scheduler.schedule_aggregation = AsyncMock(side_effect=side_effect)
    return scheduler


@pytest.fixture
def vessel(db_session):
    return create_vessel(db_session)


class TestRecordEvent:
    @pytest.mark.asyncio
    async def test_creates_one_pending_record_per_recipient(self, db_session, vessel):
        ana = create_user(db_session, vessel, name="Ana")
        bruno = create_user(db_session, vessel, name="Bruno", email="bruno@example.com")
        actor = create_user(db_session, vessel, name="Carla", email="carla@example.com")
        scheduler = _make_scheduler()
        service = NotificationIntakeService(db_session, scheduler=scheduler)

        result = await service.record_event(
            DigestType.VOYAGE_STARTED,
            "voyage",
            "12",
            vessel.id,
            actor.id,
            snapshot={"voyage_number": 12, "name": "Spring run"},
        )

        assert result.outcome == IntakeOutcome.OK
        assert result.created == 2
        assert result.failed == 0
        assert result.scheduled is True

        records = db_session.query(EmailNotification).all()
        assert {r.recipient_id for r in records} == {ana.id, bruno.id}
        for record in records:
            assert record.state == NotificationState.PENDING.value
            assert record.digest_type == "voyage_started"
            assert record.subject_type == "voyage"
            assert record.subject_id == "12"
            assert record.actor_id == actor.id
            assert record.subject_snapshot == {"voyage_number": 12, "name": "Spring run"}
            assert record.group_id is None

    @pytest.mark.asyncio
    async def test_never_notifies_the_actor(self, db_session, vessel):
        actor = create_user(db_session, vessel, name="Ana")
        service = NotificationIntakeService(db_session, scheduler=_make_scheduler())

        result = await service.record_event(
            "transaction_created", "transaction", "1", vessel.id, actor.id
        )

        assert result.created == 0
        assert db_session.query(EmailNotification).count() == 0

    @pytest.mark.asyncio
    async def test_actor_excluded_even_if_resolver_returns_them(self, db_session, vessel):
        actor = create_user(db_session, vessel, name="Ana")
        other = create_user(db_session, vessel, name="Bruno", email="bruno@example.com")
        resolver = MagicMock()
        resolver.eligible_recipients.return_value = [actor, other]
        service = NotificationIntakeService(
            db_session, resolver=resolver, scheduler=_make_scheduler()
        )

        result = await service.record_event(
            "transaction_created", "transaction", "1", vessel.id, actor.id
        )

        assert result.created == 1
        recipient_ids = [r.recipient_id for r in db_session.query(EmailNotification).all()]
        assert recipient_ids == [other.id]

    @pytest.mark.asyncio
    async def test_schedules_exactly_once_per_call(self, db_session, vessel):
        for i in range(3):
            create_user(db_session, vessel, name=f"User {i}", email=f"user{i}@example.com")
        scheduler = _make_scheduler()
        service = NotificationIntakeService(db_session, scheduler=scheduler)

        await service.record_event("transaction_created", "transaction", "1", vessel.id, uuid4())

        scheduler.schedule_aggregation.assert_awaited_once_with(vessel.id)

    @pytest.mark.asyncio
    async def test_schedules_even_without_recipients(self, db_session, vessel):
        scheduler = _make_scheduler()
        service = NotificationIntakeService(db_session, scheduler=scheduler)

        result = await service.record_event(
            "transaction_created", "transaction", "1", vessel.id, uuid4()
        )

        assert result.outcome == IntakeOutcome.OK
        assert result.created == 0
        scheduler.schedule_aggregation.assert_awaited_once_with(vessel.id)

    @pytest.mark.asyncio
    async def test_recipient_resolution_failure_is_absorbed(self, db_session, vessel):
        resolver = MagicMock()
        resolver.eligible_recipients.side_effect = OperationalError("SELECT", {}, Exception("down"))
        scheduler = _make_scheduler()
        service = NotificationIntakeService(db_session, resolver=resolver, scheduler=scheduler)

        result = await service.record_event(
            "transaction_created", "transaction", "1", vessel.id, uuid4()
        )

        assert result.outcome == IntakeOutcome.RECIPIENT_RESOLUTION_FAILED
        assert result.created == 0
        assert result.scheduled is False
        assert result.error is not None
        scheduler.schedule_aggregation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_keeps_other_inserts(self, db_session, vessel):
        create_user(db_session, vessel, name="Ana")
        create_user(db_session, vessel, name="Bruno", email="bruno@example.com")
        scheduler = _make_scheduler()
        service = NotificationIntakeService(db_session, scheduler=scheduler)

        original_add = service.repo.add
        calls = {"n": 0}

        def flaky_add(**kwargs):  # type: ignore[no-untyped-def]
            calls["n"] += 1
            if calls["n"] == 2:
                raise OperationalError("INSERT", {}, Exception("disk I/O error"))
            return original_add(**kwargs)

        with patch.object(service.repo, "add", side_effect=flaky_add):
            result = await service.record_event(
                "transaction_created", "transaction", "1", vessel.id, uuid4()
            )

        assert result.outcome == IntakeOutcome.STORE_UNAVAILABLE
        assert result.created == 1
        assert result.failed == 1
        assert result.scheduled is True
        assert db_session.query(EmailNotification).count() == 1

    @pytest.mark.asyncio
    async def test_scheduling_failure_is_absorbed(self, db_session, vessel):
        create_user(db_session, vessel)
        scheduler = _make_scheduler(side_effect=ConnectionError("redis unavailable"))
        service = NotificationIntakeService(db_session, scheduler=scheduler)

        result = await service.record_event(
            "transaction_created", "transaction", "1", vessel.id, uuid4()
        )

        assert result.outcome == IntakeOutcome.SCHEDULING_FAILED
        assert result.created == 1
        assert result.scheduled is False
        assert "redis unavailable" in (result.error or "")

    @pytest.mark.asyncio
    async def test_default_scheduler_enqueues_delayed_job(self, db_session, vessel):
        with patch(
            "vessel_digest.services.aggregation_scheduler.enqueue_vessel_aggregation",
            new_callable=AsyncMock,
        ) as mock_enqueue:
            service = NotificationIntakeService(db_session)
            result = await service.record_event(
                "transaction_created", "transaction", "1", vessel.id, uuid4()
            )

        assert result.scheduled is True
        mock_enqueue.assert_awaited_once()
        assert mock_enqueue.await_args.args == (vessel.id,)


class TestCallerTransaction:
    """Intake shares the caller's session and transaction."""

    @pytest.mark.asyncio
    async def test_resolution_failure_keeps_caller_work(self, db_session, vessel):
        db_session.add(Vessel(name="Caller vessel"))
        db_session.flush()
        resolver = MagicMock()
        resolver.eligible_recipients.side_effect = RuntimeError("identity service down")
        service = NotificationIntakeService(
            db_session, resolver=resolver, scheduler=_make_scheduler()
        )

        result = await service.record_event(
            "transaction_created", "transaction", "1", vessel.id, uuid4()
        )

        assert result.outcome == IntakeOutcome.RECIPIENT_RESOLUTION_FAILED
        names = {v.name for v in db_session.query(Vessel).all()}
        assert names == {"Maria Fernanda", "Caller vessel"}

    @pytest.mark.asyncio
    async def test_store_failure_keeps_caller_work(self, db_session, vessel):
        create_user(db_session, vessel)
        db_session.add(Vessel(name="Caller vessel"))
        db_session.flush()
        service = NotificationIntakeService(db_session, scheduler=_make_scheduler())

        with patch.object(
            service.repo,
            "add",
            side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
        ):
            result = await service.record_event(
                "transaction_created", "transaction", "1", vessel.id, uuid4()
            )

        assert result.outcome == IntakeOutcome.STORE_UNAVAILABLE
        assert db_session.query(Vessel).filter(Vessel.name == "Caller vessel").count() == 1

    @pytest.mark.asyncio
    async def test_does_not_commit_caller_transaction(self, db_session, vessel):
        create_user(db_session, vessel)
        db_session.add(Vessel(name="Caller vessel"))
        db_session.flush()
        service = NotificationIntakeService(db_session, scheduler=_make_scheduler())

        result = await service.record_event(
            "transaction_created", "transaction", "1", vessel.id, uuid4()
        )
        assert result.created == 1

        db_session.rollback()

        assert db_session.query(Vessel).filter(Vessel.name == "Caller vessel").count() == 0
        assert db_session.query(EmailNotification).count() == 0
