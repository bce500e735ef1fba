"""Shared test fixtures for all test modules."""

import contextlib
from datetime import datetime

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import vessel_digest.models  # noqa: F401
from vessel_digest.core import database as db_module
from vessel_digest.core.database import Base, get_db
from vessel_digest.models.email_notification import EmailNotification
from vessel_digest.models.user import User, VesselRoleAccess, VesselUserRole
from vessel_digest.models.vessel import Vessel
from vessel_digest.repositories.email_notification_repository import EmailNotificationRepository

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

ROLE_NAMES = ("normal", "moderator", "supervisor", "administrator")


def seed_role_accesses(session: Session) -> None:
    """Insert the four vessel role tiers if missing."""
    for name in ROLE_NAMES:
        exists = session.query(VesselRoleAccess).filter(VesselRoleAccess.name == name).first()
        if exists is None:
            session.add(VesselRoleAccess(name=name, display_name=name.title(), is_active=True))
    session.commit()


def create_vessel(session: Session, name: str = "Maria Fernanda") -> Vessel:
    vessel = Vessel(name=name)
    session.add(vessel)
    session.commit()
    session.refresh(vessel)
    return vessel


def create_user(
    session: Session,
    vessel: Vessel | None = None,
    *,
    name: str = "Ana",
    email: str | None = "ana@example.com",
    role: str = "administrator",
    opted_in: bool = True,
    role_active: bool = True,
) -> User:
    """Create a user, assigned to ``vessel`` with ``role`` when a vessel is given."""
    user = User(name=name, email=email, vessel_admin_notification=opted_in)
    session.add(user)
    session.commit()
    session.refresh(user)
    if vessel is not None:
        role_access = (
            session.query(VesselRoleAccess).filter(VesselRoleAccess.name == role).one()
        )
        session.add(
            VesselUserRole(
                user_id=user.id,
                vessel_id=vessel.id,
                vessel_role_access_id=role_access.id,
                is_active=role_active,
            )
        )
        session.commit()
    return user


def create_pending(
    session: Session,
    recipient: User,
    vessel: Vessel,
    created_at: datetime,
    *,
    digest_type: str = "transaction_created",
    subject_id: str = "1",
    actor: User | None = None,
) -> EmailNotification:
    return EmailNotificationRepository(session).create(
        recipient_id=recipient.id,
        vessel_id=vessel.id,
        digest_type=digest_type,
        subject_type="transaction",
        subject_id=subject_id,
        actor_id=actor.id if actor is not None else None,
        subject_snapshot={"description": f"Transaction {subject_id}"},
        created_at=created_at,
    )


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    session = _TestSessionLocal()
    try:
        seed_role_accesses(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


class RecordingMailer:
    """DigestMailer double that records every digest and can fail per recipient."""

    def __init__(self, fail_for: set | None = None, result: bool = True):
        self.fail_for = fail_for or set()
        self.result = result
        self.sent: list[dict] = []

    async def send_digest(self, recipient, vessel, digest_type, snapshots, group_id):  # type: ignore[no-untyped-def]
        if recipient.id in self.fail_for:
            raise ConnectionError(f"SMTP connection refused for {recipient.email}")
        self.sent.append(
            {
                "recipient_id": recipient.id,
                "vessel_id": vessel.id,
                "digest_type": digest_type,
                "snapshots": list(snapshots),
                "group_id": group_id,
            }
        )
        return self.result


class SessionCheckingMailer(RecordingMailer):
    """RecordingMailer that notes whether ``db`` had an open transaction during each send."""

    def __init__(self, db: Session, **kwargs):  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.db = db
        self.in_transaction: list[bool] = []

    async def send_digest(self, recipient, vessel, digest_type, snapshots, group_id):  # type: ignore[no-untyped-def]
        self.in_transaction.append(self.db.in_transaction())
        return await super().send_digest(recipient, vessel, digest_type, snapshots, group_id)
