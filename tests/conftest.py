"""Shared fixtures: in-memory SQLite session, controllable clock, recording gateway."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from passledger.db.base import Base
from passledger.models import activity_record, ledger_config, ledger_event, pass_expiry  # noqa: F401
from passledger.services.activity.service import ActivityLogService
from passledger.services.ledger.service import PassLedgerService
from passledger.services.transfers.memory import InMemoryTransferGateway

OWNER = "owner"
PRICE = 100
DURATION_DAYS = 30


class FakeClock:
    def __init__(self, now: int = 1000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return InMemoryTransferGateway()


@pytest.fixture
def ledger(db, gateway, clock):
    svc = PassLedgerService(db, gateway, activity=ActivityLogService(db), clock=clock)
    svc.deploy(OWNER, PRICE, DURATION_DAYS)
    return svc
