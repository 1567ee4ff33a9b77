import os
import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.pool import NullPool

os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./careslot-test.db'
os.environ['ENV'] = 'local'

from careslot.core.db import make_engine, make_sessionmaker, create_all  # noqa: E402
from careslot.modules.availability.service import AvailabilityService  # noqa: E402
from careslot.modules.directory.models import Doctor  # noqa: E402
from careslot.platform.adapters.payments_local import LocalPaymentGate  # noqa: E402

FREE_DOCTOR = 7
PAID_DOCTOR = 8
PAYMENT_SECRET = 'test-payment-secret'


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self) -> None:
        self.confirmed = []
        self.cancelled = []

    async def on_confirmed(self, appointment) -> None:
        self.confirmed.append(appointment.id)

    async def on_cancelled(self, appointment) -> None:
        self.cancelled.append(appointment.id)


async def _seed(factory) -> None:
    async with factory() as s:
        s.add_all([
            Doctor(id=FREE_DOCTOR, name='Dr. Asha Rao', specialty='general', consultation_fee=Decimal('0')),
            Doctor(id=PAID_DOCTOR, name='Dr. Vikram Sen', specialty='cardiology', consultation_fee=Decimal('500.00')),
        ])
        await s.commit()
    for doctor_id in (FREE_DOCTOR, PAID_DOCTOR):
        async with factory() as s:
            # Mondays 09:00-11:00 in 30 minute slots
            await AvailabilityService(s).set_weekly_rule(doctor_id, 1, 9 * 60, 11 * 60, 30)


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'careslot.db'}", poolclass=NullPool)
    asyncio.run(create_all(eng))
    yield eng
    asyncio.run(eng.dispose())


@pytest.fixture
def factory(engine):
    return make_sessionmaker(engine)


@pytest.fixture
def seeded(factory):
    asyncio.run(_seed(factory))
    return factory


@pytest.fixture
def clock() -> FakeClock:
    # Sunday noon, the day before the seeded Monday schedule
    return FakeClock(datetime(2026, 3, 1, 12, 0))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def payments() -> LocalPaymentGate:
    return LocalPaymentGate(PAYMENT_SECRET)
