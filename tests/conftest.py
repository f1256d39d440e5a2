import os
from datetime import date, datetime, time
from itertools import count

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('STATUS_SCHEDULER_ENABLED', 'false')

from petcare.core.clock import FixedClock  # noqa: E402
from petcare.database import Base  # noqa: E402
from petcare.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from petcare.models.pet import Pet  # noqa: E402
from petcare.models.user import PATIENT_ROLE, User, VET_ROLE  # noqa: E402

TABLES = [User.__table__, Appointment.__table__, Pet.__table__]

# Monday 2026-01-05, 10:00 clinic time.
NOW = datetime(2026, 1, 5, 10, 0)
TODAY = NOW.date()
TOMORROW = date(2026, 1, 6)
YESTERDAY = date(2026, 1, 4)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def session_factory():
    engine = create_engine('sqlite:///:memory:')
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    sequence = count(1)

    def _make_user(role: str = PATIENT_ROLE, specialization: str | None = None, is_enabled: bool = True) -> User:
        user = User(
            email=f'{role}{next(sequence)}@petcare.test',
            hashed_password='',
            role=role,
            specialization=specialization,
            is_enabled=is_enabled,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def vet(make_user):
    return make_user(VET_ROLE, specialization='Surgeon')


@pytest.fixture
def patient(make_user):
    return make_user(PATIENT_ROLE)


@pytest.fixture
def make_appointment(db, vet, patient):
    sequence = count(1)

    def _make_appointment(
        appointment_date: date = TOMORROW,
        appointment_time: time = time(15, 0),
        status: AppointmentStatus = AppointmentStatus.WAITING_FOR_APPROVAL,
        veterinarian: User | None = None,
        patient_user: User | None = None,
    ) -> Appointment:
        appointment = Appointment(
            appointment_no=f'{next(sequence):010d}',
            patient_id=(patient_user or patient).id,
            veterinarian_id=(veterinarian or vet).id,
            date=appointment_date,
            time=appointment_time,
            status=status,
            reason='Annual checkup',
            pets=[Pet(name='Rex', type='dog', breed='Beagle', color='brown', age=4)],
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make_appointment


def new_pet(name: str = 'Murka') -> Pet:
    return Pet(name=name, type='cat', color='grey', breed='British Shorthair', age=2)
