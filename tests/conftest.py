"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.test_constants import NOW, TEST_DATABASE_URL, TEST_INTERNAL_JOB_TOKEN

# Force test DB when pytest runs; don't inherit from .env
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["ALERT_SCHEDULER_ENABLED"] = "false"
os.environ["INTERNAL_JOB_TOKEN"] = TEST_INTERNAL_JOB_TOKEN


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    from estagiopro.main import app

    return TestClient(app)

@pytest.fixture
def client_with_db(db: Session) -> TestClient:
    """TestClient with get_db overridden to use the test db session."""
    from estagiopro.db.session import get_db
    from estagiopro.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    c = TestClient(app)
    yield c
    app.dependency_overrides.pop(get_db, None)

@pytest.fixture
def db() -> Session:
    """Database session on a fresh schema. Tables are dropped after each test."""
    import estagiopro.models  # noqa: F401
    from estagiopro.db.session import Base, engine

    Base.metadata.create_all(engine)
    session = Session(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def make_internship(db: Session):
    """Factory creating a student, an advisor, and an internship ending at ``end_date``."""
    from estagiopro.models import (
        Advisor,
        InternshipType,
        MandatoryInternship,
        NonMandatoryInternship,
        Student,
    )

    counter = {"n": 0}

    def _make(
        end_date: datetime | None,
        internship_type: InternshipType = InternshipType.MANDATORY,
        student_name: str = "Aluno Teste",
        registration_number: str | None = None,
        student_phone: str | None = None,
        advisor_name: str = "Orientador Teste",
        advisor_phone: str | None = "38999990000",
    ):
        counter["n"] += 1
        n = counter["n"]
        student = Student(
            name=student_name,
            email=f"student{n}@ufvjm.edu.br",
            registration_number=registration_number or f"2021{n:03d}",
            course="Sistemas de Informação",
            phone=student_phone,
        )
        advisor = Advisor(
            name=advisor_name,
            email=f"advisor{n}@ufvjm.edu.br",
            department="DECOM",
            phone=advisor_phone,
        )
        db.add_all([student, advisor])
        db.flush()
        model = (
            MandatoryInternship
            if internship_type is InternshipType.MANDATORY
            else NonMandatoryInternship
        )
        internship = model(
            student_id=student.id,
            advisor_id=advisor.id,
            start_date=(end_date or NOW) - timedelta(days=180),
            end_date=end_date,
        )
        db.add(internship)
        db.commit()
        db.refresh(internship)
        return internship

    return _make
