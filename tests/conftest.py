from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from barbershop import models  # noqa: F401
from barbershop.db import get_session
from barbershop.main import app


def next_weekday(weekday: int, weeks_ahead: int = 0) -> date:
    """Next date (never today) falling on ``weekday`` (0 = Monday)."""
    today = date.today()
    days = (weekday - today.weekday()) % 7 or 7
    return today + timedelta(days=days + 7 * weeks_ahead)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def barber(client):
    response = client.post("/barbers", json={"name": "Carlos", "specialty": "Fades"})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def second_barber(client):
    response = client.post("/barbers", json={"name": "Diego"})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def monday():
    return next_weekday(0)


@pytest.fixture
def book(client, barber, monday):
    """Create an appointment and return the response."""

    def _book(start_time, service_type="haircut", barber_id=None, day=None, phone="88887777", **extra):
        payload = {
            "barber_id": barber_id or barber["id"],
            "date": (day or monday).isoformat(),
            "start_time": start_time,
            "service_type": service_type,
            "client_name": extra.pop("client_name", "Ana"),
            "client_phone": phone,
        }
        payload.update(extra)
        return client.post("/appointments", json=payload)

    return _book
