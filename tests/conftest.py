"""
Pytest configuration and shared fixtures for the gym app tests.
"""

import os

os.environ["FLASK_ENV"] = "testing"
os.environ["TESTING"] = "True"

import datetime  # noqa: E402
from decimal import Decimal  # noqa: E402

import bcrypt  # noqa: E402
import pytest  # noqa: E402
from flask import Flask  # noqa: E402

from main import create_app  # noqa: E402
from app.extensions import db as database  # noqa: E402
from app.models import AuthUser, Base, Customer, Gym, Trainer  # noqa: E402


def is_safe_test_database(db_uri: str) -> bool:
    """
    Check if the database URI is safe for testing.
    Returns False if it appears to be a production database.
    """
    if not db_uri:
        return False

    db_uri_lower = db_uri.lower()
    dangerous_patterns = ["amazonaws.com", "azure.com", "prod", "live", "rlwy.net"]
    for pattern in dangerous_patterns:
        if pattern in db_uri_lower:
            print(f" DANGER: Found production pattern '{pattern}' in database URL!")
            return False

    return db_uri_lower.startswith("sqlite") or "test" in db_uri_lower


@pytest.fixture
def app():
    """Create and configure a test app instance."""
    test_db_url = os.environ.get("DATABASE_TEST_URL", "sqlite:///:memory:")
    if not is_safe_test_database(test_db_url):
        pytest.exit(f"Refusing to run tests against {test_db_url}")

    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": test_db_url,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "SCHEDULER_ENABLED": False,
        }
    )
    yield app


@pytest.fixture
def db(app: Flask):
    """Fresh schema for every test."""
    with app.app_context():
        Base.metadata.create_all(bind=database.engine)

        yield database

        database.session.remove()
        Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def client(app, db):
    return app.test_client()


@pytest.fixture
def sample_gym(db):
    gym = Gym(name="Iron Temple", address="12 MG Road", phone="080-5550101")
    db.session.add(gym)
    db.session.commit()
    return gym


@pytest.fixture
def other_gym(db):
    gym = Gym(name="Other Gym", address="99 Elsewhere")
    db.session.add(gym)
    db.session.commit()
    return gym


@pytest.fixture
def sample_user(db, sample_gym):
    """Gym owner account (password: ownerpass123)."""
    hashed_pw = bcrypt.hashpw(b"ownerpass123", bcrypt.gensalt())
    user = AuthUser(
        email="owner@irontemple.example",
        password_hash=hashed_pw.decode("utf-8"),
        role="OWNER",
        name="Gym Owner",
        gym_id=sample_gym.id,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_headers(client, sample_user):
    """Authorization headers from a real login."""
    response = client.post(
        "/api/auth/login",
        json={"email": "owner@irontemple.example", "password": "ownerpass123"},
    )
    assert response.status_code == 200
    token = response.get_json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_customer(db, sample_gym):
    customer = Customer(
        gym_id=sample_gym.id,
        name="Asha Rao",
        email="asha@example.com",
        phone="98450-00001",
        join_date=datetime.date(2024, 1, 2),
        total_spent=Decimal("0"),
    )
    db.session.add(customer)
    db.session.commit()
    return customer


@pytest.fixture
def sample_trainer(db, sample_gym):
    trainer = Trainer(
        gym_id=sample_gym.id,
        name="Vikram Singh",
        email="vikram@irontemple.example",
        specialization="Strength",
        experience=6,
    )
    db.session.add(trainer)
    db.session.commit()
    return trainer


@pytest.fixture
def assignment_payload(sample_customer, sample_trainer, sample_gym):
    return {
        "customer_id": sample_customer.id,
        "trainer_id": sample_trainer.id,
        "gym_id": sample_gym.id,
        "start_date": "2024-01-15",
        "duration": 3,
        "fees": 4500,
    }
