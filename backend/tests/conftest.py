import json
import logging
import os
from typing import Iterator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from httpx import Response
from sqlalchemy.orm import Session

# Set test environment variables
os.environ.update(
    {
        "DATABASE_URL": "sqlite://",
        "RAZORPAY_KEY_ID": "rzp_test_key",
        "RAZORPAY_KEY_SECRET": "rzp_test_secret",
        "RAZORPAY_WEBHOOK_SECRET": "whsec_test",
        "BACKEND_URL": "http://booking.test/",
        "BOOKING_GUEST_PASSWORD": "guest-pass",
        "WEBHOOK_DEDUPE": "false",
    }
)

# Import app modules after setting environment variables
from paybridge.core.config import Settings, get_settings
from paybridge.db.models import Base
from paybridge.db.session import SessionLocal, engine
from paybridge.main import app, db_session, get_gateway
from paybridge.services.gateway import PaymentGateway
from paybridge.services.razorpay_verify import compute_signature

logger = logging.getLogger(__name__)

BOOKING_HOST = "booking.test"
LOGIN_PATH = "/api/patientportal/NewUserLogin"
PAYMENT_PATH = "/api/patientportal/UpdtPmtGatewayDtlPortal"
APPOINTMENT_PATH = "/api/patientportal/UpdtDocApptReqForPortal"


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def razorpay_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(db, razorpay_client) -> Iterator[TestClient]:
    app.dependency_overrides[db_session] = lambda: db
    app.dependency_overrides[get_gateway] = lambda: PaymentGateway(razorpay_client)

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def sign(body: bytes, secret: str = "whsec_test") -> str:
    return compute_signature(body, secret)


def webhook_body(event: str, notes=None, payment_id: str = "pay_001") -> bytes:
    payload = {
        "entity": "event",
        "account_id": "acc_test",
        "event": event,
        "contains": ["payment"],
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "entity": "payment",
                    "amount": 50000,
                    "currency": "INR",
                    "order_id": "order_001",
                    "notes": notes if notes is not None else [],
                }
            }
        },
        "created_at": 1700000000,
    }
    return json.dumps(payload).encode()


@pytest.fixture
def booking_routes(respx_mock):
    """Mock the three booking backend endpoints with successful responses."""
    login = respx_mock.get(host=BOOKING_HOST, path=LOGIN_PATH).mock(
        return_value=Response(200, json={"data": {"token": "tok-guest"}})
    )
    payment = respx_mock.get(host=BOOKING_HOST, path=PAYMENT_PATH).mock(
        return_value=Response(200, json={"status": "ok"})
    )
    appointment = respx_mock.post(host=BOOKING_HOST, path=APPOINTMENT_PATH).mock(
        return_value=Response(200, json={"status": "ok"})
    )
    return {"login": login, "payment": payment, "appointment": appointment}
