"""
Shared fixtures for the UkHiker API suite.

The app is imported only after the environment points it at a throwaway
SQLite file, a known JWT secret and a known Stripe webhook secret.
"""
import asyncio
import hashlib
import hmac
import json
import os
import tempfile
import time
from pathlib import Path

import pytest

WEBHOOK_SECRET = "whsec_test_ukhiker"
JWT_TEST_SECRET = "test-secret-for-ukhiker-suite"

_TMP_DIR = Path(tempfile.mkdtemp(prefix="ukhiker-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'test.db'}"
os.environ["JWT_SECRET"] = JWT_TEST_SECRET
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = WEBHOOK_SECRET
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ["LOG_DIR"] = str(_TMP_DIR / "logs")
os.environ["APP_ENV"] = "test"

from fastapi.testclient import TestClient
from sqlalchemy import func, select

from ukhiker.server import app
from ukhiker.core.database import SessionLocal, init_models, drop_models
from ukhiker.core.errors import NotFound
from ukhiker.models.payment import Payment
from ukhiker.services.auth_service import set_admin
from ukhiker.services.payment_gateway import (
    CheckoutSessionState,
    CreatedCheckoutSession,
    StripeGateway,
    get_payment_gateway,
    to_minor_units,
)


class FakeGateway(StripeGateway):
    """In-memory Stripe stand-in; signature checks stay real."""

    def __init__(self):
        super().__init__(
            secret_key="sk_test_dummy",
            webhook_secret=WEBHOOK_SECRET,
            frontend_url="http://frontend.test",
        )
        self.sessions = {}
        self.created = []
        self.retrieve_calls = []

    async def create_checkout_session(self, trek, quantity, user_id):
        session_id = f"cs_test_{len(self.created) + 1}"
        metadata = {"userId": user_id, "trekId": trek.id, "quantity": str(quantity)}
        self.created.append({
            "session_id": session_id,
            "unit_amount": to_minor_units(trek.price),
            "quantity": quantity,
            "metadata": metadata,
        })
        self.sessions[session_id] = CheckoutSessionState(
            id=session_id,
            status="open",
            payment_status="unpaid",
            amount_total=to_minor_units(trek.price) * quantity,
            currency=self.currency,
            metadata=metadata,
        )
        return CreatedCheckoutSession(session_id=session_id, url=f"https://checkout.stripe.test/{session_id}")

    async def retrieve_session(self, session_id):
        self.retrieve_calls.append(session_id)
        if session_id not in self.sessions:
            raise NotFound("Checkout session not found")
        return self.sessions[session_id]

    def mark_paid(self, session_id):
        session = self.sessions[session_id]
        session.status = "complete"
        session.payment_status = "paid"


async def _reset_schema():
    await drop_models()
    await init_models()


def run_async(coro):
    return asyncio.run(coro)


@pytest.fixture
def client():
    run_async(_reset_schema())
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def gateway(client):
    fake = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_payment_gateway, None)


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def signup(client, email="hiker@example.com", name="Hiker", password="Summit123!"):
    res = client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
    assert res.status_code == 201, res.text
    body = res.json()
    return body["token"], body["user"]


@pytest.fixture
def user_account(client):
    token, user = signup(client)
    return {"token": token, "user": user, "headers": auth_headers(token)}


@pytest.fixture
def other_account(client):
    token, user = signup(client, email="other@example.com", name="Other")
    return {"token": token, "user": user, "headers": auth_headers(token)}


@pytest.fixture
def admin_account(client):
    token, user = signup(client, email="admin@example.com", name="Admin")

    async def _promote():
        async with SessionLocal() as db:
            await set_admin(db, "admin@example.com", True)

    run_async(_promote())
    return {"token": token, "user": user, "headers": auth_headers(token)}


TREK_FIELDS = {
    "title": "Helvellyn via Striding Edge",
    "location": "Lake District",
    "imageUrl": "https://img.example.com/helvellyn.jpg",
    "pdfUrl": "https://docs.example.com/helvellyn.pdf",
    "description": "Classic scramble over Striding Edge.",
    "price": 49.99,
    "difficulty": "hard",
    "date": "2026-06-14T08:00:00",
}


def create_trek(client, headers, **overrides):
    data = dict(TREK_FIELDS, **overrides)
    res = client.post("/api/treks", json=data, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture
def sample_trek(client, user_account):
    return create_trek(client, user_account["headers"])


def count_payments():
    async def _count():
        async with SessionLocal() as db:
            return (await db.execute(select(func.count(Payment.id)))).scalar_one()

    return run_async(_count())


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_event(session_id, user_id, trek_id, event_type="checkout.session.completed",
                   payment_status="paid", amount_total=9998, quantity="2"):
    return {
        "id": f"evt_{session_id}_{event_type.rsplit('.', 1)[-1]}",
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "status": "complete",
                "payment_status": payment_status,
                "amount_total": amount_total,
                "currency": "gbp",
                "metadata": {"userId": user_id, "trekId": trek_id, "quantity": quantity},
            }
        },
    }


def post_webhook(client, event, signature=None):
    payload = json.dumps(event).encode("utf-8")
    headers = {"Content-Type": "application/json"}
    headers["Stripe-Signature"] = signature if signature is not None else sign_payload(payload)
    return client.post("/api/payments/webhook", content=payload, headers=headers)
