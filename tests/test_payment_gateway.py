"""StripeGateway against a monkeypatched SDK."""
import asyncio
import json
from types import SimpleNamespace

import pytest
import stripe

from conftest import WEBHOOK_SECRET, sign_payload
from ukhiker.core.errors import InternalError, NotFound, SignatureInvalid
from ukhiker.services.payment_gateway import CheckoutSessionState, StripeGateway, to_minor_units


@pytest.fixture
def stripe_gateway():
    return StripeGateway(
        secret_key="sk_test_unit",
        webhook_secret=WEBHOOK_SECRET,
        frontend_url="https://ukhikers.test/",
        currency="gbp",
    )


def _trek(**overrides):
    fields = dict(
        id="trek-1",
        title="Scafell Pike",
        location="Wasdale",
        image_url="https://img.example.com/scafell.jpg",
        price=35.5,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.parametrize("price,expected", [(49.99, 4999), (35.5, 3550), (0.125, 13), (10, 1000), (19.995, 2000)])
def test_to_minor_units_rounds_half_up(price, expected):
    assert to_minor_units(price) == expected


def test_create_checkout_session_builds_line_item(monkeypatch, stripe_gateway):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="cs_unit_1", url="https://checkout.stripe.com/c/cs_unit_1")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)

    created = asyncio.run(stripe_gateway.create_checkout_session(_trek(), 2, "user-9"))

    assert created.session_id == "cs_unit_1"
    assert created.url == "https://checkout.stripe.com/c/cs_unit_1"
    assert captured["api_key"] == "sk_test_unit"
    assert captured["mode"] == "payment"
    item = captured["line_items"][0]
    assert item["quantity"] == 2
    assert item["price_data"]["currency"] == "gbp"
    assert item["price_data"]["unit_amount"] == 3550
    assert item["price_data"]["product_data"]["name"] == "Scafell Pike"
    assert item["price_data"]["product_data"]["images"] == ["https://img.example.com/scafell.jpg"]
    assert captured["metadata"] == {"userId": "user-9", "trekId": "trek-1", "quantity": "2"}
    assert captured["success_url"] == "https://ukhikers.test/payment/success?session_id={CHECKOUT_SESSION_ID}"
    assert captured["cancel_url"] == "https://ukhikers.test/trek/trek-1"


def test_create_checkout_session_maps_stripe_errors(monkeypatch, stripe_gateway):
    def boom(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", boom)

    with pytest.raises(InternalError) as exc_info:
        asyncio.run(stripe_gateway.create_checkout_session(_trek(), 1, "user-9"))

    assert exc_info.value.message == "Error creating payment session"
    assert "network down" in exc_info.value.detail


def test_missing_secret_key_is_internal_error():
    gateway = StripeGateway(secret_key="", webhook_secret=WEBHOOK_SECRET)

    with pytest.raises(InternalError):
        asyncio.run(gateway.retrieve_session("cs_any"))


def test_retrieve_session_normalises_sdk_object(monkeypatch, stripe_gateway):
    def fake_retrieve(session_id, **kwargs):
        assert kwargs["api_key"] == "sk_test_unit"
        return SimpleNamespace(
            id=session_id,
            status="complete",
            payment_status="paid",
            amount_total=7100,
            currency="gbp",
            metadata={"userId": "user-9", "trekId": "trek-1", "quantity": "2"},
        )

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", fake_retrieve)

    state = asyncio.run(stripe_gateway.retrieve_session("cs_unit_2"))

    assert state == CheckoutSessionState(
        id="cs_unit_2",
        status="complete",
        payment_status="paid",
        amount_total=7100,
        currency="gbp",
        metadata={"userId": "user-9", "trekId": "trek-1", "quantity": "2"},
    )
    assert state.is_paid


def test_retrieve_unknown_session_is_not_found(monkeypatch, stripe_gateway):
    def fake_retrieve(session_id, **kwargs):
        raise stripe.InvalidRequestError("No such checkout.session", "id")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", fake_retrieve)

    with pytest.raises(NotFound):
        asyncio.run(stripe_gateway.retrieve_session("cs_missing"))


def test_session_state_from_webhook_payload():
    state = CheckoutSessionState.from_stripe({
        "id": "cs_hook",
        "payment_status": "unpaid",
        "metadata": None,
    })

    assert state.id == "cs_hook"
    assert state.metadata == {}
    assert not state.is_paid


class TestWebhookSignature:

    def test_valid_signature_returns_event(self, stripe_gateway):
        payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {}}}).encode()

        event = stripe_gateway.verify_webhook_signature(payload, sign_payload(payload))

        assert event["id"] == "evt_1"
        assert event["type"] == "checkout.session.completed"

    def test_reserialized_body_no_longer_matches(self, stripe_gateway):
        payload = b'{"id": "evt_2",  "type": "checkout.session.completed"}'
        signature = sign_payload(payload)
        reserialized = json.dumps(json.loads(payload)).encode()

        assert reserialized != payload
        with pytest.raises(SignatureInvalid):
            stripe_gateway.verify_webhook_signature(reserialized, signature)

    def test_stale_timestamp_is_rejected(self, stripe_gateway):
        payload = b'{"id": "evt_3", "type": "checkout.session.completed"}'

        with pytest.raises(SignatureInvalid):
            stripe_gateway.verify_webhook_signature(payload, sign_payload(payload, timestamp=1_000_000))

    def test_garbage_header_is_rejected(self, stripe_gateway):
        with pytest.raises(SignatureInvalid):
            stripe_gateway.verify_webhook_signature(b"{}", "definitely-not-a-signature")

    def test_signed_non_event_payload_is_rejected(self, stripe_gateway):
        payload = b'["not", "an", "event"]'

        with pytest.raises(SignatureInvalid):
            stripe_gateway.verify_webhook_signature(payload, sign_payload(payload))

    def test_unconfigured_secret(self):
        gateway = StripeGateway(secret_key="sk_test_unit", webhook_secret="")

        with pytest.raises(InternalError):
            gateway.verify_webhook_signature(b"{}", "t=1,v1=abc")
