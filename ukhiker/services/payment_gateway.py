# FILE: ukhiker/services/payment_gateway.py
"""Thin adapter over the Stripe SDK.

Everything Stripe-specific lives here: checkout session creation, session
retrieval and webhook signature checks. Results are converted to plain
Python values so the rest of the app never touches SDK objects.
"""
import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

import stripe
from fastapi import Request
from fastapi.concurrency import run_in_threadpool

from ukhiker.core.config import (
    CHECKOUT_CURRENCY,
    FRONTEND_URL,
    LOG_DIR,
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
)
from ukhiker.core.errors import InternalError, NotFound, SignatureInvalid
from ukhiker.models.trek import Trek

os.makedirs(LOG_DIR, exist_ok=True)
stripe_logger = logging.getLogger("stripe_ukhiker")
if not stripe_logger.handlers:
    handler = logging.FileHandler(os.path.join(LOG_DIR, "stripe.log"))
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    handler.setFormatter(formatter)
    stripe_logger.setLevel(logging.INFO)
    stripe_logger.addHandler(handler)

# Seconds a signed webhook stays valid
WEBHOOK_TOLERANCE = 300


def to_minor_units(price: float) -> int:
    """49.995 -> 5000, rounding half up like the storefront does."""
    return int((Decimal(str(price)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_dict(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(value)


@dataclass
class CheckoutSessionState:
    id: str
    status: Optional[str] = None
    payment_status: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stripe(cls, obj: Any) -> "CheckoutSessionState":
        """Build from an SDK Session or the ``data.object`` of a webhook event."""
        return cls(
            id=_field(obj, "id"),
            status=_field(obj, "status"),
            payment_status=_field(obj, "payment_status"),
            amount_total=_field(obj, "amount_total"),
            currency=_field(obj, "currency"),
            metadata=_as_dict(_field(obj, "metadata")),
        )

    @property
    def is_paid(self) -> bool:
        return self.payment_status in {"paid", "no_payment_required"}


@dataclass
class CreatedCheckoutSession:
    session_id: str
    url: Optional[str]


class StripeGateway:
    def __init__(
            self,
            secret_key: str = "",
            webhook_secret: str = "",
            frontend_url: str = FRONTEND_URL,
            currency: str = CHECKOUT_CURRENCY,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.frontend_url = frontend_url.rstrip("/")
        self.currency = currency

    def _require_key(self) -> str:
        if not self.secret_key:
            raise InternalError("Stripe is not configured")
        return self.secret_key

    async def create_checkout_session(self, trek: Trek, quantity: int, user_id: str) -> CreatedCheckoutSession:
        api_key = self._require_key()
        product_data: Dict[str, Any] = {
            "name": trek.title,
            "description": f"Trek in {trek.location}",
        }
        if trek.image_url:
            product_data["images"] = [trek.image_url]

        params = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": product_data,
                        "unit_amount": to_minor_units(trek.price),
                    },
                    "quantity": quantity,
                }
            ],
            "success_url": f"{self.frontend_url}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.frontend_url}/trek/{trek.id}",
            # Stripe stores metadata values as strings
            "metadata": {
                "userId": user_id,
                "trekId": trek.id,
                "quantity": str(quantity),
            },
        }

        try:
            session = await run_in_threadpool(stripe.checkout.Session.create, api_key=api_key, **params)
        except stripe.StripeError as exc:
            stripe_logger.error("Stripe session creation failed", exc_info=exc)
            raise InternalError("Error creating payment session", detail=str(exc))

        stripe_logger.info(f"Checkout session {session.id} created for user={user_id} trek={trek.id} qty={quantity}")
        return CreatedCheckoutSession(session_id=session.id, url=getattr(session, "url", None))

    async def retrieve_session(self, session_id: str) -> CheckoutSessionState:
        api_key = self._require_key()
        try:
            session = await run_in_threadpool(stripe.checkout.Session.retrieve, session_id, api_key=api_key)
        except stripe.InvalidRequestError as exc:
            stripe_logger.warning(f"Checkout session {session_id} not retrievable: {exc}")
            raise NotFound("Checkout session not found")
        except stripe.StripeError as exc:
            stripe_logger.error(f"Stripe session retrieval failed for {session_id}", exc_info=exc)
            raise InternalError("Error verifying payment", detail=str(exc))
        return CheckoutSessionState.from_stripe(session)

    def verify_webhook_signature(self, raw_body: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        """Check the Stripe-Signature header against the exact request bytes.

        ``raw_body`` must be the unparsed body; re-serialized JSON will not match.
        """
        if not self.webhook_secret:
            raise InternalError("Stripe webhook not configured")
        if not signature_header:
            raise SignatureInvalid("Missing Stripe-Signature header")

        try:
            payload = raw_body.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                payload, signature_header, self.webhook_secret, WEBHOOK_TOLERANCE
            )
        except (stripe.SignatureVerificationError, ValueError) as exc:
            # ValueError: undecodable body or a non-numeric timestamp
            stripe_logger.warning(f"Webhook signature verification failed: {exc}")
            raise SignatureInvalid(detail=str(exc))

        try:
            event = json.loads(payload)
        except ValueError as exc:
            raise SignatureInvalid("Invalid webhook payload", detail=str(exc))
        if not isinstance(event, dict) or "type" not in event:
            raise SignatureInvalid("Invalid webhook payload")
        return event


def build_gateway() -> StripeGateway:
    return StripeGateway(secret_key=STRIPE_SECRET_KEY, webhook_secret=STRIPE_WEBHOOK_SECRET)


def get_payment_gateway(request: Request) -> StripeGateway:
    return request.app.state.payment_gateway
