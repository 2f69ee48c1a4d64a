"""
Stripe hosted checkout for the Pro plan.

Checkout sessions are recorded as payment orders keyed by the session id, and
webhook events feed the same exactly-once confirmation path as Cashfree.
"""
import json
import logging
from typing import Dict, Optional

import stripe
from sqlalchemy.orm import Session

from jobhunter.core import config
from jobhunter.core.errors import GatewayError, ValidationError
from jobhunter.db.models.payment_order import PaymentOrder
from jobhunter.db.models.user import User
from jobhunter.services import subscription_service

logger = logging.getLogger(__name__)


def _configure():
    if not config.STRIPE_SECRET_KEY or not config.STRIPE_PRICE_ID_PRO:
        raise ValidationError("Stripe not configured - STRIPE_SECRET_KEY and STRIPE_PRICE_ID_PRO required")
    stripe.api_key = config.STRIPE_SECRET_KEY


def create_checkout_session(
    user: User,
    db: Session,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> Dict[str, str]:
    """
    Create a Stripe Checkout session for a one-off Pro plan purchase.

    Args:
        user: Paying user
        db: Database session
        success_url: Redirect after payment (defaults to PUBLIC_BASE_URL/payment-success)
        cancel_url: Redirect on cancel (defaults to PUBLIC_BASE_URL/pricing?payment=cancelled)

    Returns:
        Dictionary with ``checkoutUrl`` and ``sessionId``
    """
    _configure()
    base_url = config.require_public_base_url()
    success_url = success_url or f"{base_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = cancel_url or f"{base_url}/pricing?payment=cancelled"

    try:
        session = stripe.checkout.Session.create(
            customer_email=user.email,
            payment_method_types=["card"],
            mode="payment",
            line_items=[{
                "price": config.STRIPE_PRICE_ID_PRO,
                "quantity": 1,
            }],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"user_id": str(user.id)},
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe error creating checkout session: user_id={user.id}, error={e}")
        raise GatewayError("Stripe", getattr(e, "http_status", None) or 502, str(e))

    amount = (getattr(session, "amount_total", None) or 0) / 100
    subscription_service.record_order(
        db,
        user,
        order_id=session.id,
        gateway="stripe",
        amount=amount,
        currency=(getattr(session, "currency", None) or "usd").upper(),
        return_url=success_url,
    )
    logger.info(f"Created checkout session: session_id={session.id}, user_id={user.id}")
    return {"checkoutUrl": session.url, "sessionId": session.id}


def verify_webhook(request_body: bytes, signature: Optional[str]) -> dict:
    """
    Verify and parse a Stripe webhook event.

    Raises:
        ValidationError: If webhook verification fails
    """
    if not config.STRIPE_WEBHOOK_SECRET:
        raise ValidationError("STRIPE_WEBHOOK_SECRET not configured")

    try:
        stripe.Webhook.construct_event(request_body, signature, config.STRIPE_WEBHOOK_SECRET)
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise ValidationError("Invalid webhook payload")
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise ValidationError("Invalid signature")

    # Plain dict from the verified body; handlers use dict access only
    event = json.loads(request_body)
    logger.info(f"Verified webhook event: {event.get('type')}, id={event.get('id')}")
    return event


def handle_event(event: dict, db: Session) -> Optional[str]:
    """
    Apply a verified Stripe event to the matching order.

    Returns:
        The order's resulting status, or None for ignored events
    """
    event_type = event["type"]
    session_data = event["data"]["object"]
    order_id = session_data.get("id")

    if event_type == "checkout.session.completed":
        if session_data.get("payment_status") not in (None, "paid", "no_payment_required"):
            logger.info(f"Checkout completed but unpaid, waiting: session_id={order_id}")
            return subscription_service.ORDER_PENDING
        return _confirm_paid(db, session_data)

    if event_type == "checkout.session.async_payment_succeeded":
        return _confirm_paid(db, session_data)

    if event_type in ("checkout.session.expired", "checkout.session.async_payment_failed"):
        _ensure_order(db, session_data)
        return subscription_service.apply_order_status(db, order_id, subscription_service.ORDER_FAILED)

    logger.info(f"Unhandled Stripe event type: {event_type}")
    return None


def _ensure_order(db: Session, session_data: dict) -> PaymentOrder:
    """Orders are normally recorded at checkout; recover them from metadata otherwise."""
    order_id = session_data.get("id")
    order = db.query(PaymentOrder).filter(PaymentOrder.order_id == order_id).first()
    if order:
        return order

    user_id = (session_data.get("metadata") or {}).get("user_id")
    user = db.query(User).filter(User.id == user_id).first() if user_id else None
    if user is None:
        raise ValidationError("Cannot identify user from checkout session")

    logger.warning(f"Recording missing order from webhook: session_id={order_id}")
    return subscription_service.record_order(
        db,
        user,
        order_id=order_id,
        gateway="stripe",
        amount=(session_data.get("amount_total") or 0) / 100,
        currency=(session_data.get("currency") or "usd").upper(),
    )


def _confirm_paid(db: Session, session_data: dict) -> str:
    order = _ensure_order(db, session_data)
    status = subscription_service.verify_payment(
        order,
        subscription_service.ORDER_CONFIRMED,
        (session_data.get("amount_total") or 0) / 100,
        session_data.get("currency"),
    )
    return subscription_service.apply_order_status(db, order.order_id, status)
