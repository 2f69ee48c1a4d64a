"""
Subscription state and the payment-order lifecycle.

Orders move ``pending -> confirmed | failed`` and stay there. Confirmation is a
conditional update on the order row, and only the caller that actually flips
it promotes the user's tier, so duplicate webhook deliveries and repeated
return-URL hits leave the user exactly as a single confirmation did.
"""
import logging
import time
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from jobhunter.core import config
from jobhunter.core.errors import NotFoundError
from jobhunter.core.timeutils import utcnow, as_utc
from jobhunter.db.models.payment_order import PaymentOrder
from jobhunter.db.models.user import User

logger = logging.getLogger(__name__)

ORDER_PENDING = "pending"
ORDER_CONFIRMED = "confirmed"
ORDER_FAILED = "failed"

TIER_FREE = "free"
TIER_PRO = "pro"


def build_order_id(user_id: str, now_ms: Optional[int] = None) -> str:
    """``order_<user id>_<epoch millis>``."""
    return f"order_{user_id}_{now_ms if now_ms is not None else int(time.time() * 1000)}"


def record_order(
    db: Session,
    user: User,
    order_id: str,
    gateway: str,
    amount: float,
    currency: str,
    customer_phone: Optional[str] = None,
    payment_session_id: Optional[str] = None,
    return_url: Optional[str] = None,
    notify_url: Optional[str] = None,
) -> PaymentOrder:
    """Persist a new pending order and remember it on the user."""
    order = PaymentOrder(
        order_id=order_id,
        user_id=user.id,
        gateway=gateway,
        amount=amount,
        currency=currency,
        customer_email=user.email,
        customer_name=user.display_name,
        customer_phone=customer_phone,
        status=ORDER_PENDING,
        payment_session_id=payment_session_id,
        return_url=return_url,
        notify_url=notify_url,
    )
    db.add(order)
    user.pending_payment_order_id = order_id
    db.commit()
    db.refresh(order)
    logger.info(f"Order recorded: order_id={order_id}, user_id={user.id}, gateway={gateway}")
    return order


def get_order(db: Session, order_id: str, user_id: Optional[str] = None) -> PaymentOrder:
    """
    Load an order, optionally scoped to its owner.

    Raises:
        NotFoundError: If the order does not exist (or belongs to someone else)
    """
    query = db.query(PaymentOrder).filter(PaymentOrder.order_id == order_id)
    if user_id is not None:
        query = query.filter(PaymentOrder.user_id == user_id)
    order = query.first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _transition(db: Session, order_id: str, new_status: str, **extra) -> bool:
    """Move a pending order to ``new_status``; False when it was not pending."""
    values = {PaymentOrder.status: new_status, PaymentOrder.updated_at: utcnow()}
    for key, value in extra.items():
        values[getattr(PaymentOrder, key)] = value
    updated = db.query(PaymentOrder).filter(
        PaymentOrder.order_id == order_id,
        PaymentOrder.status == ORDER_PENDING,
    ).update(values, synchronize_session=False)
    return updated == 1


def activate_pro(user: User, now: Optional[datetime] = None) -> None:
    now = now or utcnow()
    user.subscription_tier = TIER_PRO
    user.subscription_activated_at = now
    user.subscription_expires_at = now + timedelta(days=config.PRO_PLAN_DAYS)
    user.pending_payment_order_id = None


def confirm_order(db: Session, order_id: str) -> bool:
    """
    Confirm an order and upgrade its owner, exactly once.

    Returns:
        True if this call confirmed the order, False if it was already terminal

    Raises:
        NotFoundError: If the order does not exist
    """
    order = get_order(db, order_id)
    now = utcnow()
    try:
        if not _transition(db, order_id, ORDER_CONFIRMED, confirmed_at=now):
            db.rollback()
            logger.info(f"Order already terminal, skipping upgrade: order_id={order_id}")
            return False

        user = db.query(User).filter(User.id == order.user_id).first()
        if user is None:
            raise NotFoundError("User not found for order")
        activate_pro(user, now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Order confirmed, user upgraded: order_id={order_id}, user_id={order.user_id}")
    return True


def fail_order(db: Session, order_id: str) -> bool:
    """Mark a pending order failed. Tier is untouched; the user no longer waits on it."""
    get_order(db, order_id)
    changed = _transition(db, order_id, ORDER_FAILED)
    if changed:
        db.query(User).filter(User.pending_payment_order_id == order_id).update(
            {User.pending_payment_order_id: None}, synchronize_session=False
        )
    db.commit()
    if changed:
        logger.warning(f"Order failed: order_id={order_id}")
    return changed


def payment_matches_order(order: PaymentOrder, amount: Any, currency: Optional[str]) -> bool:
    """True when a gateway-reported amount and currency equal what the order was created for."""
    try:
        paid = round(float(amount), 2)
    except (TypeError, ValueError):
        return False
    return paid == round(float(order.amount), 2) and (currency or "").upper() == (order.currency or "").upper()


def verify_payment(order: PaymentOrder, status: str, amount: Any, currency: Optional[str]) -> str:
    """
    Guard a gateway confirmation against the recorded order.

    A confirmation whose amount or currency differs from the order becomes a failure.
    """
    if status != ORDER_CONFIRMED or payment_matches_order(order, amount, currency):
        return status
    logger.error(
        f"Paid amount does not match order: order_id={order.order_id}, "
        f"expected={order.amount} {order.currency}, got={amount} {currency}"
    )
    return ORDER_FAILED


def apply_order_status(db: Session, order_id: str, status: str) -> str:
    """
    Apply a gateway-reported local status and return the order's final status.
    """
    if status == ORDER_CONFIRMED:
        confirm_order(db, order_id)
    elif status == ORDER_FAILED:
        fail_order(db, order_id)
    order = get_order(db, order_id)
    db.refresh(order)
    return order.status


def is_pro(user: User, now: Optional[datetime] = None) -> bool:
    if user.subscription_tier != TIER_PRO:
        return False
    expires_at = as_utc(user.subscription_expires_at)
    return expires_at is None or expires_at > (now or utcnow())


def effective_tier(user: User, now: Optional[datetime] = None) -> str:
    return TIER_PRO if is_pro(user, now) else TIER_FREE


def subscription_summary(user: User) -> Dict:
    return {
        "tier": effective_tier(user),
        "isPro": is_pro(user),
        "activatedAt": user.subscription_activated_at,
        "expiresAt": user.subscription_expires_at,
        "pendingOrderId": user.pending_payment_order_id,
    }
