"""
Pro plan payments: Cashfree orders and Stripe hosted checkout.

Every confirmation path (status poll, activation call, return URL, webhooks)
funnels into ``subscription_service.confirm_order``, which upgrades the user
at most once per order.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import RedirectResponse
from sqlalchemy import desc
from sqlalchemy.orm import Session

from jobhunter.core import config
from jobhunter.core.auth_dependency import require_session
from jobhunter.core.errors import AppError, ValidationError
from jobhunter.core.rate_limit import rate_limited
from jobhunter.db.models.payment_order import PaymentOrder
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db
from jobhunter.schemas.payment import (
    ActivateSubscriptionRequest,
    CheckoutRequest,
    CheckoutResponse,
    CreateSubscriptionRequest,
    CreateSubscriptionResponse,
    PaymentOrderResponse,
)
from jobhunter.services import stripe_service, subscription_service
from jobhunter.services.cashfree_service import (
    CashfreeClient,
    CustomerDetails,
    get_payment_gateway,
    map_order_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Payments"])

# Cashfree payment_status values in PAYMENT_* webhooks
WEBHOOK_SUCCESS = {"SUCCESS"}
WEBHOOK_FAILURE = {"FAILED", "USER_DROPPED", "CANCELLED"}


def default_price(currency: str) -> float:
    return config.PRO_PRICE_INR if currency == "INR" else config.PRO_PRICE_USD


async def reconcile_order(db: Session, gateway: CashfreeClient, order_id: str) -> str:
    """Ask Cashfree for the order state and apply it locally."""
    order = subscription_service.get_order(db, order_id)
    gateway_order = await gateway.get_order_status(order_id)
    status = subscription_service.verify_payment(
        order,
        map_order_status(gateway_order.get("order_status")),
        gateway_order.get("order_amount"),
        gateway_order.get("order_currency"),
    )
    return subscription_service.apply_order_status(db, order_id, status)


# ============================================
# ✅ CASHFREE
# ============================================

@router.post(
    "/create-subscription",
    response_model=CreateSubscriptionResponse,
    dependencies=[Depends(rate_limited("create_order", max_requests=5, window_seconds=60))],
)
async def create_subscription(
    payload: CreateSubscriptionRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
    gateway: CashfreeClient = Depends(get_payment_gateway),
):
    amount = default_price(payload.currency)
    order_id = subscription_service.build_order_id(user.id)
    customer = CustomerDetails(
        customer_id=user.id,
        customer_email=user.email,
        customer_phone=payload.phone or config.CASHFREE_DEFAULT_PHONE,
        customer_name=user.display_name,
    )

    gateway_order = await gateway.create_order(order_id, amount, payload.currency, customer)

    subscription_service.record_order(
        db,
        user,
        order_id=order_id,
        gateway="cashfree",
        amount=amount,
        currency=payload.currency,
        customer_phone=customer.customer_phone,
        payment_session_id=gateway_order.get("payment_session_id"),
        return_url=gateway.return_url(order_id),
        notify_url=gateway.notify_url(),
    )
    return CreateSubscriptionResponse(
        order_id=order_id,
        payment_session_id=gateway_order.get("payment_session_id"),
        amount=amount,
        currency=payload.currency,
        environment=gateway.environment,
    )


@router.get("/payment/order-status/{order_id}")
async def order_status(
    order_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
    gateway: CashfreeClient = Depends(get_payment_gateway),
):
    subscription_service.get_order(db, order_id, user_id=user.id)
    status = await reconcile_order(db, gateway, order_id)
    db.refresh(user)
    return {
        "orderId": order_id,
        "status": status,
        "subscription": subscription_service.subscription_summary(user),
    }


@router.post("/payment/activate-subscription")
async def activate_subscription(
    payload: ActivateSubscriptionRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
    gateway: CashfreeClient = Depends(get_payment_gateway),
):
    """Confirm a paid order after the checkout redirect; activation never trusts the client alone."""
    subscription_service.get_order(db, payload.order_id, user_id=user.id)
    status = await reconcile_order(db, gateway, payload.order_id)
    db.refresh(user)
    return {
        "success": status == subscription_service.ORDER_CONFIRMED,
        "status": status,
        "subscription": subscription_service.subscription_summary(user),
    }


@router.post("/payment/webhook")
async def cashfree_webhook(
    request: Request,
    x_webhook_timestamp: Optional[str] = Header(None),
    x_webhook_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    gateway: CashfreeClient = Depends(get_payment_gateway),
):
    raw_body = await request.body()
    event = gateway.verify_webhook(raw_body, x_webhook_timestamp, x_webhook_signature)

    data = event.get("data") or {}
    order_data = data.get("order") or {}
    order_id = order_data.get("order_id")
    payment_status = ((data.get("payment") or {}).get("payment_status") or "").upper()
    logger.info(f"Cashfree webhook: type={event.get('type')}, order_id={order_id}, payment_status={payment_status}")

    if not order_id:
        raise ValidationError("Webhook payload has no order id")

    if payment_status in WEBHOOK_SUCCESS:
        order = subscription_service.get_order(db, order_id)
        status = subscription_service.verify_payment(
            order,
            subscription_service.ORDER_CONFIRMED,
            order_data.get("order_amount"),
            order_data.get("order_currency"),
        )
        subscription_service.apply_order_status(db, order_id, status)
    elif payment_status in WEBHOOK_FAILURE:
        subscription_service.fail_order(db, order_id)

    return {"status": "success"}


@router.get("/payment/return")
async def payment_return(
    order_id: Optional[str] = None,
    db: Session = Depends(get_db),
    gateway: CashfreeClient = Depends(get_payment_gateway),
):
    """Browser lands here from Cashfree checkout; reconcile, then hand back to the SPA."""
    if not order_id:
        return RedirectResponse("/pricing?payment=failed", status_code=302)
    try:
        status = await reconcile_order(db, gateway, order_id)
    except AppError as e:
        logger.error(f"Payment return reconciliation failed: order_id={order_id}, error={e.message}")
        return RedirectResponse("/pricing?payment=failed", status_code=302)

    if status == subscription_service.ORDER_CONFIRMED:
        return RedirectResponse(f"/payment-success?order_id={order_id}", status_code=302)
    if status == subscription_service.ORDER_PENDING:
        return RedirectResponse(f"/pricing?payment=pending&order_id={order_id}", status_code=302)
    return RedirectResponse("/pricing?payment=failed", status_code=302)


# ============================================
# ✅ STRIPE
# ============================================

@router.post(
    "/payments/checkout",
    response_model=CheckoutResponse,
    dependencies=[Depends(rate_limited("checkout", max_requests=5, window_seconds=60))],
)
def create_checkout(
    payload: Optional[CheckoutRequest] = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    payload = payload or CheckoutRequest()
    session = stripe_service.create_checkout_session(user, db, payload.success_url, payload.cancel_url)
    return CheckoutResponse(checkout_url=session["checkoutUrl"], session_id=session["sessionId"])


@router.post("/payments/webhook/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    payload = await request.body()
    event = stripe_service.verify_webhook(payload, stripe_signature)
    status = stripe_service.handle_event(event, db)
    return {"status": "success", "orderStatus": status}


@router.get("/payments/subscription-status")
def subscription_status(user: User = Depends(require_session)):
    return subscription_service.subscription_summary(user)


@router.get("/payments/history")
def payment_history(
    db: Session = Depends(get_db),
    user: User = Depends(require_session),
):
    orders = (
        db.query(PaymentOrder)
        .filter(PaymentOrder.user_id == user.id)
        .order_by(desc(PaymentOrder.created_at))
        .all()
    )
    return [
        PaymentOrderResponse.model_validate(o).model_dump(by_alias=True, mode="json")
        for o in orders
    ]
