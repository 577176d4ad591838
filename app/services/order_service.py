import logging
import urllib.parse
from dataclasses import dataclass
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.order import Order
from app.models.order_item import OrderItem
from app.schemas.order import CheckoutCreate
from app.services.cart_service import cart_subtotal, clear_cart, get_cart_items, line_total
from app.services.loyalty_errors import PersistenceError
from app.services.loyalty_service import accumulate_points, normalize_phone, order_quantity


logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
ORDER_STATUSES = {STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED}

# matches what JavaScript's encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass
class LoyaltyOutcome:
    recorded: bool
    points: int | None = None
    created: bool = False
    cycle_expired: bool = False
    error: str | None = None


# ============================================================
# CHECKOUT
# ============================================================

def _fmt_money(value: float) -> str:
    return f"R$ {value:.2f}"


def build_whatsapp_message(order: Order, items: list[OrderItem]) -> str:
    lines = [
        "Olá! Gostaria de fazer um pedido:",
        "",
        f"👤 *Cliente:* {order.customer_name}",
        f"📱 *Telefone:* {order.customer_phone}",
        "",
        "🛒 *Produtos:*",
    ]
    for item in items:
        lines.append(f"• {item.product_name} ({item.quantity}x) - {_fmt_money(item.total_price)}")

    lines.append("")
    if order.delivery_option == "delivery":
        lines += [
            "📍 *Entrega:*",
            f"CEP: {order.delivery_cep}",
            f"Endereço: {order.delivery_address}",
            f"Bairro: {order.delivery_neighborhood}",
            f"Frete: {_fmt_money(order.delivery_fee)}",
        ]
    else:
        lines.append("📍 *Retirada Sem Custo*")

    lines += [
        "",
        f"💰 *Subtotal:* {_fmt_money(order.subtotal)}",
        f"💰 *Total:* {_fmt_money(order.total)}",
    ]
    if order.order_notes:
        lines += ["", f"📝 *Observações:* {order.order_notes}"]
    lines += ["", "Obrigado!"]

    return "\n".join(lines)


def build_whatsapp_url(number: str, message: str) -> str:
    digits = "".join(ch for ch in number if ch.isdigit())
    return f"https://wa.me/{digits}?text={urllib.parse.quote(message, safe=_URI_COMPONENT_SAFE)}"


def _validate_checkout(payload: CheckoutCreate):
    if not payload.customer_name.strip() or not payload.customer_phone.strip():
        raise HTTPException(status_code=400, detail="Customer name and phone are required")

    # reject numbers that could never earn loyalty points at approval
    normalize_phone(payload.customer_phone)

    if payload.delivery_option == "delivery":
        missing = [
            label
            for label, value in (
                ("delivery_cep", payload.delivery_cep),
                ("delivery_address", payload.delivery_address),
                ("delivery_neighborhood", payload.delivery_neighborhood),
            )
            if not (value or "").strip()
        ]
        if missing:
            raise HTTPException(
                status_code=400,
                detail=f"Delivery requires: {', '.join(missing)}",
            )


def checkout_cart(
    db: Session,
    session_id: str,
    payload: CheckoutCreate,
    *,
    delivery_fee: float,
    whatsapp_number: str,
):
    """
    Turn the session cart into a pending order and build the WhatsApp link.

    The cart is cleared in the same transaction as the order insert; the
    caller commits.
    """
    _validate_checkout(payload)

    cart_items = get_cart_items(db, session_id)
    if not cart_items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    is_delivery = payload.delivery_option == "delivery"
    subtotal = cart_subtotal(cart_items)
    fee = round(float(delivery_fee), 2) if is_delivery else 0.0

    order = Order(
        session_id=session_id,
        customer_name=payload.customer_name.strip(),
        customer_phone=payload.customer_phone.strip(),
        delivery_option=payload.delivery_option,
        delivery_address=payload.delivery_address if is_delivery else None,
        delivery_cep=payload.delivery_cep if is_delivery else None,
        delivery_neighborhood=payload.delivery_neighborhood if is_delivery else None,
        subtotal=subtotal,
        delivery_fee=fee,
        total=round(subtotal + fee, 2),
        order_notes=payload.order_notes or None,
        status=STATUS_PENDING,
        whatsapp_sent=False,
        loyalty_recorded=False,
    )

    for ci in cart_items:
        order.items.append(
            OrderItem(
                product_id=ci.product_id,
                product_name=ci.product.name,
                quantity=ci.quantity,
                unit_price=float(ci.product.price),
                total_price=line_total(ci),
            )
        )

    db.add(order)
    db.flush()

    message = build_whatsapp_message(order, order.items)
    url = build_whatsapp_url(whatsapp_number, message)

    order.whatsapp_sent = True
    clear_cart(db, session_id)
    db.flush()

    logger.info(
        "order created from cart",
        extra={"order_id": str(order.id), "items": len(order.items), "total": order.total},
    )
    return order, message, url


# ============================================================
# STAFF ACTIONS
# ============================================================

def get_order(db: Session, order_id) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def list_orders(db: Session, *, status: str | None = None, limit: int = 50, offset: int = 0):
    q = db.query(Order)
    if status:
        if status not in ORDER_STATUSES:
            raise HTTPException(status_code=400, detail=f"Unknown order status: {status}")
        q = q.filter(Order.status == status)

    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    return q.order_by(Order.created_at.desc()).offset(offset).limit(limit).all()


def items_summary(order: Order) -> str:
    return ", ".join(f"{i.product_name} (x{i.quantity})" for i in order.items)




def _claim(db: Session, order_id, conditions, values) -> bool:
    """Conditional UPDATE on one order; False when another writer got there first."""
    stmt = (
        update(Order)
        .where(Order.id == order_id, *conditions)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount > 0


def _record_order_loyalty(db: Session, order: Order, now: datetime | None) -> LoyaltyOutcome:
    order_id = order.id
    phone = order.customer_phone
    name = order.customer_name
    quantity = order_quantity(i.quantity for i in order.items)

    # only one caller may credit an order; the flag is reverted if accrual fails
    try:
        claimed = _claim(
            db,
            order_id,
            [Order.status == STATUS_APPROVED, Order.loyalty_recorded.is_(False)],
            {"loyalty_recorded": True, "loyalty_error": None},
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("loyalty claim failed", extra={"order_id": str(order_id)})
        raise PersistenceError("Could not record loyalty points for order") from e
    if not claimed:
        db.rollback()
        raise HTTPException(status_code=409, detail="Loyalty points already recorded for this order")

    try:
        result = accumulate_points(db, phone, name, quantity, now=now)
        points = result.account.points_accumulated
        db.commit()
    except (PersistenceError, SQLAlchemyError) as e:
        db.rollback()
        detail = e.detail if isinstance(e, PersistenceError) else "Could not save loyalty points"
        logger.error(
            "order approved but loyalty points were not recorded",
            extra={"order_id": str(order_id), "error": detail},
        )
        order.loyalty_recorded = False
        order.loyalty_error = detail
        try:
            db.commit()
        except SQLAlchemyError as commit_error:
            db.rollback()
            raise PersistenceError("Order approved but loyalty failure could not be saved") from commit_error
        return LoyaltyOutcome(recorded=False, error=detail)

    return LoyaltyOutcome(
        recorded=True,
        points=points,
        created=result.created,
        cycle_expired=result.cycle_expired,
    )


def approve_order(db: Session, order: Order, *, now: datetime | None = None) -> LoyaltyOutcome:
    """
    Mark a pending order approved, then credit its quantity to the customer's
    loyalty account.

    The pending -> approved transition is a conditional UPDATE, so of two
    concurrent approvals only one proceeds to accrual; the other gets 409.
    The approval is committed first. A loyalty write failure leaves the order
    approved with loyalty_recorded=False and is reported back, never hidden.
    """
    if order.status != STATUS_PENDING:
        raise HTTPException(status_code=409, detail=f"Order is already {order.status}")

    order_id = order.id

    # InvalidPhone stops the approval before anything is written
    normalize_phone(order.customer_phone)

    try:
        claimed = _claim(db, order_id, [Order.status == STATUS_PENDING], {"status": STATUS_APPROVED})
        if claimed:
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("order approval failed", extra={"order_id": str(order_id)})
        raise PersistenceError("Could not approve order") from e

    if not claimed:
        db.rollback()
        raise HTTPException(status_code=409, detail="Order is no longer pending")
    logger.info("order approved", extra={"order_id": str(order_id)})

    return _record_order_loyalty(db, order, now)


def retry_order_loyalty(db: Session, order: Order, *, now: datetime | None = None) -> LoyaltyOutcome:
    if order.status != STATUS_APPROVED:
        raise HTTPException(status_code=409, detail="Only approved orders earn loyalty points")
    if order.loyalty_recorded:
        raise HTTPException(status_code=409, detail="Loyalty points already recorded for this order")
    return _record_order_loyalty(db, order, now)


def reject_order(db: Session, order: Order) -> Order:
    if order.status != STATUS_PENDING:
        raise HTTPException(status_code=409, detail=f"Order is already {order.status}")
    if not _claim(db, order.id, [Order.status == STATUS_PENDING], {"status": STATUS_REJECTED}):
        db.rollback()
        raise HTTPException(status_code=409, detail="Order is no longer pending")
    logger.info("order rejected", extra={"order_id": str(order.id)})
    return order
