"""
Record store for loyalty accounts.

Every write is a single statement keyed on the phone number so concurrent
order approvals for the same customer never lose an increment. SQLAlchemy
failures are re-raised as PersistenceError and never retried here.
"""
import logging
from datetime import datetime

from sqlalchemy import delete, func, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.loyalty_account import LoyaltyAccount
from app.services.loyalty_errors import PersistenceError


logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _persistence_error(action: str, phone: str | None, exc: Exception) -> PersistenceError:
    logger.exception("loyalty store failure", extra={"action": action, "phone": phone})
    return PersistenceError(f"Could not {action} loyalty account: {exc.__class__.__name__}")


def find_account_by_phone(db: Session, phone: str, *, for_update: bool = False) -> LoyaltyAccount | None:
    try:
        q = db.query(LoyaltyAccount).filter(LoyaltyAccount.phone_number == phone)
        if for_update:
            q = q.with_for_update()
        # rows may have been changed by Core UPDATEs behind the identity map
        return q.populate_existing().first()
    except SQLAlchemyError as e:
        raise _persistence_error("read", phone, e) from e


def create_account(
    db: Session,
    phone: str,
    customer_name: str | None,
    initial_points: int,
    now: datetime,
) -> LoyaltyAccount:
    """
    Insert a fresh account starting its cycle at `now`.

    A concurrent creator for the same phone turns this insert into an
    increment (ON CONFLICT DO UPDATE) instead of a unique violation, and the
    existing cycle start is kept.
    """
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise PersistenceError(f"Unsupported database dialect for loyalty upsert: {dialect}")

    stmt = insert(LoyaltyAccount).values(
        phone_number=phone,
        customer_name=customer_name,
        points_accumulated=initial_points,
        cycle_started_at=now,
        last_purchase_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["phone_number"],
        set_={
            "points_accumulated": LoyaltyAccount.points_accumulated + stmt.excluded.points_accumulated,
            "last_purchase_at": stmt.excluded.last_purchase_at,
            "customer_name": func.coalesce(stmt.excluded.customer_name, LoyaltyAccount.customer_name),
        },
    )

    try:
        db.execute(stmt)
    except SQLAlchemyError as e:
        raise _persistence_error("create", phone, e) from e

    account = find_account_by_phone(db, phone)
    if account is None:
        raise PersistenceError("Loyalty account vanished right after creation")
    return account


def increment_account_points(
    db: Session,
    phone: str,
    delta: int,
    now: datetime,
    customer_name: str | None = None,
) -> LoyaltyAccount | None:
    """Atomic `points += delta`. Returns None when no account exists."""
    values = {
        "points_accumulated": LoyaltyAccount.points_accumulated + delta,
        "last_purchase_at": now,
    }
    if customer_name:
        values["customer_name"] = customer_name

    stmt = (
        update(LoyaltyAccount)
        .where(LoyaltyAccount.phone_number == phone)
        .values(**values)
        .execution_options(synchronize_session=False)
    )

    try:
        result = db.execute(stmt)
    except SQLAlchemyError as e:
        raise _persistence_error("increment", phone, e) from e

    if result.rowcount == 0:
        return None
    return find_account_by_phone(db, phone)


def delete_account(db: Session, phone: str) -> bool:
    stmt = (
        delete(LoyaltyAccount)
        .where(LoyaltyAccount.phone_number == phone)
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
    except SQLAlchemyError as e:
        raise _persistence_error("delete", phone, e) from e
    return result.rowcount > 0


def list_all_accounts(db: Session) -> list[LoyaltyAccount]:
    try:
        return (
            db.query(LoyaltyAccount)
            .order_by(LoyaltyAccount.last_purchase_at.desc(), LoyaltyAccount.phone_number.asc())
            .all()
        )
    except SQLAlchemyError as e:
        raise _persistence_error("list", None, e) from e


def commit(db: Session, action: str, phone: str | None = None):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise _persistence_error(action, phone, e) from e
