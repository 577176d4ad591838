import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.loyalty_account import LoyaltyAccount
from app.models.loyalty_account_closure import LoyaltyAccountClosure
from app.services.loyalty_account_store import (
    create_account,
    delete_account,
    find_account_by_phone,
    increment_account_points,
    list_all_accounts,
)
from app.services.loyalty_errors import (
    AccountNotFound,
    ConfirmationRequired,
    InvalidPhone,
    NotEligible,
    PersistenceError,
)


logger = logging.getLogger(__name__)

REWARD_THRESHOLD = 20
CYCLE_LENGTH_DAYS = 30
MIN_PHONE_DIGITS = 8

CLOSE_REASON_REDEEMED = "REDEEMED"
CLOSE_REASON_RESET = "RESET"

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class ExpirationStatus:
    is_expired: bool
    days_remaining: int
    cycle_started_at: datetime
    cycle_limit_date: datetime


@dataclass
class AccountView:
    account: LoyaltyAccount
    expiration: ExpirationStatus
    has_reward: bool

    @property
    def points_missing(self) -> int:
        return max(0, REWARD_THRESHOLD - int(self.account.points_accumulated or 0))


@dataclass
class AccumulationResult:
    account: LoyaltyAccount
    created: bool
    cycle_expired: bool


def _utcnow() -> datetime:
    # Keep naive UTC timestamps to match the TIMESTAMP columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _mask(phone: str) -> str:
    return f"***{phone[-4:]}"


# ============================================================
# PHONE / QUANTITY INPUTS
# ============================================================

def normalize_phone(raw: str | None) -> str:
    digits = _NON_DIGITS.sub("", raw or "")
    if len(digits) < MIN_PHONE_DIGITS:
        raise InvalidPhone(f"Phone number must contain at least {MIN_PHONE_DIGITS} digits")
    return digits


def order_quantity(quantities: Iterable) -> int:
    """
    Total item quantity of an order for loyalty purposes.

    Missing, non-numeric or non-positive line quantities count as 1, and an
    order with no lines still counts as 1.
    """
    total = 0
    for value in quantities:
        try:
            q = int(value)
        except (TypeError, ValueError):
            q = 0
        total += q if q > 0 else 1
    return total if total > 0 else 1


# ============================================================
# DERIVED STATE (pure)
# ============================================================

def cycle_limit_date(cycle_started_at: datetime) -> datetime:
    return cycle_started_at + timedelta(days=CYCLE_LENGTH_DAYS)


def expiration_status(account, now: datetime) -> ExpirationStatus:
    started = account.cycle_started_at
    limit = cycle_limit_date(started)

    remaining_days = math.ceil((limit - now).total_seconds() / 86400)

    return ExpirationStatus(
        is_expired=now > limit,
        days_remaining=max(0, remaining_days),
        cycle_started_at=started,
        cycle_limit_date=limit,
    )


def has_reward(account, now: datetime) -> bool:
    points = int(account.points_accumulated or 0)
    return points >= REWARD_THRESHOLD and not expiration_status(account, now).is_expired


def describe_account(account: LoyaltyAccount, now: datetime) -> AccountView:
    return AccountView(
        account=account,
        expiration=expiration_status(account, now),
        has_reward=has_reward(account, now),
    )


# ============================================================
# ACCUMULATE
# ============================================================

def accumulate_points(
    db: Session,
    phone: str,
    customer_name: str | None,
    quantity: int,
    *,
    now: datetime | None = None,
) -> AccumulationResult:
    now = now or _utcnow()
    normalized = normalize_phone(phone)

    quantity = int(quantity)
    if quantity < 0:
        raise ValueError("quantity must be >= 0")

    name = (customer_name or "").strip() or None

    # Expired cycles keep accumulating until staff resets them.
    account = increment_account_points(db, normalized, quantity, now, customer_name=name)
    created = False
    if account is None:
        account = create_account(db, normalized, name, quantity, now)
        created = True

    status = expiration_status(account, now)
    if status.is_expired:
        logger.warning(
            "points accumulated into an expired loyalty cycle",
            extra={
                "phone": _mask(normalized),
                "cycle_started_at": status.cycle_started_at.isoformat(),
                "points": account.points_accumulated,
            },
        )

    logger.info(
        "loyalty points accumulated",
        extra={
            "phone": _mask(normalized),
            "quantity": quantity,
            "points": account.points_accumulated,
            "account_created": created,
        },
    )

    return AccumulationResult(account=account, created=created, cycle_expired=status.is_expired)


# ============================================================
# CLOSE CYCLE (redeem / reset)
# ============================================================

def _close_account(
    db: Session,
    phone: str,
    *,
    reason: str,
    now: datetime,
    closed_by: str | None,
    is_eligible: Callable[[LoyaltyAccount], bool],
    not_eligible_detail: str,
) -> LoyaltyAccountClosure:
    normalized = normalize_phone(phone)

    # eligibility is re-checked under the row lock, not trusted from the caller
    account = find_account_by_phone(db, normalized, for_update=True)
    if account is None:
        raise AccountNotFound()

    if not is_eligible(account):
        raise NotEligible(not_eligible_detail)

    closure = LoyaltyAccountClosure(
        phone_number=account.phone_number,
        customer_name=account.customer_name,
        reason=reason,
        points_at_close=int(account.points_accumulated or 0),
        cycle_started_at=account.cycle_started_at,
        closed_at=now,
        closed_by=closed_by,
    )

    if not delete_account(db, normalized):
        raise AccountNotFound()

    db.expunge(account)
    db.add(closure)
    try:
        db.flush()
    except SQLAlchemyError as e:
        logger.exception("loyalty closure write failed", extra={"phone": _mask(normalized), "reason": reason})
        raise PersistenceError("Could not record loyalty account closure") from e

    logger.info(
        "loyalty cycle closed",
        extra={
            "phone": _mask(normalized),
            "reason": reason,
            "points_at_close": closure.points_at_close,
            "closed_by": closed_by,
        },
    )
    return closure


def redeem_reward(
    db: Session,
    phone: str,
    *,
    confirm: bool,
    now: datetime | None = None,
    closed_by: str | None = None,
) -> LoyaltyAccountClosure:
    if not confirm:
        raise ConfirmationRequired("Reward redemption must be confirmed by staff")
    now = now or _utcnow()

    return _close_account(
        db,
        phone,
        reason=CLOSE_REASON_REDEEMED,
        now=now,
        closed_by=closed_by,
        is_eligible=lambda account: has_reward(account, now),
        not_eligible_detail=(
            f"Reward requires {REWARD_THRESHOLD} points within an active {CYCLE_LENGTH_DAYS}-day cycle"
        ),
    )


def reset_cycle(
    db: Session,
    phone: str,
    *,
    confirm: bool,
    now: datetime | None = None,
    closed_by: str | None = None,
) -> LoyaltyAccountClosure:
    if not confirm:
        raise ConfirmationRequired("Cycle reset must be confirmed by staff")
    now = now or _utcnow()

    return _close_account(
        db,
        phone,
        reason=CLOSE_REASON_RESET,
        now=now,
        closed_by=closed_by,
        is_eligible=lambda account: expiration_status(account, now).is_expired,
        not_eligible_detail="Only expired loyalty cycles can be reset",
    )


# ============================================================
# READS
# ============================================================

def lookup_account(db: Session, raw_phone: str, *, now: datetime | None = None) -> AccountView | None:
    now = now or _utcnow()
    account = find_account_by_phone(db, normalize_phone(raw_phone))
    if account is None:
        return None
    return describe_account(account, now)


def get_account(db: Session, phone: str, *, now: datetime | None = None) -> AccountView:
    view = lookup_account(db, phone, now=now)
    if view is None:
        raise AccountNotFound()
    return view


def list_accounts(db: Session, *, now: datetime | None = None) -> list[AccountView]:
    now = now or _utcnow()
    return [describe_account(a, now) for a in list_all_accounts(db)]


def list_closures(db: Session, *, phone: str | None = None, limit: int = 100, offset: int = 0):
    try:
        q = db.query(LoyaltyAccountClosure)
        if phone:
            q = q.filter(LoyaltyAccountClosure.phone_number == normalize_phone(phone))
        return (
            q.order_by(LoyaltyAccountClosure.closed_at.desc())
            .offset(max(0, offset))
            .limit(max(1, min(limit, 500)))
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("loyalty closure listing failed")
        raise PersistenceError("Could not list loyalty closures") from e
