import csv
import io

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps.admin import require_admin
from app.schemas.loyalty import (
    LoyaltyAccountOut,
    LoyaltyCloseRequest,
    LoyaltyClosureOut,
)
from app.services.loyalty_account_store import commit
from app.services.loyalty_service import (
    REWARD_THRESHOLD,
    AccountView,
    get_account,
    list_accounts,
    list_closures,
    lookup_account,
    redeem_reward,
    reset_cycle,
)


router = APIRouter(prefix="/loyalty", tags=["loyalty"])


def _account_out(view: AccountView) -> LoyaltyAccountOut:
    account = view.account
    return LoyaltyAccountOut(
        phone_number=account.phone_number,
        customer_name=account.customer_name,
        points_accumulated=int(account.points_accumulated or 0),
        reward_threshold=REWARD_THRESHOLD,
        points_missing=view.points_missing,
        has_reward=view.has_reward,
        is_expired=view.expiration.is_expired,
        days_remaining=view.expiration.days_remaining,
        cycle_started_at=view.expiration.cycle_started_at,
        cycle_limit_date=view.expiration.cycle_limit_date,
        last_purchase_at=account.last_purchase_at,
    )


# ─── customer self-service ────────────────────────────────────────

@router.get("/lookup")
def lookup(phone: str = Query(...), db: Session = Depends(get_db)):
    view = lookup_account(db, phone)
    if view is None:
        return {"found": False, "message": "No loyalty record found for this phone number."}

    account = view.account
    return {
        "found": True,
        "phoneNumber": account.phone_number,
        "customerName": account.customer_name,
        "pointsAccumulated": int(account.points_accumulated or 0),
        "rewardThreshold": REWARD_THRESHOLD,
        "pointsMissing": view.points_missing,
        "isExpired": view.expiration.is_expired,
        "hasReward": view.has_reward,
        "daysRemaining": view.expiration.days_remaining,
        "cycleStartedAt": view.expiration.cycle_started_at,
        "cycleLimitDate": view.expiration.cycle_limit_date,
        "lastPurchaseAt": account.last_purchase_at,
    }


# ─── staff ────────────────────────────────────────────────────────

@router.get("/accounts", response_model=list[LoyaltyAccountOut], dependencies=[Depends(require_admin)])
def read_accounts(db: Session = Depends(get_db)):
    return [_account_out(v) for v in list_accounts(db)]


@router.get("/accounts/export", dependencies=[Depends(require_admin)])
def export_accounts(db: Session = Depends(get_db)):
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([
        "phone_number",
        "customer_name",
        "points_accumulated",
        "has_reward",
        "is_expired",
        "days_remaining",
        "cycle_started_at",
        "cycle_limit_date",
        "last_purchase_at",
    ])
    for view in list_accounts(db):
        a = view.account
        writer.writerow([
            a.phone_number,
            a.customer_name or "",
            a.points_accumulated,
            "yes" if view.has_reward else "no",
            "yes" if view.expiration.is_expired else "no",
            view.expiration.days_remaining,
            view.expiration.cycle_started_at.isoformat(),
            view.expiration.cycle_limit_date.isoformat(),
            a.last_purchase_at.isoformat(),
        ])

    # BOM so spreadsheet apps pick up UTF-8 names
    content = "\ufeff" + buf.getvalue()
    return StreamingResponse(
        iter([content]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="loyalty_accounts.csv"'},
    )


@router.get("/accounts/{phone}", response_model=LoyaltyAccountOut, dependencies=[Depends(require_admin)])
def read_account(phone: str, db: Session = Depends(get_db)):
    return _account_out(get_account(db, phone))


@router.post("/accounts/{phone}/redeem", response_model=LoyaltyClosureOut, dependencies=[Depends(require_admin)])
def redeem(phone: str, payload: LoyaltyCloseRequest, db: Session = Depends(get_db)):
    closure = redeem_reward(db, phone, confirm=payload.confirm, closed_by=payload.closed_by)
    commit(db, "redeem", closure.phone_number)
    db.refresh(closure)
    return closure


@router.post("/accounts/{phone}/reset", response_model=LoyaltyClosureOut, dependencies=[Depends(require_admin)])
def reset(phone: str, payload: LoyaltyCloseRequest, db: Session = Depends(get_db)):
    closure = reset_cycle(db, phone, confirm=payload.confirm, closed_by=payload.closed_by)
    commit(db, "reset", closure.phone_number)
    db.refresh(closure)
    return closure


@router.get("/closures", response_model=list[LoyaltyClosureOut], dependencies=[Depends(require_admin)])
def read_closures(
    phone: str | None = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return list_closures(db, phone=phone, limit=limit, offset=offset)
