from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app import settings
from app.db import get_db
from app.deps.admin import require_admin
from app.services.report_service import dashboard_overview, monthly_report, monthly_report_csv


router = APIRouter(prefix="/reports", tags=["reports"], dependencies=[Depends(require_admin)])


@router.get("/dashboard")
def read_dashboard(db: Session = Depends(get_db)):
    return dashboard_overview(db)


@router.get("/monthly")
def read_monthly_report(
    year: int = Query(...),
    month: int = Query(...),
    db: Session = Depends(get_db),
):
    return monthly_report(db, year, month)


@router.get("/monthly/export")
def export_monthly_report(
    year: int = Query(...),
    month: int = Query(...),
    db: Session = Depends(get_db),
):
    report = monthly_report(db, year, month)
    content = monthly_report_csv(report, business_name=settings.BUSINESS_NAME, generated_at=datetime.now())
    filename = f"relatorio_{year}_{month:02d}.csv"
    return StreamingResponse(
        iter(["\ufeff" + content]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
