"""
Back-office dashboard figures and month reports.

Financial totals come from the income/expense transactions; sales figures
come from the sales ledger. The two are reported side by side, never summed.
"""
import calendar
import csv
import io
from datetime import date, datetime

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.product import Product
from app.models.sale import Sale
from app.services.finance_service import (
    TYPE_EXPENSE,
    TYPE_INCOME,
    FinanceTotals,
    amounts_by_category,
    compute_totals,
    list_transactions,
    totals_of,
)
from app.services.sales_service import list_sales, sales_by_product, sales_totals


TOP_EXPENSE_CATEGORIES = 5

MONTH_NAMES = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]

_TYPE_LABELS = {TYPE_INCOME: "Receita", TYPE_EXPENSE: "Despesa"}


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="month must be between 1 and 12")
    if not 1900 <= year <= 9999:
        raise HTTPException(status_code=400, detail="year out of range")
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def _money(value: float) -> str:
    return f"R$ {value:.2f}"


def _share(value: float, total: float) -> float:
    return round(value / total * 100, 2) if total > 0 else 0.0


def _categories(pairs: list[tuple[str, float]], total: float) -> list[dict]:
    return [{"category": c, "amount": v, "percent": _share(v, total)} for c, v in pairs]


# ============================================================
# DASHBOARD
# ============================================================

def dashboard_overview(db: Session, *, today: date | None = None) -> dict:
    today = today or date.today()
    overall = compute_totals(db)
    month_start, month_end = month_bounds(today.year, today.month)
    monthly = compute_totals(db, start=month_start, end=month_end)

    sold, revenue = db.query(
        func.coalesce(func.sum(Sale.quantity), 0),
        func.coalesce(func.sum(Sale.total_amount), 0),
    ).one()

    return {
        "balance": overall.balance,
        "totalIncome": overall.income,
        "totalExpense": overall.expense,
        "profitMargin": overall.margin_percent,
        "monthlyIncome": monthly.income,
        "monthlyExpense": monthly.expense,
        "totalSalesQuantity": int(sold or 0),
        "totalSalesRevenue": round(float(revenue or 0), 2),
        "totalProducts": db.query(func.count(Product.id)).scalar() or 0,
    }


# ============================================================
# MONTH REPORT
# ============================================================

def monthly_report(db: Session, year: int, month: int) -> dict:
    start, end = month_bounds(year, month)

    transactions = list_transactions(db, start=start, end=end)
    totals = totals_of(transactions)
    sales = list_sales(db, start=start, end=end)
    sold, revenue = sales_totals(sales)

    expenses = _categories(amounts_by_category(transactions, TYPE_EXPENSE), totals.expense)

    return {
        "year": year,
        "month": month,
        "monthName": MONTH_NAMES[month - 1],
        "totalIncome": totals.income,
        "totalExpense": totals.expense,
        "balance": totals.balance,
        "profitMargin": totals.margin_percent,
        "salesCount": len(sales),
        "totalSalesQuantity": sold,
        "totalSalesRevenue": revenue,
        "salesByProduct": sales_by_product(db, start=start, end=end),
        "incomeByCategory": _categories(amounts_by_category(transactions, TYPE_INCOME), totals.income),
        "expenseByCategory": expenses,
        "topExpenses": expenses[:TOP_EXPENSE_CATEGORIES],
    }


# ============================================================
# CSV
# ============================================================

def _write_summary(writer, totals: FinanceTotals):
    writer.writerow(["RESUMO FINANCEIRO"])
    writer.writerow(["Total de Receitas:", _money(totals.income)])
    writer.writerow(["Total de Despesas:", _money(totals.expense)])
    writer.writerow(["Saldo Líquido:", _money(totals.balance)])
    writer.writerow(["Margem Líquida:", f"{totals.margin_percent:.2f}%"])
    writer.writerow([])


def _write_categories(writer, title: str, pairs: list[tuple[str, float]], total: float):
    writer.writerow([title])
    writer.writerow(["Categoria", "Valor", "Percentual"])
    for category, value in pairs:
        writer.writerow([category, _money(value), f"{_share(value, total):.2f}%"])
    writer.writerow([])


def _header(writer, business_name: str, title: str, generated_at: datetime):
    writer.writerow([business_name.upper()])
    writer.writerow([title])
    writer.writerow([f"Data de Geração: {generated_at:%d/%m/%Y - %H:%M:%S}"])
    writer.writerow([])


def finance_csv(transactions, *, business_name: str, generated_at: datetime) -> str:
    """
    Detailed income/expense report as CSV text (no BOM).

    The running balance is accumulated in date order, oldest first.
    """
    totals = totals_of(transactions)
    buf = io.StringIO()
    writer = csv.writer(buf)

    _header(writer, business_name, "RELATÓRIO FINANCEIRO DETALHADO", generated_at)
    _write_summary(writer, totals)

    writer.writerow(["DETALHAMENTO DE TRANSAÇÕES"])
    writer.writerow(["Data", "Tipo", "Descrição", "Categoria", "Valor", "Saldo Parcial"])
    running = 0.0
    for t in sorted(transactions, key=lambda t: (t.date, t.created_at or datetime.min)):
        amount = float(t.amount)
        running += amount if t.type == TYPE_INCOME else -amount
        writer.writerow([
            f"{t.date:%d/%m/%Y}",
            _TYPE_LABELS.get(t.type, t.type),
            t.description,
            t.category,
            _money(amount),
            _money(running),
        ])
    writer.writerow([])

    _write_categories(writer, "RECEITAS POR CATEGORIA", amounts_by_category(transactions, TYPE_INCOME), totals.income)
    _write_categories(writer, "DESPESAS POR CATEGORIA", amounts_by_category(transactions, TYPE_EXPENSE), totals.expense)

    writer.writerow(["NOTAS"])
    writer.writerow(["Todas as datas estão no formato DD/MM/AAAA"])
    return buf.getvalue()


def monthly_report_csv(report: dict, *, business_name: str, generated_at: datetime) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)

    _header(
        writer,
        business_name,
        f"RELATÓRIO MENSAL - {report['monthName'].upper()}/{report['year']}",
        generated_at,
    )
    _write_summary(writer, FinanceTotals(income=report["totalIncome"], expense=report["totalExpense"]))

    writer.writerow(["VENDAS"])
    writer.writerow(["Vendas registradas:", report["salesCount"]])
    writer.writerow(["Unidades vendidas:", report["totalSalesQuantity"]])
    writer.writerow(["Receita de vendas:", _money(report["totalSalesRevenue"])])
    writer.writerow([])

    writer.writerow(["VENDAS POR PRODUTO"])
    writer.writerow(["Produto", "Quantidade", "Receita"])
    for row in report["salesByProduct"]:
        writer.writerow([row["product_name"], row["total_quantity"], _money(row["total_revenue"])])
    writer.writerow([])

    for title, key in (("RECEITAS POR CATEGORIA", "incomeByCategory"), ("DESPESAS POR CATEGORIA", "expenseByCategory")):
        writer.writerow([title])
        writer.writerow(["Categoria", "Valor", "Percentual"])
        for row in report[key]:
            writer.writerow([row["category"], _money(row["amount"]), f"{row['percent']:.2f}%"])
        writer.writerow([])

    return buf.getvalue()
