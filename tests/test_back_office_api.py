from datetime import date, timedelta

import pytest

from app import settings


@pytest.fixture()
def record_transaction(client, admin_headers):
    def _record(type="income", amount=100.0, category="vendas", description="Venda balcão", day="2026-03-01"):
        resp = client.post(
            "/finance/transactions",
            json={
                "type": type,
                "description": description,
                "amount": amount,
                "category": category,
                "date": day,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        return resp.json()

    return _record


def _stock(client, admin_headers, product_id):
    rows = client.get("/inventory", headers=admin_headers).json()
    return next(r for r in rows if r["product_id"] == str(product_id))


class TestBackOfficeAccess:
    @pytest.mark.parametrize("path", ["/sales", "/finance/transactions", "/inventory", "/reports/dashboard"])
    def test_requires_admin_key(self, client, path):
        assert client.get(path).status_code == 401


class TestSales:
    def test_price_and_date_default_from_product(self, client, make_product, admin_headers):
        product = make_product(name="Geladinho de Coco", price=2.5)

        resp = client.post("/sales", json={"product_id": str(product.id), "quantity": 4}, headers=admin_headers)
        assert resp.status_code == 200
        sale = resp.json()
        assert sale["unit_price"] == 2.5
        assert sale["total_amount"] == 10.0
        assert sale["product_name"] == "Geladinho de Coco"
        assert sale["date"] == date.today().isoformat()

    def test_edit_recomputes_total(self, client, make_product, admin_headers):
        product = make_product(price=2.5)
        sale = client.post(
            "/sales", json={"product_id": str(product.id), "quantity": 2}, headers=admin_headers
        ).json()

        edited = client.patch(
            f"/sales/{sale['id']}", json={"quantity": 3, "unit_price": 3.0}, headers=admin_headers
        ).json()
        assert edited["total_amount"] == 9.0

    def test_invalid_input(self, client, make_product, admin_headers):
        product = make_product()
        resp = client.post("/sales", json={"product_id": str(product.id), "quantity": 0}, headers=admin_headers)
        assert resp.status_code == 422

        resp = client.post(
            "/sales",
            json={"product_id": "00000000-0000-0000-0000-000000000000", "quantity": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_by_product_highest_revenue_first(self, client, make_product, admin_headers):
        cheap = make_product(name="Geladinho de Uva", price=2.0)
        pricey = make_product(name="Geladinho de Nutella", price=5.0)
        make_product(name="Sem Vendas")

        for product, qty in ((cheap, 3), (pricey, 2), (cheap, 1)):
            client.post(
                "/sales",
                json={"product_id": str(product.id), "quantity": qty, "date": "2026-03-10"},
                headers=admin_headers,
            )

        rows = client.get("/sales/by-product", headers=admin_headers).json()
        assert [(r["product_name"], r["total_quantity"], r["total_revenue"]) for r in rows] == [
            ("Geladinho de Nutella", 2, 10.0),
            ("Geladinho de Uva", 4, 8.0),
        ]

        march = client.get(
            "/sales", params={"start": "2026-03-01", "end": "2026-03-31"}, headers=admin_headers
        ).json()
        assert len(march) == 3
        assert client.get("/sales", params={"start": "2026-04-01"}, headers=admin_headers).json() == []

    def test_sales_move_stock(self, client, make_product, admin_headers):
        product = make_product()
        client.put(
            f"/inventory/{product.id}",
            json={"quantity_available": 10, "reorder_level": 3},
            headers=admin_headers,
        )

        sale = client.post(
            "/sales", json={"product_id": str(product.id), "quantity": 4}, headers=admin_headers
        ).json()
        stock = _stock(client, admin_headers, product.id)
        assert (stock["quantity_available"], stock["quantity_sold"]) == (6, 4)

        client.patch(f"/sales/{sale['id']}", json={"quantity": 9}, headers=admin_headers)
        stock = _stock(client, admin_headers, product.id)
        assert (stock["quantity_available"], stock["quantity_sold"]) == (1, 9)
        assert stock["needs_restock"] is True

        assert client.delete(f"/sales/{sale['id']}", headers=admin_headers).json() == {"deleted": True}
        stock = _stock(client, admin_headers, product.id)
        assert (stock["quantity_available"], stock["quantity_sold"]) == (10, 0)

    def test_stock_never_goes_negative(self, client, make_product, admin_headers):
        product = make_product()
        client.put(f"/inventory/{product.id}", json={"quantity_available": 2}, headers=admin_headers)

        client.post("/sales", json={"product_id": str(product.id), "quantity": 5}, headers=admin_headers)
        stock = _stock(client, admin_headers, product.id)
        assert (stock["quantity_available"], stock["quantity_sold"]) == (0, 5)


class TestFinance:
    def test_summary_and_type_filter(self, client, admin_headers, record_transaction):
        record_transaction(type="income", amount=200.0)
        record_transaction(type="income", amount=50.0, category="encomendas")
        record_transaction(type="expense", amount=75.5, category="insumos", description="Leite")

        summary = client.get("/finance/summary", headers=admin_headers).json()
        assert summary == {
            "totalIncome": 250.0,
            "totalExpense": 75.5,
            "balance": 174.5,
            "marginPercent": 69.8,
        }

        expenses = client.get("/finance/transactions", params={"type": "expense"}, headers=admin_headers).json()
        assert [t["description"] for t in expenses] == ["Leite"]

        resp = client.get("/finance/transactions", params={"type": "refund"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_no_income_means_zero_margin(self, client, admin_headers, record_transaction):
        record_transaction(type="expense", amount=10.0, category="gás")
        summary = client.get("/finance/summary", headers=admin_headers).json()
        assert summary["balance"] == -10.0
        assert summary["marginPercent"] == 0.0

    def test_negative_amount_rejected(self, client, admin_headers):
        resp = client.post(
            "/finance/transactions",
            json={"type": "income", "description": "x", "amount": -1, "category": "vendas"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    def test_edit_and_delete(self, client, admin_headers, record_transaction):
        tx = record_transaction(amount=10.0)

        edited = client.patch(
            f"/finance/transactions/{tx['id']}", json={"amount": 12.5, "category": " feira "}, headers=admin_headers
        ).json()
        assert edited["amount"] == 12.5
        assert edited["category"] == "feira"
        assert edited["type"] == "income"

        client.delete(f"/finance/transactions/{tx['id']}", headers=admin_headers)
        assert client.get(f"/finance/transactions/{tx['id']}", headers=admin_headers).status_code == 404

    def test_csv_export(self, client, admin_headers, record_transaction):
        record_transaction(type="expense", amount=30.0, category="insumos", description="Açúcar, 5kg", day="2026-03-02")
        record_transaction(type="income", amount=100.0, category="vendas", day="2026-03-01")

        resp = client.get("/finance/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.content.startswith(b"\xef\xbb\xbf")

        lines = resp.content.decode("utf-8-sig").splitlines()
        assert lines[0] == settings.BUSINESS_NAME.upper()
        assert lines[1] == "RELATÓRIO FINANCEIRO DETALHADO"
        assert "Total de Receitas:,R$ 100.00" in lines
        assert "Saldo Líquido:,R$ 70.00" in lines
        assert "Margem Líquida:,70.00%" in lines

        # running balance accumulates oldest first
        detail = lines.index("Data,Tipo,Descrição,Categoria,Valor,Saldo Parcial")
        assert lines[detail + 1] == "01/03/2026,Receita,Venda balcão,vendas,R$ 100.00,R$ 100.00"
        assert lines[detail + 2] == '02/03/2026,Despesa,"Açúcar, 5kg",insumos,R$ 30.00,R$ 70.00'

        assert "insumos,R$ 30.00,100.00%" in lines


class TestInventory:
    def test_put_creates_row_and_stamps_restock(self, client, make_product, admin_headers):
        product = make_product(name="Geladinho de Maracujá")

        row = client.put(
            f"/inventory/{product.id}",
            json={"quantity_available": 12, "reorder_level": 5},
            headers=admin_headers,
        ).json()
        assert row["product_name"] == "Geladinho de Maracujá"
        assert row["quantity_available"] == 12
        assert row["quantity_sold"] == 0
        assert row["needs_restock"] is False
        assert row["last_restocked"] is not None

        row = client.put(f"/inventory/{product.id}", json={"reorder_level": 12}, headers=admin_headers).json()
        assert row["quantity_available"] == 12
        assert row["needs_restock"] is True

    def test_needs_restock_filter(self, client, make_product, admin_headers):
        low = make_product(name="Pouco")
        plenty = make_product(name="Muito")
        client.put(f"/inventory/{low.id}", json={"quantity_available": 1, "reorder_level": 5}, headers=admin_headers)
        client.put(f"/inventory/{plenty.id}", json={"quantity_available": 50, "reorder_level": 5}, headers=admin_headers)

        rows = client.get("/inventory", params={"needs_restock": True}, headers=admin_headers).json()
        assert [r["product_name"] for r in rows] == ["Pouco"]

    def test_validation(self, client, make_product, admin_headers):
        product = make_product()
        resp = client.put(f"/inventory/{product.id}", json={"quantity_available": -1}, headers=admin_headers)
        assert resp.status_code == 422

        resp = client.put(
            "/inventory/00000000-0000-0000-0000-000000000000",
            json={"quantity_available": 1},
            headers=admin_headers,
        )
        assert resp.status_code == 404


class TestReports:
    def test_dashboard(self, client, make_product, admin_headers, record_transaction):
        today = date.today()
        last_year = today - timedelta(days=400)
        record_transaction(type="income", amount=300.0, day=today.isoformat())
        record_transaction(type="expense", amount=100.0, day=today.isoformat())
        record_transaction(type="income", amount=200.0, day=last_year.isoformat())

        product = make_product(price=2.5)
        make_product(name="Inativo", is_active=False)
        client.post("/sales", json={"product_id": str(product.id), "quantity": 6}, headers=admin_headers)

        body = client.get("/reports/dashboard", headers=admin_headers).json()
        assert body["totalIncome"] == 500.0
        assert body["totalExpense"] == 100.0
        assert body["balance"] == 400.0
        assert body["profitMargin"] == 80.0
        assert body["monthlyIncome"] == 300.0
        assert body["monthlyExpense"] == 100.0
        assert body["totalSalesQuantity"] == 6
        assert body["totalSalesRevenue"] == 15.0
        assert body["totalProducts"] == 2

    def test_monthly_report(self, client, make_product, admin_headers, record_transaction):
        record_transaction(type="income", amount=400.0, category="vendas", day="2026-03-05")
        record_transaction(type="expense", amount=60.0, category="insumos", day="2026-03-06")
        record_transaction(type="expense", amount=40.0, category="embalagens", day="2026-03-07")
        record_transaction(type="expense", amount=999.0, category="insumos", day="2026-04-01")

        product = make_product(name="Geladinho de Coco", price=2.0)
        client.post(
            "/sales",
            json={"product_id": str(product.id), "quantity": 10, "date": "2026-03-08"},
            headers=admin_headers,
        )

        report = client.get("/reports/monthly", params={"year": 2026, "month": 3}, headers=admin_headers).json()
        assert report["monthName"] == "Março"
        assert report["totalIncome"] == 400.0
        assert report["totalExpense"] == 100.0
        assert report["balance"] == 300.0
        assert report["salesCount"] == 1
        assert report["totalSalesQuantity"] == 10
        assert report["totalSalesRevenue"] == 20.0
        assert report["salesByProduct"][0]["product_name"] == "Geladinho de Coco"
        assert report["expenseByCategory"] == [
            {"category": "insumos", "amount": 60.0, "percent": 60.0},
            {"category": "embalagens", "amount": 40.0, "percent": 40.0},
        ]
        assert report["topExpenses"] == report["expenseByCategory"]

    def test_month_out_of_range(self, client, admin_headers):
        resp = client.get("/reports/monthly", params={"year": 2026, "month": 13}, headers=admin_headers)
        assert resp.status_code == 400

    def test_monthly_export(self, client, admin_headers, record_transaction):
        record_transaction(type="income", amount=80.0, day="2026-03-05")

        resp = client.get("/reports/monthly/export", params={"year": 2026, "month": 3}, headers=admin_headers)
        assert resp.status_code == 200
        assert 'filename="relatorio_2026_03.csv"' in resp.headers["content-disposition"]

        lines = resp.content.decode("utf-8-sig").splitlines()
        assert lines[1] == "RELATÓRIO MENSAL - MARÇO/2026"
        assert "Total de Receitas:,R$ 80.00" in lines
