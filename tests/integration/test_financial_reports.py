"""Profit and loss statement and the owner dashboard."""

from datetime import date, timedelta

import pytest


@pytest.fixture
def issue_invoice(client, create_product):
    """Sends a one-line invoice for ``customer``; optional dates back-date it."""

    async def _issue(headers, customer, price="100.00", cost=None, **dates):
        product = await create_product(headers, price=price, cost=cost)
        created = await client.post(
            "/invoices",
            headers=headers,
            json={
                "customer_id": customer["id"],
                "items": [{"product_id": product["id"], "quantity": 1}],
                **{k: str(v) for k, v in dates.items()},
            },
        )
        assert created.status_code == 201, created.text
        sent = await client.post(f"/invoices/{created.json()['data']['id']}/send", headers=headers)
        assert sent.status_code == 200, sent.text
        return sent.json()["data"]

    return _issue


async def _pay_in_full(client, headers, invoice):
    resp = await client.post(
        "/payments",
        headers=headers,
        json={"invoice_id": invoice["id"], "amount": invoice["total"], "method": "cash"},
    )
    assert resp.status_code == 201, resp.text


async def test_profit_and_loss(client, owner, create_customer, create_product, issue_invoice):
    headers = owner["headers"]
    customer = await create_customer(headers)
    invoice = await issue_invoice(headers, customer, "100.00", cost="40.00")
    await _pay_in_full(client, headers, invoice)
    await issue_invoice(headers, customer, "500.00", cost="1.00")

    gadget = await create_product(headers, price="10.00", cost="4.00")
    sale = await client.post(
        "/pos/sales",
        headers=headers,
        json={"items": [{"product_id": gadget["id"], "quantity": 2}], "payment_method": "cash", "amount_tendered": "50.00"},
    )
    assert sale.status_code == 201, sale.text
    await client.post(
        "/expenses",
        headers=headers,
        json={"category": "Rent", "description": "Shop rent", "amount": "30.00", "date": str(date.today())},
    )

    resp = await client.get("/reports/profit-loss", headers=headers)

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["start_date"] == str(date.today().replace(day=1))
    assert data["revenue"] == {"invoices": "100.00", "pos": "22.00", "total": "122.00"}
    assert data["cost_of_goods_sold"] == "48.00"
    assert data["gross_profit"] == "74.00"
    assert data["gross_margin"] == "60.66"
    assert data["operating_expenses"] == "30.00"
    assert [(c["category"], c["total"]) for c in data["expenses_by_category"]] == [("Rent", "30.00")]
    assert data["net_income"] == "44.00"
    assert data["net_margin"] == "36.07"


async def test_profit_and_loss_empty_window(client, owner):
    tomorrow = date.today() + timedelta(days=1)

    empty = await client.get(f"/reports/profit-loss?start_date={tomorrow}&end_date={tomorrow}", headers=owner["headers"])
    inverted = await client.get(
        f"/reports/profit-loss?start_date={tomorrow}&end_date={date.today()}",
        headers=owner["headers"],
    )

    assert empty.status_code == 200, empty.text
    assert empty.json()["data"]["gross_margin"] == "0.00"
    assert empty.json()["data"]["net_margin"] == "0.00"
    assert inverted.status_code == 400
    assert inverted.json()["error_code"] == "VALIDATION_ERROR"


async def test_dashboard(client, owner, create_customer, issue_invoice):
    headers = owner["headers"]
    today = date.today()
    loyal = await create_customer(headers, name="Loyal Co")
    late = await create_customer(headers, name="Late Co")

    paid = await issue_invoice(headers, loyal, "100.00")
    await _pay_in_full(client, headers, paid)
    await issue_invoice(
        headers,
        late,
        "50.00",
        issue_date=today - timedelta(days=60),
        due_date=today - timedelta(days=30),
    )
    await issue_invoice(headers, late, "20.00")
    await client.post(
        "/expenses",
        headers=headers,
        json={"category": "Utilities", "description": "Power", "amount": "15.00", "date": str(today)},
    )
    await client.post(
        "/expenses",
        headers=headers,
        json={"category": "Travel", "description": "Draft claim", "amount": "9.00", "date": str(today), "status": "pending"},
    )

    resp = await client.get("/reports/dashboard", headers=headers)

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["month_revenue"] == "100.00"
    assert data["last_month_revenue"] == "0.00"
    assert data["revenue_growth"] is None
    assert data["year_revenue"] == "100.00"
    assert data["outstanding"] == {"amount": "70.00", "count": 2}
    assert data["overdue"] == {"amount": "50.00", "count": 1}
    assert [(c["name"], c["revenue"], c["invoice_count"]) for c in data["top_customers"]] == [("Loyal Co", "100.00", 1)]
    assert [e["description"] for e in data["recent_expenses"]] == ["Power"]


async def test_financial_reports_are_back_office_only(client, cashier_headers):
    resp = await client.get("/reports/dashboard", headers=cashier_headers)

    assert resp.status_code == 403
