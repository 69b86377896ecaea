"""Company summary report."""

from datetime import date, timedelta


async def test_summary_combines_invoices_payments_and_pos(client, owner, sent_invoice, create_product):
    headers = owner["headers"]
    first = await sent_invoice(headers, "100.00")
    await sent_invoice(headers, "50.00")
    await client.post(
        "/payments",
        headers=headers,
        json={"invoice_id": first["id"], "amount": "30.00", "method": "cash"},
    )
    product = await create_product(headers, price="10.00", stock=5)
    await client.post(
        "/pos/sales",
        headers=headers,
        json={"items": [{"product_id": product["id"], "quantity": 1}], "payment_method": "card"},
    )

    resp = await client.get("/reports/summary", headers=headers)

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["invoiced_total"] == "150.00"
    assert data["outstanding_balance"] == "120.00"
    assert data["payments_collected"] == "30.00"
    assert data["payment_count"] == 1
    assert data["pos_revenue"] == "11.00"
    assert data["pos_sale_count"] == 1
    assert {(i["status"], i["count"]) for i in data["invoices"]} == {("partially_paid", 1), ("sent", 1)}


async def test_summary_date_window(client, owner, sent_invoice):
    await sent_invoice(owner["headers"], "100.00")
    tomorrow = date.today() + timedelta(days=1)

    future = await client.get(f"/reports/summary?start_date={tomorrow}", headers=owner["headers"])
    inverted = await client.get(
        f"/reports/summary?start_date={tomorrow}&end_date={date.today()}",
        headers=owner["headers"],
    )

    assert future.json()["data"]["invoiced_total"] == "0.00"
    assert future.json()["data"]["invoices"] == []
    assert inverted.status_code == 400
    assert inverted.json()["error_code"] == "VALIDATION_ERROR"


async def test_cashier_cannot_read_reports(client, cashier_headers):
    resp = await client.get("/reports/summary", headers=cashier_headers)

    assert resp.status_code == 403
