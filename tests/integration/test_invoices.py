"""Invoice and quote lifecycle over HTTP."""

from datetime import date, timedelta

from app.services.billing.invoice_overdue_service import auto_mark_overdue_invoices


async def create_document(client, headers, customer, product, quantity=1, **extra):
    return await client.post(
        "/invoices",
        headers=headers,
        json={
            "customer_id": customer["id"],
            "items": [{"product_id": product["id"], "quantity": quantity}],
            **extra,
        },
    )


async def test_create_applies_discount_then_gst(client, owner, create_customer, create_product):
    headers = owner["headers"]
    customer = await create_customer(headers)
    product = await create_product(headers, price="50.00")

    resp = await create_document(
        client,
        headers,
        customer,
        product,
        quantity=2,
        gst_enabled=True,
        gst_rate="10",
        discount_type="percentage",
        discount_value="10",
    )

    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["invoice_number"] == "INV-0001"
    assert data["status"] == "draft"
    assert data["subtotal"] == "100.00"
    assert data["discount_amount"] == "10.00"
    assert data["gst_amount"] == "9.00"
    assert data["total"] == "99.00"
    assert data["balance_due"] == "99.00"
    assert data["items"][0]["line_total"] == "100.00"


async def test_numbers_are_sequential_per_kind(client, owner, create_customer, create_product):
    headers = owner["headers"]
    customer = await create_customer(headers)
    product = await create_product(headers)

    first = (await create_document(client, headers, customer, product)).json()["data"]
    quote = (await create_document(client, headers, customer, product, kind="quote")).json()["data"]
    second = (await create_document(client, headers, customer, product)).json()["data"]

    assert [first["invoice_number"], quote["invoice_number"], second["invoice_number"]] == [
        "INV-0001",
        "QUO-0001",
        "INV-0002",
    ]


async def test_list_filters_by_kind_and_search(client, owner, create_customer, create_product):
    headers = owner["headers"]
    customer = await create_customer(headers)
    product = await create_product(headers)
    await create_document(client, headers, customer, product)
    await create_document(client, headers, customer, product, kind="quote")

    quotes = (await client.get("/invoices?kind=quote", headers=headers)).json()["data"]
    searched = (await client.get("/invoices?search=INV-0001", headers=headers)).json()["data"]

    assert quotes["total"] == 1
    assert quotes["items"][0]["customer_name"] == customer["name"]
    assert searched["total"] == 1
    assert searched["items"][0]["invoice_number"] == "INV-0001"


async def test_stale_version_is_a_conflict(client, owner, create_customer, create_product):
    headers = owner["headers"]
    customer = await create_customer(headers)
    product = await create_product(headers)
    invoice = (await create_document(client, headers, customer, product)).json()["data"]

    first = await client.put(
        f"/invoices/{invoice['id']}",
        headers=headers,
        json={"version": invoice["version"], "notes": "first edit"},
    )
    stale = await client.put(
        f"/invoices/{invoice['id']}",
        headers=headers,
        json={"version": invoice["version"], "notes": "second edit"},
    )

    assert first.status_code == 200, first.text
    assert first.json()["data"]["version"] == invoice["version"] + 1
    assert stale.status_code == 409
    assert stale.json()["error_code"] == "INVOICE_VERSION_CONFLICT"


async def test_total_cannot_drop_below_paid_amount(client, owner, sent_invoice, create_product):
    headers = owner["headers"]
    invoice = await sent_invoice(headers, "100.00")
    await client.post(
        "/payments",
        headers=headers,
        json={"invoice_id": invoice["id"], "amount": "80.00", "method": "cash"},
    )
    cheap = await create_product(headers, price="50.00")
    current = (await client.get(f"/invoices/{invoice['id']}", headers=headers)).json()["data"]

    resp = await client.put(
        f"/invoices/{invoice['id']}",
        headers=headers,
        json={"version": current["version"], "items": [{"product_id": cheap["id"], "quantity": 1}]},
    )

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "INVALID_AMOUNT"


async def test_quote_converts_in_place(client, owner, create_customer, create_product):
    headers = owner["headers"]
    customer = await create_customer(headers)
    product = await create_product(headers)
    quote = (await create_document(client, headers, customer, product, kind="quote")).json()["data"]

    resp = await client.post(f"/invoices/{quote['id']}/convert-to-invoice", headers=headers)

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["id"] == quote["id"]
    assert data["kind"] == "invoice"
    assert data["invoice_number"] == "INV-0001"
    assert data["status"] == "draft"

    again = await client.post(f"/invoices/{quote['id']}/convert-to-invoice", headers=headers)
    assert again.status_code == 404
    assert again.json()["error_code"] == "QUOTE_NOT_FOUND"


async def test_quote_takes_no_payment_until_converted(client, owner, create_customer, create_product):
    headers = owner["headers"]
    customer = await create_customer(headers)
    product = await create_product(headers, price="100.00")
    quote = (await create_document(client, headers, customer, product, kind="quote")).json()["data"]

    refused = await client.post(
        "/payments",
        headers=headers,
        json={"invoice_id": quote["id"], "amount": "100.00", "method": "cash"},
    )
    assert refused.status_code == 400
    assert refused.json()["error_code"] == "INVOICE_INVALID_STATE"

    converted = (await client.post(f"/invoices/{quote['id']}/convert-to-invoice", headers=headers)).json()["data"]
    assert converted["status"] == "draft"
    assert converted["paid_amount"] == "0.00"
    assert converted["paid_at"] is None

    paid = await client.post(
        "/payments",
        headers=headers,
        json={"invoice_id": quote["id"], "amount": "100.00", "method": "cash"},
    )
    assert paid.status_code == 201, paid.text
    assert paid.json()["data"]["invoice"]["status"] == "paid"


async def test_paid_invoice_cannot_be_cancelled_or_deleted(client, owner, sent_invoice):
    headers = owner["headers"]
    invoice = await sent_invoice(headers, "20.00")
    await client.post(
        "/payments",
        headers=headers,
        json={"invoice_id": invoice["id"], "amount": "20.00", "method": "card"},
    )

    cancelled = await client.post(f"/invoices/{invoice['id']}/cancel", headers=headers)
    deleted = await client.delete(f"/invoices/{invoice['id']}", headers=headers)

    assert cancelled.status_code == 400
    assert cancelled.json()["error_code"] == "INVOICE_INVALID_STATE"
    assert deleted.status_code == 400


async def test_pdf_download(client, owner, sent_invoice):
    invoice = await sent_invoice(owner["headers"], "15.00")

    resp = await client.get(f"/invoices/{invoice['id']}/pdf", headers=owner["headers"])

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


async def test_overdue_job_marks_unpaid_sent_invoices(client, owner, sent_invoice, db_session):
    headers = owner["headers"]
    unpaid = await sent_invoice(headers, "10.00")
    partly_paid = await sent_invoice(headers, "10.00")
    await client.post(
        "/payments",
        headers=headers,
        json={"invoice_id": partly_paid["id"], "amount": "5.00", "method": "cash"},
    )
    after_due = date.fromisoformat(unpaid["due_date"]) + timedelta(days=1)

    marked = await auto_mark_overdue_invoices(db_session, today=after_due)

    assert marked == 1
    refreshed = (await client.get(f"/invoices/{unpaid['id']}", headers=headers)).json()["data"]
    assert refreshed["status"] == "overdue"
    assert refreshed["version"] == unpaid["version"] + 1
    untouched = (await client.get(f"/invoices/{partly_paid['id']}", headers=headers)).json()["data"]
    assert untouched["status"] == "partially_paid"

    resent = await client.post(f"/invoices/{unpaid['id']}/send", headers=headers)
    assert resent.json()["data"]["status"] == "sent"
