"""Sales portal: lookups and quick document entry."""


async def test_company_info_reflects_gst_setting(client, owner, company_factory):
    taxed = await company_factory("portal-gst", gst_rate="10")

    plain = await client.get("/portal/company-info", headers=owner["headers"])
    with_gst = await client.get("/portal/company-info", headers=taxed["headers"])

    assert plain.status_code == 200, plain.text
    assert plain.json()["data"]["gst_enabled"] is False
    assert plain.json()["data"]["gst_rate"] == "0.00"
    assert with_gst.json()["data"]["gst_enabled"] is True
    assert with_gst.json()["data"]["gst_rate"] == "10.00"
    assert with_gst.json()["data"]["currency"] == "USD"


async def test_products_grouped_by_category(client, owner, create_product):
    headers = owner["headers"]
    await create_product(headers, name="Cable", category="Electronics")
    await create_product(headers, name="Adapter", category="Electronics")
    await create_product(headers, name="Pen")

    grouped = await client.get("/portal/products", headers=headers)
    searched = await client.get("/portal/products?search=cab", headers=headers)

    assert grouped.status_code == 200, grouped.text
    groups = grouped.json()["data"]
    assert [g["category"] for g in groups] == ["Electronics", "Uncategorized"]
    assert [p["name"] for p in groups[0]["products"]] == ["Adapter", "Cable"]
    assert [p["name"] for p in groups[1]["products"]] == ["Pen"]
    assert [(g["category"], [p["name"] for p in g["products"]]) for g in searched.json()["data"]] == [
        ("Electronics", ["Cable"])
    ]


async def test_customer_search_open_to_cashiers(client, owner, cashier_headers, create_customer):
    await create_customer(owner["headers"], name="Island Traders")
    await create_customer(owner["headers"], name="Reef Supplies")

    resp = await client.get("/portal/customers?search=island", headers=cashier_headers)

    assert resp.status_code == 200, resp.text
    assert [c["name"] for c in resp.json()["data"]] == ["Island Traders"]


async def test_portal_invoice_is_issued_with_company_gst(client, company_factory, create_customer, create_product):
    company = await company_factory("portal-docs", gst_rate="10")
    headers = company["headers"]
    customer = await create_customer(headers)
    product = await create_product(headers, price="100.00")
    lines = [{"product_id": product["id"], "quantity": 1}]

    invoice = await client.post(
        "/portal/documents",
        headers=headers,
        json={"kind": "invoice", "customer_id": customer["id"], "items": lines},
    )
    quote = await client.post(
        "/portal/documents",
        headers=headers,
        json={"customer_id": customer["id"], "items": lines},
    )

    assert invoice.status_code == 201, invoice.text
    issued = invoice.json()["data"]
    assert issued["status"] == "sent"
    assert issued["sent_at"] is not None
    assert issued["gst_enabled"] is True
    assert issued["total"] == "110.00"
    assert issued["balance_due"] == "110.00"

    assert quote.status_code == 201, quote.text
    drafted = quote.json()["data"]
    assert drafted["kind"] == "quote"
    assert drafted["status"] == "draft"
    assert drafted["invoice_number"].startswith("QUO-")

    quotes = await client.get("/portal/documents?kind=quote", headers=headers)
    single = await client.get(f"/portal/documents/{issued['id']}", headers=headers)
    assert quotes.json()["data"]["total"] == 1
    assert single.json()["data"]["invoice_number"] == issued["invoice_number"]


async def test_cashier_can_raise_portal_quote(client, owner, cashier_headers, create_customer, create_product):
    customer = await create_customer(owner["headers"])
    product = await create_product(owner["headers"], price="25.00")

    resp = await client.post(
        "/portal/documents",
        headers=cashier_headers,
        json={"kind": "quote", "customer_id": customer["id"], "items": [{"product_id": product["id"], "quantity": 2}]},
    )

    assert resp.status_code == 201, resp.text
    assert resp.json()["data"]["total"] == "50.00"


async def test_portal_unknown_document(client, owner):
    resp = await client.get("/portal/documents/9999", headers=owner["headers"])

    assert resp.status_code == 404
    assert resp.json()["error_code"] == "INVOICE_NOT_FOUND"
