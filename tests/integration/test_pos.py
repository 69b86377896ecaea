"""Point-of-sale checkout, refunds, receipts and the daily report."""


async def sell(client, headers, product, quantity, method="cash", **extra):
    return await client.post(
        "/pos/sales",
        headers=headers,
        json={
            "items": [{"product_id": product["id"], "quantity": quantity}],
            "payment_method": method,
            **extra,
        },
    )


async def stock_of(client, headers, product):
    resp = await client.get(f"/products/{product['id']}", headers=headers)
    return resp.json()["data"]["stock_quantity"]


async def test_cash_sale_prices_lines_and_decrements_stock(client, owner, cashier_headers, create_product):
    product = await create_product(owner["headers"], price="10.00", stock=5)

    resp = await sell(client, cashier_headers, product, 2, amount_tendered="25.00")

    assert resp.status_code == 201, resp.text
    sale = resp.json()["data"]
    assert sale["sale_number"].startswith("POS-")
    assert sale["sale_number"].endswith("-0001")
    assert sale["subtotal"] == "20.00"
    assert sale["tax_amount"] == "2.00"
    assert sale["total"] == "22.00"
    assert sale["change_given"] == "3.00"
    assert sale["status"] == "completed"
    assert sale["items"][0]["product_name"] == product["name"]
    assert await stock_of(client, owner["headers"], product) == 3


async def test_company_gst_rate_overrides_default_tax(client, company_factory, unique_suffix, create_product):
    shop = await company_factory(f"{unique_suffix}gst", gst_rate="5")
    product = await create_product(shop["headers"], price="10.00", stock=5)

    sale = (await sell(client, shop["headers"], product, 2, method="card")).json()["data"]

    assert sale["tax_amount"] == "1.00"
    assert sale["total"] == "21.00"
    assert sale["amount_tendered"] is None


async def test_line_discount_applies_before_tax(client, owner, create_product):
    product = await create_product(owner["headers"], price="10.00", stock=5)

    resp = await client.post(
        "/pos/sales",
        headers=owner["headers"],
        json={
            "items": [
                {
                    "product_id": product["id"],
                    "quantity": 2,
                    "discount_type": "percentage",
                    "discount_value": "50",
                }
            ],
            "payment_method": "card",
        },
    )

    sale = resp.json()["data"]
    assert sale["discount_amount"] == "10.00"
    assert sale["items"][0]["unit_price"] == "5.00"
    assert sale["total"] == "11.00"


async def test_insufficient_stock_leaves_stock_untouched(client, owner, create_product):
    product = await create_product(owner["headers"], price="10.00", stock=1)

    resp = await sell(client, owner["headers"], product, 2)

    assert resp.status_code == 400
    body = resp.json()
    assert body["error_code"] == "INSUFFICIENT_STOCK"
    assert body["details"] == {"product_id": product["id"], "available": 1, "requested": 2}
    assert await stock_of(client, owner["headers"], product) == 1


async def test_short_tender_rejected(client, owner, create_product):
    product = await create_product(owner["headers"], price="10.00", stock=5)

    resp = await sell(client, owner["headers"], product, 2, amount_tendered="20.00")

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "VALIDATION_ERROR"
    assert await stock_of(client, owner["headers"], product) == 5


async def test_partial_then_full_refund_restores_stock(client, owner, create_product):
    headers = owner["headers"]
    product = await create_product(headers, price="10.00", stock=5)
    sale = (await sell(client, headers, product, 2)).json()["data"]
    item_id = sale["items"][0]["id"]

    partial = await client.post(
        f"/pos/sales/{sale['id']}/refund",
        headers=headers,
        json={"items": [{"sale_item_id": item_id, "quantity": 1}], "reason": "damaged"},
    )
    assert partial.status_code == 200, partial.text
    assert partial.json()["data"]["refund_amount"] == "11.00"
    assert partial.json()["data"]["sale"]["status"] == "partially_refunded"
    assert await stock_of(client, headers, product) == 4

    too_many = await client.post(
        f"/pos/sales/{sale['id']}/refund",
        headers=headers,
        json={"items": [{"sale_item_id": item_id, "quantity": 2}]},
    )
    assert too_many.status_code == 400
    assert too_many.json()["error_code"] == "POS_REFUND_INVALID"

    rest = await client.post(
        f"/pos/sales/{sale['id']}/refund",
        headers=headers,
        json={"items": [{"sale_item_id": item_id, "quantity": 1}]},
    )
    assert rest.json()["data"]["sale"]["status"] == "refunded"
    assert await stock_of(client, headers, product) == 5

    closed = await client.post(
        f"/pos/sales/{sale['id']}/refund",
        headers=headers,
        json={"items": [{"sale_item_id": item_id, "quantity": 1}]},
    )
    assert closed.status_code == 400


async def test_cashier_cannot_refund(client, owner, cashier_headers, create_product):
    product = await create_product(owner["headers"], price="10.00", stock=5)
    sale = (await sell(client, cashier_headers, product, 1)).json()["data"]

    resp = await client.post(
        f"/pos/sales/{sale['id']}/refund",
        headers=cashier_headers,
        json={"items": [{"sale_item_id": sale["items"][0]["id"], "quantity": 1}]},
    )

    assert resp.status_code == 403


async def test_receipt_pdf(client, owner, create_product):
    product = await create_product(owner["headers"], price="10.00", stock=5)
    sale = (await sell(client, owner["headers"], product, 1)).json()["data"]

    resp = await client.get(f"/pos/sales/{sale['id']}/receipt", headers=owner["headers"])

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.content.startswith(b"%PDF")


async def test_barcode_lookup(client, owner, create_product):
    product = await create_product(owner["headers"], price="3.50", stock=0, barcode="4006381333931")

    found = await client.get("/pos/products/barcode/4006381333931", headers=owner["headers"])
    missing = await client.get("/pos/products/barcode/000", headers=owner["headers"])

    assert found.status_code == 200
    assert found.json()["data"]["id"] == product["id"]
    assert found.json()["data"]["in_stock"] is False
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "PRODUCT_NOT_FOUND"


async def test_sales_list_and_daily_report(client, owner, create_product):
    headers = owner["headers"]
    product = await create_product(headers, price="10.00", stock=10)
    await sell(client, headers, product, 1)
    await sell(client, headers, product, 2, method="card")

    listing = (await client.get("/pos/sales?payment_method=card", headers=headers)).json()["data"]
    assert listing["total"] == 1
    assert listing["items"][0]["item_count"] == 2

    report = (await client.get("/pos/reports/daily", headers=headers)).json()["data"]
    assert report["sale_count"] == 2
    assert report["total_sales"] == "33.00"
    assert report["total_tax"] == "3.00"
    assert report["average_sale"] == "16.50"
    assert {b["payment_method"] for b in report["by_payment_method"]} == {"cash", "card"}
    assert report["top_products"][0]["quantity"] == 3
