"""Expense recording, approval rights and summaries."""

from datetime import date

import pytest


@pytest.fixture
def create_expense(client):
    async def _create(headers, amount="100.00", category="Rent", on=None, **extra):
        body = {
            "category": category,
            "description": f"{category} payment",
            "amount": amount,
            "date": str(on or date.today()),
            **extra,
        }
        resp = await client.post("/expenses", headers=headers, json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create


async def test_default_status_follows_role(client, owner, accountant_headers, create_expense):
    by_owner = await create_expense(owner["headers"])
    by_accountant = await create_expense(accountant_headers)
    self_approved = await client.post(
        "/expenses",
        headers=accountant_headers,
        json={"category": "Travel", "description": "Taxi", "amount": "12.00", "date": str(date.today()), "status": "approved"},
    )

    assert by_owner["status"] == "approved"
    assert by_owner["approved_by_id"] is not None
    assert by_owner["currency"] == "USD"
    assert by_accountant["status"] == "pending"
    assert by_accountant["approved_by_id"] is None
    assert self_approved.status_code == 403
    assert self_approved.json()["error_code"] == "PERMISSION_DENIED"


async def test_cashier_has_no_expense_access(client, cashier_headers):
    resp = await client.get("/expenses", headers=cashier_headers)

    assert resp.status_code == 403


async def test_recurring_expense_needs_period(client, owner):
    body = {"category": "Software", "description": "Licences", "amount": "20.00", "date": str(date.today()), "is_recurring": True}

    missing = await client.post("/expenses", headers=owner["headers"], json=body)
    monthly = await client.post("/expenses", headers=owner["headers"], json={**body, "recurring_period": "monthly"})

    assert missing.status_code == 422
    assert missing.json()["error_code"] == "VALIDATION_ERROR"
    assert monthly.status_code == 201, monthly.text
    assert monthly.json()["data"]["recurring_period"] == "monthly"


async def test_list_filters_and_totals(client, owner, accountant_headers, create_expense):
    await create_expense(owner["headers"], "100.00", "Rent", vendor="Harbour Estates")
    await create_expense(owner["headers"], "40.00", "Utilities", vendor="State Electric")
    await create_expense(accountant_headers, "15.00", "Supplies")

    approved = await client.get("/expenses", headers=owner["headers"])
    everything = await client.get("/expenses?status=all", headers=owner["headers"])
    by_vendor = await client.get("/expenses?vendor=harbour", headers=owner["headers"])
    by_category = await client.get("/expenses?category=Utilities", headers=owner["headers"])
    bad_status = await client.get("/expenses?status=archived", headers=owner["headers"])

    assert approved.status_code == 200, approved.text
    assert approved.json()["data"]["total"] == 2
    assert approved.json()["data"]["total_amount"] == "140.00"
    assert everything.json()["data"]["total"] == 3
    assert everything.json()["data"]["total_amount"] == "155.00"
    assert [e["vendor"] for e in by_vendor.json()["data"]["items"]] == ["Harbour Estates"]
    assert by_category.json()["data"]["total_amount"] == "40.00"
    assert bad_status.status_code == 422


async def test_approved_expense_locked_for_accountants(client, owner, accountant_headers, create_expense):
    approved = await create_expense(owner["headers"])
    pending = await create_expense(accountant_headers, "30.00")

    locked = await client.put(f"/expenses/{approved['id']}", headers=accountant_headers, json={"amount": "1.00"})
    own_edit = await client.put(f"/expenses/{pending['id']}", headers=accountant_headers, json={"amount": "35.00"})
    self_approve = await client.put(f"/expenses/{pending['id']}", headers=accountant_headers, json={"status": "approved"})
    approval = await client.put(f"/expenses/{pending['id']}", headers=owner["headers"], json={"status": "approved"})
    unchanged = await client.put(f"/expenses/{approved['id']}", headers=owner["headers"], json={"amount": "100.00"})

    assert locked.status_code == 403
    assert own_edit.status_code == 200, own_edit.text
    assert own_edit.json()["data"]["amount"] == "35.00"
    assert self_approve.status_code == 403
    assert approval.status_code == 200
    assert approval.json()["data"]["status"] == "approved"
    assert approval.json()["data"]["approved_by_id"] is not None
    assert unchanged.status_code == 400


async def test_delete_rights_and_soft_delete(client, owner, accountant_headers, create_expense):
    owners = await create_expense(owner["headers"])
    accountants = await create_expense(accountant_headers, "20.00")

    foreign = await client.delete(f"/expenses/{owners['id']}", headers=accountant_headers)
    own = await client.delete(f"/expenses/{accountants['id']}", headers=accountant_headers)
    gone = await client.get(f"/expenses/{accountants['id']}", headers=owner["headers"])

    assert foreign.status_code == 403
    assert own.status_code == 200
    assert gone.status_code == 404
    assert gone.json()["error_code"] == "EXPENSE_NOT_FOUND"


async def test_category_usage_lists_every_category(client, owner, create_expense):
    await create_expense(owner["headers"], "100.00", "Rent")
    await create_expense(owner["headers"], "50.00", "Rent")

    resp = await client.get("/expenses/categories", headers=owner["headers"])

    assert resp.status_code == 200, resp.text
    usage = {row["category"]: row for row in resp.json()["data"]}
    assert len(usage) == 14
    assert usage["Rent"]["count"] == 2
    assert usage["Rent"]["total"] == "150.00"
    assert usage["Professional Services"]["count"] == 0


async def test_summary_by_month_and_category(client, owner, create_expense):
    headers = owner["headers"]
    await create_expense(headers, "100.00", "Rent", on=date(2026, 1, 15))
    await create_expense(headers, "50.00", "Marketing", on=date(2026, 1, 20))
    await create_expense(headers, "30.00", "Rent", on=date(2026, 2, 3))
    await create_expense(headers, "999.00", "Rent", on=date(2026, 3, 1))

    resp = await client.get("/expenses/stats/summary?start_date=2026-01-01&end_date=2026-02-28", headers=headers)
    inverted = await client.get("/expenses/stats/summary?start_date=2026-02-01&end_date=2026-01-01", headers=headers)

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["count"] == 3
    assert data["total"] == "180.00"
    assert data["average"] == "60.00"
    assert [(m["month"], m["count"], m["total"]) for m in data["by_month"]] == [
        ("2026-01", 2, "150.00"),
        ("2026-02", 1, "30.00"),
    ]
    assert [(c["category"], c["total"]) for c in data["by_category"]] == [("Rent", "130.00"), ("Marketing", "50.00")]
    assert inverted.status_code == 400
