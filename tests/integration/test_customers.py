"""Customer master data: uniqueness, optimistic updates and listing."""


async def test_duplicate_email_within_company(client, owner, create_customer):
    await create_customer(owner["headers"], email="dup@example.com")

    resp = await client.post(
        "/customers",
        headers=owner["headers"],
        json={"name": "Again", "email": "dup@example.com"},
    )

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "CUSTOMER_EMAIL_EXISTS"


async def test_same_email_allowed_in_another_company(client, owner, company_factory, create_customer):
    await create_customer(owner["headers"], email="shared@example.com")
    other = await company_factory("other-co")

    created = await create_customer(other["headers"], email="shared@example.com")

    assert created["email"] == "shared@example.com"


async def test_update_with_stale_version_conflicts(client, owner, create_customer):
    customer = await create_customer(owner["headers"], name="Old Name")
    url = f"/customers/{customer['id']}"

    first = await client.patch(url, headers=owner["headers"], json={"name": "New Name", "version": customer["version"]})
    stale = await client.patch(url, headers=owner["headers"], json={"name": "Other", "version": customer["version"]})

    assert first.status_code == 200, first.text
    assert first.json()["data"]["version"] == customer["version"] + 1
    assert stale.status_code == 409
    assert stale.json()["error_code"] == "CUSTOMER_VERSION_CONFLICT"


async def test_search_and_pagination(client, owner, create_customer):
    await create_customer(owner["headers"], name="Island Traders")
    await create_customer(owner["headers"], name="Reef Supplies")
    await create_customer(owner["headers"], name="Island Dive Shop")

    resp = await client.get("/customers?search=island&page_size=1&sort_by=name&sort_order=asc", headers=owner["headers"])

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["total"] == 2
    assert data["total_pages"] == 2
    assert [c["name"] for c in data["items"]] == ["Island Dive Shop"]


async def test_deactivated_customer_is_hidden(client, owner, cashier_headers, create_customer):
    customer = await create_customer(owner["headers"])

    denied = await client.delete(f"/customers/{customer['id']}", headers=cashier_headers)
    removed = await client.delete(f"/customers/{customer['id']}", headers=owner["headers"])
    lookup = await client.get(f"/customers/{customer['id']}", headers=owner["headers"])

    assert denied.status_code == 403
    assert removed.status_code == 200
    assert lookup.status_code == 404
    assert lookup.json()["error_code"] == "CUSTOMER_NOT_FOUND"
