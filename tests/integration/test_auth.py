"""Registration, login, session invalidation and staff accounts."""


async def test_register_starts_a_trial(client, owner):
    me = await client.get("/auth/me", headers=owner["headers"])

    assert me.status_code == 200
    data = me.json()["data"]
    assert data["role"] == "owner"
    assert data["username"] == owner["email"]
    assert data["company"]["subscription_status"] == "trial"
    assert data["company"]["trial_ends_at"] is not None
    assert data["company"]["currency"] == "USD"


async def test_duplicate_email_rejected(client, owner):
    resp = await client.post(
        "/auth/register",
        json={"company_name": "Copycat", "email": owner["email"], "password": "Secret123!"},
    )

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "USER_EMAIL_EXISTS"


async def test_login_with_wrong_password(client, owner):
    resp = await client.post("/auth/login", json={"email": owner["email"], "password": "wrong-pass"})

    assert resp.status_code == 401
    assert resp.json()["error_code"] == "UNAUTHORIZED"


async def test_logout_invalidates_existing_tokens(client, owner):
    login = await client.post("/auth/login", json={"email": owner["email"], "password": owner["password"]})
    second_headers = {"Authorization": f"Bearer {login.json()['data']['auth']['access_token']}"}

    logout = await client.post("/auth/logout", headers=owner["headers"])

    assert logout.status_code == 200
    assert (await client.get("/auth/me", headers=owner["headers"])).status_code == 401
    assert (await client.get("/auth/me", headers=second_headers)).status_code == 401

    fresh = await client.post("/auth/login", json={"email": owner["email"], "password": owner["password"]})
    fresh_headers = {"Authorization": f"Bearer {fresh.json()['data']['auth']['access_token']}"}
    assert (await client.get("/auth/me", headers=fresh_headers)).status_code == 200


async def test_staff_share_the_owner_company(client, owner, cashier_headers):
    me = (await client.get("/auth/me", headers=cashier_headers)).json()["data"]
    users = (await client.get("/users", headers=owner["headers"])).json()["data"]

    assert me["role"] == "cashier"
    assert me["company"]["id"] == owner["company_id"]
    assert users["total"] == 2


async def test_activity_feed_records_actions(client, owner, sent_invoice):
    await sent_invoice(owner["headers"], "10.00")

    resp = await client.get("/activities", headers=owner["headers"])

    assert resp.status_code == 200, resp.text
    messages = [a["message"] for a in resp.json()["data"]["items"]]
    assert any("INV-0001" in m for m in messages)

    sends = (await client.get("/activities?code=SEND_INVOICE", headers=owner["headers"])).json()["data"]
    assert sends["total"] == 1
    assert sends["items"][0]["code"] == "SEND_INVOICE"
