"""Subscription plan catalogue and the limits plans put on companies."""

from sqlalchemy import select

from app.models.subscriptions.subscription_plan_models import SubscriptionPlan
from app.scripts.seed_subscription_plans import seed_subscription_plans, DEFAULT_PLANS


async def test_catalogue_is_public(client, create_plan):
    await create_plan(name="Basic", price="9.00", sort_order=1)
    await create_plan(name="Pro", price="29.00", sort_order=2)

    resp = await client.get("/subscription-plans")

    assert resp.status_code == 200
    assert [p["name"] for p in resp.json()["data"]] == ["Basic", "Pro"]


async def test_owner_cannot_manage_plans(client, owner):
    resp = await client.post("/subscription-plans", headers=owner["headers"], json={"name": "Hack", "price": "0"})

    assert resp.status_code == 403
    assert resp.json()["error_code"] == "PERMISSION_DENIED"


async def test_duplicate_plan_name_rejected(client, admin_headers, create_plan):
    await create_plan(name="Basic")

    resp = await client.post("/subscription-plans", headers=admin_headers, json={"name": "Basic", "price": "1.00"})

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "PLAN_NAME_EXISTS"


async def test_deactivated_plan_leaves_catalogue(client, admin_headers, create_plan):
    plan = await create_plan(name="Legacy")

    resp = await client.delete(f"/subscription-plans/{plan['id']}", headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["is_active"] is False
    assert (await client.get(f"/subscription-plans/{plan['id']}")).status_code == 404
    assert (await client.get("/subscription-plans")).json()["data"] == []


async def test_plan_trial_length_applies_on_register(client, create_plan, company_factory, unique_suffix):
    plan = await create_plan(name="Trialist", trial_period_days=7)

    shop = await company_factory(unique_suffix, subscription_plan_id=plan["id"])
    me = (await client.get("/auth/me", headers=shop["headers"])).json()["data"]

    assert me["company"]["subscription_plan_id"] == plan["id"]
    assert me["company"]["trial_ends_at"] is not None


async def test_product_limit(client, create_plan, company_factory, unique_suffix, create_product):
    plan = await create_plan(name="One Product", max_products=1)
    shop = await company_factory(unique_suffix, subscription_plan_id=plan["id"])

    await create_product(shop["headers"])
    resp = await client.post(
        "/products",
        headers=shop["headers"],
        json={"sku": "SKU-2", "name": "Second", "price": "1.00"},
    )

    assert resp.status_code == 403
    assert resp.json()["error_code"] == "PLAN_LIMIT_REACHED"
    assert resp.json()["details"] == {"resource": "products", "limit": 1, "current": 1}


async def test_user_limit(client, create_plan, company_factory, unique_suffix):
    plan = await create_plan(name="Solo", max_users=1)
    shop = await company_factory(unique_suffix, subscription_plan_id=plan["id"])

    resp = await client.post(
        "/users",
        headers=shop["headers"],
        json={"email": f"extra_{unique_suffix}@example.com", "password": "Extra123!", "role": "cashier"},
    )

    assert resp.status_code == 403
    assert resp.json()["error_code"] == "PLAN_LIMIT_REACHED"


async def test_seed_is_idempotent(session_factory, monkeypatch):
    monkeypatch.setattr("app.scripts.seed_subscription_plans.AsyncSessionLocal", session_factory)

    first = await seed_subscription_plans()
    second = await seed_subscription_plans()

    assert first == len(DEFAULT_PLANS)
    assert second == 0
    async with session_factory() as session:
        names = (await session.execute(select(SubscriptionPlan.name))).scalars().all()
    assert sorted(names) == sorted(p["name"] for p in DEFAULT_PLANS)

