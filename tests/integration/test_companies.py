"""Company profile, subscription lifecycle and staff roles."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.models.companies.company_models import Company
from app.models.support.activity_models import UserActivity
from app.services.companies.company_service import expire_lapsed_trials


async def _lapse_trial(db_session, company_id: int) -> None:
    company = await db_session.get(Company, company_id)
    company.trial_ends_at = datetime.now(timezone.utc) - timedelta(days=1)
    await db_session.commit()


# =====================================================
# PROFILE
# =====================================================
async def test_profile_update_ignores_subscription_fields(client, owner, cashier_headers):
    url = "/companies/profile"
    body = {"currency": "mvr", "gst_rate": "8", "subscription_status": "active"}

    updated = await client.put(url, headers=owner["headers"], json=body)
    repeated = await client.put(url, headers=owner["headers"], json=body)
    denied = await client.put(url, headers=cashier_headers, json={"name": "Cashier Co"})
    read = await client.get(url, headers=cashier_headers)

    assert updated.status_code == 200, updated.text
    data = updated.json()["data"]
    assert data["currency"] == "MVR"
    assert data["gst_rate"] == "8.00"
    assert data["subscription_status"] == "trial"
    assert repeated.status_code == 400
    assert repeated.json()["error_code"] == "VALIDATION_ERROR"
    assert denied.status_code == 403
    assert read.status_code == 200
    assert read.json()["data"]["currency"] == "MVR"


# =====================================================
# SUBSCRIPTION
# =====================================================
async def test_subscription_overview_reports_trial_and_usage(client, owner, create_product, sent_invoice):
    await create_product(owner["headers"])
    await sent_invoice(owner["headers"], "40.00")

    resp = await client.get("/companies/subscription", headers=owner["headers"])

    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["status"] == "trial"
    assert data["plan"] is None
    assert data["trial_days_remaining"] == 30
    assert data["limits"] == {"max_users": None, "max_products": None, "max_storage_gb": None}
    assert data["usage"] == {"active_users": 1, "products": 2, "invoices_this_month": 1}


async def test_owner_picks_plan_and_becomes_active(client, owner, cashier_headers, create_plan):
    plan = await create_plan(name="Growth", price="19.00", max_users=5)
    url = "/companies/subscription"

    denied = await client.put(url, headers=cashier_headers, json={"subscription_plan_id": plan["id"]})
    missing = await client.put(url, headers=owner["headers"], json={"subscription_plan_id": 9999})
    chosen = await client.put(url, headers=owner["headers"], json={"subscription_plan_id": plan["id"]})
    again = await client.put(url, headers=owner["headers"], json={"subscription_plan_id": plan["id"]})

    assert denied.status_code == 403
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "PLAN_NOT_FOUND"
    assert chosen.status_code == 200, chosen.text
    data = chosen.json()["data"]
    assert data["status"] == "active"
    assert data["plan"]["name"] == "Growth"
    assert data["limits"]["max_users"] == 5
    assert data["trial_days_remaining"] is None
    assert again.status_code == 400


async def test_plan_too_small_for_current_staff_is_refused(client, owner, cashier_headers, create_plan):
    plan = await create_plan(name="Solo", max_users=1)

    resp = await client.put("/companies/subscription", headers=owner["headers"], json={"subscription_plan_id": plan["id"]})

    assert resp.status_code == 403
    body = resp.json()
    assert body["error_code"] == "PLAN_LIMIT_REACHED"
    assert body["details"] == {"resource": "users", "limit": 1, "current": 2}


async def test_lapsed_trial_locks_business_routes_until_plan_chosen(client, owner, db_session, create_plan):
    plan = await create_plan(name="Basic")
    await _lapse_trial(db_session, owner["company_id"])

    blocked = await client.get("/customers", headers=owner["headers"])
    overview = await client.get("/companies/subscription", headers=owner["headers"])
    chosen = await client.put(
        "/companies/subscription",
        headers=owner["headers"],
        json={"subscription_plan_id": plan["id"]},
    )
    unblocked = await client.get("/customers", headers=owner["headers"])

    assert blocked.status_code == 403
    assert blocked.json()["error_code"] == "SUBSCRIPTION_REQUIRED"
    assert blocked.json()["details"] == {"status": "past_due"}
    assert overview.status_code == 200
    assert overview.json()["data"]["status"] == "past_due"
    assert overview.json()["data"]["trial_days_remaining"] is None
    assert chosen.status_code == 200, chosen.text
    assert unblocked.status_code == 200


async def test_expire_lapsed_trials_job(owner, company_factory, db_session):
    other = await company_factory("still-trialing")
    await _lapse_trial(db_session, owner["company_id"])

    first = await expire_lapsed_trials(db_session)
    second = await expire_lapsed_trials(db_session)

    assert first == 1
    assert second == 0
    expired = await db_session.get(Company, owner["company_id"])
    active = await db_session.get(Company, other["company_id"])
    await db_session.refresh(expired)
    assert expired.subscription_status.value == "past_due"
    assert active.subscription_status.value == "trial"

    rows = (
        await db_session.execute(
            select(UserActivity).where(
                UserActivity.company_id == owner["company_id"],
                UserActivity.code == "EXPIRE_TRIAL",
            )
        )
    ).scalars().all()
    assert len(rows) == 1
    assert rows[0].user_id is None


async def test_super_admin_suspension_locks_company_out(client, owner, admin_headers):
    url = f"/companies/{owner['company_id']}/subscription-status"
    body = {"status": "suspended", "reason": "chargeback"}

    not_admin = await client.put(url, headers=owner["headers"], json=body)
    missing = await client.put("/companies/9999/subscription-status", headers=admin_headers, json=body)
    suspended = await client.put(url, headers=admin_headers, json=body)
    me = await client.get("/auth/me", headers=owner["headers"])
    login = await client.post("/auth/login", json={"email": owner["email"], "password": owner["password"]})

    assert not_admin.status_code == 403
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "COMPANY_NOT_FOUND"
    assert suspended.status_code == 200, suspended.text
    assert suspended.json()["data"]["subscription_status"] == "suspended"
    assert me.status_code == 403
    assert me.json()["error_code"] == "SUBSCRIPTION_SUSPENDED"
    assert login.status_code == 403
    assert login.json()["error_code"] == "SUBSCRIPTION_SUSPENDED"


async def test_reinstated_company_regains_access(client, owner, admin_headers):
    url = f"/companies/{owner['company_id']}/subscription-status"
    await client.put(url, headers=admin_headers, json={"status": "suspended"})

    reinstated = await client.put(url, headers=admin_headers, json={"status": "active"})
    customers = await client.get("/customers", headers=owner["headers"])

    assert reinstated.status_code == 200
    assert customers.status_code == 200


# =====================================================
# STAFF ROLES
# =====================================================
async def test_owner_changes_staff_role(client, owner, cashier_headers, unique_suffix):
    staff = await client.post(
        "/users",
        headers=owner["headers"],
        json={"email": f"clerk_{unique_suffix}@example.com", "password": "Clerk123!", "role": "cashier"},
    )
    staff_id = staff.json()["data"]["id"]
    me = await client.get("/auth/me", headers=owner["headers"])
    owner_id = me.json()["data"]["id"]

    promoted = await client.put(f"/companies/users/{staff_id}/role", headers=owner["headers"], json={"role": "accountant"})
    own = await client.put(f"/companies/users/{owner_id}/role", headers=owner["headers"], json={"role": "admin"})
    by_cashier = await client.put(f"/companies/users/{staff_id}/role", headers=cashier_headers, json={"role": "admin"})
    unknown = await client.put("/companies/users/9999/role", headers=owner["headers"], json={"role": "admin"})
    invalid = await client.put(f"/companies/users/{staff_id}/role", headers=owner["headers"], json={"role": "owner"})

    assert promoted.status_code == 200, promoted.text
    assert promoted.json()["data"]["role"] == "accountant"
    assert own.status_code == 400
    assert by_cashier.status_code == 403
    assert unknown.status_code == 404
    assert unknown.json()["error_code"] == "USER_NOT_FOUND"
    assert invalid.status_code == 422
