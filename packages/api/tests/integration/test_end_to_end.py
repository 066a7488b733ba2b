# This project was developed with assistance from AI tools.
"""Registration through verification lockout, recovery and submission over HTTP."""

from datetime import UTC, datetime, timedelta

import pytest
from factories import make_user
from relief_db.enums import UserRole

pytestmark = pytest.mark.integration


def _application(amount=750, email=None):
    event_date = (datetime.now(UTC).date() - timedelta(days=3)).isoformat()
    return {
        "profile_data": {"email": email, "employment_start_date": "2019-04-01"},
        "event_data": {"event": "Flood", "event_date": event_date, "requested_amount": str(amount)},
        "agreement_data": {"share_story": True, "receive_additional_info": False},
    }


async def test_lockout_then_recovery_through_another_fund(client_factory, seeded):
    client = await client_factory(make_user(uid="u1", email="pat@other.example"))

    resp = await client.post(
        "/api/profile",
        json={"email": "pat@other.example", "first_name": "Pat", "last_name": "Lee", "fund_code": "ACME"},
    )
    assert resp.status_code == 201
    assert resp.json()["fund_code"] == "ACME"

    session = (await client.get("/api/session")).json()
    assert session["status"] == "signed_in"
    assert session["page"] == "classVerification"

    # -- ACME checks the email domain; other.example never matches --
    resp = await client.post("/api/identities/verify/ACME")
    assert resp.status_code == 200
    assert resp.json()["cv_type"] == "Domain"
    assert resp.json()["max_attempts"] == 3

    results = [(await client.post("/api/identities/verify/ACME/attempt", json={})).json() for _ in range(3)]
    assert [r["locked"] for r in results] == [False, False, True]
    assert [r["remaining_attempts"] for r in results] == [2, 1, 0]
    assert results[-1]["status"] == "failed"
    assert results[-1]["page"] == "reliefQueue"

    session = (await client.get("/api/session")).json()
    assert session["is_trapped"] is True
    assert session["profile"]["eligibility_status"] == "Not Eligible"

    resp = await client.post("/api/session/navigate", json={"target": "support"})
    assert resp.json() == {"outcome": "rewritten", "requested": "support", "page": "reliefQueue"}
    resp = await client.post("/api/session/navigate", json={"target": "classVerification"})
    assert resp.json()["outcome"] == "granted"

    # -- BETA links the account over SSO --
    assert (await client.post("/api/identities/verify/BETA")).status_code == 200
    result = (await client.post("/api/identities/verify/BETA/attempt", json={})).json()
    assert result["status"] == "passed"
    assert result["page"] == "home"

    session = (await client.get("/api/session")).json()
    assert session["is_trapped"] is False
    assert session["has_eligible_identity"] is True
    assert session["profile"]["fund_code"] == "BETA"
    assert session["active_identity"] == {"id": "u1-BETA", "fund_code": "BETA"}

    resp = await client.post("/api/session/navigate", json={"target": "apply"})
    assert resp.json()["outcome"] == "granted"

    identities = (await client.get("/api/identities")).json()
    assert [i["id"] for i in identities["data"]] == ["u1-ACME", "u1-BETA"]
    assert identities["active_identity_id"] == "u1-BETA"

    # the failed ACME identity cannot be switched to
    assert (await client.post("/api/identities/u1-ACME/activate")).status_code == 409

    # -- apply against BETA --
    ledger = (await client.get("/api/applications/ledger")).json()
    assert ledger["fund_code"] == "BETA"
    assert ledger["can_apply"] is True
    assert float(ledger["twelve_month_remaining"]) == 5000

    resp = await client.patch("/api/drafts", json={"event_data": {"event": "Flood"}})
    assert resp.status_code == 200
    assert resp.json()["profile_data"]["email"] == "pat@other.example"

    resp = await client.post("/api/applications", json=_application())
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "Awarded"
    assert body["fund_code"] == "BETA"
    assert body["share_story"] is True
    assert float(body["twelve_month_grant_remaining"]) == 4250

    listing = (await client.get("/api/applications")).json()
    assert listing["count"] == 1
    assert (await client.get("/api/drafts")).json()["draft"] is None

    resp = await client.post("/api/session/sign-out")
    assert resp.status_code == 204


async def test_admin_proxy_flow(client_factory, seeded, registry):
    admin = await client_factory(make_user(uid="admin-1", role=UserRole.ADMIN, email="boss@acme.example"))
    applicant = await client_factory(make_user(uid="u1", email="sam@acme.example"))

    for client, email in ((admin, "boss@acme.example"), (applicant, "sam@acme.example")):
        resp = await client.post(
            "/api/profile",
            json={"email": email, "first_name": "A", "last_name": "B", "fund_code": "ACME"},
        )
        assert resp.status_code == 201

    await admin.post("/api/identities/verify/ACME")
    assert (await admin.post("/api/identities/verify/ACME/attempt", json={})).json()["status"] == "passed"

    resp = await applicant.post("/api/applications/proxy", json=_application(email="sam@acme.example"))
    assert resp.status_code == 403

    resp = await admin.post("/api/applications/proxy", json=_application(amount=400, email="sam@acme.example"))
    assert resp.status_code == 201
    assert resp.json()["uid"] == "u1"
    assert resp.json()["submitted_by"] == "admin-1"

    proxied = (await admin.get("/api/applications/proxy")).json()
    assert proxied["count"] == 1
    mine = (await applicant.get("/api/applications")).json()
    assert mine["count"] == 1
    assert mine["data"][0]["is_proxy"] is True
