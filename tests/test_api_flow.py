"""End-to-end HTTP flow: register, fund, join, submit, verify, batch, settle."""
import json

from reelpay import config
from reelpay.models.db.enums import CampaignStatus, UserRole
from reelpay.services.deposits import sign_payload

API = "/api/v1"


def _register(client, name, email, role):
    resp = client.post(f"{API}/users/", json={"name": name, "email": email, "role": role})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["api_key"].startswith("rp_")
    return body, {"Authorization": f"Bearer {body['api_key']}"}


def test_full_campaign_to_payout_flow(client, admin, auth_headers):
    host, host_h = _register(client, "Hana Host", "hana@example.com", "HOST")
    creator, creator_h = _register(client, "Cal Creator", "cal@example.com", "CREATOR")
    admin_h = auth_headers(admin)

    resp = client.post(
        f"{API}/campaigns/",
        json={"title": "Monsoon drop", "platforms": ["instagram", "yt"], "rate_per_1k_views_paise": 3000},
        headers=host_h,
    )
    assert resp.status_code == 201, resp.text
    campaign = resp.json()
    assert campaign["status"] == "DRAFT"
    assert campaign["platforms"] == ["INSTAGRAM", "YOUTUBE"]
    assert campaign["budget"]["total_paise"] == 0
    cid = campaign["id"]

    # Funding is idempotent per key
    deposit_url = f"{API}/campaigns/{cid}/deposits"
    resp = client.post(deposit_url, json={"amount_paise": 100000}, headers={**host_h, "Idempotency-Key": "k1"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["applied"] is True
    assert resp.json()["budget"]["total_paise"] == 100000
    resp = client.post(deposit_url, json={"amount_paise": 100000}, headers={**host_h, "Idempotency-Key": "k1"})
    assert resp.json()["applied"] is False
    assert resp.json()["budget"]["total_paise"] == 100000

    resp = client.post(f"{API}/campaigns/{cid}/activate", headers=host_h)
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "ACTIVE"

    resp = client.get(f"{API}/campaigns/{cid}/cycle")
    assert resp.status_code == 200
    assert resp.json()["cycle_index"] == 0

    resp = client.post(
        f"{API}/campaigns/{cid}/join",
        json={"platforms": ["ig"], "handles": {"ig": "@cal"}},
        headers=creator_h,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["platforms"] == ["INSTAGRAM"]

    resp = client.post(
        f"{API}/campaigns/{cid}/submissions",
        json={"platform": "IG", "reel_url": "https://www.instagram.com/reel/Cx1abc/"},
        headers=creator_h,
    )
    assert resp.status_code == 201, resp.text
    submission = resp.json()
    assert submission["status"] == "PENDING_HOST_APPROVAL"
    sid = submission["id"]

    resp = client.get(f"{API}/admin/submissions", params={"status": "PENDING_HOST_APPROVAL"}, headers=admin_h)
    assert [s["id"] for s in resp.json()] == [sid]

    resp = client.post(
        f"{API}/admin/submissions/{sid}/verify",
        json={"approved": True, "verified_views_total": 2500, "proof_note": "insights screenshot"},
        headers=admin_h,
    )
    assert resp.status_code == 200, resp.text
    outcome = resp.json()
    assert outcome["reserved_delta_paise"] == 6000
    assert outcome["submission"]["status"] == "ACTIVE"

    resp = client.get(f"{API}/users/me/earnings", headers=creator_h)
    assert resp.json()["pending_paise"] == 6000

    resp = client.post(f"{API}/admin/payouts", json={"creator_id": creator["id"]}, headers=admin_h)
    assert resp.status_code == 201, resp.text
    payout = resp.json()
    assert payout["amount_paise"] == 6000
    assert payout["status"] == "PENDING"

    resp = client.post(
        f"{API}/admin/payouts/{payout['id']}/mark-paid", json={"reference_id": "UTR42"}, headers=admin_h
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "PAID"

    resp = client.post(
        f"{API}/admin/payouts/{payout['id']}/mark-paid", json={"reference_id": "UTR43"}, headers=admin_h
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "ALREADY_PAID"

    resp = client.get(f"{API}/users/me/earnings", headers=creator_h)
    assert resp.json() == {
        "creator_id": creator["id"],
        "pending_paise": 0,
        "in_flight_paise": 0,
        "total_paid_paise": 6000,
    }

    resp = client.get(f"{API}/campaigns/{cid}", headers=host_h)
    assert resp.json()["budget"] == {
        "total_paise": 100000,
        "reserved_paise": 0,
        "spent_paise": 6000,
        "available_paise": 94000,
    }

    resp = client.get(f"{API}/campaigns/{cid}/ledger", headers=host_h)
    assert [(e["type"], e["amount_paise"]) for e in resp.json()] == [
        ("DEPOSIT", 100000),
        ("RESERVE", 6000),
        ("PAYOUT_PAID", 6000),
    ]


def test_domain_errors_map_to_codes(client, admin, auth_headers, campaign_factory, submission_factory):
    campaign = campaign_factory()
    submission = submission_factory(campaign)
    admin_h = auth_headers(admin)
    verify_url = f"{API}/admin/submissions/{submission.id}/verify"

    resp = client.post(verify_url, json={"approved": True, "verified_views_total": 1000}, headers=admin_h)
    assert resp.status_code == 200
    resp = client.post(f"{API}/admin/payouts", json={"creator_id": submission.creator_id}, headers=admin_h)
    client.post(f"{API}/admin/payouts/{resp.json()['id']}/mark-paid", json={"reference_id": "R1"}, headers=admin_h)

    resp = client.post(verify_url, json={"approved": True, "verified_views_total": 500}, headers=admin_h)
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "REGRESSION_NOT_ALLOWED"
    assert body["details"]["paid_views_total"] == 1000

    resp = client.post(f"{API}/admin/submissions/999999/verify", json={"approved": False}, headers=admin_h)
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


def test_role_checks(client, user_factory, auth_headers, campaign_factory, submission_factory):
    creator = user_factory(UserRole.CREATOR)
    other_host = user_factory(UserRole.HOST)
    campaign = campaign_factory()
    submission = submission_factory(campaign, creator=creator)

    resp = client.post(
        f"{API}/admin/submissions/{submission.id}/verify",
        json={"approved": True, "verified_views_total": 1000},
        headers=auth_headers(creator),
    )
    assert resp.status_code == 403

    resp = client.post(
        f"{API}/campaigns/{campaign.id}/deposits",
        json={"amount_paise": 100000},
        headers={**auth_headers(other_host), "Idempotency-Key": "steal"},
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"

    resp = client.get(f"{API}/users/me/earnings", headers=auth_headers(other_host))
    assert resp.status_code == 403

    resp = client.get(f"{API}/users/me")
    assert resp.status_code in (401, 403)
    resp = client.get(f"{API}/users/me", headers={"Authorization": "Bearer rp_not_a_real_key"})
    assert resp.status_code == 401


def test_admin_cannot_self_register(client):
    resp = client.post(f"{API}/users/", json={"name": "Eve", "email": "eve@example.com", "role": "ADMIN"})
    assert resp.status_code == 422
    assert resp.json()["code"] == "VALIDATION_ERROR"


def test_manual_deposit_guards(client, user_factory, auth_headers, campaign_factory):
    host = user_factory(UserRole.HOST)
    campaign = campaign_factory(host=host, status=CampaignStatus.DRAFT, funded_paise=0)
    url = f"{API}/campaigns/{campaign.id}/deposits"

    resp = client.post(url, json={"amount_paise": 100000}, headers=auth_headers(host))
    assert resp.status_code == 400

    resp = client.post(url, json={"amount_paise": 1000}, headers={**auth_headers(host), "Idempotency-Key": "tiny"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_AMOUNT"


def test_reverify_endpoint(client, admin, auth_headers, campaign_factory, submission_factory, user_factory):
    creator = user_factory(UserRole.CREATOR)
    campaign = campaign_factory()
    submission = submission_factory(campaign, creator=creator)
    client.post(
        f"{API}/admin/submissions/{submission.id}/verify",
        json={"approved": True, "verified_views_total": 1000},
        headers=auth_headers(admin),
    )

    url = f"{API}/submissions/{submission.id}/reverify"
    resp = client.post(url, headers=auth_headers(creator))
    assert resp.status_code == 201, resp.text
    assert resp.json()["cycle_index"] == 0
    resp = client.post(url, headers=auth_headers(creator))
    assert resp.status_code == 409
    assert resp.json()["code"] == "ALREADY_REQUESTED"

    resp = client.get(f"{API}/submissions/me", headers=auth_headers(creator))
    assert [s["id"] for s in resp.json()] == [submission.id]


def test_payment_webhook_signature_and_redelivery(client, campaign_factory, monkeypatch):
    monkeypatch.setattr(config, "PAYMENT_WEBHOOK_SECRET", "whsec_test")
    campaign = campaign_factory(funded_paise=0)
    event = {
        "event": "payment.captured",
        "payload": {"payment": {"entity": {
            "id": "pay_abc", "amount": 250000, "notes": {"campaignId": str(campaign.id)},
        }}},
    }
    body = json.dumps(event).encode()
    url = f"{API}/webhooks/payments"

    resp = client.post(url, content=body, headers={"X-Webhook-Signature": "deadbeef"})
    assert resp.status_code == 401

    signed = {"X-Webhook-Signature": sign_payload(body, "whsec_test"), "Content-Type": "application/json"}
    resp = client.post(url, content=body, headers=signed)
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"] == {"campaign_id": campaign.id, "applied": True, "total_paise": 250000}

    resp = client.post(url, content=body, headers=signed)
    assert resp.json()["data"]["applied"] is False
    assert resp.json()["data"]["total_paise"] == 250000

    ignored = json.dumps({"event": "order.paid"}).encode()
    resp = client.post(url, content=ignored, headers={"X-Webhook-Signature": sign_payload(ignored, "whsec_test")})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Event ignored"

    event["payload"]["payment"]["entity"].update({"id": "pay_def", "notes": {"campaignId": "cmp_abc"}})
    malformed = json.dumps(event).encode()
    resp = client.post(url, content=malformed, headers={"X-Webhook-Signature": sign_payload(malformed, "whsec_test")})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Event ignored"


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/detailed").json()["checks"]["database"] == "healthy"
