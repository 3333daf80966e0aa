from __future__ import annotations

from decimal import Decimal

from finbook import models
from finbook.services.email_service import format_amount


def test_get_profile_defaults(client, demo_user, act_as):
    act_as(demo_user)
    resp = client.get("/api/profile")
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "demo@example.com"
    assert body["plan"] == "Free"
    assert body["currency"] == "USD"
    assert body["receiving_accounts"] == []


def test_patch_profile(client, db_session, demo_user, act_as):
    act_as(demo_user)
    resp = client.patch(
        "/api/profile",
        json={
            "name": "Demo Person",
            "currency": "INR",
            "receiving_accounts": [
                {"id": "acc1", "type": "UPI", "label": "Main UPI", "details": {"upiId": "demo@upi"}}
            ],
            "payment_methods": [{"id": "pm1", "brand": "Visa", "last4": "4242", "expiry": "12/27"}],
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Demo Person"
    assert body["currency"] == "INR"
    assert body["receiving_accounts"][0]["details"]["upiId"] == "demo@upi"

    db_session.refresh(demo_user.profile)
    assert demo_user.profile.currency is models.Currency.INR
    assert demo_user.profile.payment_methods[0]["last4"] == "4242"


def test_patch_profile_validation(client, demo_user, act_as):
    act_as(demo_user)
    bad_card = {"payment_methods": [{"id": "pm1", "brand": "Visa", "last4": "42", "expiry": "12/27"}]}
    assert client.patch("/api/profile", json=bad_card).status_code == 422
    assert client.patch("/api/profile", json={"currency": "EUR"}).status_code == 422


def test_upgrade_to_pro(client, db_session, demo_user, act_as):
    act_as(demo_user)
    resp = client.post("/api/profile/upgrade")
    assert resp.status_code == 200
    assert resp.json()["plan"] == "Pro"
    assert resp.json()["plan_started_at"] is not None
    db_session.refresh(demo_user.profile)
    assert demo_user.profile.is_pro


def test_upgrade_keeps_enterprise(client, db_session, demo_user, act_as):
    demo_user.profile.plan = models.Plan.ENTERPRISE
    db_session.commit()
    act_as(demo_user)
    assert client.post("/api/profile/upgrade").json()["plan"] == "Enterprise"


def test_format_amount():
    assert format_amount(Decimal("12.5"), models.Currency.USD) == "$12.50"
    assert format_amount(3, "INR") == "₹3.00"
    assert format_amount(Decimal("0.1"), models.Currency.GBP) == "£0.10"
