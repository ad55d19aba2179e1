from datetime import date, datetime

import pytest

from marzan_loyalty.errors import ValidationError
from marzan_loyalty.models.loyalty_code import LoyaltyCode
from marzan_loyalty.models.purchase import Purchase
from marzan_loyalty.services.loyalty_code_service import issue_code
from marzan_loyalty.services.purchase_service import (
    count_for_user,
    list_for_user,
    record_purchase,
    recent_for_user,
)


@pytest.fixture
def history(db, alice):
    for tx, day in (
        ("T1", date(2023, 12, 31)),
        ("T2", date(2024, 2, 10)),
        ("T3", date(2024, 3, 1)),
        ("T4", date(2024, 3, 18)),
    ):
        record_purchase(db, user_id=alice.id, transaction_id=tx, purchased_at=day)
    db.commit()


def test_list_all_newest_first(db, alice, history):
    purchases = list_for_user(db, alice.id)
    assert [p.transaction_id for p in purchases] == ["T4", "T3", "T2", "T1"]
    assert count_for_user(db, alice.id) == 4


def test_list_current_month(db, alice, history):
    purchases = list_for_user(db, alice.id, period="month", today=date(2024, 3, 20))
    assert [p.transaction_id for p in purchases] == ["T4", "T3"]


def test_list_current_year(db, alice, history):
    purchases = list_for_user(db, alice.id, period="year", today=date(2024, 3, 20))
    assert [p.transaction_id for p in purchases] == ["T4", "T3", "T2"]


def test_unknown_period_is_rejected(db, alice):
    with pytest.raises(ValidationError):
        list_for_user(db, alice.id, period="week")


def test_recent_returns_three(db, alice, history):
    assert [p.transaction_id for p in recent_for_user(db, alice.id)] == ["T4", "T3", "T2"]


def test_purchases_are_scoped_to_user(db, alice, bob, history):
    assert list_for_user(db, bob.id) == []
    assert count_for_user(db, bob.id) == 0


def test_record_purchase_defaults_to_verified(db, alice):
    purchase = record_purchase(
        db, user_id=alice.id, transaction_id="T9", purchased_at=datetime(2024, 3, 1, 15, 30)
    )
    assert purchase.purchased_at == datetime(2024, 3, 1, 15, 30)
    assert purchase.verified is True


# ─── HTTP ─────────────────────────────────────────────────────────
def test_redeem_endpoint(client, db, alice, alice_headers):
    issue_code(db, "alice@example.com", generate=lambda: "AB12C3")
    db.commit()

    r = client.post(
        "/purchases/redeem",
        json={"code": "ab12c3", "purchased_at": "2024-03-01"},
        headers=alice_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["purchase"]["transaction_id"] == "AB12C3"
    assert body["purchase"]["purchased_at"].startswith("2024-03-01")
    assert body["purchase"]["verified"] is True
    assert body["reward"] is None
    assert body["purchase_count"] == 1

    again = client.post(
        "/purchases/redeem",
        json={"code": "AB12C3", "purchased_at": "2024-03-01"},
        headers=alice_headers,
    )
    assert again.status_code == 409
    assert again.json()["detail"] == "Loyalty code already used"


def test_redeem_endpoint_refuses_other_email(client, db, alice, bob_headers):
    issue_code(db, "alice@example.com", generate=lambda: "AB12C3")
    db.commit()

    r = client.post(
        "/purchases/redeem",
        json={"code": "AB12C3", "purchased_at": "2024-03-01"},
        headers=bob_headers,
    )
    assert r.status_code == 409
    assert r.json()["detail"] == "Loyalty code does not belong to this email"


def test_redeem_endpoint_keeps_code_unused_when_purchase_exists(client, db, alice, bob, alice_headers):
    db.add(Purchase(user_id=bob.id, transaction_id="AB12C3", purchased_at=datetime(2024, 2, 1), verified=True))
    issue_code(db, "alice@example.com", generate=lambda: "AB12C3")
    db.commit()

    r = client.post(
        "/purchases/redeem",
        json={"code": "AB12C3", "purchased_at": "2024-03-01"},
        headers=alice_headers,
    )
    assert r.status_code == 409

    db.expire_all()
    code = db.query(LoyaltyCode).filter_by(code="AB12C3").one()
    assert code.used_at is None
    assert code.used_by is None
    assert db.query(Purchase).filter_by(user_id=alice.id).count() == 0


def test_redeem_endpoint_unknown_code(client, alice_headers):
    r = client.post(
        "/purchases/redeem",
        json={"code": "NOPE00", "purchased_at": "2024-03-01"},
        headers=alice_headers,
    )
    assert r.status_code == 404


def test_redeem_requires_session(client):
    r = client.post("/purchases/redeem", json={"code": "AB12C3", "purchased_at": "2024-03-01"})
    assert r.status_code == 401


def test_list_endpoint_rejects_bad_period(client, alice_headers):
    r = client.get("/purchases", params={"period": "decade"}, headers=alice_headers)
    assert r.status_code == 400


def test_dashboard_after_redemption(client, db, alice, alice_headers):
    issue_code(db, "alice@example.com", generate=lambda: "AB12C3")
    db.commit()
    client.post(
        "/purchases/redeem",
        json={"code": "AB12C3", "purchased_at": "2024-03-01"},
        headers=alice_headers,
    )

    r = client.get("/loyalty", headers=alice_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["progress"] == {"purchase_count": 1, "threshold": 10, "progress": 1, "remaining": 9}
    assert body["reward_status"] == "pending"
    assert body["active_reward"] is None
    assert [p["transaction_id"] for p in body["recent_purchases"]] == ["AB12C3"]
    assert [c["code"] for c in body["used_codes"]] == ["AB12C3"]
