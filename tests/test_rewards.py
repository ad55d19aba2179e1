import itertools
import uuid
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from marzan_loyalty.errors import NotFoundError
from marzan_loyalty.models.reward import Reward
from marzan_loyalty.services import reward_service
from marzan_loyalty.services.loyalty_code_service import issue_code, redeem_code
from marzan_loyalty.timeutils import add_months


NOW = datetime(2024, 3, 15, 12, 0)

_codes = itertools.count()


def _redeem_many(db, user, count, *, now=NOW):
    """Issue and redeem ``count`` codes; returns the rewards created."""
    rewards = []
    for _ in range(count):
        code = issue_code(db, user.email, generate=lambda: f"C{next(_codes):05d}")
        result = redeem_code(
            db,
            code=code.code,
            user_id=user.id,
            email=user.email,
            purchased_at=date(2024, 3, 1),
            now=now,
        )
        if result.reward is not None:
            rewards.append(result.reward)
    db.commit()
    return rewards


def test_no_reward_before_threshold(db, alice):
    assert _redeem_many(db, alice, 9) == []

    assert reward_service.get_reward_status(db, alice.id, now=NOW) == reward_service.STATUS_PENDING
    assert reward_service.get_progress(db, alice.id) == {
        "purchase_count": 9,
        "threshold": 10,
        "progress": 9,
        "remaining": 1,
    }


def test_tenth_redemption_issues_reward(db, alice):
    rewards = _redeem_many(db, alice, 10)

    assert len(rewards) == 1
    reward = rewards[0]
    assert reward.user_id == alice.id
    assert reward.reward_type == "Caixa Premium de Cookies"
    assert reward.claimed_at is None
    assert reward.expiry_date == datetime(2024, 4, 15, 12, 0)

    assert reward_service.get_reward_status(db, alice.id, now=NOW) == reward_service.STATUS_AVAILABLE
    assert reward_service.get_progress(db, alice.id)["progress"] == 0


def test_unclaimed_reward_blocks_the_next_one(db, alice):
    rewards = _redeem_many(db, alice, 20)

    assert len(rewards) == 1
    assert db.query(Reward).filter_by(user_id=alice.id).count() == 1


def test_new_reward_after_claim(db, alice):
    first = _redeem_many(db, alice, 10)[0]
    reward_service.claim_reward(db, first.id, now=NOW)
    db.commit()

    assert reward_service.get_reward_status(db, alice.id, now=NOW) == reward_service.STATUS_CLAIMED

    second = _redeem_many(db, alice, 10)
    assert len(second) == 1
    assert second[0].id != first.id


def test_claim_is_idempotent(db, alice):
    reward = _redeem_many(db, alice, 10)[0]

    claimed = reward_service.claim_reward(db, reward.id, now=NOW)
    db.commit()
    first_claimed_at = claimed.claimed_at
    assert first_claimed_at == NOW

    again = reward_service.claim_reward(db, reward.id, now=NOW + timedelta(days=1))
    db.commit()
    assert again.claimed_at == first_claimed_at


def test_claim_unknown_reward(db):
    with pytest.raises(NotFoundError):
        reward_service.claim_reward(db, uuid.uuid4())


def test_active_reward_unique_per_user(db, alice):
    db.add(Reward(user_id=alice.id, reward_type="x", created_at=NOW, expiry_date=NOW))
    db.commit()

    db.add(Reward(user_id=alice.id, reward_type="x", created_at=NOW, expiry_date=NOW))
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_list_active_rewards_includes_owner(db, alice, bob):
    _redeem_many(db, alice, 10)
    _redeem_many(db, bob, 9)

    active = reward_service.list_active_rewards(db)
    assert len(active) == 1
    reward, user = active[0]
    assert user.email == "alice@example.com"
    assert reward.user_id == alice.id


def test_expired_status_is_reported_without_claiming():
    reward = Reward(claimed_at=None, expiry_date=datetime(2024, 4, 15))

    assert reward_service.compute_reward_status([reward], now=datetime(2024, 4, 1)) == "available"
    assert reward_service.compute_reward_status([reward], now=datetime(2024, 4, 16)) == "expired"
    assert reward.claimed_at is None


def test_compute_status_without_rewards():
    assert reward_service.compute_reward_status([], now=NOW) == "pending"


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2024, 1, 31, 9, 30), 1) == datetime(2024, 2, 29, 9, 30)
    assert add_months(datetime(2023, 12, 15), 1) == datetime(2024, 1, 15)
    assert add_months(datetime(2024, 3, 31), 1) == datetime(2024, 4, 30)


def test_losing_reward_race_keeps_the_redemption(db, alice, monkeypatch):
    first = _redeem_many(db, alice, 10)[0]

    # another redemption already issued a reward the check did not see
    monkeypatch.setattr(reward_service, "get_active_reward", lambda db, user_id: None)
    assert _redeem_many(db, alice, 10) == []

    assert reward_service.count_for_user(db, alice.id) == 20
    unclaimed = db.query(Reward).filter_by(user_id=alice.id, claimed_at=None).all()
    assert [r.id for r in unclaimed] == [first.id]
