import re

import pytest

from marzan_loyalty.errors import AuthError
from marzan_loyalty.services import auth_service
from marzan_loyalty.services.session_events import SessionEvent


def _token_from(message) -> str:
    return re.search(r"token=(\S+)", message.text).group(1)


@pytest.fixture
def recorded(session_events):
    changes = []
    session_events.subscribe(changes.append)
    return changes


SIGNUP = {
    "email": "Carla@Example.com",
    "password": "biscoito",
    "full_name": "Carla Dias",
    "phone": "(11) 98765-4321",
}


def test_signup_creates_profile_and_sends_confirmation(client, email_backend, recorded):
    r = client.post("/auth/signup", json=SIGNUP)
    assert r.status_code == 201
    token = r.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert me["email"] == "carla@example.com"
    assert me["phone"] == "11987654321"
    assert me["is_admin"] is False
    assert me["email_confirmed_at"] is None

    assert [m.to for m in email_backend.sent] == ["carla@example.com"]
    assert [c.event for c in recorded] == [SessionEvent.SIGNED_UP]


def test_signup_rejects_duplicate_email(client, alice):
    r = client.post("/auth/signup", json={**SIGNUP, "email": "ALICE@example.com"})
    assert r.status_code == 409


@pytest.mark.parametrize(
    "override",
    [{"email": "nope"}, {"password": "123"}, {"phone": "1234"}, {"full_name": "  "}],
)
def test_signup_validation(client, override):
    r = client.post("/auth/signup", json={**SIGNUP, **override})
    assert r.status_code == 400


def test_login(client, alice, recorded):
    r = client.post("/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert r.status_code == 200
    assert r.json()["token_type"] == "bearer"
    assert recorded[-1].event == SessionEvent.SIGNED_IN
    assert recorded[-1].user_id == str(alice.id)

    bad = client.post("/auth/login", json={"email": "alice@example.com", "password": "wrong"})
    assert bad.status_code == 401


def test_logout_publishes_event(client, alice_headers, recorded):
    assert client.post("/auth/logout", headers=alice_headers).status_code == 200
    assert recorded[-1].event == SessionEvent.SIGNED_OUT


def test_invalid_token_is_rejected(client):
    r = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_reset_token_cannot_be_used_as_session(client, alice):
    token = auth_service.create_token(alice, purpose=auth_service.PURPOSE_RESET)
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_password_reset_flow(client, alice, email_backend, recorded):
    r = client.post("/auth/forgot-password", json={"email": "alice@example.com"})
    assert r.status_code == 200
    assert recorded[-1].event == SessionEvent.PASSWORD_RECOVERY
    token = _token_from(email_backend.sent[-1])

    r = client.post("/auth/reset-password", json={"token": token, "password": "novasenha"})
    assert r.status_code == 200
    assert recorded[-1].event == SessionEvent.USER_UPDATED

    # single use
    again = client.post("/auth/reset-password", json={"token": token, "password": "outrasenha"})
    assert again.status_code == 401

    ok = client.post("/auth/login", json={"email": "alice@example.com", "password": "novasenha"})
    assert ok.status_code == 200


def test_forgot_password_for_unknown_email_is_silent(client, email_backend):
    r = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
    assert r.status_code == 200
    assert email_backend.sent == []


def test_update_password(client, alice_headers):
    r = client.post("/auth/password", json={"password": "123"}, headers=alice_headers)
    assert r.status_code == 400

    r = client.post("/auth/password", json={"password": "trocada1"}, headers=alice_headers)
    assert r.status_code == 200

    ok = client.post("/auth/login", json={"email": "alice@example.com", "password": "trocada1"})
    assert ok.status_code == 200


def test_email_confirmation(client, email_backend):
    client.post("/auth/signup", json=SIGNUP)
    token = _token_from(email_backend.sent[-1])

    r = client.post("/auth/confirm", json={"token": token})
    assert r.status_code == 200
    assert r.json()["email_confirmed_at"] is not None

    r = client.post("/auth/resend-confirmation", json={"email": "carla@example.com"})
    assert r.json()["sent"] is False


def test_resend_confirmation_for_unconfirmed(client, alice, email_backend):
    r = client.post("/auth/resend-confirmation", json={"email": "alice@example.com"})
    assert r.json()["sent"] is True
    assert email_backend.sent[-1].to == "alice@example.com"


def test_decode_token_checks_purpose(alice):
    token = auth_service.create_token(alice, purpose=auth_service.PURPOSE_CONFIRM)
    assert auth_service.decode_token(token, purpose=auth_service.PURPOSE_CONFIRM)["sub"] == str(alice.id)
    with pytest.raises(AuthError):
        auth_service.decode_token(token, purpose=auth_service.PURPOSE_ACCESS)
