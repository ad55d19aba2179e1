import urllib.parse
import uuid

import pytest

from marzan_loyalty.errors import ConflictError, NotFoundError, ValidationError
from marzan_loyalty.models.loyalty_code import LoyaltyCode
from marzan_loyalty.services import issuance_service
from marzan_loyalty.services.email_service import InMemoryEmailBackend, build_code_email


def test_generate_and_dispatch_sends_email(db, admin):
    backend = InMemoryEmailBackend()

    result = issuance_service.generate_and_dispatch(db, "alice@example.com", email_backend=backend, created_by=admin.id)
    db.commit()

    assert result.email_sent is True
    (message,) = backend.sent
    assert message.to == "alice@example.com"
    assert result.loyalty_code.code in message.text
    assert result.loyalty_code.code in message.html
    assert message.subject == "Seu Código de Fidelidade Marzan Taste"


def test_email_failure_keeps_the_code(db):
    backend = InMemoryEmailBackend(fail=True)

    result = issuance_service.generate_and_dispatch(db, "alice@example.com", email_backend=backend)
    db.commit()

    assert result.email_sent is False
    stored = db.query(LoyaltyCode).one()
    assert stored.code == result.loyalty_code.code
    assert stored.used_at is None


def test_resend_only_for_unused_codes(db, alice):
    backend = InMemoryEmailBackend()
    code = issuance_service.generate_and_dispatch(db, alice.email, email_backend=backend).loyalty_code
    db.commit()

    assert issuance_service.resend_code_email(db, code.id, email_backend=backend).email_sent is True
    assert len(backend.sent) == 2

    code.used_at = code.created_at
    code.used_by = alice.id
    db.commit()
    with pytest.raises(ConflictError):
        issuance_service.resend_code_email(db, code.id, email_backend=backend)


def test_whatsapp_link():
    url = issuance_service.build_whatsapp_link("+55 (11) 98765-4321", "AB12C3")

    assert url.startswith("https://wa.me/5511987654321?text=")
    text = urllib.parse.unquote(url.split("?text=", 1)[1])
    assert text == "Seu código de fidelidade Marzan Taste: AB12C3\n\nResgate em: https://marzantaste.com"


def test_whatsapp_link_requires_phone():
    with pytest.raises(ValidationError):
        issuance_service.build_whatsapp_link("", "AB12C3")


def test_whatsapp_link_for_missing_code(db):
    with pytest.raises(NotFoundError):
        issuance_service.whatsapp_share_link(db, uuid.uuid4(), "11987654321")


def test_code_email_escapes_html():
    message = build_code_email("<X>", "a@example.com")
    assert "&lt;X&gt;" in message.html
