import logging
import urllib.parse
from dataclasses import dataclass

from sqlalchemy.orm import Session

from marzan_loyalty import config
from marzan_loyalty.errors import ConflictError, NotFoundError
from marzan_loyalty.models.loyalty_code import LoyaltyCode
from marzan_loyalty.services.email_service import EmailBackend, build_code_email, send_best_effort
from marzan_loyalty.services.loyalty_code_service import get_code, issue_code
from marzan_loyalty.services.validators import normalize_phone


logger = logging.getLogger(__name__)


@dataclass
class IssuanceResult:
    loyalty_code: LoyaltyCode
    email_sent: bool


def _get_unused_code(db: Session, code_id) -> LoyaltyCode:
    loyalty_code = get_code(db, code_id)
    if not loyalty_code:
        raise NotFoundError("Loyalty code not found")
    if loyalty_code.used_at is not None:
        raise ConflictError("Loyalty code already used")
    return loyalty_code


def generate_and_dispatch(
    db: Session,
    email: str,
    *,
    email_backend: EmailBackend,
    created_by=None,
) -> IssuanceResult:
    """
    Issue a code and email it. The code is flushed before delivery is
    attempted and a delivery failure only sets ``email_sent=False``; the code
    stays valid and can be re-sent or shared.
    """
    loyalty_code = issue_code(db, email, created_by=created_by)

    email_sent = send_best_effort(email_backend, build_code_email(loyalty_code.code, loyalty_code.email))
    if not email_sent:
        logger.warning(
            "loyalty code issued without email delivery",
            extra={"code_id": str(loyalty_code.id), "email": loyalty_code.email},
        )

    return IssuanceResult(loyalty_code=loyalty_code, email_sent=email_sent)


def resend_code_email(db: Session, code_id, *, email_backend: EmailBackend) -> IssuanceResult:
    loyalty_code = _get_unused_code(db, code_id)
    email_sent = send_best_effort(email_backend, build_code_email(loyalty_code.code, loyalty_code.email))
    return IssuanceResult(loyalty_code=loyalty_code, email_sent=email_sent)


def build_whatsapp_message(code: str) -> str:
    return f"Seu código de fidelidade {config.BRAND_NAME}: {code}\n\nResgate em: {config.SITE_URL}"


def build_whatsapp_link(phone: str, code: str) -> str:
    digits = normalize_phone(phone, required=True)
    text = urllib.parse.quote(build_whatsapp_message(code), safe="")
    return f"https://wa.me/{digits}?text={text}"


def whatsapp_share_link(db: Session, code_id, phone: str) -> str:
    loyalty_code = _get_unused_code(db, code_id)
    return build_whatsapp_link(phone, loyalty_code.code)
