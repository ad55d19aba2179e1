"""Email delivery backends and message templates."""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from html import escape
from typing import Protocol

from marzan_loyalty import config


logger = logging.getLogger(__name__)


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    text: str
    html: str | None = None


class EmailBackend(Protocol):
    """Minimal protocol for sending transactional emails."""

    def send(self, message: OutgoingEmail) -> None:
        ...


class SMTPEmailBackend:
    """SMTP-powered backend using the standard library client."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        use_tls: bool,
        sender: str,
        timeout: float = 10,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._sender = sender
        self._timeout = timeout

    def send(self, message: OutgoingEmail) -> None:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.set_content(message.text)
        if message.html:
            msg.add_alternative(message.html, subtype="html")

        smtp = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        try:
            if self._use_tls:
                smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(msg)
        finally:
            smtp.quit()


class NullEmailBackend:
    """Used when SMTP is not configured."""

    def send(self, message: OutgoingEmail) -> None:
        raise RuntimeError("email delivery is not configured (SMTP_HOST is empty)")


@dataclass
class InMemoryEmailBackend:
    """Test backend storing outbound messages in memory."""

    sent: list[OutgoingEmail] = field(default_factory=list)
    fail: bool = False

    def send(self, message: OutgoingEmail) -> None:
        if self.fail:
            raise ConnectionError("smtp unavailable")
        self.sent.append(message)


def build_email_backend() -> EmailBackend:
    if not config.SMTP_HOST:
        return NullEmailBackend()
    return SMTPEmailBackend(
        host=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USER or None,
        password=config.SMTP_PASSWORD or None,
        use_tls=config.SMTP_USE_TLS,
        sender=config.EMAIL_SENDER,
    )


# ============================================================
# TEMPLATES
# ============================================================
def build_code_email(code: str, email: str) -> OutgoingEmail:
    brand = config.BRAND_NAME
    site = config.SITE_URL

    text = (
        "Olá!\n\n"
        f"Obrigado por sua compra na {brand}!\n\n"
        f"Seu código de fidelidade é: {code}\n\n"
        "Para resgatar seu código:\n"
        f"1. Acesse nosso site: {site}\n"
        "2. Faça login em sua conta\n"
        '3. Clique em "Registrar Código"\n'
        "4. Digite o código acima\n\n"
        "Cada código registrado te aproxima de recompensas deliciosas!\n\n"
        "Atenciosamente,\n"
        f"Equipe {brand}\n"
    )

    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #8B4513;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="text-align: center; background-color: #8B4513; color: #FFF8E7; padding: 20px; border-radius: 8px;">
      <h1>{escape(brand)}</h1>
    </div>
    <p>Obrigado por sua compra na {escape(brand)}! Seu código de fidelidade é:</p>
    <div style="background: #FFF8E7; padding: 20px; text-align: center; font-size: 32px; font-weight: bold; border: 2px dashed #D2691E;">
      {escape(code)}
    </div>
    <ol>
      <li>Acesse nosso site: <a href="{escape(site)}">{escape(site)}</a></li>
      <li>Faça login em sua conta</li>
      <li>Clique em "Registrar Código"</li>
      <li>Digite o código acima</li>
    </ol>
    <p>Cada código registrado te aproxima de recompensas deliciosas!</p>
    <p style="text-align: center; font-size: 14px; color: #A0522D;">Equipe {escape(brand)}</p>
  </div>
</body>
</html>"""

    return OutgoingEmail(
        to=email,
        subject=f"Seu Código de Fidelidade {brand}",
        text=text,
        html=html,
    )


def build_password_reset_email(email: str, token: str) -> OutgoingEmail:
    link = f"{config.SITE_URL}/reset-password?token={token}"
    return OutgoingEmail(
        to=email,
        subject=f"{config.BRAND_NAME}: redefinição de senha",
        text=(
            "Recebemos um pedido para redefinir sua senha.\n\n"
            f"Use o link abaixo para criar uma nova senha:\n{link}\n\n"
            "Se você não fez este pedido, ignore este e-mail.\n"
        ),
    )


def build_confirmation_email(email: str, token: str) -> OutgoingEmail:
    link = f"{config.SITE_URL}/confirm-email?token={token}"
    return OutgoingEmail(
        to=email,
        subject=f"{config.BRAND_NAME}: confirme seu e-mail",
        text=(
            f"Bem-vindo ao programa de fidelidade {config.BRAND_NAME}!\n\n"
            f"Confirme seu e-mail acessando:\n{link}\n"
        ),
    )


def send_best_effort(backend: EmailBackend, message: OutgoingEmail) -> bool:
    """Deliver a message; failures are logged and reported, never raised."""
    try:
        backend.send(message)
    except Exception:
        logger.exception(
            "email dispatch failed",
            extra={"to": message.to, "subject": message.subject},
        )
        return False
    return True
