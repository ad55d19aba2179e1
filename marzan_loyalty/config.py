import os

from dotenv import load_dotenv

# Load .env file with explicit UTF-8 encoding
load_dotenv(encoding="utf-8")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./marzan_loyalty.db"

# ─── Auth ─────────────────────────────────────────────────────────
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = _env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60)
PASSWORD_RESET_EXPIRE_MINUTES = _env_int("PASSWORD_RESET_EXPIRE_MINUTES", 30)
EMAIL_CONFIRM_EXPIRE_HOURS = _env_int("EMAIL_CONFIRM_EXPIRE_HOURS", 48)

# ─── Loyalty program ──────────────────────────────────────────────
REWARD_THRESHOLD = _env_int("REWARD_THRESHOLD", 10)
REWARD_VALIDITY_MONTHS = _env_int("REWARD_VALIDITY_MONTHS", 1)
REWARD_TYPE = os.getenv("REWARD_TYPE", "Caixa Premium de Cookies")

LOYALTY_CODE_LENGTH = _env_int("LOYALTY_CODE_LENGTH", 6)
LOYALTY_CODE_MAX_ATTEMPTS = _env_int("LOYALTY_CODE_MAX_ATTEMPTS", 5)

# ─── Brand ────────────────────────────────────────────────────────
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "America/Sao_Paulo")
SITE_URL = os.getenv("SITE_URL", "https://marzantaste.com").rstrip("/")
BRAND_NAME = os.getenv("BRAND_NAME", "Marzan Taste")

# ─── Email (SMTP) ─────────────────────────────────────────────────
SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = _env_int("SMTP_PORT", 587)
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", True)
EMAIL_SENDER = os.getenv("EMAIL_SENDER", f"{BRAND_NAME} <noreply@marzantaste.com>")

# ─── External HTTP services ───────────────────────────────────────
POSTAL_LOOKUP_URL = os.getenv("POSTAL_LOOKUP_URL", "https://viacep.com.br/ws").rstrip("/")
IMGUR_CLIENT_ID = os.getenv("IMGUR_CLIENT_ID", "")
IMAGE_UPLOAD_URL = os.getenv("IMAGE_UPLOAD_URL", "https://api.imgur.com/3/image")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS") or 10)

# ─── HTTP app ─────────────────────────────────────────────────────
CORS_ORIGINS = [
    o.strip()
    for o in (os.getenv("CORS_ORIGINS") or "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
