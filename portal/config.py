import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./portal.db")

# "production" enables secure cookies
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("JWT_SECRET") or os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Session cookie
AUTH_COOKIE_NAME = "auth-token"
SESSION_MAX_AGE_DAYS = 7

# Sensitive document receipts stay valid for a day
RECEIPT_MAX_AGE_SECONDS = int(os.getenv("RECEIPT_MAX_AGE_SECONDS", str(60 * 60 * 24)))

# Frontend base URL for links in notifications
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Cloudflare R2 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "polarad")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

# Slack bot (per-customer submission channels)
SLACK_BOT_TOKEN = os.getenv("SLACK_BOT_TOKEN")
SLACK_ADMIN_EMAILS = [e.strip() for e in os.getenv("SLACK_ADMIN_EMAILS", "").split(",") if e.strip()]

# Telegram bot
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_ADMIN_CHAT_ID = os.getenv("TELEGRAM_ADMIN_CHAT_ID")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Polarad <noreply@polarad.co.kr>")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")

# Naver Cloud SENS (SMS)
NCP_ACCESS_KEY = os.getenv("NCP_ACCESS_KEY")
NCP_SECRET_KEY = os.getenv("NCP_SECRET_KEY")
NCP_SERVICE_ID = os.getenv("NCP_SERVICE_ID")
NCP_SENDER_PHONE = os.getenv("NCP_SENDER_PHONE")

# Meta Ads
META_APP_ID = os.getenv("META_APP_ID")
META_APP_SECRET = os.getenv("META_APP_SECRET")
META_GRAPH_URL = "https://graph.facebook.com/v22.0"


# Data collection window (see services/meta/data_service.py)
DATA_DAYS = os.getenv("DATA_DAYS")
DATA_PERIOD = os.getenv("DATA_PERIOD")

# Outbound HTTP timeout for third-party calls
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))
