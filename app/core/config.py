# app/core/config.py

import os
from decimal import Decimal
from dotenv import load_dotenv
from app.utils.logger import get_logger

logger = get_logger(__name__)

load_dotenv()

# =====================================================
# APPLICATION
# =====================================================
APP_ENV = os.getenv("APP_ENV")
if APP_ENV not in {"development", "staging", "production"}:
    raise ValueError("APP_ENV must be development | staging | production")

IS_PRODUCTION = APP_ENV == "production"

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")
PDF_OUTPUT_DIR = os.getenv("PDF_OUTPUT_DIR", "generated_pdfs")

# =====================================================
# DATABASE
# =====================================================
DB_TYPE = os.getenv("DB_TYPE")
if DB_TYPE not in {"postgres", "sqlite"}:
    raise ValueError("DB_TYPE must be postgres | sqlite")

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres")

elif DB_TYPE == "sqlite":
    if IS_PRODUCTION:
        raise ValueError("SQLite is NOT allowed in production")
    SQLITE_PATH = os.getenv("SQLITE_PATH", "./bolibooks.db")
    DATABASE_URL = f"sqlite+aiosqlite:///{SQLITE_PATH}"

# ---- Pool tuning (safe defaults) ----
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 10))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 20))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", 30))
DB_ECHO_POOL = os.getenv("DB_ECHO_POOL", "false").lower() == "true"

# ---- SSL ----
# MUST be true in production
DB_SSL_VERIFY = os.getenv("DB_SSL_VERIFY", "true").lower() == "true"
if IS_PRODUCTION and not DB_SSL_VERIFY:
    logger.warning("Running in production with relaxed SSL verification")

# =====================================================
# JWT / AUTH
# =====================================================
JWT_ACCESS_SECRET_KEY = os.getenv("JWT_ACCESS_SECRET_KEY")
if not JWT_ACCESS_SECRET_KEY:
    raise ValueError("JWT_ACCESS_SECRET_KEY must be set")

JWT_ALGORITHM = "HS256"

ACCESS_TOKEN_EXPIRE_MINUTES = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60)
)

# =====================================================
# BILLING DEFAULTS
# =====================================================
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD").upper()

# percent, used by POS when the company has no GST rate of its own
DEFAULT_POS_TAX_RATE = Decimal(os.getenv("DEFAULT_POS_TAX_RATE", "10"))

# =====================================================
# PAYMENT GATEWAYS
# =====================================================
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com")

PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID")
PAYPAL_CLIENT_SECRET = os.getenv("PAYPAL_CLIENT_SECRET")
PAYPAL_ENVIRONMENT = os.getenv("PAYPAL_ENVIRONMENT", "sandbox")
if PAYPAL_ENVIRONMENT not in {"sandbox", "live"}:
    raise ValueError("PAYPAL_ENVIRONMENT must be sandbox | live")
PAYPAL_WEBHOOK_ID = os.getenv("PAYPAL_WEBHOOK_ID")

BML_ENABLED = os.getenv("BML_ENABLED", "false").lower() == "true"
BML_MERCHANT_ID = os.getenv("BML_MERCHANT_ID")
BML_API_KEY = os.getenv("BML_API_KEY")
BML_API_SECRET = os.getenv("BML_API_SECRET")
BML_WEBHOOK_SECRET = os.getenv("BML_WEBHOOK_SECRET")
BML_BASE_URL = (os.getenv("BML_BASE_URL") or "").rstrip("/")
BML_RETURN_URL = os.getenv("BML_RETURN_URL", f"{FRONTEND_URL}/payment/success")
BML_CANCEL_URL = os.getenv("BML_CANCEL_URL", f"{FRONTEND_URL}/payment/cancel")
BML_CURRENCY = os.getenv("BML_CURRENCY", "MVR").upper()

# seconds, applied to every outbound gateway request
GATEWAY_HTTP_TIMEOUT = float(os.getenv("GATEWAY_HTTP_TIMEOUT", 15))

# =====================================================
# SCHEDULER
# =====================================================
# always on outside production; opt-in in production
ENABLE_SCHEDULER = (
    os.getenv("ENABLE_SCHEDULER", "false").lower() == "true"
    if IS_PRODUCTION
    else os.getenv("ENABLE_SCHEDULER", "true").lower() == "true"
)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
APP_NAME_SHORT = os.getenv("APP_NAME_SHORT", "bolibooks")
