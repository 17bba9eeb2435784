import os
from decimal import Decimal

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Application environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = ENVIRONMENT == "development"
TESTING = os.getenv("TESTING", "false").lower() == "true"

# Database settings
DATABASE_URL = os.getenv("DATABASE_URL")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_TIMEOUT_SECONDS = int(os.getenv("DB_POOL_TIMEOUT_SECONDS", "30"))
DB_POOL_RECYCLE_SECONDS = int(os.getenv("DB_POOL_RECYCLE_SECONDS", "300"))
DB_SSL_VERIFY = os.getenv("DB_SSL_VERIFY", "false").lower() == "true"
SLOW_QUERY_MS = float(os.getenv("SLOW_DB_QUERY_THRESHOLD_MS", "200"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Application settings
APP_NAME = "TSU Wallet API"
APP_VERSION = "1.0.0"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# JWT settings
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# Admin bootstrap (development only)
ALLOW_ADMIN_BOOTSTRAP = os.getenv("ALLOW_ADMIN_BOOTSTRAP", "false").lower() == "true"
ADMIN_BOOTSTRAP_EMAIL = os.getenv("ADMIN_BOOTSTRAP_EMAIL", "admin@tsu-wallet.com")
ADMIN_BOOTSTRAP_PASSWORD = os.getenv("ADMIN_BOOTSTRAP_PASSWORD", "")

# Registration / login protection
REGISTRATIONS_PER_IP_PER_HOUR = int(os.getenv("REGISTRATIONS_PER_IP_PER_HOUR", "3"))
LOGIN_MAX_FAILURES = int(os.getenv("LOGIN_MAX_FAILURES", "5"))
LOGIN_LOCKOUT_MINUTES = int(os.getenv("LOGIN_LOCKOUT_MINUTES", "15"))
PASSWORD_RESET_TOKEN_HOURS = int(os.getenv("PASSWORD_RESET_TOKEN_HOURS", "1"))
WALLET_CHALLENGE_TTL_MINUTES = int(os.getenv("WALLET_CHALLENGE_TTL_MINUTES", "10"))
# Honour X-Forwarded-For only when the API sits behind a proxy that overwrites it
TRUST_PROXY_HEADERS = os.getenv("TRUST_PROXY_HEADERS", "false").lower() == "true"

# Purchase settings
PURCHASE_FEE_RATE = Decimal(os.getenv("PURCHASE_FEE_RATE", "0.025"))
MIN_PURCHASE_USD = Decimal(os.getenv("MIN_PURCHASE_USD", "10"))
DEFAULT_TSU_PRICE = Decimal(os.getenv("DEFAULT_TSU_PRICE", "1.00"))
MIN_CONFIRMATIONS = int(os.getenv("MIN_CONFIRMATIONS", "3"))
ETH_AMOUNT_TOLERANCE = Decimal(os.getenv("ETH_AMOUNT_TOLERANCE", "0.01"))  # fraction of expected wei
BTC_AMOUNT_TOLERANCE_SATS = int(os.getenv("BTC_AMOUNT_TOLERANCE_SATS", "1000"))
ETH_CHAIN_ID = int(os.getenv("ETH_CHAIN_ID", "1"))

# Receiving addresses
CRYPTO_ETH_ADDRESS = os.getenv("CRYPTO_ETH_ADDRESS", "")
CRYPTO_BTC_ADDRESS = os.getenv("CRYPTO_BTC_ADDRESS", "")

# Chain data providers
ETH_RPC_URL = os.getenv("ETH_RPC_URL", "https://cloudflare-eth.com")
BLOCKSTREAM_API_URL = os.getenv("BLOCKSTREAM_API_URL", "https://blockstream.info/api")
CHAIN_HTTP_TIMEOUT_SECONDS = float(os.getenv("CHAIN_HTTP_TIMEOUT_SECONDS", "10"))

# Price feed
COINGECKO_API_URL = os.getenv("COINGECKO_API_URL", "https://api.coingecko.com/api/v3")
PRICE_CACHE_SECONDS = int(os.getenv("PRICE_CACHE_SECONDS", "300"))
PRICE_REFRESH_MINUTES = int(os.getenv("PRICE_REFRESH_MINUTES", "15"))
FALLBACK_ETH_USD = Decimal(os.getenv("FALLBACK_ETH_USD", "2000"))
FALLBACK_BTC_USD = Decimal(os.getenv("FALLBACK_BTC_USD", "50000"))
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"

# PayPal settings
PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID", "")
PAYPAL_CLIENT_SECRET = os.getenv("PAYPAL_CLIENT_SECRET", "")
PAYPAL_MODE = os.getenv("PAYPAL_MODE", "sandbox" if ENVIRONMENT != "production" else "live")
PAYPAL_HTTP_TIMEOUT_SECONDS = float(os.getenv("PAYPAL_HTTP_TIMEOUT_SECONDS", "15"))

# Redis settings
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# AWS upload settings
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
AWS_UPLOAD_BUCKET = os.getenv("AWS_UPLOAD_BUCKET", "")
AWS_UPLOAD_URL_EXPIRY_SECONDS = int(os.getenv("AWS_UPLOAD_URL_EXPIRY_SECONDS", "900"))

# Email settings
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "")
SENDGRID_FROM_EMAIL = os.getenv("SENDGRID_FROM_EMAIL", "noreply@tsu-wallet.com")
SMTP_TIMEOUT_SECONDS = int(os.getenv("SMTP_TIMEOUT_SECONDS", "20"))

# Site settings
SITE_URL = os.getenv("SITE_URL", "http://localhost:5000")
SITE_TITLE = os.getenv("SITE_TITLE", "TSU Wallet - Trade Settlement Unit")
SITE_DESCRIPTION = os.getenv(
    "SITE_DESCRIPTION",
    "The Trade Settlement Unit: a reserve-backed digital currency for African and BRICS trade.",
)
OG_IMAGE_URL = os.getenv("OG_IMAGE_URL", "")
WHITEPAPER_DIR = os.getenv("WHITEPAPER_DIR", "uploads/whitepapers")
WHITEPAPER_MAX_BYTES = int(os.getenv("WHITEPAPER_MAX_BYTES", str(10 * 1024 * 1024)))
