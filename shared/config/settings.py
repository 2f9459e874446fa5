import os
from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# --- Auth ---
# Shared secret of the hosted auth provider; customer tokens are verified here, never issued
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
# Admin tooling and service-to-service calls
INTERNAL_API_KEY = os.getenv("INTERNAL_API_KEY", "")

# --- Payments (Barion) ---
BARION_API_URL = os.getenv("BARION_API_URL", "https://api.test.barion.com")
BARION_POS_KEY = os.getenv("BARION_POS_KEY", "")
# Public URL Barion calls back with { PaymentId }
BARION_CALLBACK_URL = os.getenv("BARION_CALLBACK_URL", "http://localhost:8000/payments/barion-webhook")

# "mock" keeps the storefront's synchronous mock-success path; "live" redirects to Barion.
CHECKOUT_PAYMENT_MODE = os.getenv("CHECKOUT_PAYMENT_MODE", "mock")
STOREFRONT_URL = os.getenv("STOREFRONT_URL", "http://localhost:5173")

# --- Carriers ---
PACKETA_API_URL = os.getenv("PACKETA_API_URL", "https://www.zasilkovna.cz/api/rest")
PACKETA_BRANCH_URL = os.getenv("PACKETA_BRANCH_URL", "https://www.zasilkovna.cz/api/v4")
PACKETA_API_KEY = os.getenv("PACKETA_API_KEY", "")
PACKETA_API_PASSWORD = os.getenv("PACKETA_API_PASSWORD", "")
PACKETA_ESHOP = os.getenv("PACKETA_ESHOP", "ReStyle")

DPD_API_URL = os.getenv("DPD_API_URL", "https://api.dpd.hu/v1")
DPD_API_KEY = os.getenv("DPD_API_KEY", "")

# --- Invoicing / email ---
BILLINGO_API_URL = os.getenv("BILLINGO_API_URL", "https://api.billingo.hu/v3")
BILLINGO_API_KEY = os.getenv("BILLINGO_API_KEY", "")

RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com")
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
EMAIL_FROM = os.getenv("EMAIL_FROM", "noreply@restyle.hu")

# --- Limits / timeouts ---
WEBHOOK_RATE_LIMIT = os.getenv("WEBHOOK_RATE_LIMIT", "100/minute")
PAYMENT_RATE_LIMIT = os.getenv("PAYMENT_RATE_LIMIT", "5/minute")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))

# --- Observability ---
# Tracing export is only wired when an endpoint is configured
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
