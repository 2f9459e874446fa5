from fastapi import FastAPI

from shared.errors import install_error_handlers
from shared.observability import trace_id_middleware
from shared.security import limiter

from .models import Payment, WebhookEvent # Import to register with Base
from .router import router, public_router


payment_app = FastAPI(title="Payment Service", version="2.0.0")

payment_app.middleware("http")(trace_id_middleware("payment"))
install_error_handlers(payment_app)

# --- SECURITY SETUP ---
payment_app.state.limiter = limiter

payment_app.include_router(router)
payment_app.include_router(public_router)
