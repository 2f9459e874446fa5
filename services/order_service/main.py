from fastapi import FastAPI
from shared.errors import install_error_handlers
from shared.observability import trace_id_middleware
from shared.security import limiter
from .router import router, public_router
from .models import Order # Import to register with Base

order_app = FastAPI(title="Order Service", version="1.0.0")

order_app.middleware("http")(trace_id_middleware("order"))
install_error_handlers(order_app)

# --- SECURITY SETUP ---
order_app.state.limiter = limiter

order_app.include_router(public_router)
order_app.include_router(router)
