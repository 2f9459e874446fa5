from fastapi import FastAPI
from shared.errors import install_error_handlers
from shared.observability import trace_id_middleware
from .router import router, public_router, invalid_action_router
from .models import Shipment # Import to register with Base

shipping_app = FastAPI(title="Shipping Service", version="1.0.0")

shipping_app.middleware("http")(trace_id_middleware("shipping"))
install_error_handlers(shipping_app)

shipping_app.include_router(public_router)
shipping_app.include_router(router)
shipping_app.include_router(invalid_action_router)
