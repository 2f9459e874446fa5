from fastapi import FastAPI
from shared.errors import install_error_handlers
from shared.observability import trace_id_middleware
from .router import router, public_router
from .models import Inventory # Import to register with Base

inventory_app = FastAPI(title="Inventory Service", version="1.0.0")

inventory_app.middleware("http")(trace_id_middleware("inventory"))
install_error_handlers(inventory_app)

inventory_app.include_router(public_router)
inventory_app.include_router(router)
