from fastapi import FastAPI
from shared.errors import install_error_handlers
from shared.observability import trace_id_middleware
from .router import router, public_router

invoice_app = FastAPI(title="Invoice Service", version="1.0.0")

invoice_app.middleware("http")(trace_id_middleware("invoice"))
install_error_handlers(invoice_app)

invoice_app.include_router(public_router)
invoice_app.include_router(router)
