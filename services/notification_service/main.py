from fastapi import FastAPI
from shared.errors import install_error_handlers
from shared.observability import trace_id_middleware
from .router import router, public_router

notification_app = FastAPI(title="Notification Service", version="1.0.0")

notification_app.middleware("http")(trace_id_middleware("notification"))
install_error_handlers(notification_app)

notification_app.include_router(public_router)
notification_app.include_router(router)
