from fastapi import FastAPI
from shared.config.database import engine, Base
from shared.observability import setup_observability

# Model modules register their tables on Base.metadata at import time
from services.inventory_service import models as inventory_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401
from services.payment_service import models as payment_models  # noqa: F401
from services.shipping_service import models as shipping_models  # noqa: F401

from services.inventory_service.main import inventory_app
from services.order_service.main import order_app
from services.payment_service.main import payment_app
from services.shipping_service.main import shipping_app
from services.invoice_service.main import invoice_app
from services.notification_service.main import notification_app

SUB_APPS = {
    "/orders": order_app,
    "/payments": payment_app,
    "/shipping": shipping_app,
    "/inventory": inventory_app,
    "/invoices": invoice_app,
    "/notifications": notification_app,
}

app = FastAPI(title="ReStyle Store Cluster")

# Once, on the outer app: /metrics and the tracer provider are process-wide
setup_observability(app, "restyle")


@app.on_event("startup")
async def create_tables():
    # Single database, no per-service schemas
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


for prefix, sub_app in SUB_APPS.items():
    app.mount(prefix, sub_app)
