from datetime import date
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import BadRequestError, NotFoundError
from services.order_service.repository import OrderRepository
from services.order_service.state import PaymentStatus

from .client import BillingoClient

logger = structlog.get_logger(__name__)

SHIPPING_LINE_NAME = "Szállítási költség"


def build_partner(order) -> dict:
    address = order.billing_address
    return {
        "name": (address.name if address else None) or order.full_name or order.email,
        "address": {
            "country_code": (address.country if address else None) or "HU",
            "post_code": (address.zip_code if address else None) or "",
            "city": (address.city if address else None) or "",
            "address": (address.street if address else None) or "",
        },
        "emails": [order.email],
        "taxcode": "",
    }


def build_invoice_items(order) -> list[dict]:
    items = [
        {
            "name": item.title,
            "unit_price": float(item.unit_price_gross),
            "unit_price_type": "gross",
            "quantity": item.quantity,
            "unit": "db",
            "vat": f"{item.vat_rate or 27}%",
            "comment": item.sku,
        }
        for item in order.items
    ]
    if order.shipping_fee_gross and order.shipping_fee_gross > 0:
        items.append(
            {
                "name": SHIPPING_LINE_NAME,
                "unit_price": float(order.shipping_fee_gross),
                "unit_price_type": "gross",
                "quantity": 1,
                "unit": "db",
                "vat": "27%",
                "comment": order.shipping_method or "standard",
            }
        )
    return items


def build_document(order, partner_id) -> dict:
    today = date.today().isoformat()
    return {
        "partner_id": partner_id,
        "block_id": 0,
        "type": "invoice",
        "fulfillment_date": today,
        "due_date": today,
        "payment_method": "card",
        "language": "hu",
        "currency": order.currency or "HUF",
        "paid": True,
        "items": build_invoice_items(order),
        "comment": f"Rendelés: {order.order_number}",
    }


class InvoiceService:

    @staticmethod
    async def create_invoice(db: AsyncSession, client: BillingoClient, order_id: str) -> dict:
        order = await OrderRepository.get_order(db, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.payment_status != PaymentStatus.PAID:
            raise BadRequestError("Order not paid yet")

        if order.invoice_number:
            logger.info("Invoice already exists", order_id=order_id, invoice_number=order.invoice_number)
            return {"success": True, "invoiceNumber": order.invoice_number, "message": "Invoice already exists"}

        partner = await client.create_partner(build_partner(order))
        invoice = await client.create_document(build_document(order, partner["id"]))

        order.invoice_number = invoice.get("invoice_number")
        await db.commit()
        logger.info("Invoice created", order_id=order_id, invoice_number=order.invoice_number)

        return {
            "success": True,
            "invoiceNumber": order.invoice_number,
            "invoiceId": invoice.get("id"),
            "downloadUrl": client.download_url(invoice.get("id")),
        }
