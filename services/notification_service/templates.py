from html import escape


def format_huf(amount) -> str:
    """hu-HU currency format without decimals, e.g. 12 990 Ft."""
    return f"{round(amount or 0):,}".replace(",", " ") + " Ft"


def first_name(full_name: str | None) -> str:
    # Hungarian names put the given name last
    if not full_name:
        return ""
    return full_name.strip().split(" ")[-1]


def _row(label: str, value: str, style: str = "") -> str:
    return (
        f'<tr><td colspan="2" style="padding: 10px; text-align: right; {style}">{label}</td>'
        f'<td style="padding: 10px; text-align: right; {style}">{value}</td></tr>'
    )


def render_order_confirmation(order) -> tuple[str, str]:
    """Returns (subject, html) for the confirmation email of a loaded Order."""
    items_subtotal = sum(item.unit_price_gross * item.quantity for item in order.items)

    lines = "".join(
        "<tr>"
        f'<td style="padding: 10px; border-bottom: 1px solid #eee;"><strong>{escape(item.title)}</strong></td>'
        f'<td style="padding: 10px; border-bottom: 1px solid #eee; text-align: center;">{item.quantity} db</td>'
        f'<td style="padding: 10px; border-bottom: 1px solid #eee; text-align: right;">'
        f"{format_huf(item.unit_price_gross * item.quantity)}</td>"
        "</tr>"
        for item in order.items
    )

    totals = _row("Termékek összesen:", format_huf(items_subtotal))
    totals += _row("Szállítási költség:", format_huf(order.shipping_fee_gross))
    if order.discount_amount and order.discount_amount > 0:
        totals += _row("Kedvezmény:", f"-{format_huf(order.discount_amount)}", "color: #16a34a;")
    totals += _row("Végösszeg:", format_huf(order.total_gross), "font-weight: bold;")

    address = order.shipping_address
    if address is not None:
        address_html = (
            f"<p>{escape(address.name or order.full_name or '')}</p>"
            f"<p>{escape(address.street)}</p>"
            f"<p>{escape(address.zip_code)} {escape(address.city)}</p>"
            f"<p>Tel: {escape(address.phone or '')}</p>"
        )
    else:
        address_html = ""

    created = order.created_at.strftime("%Y. %m. %d.") if order.created_at else ""
    status = "Feldolgozás alatt" if order.status == "pending" else order.status

    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="color: #333;">Köszönjük a rendelésedet!</h1>
  <p>Kedves {escape(first_name(order.full_name or order.email))},</p>
  <p>Rendelésedet sikeresen rögzítettük. Az alábbiakban találod a rendelés részleteit:</p>
  <div style="background: #f9f9f9; padding: 15px;">
    <p><strong>Rendelésszám:</strong> #{escape(order.order_number)}</p>
    <p><strong>Dátum:</strong> {created}</p>
    <p><strong>Állapot:</strong> {escape(status)}</p>
  </div>
  <h2>Rendelt termékek</h2>
  <table style="width: 100%; border-collapse: collapse;">
    <tbody>{lines}</tbody>
    <tfoot>{totals}</tfoot>
  </table>
  <h2>Szállítási cím</h2>
  <div style="background: #f9f9f9; padding: 15px;">{address_html}</div>
  <p>Rendelésedet 2-3 munkanapon belül szállítjuk ki.</p>
</div>
"""
    subject = f"Rendelés visszaigazolás - #{order.order_number}"
    return subject, html
