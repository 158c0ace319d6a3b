"""Sale item persistence operations (insert and per-sale aggregation)."""
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.models import SaleItem
from backoffice.utils.money import to_money


def insert_sale_item(session: Session, sale_id: int, product_id: int,
                     quantity: int, price_at_sale: Decimal) -> SaleItem:
    """Insert a line item and flush so its id is assigned."""
    item = SaleItem(
        sale_id=sale_id,
        product_id=product_id,
        quantity=quantity,
        price_at_sale=to_money(price_at_sale),
    )
    session.add(item)
    session.flush()
    return item


def sum_subtotal(session: Session, sale_id: int) -> Decimal:
    """SUM(quantity * price_at_sale) over every item of a sale, 0 when empty."""
    total = (
        session.query(func.coalesce(func.sum(SaleItem.quantity * SaleItem.price_at_sale), 0))
        .filter(SaleItem.sale_id == sale_id)
        .scalar()
    )
    return to_money(total)
