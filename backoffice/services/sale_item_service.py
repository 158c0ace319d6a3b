"""
Sale item service with transactional line-item creation.

add_line_item is the only write path that keeps a sale's totals and the
product's stock consistent with its items. Locks are always taken sale first,
then inventory.
"""
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from backoffice.exceptions import NotFoundError, InsufficientStockError, ValidationError
from backoffice.models import Sale, SaleItem, User, Product
from backoffice.services import inventory_store, sale_store, sale_item_store
from backoffice.services.concurrency import run_locked_transaction
from backoffice.utils.money import compute_totals
from backoffice.utils.validators import parse_positive_int, parse_money

logger = logging.getLogger(__name__)


def add_line_item(sale_id, product_id, quantity, price_at_sale, session: Session,
                  lock_timeout: Optional[float] = None) -> SaleItem:
    """
    Add a line item to a sale in one atomic unit of work.

    Args:
        sale_id: Sale receiving the item
        product_id: Product sold; its inventory row must exist
        quantity: Units sold (positive integer)
        price_at_sale: Unit price captured now (non-negative)
        session: SQLAlchemy session acting as the transaction handle
        lock_timeout: Seconds to wait on each row lock (defaults to config)

    Returns:
        The inserted SaleItem

    Raises:
        ValidationError: bad arguments, raised before touching storage
        NotFoundError: entity 'sale' or 'inventory' is missing
        InsufficientStockError: stock is lower than quantity
        LockTimeoutError: a row lock could not be acquired in time
        TransactionFailedError: any other storage failure

    Process:
        1. Lock sale, read its discount percentage once
        2. Lock inventory row, check stock
        3. Insert item, decrement stock
        4. Re-aggregate subtotal over all items, recompute totals
        5. Commit
    """
    sale_id = parse_positive_int(sale_id, 'sale_id')
    product_id = parse_positive_int(product_id, 'product_id')
    quantity = parse_positive_int(quantity, 'quantity')
    price_at_sale = parse_money(price_at_sale, 'price_at_sale')

    def _op(session):
        # Step 1: Lock sale
        sale = sale_store.lock_sale(session, sale_id)
        if not sale:
            raise NotFoundError('sale', sale_id)

        # Step 2: Discount as of the lock; not re-read below
        discount_percentage = sale.discount_percentage or Decimal('0')

        # Step 3: Lock inventory and validate stock
        inventory = inventory_store.lock_inventory(session, product_id)
        if not inventory:
            raise NotFoundError('inventory', product_id,
                                message=f'Inventory record for product {product_id} not found')

        available = inventory.quantity_in_stock
        if available < quantity:
            raise InsufficientStockError(product_id, quantity, available)

        # Step 4: Insert item and take the stock
        item = sale_item_store.insert_sale_item(session, sale_id, product_id, quantity, price_at_sale)
        inventory_store.decrement_stock(session, inventory, quantity)

        # Step 5: Full re-aggregation keeps subtotal equal to the sum of items
        subtotal = sale_item_store.sum_subtotal(session, sale_id)
        totals = compute_totals(subtotal, discount_percentage)
        sale_store.update_totals(
            session, sale,
            subtotal=totals.subtotal,
            discount_percentage=discount_percentage,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
        )
        return item

    try:
        item = run_locked_transaction(session, _op, f'add_line_item sale={sale_id}', lock_timeout)
    except InsufficientStockError as e:
        logger.warning(f"Rejected line item for sale {sale_id}: {e.message}")
        raise
    except NotFoundError as e:
        logger.warning(f"Rejected line item for sale {sale_id}: {e.message}")
        raise

    logger.info(
        f"Sale item {item.sale_item_id} added to sale {sale_id}: "
        f"product={product_id} qty={quantity} price={price_at_sale}"
    )
    return item


def list_sale_items(session: Session) -> List[SaleItem]:
    return session.query(SaleItem).order_by(SaleItem.sale_item_id.desc()).all()


def get_sale_item(sale_item_id, session: Session) -> SaleItem:
    """Get a sale item or raise NotFoundError."""
    sale_item_id = parse_positive_int(sale_item_id, 'sale_item_id')
    item = session.get(SaleItem, sale_item_id)
    if not item:
        raise NotFoundError('sale item', sale_item_id)
    return item


def get_sale_items_by_sale(sale_id, session: Session) -> List[SaleItem]:
    sale_id = parse_positive_int(sale_id, 'sale_id')
    return (
        session.query(SaleItem)
        .filter(SaleItem.sale_id == sale_id)
        .order_by(SaleItem.sale_item_id.desc())
        .all()
    )


def get_sale_item_details(sale_item_id, session: Session) -> dict:
    """
    Return a sale item joined with its sale, the sale's user and the product.

    Raises:
        NotFoundError: if the item does not exist
    """
    sale_item_id = parse_positive_int(sale_item_id, 'sale_item_id')
    row = (
        session.query(SaleItem, Sale, User, Product)
        .join(Sale, Sale.sale_id == SaleItem.sale_id)
        .join(User, User.user_id == Sale.user_id)
        .join(Product, Product.product_id == SaleItem.product_id)
        .filter(SaleItem.sale_item_id == sale_item_id)
        .one_or_none()
    )
    if not row:
        raise NotFoundError('sale item', sale_item_id)

    item, sale, user, product = row
    details = item.to_dict()
    details.update({
        'user_id': sale.user_id,
        'sale_date': sale.sale_date.strftime('%d/%m/%Y') if sale.sale_date else None,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'customer_name': user.full_name,
        'product_name': product.product_name,
    })
    return details


def update_sale_item(sale_item_id, updates: dict, session: Session) -> SaleItem:
    """
    Administrative correction of quantity and/or price of an existing item.

    TODO: restock/re-aggregate the owning sale once the product owner decides
    the correction semantics; today this only rewrites the item row.
    """
    sale_item_id = parse_positive_int(sale_item_id, 'sale_item_id')
    if not updates or not ({'quantity', 'price_at_sale'} & set(updates)):
        raise ValidationError('No data provided for update')

    item = get_sale_item(sale_item_id, session)
    try:
        if updates.get('quantity') is not None:
            item.quantity = parse_positive_int(updates['quantity'], 'quantity')
        if updates.get('price_at_sale') is not None:
            item.price_at_sale = parse_money(
                updates['price_at_sale'], 'price_at_sale', allow_equal_min=False
            )
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.warning(
        f"Sale item {sale_item_id} corrected without re-aggregating sale {item.sale_id}"
    )
    return item


def delete_sale_item(sale_item_id, session: Session) -> None:
    """Delete a sale item. Stock and sale totals are left untouched."""
    item = get_sale_item(sale_item_id, session)
    sale_id = item.sale_id
    try:
        session.delete(item)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.warning(f"Sale item {sale_item_id} deleted from sale {sale_id} without restocking")
