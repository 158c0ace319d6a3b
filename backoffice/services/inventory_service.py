"""
Inventory service - provisioning and administrative stock adjustments.

Sales never decrement stock through this module; see sale_item_service.
"""
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from backoffice.exceptions import NotFoundError, BusinessLogicError
from backoffice.models import Inventory, Product
from backoffice.services import inventory_store
from backoffice.services.concurrency import run_locked_transaction
from backoffice.utils.validators import parse_positive_int, parse_non_negative_int

logger = logging.getLogger(__name__)


def create_inventory_record(product_id, quantity_in_stock, session: Session) -> Inventory:
    """Provision the stock counter of a product."""
    product_id = parse_positive_int(product_id, 'product_id')
    quantity_in_stock = parse_non_negative_int(quantity_in_stock, 'quantity_in_stock')

    if not session.get(Product, product_id):
        raise NotFoundError('product', product_id)
    if inventory_store.get_inventory(session, product_id):
        raise BusinessLogicError(f'Inventory record for product {product_id} already exists')

    inventory = Inventory(
        product_id=product_id,
        quantity_in_stock=quantity_in_stock,
        last_updated=datetime.now(timezone.utc),
    )
    try:
        session.add(inventory)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Inventory created for product {product_id} with {quantity_in_stock} unit(s)")
    return inventory


def list_inventory(session: Session) -> List[Inventory]:
    return session.query(Inventory).order_by(Inventory.inventory_id.desc()).all()


def _with_product(inventory: Inventory, product: Product) -> dict:
    data = inventory.to_dict()
    data.update({
        'product_name': product.product_name,
        'unit_price': float(product.unit_price),
        'product_type': product.product_type,
        'status': product.status,
    })
    return data


def list_inventory_with_details(session: Session) -> List[dict]:
    """Inventory rows joined with their product."""
    rows = (
        session.query(Inventory, Product)
        .join(Product, Product.product_id == Inventory.product_id)
        .order_by(Inventory.inventory_id.desc())
        .all()
    )
    return [_with_product(inventory, product) for inventory, product in rows]


def get_low_stock(threshold, session: Session) -> List[dict]:
    """Rows with quantity_in_stock below threshold, lowest first."""
    threshold = parse_non_negative_int(threshold, 'threshold')
    rows = (
        session.query(Inventory, Product)
        .join(Product, Product.product_id == Inventory.product_id)
        .filter(Inventory.quantity_in_stock < threshold)
        .order_by(Inventory.quantity_in_stock.asc())
        .all()
    )
    return [_with_product(inventory, product) for inventory, product in rows]


def get_inventory_by_product(product_id, session: Session) -> Inventory:
    product_id = parse_positive_int(product_id, 'product_id')
    inventory = inventory_store.get_inventory(session, product_id)
    if not inventory:
        raise NotFoundError('inventory', product_id,
                            message=f'Inventory record for product {product_id} not found')
    return inventory


def set_stock_quantity(product_id, quantity_in_stock, session: Session) -> Inventory:
    """
    Administrative stock adjustment.

    Takes the same inventory row lock as add_line_item so an adjustment
    cannot interleave with a sale between its stock check and decrement.
    """
    product_id = parse_positive_int(product_id, 'product_id')
    quantity_in_stock = parse_non_negative_int(quantity_in_stock, 'quantity_in_stock')

    def _op(session):
        inventory = inventory_store.lock_inventory(session, product_id)
        if not inventory:
            raise NotFoundError('inventory', product_id,
                                message=f'Inventory record for product {product_id} not found')
        previous = inventory.quantity_in_stock
        inventory.quantity_in_stock = quantity_in_stock
        inventory.last_updated = datetime.now(timezone.utc)
        session.flush()
        return inventory, previous

    inventory, previous = run_locked_transaction(session, _op, f'set_stock product={product_id}')
    logger.info(f"Stock of product {product_id} adjusted from {previous} to {quantity_in_stock}")
    return inventory


def delete_inventory(product_id, session: Session) -> None:
    inventory = get_inventory_by_product(product_id, session)
    try:
        session.delete(inventory)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info(f"Inventory record for product {inventory.product_id} deleted")
