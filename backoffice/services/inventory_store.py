"""
Inventory persistence operations.

Functions take the caller's session as transaction handle and never commit.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.models import Inventory
from backoffice.services.concurrency import lock_for_update


def lock_inventory(session: Session, product_id: int) -> Optional[Inventory]:
    """Fetch the inventory row of a product with an exclusive row lock."""
    return lock_for_update(
        session.query(Inventory).filter(Inventory.product_id == product_id)
    ).one_or_none()


def get_inventory(session: Session, product_id: int) -> Optional[Inventory]:
    """Plain point lookup by product, no lock."""
    return session.query(Inventory).filter(Inventory.product_id == product_id).one_or_none()


def decrement_stock(session: Session, inventory: Inventory, quantity: int) -> Inventory:
    """
    Take quantity units out of a locked inventory row.

    Raises:
        ValueError: if the row would go negative (callers check stock first).
    """
    if quantity > inventory.quantity_in_stock:
        raise ValueError(
            f'Cannot decrement product {inventory.product_id} by {quantity}, '
            f'only {inventory.quantity_in_stock} in stock'
        )
    inventory.quantity_in_stock = inventory.quantity_in_stock - quantity
    inventory.last_updated = datetime.now(timezone.utc)
    session.flush()
    return inventory
