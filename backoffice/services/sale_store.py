"""
Sale persistence operations.

Every function works inside the caller's transaction: the session passed in
is the unit of work and is never committed or rolled back here.
"""
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.models import Sale
from backoffice.services.concurrency import lock_for_update


def lock_sale(session: Session, sale_id: int) -> Optional[Sale]:
    """
    Fetch a sale with an exclusive row lock (SELECT ... FOR UPDATE).

    populate_existing() overwrites any copy already in the identity map, so the
    caller sees the values committed by whoever held the lock before it.
    """
    return lock_for_update(
        session.query(Sale).filter(Sale.sale_id == sale_id)
    ).one_or_none()


def get_sale(session: Session, sale_id: int) -> Optional[Sale]:
    """Plain point lookup, no lock."""
    return session.query(Sale).filter(Sale.sale_id == sale_id).one_or_none()


def update_totals(session: Session, sale: Sale, subtotal, discount_percentage,
                  discount_amount, total_amount) -> Sale:
    """Write the aggregate money fields of a locked sale."""
    sale.subtotal = subtotal
    sale.discount_percentage = discount_percentage
    sale.discount_amount = discount_amount
    sale.total_amount = total_amount
    session.flush()
    return sale
