"""
Sales service - creation, lookups and deletion of sales.

Money fields are never written here: a sale starts at zero and only
add_line_item / apply_discount change its totals.
"""
import logging
from datetime import timedelta
from decimal import Decimal
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.exceptions import NotFoundError, ValidationError
from backoffice.models import Sale, User
from backoffice.services import sale_store
from backoffice.utils.money import to_money
from backoffice.utils.validators import (
    parse_positive_int, parse_date_dmy, parse_iso_datetime
)

logger = logging.getLogger(__name__)

# Fields a client may change on an existing sale
UPDATABLE_FIELDS = ('user_id', 'sale_date')


def create_sale(user_id, session: Session) -> Sale:
    """Create an empty sale for a user with all totals at zero."""
    user_id = parse_positive_int(user_id, 'user_id')
    if not session.get(User, user_id):
        raise NotFoundError('user', user_id)

    sale = Sale(
        user_id=user_id,
        subtotal=Decimal('0.00'),
        discount_percentage=Decimal('0.00'),
        discount_amount=Decimal('0.00'),
        total_amount=Decimal('0.00'),
    )
    try:
        session.add(sale)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Sale {sale.sale_id} created for user {user_id}")
    return sale


def list_sales(session: Session) -> List[Sale]:
    return session.query(Sale).order_by(Sale.sale_id.desc()).all()


def get_sale(sale_id, session: Session) -> Sale:
    """Get a sale or raise NotFoundError."""
    sale_id = parse_positive_int(sale_id, 'sale_id')
    sale = sale_store.get_sale(session, sale_id)
    if not sale:
        raise NotFoundError('sale', sale_id)
    return sale


def get_sales_between_dates(start_date: str, end_date: str, session: Session) -> List[Sale]:
    """
    Sales whose date falls between two DD/MM/YYYY dates, both inclusive.

    Raises:
        ValidationError: on missing or malformed dates, or start after end
    """
    start = parse_date_dmy(start_date, 'startDate')
    end = parse_date_dmy(end_date, 'endDate')
    if start > end:
        raise ValidationError('startDate must not be after endDate', 'startDate')

    return (
        session.query(Sale)
        .filter(Sale.sale_date >= start, Sale.sale_date < end + timedelta(days=1))
        .order_by(Sale.sale_date.desc())
        .all()
    )


def get_sales_by_customer(user_id, session: Session) -> List[Sale]:
    user_id = parse_positive_int(user_id, 'user_id')
    return (
        session.query(Sale)
        .filter(Sale.user_id == user_id)
        .order_by(Sale.sale_id.desc())
        .all()
    )


def update_sale(sale_id, updates: dict, session: Session) -> Sale:
    """
    Change the owner or date of a sale.

    Totals are derived values; requests that try to set them are rejected.
    """
    money_fields = {'subtotal', 'discount_amount', 'total_amount', 'discount_percentage'}
    forbidden = money_fields & set(updates or {})
    if forbidden:
        raise ValidationError(
            'Sale totals cannot be set directly; add items or apply a discount',
            sorted(forbidden)[0]
        )
    if not updates or not (set(UPDATABLE_FIELDS) & set(updates)):
        raise ValidationError('No data provided for update')

    sale = get_sale(sale_id, session)
    try:
        if updates.get('user_id') is not None:
            user_id = parse_positive_int(updates['user_id'], 'user_id')
            if not session.get(User, user_id):
                raise NotFoundError('user', user_id)
            sale.user_id = user_id
        if updates.get('sale_date') is not None:
            sale.sale_date = parse_iso_datetime(updates['sale_date'], 'sale_date')
        session.commit()
    except Exception:
        session.rollback()
        raise
    return sale


def delete_sale(sale_id, session: Session) -> None:
    """Delete a sale and its items. Inventory is not restocked."""
    sale = get_sale(sale_id, session)
    item_count = len(sale.items)
    try:
        session.delete(sale)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Sale {sale_id} deleted with {item_count} item(s)")


def get_sales_summary(session: Session) -> dict:
    """Number of sales and the sum of their totals."""
    count, total = session.query(
        func.count(Sale.sale_id),
        func.coalesce(func.sum(Sale.total_amount), 0)
    ).one()
    return {
        'total_counts': int(count),
        'total': float(to_money(total)),
    }
