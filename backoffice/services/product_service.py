"""Product catalog service."""
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.exceptions import NotFoundError, BusinessLogicError, ValidationError
from backoffice.models import Product, SaleItem, PRODUCT_STATUSES
from backoffice.utils.validators import parse_positive_int, parse_money, require_text

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = ('product_name', 'description', 'unit_price', 'product_type', 'status')


def _clean_product_data(data: dict, partial: bool = False) -> dict:
    """
    Validate product fields.

    With partial=True only the keys present in data are checked.
    """
    cleaned = {}
    for field in PRODUCT_FIELDS:
        if partial and field not in data:
            continue
        value = data.get(field)
        if field == 'unit_price':
            cleaned[field] = parse_money(value, 'unit_price', allow_equal_min=False)
        elif field == 'status':
            if value not in PRODUCT_STATUSES:
                raise ValidationError('status must be available or not available', 'status')
            cleaned[field] = value
        elif field == 'description':
            cleaned[field] = require_text(value, field, max_length=2000)
        else:
            cleaned[field] = require_text(value, field, max_length=200)
    return cleaned


def create_product(data: dict, session: Session) -> Product:
    product = Product(**_clean_product_data(data or {}))
    try:
        session.add(product)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Product {product.product_id} created: {product.product_name}")
    return product


def list_products(session: Session) -> List[Product]:
    return session.query(Product).order_by(Product.product_id.desc()).all()


def get_product(product_id, session: Session) -> Product:
    product_id = parse_positive_int(product_id, 'product_id')
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError('product', product_id)
    return product


def update_product(product_id, updates: dict, session: Session) -> Product:
    """Update product fields. Existing sale items keep their price_at_sale."""
    if not updates:
        raise ValidationError('No data provided for update')
    cleaned = _clean_product_data(updates, partial=True)
    if not cleaned:
        raise ValidationError('No data provided for update')

    product = get_product(product_id, session)
    try:
        for field, value in cleaned.items():
            setattr(product, field, value)
        session.commit()
    except Exception:
        session.rollback()
        raise
    return product


def delete_product(product_id, session: Session) -> None:
    """
    Delete a product and its inventory row.

    Raises:
        BusinessLogicError: if sale items still reference the product
    """
    product = get_product(product_id, session)
    in_use = session.query(SaleItem.sale_item_id).filter(
        SaleItem.product_id == product.product_id
    ).first()
    if in_use:
        raise BusinessLogicError(
            f'Product {product.product_id} has sale items and cannot be deleted'
        )

    try:
        session.delete(product)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise BusinessLogicError(
            f'Product {product.product_id} is still referenced and cannot be deleted'
        ) from e
    except Exception:
        session.rollback()
        raise

    logger.info(f"Product {product.product_id} deleted")
