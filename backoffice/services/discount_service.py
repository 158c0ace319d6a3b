"""Discount applier: recompute a sale's totals for a new discount percentage."""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.exceptions import NotFoundError
from backoffice.models import Sale
from backoffice.services import sale_store
from backoffice.services.concurrency import run_locked_transaction
from backoffice.utils.money import compute_totals
from backoffice.utils.validators import parse_positive_int, parse_decimal

logger = logging.getLogger(__name__)


def apply_discount(sale_id, discount_percentage, session: Session,
                   lock_timeout: Optional[float] = None) -> Sale:
    """
    Set a sale's discount percentage and recompute discount and total.

    The sale row is locked for the whole read-modify-write so a concurrent
    add_line_item cannot interleave and have its subtotal overwritten.

    Raises:
        ValidationError: bad id or percentage outside [0, 100]
        NotFoundError: the sale does not exist
        LockTimeoutError / TransactionFailedError: storage failures
    """
    sale_id = parse_positive_int(sale_id, 'sale_id')
    pct = parse_decimal(discount_percentage, 'discount_percentage',
                        minimum=Decimal('0'), maximum=Decimal('100')).quantize(Decimal('0.01'))

    def _op(session):
        sale = sale_store.lock_sale(session, sale_id)
        if not sale:
            raise NotFoundError('sale', sale_id)

        totals = compute_totals(sale.subtotal, pct)
        return sale_store.update_totals(
            session, sale,
            subtotal=totals.subtotal,
            discount_percentage=pct,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
        )

    sale = run_locked_transaction(session, _op, f'apply_discount sale={sale_id}', lock_timeout)
    logger.info(
        f"Discount {pct}% applied to sale {sale_id}: "
        f"subtotal={sale.subtotal} discount={sale.discount_amount} total={sale.total_amount}"
    )
    return sale
