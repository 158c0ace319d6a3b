"""
Concurrency tests: many workers adding items against the same rows.

Each worker gets its own session, so each runs in its own transaction.
"""

import threading
from decimal import Decimal

from backoffice.database import new_session
from backoffice.exceptions import InsufficientStockError
from backoffice.models import Sale, SaleItem, Inventory
from backoffice.services.discount_service import apply_discount
from backoffice.services.sale_item_service import add_line_item
from backoffice.utils.money import compute_totals


def run_workers(tasks):
    """Run callables in parallel, released together; collect results and errors."""
    barrier = threading.Barrier(len(tasks))
    results = [None] * len(tasks)
    errors = [None] * len(tasks)

    def worker(index, task):
        session = new_session()
        try:
            barrier.wait()
            results[index] = task(session)
        except Exception as e:
            errors[index] = e
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(i, t)) for i, t in enumerate(tasks)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=120)
    return results, errors


def sale_state(sale_id):
    s = new_session()
    try:
        sale = s.get(Sale, sale_id)
        items = s.query(SaleItem).filter(SaleItem.sale_id == sale_id).all()
        item_sum = sum((i.quantity * i.price_at_sale for i in items), Decimal('0.00'))
        return sale, items, item_sum
    finally:
        s.close()


def stock_of(product_id):
    s = new_session()
    try:
        return s.query(Inventory).filter(Inventory.product_id == product_id).one().quantity_in_stock
    finally:
        s.close()


class TestConcurrentLineItems:

    def test_last_units_are_sold_exactly_once(self, sale, make_stocked_product):
        """Five units in stock, twelve workers each buying one."""
        product = make_stocked_product(5, price='5.00', name='Limited Edition')
        sale_id, product_id = sale.sale_id, product.product_id

        tasks = [
            (lambda s: add_line_item(sale_id, product_id, 1, Decimal('5.00'), session=s))
            for _ in range(12)
        ]
        results, errors = run_workers(tasks)

        successes = [r for r in results if r is not None]
        rejected = [e for e in errors if isinstance(e, InsufficientStockError)]
        unexpected = [e for e in errors if e is not None and not isinstance(e, InsufficientStockError)]

        assert unexpected == []
        assert len(successes) == 5
        assert len(rejected) == 7
        assert all(e.available == 0 for e in rejected)

        assert stock_of(product_id) == 0
        stored, items, item_sum = sale_state(sale_id)
        assert len(items) == 5
        assert stored.subtotal == Decimal('25.00')
        assert stored.subtotal == item_sum
        assert stored.total_amount == Decimal('25.00')

    def test_two_sales_share_one_product(self, session, user, make_stocked_product):
        product = make_stocked_product(6, price='2.00', name='Shared Stock')
        sales = [Sale(user_id=user.user_id), Sale(user_id=user.user_id)]
        session.add_all(sales)
        session.commit()
        sale_ids = [s.sale_id for s in sales]
        product_id = product.product_id

        tasks = [
            (lambda s, sid=sale_ids[i % 2]: add_line_item(sid, product_id, 1, Decimal('2.00'), session=s))
            for i in range(10)
        ]
        results, errors = run_workers(tasks)

        assert len([r for r in results if r is not None]) == 6
        assert all(isinstance(e, InsufficientStockError) for e in errors if e is not None)
        assert stock_of(product_id) == 0

        sold_units = 0
        for sale_id in sale_ids:
            stored, items, item_sum = sale_state(sale_id)
            assert stored.subtotal == item_sum
            assert stored.total_amount == stored.subtotal
            sold_units += sum(i.quantity for i in items)
        assert sold_units == 6

    def test_stock_never_oversold_with_mixed_quantities(self, sale, make_stocked_product):
        product = make_stocked_product(10, price='1.00', name='Bulk')
        sale_id, product_id = sale.sale_id, product.product_id

        quantities = [3, 4, 2, 5, 1, 3, 2, 4]
        tasks = [
            (lambda s, q=q: add_line_item(sale_id, product_id, q, Decimal('1.00'), session=s))
            for q in quantities
        ]
        results, errors = run_workers(tasks)

        assert all(isinstance(e, InsufficientStockError) for e in errors if e is not None)
        sold = sum(r.quantity for r in results if r is not None)
        assert sold <= 10
        assert stock_of(product_id) == 10 - sold

        stored, items, item_sum = sale_state(sale_id)
        assert stored.subtotal == item_sum == Decimal(sold).quantize(Decimal('0.01'))


class TestDiscountRaces:

    def test_discount_and_new_items_interleave_safely(self, sale, make_stocked_product):
        """Totals stay consistent with the final discount and every stored item."""
        product = make_stocked_product(50, price='3.33', name='Odd Price')
        sale_id, product_id = sale.sale_id, product.product_id

        tasks = []
        for i in range(8):
            tasks.append(lambda s: add_line_item(sale_id, product_id, 1, Decimal('3.33'), session=s))
            tasks.append(lambda s, pct=(i * 7) % 60: apply_discount(sale_id, pct, session=s))
        results, errors = run_workers(tasks)

        assert [e for e in errors if e is not None] == []

        stored, items, item_sum = sale_state(sale_id)
        assert len(items) == 8
        assert stored.subtotal == item_sum == Decimal('26.64')

        expected = compute_totals(stored.subtotal, stored.discount_percentage)
        assert stored.discount_amount == expected.discount_amount
        assert stored.total_amount == expected.total_amount
        assert stored.total_amount == stored.subtotal - stored.discount_amount
