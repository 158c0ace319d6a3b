"""
Integration tests for the sale items API.
"""

from decimal import Decimal
from sqlalchemy.exc import OperationalError

from backoffice.models import Sale
from backoffice.services import sale_store
from backoffice.services.sale_item_service import add_line_item


def post_item(client, sale_id, product_id, quantity=2, price='5.00'):
    return client.post('/api/sale-items/', json={
        'sale_id': sale_id,
        'product_id': product_id,
        'quantity': quantity,
        'price_at_sale': price,
    })


class TestCreateSaleItemAPI:
    """POST /api/sale-items/ status mapping."""

    def test_created(self, client, sale, product, inventory, fetch_row):
        response = post_item(client, sale.sale_id, product.product_id)

        assert response.status_code == 201
        data = response.get_json()
        assert data['sale_id'] == sale.sale_id
        assert data['quantity'] == 2
        assert data['price_at_sale'] == 5.0

        stored = fetch_row(Sale, sale.sale_id)
        assert stored.subtotal == Decimal('10.00')
        assert stored.total_amount == Decimal('10.00')

    def test_missing_sale(self, client, product, inventory):
        response = post_item(client, 999999, product.product_id)

        assert response.status_code == 404
        data = response.get_json()
        assert data['entity'] == 'sale'
        assert data['status'] == 'error'

    def test_missing_inventory(self, client, sale, product):
        response = post_item(client, sale.sale_id, product.product_id)

        assert response.status_code == 404
        assert response.get_json()['entity'] == 'inventory'

    def test_insufficient_stock(self, client, sale, product, inventory):
        response = post_item(client, sale.sale_id, product.product_id, quantity=100)

        assert response.status_code == 409
        data = response.get_json()
        assert data['available'] == 10
        assert data['requested'] == 100
        assert 'Insufficient stock' in data['message']

    def test_invalid_quantity(self, client, sale, product, inventory):
        response = post_item(client, sale.sale_id, product.product_id, quantity=0)

        assert response.status_code == 400
        assert response.get_json()['field'] == 'quantity'

    def test_price_beyond_column_range(self, client, sale, product, inventory):
        response = post_item(client, sale.sale_id, product.product_id, price='1E+30')

        assert response.status_code == 400
        assert response.get_json()['field'] == 'price_at_sale'

    def test_unicode_digit_quantity(self, client, sale, product, inventory):
        response = post_item(client, sale.sale_id, product.product_id, quantity='²')

        assert response.status_code == 400
        assert response.get_json()['field'] == 'quantity'

    def test_non_json_body(self, client):
        response = client.post('/api/sale-items/', data='quantity=1', content_type='text/plain')
        assert response.status_code == 400

    def test_lock_timeout(self, client, sale, product, inventory, monkeypatch):
        def locked(session, sale_id):
            raise OperationalError('SELECT', {}, Exception('database is locked'))

        monkeypatch.setattr(sale_store, 'lock_sale', locked)

        response = post_item(client, sale.sale_id, product.product_id)

        assert response.status_code == 503
        assert response.get_json()['retryable'] is True

    def test_rejections_are_counted(self, client, sale, product, inventory):
        post_item(client, sale.sale_id, product.product_id, quantity=100)

        metrics = client.get('/metrics').get_data(as_text=True)
        assert 'sale_item_rejections_total{reason="insufficient_stock"}' in metrics
        assert 'sale_items_created_total' in metrics

    def test_duration_is_recorded_by_outcome(self, client, sale, product, inventory):
        post_item(client, sale.sale_id, product.product_id, quantity=1)
        post_item(client, sale.sale_id, product.product_id, quantity=100)

        metrics = client.get('/metrics').get_data(as_text=True)
        assert 'sale_item_duration_seconds_count{outcome="created"}' in metrics
        assert 'sale_item_duration_seconds_count{outcome="insufficient_stock"}' in metrics


class TestReadSaleItemsAPI:

    def test_items_of_sale(self, client, session, sale, product, inventory):
        empty = client.get(f'/api/sale-items/sale/{sale.sale_id}')
        assert empty.status_code == 404

        add_line_item(sale.sale_id, product.product_id, 1, Decimal('5.00'), session=session)

        response = client.get(f'/api/sale-items/sale/{sale.sale_id}')
        assert response.status_code == 200
        assert len(response.get_json()) == 1

    def test_get_and_details(self, client, session, sale, product, inventory):
        item = add_line_item(sale.sale_id, product.product_id, 1, Decimal('5.00'), session=session)

        response = client.get(f'/api/sale-items/{item.sale_item_id}')
        assert response.status_code == 200
        assert response.get_json()['product_id'] == product.product_id

        details = client.get(f'/api/sale-items/{item.sale_item_id}/details').get_json()
        assert details['product_name'] == 'Coffee Beans'
        assert details['last_name'] == 'Seller'

    def test_list(self, client, session, sale, product, inventory):
        add_line_item(sale.sale_id, product.product_id, 1, Decimal('5.00'), session=session)
        add_line_item(sale.sale_id, product.product_id, 1, Decimal('5.00'), session=session)

        response = client.get('/api/sale-items/')
        assert response.status_code == 200
        assert len(response.get_json()) == 2

    def test_unknown_item(self, client):
        assert client.get('/api/sale-items/777777').status_code == 404
        assert client.get('/api/sale-items/abc').status_code == 400
        assert client.get('/api/sale-items/²').status_code == 400
        assert client.get('/api/sale-items/sale/①').status_code == 400


class TestModifySaleItemAPI:

    def test_update_price(self, client, session, sale, product, inventory):
        item = add_line_item(sale.sale_id, product.product_id, 1, Decimal('5.00'), session=session)

        response = client.put(f'/api/sale-items/{item.sale_item_id}', json={'price_at_sale': 4.5})
        assert response.status_code == 200
        assert response.get_json()['price_at_sale'] == 4.5

    def test_delete(self, client, session, sale, product, inventory):
        item = add_line_item(sale.sale_id, product.product_id, 1, Decimal('5.00'), session=session)

        assert client.delete(f'/api/sale-items/{item.sale_item_id}').status_code == 204
        assert client.get(f'/api/sale-items/{item.sale_item_id}').status_code == 404
