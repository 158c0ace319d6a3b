"""Sale items API blueprint."""
import time

from flask import Blueprint, jsonify, request

from backoffice.blueprints.metrics import (
    sale_items_created_total, sale_item_rejections_total, sale_item_duration_seconds
)
from backoffice.database import get_session
from backoffice.exceptions import (
    BackofficeError, ValidationError, NotFoundError, InsufficientStockError,
    LockTimeoutError, TransactionFailedError
)
from backoffice.services import sale_item_service
from backoffice.utils.validators import get_json_body

sale_items_bp = Blueprint('sale_items', __name__, url_prefix='/api/sale-items')


def _rejection_reason(error):
    """Metric label for a rejected line item."""
    if isinstance(error, InsufficientStockError):
        return 'insufficient_stock'
    if isinstance(error, NotFoundError):
        return f'{error.entity}_not_found'
    if isinstance(error, ValidationError):
        return 'invalid_argument'
    if isinstance(error, LockTimeoutError):
        return 'lock_timeout'
    if isinstance(error, TransactionFailedError):
        return 'transaction_failed'
    return 'other'


@sale_items_bp.route('/', methods=['GET'])
def list_items():
    items = sale_item_service.list_sale_items(get_session())
    return jsonify([item.to_dict() for item in items])


@sale_items_bp.route('/sale/<sale_id>', methods=['GET'])
def items_by_sale(sale_id):
    """All items of a sale; 404 when the sale has none."""
    items = sale_item_service.get_sale_items_by_sale(sale_id, get_session())
    if not items:
        return jsonify({'status': 'error', 'message': 'No items found for this sale'}), 404
    return jsonify([item.to_dict() for item in items])


@sale_items_bp.route('/<sale_item_id>/details', methods=['GET'])
def item_details(sale_item_id):
    return jsonify(sale_item_service.get_sale_item_details(sale_item_id, get_session()))


@sale_items_bp.route('/<sale_item_id>', methods=['GET'])
def get_item(sale_item_id):
    return jsonify(sale_item_service.get_sale_item(sale_item_id, get_session()).to_dict())


@sale_items_bp.route('/', methods=['POST'])
def create_item():
    """
    Add a line item to a sale.

    Body: {sale_id, product_id, quantity, price_at_sale}

    Returns:
        201: created item
        400: invalid input
        404: sale or inventory missing (payload names the entity)
        409: insufficient stock (payload carries available quantity)
        503: row lock wait exceeded, retryable
    """
    data = get_json_body(request)
    started = time.perf_counter()
    try:
        item = sale_item_service.add_line_item(
            data.get('sale_id'),
            data.get('product_id'),
            data.get('quantity'),
            data.get('price_at_sale'),
            session=get_session(),
        )
    except BackofficeError as e:
        reason = _rejection_reason(e)
        sale_item_rejections_total.labels(reason=reason).inc()
        sale_item_duration_seconds.labels(outcome=reason).observe(time.perf_counter() - started)
        raise

    sale_item_duration_seconds.labels(outcome='created').observe(time.perf_counter() - started)
    sale_items_created_total.inc()
    return jsonify(item.to_dict()), 201


@sale_items_bp.route('/<sale_item_id>', methods=['PUT'])
def update_item(sale_item_id):
    data = get_json_body(request)
    item = sale_item_service.update_sale_item(sale_item_id, data, get_session())
    return jsonify(item.to_dict())


@sale_items_bp.route('/<sale_item_id>', methods=['DELETE'])
def delete_item(sale_item_id):
    sale_item_service.delete_sale_item(sale_item_id, get_session())
    return '', 204
