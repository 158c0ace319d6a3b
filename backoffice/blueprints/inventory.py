"""Inventory API blueprint."""
from flask import Blueprint, jsonify, request, current_app

from backoffice.database import get_session
from backoffice.services import inventory_service
from backoffice.utils.validators import get_json_body, parse_non_negative_int

inventory_bp = Blueprint('inventory', __name__, url_prefix='/api/inventory')


@inventory_bp.route('/', methods=['GET'])
def list_inventory():
    records = inventory_service.list_inventory(get_session())
    return jsonify([record.to_dict() for record in records])


@inventory_bp.route('/details', methods=['GET'])
def list_inventory_details():
    return jsonify(inventory_service.list_inventory_with_details(get_session()))


@inventory_bp.route('/low-stock', methods=['GET'])
def low_stock():
    """Products below ?threshold= (defaults to LOW_STOCK_THRESHOLD)."""
    threshold = parse_non_negative_int(
        request.args.get('threshold', current_app.config.get('LOW_STOCK_THRESHOLD', 5)), 'threshold'
    )
    items = inventory_service.get_low_stock(threshold, get_session())
    return jsonify({
        'threshold': threshold,
        'count': len(items),
        'items': items,
    })


@inventory_bp.route('/<product_id>', methods=['GET'])
def get_inventory(product_id):
    return jsonify(inventory_service.get_inventory_by_product(product_id, get_session()).to_dict())


@inventory_bp.route('/', methods=['POST'])
def create_inventory():
    data = get_json_body(request)
    record = inventory_service.create_inventory_record(
        data.get('product_id'), data.get('quantity_in_stock'), get_session()
    )
    return jsonify(record.to_dict()), 201


@inventory_bp.route('/<product_id>', methods=['PUT'])
def update_inventory(product_id):
    data = get_json_body(request)
    record = inventory_service.set_stock_quantity(
        product_id, data.get('quantity_in_stock'), get_session()
    )
    return jsonify(record.to_dict())


@inventory_bp.route('/<product_id>', methods=['DELETE'])
def delete_inventory(product_id):
    inventory_service.delete_inventory(product_id, get_session())
    return '', 204
