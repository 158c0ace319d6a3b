"""Sales API blueprint."""
from flask import Blueprint, jsonify, request

from backoffice.database import get_session
from backoffice.services import sales_service, sale_item_service
from backoffice.services.discount_service import apply_discount
from backoffice.utils.validators import get_json_body

sales_bp = Blueprint('sales', __name__, url_prefix='/api/sales')


@sales_bp.route('/', methods=['GET'])
def list_sales():
    sales = sales_service.list_sales(get_session())
    return jsonify([sale.to_dict() for sale in sales])


@sales_bp.route('/by-date-range', methods=['GET'])
def sales_by_date_range():
    """Sales between startDate and endDate (DD/MM/YYYY, inclusive)."""
    sales = sales_service.get_sales_between_dates(
        request.args.get('startDate'),
        request.args.get('endDate'),
        get_session()
    )
    return jsonify([sale.to_dict() for sale in sales])


@sales_bp.route('/summary', methods=['GET'])
def sales_summary():
    return jsonify(sales_service.get_sales_summary(get_session()))


@sales_bp.route('/customer/<user_id>', methods=['GET'])
def sales_by_customer(user_id):
    sales = sales_service.get_sales_by_customer(user_id, get_session())
    return jsonify([sale.to_dict() for sale in sales])


@sales_bp.route('/<sale_id>', methods=['GET'])
def get_sale(sale_id):
    return jsonify(sales_service.get_sale(sale_id, get_session()).to_dict())


@sales_bp.route('/<sale_id>/items', methods=['GET'])
def get_sale_with_items(sale_id):
    session = get_session()
    sale = sales_service.get_sale(sale_id, session)
    items = sale_item_service.get_sale_items_by_sale(sale.sale_id, session)
    return jsonify({
        'sale': sale.to_dict(),
        'items': [item.to_dict() for item in items],
    })


@sales_bp.route('/', methods=['POST'])
def create_sale():
    data = get_json_body(request)
    sale = sales_service.create_sale(data.get('user_id'), get_session())
    return jsonify(sale.to_dict()), 201


@sales_bp.route('/<sale_id>', methods=['PUT'])
def update_sale(sale_id):
    data = get_json_body(request)
    sale = sales_service.update_sale(sale_id, data, get_session())
    return jsonify(sale.to_dict())


@sales_bp.route('/<sale_id>/discount', methods=['PUT'])
def discount_sale(sale_id):
    """Body: {discount_percentage} in [0, 100]."""
    data = get_json_body(request)
    sale = apply_discount(sale_id, data.get('discount_percentage'), session=get_session())
    return jsonify(sale.to_dict())


@sales_bp.route('/<sale_id>', methods=['DELETE'])
def delete_sale(sale_id):
    sales_service.delete_sale(sale_id, get_session())
    return '', 204
