"""Products API blueprint."""
from flask import Blueprint, jsonify, request

from backoffice.database import get_session
from backoffice.services import product_service
from backoffice.utils.validators import get_json_body

products_bp = Blueprint('products', __name__, url_prefix='/api/products')


@products_bp.route('/', methods=['GET'])
def list_products():
    products = product_service.list_products(get_session())
    return jsonify([product.to_dict() for product in products])


@products_bp.route('/<product_id>', methods=['GET'])
def get_product(product_id):
    return jsonify(product_service.get_product(product_id, get_session()).to_dict())


@products_bp.route('/', methods=['POST'])
def create_product():
    product = product_service.create_product(get_json_body(request), get_session())
    return jsonify(product.to_dict()), 201


@products_bp.route('/<product_id>', methods=['PUT'])
def update_product(product_id):
    product = product_service.update_product(product_id, get_json_body(request), get_session())
    return jsonify(product.to_dict())


@products_bp.route('/<product_id>', methods=['DELETE'])
def delete_product(product_id):
    product_service.delete_product(product_id, get_session())
    return '', 204
