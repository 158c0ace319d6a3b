"""User management API blueprint."""
from flask import Blueprint, jsonify, request

from backoffice.database import get_session
from backoffice.services import user_service
from backoffice.utils.validators import get_json_body

users_bp = Blueprint('users', __name__, url_prefix='/api/users')


@users_bp.route('/', methods=['GET'])
def list_users():
    users = user_service.list_users(get_session())
    return jsonify([user.to_dict() for user in users])


@users_bp.route('/<user_id>', methods=['GET'])
def get_user(user_id):
    return jsonify(user_service.get_user(user_id, get_session()).to_dict())


@users_bp.route('/', methods=['POST'])
def create_user():
    user = user_service.create_user(get_json_body(request), get_session())
    return jsonify(user.to_dict()), 201


@users_bp.route('/<user_id>', methods=['PUT'])
def update_user(user_id):
    user = user_service.update_user(user_id, get_json_body(request), get_session())
    return jsonify(user.to_dict())


@users_bp.route('/<user_id>', methods=['DELETE'])
def delete_user(user_id):
    user_service.delete_user(user_id, get_session())
    return '', 204
