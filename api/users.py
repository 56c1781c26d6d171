# api/users.py
"""
User directory API
"""

from flask import Blueprint, jsonify
import logging

from core.errors import StoreError
from middleware.security import require_auth
from services import user_service

users_api_bp = Blueprint('users_api', __name__)
logger = logging.getLogger(__name__)


@users_api_bp.route('/allUsers')
@require_auth
def all_users():
    """Every registered user as a list of public records"""
    try:
        users = user_service.list_users()
    except StoreError:
        return jsonify({'message': 'Internal server error'}), 500

    return jsonify([user.to_dict() for user in users])
