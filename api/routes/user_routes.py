from flask import Blueprint, current_app

from api.middleware.auth_middleware import AuthMiddleware
from api.request_utils import post_parameter_list, require_post_parameter, require_query_parameter
from api.responses import api_response
from config.constants import ApiConsumers
from core import input_validation
from service.user_service import UserService

user_bp = Blueprint('users', __name__)

def get_user_service() -> UserService:
    return current_app.extensions['container'].get('user_service')

@user_bp.route('/user_list', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def user_list():
    return api_response(get_user_service().get_user_list())

@user_bp.route('/set_user_session', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def set_user_session():
    """
    Session information pushed by the portal after the user authenticated.

    Parameters: user_id, session_expires_at (ISO-8601, empty for none) and
    the repeated permission_list[] field.
    """
    user_id = input_validation.user_id(require_post_parameter('user_id'))
    session_expires_at = input_validation.optional_date_time(
        require_post_parameter('session_expires_at'),
        'session_expires_at'
    )
    permission_list = [input_validation.permission(p) for p in post_parameter_list('permission_list')]
    get_user_service().set_session_info(user_id, session_expires_at, permission_list)
    return api_response(True)

@user_bp.route('/disable_user', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def disable_user():
    get_user_service().disable_user(input_validation.user_id(require_post_parameter('user_id')))
    return api_response(True)

@user_bp.route('/enable_user', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def enable_user():
    get_user_service().enable_user(input_validation.user_id(require_post_parameter('user_id')))
    return api_response(True)

@user_bp.route('/delete_user', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def delete_user():
    get_user_service().delete_user(input_validation.user_id(require_post_parameter('user_id')))
    return api_response(True)

@user_bp.route('/is_disabled_user', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def is_disabled_user():
    user_id = input_validation.user_id(require_query_parameter('user_id'))
    return api_response(get_user_service().is_disabled(user_id))

@user_bp.route('/user_permission_list', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def user_permission_list():
    user_id = input_validation.user_id(require_query_parameter('user_id'))
    return api_response(get_user_service().get_permission_list(user_id))

@user_bp.route('/user_messages', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def user_messages():
    user_id = input_validation.user_id(require_query_parameter('user_id'))
    return api_response(get_user_service().get_user_messages(user_id))
