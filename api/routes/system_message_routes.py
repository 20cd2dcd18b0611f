from flask import Blueprint, current_app

from api.middleware.auth_middleware import AuthMiddleware
from api.request_utils import require_post_parameter, require_query_parameter
from api.responses import api_response
from config.constants import ApiConsumers
from core import input_validation
from service.message_service import MessageService

system_message_bp = Blueprint('system_messages', __name__)

def get_message_service() -> MessageService:
    return current_app.extensions['container'].get('message_service')

@system_message_bp.route('/system_messages', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def system_messages():
    message_type = input_validation.message_type(require_query_parameter('message_type'))
    return api_response(get_message_service().get_system_messages(message_type))

@system_message_bp.route('/add_system_message', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def add_system_message():
    """The message body is stored as-is, rendering is up to the portal."""
    message_type = input_validation.message_type(require_post_parameter('message_type'))
    message = require_post_parameter('message_body')
    get_message_service().add_system_message(message_type, message)
    return api_response(True)

@system_message_bp.route('/delete_system_message', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def delete_system_message():
    message_id = input_validation.message_id(require_post_parameter('message_id'))
    get_message_service().delete_system_message(message_id)
    return api_response(True)
