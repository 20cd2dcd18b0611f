from flask import Blueprint, current_app

from api.middleware.auth_middleware import AuthMiddleware
from api.request_utils import require_post_parameter
from api.responses import api_error_response, api_response
from config.constants import ApiConsumers
from core import input_validation
from service.connection_service import ConnectionService

connection_bp = Blueprint('connections', __name__)

def get_connection_service() -> ConnectionService:
    return current_app.extensions['container'].get('connection_service')

@connection_bp.route('/connect', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.NODES)
def connect():
    """
    Called by the VPN daemon when a client wants to connect.

    A policy denial is a regular response with ``ok: false``, the daemon
    refuses the client when it sees it.
    """
    decision = get_connection_service().connect(
        input_validation.profile_id(require_post_parameter('profile_id')),
        input_validation.common_name(require_post_parameter('common_name')),
        input_validation.ip4(require_post_parameter('ip4')),
        input_validation.ip6(require_post_parameter('ip6')),
        input_validation.connected_at(require_post_parameter('connected_at'))
    )
    if not decision.allowed:
        return api_error_response(decision.reason)
    return api_response(True)

@connection_bp.route('/disconnect', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.NODES)
def disconnect():
    get_connection_service().disconnect(
        input_validation.profile_id(require_post_parameter('profile_id')),
        input_validation.common_name(require_post_parameter('common_name')),
        input_validation.ip4(require_post_parameter('ip4')),
        input_validation.ip6(require_post_parameter('ip6')),
        input_validation.connected_at(require_post_parameter('connected_at')),
        input_validation.disconnected_at(require_post_parameter('disconnected_at')),
        input_validation.bytes_transferred(require_post_parameter('bytes_transferred'))
    )
    return api_response(True)
