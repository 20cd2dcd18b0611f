from flask import Blueprint, current_app

from api.middleware.auth_middleware import AuthMiddleware
from api.request_utils import optional_query_parameter, require_query_parameter
from api.responses import api_response
from config.constants import ApiConsumers
from core import input_validation
from core.exceptions import ValidationError
from service.capacity_service import CapacityReporter, ConnectionSource
from service.certificate_service import CertificateService
from service.connection_service import ConnectionService

status_bp = Blueprint('status', __name__)

def get_container():
    return current_app.extensions['container']

def get_capacity_reporter() -> CapacityReporter:
    return get_container().get('capacity_reporter')

def get_connection_source() -> ConnectionSource:
    return get_container().get('connection_source')

def get_certificate_service() -> CertificateService:
    return get_container().get('certificate_service')

def get_connection_service() -> ConnectionService:
    return get_container().get('connection_service')

def get_profiles():
    return get_container().get('profiles')

def _configured_profile_id(value):
    profile_id = input_validation.profile_id(value)
    if profile_id not in get_profiles():
        raise ValidationError("profile_id", profile_id, "Profile does not exist")
    return profile_id

@status_bp.route('/client_connections', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def client_connections():
    """Currently connected clients, optionally for one profile or common name."""
    profile_id = optional_query_parameter('profile_id')
    common_name = optional_query_parameter('common_name')
    connection_list = get_connection_source().get_connection_list(
        _configured_profile_id(profile_id) if profile_id else None,
        input_validation.common_name(common_name) if common_name else None
    )
    get_certificate_service().annotate_connections(connection_list)
    return api_response([
        {
            'profile_id': connection_profile_id,
            'connections': [connection.to_dict() for connection in connections]
        }
        for connection_profile_id, connections in connection_list.items()
    ])

@status_bp.route('/log', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def log():
    date_time = input_validation.date_time(require_query_parameter('date_time'))
    ip_address = input_validation.ip_address(require_query_parameter('ip_address'))
    return api_response(get_connection_service().get_log_entry(date_time, ip_address))

@status_bp.route('/profile_list', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def profile_list():
    return api_response({
        profile_id: profile.to_dict() for profile_id, profile in get_profiles().items()
    })

@status_bp.route('/profile_utilization', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def profile_utilization():
    profile_id = optional_query_parameter('profile_id')
    report = get_capacity_reporter().report(_configured_profile_id(profile_id) if profile_id else None)
    return api_response([row.to_dict() for row in report])
