from flask import Blueprint, current_app

from api.middleware.auth_middleware import AuthMiddleware
from api.request_utils import optional_post_parameter, require_post_parameter, require_query_parameter
from api.responses import api_response
from config.constants import ApiConsumers
from core import input_validation
from service.certificate_service import CertificateService

certificate_bp = Blueprint('certificates', __name__)

def get_certificate_service() -> CertificateService:
    return current_app.extensions['container'].get('certificate_service')

@certificate_bp.route('/add_client_certificate', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def add_client_certificate():
    get_certificate_service().add_client_certificate(
        input_validation.user_id(require_post_parameter('user_id')),
        input_validation.common_name(require_post_parameter('common_name')),
        optional_post_parameter('display_name') or '',
        input_validation.optional_date_time(optional_post_parameter('valid_from'), 'valid_from'),
        input_validation.optional_date_time(optional_post_parameter('valid_to'), 'valid_to')
    )
    return api_response(True)

@certificate_bp.route('/delete_client_certificate', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def delete_client_certificate():
    common_name = input_validation.common_name(require_post_parameter('common_name'))
    get_certificate_service().delete_client_certificate(common_name)
    return api_response(True)

@certificate_bp.route('/kill_client', methods=['POST'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def kill_client():
    common_name = input_validation.common_name(require_post_parameter('common_name'))
    return api_response(get_certificate_service().kill_client(common_name))

@certificate_bp.route('/client_certificate_list', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def client_certificate_list():
    user_id = input_validation.user_id(require_query_parameter('user_id'))
    return api_response(get_certificate_service().get_client_certificate_list(user_id))

@certificate_bp.route('/client_certificate_info', methods=['GET'])
@AuthMiddleware.require_consumer(ApiConsumers.PORTALS)
def client_certificate_info():
    common_name = input_validation.common_name(require_query_parameter('common_name'))
    return api_response(get_certificate_service().get_client_certificate_info(common_name))
