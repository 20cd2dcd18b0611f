from werkzeug.exceptions import HTTPException
from api.responses import api_error_response
from core.exceptions import (
    VPNServerError,
    UserNotFoundError,
    CertificateNotFoundError,
    ConfigurationError,
    ValidationError,
    DatabaseError,
    AuthenticationError,
    AuthorizationError
)
from core.logging_config import get_logger

logger = get_logger(__name__)

class ErrorHandler:
    """
    Centralized error handling for the VPN server API.
    """

    @staticmethod
    def init_app(app) -> None:
        """Initialize error handlers with Flask app."""

        @app.errorhandler(ValidationError)
        def handle_validation_error(e):
            logger.info("Invalid request", field=e.field, reason=e.reason)
            return api_error_response(str(e), status=400)

        @app.errorhandler(AuthenticationError)
        def handle_authentication_error(e):
            logger.warning("Authentication failed", error=str(e))
            response, status = api_error_response(str(e), status=401)
            response.headers['WWW-Authenticate'] = 'Basic realm="vpn-server-api"'
            return response, status

        @app.errorhandler(AuthorizationError)
        def handle_authorization_error(e):
            logger.warning("Authorization failed", error=str(e))
            return api_error_response(str(e), status=403)

        @app.errorhandler(UserNotFoundError)
        def handle_user_not_found(e):
            return api_error_response(str(e), status=404)

        @app.errorhandler(CertificateNotFoundError)
        def handle_certificate_not_found(e):
            return api_error_response(str(e), status=404)

        @app.errorhandler(DatabaseError)
        def handle_database_error(e):
            logger.error("Database error", error=str(e))
            return api_error_response(str(e), status=500)

        @app.errorhandler(ConfigurationError)
        def handle_config_error(e):
            logger.error("Configuration error", error=str(e))
            return api_error_response(str(e), status=500)

        @app.errorhandler(VPNServerError)
        def handle_vpn_error(e):
            logger.error("VPN server error", error=str(e), error_type=type(e).__name__)
            return api_error_response(str(e), status=500)

        @app.errorhandler(HTTPException)
        def handle_http_exception(e):
            return api_error_response(e.description, status=e.code)

        @app.errorhandler(Exception)
        def handle_generic_error(e):
            logger.exception("Unhandled error")
            return api_error_response('An unexpected error occurred', status=500)
