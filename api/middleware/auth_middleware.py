import hmac
from functools import wraps
from typing import Dict, Sequence
from flask import request, current_app

from core.exceptions import AuthenticationError, AuthorizationError
from core.logging_config import bind_request_context

class AuthMiddleware:
    """
    HTTP Basic authentication of API consumers.

    The user name is the consumer id (vpn-server-node, vpn-user-portal,
    vpn-admin-portal), the password its shared secret. Each endpoint lists
    the consumers allowed to call it.
    """

    @staticmethod
    def init_app(app, api_consumers: Dict[str, str]) -> None:
        """Store the consumer credentials once in the Flask configuration."""
        app.config['API_CONSUMERS'] = dict(api_consumers)

    @staticmethod
    def require_consumer(allowed_consumers: Sequence[str]):
        """Decorator restricting an endpoint to the given consumers."""
        def decorator(f):
            @wraps(f)
            def decorated_function(*args, **kwargs):
                consumer = AuthMiddleware.authenticate()
                bind_request_context(consumer=consumer)
                if consumer not in allowed_consumers:
                    raise AuthorizationError(f"Consumer '{consumer}' is not allowed to call this endpoint")
                return f(*args, **kwargs)
            return decorated_function
        return decorator

    @staticmethod
    def authenticate() -> str:
        """Returns the authenticated consumer id."""
        auth = request.authorization
        if auth is None or auth.type != 'basic' or not auth.username:
            raise AuthenticationError("Basic authentication required")

        expected_secret = current_app.config.get('API_CONSUMERS', {}).get(auth.username)
        if expected_secret is None or not AuthMiddleware._verify_secret(auth.password or '', expected_secret):
            raise AuthenticationError("Invalid API consumer credentials")
        return auth.username

    @staticmethod
    def _verify_secret(provided_secret: str, expected_secret: str) -> bool:
        """Securely verify the secret using constant-time comparison."""
        return hmac.compare_digest(provided_secret.encode(), expected_secret.encode())
