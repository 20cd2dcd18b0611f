#!/usr/bin/env python3
import logging
import os
from typing import Optional
from flask import Flask, request
from flask_cors import CORS

from config.app_config import AppConfig, get_config
from core.dependency_container import DependencyContainer, create_container
from core.logging_config import bind_request_context, clear_request_context, get_logger, setup_structured_logging
from .routes.connection_routes import connection_bp
from .routes.system_message_routes import system_message_bp
from .routes.user_routes import user_bp
from .routes.certificate_routes import certificate_bp
from .routes.status_routes import status_bp
from .middleware.error_handler import ErrorHandler
from .middleware.auth_middleware import AuthMiddleware

def create_app(config: Optional[AppConfig] = None, container: Optional[DependencyContainer] = None) -> Flask:
    """
    Creates and configures the Flask application serving the API.
    """
    if config is None:
        config = get_config()
    if container is None:
        container = create_container(config)

    app = Flask(__name__)
    app.extensions['container'] = container

    CORS(app)

    @app.before_request
    def bind_log_context():
        clear_request_context()
        bind_request_context(endpoint=request.path, method=request.method)

    AuthMiddleware.init_app(app, config.security.api_consumers)
    ErrorHandler.init_app(app)

    app.register_blueprint(connection_bp)
    app.register_blueprint(system_message_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(certificate_bp)
    app.register_blueprint(status_bp)

    @app.route("/health")
    def health_check():
        return {"status": "healthy", "message": "VPN Server API is running"}

    return app


def calculate_optimal_threads(configured: int) -> int:
    """Determine a sensible Waitress thread count based on CPU cores."""
    cores = os.cpu_count() or 1
    # Allow multiple concurrent connections per core but cap to avoid exhaustion
    return max(configured, min(32, cores * 2))


def main(config: Optional[AppConfig] = None) -> None:
    if config is None:
        config = get_config()
    setup_structured_logging(config.monitoring.log_level)

    container = create_container(config)
    # fail at startup, not on the first request
    container.get('profiles')
    container.get('database')

    app = create_app(config, container)
    threads = calculate_optimal_threads(config.server.threads)

    logger = get_logger(__name__)
    logger.info(
        "Starting VPN Server API",
        host=config.server.host,
        port=config.server.port,
        threads=threads,
        profiles=len(container.get('profiles')),
        use_vpn_daemon=config.vpn.use_vpn_daemon
    )

    from waitress import serve

    # Suppress Waitress queue warnings
    logging.getLogger('waitress.queue').setLevel(logging.ERROR)

    try:
        serve(app, host=config.server.host, port=config.server.port, threads=threads)
    finally:
        container.cleanup()


if __name__ == "__main__":
    main()
