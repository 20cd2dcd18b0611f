"""
Response envelope shared by all endpoints.

Every response body is keyed by the endpoint name:
``{"connect": {"ok": true, "data": ...}}`` on success and
``{"connect": {"ok": false, "error": "..."}}`` otherwise.
"""

from typing import Any, Optional
from flask import jsonify, request


def endpoint_name() -> str:
    return request.path.strip('/') or 'root'


def api_response(data: Any = None, name: Optional[str] = None, status: int = 200):
    return jsonify({name or endpoint_name(): {'ok': True, 'data': data}}), status


def api_error_response(message: str, name: Optional[str] = None, status: int = 200):
    return jsonify({name or endpoint_name(): {'ok': False, 'error': message}}), status
