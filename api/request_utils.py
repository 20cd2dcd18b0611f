from typing import List, Optional
from flask import request

from core.exceptions import ValidationError


def require_post_parameter(name: str) -> str:
    value = request.form.get(name)
    if value is None:
        raise ValidationError(name, '', "Missing POST parameter")
    return value


def optional_post_parameter(name: str) -> Optional[str]:
    return request.form.get(name)


def post_parameter_list(name: str) -> List[str]:
    """Repeated form fields, ``name[]=a&name[]=b`` or ``name=a&name=b``."""
    return request.form.getlist(f"{name}[]") or request.form.getlist(name)


def require_query_parameter(name: str) -> str:
    value = request.args.get(name)
    if value is None:
        raise ValidationError(name, '', "Missing query parameter")
    return value


def optional_query_parameter(name: str) -> Optional[str]:
    return request.args.get(name)
