# Core module exports
from .types import *
from .exceptions import *

__all__ = [
    'AdmissionDecision',
    'ConnectionInfo',
    'ProfileUtilization',
    'VPNServerError',
    'UserNotFoundError',
    'CertificateNotFoundError',
    'DatabaseError',
    'ConfigurationError',
    'ManagementSocketError',
    'ValidationError',
    'AuthenticationError',
    'AuthorizationError'
]
