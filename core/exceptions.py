"""
Custom exception classes for the VPN server API.
Policy denials are not exceptions; they are returned as AdmissionDecision.
"""

class VPNServerError(Exception):
    """Base exception for VPN server API operations."""
    pass

class UserNotFoundError(VPNServerError):
    """Raised when trying to access a non-existent user."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")

class CertificateNotFoundError(VPNServerError):
    """Raised when a common name is not mapped to any certificate."""

    def __init__(self, common_name: str):
        self.common_name = common_name
        super().__init__(f"Certificate with common name '{common_name}' not found")

class DatabaseError(VPNServerError):
    """Raised when database operations fail."""
    pass

class ConfigurationError(VPNServerError):
    """Raised when configuration is invalid or missing."""
    pass

class ManagementSocketError(VPNServerError):
    """Raised when talking to an OpenVPN management interface fails."""

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Management interface {address} failed: {reason}")

class ValidationError(VPNServerError):
    """Raised when input validation fails."""

    def __init__(self, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Validation failed for {field}='{value}': {reason}")

class AuthenticationError(VPNServerError):
    """Raised when authentication fails."""
    pass

class AuthorizationError(VPNServerError):
    """Raised when authorization fails."""
    pass
