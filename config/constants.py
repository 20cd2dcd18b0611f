"""
System constants for the VPN server API.
"""


class RetentionConstants:
    """How long housekeeping keeps rows around."""

    CONNECTION_LOG_RETENTION_DAYS = 32
    TOTP_LOG_RETENTION_MINUTES = 5


class ManagementConstants:
    """OpenVPN management interface layout."""

    # process i of profile n listens on BASE_PORT + PORTS_PER_PROFILE * (n - 1) + i
    BASE_PORT = 11940
    PORTS_PER_PROFILE = 16
    DEFAULT_IP = "127.0.0.1"
    DEFAULT_TIMEOUT = 5.0

    # addresses per listener unavailable to clients: network, broadcast, server
    RESERVED_ADDRESSES_PER_PROCESS = 3


class ApiConsumers:
    """Well-known API consumer ids."""

    SERVER_NODE = "vpn-server-node"
    USER_PORTAL = "vpn-user-portal"
    ADMIN_PORTAL = "vpn-admin-portal"

    PORTALS = [USER_PORTAL, ADMIN_PORTAL]
    NODES = [SERVER_NODE]
