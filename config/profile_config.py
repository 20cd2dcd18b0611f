"""
VPN profile configuration.

Profiles are loaded once at startup from a JSON file of the form::

    {
        "vpnProfiles": {
            "internet": {
                "profileNumber": 1,
                "displayName": "Internet Access",
                "range": "10.0.0.0/24",
                "range6": "fd00:4242:4242::/48",
                "vpnProtoPorts": ["udp/1194", "tcp/1194"],
                "enableAcl": false,
                "aclPermissionList": []
            }
        }
    }

and handed to every component as an immutable mapping.
"""

import ipaddress
import json
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from config.constants import ManagementConstants
from core.exceptions import ConfigurationError
from core.types import Port, ProfileId, Protocol

PROFILE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-.]+$")


@dataclass(frozen=True)
class ProfileConfig:
    """Immutable configuration of a single VPN profile."""
    profile_id: ProfileId
    profile_number: int
    range: str
    vpn_proto_ports: Tuple[Tuple[str, Port], ...]
    display_name: str = ""
    range6: Optional[str] = None
    enable_acl: bool = False
    acl_permission_list: Tuple[str, ...] = ()
    management_ip: str = ManagementConstants.DEFAULT_IP

    @property
    def prefix_length(self) -> int:
        return ipaddress.IPv4Network(self.range, strict=False).prefixlen

    @property
    def process_count(self) -> int:
        return len(self.vpn_proto_ports)

    def management_port(self, process_index: int) -> int:
        """Management port of the OpenVPN process serving the given listener."""
        return (
            ManagementConstants.BASE_PORT
            + ManagementConstants.PORTS_PER_PROFILE * (self.profile_number - 1)
            + process_index
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'profile_id': self.profile_id,
            'profile_number': self.profile_number,
            'display_name': self.display_name,
            'range': self.range,
            'range6': self.range6,
            'vpn_proto_ports': [f"{proto}/{port}" for proto, port in self.vpn_proto_ports],
            'enable_acl': self.enable_acl,
            'acl_permission_list': list(self.acl_permission_list),
        }

    @classmethod
    def from_dict(cls, profile_id: str, data: Mapping[str, Any]) -> 'ProfileConfig':
        """Build and validate a profile from its configuration section."""
        if not PROFILE_ID_PATTERN.fullmatch(profile_id):
            raise ConfigurationError(f"Invalid profile id '{profile_id}'")

        for required in ('profileNumber', 'range', 'vpnProtoPorts'):
            if required not in data:
                raise ConfigurationError(f"Profile '{profile_id}' is missing '{required}'")

        try:
            profile_number = int(data['profileNumber'])
        except (TypeError, ValueError):
            raise ConfigurationError(f"Profile '{profile_id}' has a non-numeric profileNumber")
        if profile_number < 1:
            raise ConfigurationError(f"Profile '{profile_id}' profileNumber must be at least 1")

        try:
            ipaddress.IPv4Network(data['range'], strict=False)
        except ValueError as e:
            raise ConfigurationError(f"Profile '{profile_id}' has an invalid range: {e}")

        range6 = data.get('range6')
        if range6 is not None:
            try:
                ipaddress.IPv6Network(range6, strict=False)
            except ValueError as e:
                raise ConfigurationError(f"Profile '{profile_id}' has an invalid range6: {e}")

        acl_permission_list = data.get('aclPermissionList', [])
        if not isinstance(acl_permission_list, list):
            raise ConfigurationError(f"Profile '{profile_id}' aclPermissionList must be a list")

        return cls(
            profile_id=profile_id,
            profile_number=profile_number,
            range=data['range'],
            range6=range6,
            vpn_proto_ports=tuple(_parse_proto_port(profile_id, item) for item in data['vpnProtoPorts']),
            display_name=data.get('displayName', profile_id),
            enable_acl=bool(data.get('enableAcl', False)),
            acl_permission_list=tuple(str(p) for p in acl_permission_list),
            management_ip=data.get('managementIp', ManagementConstants.DEFAULT_IP),
        )


def _parse_proto_port(profile_id: str, value: str) -> Tuple[str, Port]:
    """Parse a ``proto/port`` listener definition such as ``udp/1194``."""
    if not isinstance(value, str) or '/' not in value:
        raise ConfigurationError(f"Profile '{profile_id}' has an invalid vpnProtoPorts entry '{value}'")
    proto, port = value.split('/', 1)
    try:
        protocol = Protocol(proto.lower()).value
    except ValueError:
        raise ConfigurationError(f"Profile '{profile_id}' uses unsupported protocol '{proto}'")
    try:
        port_number = int(port)
    except ValueError:
        raise ConfigurationError(f"Profile '{profile_id}' has a non-numeric port '{port}'")
    if not 1 <= port_number <= 65535:
        raise ConfigurationError(f"Profile '{profile_id}' port {port_number} is out of range")
    return protocol, port_number


def parse_profiles(data: Mapping[str, Any]) -> Dict[ProfileId, ProfileConfig]:
    """Build all profiles from an already decoded configuration document."""
    sections = data.get('vpnProfiles')
    if not isinstance(sections, dict) or not sections:
        raise ConfigurationError("Configuration must define at least one entry in 'vpnProfiles'")

    profiles = {
        profile_id: ProfileConfig.from_dict(profile_id, section)
        for profile_id, section in sections.items()
    }

    numbers = [p.profile_number for p in profiles.values()]
    if len(numbers) != len(set(numbers)):
        raise ConfigurationError("profileNumber must be unique across profiles")
    return profiles


def load_profiles(path: str) -> Dict[ProfileId, ProfileConfig]:
    """Load the profiles file."""
    if not os.path.exists(path):
        raise ConfigurationError(f"Profiles file '{path}' does not exist")
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Unable to read profiles file '{path}': {e}")
    return parse_profiles(data)
