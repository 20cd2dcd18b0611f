"""
Type definitions for the VPN server API.
Provides type safety and better IDE support.
"""

from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

UserId = str
CommonName = str
ProfileId = str
IPAddress = str
Port = int


class Protocol(Enum):
    """Transport protocols an OpenVPN process can listen on."""
    UDP = "udp"
    TCP = "tcp"


class MessageType(Enum):
    """System message types accepted by the message endpoints."""
    MOTD = "motd"
    NOTIFICATION = "notification"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of a connect or disconnect event.

    A denial is a normal outcome carrying a human readable reason, never an
    exception, so callers can tell it apart from infrastructure faults.
    """
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> 'AdmissionDecision':
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> 'AdmissionDecision':
        return cls(allowed=False, reason=reason)


@dataclass
class ConnectionInfo:
    """A client currently connected to a profile."""
    common_name: CommonName
    virtual_address: List[IPAddress] = field(default_factory=list)
    user_id: Optional[UserId] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'common_name': self.common_name,
            'virtual_address': list(self.virtual_address),
        }
        if self.user_id is not None:
            data['user_id'] = self.user_id
        return data


@dataclass
class ProfileUtilization:
    """Capacity statistics for a single profile."""
    profile_id: ProfileId
    active_count: int
    capacity: int
    utilization_percent: Optional[int]
    status: str = "ok"
    connections: List[ConnectionInfo] = field(default_factory=list)

    @property
    def is_misconfigured(self) -> bool:
        return self.status == "misconfigured"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'profile_id': self.profile_id,
            'active_count': self.active_count,
            'capacity': self.capacity,
            'utilization_percent': self.utilization_percent,
            'status': self.status,
        }


ConnectionList = Dict[ProfileId, List[ConnectionInfo]]
DatabaseRow = Dict[str, Any]
DatabaseResult = List[DatabaseRow]
