"""
Capacity reporting per VPN profile.

The number of clients a profile can hold follows from its IPv4 range: a /n
block has 2^(32 - n) addresses and every OpenVPN process (one per configured
protocol/port pair) gives up three of them to the network address, the
broadcast address and its own server address.
"""

from typing import List, Mapping, Optional, Protocol

from config.constants import ManagementConstants
from config.profile_config import ProfileConfig
from core.logging_config import LoggerMixin, log_performance
from core.types import CommonName, ConnectionInfo, ConnectionList, ProfileId, ProfileUtilization
from data.connection_repository import ConnectionRepository

MISCONFIGURED = "misconfigured"


class ConnectionSource(Protocol):
    """Anything that can list connected clients per profile."""

    def get_connection_list(self, profile_filter: Optional[ProfileId] = None,
                            common_name_filter: Optional[CommonName] = None) -> ConnectionList: ...


def compute_capacity(profile: ProfileConfig) -> int:
    """Maximum number of concurrent clients for the profile."""
    reserved = ManagementConstants.RESERVED_ADDRESSES_PER_PROCESS * len(profile.vpn_proto_ports)
    return 2 ** (32 - profile.prefix_length) - reserved


class StorageConnectionSource:
    """Connected clients as recorded in the connection log (daemon managed mode)."""

    def __init__(self, profiles: Mapping[ProfileId, ProfileConfig], connection_repo: ConnectionRepository) -> None:
        self.profiles = profiles
        self.connection_repo = connection_repo

    def get_connection_list(self, profile_filter: Optional[ProfileId] = None,
                            common_name_filter: Optional[CommonName] = None) -> ConnectionList:
        connection_list: ConnectionList = {
            profile_id: [] for profile_id in self.profiles
            if profile_filter is None or profile_id == profile_filter
        }
        for row in self.connection_repo.get_open_connections(profile_filter, common_name_filter):
            if row['profile_id'] not in connection_list:
                # rows of profiles removed from the configuration
                continue
            connection_list[row['profile_id']].append(
                ConnectionInfo(
                    common_name=row['common_name'],
                    virtual_address=[row['ip4'], row['ip6']],
                    user_id=row.get('user_id')
                )
            )
        return connection_list


class CapacityReporter(LoggerMixin):
    """Compares live connection counts against each profile's capacity.

    The connection source is either a StorageConnectionSource or a
    ServerManager; both expose ``get_connection_list``.
    """

    def __init__(self, profiles: Mapping[ProfileId, ProfileConfig], connection_source: ConnectionSource) -> None:
        self.profiles = profiles
        self.connection_source = connection_source

    @log_performance
    def report(self, profile_filter: Optional[ProfileId] = None) -> List[ProfileUtilization]:
        connection_list = self.connection_source.get_connection_list(profile_filter, None)

        report = []
        for profile_id, profile in self.profiles.items():
            if profile_filter is not None and profile_id != profile_filter:
                continue
            connections = connection_list.get(profile_id, [])
            report.append(self._utilization(profile, connections))
        return report

    def _utilization(self, profile: ProfileConfig, connections: List[ConnectionInfo]) -> ProfileUtilization:
        active_count = len(connections)
        capacity = compute_capacity(profile)
        if capacity <= 0:
            self.logger.warning(
                "Profile range too small for its listeners",
                profile_id=profile.profile_id,
                range=profile.range,
                process_count=profile.process_count
            )
            return ProfileUtilization(
                profile_id=profile.profile_id,
                active_count=active_count,
                capacity=capacity,
                utilization_percent=None,
                status=MISCONFIGURED,
                connections=connections
            )

        return ProfileUtilization(
            profile_id=profile.profile_id,
            active_count=active_count,
            capacity=capacity,
            utilization_percent=active_count * 100 // capacity,
            connections=connections
        )


def format_report(report: List[ProfileUtilization], verbose: bool = False) -> str:
    """
    Render the report one line per profile, ``profileId,active,capacity,N%``,
    and in verbose mode one ``profileId<TAB>commonName<TAB>addresses`` line
    per connection.
    """
    lines = []
    for row in report:
        if row.is_misconfigured:
            lines.append(f"{row.profile_id},{row.active_count},{row.capacity},{MISCONFIGURED}")
        else:
            lines.append(f"{row.profile_id},{row.active_count},{row.capacity},{row.utilization_percent}%")
        if verbose:
            for connection in row.connections:
                lines.append(f"{row.profile_id}\t{connection.common_name}\t{', '.join(connection.virtual_address)}")
    return ''.join(line + '\n' for line in lines)
