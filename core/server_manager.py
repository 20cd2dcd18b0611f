"""
Live view on the OpenVPN processes of all profiles.

Every profile runs one OpenVPN process per configured (protocol, port)
listener, each with its own management port.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from config.constants import ManagementConstants
from config.profile_config import ProfileConfig
from core.exceptions import ManagementSocketError
from core.logging_config import LoggerMixin
from core.management_socket import ManagementSocket
from core.types import CommonName, ConnectionInfo, ConnectionList, ProfileId

SocketFactory = Callable[[str, int, float], ManagementSocket]


class ServerManager(LoggerMixin):
    """Queries and controls running OpenVPN processes through their management interfaces."""

    def __init__(self, profiles: Mapping[ProfileId, ProfileConfig],
                 timeout: float = ManagementConstants.DEFAULT_TIMEOUT,
                 socket_factory: SocketFactory = ManagementSocket,
                 max_workers: int = 8) -> None:
        self.profiles = profiles
        self.timeout = timeout
        self.socket_factory = socket_factory
        self.max_workers = max_workers

    def _processes(self, profile_filter: Optional[ProfileId] = None) -> List[Tuple[ProfileId, str, int]]:
        processes = []
        for profile_id, profile in self.profiles.items():
            if profile_filter is not None and profile_id != profile_filter:
                continue
            for i in range(profile.process_count):
                processes.append((profile_id, profile.management_ip, profile.management_port(i)))
        return processes

    def _query_process(self, process: Tuple[ProfileId, str, int]) -> Tuple[ProfileId, List[ConnectionInfo]]:
        profile_id, host, port = process
        try:
            return profile_id, self.socket_factory(host, port, self.timeout).client_list()
        except ManagementSocketError as e:
            # a process that is down contributes no clients
            self.logger.warning("Unable to query OpenVPN process", profile_id=profile_id, error=str(e))
            return profile_id, []

    def get_connection_list(self, profile_filter: Optional[ProfileId] = None,
                            common_name_filter: Optional[CommonName] = None) -> ConnectionList:
        """Connected clients per profile, queried concurrently from every process."""
        connection_list: ConnectionList = {
            profile_id: [] for profile_id in self.profiles
            if profile_filter is None or profile_id == profile_filter
        }
        processes = self._processes(profile_filter)
        if not processes:
            return connection_list

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(processes))) as executor:
            for profile_id, clients in executor.map(self._query_process, processes):
                for client in clients:
                    if common_name_filter is not None and client.common_name != common_name_filter:
                        continue
                    connection_list[profile_id].append(client)

        return connection_list

    def kill(self, common_name: CommonName) -> int:
        """Disconnects the common name from every process, returns the number of killed clients."""
        killed = 0
        for profile_id, host, port in self._processes():
            try:
                killed += self.socket_factory(host, port, self.timeout).kill(common_name)
            except ManagementSocketError as e:
                self.logger.warning("Unable to kill client", profile_id=profile_id, common_name=common_name, error=str(e))
        if killed:
            self.logger.info("Killed client connections", common_name=common_name, count=killed)
        return killed
