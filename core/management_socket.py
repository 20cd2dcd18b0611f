"""
OpenVPN management interface client.

Speaks the line based management protocol over TCP. ``status 2`` produces a
CSV style client list whose CLIENT_LIST rows are laid out as:

  0  CLIENT_LIST
  1  Common Name
  2  Real Address
  3  Virtual Address
  4  Virtual IPv6 Address   (may be empty)
  5  Bytes Received
  6  Bytes Sent
  7  Connected Since
  8  Connected Since (time_t)
  9  Username
 10  Client ID
 11  Peer ID
"""

import socket
from typing import List, Optional

from core.exceptions import ManagementSocketError
from core.logging_config import LoggerMixin
from core.types import CommonName, ConnectionInfo


class ManagementSocket(LoggerMixin):
    """Short-lived connection to one OpenVPN process."""

    def __init__(self, host: str, port: int, timeout: float = 5.0) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def _send_command(self, command: str) -> List[str]:
        """Send a command and return the response lines up to the terminator."""
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                file_handle = sock.makefile('rwb', buffering=0)
                try:
                    # Consume the welcome banner (">INFO:..." line)
                    file_handle.readline()

                    file_handle.write(f"{command}\n".encode())

                    response_lines: List[str] = []
                    while True:
                        raw = file_handle.readline()
                        if not raw:
                            break
                        line = raw.decode('utf-8', errors='ignore').strip()
                        # real-time notifications may be interleaved
                        if line.startswith('>'):
                            continue
                        if line == "END":
                            break
                        response_lines.append(line)
                        if line.startswith("SUCCESS:") or line.startswith("ERROR:"):
                            break

                    try:
                        file_handle.write(b"quit\n")
                    except OSError as e:
                        self.logger.debug("Unable to send quit", address=self.address, error=str(e))
                    return response_lines
                finally:
                    file_handle.close()
        except (OSError, socket.timeout) as e:
            raise ManagementSocketError(self.address, str(e))

    def client_list(self) -> List[ConnectionInfo]:
        """Clients currently connected to this process."""
        return parse_client_list(self._send_command("status 2"))

    def kill(self, common_name: CommonName) -> int:
        """Disconnects all clients using the common name, returns how many were killed."""
        lines = self._send_command(f"kill {common_name}")
        if not lines:
            return 0
        return parse_kill_response(lines[-1])


def parse_client_list(lines: List[str]) -> List[ConnectionInfo]:
    """Extract connected clients from ``status 2`` output."""
    clients: List[ConnectionInfo] = []
    for line in lines:
        if not line.startswith("CLIENT_LIST,"):
            continue
        parts = line.split(",")
        if len(parts) < 5:
            continue
        common_name = parts[1].strip()
        if common_name in ("", "UNDEF"):
            continue
        virtual_address = [a.strip() for a in (parts[3], parts[4]) if a.strip()]
        clients.append(ConnectionInfo(common_name=common_name, virtual_address=virtual_address))
    return clients


def parse_kill_response(line: str) -> int:
    """
    Parse ``SUCCESS: common name 'x' found, 2 client(s) killed``. Anything
    else, including ``ERROR: common name 'x' not found``, counts as zero.
    """
    if not line.startswith("SUCCESS:"):
        return 0
    found: Optional[int] = None
    for token in line.replace(',', ' ').split():
        if token.isdigit():
            found = int(token)
    return found if found is not None else 1
