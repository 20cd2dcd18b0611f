"""
Repository for the connection accounting log.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from .db import Database
from core.clock import format_datetime
from core.types import CommonName, IPAddress, ProfileId


class ConnectionRepository:
    """
    One row per VPN session. Rows are inserted on connect, closed on
    disconnect and otherwise never touched until housekeeping removes them.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def client_connect(self, profile_id: ProfileId, common_name: CommonName, ip4: IPAddress,
                       ip6: IPAddress, connected_at: datetime) -> None:
        """Appends an open connection row. Duplicates are allowed."""
        query = """
        INSERT INTO connection_log (profile_id, common_name, ip4, ip6, connected_at)
        VALUES (?, ?, ?, ?, ?)
        """
        self.db.execute_query(query, (profile_id, common_name, ip4, ip6, format_datetime(connected_at)))

    def client_disconnect(self, profile_id: ProfileId, common_name: CommonName, ip4: IPAddress,
                          ip6: IPAddress, connected_at: datetime, disconnected_at: datetime,
                          bytes_transferred: int) -> int:
        """
        Closes the open row(s) matching the full session tuple and returns
        how many rows were closed.
        """
        query = """
        UPDATE connection_log
        SET disconnected_at = ?, bytes_transferred = ?
        WHERE profile_id = ?
          AND common_name = ?
          AND ip4 = ?
          AND ip6 = ?
          AND connected_at = ?
          AND disconnected_at IS NULL
        """
        return self.db.execute_update(
            query,
            (
                format_datetime(disconnected_at),
                bytes_transferred,
                profile_id,
                common_name,
                ip4,
                ip6,
                format_datetime(connected_at),
            )
        )

    def get_open_connections(self, profile_id: Optional[ProfileId] = None,
                             common_name: Optional[CommonName] = None) -> List[Dict[str, Any]]:
        """Currently open rows, optionally filtered, with the owning user when known."""
        query = """
        SELECT
            l.profile_id,
            l.common_name,
            l.ip4,
            l.ip6,
            l.connected_at,
            c.user_id
        FROM connection_log l
        LEFT JOIN certificates c ON c.common_name = l.common_name
        WHERE l.disconnected_at IS NULL
        """
        params: List[Any] = []
        if profile_id is not None:
            query += " AND l.profile_id = ?"
            params.append(profile_id)
        if common_name is not None:
            query += " AND l.common_name = ?"
            params.append(common_name)
        query += " ORDER BY l.profile_id, l.connected_at, l.id"
        return self.db.execute_query(query, params)

    def get_log_entry(self, date_time: datetime, ip_address: IPAddress) -> List[Dict[str, Any]]:
        """Sessions that held the given VPN address at the given moment."""
        moment = format_datetime(date_time)
        query = """
        SELECT
            l.profile_id,
            l.common_name,
            c.user_id,
            l.ip4,
            l.ip6,
            l.connected_at,
            l.disconnected_at,
            l.bytes_transferred
        FROM connection_log l
        LEFT JOIN certificates c ON c.common_name = l.common_name
        WHERE (l.ip4 = ? OR l.ip6 = ?)
          AND l.connected_at <= ?
          AND (l.disconnected_at IS NULL OR l.disconnected_at >= ?)
        ORDER BY l.connected_at DESC
        """
        return self.db.execute_query(query, (ip_address, ip_address, moment, moment))

    def clean_connection_log(self, before: datetime) -> int:
        """
        Deletes closed sessions that ended before the given moment. Open
        sessions are never removed.
        """
        query = """
        DELETE FROM connection_log
        WHERE disconnected_at IS NOT NULL
          AND disconnected_at < ?
        """
        return self.db.execute_update(query, (format_datetime(before),))
