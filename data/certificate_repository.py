"""
Repository for the client certificate common name to user mapping.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from .db import Database
from core.clock import format_datetime
from core.types import CommonName, UserId


class CertificateRepository:
    """Maps certificate common names to the users they were issued to."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def add_certificate(self, user_id: UserId, common_name: CommonName, display_name: str,
                        valid_from: Optional[datetime] = None, valid_to: Optional[datetime] = None) -> None:
        """Records a certificate issued elsewhere, creating the user when needed."""
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("INSERT OR IGNORE INTO users (user_id) VALUES (?)", (user_id,))
            cursor.execute(
                """
                INSERT INTO certificates (common_name, user_id, display_name, valid_from, valid_to)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    common_name,
                    user_id,
                    display_name,
                    format_datetime(valid_from) if valid_from else None,
                    format_datetime(valid_to) if valid_to else None,
                )
            )

    def get_user_certificate_info(self, common_name: CommonName) -> Optional[Dict[str, Any]]:
        """
        Resolves a common name to its user. Returns None when the certificate
        no longer exists.
        """
        query = """
        SELECT
            u.user_id,
            u.is_disabled AS user_is_disabled,
            c.common_name,
            c.display_name,
            c.valid_from,
            c.valid_to
        FROM certificates c
        JOIN users u ON u.user_id = c.user_id
        WHERE c.common_name = ?
        """
        result = self.db.execute_query(query, (common_name,))
        if not result:
            return None
        info = result[0]
        info['user_is_disabled'] = bool(info['user_is_disabled'])
        return info

    def get_certificates(self, user_id: UserId) -> List[Dict[str, Any]]:
        query = """
        SELECT common_name, display_name, valid_from, valid_to, created_at
        FROM certificates
        WHERE user_id = ?
        ORDER BY created_at, common_name
        """
        return self.db.execute_query(query, (user_id,))

    def delete_certificate(self, common_name: CommonName) -> bool:
        return self.db.execute_update("DELETE FROM certificates WHERE common_name = ?", (common_name,)) > 0
