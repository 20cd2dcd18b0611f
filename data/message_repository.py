from datetime import datetime
from typing import Any, Dict, List
from .db import Database
from core.clock import format_datetime
from core.types import UserId


class MessageRepository:
    """Stores user notifications and operator authored system messages."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def add_user_message(self, user_id: UserId, message_type: str, message: str, date_time: datetime) -> None:
        query = "INSERT INTO user_messages (user_id, type, message, date_time) VALUES (?, ?, ?, ?)"
        self.db.execute_query(query, (user_id, message_type, message, format_datetime(date_time)))

    def get_user_messages(self, user_id: UserId) -> List[Dict[str, Any]]:
        query = """
        SELECT id, type, message, date_time
        FROM user_messages
        WHERE user_id = ?
        ORDER BY date_time DESC, id DESC
        """
        return self.db.execute_query(query, (user_id,))

    def add_system_message(self, message_type: str, message: str, date_time: datetime) -> None:
        # stored verbatim, consumers treat it as text/plain
        query = "INSERT INTO system_messages (type, message, date_time) VALUES (?, ?, ?)"
        self.db.execute_query(query, (message_type, message, format_datetime(date_time)))

    def get_system_messages(self, message_type: str) -> List[Dict[str, Any]]:
        query = """
        SELECT id, type, message, date_time
        FROM system_messages
        WHERE type = ?
        ORDER BY date_time DESC, id DESC
        """
        return self.db.execute_query(query, (message_type,))

    def delete_system_message(self, message_id: int) -> bool:
        return self.db.execute_update("DELETE FROM system_messages WHERE id = ?", (message_id,)) > 0
