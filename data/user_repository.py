from datetime import datetime
from typing import Optional, List, Dict, Any
from .db import Database
from core.clock import format_datetime
from core.types import UserId
from core.exceptions import UserNotFoundError

class UserRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    def get_user(self, user_id: UserId) -> Optional[Dict[str, Any]]:
        query = "SELECT user_id, session_expires_at, is_disabled, created_at FROM users WHERE user_id = ?"
        result = self.db.execute_query(query, (user_id,))
        if not result:
            return None
        user = result[0]
        user['is_disabled'] = bool(user['is_disabled'])
        return user

    def get_all_users(self) -> List[Dict[str, Any]]:
        """Retrieves all users with their disabled flag and session expiry."""
        query = "SELECT user_id, session_expires_at, is_disabled, created_at FROM users ORDER BY user_id"
        users = self.db.execute_query(query)
        for user in users:
            user['is_disabled'] = bool(user['is_disabled'])
        return users

    def delete_user(self, user_id: UserId) -> bool:
        """Removes the user together with certificates, permissions and messages."""
        return self.db.execute_update("DELETE FROM users WHERE user_id = ?", (user_id,)) > 0

    def set_disabled(self, user_id: UserId, is_disabled: bool) -> None:
        rows = self.db.execute_update(
            "UPDATE users SET is_disabled = ? WHERE user_id = ?",
            (1 if is_disabled else 0, user_id)
        )
        if rows == 0:
            raise UserNotFoundError(user_id)

    def is_disabled(self, user_id: UserId) -> bool:
        user = self.get_user(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user['is_disabled']

    def get_session_expires_at(self, user_id: UserId) -> Optional[str]:
        """Returns the raw stored session expiry, None when unknown."""
        result = self.db.execute_query("SELECT session_expires_at FROM users WHERE user_id = ?", (user_id,))
        return result[0]['session_expires_at'] if result else None

    def get_permission_list(self, user_id: UserId) -> List[str]:
        query = "SELECT permission FROM user_permissions WHERE user_id = ? ORDER BY permission"
        return [row['permission'] for row in self.db.execute_query(query, (user_id,))]

    def update_session_info(self, user_id: UserId, session_expires_at: Optional[datetime], permission_list: List[str]) -> None:
        """Stores what the identity provider reported at the last login.

        The permission list replaces the previous one atomically.
        """
        expires = format_datetime(session_expires_at) if session_expires_at else None
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO users (user_id, session_expires_at) VALUES (?, ?)
                ON CONFLICT(user_id) DO UPDATE SET session_expires_at = excluded.session_expires_at
                """,
                (user_id, expires)
            )
            cursor.execute("DELETE FROM user_permissions WHERE user_id = ?", (user_id,))
            cursor.executemany(
                "INSERT OR IGNORE INTO user_permissions (user_id, permission) VALUES (?, ?)",
                [(user_id, permission) for permission in permission_list]
            )

    # --- TOTP replay log ---

    def clean_totp_log(self, before: datetime) -> int:
        """Deletes TOTP log rows older than the given moment.

        The user portal writes this table when it verifies a TOTP key, this
        service only expires the rows.
        """
        return self.db.execute_update(
            "DELETE FROM totp_log WHERE date_time < ?",
            (format_datetime(before),)
        )
