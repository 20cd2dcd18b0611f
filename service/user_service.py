from datetime import datetime
from typing import Any, Dict, List, Optional

from core.exceptions import UserNotFoundError
from core.logging_config import LoggerMixin, log_function_call
from core.server_manager import ServerManager
from core.types import UserId
from data.certificate_repository import CertificateRepository
from data.message_repository import MessageRepository
from data.user_repository import UserRepository


class UserService(LoggerMixin):
    """
    User administration on behalf of the portals.

    Users are owned by the identity provider; this service only keeps what
    connection admission needs: the disabled flag, the session expiry and the
    permission list.
    """

    def __init__(self, user_repo: UserRepository, certificate_repo: CertificateRepository,
                 message_repo: MessageRepository, server_manager: ServerManager) -> None:
        self.user_repo = user_repo
        self.certificate_repo = certificate_repo
        self.message_repo = message_repo
        self.server_manager = server_manager

    def _require_user(self, user_id: UserId) -> Dict[str, Any]:
        user = self.user_repo.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _kill_user_connections(self, user_id: UserId) -> int:
        killed = 0
        for certificate in self.certificate_repo.get_certificates(user_id):
            killed += self.server_manager.kill(certificate['common_name'])
        return killed

    def get_user_list(self) -> List[Dict[str, Any]]:
        return self.user_repo.get_all_users()

    @log_function_call
    def set_session_info(self, user_id: UserId, session_expires_at: Optional[datetime],
                         permission_list: List[str]) -> None:
        """Stores what the identity provider reported at the last login."""
        self.user_repo.update_session_info(user_id, session_expires_at, permission_list)
        self.logger.info(
            "User session updated",
            user_id=user_id,
            session_expires_at=session_expires_at.isoformat() if session_expires_at else None,
            permissions=len(permission_list)
        )

    def disable_user(self, user_id: UserId) -> None:
        self.user_repo.set_disabled(user_id, True)
        # existing connections are not re-evaluated by the daemons, drop them
        killed = self._kill_user_connections(user_id)
        self.logger.info("User disabled", user_id=user_id, killed_connections=killed)

    def enable_user(self, user_id: UserId) -> None:
        self.user_repo.set_disabled(user_id, False)
        self.logger.info("User enabled", user_id=user_id)

    def is_disabled(self, user_id: UserId) -> bool:
        return self.user_repo.is_disabled(user_id)

    def delete_user(self, user_id: UserId) -> None:
        self._require_user(user_id)
        killed = self._kill_user_connections(user_id)
        self.user_repo.delete_user(user_id)
        self.logger.info("User deleted", user_id=user_id, killed_connections=killed)

    def get_permission_list(self, user_id: UserId) -> List[str]:
        self._require_user(user_id)
        return self.user_repo.get_permission_list(user_id)

    def get_user_messages(self, user_id: UserId) -> List[Dict[str, Any]]:
        self._require_user(user_id)
        return self.message_repo.get_user_messages(user_id)
