from typing import Any, Dict, List

from core.clock import Clock
from core.logging_config import LoggerMixin
from data.message_repository import MessageRepository


class MessageService(LoggerMixin):
    """System messages shown by the portals (message of the day, maintenance windows)."""

    def __init__(self, message_repo: MessageRepository, clock: Clock) -> None:
        self.message_repo = message_repo
        self.clock = clock

    def get_system_messages(self, message_type: str) -> List[Dict[str, Any]]:
        return self.message_repo.get_system_messages(message_type)

    def add_system_message(self, message_type: str, message: str) -> None:
        self.message_repo.add_system_message(message_type, message, self.clock.now())
        self.logger.info("System message added", message_type=message_type, length=len(message))

    def delete_system_message(self, message_id: int) -> bool:
        """Deleting an id that does not exist is not an error."""
        deleted = self.message_repo.delete_system_message(message_id)
        if deleted:
            self.logger.info("System message deleted", message_id=message_id)
        else:
            self.logger.debug("System message already gone", message_id=message_id)
        return deleted
