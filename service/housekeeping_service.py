from datetime import datetime, timedelta
from typing import Dict

from config.constants import RetentionConstants
from core.logging_config import LoggerMixin, log_function_call
from data.connection_repository import ConnectionRepository
from data.user_repository import UserRepository


class HousekeepingService(LoggerMixin):
    """Removes accounting and transient log rows past their retention window."""

    def __init__(self, connection_repo: ConnectionRepository, user_repo: UserRepository) -> None:
        self.connection_repo = connection_repo
        self.user_repo = user_repo

    @log_function_call
    def sweep(self, now: datetime) -> Dict[str, int]:
        """Safe to run repeatedly, an empty result is not an error."""
        connection_log_before = now - timedelta(days=RetentionConstants.CONNECTION_LOG_RETENTION_DAYS)
        totp_log_before = now - timedelta(minutes=RetentionConstants.TOTP_LOG_RETENTION_MINUTES)

        result = {
            'connection_log': self.connection_repo.clean_connection_log(connection_log_before),
            'totp_log': self.user_repo.clean_totp_log(totp_log_before),
        }
        self.logger.info("Housekeeping completed", deleted=result)
        return result
