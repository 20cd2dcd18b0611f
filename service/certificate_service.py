from datetime import datetime
from typing import Any, Dict, List, Optional

from core.exceptions import CertificateNotFoundError, ValidationError
from core.logging_config import LoggerMixin
from core.server_manager import ServerManager
from core.types import CommonName, ConnectionList, UserId
from data.certificate_repository import CertificateRepository


class CertificateService(LoggerMixin):
    """Keeps the common name to user mapping of certificates issued by the CA."""

    def __init__(self, certificate_repo: CertificateRepository, server_manager: ServerManager) -> None:
        self.certificate_repo = certificate_repo
        self.server_manager = server_manager

    def add_client_certificate(self, user_id: UserId, common_name: CommonName, display_name: str,
                               valid_from: Optional[datetime] = None,
                               valid_to: Optional[datetime] = None) -> None:
        if self.certificate_repo.get_user_certificate_info(common_name) is not None:
            raise ValidationError("common_name", common_name, "Certificate already exists")
        self.certificate_repo.add_certificate(user_id, common_name, display_name, valid_from, valid_to)
        self.logger.info("Client certificate added", user_id=user_id, common_name=common_name)

    def get_client_certificate_list(self, user_id: UserId) -> List[Dict[str, Any]]:
        return self.certificate_repo.get_certificates(user_id)

    def get_client_certificate_info(self, common_name: CommonName) -> Dict[str, Any]:
        info = self.certificate_repo.get_user_certificate_info(common_name)
        if info is None:
            raise CertificateNotFoundError(common_name)
        return info

    def delete_client_certificate(self, common_name: CommonName) -> None:
        if not self.certificate_repo.delete_certificate(common_name):
            raise CertificateNotFoundError(common_name)
        killed = self.server_manager.kill(common_name)
        self.logger.info("Client certificate deleted", common_name=common_name, killed_connections=killed)

    def kill_client(self, common_name: CommonName) -> int:
        """Disconnects the common name everywhere, returns the number of killed clients."""
        return self.server_manager.kill(common_name)

    def annotate_connections(self, connection_list: ConnectionList) -> ConnectionList:
        """Fills in the user of live connections that only carry a common name."""
        for connections in connection_list.values():
            for connection in connections:
                if connection.user_id is not None:
                    continue
                info = self.certificate_repo.get_user_certificate_info(connection.common_name)
                if info is not None:
                    connection.user_id = info['user_id']
        return connection_list
