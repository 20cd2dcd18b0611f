from datetime import datetime
from typing import Any, Dict, List, Mapping

from config.profile_config import ProfileConfig
from core.clock import from_timestamp
from core.exceptions import ValidationError
from core.logging_config import LoggerMixin
from core.types import AdmissionDecision, CommonName, IPAddress, ProfileId
from data.certificate_repository import CertificateRepository
from data.connection_repository import ConnectionRepository
from service.policy_service import PolicyEvaluator


class ConnectionService(LoggerMixin):
    """
    Handles connect and disconnect events reported by the VPN daemons.

    Connect events are admitted or rejected and, when admitted, appended to
    the connection log. Disconnect events close the matching log row. Each
    event is an independent transaction against storage.
    """

    def __init__(self, profiles: Mapping[ProfileId, ProfileConfig],
                 certificate_repo: CertificateRepository,
                 connection_repo: ConnectionRepository,
                 policy_evaluator: PolicyEvaluator) -> None:
        self.profiles = profiles
        self.certificate_repo = certificate_repo
        self.connection_repo = connection_repo
        self.policy_evaluator = policy_evaluator

    def _get_profile(self, profile_id: ProfileId) -> ProfileConfig:
        profile = self.profiles.get(profile_id)
        if profile is None:
            raise ValidationError("profile_id", profile_id, "Profile does not exist")
        return profile

    def connect(self, profile_id: ProfileId, common_name: CommonName, ip4: IPAddress,
                ip6: IPAddress, connected_at: int) -> AdmissionDecision:
        profile = self._get_profile(profile_id)

        certificate_info = self.certificate_repo.get_user_certificate_info(common_name)
        if certificate_info is None:
            # without a certificate there is no user to notify
            reason = f"user or certificate does not exist [profile_id: {profile_id}, common_name: {common_name}]"
            self.logger.info("Connection rejected", profile_id=profile_id, common_name=common_name, reason=reason)
            return AdmissionDecision.deny(reason)

        decision = self.policy_evaluator.evaluate(
            profile,
            certificate_info['user_id'],
            certificate_info['user_is_disabled']
        )
        if not decision.allowed:
            return decision

        # append only, duplicate connect events create additional open rows
        self.connection_repo.client_connect(profile_id, common_name, ip4, ip6, from_timestamp(connected_at))
        self.logger.info(
            "Client connected",
            profile_id=profile_id,
            common_name=common_name,
            user_id=certificate_info['user_id'],
            ip4=ip4,
            ip6=ip6
        )
        return decision

    def disconnect(self, profile_id: ProfileId, common_name: CommonName, ip4: IPAddress,
                   ip6: IPAddress, connected_at: int, disconnected_at: int,
                   bytes_transferred: int) -> AdmissionDecision:
        self._get_profile(profile_id)

        closed = self.connection_repo.client_disconnect(
            profile_id,
            common_name,
            ip4,
            ip6,
            from_timestamp(connected_at),
            from_timestamp(disconnected_at),
            bytes_transferred
        )
        if closed == 0:
            # the daemon is authoritative about the event, accept it anyway
            self.logger.warning(
                "Disconnect without matching open connection",
                profile_id=profile_id,
                common_name=common_name,
                connected_at=connected_at
            )
        else:
            self.logger.info(
                "Client disconnected",
                profile_id=profile_id,
                common_name=common_name,
                bytes_transferred=bytes_transferred
            )
        return AdmissionDecision.allow()

    def get_log_entry(self, date_time: datetime, ip_address: IPAddress) -> List[Dict[str, Any]]:
        """Who held the VPN address at the given moment."""
        return self.connection_repo.get_log_entry(date_time, ip_address)
