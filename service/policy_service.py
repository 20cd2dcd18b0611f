from typing import List, Sequence

from config.profile_config import ProfileConfig
from core.clock import EPOCH, Clock, format_datetime, parse_datetime
from core.logging_config import LoggerMixin
from core.types import AdmissionDecision, UserId
from data.message_repository import MessageRepository
from data.user_repository import UserRepository

NOTIFICATION = "notification"


class PolicyEvaluator(LoggerMixin):
    """
    Decides whether a user may be on a profile's network.

    Checks run in a fixed order and the first failure wins: session expiry,
    then the disabled flag, then the profile ACL. Every denial leaves a
    notification for the user to find in the portal.
    """

    def __init__(self, user_repo: UserRepository, message_repo: MessageRepository, clock: Clock) -> None:
        self.user_repo = user_repo
        self.message_repo = message_repo
        self.clock = clock

    def evaluate(self, profile: ProfileConfig, user_id: UserId, user_is_disabled: bool) -> AdmissionDecision:
        now = self.clock.now()

        # a missing or unreadable expiry counts as expired long ago
        session_expires_at = parse_datetime(self.user_repo.get_session_expires_at(user_id)) or EPOCH
        if session_expires_at < now:
            return self._deny(
                user_id,
                f"[VPN] the certificate is still valid, but the session expired at {format_datetime(session_expires_at)}"
            )

        if user_is_disabled:
            return self._deny(user_id, "[VPN] unable to connect, account is disabled")

        if profile.enable_acl:
            user_permission_list = self.user_repo.get_permission_list(user_id)
            if not has_permission(user_permission_list, profile.acl_permission_list):
                return self._deny(
                    user_id,
                    "[VPN] unable to connect, user permissions are [{}], but requires any of [{}]".format(
                        ','.join(user_permission_list),
                        ','.join(profile.acl_permission_list)
                    )
                )

        return AdmissionDecision.allow()

    def _deny(self, user_id: UserId, reason: str) -> AdmissionDecision:
        self.message_repo.add_user_message(user_id, NOTIFICATION, reason, self.clock.now())
        self.logger.info("Connection denied by policy", user_id=user_id, reason=reason)
        return AdmissionDecision.deny(reason)


def has_permission(user_permission_list: List[str], acl_permission_list: Sequence[str]) -> bool:
    """One of the user's permissions must be listed in the profile ACL."""
    return bool(set(user_permission_list) & set(acl_permission_list))
