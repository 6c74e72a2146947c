"""
Authorization for vault commands.

Enforces the role-permission matrix against the membership directory.
"""

import logging
from typing import TYPE_CHECKING
from uuid import UUID

from ..exceptions import AuthorizationError, RevokedAccessError
from .models import KEY_REQUIRED_ACTIONS, Action, role_permits

if TYPE_CHECKING:
    from ..members.directory import MembershipDirectory

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """
    Decides whether a requester may perform an action.

    The guard assumes the requester's signature was already verified; it only
    answers "may this member do this now". It never mutates the directory.

    Example:
        ```python
        guard = AuthorizationGuard(directory)
        guard.authorize(member_id, Action.STORE_CONTENT)  # raises on denial
        ```
    """

    def __init__(self, directory: "MembershipDirectory") -> None:
        """
        Initialize AuthorizationGuard.

        Args:
            directory: Membership directory of the vault being guarded
        """
        self.directory = directory

    def authorize(self, requester_id: UUID, action: Action) -> None:
        """
        Authorize an action for a requester.

        Args:
            requester_id: Member id of the requester
            action: Requested action

        Raises:
            RevokedAccessError: Requester was removed, or holds no current wrapped key
                for a content action
            AuthorizationError: Requester is unknown or their role lacks the permission
        """
        action = Action(action)
        member = self.directory.get(requester_id)

        if member is None:
            if self.directory.is_revoked(requester_id):
                logger.warning("Revoked member %s attempted %s", requester_id, action.value)
                raise RevokedAccessError("Member access has been revoked")
            logger.warning("Unknown requester %s attempted %s", requester_id, action.value)
            raise AuthorizationError("Requester is not a member of this vault")

        if not role_permits(member.role, action):
            logger.warning(
                "Member %s with role %s denied %s",
                requester_id,
                member.role.value,
                action.value,
            )
            raise AuthorizationError(
                f"Role {member.role.value} is not permitted to {action.value}"
            )

        if action in KEY_REQUIRED_ACTIONS and member.wrapped_shared_key is None:
            logger.warning("Member %s has no current key for %s", requester_id, action.value)
            raise RevokedAccessError("Member holds no current shared key")

    def can(self, requester_id: UUID, action: Action) -> bool:
        """Non-raising form of ``authorize``."""
        try:
            self.authorize(requester_id, action)
        except AuthorizationError:
            return False
        return True
