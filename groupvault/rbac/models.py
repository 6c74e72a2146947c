"""
GroupVault RBAC models.

Roles, actions and the closed permission matrix between them.
"""

from enum import Enum
from typing import Dict, FrozenSet


class Role(str, Enum):
    """Permission tier of a vault member."""

    OWNER = "Owner"
    CONTRIBUTOR = "Contributor"
    VIEWER = "Viewer"


class Action(str, Enum):
    """Operations a member can request on a vault."""

    ADD_MEMBER = "addMember"
    REMOVE_MEMBER = "removeMember"
    CHANGE_ROLE = "changeRole"
    DELETE_VAULT = "deleteVault"
    STORE_CONTENT = "storeContent"
    READ_CONTENT = "readContent"


ROLE_PERMISSIONS: Dict[Role, FrozenSet[Action]] = {
    Role.OWNER: frozenset(Action),
    Role.CONTRIBUTOR: frozenset({Action.STORE_CONTENT, Action.READ_CONTENT}),
    Role.VIEWER: frozenset({Action.READ_CONTENT}),
}

# Actions that also need a current wrapped shared key
KEY_REQUIRED_ACTIONS: FrozenSet[Action] = frozenset(
    {Action.STORE_CONTENT, Action.READ_CONTENT}
)

_unmapped = set(Role) - set(ROLE_PERMISSIONS)
if _unmapped:
    raise RuntimeError(f"Roles without a permission entry: {sorted(r.value for r in _unmapped)}")


def role_permits(role: Role, action: Action) -> bool:
    """
    Check whether a role grants an action.

    Examples:
        >>> role_permits(Role.OWNER, Action.DELETE_VAULT)
        True
        >>> role_permits(Role.CONTRIBUTOR, Action.ADD_MEMBER)
        False
        >>> role_permits(Role.VIEWER, Action.READ_CONTENT)
        True
    """
    return Action(action) in ROLE_PERMISSIONS[Role(role)]


def permissions_for(role: Role) -> FrozenSet[Action]:
    """All actions granted to a role."""
    return ROLE_PERMISSIONS[Role(role)]
