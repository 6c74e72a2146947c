"""
GroupVault RBAC module.

Provides the role-permission matrix and the authorization guard.
"""

from .guard import AuthorizationGuard
from .models import (
    KEY_REQUIRED_ACTIONS,
    ROLE_PERMISSIONS,
    Action,
    Role,
    permissions_for,
    role_permits,
)

__all__ = [
    # Guard
    "AuthorizationGuard",
    # Models
    "Role",
    "Action",
    "ROLE_PERMISSIONS",
    "KEY_REQUIRED_ACTIONS",
    # Utility functions
    "role_permits",
    "permissions_for",
]
