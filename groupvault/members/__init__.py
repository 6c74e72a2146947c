"""
GroupVault members module.

Handles member records, signed command payloads and the membership directory.
"""

from .directory import MembershipDirectory, count_owners, ensure_owner
from .models import (
    AddMemberCommand,
    ChangeRoleCommand,
    DeleteVaultCommand,
    ReadContentCommand,
    RemoveMemberCommand,
    StoreContentCommand,
    VaultCommand,
    VaultInfo,
    VaultMember,
    build_payload,
    parse_command,
)

__all__ = [
    "MembershipDirectory",
    "VaultMember",
    "VaultInfo",
    # Commands
    "VaultCommand",
    "AddMemberCommand",
    "RemoveMemberCommand",
    "ChangeRoleCommand",
    "StoreContentCommand",
    "ReadContentCommand",
    "DeleteVaultCommand",
    # Utility functions
    "parse_command",
    "build_payload",
    "count_owners",
    "ensure_owner",
]
