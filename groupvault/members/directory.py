"""
Membership directory for GroupVault.

The authoritative map of member records of one vault, plus the tombstones of
removed members.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from ..exceptions import LastOwnerError
from ..rbac.models import Role
from .models import VaultMember


class MembershipDirectory:
    """
    In-memory member directory of a single vault.

    Mutations are staged on copies and published with ``replace``, so a
    half-built member map is never visible:

    ```python
    staged = directory.snapshot()
    staged[member.id] = member
    rotated = rotation.rotate(staged, generation + 1)
    directory.replace(rotated)
    ```

    Removed members keep a tombstone (id -> address) so a former member can
    still be authenticated and told their access was revoked.
    """

    def __init__(self) -> None:
        self._members: Dict[UUID, VaultMember] = {}
        self._revoked: Dict[UUID, str] = {}

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, member_id: object) -> bool:
        return member_id in self._members

    def get(self, member_id: UUID) -> Optional[VaultMember]:
        """
        Get a member by id.

        Returns:
            VaultMember if present, None otherwise
        """
        return self._members.get(member_id)

    def members(self) -> List[VaultMember]:
        """All members, as copies, in join order."""
        return [member.model_copy() for member in self._members.values()]

    def owners(self) -> List[VaultMember]:
        """All members holding the Owner role."""
        return [m.model_copy() for m in self._members.values() if m.role == Role.OWNER]

    def is_revoked(self, member_id: UUID) -> bool:
        """Check whether an id belongs to a removed member."""
        return member_id in self._revoked

    def address_of(self, member_id: UUID) -> Optional[str]:
        """
        Address to verify a requester's signature against.

        Falls back to the tombstone for removed members.
        """
        member = self._members.get(member_id)
        if member is not None:
            return member.address
        return self._revoked.get(member_id)

    def snapshot(self) -> Dict[UUID, VaultMember]:
        """Independent copy of the member map for staging a mutation."""
        return {member_id: m.model_copy() for member_id, m in self._members.items()}

    def revoked_snapshot(self) -> Dict[UUID, str]:
        """Independent copy of the tombstones."""
        return dict(self._revoked)

    def replace(
        self,
        members: Dict[UUID, VaultMember],
        revoked: Optional[Dict[UUID, str]] = None,
    ) -> None:
        """
        Publish a staged member map.

        Args:
            members: The complete new member map
            revoked: The complete new tombstone map (unchanged if None)

        Raises:
            LastOwnerError: If the staged map has no Owner
        """
        ensure_owner(members)
        self._members = dict(members)
        if revoked is not None:
            self._revoked = dict(revoked)

    def clear(self) -> None:
        """Erase all members and tombstones."""
        self._members = {}
        self._revoked = {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize members and tombstones for storage."""
        return {
            "members": [m.model_dump(mode="json") for m in self._members.values()],
            "revoked": {str(member_id): address for member_id, address in self._revoked.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MembershipDirectory":
        """Rebuild a directory from ``to_dict`` output."""
        directory = cls()
        members = [VaultMember.model_validate(m) for m in data.get("members", [])]
        directory.replace(
            {m.id: m for m in members},
            {UUID(member_id): address for member_id, address in data.get("revoked", {}).items()},
        )
        return directory


def count_owners(members: Dict[UUID, VaultMember]) -> int:
    return sum(1 for m in members.values() if m.role == Role.OWNER)


def ensure_owner(members: Dict[UUID, VaultMember]) -> None:
    """
    Raise if a member map has no Owner.

    Raises:
        LastOwnerError: If no member holds the Owner role
    """
    if count_owners(members) == 0:
        raise LastOwnerError("A vault must keep at least one Owner")
