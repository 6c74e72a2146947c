"""
GroupVault member models.

Pydantic models for member records and for the signed command payloads
that mutate a vault.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError
from ..rbac.models import Role

HEX_PATTERN = r"^(0x)?[0-9a-fA-F]*$"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VaultMember(BaseModel):
    """
    A participant of a vault.

    ``wrapped_shared_key`` holds the current shared secret sealed to this
    member's public key; ``None`` means the member has not been rekeyed yet.
    ``key_generation`` is the rekey generation that produced it.
    """

    id: UUID
    role: Role
    public_key: str
    address: str

    wrapped_shared_key: Optional[str] = None
    key_generation: Optional[int] = None

    joined_at: datetime = Field(default_factory=utcnow)

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "id": "9b2a0c5e-1d41-5c55-8a0e-3f5f2b7c4e11",
                "role": "Contributor",
                "public_key": "0x04a1b2...",
                "address": "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
                "wrapped_shared_key": "04f3c1...",
                "key_generation": 3,
                "joined_at": "2024-01-01T00:00:00Z",
            }
        },
    }


class VaultInfo(BaseModel):
    """Descriptive fields supplied when creating a vault."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=255)


class VaultCommand(BaseModel):
    """
    Base for signed command payloads.

    ``revision`` is optional; vaults configured with ``bind_revision`` require
    it to equal their current revision so a captured command cannot be
    replayed after the vault has changed.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    revision: Optional[int] = Field(default=None, ge=0)


class AddMemberCommand(VaultCommand):
    action: Literal["addMember"]
    role: Role
    public_key: str = Field(..., alias="publicKey", min_length=1)


class RemoveMemberCommand(VaultCommand):
    action: Literal["removeMember"]
    member_id: UUID = Field(..., alias="memberId")


class ChangeRoleCommand(VaultCommand):
    action: Literal["changeRole"]
    member_id: UUID = Field(..., alias="memberId")
    role: Role


class StoreContentCommand(VaultCommand):
    """
    Replace the vault content.

    Either ``content`` (plaintext, encrypted by the vault with the requester's
    transiently unwrapped key) or a client-sealed ``nonce``/``authTag``/
    ``ciphertext`` triple, never both.
    """

    action: Literal["storeContent"]
    content: Optional[str] = None
    nonce: Optional[str] = Field(default=None, min_length=1, pattern=HEX_PATTERN)
    auth_tag: Optional[str] = Field(
        default=None, alias="authTag", min_length=1, pattern=HEX_PATTERN
    )
    ciphertext: Optional[str] = Field(default=None, pattern=HEX_PATTERN)

    @model_validator(mode="after")
    def check_single_form(self) -> "StoreContentCommand":
        sealed = (self.nonce, self.auth_tag, self.ciphertext)
        if self.content is not None:
            if any(part is not None for part in sealed):
                raise ValueError("content and sealed fields are mutually exclusive")
        elif any(part is None for part in sealed):
            raise ValueError("either content or nonce, authTag and ciphertext are required")
        return self

    @property
    def is_sealed(self) -> bool:
        return self.content is None


class ReadContentCommand(VaultCommand):
    action: Literal["readContent"]


class DeleteVaultCommand(VaultCommand):
    action: Literal["deleteVault"]


CommandT = TypeVar("CommandT", bound=VaultCommand)


def parse_command(model: Type[CommandT], payload: Any) -> CommandT:
    """
    Validate a raw payload against a command model.

    Args:
        model: Command model class
        payload: Raw payload dict, exactly as signed

    Returns:
        Parsed command

    Raises:
        ValidationError: If the payload is malformed
    """
    if not isinstance(payload, dict):
        raise ValidationError(f"Invalid {model.__name__} payload: expected an object")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {model.__name__} payload: {e}") from e


def build_payload(action: str, **fields: Any) -> Dict[str, Any]:
    """
    Build a command payload dict, dropping fields left as ``None``.

    Example:
        >>> build_payload("removeMember", memberId="9b2a0c5e-1d41-5c55-8a0e-3f5f2b7c4e11")
        {'action': 'removeMember', 'memberId': '9b2a0c5e-1d41-5c55-8a0e-3f5f2b7c4e11'}
    """
    payload: Dict[str, Any] = {"action": action}
    payload.update({k: v for k, v in fields.items() if v is not None})
    return payload
