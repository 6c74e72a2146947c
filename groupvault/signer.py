"""
Caller-side helpers.

Everything a vault member does with their own private key lives here:
signing commands, unwrapping the shared key, sealing and opening content.
The vault itself never stores private keys.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional, Union
from uuid import UUID

from coincurve import PrivateKey

from .crypto import ContentCipher, EciesKeyWrapper, EncryptedRecord, KeyWrapper
from .exceptions import InvalidKeyFormat, NotFoundError, ValidationError
from .identity import (
    IdentityProvider,
    Secp256k1IdentityProvider,
    canonicalize,
    private_key_bytes,
)
from .identity.keys import public_key_bytes
from .members import build_payload

if TYPE_CHECKING:
    from .client import ContentEnvelope, Vault


@dataclass
class MemberKeys:
    """
    A participant's secp256k1 key pair.

    Example:
        ```python
        keys = MemberKeys.generate()
        payload = {"action": "deleteVault"}
        signature = keys.sign(payload)
        ```
    """

    private_key: str
    public_key: str
    provider: IdentityProvider = field(default_factory=Secp256k1IdentityProvider, repr=False)
    key_wrapper: KeyWrapper = field(default_factory=EciesKeyWrapper, repr=False)

    def __repr__(self) -> str:
        return f"MemberKeys(address={self.address!r})"

    @classmethod
    def generate(cls) -> "MemberKeys":
        """Create a fresh random key pair."""
        key = PrivateKey()
        return cls(
            private_key="0x" + key.secret.hex(),
            public_key="0x" + key.public_key.format(compressed=False).hex(),
        )

    @classmethod
    def from_private_key(cls, private_key: str) -> "MemberKeys":
        """
        Rebuild a key pair from a hex private key.

        Raises:
            InvalidKeyFormat: If the key is not a valid secp256k1 scalar
        """
        raw = private_key_bytes(private_key)
        try:
            key = PrivateKey(raw)
        except (ValueError, TypeError):
            raise InvalidKeyFormat("private key is not a valid secp256k1 scalar") from None
        return cls(
            private_key="0x" + raw.hex(),
            public_key="0x" + key.public_key.format(compressed=False).hex(),
        )

    @property
    def address(self) -> str:
        return self.provider.derive_address(public_key_bytes(self.public_key))

    def sign(self, payload: Dict[str, Any]) -> str:
        """Sign the canonical encoding of a command payload, returning hex."""
        raw = self.provider.sign(private_key_bytes(self.private_key), canonicalize(payload))
        return "0x" + raw.hex()

    def unwrap(self, wrapped_shared_key: str) -> bytes:
        """Open a wrapped shared key with this private key."""
        return self.key_wrapper.unwrap(self.private_key, wrapped_shared_key)

    def seal_content(
        self,
        plaintext: Union[str, bytes],
        wrapped_shared_key: str,
        revision: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Encrypt content client-side into a sealed ``storeContent`` payload.

        The vault never sees the plaintext or the shared secret.
        """
        record = ContentCipher().encrypt(plaintext, self.unwrap(wrapped_shared_key))
        wire = record.to_wire()
        return build_payload(
            "storeContent",
            nonce=wire["nonce"],
            authTag=wire["authTag"],
            ciphertext=wire["ciphertext"],
            revision=revision,
        )

    def open_content(self, envelope: "ContentEnvelope") -> str:
        """
        Decrypt the content of a ``read_content`` envelope.

        Raises:
            NotFoundError: If the envelope holds no content
            CryptoError: If the key or content do not authenticate
        """
        if envelope.content is None:
            raise NotFoundError("Vault has no content")
        return self.open_record(envelope.content, envelope.wrapped_shared_key)

    def open_record(self, record: EncryptedRecord, wrapped_shared_key: str) -> str:
        """Decrypt a content record with a wrapped shared key."""
        return ContentCipher().decrypt_text(record, self.unwrap(wrapped_shared_key))


async def apply_membership_change(
    vault: "Vault",
    requester_id: UUID,
    keys: MemberKeys,
    payload: Dict[str, Any],
) -> Union[UUID, bool]:
    """
    Add or remove a member and re-seal the existing content under the new key.

    Rekeying only rewraps the shared key, so content written before the change
    stays encrypted under the old secret. An Owner calls this to carry the
    content over:

    1. Read and decrypt the current content with the old key
    2. Apply the signed ``addMember``/``removeMember`` command
    3. Re-encrypt client-side under the new key and store it

    Args:
        vault: Vault to change
        requester_id: Owner performing the change
        keys: The Owner's key pair
        payload: ``addMember`` or ``removeMember`` payload (unsigned)

    Returns:
        The result of the membership operation

    Raises:
        ValidationError: If the payload is not a membership change
    """
    action = payload.get("action") if isinstance(payload, dict) else None
    if action not in ("addMember", "removeMember"):
        raise ValidationError(f"Invalid membership action: {action!r}")

    envelope = await vault.read_content(requester_id)
    plaintext = keys.open_content(envelope) if envelope.content is not None else None

    if action == "addMember":
        result: Union[UUID, bool] = await vault.add_member(requester_id, payload, keys.sign(payload))
    else:
        result = await vault.remove_member(requester_id, payload, keys.sign(payload))

    if plaintext is not None and result:
        envelope = await vault.read_content(requester_id)
        revision = vault.revision if vault.config.bind_revision else None
        sealed = keys.seal_content(plaintext, envelope.wrapped_shared_key, revision=revision)
        await vault.store_content(requester_id, sealed, keys.sign(sealed))

    return result


def public_key_to_address(public_key: str, provider: Optional[IdentityProvider] = None) -> str:
    """Address of a public key in any accepted encoding."""
    provider = provider or Secp256k1IdentityProvider()
    return provider.derive_address(public_key_bytes(public_key))
