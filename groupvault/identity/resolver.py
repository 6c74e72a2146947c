"""
Identity resolution for vault members.

Derives the stable member id and the verification address from a
participant's public key.
"""

from typing import Optional
from uuid import UUID, uuid5

from .keys import normalize_public_key, public_key_bytes
from .provider import IdentityProvider, Secp256k1IdentityProvider


class IdentityResolver:
    """
    Maps public keys to member ids and addresses within one vault namespace.

    Every encoding of the same key (compressed, raw, uncompressed) resolves
    to the same id and address.

    Example:
        ```python
        resolver = IdentityResolver(namespace=uuid4())
        member_id = resolver.derive_member_id(public_key)
        address = resolver.derive_address(public_key)
        ```
    """

    def __init__(
        self,
        namespace: UUID,
        provider: Optional[IdentityProvider] = None,
    ) -> None:
        """
        Initialize IdentityResolver.

        Args:
            namespace: Per-vault UUID namespace for member ids
            provider: Signature scheme deriving addresses (secp256k1 by default)
        """
        self.namespace = namespace
        self.provider = provider or Secp256k1IdentityProvider()

    def normalize(self, public_key: str) -> str:
        """Canonical ``0x04...`` hex of a public key."""
        return normalize_public_key(public_key)

    def derive_address(self, public_key: str) -> str:
        """
        Derive the verification address of a public key.

        Raises:
            InvalidKeyFormat: If the key is not a recognized encoding
        """
        return self.provider.derive_address(public_key_bytes(public_key))

    def derive_member_id(self, public_key: str) -> UUID:
        """
        Derive the member id of a public key in this vault's namespace.

        Raises:
            InvalidKeyFormat: If the key is not a recognized encoding
        """
        return uuid5(self.namespace, normalize_public_key(public_key))
