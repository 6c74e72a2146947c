"""
GroupVault - a shared encrypted vault for a small group of key holders.

Members are identified by secp256k1 public keys, authenticate every command
with a signature, and hold one of three roles. Each membership change rekeys
the vault: a fresh content secret is wrapped for every current member.

Example:
    ```python
    from groupvault import MemberKeys, Vault

    # Create a vault
    owner = MemberKeys.generate()
    vault = await Vault.create(owner.public_key, "Team secrets")
    owner_id = vault.owners()[0].id

    # Add a member (signed by the owner, rekeys the vault)
    alice = MemberKeys.generate()
    payload = {"action": "addMember", "role": "Contributor", "publicKey": alice.public_key}
    alice_id = await vault.add_member(owner_id, payload, owner.sign(payload))

    # Store and read content
    payload = {"action": "storeContent", "content": "hello"}
    await vault.store_content(owner_id, payload, owner.sign(payload), owner.private_key)
    envelope = await vault.read_content(alice_id)
    alice.open_content(envelope)  # "hello"
    ```
"""

from .client import ContentEnvelope, Vault
from .config import VaultConfig, load_config
from .crypto import ContentCipher, EciesKeyWrapper, EncryptedRecord, KeyRotationEngine, KeyWrapper
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    CryptoError,
    InvalidKeyFormat,
    LastOwnerError,
    MemberConflictError,
    NotFoundError,
    RevokedAccessError,
    StorageError,
    ValidationError,
    VaultError,
)
from .identity import (
    IdentityProvider,
    IdentityResolver,
    Secp256k1IdentityProvider,
    SignatureVerifier,
    canonicalize,
)
from .members import MembershipDirectory, VaultMember
from .rbac import Action, AuthorizationGuard, Role
from .signer import MemberKeys, apply_membership_change
from .storage import InMemoryStorage, JSONFileStorage, StorageAdapter

__version__ = "0.1.0"

__all__ = [
    # Main client
    "Vault",
    "ContentEnvelope",
    "VaultConfig",
    "load_config",
    # Caller-side helpers
    "MemberKeys",
    "apply_membership_change",
    # Members and roles
    "VaultMember",
    "MembershipDirectory",
    "Role",
    "Action",
    "AuthorizationGuard",
    # Identity
    "IdentityProvider",
    "IdentityResolver",
    "Secp256k1IdentityProvider",
    "SignatureVerifier",
    "canonicalize",
    # Crypto
    "ContentCipher",
    "EncryptedRecord",
    "KeyRotationEngine",
    "KeyWrapper",
    "EciesKeyWrapper",
    # Storage
    "StorageAdapter",
    "InMemoryStorage",
    "JSONFileStorage",
    # Errors
    "VaultError",
    "ValidationError",
    "InvalidKeyFormat",
    "AuthenticationError",
    "AuthorizationError",
    "LastOwnerError",
    "MemberConflictError",
    "RevokedAccessError",
    "CryptoError",
    "NotFoundError",
    "StorageError",
]
