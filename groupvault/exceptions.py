"""
GroupVault exceptions.

Every failure raised by a vault operation is a ``VaultError``. All of them are
fail-closed: when one is raised, no state has been committed.
"""


class VaultError(Exception):
    """Base class for all GroupVault errors."""


class ValidationError(VaultError, ValueError):
    """Malformed command payload or construction argument."""


class InvalidKeyFormat(ValidationError):
    """Key is not a recognized secp256k1 encoding."""


class AuthenticationError(VaultError):
    """Signature does not recover to the requester's address."""


class AuthorizationError(VaultError):
    """Requester is unknown or their role lacks the permission."""


class LastOwnerError(AuthorizationError):
    """The mutation would leave the vault without an Owner."""


class RevokedAccessError(AuthorizationError):
    """Requester is known and authenticated but holds no current wrapped key."""


class CryptoError(VaultError):
    """Key wrapping, unwrapping or authenticated decryption failed."""


class NotFoundError(VaultError, LookupError):
    """Vault was deleted, or a required record is absent."""


class StorageError(VaultError):
    """The storage adapter could not read or write vault state."""


class MemberConflictError(VaultError):
    """The public key is already a member of the vault with a different role."""
