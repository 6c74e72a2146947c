"""
GroupVault identity module.

Handles public key parsing, member id and address derivation, canonical
command encoding, and signature verification.
"""

from .canonical import canonicalize, canonicalize_str
from .keys import normalize_public_key, private_key_bytes, public_key_bytes
from .provider import (
    IdentityProvider,
    Secp256k1IdentityProvider,
    keccak256,
    to_checksum_address,
)
from .resolver import IdentityResolver
from .verifier import SignatureVerifier

__all__ = [
    # Resolution and verification
    "IdentityResolver",
    "SignatureVerifier",
    # Providers
    "IdentityProvider",
    "Secp256k1IdentityProvider",
    # Encoding helpers
    "canonicalize",
    "canonicalize_str",
    "normalize_public_key",
    "public_key_bytes",
    "private_key_bytes",
    "keccak256",
    "to_checksum_address",
]
