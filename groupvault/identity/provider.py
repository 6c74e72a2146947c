"""
Identity providers.

An identity provider owns the signature scheme: it turns a public key into a
verifiable address, signs canonical payloads for callers, and recovers the
signer's address from a signature. The vault only talks to the
``IdentityProvider`` protocol, so the curve and hash can be swapped.
"""

from typing import Protocol, runtime_checkable

from coincurve import PrivateKey, PublicKey
from Crypto.Hash import keccak

from ..exceptions import AuthenticationError, InvalidKeyFormat
from .keys import UNCOMPRESSED_LENGTH

SIGNATURE_LENGTH = 65
PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"


@runtime_checkable
class IdentityProvider(Protocol):
    """Signature scheme used to authenticate vault commands."""

    def derive_address(self, public_key: bytes) -> str:
        """Derive the verification address of an uncompressed public key."""
        ...

    def recover_address(self, message: bytes, signature: bytes) -> str:
        """Recover the signer's address from a message and its signature."""
        ...

    def sign(self, private_key: bytes, message: bytes) -> bytes:
        """Sign a message. Used by callers, never by the vault itself."""
        ...


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (the pre-standard SHA-3 variant)."""
    digest = keccak.new(digest_bits=256)
    digest.update(data)
    return digest.digest()


def to_checksum_address(address_bytes: bytes) -> str:
    """
    Format a 20-byte address with the EIP-55 mixed-case checksum.

    Example:
        >>> to_checksum_address(bytes.fromhex("5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"))
        '0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed'
    """
    lower = address_bytes.hex()
    hashed = keccak256(lower.encode("ascii")).hex()
    checksummed = "".join(
        char.upper() if char.isalpha() and int(hashed[i], 16) >= 8 else char
        for i, char in enumerate(lower)
    )
    return "0x" + checksummed


def personal_message_hash(message: bytes) -> bytes:
    """Hash a message the way ``personal_sign`` wallets do (EIP-191)."""
    prefix = PERSONAL_MESSAGE_PREFIX + str(len(message)).encode("ascii")
    return keccak256(prefix + message)


class Secp256k1IdentityProvider:
    """
    Ethereum-compatible identity provider.

    - Address: last 20 bytes of Keccak-256 of the 64-byte public point
    - Signature: recoverable ECDSA over the EIP-191 personal message hash,
      encoded ``r || s || v`` with ``v`` in {27, 28}

    Example:
        ```python
        provider = Secp256k1IdentityProvider()
        signature = provider.sign(private_key, canonical_payload)
        assert provider.recover_address(canonical_payload, signature) == address
        ```
    """

    def derive_address(self, public_key: bytes) -> str:
        if len(public_key) != UNCOMPRESSED_LENGTH or public_key[0] != 0x04:
            raise InvalidKeyFormat("address derivation needs an uncompressed public key")
        point = public_key[1:]
        return to_checksum_address(keccak256(point)[-20:])

    def recover_address(self, message: bytes, signature: bytes) -> str:
        if len(signature) != SIGNATURE_LENGTH:
            raise AuthenticationError(
                f"signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
            )

        v = signature[64]
        if v >= 27:
            v -= 27
        if v not in (0, 1):
            raise AuthenticationError("signature has an invalid recovery id")

        try:
            recovered = PublicKey.from_signature_and_message(
                signature[:64] + bytes([v]),
                personal_message_hash(message),
                hasher=None,
            )
        except (ValueError, TypeError):
            raise AuthenticationError("signature does not recover to a public key") from None

        return self.derive_address(recovered.format(compressed=False))

    def sign(self, private_key: bytes, message: bytes) -> bytes:
        try:
            key = PrivateKey(private_key)
        except (ValueError, TypeError):
            raise InvalidKeyFormat("private key is not a valid secp256k1 scalar") from None

        signature = key.sign_recoverable(personal_message_hash(message), hasher=None)
        return signature[:64] + bytes([signature[64] + 27])
