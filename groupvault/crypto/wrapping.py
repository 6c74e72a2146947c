"""
Asymmetric key wrapping (ECIES over secp256k1).

Seals the shared content secret to one member's public key:
ephemeral ECDH -> HKDF-SHA256 -> AES-256-GCM.

Wire format (hex): [ephemeral public point 65B][nonce 12B][sealed secret + GCM tag 16B]

Security Note:
    Never log secrets or wrapped values.
"""

import os
from typing import Protocol, runtime_checkable

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..exceptions import CryptoError, InvalidKeyFormat
from ..identity.keys import UNCOMPRESSED_LENGTH, decode_hex, private_key_bytes, public_key_bytes

NONCE_SIZE = 12
TAG_SIZE = 16
WRAP_KEY_LENGTH = 32
WRAP_INFO = b"groupvault-key-wrap"


@runtime_checkable
class KeyWrapper(Protocol):
    """Asymmetric seal used to distribute the shared secret."""

    def wrap(self, public_key: str, secret: bytes) -> str:
        """Seal ``secret`` to a public key, returning hex text."""
        ...

    def unwrap(self, private_key: str, wrapped: str) -> bytes:
        """Open a sealed secret with the matching private key."""
        ...


def _derive_wrap_key(shared: bytes, ephemeral_point: bytes) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=WRAP_KEY_LENGTH,
        salt=ephemeral_point,
        info=WRAP_INFO,
    )
    return hkdf.derive(shared)


class EciesKeyWrapper:
    """
    ECIES key wrapper on secp256k1.

    Example:
        ```python
        wrapper = EciesKeyWrapper()
        wrapped = wrapper.wrap(member_public_key, secret)
        assert wrapper.unwrap(member_private_key, wrapped) == secret
        ```
    """

    curve = ec.SECP256K1()

    def wrap(self, public_key: str, secret: bytes) -> str:
        """
        Seal a secret to a public key.

        Raises:
            CryptoError: If the public key cannot be used for key agreement
        """
        try:
            recipient = ec.EllipticCurvePublicKey.from_encoded_point(
                self.curve, public_key_bytes(public_key)
            )
        except (InvalidKeyFormat, ValueError) as e:
            raise CryptoError(f"Cannot wrap key for public key: {e}") from e

        ephemeral = ec.generate_private_key(self.curve)
        ephemeral_point = ephemeral.public_key().public_bytes(
            serialization.Encoding.X962,
            serialization.PublicFormat.UncompressedPoint,
        )
        shared = ephemeral.exchange(ec.ECDH(), recipient)
        key = _derive_wrap_key(shared, ephemeral_point)

        nonce = os.urandom(NONCE_SIZE)
        sealed = AESGCM(key).encrypt(nonce, secret, ephemeral_point)
        return (ephemeral_point + nonce + sealed).hex()

    def unwrap(self, private_key: str, wrapped: str) -> bytes:
        """
        Open a wrapped secret.

        Raises:
            InvalidKeyFormat: If the private key is malformed
            CryptoError: If the wrapped value is corrupt or sealed to another key
        """
        scalar = int.from_bytes(private_key_bytes(private_key), "big")
        try:
            key_obj = ec.derive_private_key(scalar, self.curve)
        except ValueError:
            raise InvalidKeyFormat("private key is not a valid secp256k1 scalar") from None

        try:
            raw = decode_hex(wrapped, "wrapped key")
        except InvalidKeyFormat as e:
            raise CryptoError(str(e)) from e

        _min = UNCOMPRESSED_LENGTH + NONCE_SIZE + TAG_SIZE
        if len(raw) < _min:
            raise CryptoError(f"wrapped key too short: {len(raw)} bytes (minimum {_min})")

        ephemeral_point = raw[:UNCOMPRESSED_LENGTH]
        nonce = raw[UNCOMPRESSED_LENGTH:UNCOMPRESSED_LENGTH + NONCE_SIZE]
        sealed = raw[UNCOMPRESSED_LENGTH + NONCE_SIZE:]

        try:
            ephemeral = ec.EllipticCurvePublicKey.from_encoded_point(self.curve, ephemeral_point)
        except ValueError:
            raise CryptoError("wrapped key carries an invalid ephemeral point") from None

        shared = key_obj.exchange(ec.ECDH(), ephemeral)
        key = _derive_wrap_key(shared, ephemeral_point)

        try:
            return AESGCM(key).decrypt(nonce, sealed, ephemeral_point)
        except InvalidTag:
            raise CryptoError("wrapped key failed authentication") from None
