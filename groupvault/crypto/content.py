"""
Content encryption for GroupVault.

AES-GCM over the vault's single content slot, keyed by the shared secret of
the generation active at write time.

Security Note:
    Never log plaintext, ciphertext or key values.
"""

import os
import time
from typing import Any, Dict, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import CryptoError

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
HEX_PATTERN = r"^[0-9a-fA-F]*$"


def now_ms() -> int:
    """Milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class EncryptedRecord(BaseModel):
    """
    The vault's content slot as persisted.

    Wire format:
        {"timestamp": <ms since epoch>, "nonce": <hex>, "authTag": <hex>, "ciphertext": <hex>}
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timestamp: int = Field(..., ge=0)
    nonce: str = Field(..., min_length=2, pattern=HEX_PATTERN)
    auth_tag: str = Field(..., alias="authTag", pattern=HEX_PATTERN)
    ciphertext: str = Field(..., pattern=HEX_PATTERN)

    @field_validator("nonce", "auth_tag", "ciphertext", mode="before")
    @classmethod
    def strip_prefix(cls, v: Any) -> Any:
        if isinstance(v, str) and v[:2].lower() == "0x":
            return v[2:]
        return v

    @field_validator("nonce", "ciphertext")
    @classmethod
    def check_even_length(cls, v: str) -> str:
        if len(v) % 2:
            raise ValueError("hex value must have an even number of digits")
        return v.lower()

    @field_validator("auth_tag")
    @classmethod
    def check_tag_length(cls, v: str) -> str:
        if len(v) != TAG_SIZE * 2:
            raise ValueError(f"authTag must be {TAG_SIZE} bytes")
        return v.lower()

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True)


class ContentCipher:
    """
    Authenticated encryption of vault content.

    Example:
        ```python
        cipher = ContentCipher()
        record = cipher.encrypt("hello", shared_secret)
        assert cipher.decrypt_text(record, shared_secret) == "hello"
        ```
    """

    def encrypt(self, plaintext: Union[str, bytes], secret: bytes) -> EncryptedRecord:
        """
        Encrypt content under a shared secret with a fresh random nonce.

        Raises:
            CryptoError: If the secret is not a valid AES key
        """
        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")

        try:
            cipher = AESGCM(secret)
        except ValueError as e:
            raise CryptoError(f"Invalid shared secret: {e}") from e

        nonce = os.urandom(NONCE_SIZE)
        sealed = cipher.encrypt(nonce, plaintext, None)
        return EncryptedRecord(
            timestamp=now_ms(),
            nonce=nonce.hex(),
            auth_tag=sealed[-TAG_SIZE:].hex(),
            ciphertext=sealed[:-TAG_SIZE].hex(),
        )

    def decrypt(self, record: EncryptedRecord, secret: bytes) -> bytes:
        """
        Verify and decrypt a record. No plaintext is released unless the tag verifies.

        Raises:
            CryptoError: On a wrong key or any tampering with nonce, tag or ciphertext
        """
        try:
            cipher = AESGCM(secret)
            nonce = bytes.fromhex(record.nonce)
            sealed = bytes.fromhex(record.ciphertext) + bytes.fromhex(record.auth_tag)
            return cipher.decrypt(nonce, sealed, None)
        except InvalidTag:
            raise CryptoError("Content failed authentication") from None
        except ValueError as e:
            raise CryptoError(f"Content cannot be decrypted: {e}") from e

    def decrypt_text(self, record: EncryptedRecord, secret: bytes) -> str:
        """Decrypt a record holding UTF-8 text."""
        plaintext = self.decrypt(record, secret)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise CryptoError("Content is not UTF-8 text") from None
