"""
secp256k1 key encodings.

Public keys arrive as hex text in one of three shapes:

- 65 bytes, uncompressed, ``04`` prefix
- 64 bytes, raw ``x || y`` (prefix stripped)
- 33 bytes, compressed, ``02``/``03`` prefix

Everything inside the vault works on the 65-byte uncompressed form.
"""

from coincurve import PublicKey

from ..exceptions import InvalidKeyFormat

UNCOMPRESSED_LENGTH = 65
RAW_LENGTH = 64
COMPRESSED_LENGTH = 33
PRIVATE_KEY_LENGTH = 32


def strip_hex_prefix(value: str) -> str:
    """Drop a leading ``0x`` if present."""
    return value[2:] if value[:2].lower() == "0x" else value


def decode_hex(value: str, what: str = "value") -> bytes:
    """
    Decode hex text, with or without ``0x``.

    Raises:
        InvalidKeyFormat: If the text is not valid hex
    """
    if not isinstance(value, str):
        raise InvalidKeyFormat(f"{what} must be a hex string")
    try:
        return bytes.fromhex(strip_hex_prefix(value.strip()))
    except ValueError:
        raise InvalidKeyFormat(f"{what} is not valid hex") from None


def public_key_bytes(public_key: str) -> bytes:
    """
    Parse a public key into its 65-byte uncompressed encoding.

    The point is checked to lie on the curve.

    Raises:
        InvalidKeyFormat: If the key is not a recognized encoding
    """
    raw = decode_hex(public_key, "public key")

    if len(raw) == RAW_LENGTH:
        raw = b"\x04" + raw
    elif len(raw) not in (UNCOMPRESSED_LENGTH, COMPRESSED_LENGTH):
        raise InvalidKeyFormat(
            f"public key must be 33, 64 or 65 bytes, got {len(raw)}"
        )

    try:
        return PublicKey(raw).format(compressed=False)
    except (ValueError, TypeError):
        raise InvalidKeyFormat("public key is not a valid secp256k1 point") from None


def normalize_public_key(public_key: str) -> str:
    """Return the canonical ``0x04...`` hex form of a public key."""
    return "0x" + public_key_bytes(public_key).hex()


def private_key_bytes(private_key: str) -> bytes:
    """
    Parse a 32-byte private key from hex text.

    Raises:
        InvalidKeyFormat: If the key is not 32 bytes of hex
    """
    raw = decode_hex(private_key, "private key")
    if len(raw) != PRIVATE_KEY_LENGTH:
        raise InvalidKeyFormat(
            f"private key must be {PRIVATE_KEY_LENGTH} bytes, got {len(raw)}"
        )
    return raw
