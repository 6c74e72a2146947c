"""
Signature verification for vault commands.
"""

import logging
from typing import Any, Dict, Optional

from ..exceptions import AuthenticationError, InvalidKeyFormat
from .canonical import canonicalize
from .keys import decode_hex
from .provider import IdentityProvider, Secp256k1IdentityProvider

logger = logging.getLogger(__name__)


class SignatureVerifier:
    """
    Checks that a command payload was signed by the claimed address.

    The payload is re-encoded with ``canonicalize`` before recovery, so the
    signer must have signed exactly those bytes. Holds no mutable state.
    """

    def __init__(self, provider: Optional[IdentityProvider] = None) -> None:
        self.provider = provider or Secp256k1IdentityProvider()

    def verify(self, claimed_address: str, payload: Dict[str, Any], signature: str) -> bool:
        """
        Check a signature against the claimed address.

        Args:
            claimed_address: Address registered for the requester
            payload: Command payload exactly as signed
            signature: Hex-encoded signature

        Returns:
            True if the signature recovers to ``claimed_address``, False otherwise
        """
        try:
            message = canonicalize(payload)
            raw_signature = decode_hex(signature, "signature")
            recovered = self.provider.recover_address(message, raw_signature)
        except (AuthenticationError, InvalidKeyFormat, ValueError):
            return False

        return recovered.lower() == claimed_address.lower()

    def require(self, claimed_address: str, payload: Dict[str, Any], signature: str) -> None:
        """
        Like ``verify`` but raise on failure.

        Raises:
            AuthenticationError: If the signature does not match
        """
        if not self.verify(claimed_address, payload, signature):
            logger.warning(
                "Signature rejected for %s on action %s",
                claimed_address,
                payload.get("action"),
            )
            raise AuthenticationError("Signature does not match the requester's address")
