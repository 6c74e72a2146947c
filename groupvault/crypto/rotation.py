"""
Group rekeying for GroupVault.

Generates a fresh shared content secret and wraps it for every member.
A rotation either produces a complete new generation or nothing at all.

Security Note:
    The plaintext secret only lives for the duration of ``rotate``.
    Never log it or the wrapped values.
"""

import logging
import secrets
from typing import Dict, Optional
from uuid import UUID

from ..exceptions import CryptoError
from ..members.models import VaultMember
from .wrapping import EciesKeyWrapper, KeyWrapper

logger = logging.getLogger(__name__)

DEFAULT_SECRET_LENGTH = 32


class KeyRotationEngine:
    """
    Rekeys a staged member map.

    ``rotate`` never touches its input: it returns new member records carrying
    the new wrapped keys, so the caller can publish them together with the
    membership change, or drop them if anything fails.

    Example:
        ```python
        engine = KeyRotationEngine()
        staged = directory.snapshot()
        staged[new_member.id] = new_member
        rotated = engine.rotate(staged, generation=4)
        directory.replace(rotated)
        ```
    """

    def __init__(
        self,
        key_wrapper: Optional[KeyWrapper] = None,
        secret_length: int = DEFAULT_SECRET_LENGTH,
    ) -> None:
        """
        Initialize KeyRotationEngine.

        Args:
            key_wrapper: Asymmetric seal for distributing the secret (ECIES by default)
            secret_length: Bytes in each generated shared secret
        """
        self.key_wrapper = key_wrapper or EciesKeyWrapper()
        self.secret_length = secret_length

    def generate_secret(self) -> bytes:
        """Fresh uniformly random shared secret from the OS CSPRNG."""
        return secrets.token_bytes(self.secret_length)

    def rotate(
        self,
        members: Dict[UUID, VaultMember],
        generation: int,
    ) -> Dict[UUID, VaultMember]:
        """
        Wrap a new shared secret for every member.

        Args:
            members: Staged member map (left unmodified)
            generation: Generation number the new keys belong to

        Returns:
            New member map where every member holds a key of ``generation``

        Raises:
            CryptoError: If wrapping fails for any member; nothing is returned
        """
        secret = self.generate_secret()
        rotated: Dict[UUID, VaultMember] = {}

        for member_id, member in members.items():
            try:
                wrapped = self.key_wrapper.wrap(member.public_key, secret)
            except CryptoError:
                logger.error(
                    "Rotation to generation %d aborted: wrap failed for member %s",
                    generation,
                    member_id,
                )
                raise
            except (ValueError, TypeError) as e:
                logger.error(
                    "Rotation to generation %d aborted: wrap failed for member %s",
                    generation,
                    member_id,
                )
                raise CryptoError(f"Key wrap failed for member {member_id}: {e}") from e

            rotated[member_id] = member.model_copy(
                update={"wrapped_shared_key": wrapped, "key_generation": generation}
            )

        logger.info("Rotated shared key to generation %d for %d member(s)", generation, len(rotated))
        return rotated
