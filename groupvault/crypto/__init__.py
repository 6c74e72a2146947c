"""
GroupVault crypto module.

Key wrapping, content encryption and group rekeying.
"""

from .content import ContentCipher, EncryptedRecord
from .rotation import KeyRotationEngine
from .wrapping import EciesKeyWrapper, KeyWrapper

__all__ = [
    "ContentCipher",
    "EncryptedRecord",
    "KeyRotationEngine",
    "KeyWrapper",
    "EciesKeyWrapper",
]
