"""
Pytest configuration and fixtures for GroupVault tests.

Provides member key pairs, an in-memory configuration and ready-made vaults.
"""

from types import SimpleNamespace
from typing import Any, Callable, Dict, Tuple
from uuid import UUID

import pytest

from groupvault.client import Vault
from groupvault.config import VaultConfig
from groupvault.members import build_payload
from groupvault.signer import MemberKeys

NAMESPACE = UUID("6ba7b811-9dad-11d1-80b4-00c04fd430c8")


@pytest.fixture
def owner_keys():
    """Key pair of the vault owner."""
    return MemberKeys.generate()


@pytest.fixture
def contributor_keys():
    """Key pair of a future Contributor."""
    return MemberKeys.generate()


@pytest.fixture
def viewer_keys():
    """Key pair of a future Viewer."""
    return MemberKeys.generate()


@pytest.fixture
def outsider_keys():
    """Key pair that never joins the vault."""
    return MemberKeys.generate()


@pytest.fixture
def vault_config():
    """Create a test VaultConfig backed by memory."""
    return VaultConfig(storage_backend="memory", namespace=NAMESPACE)


@pytest.fixture
def sign() -> Callable[..., Tuple[Dict[str, Any], str]]:
    """
    Build and sign a command payload.

    Usage: ``payload, signature = sign(keys, "removeMember", memberId=str(member_id))``
    """

    def _sign(keys: MemberKeys, action: str, **fields: Any) -> Tuple[Dict[str, Any], str]:
        payload = build_payload(action, **fields)
        return payload, keys.sign(payload)

    return _sign


@pytest.fixture
async def vault(owner_keys, vault_config):
    """A vault with a single Owner."""
    return await Vault.create(owner_keys.public_key, "Team secrets", config=vault_config)


@pytest.fixture
async def team(vault, owner_keys, contributor_keys, viewer_keys, sign):
    """
    A vault with an Owner, a Contributor and a Viewer.

    Attributes: vault, owner_id, contributor_id, viewer_id
    """
    owner_id = vault.owners()[0].id

    payload, signature = sign(
        owner_keys, "addMember", role="Contributor", publicKey=contributor_keys.public_key
    )
    contributor_id = await vault.add_member(owner_id, payload, signature)

    payload, signature = sign(owner_keys, "addMember", role="Viewer", publicKey=viewer_keys.public_key)
    viewer_id = await vault.add_member(owner_id, payload, signature)

    return SimpleNamespace(
        vault=vault,
        owner_id=owner_id,
        contributor_id=contributor_id,
        viewer_id=viewer_id,
    )
