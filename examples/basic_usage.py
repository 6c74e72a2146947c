"""
Basic GroupVault usage example.

This example walks through the core features of GroupVault:
- Creating a vault and adding members (each change rekeys the vault)
- Storing and reading encrypted content
- Revoking a member and changing roles

Run with:
    python examples/basic_usage.py
"""

import asyncio

from groupvault import (
    AuthorizationError,
    MemberKeys,
    RevokedAccessError,
    Vault,
    apply_membership_change,
)


async def main():
    owner = MemberKeys.generate()
    alice = MemberKeys.generate()
    bob = MemberKeys.generate()

    # =================================================================
    # 1. Create Vault
    # =================================================================
    print("Creating vault...")

    async with await Vault.create(owner.public_key, "Team secrets", "Shared API keys") as vault:
        owner_id = vault.owners()[0].id
        print(f"  Created vault: {vault.name} (ID: {vault.id})")
        print(f"  Owner: {owner.address}")

        # =================================================================
        # 2. Add Members
        # =================================================================
        print("\nAdding members...")

        payload = {"action": "addMember", "role": "Contributor", "publicKey": alice.public_key}
        alice_id = await vault.add_member(owner_id, payload, owner.sign(payload))
        print(f"  Added {alice.address} as Contributor (generation {vault.generation})")

        payload = {"action": "addMember", "role": "Viewer", "publicKey": bob.public_key}
        bob_id = await vault.add_member(owner_id, payload, owner.sign(payload))
        print(f"  Added {bob.address} as Viewer (generation {vault.generation})")

        # =================================================================
        # 3. Store and Read Content
        # =================================================================
        print("\nStoring content...")

        # Sealed client-side: the vault never sees the plaintext
        payload = alice.seal_content("db password: hunter2", vault.get_wrapped_key(alice_id))
        await vault.store_content(alice_id, payload, alice.sign(payload))
        print(f"  {alice.address} stored content")

        envelope = await vault.read_content(bob_id)
        print(f"  {bob.address} reads: {bob.open_content(envelope)}")

        # =================================================================
        # 4. Remove a Member (and carry the content over)
        # =================================================================
        print("\nRemoving Viewer...")

        payload = {"action": "removeMember", "memberId": str(bob_id)}
        await apply_membership_change(vault, owner_id, owner, payload)
        print(f"  Removed {bob.address} (generation {vault.generation})")

        try:
            await vault.read_content(bob_id)
        except RevokedAccessError as e:
            print(f"  {bob.address} is locked out: {e}")

        text = await vault.decrypt_content(alice_id, alice.private_key)
        print(f"  {alice.address} still reads: {text}")

        # =================================================================
        # 5. Change a Role
        # =================================================================
        print("\nDemoting Contributor...")

        payload = {"action": "changeRole", "memberId": str(alice_id), "role": "Viewer"}
        await vault.change_role(owner_id, payload, owner.sign(payload))

        payload = {"action": "storeContent", "content": "overwrite"}
        try:
            await vault.store_content(alice_id, payload, alice.sign(payload), alice.private_key)
        except AuthorizationError as e:
            print(f"  {alice.address} can no longer write: {e}")

        # =================================================================
        # 6. Delete the Vault
        # =================================================================
        print("\nDeleting vault...")

        payload = {"action": "deleteVault"}
        await vault.delete_vault(owner_id, payload, owner.sign(payload))
        print(f"  Deleted: {vault.is_deleted}")

    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
