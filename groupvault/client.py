"""
Main GroupVault client.

This is the primary interface users interact with: one ``Vault`` object per
shared encrypted vault.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import VaultConfig, load_config
from .crypto import ContentCipher, EncryptedRecord, KeyRotationEngine, KeyWrapper
from .crypto.content import now_ms
from .exceptions import (
    AuthenticationError,
    LastOwnerError,
    MemberConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .identity import IdentityProvider, IdentityResolver, SignatureVerifier
from .members import (
    AddMemberCommand,
    ChangeRoleCommand,
    DeleteVaultCommand,
    MembershipDirectory,
    ReadContentCommand,
    RemoveMemberCommand,
    StoreContentCommand,
    VaultCommand,
    VaultInfo,
    VaultMember,
    count_owners,
    parse_command,
)
from .rbac import Action, AuthorizationGuard, Role
from .storage import StorageAdapter, create_storage

logger = logging.getLogger(__name__)

MemberRef = Union[UUID, str]


class ContentEnvelope(BaseModel):
    """
    What a reader receives: the current content record and the reader's own
    wrapped shared key. The reader unwraps and decrypts outside the vault.
    """

    content: Optional[EncryptedRecord] = None
    wrapped_shared_key: str
    key_generation: Optional[int] = None
    content_generation: Optional[int] = None

    @property
    def is_stale(self) -> bool:
        """True when the content was written under an older generation than the reader's key."""
        return (
            self.content is not None
            and self.content_generation is not None
            and self.content_generation != self.key_generation
        )


def _member_uuid(value: MemberRef, what: str = "member id") -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {what}: {value!r}") from None


class Vault:
    """
    A shared encrypted vault with a signed, role-gated member directory.

    Every membership change rekeys the vault before the call returns. All
    state of one vault (directory, generation, content) is guarded by a single
    ``asyncio.Lock``; separate vaults share nothing.

    Example:
        ```python
        from groupvault import MemberKeys, Vault

        owner = MemberKeys.generate()
        vault = await Vault.create(owner.public_key, "Team secrets")
        owner_id = vault.owners()[0].id

        viewer = MemberKeys.generate()
        payload = {"action": "addMember", "role": "Viewer", "publicKey": viewer.public_key}
        viewer_id = await vault.add_member(owner_id, payload, owner.sign(payload))

        payload = {"action": "storeContent", "content": "hello"}
        await vault.store_content(owner_id, payload, owner.sign(payload), owner.private_key)

        envelope = await vault.read_content(viewer_id)
        assert viewer.open_content(envelope) == "hello"
        ```
    """

    def __init__(
        self,
        *,
        vault_id: UUID,
        name: str,
        description: str,
        namespace: UUID,
        config: VaultConfig,
        storage: StorageAdapter,
        identity: Optional[IdentityProvider] = None,
        key_wrapper: Optional[KeyWrapper] = None,
    ) -> None:
        """
        Initialize Vault.

        Note:
            Use Vault.create() or Vault.open() instead of direct instantiation.
        """
        self.id = vault_id
        self.name = name
        self.description = description
        self.namespace = namespace
        self.config = config
        self.storage = storage

        self.resolver = IdentityResolver(namespace, identity)
        self.verifier = SignatureVerifier(self.resolver.provider)
        self.directory = MembershipDirectory()
        self.guard = AuthorizationGuard(self.directory)
        self.rotation = KeyRotationEngine(key_wrapper, config.shared_key_length)
        self.cipher = ContentCipher()

        self._generation = 0
        self._revision = 0
        self._content: Optional[EncryptedRecord] = None
        self._content_generation: Optional[int] = None
        self._deleted = False
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    async def create(
        cls,
        owner_public_key: str,
        name: str,
        description: str = "",
        *,
        config: Optional[VaultConfig] = None,
        storage: Optional[StorageAdapter] = None,
        identity: Optional[IdentityProvider] = None,
        key_wrapper: Optional[KeyWrapper] = None,
    ) -> "Vault":
        """
        Create a vault with a single Owner and an initial shared key.

        Args:
            owner_public_key: Owner's secp256k1 public key (hex)
            name: Vault name (1-255 characters)
            description: Optional description (up to 255 characters)
            config: Configuration (loaded from environment if omitted)
            storage: Storage adapter (selected from config if omitted)
            identity: Signature scheme (secp256k1 if omitted)
            key_wrapper: Key seal (ECIES if omitted)

        Returns:
            The new vault

        Raises:
            ValidationError: If name or description are invalid
            InvalidKeyFormat: If the owner key is not a recognized encoding
            CryptoError: If the initial key wrap fails

        Example:
            ```python
            vault = await Vault.create(owner.public_key, "Team secrets", "Shared API keys")
            ```
        """
        try:
            info = VaultInfo(name=name, description=description)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid name or description: {e}") from e

        config = config or load_config()
        vault_id = uuid4()
        vault = cls(
            vault_id=vault_id,
            name=info.name,
            description=info.description,
            namespace=config.namespace or uuid4(),
            config=config,
            storage=storage or create_storage(config, vault_id),
            identity=identity,
            key_wrapper=key_wrapper,
        )

        owner = vault._new_member(owner_public_key, Role.OWNER)
        rotated = vault.rotation.rotate({owner.id: owner}, 1)

        await vault._commit_directory(
            rotated,
            generation=1,
            revoked={},
            extra={
                "id": str(vault.id),
                "name": vault.name,
                "description": vault.description,
                "namespace": str(vault.namespace),
                "content": None,
            },
        )

        logger.info("Created vault %s with owner %s", vault.id, owner.id)
        return vault

    @classmethod
    async def open(
        cls,
        vault_id: MemberRef,
        *,
        config: Optional[VaultConfig] = None,
        storage: Optional[StorageAdapter] = None,
        identity: Optional[IdentityProvider] = None,
        key_wrapper: Optional[KeyWrapper] = None,
    ) -> "Vault":
        """
        Load a persisted vault from its storage adapter.

        Raises:
            NotFoundError: If the vault does not exist or was deleted
            StorageError: If the stored state is corrupt
        """
        vault_id = _member_uuid(vault_id, "vault id")
        config = config or load_config()
        storage = storage or create_storage(config, vault_id)

        stored_id = await storage.get("id")
        if stored_id is None:
            raise NotFoundError(f"Vault not found: {vault_id}")
        if stored_id != str(vault_id):
            raise StorageError(f"Storage holds vault {stored_id}, not {vault_id}")

        vault = cls(
            vault_id=vault_id,
            name=await storage.get("name"),
            description=await storage.get("description") or "",
            namespace=UUID(await storage.get("namespace")),
            config=config,
            storage=storage,
            identity=identity,
            key_wrapper=key_wrapper,
        )

        state = await storage.get("directory")
        if not state:
            raise StorageError(f"Vault {vault_id} has no stored directory")
        content = await storage.get("content")
        try:
            loaded = MembershipDirectory.from_dict(state)
            vault.directory.replace(loaded.snapshot(), loaded.revoked_snapshot())
            vault._content = EncryptedRecord.model_validate(content) if content else None
        except (PydanticValidationError, LastOwnerError, ValueError) as e:
            raise StorageError(f"Corrupt state for vault {vault_id}: {e}") from e

        vault._generation = state["generation"]
        vault._revision = state["revision"]
        vault._content_generation = state.get("content_generation")

        logger.info("Opened vault %s at generation %d", vault.id, vault._generation)
        return vault

    async def close(self) -> None:
        """Release the vault handle. Nothing durable happens here."""

    async def __aenter__(self) -> "Vault":
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    async def add_member(
        self,
        requester_id: MemberRef,
        payload: Dict[str, Any],
        signature: str,
    ) -> UUID:
        """
        Add a member and rekey the vault.

        Re-adding a public key that is already a member with the same role
        returns the existing id without rekeying.

        Args:
            requester_id: Owner performing the change
            payload: ``{"action": "addMember", "role": ..., "publicKey": ...}``
            signature: Requester's signature over the canonical payload

        Returns:
            Id of the (new or existing) member

        Raises:
            ValidationError: Malformed payload
            AuthenticationError: Bad signature
            AuthorizationError: Requester is not an Owner
            MemberConflictError: Key is already a member with another role
            CryptoError: Rekey failed; nothing was committed
            NotFoundError: Vault was deleted
        """
        async with self._lock:
            requester, command = self._admit(
                requester_id, AddMemberCommand, payload, signature, Action.ADD_MEMBER
            )

            member = self._new_member(command.public_key, command.role)
            existing = self.directory.get(member.id)
            if existing is not None:
                if existing.role != member.role:
                    raise MemberConflictError(
                        f"Member {member.id} already exists with role {existing.role.value}"
                    )
                logger.info("Member %s already present in vault %s", member.id, self.id)
                return member.id

            staged = self.directory.snapshot()
            staged[member.id] = member
            revoked = self.directory.revoked_snapshot()
            revoked.pop(member.id, None)

            generation = self._generation + 1
            rotated = self.rotation.rotate(staged, generation)
            await self._commit_directory(rotated, generation, revoked)

            logger.info(
                "Member %s added to vault %s as %s by %s",
                member.id,
                self.id,
                member.role.value,
                requester,
            )
            return member.id

    async def remove_member(
        self,
        requester_id: MemberRef,
        payload: Dict[str, Any],
        signature: str,
    ) -> bool:
        """
        Remove a member and rekey the vault.

        Returns:
            True if the member was removed, False if no such member exists

        Raises:
            ValidationError: Malformed payload
            AuthenticationError: Bad signature
            AuthorizationError: Requester is not an Owner
            LastOwnerError: Target is the only Owner
            CryptoError: Rekey failed; nothing was committed
            NotFoundError: Vault was deleted
        """
        async with self._lock:
            requester, command = self._admit(
                requester_id, RemoveMemberCommand, payload, signature, Action.REMOVE_MEMBER
            )

            target = self.directory.get(command.member_id)
            if target is None:
                logger.info("Member %s not found in vault %s", command.member_id, self.id)
                return False

            staged = self.directory.snapshot()
            del staged[target.id]
            if count_owners(staged) == 0:
                raise LastOwnerError("Cannot remove the last Owner of a vault")

            revoked = self.directory.revoked_snapshot()
            revoked[target.id] = target.address

            generation = self._generation + 1
            rotated = self.rotation.rotate(staged, generation)
            await self._commit_directory(rotated, generation, revoked)

            logger.info("Member %s removed from vault %s by %s", target.id, self.id, requester)
            return True

    async def change_role(
        self,
        requester_id: MemberRef,
        payload: Dict[str, Any],
        signature: str,
    ) -> bool:
        """
        Change a member's role in place.

        Does not rekey unless ``config.rotate_on_role_change`` is set.

        Returns:
            True if the member exists, False otherwise

        Raises:
            ValidationError: Malformed payload
            AuthenticationError: Bad signature
            AuthorizationError: Requester is not an Owner
            LastOwnerError: Change would demote the only Owner
            NotFoundError: Vault was deleted
        """
        async with self._lock:
            requester, command = self._admit(
                requester_id, ChangeRoleCommand, payload, signature, Action.CHANGE_ROLE
            )

            target = self.directory.get(command.member_id)
            if target is None:
                logger.info("Member %s not found in vault %s", command.member_id, self.id)
                return False

            staged = self.directory.snapshot()
            staged[target.id] = target.model_copy(update={"role": command.role})
            if count_owners(staged) == 0:
                raise LastOwnerError("Cannot demote the last Owner of a vault")

            generation = self._generation
            if self.config.rotate_on_role_change:
                generation += 1
                staged = self.rotation.rotate(staged, generation)
            await self._commit_directory(staged, generation, self.directory.revoked_snapshot())

            logger.info(
                "Member %s in vault %s changed from %s to %s by %s",
                target.id,
                self.id,
                target.role.value,
                command.role.value,
                requester,
            )
            return True

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def store_content(
        self,
        requester_id: MemberRef,
        payload: Dict[str, Any],
        signature: str,
        private_key: Optional[str] = None,
    ) -> EncryptedRecord:
        """
        Replace the vault content.

        A plaintext ``content`` payload is encrypted here: the requester's
        wrapped key is unwrapped with ``private_key`` for the duration of the
        call only. A sealed payload (``nonce``, ``authTag``, ``ciphertext``)
        is stored as given.

        Returns:
            The stored record

        Raises:
            ValidationError: Malformed payload, or plaintext without a private key
            AuthenticationError: Bad signature
            AuthorizationError: Requester's role cannot store content
            RevokedAccessError: Requester holds no current key
            CryptoError: Private key does not open the requester's wrapped key
            NotFoundError: Vault was deleted
        """
        async with self._lock:
            requester, command = self._admit(
                requester_id, StoreContentCommand, payload, signature, Action.STORE_CONTENT
            )
            member = self.directory.get(requester)

            if command.is_sealed:
                try:
                    record = EncryptedRecord(
                        timestamp=now_ms(),
                        nonce=command.nonce,
                        auth_tag=command.auth_tag,
                        ciphertext=command.ciphertext,
                    )
                except PydanticValidationError as e:
                    raise ValidationError(f"Invalid sealed content: {e}") from e
            else:
                if private_key is None:
                    raise ValidationError("A private key is required to encrypt plaintext content")
                secret = self.rotation.key_wrapper.unwrap(private_key, member.wrapped_shared_key)
                record = self.cipher.encrypt(command.content, secret)

            await self._commit_directory(
                self.directory.snapshot(),
                self._generation,
                self.directory.revoked_snapshot(),
                content=record,
                content_generation=member.key_generation,
            )

            logger.info(
                "Content of vault %s replaced by %s under generation %d",
                self.id,
                requester,
                self._generation,
            )
            return record

    async def read_content(
        self,
        requester_id: MemberRef,
        payload: Optional[Dict[str, Any]] = None,
        signature: Optional[str] = None,
    ) -> ContentEnvelope:
        """
        Return the current content record with the requester's wrapped key.

        Reads are not mutations, so a signed ``{"action": "readContent"}``
        payload is optional; when given it is verified.

        Raises:
            AuthenticationError: A payload was given with a bad signature
            AuthorizationError: Requester is not a member
            RevokedAccessError: Requester was removed or holds no current key
            NotFoundError: Vault was deleted
        """
        async with self._lock:
            if payload is None:
                self._check_active()
                requester = _member_uuid(requester_id)
                self.guard.authorize(requester, Action.READ_CONTENT)
            else:
                requester, _ = self._admit(
                    requester_id,
                    ReadContentCommand,
                    payload,
                    signature,
                    Action.READ_CONTENT,
                    bind=False,
                )

            member = self.directory.get(requester)
            return ContentEnvelope(
                content=self._content,
                wrapped_shared_key=member.wrapped_shared_key,
                key_generation=member.key_generation,
                content_generation=self._content_generation,
            )

    async def decrypt_content(
        self,
        requester_id: MemberRef,
        private_key: str,
        payload: Optional[Dict[str, Any]] = None,
        signature: Optional[str] = None,
    ) -> str:
        """
        Read and decrypt the content on the requester's behalf.

        The private key is used transiently to unwrap the requester's key and
        is never stored.

        Raises:
            NotFoundError: Vault was deleted or holds no content
            CryptoError: Wrong private key, or content written under another generation
        """
        envelope = await self.read_content(requester_id, payload, signature)
        if envelope.content is None:
            raise NotFoundError(f"Vault {self.id} has no content")
        secret = self.rotation.key_wrapper.unwrap(private_key, envelope.wrapped_shared_key)
        return self.cipher.decrypt_text(envelope.content, secret)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_vault(
        self,
        requester_id: MemberRef,
        payload: Dict[str, Any],
        signature: str,
    ) -> None:
        """
        Irreversibly erase the vault. Every later call raises NotFoundError.

        Raises:
            ValidationError: Malformed payload
            AuthenticationError: Bad signature
            AuthorizationError: Requester is not an Owner
            NotFoundError: Vault was already deleted
        """
        async with self._lock:
            requester, _ = self._admit(
                requester_id, DeleteVaultCommand, payload, signature, Action.DELETE_VAULT
            )

            await self.storage.destroy()
            self.directory.clear()
            self._content = None
            self._content_generation = None
            self._deleted = True

            logger.info("Vault %s deleted by %s", self.id, requester)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        """Current rekey generation."""
        self._check_active()
        return self._generation

    @property
    def revision(self) -> int:
        """Counter of committed mutations, for binding commands against replay."""
        self._check_active()
        return self._revision

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    def members(self) -> List[VaultMember]:
        """
        All members of the vault.

        Raises:
            NotFoundError: Vault was deleted
        """
        self._check_active()
        return self.directory.members()

    def get_member(self, member_id: MemberRef) -> Optional[VaultMember]:
        """
        Get a member by id.

        Returns:
            A copy of the member record if present, None otherwise
        """
        self._check_active()
        member = self.directory.get(_member_uuid(member_id))
        return member.model_copy() if member is not None else None

    def get_role(self, member_id: MemberRef) -> Optional[Role]:
        """Role of a member, or None if absent."""
        member = self.get_member(member_id)
        return member.role if member is not None else None

    def get_wrapped_key(self, member_id: MemberRef) -> Optional[str]:
        """A member's current wrapped shared key, or None."""
        member = self.get_member(member_id)
        return member.wrapped_shared_key if member is not None else None

    def owners(self) -> List[VaultMember]:
        """All members holding the Owner role."""
        self._check_active()
        return self.directory.owners()

    def member_id_for(self, public_key: str) -> UUID:
        """Member id a public key has, or would have, in this vault."""
        self._check_active()
        return self.resolver.derive_member_id(public_key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_active(self) -> None:
        if self._deleted:
            raise NotFoundError(f"Vault {self.id} has been deleted")

    def _new_member(self, public_key: str, role: Role) -> VaultMember:
        normalized = self.resolver.normalize(public_key)
        return VaultMember(
            id=self.resolver.derive_member_id(normalized),
            role=role,
            public_key=normalized,
            address=self.resolver.derive_address(normalized),
        )

    def _admit(
        self,
        requester_id: MemberRef,
        model: type,
        payload: Any,
        signature: Optional[str],
        action: Action,
        bind: bool = True,
    ) -> tuple:
        """
        Run the checks shared by every signed command, in order:
        vault active, payload shape, signature (for current and removed
        members), permission, revision binding.

        Returns:
            (requester UUID, parsed command)
        """
        self._check_active()
        command: VaultCommand = parse_command(model, payload)
        if not signature:
            raise ValidationError("A signature is required")

        requester = _member_uuid(requester_id)
        address = self.directory.address_of(requester)
        if address is not None:
            self.verifier.require(address, payload, signature)
        self.guard.authorize(requester, action)

        if bind and self.config.bind_revision:
            if command.revision is None:
                raise ValidationError("Command must carry the vault revision")
            if command.revision != self._revision:
                logger.warning(
                    "Stale revision %d for %s on vault %s (current %d)",
                    command.revision,
                    action.value,
                    self.id,
                    self._revision,
                )
                raise AuthenticationError("Command revision does not match the vault")

        return requester, command

    async def _commit_directory(
        self,
        members: Dict[UUID, VaultMember],
        generation: int,
        revoked: Dict[UUID, str],
        content: Optional[EncryptedRecord] = None,
        content_generation: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Persist a staged directory (and, when given, new content) in a single
        storage write, then publish it. Nothing is published if storage fails.
        """
        if content is None:
            content_generation = self._content_generation

        staged = MembershipDirectory()
        staged.replace(members, revoked)
        state = staged.to_dict()
        state["generation"] = generation
        state["revision"] = self._revision + 1
        state["content_generation"] = content_generation

        values: Dict[str, Any] = dict(extra or {})
        values["directory"] = state
        if content is not None:
            values["content"] = content.to_wire()
        await self.storage.set_many(values)

        self.directory.replace(members, revoked)
        self._generation = generation
        self._revision += 1
        if content is not None:
            self._content = content
            self._content_generation = content_generation
