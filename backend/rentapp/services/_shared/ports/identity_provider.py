from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from rentapp.services._shared.errors import ConflictError


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Verified identity passed explicitly between the HTTP layer and services.

    :ivar id: Stable identifier of the account (stringified primary key).
    :ivar email: Login email (normalized).
    :ivar name: Display name, when known.
    """

    id: str
    email: str
    name: str | None = None


class IdentityProvider(Protocol):
    """
    Port to the collaborator owning identity records and credentials.

    Password hashing and identity persistence live behind this interface.
    """

    def find_identity_by_email(self, email: str) -> Identity | None: ...

    def find_identity_by_id(self, identity_id: str) -> Identity | None: ...

    def verify_password(self, identity: Identity, plaintext: str) -> bool: ...

    def register_identity(self, *, name: str, email: str, password: str) -> Identity:
        """
        Create a new identity.

        :raises ConflictError: When the email is already registered.
        """


class InMemoryIdentityProvider(IdentityProvider):
    """Dictionary-backed identities for unit tests (plaintext passwords)."""

    def __init__(self) -> None:
        self._by_id: dict[str, Identity] = {}
        self._passwords: dict[str, str] = {}
        self._seq = 0

    def add(self, identity: Identity, password: str = "Passw0rd!") -> Identity:
        self._by_id[identity.id] = identity
        self._passwords[identity.id] = password
        return identity

    def remove(self, identity_id: str) -> None:
        self._by_id.pop(identity_id, None)
        self._passwords.pop(identity_id, None)

    def find_identity_by_email(self, email: str) -> Identity | None:
        needle = email.strip().lower()
        return next((i for i in self._by_id.values() if i.email == needle), None)

    def find_identity_by_id(self, identity_id: str) -> Identity | None:
        return self._by_id.get(str(identity_id))

    def verify_password(self, identity: Identity, plaintext: str) -> bool:
        return self._passwords.get(identity.id) == plaintext

    def register_identity(self, *, name: str, email: str, password: str) -> Identity:
        if self.find_identity_by_email(email) is not None:
            raise ConflictError("User", "email already in use")
        self._seq += 1
        identity = Identity(id=f"id-{self._seq}", email=email.strip().lower(), name=name)
        return self.add(identity, password)
