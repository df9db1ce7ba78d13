"""
IdentityService
===============

SQLAlchemy-backed :class:`~rentapp.services._shared.ports.IdentityProvider`:

- Lookup of users by email or id, exposed as :class:`Identity` values.
- Password verification against the werkzeug hash stored on :class:`User`.
- Registration with email uniqueness.

No token is ever issued here.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from rentapp.models.user import User
from rentapp.repositories.user import UserRepository
from rentapp.services._shared.base import BaseService
from rentapp.services._shared.errors import ConflictError, violates
from rentapp.services._shared.ports import Identity, IdentityProvider


def _to_identity(user: User) -> Identity:
    return Identity(id=str(user.id), email=user.email, name=user.name)


class IdentityService(BaseService, IdentityProvider):
    """
    Application service for the `User` aggregate.

    Responsibilities
    ----------------
    - Register users ensuring email uniqueness.
    - Resolve identities by email or id.
    - Verify credentials.
    """

    # --------------------------------------------------------------------- #
    # Lookup
    # --------------------------------------------------------------------- #

    def find_identity_by_email(self, email: str) -> Identity | None:
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get_by_email(email)
            return _to_identity(user) if user is not None else None

    def find_identity_by_id(self, identity_id: str) -> Identity | None:
        """
        Resolve an identity from the ``sub`` of a token.

        :param identity_id: Stringified primary key.
        :type identity_id: str
        :returns: Identity or ``None`` when missing or not numeric.
        :rtype: Identity | None
        """
        key = str(identity_id)
        if not key.isdigit():
            return None
        with self.ro_uow() as uow:
            user = uow.users.get(int(key))
            return _to_identity(user) if user is not None else None

    # --------------------------------------------------------------------- #
    # Authentication
    # --------------------------------------------------------------------- #

    def verify_password(self, identity: Identity, plaintext: str) -> bool:
        with self.ro_uow() as uow:
            user = uow.users.get(int(identity.id))
            return bool(user is not None and user.verify_password(plaintext))

    # --------------------------------------------------------------------- #
    # Registration
    # --------------------------------------------------------------------- #

    def register_identity(self, *, name: str, email: str, password: str) -> Identity:
        """
        Register a new user.

        :param name: Display name.
        :param email: Login email (normalized by the model).
        :param password: Raw password (hashed by the model setter).
        :returns: The new identity.
        :rtype: Identity
        :raises ConflictError: When the email is already registered.
        """
        with self.rw_uow() as uow:
            repo: UserRepository = uow.users

            if repo.exists_by_email(email):
                raise ConflictError("User", "email already in use")

            try:
                user = repo.create(name=name, email=email, password=password)
            except IntegrityError as exc:
                # Concurrent registration with the same email.
                if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                    raise ConflictError("User", "email already in use") from exc
                raise

            return _to_identity(user)
