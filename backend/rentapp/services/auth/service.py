# rentapp/services/auth/service.py
from __future__ import annotations

import logging

from rentapp.services._shared.errors import InvalidCredentialsError, NotFoundError
from rentapp.services._shared.ports import Identity, IdentityProvider
from rentapp.services.auth.dto import (
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from rentapp.services.auth.lifecycle import TokenLifecycleManager

log = logging.getLogger(__name__)


class AuthService:
    """
    Authentication use cases (register / login / refresh / logout).

    Credential checks go through the :class:`IdentityProvider`; every token
    decision is delegated to the :class:`TokenLifecycleManager`.
    """

    def __init__(
        self,
        *,
        identities: IdentityProvider,
        lifecycle: TokenLifecycleManager,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param identities: Identity lookup, verification, and registration.
        :param lifecycle: Token issuance and rotation rules.
        """
        self.identities = identities
        self.lifecycle = lifecycle

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> TokenPairOut:
        """
        Create an identity and sign it in.

        :raises ConflictError: If the email is already registered.
        """
        identity = self.identities.register_identity(
            name=dto.name, email=dto.email, password=dto.password
        )
        log.info("auth.register", extra={"event": "auth.register", "user_id": identity.id})
        return self.lifecycle.issue(identity)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :returns: Access/Refresh token pair.
        :raises InvalidCredentialsError: Unknown email or wrong password.
        """
        identity = self.identities.find_identity_by_email(dto.email)
        if identity is None:
            log.warning(
                "auth.login.rejected",
                extra={"event": "auth.login.rejected", "reason": "unknown_email"},
            )
            raise InvalidCredentialsError()

        if not self.identities.verify_password(identity, dto.password):
            log.warning(
                "auth.login.rejected",
                extra={
                    "event": "auth.login.rejected",
                    "reason": "wrong_password",
                    "user_id": identity.id,
                },
            )
            raise InvalidCredentialsError()

        return self.lifecycle.issue(identity)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """Rotate a token pair; see :meth:`TokenLifecycleManager.rotate`."""
        return self.lifecycle.rotate(dto.token, dto.refresh_token)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        self.lifecycle.revoke(dto.refresh_token)

    # ------------------------------------------------------------------ #
    # Current identity
    # ------------------------------------------------------------------ #

    def current_identity(self, identity_id: str) -> Identity:
        """
        Resolve the identity behind a verified access token.

        :raises NotFoundError: If the identity no longer exists.
        """
        identity = self.identities.find_identity_by_id(identity_id)
        if identity is None:
            raise NotFoundError("User", identity_id)
        return identity
