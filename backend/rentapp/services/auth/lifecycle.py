"""
Token lifecycle: issuance and single-use rotation of access/refresh pairs.

A refresh token is ``ACTIVE`` until it is redeemed, revoked, or expires; the
three terminal states are absorbing and only ``ACTIVE`` permits rotation.
Expiry is evaluated lazily here, never by a background sweep.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from rentapp.services._shared.errors import (
    ConflictError,
    ExpiredTokenError,
    InvalidTokenError,
    MalformedTokenError,
    SignatureError,
)
from rentapp.services._shared.ports import (
    AccessTokenCodec,
    Identity,
    IdentityProvider,
    RefreshTokenRecord,
    RefreshTokenStore,
)
from rentapp.services.auth.dto import AuthTokenConfig, TokenPairOut
from rentapp.services.auth.random_tokens import generate_refresh_token_value

log = logging.getLogger(__name__)

# One regeneration after a value collision, then the conflict propagates.
MAX_CREATE_ATTEMPTS = 2


class TokenLifecycleManager:
    """
    Own the business rules of token issuance and rotation.

    :param codec: Access token signer/verifier.
    :param store: Durable refresh token store (single source of truth).
    :param identities: Identity collaborator used to resolve token owners.
    :param cfg: Lifetimes and refresh value length.
    :param generate_value: Refresh value generator (CSPRNG by default).
    :param clock: Returns the current aware UTC instant.
    """

    def __init__(
        self,
        *,
        codec: AccessTokenCodec,
        store: RefreshTokenStore,
        identities: IdentityProvider,
        cfg: AuthTokenConfig | None = None,
        generate_value: Callable[[int], str] = generate_refresh_token_value,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.codec = codec
        self.store = store
        self.identities = identities
        self.cfg = cfg or AuthTokenConfig()
        self._generate_value = generate_value
        self._clock = clock or (lambda: datetime.now(UTC))

    def now_utc(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(self, identity: Identity) -> TokenPairOut:
        """
        Mint a fresh access token and its paired refresh token.

        This is the only path that creates refresh token records.

        :param identity: Verified identity.
        :returns: Token pair.
        :raises ConflictError: If the refresh value collides twice in a row.
        :raises StoreUnavailableError: If the store fails.
        """
        access = self.codec.issue(
            subject=identity.id,
            claims={"email": identity.email},
            ttl=self.cfg.access_expires,
        )
        record = self._persist_refresh(identity, jwt_id=access.jti)
        log.info(
            "auth.tokens.issued",
            extra={"event": "auth.tokens.issued", "user_id": identity.id, "jti": access.jti},
        )
        return TokenPairOut(
            token=access.token,
            refresh_token=record.token_value,
            expires_at=access.expires_at,
            refresh_expires_at=record.expires_at,
        )

    def _persist_refresh(self, identity: Identity, *, jwt_id: str) -> RefreshTokenRecord:
        issued_at = self.now_utc()
        for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
            candidate = RefreshTokenRecord(
                jwt_id=jwt_id,
                token_value=self._generate_value(self.cfg.refresh_token_length),
                user_id=identity.id,
                issued_at=issued_at,
                expires_at=issued_at + self.cfg.refresh_expires,
            )
            try:
                return self.store.create(candidate)
            except ConflictError:
                if attempt == MAX_CREATE_ATTEMPTS:
                    log.error(
                        "auth.refresh.create_conflict",
                        extra={"event": "auth.refresh.create_conflict", "jti": jwt_id},
                    )
                    raise
                log.warning(
                    "auth.refresh.value_collision",
                    extra={"event": "auth.refresh.value_collision", "jti": jwt_id},
                )
        raise AssertionError("unreachable")  # pragma: no cover

    # ------------------------------------------------------------------ #
    # Rotate
    # ------------------------------------------------------------------ #

    def rotate(self, access_token: str, refresh_token: str) -> TokenPairOut:
        """
        Redeem a token pair and issue its replacement.

        The access token may be expired; only its signature and its binding to
        the refresh token matter.

        :raises InvalidTokenError: Bad signature, unknown/used/revoked refresh
            token, pairing mismatch, lost redemption race, or vanished owner.
        :raises ExpiredTokenError: The refresh token is past ``expires_at``.
        :raises StoreUnavailableError: If the store fails.
        """
        try:
            claims = self.codec.verify(access_token)
        except (MalformedTokenError, SignatureError) as exc:
            raise self._rejected("access_token_unverified", detail=type(exc).__name__) from exc

        jti = claims.get("jti")
        if not jti:
            raise self._rejected("access_token_without_jti")

        now = self.now_utc()
        exp = claims.get("exp")
        # Advisory only: rotation is allowed before and after access expiry.
        if exp is not None and float(exp) > now.timestamp():
            log.debug(
                "auth.refresh.access_not_expired",
                extra={"event": "auth.refresh.access_not_expired", "jti": jti},
            )

        record = self.store.find_by_value(refresh_token)
        if record is None:
            raise self._rejected("refresh_token_unknown", jti=jti)
        if record.is_used:
            raise self._rejected("refresh_token_used", jti=jti, user_id=record.user_id)
        if record.is_revoked:
            raise self._rejected("refresh_token_revoked", jti=jti, user_id=record.user_id)
        if record.jwt_id != jti:
            raise self._rejected("jti_mismatch", jti=jti, user_id=record.user_id)
        if record.expires_at < now:
            log.warning(
                "auth.refresh.rejected",
                extra={
                    "event": "auth.refresh.rejected",
                    "reason": "refresh_token_expired",
                    "jti": jti,
                    "user_id": record.user_id,
                },
            )
            raise ExpiredTokenError("Expired tokens")

        # Consume before issuing: a concurrent redemption loses here.
        if not self.store.mark_used_if_active(record.id):
            raise self._rejected("redemption_race_lost", jti=jti, user_id=record.user_id)

        identity = self.identities.find_identity_by_id(record.user_id)
        if identity is None:
            raise self._rejected("identity_missing", jti=jti, user_id=record.user_id)

        pair = self.issue(identity)
        log.info(
            "auth.refresh.rotated",
            extra={"event": "auth.refresh.rotated", "jti": jti, "user_id": identity.id},
        )
        return pair

    # ------------------------------------------------------------------ #
    # Revoke
    # ------------------------------------------------------------------ #

    def revoke(self, refresh_token: str) -> bool:
        """
        Explicitly revoke a refresh token.

        Unknown values are ignored so logout stays idempotent.

        :returns: ``True`` if a record was found (and is now revoked).
        """
        record = self.store.find_by_value(refresh_token)
        if record is None:
            log.info(
                "auth.refresh.revoke_unknown",
                extra={"event": "auth.refresh.revoke_unknown"},
            )
            return False
        if not record.is_revoked:
            self.store.revoke(record.id)
        log.info(
            "auth.refresh.revoked",
            extra={
                "event": "auth.refresh.revoked",
                "user_id": record.user_id,
                "jti": record.jwt_id,
            },
        )
        return True

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _rejected(reason: str, **fields: str) -> InvalidTokenError:
        """Log which check failed and return the uniform client-facing error."""
        log.warning(
            "auth.refresh.rejected",
            extra={"event": "auth.refresh.rejected", "reason": reason, **fields},
        )
        return InvalidTokenError("Invalid tokens")
