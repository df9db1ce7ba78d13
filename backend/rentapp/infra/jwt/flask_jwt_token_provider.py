# rentapp/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import uuid4

import jwt
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTDecodeError

from rentapp.services._shared.errors import MalformedTokenError, SignatureError
from rentapp.services._shared.ports import (
    AccessTokenCodec,
    IssuedAccessToken,
    SigningKeyProvider,
)
from rentapp.services._shared.ports.token_provider import strip_reserved

REQUIRED_CLAIMS = ("sub", "jti", "exp")


class FlaskJWTAccessTokenCodec(AccessTokenCodec):
    """
    Access token codec on top of Flask-JWT-Extended (PyJWT underneath).

    The key comes from the :class:`SigningKeyProvider` through the
    ``encode_key_loader``/``decode_key_loader`` callbacks registered in
    :mod:`rentapp.core.extensions`.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def __init__(self, keys: SigningKeyProvider) -> None:
        self.keys = keys

    def issue(
        self,
        *,
        subject: str,
        claims: Mapping[str, Any] | None = None,
        ttl: timedelta,
    ) -> IssuedAccessToken:
        jti = str(uuid4())
        extra = strip_reserved(claims)
        extra["jti"] = jti

        token = cast(
            str,
            create_access_token(
                identity=str(subject),
                additional_claims=extra,
                expires_delta=ttl,
                fresh=False,
            ),
        )

        # Safety assertion: the library must not overwrite our jti, and iat/exp
        # are read back from what was actually signed.
        payload = cast(dict[str, Any], decode_token(token, allow_expired=True))
        if payload.get("jti") != jti:
            raise RuntimeError("Access token jti mismatch after creation.")

        return IssuedAccessToken(
            token=token,
            jti=jti,
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
        )

    def verify(self, token: str) -> dict[str, Any]:
        """
        Verify signature and algorithm; an expired ``exp`` is accepted.

        :raises MalformedTokenError: Not a compact JWS or missing claims.
        :raises SignatureError: Bad signature, unexpected or ``none`` algorithm.
        """
        if not isinstance(token, str) or token.count(".") != 2:
            raise MalformedTokenError("Token is not a compact JWS.")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.DecodeError as exc:
            raise MalformedTokenError("Token header cannot be decoded.") from exc

        expected = self.keys.current_key().algorithm
        if header.get("alg") != expected:
            raise SignatureError("Unexpected signing algorithm.")

        try:
            payload = cast(dict[str, Any], decode_token(token, allow_expired=True))
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            raise SignatureError("Token signature rejected.") from exc
        except (jwt.DecodeError, JWTDecodeError) as exc:
            raise MalformedTokenError("Token cannot be decoded.") from exc
        except jwt.InvalidTokenError as exc:
            raise SignatureError("Token rejected by verifier.") from exc

        missing = [claim for claim in REQUIRED_CLAIMS if payload.get(claim) in (None, "")]
        if missing:
            raise MalformedTokenError(f"Token is missing claims: {', '.join(missing)}")
        return payload
