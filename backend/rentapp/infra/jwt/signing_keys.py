# rentapp/infra/jwt/signing_keys.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rentapp.services._shared.ports import SigningKey, SigningKeyProvider

SUPPORTED_ALGORITHMS = frozenset({"HS256", "HS384", "HS512"})


class ConfigSigningKeyProvider(SigningKeyProvider):
    """
    Signing key read from the Flask config.

    ``JWT_SECRET_KEY`` and ``JWT_ALGORITHM`` are read on every call, so a
    config reload takes effect without rebuilding the provider.

    :param config: Flask ``app.config`` (or any mapping).
    """

    def __init__(self, config: Mapping[str, Any]) -> None:
        self._config = config

    def current_key(self) -> SigningKey:
        """
        :raises RuntimeError: If the secret is empty or the algorithm unsupported.
        """
        secret = self._config.get("JWT_SECRET_KEY")
        algorithm = str(self._config.get("JWT_ALGORITHM", "HS256"))
        if not secret:
            raise RuntimeError("JWT_SECRET_KEY is not configured.")
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise RuntimeError(f"Unsupported JWT_ALGORITHM {algorithm!r}.")
        return SigningKey(secret=str(secret), algorithm=algorithm)
