"""Unguessable refresh token values."""

from __future__ import annotations

import secrets
import string
from typing import Final

ALPHABET: Final[str] = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_LENGTH: Final[int] = 23


def generate_refresh_token_value(length: int = DEFAULT_LENGTH, alphabet: str = ALPHABET) -> str:
    """
    Return a random token drawn from ``alphabet`` with a CSPRNG.

    :param length: Number of symbols (23 gives roughly 62**23 values).
    :type length: int
    :param alphabet: Symbols to draw from; 62 alphanumerics by default.
    :type alphabet: str
    :returns: Random token value.
    :rtype: str
    :raises ValueError: If ``length`` is not positive or ``alphabet`` is empty.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    if not alphabet:
        raise ValueError("alphabet must not be empty")
    return "".join(secrets.choice(alphabet) for _ in range(length))
