from rentapp.models.refresh_token import RefreshToken
from rentapp.models.user import User

__all__ = [
    "RefreshToken",
    "User",
]
