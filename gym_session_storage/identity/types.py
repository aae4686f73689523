"""
Identity types.

The sync layer only needs to know which account is signed in; the
authentication flow itself (email/password, OAuth, ...) lives outside.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


@dataclass
class UserIdentity:
    """The signed-in account.

    ``user_id`` is the account identity that scopes the remote row.
    """

    user_id: str
    email: str | None = None
    display_name: str | None = None

    auth_token: str | None = None
    token_expiry: datetime | None = None

    def is_authenticated(self) -> bool:
        """Check if the identity can be used for remote operations.

        Identities without a token come from local config and are
        trusted as-is. Token-based identities check expiry.
        """
        if not self.user_id:
            return False
        if self.auth_token is None or self.token_expiry is None:
            return True
        return datetime.now(UTC) < self.token_expiry

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "display_name": self.display_name,
            "token_expiry": self.token_expiry.isoformat() if self.token_expiry else None,
            # Note: auth_token intentionally excluded for security
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserIdentity":
        token_expiry = None
        if data.get("token_expiry"):
            token_expiry = datetime.fromisoformat(data["token_expiry"])
        return cls(
            user_id=data["user_id"],
            email=data.get("email"),
            display_name=data.get("display_name"),
            auth_token=data.get("auth_token"),
            token_expiry=token_expiry,
        )
