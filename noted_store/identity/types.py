"""
Identity types.

The authenticated user as seen by the store: a stable email used to
select the user's stream, plus a display name.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class UserIdentity:
    """Identity of the user making a request.

    The email is the stable key for the user's store; it never changes
    for a given account.
    """

    email: str
    user: str = ""

    def __post_init__(self) -> None:
        if not self.email:
            raise ValueError("UserIdentity requires an email")

    @property
    def user_id(self) -> str:
        """Key used to select the user's store."""
        return self.email

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"email": self.email, "user": self.user}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserIdentity":
        """Deserialize from dictionary."""
        return cls(email=data["email"], user=data.get("user", ""))
