"""
Identity providers.

Authentication itself (OAuth, cookies) happens outside the store. A
provider only answers "who is making this request?".
"""

from abc import ABC, abstractmethod

from aiohttp import web

from ..exceptions import AuthenticationRequiredError
from .types import UserIdentity


class IdentityProvider(ABC):
    """Abstract identity provider."""

    @abstractmethod
    async def get_identity(self, request: web.Request) -> UserIdentity:
        """Get the authenticated identity for a request.

        Raises:
            AuthenticationRequiredError: If the request carries no identity
        """
        ...


class HeaderIdentityProvider(IdentityProvider):
    """Reads the identity from headers set by an authenticating proxy.

    Only safe behind a proxy that strips these headers from client
    requests.
    """

    def __init__(
        self,
        email_header: str = "X-Forwarded-Email",
        user_header: str = "X-Forwarded-User",
    ) -> None:
        self.email_header = email_header
        self.user_header = user_header

    async def get_identity(self, request: web.Request) -> UserIdentity:
        email = request.headers.get(self.email_header, "").strip()
        if not email:
            raise AuthenticationRequiredError("user not logged in")
        user = request.headers.get(self.user_header, "").strip()
        return UserIdentity(email=email, user=user or email.split("@", 1)[0])


class StaticIdentityProvider(IdentityProvider):
    """Returns the same identity for every request (development and tests)."""

    def __init__(self, identity: UserIdentity | str) -> None:
        if isinstance(identity, str):
            identity = UserIdentity(email=identity, user=identity.split("@", 1)[0])
        self.identity = identity

    async def get_identity(self, request: web.Request) -> UserIdentity:
        return self.identity
