"""
Identity resolution for store requests.

Provides the authenticated user behind a request; the authentication
flow itself lives outside this package.
"""

from ..exceptions import AuthenticationError, AuthenticationRequiredError
from .provider import HeaderIdentityProvider, IdentityProvider, StaticIdentityProvider
from .types import UserIdentity

__all__ = [
    # Types
    "UserIdentity",
    # Errors
    "AuthenticationError",
    "AuthenticationRequiredError",
    # Providers
    "IdentityProvider",
    "HeaderIdentityProvider",
    "StaticIdentityProvider",
]
