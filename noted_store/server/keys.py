"""Typed application keys shared by the app factory and handlers."""

from aiohttp import web

from ..analytics import AnalyticsSink
from ..identity import IdentityProvider
from ..registry import UserStoreRegistry

REGISTRY_KEY = web.AppKey("registry", UserStoreRegistry)
IDENTITY_PROVIDER_KEY = web.AppKey("identity_provider", IdentityProvider)
ANALYTICS_KEY = web.AppKey("analytics", AnalyticsSink)

USER_ID_KEY = web.RequestKey("user_id", str)
