"""
HTTP surface of the notes store (aiohttp).

Routes:
- GET  /api/store/getLogs?start=N
- POST /api/store/appendLog            (JSON array body)
- GET  /api/store/getContent?id=ID
- POST /api/store/setContent?id=ID     (raw body)
- GET  /ping
- *    /event/{name}                   (analytics beacon)
"""

from .app import build_app, create_app, error_status
from .handlers import parse_start
from .keys import ANALYTICS_KEY, IDENTITY_PROVIDER_KEY, REGISTRY_KEY, USER_ID_KEY

__all__ = [
    "build_app",
    "create_app",
    "error_status",
    "parse_start",
    "REGISTRY_KEY",
    "IDENTITY_PROVIDER_KEY",
    "ANALYTICS_KEY",
    "USER_ID_KEY",
]
