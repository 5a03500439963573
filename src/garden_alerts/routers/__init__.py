"""HTTP routers.

Includes routes for:
- /check-verification, /request-verification, /verify, /subscribe, /unsub
- /get-items, /refresh-items - item catalog
- /, /health, /test-email - page and diagnostics
- /logs (WebSocket), /logs/recent - live operational log
"""
from garden_alerts.routers.items import router as items_router
from garden_alerts.routers.logs import router as logs_router
from garden_alerts.routers.subscriptions import router as subscriptions_router
from garden_alerts.routers.system import router as system_router

__all__ = [
    "items_router",
    "logs_router",
    "subscriptions_router",
    "system_router",
]
