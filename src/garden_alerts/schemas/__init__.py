"""Pydantic schemas for API and runtime use. Not persisted."""
from garden_alerts.schemas.api import (ActionResult, EmailRequest, HealthStatus,
                                       SubscribeRequest, VerificationStatus)
from garden_alerts.schemas.messages import ComposedMessage, SendResult
from garden_alerts.schemas.snapshots import (STOCK_CATEGORY_KEYS, CatalogEntry,
                                             Feed, StockCategory, StockItem,
                                             StockSnapshot, UpstreamUpdate,
                                             WeatherEvent, WeatherSnapshot)

__all__ = [
    "ActionResult",
    "CatalogEntry",
    "ComposedMessage",
    "EmailRequest",
    "Feed",
    "HealthStatus",
    "STOCK_CATEGORY_KEYS",
    "SendResult",
    "StockCategory",
    "StockItem",
    "StockSnapshot",
    "SubscribeRequest",
    "UpstreamUpdate",
    "VerificationStatus",
    "WeatherEvent",
    "WeatherSnapshot",
]
