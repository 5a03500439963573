"""Service layer: change detection, subscriptions, composition and fan-out."""
from garden_alerts.services.catalog import ItemCatalog
from garden_alerts.services.composer import NotificationComposer
from garden_alerts.services.coordinator import AlertCoordinator
from garden_alerts.services.subscription_store import (PendingVerification,
                                                       SubscriptionStore)
from garden_alerts.services.subscriptions import SubscriptionService

__all__ = [
    "AlertCoordinator",
    "ItemCatalog",
    "NotificationComposer",
    "PendingVerification",
    "SubscriptionService",
    "SubscriptionStore",
]
