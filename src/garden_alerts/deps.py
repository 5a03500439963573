"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

The lifespan (main.py) builds the composition root once and attaches it to
app.state; these getters are used by Depends().
"""
from typing import Annotated

from fastapi import Depends, Request, WebSocket

from garden_alerts.config import Settings
from garden_alerts.log_broadcast import LogBroadcaster
from garden_alerts.mail import MailDispatcher
from garden_alerts.services import (AlertCoordinator, ItemCatalog,
                                    NotificationComposer, SubscriptionService,
                                    SubscriptionStore)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_subscription_service(request: Request) -> SubscriptionService:
    """Resolve the SubscriptionService from app.state."""
    return request.app.state.subscription_service


def get_store(request: Request) -> SubscriptionStore:
    return request.app.state.store


def get_catalog(request: Request) -> ItemCatalog:
    return request.app.state.catalog


def get_coordinator(request: Request) -> AlertCoordinator:
    return request.app.state.coordinator


def get_dispatcher(request: Request) -> MailDispatcher:
    return request.app.state.dispatcher


def get_composer(request: Request) -> NotificationComposer:
    return request.app.state.composer


def get_broadcaster(request: Request) -> LogBroadcaster:
    return request.app.state.broadcaster


def get_broadcaster_ws(websocket: WebSocket) -> LogBroadcaster:
    """Resolve the LogBroadcaster for WebSocket routes."""
    return websocket.scope["app"].state.broadcaster


# Type aliases for route injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]
StoreDep = Annotated[SubscriptionStore, Depends(get_store)]
CatalogDep = Annotated[ItemCatalog, Depends(get_catalog)]
CoordinatorDep = Annotated[AlertCoordinator, Depends(get_coordinator)]
DispatcherDep = Annotated[MailDispatcher, Depends(get_dispatcher)]
ComposerDep = Annotated[NotificationComposer, Depends(get_composer)]
BroadcasterDep = Annotated[LogBroadcaster, Depends(get_broadcaster)]
BroadcasterWs = Annotated[LogBroadcaster, Depends(get_broadcaster_ws)]
