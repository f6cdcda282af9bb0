"""
FastAPI dependency providers.

Routes never reach for the cached factories directly; they depend on the
functions below so tests can swap any of them via ``app.dependency_overrides``.
"""

from fastapi import Depends

from order_api.core.config import Settings, get_settings
from order_api.services.identity import BaseTokenVerifier, get_token_verifier
from order_api.services.menu import MenuService
from order_api.services.orders import OrderService
from order_api.services.store import BaseDocumentStore, get_document_store


def get_store() -> BaseDocumentStore:
    return get_document_store()


def get_verifier() -> BaseTokenVerifier:
    return get_token_verifier()


def get_app_settings() -> Settings:
    return get_settings()


def get_order_service(
    store: BaseDocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> OrderService:
    return OrderService(
        store,
        delivery_offset=settings.delivery_offset,
        collection=settings.orders_collection,
        locale=settings.message_locale,
    )


def get_menu_service(
    store: BaseDocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> MenuService:
    return MenuService(
        store,
        collection=settings.menu_collection,
        locale=settings.message_locale,
    )
