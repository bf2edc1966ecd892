"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from backend.config import get_settings
from backend.db import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from backend.user_data import UserDataService

logger = logging.getLogger(__name__)

_document_store: DocumentStore | None = None
_user_data_service: UserDataService | None = None


def get_document_store() -> DocumentStore:
    """
    Return a singleton document store so user data persists across requests.
    """
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.store_backend == "firestore":
        # Imported lazily so the memory and SQL backends do not need Firebase credentials.
        from backend.firestore_store import FirestoreDocumentStore

        _document_store = FirestoreDocumentStore(collection=settings.users_collection)
    elif settings.store_backend == "sql" and settings.database_url:
        _document_store = SqlDocumentStore(settings.database_url)
    else:
        if settings.store_backend == "sql":
            logger.warning("No database URL configured, using in-memory store")
        _document_store = InMemoryDocumentStore()
    return _document_store


def get_user_data_service() -> UserDataService:
    global _user_data_service
    if _user_data_service:
        return _user_data_service

    _user_data_service = UserDataService(get_document_store())
    return _user_data_service
