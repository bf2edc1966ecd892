"""
Cloud Firestore implementation of the document store.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import firebase_admin
from firebase_admin import firestore
from google.api_core import exceptions
from google.cloud.firestore_v1 import (
    ArrayRemove as FirestoreArrayRemove,
    ArrayUnion as FirestoreArrayUnion,
    DELETE_FIELD as FIRESTORE_DELETE_FIELD,
    transactional,
)
from google.cloud.firestore_v1.field_path import FieldPath as FirestoreFieldPath

from backend.db import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    DocumentExistsError,
    DocumentNotFoundError,
    FieldPath,
    Updates,
)
from shared.firebase_constants import USERS_COLLECTION


def _default_client():
    try:
        firebase_admin.get_app()
    except ValueError:
        firebase_admin.initialize_app()
    return firestore.client()


def render_field_path(path: FieldPath) -> str:
    """
    Renders a field path for DocumentReference.update.

    Segments that are not plain identifiers (spaces, dots, slashes) are
    backtick-quoted, so category names can be used as map keys verbatim.
    """
    return FirestoreFieldPath(*path).to_api_repr()


def _to_firestore_value(value: Any) -> Any:
    if value is DELETE_FIELD:
        return FIRESTORE_DELETE_FIELD
    if isinstance(value, ArrayUnion):
        return FirestoreArrayUnion(list(value.values))
    if isinstance(value, ArrayRemove):
        return FirestoreArrayRemove(list(value.values))
    return value


def to_firestore_updates(updates: Updates) -> dict:
    return {
        render_field_path(path): _to_firestore_value(value)
        for path, value in updates.items()
    }


class FirestoreDocumentStore:
    """Stores each user document at `<collection>/<user id>`."""

    def __init__(self, client=None, collection: str = USERS_COLLECTION):
        self._client = client or _default_client()
        self.collection = collection

    def _doc_ref(self, key: str):
        return self._client.collection(self.collection).document(key)

    def get(self, key: str) -> Optional[dict]:
        snapshot = self._doc_ref(key).get()
        return snapshot.to_dict() if snapshot.exists else None

    def set(self, key: str, document: dict) -> None:
        self._doc_ref(key).set(document)

    def create(self, key: str, document: dict) -> None:
        try:
            self._doc_ref(key).create(document)
        except exceptions.AlreadyExists as e:
            raise DocumentExistsError(key) from e

    def update(self, key: str, updates: Updates) -> None:
        try:
            self._doc_ref(key).update(to_firestore_updates(updates))
        except exceptions.NotFound as e:
            raise DocumentNotFoundError(key) from e

    def transact(
        self, key: str, build_updates: Callable[[Optional[dict]], Optional[Updates]]
    ) -> Optional[Updates]:
        transaction = self._client.transaction()
        doc_ref = self._doc_ref(key)

        @transactional
        def _update_in_transaction(transaction, doc_ref):
            snapshot = doc_ref.get(transaction=transaction)
            document = snapshot.to_dict() if snapshot.exists else None
            updates = build_updates(document)
            if not updates:
                return updates
            if document is None:
                raise DocumentNotFoundError(key)
            transaction.update(doc_ref, to_firestore_updates(updates))
            return updates

        return _update_in_transaction(transaction, doc_ref)
