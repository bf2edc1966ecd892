"""
Document store abstraction: user documents keyed by user id.

Provides the update primitives the data-access layer relies on (field-path
updates, array union/remove, field deletion) for an in-memory test
implementation and a SQLAlchemy-backed implementation. The Firestore-backed
store lives in backend.firestore_store.
"""

from __future__ import annotations

import copy
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from sqlalchemy import JSON, Column, Float, String, create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

# A field path is a tuple of map keys, e.g. ("timestamps", "Personal Care", "Haircut").
FieldPath = Tuple[str, ...]
Updates = Dict[FieldPath, Any]


class StoreError(Exception):
    """Base class for document store failures."""


class DocumentNotFoundError(StoreError):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, key: str):
        super().__init__(f"No document for key {key!r}")
        self.key = key


class DocumentExistsError(StoreError):
    """Raised when a create targets a document that already exists."""

    def __init__(self, key: str):
        super().__init__(f"Document for key {key!r} already exists")
        self.key = key


@dataclass(frozen=True)
class ArrayUnion:
    """Appends each value not already present in the array field."""

    values: tuple

    def __init__(self, values):
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class ArrayRemove:
    """Removes every element equal to one of the values from the array field."""

    values: tuple

    def __init__(self, values):
        object.__setattr__(self, "values", tuple(values))


class _DeleteField:
    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


class DocumentStore(Protocol):
    """Interface for the per-user document store."""

    def get(self, key: str) -> Optional[dict]:
        ...

    def set(self, key: str, document: dict) -> None:
        ...

    def create(self, key: str, document: dict) -> None:
        """Writes the document only if none exists; raises DocumentExistsError otherwise."""
        ...

    def update(self, key: str, updates: Updates) -> None:
        ...

    def transact(
        self, key: str, build_updates: Callable[[Optional[dict]], Optional[Updates]]
    ) -> Optional[Updates]:
        """
        Reads the document and applies the updates computed from it atomically.

        `build_updates` receives the current document (None if missing) and
        returns the updates to apply, or None to leave the document untouched.
        """
        ...


def apply_updates(document: dict, updates: Updates) -> dict:
    """
    Applies field-path updates to a document in place, following Firestore's
    update semantics. Returns the document.
    """
    for path, value in updates.items():
        _apply_update(document, path, value)
    return document


def _apply_update(document: dict, path: FieldPath, value: Any) -> None:
    if not path:
        raise ValueError("Field path must not be empty")

    parent = document
    for segment in path[:-1]:
        child = parent.get(segment)
        if not isinstance(child, dict):
            if value is DELETE_FIELD:
                return
            child = {}
            parent[segment] = child
        parent = child

    leaf = path[-1]
    if value is DELETE_FIELD:
        parent.pop(leaf, None)
        return

    current = parent.get(leaf)
    items = list(current) if isinstance(current, list) else []
    if isinstance(value, ArrayUnion):
        for item in value.values:
            if item not in items:
                items.append(item)
        parent[leaf] = items
    elif isinstance(value, ArrayRemove):
        # A missing or non-array field becomes an empty array, as in Firestore.
        parent[leaf] = [item for item in items if item not in value.values]
    else:
        parent[leaf] = copy.deepcopy(value)


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.documents: Dict[str, dict] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[dict]:
        with self._lock:
            document = self.documents.get(key)
            return copy.deepcopy(document) if document is not None else None

    def set(self, key: str, document: dict) -> None:
        with self._lock:
            self.documents[key] = copy.deepcopy(document)

    def create(self, key: str, document: dict) -> None:
        with self._lock:
            if key in self.documents:
                raise DocumentExistsError(key)
            self.documents[key] = copy.deepcopy(document)

    def update(self, key: str, updates: Updates) -> None:
        with self._lock:
            if key not in self.documents:
                raise DocumentNotFoundError(key)
            document = copy.deepcopy(self.documents[key])
            self.documents[key] = apply_updates(document, updates)

    def transact(
        self, key: str, build_updates: Callable[[Optional[dict]], Optional[Updates]]
    ) -> Optional[Updates]:
        with self._lock:
            updates = build_updates(self.get(key))
            if updates:
                self.update(key, updates)
            return updates

    def reset(self) -> None:
        """Clear all stored documents (useful in tests)."""
        with self._lock:
            self.documents.clear()


class SqlDocumentStore:
    """
    SQLAlchemy-backed implementation storing each user document as a JSON row.
    Accepts any SQLAlchemy URL (e.g., Postgres, or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("A database URL is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get(self, key: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(UserDocumentRow, key)
            return copy.deepcopy(row.data) if row else None

    def set(self, key: str, document: dict) -> None:
        now = time.time()
        with self.Session() as session:
            row = session.get(UserDocumentRow, key)
            if row:
                row.data = copy.deepcopy(document)
                row.updated_at = now
            else:
                session.add(
                    UserDocumentRow(
                        user_id=key,
                        data=copy.deepcopy(document),
                        created_at=now,
                        updated_at=now,
                    )
                )
            session.commit()

    def create(self, key: str, document: dict) -> None:
        now = time.time()
        with self.Session() as session:
            session.add(
                UserDocumentRow(
                    user_id=key,
                    data=copy.deepcopy(document),
                    created_at=now,
                    updated_at=now,
                )
            )
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DocumentExistsError(key) from e

    def update(self, key: str, updates: Updates) -> None:
        with self.Session() as session:
            row = session.get(UserDocumentRow, key, with_for_update=True)
            if not row:
                raise DocumentNotFoundError(key)
            self._write(row, updates)
            session.commit()

    def transact(
        self, key: str, build_updates: Callable[[Optional[dict]], Optional[Updates]]
    ) -> Optional[Updates]:
        with self.Session() as session:
            row = session.get(UserDocumentRow, key, with_for_update=True)
            updates = build_updates(copy.deepcopy(row.data) if row else None)
            if not updates:
                return updates
            if not row:
                raise DocumentNotFoundError(key)
            self._write(row, updates)
            session.commit()
            return updates

    def _write(self, row: "UserDocumentRow", updates: Updates) -> None:
        # Assign a fresh dict so SQLAlchemy sees the JSON column change.
        row.data = apply_updates(copy.deepcopy(row.data), updates)
        row.updated_at = time.time()


Base = declarative_base()


class UserDocumentRow(Base):
    __tablename__ = "user_documents"

    user_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
