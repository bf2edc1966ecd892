"""
Data-access layer for per-user category/timestamp documents.

Every operation is best-effort: missing arguments and store failures are
logged and reported through an OperationResult carrying a safe fallback,
never raised to the caller.

Removals are single field-level updates. Renames (and removals that must not
create fields that were absent) read the document and write the combined
update inside a store transaction, so a concurrent writer cannot interleave
between the read and the write. Initialization creates the document only if
it is still absent and backfills missing fields inside a transaction.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Mapping, Optional, Sequence

from dacite import Config, from_dict

from backend.db import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    DocumentExistsError,
    DocumentStore,
    Updates,
)
from shared.default_taxonomy import DEFAULT_CATEGORIES, copy_taxonomy
from shared.firebase_constants import (
    CATEGORIES_FIELD,
    CREATED_AT_FIELD,
    EMAIL_FIELD,
    TIMESTAMPS_FIELD,
)
from shared.types import (
    Categories,
    OperationResult,
    Timestamps,
    UsageEntry,
    UserRecord,
)
from shared.usage import summarize_usage

logger = logging.getLogger(__name__)


class NameConflictError(ValueError):
    """Raised when a rename would duplicate a subcategory within its category."""


def _now_millis() -> int:
    return int(time.time() * 1000)


def _missing(**arguments) -> List[str]:
    return [name for name, value in arguments.items() if value is None or value == ""]


class UserDataService:
    """Reads and mutates user documents held in a DocumentStore."""

    def __init__(
        self,
        store: DocumentStore,
        default_categories: Mapping[str, Sequence[str]] = DEFAULT_CATEGORIES,
        clock: Callable[[], int] = _now_millis,
    ):
        self._store = store
        self._default_categories = default_categories
        self._clock = clock

    def default_categories(self) -> Categories:
        return copy_taxonomy(self._default_categories)

    def _reject(self, operation: str, missing: List[str], fallback=None) -> OperationResult:
        error = f"{', '.join(missing)} required for {operation}"
        logger.error(error)
        return OperationResult(value=fallback, error=error)

    def _write(self, operation: str, user_id: str, write: Callable[[], None]) -> OperationResult:
        try:
            write()
        except NameConflictError as e:
            logger.warning("%s rejected for user %s: %s", operation, user_id, e)
            return OperationResult(error=str(e))
        except Exception as e:
            logger.exception("Failed to %s for user %s", operation, user_id)
            return OperationResult(error=str(e) or e.__class__.__name__)
        return OperationResult()

    # Initialization and reads

    def initialize_user_data(self, user_id: str) -> OperationResult[None]:
        """
        Creates the user document with the default taxonomy if missing, or
        backfills a missing `categories` / `timestamps` field. Existing fields
        are never overwritten.
        """
        missing = _missing(user_id=user_id)
        if missing:
            return self._reject("initialize_user_data", missing)

        def _build_backfill(document: Optional[dict]) -> Optional[Updates]:
            if document is None:
                return None
            updates: Updates = {}
            if document.get(TIMESTAMPS_FIELD) is None:
                updates[(TIMESTAMPS_FIELD,)] = {}
            if document.get(CATEGORIES_FIELD) is None:
                updates[(CATEGORIES_FIELD,)] = self.default_categories()
            return updates or None

        def _initialize():
            if self._store.get(user_id) is None:
                new_document = {
                    CATEGORIES_FIELD: self.default_categories(),
                    TIMESTAMPS_FIELD: {},
                    CREATED_AT_FIELD: self._clock(),
                }
                if "@" in user_id:
                    new_document[EMAIL_FIELD] = user_id
                try:
                    self._store.create(user_id, new_document)
                except DocumentExistsError:
                    logger.info("User %s was created concurrently, checking fields", user_id)
                else:
                    logger.info(
                        "Default categories and timestamps stored for user %s", user_id
                    )
                    return

            updates = self._store.transact(user_id, _build_backfill)
            if updates:
                logger.info(
                    "Backfilled %s for user %s",
                    ", ".join(path[0] for path in updates),
                    user_id,
                )

        return self._write("initialize user data", user_id, _initialize)

    def get_categories(self, user_id: str) -> OperationResult[Categories]:
        """Returns the taxonomy, or the default one when the record or field is absent."""
        missing = _missing(user_id=user_id)
        if missing:
            return self._reject("get_categories", missing, self.default_categories())
        try:
            document = self._store.get(user_id)
        except Exception as e:
            logger.exception("Failed to get categories for user %s", user_id)
            return OperationResult(value=self.default_categories(), error=str(e))

        categories = (document or {}).get(CATEGORIES_FIELD)
        if categories is None:
            logger.info("No categories found for user %s, returning default set", user_id)
            return OperationResult(value=self.default_categories())
        return OperationResult(value=categories)

    def get_timestamps(self, user_id: str) -> OperationResult[Timestamps]:
        missing = _missing(user_id=user_id)
        if missing:
            return self._reject("get_timestamps", missing, {})
        try:
            document = self._store.get(user_id)
        except Exception as e:
            logger.exception("Failed to get timestamps for user %s", user_id)
            return OperationResult(value={}, error=str(e))
        return OperationResult(value=(document or {}).get(TIMESTAMPS_FIELD) or {})

    def get_user_record(self, user_id: str) -> OperationResult[UserRecord]:
        """Returns the whole document as a UserRecord, with the read fallbacks applied."""
        missing = _missing(user_id=user_id)
        if missing:
            return self._reject(
                "get_user_record",
                missing,
                UserRecord(user_id=user_id, categories=self.default_categories()),
            )
        try:
            document = self._store.get(user_id) or {}
        except Exception as e:
            logger.exception("Failed to get user record for user %s", user_id)
            return OperationResult(
                value=UserRecord(user_id=user_id, categories=self.default_categories()),
                error=str(e),
            )

        categories = document.get(CATEGORIES_FIELD)
        record = from_dict(
            data_class=UserRecord,
            data={
                "user_id": user_id,
                "categories": self.default_categories() if categories is None else categories,
                "timestamps": document.get(TIMESTAMPS_FIELD) or {},
                "email": document.get(EMAIL_FIELD),
                "created_at": document.get(CREATED_AT_FIELD),
            },
            config=Config(check_types=False),
        )
        return OperationResult(value=record)

    def get_usage(
        self, user_id: str, category: Optional[str] = None
    ) -> OperationResult[List[UsageEntry]]:
        """Summarizes occurrence count and last-used time per subcategory."""
        result = self.get_user_record(user_id)
        record = result.value
        entries = summarize_usage(record.categories, record.timestamps, category)
        return OperationResult(value=entries, error=result.error)

    # Categories

    def add_category(self, user_id: str, category: str) -> OperationResult[None]:
        """Adds a category with no subcategories. An existing category is reset."""
        missing = _missing(user_id=user_id, category=category)
        if missing:
            return self._reject("add_category", missing)

        def _add():
            self._store.update(user_id, {(CATEGORIES_FIELD, category): []})
            logger.info("Category '%s' added for user %s", category, user_id)

        return self._write("add category", user_id, _add)

    def remove_category(self, user_id: str, category: str) -> OperationResult[None]:
        """Removes a category together with its timestamps in one update."""
        missing = _missing(user_id=user_id, category=category)
        if missing:
            return self._reject("remove_category", missing)

        def _remove():
            self._store.update(
                user_id,
                {
                    (CATEGORIES_FIELD, category): DELETE_FIELD,
                    (TIMESTAMPS_FIELD, category): DELETE_FIELD,
                },
            )
            logger.info(
                "Category '%s' and its timestamps removed for user %s", category, user_id
            )

        return self._write("remove category", user_id, _remove)

    def update_category_name(
        self, user_id: str, old_name: str, new_name: str
    ) -> OperationResult[None]:
        """
        Moves a category's subcategories and timestamps to a new name.

        No-op if `old_name` does not exist. An existing `new_name` category is
        replaced wholesale (last write wins), including its timestamps.
        """
        missing = _missing(user_id=user_id, old_name=old_name, new_name=new_name)
        if missing:
            return self._reject("update_category_name", missing)
        if old_name == new_name:
            return OperationResult()

        def _build_updates(document: Optional[dict]) -> Optional[Updates]:
            if document is None:
                return None
            categories = document.get(CATEGORIES_FIELD) or {}
            if old_name not in categories:
                return None
            updates: Updates = {
                (CATEGORIES_FIELD, new_name): categories[old_name],
                (CATEGORIES_FIELD, old_name): DELETE_FIELD,
            }
            timestamps = document.get(TIMESTAMPS_FIELD) or {}
            if old_name in timestamps:
                updates[(TIMESTAMPS_FIELD, new_name)] = timestamps[old_name]
                updates[(TIMESTAMPS_FIELD, old_name)] = DELETE_FIELD
            elif new_name in timestamps:
                updates[(TIMESTAMPS_FIELD, new_name)] = DELETE_FIELD
            return updates

        def _rename():
            if self._store.transact(user_id, _build_updates):
                logger.info(
                    "Category '%s' renamed to '%s' for user %s", old_name, new_name, user_id
                )

        return self._write("update category name", user_id, _rename)

    # Subcategories

    def add_subcategory(
        self, user_id: str, category: str, subcategory: str
    ) -> OperationResult[None]:
        """Appends a subcategory unless the category already lists it."""
        missing = _missing(user_id=user_id, category=category, subcategory=subcategory)
        if missing:
            return self._reject("add_subcategory", missing)

        def _add():
            self._store.update(
                user_id, {(CATEGORIES_FIELD, category): ArrayUnion([subcategory])}
            )
            logger.info("'%s' added to '%s' for user %s", subcategory, category, user_id)

        return self._write("add subcategory", user_id, _add)

    def remove_subcategory(
        self, user_id: str, category: str, subcategory: str
    ) -> OperationResult[None]:
        """Removes a subcategory and its timestamps in one update."""
        missing = _missing(user_id=user_id, category=category, subcategory=subcategory)
        if missing:
            return self._reject("remove_subcategory", missing)

        def _build_updates(document: Optional[dict]) -> Optional[Updates]:
            if document is None:
                return None
            updates: Updates = {}
            if category in (document.get(CATEGORIES_FIELD) or {}):
                updates[(CATEGORIES_FIELD, category)] = ArrayRemove([subcategory])
            category_timestamps = (document.get(TIMESTAMPS_FIELD) or {}).get(category) or {}
            if subcategory in category_timestamps:
                updates[(TIMESTAMPS_FIELD, category, subcategory)] = DELETE_FIELD
            return updates or None

        def _remove():
            if not self._store.transact(user_id, _build_updates):
                return
            logger.info(
                "'%s' and its timestamps removed from '%s' for user %s",
                subcategory,
                category,
                user_id,
            )

        return self._write("remove subcategory", user_id, _remove)

    def update_subcategory_name(
        self, user_id: str, category: str, old_name: str, new_name: str
    ) -> OperationResult[None]:
        """
        Renames a subcategory in place (keeping its position) and moves its
        timestamps. No-op if `old_name` is not listed under `category`; fails
        if `new_name` already is.
        """
        missing = _missing(
            user_id=user_id, category=category, old_name=old_name, new_name=new_name
        )
        if missing:
            return self._reject("update_subcategory_name", missing)
        if old_name == new_name:
            return OperationResult()

        def _build_updates(document: Optional[dict]) -> Optional[Updates]:
            if document is None:
                return None
            subcategories = list((document.get(CATEGORIES_FIELD) or {}).get(category) or [])
            if old_name not in subcategories:
                return None
            if new_name in subcategories:
                raise NameConflictError(
                    f"'{new_name}' already exists in '{category}'"
                )
            subcategories[subcategories.index(old_name)] = new_name
            updates: Updates = {(CATEGORIES_FIELD, category): subcategories}

            category_timestamps = (document.get(TIMESTAMPS_FIELD) or {}).get(category) or {}
            if old_name in category_timestamps:
                updates[(TIMESTAMPS_FIELD, category, new_name)] = category_timestamps[old_name]
                updates[(TIMESTAMPS_FIELD, category, old_name)] = DELETE_FIELD
            elif new_name in category_timestamps:
                updates[(TIMESTAMPS_FIELD, category, new_name)] = DELETE_FIELD
            return updates

        def _rename():
            if self._store.transact(user_id, _build_updates):
                logger.info(
                    "Subcategory '%s' in '%s' renamed to '%s' for user %s",
                    old_name,
                    category,
                    new_name,
                    user_id,
                )

        return self._write("update subcategory name", user_id, _rename)

    # Timestamps

    def add_timestamp(
        self, user_id: str, category: str, subcategory: str, timestamp: int
    ) -> OperationResult[None]:
        """Records an occurrence. Recording the exact same instant twice is a no-op."""
        missing = _missing(
            user_id=user_id, category=category, subcategory=subcategory, timestamp=timestamp
        )
        if missing:
            return self._reject("add_timestamp", missing)

        def _add():
            self._store.update(
                user_id,
                {(TIMESTAMPS_FIELD, category, subcategory): ArrayUnion([timestamp])},
            )
            logger.info(
                "Timestamp added to '%s.%s' for user %s", category, subcategory, user_id
            )

        return self._write("add timestamp", user_id, _add)

    def remove_timestamp(
        self, user_id: str, category: str, subcategory: str, timestamp: int
    ) -> OperationResult[None]:
        """Removes every occurrence recorded at `timestamp`. No-op if there is none."""
        missing = _missing(
            user_id=user_id, category=category, subcategory=subcategory, timestamp=timestamp
        )
        if missing:
            return self._reject("remove_timestamp", missing)

        def _build_updates(document: Optional[dict]) -> Optional[Updates]:
            if document is None:
                return None
            category_timestamps = (document.get(TIMESTAMPS_FIELD) or {}).get(category) or {}
            if timestamp not in (category_timestamps.get(subcategory) or []):
                return None
            return {(TIMESTAMPS_FIELD, category, subcategory): ArrayRemove([timestamp])}

        def _remove():
            if self._store.transact(user_id, _build_updates):
                logger.info(
                    "Timestamp removed from '%s.%s' for user %s", category, subcategory, user_id
                )

        return self._write("remove timestamp", user_id, _remove)
