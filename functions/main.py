# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================


# Cloud functions for Last Used - per-user category and timestamp data.
#
# This file containing Python cloud functions must be named main.py.
# See https://cloud.google.com/run/docs/write-functions#python for more info.

# Standard library imports
import os
from dataclasses import asdict, dataclass, field
from typing import Optional

# Third-party library imports
from firebase_admin import initialize_app
from firebase_functions import https_fn, logger, options

# Local application imports
from backend.firestore_store import FirestoreDocumentStore
from backend.user_data import UserDataService
from shared.constants import MAX_NAME_LENGTH, USER_ID_MAX_LENGTH
from shared.json_utils import convert_keys
from shared.types import OperationResult

initialize_app()

_service: Optional[UserDataService] = None


@dataclass
class WriteResult:
    ok: bool
    error: Optional[str] = None


@dataclass
class CategoriesResult:
    categories: dict
    ok: bool
    error: Optional[str] = None


@dataclass
class TimestampsResult:
    timestamps: dict
    ok: bool
    error: Optional[str] = None


@dataclass
class UsageResult:
    entries: list = field(default_factory=list)
    ok: bool = True
    error: Optional[str] = None


def _is_locally_emulated() -> bool:
    """Returns True if the function is running in the local emulator."""
    return os.environ.get("FUNCTIONS_EMULATOR") == "true"


def _get_service() -> UserDataService:
    global _service
    if _service is None:
        _service = UserDataService(FirestoreDocumentStore())
    return _service


def _get_user_id(req: https_fn.CallableRequest) -> str:
    """
    The signed-in user's email keys their document. The emulator also accepts
    an explicit `user_id` so functions can be exercised without sign-in.
    """
    email = req.auth.token.get("email") if req.auth else None
    user_id = email or (req.data.get("user_id") if _is_locally_emulated() else None)

    if not user_id:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.UNAUTHENTICATED,
            "Must be signed in with an email address.",
        )
    if len(user_id) > USER_ID_MAX_LENGTH:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Incorrect user_id length.",
        )
    return user_id


def _get_name(req: https_fn.CallableRequest, key: str) -> str:
    name = req.data.get(key)
    if not name or not isinstance(name, str):
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            f"Must specify {key} parameter.",
        )
    if len(name) > MAX_NAME_LENGTH:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            f"{key} exceeds max length.",
        )
    return name


def _get_timestamp(req: https_fn.CallableRequest) -> int:
    timestamp = req.data.get("timestamp")
    if isinstance(timestamp, bool) or not isinstance(timestamp, int) or timestamp < 0:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "timestamp must be a non-negative integer of epoch milliseconds.",
        )
    return timestamp


def _write_result(result: OperationResult) -> dict:
    if not result.ok:
        logger.warn(f"Write failed: {result.error}")
    return asdict(WriteResult(ok=result.ok, error=result.error))


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def initialize_user_data(req: https_fn.CallableRequest) -> dict:
    """
    Creates the caller's document with the default categories, or backfills
    missing fields of an existing one.
    """
    user_id = _get_user_id(req)
    return _write_result(_get_service().initialize_user_data(user_id))


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def get_categories(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    result = _get_service().get_categories(user_id)
    # Category names are user data; they are returned verbatim.
    return asdict(
        CategoriesResult(categories=result.value, ok=result.ok, error=result.error)
    )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def get_timestamps(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    result = _get_service().get_timestamps(user_id)
    return asdict(
        TimestampsResult(timestamps=result.value, ok=result.ok, error=result.error)
    )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def get_usage(req: https_fn.CallableRequest) -> dict:
    """
    Returns the "last used" summary of the caller's subcategories.

    Args:
        req (https_fn.CallableRequest): The request, optionally containing a
            `category` to limit the summary to.

    Returns:
        A dictionary representation of the UsageResult object.
    """
    user_id = _get_user_id(req)
    category = req.data.get("category") or None
    result = _get_service().get_usage(user_id, category)
    entries = [convert_keys(asdict(entry), "snake_to_camel") for entry in result.value]
    return asdict(UsageResult(entries=entries, ok=result.ok, error=result.error))


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def add_category(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    category = _get_name(req, "category")
    return _write_result(_get_service().add_category(user_id, category))


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def remove_category(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    category = _get_name(req, "category")
    return _write_result(_get_service().remove_category(user_id, category))


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def update_category_name(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    old_name = _get_name(req, "old_name")
    new_name = _get_name(req, "new_name")
    return _write_result(
        _get_service().update_category_name(user_id, old_name, new_name)
    )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def add_subcategory(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    category = _get_name(req, "category")
    subcategory = _get_name(req, "subcategory")
    return _write_result(
        _get_service().add_subcategory(user_id, category, subcategory)
    )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def remove_subcategory(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    category = _get_name(req, "category")
    subcategory = _get_name(req, "subcategory")
    return _write_result(
        _get_service().remove_subcategory(user_id, category, subcategory)
    )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def update_subcategory_name(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    category = _get_name(req, "category")
    old_name = _get_name(req, "old_name")
    new_name = _get_name(req, "new_name")
    return _write_result(
        _get_service().update_subcategory_name(user_id, category, old_name, new_name)
    )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def add_timestamp(req: https_fn.CallableRequest) -> dict:
    """
    Records an occurrence of a subcategory task.

    Args:
        req (https_fn.CallableRequest): The request, containing `category`,
            `subcategory` and `timestamp` (epoch milliseconds).
    """
    user_id = _get_user_id(req)
    category = _get_name(req, "category")
    subcategory = _get_name(req, "subcategory")
    timestamp = _get_timestamp(req)
    return _write_result(
        _get_service().add_timestamp(user_id, category, subcategory, timestamp)
    )


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def remove_timestamp(req: https_fn.CallableRequest) -> dict:
    user_id = _get_user_id(req)
    category = _get_name(req, "category")
    subcategory = _get_name(req, "subcategory")
    timestamp = _get_timestamp(req)
    return _write_result(
        _get_service().remove_timestamp(user_id, category, subcategory, timestamp)
    )
