"""
HTTP routes for the backend API.

Category and subcategory names travel in request bodies and query
parameters rather than in the path, since names such as
"Roof/Gutter Cleaned" may contain slashes.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query

from backend.dependencies import get_user_data_service
from backend.schemas import (
    CategoriesResponse,
    CategoryPayload,
    RenameCategoryPayload,
    RenameSubcategoryPayload,
    SubcategoryPayload,
    TimestampPayload,
    TimestampsResponse,
    UsageResponse,
    UserPayload,
    UserRecordResponse,
    WriteResponse,
)
from backend.user_data import UserDataService
from shared.constants import MAX_NAME_LENGTH, USER_ID_MAX_LENGTH
from shared.types import OperationResult

router = APIRouter()


def _write_response(result: OperationResult) -> WriteResponse:
    return WriteResponse(ok=result.ok, error=result.error)


@router.post("/initialize_user_data", response_model=WriteResponse)
def initialize_user_data(
    payload: UserPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(service.initialize_user_data(payload.user_id))


@router.get("/categories", response_model=CategoriesResponse)
def get_categories(
    user_id: str = Query(..., min_length=1, max_length=USER_ID_MAX_LENGTH),
    service: UserDataService = Depends(get_user_data_service),
):
    result = service.get_categories(user_id)
    return CategoriesResponse(
        user_id=user_id, categories=result.value, ok=result.ok, error=result.error
    )


@router.get("/timestamps", response_model=TimestampsResponse)
def get_timestamps(
    user_id: str = Query(..., min_length=1, max_length=USER_ID_MAX_LENGTH),
    service: UserDataService = Depends(get_user_data_service),
):
    result = service.get_timestamps(user_id)
    return TimestampsResponse(
        user_id=user_id, timestamps=result.value, ok=result.ok, error=result.error
    )


@router.get("/user_record", response_model=UserRecordResponse)
def get_user_record(
    user_id: str = Query(..., min_length=1, max_length=USER_ID_MAX_LENGTH),
    service: UserDataService = Depends(get_user_data_service),
):
    result = service.get_user_record(user_id)
    record = result.value
    return UserRecordResponse(
        user_id=record.user_id,
        email=record.email,
        created_at=record.created_at,
        categories=record.categories,
        timestamps=record.timestamps,
        ok=result.ok,
        error=result.error,
    )


@router.get("/usage", response_model=UsageResponse)
def get_usage(
    user_id: str = Query(..., min_length=1, max_length=USER_ID_MAX_LENGTH),
    category: Optional[str] = Query(None, max_length=MAX_NAME_LENGTH),
    service: UserDataService = Depends(get_user_data_service),
):
    """
    "Last used" summary for every subcategory, optionally limited to one category.
    """
    result = service.get_usage(user_id, category)
    return UsageResponse(
        user_id=user_id,
        entries=[asdict(entry) for entry in result.value],
        ok=result.ok,
        error=result.error,
    )


@router.post("/add_category", response_model=WriteResponse)
def add_category(
    payload: CategoryPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(service.add_category(payload.user_id, payload.category))


@router.post("/remove_category", response_model=WriteResponse)
def remove_category(
    payload: CategoryPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(service.remove_category(payload.user_id, payload.category))


@router.post("/update_category_name", response_model=WriteResponse)
def update_category_name(
    payload: RenameCategoryPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(
        service.update_category_name(payload.user_id, payload.old_name, payload.new_name)
    )


@router.post("/add_subcategory", response_model=WriteResponse)
def add_subcategory(
    payload: SubcategoryPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(
        service.add_subcategory(payload.user_id, payload.category, payload.subcategory)
    )


@router.post("/remove_subcategory", response_model=WriteResponse)
def remove_subcategory(
    payload: SubcategoryPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(
        service.remove_subcategory(payload.user_id, payload.category, payload.subcategory)
    )


@router.post("/update_subcategory_name", response_model=WriteResponse)
def update_subcategory_name(
    payload: RenameSubcategoryPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(
        service.update_subcategory_name(
            payload.user_id, payload.category, payload.old_name, payload.new_name
        )
    )


@router.post("/add_timestamp", response_model=WriteResponse)
def add_timestamp(
    payload: TimestampPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(
        service.add_timestamp(
            payload.user_id, payload.category, payload.subcategory, payload.timestamp
        )
    )


@router.post("/remove_timestamp", response_model=WriteResponse)
def remove_timestamp(
    payload: TimestampPayload,
    service: UserDataService = Depends(get_user_data_service),
):
    return _write_response(
        service.remove_timestamp(
            payload.user_id, payload.category, payload.subcategory, payload.timestamp
        )
    )
