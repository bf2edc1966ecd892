"""
Pydantic schemas for the FastAPI backend.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from shared.constants import MAX_NAME_LENGTH, USER_ID_MAX_LENGTH


class UserPayload(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=USER_ID_MAX_LENGTH)


class CategoryPayload(UserPayload):
    category: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class RenameCategoryPayload(UserPayload):
    old_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    new_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class SubcategoryPayload(CategoryPayload):
    subcategory: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class RenameSubcategoryPayload(CategoryPayload):
    old_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    new_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)


class TimestampPayload(SubcategoryPayload):
    timestamp: int = Field(..., ge=0, description="Epoch milliseconds")


class WriteResponse(BaseModel):
    ok: bool
    error: Optional[str] = None


class CategoriesResponse(WriteResponse):
    user_id: str
    categories: dict[str, list[str]]


class TimestampsResponse(WriteResponse):
    user_id: str
    timestamps: dict[str, dict[str, list[int]]]


class UserRecordResponse(WriteResponse):
    user_id: str
    email: Optional[str] = None
    created_at: Optional[int] = None
    categories: dict[str, list[str]]
    timestamps: dict[str, dict[str, list[int]]]


class UsageEntryModel(BaseModel):
    category: str
    subcategory: str
    count: int
    last_used: Optional[int] = None
    history: list[int]


class UsageResponse(WriteResponse):
    user_id: str
    entries: list[UsageEntryModel]
