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


from dataclasses import dataclass, field
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")

# category -> ordered subcategory names
Categories = Dict[str, List[str]]
# category -> subcategory -> epoch milliseconds, in recording order
Timestamps = Dict[str, Dict[str, List[int]]]


@dataclass
class UserRecord:
    """The per-user document: category taxonomy plus the occurrence log."""

    user_id: str
    categories: Categories = field(default_factory=dict)
    timestamps: Timestamps = field(default_factory=dict)
    email: Optional[str] = None
    created_at: Optional[int] = None


@dataclass
class UsageEntry:
    """Occurrence summary of a single subcategory."""

    category: str
    subcategory: str
    count: int
    last_used: Optional[int]
    history: List[int] = field(default_factory=list)


@dataclass
class OperationResult(Generic[T]):
    """
    Outcome of a data-access operation.

    Operations never raise. On failure `error` is set and `value` holds the
    fallback (default taxonomy, empty map, or None for writes).
    """

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
