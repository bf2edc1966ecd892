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


"""Read-side helpers turning the occurrence log into "last used" summaries."""

from typing import List, Optional

from shared.types import Categories, Timestamps, UsageEntry


def sorted_history(
    timestamps: Timestamps, category: str, subcategory: str
) -> List[int]:
    """Returns the occurrences of a subcategory, oldest first."""
    return sorted((timestamps.get(category) or {}).get(subcategory) or [])


def summarize_usage(
    categories: Categories,
    timestamps: Timestamps,
    category: Optional[str] = None,
) -> List[UsageEntry]:
    """
    Builds one UsageEntry per subcategory of the taxonomy, in taxonomy order.

    Args:
        categories: The user's category taxonomy.
        timestamps: The user's occurrence log.
        category: If given, only this category is summarized. Unknown names
            yield an empty list.

    Returns:
        The usage entries. Occurrences logged under names missing from the
        taxonomy are not reported.
    """
    if category is not None:
        if category not in categories:
            return []
        selected = {category: categories[category]}
    else:
        selected = categories

    entries = []
    for category_name, subcategories in selected.items():
        for subcategory in subcategories:
            history = sorted_history(timestamps, category_name, subcategory)
            entries.append(
                UsageEntry(
                    category=category_name,
                    subcategory=subcategory,
                    count=len(history),
                    last_used=history[-1] if history else None,
                    history=history,
                )
            )
    return entries
