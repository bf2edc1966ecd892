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


"""Bundled category taxonomy seeded into every new user record."""

from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence

DEFAULT_CATEGORIES: Mapping[str, Sequence[str]] = MappingProxyType(
    {
        "Personal Care": (
            "Haircut",
            "Beard Trim",
            "Nail Clipping",
            "Skincare Routine",
            "Dental Cleaning",
            "Eyebrow Threading",
            "Hair Coloring",
            "Shaving",
            "Hair Oiling",
            "Pedicure",
        ),
        "Home Maintenance": (
            "AC Filter Cleaned",
            "Battery Replaced (Remote)",
            "Refrigerator Defrosted",
            "Water Filter Changed",
            "Washing Machine Cleaned",
            "Lights Replaced",
            "Gas Cylinder Refilled",
            "Generator Oil Changed",
            "Fire Alarm Tested",
            "Roof/Gutter Cleaned",
        ),
        "Digital_Bills": (
            "Mobile Recharged",
            "Internet Bill Paid",
            "Electricity Bill Paid",
            "Netflix Subscription Renewed",
            "Phone Storage Cleared",
            "Password Changed",
            "Data Backup Done",
            "Antivirus Updated",
            "VPN Subscription Paid",
            "Credit Card Bill Paid",
        ),
    }
)


def copy_taxonomy(
    taxonomy: Mapping[str, Sequence[str]] = DEFAULT_CATEGORIES,
) -> Dict[str, List[str]]:
    """Returns a mutable copy of a taxonomy, safe to hand to callers or a store."""
    return {category: list(subcategories) for category, subcategories in taxonomy.items()}
