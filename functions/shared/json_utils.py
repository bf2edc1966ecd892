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


from typing import Any, Literal


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def convert_keys(data: Any, direction: Literal["snake_to_camel"]) -> Any:
    """
    Recursively renames dict keys from snake_case to camelCase.

    Only use this on payloads whose keys are field names. Category and
    subcategory names are user data and must not pass through it.
    """
    if direction != "snake_to_camel":
        raise ValueError(f"Unsupported key conversion: {direction}")
    if isinstance(data, dict):
        return {
            snake_to_camel(key): convert_keys(value, direction)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [convert_keys(item, direction) for item in data]
    return data
