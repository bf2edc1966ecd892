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

# Standard library imports
import os
import unittest
from unittest.mock import patch

# Third-party library imports
from functions_framework import create_app

# Local application imports
from backend.db import InMemoryDocumentStore
from backend.user_data import UserDataService

MAIN_SOURCE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "main.py")
USER = "a@x.com"


class MainFunctionsTestBase(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryDocumentStore()
        self.service = UserDataService(self.store)

    @patch("firebase_admin.initialize_app")
    def _client(self, target, initialize_app_mock):
        # create_app re-executes main.py, so patches on "main" are applied afterwards.
        return create_app(target, MAIN_SOURCE).test_client()

    def call(self, target, data, emulated=True):
        client = self._client(target)
        env = {"FUNCTIONS_EMULATOR": "true" if emulated else "false"}
        with patch.dict(os.environ, env), patch(
            "main._get_service", return_value=self.service
        ):
            return client.post("/", json={"data": data})

    def call_ok(self, target, **data):
        response = self.call(target, {"user_id": USER, **data})
        self.assertEqual(
            response.status_code,
            200,
            f"Request failed with status {response.status_code}. Body: {response.get_data(as_text=True)}",
        )
        # Note: @on_call wraps successful responses in a `result` key.
        return response.get_json()["result"]


class TestMainUserData(MainFunctionsTestBase):

    def test_fresh_user_scenario(self):
        self.assertEqual(self.call_ok("initialize_user_data"), {"ok": True, "error": None})
        self.call_ok("add_category", category="Fitness")
        self.call_ok("add_subcategory", category="Fitness", subcategory="Run")
        self.call_ok(
            "add_timestamp", category="Fitness", subcategory="Run", timestamp=1700000000000
        )

        categories = self.call_ok("get_categories")
        self.assertTrue(categories["ok"])
        self.assertEqual(categories["categories"]["Fitness"], ["Run"])
        self.assertIn("Personal Care", categories["categories"])

        timestamps = self.call_ok("get_timestamps")
        self.assertEqual(timestamps["timestamps"], {"Fitness": {"Run": [1700000000000]}})

    def test_renames_and_removals(self):
        self.call_ok("initialize_user_data")
        self.call_ok(
            "add_timestamp", category="Personal Care", subcategory="Haircut", timestamp=3
        )
        self.call_ok(
            "update_subcategory_name",
            category="Personal Care",
            old_name="Haircut",
            new_name="Hair Cut",
        )
        self.call_ok("update_category_name", old_name="Personal Care", new_name="Care")
        self.call_ok("remove_subcategory", category="Care", subcategory="Pedicure")
        self.call_ok("remove_category", category="Home Maintenance")
        self.call_ok("remove_timestamp", category="Care", subcategory="Hair Cut", timestamp=3)

        doc = self.store.get(USER)
        self.assertNotIn("Home Maintenance", doc["categories"])
        self.assertEqual(doc["categories"]["Care"][0], "Hair Cut")
        self.assertNotIn("Pedicure", doc["categories"]["Care"])
        self.assertEqual(doc["timestamps"], {"Care": {"Hair Cut": []}})

    def test_get_usage_returns_camel_case_entries(self):
        self.call_ok("initialize_user_data")
        self.call_ok(
            "add_timestamp", category="Personal Care", subcategory="Haircut", timestamp=42
        )

        usage = self.call_ok("get_usage", category="Personal Care")

        self.assertTrue(usage["ok"])
        self.assertEqual(
            usage["entries"][0],
            {
                "category": "Personal Care",
                "subcategory": "Haircut",
                "count": 1,
                "lastUsed": 42,
                "history": [42],
            },
        )

    def test_write_failure_is_reported_not_raised(self):
        result = self.call_ok("add_category", category="Fitness")
        self.assertFalse(result["ok"])
        self.assertIsNotNone(result["error"])


class TestMainValidation(MainFunctionsTestBase):

    def test_missing_name_is_invalid_argument(self):
        response = self.call("add_category", {"user_id": USER})
        self.assertEqual(response.status_code, 400)

    def test_oversized_name_is_invalid_argument(self):
        response = self.call("add_category", {"user_id": USER, "category": "x" * 101})
        self.assertEqual(response.status_code, 400)

    def test_invalid_timestamp_is_invalid_argument(self):
        data = {"user_id": USER, "category": "A", "subcategory": "b", "timestamp": "soon"}
        response = self.call("add_timestamp", data)
        self.assertEqual(response.status_code, 400)

    def test_user_id_requires_sign_in_outside_emulator(self):
        response = self.call("get_categories", {"user_id": USER}, emulated=False)
        self.assertEqual(response.status_code, 401)


if __name__ == "__main__":
    unittest.main()
