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


import unittest

from shared import usage

CATEGORIES = {"Personal Care": ["Haircut", "Shaving"], "Fitness": ["Run"]}
TIMESTAMPS = {
    "Personal Care": {"Haircut": [300, 100, 200]},
    "Ghost": {"Gone": [5]},
}


class UsageTest(unittest.TestCase):

    def test_sorted_history(self):
        self.assertEqual(
            usage.sorted_history(TIMESTAMPS, "Personal Care", "Haircut"), [100, 200, 300]
        )
        self.assertEqual(usage.sorted_history(TIMESTAMPS, "Fitness", "Run"), [])

    def test_summarize_usage_follows_taxonomy_order(self):
        entries = usage.summarize_usage(CATEGORIES, TIMESTAMPS)
        self.assertEqual(
            [(e.category, e.subcategory, e.count, e.last_used) for e in entries],
            [
                ("Personal Care", "Haircut", 3, 300),
                ("Personal Care", "Shaving", 0, None),
                ("Fitness", "Run", 0, None),
            ],
        )

    def test_summarize_usage_single_category(self):
        entries = usage.summarize_usage(CATEGORIES, TIMESTAMPS, "Fitness")
        self.assertEqual([e.subcategory for e in entries], ["Run"])
        self.assertEqual(usage.summarize_usage(CATEGORIES, TIMESTAMPS, "Ghost"), [])


if __name__ == "__main__":
    unittest.main()
