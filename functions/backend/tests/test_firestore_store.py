import unittest
from unittest.mock import MagicMock, patch

from google.api_core import exceptions
from google.cloud.firestore_v1 import (
    ArrayRemove as FirestoreArrayRemove,
    ArrayUnion as FirestoreArrayUnion,
    DELETE_FIELD as FIRESTORE_DELETE_FIELD,
)

from backend.db import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    DocumentExistsError,
    DocumentNotFoundError,
)
from backend.firestore_store import (
    FirestoreDocumentStore,
    render_field_path,
    to_firestore_updates,
)


def _snapshot(data):
    snapshot = MagicMock()
    snapshot.exists = data is not None
    snapshot.to_dict.return_value = data
    return snapshot


class FieldPathRenderingTests(unittest.TestCase):
    def test_simple_segments_are_dotted(self):
        self.assertEqual(render_field_path(("categories", "Fitness")), "categories.Fitness")

    def test_special_segments_are_quoted(self):
        self.assertEqual(
            render_field_path(("categories", "Personal Care")),
            "categories.`Personal Care`",
        )

    def test_converts_update_values(self):
        converted = to_firestore_updates(
            {
                ("categories", "A"): ArrayUnion(["x"]),
                ("categories", "B"): ArrayRemove(["y"]),
                ("categories", "C"): DELETE_FIELD,
                ("categories", "D"): [],
            }
        )
        self.assertIsInstance(converted["categories.A"], FirestoreArrayUnion)
        self.assertEqual(converted["categories.A"].values, ["x"])
        self.assertIsInstance(converted["categories.B"], FirestoreArrayRemove)
        self.assertEqual(converted["categories.B"].values, ["y"])
        self.assertIs(converted["categories.C"], FIRESTORE_DELETE_FIELD)
        self.assertEqual(converted["categories.D"], [])


class FirestoreDocumentStoreTests(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.doc_ref = self.client.collection.return_value.document.return_value
        self.store = FirestoreDocumentStore(client=self.client, collection="users")

    def test_get_existing_document(self):
        self.doc_ref.get.return_value = _snapshot({"categories": {}})
        self.assertEqual(self.store.get("a@x.com"), {"categories": {}})
        self.client.collection.assert_called_with("users")
        self.client.collection.return_value.document.assert_called_with("a@x.com")

    def test_get_missing_document(self):
        self.doc_ref.get.return_value = _snapshot(None)
        self.assertIsNone(self.store.get("a@x.com"))

    def test_set_writes_whole_document(self):
        self.store.set("a@x.com", {"categories": {}, "timestamps": {}})
        self.doc_ref.set.assert_called_once_with({"categories": {}, "timestamps": {}})

    def test_create_existing_document_raises(self):
        self.doc_ref.create.side_effect = exceptions.AlreadyExists("exists")
        with self.assertRaises(DocumentExistsError):
            self.store.create("a@x.com", {"categories": {}})
        self.doc_ref.create.assert_called_once_with({"categories": {}})

    def test_update_renders_field_paths(self):
        self.store.update("a@x.com", {("categories", "Fitness"): []})
        self.doc_ref.update.assert_called_once_with({"categories.Fitness": []})

    def test_update_missing_document_raises_not_found(self):
        self.doc_ref.update.side_effect = exceptions.NotFound("no document")
        with self.assertRaises(DocumentNotFoundError):
            self.store.update("a@x.com", {("categories", "Fitness"): []})

    @patch("backend.firestore_store.transactional", lambda to_wrap: to_wrap)
    def test_transact_updates_inside_transaction(self):
        transaction = self.client.transaction.return_value
        self.doc_ref.get.return_value = _snapshot({"categories": {"A": ["x"]}})

        applied = self.store.transact(
            "a@x.com", lambda doc: {("categories", "B"): doc["categories"]["A"]}
        )

        self.assertEqual(applied, {("categories", "B"): ["x"]})
        self.doc_ref.get.assert_called_once_with(transaction=transaction)
        transaction.update.assert_called_once_with(self.doc_ref, {"categories.B": ["x"]})

    @patch("backend.firestore_store.transactional", lambda to_wrap: to_wrap)
    def test_transact_without_updates_skips_write(self):
        transaction = self.client.transaction.return_value
        self.doc_ref.get.return_value = _snapshot(None)

        self.assertIsNone(self.store.transact("a@x.com", lambda doc: None))
        transaction.update.assert_not_called()


if __name__ == "__main__":
    unittest.main()
