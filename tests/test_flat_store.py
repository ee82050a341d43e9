import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from flat_store import FlatStore
from modulator.common import filter_obj, has_id, sort_results_by_text


class TestFlatStore(unittest.TestCase):
    def test_ids_are_keyed_as_strings(self) -> None:
        store = FlatStore("post")
        store.put(1, {"id": 1, "title": "x"})
        self.assertIn("1", store)
        self.assertIn(1, store)
        self.assertEqual(store.get("1"), {"id": 1, "title": "x"})
        self.assertEqual(store.ids(), ["1"])

    def test_reads_are_copies(self) -> None:
        store = FlatStore("post")
        store.put(1, {"id": 1, "tags": [1]})
        store.get(1)["tags"].append(2)
        store.records()["1"]["tags"].append(3)
        self.assertEqual(store.get(1), {"id": 1, "tags": [1]})

    def test_remove_and_clear(self) -> None:
        store = FlatStore("post")
        store.put(1, {"id": 1})
        store.put(2, {"id": 2})
        self.assertTrue(store.remove(1))
        self.assertFalse(store.remove(1))
        self.assertEqual(len(store), 1)
        store.clear()
        self.assertEqual(len(store), 0)
        self.assertIsNone(store.get(2))


class TestCommonHelpers(unittest.TestCase):
    def test_has_id(self) -> None:
        self.assertTrue(has_id({"id": 0}))
        self.assertTrue(has_id({"id": "a"}))
        self.assertFalse(has_id({"id": None}))
        self.assertFalse(has_id({"id": ""}))
        self.assertFalse(has_id({"name": "x"}))
        self.assertFalse(has_id(None))
        self.assertFalse(has_id([1]))

    def test_filter_obj(self) -> None:
        data = {"1": {"v": 1}, "2": {"v": 2}, "3": {"v": 2}}
        self.assertEqual(filter_obj(data, lambda rec, _k: rec["v"] == 2), {"2": {"v": 2}, "3": {"v": 2}})
        self.assertEqual(filter_obj(data, lambda rec, _k: rec["v"] == 2, first=True), {"v": 2})
        self.assertIsNone(filter_obj(data, lambda rec, _k: False, first=True))
        with self.assertRaises(TypeError):
            filter_obj([1, 2], lambda rec, _k: True)

    def test_sort_results_by_text_is_case_insensitive_and_stable(self) -> None:
        data = {
            "1": {"name": "banana"},
            "2": {"name": "Apple"},
            "3": {"name": "apple"},
            "4": {"name": None},
        }
        self.assertEqual(
            sort_results_by_text(data, "name"),
            [("4", None), ("2", "Apple"), ("3", "apple"), ("1", "banana")],
        )


if __name__ == "__main__":
    unittest.main()
