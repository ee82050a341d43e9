import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from modulator.errors import ModuleNotRegistered, OperationNotAvailable, RegistryConflict, TypeNotRegistered
from root_store import Store
from schema_registry import SchemaRegistry


def _registry() -> SchemaRegistry:
    return SchemaRegistry.build(
        [
            {"singular": "post", "plural": "posts", "fields": {"title": ""}, "relations": {"many": ["comments"]}},
            {"singular": "comment", "plural": "comments", "fields": {"text": ""}, "relations": {"one": ["user"]}},
            {"singular": "user", "plural": "users", "fields": {"name": ""}},
        ]
    )


class TestStoreModules(unittest.TestCase):
    def setUp(self) -> None:
        self.store = Store(_registry(), wait_children=False)

    def test_generate_module_once(self) -> None:
        module = self.store.generate_module("post", "posts")
        self.assertIs(self.store.module("post"), module)
        self.assertTrue(self.store.has_module("post"))
        with self.assertRaises(RegistryConflict):
            self.store.generate_module("post")

    def test_generate_module_requires_registered_type(self) -> None:
        with self.assertRaises(TypeNotRegistered):
            self.store.generate_module("widget")

    def test_unknown_module_lookup(self) -> None:
        with self.assertRaises(ModuleNotRegistered):
            self.store.module("comment")

    def test_dispatch_to_unknown_module_is_ignored(self) -> None:
        with self.assertLogs("modulator.store", level="WARNING") as logs:
            self.assertIsNone(self.store.dispatch_child("comment", {"id": 1}))
        self.assertIn("dispatch_unknown_module", logs.output[0])

    def test_name_maps_expose_every_operation(self) -> None:
        module = self.store.generate_module("post", "posts")
        self.assertEqual(
            set(module.mutations().keys()),
            {"RESET_POSTS", "SET_POST", "DEL_POST", "UPDATE_POST"},
        )
        self.assertEqual(
            set(module.actions().keys()),
            {
                "LOAD_POSTS",
                "LOAD_POST",
                "NEW_POST",
                "PATCH_POST",
                "DELETE_POST",
                "DISPATCH_AND_COMMIT_POST",
                "RESET_POSTS_STATE",
            },
        )
        self.assertEqual(
            set(module.getters().keys()),
            {
                "ALL_POSTS",
                "ONE_POST",
                "ALL_POSTS_BY_RELATION",
                "ALL_POSTS_BY_HABTM_RELATION",
                "ALL_POSTS_BY_FILTER",
                "FIRST_POST_BY_RELATION",
                "COUNT_POSTS",
                "COUNT_POSTS_IN_RELATION",
                "ALL_POSTS_LIST_ORDERED_BY_TEXT_FIELD",
                "POST_MODEL",
            },
        )

    def test_commit_and_getter_facade(self) -> None:
        self.store.generate_module("post", "posts")
        self.store.commit("SET_POST", {"id": 1, "title": "x"})
        self.store.commit("UPDATE_POST", {"id": 1, "extra": True})
        self.assertEqual(self.store.getter("ONE_POST")(1), {"id": 1, "title": "x", "extra": True})
        self.assertEqual(self.store.getter("COUNT_POSTS")(), 1)
        self.store.commit("DEL_POST", 1)
        self.assertEqual(self.store.getter("ALL_POSTS")(), {})
        self.assertEqual(self.store.getter("POST_MODEL")(), {"title": ""})
        with self.assertRaises(ModuleNotRegistered):
            self.store.commit("SET_WIDGET", {"id": 1})


class TestStoreDispatch(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.store = Store(_registry(), wait_children=False)
        self.posts = self.store.generate_module("post", "posts", editable=False)
        self.comments = self.store.generate_module("comment")
        self.users = self.store.generate_module("user")

    async def test_grandchildren_are_normalized(self) -> None:
        raw = {
            "id": 1,
            "title": "x",
            "comments": [
                {"id": 10, "text": "hi", "user": {"id": 100, "name": "ann"}},
                {"id": 11, "text": "yo", "user": {"id": 101, "name": "bob"}},
            ],
        }
        await self.store.dispatch("DISPATCH_AND_COMMIT_POST", raw)
        await self.store.drain()
        self.assertEqual(self.store.pending(), 0)
        self.assertEqual(self.posts.one(1), {"id": 1, "title": "x"})
        self.assertEqual(self.comments.one(10), {"id": 10, "text": "hi"})
        self.assertEqual(sorted(self.users.all().keys()), ["100", "101"])

    async def test_failed_child_is_logged_and_parent_committed(self) -> None:
        async def failing(entity: dict) -> dict:
            raise RuntimeError("child store broke")

        self.comments.dispatch_and_commit = failing
        with self.assertLogs("modulator.store", level="ERROR") as logs:
            await self.posts.dispatch_and_commit({"id": 1, "comments": [{"id": 10}]})
            await self.store.drain()
        self.assertIn("dispatch_task_failed", logs.output[0])
        self.assertEqual(self.posts.count(), 1)
        self.assertEqual(self.comments.count(), 0)

    async def test_store_wide_wait_children(self) -> None:
        store = Store(_registry(), wait_children=True)
        posts = store.generate_module("post")
        comments = store.generate_module("comment")
        await posts.dispatch_and_commit({"id": 1, "comments": [{"id": 10}]})
        self.assertEqual(comments.count(), 1)

    async def test_dispatch_facade_rejects_disabled_actions(self) -> None:
        with self.assertRaises(OperationNotAvailable):
            await self.store.dispatch("NEW_POST", {"title": "x"})

    async def test_reset_state_action(self) -> None:
        self.store.commit("SET_POST", {"id": 1})
        await self.store.dispatch("RESET_POSTS_STATE")
        self.assertEqual(self.posts.count(), 0)


if __name__ == "__main__":
    unittest.main()
