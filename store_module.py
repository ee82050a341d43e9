"""Store module generator: mutations, queries and remote actions per entity type."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, NoReturn, Tuple

from modulator.common import filter_obj, has_id, random_chars, sort_results_by_text
from modulator.errors import OperationNotAvailable, RemoteCallFailed
from modulator.messages import MESSAGES, message

from flat_store import FlatStore, Record
from schema_registry import SchemaRegistry

if TYPE_CHECKING:  # pragma: no cover
    from root_store import Store


logger = logging.getLogger("modulator.store")

CREATE_STRIPPED_FIELDS = ("id", "user_id", "created", "modified", "trashed")
PATCH_STRIPPED_FIELDS = ("user_id", "created", "modified")

LOAD_MANY_DEFAULTS = {
    "local_loader": False,
    "loader_id": None,
    "loader_message": None,
    "endpoint": None,
    "id": None,
    "payload": None,
    "page": None,
    "wait": False,
}
LOAD_ONE_DEFAULTS = {
    "local_loader": False,
    "loader_id": None,
    "loader_message": None,
    "id": None,
    "payload": None,
    "wait": False,
}
EDIT_DEFAULTS = {
    "local_loader": False,
    "loader_id": None,
    "loader_message": None,
    "payload": None,
    "wait": False,
}


def loader_spec(options: dict, default_message: str, default_id: str) -> Any:
    msg = options.get("loader_message") or default_message
    if options.get("local_loader") is True:
        return {"loader_id": options.get("loader_id") or default_id, "message": msg}
    return msg


def _strip(entity: dict, keys: Tuple[str, ...]) -> dict:
    return {k: v for k, v in entity.items() if k not in keys}


class StoreModule:
    """Uniform entity store for one registered type."""

    def __init__(
        self,
        singular: str,
        registry: SchemaRegistry,
        root: "Store",
        api: Any = None,
        notifier: Any = None,
        loaders: Any = None,
        endpoint: str | None = None,
        editable: bool = True,
        messages: Dict[str, str] | None = None,
    ) -> None:
        self.singular = singular
        self.plural = registry.plural_of(singular)
        self.upper_singular = singular.upper()
        self.upper_plural = self.plural.upper()
        self.registry = registry
        self.root = root
        self.api = api
        self.notifier = notifier
        self.loaders = loaders
        self.endpoint = endpoint.rstrip("/") if endpoint else None
        self.editable = editable is True
        self.messages = messages if messages is not None else MESSAGES
        self.state = FlatStore(singular)

    # -- mutations ---------------------------------------------------------

    def reset(self) -> None:
        self.state.clear()

    def upsert(self, entity: dict) -> None:
        if not has_id(entity):
            logger.debug("upsert_skipped_no_id type=%s", self.singular)
            return
        record = self.registry.fields_of(self.singular)
        record.update(entity)
        self.state.put(entity["id"], record)

    def delete(self, record_id: Any) -> None:
        self.state.remove(record_id)

    def patch_merge(self, entity: dict) -> None:
        # Raw merge: default fields are not applied here.
        if not has_id(entity):
            return
        record = self.state.get(entity["id"]) or {}
        record.update(entity)
        self.state.put(entity["id"], record)

    # -- queries -----------------------------------------------------------

    def all(self) -> Dict[str, Record]:
        return self.state.records()

    def one(self, record_id: Any) -> Record | None:
        return self.state.get(record_id)

    def all_by_relation(self, foreign_key: str, foreign_id: Any) -> Dict[str, Record]:
        return filter_obj(self.all(), lambda rec, _k: rec.get(foreign_key) == foreign_id)

    def all_by_habtm_relation(self, foreign_key: str, foreign_id: Any) -> Dict[str, Record]:
        def _contains(rec: Record, _key: str) -> bool:
            values = rec.get(foreign_key)
            return isinstance(values, (list, tuple)) and foreign_id in values

        return filter_obj(self.all(), _contains)

    def all_by_filter(self, predicate: Callable[[Record], bool]) -> Dict[str, Record]:
        return filter_obj(self.all(), lambda rec, _k: bool(predicate(rec)))

    def first_by_relation(self, foreign_key: str, foreign_id: Any) -> Record | None:
        return filter_obj(self.all(), lambda rec, _k: rec.get(foreign_key) == foreign_id, first=True)

    def count(self) -> int:
        return len(self.state)

    def count_in_relation(self, foreign_key: str, foreign_id: Any) -> int:
        return len(self.all_by_relation(foreign_key, foreign_id))

    def list_ordered_by_text_field(self, field_name: str) -> List[Tuple[str, Any]]:
        return sort_results_by_text(self.all(), field_name)

    def model(self) -> dict:
        return self.registry.fields_of(self.singular)

    # -- actions -----------------------------------------------------------

    async def dispatch_and_commit(self, entity: dict) -> dict:
        clean = await self.root.normalizer.normalize(entity, self.singular, self.root.dispatch_child)
        self.upsert(clean)
        return clean

    async def reset_state(self) -> None:
        handle = None
        if self.loaders is not None:
            handle = self.loaders.set_loading_state(
                message("cleaning", self.messages, name=self.registry.locale_of_many(self.plural))
            )
        try:
            self.reset()
        finally:
            if handle is not None:
                handle.done()

    def _not_available(self, operation: str) -> OperationNotAvailable:
        if self.endpoint is None:
            text = f"{operation}: No endpoint defined."
        else:
            text = f"{operation} is not available for this module."
        logger.warning("operation_not_available type=%s operation=%s", self.singular, operation)
        return OperationNotAvailable(message=text, operation=operation)

    def _raise_failed(self, operation: str, key: str, exc: Exception) -> NoReturn:
        logger.error("remote_call_failed type=%s operation=%s error=%s", self.singular, operation, exc)
        if self.notifier is not None:
            self.notifier.notify({"text": message(key, self.messages), "type": "error"})
        if isinstance(exc, RemoteCallFailed):
            raise exc
        raise RemoteCallFailed(message=f"{operation} failed: {exc}", operation=operation) from exc

    def _notify_success(self, key: str) -> None:
        if self.notifier is not None:
            self.notifier.notify({"text": message(key, self.messages), "type": "success"})

    async def _commit_response(self, data: Any, wait: bool) -> List[Awaitable[Any]]:
        handles: List[Awaitable[Any]] = []
        if not isinstance(data, dict):
            return handles
        handle = self.root.dispatch_child(self.singular, data)
        if handle is not None:
            handles.append(handle)
        if wait and handles:
            await asyncio.gather(*handles, return_exceptions=True)
        return handles

    async def load_many(self, config: dict | None = None) -> List[Awaitable[Any]]:
        operation = f"LOAD_{self.upper_plural}"
        if self.endpoint is None:
            raise self._not_available(operation)
        options = {**LOAD_MANY_DEFAULTS, **(config or {})}

        url = f"{self.endpoint}/{options['endpoint']}" if options["endpoint"] else f"{self.endpoint}/"
        if options["id"] is not None:
            url = f"{url.rstrip('/')}/{options['id']}"
        payload = options["payload"]
        if options["page"] is not None:
            payload = {**(payload or {}), "page": options["page"]}

        loader = loader_spec(
            options,
            message("loading_many", self.messages, name=self.registry.locale_of_many(self.plural)),
            f"{operation}_{random_chars()}",
        )
        try:
            data = await self.api.get(url, payload, loader)
        except Exception as exc:
            self._raise_failed(operation, "failed_to_get", exc)

        logger.info("loaded type=%s count=%s", self.plural, len(data) if isinstance(data, (list, dict)) else 0)
        items = data.values() if isinstance(data, dict) else (data or [])
        handles: List[Awaitable[Any]] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            handle = self.root.dispatch_child(self.singular, item)
            if handle is not None:
                handles.append(handle)
        if options["wait"] and handles:
            await asyncio.gather(*handles, return_exceptions=True)
        return handles

    async def load_one(self, id_or_config: Any = None) -> Any:
        operation = f"LOAD_{self.upper_singular}"
        if self.endpoint is None:
            raise self._not_available(operation)
        if isinstance(id_or_config, dict):
            options = {**LOAD_ONE_DEFAULTS, **id_or_config}
        else:
            options = {**LOAD_ONE_DEFAULTS, "id": id_or_config}

        loader = loader_spec(
            options,
            message("loading_one", self.messages, name=self.registry.locale_of_one(self.singular)),
            operation,
        )
        try:
            data = await self.api.get(f"{self.endpoint}/{options['id']}", options["payload"], loader)
        except Exception as exc:
            self._raise_failed(operation, "failed_to_get", exc)

        await self._commit_response(data, options["wait"])
        return data

    def _split_entity_config(self, entity_or_config: Any) -> Tuple[dict, dict]:
        if isinstance(entity_or_config, dict) and "entity" in entity_or_config:
            options = {**EDIT_DEFAULTS, **entity_or_config}
            entity = options["entity"]
        else:
            options = dict(EDIT_DEFAULTS)
            entity = entity_or_config
        if not isinstance(entity, dict):
            raise TypeError("entity must be a mapping")
        return options, copy.deepcopy(entity)

    async def create(self, entity_or_config: Any) -> Any:
        operation = f"NEW_{self.upper_singular}"
        if self.endpoint is None or not self.editable:
            raise self._not_available(operation)
        options, entity = self._split_entity_config(entity_or_config)
        entity = _strip(entity, CREATE_STRIPPED_FIELDS)

        loader = loader_spec(
            options,
            message("saving", self.messages, name=self.registry.locale_of_one(self.singular)),
            operation,
        )
        try:
            data = await self.api.post(f"{self.endpoint}/create", entity, loader)
        except Exception as exc:
            self._raise_failed(operation, "failed_to_create", exc)

        await self._commit_response(data, options["wait"])
        self._notify_success("success_on_create")
        return data

    async def patch_remote(self, entity_or_config: Any) -> Any:
        operation = f"PATCH_{self.upper_singular}"
        if self.endpoint is None or not self.editable:
            raise self._not_available(operation)
        options, entity = self._split_entity_config(entity_or_config)
        entity_id = entity.get("id")
        entity = _strip(entity, PATCH_STRIPPED_FIELDS)

        loader = loader_spec(
            options,
            message("saving", self.messages, name=self.registry.locale_of_one(self.singular)),
            operation,
        )
        try:
            data = await self.api.patch(f"{self.endpoint}/{entity_id}", entity, loader)
        except Exception as exc:
            self._raise_failed(operation, "failed_to_patch", exc)

        # Some backends answer a patch with an empty body.
        await self._commit_response(data, options["wait"])
        self._notify_success("success_on_patch")
        return data

    async def delete_remote(self, id_or_config: Any) -> Any:
        operation = f"DELETE_{self.upper_singular}"
        if self.endpoint is None or not self.editable:
            raise self._not_available(operation)
        if isinstance(id_or_config, dict):
            options = {**EDIT_DEFAULTS, **id_or_config}
            record_id = options.get("id")
        else:
            options = dict(EDIT_DEFAULTS)
            record_id = id_or_config

        loader = loader_spec(
            options,
            message("deleting", self.messages, name=self.registry.locale_of_one(self.singular)),
            operation,
        )
        try:
            data = await self.api.delete(f"{self.endpoint}/delete/{record_id}", None, loader)
        except Exception as exc:
            self._raise_failed(operation, "failed_on_delete", exc)

        self.delete(record_id)
        self._notify_success("success_on_delete")
        return data

    # -- name maps -----------------------------------------------------------

    def mutations(self) -> Dict[str, Callable[..., Any]]:
        return {
            f"RESET_{self.upper_plural}": lambda _payload=None: self.reset(),
            f"SET_{self.upper_singular}": self.upsert,
            f"DEL_{self.upper_singular}": self.delete,
            f"UPDATE_{self.upper_singular}": self.patch_merge,
        }

    def actions(self) -> Dict[str, Callable[..., Awaitable[Any]]]:
        return {
            f"LOAD_{self.upper_plural}": self.load_many,
            f"LOAD_{self.upper_singular}": self.load_one,
            f"NEW_{self.upper_singular}": self.create,
            f"PATCH_{self.upper_singular}": self.patch_remote,
            f"DELETE_{self.upper_singular}": self.delete_remote,
            f"DISPATCH_AND_COMMIT_{self.upper_singular}": self.dispatch_and_commit,
            f"RESET_{self.upper_plural}_STATE": lambda _payload=None: self.reset_state(),
        }

    def getters(self) -> Dict[str, Any]:
        return {
            f"ALL_{self.upper_plural}": self.all,
            f"ONE_{self.upper_singular}": lambda record_id: self.one(record_id) or {},
            f"ALL_{self.upper_plural}_BY_RELATION": self.all_by_relation,
            f"ALL_{self.upper_plural}_BY_HABTM_RELATION": self.all_by_habtm_relation,
            f"ALL_{self.upper_plural}_BY_FILTER": self.all_by_filter,
            f"FIRST_{self.upper_singular}_BY_RELATION": lambda fk, value: self.first_by_relation(fk, value) or {},
            f"COUNT_{self.upper_plural}": self.count,
            f"COUNT_{self.upper_plural}_IN_RELATION": self.count_in_relation,
            f"ALL_{self.upper_plural}_LIST_ORDERED_BY_TEXT_FIELD": self.list_ordered_by_text_field,
            f"{self.upper_singular}_MODEL": self.model,
        }


def build_store_module(
    singular: str,
    registry: SchemaRegistry,
    root: "Store",
    endpoint: str | None = None,
    editable: bool = True,
    **collaborators: Any,
) -> StoreModule:
    registry.descriptor(singular)
    return StoreModule(singular, registry, root, endpoint=endpoint, editable=editable, **collaborators)
