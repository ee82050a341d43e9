"""Root store: owns the store modules and routes nested entities between them."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Set

from modulator.errors import ModuleNotRegistered, RegistryConflict

from app import config
from entity_normalizer import Normalizer
from schema_registry import SchemaRegistry
from store_module import StoreModule, build_store_module


logger = logging.getLogger("modulator.store")


class Store:
    def __init__(
        self,
        registry: SchemaRegistry,
        api: Any = None,
        notifier: Any = None,
        loaders: Any = None,
        wait_children: bool | None = None,
        messages: Dict[str, str] | None = None,
    ) -> None:
        self.registry = registry
        self.api = api
        self.notifier = notifier
        self.loaders = loaders if loaders is not None else getattr(api, "loaders", None)
        self.messages = messages
        if wait_children is None:
            wait_children = config.wait_children()
        self.normalizer = Normalizer(registry, wait_children=wait_children)
        self._modules: Dict[str, StoreModule] = {}
        self._pending: Set[asyncio.Future] = set()

    def generate_module(self, singular: str, endpoint: str | None = None, editable: bool = True) -> StoreModule:
        if singular in self._modules:
            raise RegistryConflict(message=f"module {singular!r} is already registered", name=singular)
        module = build_store_module(
            singular,
            self.registry,
            self,
            endpoint=endpoint,
            editable=editable,
            api=self.api,
            notifier=self.notifier,
            loaders=self.loaders,
            messages=self.messages,
        )
        self._modules[singular] = module
        return module

    def module(self, singular: str) -> StoreModule:
        module = self._modules.get(singular)
        if module is None:
            raise ModuleNotRegistered(message=f"no store module for {singular!r}", name=singular)
        return module

    def has_module(self, singular: str) -> bool:
        return singular in self._modules

    def modules(self) -> list[StoreModule]:
        return [self._modules[name] for name in sorted(self._modules.keys())]

    def dispatch_child(self, type_name: str, entity: dict) -> asyncio.Future | None:
        module = self._modules.get(type_name)
        if module is None:
            logger.warning("dispatch_unknown_module type=%s", type_name)
            return None
        task = asyncio.ensure_future(module.dispatch_and_commit(entity))
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("dispatch_task_failed error=%s", exc)

    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every dispatched entity, including ones dispatched meanwhile."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _lookup(self, kind: str, name: str) -> Callable[..., Any]:
        for module in self._modules.values():
            table = getattr(module, kind)()
            if name in table:
                return table[name]
        raise ModuleNotRegistered(message=f"unknown {kind[:-1]} {name!r}", name=name)

    def commit(self, name: str, payload: Any = None) -> Any:
        return self._lookup("mutations", name)(payload)

    async def dispatch(self, name: str, payload: Any = None) -> Any:
        return await self._lookup("actions", name)(payload)

    def getter(self, name: str) -> Any:
        return self._lookup("getters", name)
