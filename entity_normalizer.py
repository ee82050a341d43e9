"""Relation-aware flattening of nested API entities.

A raw entity comes back from the API with its related entities nested inside
it. ``Normalizer.flatten`` walks the type's relation declarations and hands
every nested entity to ``dispatch_child`` so it lands in its own store, then
collapses the relation fields on the parent:

- ``many`` and ``one`` fields are removed;
- ``habtm`` fields are replaced with the list of related ids.

Recursion happens through ``dispatch_child``: the owning store module of the
child normalizes it in turn before committing it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List

from modulator.common import Issue, has_id, issue, iter_members
from modulator.errors import MalformedHabtmEntity

from schema_registry import SchemaRegistry


logger = logging.getLogger("modulator.normalizer")

DispatchChild = Callable[[str, dict], "Awaitable[Any] | None"]

MATCHING_DATA_FIELD = "_matchingData"


@dataclass
class Normalized:
    entity: dict
    children: List[Awaitable[Any]] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)


class Normalizer:
    def __init__(self, registry: SchemaRegistry, wait_children: bool = False) -> None:
        self._registry = registry
        self.wait_children = wait_children

    def flatten(self, entity: dict, type_name: str, dispatch_child: DispatchChild) -> Normalized:
        relations = self._registry.relations_of(type_name)
        result = Normalized(entity=entity)

        def _dispatch(related: str, sub_entity: dict) -> None:
            handle = dispatch_child(related, sub_entity)
            if handle is not None:
                result.children.append(handle)

        for ref in relations.many:
            if ref.field not in entity:
                continue
            related = self._registry.resolve_related(ref.model, "many")
            for sub_entity in iter_members(entity[ref.field]):
                if has_id(sub_entity):
                    _dispatch(related, sub_entity)
                else:
                    logger.debug("child_skipped_no_id type=%s field=%s", type_name, ref.field)
            del entity[ref.field]

        for ref in relations.one:
            sub_entity = entity.get(ref.field)
            if has_id(sub_entity):
                _dispatch(self._registry.resolve_related(ref.model, "one"), sub_entity)
            entity.pop(ref.field, None)

        for ref in relations.habtm:
            if ref.name not in entity:
                continue
            related = self._registry.resolve_related(ref.name, "habtm")
            fk_list: List[Any] = []
            for sub_entity in iter_members(entity[ref.name]):
                if has_id(sub_entity):
                    fk_list.append(sub_entity["id"])
                    _dispatch(related, sub_entity)
                elif isinstance(sub_entity, dict) and sub_entity.get("fk_id") not in (None, ""):
                    fk_list.append(sub_entity["fk_id"])
                else:
                    problem = MalformedHabtmEntity(
                        message=f"{type_name}.{ref.name} entry has neither id nor fk_id",
                        field=ref.name,
                        entity=sub_entity,
                    )
                    logger.warning(
                        "habtm_entity_malformed type=%s field=%s entity=%r", type_name, ref.name, sub_entity
                    )
                    result.issues.append(
                        issue(problem.code, problem.message, f"{type_name}.{ref.name}", {"entity": sub_entity})
                    )
            entity[ref.name] = fk_list

        if relations.habtm:
            entity.pop(MATCHING_DATA_FIELD, None)

        return result

    async def normalize(
        self,
        entity: dict,
        type_name: str,
        dispatch_child: DispatchChild,
        wait: bool | None = None,
    ) -> dict:
        result = self.flatten(entity, type_name, dispatch_child)
        if wait is None:
            wait = self.wait_children
        if wait and result.children:
            outcomes = await asyncio.gather(*result.children, return_exceptions=True)
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    logger.error("child_commit_failed type=%s error=%s", type_name, outcome)
        return result.entity
