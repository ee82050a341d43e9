"""Entity type registry: default fields, relations, names and display terms."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from modulator.common import Issue, issue
from modulator.errors import RegistryConflict, TypeNotRegistered


logger = logging.getLogger("modulator.schema")

RELATION_KINDS = ("many", "one", "habtm")


@dataclass(frozen=True)
class RelationRef:
    field: str
    model: str

    @classmethod
    def parse(cls, raw: Any) -> "RelationRef":
        if isinstance(raw, RelationRef):
            return raw
        if isinstance(raw, str) and raw:
            return cls(field=raw, model=raw)
        if isinstance(raw, dict) and isinstance(raw.get("field"), str) and isinstance(raw.get("model"), str):
            return cls(field=raw["field"], model=raw["model"])
        raise ValueError(f"Invalid relation reference: {raw!r}")


@dataclass(frozen=True)
class HabtmRef:
    name: str

    @classmethod
    def parse(cls, raw: Any) -> "HabtmRef":
        if isinstance(raw, HabtmRef):
            return raw
        if isinstance(raw, str) and raw:
            return cls(name=raw)
        if isinstance(raw, dict) and isinstance(raw.get("name"), str):
            return cls(name=raw["name"])
        raise ValueError(f"Invalid habtm reference: {raw!r}")


@dataclass(frozen=True)
class Relations:
    many: Tuple[RelationRef, ...] = ()
    one: Tuple[RelationRef, ...] = ()
    habtm: Tuple[HabtmRef, ...] = ()

    @classmethod
    def parse(cls, raw: Any) -> "Relations":
        if isinstance(raw, Relations):
            return raw
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValueError("relations must be an object")
        return cls(
            many=tuple(RelationRef.parse(r) for r in raw.get("many") or []),
            one=tuple(RelationRef.parse(r) for r in raw.get("one") or []),
            habtm=tuple(HabtmRef.parse(r) for r in raw.get("habtm") or []),
        )


@dataclass(frozen=True)
class LocaleTerms:
    of_one: str
    of_many: str


@dataclass(frozen=True)
class TypeDescriptor:
    singular: str
    plural: str
    fields: Dict[str, Any] = field(default_factory=dict)
    relations: Relations = field(default_factory=Relations)
    locale: LocaleTerms | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "TypeDescriptor":
        if not isinstance(data, dict):
            raise ValueError("type definition must be an object")
        singular = data.get("singular")
        plural = data.get("plural")
        if not isinstance(singular, str) or not singular:
            raise ValueError("type definition requires a singular name")
        if not isinstance(plural, str) or not plural:
            raise ValueError(f"type definition {singular!r} requires a plural name")
        locale = data.get("locale") or {}
        return cls(
            singular=singular,
            plural=plural,
            fields=copy.deepcopy(data.get("fields") or {}),
            relations=Relations.parse(data.get("relations")),
            locale=LocaleTerms(
                of_one=locale.get("of_one") or f"a {singular}",
                of_many=locale.get("of_many") or plural,
            ),
        )


class SchemaRegistry:
    """Lookup table of entity types, filled once before any traffic flows."""

    def __init__(self, descriptors: Iterable[TypeDescriptor] = ()) -> None:
        self._types: Dict[str, TypeDescriptor] = {}
        self._plurals: Dict[str, str] = {}
        self._singulars: Dict[str, str] = {}
        for descriptor in descriptors:
            self.add(descriptor)

    @classmethod
    def build(cls, definitions: Iterable[dict | TypeDescriptor], strict: bool = True) -> "SchemaRegistry":
        registry = cls(
            d if isinstance(d, TypeDescriptor) else TypeDescriptor.from_dict(d) for d in definitions
        )
        problems = registry.check_relations()
        if problems:
            for problem in problems:
                logger.warning("relation_target_unknown path=%s detail=%s", problem["path"], problem["detail"])
            if strict:
                first = problems[0]
                raise RegistryConflict(message=first["message"], name=first["detail"]["model"])
        return registry

    def register(
        self,
        singular: str,
        plural: str,
        fields: dict | None = None,
        relations: dict | Relations | None = None,
        locale_terms: dict | None = None,
    ) -> TypeDescriptor:
        locale_terms = locale_terms or {}
        descriptor = TypeDescriptor(
            singular=singular,
            plural=plural,
            fields=copy.deepcopy(fields or {}),
            relations=Relations.parse(relations),
            locale=LocaleTerms(
                of_one=locale_terms.get("of_one") or f"a {singular}",
                of_many=locale_terms.get("of_many") or plural,
            ),
        )
        return self.add(descriptor)

    def add(self, descriptor: TypeDescriptor) -> TypeDescriptor:
        singular, plural = descriptor.singular, descriptor.plural
        if singular in self._types:
            raise RegistryConflict(message=f"type {singular!r} is already registered", name=singular)
        if plural in self._singulars:
            owner = self._singulars[plural]
            raise RegistryConflict(message=f"plural {plural!r} is already used by {owner!r}", name=plural)
        if singular in self._singulars or plural in self._types:
            raise RegistryConflict(
                message=f"names {singular!r}/{plural!r} collide with a registered type", name=singular
            )
        if descriptor.locale is None:
            descriptor = TypeDescriptor(
                singular=singular,
                plural=plural,
                fields=descriptor.fields,
                relations=descriptor.relations,
                locale=LocaleTerms(of_one=f"a {singular}", of_many=plural),
            )
        self._types[singular] = descriptor
        self._plurals[singular] = plural
        self._singulars[plural] = singular
        return descriptor

    def is_registered(self, singular: str) -> bool:
        return singular in self._types

    def names(self) -> list[str]:
        return sorted(self._types.keys())

    def descriptor(self, singular: str) -> TypeDescriptor:
        descriptor = self._types.get(singular)
        if descriptor is None:
            raise TypeNotRegistered(message=f"type {singular!r} is not registered", type_name=singular)
        return descriptor

    def fields_of(self, singular: str) -> dict:
        return copy.deepcopy(self.descriptor(singular).fields)

    def relations_of(self, singular: str) -> Relations:
        return self.descriptor(singular).relations

    def plural_of(self, singular: str) -> str:
        plural = self._plurals.get(singular)
        if plural:
            return plural
        fallback = f"{singular}s"
        logger.warning("plural_not_found name=%s fallback=%s", singular, fallback)
        return fallback

    def singular_of(self, plural: str) -> str:
        singular = self._singulars.get(plural)
        if singular:
            return singular
        fallback = plural[:-1]
        logger.warning("singular_not_found name=%s fallback=%s", plural, fallback)
        return fallback

    def locale_of_one(self, singular: str) -> str:
        descriptor = self._types.get(singular)
        if descriptor is None or descriptor.locale is None:
            return f"a {singular}"
        return descriptor.locale.of_one

    def locale_of_many(self, plural: str) -> str:
        singular = self._singulars.get(plural)
        descriptor = self._types.get(singular) if singular else None
        if descriptor is None or descriptor.locale is None:
            return plural
        return descriptor.locale.of_many

    def resolve_related(self, model: str, kind: str) -> str:
        """Type name a relation reference points at.

        ``one`` refs name a singular type; ``many`` and ``habtm`` refs name a
        plural, unless they already name a registered singular.
        """
        if kind == "one" or model in self._types:
            return model
        return self.singular_of(model)

    def check_relations(self) -> List[Issue]:
        problems: List[Issue] = []
        for singular in self.names():
            relations = self._types[singular].relations
            refs: List[Tuple[str, str, str]] = [("many", r.field, r.model) for r in relations.many]
            refs += [("one", r.field, r.model) for r in relations.one]
            refs += [("habtm", r.name, r.name) for r in relations.habtm]
            for idx, (kind, field_name, model) in enumerate(refs):
                target = model if kind == "one" else self._singulars.get(model, model)
                if target in self._types:
                    continue
                problems.append(
                    issue(
                        "RELATION_TARGET_UNKNOWN",
                        f"{singular}.{field_name} targets unregistered type {model!r}",
                        f"{singular}.relations.{kind}",
                        {"field": field_name, "model": model, "index": idx},
                    )
                )
        return problems
