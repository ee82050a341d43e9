"""Error kinds raised by the schema, normalization and store layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass
class ModulatorError(Exception):
    message: str

    code: ClassVar[str] = "MODULATOR_ERROR"

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        return f"{self.code}: {self.message}"


@dataclass
class TypeNotRegistered(ModulatorError):
    type_name: str = ""

    code: ClassVar[str] = "TYPE_NOT_REGISTERED"


@dataclass
class RegistryConflict(ModulatorError):
    name: str = ""

    code: ClassVar[str] = "REGISTRY_CONFLICT"


@dataclass
class ModuleNotRegistered(ModulatorError):
    name: str = ""

    code: ClassVar[str] = "MODULE_NOT_REGISTERED"


@dataclass
class OperationNotAvailable(ModulatorError):
    operation: str = ""

    code: ClassVar[str] = "OPERATION_NOT_AVAILABLE"


@dataclass
class RemoteCallFailed(ModulatorError):
    operation: str | None = None
    status_code: int | None = None

    code: ClassVar[str] = "REMOTE_CALL_FAILED"

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        base = f"{self.code}: {self.message}"
        return f"{base} (status={self.status_code})" if self.status_code is not None else base


@dataclass
class MalformedHabtmEntity(ModulatorError):
    field: str = ""
    entity: Any = None

    code: ClassVar[str] = "MALFORMED_HABTM_ENTITY"
