"""Loading-indicator registrar used by the transport and the store modules."""

from __future__ import annotations

import itertools
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict


logger = logging.getLogger("modulator.loaders")

DEFAULT_MESSAGE = "Loading..."


@dataclass
class LoaderHandle:
    loader_id: str
    _release: Callable[[str], None]
    small: bool = False

    def done(self) -> None:
        self._release(self.loader_id)


class LoaderRegistry:
    """Tracks global loaders (``id -> message``) and local "small" loaders."""

    def __init__(self, default_message: str = DEFAULT_MESSAGE) -> None:
        self.default_message = default_message
        self._loaders: Dict[str, Any] = {}
        self._small_loaders: Dict[str, Any] = {}
        self._ids = itertools.count(1)

    def set_loading_state(self, payload: Any = True) -> LoaderHandle:
        if payload is True:
            payload = self.default_message
        if not isinstance(payload, dict):
            loader_id = f"loader_{next(self._ids)}"
            self._loaders[loader_id] = payload
            logger.debug("loader_set id=%s message=%s", loader_id, payload)
            return LoaderHandle(loader_id=loader_id, _release=self.stop_loading_state)

        loader_id = payload.get("loader_id") or f"loader_{next(self._ids)}"
        self._small_loaders[loader_id] = payload
        logger.debug("small_loader_set id=%s", loader_id)
        return LoaderHandle(loader_id=loader_id, _release=self.stop_small_loading_state, small=True)

    def stop_loading_state(self, loader_id: str) -> None:
        self._loaders.pop(loader_id, None)

    def stop_small_loading_state(self, loader_id: str) -> None:
        self._small_loaders.pop(loader_id, None)

    def app_is_loading(self) -> bool:
        return len(self._loaders) > 0

    def loading_messages(self) -> Dict[str, Any]:
        return dict(self._loaders)

    def all_small_loaders(self) -> Dict[str, Any]:
        return dict(self._small_loaders)

    def one_small_loader(self, loader_id: str) -> Any:
        return self._small_loaders.get(loader_id)

    def one_small_loader_approx(self, prefix: str) -> Any:
        pattern = re.compile(f"^{prefix}")
        for loader_id, payload in self._small_loaders.items():
            if pattern.match(loader_id):
                return payload
        return False
