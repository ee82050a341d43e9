"""Async HTTP wrapper used by the store modules for remote operations."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict

import httpx

from modulator.errors import RemoteCallFailed

from app import config
from app.loaders import LoaderRegistry


logger = logging.getLogger("modulator.api")

_ABSOLUTE_URL = re.compile(r"^(https?://)")
_QUERY_METHODS = {"GET", "DELETE"}


class ApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        loaders: LoaderRegistry | None = None,
        token: str | None = None,
        user_tokens: Dict[str, str] | None = None,
        timeout: float | None = None,
        patch_method: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url if base_url is not None else config.api_base()
        self.loaders = loaders if loaders is not None else LoaderRegistry()
        self.token = token if token is not None else config.api_token()
        self.user_tokens = dict(user_tokens or {})
        self.timeout = timeout if timeout is not None else config.api_timeout()
        self.patch_method = (patch_method or config.patch_method()).upper()
        self._transport = transport

    def create_url(self, url: str) -> str:
        if _ABSOLUTE_URL.match(url):
            return url
        return f"{self.base_url}{url}"

    def _headers(self, fake_user_id: str | None) -> dict:
        token = self.user_tokens.get(fake_user_id) if fake_user_id is not None else self.token
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        url: str,
        payload: Any = None,
        loading: Any = True,
        fake_user_id: str | None = None,
    ) -> Any:
        method = method.upper()
        target = self.create_url(url)
        kwargs: Dict[str, Any] = {"headers": self._headers(fake_user_id)}
        if payload is not None:
            if method in _QUERY_METHODS:
                kwargs["params"] = payload
            else:
                kwargs["json"] = payload
        loader = self.loaders.set_loading_state(loading)
        logger.debug("api_request method=%s url=%s", method, target)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                res = await client.request(method, target, **kwargs)
            if res.status_code >= 400:
                raise RemoteCallFailed(
                    message=f"{method} {target} failed: {res.status_code} {res.text[:200]}",
                    operation=f"{method} {url}",
                    status_code=res.status_code,
                )
            if not res.content:
                return None
            return res.json()
        except httpx.HTTPError as exc:
            raise RemoteCallFailed(message=f"{method} {target} failed: {exc}", operation=f"{method} {url}") from exc
        except ValueError as exc:
            raise RemoteCallFailed(
                message=f"{method} {target} returned invalid JSON", operation=f"{method} {url}"
            ) from exc
        finally:
            loader.done()

    async def get(self, url: str, payload: Any = None, loading: Any = True, fake_user_id: str | None = None) -> Any:
        return await self.request("GET", url, payload, loading, fake_user_id)

    async def post(self, url: str, payload: Any = None, loading: Any = True, fake_user_id: str | None = None) -> Any:
        return await self.request("POST", url, payload, loading, fake_user_id)

    async def patch(self, url: str, payload: Any = None, loading: Any = True, fake_user_id: str | None = None) -> Any:
        return await self.request(self.patch_method, url, payload, loading, fake_user_id)

    async def put(self, url: str, payload: Any = None, loading: Any = True, fake_user_id: str | None = None) -> Any:
        return await self.request("PUT", url, payload, loading, fake_user_id)

    async def delete(self, url: str, payload: Any = None, loading: Any = True, fake_user_id: str | None = None) -> Any:
        return await self.request("DELETE", url, payload, loading, fake_user_id)
