"""Environment-driven settings for the transport and the stores."""

from __future__ import annotations

import os


def api_base() -> str:
    return (os.getenv("MODULATOR_API_BASE") or "").strip()


def api_timeout() -> float:
    raw = (os.getenv("MODULATOR_API_TIMEOUT") or "").strip()
    try:
        return float(raw) if raw else 30.0
    except ValueError:
        return 30.0


def api_token() -> str | None:
    token = (os.getenv("MODULATOR_API_TOKEN") or "").strip()
    return token or None


def patch_method() -> str:
    # The backend receives patches as POST unless told otherwise.
    method = (os.getenv("MODULATOR_PATCH_METHOD") or "POST").strip().upper()
    return method if method in {"POST", "PATCH", "PUT"} else "POST"


def wait_children() -> bool:
    return (os.getenv("MODULATOR_WAIT_CHILDREN") or "").strip() == "1"
