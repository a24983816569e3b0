"""Top-level package for the Gas Town mail gateway."""

from __future__ import annotations

from typing import Any


def build_http_app(*args: Any, **kwargs: Any) -> Any:
    """Lazily import and build the FastAPI app to keep package import cheap."""
    from .http import build_http_app as _build_http_app
    return _build_http_app(*args, **kwargs)

__all__ = ["build_http_app"]
