"""Request-scoped correlation helpers."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

REQUEST_ID_HEADER = "X-Request-ID"
_UNBOUND = "-"

_request_id_ctx_var: ContextVar[str] = ContextVar("taskflow_request_id", default=_UNBOUND)


def get_request_id() -> str:
    """Return the correlation id for the current execution context."""

    return _request_id_ctx_var.get()


def current_request_id() -> str | None:
    """Return the bound correlation id, or ``None`` outside of a request."""

    request_id = _request_id_ctx_var.get()
    return None if request_id == _UNBOUND else request_id


def bind_request_id(request_id: str) -> Token[str]:
    return _request_id_ctx_var.set(request_id)


def reset_request_id(token: Token[str]) -> None:
    _request_id_ctx_var.reset(token)


@contextmanager
def request_id_scope(request_id: str | None) -> Iterator[None]:
    """Bind ``request_id`` for the duration of the block (used by workers)."""

    token = _request_id_ctx_var.set(request_id or _UNBOUND)
    try:
        yield
    finally:
        _request_id_ctx_var.reset(token)


__all__ = [
    "REQUEST_ID_HEADER",
    "bind_request_id",
    "current_request_id",
    "get_request_id",
    "request_id_scope",
    "reset_request_id",
]
