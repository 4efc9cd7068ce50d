"""Database related helpers."""

from __future__ import annotations

from .session import async_session_maker, dispose_engine, get_engine, get_session

__all__ = ["async_session_maker", "dispose_engine", "get_engine", "get_session"]
