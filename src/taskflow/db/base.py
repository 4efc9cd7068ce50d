"""Metadata registry used by alembic."""

from __future__ import annotations

from sqlmodel import SQLModel

from .. import models  # noqa: F401  (registers tables on the metadata)

metadata = SQLModel.metadata

__all__ = ["metadata"]
