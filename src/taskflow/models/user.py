"""User accounts and their global roles."""

from __future__ import annotations

from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin


class GlobalRole(str, Enum):
    """Account-wide permission level, independent of any project."""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    MEMBER = "MEMBER"


class UserBase(SQLModel, table=False):
    """Shared attributes for user models."""

    name: str = Field(
        max_length=120,
        sa_column=sa.Column(sa.String(length=120), nullable=False),
    )
    email: str = Field(
        max_length=320,
        sa_column=sa.Column(sa.String(length=320), nullable=False, unique=True),
    )
    role: GlobalRole = Field(
        default=GlobalRole.MEMBER,
        sa_column=sa.Column(
            sa.Enum(GlobalRole, name="global_role", native_enum=False),
            nullable=False,
            server_default=GlobalRole.MEMBER.value,
        ),
    )


class User(UserBase, TimestampMixin, table=True):
    """Persistent user model. The credential hash is opaque to this service."""

    __tablename__ = "users"
    __table_args__ = (sa.Index("ix_users_email", "email"),)

    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )


__all__ = ["GlobalRole", "User", "UserBase"]
