"""Project and roster models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin, utcnow


class ProjectStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class ProjectRole(str, Enum):
    """Per-project membership level; distinct from ``GlobalRole``."""

    OWNER = "OWNER"
    MANAGER = "MANAGER"
    MEMBER = "MEMBER"


class Project(TimestampMixin, table=True):
    """A unit of work owned by one user and shared with a roster."""

    __tablename__ = "projects"
    __table_args__ = (
        sa.CheckConstraint("length(name) >= 3", name="ck_projects_name_length"),
        sa.Index("ix_projects_owner_id_status", "owner_id", "status"),
    )

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(
        max_length=100,
        sa_column=sa.Column(sa.String(length=100), nullable=False),
    )
    description: str = Field(
        default="",
        max_length=500,
        sa_column=sa.Column(sa.String(length=500), nullable=False, server_default=""),
    )
    owner_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
    )
    status: ProjectStatus = Field(
        default=ProjectStatus.ACTIVE,
        sa_column=sa.Column(
            sa.Enum(ProjectStatus, name="project_status", native_enum=False, validate_strings=True),
            nullable=False,
            server_default=ProjectStatus.ACTIVE.value,
        ),
    )


class ProjectMember(SQLModel, table=True):
    """One roster entry; at most one per user and project."""

    __tablename__ = "project_members"
    __table_args__ = (
        sa.UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
        sa.Index("ix_project_members_user_id", "user_id"),
    )

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    user_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    role: ProjectRole = Field(
        default=ProjectRole.MEMBER,
        sa_column=sa.Column(
            sa.Enum(ProjectRole, name="project_role", native_enum=False, validate_strings=True),
            nullable=False,
            server_default=ProjectRole.MEMBER.value,
        ),
    )
    joined_at: datetime = Field(
        default_factory=utcnow,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


__all__ = ["Project", "ProjectMember", "ProjectRole", "ProjectStatus"]
