"""Project-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import ProjectRole, ProjectStatus
from .pagination import Pagination

PROJECT_READ_EXAMPLE = {
    "id": 7,
    "name": "Website relaunch",
    "description": "Replace the marketing site.",
    "owner_id": 1,
    "status": ProjectStatus.ACTIVE.value,
    "created_at": "2024-03-01T09:00:00Z",
    "updated_at": "2024-03-01T09:00:00Z",
}


class ProjectCreate(BaseModel):
    """Payload for creating a new project."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"name": "Website relaunch", "description": "Replace the marketing site."}
        }
    )

    name: str = Field(min_length=3, max_length=100)
    description: str = Field(default="", max_length=500)


class ProjectUpdate(BaseModel):
    """Payload for partially updating a project."""

    name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    status: ProjectStatus | None = Field(default=None)

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "ProjectUpdate":
        if not self.model_dump(exclude_unset=True, exclude_none=True):
            raise ValueError("At least one field must be provided for update.")
        return self


class ProjectRead(BaseModel):
    """Public representation of a project."""

    model_config = ConfigDict(from_attributes=True, json_schema_extra={"example": PROJECT_READ_EXAMPLE})

    id: int
    name: str
    description: str
    owner_id: int
    status: ProjectStatus
    created_at: datetime
    updated_at: datetime


class MemberRead(BaseModel):
    """Roster entry projected onto the member's public profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: ProjectRole


class ProjectDetailRead(ProjectRead):
    members: list[MemberRead] = Field(default_factory=list)


class ProjectListResponse(BaseModel):
    """Paginated collection of projects."""

    data: list[ProjectRead]
    pagination: Pagination


class MemberAdd(BaseModel):
    user_id: int = Field(ge=1)
    role: ProjectRole = Field(default=ProjectRole.MEMBER)


class MemberRoleUpdate(BaseModel):
    role: ProjectRole


__all__ = [
    "MemberAdd",
    "MemberRead",
    "MemberRoleUpdate",
    "ProjectCreate",
    "ProjectDetailRead",
    "ProjectListResponse",
    "ProjectRead",
    "ProjectUpdate",
]
