"""Service layer encapsulating project and roster operations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.cache import ProjectCache
from ..core.config import get_settings
from ..errors import BadRequestError, ConflictError, InternalError, NotFoundError, ValidationError
from ..models import Project, ProjectMember, ProjectRole, ProjectStatus
from ..policy import Action, Requester, ensure_allowed, ensure_can_create_project
from ..repositories import ProjectRepository, UserRepository
from ..schemas.pagination import Pagination

logger = logging.getLogger("taskflow.services.projects")

_PROJECT_UPDATE_FIELDS = frozenset({"name", "description", "status"})


@dataclass(slots=True)
class MemberSummary:
    """Roster entry joined with the member's public profile."""

    id: int
    name: str
    email: str
    role: ProjectRole


@dataclass(slots=True)
class ProjectDetails:
    project: Project
    members: list[MemberSummary] = field(default_factory=list)


@dataclass(slots=True)
class ProjectPage:
    data: list[Project]
    pagination: Pagination


def validate_page(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("Page must be at least 1.", details={"page": page})
    if limit < 1:
        raise ValidationError("Limit must be at least 1.", details={"limit": limit})


def _validate_name(name: Any) -> str:
    if not isinstance(name, str) or not 3 <= len(name.strip()) <= 100:
        raise ValidationError("Project name must be between 3 and 100 characters.")
    return name.strip()


def _validate_description(description: Any) -> str:
    if not isinstance(description, str) or len(description) > 500:
        raise ValidationError("Project description must be at most 500 characters.")
    return description


class ProjectService:
    """High-level business orchestration for ``Project`` entities."""

    def __init__(self, session: AsyncSession, *, cache: ProjectCache | None = None) -> None:
        self._session = session
        self._repository = ProjectRepository(session)
        self._user_repository = UserRepository(session)
        self._cache = cache or ProjectCache(None)

    @property
    def repository(self) -> ProjectRepository:
        return self._repository

    async def _load(self, project_id: int) -> tuple[Project, list[ProjectMember]]:
        project = await self._repository.get(project_id)
        if project is None:
            raise NotFoundError.for_resource("Project")
        members = await self._repository.list_members(project_id)
        return project, members

    async def _details(self, project: Project) -> ProjectDetails:
        assert project.id is not None
        return ProjectDetails(project=project, members=await self._member_summaries(project.id))

    async def _member_summaries(self, project_id: int) -> list[MemberSummary]:
        profiles = await self._repository.list_member_profiles(project_id)
        return [
            MemberSummary(id=user.id, name=user.name, email=user.email, role=member.role)
            for member, user in profiles
        ]

    async def create_project(self, requester: Requester, *, name: str, description: str = "") -> ProjectDetails:
        """Create a project owned by the requester, who joins the roster as OWNER."""

        ensure_can_create_project(requester)
        owner = await self._user_repository.get(requester.user_id)
        if owner is None:
            raise NotFoundError.for_resource("User")

        project = Project(
            name=_validate_name(name),
            description=_validate_description(description),
            owner_id=requester.user_id,
        )
        await self._repository.add(project)
        assert project.id is not None
        await self._repository.add_member(
            ProjectMember(project_id=project.id, user_id=requester.user_id, role=ProjectRole.OWNER)
        )
        await self._session.commit()
        await self._repository.refresh(project)
        logger.info("Created project %s", project.id, extra={"project_id": project.id, "owner_id": owner.id})
        return await self._details(project)

    async def get_project(self, requester: Requester, project_id: int) -> ProjectDetails:
        project, members = await self._load(project_id)
        ensure_allowed(Action.VIEW_PROJECT, requester, project, members)
        return await self._details(project)

    async def list_projects(
        self,
        requester: Requester,
        *,
        page: int = 1,
        limit: int | None = None,
        status: ProjectStatus | None = ProjectStatus.ACTIVE,
    ) -> ProjectPage:
        """Return the projects visible to the requester, newest first.

        Admins see every project; everyone else sees projects they own or
        are on the roster of.
        """

        limit = get_settings().default_page_size if limit is None else limit
        validate_page(page, limit)
        projects, total = await self._repository.list_paginated(
            visible_to=None if requester.is_admin else requester.user_id,
            status=status,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return ProjectPage(data=projects, pagination=Pagination.build(page=page, limit=limit, total=total))

    async def update_project(
        self,
        requester: Requester,
        project_id: int,
        changes: Mapping[str, Any],
    ) -> Project:
        """Apply the provided subset of ``name``, ``description`` and ``status``."""

        unknown = set(changes) - _PROJECT_UPDATE_FIELDS
        if unknown:
            raise ValidationError("Unknown project fields.", details={"fields": sorted(unknown)})

        project, members = await self._load(project_id)
        ensure_allowed(Action.EDIT_PROJECT, requester, project, members)

        updates: dict[str, Any] = {}
        if "name" in changes:
            updates["name"] = _validate_name(changes["name"])
        if "description" in changes:
            updates["description"] = _validate_description(changes["description"])
        if "status" in changes:
            try:
                updates["status"] = ProjectStatus(changes["status"])
            except ValueError as exc:
                raise ValidationError("Unknown project status.") from exc

        for field_name, value in updates.items():
            setattr(project, field_name, value)
        await self._session.commit()
        await self._repository.refresh(project)
        return project

    async def delete_project(self, requester: Requester, project_id: int) -> None:
        """Delete the project with its tasks, comments and roster atomically."""

        project, members = await self._load(project_id)
        ensure_allowed(Action.DELETE_PROJECT, requester, project, members)
        try:
            await self._repository.delete_cascade(project)
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.error("Failed to delete project %s", project_id, exc_info=True, extra={"project_id": project_id})
            raise InternalError("Failed to delete project.") from exc
        logger.info("Deleted project %s", project_id, extra={"project_id": project_id})
        await self._cache.invalidate_project(project_id)

    async def add_member(
        self,
        requester: Requester,
        project_id: int,
        user_id: int,
        role: ProjectRole = ProjectRole.MEMBER,
    ) -> ProjectDetails:
        project, members = await self._load(project_id)
        ensure_allowed(Action.MANAGE_MEMBERS, requester, project, members)
        user = await self._user_repository.get(user_id)
        if user is None:
            raise NotFoundError.for_resource("User")
        if any(member.user_id == user_id for member in members):
            raise ConflictError("User is already a member of this project.")

        await self._repository.add_member(ProjectMember(project_id=project_id, user_id=user_id, role=role))
        await self._session.commit()
        return await self._details(project)

    async def remove_member(self, requester: Requester, project_id: int, member_id: int) -> ProjectDetails:
        """Remove ``member_id`` from the roster; absent members are ignored."""

        project, members = await self._load(project_id)
        ensure_allowed(Action.MANAGE_MEMBERS, requester, project, members)
        if member_id == project.owner_id:
            raise BadRequestError("Cannot remove the project owner.")

        member = next((entry for entry in members if entry.user_id == member_id), None)
        if member is not None:
            await self._repository.remove_member(member)
            await self._session.commit()
        return await self._details(project)

    async def update_member_role(
        self,
        requester: Requester,
        project_id: int,
        member_id: int,
        role: ProjectRole,
    ) -> ProjectDetails:
        project, members = await self._load(project_id)
        ensure_allowed(Action.MANAGE_MEMBERS, requester, project, members)
        if member_id == project.owner_id:
            raise BadRequestError("Cannot change the role of the project owner.")

        member = next((entry for entry in members if entry.user_id == member_id), None)
        if member is None:
            raise NotFoundError.for_resource("Member")
        member.role = ProjectRole(role)
        await self._session.commit()
        return await self._details(project)

    async def get_members(self, requester: Requester, project_id: int) -> list[MemberSummary]:
        project, members = await self._load(project_id)
        ensure_allowed(Action.VIEW_PROJECT, requester, project, members)
        return await self._member_summaries(project_id)


__all__ = ["MemberSummary", "ProjectDetails", "ProjectPage", "ProjectService", "validate_page"]
