"""Scope - the feature / project / everything boundary of a statistics or translation run."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from localehub.exceptions import InvalidInputError, NotFoundError

if TYPE_CHECKING:
    from localehub.services.repository import TranslationRepository


class ScopeKind(str, enum.Enum):
    FEATURE = "feature"
    PROJECT = "project"
    ALL = "all"


@dataclass(frozen=True)
class Scope:
    """Tagged scope value.

    A feature scope always carries its owning project, so active locales can
    be looked up without another query.
    """

    kind: ScopeKind
    feature_id: Optional[UUID] = None
    project_id: Optional[UUID] = None

    @classmethod
    def for_feature(cls, feature_id: UUID, project_id: UUID) -> "Scope":
        return cls(ScopeKind.FEATURE, feature_id=feature_id, project_id=project_id)

    @classmethod
    def for_project(cls, project_id: UUID) -> "Scope":
        return cls(ScopeKind.PROJECT, project_id=project_id)

    @classmethod
    def everything(cls) -> "Scope":
        return cls(ScopeKind.ALL)

    def describe(self) -> str:
        if self.kind is ScopeKind.FEATURE:
            return f"feature:{self.feature_id}"
        if self.kind is ScopeKind.PROJECT:
            return f"project:{self.project_id}"
        return "all"


async def resolve_scope(
    repository: "TranslationRepository",
    feature_id: Optional[UUID] = None,
    project_id: Optional[UUID] = None,
) -> Scope:
    """Turn optional request ids into a Scope.

    Raises:
        NotFoundError: the named feature or project does not exist
        InvalidInputError: the feature does not belong to the given project
    """
    if feature_id is not None:
        feature = await repository.find_feature(feature_id)
        if feature is None:
            raise NotFoundError("Feature", feature_id)
        if project_id is not None and feature.project_id != project_id:
            raise InvalidInputError(
                f"Feature {feature_id} does not belong to project {project_id}"
            )
        return Scope.for_feature(feature.id, feature.project_id)

    if project_id is not None:
        project = await repository.find_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return Scope.for_project(project.id)

    return Scope.everything()
