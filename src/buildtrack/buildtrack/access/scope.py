from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Collection, FrozenSet, Optional

from ..core.actor import Actor
from ..core.enums import Role

if TYPE_CHECKING:
    from ..projects.repository import ProjectRepository
    from ..teams.repository import TeamRepository

logger = logging.getLogger(__name__)

# Roles that read every project without a filter.
UNRESTRICTED_ROLES = frozenset({Role.ADMIN, Role.ACCOUNTS, Role.DEVELOPER})


@dataclass(frozen=True)
class AccessScope:
    """The set of project ids a caller may read.

    ``unrestricted`` scopes apply no filter. Otherwise ``project_ids`` is the
    complete accessible set; repositories receive it as ``filter_ids``.
    """

    unrestricted: bool
    project_ids: FrozenSet[int] = frozenset()

    @classmethod
    def everything(cls) -> "AccessScope":
        return cls(unrestricted=True)

    @classmethod
    def only(cls, project_ids: Collection[int]) -> "AccessScope":
        return cls(unrestricted=False, project_ids=frozenset(int(p) for p in project_ids))

    def allows(self, project_id: Optional[int]) -> bool:
        if self.unrestricted:
            return True
        return project_id is not None and int(project_id) in self.project_ids

    @property
    def filter_ids(self) -> Optional[FrozenSet[int]]:
        return None if self.unrestricted else self.project_ids

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and not self.project_ids


class VisibilityResolver:
    """Computes an actor's accessible-project set.

    contractor: projects assigned to them directly (no team expansion).
    member: projects reachable through any team they belong to.
    """

    def __init__(self, projects: "ProjectRepository", teams: "TeamRepository"):
        self._projects = projects
        self._teams = teams

    def scope_for(self, actor: Actor) -> AccessScope:
        if actor.role in UNRESTRICTED_ROLES:
            return AccessScope.everything()
        if actor.role == Role.CONTRACTOR:
            return AccessScope.only(self._projects.ids_for_contractor(actor.user_id))
        if actor.role == Role.MEMBER:
            return AccessScope.only(self._teams.project_ids_for_member(actor.user_id))

        logger.warning("no visibility rule for role %s, denying all", actor.role)
        return AccessScope.only(())
