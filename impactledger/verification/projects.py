# -*- coding: utf-8 -*-
"""
Project Registry

Thin registry of projects consumed by the verification engine for
existence and ownership checks. Each project's ``running_verified_total``
is written only by the finalization controller's impact accumulator.

Example:
    >>> from impactledger.verification.projects import ProjectRegistry
    >>> projects = ProjectRegistry()
    >>> project = projects.register_project(owner="alice", name="Mangroves")
    >>> print(project.project_id)

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from impactledger.exceptions import InvalidInputError, NotFoundError
from impactledger.verification.clock import LogicalClock
from impactledger.verification.config import ImpactVerificationConfig, get_config
from impactledger.verification.models import Project, content_hash
from impactledger.verification.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)


class ProjectRegistry:
    """In-memory project store with monotonically allocated ids.

    Attributes:
        config: ImpactVerificationConfig instance.
        clock: Logical clock stamping creation times.
        provenance: ProvenanceTracker instance.
        _projects: Projects by ID.
        _next_id: Next project ID to allocate.
    """

    def __init__(
        self,
        config: Optional[ImpactVerificationConfig] = None,
        clock: Optional[LogicalClock] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        self.config = config or get_config()
        self.clock = clock or LogicalClock(self.config.genesis_time)
        self.provenance = provenance or ProvenanceTracker()
        self._projects: Dict[int, Project] = {}
        self._next_id = 1
        logger.info("ProjectRegistry initialized")

    def register_project(
        self,
        owner: str,
        name: str = "",
        description: str = "",
    ) -> Project:
        """Create a project owned by ``owner``.

        Raises:
            InvalidInputError: If owner is empty.
        """
        if not owner:
            raise InvalidInputError(
                "Project owner must be a non-empty identity",
                field="owner", value=owner,
            )

        project = Project(
            project_id=self._next_id,
            owner=owner,
            name=name,
            description=description,
            created_at=self.clock.now(),
        )
        self._projects[project.project_id] = project
        self._next_id += 1

        if self.config.enable_provenance:
            self.provenance.record(
                entity_type="project",
                entity_id=project.project_id,
                action="register",
                data_hash=content_hash(project),
                actor=owner,
                logical_time=project.created_at,
            )

        logger.info("Registered project %d for %s", project.project_id, owner)
        return project

    def get(self, project_id: int) -> Optional[Project]:
        """Get a project by ID, or None."""
        return self._projects.get(project_id)

    def require(self, project_id: int) -> Project:
        """Get a project by ID.

        Raises:
            NotFoundError: If the project does not exist.
        """
        project = self._projects.get(project_id)
        if project is None:
            raise NotFoundError(
                f"Project {project_id} not found",
                entity_type="project", entity_id=project_id,
            )
        return project

    def exists(self, project_id: int) -> bool:
        return project_id in self._projects

    def list_projects(self, owner: Optional[str] = None) -> List[Project]:
        """List projects in creation order, optionally for one owner."""
        projects = sorted(self._projects.values(), key=lambda p: p.project_id)
        if owner is not None:
            projects = [p for p in projects if p.owner == owner]
        return projects

    @property
    def count(self) -> int:
        return len(self._projects)


__all__ = ["ProjectRegistry"]
