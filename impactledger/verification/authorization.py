# -*- coding: utf-8 -*-
"""
Authorization Store

Who may do what in the verification engine:

- the configured admin identity registers impact types and data sources;
- a project's owner grants and revokes validators for that project;
- a registered data source submits only through its interface identity.

Validator grants are keyed by ``(project_id, validator)``. Revoking a grant
deletes it but never invalidates attestations already recorded.

Example:
    >>> store = AuthorizationStore(projects=projects)
    >>> store.authorize_validator(1, "bob", actor="alice")
    >>> store.is_validator(1, "bob")
    True

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from impactledger.exceptions import InvalidInputError, NotAuthorized
from impactledger.verification.clock import LogicalClock
from impactledger.verification.config import ImpactVerificationConfig, get_config
from impactledger.verification.models import (
    DataSourceAuthorization,
    Project,
    ValidatorAuthorization,
    content_hash,
)
from impactledger.verification.projects import ProjectRegistry
from impactledger.verification.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)


def ensure_admin(
    config: ImpactVerificationConfig,
    actor: str,
    operation: str,
) -> None:
    """Raise NotAuthorized unless ``actor`` is the configured admin."""
    if actor != config.admin_identity:
        raise NotAuthorized(
            f"{operation} requires the admin identity",
            actor=actor,
            required_role="admin",
        )


class AuthorizationStore:
    """Per-project validator grants and global data-source registrations.

    Attributes:
        config: ImpactVerificationConfig instance.
        projects: ProjectRegistry used for ownership checks.
        clock: Logical clock stamping grants.
        provenance: ProvenanceTracker instance.
        _validators: Grants by (project_id, validator).
        _sources: Data source registrations by source_id.
    """

    def __init__(
        self,
        projects: ProjectRegistry,
        config: Optional[ImpactVerificationConfig] = None,
        clock: Optional[LogicalClock] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        self.config = config or get_config()
        self.projects = projects
        self.clock = clock or projects.clock
        self.provenance = provenance or projects.provenance
        self._validators: Dict[Tuple[int, str], ValidatorAuthorization] = {}
        self._sources: Dict[str, DataSourceAuthorization] = {}
        logger.info("AuthorizationStore initialized")

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    def authorize_validator(
        self,
        project_id: int,
        validator: str,
        actor: str,
    ) -> ValidatorAuthorization:
        """Grant ``validator`` the right to attest claims of a project.

        Idempotent: an existing grant is returned unchanged.

        Raises:
            NotFoundError: If the project does not exist.
            NotAuthorized: If actor is not the project owner.
            InvalidInputError: If validator is empty.
        """
        self._require_owner(project_id, actor, "authorize_validator")
        if not validator:
            raise InvalidInputError(
                "Validator identity must be non-empty",
                field="validator", value=validator,
            )

        existing = self._validators.get((project_id, validator))
        if existing is not None:
            return existing
        return self._grant(project_id, validator, authorized_by=actor)

    def grant_owner(self, project: Project) -> ValidatorAuthorization:
        """Authorize a freshly registered project's owner as validator."""
        existing = self._validators.get((project.project_id, project.owner))
        if existing is not None:
            return existing
        return self._grant(
            project.project_id, project.owner, authorized_by=project.owner,
        )

    def revoke_validator(
        self,
        project_id: int,
        validator: str,
        actor: str,
    ) -> bool:
        """Remove a validator grant.

        Removal is unconditional: revoking an identity without a grant is
        not an error. Recorded attestations are untouched.

        Returns:
            True if a grant was removed.

        Raises:
            NotFoundError: If the project does not exist.
            NotAuthorized: If actor is not the project owner.
        """
        self._require_owner(project_id, actor, "revoke_validator")
        removed = self._validators.pop((project_id, validator), None)
        if removed is None:
            return False

        if self.config.enable_provenance:
            self.provenance.record(
                entity_type="validator",
                entity_id=f"{project_id}:{validator}",
                action="revoke",
                data_hash=content_hash(removed),
                actor=actor,
                logical_time=self.clock.now(),
            )
        logger.info("Revoked validator %s on project %d", validator, project_id)
        return True

    def is_validator(self, project_id: int, identity: str) -> bool:
        return (project_id, identity) in self._validators

    def get_validator_authorization(
        self,
        project_id: int,
        validator: str,
    ) -> Optional[ValidatorAuthorization]:
        return self._validators.get((project_id, validator))

    def validators_of(self, project_id: int) -> List[str]:
        """Validator identities of a project, in grant order."""
        grants = [
            grant for (pid, _), grant in self._validators.items()
            if pid == project_id
        ]
        grants.sort(key=lambda g: g.authorized_at)
        return [grant.validator for grant in grants]

    # ------------------------------------------------------------------
    # Data sources
    # ------------------------------------------------------------------

    def register_data_source(
        self,
        source_id: str,
        interface_identity: str,
        name: str = "",
        description: str = "",
        actor: str = "",
    ) -> DataSourceAuthorization:
        """Register or replace an external data source (admin only).

        Raises:
            NotAuthorized: If actor is not the admin.
            InvalidInputError: If source_id or interface_identity is empty.
        """
        ensure_admin(self.config, actor, "register_data_source")
        if not source_id:
            raise InvalidInputError(
                "Data source ID must be non-empty",
                field="source_id", value=source_id,
            )
        if not interface_identity:
            raise InvalidInputError(
                "Interface identity must be non-empty",
                field="interface_identity", value=interface_identity,
            )

        registration = DataSourceAuthorization(
            source_id=source_id,
            interface_identity=interface_identity,
            name=name,
            description=description,
            authorized_at=self.clock.now(),
        )
        self._sources[source_id] = registration

        if self.config.enable_provenance:
            self.provenance.record(
                entity_type="data_source",
                entity_id=source_id,
                action="register",
                data_hash=content_hash(registration),
                actor=actor,
                logical_time=registration.authorized_at,
            )
        logger.info(
            "Registered data source %s (interface %s)",
            source_id, interface_identity,
        )
        return registration

    def get_data_source(self, source_id: str) -> Optional[DataSourceAuthorization]:
        return self._sources.get(source_id)

    def source_interface(self, source_id: str) -> Optional[str]:
        """Identity allowed to submit for ``source_id``, or None."""
        registration = self._sources.get(source_id)
        return registration.interface_identity if registration else None

    def authenticate_source(self, source_id: str, caller: str) -> None:
        """Check that ``caller`` may submit on behalf of ``source_id``.

        Raises:
            NotAuthorized: If the source is unregistered or caller differs
                from its interface identity.
        """
        interface = self.source_interface(source_id)
        if interface is None or interface != caller:
            raise NotAuthorized(
                f"{caller} may not submit for data source {source_id}",
                context={"source_id": source_id},
                actor=caller,
                required_role="source_interface",
            )

    @property
    def source_count(self) -> int:
        return len(self._sources)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_owner(self, project_id: int, actor: str, operation: str) -> Project:
        project = self.projects.require(project_id)
        if actor != project.owner:
            raise NotAuthorized(
                f"{operation} requires the owner of project {project_id}",
                context={"project_id": project_id},
                actor=actor,
                required_role="project_owner",
            )
        return project

    def _grant(
        self,
        project_id: int,
        validator: str,
        authorized_by: str,
    ) -> ValidatorAuthorization:
        grant = ValidatorAuthorization(
            project_id=project_id,
            validator=validator,
            authorized_at=self.clock.now(),
            authorized_by=authorized_by,
        )
        self._validators[(project_id, validator)] = grant

        if self.config.enable_provenance:
            self.provenance.record(
                entity_type="validator",
                entity_id=f"{project_id}:{validator}",
                action="authorize",
                data_hash=content_hash(grant),
                actor=authorized_by,
                logical_time=grant.authorized_at,
            )
        logger.info("Authorized validator %s on project %d", validator, project_id)
        return grant


__all__ = [
    "AuthorizationStore",
    "ensure_admin",
]
