# -*- coding: utf-8 -*-
"""
Claim Store

Owns impact claim records and their lifecycle state. Claims are opened
by a project's owner against an active impact type; attestation counters
are then advanced by the aggregation engine and the terminal status is
set only by the finalization controller.

Submission preconditions are checked in a fixed order and the first
failure wins:

    1. project exists                       -> NotFoundError
    2. submitter is the project owner       -> NotAuthorized
    3. impact type exists and is active     -> InvalidImpactType
    4. amount > 0                           -> InvalidAmount
    5. 0 < required_verifications <= max    -> InvalidThreshold
    6. deadline > now                       -> InvalidDeadline

Example:
    >>> claim_id = store.submit_claim(
    ...     project_id=1, impact_type="co2_tonnes", amount=100,
    ...     evidence_reference="ipfs://...", deadline=50,
    ...     required_verifications=2, submitter="alice",
    ... )

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from impactledger.exceptions import (
    AlreadyProcessed,
    InvalidAmount,
    InvalidDeadline,
    InvalidImpactType,
    InvalidThreshold,
    NotAuthorized,
    NotFoundError,
)
from impactledger.verification.clock import LogicalClock
from impactledger.verification.config import ImpactVerificationConfig, get_config
from impactledger.verification.impact_types import ImpactTypeRegistry
from impactledger.verification.metrics import (
    record_claim_submitted,
    update_pending_claims,
)
from impactledger.verification.models import ClaimStatus, ImpactClaim
from impactledger.verification.projects import ProjectRegistry
from impactledger.verification.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)


class ClaimStore:
    """Store of impact claims with monotonically allocated ids.

    Attributes:
        config: ImpactVerificationConfig instance.
        projects: ProjectRegistry for existence and ownership.
        impact_types: ImpactTypeRegistry for type validation.
        clock: Logical clock.
        provenance: ProvenanceTracker instance.
        _claims: Claims by ID.
        _next_id: Next claim ID to allocate.
    """

    def __init__(
        self,
        projects: ProjectRegistry,
        impact_types: ImpactTypeRegistry,
        config: Optional[ImpactVerificationConfig] = None,
        clock: Optional[LogicalClock] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        self.config = config or get_config()
        self.projects = projects
        self.impact_types = impact_types
        self.clock = clock or projects.clock
        self.provenance = provenance or projects.provenance
        self._claims: Dict[int, ImpactClaim] = {}
        self._next_id = 1
        logger.info("ClaimStore initialized")

    def submit_claim(
        self,
        project_id: int,
        impact_type: str,
        amount: int,
        evidence_reference: str,
        deadline: int,
        required_verifications: int,
        submitter: str,
    ) -> int:
        """Open a new pending claim.

        Returns:
            The new claim ID.

        Raises:
            NotFoundError: Unknown project.
            NotAuthorized: Submitter is not the project owner.
            InvalidImpactType: Type unknown or inactive.
            InvalidAmount: Amount not positive.
            InvalidThreshold: Threshold not positive, or above the configured maximum.
            InvalidDeadline: Deadline not after the current time.
        """
        project = self.projects.require(project_id)
        if submitter != project.owner:
            raise NotAuthorized(
                f"Only the owner of project {project_id} may submit claims",
                context={"project_id": project_id},
                actor=submitter,
                required_role="project_owner",
            )
        if not self.impact_types.is_active(impact_type):
            raise InvalidImpactType(
                f"Impact type {impact_type} is unknown or inactive",
                field="impact_type", value=impact_type,
            )
        if amount <= 0:
            raise InvalidAmount(
                f"Claimed amount must be positive, got {amount}",
                field="amount", value=amount,
            )
        if required_verifications <= 0:
            raise InvalidThreshold(
                f"Required verifications must be positive, "
                f"got {required_verifications}",
                field="required_verifications", value=required_verifications,
            )
        upper = self.config.max_required_verifications
        if upper is not None and required_verifications > upper:
            raise InvalidThreshold(
                f"Required verifications must not exceed {upper}, "
                f"got {required_verifications}",
                field="required_verifications", value=required_verifications,
            )
        now = self.clock.now()
        if deadline <= now:
            raise InvalidDeadline(
                f"Deadline {deadline} must be after the current time {now}",
                field="deadline", value=deadline,
            )

        claim = ImpactClaim(
            claim_id=self._next_id,
            project_id=project_id,
            impact_type=impact_type,
            claimed_amount=amount,
            evidence_reference=evidence_reference,
            submitter=submitter,
            submitted_at=now,
            verification_deadline=deadline,
            required_verifications=required_verifications,
        )
        self._claims[claim.claim_id] = claim
        self._next_id += 1

        if self.config.enable_provenance:
            self.provenance.record(
                entity_type="claim",
                entity_id=claim.claim_id,
                action="submit",
                data_hash=claim.calculate_content_hash(),
                actor=submitter,
                logical_time=now,
                metadata={"evidence_reference": evidence_reference},
            )

        record_claim_submitted(impact_type)
        update_pending_claims(self.pending_count)
        logger.info(
            "Submitted claim %d: project=%d type=%s amount=%d "
            "required=%d deadline=%d",
            claim.claim_id, project_id, impact_type, amount,
            required_verifications, deadline,
        )
        return claim.claim_id

    def get(self, claim_id: int) -> Optional[ImpactClaim]:
        """Get a claim by ID, or None."""
        return self._claims.get(claim_id)

    def require(self, claim_id: int) -> ImpactClaim:
        """Get a claim by ID.

        Raises:
            NotFoundError: If the claim does not exist.
        """
        claim = self._claims.get(claim_id)
        if claim is None:
            raise NotFoundError(
                f"Claim {claim_id} not found",
                entity_type="claim", entity_id=claim_id,
            )
        return claim

    def require_pending(self, claim_id: int) -> ImpactClaim:
        """Get a claim that still accepts attestations.

        Raises:
            NotFoundError: If the claim does not exist.
            AlreadyProcessed: If the claim is verified or rejected.
        """
        claim = self.require(claim_id)
        if not claim.is_pending:
            raise AlreadyProcessed(
                f"Claim {claim_id} is already {claim.status.value}",
                claim_id=claim_id,
            )
        return claim

    def list_claims(
        self,
        project_id: Optional[int] = None,
        status: Optional[ClaimStatus] = None,
    ) -> List[ImpactClaim]:
        """List claims in submission order with optional filters."""
        claims = sorted(self._claims.values(), key=lambda c: c.claim_id)
        if project_id is not None:
            claims = [c for c in claims if c.project_id == project_id]
        if status is not None:
            claims = [c for c in claims if c.status == ClaimStatus(status)]
        return claims

    @property
    def count(self) -> int:
        return len(self._claims)

    @property
    def pending_count(self) -> int:
        return sum(1 for c in self._claims.values() if c.is_pending)


__all__ = ["ClaimStore"]
