# -*- coding: utf-8 -*-
"""
Finalization Controller

Moves a claim out of Pending exactly once:

    Pending --(threshold reached, inline)-----------------> Verified
    Pending --(deadline passed, threshold reached)--------> Verified
    Pending --(deadline passed, threshold not reached)----> Rejected

A verified claim's consensus amount is normalized through its impact type
and credited to the project total and the platform total, and exactly one
credential is minted to the project owner. A rejected claim has no
effects beyond its status.

Every effect is computed before the first mutation, so a failed call
leaves no trace.

Example:
    >>> result = controller.finalize_expired(claim_id=7)
    >>> print(result.status, result.credential_id)

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Optional

from impactledger.exceptions import AlreadyProcessed, NotYetExpired
from impactledger.verification.claims import ClaimStore
from impactledger.verification.clock import LogicalClock
from impactledger.verification.config import ImpactVerificationConfig, get_config
from impactledger.verification.credentials import CredentialLedger
from impactledger.verification.impact_types import ImpactTypeRegistry
from impactledger.verification.metrics import (
    record_finalization,
    record_provenance_depth,
    update_pending_claims,
    update_platform_total,
)
from impactledger.verification.models import (
    ClaimStatus,
    FinalizationPath,
    FinalizationResult,
    ImpactClaim,
    Project,
)
from impactledger.verification.projects import ProjectRegistry
from impactledger.verification.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)


class ImpactTotals:
    """Running normalized-impact totals, per project and platform-wide.

    Both totals only grow, and only the finalization controller credits
    them. Readers go through ``platform_total`` and ``project_total``.
    """

    def __init__(self, projects: ProjectRegistry) -> None:
        self._projects = projects
        self._platform_total = 0

    @property
    def platform_total(self) -> int:
        return self._platform_total

    def project_total(self, project_id: int) -> int:
        """Verified total of one project.

        Raises:
            NotFoundError: If the project does not exist.
        """
        return self._projects.require(project_id).running_verified_total

    def _credit(self, project: Project, normalized_impact: int) -> None:
        project.running_verified_total += normalized_impact
        self._platform_total += normalized_impact


class FinalizationController:
    """Owns terminal transitions, total updates and credential minting.

    Attributes:
        config: ImpactVerificationConfig instance.
        claims: ClaimStore holding the claims.
        projects: ProjectRegistry for owners and totals.
        impact_types: ImpactTypeRegistry for normalization.
        credentials: CredentialLedger receiving minted credentials.
        totals: ImpactTotals accumulator.
        clock: Logical clock.
        provenance: ProvenanceTracker instance.
    """

    def __init__(
        self,
        claims: ClaimStore,
        credentials: CredentialLedger,
        totals: Optional[ImpactTotals] = None,
        config: Optional[ImpactVerificationConfig] = None,
        clock: Optional[LogicalClock] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        self.config = config or get_config()
        self.claims = claims
        self.projects: ProjectRegistry = claims.projects
        self.impact_types: ImpactTypeRegistry = claims.impact_types
        self.credentials = credentials
        self.totals = totals or ImpactTotals(self.projects)
        self.clock = clock or claims.clock
        self.provenance = provenance or claims.provenance
        logger.info("FinalizationController initialized")

    def finalize_threshold(self, claim: ImpactClaim) -> FinalizationResult:
        """Verify a claim whose weighted attestations reached its threshold.

        Invoked inline by the aggregation engine, inside the attestation
        that crossed the threshold.

        Raises:
            AlreadyProcessed: If the claim is not pending.
        """
        if not claim.is_pending:
            raise AlreadyProcessed(
                f"Claim {claim.claim_id} is already {claim.status.value}",
                claim_id=claim.claim_id,
            )
        return self._verify(claim, FinalizationPath.THRESHOLD)

    def finalize_expired(self, claim_id: int) -> FinalizationResult:
        """Settle a pending claim once its deadline has passed.

        Callable by anyone. Verifies when the threshold was reached and
        rejects otherwise.

        Raises:
            NotFoundError: Unknown claim.
            AlreadyProcessed: Claim is not pending.
            NotYetExpired: Current time is before the deadline.
        """
        claim = self.claims.require_pending(claim_id)
        now = self.clock.now()
        if now < claim.verification_deadline:
            raise NotYetExpired(
                f"Claim {claim_id} accepts attestations until "
                f"{claim.verification_deadline} (now {now})",
                context={"deadline": claim.verification_deadline, "now": now},
                claim_id=claim_id,
            )

        if claim.threshold_met:
            return self._verify(claim, FinalizationPath.EXPIRY)
        return self._reject(claim)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _verify(
        self,
        claim: ImpactClaim,
        path: FinalizationPath,
    ) -> FinalizationResult:
        project = self.projects.require(claim.project_id)
        normalized = self.impact_types.normalize(
            claim.impact_type, claim.verified_amount,
        )
        now = self.clock.now()

        credential = self.credentials.mint(
            owner=project.owner,
            project_id=project.project_id,
            impact_type=claim.impact_type,
            amount=claim.verified_amount,
            normalized_impact=normalized,
            claim_id=claim.claim_id,
        )
        claim.status = ClaimStatus.VERIFIED
        claim.finalized_at = now
        claim.normalized_impact = normalized
        claim.credential_id = credential.credential_id
        self.totals._credit(project, normalized)

        result = FinalizationResult(
            claim_id=claim.claim_id,
            status=ClaimStatus.VERIFIED,
            path=path,
            normalized_impact=normalized,
            credential_id=credential.credential_id,
            finalized_at=now,
        )
        self._after_transition(claim, result)
        logger.info(
            "Claim %d verified via %s: amount=%d impact=%d credential=%d",
            claim.claim_id, path.value, claim.verified_amount,
            normalized, credential.credential_id,
        )
        return result

    def _reject(self, claim: ImpactClaim) -> FinalizationResult:
        now = self.clock.now()
        claim.status = ClaimStatus.REJECTED
        claim.finalized_at = now
        claim.normalized_impact = 0

        result = FinalizationResult(
            claim_id=claim.claim_id,
            status=ClaimStatus.REJECTED,
            path=FinalizationPath.EXPIRY,
            finalized_at=now,
        )
        self._after_transition(claim, result)
        logger.info(
            "Claim %d rejected at expiry: received=%d required=%d",
            claim.claim_id, claim.received_verifications,
            claim.required_verifications,
        )
        return result

    def _after_transition(
        self,
        claim: ImpactClaim,
        result: FinalizationResult,
    ) -> None:
        if self.config.enable_provenance:
            self.provenance.record(
                entity_type="claim",
                entity_id=claim.claim_id,
                action=result.status.value,
                data_hash=claim.calculate_content_hash(),
                actor="system",
                logical_time=result.finalized_at,
                metadata={
                    "path": result.path.value,
                    "normalized_impact": result.normalized_impact,
                },
            )
            record_provenance_depth(
                len(self.provenance.get_chain("claim", claim.claim_id)),
            )

        record_finalization(result.status.value, result.path.value)
        update_platform_total(self.totals.platform_total)
        update_pending_claims(self.claims.pending_count)


__all__ = [
    "FinalizationController",
    "ImpactTotals",
]
