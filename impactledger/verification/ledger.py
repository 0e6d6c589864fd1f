# -*- coding: utf-8 -*-
"""
Verification Ledger

Records attestations on impact claims and feeds them to the aggregation
engine. Two entry points:

- ``attest_validator``: an authorized validator of the claim's project
  attests once per claim. A second attempt fails with AlreadyVoted and
  the first record is kept.
- ``attest_external_source``: a registered data source attests through
  its interface identity. By default a repeat attestation overwrites the
  stored record and counts toward the threshold again; with
  ``allow_external_resubmission`` disabled the repeat fails with
  AlreadyVoted.

Attestations are accepted strictly before the claim's verification
deadline. Revoking a validator later does not remove its attestations.

Example:
    >>> claim = ledger.attest_validator(1, "bob", approved=True, amount=100)
    >>> print(claim.received_verifications, claim.verified_amount)

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from impactledger.exceptions import (
    AlreadyVoted,
    Expired,
    InvalidAmount,
    NotValidator,
)
from impactledger.verification.aggregation import AggregationEngine
from impactledger.verification.authorization import AuthorizationStore
from impactledger.verification.claims import ClaimStore
from impactledger.verification.clock import LogicalClock
from impactledger.verification.config import ImpactVerificationConfig, get_config
from impactledger.verification.metrics import record_attestation
from impactledger.verification.models import (
    Attestation,
    AttestationSource,
    ExternalAttestation,
    ImpactClaim,
    content_hash,
)
from impactledger.verification.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)


class VerificationLedger:
    """Store of validator and external-source attestations.

    Attributes:
        config: ImpactVerificationConfig instance.
        claims: ClaimStore holding the attested claims.
        authorization: AuthorizationStore for validator and source checks.
        aggregation: AggregationEngine updating claim estimates.
        clock: Logical clock.
        provenance: ProvenanceTracker instance.
        _attestations: Validator attestations by (claim_id, validator).
        _external: External attestations by (claim_id, source_id).
    """

    def __init__(
        self,
        claims: ClaimStore,
        authorization: AuthorizationStore,
        aggregation: AggregationEngine,
        config: Optional[ImpactVerificationConfig] = None,
        clock: Optional[LogicalClock] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        self.config = config or get_config()
        self.claims = claims
        self.authorization = authorization
        self.aggregation = aggregation
        self.clock = clock or claims.clock
        self.provenance = provenance or claims.provenance
        self._attestations: Dict[Tuple[int, str], Attestation] = {}
        self._external: Dict[Tuple[int, str], ExternalAttestation] = {}
        logger.info("VerificationLedger initialized")

    # ------------------------------------------------------------------
    # Validator path
    # ------------------------------------------------------------------

    def attest_validator(
        self,
        claim_id: int,
        validator: str,
        approved: bool,
        amount: int,
        comments: str = "",
    ) -> ImpactClaim:
        """Record a validator's judgment on a claim.

        Returns:
            The claim after aggregation (and finalization, if the
            threshold was reached).

        Raises:
            NotFoundError: Unknown claim.
            AlreadyProcessed: Claim is not pending.
            NotValidator: Caller is not a validator of the claim's project.
            Expired: Deadline reached.
            AlreadyVoted: Validator already attested this claim.
            InvalidAmount: Negative amount.
        """
        claim = self.claims.require_pending(claim_id)
        if not self.authorization.is_validator(claim.project_id, validator):
            raise NotValidator(
                f"{validator} is not a validator of project {claim.project_id}",
                context={"claim_id": claim_id, "project_id": claim.project_id},
                actor=validator,
                required_role="validator",
            )
        now = self._require_open(claim)
        if (claim_id, validator) in self._attestations:
            raise AlreadyVoted(
                f"{validator} already attested claim {claim_id}",
                context={"validator": validator},
                claim_id=claim_id,
            )
        self._require_amount(amount)

        attestation = Attestation(
            claim_id=claim_id,
            validator=validator,
            verified_at=now,
            approved=approved,
            amount=amount,
            comments=comments,
        )
        self._attestations[(claim_id, validator)] = attestation
        self._record(
            "attestation", f"{claim_id}:{validator}", content_hash(attestation),
            actor=validator, logical_time=now, approved=approved,
        )
        record_attestation(AttestationSource.VALIDATOR.value, approved)

        step = self.aggregation.apply(
            claim, AttestationSource.VALIDATOR, approved, amount,
        )
        logger.info(
            "Validator %s attested claim %d (approved=%s amount=%d): "
            "received=%d verified=%d finalized=%s",
            validator, claim_id, approved, amount,
            step.received_verifications, step.verified_amount, step.finalized,
        )
        return claim

    # ------------------------------------------------------------------
    # External source path
    # ------------------------------------------------------------------

    def attest_external_source(
        self,
        claim_id: int,
        source_id: str,
        approved: bool,
        amount: int,
        payload: str = "",
        caller: str = "",
    ) -> ImpactClaim:
        """Record an external data source's reading for a claim.

        Returns:
            The claim after aggregation (and finalization, if the
            threshold was reached).

        Raises:
            NotAuthorized: Source unregistered or caller is not its
                interface identity.
            NotFoundError: Unknown claim.
            AlreadyProcessed: Claim is not pending.
            Expired: Deadline reached.
            AlreadyVoted: Repeat attestation while resubmission is disabled.
            InvalidAmount: Negative amount.
        """
        self.authorization.authenticate_source(source_id, caller)
        claim = self.claims.require_pending(claim_id)
        now = self._require_open(claim)

        previous = self._external.get((claim_id, source_id))
        if previous is not None and not self.config.allow_external_resubmission:
            raise AlreadyVoted(
                f"Data source {source_id} already attested claim {claim_id}",
                context={"source_id": source_id},
                claim_id=claim_id,
            )
        self._require_amount(amount)

        attestation = ExternalAttestation(
            claim_id=claim_id,
            source_id=source_id,
            verified_at=now,
            approved=approved,
            amount=amount,
            evidence_payload=payload,
            submitted_by=caller,
            submission_count=previous.submission_count + 1 if previous else 1,
        )
        self._external[(claim_id, source_id)] = attestation
        self._record(
            "external_attestation", f"{claim_id}:{source_id}",
            content_hash(attestation),
            actor=caller, logical_time=now, approved=approved,
        )
        record_attestation(AttestationSource.EXTERNAL_SOURCE.value, approved)
        if previous is not None:
            logger.warning(
                "Data source %s resubmitted claim %d (submission %d); "
                "counted toward the threshold again",
                source_id, claim_id, attestation.submission_count,
            )

        step = self.aggregation.apply(
            claim, AttestationSource.EXTERNAL_SOURCE, approved, amount,
        )
        logger.info(
            "Data source %s attested claim %d (approved=%s amount=%d): "
            "received=%d verified=%d finalized=%s",
            source_id, claim_id, approved, amount,
            step.received_verifications, step.verified_amount, step.finalized,
        )
        return claim

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_verification(self, claim_id: int, validator: str) -> Optional[Attestation]:
        return self._attestations.get((claim_id, validator))

    def get_external_verification(
        self,
        claim_id: int,
        source_id: str,
    ) -> Optional[ExternalAttestation]:
        return self._external.get((claim_id, source_id))

    def list_attestations(self, claim_id: int) -> List[Attestation]:
        """Validator attestations of a claim, in arrival order."""
        return [a for (cid, _), a in self._attestations.items() if cid == claim_id]

    def list_external_attestations(self, claim_id: int) -> List[ExternalAttestation]:
        """Latest external attestation per source for a claim."""
        return [a for (cid, _), a in self._external.items() if cid == claim_id]

    @property
    def attestation_count(self) -> int:
        return len(self._attestations) + len(self._external)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_open(self, claim: ImpactClaim) -> int:
        now = self.clock.now()
        if now >= claim.verification_deadline:
            raise Expired(
                f"Claim {claim.claim_id} stopped accepting attestations at "
                f"{claim.verification_deadline} (now {now})",
                context={"deadline": claim.verification_deadline, "now": now},
                claim_id=claim.claim_id,
            )
        return now

    @staticmethod
    def _require_amount(amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(
                f"Attested amount must be non-negative, got {amount}",
                field="amount", value=amount,
            )

    def _record(
        self,
        entity_type: str,
        entity_id: str,
        data_hash: str,
        actor: str,
        logical_time: int,
        approved: bool,
    ) -> None:
        if not self.config.enable_provenance:
            return
        self.provenance.record(
            entity_type=entity_type,
            entity_id=entity_id,
            action="attest",
            data_hash=data_hash,
            actor=actor,
            logical_time=logical_time,
            metadata={"approved": approved},
        )


__all__ = ["VerificationLedger"]
