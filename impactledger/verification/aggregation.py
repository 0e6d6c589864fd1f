# -*- coding: utf-8 -*-
"""
Aggregation Engine

Running weighted consensus over a claim's attestations. Both attestation
paths feed one rule, parameterized by a weight profile:

    source            count increment   prior weight   fold
    validator         1                 1              (v + a) // 2
    external source   2                 2              (2v + a) // 3

where ``v`` is the current ``verified_amount`` and ``a`` the attested
amount. The first approving attestation (``v == 0``) seeds the estimate
with ``a``. A non-approving attestation advances the counter but leaves
the estimate unchanged.

The estimate depends on arrival order and truncates on every step; it is
not a mean over all attestations. Downstream totals and issued
credentials rely on this exact arithmetic.

Once the counter reaches the claim's threshold the engine hands the claim
to the finalization controller within the same call.

Example:
    >>> fold_amount(100, 200, prior_weight=1)
    150
    >>> fold_amount(90, 60, prior_weight=2)
    80

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from impactledger.verification.finalization import FinalizationController
from impactledger.verification.models import (
    AttestationSource,
    FinalizationResult,
    ImpactClaim,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightProfile:
    """How much one attestation of a source counts.

    Attributes:
        count_increment: Added to ``received_verifications``.
        prior_weight: Weight of the accumulated estimate against the new
            amount (which always has weight 1).
    """

    count_increment: int
    prior_weight: int


WEIGHT_PROFILES: Dict[AttestationSource, WeightProfile] = {
    AttestationSource.VALIDATOR: WeightProfile(count_increment=1, prior_weight=1),
    AttestationSource.EXTERNAL_SOURCE: WeightProfile(count_increment=2, prior_weight=2),
}


def fold_amount(current: int, amount: int, prior_weight: int) -> int:
    """Fold one approving amount into the running estimate.

    Args:
        current: Current verified amount (0 means no approval yet).
        amount: Newly attested amount.
        prior_weight: Weight of ``current``.

    Returns:
        ``amount`` when ``current`` is 0, otherwise
        ``(prior_weight * current + amount) // (prior_weight + 1)``.
    """
    if current == 0:
        return amount
    return (prior_weight * current + amount) // (prior_weight + 1)


@dataclass(frozen=True)
class AggregationStep:
    """Claim state after one attestation was applied."""

    claim_id: int
    source: AttestationSource
    received_verifications: int
    verified_amount: int
    finalization: Optional[FinalizationResult] = None

    @property
    def finalized(self) -> bool:
        return self.finalization is not None


class AggregationEngine:
    """Applies attestations to claims and triggers inline finalization.

    Attributes:
        finalization: Controller invoked when a threshold is reached.
    """

    def __init__(self, finalization: FinalizationController) -> None:
        self.finalization = finalization
        logger.info("AggregationEngine initialized")

    @staticmethod
    def profile(source: AttestationSource) -> WeightProfile:
        return WEIGHT_PROFILES[AttestationSource(source)]

    def apply(
        self,
        claim: ImpactClaim,
        source: AttestationSource,
        approved: bool,
        amount: int,
    ) -> AggregationStep:
        """Count one attestation and update the estimate.

        The caller has already checked that the claim is pending and the
        attestation is admissible.

        Args:
            claim: Pending claim, mutated in place.
            source: Which path produced the attestation.
            approved: Whether it endorses the claim.
            amount: Attested quantity.

        Returns:
            The resulting AggregationStep, with the finalization result when
            this attestation crossed the threshold.
        """
        profile = self.profile(source)

        claim.received_verifications += profile.count_increment
        if approved:
            claim.verified_amount = fold_amount(
                claim.verified_amount, amount, profile.prior_weight,
            )

        logger.debug(
            "Claim %d aggregated %s attestation: received=%d/%d verified=%d",
            claim.claim_id, AttestationSource(source).value,
            claim.received_verifications, claim.required_verifications,
            claim.verified_amount,
        )

        finalization = None
        if claim.threshold_met:
            finalization = self.finalization.finalize_threshold(claim)

        return AggregationStep(
            claim_id=claim.claim_id,
            source=AttestationSource(source),
            received_verifications=claim.received_verifications,
            verified_amount=claim.verified_amount,
            finalization=finalization,
        )


__all__ = [
    "AggregationEngine",
    "AggregationStep",
    "WeightProfile",
    "WEIGHT_PROFILES",
    "fold_amount",
]
