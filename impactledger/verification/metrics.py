# -*- coding: utf-8 -*-
"""
Prometheus Metrics - Impact Verification

9 Prometheus metrics for claim verification monitoring with graceful
fallback when prometheus_client is not installed.

Metrics:
    1. il_verification_operations_total (Counter)
    2. il_verification_operation_duration_seconds (Histogram)
    3. il_verification_claims_submitted_total (Counter)
    4. il_verification_attestations_total (Counter)
    5. il_verification_finalizations_total (Counter)
    6. il_verification_credentials_issued_total (Counter)
    7. il_verification_platform_impact_total (Gauge)
    8. il_verification_pending_claims (Gauge)
    9. il_verification_provenance_chain_depth (Histogram)

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Graceful prometheus_client import
# ---------------------------------------------------------------------------

try:
    from prometheus_client import Counter, Gauge, Histogram
    PROMETHEUS_AVAILABLE = True
except ImportError:
    PROMETHEUS_AVAILABLE = False
    logger.info(
        "prometheus_client not installed; verification metrics disabled"
    )


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

if PROMETHEUS_AVAILABLE:
    # 1. Operations count
    verification_operations_total = Counter(
        "il_verification_operations_total",
        "Total verification engine operations performed",
        labelnames=["operation", "result"],
    )

    # 2. Operation duration
    verification_operation_duration_seconds = Histogram(
        "il_verification_operation_duration_seconds",
        "Verification engine operation duration in seconds",
        labelnames=["operation"],
        buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25),
    )

    # 3. Claims submitted
    verification_claims_submitted_total = Counter(
        "il_verification_claims_submitted_total",
        "Total impact claims submitted",
        labelnames=["impact_type"],
    )

    # 4. Attestations recorded
    verification_attestations_total = Counter(
        "il_verification_attestations_total",
        "Total attestations recorded",
        labelnames=["source", "approved"],
    )

    # 5. Terminal transitions
    verification_finalizations_total = Counter(
        "il_verification_finalizations_total",
        "Total claims finalized",
        labelnames=["outcome", "path"],
    )

    # 6. Credentials minted
    verification_credentials_issued_total = Counter(
        "il_verification_credentials_issued_total",
        "Total credentials issued",
    )

    # 7. Platform aggregate
    verification_platform_impact_total = Gauge(
        "il_verification_platform_impact_total",
        "Normalized impact verified across all projects",
    )

    # 8. Pending claims
    verification_pending_claims = Gauge(
        "il_verification_pending_claims",
        "Claims currently awaiting verification",
    )

    # 9. Provenance chain depth
    verification_provenance_chain_depth = Histogram(
        "il_verification_provenance_chain_depth",
        "Provenance entries per claim at finalization",
        buckets=(1, 2, 3, 4, 5, 7, 10, 15, 20, 50),
    )

else:
    verification_operations_total = None  # type: ignore[assignment]
    verification_operation_duration_seconds = None  # type: ignore[assignment]
    verification_claims_submitted_total = None  # type: ignore[assignment]
    verification_attestations_total = None  # type: ignore[assignment]
    verification_finalizations_total = None  # type: ignore[assignment]
    verification_credentials_issued_total = None  # type: ignore[assignment]
    verification_platform_impact_total = None  # type: ignore[assignment]
    verification_pending_claims = None  # type: ignore[assignment]
    verification_provenance_chain_depth = None  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# Helper functions (safe to call even without prometheus_client)
# ---------------------------------------------------------------------------


def record_operation(operation: str, result: str, duration_seconds: float) -> None:
    """Record one engine operation.

    Args:
        operation: Operation name (submit_claim, attest_validator, ...).
        result: "success" or the error code of the rejection.
        duration_seconds: Operation duration in seconds.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    verification_operations_total.labels(operation=operation, result=result).inc()
    verification_operation_duration_seconds.labels(operation=operation).observe(
        duration_seconds,
    )


def record_claim_submitted(impact_type: str) -> None:
    """Record a newly submitted claim."""
    if not PROMETHEUS_AVAILABLE:
        return
    verification_claims_submitted_total.labels(impact_type=impact_type).inc()


def record_attestation(source: str, approved: bool) -> None:
    """Record a stored attestation.

    Args:
        source: "validator" or "external_source".
        approved: Whether the attestation endorsed the claim.
    """
    if not PROMETHEUS_AVAILABLE:
        return
    verification_attestations_total.labels(
        source=source, approved=str(approved).lower(),
    ).inc()


def record_finalization(outcome: str, path: str) -> None:
    """Record a terminal transition.

    Args:
        outcome: "verified" or "rejected".
        path: "threshold" or "expiry".
    """
    if not PROMETHEUS_AVAILABLE:
        return
    verification_finalizations_total.labels(outcome=outcome, path=path).inc()


def record_credential_issued() -> None:
    """Record a minted credential."""
    if not PROMETHEUS_AVAILABLE:
        return
    verification_credentials_issued_total.inc()


def update_platform_total(total: int) -> None:
    """Set the platform aggregate gauge."""
    if not PROMETHEUS_AVAILABLE:
        return
    verification_platform_impact_total.set(total)


def update_pending_claims(count: int) -> None:
    """Set the pending claims gauge."""
    if not PROMETHEUS_AVAILABLE:
        return
    verification_pending_claims.set(count)


def record_provenance_depth(depth: int) -> None:
    """Record a claim's provenance chain depth."""
    if not PROMETHEUS_AVAILABLE:
        return
    verification_provenance_chain_depth.observe(depth)


__all__ = [
    "PROMETHEUS_AVAILABLE",
    # Metric objects
    "verification_operations_total",
    "verification_operation_duration_seconds",
    "verification_claims_submitted_total",
    "verification_attestations_total",
    "verification_finalizations_total",
    "verification_credentials_issued_total",
    "verification_platform_impact_total",
    "verification_pending_claims",
    "verification_provenance_chain_depth",
    # Helper functions
    "record_operation",
    "record_claim_submitted",
    "record_attestation",
    "record_finalization",
    "record_credential_issued",
    "update_platform_total",
    "update_pending_claims",
    "record_provenance_depth",
]
