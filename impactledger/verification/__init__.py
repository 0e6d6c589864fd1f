# -*- coding: utf-8 -*-
"""
ImpactLedger Verification Engine
================================

Verification of environmental impact claims by multiple independent
parties. It supports:

- Impact Types: admin-managed conversion factors to normalized impact
- Projects: owner registry with running verified totals
- Authorization: per-project validators and registered external data sources
- Claims: owner-submitted claims with deadline and weighted threshold
- Verification Ledger: validator and external-source attestations
- Aggregation: weighted running consensus with inline finalization
- Finalization: threshold and expiry settlement, platform totals
- Credentials: one immutable credential per verified claim
- Provenance Tracking: SHA-256 chain hashing for a tamper-evident trail
- 9 Prometheus metrics for observability
- FastAPI REST API under ``/api/v1/impact-verification``
- Thread-safe configuration with IL_VERIFICATION_ env prefix

Key Components:
    - impact_types: ImpactTypeRegistry
    - projects: ProjectRegistry
    - authorization: AuthorizationStore
    - claims: ClaimStore
    - ledger: VerificationLedger
    - aggregation: AggregationEngine and the weighted fold
    - finalization: FinalizationController and ImpactTotals
    - credentials: CredentialLedger
    - clock: LogicalClock
    - provenance: ProvenanceTracker for SHA-256 audit trails
    - config: ImpactVerificationConfig with IL_VERIFICATION_ env prefix
    - metrics: 9 Prometheus metrics
    - api: FastAPI HTTP service
    - setup: ImpactVerificationService facade

Example:
    >>> from impactledger.verification import ImpactVerificationService
    >>> service = ImpactVerificationService()
    >>> service.register_impact_type("co2_tonnes", 1000, "t", actor="admin")
    >>> project = service.register_project(owner="alice")
    >>> claim_id = service.submit_claim(
    ...     project.project_id, "co2_tonnes", 100, "ipfs://evidence",
    ...     deadline=50, required_verifications=1, submitter="alice",
    ... )
    >>> service.attest_validator(claim_id, "alice", True, 100)
    >>> print(service.get_platform_total())  # 100000
"""

# SDK availability flag
VERIFICATION_SDK_AVAILABLE = True

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from impactledger.verification.config import (
    ImpactVerificationConfig,
    get_config,
    set_config,
    reset_config,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from impactledger.verification.models import (
    # Enumerations
    ClaimStatus,
    AttestationSource,
    FinalizationPath,
    # Registry
    ImpactType,
    Project,
    # Authorization
    ValidatorAuthorization,
    DataSourceAuthorization,
    # Claims
    ImpactClaim,
    # Attestations
    Attestation,
    ExternalAttestation,
    # Outcomes
    Credential,
    FinalizationResult,
)

# ---------------------------------------------------------------------------
# Core engines
# ---------------------------------------------------------------------------
from impactledger.verification.clock import LogicalClock
from impactledger.verification.provenance import ProvenanceTracker, ProvenanceEntry
from impactledger.verification.projects import ProjectRegistry
from impactledger.verification.authorization import AuthorizationStore
from impactledger.verification.impact_types import ImpactTypeRegistry
from impactledger.verification.claims import ClaimStore
from impactledger.verification.credentials import CredentialLedger
from impactledger.verification.finalization import (
    FinalizationController,
    ImpactTotals,
)
from impactledger.verification.aggregation import (
    AggregationEngine,
    AggregationStep,
    WeightProfile,
    WEIGHT_PROFILES,
    fold_amount,
)
from impactledger.verification.ledger import VerificationLedger

# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------
from impactledger.verification.metrics import (
    PROMETHEUS_AVAILABLE,
    record_operation,
    record_claim_submitted,
    record_attestation,
    record_finalization,
    record_credential_issued,
    update_platform_total,
    update_pending_claims,
    record_provenance_depth,
)

# ---------------------------------------------------------------------------
# Service setup facade
# ---------------------------------------------------------------------------
from impactledger.verification.setup import (
    ImpactVerificationService,
    configure_impact_verification_service,
    get_impact_verification_service,
    get_router,
    get_service,
    reset_service,
)

__all__ = [
    # SDK flag
    "VERIFICATION_SDK_AVAILABLE",
    # Configuration
    "ImpactVerificationConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Enumerations
    "ClaimStatus",
    "AttestationSource",
    "FinalizationPath",
    # Models
    "ImpactType",
    "Project",
    "ValidatorAuthorization",
    "DataSourceAuthorization",
    "ImpactClaim",
    "Attestation",
    "ExternalAttestation",
    "Credential",
    "FinalizationResult",
    # Core engines
    "LogicalClock",
    "ProvenanceTracker",
    "ProvenanceEntry",
    "ProjectRegistry",
    "AuthorizationStore",
    "ImpactTypeRegistry",
    "ClaimStore",
    "CredentialLedger",
    "FinalizationController",
    "ImpactTotals",
    "AggregationEngine",
    "AggregationStep",
    "WeightProfile",
    "WEIGHT_PROFILES",
    "fold_amount",
    "VerificationLedger",
    # Metrics
    "PROMETHEUS_AVAILABLE",
    "record_operation",
    "record_claim_submitted",
    "record_attestation",
    "record_finalization",
    "record_credential_issued",
    "update_platform_total",
    "update_pending_claims",
    "record_provenance_depth",
    # Service setup facade
    "ImpactVerificationService",
    "configure_impact_verification_service",
    "get_impact_verification_service",
    "get_router",
    "get_service",
    "reset_service",
]
