# -*- coding: utf-8 -*-
"""
Impact Verification Service Setup

Provides ``configure_impact_verification_service(app)`` which wires up the
verification engine (registries, claim store, verification ledger,
aggregation, finalization, credentials, provenance) and mounts the REST
API.

Also exposes ``get_impact_verification_service(app)`` for programmatic
access and the ``ImpactVerificationService`` facade class.

Every state-changing call runs as one transaction under a single lock
over the whole engine: calls are totally ordered, and a call either
commits all of its effects or raises before the first one.

Usage:
    >>> from fastapi import FastAPI
    >>> from impactledger.verification.setup import (
    ...     configure_impact_verification_service,
    ... )
    >>> app = FastAPI()
    >>> configure_impact_verification_service(app)

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, TypeVar

from pydantic import BaseModel

from impactledger.exceptions import ImpactLedgerException
from impactledger.verification.aggregation import AggregationEngine
from impactledger.verification.authorization import AuthorizationStore
from impactledger.verification.claims import ClaimStore
from impactledger.verification.clock import LogicalClock
from impactledger.verification.config import ImpactVerificationConfig, get_config
from impactledger.verification.credentials import CredentialLedger
from impactledger.verification.finalization import (
    FinalizationController,
    ImpactTotals,
)
from impactledger.verification.impact_types import ImpactTypeRegistry
from impactledger.verification.ledger import VerificationLedger
from impactledger.verification.metrics import PROMETHEUS_AVAILABLE, record_operation
from impactledger.verification.models import (
    Attestation,
    ClaimStatus,
    Credential,
    DataSourceAuthorization,
    ExternalAttestation,
    FinalizationResult,
    ImpactClaim,
    ImpactType,
    Project,
    ValidatorAuthorization,
)
from impactledger.verification.projects import ProjectRegistry
from impactledger.verification.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Optional FastAPI import
# ---------------------------------------------------------------------------

try:
    from fastapi import FastAPI
    FASTAPI_AVAILABLE = True
except ImportError:
    FastAPI = None  # type: ignore[assignment, misc]
    FASTAPI_AVAILABLE = False


_M = TypeVar("_M", bound=BaseModel)


def _snapshot(model: Optional[_M]) -> Optional[_M]:
    """Detached copy of a mutable record, so callers cannot edit state."""
    return model.model_copy(deep=True) if model is not None else None


# ===================================================================
# ImpactVerificationService facade
# ===================================================================

_singleton_lock = threading.Lock()
_singleton_instance: Optional["ImpactVerificationService"] = None


class ImpactVerificationService:
    """Unified transactional facade over the verification engine.

    Attributes:
        config: ImpactVerificationConfig instance.
        clock: LogicalClock all deadlines are compared against.
        provenance: ProvenanceTracker shared by every component.
        projects: ProjectRegistry instance.
        impact_types: ImpactTypeRegistry instance.
        authorization: AuthorizationStore instance.
        claims: ClaimStore instance.
        credentials: CredentialLedger instance.
        totals: ImpactTotals accumulator.
        finalization: FinalizationController instance.
        aggregation: AggregationEngine instance.
        ledger: VerificationLedger instance.

    Example:
        >>> service = ImpactVerificationService()
        >>> service.register_impact_type("co2_tonnes", 1000, "t", actor="admin")
        >>> project = service.register_project(owner="alice")
        >>> claim_id = service.submit_claim(
        ...     project.project_id, "co2_tonnes", 100, "ipfs://evidence",
        ...     deadline=50, required_verifications=1, submitter="alice",
        ... )
        >>> service.attest_validator(claim_id, "alice", True, 100).status
        <ClaimStatus.VERIFIED: 'verified'>
    """

    def __init__(
        self,
        config: Optional[ImpactVerificationConfig] = None,
        clock: Optional[LogicalClock] = None,
    ) -> None:
        """Initialize the service facade.

        Args:
            config: Optional config. Uses global config if None.
            clock: Optional externally driven clock. A new clock starting
                at ``config.genesis_time`` is created if None.
        """
        self.config = config or get_config()
        self.clock = clock or LogicalClock(self.config.genesis_time)
        self.provenance = ProvenanceTracker()

        shared = {
            "config": self.config,
            "clock": self.clock,
            "provenance": self.provenance,
        }
        self.projects = ProjectRegistry(**shared)
        self.impact_types = ImpactTypeRegistry(**shared)
        self.authorization = AuthorizationStore(self.projects, **shared)
        self.claims = ClaimStore(self.projects, self.impact_types, **shared)
        self.credentials = CredentialLedger(**shared)
        self.totals = ImpactTotals(self.projects)
        self.finalization = FinalizationController(
            self.claims, self.credentials, self.totals, **shared,
        )
        self.aggregation = AggregationEngine(self.finalization)
        self.ledger = VerificationLedger(
            self.claims, self.authorization, self.aggregation, **shared,
        )

        self._lock = threading.RLock()
        self._started = False
        logger.info("ImpactVerificationService facade created")

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[None]:
        start = time.monotonic()
        with self._lock:
            try:
                yield
            except ImpactLedgerException as exc:
                record_operation(
                    operation, exc.error_code, time.monotonic() - start,
                )
                logger.warning("%s rejected: %s", operation, exc)
                raise
        record_operation(operation, "success", time.monotonic() - start)

    # ------------------------------------------------------------------
    # Impact types
    # ------------------------------------------------------------------

    def register_impact_type(
        self,
        name: str,
        conversion_factor: int,
        unit: str = "",
        actor: str = "",
    ) -> ImpactType:
        with self._transaction("register_impact_type"):
            return _snapshot(
                self.impact_types.register(name, conversion_factor, unit, actor),
            )

    def deactivate_impact_type(self, name: str, actor: str = "") -> ImpactType:
        with self._transaction("deactivate_impact_type"):
            return _snapshot(self.impact_types.deactivate(name, actor))

    def get_impact_type(self, name: str) -> Optional[ImpactType]:
        with self._lock:
            return _snapshot(self.impact_types.get(name))

    def list_impact_types(self, active_only: bool = False) -> List[ImpactType]:
        with self._lock:
            return [_snapshot(t) for t in self.impact_types.list_types(active_only)]

    def normalize(self, impact_type: str, amount: int) -> int:
        with self._lock:
            return self.impact_types.normalize(impact_type, amount)

    # ------------------------------------------------------------------
    # Projects and authorization
    # ------------------------------------------------------------------

    def register_project(
        self,
        owner: str,
        name: str = "",
        description: str = "",
    ) -> Project:
        """Register a project and authorize its owner as a validator."""
        with self._transaction("register_project"):
            project = self.projects.register_project(owner, name, description)
            self.authorization.grant_owner(project)
            return _snapshot(project)

    def get_project(self, project_id: int) -> Optional[Project]:
        with self._lock:
            return _snapshot(self.projects.get(project_id))

    def list_projects(self, owner: Optional[str] = None) -> List[Project]:
        with self._lock:
            return [_snapshot(p) for p in self.projects.list_projects(owner)]

    def get_project_total(self, project_id: int) -> int:
        with self._lock:
            return self.totals.project_total(project_id)

    def authorize_validator(
        self,
        project_id: int,
        validator: str,
        actor: str,
    ) -> ValidatorAuthorization:
        with self._transaction("authorize_validator"):
            return self.authorization.authorize_validator(
                project_id, validator, actor,
            )

    def revoke_validator(self, project_id: int, validator: str, actor: str) -> bool:
        with self._transaction("revoke_validator"):
            return self.authorization.revoke_validator(project_id, validator, actor)

    def is_validator(self, project_id: int, identity: str) -> bool:
        with self._lock:
            return self.authorization.is_validator(project_id, identity)

    def validators_of(self, project_id: int) -> List[str]:
        with self._lock:
            return self.authorization.validators_of(project_id)

    def register_data_source(
        self,
        source_id: str,
        interface_identity: str,
        name: str = "",
        description: str = "",
        actor: str = "",
    ) -> DataSourceAuthorization:
        with self._transaction("register_data_source"):
            return self.authorization.register_data_source(
                source_id, interface_identity, name, description, actor,
            )

    def get_data_source(self, source_id: str) -> Optional[DataSourceAuthorization]:
        with self._lock:
            return self.authorization.get_data_source(source_id)

    # ------------------------------------------------------------------
    # Claims, attestations, finalization
    # ------------------------------------------------------------------

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
        with self._transaction("submit_claim"):
            return self.claims.submit_claim(
                project_id=project_id,
                impact_type=impact_type,
                amount=amount,
                evidence_reference=evidence_reference,
                deadline=deadline,
                required_verifications=required_verifications,
                submitter=submitter,
            )

    def attest_validator(
        self,
        claim_id: int,
        validator: str,
        approved: bool,
        amount: int,
        comments: str = "",
    ) -> ImpactClaim:
        with self._transaction("attest_validator"):
            return _snapshot(
                self.ledger.attest_validator(
                    claim_id, validator, approved, amount, comments,
                ),
            )

    def attest_external_source(
        self,
        claim_id: int,
        source_id: str,
        approved: bool,
        amount: int,
        payload: str = "",
        caller: str = "",
    ) -> ImpactClaim:
        with self._transaction("attest_external_source"):
            return _snapshot(
                self.ledger.attest_external_source(
                    claim_id, source_id, approved, amount, payload, caller,
                ),
            )

    def finalize_expired(self, claim_id: int) -> FinalizationResult:
        with self._transaction("finalize_expired"):
            return self.finalization.finalize_expired(claim_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_claim(self, claim_id: int) -> Optional[ImpactClaim]:
        with self._lock:
            return _snapshot(self.claims.get(claim_id))

    def list_claims(
        self,
        project_id: Optional[int] = None,
        status: Optional[ClaimStatus] = None,
    ) -> List[ImpactClaim]:
        with self._lock:
            return [
                _snapshot(c) for c in self.claims.list_claims(project_id, status)
            ]

    def get_verification(self, claim_id: int, validator: str) -> Optional[Attestation]:
        with self._lock:
            return self.ledger.get_verification(claim_id, validator)

    def get_external_verification(
        self,
        claim_id: int,
        source_id: str,
    ) -> Optional[ExternalAttestation]:
        with self._lock:
            return self.ledger.get_external_verification(claim_id, source_id)

    def list_attestations(self, claim_id: int) -> List[Attestation]:
        with self._lock:
            return self.ledger.list_attestations(claim_id)

    def list_external_attestations(self, claim_id: int) -> List[ExternalAttestation]:
        with self._lock:
            return self.ledger.list_external_attestations(claim_id)

    def get_credential(self, credential_id: int) -> Optional[Credential]:
        with self._lock:
            return self.credentials.get(credential_id)

    def credential_for_claim(self, claim_id: int) -> Optional[Credential]:
        with self._lock:
            return self.credentials.for_claim(claim_id)

    def credentials_of(self, owner: str) -> List[Credential]:
        with self._lock:
            return self.credentials.credentials_of(owner)

    def get_platform_total(self) -> int:
        with self._lock:
            return self.totals.platform_total

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def now(self) -> int:
        return self.clock.now()

    def advance_clock(self, ticks: int = 1) -> int:
        """Advance the logical clock between transactions."""
        with self._lock:
            return self.clock.advance(ticks)

    # ------------------------------------------------------------------
    # Health and metrics
    # ------------------------------------------------------------------

    def health_check(self) -> Dict[str, Any]:
        """Service health including provenance chain integrity."""
        with self._lock:
            chain_ok = self.provenance.verify_chain()
            return {
                "service": self.config.service_name,
                "status": "healthy" if chain_ok else "degraded",
                "started": self._started,
                "provenance_chain_valid": chain_ok,
                "logical_time": self.clock.now(),
            }

    def get_metrics(self) -> Dict[str, Any]:
        """Get verification service metrics summary."""
        with self._lock:
            return {
                "prometheus_available": PROMETHEUS_AVAILABLE,
                "started": self._started,
                "projects_count": self.projects.count,
                "impact_types_count": self.impact_types.count,
                "claims_count": self.claims.count,
                "pending_claims": self.claims.pending_count,
                "attestations_count": self.ledger.attestation_count,
                "credentials_count": self.credentials.count,
                "platform_total": self.totals.platform_total,
                "provenance_entries": self.provenance.entry_count,
            }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def startup(self) -> None:
        """Start the service. Safe to call multiple times."""
        if self._started:
            logger.debug("ImpactVerificationService already started; skipping")
            return
        self._started = True
        logger.info("ImpactVerificationService startup complete")

    def shutdown(self) -> None:
        """Shutdown the service."""
        if not self._started:
            return
        self._started = False
        logger.info("ImpactVerificationService shut down")


# ===================================================================
# Thread-safe singleton access
# ===================================================================


def get_service() -> ImpactVerificationService:
    """Get or create the singleton ImpactVerificationService instance."""
    global _singleton_instance
    if _singleton_instance is None:
        with _singleton_lock:
            if _singleton_instance is None:
                _singleton_instance = ImpactVerificationService()
    return _singleton_instance


def reset_service() -> None:
    """Drop the singleton (primarily for test teardown)."""
    global _singleton_instance
    with _singleton_lock:
        _singleton_instance = None


# ===================================================================
# FastAPI integration
# ===================================================================


def configure_impact_verification_service(
    app: Any,
    config: Optional[ImpactVerificationConfig] = None,
    clock: Optional[LogicalClock] = None,
) -> ImpactVerificationService:
    """Configure the verification service on a FastAPI application.

    Creates the service, stores it in ``app.state``, mounts the API
    router, and starts the service.

    Args:
        app: FastAPI application instance.
        config: Optional config.
        clock: Optional externally driven clock.

    Returns:
        ImpactVerificationService instance.
    """
    global _singleton_instance

    service = ImpactVerificationService(config=config, clock=clock)

    with _singleton_lock:
        _singleton_instance = service

    app.state.impact_verification_service = service

    router = get_router()
    if router is not None:
        app.include_router(router)
        logger.info("Impact verification API router mounted")
    else:
        logger.warning("Impact verification router not available; API not mounted")

    service.startup()
    logger.info("Impact verification service configured on app")
    return service


def get_impact_verification_service(app: Any) -> ImpactVerificationService:
    """Get the service instance from app state.

    Raises:
        RuntimeError: If the service was not configured.
    """
    service = getattr(app.state, "impact_verification_service", None)
    if service is None:
        raise RuntimeError(
            "Impact verification service not configured. "
            "Call configure_impact_verification_service(app) first."
        )
    return service


def get_router() -> Any:
    """Get the verification API router, or None without FastAPI."""
    if not FASTAPI_AVAILABLE:
        return None
    from impactledger.verification.api.router import router
    return router


__all__ = [
    "ImpactVerificationService",
    "configure_impact_verification_service",
    "get_impact_verification_service",
    "get_router",
    "get_service",
    "reset_service",
]
