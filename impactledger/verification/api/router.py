# -*- coding: utf-8 -*-
"""
Impact Verification REST API

FastAPI router exposing the verification engine at prefix
``/api/v1/impact-verification``. The calling identity travels in the
``X-Actor-Id`` header; the engine makes every authorization decision.

Engine errors map to HTTP status by family:

    AuthorizationError   403
    NotFoundError        404
    InvalidInputError    400
    StateConflictError   409

with ``detail = {"error_code", "message", "context"}``.

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from impactledger.exceptions import (
    AuthorizationError,
    ImpactLedgerException,
    InvalidInputError,
    NotFoundError,
    StateConflictError,
)
from impactledger.verification.authorization import ensure_admin
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

logger = logging.getLogger(__name__)

try:
    from fastapi import APIRouter, Header, HTTPException, Query, Request
    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False

API_PREFIX = "/api/v1/impact-verification"

_STATUS_BY_FAMILY = (
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidInputError, 400),
    (StateConflictError, 409),
)


# ===================================================================
# Request bodies
# ===================================================================


class ImpactTypeRequest(BaseModel):
    name: str
    conversion_factor: int
    unit: str = ""

    model_config = {"extra": "forbid"}


class ProjectRequest(BaseModel):
    name: str = ""
    description: str = ""

    model_config = {"extra": "forbid"}


class ValidatorRequest(BaseModel):
    validator: str

    model_config = {"extra": "forbid"}


class DataSourceRequest(BaseModel):
    source_id: str
    interface_identity: str
    name: str = ""
    description: str = ""

    model_config = {"extra": "forbid"}


class ClaimRequest(BaseModel):
    project_id: int
    impact_type: str
    amount: int
    evidence_reference: str = ""
    deadline: int
    required_verifications: int

    model_config = {"extra": "forbid"}


class AttestationRequest(BaseModel):
    approved: bool
    amount: int
    comments: str = ""

    model_config = {"extra": "forbid"}


class ExternalAttestationRequest(BaseModel):
    source_id: str
    approved: bool
    amount: int
    payload: str = ""

    model_config = {"extra": "forbid"}


class ClockAdvanceRequest(BaseModel):
    ticks: int = Field(default=1, ge=0)

    model_config = {"extra": "forbid"}


# ===================================================================
# Helpers
# ===================================================================


def error_to_http(exc: ImpactLedgerException) -> "HTTPException":
    """Translate an engine error to an HTTPException by family."""
    status_code = 500
    for family, code in _STATUS_BY_FAMILY:
        if isinstance(exc, family):
            status_code = code
            break
    return HTTPException(
        status_code=status_code,
        detail={
            "error_code": exc.error_code,
            "message": exc.message,
            "context": exc.context,
        },
    )


def _not_found(entity: str, entity_id: Any) -> "HTTPException":
    return HTTPException(
        status_code=404,
        detail={
            "error_code": "IL_NOT_FOUND_ERROR",
            "message": f"{entity} {entity_id} not found",
            "context": {"entity_type": entity.lower(), "entity_id": entity_id},
        },
    )


def _build_router() -> Any:
    router = APIRouter(prefix=API_PREFIX, tags=["impact-verification"])

    def _svc(request: Request) -> Any:
        """Service on the app, falling back to the process singleton."""
        service = getattr(request.app.state, "impact_verification_service", None)
        if service is None:
            from impactledger.verification.setup import get_service
            service = get_service()
        return service

    def _call(fn: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except ImpactLedgerException as exc:
            raise error_to_http(exc)

    # ------------------------------------------------------------------
    # Impact types
    # ------------------------------------------------------------------

    @router.post("/impact-types", response_model=ImpactType, status_code=201)
    async def post_register_impact_type(
        body: ImpactTypeRequest,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> ImpactType:
        """Register or replace an impact type (admin only)."""
        return _call(
            _svc(request).register_impact_type,
            body.name, body.conversion_factor, body.unit, actor=actor,
        )

    @router.post("/impact-types/{name}/deactivate", response_model=ImpactType)
    async def post_deactivate_impact_type(
        name: str,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> ImpactType:
        return _call(_svc(request).deactivate_impact_type, name, actor=actor)

    @router.get("/impact-types", response_model=List[ImpactType])
    async def get_impact_types(
        request: Request,
        active_only: bool = Query(False),
    ) -> List[ImpactType]:
        return _svc(request).list_impact_types(active_only=active_only)

    # ------------------------------------------------------------------
    # Projects and validators
    # ------------------------------------------------------------------

    @router.post("/projects", response_model=Project, status_code=201)
    async def post_register_project(
        body: ProjectRequest,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> Project:
        """Register a project owned by the calling identity."""
        return _call(
            _svc(request).register_project,
            owner=actor, name=body.name, description=body.description,
        )

    @router.get("/projects/{project_id}", response_model=Project)
    async def get_project(project_id: int, request: Request) -> Project:
        project = _svc(request).get_project(project_id)
        if project is None:
            raise _not_found("Project", project_id)
        return project

    @router.get("/projects/{project_id}/total")
    async def get_project_total(project_id: int, request: Request) -> Dict[str, int]:
        total = _call(_svc(request).get_project_total, project_id)
        return {"project_id": project_id, "total": total}

    @router.post(
        "/projects/{project_id}/validators",
        response_model=ValidatorAuthorization,
        status_code=201,
    )
    async def post_authorize_validator(
        project_id: int,
        body: ValidatorRequest,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> ValidatorAuthorization:
        return _call(
            _svc(request).authorize_validator, project_id, body.validator, actor,
        )

    @router.delete("/projects/{project_id}/validators/{validator}")
    async def delete_validator(
        project_id: int,
        validator: str,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> Dict[str, bool]:
        revoked = _call(
            _svc(request).revoke_validator, project_id, validator, actor,
        )
        return {"revoked": revoked}

    @router.get("/projects/{project_id}/validators", response_model=List[str])
    async def get_validators(project_id: int, request: Request) -> List[str]:
        return _svc(request).validators_of(project_id)

    # ------------------------------------------------------------------
    # Data sources
    # ------------------------------------------------------------------

    @router.post(
        "/data-sources",
        response_model=DataSourceAuthorization,
        status_code=201,
    )
    async def post_register_data_source(
        body: DataSourceRequest,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> DataSourceAuthorization:
        """Register an external data source (admin only)."""
        return _call(
            _svc(request).register_data_source,
            body.source_id, body.interface_identity,
            name=body.name, description=body.description, actor=actor,
        )

    @router.get("/data-sources/{source_id}", response_model=DataSourceAuthorization)
    async def get_data_source(
        source_id: str,
        request: Request,
    ) -> DataSourceAuthorization:
        source = _svc(request).get_data_source(source_id)
        if source is None:
            raise _not_found("Data source", source_id)
        return source

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    @router.post("/claims", status_code=201)
    async def post_submit_claim(
        body: ClaimRequest,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> Dict[str, int]:
        """Submit a claim on behalf of the project owner."""
        claim_id = _call(
            _svc(request).submit_claim,
            project_id=body.project_id,
            impact_type=body.impact_type,
            amount=body.amount,
            evidence_reference=body.evidence_reference,
            deadline=body.deadline,
            required_verifications=body.required_verifications,
            submitter=actor,
        )
        return {"claim_id": claim_id}

    @router.get("/claims", response_model=List[ImpactClaim])
    async def get_claims(
        request: Request,
        project_id: Optional[int] = Query(None),
        status: Optional[ClaimStatus] = Query(None),
    ) -> List[ImpactClaim]:
        return _svc(request).list_claims(project_id=project_id, status=status)

    @router.get("/claims/{claim_id}", response_model=ImpactClaim)
    async def get_claim(claim_id: int, request: Request) -> ImpactClaim:
        claim = _svc(request).get_claim(claim_id)
        if claim is None:
            raise _not_found("Claim", claim_id)
        return claim

    @router.post("/claims/{claim_id}/attestations", response_model=ImpactClaim)
    async def post_attest_validator(
        claim_id: int,
        body: AttestationRequest,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> ImpactClaim:
        """Attest a claim as the calling validator."""
        return _call(
            _svc(request).attest_validator,
            claim_id, actor, body.approved, body.amount, body.comments,
        )

    @router.get(
        "/claims/{claim_id}/attestations",
        response_model=List[Attestation],
    )
    async def get_attestations(claim_id: int, request: Request) -> List[Attestation]:
        return _svc(request).list_attestations(claim_id)

    @router.post(
        "/claims/{claim_id}/external-attestations",
        response_model=ImpactClaim,
    )
    async def post_attest_external_source(
        claim_id: int,
        body: ExternalAttestationRequest,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> ImpactClaim:
        """Attest a claim as a data source's interface identity."""
        return _call(
            _svc(request).attest_external_source,
            claim_id, body.source_id, body.approved, body.amount,
            payload=body.payload, caller=actor,
        )

    @router.get(
        "/claims/{claim_id}/external-attestations",
        response_model=List[ExternalAttestation],
    )
    async def get_external_attestations(
        claim_id: int,
        request: Request,
    ) -> List[ExternalAttestation]:
        return _svc(request).list_external_attestations(claim_id)

    @router.post("/claims/{claim_id}/finalize", response_model=FinalizationResult)
    async def post_finalize_expired(
        claim_id: int,
        request: Request,
    ) -> FinalizationResult:
        """Settle a claim whose deadline has passed. Open to anyone."""
        return _call(_svc(request).finalize_expired, claim_id)

    @router.get("/claims/{claim_id}/credential", response_model=Credential)
    async def get_claim_credential(claim_id: int, request: Request) -> Credential:
        credential = _svc(request).credential_for_claim(claim_id)
        if credential is None:
            raise _not_found("Credential for claim", claim_id)
        return credential

    # ------------------------------------------------------------------
    # Credentials and totals
    # ------------------------------------------------------------------

    @router.get("/credentials/{credential_id}", response_model=Credential)
    async def get_credential(credential_id: int, request: Request) -> Credential:
        credential = _svc(request).get_credential(credential_id)
        if credential is None:
            raise _not_found("Credential", credential_id)
        return credential

    @router.get("/owners/{owner}/credentials", response_model=List[Credential])
    async def get_owner_credentials(owner: str, request: Request) -> List[Credential]:
        return _svc(request).credentials_of(owner)

    @router.get("/totals/platform")
    async def get_platform_total(request: Request) -> Dict[str, int]:
        return {"total": _svc(request).get_platform_total()}

    # ------------------------------------------------------------------
    # Clock, health, metrics
    # ------------------------------------------------------------------

    @router.get("/clock")
    async def get_clock(request: Request) -> Dict[str, int]:
        return {"now": _svc(request).now()}

    @router.post("/clock/advance")
    async def post_advance_clock(
        body: ClockAdvanceRequest,
        request: Request,
        actor: str = Header("", alias="X-Actor-Id"),
    ) -> Dict[str, int]:
        """Advance the logical clock (admin only)."""
        service = _svc(request)
        _call(ensure_admin, service.config, actor, "advance_clock")
        return {"now": service.advance_clock(body.ticks)}

    @router.get("/health")
    async def get_health(request: Request) -> Dict[str, Any]:
        return _svc(request).health_check()

    @router.get("/metrics")
    async def get_metrics_summary(request: Request) -> Dict[str, Any]:
        return _svc(request).get_metrics()

    logger.debug("Impact verification router built at %s", API_PREFIX)
    return router


router = _build_router() if FASTAPI_AVAILABLE else None


__all__ = [
    "API_PREFIX",
    "error_to_http",
    "router",
]
