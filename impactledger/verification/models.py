# -*- coding: utf-8 -*-
"""
Impact Verification Data Models

Pydantic v2 data models for the impact-claim verification engine.

Models:
    - Enums: ClaimStatus, AttestationSource, FinalizationPath
    - Registry: ImpactType, Project
    - Authorization: ValidatorAuthorization, DataSourceAuthorization
    - Claims: ImpactClaim
    - Attestations: Attestation, ExternalAttestation
    - Outcomes: FinalizationResult, Credential

All amounts are non-negative integers and all times are logical clock
ticks (see ``impactledger.verification.clock``).

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enumerations
# =============================================================================


class ClaimStatus(str, Enum):
    """Lifecycle status of an impact claim."""
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        """Return True once the claim can no longer change."""
        return self is not ClaimStatus.PENDING


class AttestationSource(str, Enum):
    """Who produced an attestation."""
    VALIDATOR = "validator"
    EXTERNAL_SOURCE = "external_source"


class FinalizationPath(str, Enum):
    """How a claim reached its terminal state."""
    THRESHOLD = "threshold"
    EXPIRY = "expiry"


# =============================================================================
# Utility
# =============================================================================


def _hash_content(content: Dict[str, Any]) -> str:
    """SHA-256 of a canonical JSON rendering."""
    content_str = json.dumps(content, sort_keys=True, default=str)
    return hashlib.sha256(content_str.encode()).hexdigest()


def content_hash(model: BaseModel) -> str:
    """SHA-256 of a model's JSON-mode dump, used as provenance data hash."""
    return _hash_content(model.model_dump(mode="json"))


# =============================================================================
# Registry models
# =============================================================================


class ImpactType(BaseModel):
    """Conversion definition for one kind of environmental impact."""

    name: str = Field(..., min_length=1, description="Unique type name")
    conversion_factor: int = Field(
        ..., ge=0,
        description="Multiplier from claimed quantity to normalized impact",
    )
    unit: str = Field(default="", description="Unit of the claimed quantity")
    active: bool = Field(default=True, description="Accepts new claims")
    registered_at: int = Field(
        default=0, description="Logical time of the last registration",
    )

    model_config = {"extra": "forbid"}

    def normalize(self, amount: int) -> int:
        """Convert a quantity to normalized impact (0 when inactive)."""
        if not self.active:
            return 0
        return amount * self.conversion_factor


class Project(BaseModel):
    """A project whose owner may submit impact claims."""

    project_id: int = Field(..., ge=1, description="Project identifier")
    owner: str = Field(..., min_length=1, description="Owning identity")
    name: str = Field(default="", description="Display name")
    description: str = Field(default="", description="Free-form description")
    created_at: int = Field(default=0, description="Logical creation time")
    running_verified_total: int = Field(
        default=0, ge=0,
        description="Normalized impact credited by verified claims",
    )

    model_config = {"extra": "forbid"}


# =============================================================================
# Authorization models
# =============================================================================


class ValidatorAuthorization(BaseModel):
    """Grant allowing an identity to attest claims of one project."""

    project_id: int = Field(..., description="Project the grant applies to")
    validator: str = Field(..., min_length=1, description="Validator identity")
    authorized_at: int = Field(..., description="Logical grant time")
    authorized_by: str = Field(..., description="Identity that granted it")

    model_config = {"extra": "forbid", "frozen": True}


class DataSourceAuthorization(BaseModel):
    """Registration of an external data source and its submitting identity."""

    source_id: str = Field(..., min_length=1, description="Data source ID")
    interface_identity: str = Field(
        ..., min_length=1,
        description="Identity allowed to submit on behalf of the source",
    )
    name: str = Field(default="", description="Human-readable name")
    description: str = Field(default="", description="What the source measures")
    authorized_at: int = Field(..., description="Logical registration time")

    model_config = {"extra": "forbid", "frozen": True}


# =============================================================================
# Claims
# =============================================================================


class ImpactClaim(BaseModel):
    """A project owner's assertion of achieved impact, pending verification.

    ``verified_amount`` is the running weighted estimate while the claim is
    pending and the consensus value once it is verified.
    """

    claim_id: int = Field(..., ge=1, description="Claim identifier")
    project_id: int = Field(..., description="Project the claim belongs to")
    impact_type: str = Field(..., description="Impact type name")
    claimed_amount: int = Field(..., gt=0, description="Claimed quantity")
    evidence_reference: str = Field(
        default="", description="Pointer to off-chain evidence",
    )
    submitter: str = Field(..., description="Identity that submitted the claim")
    submitted_at: int = Field(..., description="Logical submission time")
    status: ClaimStatus = Field(default=ClaimStatus.PENDING)
    verification_deadline: int = Field(
        ..., description="Attestations accepted strictly before this time",
    )
    required_verifications: int = Field(
        ..., gt=0, description="Weighted attestations needed to verify",
    )
    received_verifications: int = Field(
        default=0, ge=0, description="Weighted attestations received",
    )
    verified_amount: int = Field(
        default=0, ge=0, description="Running consensus estimate",
    )

    # Terminal bookkeeping
    finalized_at: Optional[int] = Field(
        None, description="Logical time of the terminal transition",
    )
    normalized_impact: Optional[int] = Field(
        None, description="Impact credited on verification",
    )
    credential_id: Optional[int] = Field(
        None, description="Credential minted on verification",
    )

    model_config = {"extra": "forbid"}

    @property
    def is_pending(self) -> bool:
        """Return True while attestations are still accepted."""
        return self.status == ClaimStatus.PENDING

    @property
    def threshold_met(self) -> bool:
        """Return True once enough weighted attestations arrived."""
        return self.received_verifications >= self.required_verifications

    def calculate_content_hash(self) -> str:
        """Calculate SHA-256 hash of the claim state for provenance."""
        return _hash_content(self.model_dump(mode="json"))


# =============================================================================
# Attestations
# =============================================================================


class Attestation(BaseModel):
    """One validator's judgment on a claim. Never overwritten."""

    claim_id: int = Field(..., description="Attested claim")
    validator: str = Field(..., description="Validator identity")
    verified_at: int = Field(..., description="Logical attestation time")
    approved: bool = Field(..., description="Whether the claim is endorsed")
    amount: int = Field(..., ge=0, description="Measured quantity")
    comments: str = Field(default="", description="Validator remarks")

    model_config = {"extra": "forbid", "frozen": True}


class ExternalAttestation(BaseModel):
    """An external data source's reading for a claim."""

    claim_id: int = Field(..., description="Attested claim")
    source_id: str = Field(..., description="Data source ID")
    verified_at: int = Field(..., description="Logical attestation time")
    approved: bool = Field(..., description="Whether the claim is endorsed")
    amount: int = Field(..., ge=0, description="Measured quantity")
    evidence_payload: str = Field(
        default="", description="Source-specific evidence payload",
    )
    submitted_by: str = Field(..., description="Interface identity that sent it")
    submission_count: int = Field(
        default=1, ge=1,
        description="How many times this source attested the claim",
    )

    model_config = {"extra": "forbid", "frozen": True}


# =============================================================================
# Outcomes
# =============================================================================


class Credential(BaseModel):
    """Immutable record evidencing one verified claim."""

    credential_id: int = Field(..., ge=1, description="Global sequence number")
    owner: str = Field(..., description="Project owner receiving the credential")
    project_id: int = Field(..., description="Project of the verified claim")
    impact_type: str = Field(..., description="Impact type name")
    amount: int = Field(..., ge=0, description="Verified quantity")
    normalized_impact: int = Field(..., ge=0, description="Normalized impact")
    issued_at: int = Field(..., description="Logical issue time")
    claim_id: int = Field(..., description="Verified claim")
    content_hash: str = Field(default="", description="SHA-256 of the content")

    model_config = {"extra": "forbid", "frozen": True}

    def calculate_content_hash(self) -> str:
        """Calculate SHA-256 hash of the credential content."""
        return _hash_content(self.model_dump(mode="json", exclude={"content_hash"}))


class FinalizationResult(BaseModel):
    """Outcome of moving a claim out of Pending."""

    claim_id: int = Field(..., description="Finalized claim")
    status: ClaimStatus = Field(..., description="Terminal status")
    path: FinalizationPath = Field(..., description="Threshold or expiry")
    normalized_impact: int = Field(
        default=0, ge=0, description="Impact credited (0 when rejected)",
    )
    credential_id: Optional[int] = Field(
        None, description="Credential minted when verified",
    )
    finalized_at: int = Field(..., description="Logical finalization time")

    model_config = {"extra": "forbid"}

    @property
    def verified(self) -> bool:
        return self.status == ClaimStatus.VERIFIED


__all__ = [
    # Enumerations
    "ClaimStatus",
    "AttestationSource",
    "FinalizationPath",
    # Registry
    "ImpactType",
    "Project",
    # Authorization
    "ValidatorAuthorization",
    "DataSourceAuthorization",
    # Claims
    "ImpactClaim",
    # Attestations
    "Attestation",
    "ExternalAttestation",
    # Outcomes
    "Credential",
    "FinalizationResult",
    # Helpers
    "content_hash",
]
