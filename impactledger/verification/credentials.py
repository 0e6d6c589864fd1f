# -*- coding: utf-8 -*-
"""
Credential Ledger

Append-only store of credentials issued for verified claims. Credential
ids come from one global counter shared by every project and never
decrease. Only the finalization controller mints.

Example:
    >>> ledger = CredentialLedger()
    >>> credential = ledger.get(1)

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

from impactledger.verification.clock import LogicalClock
from impactledger.verification.config import ImpactVerificationConfig, get_config
from impactledger.verification.metrics import record_credential_issued
from impactledger.verification.models import Credential
from impactledger.verification.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)


class CredentialLedger:
    """Append-only credential store.

    Attributes:
        config: ImpactVerificationConfig instance.
        clock: Logical clock stamping issue times.
        provenance: ProvenanceTracker instance.
        _credentials: Credentials in issue order.
        _by_claim: Credential ID by claim ID.
        _by_owner: Credential IDs by owner identity.
    """

    def __init__(
        self,
        config: Optional[ImpactVerificationConfig] = None,
        clock: Optional[LogicalClock] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        self.config = config or get_config()
        self.clock = clock or LogicalClock(self.config.genesis_time)
        self.provenance = provenance or ProvenanceTracker()
        self._credentials: List[Credential] = []
        self._by_claim: Dict[int, int] = {}
        self._by_owner: Dict[str, List[int]] = {}
        logger.info("CredentialLedger initialized")

    def mint(
        self,
        owner: str,
        project_id: int,
        impact_type: str,
        amount: int,
        normalized_impact: int,
        claim_id: int,
    ) -> Credential:
        """Issue the next credential.

        Raises:
            ValueError: If the claim already has a credential.
        """
        if claim_id in self._by_claim:
            raise ValueError(f"Claim {claim_id} already has a credential")

        credential = Credential(
            credential_id=len(self._credentials) + 1,
            owner=owner,
            project_id=project_id,
            impact_type=impact_type,
            amount=amount,
            normalized_impact=normalized_impact,
            issued_at=self.clock.now(),
            claim_id=claim_id,
        )
        credential = credential.model_copy(
            update={"content_hash": credential.calculate_content_hash()},
        )

        self._credentials.append(credential)
        self._by_claim[claim_id] = credential.credential_id
        self._by_owner.setdefault(owner, []).append(credential.credential_id)

        if self.config.enable_provenance:
            self.provenance.record(
                entity_type="credential",
                entity_id=credential.credential_id,
                action="mint",
                data_hash=credential.content_hash,
                actor="system",
                logical_time=credential.issued_at,
                metadata={"claim_id": claim_id, "owner": owner},
            )

        record_credential_issued()
        logger.info(
            "Minted credential %d to %s for claim %d (impact=%d)",
            credential.credential_id, owner, claim_id, normalized_impact,
        )
        return credential

    def get(self, credential_id: int) -> Optional[Credential]:
        """Get a credential by ID, or None."""
        if 1 <= credential_id <= len(self._credentials):
            return self._credentials[credential_id - 1]
        return None

    def for_claim(self, claim_id: int) -> Optional[Credential]:
        credential_id = self._by_claim.get(claim_id)
        return self.get(credential_id) if credential_id is not None else None

    def credentials_of(self, owner: str) -> List[Credential]:
        """Credentials held by ``owner``, in issue order."""
        return [self._credentials[i - 1] for i in self._by_owner.get(owner, [])]

    def export_json(self) -> str:
        """Export every credential as a JSON array."""
        records = [c.model_dump(mode="json") for c in self._credentials]
        return json.dumps(records, indent=2)

    @property
    def count(self) -> int:
        return len(self._credentials)

    @property
    def last_credential_id(self) -> int:
        """Highest issued credential ID (0 before the first mint)."""
        return len(self._credentials)


__all__ = ["CredentialLedger"]
