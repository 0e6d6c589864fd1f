# -*- coding: utf-8 -*-
"""Tests for claim submission and claim queries."""

import pytest

from impactledger.exceptions import (
    InvalidAmount,
    InvalidDeadline,
    InvalidImpactType,
    InvalidThreshold,
    NotAuthorized,
    NotFoundError,
)
from impactledger.verification.config import ImpactVerificationConfig
from impactledger.verification.models import ClaimStatus
from impactledger.verification.setup import ImpactVerificationService


class TestSubmitClaim:
    """Owner-only claim submission."""

    def test_submit(self, seeded, submit):
        """A new claim starts pending with empty counters."""
        seeded.service.advance_clock(5)
        claim_id = submit(amount=100, deadline=50, required=3)
        claim = seeded.service.get_claim(claim_id)

        assert claim_id == 1
        assert claim.status == ClaimStatus.PENDING
        assert claim.claimed_amount == 100
        assert claim.submitted_at == 5
        assert claim.verification_deadline == 50
        assert claim.required_verifications == 3
        assert claim.received_verifications == 0
        assert claim.verified_amount == 0
        assert claim.evidence_reference == "ipfs://evidence"

    def test_ids_increase(self, submit):
        assert [submit(), submit(), submit()] == [1, 2, 3]

    def test_unknown_project(self, seeded):
        with pytest.raises(NotFoundError):
            seeded.service.submit_claim(42, "co2", 100, "", 10, 1, "alice")

    def test_non_owner(self, seeded):
        with pytest.raises(NotAuthorized):
            seeded.service.submit_claim(seeded.project_id, "co2", 100, "", 10, 1, "bob")

    def test_unknown_type(self, submit):
        with pytest.raises(InvalidImpactType):
            submit(impact_type="methane")

    def test_inactive_type(self, seeded, submit):
        seeded.service.deactivate_impact_type("co2", actor="admin")
        with pytest.raises(InvalidImpactType):
            submit()

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount(self, submit, amount):
        with pytest.raises(InvalidAmount):
            submit(amount=amount)

    @pytest.mark.parametrize("required", [0, -1])
    def test_threshold_not_positive(self, submit, required):
        with pytest.raises(InvalidThreshold):
            submit(required=required)

    @pytest.mark.parametrize("required", [1001, 50_000])
    def test_threshold_unbounded_by_default(self, seeded, submit, required):
        """Without a configured bound any positive threshold is accepted."""
        claim_id = submit(required=required)
        assert seeded.service.get_claim(claim_id).required_verifications == required

    def test_threshold_bound_is_configurable(self):
        service = ImpactVerificationService(
            config=ImpactVerificationConfig(max_required_verifications=3),
        )
        service.register_impact_type("co2", 1, actor="admin")
        project = service.register_project(owner="alice")
        service.submit_claim(project.project_id, "co2", 1, "", 10, 3, "alice")
        with pytest.raises(InvalidThreshold):
            service.submit_claim(project.project_id, "co2", 1, "", 10, 4, "alice")

    @pytest.mark.parametrize("deadline", [9, 10])
    def test_deadline_not_in_future(self, seeded, submit, deadline):
        seeded.service.advance_clock(10)
        with pytest.raises(InvalidDeadline):
            submit(deadline=deadline)

    def test_check_order(self, seeded):
        """Ownership is checked before inputs, inputs in declaration order."""
        svc = seeded.service
        with pytest.raises(NotAuthorized):
            svc.submit_claim(seeded.project_id, "methane", 0, "", 0, 0, "bob")
        with pytest.raises(InvalidImpactType):
            svc.submit_claim(seeded.project_id, "methane", 0, "", 0, 0, "alice")
        with pytest.raises(InvalidAmount):
            svc.submit_claim(seeded.project_id, "co2", 0, "", 0, 0, "alice")
        with pytest.raises(InvalidThreshold):
            svc.submit_claim(seeded.project_id, "co2", 1, "", 0, 0, "alice")

    def test_failed_submission_leaves_no_trace(self, seeded, submit):
        svc = seeded.service
        entries = svc.provenance.entry_count
        with pytest.raises(InvalidAmount):
            submit(amount=0)
        assert svc.claims.count == 0
        assert svc.provenance.entry_count == entries
        assert submit() == 1


class TestClaimQueries:
    """Claim lookups and listings."""

    def test_get_missing(self, service):
        assert service.get_claim(1) is None

    def test_returned_claim_is_a_copy(self, seeded, submit):
        """Editing a returned claim does not change engine state."""
        claim_id = submit()
        snapshot = seeded.service.get_claim(claim_id)
        snapshot.received_verifications = 99
        assert seeded.service.get_claim(claim_id).received_verifications == 0

    def test_list_claims_filters(self, seeded, submit):
        svc = seeded.service
        first = submit(required=1)
        second = submit()
        other = svc.register_project(owner="zoe")

        svc.attest_validator(first, "bob", True, 100)

        assert [c.claim_id for c in svc.list_claims()] == [first, second]
        assert [c.claim_id for c in svc.list_claims(project_id=other.project_id)] == []
        assert [
            c.claim_id for c in svc.list_claims(status=ClaimStatus.PENDING)
        ] == [second]
        assert [
            c.claim_id for c in svc.list_claims(status=ClaimStatus.VERIFIED)
        ] == [first]
