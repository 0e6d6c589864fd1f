# -*- coding: utf-8 -*-
"""Property-based tests for the verification engine invariants."""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from impactledger.exceptions import ImpactLedgerException
from impactledger.verification.aggregation import fold_amount
from impactledger.verification.config import ImpactVerificationConfig
from impactledger.verification.models import ClaimStatus
from impactledger.verification.setup import ImpactVerificationService

VALIDATORS = ("alice", "bob", "carol")
CLAIMS = 3

amounts = st.integers(min_value=0, max_value=10_000)

actions = st.one_of(
    st.tuples(
        st.just("validator"),
        st.integers(0, CLAIMS - 1),
        st.sampled_from(VALIDATORS),
        st.booleans(),
        amounts,
    ),
    st.tuples(st.just("external"), st.integers(0, CLAIMS - 1), st.booleans(), amounts),
    st.tuples(st.just("tick"), st.integers(0, 6)),
    st.tuples(st.just("finalize"), st.integers(0, CLAIMS - 1)),
)


def _build(thresholds, deadlines):
    service = ImpactVerificationService(config=ImpactVerificationConfig())
    service.register_impact_type("co2", 3, actor="admin")
    project = service.register_project(owner="alice")
    for validator in VALIDATORS[1:]:
        service.authorize_validator(project.project_id, validator, actor="alice")
    service.register_data_source("sat-1", "oracle-1", actor="admin")
    claim_ids = [
        service.submit_claim(project.project_id, "co2", 100, "", deadline, required, "alice")
        for required, deadline in zip(thresholds, deadlines)
    ]
    return service, claim_ids


def _run(service, claim_ids, steps):
    """Apply steps, returning the accepted ones."""
    accepted = []
    for step in steps:
        kind = step[0]
        try:
            if kind == "validator":
                _, idx, validator, approved, amount = step
                service.attest_validator(claim_ids[idx], validator, approved, amount)
            elif kind == "external":
                _, idx, approved, amount = step
                service.attest_external_source(
                    claim_ids[idx], "sat-1", approved, amount, caller="oracle-1",
                )
            elif kind == "tick":
                service.advance_clock(step[1])
            else:
                service.finalize_expired(claim_ids[step[1]])
        except ImpactLedgerException:
            continue
        accepted.append(step)
    return accepted


scenario = dict(
    thresholds=st.lists(st.integers(1, 6), min_size=CLAIMS, max_size=CLAIMS),
    deadlines=st.lists(st.integers(1, 20), min_size=CLAIMS, max_size=CLAIMS),
    steps=st.lists(actions, max_size=40),
)


class TestFoldProperties:
    """Algebra of the weighted fold."""

    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(current=st.integers(1, 10**9), amount=amounts, weight=st.sampled_from([1, 2]))
    def test_fold_stays_between_inputs(self, current, amount, weight):
        result = fold_amount(current, amount, weight)
        assert min(current, amount) <= result <= max(current, amount)

    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(amount=amounts, weight=st.sampled_from([1, 2]))
    def test_first_approval_seeds(self, amount, weight):
        assert fold_amount(0, amount, weight) == amount


@pytest.mark.property
class TestEngineInvariants:
    """Invariants over random operation sequences."""

    @settings(
        max_examples=60,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(**scenario)
    def test_single_terminal_transition(self, thresholds, deadlines, steps):
        """Each verified claim has exactly one credential; totals agree."""
        service, claim_ids = _build(thresholds, deadlines)
        _run(service, claim_ids, steps)

        claims = [service.get_claim(cid) for cid in claim_ids]
        verified = [c for c in claims if c.status == ClaimStatus.VERIFIED]

        assert service.credentials.count == len(verified)
        for claim in verified:
            credential = service.credential_for_claim(claim.claim_id)
            assert credential.credential_id == claim.credential_id
            assert credential.normalized_impact == claim.verified_amount * 3
            assert claim.threshold_met
        for claim in claims:
            if claim.status == ClaimStatus.REJECTED:
                assert service.credential_for_claim(claim.claim_id) is None
                assert not claim.threshold_met

        expected = sum(c.normalized_impact for c in verified)
        assert service.get_platform_total() == expected
        assert service.get_project_total(claims[0].project_id) == expected

    @settings(
        max_examples=60,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(**scenario)
    def test_counts_match_accepted_attestations(self, thresholds, deadlines, steps):
        """No validator is counted twice; external readings weigh two."""
        service, claim_ids = _build(thresholds, deadlines)
        accepted = _run(service, claim_ids, steps)

        for idx, claim_id in enumerate(claim_ids):
            validator_votes = [
                s for s in accepted if s[0] == "validator" and s[1] == idx
            ]
            external_votes = [
                s for s in accepted if s[0] == "external" and s[1] == idx
            ]
            voters = [s[2] for s in validator_votes]
            assert len(voters) == len(set(voters))
            assert service.get_claim(claim_id).received_verifications == (
                len(validator_votes) + 2 * len(external_votes)
            )
            assert len(service.list_attestations(claim_id)) == len(validator_votes)

    @settings(
        max_examples=60,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    @given(**scenario)
    def test_monotonic_counters(self, thresholds, deadlines, steps):
        """Credential ids are dense from 1 and totals never shrink."""
        service, claim_ids = _build(thresholds, deadlines)
        totals = []
        for step in steps:
            _run(service, claim_ids, [step])
            totals.append(service.get_platform_total())

        assert totals == sorted(totals)
        ids = [
            service.credential_for_claim(cid).credential_id
            for cid in claim_ids
            if service.credential_for_claim(cid) is not None
        ]
        assert sorted(ids) == list(range(1, len(ids) + 1))
        assert service.provenance.verify_chain()
