# -*- coding: utf-8 -*-
"""Tests for the impact verification REST API."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from impactledger.verification.config import ImpactVerificationConfig
from impactledger.verification.setup import (
    configure_impact_verification_service,
    get_impact_verification_service,
    get_service,
)

PREFIX = "/api/v1/impact-verification"


def _as(actor):
    return {"X-Actor-Id": actor}


@pytest.fixture
def app():
    app = FastAPI()
    configure_impact_verification_service(app, config=ImpactVerificationConfig())
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def project_id(client):
    """Seed an impact type, a project, one validator and a data source."""
    client.post(
        f"{PREFIX}/impact-types",
        json={"name": "co2", "conversion_factor": 10, "unit": "t"},
        headers=_as("admin"),
    )
    response = client.post(f"{PREFIX}/projects", json={"name": "Kelp"}, headers=_as("alice"))
    pid = response.json()["project_id"]
    client.post(
        f"{PREFIX}/projects/{pid}/validators",
        json={"validator": "bob"},
        headers=_as("alice"),
    )
    client.post(
        f"{PREFIX}/data-sources",
        json={"source_id": "sat-1", "interface_identity": "oracle-1"},
        headers=_as("admin"),
    )
    return pid


def _submit(client, project_id, required=2, deadline=20):
    response = client.post(
        f"{PREFIX}/claims",
        json={
            "project_id": project_id,
            "impact_type": "co2",
            "amount": 100,
            "evidence_reference": "ipfs://evidence",
            "deadline": deadline,
            "required_verifications": required,
        },
        headers=_as("alice"),
    )
    assert response.status_code == 201
    return response.json()["claim_id"]


class TestServiceWiring:
    """configure_impact_verification_service."""

    def test_service_on_app_state(self, app):
        service = get_impact_verification_service(app)
        assert service is get_service()
        assert service.health_check()["started"] is True

    def test_unconfigured_app(self):
        with pytest.raises(RuntimeError):
            get_impact_verification_service(FastAPI())

    def test_health(self, client):
        response = client.get(f"{PREFIX}/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestClaimLifecycle:
    """Claims through HTTP."""

    def test_verify_by_two_attestations(self, client, project_id):
        claim_id = _submit(client, project_id)

        first = client.post(
            f"{PREFIX}/claims/{claim_id}/attestations",
            json={"approved": True, "amount": 100},
            headers=_as("bob"),
        )
        assert first.json()["status"] == "pending"

        second = client.post(
            f"{PREFIX}/claims/{claim_id}/attestations",
            json={"approved": True, "amount": 200},
            headers=_as("alice"),
        )
        body = second.json()
        assert body["status"] == "verified"
        assert body["verified_amount"] == 150

        credential = client.get(f"{PREFIX}/claims/{claim_id}/credential").json()
        assert credential["normalized_impact"] == 1500
        assert client.get(f"{PREFIX}/totals/platform").json() == {"total": 1500}
        assert client.get(f"{PREFIX}/projects/{project_id}/total").json()["total"] == 1500
        owned = client.get(f"{PREFIX}/owners/alice/credentials").json()
        assert [c["claim_id"] for c in owned] == [claim_id]

    def test_external_attestation(self, client, project_id):
        claim_id = _submit(client, project_id, required=2)
        response = client.post(
            f"{PREFIX}/claims/{claim_id}/external-attestations",
            json={"source_id": "sat-1", "approved": True, "amount": 90},
            headers=_as("oracle-1"),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "verified"
        listed = client.get(f"{PREFIX}/claims/{claim_id}/external-attestations").json()
        assert listed[0]["submitted_by"] == "oracle-1"

    def test_expiry(self, client, project_id):
        claim_id = _submit(client, project_id, required=5, deadline=4)

        early = client.post(f"{PREFIX}/claims/{claim_id}/finalize")
        assert early.status_code == 409
        assert early.json()["detail"]["error_code"] == "IL_NOT_YET_EXPIRED"

        advanced = client.post(
            f"{PREFIX}/clock/advance", json={"ticks": 4}, headers=_as("admin"),
        )
        assert advanced.json() == {"now": 4}

        result = client.post(f"{PREFIX}/claims/{claim_id}/finalize").json()
        assert result["status"] == "rejected"
        assert result["path"] == "expiry"

    def test_list_claims_by_status(self, client, project_id):
        _submit(client, project_id)
        response = client.get(f"{PREFIX}/claims", params={"status": "pending"})
        assert len(response.json()) == 1
        response = client.get(f"{PREFIX}/claims", params={"status": "verified"})
        assert response.json() == []


class TestErrorMapping:
    """Engine error families map to HTTP status codes."""

    def test_authorization_403(self, client, project_id):
        response = client.post(
            f"{PREFIX}/impact-types",
            json={"name": "water", "conversion_factor": 1},
            headers=_as("alice"),
        )
        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["error_code"] == "IL_NOT_AUTHORIZED"
        assert detail["context"]["required_role"] == "admin"

    def test_clock_advance_requires_admin(self, client):
        response = client.post(f"{PREFIX}/clock/advance", json={"ticks": 1}, headers=_as("bob"))
        assert response.status_code == 403
        assert client.get(f"{PREFIX}/clock").json() == {"now": 0}

    def test_not_found_404(self, client):
        assert client.get(f"{PREFIX}/claims/9").status_code == 404
        assert client.get(f"{PREFIX}/credentials/9").status_code == 404
        response = client.post(f"{PREFIX}/claims/9/finalize")
        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "IL_NOT_FOUND_ERROR"

    def test_invalid_input_400(self, client, project_id):
        response = client.post(
            f"{PREFIX}/claims",
            json={
                "project_id": project_id,
                "impact_type": "co2",
                "amount": 0,
                "deadline": 20,
                "required_verifications": 1,
            },
            headers=_as("alice"),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "IL_INVALID_AMOUNT"

    def test_state_conflict_409(self, client, project_id):
        claim_id = _submit(client, project_id, required=3)
        body = {"approved": True, "amount": 10}
        client.post(f"{PREFIX}/claims/{claim_id}/attestations", json=body, headers=_as("bob"))
        response = client.post(
            f"{PREFIX}/claims/{claim_id}/attestations", json=body, headers=_as("bob"),
        )
        assert response.status_code == 409
        assert response.json()["detail"]["error_code"] == "IL_ALREADY_VOTED"

    def test_not_validator_403(self, client, project_id):
        claim_id = _submit(client, project_id)
        response = client.post(
            f"{PREFIX}/claims/{claim_id}/attestations",
            json={"approved": True, "amount": 10},
            headers=_as("eve"),
        )
        assert response.status_code == 403
        assert response.json()["detail"]["error_code"] == "IL_NOT_VALIDATOR"

    def test_revoke_validator(self, client, project_id):
        response = client.delete(
            f"{PREFIX}/projects/{project_id}/validators/bob", headers=_as("alice"),
        )
        assert response.json() == {"revoked": True}
        validators = client.get(f"{PREFIX}/projects/{project_id}/validators").json()
        assert validators == ["alice"]
