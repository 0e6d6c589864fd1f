# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures for the verification engine."""

from types import SimpleNamespace

import pytest

from impactledger.verification.config import ImpactVerificationConfig, reset_config
from impactledger.verification.setup import ImpactVerificationService, reset_service

ADMIN = "admin"
OWNER = "alice"
VALIDATORS = ("bob", "carol", "dave")
IMPACT_TYPE = "co2"
CONVERSION_FACTOR = 10
SOURCE_ID = "sat-1"
SOURCE_INTERFACE = "oracle-1"


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Drop process-wide config and service between tests."""
    yield
    reset_config()
    reset_service()


@pytest.fixture
def config():
    """Default engine configuration."""
    return ImpactVerificationConfig()


@pytest.fixture
def service(config):
    """Empty verification service."""
    return ImpactVerificationService(config=config)


@pytest.fixture
def seeded(service):
    """Service with one impact type, one project, three validators and a source.

    - impact type ``co2`` with conversion factor 10
    - project 1 owned by ``alice`` (auto-authorized as validator)
    - validators ``bob``, ``carol`` and ``dave``
    - data source ``sat-1`` submitting through ``oracle-1``
    """
    service.register_impact_type(IMPACT_TYPE, CONVERSION_FACTOR, "t", actor=ADMIN)
    project = service.register_project(owner=OWNER, name="Mangrove restoration")
    for validator in VALIDATORS:
        service.authorize_validator(project.project_id, validator, actor=OWNER)
    service.register_data_source(
        SOURCE_ID, SOURCE_INTERFACE, name="Satellite biomass feed", actor=ADMIN,
    )
    return SimpleNamespace(service=service, project_id=project.project_id)


@pytest.fixture
def submit(seeded):
    """Factory submitting a claim on the seeded project."""

    def _submit(amount=100, deadline=100, required=2, impact_type=IMPACT_TYPE):
        return seeded.service.submit_claim(
            project_id=seeded.project_id,
            impact_type=impact_type,
            amount=amount,
            evidence_reference="ipfs://evidence",
            deadline=deadline,
            required_verifications=required,
            submitter=OWNER,
        )

    return _submit
