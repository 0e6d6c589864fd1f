"""Tests for the ImpactLedger exception hierarchy.

Covers:
- Error code generation
- Family categories and context enrichment
- Serialization
- Exception utilities

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

import json
from datetime import datetime

import pytest

from impactledger.exceptions import (
    AlreadyProcessed,
    AlreadyVoted,
    AuthorizationError,
    Expired,
    ImpactLedgerException,
    InvalidAmount,
    InvalidDeadline,
    InvalidImpactType,
    InvalidInputError,
    InvalidThreshold,
    NotAuthorized,
    NotFoundError,
    NotValidator,
    NotYetExpired,
    StateConflictError,
    format_exception_chain,
    is_retriable,
)


# ==============================================================================
# Base Exception Tests
# ==============================================================================

class TestImpactLedgerException:
    """Tests for base ImpactLedgerException."""

    def test_create_basic_exception(self):
        """Can create basic exception with message."""
        exc = ImpactLedgerException("Something went wrong")

        assert exc.message == "Something went wrong"
        assert exc.error_code == "IL_IMPACT_LEDGER_EXCEPTION"
        assert exc.context == {}
        assert exc.category == "internal"
        assert isinstance(exc.timestamp, datetime)

    def test_explicit_error_code_wins(self):
        """Explicit error code overrides generation."""
        exc = ImpactLedgerException("Test", error_code="IL_TEST_001")
        assert exc.error_code == "IL_TEST_001"

    def test_str_representation(self):
        """String form carries code and message."""
        exc = Expired("Deadline passed")
        assert str(exc) == "[IL_EXPIRED] - Deadline passed"

    def test_repr(self):
        exc = AlreadyVoted("dup")
        assert repr(exc) == "AlreadyVoted(message='dup', error_code='IL_ALREADY_VOTED')"

    def test_to_dict(self):
        """Serializes every field."""
        exc = AlreadyVoted("bob already attested", claim_id=7)
        data = exc.to_dict()

        assert data["error_type"] == "AlreadyVoted"
        assert data["error_code"] == "IL_ALREADY_VOTED"
        assert data["category"] == "state_conflict"
        assert data["message"] == "bob already attested"
        assert data["context"] == {"claim_id": 7}
        assert "timestamp" in data

    def test_to_json(self):
        """JSON output round-trips through json.loads."""
        exc = NotFoundError("Claim 3 not found", entity_type="claim", entity_id=3)
        data = json.loads(exc.to_json())
        assert data["context"] == {"entity_type": "claim", "entity_id": 3}


# ==============================================================================
# Family Tests
# ==============================================================================

class TestErrorFamilies:
    """Tests for the four error families."""

    @pytest.mark.parametrize("cls,code", [
        (NotAuthorized, "IL_NOT_AUTHORIZED"),
        (NotValidator, "IL_NOT_VALIDATOR"),
        (NotFoundError, "IL_NOT_FOUND_ERROR"),
        (InvalidImpactType, "IL_INVALID_IMPACT_TYPE"),
        (InvalidAmount, "IL_INVALID_AMOUNT"),
        (InvalidThreshold, "IL_INVALID_THRESHOLD"),
        (InvalidDeadline, "IL_INVALID_DEADLINE"),
        (AlreadyProcessed, "IL_ALREADY_PROCESSED"),
        (AlreadyVoted, "IL_ALREADY_VOTED"),
        (Expired, "IL_EXPIRED"),
        (NotYetExpired, "IL_NOT_YET_EXPIRED"),
    ])
    def test_error_codes(self, cls, code):
        """Error codes derive from class names."""
        assert cls("x").error_code == code

    @pytest.mark.parametrize("cls,family,category", [
        (NotAuthorized, AuthorizationError, "authorization"),
        (NotValidator, AuthorizationError, "authorization"),
        (InvalidAmount, InvalidInputError, "invalid_input"),
        (InvalidDeadline, InvalidInputError, "invalid_input"),
        (Expired, StateConflictError, "state_conflict"),
        (NotYetExpired, StateConflictError, "state_conflict"),
    ])
    def test_family_membership(self, cls, family, category):
        """Each error belongs to exactly one family."""
        exc = cls("x")
        assert isinstance(exc, family)
        assert isinstance(exc, ImpactLedgerException)
        assert exc.category == category

    def test_authorization_context(self):
        """Actor and required role land in the context."""
        exc = NotAuthorized("admin only", actor="mallory", required_role="admin")
        assert exc.context == {"actor": "mallory", "required_role": "admin"}

    def test_invalid_input_context(self):
        exc = InvalidAmount("negative", field="amount", value=-1)
        assert exc.context == {"field": "amount", "value": -1}

    def test_context_merges_with_family_fields(self):
        exc = Expired("late", context={"deadline": 10}, claim_id=4)
        assert exc.context == {"deadline": 10, "claim_id": 4}


# ==============================================================================
# Utility Tests
# ==============================================================================

class TestExceptionUtilities:
    """Tests for exception utility functions."""

    def test_only_not_yet_expired_is_retriable(self):
        """Waiting for the deadline is the only retriable failure."""
        assert is_retriable(NotYetExpired("wait"))
        assert not is_retriable(Expired("late"))
        assert not is_retriable(AlreadyVoted("dup"))
        assert not is_retriable(ValueError("other"))

    def test_format_exception_chain(self):
        """Chain lists the outer error first, then its cause."""
        try:
            try:
                raise ValueError("bad input")
            except ValueError as inner:
                raise InvalidAmount("Amount rejected", field="amount") from inner
        except InvalidAmount as exc:
            formatted = format_exception_chain(exc)

        lines = formatted.splitlines()
        assert lines[0] == "[IL_INVALID_AMOUNT] - Amount rejected"
        assert "Context:" in lines[1]
        assert lines[2] == "ValueError: bad input"
