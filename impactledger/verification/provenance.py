# -*- coding: utf-8 -*-
"""
Verification Provenance Tracker

SHA-256 chained audit log of every committed state change in the
verification engine: type registrations, validator grants, claim
submissions, attestations, finalizations and credential issuance.

Each entry links to its predecessor through ``previous_hash``; altering
any stored entry breaks every chain hash after it.

Example:
    >>> from impactledger.verification.provenance import ProvenanceTracker
    >>> tracker = ProvenanceTracker()
    >>> entry_id = tracker.record(
    ...     entity_type="claim",
    ...     entity_id="1",
    ...     action="submit",
    ...     data_hash="abc123...",
    ...     actor="alice",
    ...     logical_time=5,
    ... )
    >>> assert tracker.verify_chain()

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


# ---------------------------------------------------------------------------
# ProvenanceEntry model
# ---------------------------------------------------------------------------


class ProvenanceEntry(BaseModel):
    """A single entry in the provenance chain."""

    entry_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique provenance entry ID",
    )
    sequence: int = Field(..., ge=0, description="Position in the chain")
    entity_type: str = Field(
        ..., description="claim, attestation, credential, ...",
    )
    entity_id: str = Field(..., description="ID of the affected entity")
    action: str = Field(..., description="submit, attest, verify, reject, ...")
    data_hash: str = Field(
        ..., description="SHA-256 of the entity after the change",
    )
    actor: str = Field(default="system", description="Identity that acted")
    logical_time: int = Field(default=0, description="Clock tick of the change")
    recorded_at: datetime = Field(
        default_factory=_utcnow, description="Wall-clock recording time",
    )
    previous_hash: str = Field(..., description="Chain hash of the predecessor")
    chain_hash: str = Field(default="", description="Chain hash of this entry")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


# ---------------------------------------------------------------------------
# ProvenanceTracker
# ---------------------------------------------------------------------------


class ProvenanceTracker:
    """Append-only chain-hashed log of verification state changes.

    Attributes:
        _entries: Ordered list of provenance entries.
        _last_chain_hash: Most recent chain hash for linking.
        _entity_index: Maps "<entity_type>:<entity_id>" to entry indices.

    Example:
        >>> tracker = ProvenanceTracker()
        >>> tracker.record("credential", "1", "mint", "hash123")
        >>> assert len(tracker.get_chain("credential", "1")) == 1
    """

    _GENESIS_HASH = hashlib.sha256(b"impactledger-verification-genesis").hexdigest()

    def __init__(self) -> None:
        """Initialize ProvenanceTracker."""
        self._entries: List[ProvenanceEntry] = []
        self._last_chain_hash: str = self._GENESIS_HASH
        self._entity_index: Dict[str, List[int]] = {}
        logger.info("ProvenanceTracker initialized")

    def record(
        self,
        entity_type: str,
        entity_id: Any,
        action: str,
        data_hash: str,
        actor: str = "system",
        logical_time: int = 0,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Append an entry for a committed change.

        Args:
            entity_type: Kind of entity changed.
            entity_id: Its identifier (stringified).
            action: What happened.
            data_hash: SHA-256 of the entity after the change.
            actor: Identity that performed the action.
            logical_time: Clock tick of the change.
            metadata: Optional additional metadata.

        Returns:
            The entry_id of the new provenance entry.
        """
        entry = ProvenanceEntry(
            sequence=len(self._entries),
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            data_hash=data_hash,
            actor=actor,
            logical_time=logical_time,
            previous_hash=self._last_chain_hash,
            metadata=metadata or {},
        )
        entry.chain_hash = self._chain_hash_for(entry)

        self._entity_index.setdefault(
            self._key(entity_type, entry.entity_id), [],
        ).append(len(self._entries))
        self._entries.append(entry)
        self._last_chain_hash = entry.chain_hash

        logger.debug(
            "Recorded provenance #%d: %s %s %s by %s",
            entry.sequence, entity_type, action, entry.entity_id, actor,
        )
        return entry.entry_id

    def get_chain(self, entity_type: str, entity_id: Any) -> List[ProvenanceEntry]:
        """Return every entry for one entity, oldest first."""
        indices = self._entity_index.get(self._key(entity_type, str(entity_id)), [])
        return [self._entries[i] for i in indices]

    def verify_chain(self) -> bool:
        """Replay the whole chain from genesis.

        Returns:
            True if every entry links to its predecessor and its stored
            chain hash matches its content.
        """
        previous = self._GENESIS_HASH
        for entry in self._entries:
            if entry.previous_hash != previous:
                logger.warning(
                    "Provenance link broken at entry #%d", entry.sequence,
                )
                return False
            if entry.chain_hash != self._chain_hash_for(entry):
                logger.warning(
                    "Provenance hash mismatch at entry #%d", entry.sequence,
                )
                return False
            previous = entry.chain_hash
        return True

    def get_all_entries(self, limit: int = 100) -> List[ProvenanceEntry]:
        """Return up to ``limit`` entries, newest first."""
        return list(reversed(self._entries))[:limit]

    def export_json(self) -> str:
        """Export all provenance records as a JSON string."""
        records = [entry.model_dump(mode="json") for entry in self._entries]
        return json.dumps(records, indent=2, default=str)

    @property
    def entry_count(self) -> int:
        """Return the number of provenance entries."""
        return len(self._entries)

    @property
    def head(self) -> str:
        """Chain hash of the most recent entry (genesis hash when empty)."""
        return self._last_chain_hash

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _key(entity_type: str, entity_id: str) -> str:
        return f"{entity_type}:{entity_id}"

    @staticmethod
    def _chain_hash_for(entry: ProvenanceEntry) -> str:
        """Hash the entry's content and link it to ``previous_hash``."""
        content = {
            "sequence": entry.sequence,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "action": entry.action,
            "data_hash": entry.data_hash,
            "actor": entry.actor,
            "logical_time": entry.logical_time,
            "recorded_at": entry.recorded_at.isoformat(),
            "previous_hash": entry.previous_hash,
            "metadata": entry.metadata,
        }
        serialized = json.dumps(content, sort_keys=True, default=str)
        entry_hash = hashlib.sha256(serialized.encode()).hexdigest()
        combined = f"{entry.previous_hash}:{entry_hash}"
        return hashlib.sha256(combined.encode()).hexdigest()


__all__ = [
    "ProvenanceEntry",
    "ProvenanceTracker",
]
