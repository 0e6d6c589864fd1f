# -*- coding: utf-8 -*-
"""Tests for the SHA-256 chained ProvenanceTracker."""

import json

from impactledger.verification.provenance import ProvenanceTracker


class TestProvenanceTracker:
    """Append-only chain-hashed audit log."""

    def test_empty_tracker(self):
        tracker = ProvenanceTracker()
        assert tracker.entry_count == 0
        assert tracker.head == ProvenanceTracker._GENESIS_HASH
        assert tracker.verify_chain()

    def test_record_links_entries(self):
        """Each entry points at its predecessor's chain hash."""
        tracker = ProvenanceTracker()
        tracker.record("claim", 1, "submit", "a" * 64, actor="alice", logical_time=3)
        tracker.record("claim", 1, "verified", "b" * 64, logical_time=5)

        first, second = tracker.get_chain("claim", 1)
        assert first.previous_hash == ProvenanceTracker._GENESIS_HASH
        assert second.previous_hash == first.chain_hash
        assert tracker.head == second.chain_hash
        assert first.sequence == 0 and second.sequence == 1
        assert first.actor == "alice"
        assert second.actor == "system"
        assert tracker.verify_chain()

    def test_chain_is_per_entity(self):
        tracker = ProvenanceTracker()
        tracker.record("claim", 1, "submit", "h1")
        tracker.record("credential", 1, "mint", "h2")
        tracker.record("claim", "1", "verified", "h3")

        assert [e.action for e in tracker.get_chain("claim", 1)] == ["submit", "verified"]
        assert [e.action for e in tracker.get_chain("credential", "1")] == ["mint"]
        assert tracker.get_chain("claim", 2) == []

    def test_tampering_detected(self):
        """Editing a recorded entry breaks verification."""
        tracker = ProvenanceTracker()
        tracker.record("claim", 1, "submit", "h1")
        tracker.record("claim", 1, "verified", "h2")

        tracker.get_chain("claim", 1)[0].data_hash = "forged"
        assert not tracker.verify_chain()

    def test_metadata_tampering_detected(self):
        """Metadata is covered by the chain hash."""
        tracker = ProvenanceTracker()
        tracker.record("claim", 1, "verified", "h1", metadata={"normalized_impact": 1500})

        tracker.get_chain("claim", 1)[0].metadata["normalized_impact"] = 9999
        assert not tracker.verify_chain()

    def test_get_all_entries_newest_first(self):
        tracker = ProvenanceTracker()
        for i in range(5):
            tracker.record("project", i, "register", f"h{i}")

        entries = tracker.get_all_entries(limit=2)
        assert [e.entity_id for e in entries] == ["4", "3"]

    def test_export_json(self):
        tracker = ProvenanceTracker()
        entry_id = tracker.record("impact_type", "co2", "register", "h", metadata={"k": 1})

        records = json.loads(tracker.export_json())
        assert len(records) == 1
        assert records[0]["entry_id"] == entry_id
        assert records[0]["metadata"] == {"k": 1}
