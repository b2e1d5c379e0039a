"""
Cross-Chain Invariant Test Suite
"""

import unittest

from stateproof import InvariantEvent, Verdict, audit_cross_chain_invariants
from stateproof.invariants import (
    check_asset_conservation,
    check_event_ordering,
    check_governance_consistency,
    check_no_duplicate_settlement,
)

from helpers import invariant_event


class TestAssetConservation(unittest.TestCase):

    def test_balanced_bridge(self):
        events = [
            invariant_event("eip155:1", "out-1", "bridge_out", "1000"),
            invariant_event("eip155:10", "in-1", "bridge_in", "600"),
            invariant_event("eip155:10", "in-2", "bridge_in", "400"),
            invariant_event("eip155:1", "t-1", "transfer", "5"),
        ]
        self.assertTrue(check_asset_conservation(events).holds)

    def test_imbalance_reported_per_symbol(self):
        events = [
            invariant_event("a", "o", "bridge_out", "1000"),
            invariant_event("b", "i", "bridge_in", "900"),
            invariant_event("a", "s-o", "bridge_out", "5", symbol="SOL"),
            invariant_event("b", "s-i", "bridge_in", "5", symbol="SOL"),
        ]
        result = check_asset_conservation(events)
        self.assertEqual(result.violations, (
            "Asset conservation violation for ETH: outflows=1000, inflows=900, delta=100",
        ))

    def test_amounts_beyond_float_precision(self):
        big = str(10 ** 30 + 1)
        events = [
            invariant_event("a", "o", "bridge_out", big),
            invariant_event("b", "i", "bridge_in", str(10 ** 30)),
        ]
        self.assertFalse(check_asset_conservation(events).holds)

    def test_invalid_amount(self):
        events = [invariant_event("a", "o", "bridge_out", "1.5")]
        result = check_asset_conservation(events)
        self.assertEqual(result.violations, ('Invalid amount "1.5" for event o',))


class TestSettlement(unittest.TestCase):

    def test_single_settlement(self):
        events = [invariant_event("a", "s1", "settlement", linked_event_id="tx-1")]
        self.assertTrue(check_no_duplicate_settlement(events).holds)

    def test_duplicate_settlement(self):
        events = [
            invariant_event("a", "s1", "settlement", linked_event_id="tx-1"),
            invariant_event("b", "s2", "settlement", linked_event_id="tx-1"),
        ]
        result = check_no_duplicate_settlement(events)
        self.assertEqual(result.violations,
                         ("Duplicate settlement: event tx-1 settled by both s1 and s2",))

    def test_settlement_without_link(self):
        result = check_no_duplicate_settlement([invariant_event("a", "s1", "settlement")])
        self.assertEqual(result.violations, ("Settlement event s1 has no linkedEventId",))


class TestOrdering(unittest.TestCase):

    def test_ordered_chain(self):
        events = [
            invariant_event("a", "e2", "transfer", sequence_index=2, timestamp="2026-01-01T00:00:02Z"),
            invariant_event("a", "e1", "transfer", sequence_index=1, timestamp="2026-01-01T00:00:01Z"),
            invariant_event("b", "f1", "transfer", sequence_index=1, timestamp="2026-01-01T00:00:00Z"),
        ]
        self.assertTrue(check_event_ordering(events).holds)

    def test_duplicate_sequence_index(self):
        events = [
            invariant_event("a", "e1", "transfer", sequence_index=1),
            invariant_event("a", "e2", "transfer", sequence_index=1),
        ]
        result = check_event_ordering(events)
        self.assertEqual(len(result.violations), 1)
        self.assertIn("non-increasing sequence", result.violations[0])

    def test_timestamp_regression(self):
        events = [
            invariant_event("a", "e1", "transfer", sequence_index=1, timestamp="2026-01-01T00:00:05Z"),
            invariant_event("a", "e2", "transfer", sequence_index=2, timestamp="2026-01-01T00:00:01Z"),
        ]
        result = check_event_ordering(events)
        self.assertIn("timestamp regression", result.violations[0])


class TestGovernance(unittest.TestCase):

    def test_no_governance_events(self):
        self.assertTrue(check_governance_consistency([invariant_event("a", "e", "transfer")]).holds)

    def test_duplicate_signer(self):
        events = [
            invariant_event("a", "signer_added:rAlice", "governance_signer_added", sequence_index=1),
            invariant_event("a", "signer_added:rAlice", "governance_signer_added", sequence_index=2),
        ]
        result = check_governance_consistency(events)
        self.assertEqual(result.violations, ("Duplicate signer addition: rAlice already active",))

    def test_removal_allows_re_adding(self):
        events = [
            invariant_event("a", "signer_added:rBob", "governance_signer_added", sequence_index=1),
            invariant_event("a", "signer_removed:rBob", "governance_signer_removed", sequence_index=2),
            invariant_event("a", "signer_added:rBob", "governance_signer_added", sequence_index=3),
        ]
        self.assertTrue(check_governance_consistency(events).holds)

    def test_version_regression(self):
        events = [
            invariant_event("a", "quorum:2", "governance_quorum_changed", sequence_index=4),
            invariant_event("b", "quorum:3", "governance_quorum_changed", sequence_index=4),
        ]
        result = check_governance_consistency(events)
        self.assertEqual(result.violations, ("Governance version regression: 4 <= 4",))


class TestAudit(unittest.TestCase):

    def test_clean_audit(self):
        result = audit_cross_chain_invariants([])
        self.assertEqual(result.verdict, Verdict.PASS)
        self.assertEqual([c.invariant for c in result.checks], [
            "asset_conservation", "no_duplicate_settlement",
            "event_ordering", "governance_consistency",
        ])

    def test_violations_counted(self):
        events = [
            invariant_event("a", "o", "bridge_out", "10"),
            invariant_event("a", "s1", "settlement", sequence_index=1),
        ]
        result = audit_cross_chain_invariants(events)
        self.assertEqual(result.verdict, Verdict.FAIL)
        self.assertEqual(result.total_violations, 2)
        self.assertEqual(result.to_dict()["totalViolations"], 2)

    def test_event_wire_round_trip(self):
        event = invariant_event("a", "s1", "settlement", linked_event_id="tx-1")
        wire = event.to_dict()
        self.assertNotIn("settlementChainId", wire)
        self.assertEqual(InvariantEvent.from_dict(wire), event)


if __name__ == "__main__":
    unittest.main()
