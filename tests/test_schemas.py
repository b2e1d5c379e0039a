"""
Wire Schema Test Suite

Malformed documents raise BundleFormatError before reaching the core.
"""

import unittest

from stateproof import BundleFormatError, MerkleTree, Verdict, create_state_bundle
from stateproof.schemas import (
    parse_chain_events,
    parse_chain_hashes,
    parse_invariant_events,
    parse_leaf_hashes,
    parse_ledger_snapshot,
    parse_merkle_proof,
    parse_state_bundle,
    parse_verifier_report,
)

from helpers import (
    chain_events,
    event_hashes,
    make_ledger_snapshot,
    make_registrum_snapshot,
    make_report,
    tampered,
)


class TestBundleSchema(unittest.TestCase):

    def setUp(self):
        self.wire = create_state_bundle(
            make_ledger_snapshot(), make_registrum_snapshot(), event_hashes(2)
        ).to_dict()

    def test_valid_bundle(self):
        bundle = parse_state_bundle(self.wire)
        self.assertEqual(bundle.bundle_hash, self.wire["bundleHash"])
        self.assertIs(bundle.ledger_snapshot, self.wire["ledgerSnapshot"])

    def test_missing_field(self):
        with self.assertRaises(BundleFormatError):
            parse_state_bundle(tampered(self.wire, lambda b: b.pop("globalStateHash")))

    def test_bad_subsystem_hash(self):
        def mutate(b):
            b["globalStateHash"]["subsystems"]["ledger"] = "not-a-hash"
        with self.assertRaises(BundleFormatError):
            parse_state_bundle(tampered(self.wire, mutate))

    def test_not_an_object(self):
        with self.assertRaises(BundleFormatError):
            parse_state_bundle(["bundle"])

    def test_error_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_state_bundle({})


class TestOtherSchemas(unittest.TestCase):

    def test_report(self):
        wire = make_report("a", "FAIL").to_dict()
        self.assertEqual(parse_verifier_report(wire).verdict, Verdict.FAIL)

        wire["verdict"] = "MAYBE"
        with self.assertRaises(BundleFormatError):
            parse_verifier_report(wire)

    def test_merkle_proof(self):
        wire = MerkleTree.build(event_hashes(3)).get_proof(1).to_dict()
        self.assertEqual(parse_merkle_proof(wire).leaf_index, 1)

        wire["siblings"][0]["direction"] = "up"
        with self.assertRaises(BundleFormatError):
            parse_merkle_proof(wire)

    def test_chain_events(self):
        events = parse_chain_events([e.to_dict() for e in chain_events("c", 2)])
        self.assertEqual([e.sequence_index for e in events], [0, 1])

        with self.assertRaises(BundleFormatError):
            parse_chain_events({"chainId": "c"})
        with self.assertRaises(BundleFormatError):
            parse_chain_events([{"chainId": "c"}])

    def test_string_sequence_index_rejected(self):
        """A numeric string would sort and hash differently from an integer."""
        wire = [e.to_dict() for e in chain_events("c", 3)]
        wire[2]["sequenceIndex"] = "10"
        with self.assertRaises(BundleFormatError):
            parse_chain_events(wire)

        wire = [e.to_dict() for e in chain_events("c", 2)]
        wire[0]["sequenceIndex"] = True
        with self.assertRaises(BundleFormatError):
            parse_chain_events(wire)

    def test_string_integers_rejected_elsewhere(self):
        proof = MerkleTree.build(event_hashes(3)).get_proof(1).to_dict()
        proof["leafIndex"] = "1"
        with self.assertRaises(BundleFormatError):
            parse_merkle_proof(proof)

        bundle = create_state_bundle(
            make_ledger_snapshot(), make_registrum_snapshot(), event_hashes(1)
        ).to_dict()
        bundle["version"] = "1"
        with self.assertRaises(BundleFormatError):
            parse_state_bundle(bundle)

    def test_invariant_events(self):
        wire = [{
            "chainId": "a", "eventId": "o", "eventType": "bridge_out",
            "amount": "5", "symbol": "ETH", "sequenceIndex": 0,
            "timestamp": "2026-01-01T00:00:00Z",
        }]
        self.assertEqual(parse_invariant_events(wire)[0].amount, "5")

        del wire[0]["symbol"]
        with self.assertRaises(BundleFormatError):
            parse_invariant_events(wire)

    def test_leaf_hashes(self):
        self.assertEqual(parse_leaf_hashes(event_hashes(2)), event_hashes(2))
        with self.assertRaises(BundleFormatError):
            parse_leaf_hashes(["ABC"])

    def test_ledger_snapshot_must_be_object(self):
        snapshot = make_ledger_snapshot()
        self.assertIs(parse_ledger_snapshot(snapshot), snapshot)
        with self.assertRaises(BundleFormatError):
            parse_ledger_snapshot([1, 2])

    def test_chain_hashes(self):
        self.assertEqual(parse_chain_hashes({"a": "f" * 64}), {"a": "f" * 64})
        with self.assertRaises(BundleFormatError):
            parse_chain_hashes(["f" * 64])
        with self.assertRaises(BundleFormatError):
            parse_chain_hashes({"a": 1})


if __name__ == "__main__":
    unittest.main()
