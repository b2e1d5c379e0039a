"""
Verifier Node and Consensus Test Suite

Independent nodes verify the same bundle; their reports are combined by
strict majority.
"""

import unittest

from stateproof import (
    ExportableStateBundle,
    Verdict,
    VerifierConfig,
    VerifierNode,
    VerifierReport,
    aggregate_verifier_reports,
    create_state_bundle,
    is_consensus_reached,
    run_verification,
)

from helpers import (
    event_hashes,
    make_ledger_snapshot,
    make_registrum_snapshot,
    make_report,
    tampered,
)


class TestVerifierNode(unittest.TestCase):

    def setUp(self):
        self.bundle = create_state_bundle(
            make_ledger_snapshot(), make_registrum_snapshot(), event_hashes(2)
        )
        self.config = VerifierConfig(verifier_id="verifier-a")

    def test_valid_bundle_passes(self):
        report = run_verification(self.bundle, self.config)
        self.assertEqual(report.verdict, Verdict.PASS)
        self.assertEqual(report.verifier_id, "verifier-a")
        self.assertEqual(report.bundle_hash, self.bundle.bundle_hash)
        self.assertEqual([c.subsystem for c in report.subsystem_checks],
                         ["ledger", "registrum", "global"])
        self.assertTrue(all(c.matches for c in report.subsystem_checks))

    def test_report_ids_unique(self):
        first = run_verification(self.bundle, self.config)
        second = run_verification(self.bundle, self.config)
        self.assertNotEqual(first.report_id, second.report_id)
        self.assertEqual(first.verdict, second.verdict)

    def test_tampered_ledger_fails(self):
        def mutate(b):
            b["ledgerSnapshot"]["entries"][1]["money"]["amount"] = "1.00"
        bundle = ExportableStateBundle.from_dict(tampered(self.bundle.to_dict(), mutate))

        report = run_verification(bundle, self.config)
        self.assertEqual(report.verdict, Verdict.FAIL)
        checks = {c.subsystem: c.matches for c in report.subsystem_checks}
        self.assertEqual(checks, {"ledger": False, "registrum": True, "global": False})
        self.assertTrue(any("Ledger hash mismatch: bundle claims" in d for d in report.discrepancies))

    def test_strict_mode_requires_chain_hashes(self):
        strict = VerifierConfig(verifier_id="verifier-s", strict_mode=True)
        report = run_verification(self.bundle, strict)
        self.assertEqual(report.verdict, Verdict.FAIL)
        self.assertTrue(report.discrepancies[0].startswith("Strict mode"))

    def test_chain_hashes_recorded(self):
        chains = {"solana:mainnet": "b" * 64, "eip155:1": "a" * 64}
        bundle = create_state_bundle(make_ledger_snapshot(), make_registrum_snapshot(),
                                     event_hashes(1), chains)
        strict = VerifierConfig(verifier_id="verifier-s", strict_mode=True)

        report = run_verification(bundle, strict)
        self.assertEqual(report.verdict, Verdict.PASS)
        chain_checks = [c for c in report.subsystem_checks if c.subsystem.startswith("chain:")]
        self.assertEqual([c.subsystem for c in chain_checks], ["chain:eip155:1", "chain:solana:mainnet"])
        self.assertTrue(all(c.matches for c in chain_checks))

    def test_node_keeps_history(self):
        node = VerifierNode(self.config)
        self.assertEqual(node.verifier_id, "verifier-a")
        self.assertEqual(node.reports, ())

        first = node.verify(self.bundle)
        second = node.verify(self.bundle)
        self.assertEqual(node.reports, (first, second))

    def test_report_wire_round_trip(self):
        report = run_verification(self.bundle, self.config)
        wire = report.to_dict()
        self.assertEqual(wire["verdict"], "PASS")
        self.assertEqual(VerifierReport.from_dict(wire), report)


class TestConsensus(unittest.TestCase):

    def test_unanimous_pass(self):
        reports = [make_report(v, "PASS") for v in ("a", "b", "c")]
        result = aggregate_verifier_reports(reports)
        self.assertEqual(result.verdict, Verdict.PASS)
        self.assertEqual(result.dissenters, ())
        self.assertEqual(result.agreement_ratio, 1.0)
        self.assertTrue(result.quorum_reached)

    def test_majority_pass(self):
        reports = [make_report("a", "PASS"), make_report("b", "FAIL"), make_report("c", "PASS")]
        result = aggregate_verifier_reports(reports)
        self.assertEqual(result.verdict, Verdict.PASS)
        self.assertEqual(result.pass_count, 2)
        self.assertEqual(result.fail_count, 1)
        self.assertEqual(result.dissenters, ("b",))
        self.assertAlmostEqual(result.agreement_ratio, 2 / 3)

    def test_tie_is_fail(self):
        reports = [make_report("a", "PASS"), make_report("b", "FAIL")]
        result = aggregate_verifier_reports(reports, minimum_verifiers=1)
        self.assertEqual(result.verdict, Verdict.FAIL)
        self.assertEqual(result.dissenters, ("a",))
        self.assertEqual(result.agreement_ratio, 0.5)

    def test_dissenters_keep_input_order(self):
        reports = [make_report(v, "PASS") for v in ("z", "m", "a")]
        reports += [make_report(v, "FAIL") for v in ("q", "r", "s", "t")]
        result = aggregate_verifier_reports(reports)
        self.assertEqual(result.verdict, Verdict.FAIL)
        self.assertEqual(result.dissenters, ("z", "m", "a"))

    def test_no_reports(self):
        result = aggregate_verifier_reports([])
        self.assertEqual(result.verdict, Verdict.FAIL)
        self.assertFalse(result.quorum_reached)
        self.assertEqual(result.agreement_ratio, 0)
        self.assertEqual(result.total_verifiers, 0)
        self.assertEqual(result.dissenters, ())

    def test_quorum_independent_of_verdict(self):
        reports = [make_report("a", "FAIL"), make_report("b", "FAIL")]
        self.assertTrue(is_consensus_reached(reports, 2))
        self.assertFalse(is_consensus_reached(reports, 3))

        result = aggregate_verifier_reports([make_report("a", "PASS")], minimum_verifiers=3)
        self.assertEqual(result.verdict, Verdict.PASS)
        self.assertFalse(result.quorum_reached)

    def test_result_wire_form(self):
        wire = aggregate_verifier_reports([make_report("a", "PASS")]).to_dict()
        self.assertEqual(set(wire), {
            "verdict", "totalVerifiers", "passCount", "failCount",
            "agreementRatio", "quorumReached", "dissenters", "consensusAt",
        })

    def test_nodes_to_consensus(self):
        bundle = create_state_bundle(make_ledger_snapshot(), make_registrum_snapshot(), event_hashes(2))
        nodes = [VerifierNode(VerifierConfig(verifier_id=v)) for v in ("a", "b", "c")]
        result = aggregate_verifier_reports([n.verify(bundle) for n in nodes], minimum_verifiers=3)
        self.assertEqual(result.verdict, Verdict.PASS)
        self.assertTrue(result.quorum_reached)


if __name__ == "__main__":
    unittest.main()
