#!/usr/bin/env python3
"""
StateProof Command Line Interface

Usage:
    stateproof hash --file <file>
    stateproof global-hash --ledger <file> --registrum <file> [--chains <file>]
    stateproof bundle create --ledger <file> --registrum <file> --events <file> [--chains <file>]
    stateproof bundle verify --bundle <file>
    stateproof node verify --bundle <file> [--verifier-id <id>] [--strict]
    stateproof merkle root --leaves <file>
    stateproof merkle proof --leaves <file> --index <n>
    stateproof merkle verify --proof <file>
    stateproof chains audit --events <file> [--expected <hash>]
    stateproof chains invariants --events <file>
    stateproof consensus --reports <file> [<file> ...] [--minimum <n>]

Exit codes: 0 on PASS or valid, 1 on FAIL or invalid, 2 on usage or input
format errors. JSON results go to stdout (or --output); status lines and
logs go to stderr.
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from . import config
from .bundle import create_state_bundle, verify_bundle_integrity
from .consensus import aggregate_verifier_reports
from .exceptions import StateProofError
from .global_state import compute_global_state_hash
from .hashing import canonical_hash
from .invariants import audit_cross_chain_invariants
from .logging_config import configure_logging, set_run_id
from .merkle import MerkleTree
from .multichain import audit_multi_chain_replay
from .schemas import (
    parse_chain_events,
    parse_chain_hashes,
    parse_invariant_events,
    parse_leaf_hashes,
    parse_ledger_snapshot,
    parse_merkle_proof,
    parse_state_bundle,
    parse_verifier_report,
)
from .verdict import Verdict
from .verifier_node import VerifierConfig, run_verification

logger = logging.getLogger(__name__)

EXIT_PASS = 0
EXIT_FAIL = 1
EXIT_ERROR = 2


def load_json(path: str) -> Any:
    """Load JSON from file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_json(data: Any, path: str):
    """Save JSON to file."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)


def emit(data: Any, output: Optional[str] = None):
    if output:
        save_json(data, output)
        print(f"Saved to: {output}", file=sys.stderr)
    else:
        print(json.dumps(data, indent=2))


def _status(verdict: Verdict, discrepancies=()) -> int:
    if verdict == Verdict.PASS:
        print("\n✓ PASS", file=sys.stderr)
        return EXIT_PASS
    print("\n✗ FAIL", file=sys.stderr)
    for d in discrepancies:
        print(f"  - {d}", file=sys.stderr)
    return EXIT_FAIL


def _load_chains(path: Optional[str]):
    if not path:
        return None
    return parse_chain_hashes(load_json(path))


def cmd_hash(args) -> int:
    """Canonical SHA-256 of a JSON document."""
    print(canonical_hash(load_json(args.file)))
    return EXIT_PASS


def cmd_global_hash(args) -> int:
    result = compute_global_state_hash(
        parse_ledger_snapshot(load_json(args.ledger)),
        load_json(args.registrum),
        _load_chains(args.chains),
    )
    emit(result.to_dict(), args.output)
    return EXIT_PASS


def cmd_bundle_create(args) -> int:
    bundle = create_state_bundle(
        parse_ledger_snapshot(load_json(args.ledger)),
        load_json(args.registrum),
        parse_leaf_hashes(load_json(args.events)),
        _load_chains(args.chains),
    )
    emit(bundle.to_dict(), args.output)
    print(f"Bundle hash: {bundle.bundle_hash}", file=sys.stderr)
    return EXIT_PASS


def cmd_bundle_verify(args) -> int:
    bundle = parse_state_bundle(load_json(args.bundle))
    result = verify_bundle_integrity(bundle)
    emit(result.to_dict(), args.output)
    return _status(result.verdict, result.discrepancies)


def cmd_node_verify(args) -> int:
    bundle = parse_state_bundle(load_json(args.bundle))
    defaults = config.default_verifier_config()
    node_config = VerifierConfig(
        verifier_id=args.verifier_id or defaults.verifier_id,
        label=defaults.label,
        strict_mode=args.strict or defaults.strict_mode,
    )
    report = run_verification(bundle, node_config)
    emit(report.to_dict(), args.output)
    return _status(report.verdict, report.discrepancies)


def cmd_merkle_root(args) -> int:
    tree = MerkleTree.build(parse_leaf_hashes(load_json(args.leaves)))
    if tree.root is None:
        print("✗ Empty leaf set has no root", file=sys.stderr)
        return EXIT_FAIL
    print(tree.root)
    return EXIT_PASS


def cmd_merkle_proof(args) -> int:
    tree = MerkleTree.build(parse_leaf_hashes(load_json(args.leaves)))
    proof = tree.get_proof(args.index)
    if proof is None:
        print(f"✗ No proof for index {args.index} ({tree.leaf_count} leaves)", file=sys.stderr)
        return EXIT_FAIL
    emit(proof.to_dict(), args.output)
    return EXIT_PASS


def cmd_merkle_verify(args) -> int:
    proof = parse_merkle_proof(load_json(args.proof))
    if MerkleTree.verify_proof(proof):
        print("✓ VALID")
        return EXIT_PASS
    print("✗ INVALID")
    return EXIT_FAIL


def cmd_chains_audit(args) -> int:
    events = parse_chain_events(load_json(args.events))
    result = audit_multi_chain_replay(
        events,
        expected_combined_hash=args.expected,
        expected_chain_hashes=_load_chains(args.expected_chains),
    )
    emit(result.to_dict(), args.output)
    return _status(result.verdict, result.discrepancies)


def cmd_chains_invariants(args) -> int:
    events = parse_invariant_events(load_json(args.events))
    result = audit_cross_chain_invariants(events)
    emit(result.to_dict(), args.output)
    violations = [v for check in result.checks for v in check.violations]
    return _status(result.verdict, violations)


def cmd_consensus(args) -> int:
    reports = [parse_verifier_report(load_json(path)) for path in args.reports]
    minimum = args.minimum if args.minimum is not None else config.MIN_VERIFIERS
    result = aggregate_verifier_reports(reports, minimum)
    emit(result.to_dict(), args.output)
    if not result.quorum_reached:
        print(f"\n✗ Quorum not reached ({result.total_verifiers}/{minimum})", file=sys.stderr)
        return EXIT_FAIL
    return _status(result.verdict, [f"dissenter: {d}" for d in result.dissenters])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stateproof",
        description="StateProof deterministic state verification CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  stateproof hash -f snapshot.json
  stateproof bundle create -l ledger.json -r registrum.json -e events.json -o bundle.json
  stateproof node verify -b bundle.json --verifier-id verifier-a -o report-a.json
  stateproof consensus --reports report-a.json report-b.json report-c.json --minimum 3
        """
    )
    parser.add_argument("--log-level", help="Override STATEPROOF_LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # hash
    hash_parser = subparsers.add_parser("hash", help="Canonical SHA-256 of a JSON file")
    hash_parser.add_argument("-f", "--file", required=True, help="JSON file to hash")
    hash_parser.set_defaults(func=cmd_hash)

    # global-hash
    gh_parser = subparsers.add_parser("global-hash", help="Compute GlobalStateHash")
    gh_parser.add_argument("-l", "--ledger", required=True, help="Ledger snapshot JSON file")
    gh_parser.add_argument("-r", "--registrum", required=True, help="Registrum snapshot JSON file")
    gh_parser.add_argument("-c", "--chains", help="Chain hashes JSON object file")
    gh_parser.add_argument("-o", "--output", help="Output file")
    gh_parser.set_defaults(func=cmd_global_hash)

    # bundle
    bundle_parser = subparsers.add_parser("bundle", help="Create or verify state bundles")
    bundle_sub = bundle_parser.add_subparsers(dest="bundle_command")

    create_parser = bundle_sub.add_parser("create", help="Create a state bundle")
    create_parser.add_argument("-l", "--ledger", required=True, help="Ledger snapshot JSON file")
    create_parser.add_argument("-r", "--registrum", required=True, help="Registrum snapshot JSON file")
    create_parser.add_argument("-e", "--events", required=True, help="JSON array of event hashes")
    create_parser.add_argument("-c", "--chains", help="Chain hashes JSON object file")
    create_parser.add_argument("-o", "--output", help="Output file for the bundle")
    create_parser.set_defaults(func=cmd_bundle_create)

    bverify_parser = bundle_sub.add_parser("verify", help="Verify bundle integrity")
    bverify_parser.add_argument("-b", "--bundle", required=True, help="Bundle JSON file")
    bverify_parser.add_argument("-o", "--output", help="Output file for the result")
    bverify_parser.set_defaults(func=cmd_bundle_verify)

    # node
    node_parser = subparsers.add_parser("node", help="Run an external verifier node")
    node_sub = node_parser.add_subparsers(dest="node_command")

    nverify_parser = node_sub.add_parser("verify", help="Verify a bundle and write a report")
    nverify_parser.add_argument("-b", "--bundle", required=True, help="Bundle JSON file")
    nverify_parser.add_argument("--verifier-id", help="Override STATEPROOF_VERIFIER_ID")
    nverify_parser.add_argument("--strict", action="store_true", help="Require chain hashes")
    nverify_parser.add_argument("-o", "--output", help="Output file for the report")
    nverify_parser.set_defaults(func=cmd_node_verify)

    # merkle
    merkle_parser = subparsers.add_parser("merkle", help="Merkle roots and inclusion proofs")
    merkle_sub = merkle_parser.add_subparsers(dest="merkle_command")

    root_parser = merkle_sub.add_parser("root", help="Print the root of a leaf set")
    root_parser.add_argument("-L", "--leaves", required=True, help="JSON array of leaf hashes")
    root_parser.set_defaults(func=cmd_merkle_root)

    proof_parser = merkle_sub.add_parser("proof", help="Build an inclusion proof")
    proof_parser.add_argument("-L", "--leaves", required=True, help="JSON array of leaf hashes")
    proof_parser.add_argument("-i", "--index", required=True, type=int, help="Leaf index")
    proof_parser.add_argument("-o", "--output", help="Output file for the proof")
    proof_parser.set_defaults(func=cmd_merkle_proof)

    mverify_parser = merkle_sub.add_parser("verify", help="Verify an inclusion proof")
    mverify_parser.add_argument("-p", "--proof", required=True, help="Proof JSON file")
    mverify_parser.set_defaults(func=cmd_merkle_verify)

    # chains
    chains_parser = subparsers.add_parser("chains", help="Multi-chain audits")
    chains_sub = chains_parser.add_subparsers(dest="chains_command")

    audit_parser = chains_sub.add_parser("audit", help="Replay hash chains")
    audit_parser.add_argument("-e", "--events", required=True, help="JSON array of chain events")
    audit_parser.add_argument("--expected", help="Expected combined hash")
    audit_parser.add_argument("--expected-chains", help="Expected chain hashes JSON object file")
    audit_parser.add_argument("-o", "--output", help="Output file for the result")
    audit_parser.set_defaults(func=cmd_chains_audit)

    inv_parser = chains_sub.add_parser("invariants", help="Check cross-chain invariants")
    inv_parser.add_argument("-e", "--events", required=True, help="JSON array of invariant events")
    inv_parser.add_argument("-o", "--output", help="Output file for the result")
    inv_parser.set_defaults(func=cmd_chains_invariants)

    # consensus
    consensus_parser = subparsers.add_parser("consensus", help="Aggregate verifier reports")
    consensus_parser.add_argument("-R", "--reports", nargs="+", required=True,
                                  help="Verifier report JSON files")
    consensus_parser.add_argument("-m", "--minimum", type=int,
                                  help="Minimum verifiers (default STATEPROOF_MIN_VERIFIERS)")
    consensus_parser.add_argument("-o", "--output", help="Output file for the result")
    consensus_parser.set_defaults(func=cmd_consensus)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_ERROR

    level = args.log_level or ("DEBUG" if config.is_debug() else config.LOG_LEVEL)
    # Production output always goes to log aggregation
    configure_logging(level, config.LOG_JSON or config.is_production(), config.LOG_FILE)
    run_id = set_run_id()
    logger.debug("stateproof %s (run %s)", args.command, run_id)

    try:
        return args.func(args)
    except (OSError, json.JSONDecodeError, StateProofError) as e:
        print(f"✗ ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
