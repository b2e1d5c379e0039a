#!/usr/bin/env python3
"""
StateProof Example - Operator Export to Verifier Consensus

This example walks through the full verification flow:
1. The operator snapshots its ledger and registrar and exports a bundle
2. Three independent verifier nodes check the bundle
3. Their reports are combined by strict majority
4. A tampered copy of the bundle is caught

Run with: python examples/verification_walkthrough.py
"""

import copy
import json
from typing import Any, Dict, List

from stateproof import (
    ChainEvent,
    ExportableStateBundle,
    MerkleTree,
    VerifierConfig,
    VerifierNode,
    aggregate_verifier_reports,
    audit_multi_chain_replay,
    create_state_bundle,
    sha256_hex,
    verify_bundle_integrity,
)
from stateproof.logging_config import configure_logging, set_run_id


def simulate_ledger_snapshot() -> Dict[str, Any]:
    """
    Simulate a double-entry ledger export.

    In production this comes from the ledger subsystem's snapshot().
    """
    return {
        "version": 1,
        "accounts": [
            {"id": "cash", "type": "asset"},
            {"id": "revenue", "type": "income"},
        ],
        "entries": [
            {"id": "e1", "accountId": "cash", "type": "debit",
             "money": {"amount": "100.00", "currency": "USD"}, "correlationId": "tx-1"},
            {"id": "e2", "accountId": "revenue", "type": "credit",
             "money": {"amount": "100.00", "currency": "USD"}, "correlationId": "tx-1"},
        ],
        "createdAt": "2026-01-15T10:00:00.000Z",
    }


def simulate_registrum_snapshot() -> Dict[str, Any]:
    """Simulate the governance registrar export."""
    return {
        "version": 1,
        "states": [{"id": "treasury-policy", "structure": {"isRoot": True}, "data": {"quorum": 2}}],
    }


def simulate_chain_events() -> List[ChainEvent]:
    """Simulate events seen by two chain observers."""
    events = []
    for chain_id in ("eip155:1", "solana:mainnet"):
        for i in range(3):
            events.append(ChainEvent(
                chain_id=chain_id,
                event_hash=sha256_hex(f"{chain_id}:{i}"),
                sequence_index=i,
                timestamp=f"2026-01-15T09:00:0{i}.000Z",
                data={"amount": str(10 * (i + 1))},
            ))
    return events


def main():
    configure_logging("WARNING", json_format=False)
    set_run_id()

    print("=" * 60)
    print("StateProof Verification Walkthrough")
    print("=" * 60)

    # Step 1: operator export
    chain_audit = audit_multi_chain_replay(simulate_chain_events())
    event_hashes = [sha256_hex(f"event-{i}") for i in range(4)]
    bundle = create_state_bundle(
        simulate_ledger_snapshot(),
        simulate_registrum_snapshot(),
        event_hashes,
        chain_audit.chain_hashes(),
    )
    print(f"\nBundle hash:      {bundle.bundle_hash}")
    print(f"GlobalStateHash:  {bundle.global_state_hash.hash}")
    print(f"Event root:       {MerkleTree.build(event_hashes).root}")

    # Step 2: independent verifiers, each from its own decoded copy
    wire = json.loads(json.dumps(bundle.to_dict()))
    nodes = [
        VerifierNode(VerifierConfig(verifier_id=f"verifier-{name}", strict_mode=True))
        for name in ("a", "b", "c")
    ]
    reports = [node.verify(ExportableStateBundle.from_dict(copy.deepcopy(wire))) for node in nodes]
    for report in reports:
        print(f"  {report.verifier_id}: {report.verdict.value}")

    # Step 3: consensus
    consensus = aggregate_verifier_reports(reports, minimum_verifiers=3)
    print(f"\nConsensus: {consensus.verdict.value} "
          f"({consensus.pass_count}/{consensus.total_verifiers}, quorum={consensus.quorum_reached})")

    # Step 4: tampering
    print("\n" + "-" * 60)
    print("Tampered export: $100 debit rewritten to $200")
    print("-" * 60)
    forged = copy.deepcopy(wire)
    forged["ledgerSnapshot"]["entries"][0]["money"]["amount"] = "200.00"
    result = verify_bundle_integrity(ExportableStateBundle.from_dict(forged))
    print(f"Verdict: {result.verdict.value}")
    for discrepancy in result.discrepancies:
        print(f"  - {discrepancy}")

    print("\n" + "=" * 60)
    print("Walkthrough complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
