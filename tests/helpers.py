"""
Shared builders for the StateProof test suite.

Snapshots mirror what the ledger and registrar subsystems export: a ledger
with one balanced $100 transfer and a registrar with one registered state.
"""

import copy

from stateproof import ChainEvent, InvariantEvent, Verdict, VerifierReport, sha256_hex


def make_ledger_snapshot(amount="100.00", created_at="2026-01-15T10:00:00.000Z"):
    return {
        "version": 1,
        "accounts": [
            {"id": "cash", "type": "asset", "name": "Operating Cash"},
            {"id": "revenue", "type": "income", "name": "Service Revenue"},
        ],
        "entries": [
            {
                "id": "entry-1",
                "accountId": "cash",
                "type": "debit",
                "money": {"amount": amount, "currency": "USD", "decimals": 2},
                "correlationId": "tx-1",
                "timestamp": "2026-01-15T09:00:00.000Z",
            },
            {
                "id": "entry-2",
                "accountId": "revenue",
                "type": "credit",
                "money": {"amount": "100.00", "currency": "USD", "decimals": 2},
                "correlationId": "tx-1",
                "timestamp": "2026-01-15T09:00:00.000Z",
            },
        ],
        "createdAt": created_at,
    }


def make_registrum_snapshot(state_id="state-1"):
    return {
        "version": 1,
        "states": [
            {
                "id": state_id,
                "structure": {"isRoot": True},
                "data": {"label": "treasury-policy", "quorum": 2},
            }
        ],
        "orderIndex": 1,
    }


def event_hashes(count=3):
    return [sha256_hex(f"event-{i}") for i in range(count)]


def chain_event(chain_id, index, data=None, timestamp=None):
    return ChainEvent(
        chain_id=chain_id,
        event_hash=sha256_hex(f"{chain_id}:{index}"),
        sequence_index=index,
        timestamp=timestamp or f"2026-01-15T10:00:{index:02d}.000Z",
        data=data if data is not None else {"amount": str(100 + index)},
    )


def chain_events(chain_id, count):
    return [chain_event(chain_id, i) for i in range(count)]


def invariant_event(chain_id, event_id, event_type, amount="0", symbol="ETH",
                    sequence_index=0, timestamp="2026-01-15T10:00:00.000Z", **kwargs):
    return InvariantEvent(
        chain_id=chain_id,
        event_id=event_id,
        event_type=event_type,
        amount=amount,
        symbol=symbol,
        sequence_index=sequence_index,
        timestamp=timestamp,
        **kwargs
    )


def make_report(verifier_id, verdict, bundle_hash="0" * 64):
    return VerifierReport(
        report_id=sha256_hex(f"report:{verifier_id}"),
        verifier_id=verifier_id,
        verdict=Verdict(verdict),
        bundle_hash=bundle_hash,
    )


def tampered(bundle_dict, mutate):
    """Deep-copy a bundle dict and apply mutate() to the copy."""
    clone = copy.deepcopy(bundle_dict)
    mutate(clone)
    return clone
