"""
StateProof Multi-Chain Replay Auditor

Replays observed events across many chains and computes one hash chain per
chain plus a combined cross-chain hash.

Per chain:
    H(0) = SHA-256("genesis:" + chainId)
    H(n) = SHA-256(H(n-1) + JCS({chainId, eventHash, sequenceIndex, data}))

Combined:
    SHA-256(JCS({chains: [{chainId, hashChain, eventCount}, ...]}))
    with chains sorted by chainId.

Events are ordered by sequenceIndex within each chain, never by arrival
order, and chains are isolated: a corrupted event on one chain cannot move
another chain's hash chain.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .canonicalization import canonicalize_str
from .exceptions import ReplayRangeError
from .hashing import canonical_hash, sha256_hex
from .logging_config import audit_log
from .verdict import Verdict, utc_now_iso

GENESIS_PREFIX = "genesis:"


@dataclass(frozen=True)
class ChainEvent:
    """One observed event, ordered within its chain by sequence_index."""
    chain_id: str
    event_hash: str
    sequence_index: int
    timestamp: str
    data: Mapping[str, Any] = field(default_factory=dict)

    def canonical_content(self) -> str:
        """The part of the event that enters the hash chain."""
        return canonicalize_str({
            "chainId": self.chain_id,
            "eventHash": self.event_hash,
            "sequenceIndex": self.sequence_index,
            "data": self.data,
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "eventHash": self.event_hash,
            "sequenceIndex": self.sequence_index,
            "timestamp": self.timestamp,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ChainEvent':
        return cls(
            chain_id=data["chainId"],
            event_hash=data["eventHash"],
            sequence_index=data["sequenceIndex"],
            timestamp=data.get("timestamp", ""),
            data=data.get("data", {}),
        )


@dataclass(frozen=True)
class ChainReplayResult:
    """Hash chain summary for one chain."""
    chain_id: str
    hash_chain: str
    event_count: int
    first_event_hash: str
    last_event_hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "hashChain": self.hash_chain,
            "eventCount": self.event_count,
            "firstEventHash": self.first_event_hash,
            "lastEventHash": self.last_event_hash,
        }


@dataclass(frozen=True)
class MultiChainAuditResult:
    """Result of a full multi-chain replay audit."""
    verdict: Verdict
    combined_hash: str
    chains: Tuple[ChainReplayResult, ...]
    audited_at: str
    discrepancies: Tuple[str, ...] = ()

    def chain(self, chain_id: str) -> Optional[ChainReplayResult]:
        """Look up one chain's result."""
        for result in self.chains:
            if result.chain_id == chain_id:
                return result
        return None

    def chain_hashes(self) -> Dict[str, str]:
        """chainId -> hashChain, the shape state bundles carry."""
        return {r.chain_id: r.hash_chain for r in self.chains}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "combinedHash": self.combined_hash,
            "chains": [r.to_dict() for r in self.chains],
            "auditedAt": self.audited_at,
            "discrepancies": list(self.discrepancies),
        }


def genesis_hash(chain_id: str) -> str:
    return sha256_hex(GENESIS_PREFIX + chain_id)


def _in_sequence(events: Iterable[ChainEvent]) -> List[ChainEvent]:
    return sorted(events, key=lambda e: e.sequence_index)


def compute_chain_hash_chain(chain_id: str, events: Sequence[ChainEvent]) -> ChainReplayResult:
    """
    Compute the hash chain for a single chain's events.

    Events are put in sequence_index order first. With no events the
    genesis hash stands for the whole chain.
    """
    current = genesis_hash(chain_id)
    first = None

    for event in _in_sequence(events):
        current = sha256_hex(current + event.canonical_content())
        if first is None:
            first = current

    return ChainReplayResult(
        chain_id=chain_id,
        hash_chain=current,
        event_count=len(events),
        first_event_hash=first if first is not None else current,
        last_event_hash=current,
    )


def replay_chain_to(chain_id: str, events: Sequence[ChainEvent], upto: int) -> ChainReplayResult:
    """
    Replay only the first `upto` events of a chain, in sequence order.

    Raises:
        ReplayRangeError: if upto is negative or beyond the available events
    """
    if upto < 0 or upto > len(events):
        raise ReplayRangeError(chain_id, upto, len(events))
    return compute_chain_hash_chain(chain_id, _in_sequence(events)[:upto])


def compute_combined_hash(chain_results: Sequence[ChainReplayResult]) -> str:
    """
    Combine per-chain results into one cross-chain digest.

    Results are sorted by chain_id first, so the order in which chains were
    processed does not matter.
    """
    ordered = sorted(chain_results, key=lambda r: r.chain_id)
    return canonical_hash({
        "chains": [
            {
                "chainId": r.chain_id,
                "hashChain": r.hash_chain,
                "eventCount": r.event_count,
            }
            for r in ordered
        ]
    })


def group_by_chain(events: Iterable[ChainEvent]) -> Dict[str, List[ChainEvent]]:
    """Group events by chain_id, each group in sequence_index order."""
    by_chain: Dict[str, List[ChainEvent]] = {}
    for event in events:
        by_chain.setdefault(event.chain_id, []).append(event)
    return {chain_id: _in_sequence(group) for chain_id, group in by_chain.items()}


def audit_multi_chain_replay(
    events: Sequence[ChainEvent],
    expected_combined_hash: Optional[str] = None,
    expected_chain_hashes: Optional[Mapping[str, str]] = None
) -> MultiChainAuditResult:
    """
    Run a full multi-chain replay audit.

    Args:
        events: All events across all chains, in any order
        expected_combined_hash: Optional combined hash to compare against;
            an empty string counts as not given
        expected_chain_hashes: Optional chainId -> hashChain to compare
            against, pinpointing which chain diverged

    Returns:
        MultiChainAuditResult; PASS iff no discrepancy was found
    """
    grouped = group_by_chain(events)
    results = tuple(
        compute_chain_hash_chain(chain_id, grouped[chain_id])
        for chain_id in sorted(grouped)
    )
    combined_hash = compute_combined_hash(results)

    discrepancies: List[str] = []
    if expected_combined_hash and combined_hash != expected_combined_hash:
        discrepancies.append(
            f"Combined hash mismatch: expected {expected_combined_hash}, got {combined_hash}"
        )

    if expected_chain_hashes:
        actual = {r.chain_id: r.hash_chain for r in results}
        for chain_id in sorted(expected_chain_hashes):
            expected = expected_chain_hashes[chain_id]
            if chain_id not in actual:
                discrepancies.append(f"Chain {chain_id}: no events replayed, expected {expected}")
            elif actual[chain_id] != expected:
                discrepancies.append(
                    f"Chain {chain_id}: hash chain mismatch, expected {expected}, "
                    f"got {actual[chain_id]}"
                )

    verdict = Verdict.from_discrepancies(discrepancies)
    audit_log.chain_audit(verdict.value, combined_hash, len(results), discrepancies)

    return MultiChainAuditResult(
        verdict=verdict,
        combined_hash=combined_hash,
        chains=results,
        audited_at=utc_now_iso(),
        discrepancies=tuple(discrepancies),
    )
