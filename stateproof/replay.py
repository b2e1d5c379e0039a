"""
StateProof Replay Verification

Two entry points over the GlobalStateHash computation:

- verify_hash: quick check. Hashes the supplied snapshots and compares the
  result with an expected hash. No reconstruction.
- verify_by_replay: full check. Reconstructs each subsystem from its
  snapshot, takes the reconstructed snapshot, and proves that original and
  reconstruction hash identically (per subsystem and globally). When an
  expected hash is supplied it is compared as well.

Reconstruction is delegated to a replayer callable per subsystem. The
default replayer rebuilds the snapshot from its canonical wire form, which
is exactly what a remote verifier holding only an exported bundle sees.
Subsystems that can rebuild themselves (restore from snapshot, then
snapshot again) pass their own replayer.

Both functions are pure: inputs are never mutated and trust failures are
reported in the result, never raised.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .canonicalization import canonicalize
from .global_state import (
    GlobalStateHash,
    compute_global_state_hash,
)
from .logging_config import audit_log
from .verdict import Verdict, utc_now_iso

Replayer = Callable[[Any], Any]


def wire_replayer(snapshot: Any) -> Any:
    """Rebuild a snapshot from its canonical JSON encoding."""
    return json.loads(canonicalize(snapshot).decode('utf-8'))


@dataclass(frozen=True)
class VerificationDiscrepancy:
    """A single mismatch found during verification."""
    subsystem: str  # ledger | registrum | global
    expected: str
    actual: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subsystem": self.subsystem,
            "expected": self.expected,
            "actual": self.actual,
            "description": self.description,
        }


@dataclass(frozen=True)
class ReplayInput:
    """Snapshots to verify, with an optional expected GlobalStateHash."""
    ledger_snapshot: Mapping[str, Any]
    registrum_snapshot: Any
    expected_hash: Optional[str] = None


@dataclass(frozen=True)
class VerificationResult:
    """Result of a quick hash verification."""
    verdict: Verdict
    global_hash: GlobalStateHash
    expected_hash: str
    discrepancies: Tuple[VerificationDiscrepancy, ...] = ()
    verified_at: str = field(default_factory=utc_now_iso)

    @property
    def match(self) -> bool:
        return self.verdict == Verdict.PASS

    @property
    def actual_hash(self) -> str:
        return self.global_hash.hash

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "match": self.match,
            "expectedHash": self.expected_hash,
            "globalHash": self.global_hash.to_dict(),
            "discrepancies": [d.to_dict() for d in self.discrepancies],
            "verifiedAt": self.verified_at,
        }


@dataclass(frozen=True)
class ReplayResult:
    """Result of a full replay verification."""
    verdict: Verdict
    replayed_hash: GlobalStateHash
    original_hash: GlobalStateHash
    discrepancies: Tuple[VerificationDiscrepancy, ...] = ()
    verified_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "replayedHash": self.replayed_hash.to_dict(),
            "originalHash": self.original_hash.to_dict(),
            "discrepancies": [d.to_dict() for d in self.discrepancies],
            "verifiedAt": self.verified_at,
        }


def verify_hash(snapshots: ReplayInput, expected_hash: str) -> VerificationResult:
    """
    Quick verification: compute the GlobalStateHash and compare.

    Args:
        snapshots: Ledger and registrum snapshots (expected_hash on the
            input is ignored in favour of the explicit argument)
        expected_hash: The GlobalStateHash the caller expects

    Returns:
        VerificationResult carrying both hashes and the verdict
    """
    global_hash = compute_global_state_hash(
        snapshots.ledger_snapshot,
        snapshots.registrum_snapshot,
    )

    discrepancies: List[VerificationDiscrepancy] = []
    if global_hash.hash != expected_hash:
        discrepancies.append(VerificationDiscrepancy(
            subsystem="global",
            expected=expected_hash,
            actual=global_hash.hash,
            description="GlobalStateHash does not match expected",
        ))

    return VerificationResult(
        verdict=Verdict.from_discrepancies(discrepancies),
        global_hash=global_hash,
        expected_hash=expected_hash,
        discrepancies=tuple(discrepancies),
    )


def verify_by_replay(
    replay_input: ReplayInput,
    ledger_replayer: Replayer = wire_replayer,
    registrum_replayer: Replayer = wire_replayer
) -> ReplayResult:
    """
    Verify state by reconstructing it from its snapshots.

    Steps:
    1. Hash the original snapshots
    2. Reconstruct each subsystem and take fresh snapshots
    3. Hash the reconstructed snapshots
    4. Compare ledger, registrum and global hashes
    5. Compare against expected_hash if one was supplied

    Returns:
        ReplayResult with both GlobalStateHash values and any discrepancies
    """
    original = compute_global_state_hash(
        replay_input.ledger_snapshot,
        replay_input.registrum_snapshot,
    )

    replayed = compute_global_state_hash(
        ledger_replayer(replay_input.ledger_snapshot),
        registrum_replayer(replay_input.registrum_snapshot),
    )

    discrepancies: List[VerificationDiscrepancy] = []

    if original.subsystems.ledger != replayed.subsystems.ledger:
        discrepancies.append(VerificationDiscrepancy(
            subsystem="ledger",
            expected=original.subsystems.ledger,
            actual=replayed.subsystems.ledger,
            description="Ledger snapshot hash changed after replay",
        ))

    if original.subsystems.registrum != replayed.subsystems.registrum:
        discrepancies.append(VerificationDiscrepancy(
            subsystem="registrum",
            expected=original.subsystems.registrum,
            actual=replayed.subsystems.registrum,
            description="Registrum snapshot hash changed after replay",
        ))

    if original.hash != replayed.hash:
        discrepancies.append(VerificationDiscrepancy(
            subsystem="global",
            expected=original.hash,
            actual=replayed.hash,
            description="GlobalStateHash changed after replay",
        ))

    expected = replay_input.expected_hash
    if expected is not None and original.hash != expected:
        discrepancies.append(VerificationDiscrepancy(
            subsystem="global",
            expected=expected,
            actual=original.hash,
            description="GlobalStateHash does not match expected hash",
        ))

    verdict = Verdict.from_discrepancies(discrepancies)
    audit_log.replay_verified(
        verdict.value, original.hash, replayed.hash,
        [d.description for d in discrepancies],
    )

    return ReplayResult(
        verdict=verdict,
        replayed_hash=replayed,
        original_hash=original,
        discrepancies=tuple(discrepancies),
    )
