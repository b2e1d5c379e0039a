"""
StateProof Exportable State Bundle

Assembles subsystem snapshots into a self-contained bundle that external
verifiers download and check without trusting the operator.

bundleHash = SHA-256(JCS({globalHash, eventHashes, chainHashes?}))

bundleHash covers the bundle's own contents for tamper evidence and is
distinct from globalStateHash. Both are recomputable from the bundle's
visible fields alone; exportedAt is informational and hashed nowhere.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .global_state import GlobalStateHash, compute_global_state_hash
from .hashing import canonical_hash
from .logging_config import audit_log
from .verdict import Verdict, utc_now_iso

BUNDLE_VERSION = 1


@dataclass(frozen=True)
class ExportableStateBundle:
    """Everything an external party needs to re-verify system state."""
    version: int
    ledger_snapshot: Mapping[str, Any]
    registrum_snapshot: Any
    global_state_hash: GlobalStateHash
    event_hashes: Tuple[str, ...]
    exported_at: str
    bundle_hash: str
    chain_hashes: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "version": self.version,
            "ledgerSnapshot": self.ledger_snapshot,
            "registrumSnapshot": self.registrum_snapshot,
            "globalStateHash": self.global_state_hash.to_dict(),
            "eventHashes": list(self.event_hashes),
        }
        if self.chain_hashes:
            d["chainHashes"] = dict(self.chain_hashes)
        d["exportedAt"] = self.exported_at
        d["bundleHash"] = self.bundle_hash
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ExportableStateBundle':
        chain_hashes = data.get("chainHashes")
        return cls(
            version=int(data["version"]),
            ledger_snapshot=data["ledgerSnapshot"],
            registrum_snapshot=data["registrumSnapshot"],
            global_state_hash=GlobalStateHash.from_dict(data["globalStateHash"]),
            event_hashes=tuple(data.get("eventHashes", [])),
            exported_at=data.get("exportedAt", ""),
            bundle_hash=data["bundleHash"],
            chain_hashes=dict(chain_hashes) if chain_hashes else None,
        )


@dataclass(frozen=True)
class BundleVerificationResult:
    """Result of checking a bundle's internal consistency."""
    verdict: Verdict
    bundle_hash_valid: bool
    global_hash_valid: bool
    discrepancies: Tuple[str, ...] = ()
    verified_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "bundleHashValid": self.bundle_hash_valid,
            "globalHashValid": self.global_hash_valid,
            "discrepancies": list(self.discrepancies),
            "verifiedAt": self.verified_at,
        }


def compute_bundle_hash(
    global_hash: str,
    event_hashes: Sequence[str],
    chain_hashes: Optional[Mapping[str, str]] = None
) -> str:
    """
    Compute the bundle hash from the bundle's internal hashes.

    Event hashes keep their order; chain hashes take part only when
    present.
    """
    data: Dict[str, Any] = {
        "globalHash": global_hash,
        "eventHashes": list(event_hashes),
    }
    if chain_hashes:
        data["chainHashes"] = dict(chain_hashes)
    return canonical_hash(data)


def create_state_bundle(
    ledger_snapshot: Mapping[str, Any],
    registrum_snapshot: Any,
    event_hashes: Sequence[str],
    chain_hashes: Optional[Mapping[str, str]] = None
) -> ExportableStateBundle:
    """
    Create an exportable state bundle from subsystem snapshots.

    Args:
        ledger_snapshot: Current ledger state
        registrum_snapshot: Current registrar state
        event_hashes: SHA-256 hashes of all events, in order
        chain_hashes: Optional per-chain observer hashes

    Returns:
        ExportableStateBundle ready for export
    """
    global_state_hash = compute_global_state_hash(
        ledger_snapshot, registrum_snapshot, chain_hashes
    )
    bundle_hash = compute_bundle_hash(global_state_hash.hash, event_hashes, chain_hashes)

    return ExportableStateBundle(
        version=BUNDLE_VERSION,
        ledger_snapshot=ledger_snapshot,
        registrum_snapshot=registrum_snapshot,
        global_state_hash=global_state_hash,
        event_hashes=tuple(event_hashes),
        exported_at=utc_now_iso(),
        bundle_hash=bundle_hash,
        chain_hashes=dict(chain_hashes) if chain_hashes else None,
    )


def verify_bundle_integrity(bundle: ExportableStateBundle) -> BundleVerificationResult:
    """
    Verify a state bundle's internal consistency.

    Checks:
    1. bundleHash recomputes from globalStateHash.hash, eventHashes and
       chainHashes
    2. globalStateHash recomputes from the embedded snapshots
    3. Each stored subsystem hash recomputes, reported separately even when
       check 2 already failed

    Does not replay subsystems; a verifier node does that on top.
    """
    discrepancies: List[str] = []

    expected_bundle_hash = compute_bundle_hash(
        bundle.global_state_hash.hash,
        bundle.event_hashes,
        bundle.chain_hashes,
    )
    bundle_hash_valid = bundle.bundle_hash == expected_bundle_hash
    if not bundle_hash_valid:
        discrepancies.append(
            f"Bundle hash mismatch: expected {expected_bundle_hash}, got {bundle.bundle_hash}"
        )

    recomputed = compute_global_state_hash(
        bundle.ledger_snapshot,
        bundle.registrum_snapshot,
        bundle.chain_hashes,
    )
    global_hash_valid = bundle.global_state_hash.hash == recomputed.hash
    if not global_hash_valid:
        discrepancies.append(
            f"GlobalStateHash mismatch: bundle says {bundle.global_state_hash.hash}, "
            f"recomputed {recomputed.hash}"
        )

    stored = bundle.global_state_hash.subsystems
    if stored.ledger != recomputed.subsystems.ledger:
        discrepancies.append(
            f"Ledger hash mismatch: bundle says {stored.ledger}, "
            f"recomputed {recomputed.subsystems.ledger}"
        )
    if stored.registrum != recomputed.subsystems.registrum:
        discrepancies.append(
            f"Registrum hash mismatch: bundle says {stored.registrum}, "
            f"recomputed {recomputed.subsystems.registrum}"
        )

    verdict = Verdict.from_discrepancies(discrepancies)
    audit_log.bundle_verified(verdict.value, bundle.bundle_hash, discrepancies)

    return BundleVerificationResult(
        verdict=verdict,
        bundle_hash_valid=bundle_hash_valid,
        global_hash_valid=global_hash_valid,
        discrepancies=tuple(discrepancies),
    )
