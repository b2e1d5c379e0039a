"""
StateProof GlobalStateHash

Produces a single content-addressed hash covering all subsystem state.

Algorithm:
1. Canonicalize each subsystem snapshot (RFC 8785)
2. SHA-256 each canonical form -> subsystem hash
3. Canonicalize {ledger, registrum, chains?} built from those hashes
4. SHA-256 the combined canonical form -> GlobalStateHash

The top-level hash is a hash of hashes, never a concatenation, so each
subsystem hash remains independently verifiable and a change in one
subsystem leaves the other subsystem's hash untouched.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .hashing import canonical_hash
from .logging_config import audit_log
from .verdict import utc_now_iso

# Wall-clock metadata on ledger snapshots; not structural state
LEDGER_WALL_CLOCK_FIELD = "createdAt"


@dataclass(frozen=True)
class SubsystemHashes:
    """Independently verifiable per-subsystem hashes."""
    ledger: str
    registrum: str
    chains: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"ledger": self.ledger, "registrum": self.registrum}
        if self.chains:
            d["chains"] = dict(self.chains)
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SubsystemHashes':
        chains = data.get("chains")
        return cls(
            ledger=data["ledger"],
            registrum=data["registrum"],
            chains=dict(chains) if chains else None,
        )


@dataclass(frozen=True)
class GlobalStateHash:
    """
    Content address of the whole system state at one point in time.

    computed_at is informational and never participates in any hash.
    """
    hash: str
    computed_at: str
    subsystems: SubsystemHashes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "computedAt": self.computed_at,
            "subsystems": self.subsystems.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'GlobalStateHash':
        return cls(
            hash=data["hash"],
            computed_at=data.get("computedAt", ""),
            subsystems=SubsystemHashes.from_dict(data["subsystems"]),
        )


def hash_ledger_snapshot(snapshot: Mapping[str, Any]) -> str:
    """
    Compute the canonical hash of a ledger snapshot.

    The top-level createdAt field records when the snapshot was taken and
    differs between two snapshots of identical state, so it is excluded.
    """
    structural = {k: v for k, v in snapshot.items() if k != LEDGER_WALL_CLOCK_FIELD}
    return canonical_hash(structural)


def hash_registrum_snapshot(snapshot: Any) -> str:
    """Compute the canonical hash of a registrar snapshot, taken as-is."""
    return canonical_hash(snapshot)


def combine_subsystem_hashes(
    ledger_hash: str,
    registrum_hash: str,
    chain_hashes: Optional[Mapping[str, str]] = None
) -> str:
    """
    Hash the subsystem hashes into the top-level digest.

    Chain hashes take part only when at least one is present.
    """
    combined: Dict[str, Any] = {
        "ledger": ledger_hash,
        "registrum": registrum_hash,
    }
    if chain_hashes:
        combined["chains"] = dict(chain_hashes)
    return canonical_hash(combined)


def compute_global_state_hash(
    ledger_snapshot: Mapping[str, Any],
    registrum_snapshot: Any,
    chain_hashes: Optional[Mapping[str, str]] = None
) -> GlobalStateHash:
    """
    Compute the GlobalStateHash from subsystem snapshots.

    Args:
        ledger_snapshot: Ledger state ({version, accounts, entries, createdAt})
        registrum_snapshot: Registrar state, canonicalized as-is
        chain_hashes: Optional per-chain observer hashes keyed by chain id

    Returns:
        GlobalStateHash with the combined hash and the subsystem hashes
    """
    ledger_hash = hash_ledger_snapshot(ledger_snapshot)
    registrum_hash = hash_registrum_snapshot(registrum_snapshot)
    global_hash = combine_subsystem_hashes(ledger_hash, registrum_hash, chain_hashes)

    audit_log.state_hash_computed(
        global_hash, ledger_hash, registrum_hash,
        chain_count=len(chain_hashes) if chain_hashes else 0,
    )

    return GlobalStateHash(
        hash=global_hash,
        computed_at=utc_now_iso(),
        subsystems=SubsystemHashes(
            ledger=ledger_hash,
            registrum=registrum_hash,
            chains=dict(chain_hashes) if chain_hashes else None,
        ),
    )
