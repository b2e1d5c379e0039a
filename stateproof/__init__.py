"""
StateProof Reference Implementation

Version: 1.0.0

Deterministic state verification and multi-verifier consensus.

StateProof proves to parties who do not trust an operator that the
operator's reported state is exactly reproducible from its own snapshots
and history, and combines the judgments of independent verifiers into one
verdict:
    VERDICT(bundle, verifiers) ∈ { PASS, FAIL }

There is no third state. Anything that cannot be shown to be consistent
resolves to FAIL.

Building blocks:
- RFC 8785 canonical JSON and SHA-256 content addressing
- GlobalStateHash: a hash of independently verifiable subsystem hashes
- Merkle inclusion proofs and attestation proof packages
- Replay verification and per-chain hash chains
- Exportable, self-verifying state bundles
- Strict-majority consensus over verifier reports

Usage:
    from stateproof import (
        create_state_bundle,
        VerifierNode,
        VerifierConfig,
        aggregate_verifier_reports,
    )

    bundle = create_state_bundle(ledger_snapshot, registrum_snapshot, event_hashes)

    reports = [
        VerifierNode(VerifierConfig(verifier_id=vid)).verify(bundle)
        for vid in ("verifier-a", "verifier-b", "verifier-c")
    ]

    result = aggregate_verifier_reports(reports, minimum_verifiers=3)
    if result.verdict == Verdict.PASS and result.quorum_reached:
        ...
"""

__version__ = "1.0.0"

# Canonicalization and hashing
from .canonicalization import canonicalize, canonicalize_str
from .hashing import sha256_hex, canonical_hash, hash_pair, is_sha256_hex

# Errors and verdicts
from .exceptions import (
    StateProofError,
    CanonicalizationError,
    ReplayRangeError,
    BundleFormatError,
)
from .verdict import Verdict

# Global state
from .global_state import (
    SubsystemHashes,
    GlobalStateHash,
    hash_ledger_snapshot,
    hash_registrum_snapshot,
    compute_global_state_hash,
)

# Merkle proofs
from .merkle import MerkleTree, MerkleProof, ProofStep, SiblingDirection
from .attestation_proof import (
    AttestationProofPackage,
    package_attestation_proof,
    verify_attestation_proof,
    verify_attestation_proof_detailed,
)

# Replay
from .replay import (
    ReplayInput,
    VerificationDiscrepancy,
    VerificationResult,
    ReplayResult,
    verify_hash,
    verify_by_replay,
)
from .multichain import (
    ChainEvent,
    ChainReplayResult,
    MultiChainAuditResult,
    compute_chain_hash_chain,
    compute_combined_hash,
    replay_chain_to,
    audit_multi_chain_replay,
)
from .invariants import (
    InvariantEvent,
    InvariantCheckResult,
    InvariantAuditResult,
    audit_cross_chain_invariants,
)

# Bundles, verifiers, consensus
from .bundle import (
    ExportableStateBundle,
    BundleVerificationResult,
    compute_bundle_hash,
    create_state_bundle,
    verify_bundle_integrity,
)
from .verifier_node import (
    VerifierConfig,
    SubsystemCheck,
    VerifierReport,
    VerifierNode,
    run_verification,
)
from .consensus import (
    ConsensusResult,
    is_consensus_reached,
    aggregate_verifier_reports,
)


__all__ = [
    # Version
    "__version__",

    # Canonicalization
    "canonicalize",
    "canonicalize_str",

    # Hashing
    "sha256_hex",
    "canonical_hash",
    "hash_pair",
    "is_sha256_hex",

    # Errors and verdicts
    "StateProofError",
    "CanonicalizationError",
    "ReplayRangeError",
    "BundleFormatError",
    "Verdict",

    # Global state
    "SubsystemHashes",
    "GlobalStateHash",
    "hash_ledger_snapshot",
    "hash_registrum_snapshot",
    "compute_global_state_hash",

    # Merkle
    "MerkleTree",
    "MerkleProof",
    "ProofStep",
    "SiblingDirection",
    "AttestationProofPackage",
    "package_attestation_proof",
    "verify_attestation_proof",
    "verify_attestation_proof_detailed",

    # Replay
    "ReplayInput",
    "VerificationDiscrepancy",
    "VerificationResult",
    "ReplayResult",
    "verify_hash",
    "verify_by_replay",
    "ChainEvent",
    "ChainReplayResult",
    "MultiChainAuditResult",
    "compute_chain_hash_chain",
    "compute_combined_hash",
    "replay_chain_to",
    "audit_multi_chain_replay",
    "InvariantEvent",
    "InvariantCheckResult",
    "InvariantAuditResult",
    "audit_cross_chain_invariants",

    # Bundles
    "ExportableStateBundle",
    "BundleVerificationResult",
    "compute_bundle_hash",
    "create_state_bundle",
    "verify_bundle_integrity",

    # Verifiers and consensus
    "VerifierConfig",
    "SubsystemCheck",
    "VerifierReport",
    "VerifierNode",
    "run_verification",
    "ConsensusResult",
    "is_consensus_reached",
    "aggregate_verifier_reports",
]
