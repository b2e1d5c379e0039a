"""
StateProof Attestation Proof Packages

Wraps one attestation with a Merkle inclusion proof into a self-contained
package. A third party verifies it with the package alone, without access
to the rest of the batch.

packageHash = SHA-256(JCS({version, attestation, attestationHash,
                           merkleRoot, inclusionProof, packagedAt}))
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .exceptions import CanonicalizationError
from .hashing import canonical_hash
from .merkle import MerkleProof, MerkleTree
from .verdict import utc_now_iso

PACKAGE_VERSION = 1


@dataclass(frozen=True)
class AttestationProofPackage:
    """Attestation plus everything needed to prove its inclusion."""
    version: int
    attestation: Any
    attestation_hash: str
    merkle_root: str
    inclusion_proof: MerkleProof
    packaged_at: str
    package_hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "attestation": self.attestation,
            "attestationHash": self.attestation_hash,
            "merkleRoot": self.merkle_root,
            "inclusionProof": self.inclusion_proof.to_dict(),
            "packagedAt": self.packaged_at,
            "packageHash": self.package_hash,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'AttestationProofPackage':
        return cls(
            version=int(data["version"]),
            attestation=data["attestation"],
            attestation_hash=data["attestationHash"],
            merkle_root=data["merkleRoot"],
            inclusion_proof=MerkleProof.from_dict(data["inclusionProof"]),
            packaged_at=data["packagedAt"],
            package_hash=data["packageHash"],
        )


@dataclass(frozen=True)
class AttestationVerification:
    """Outcome of verifying a package, with the name of every failed check."""
    valid: bool
    failed_checks: List[str] = field(default_factory=list)


def compute_package_hash(
    version: int,
    attestation: Any,
    attestation_hash: str,
    merkle_root: str,
    inclusion_proof: MerkleProof,
    packaged_at: str
) -> str:
    """Hash every package field except packageHash itself."""
    return canonical_hash({
        "version": version,
        "attestation": attestation,
        "attestationHash": attestation_hash,
        "merkleRoot": merkle_root,
        "inclusionProof": inclusion_proof.to_dict(),
        "packagedAt": packaged_at,
    })


def package_attestation_proof(
    attestation: Any,
    event_hashes: Sequence[str],
    tree: MerkleTree,
    attestation_index: int
) -> Optional[AttestationProofPackage]:
    """
    Package an attestation with its inclusion proof.

    Args:
        attestation: The attestation data (JSON-like)
        event_hashes: All event hashes the tree was built over, in order
        tree: Merkle tree over event_hashes
        attestation_index: Position of this attestation's hash

    Returns:
        AttestationProofPackage, or None when the tree is empty or the
        index falls outside the tree or the hash list
    """
    root = tree.root
    if root is None:
        return None

    inclusion_proof = tree.get_proof(attestation_index)
    if inclusion_proof is None:
        return None

    if attestation_index >= len(event_hashes):
        return None

    attestation_hash = canonical_hash(attestation)
    packaged_at = utc_now_iso()
    package_hash = compute_package_hash(
        PACKAGE_VERSION, attestation, attestation_hash, root, inclusion_proof, packaged_at
    )

    return AttestationProofPackage(
        version=PACKAGE_VERSION,
        attestation=attestation,
        attestation_hash=attestation_hash,
        merkle_root=root,
        inclusion_proof=inclusion_proof,
        packaged_at=packaged_at,
        package_hash=package_hash,
    )


def _safe_hash(value: Any) -> Optional[str]:
    try:
        return canonical_hash(value)
    except CanonicalizationError:
        return None


def verify_attestation_proof_detailed(pkg: AttestationProofPackage) -> AttestationVerification:
    """
    Verify a package and report which checks failed.

    Checks:
    1. attestation_hash recomputes from the attestation
    2. The inclusion proof folds to its root
    3. merkle_root equals the inclusion proof's root
    4. package_hash recomputes from the other fields
    """
    failed: List[str] = []

    if _safe_hash(pkg.attestation) != pkg.attestation_hash:
        failed.append("attestation_hash")

    if not MerkleTree.verify_proof(pkg.inclusion_proof):
        failed.append("inclusion_proof")

    if pkg.merkle_root != pkg.inclusion_proof.root:
        failed.append("merkle_root")

    try:
        recomputed = compute_package_hash(
            pkg.version, pkg.attestation, pkg.attestation_hash,
            pkg.merkle_root, pkg.inclusion_proof, pkg.packaged_at,
        )
    except CanonicalizationError:
        recomputed = None
    if recomputed != pkg.package_hash:
        failed.append("package_hash")

    return AttestationVerification(valid=not failed, failed_checks=failed)


def verify_attestation_proof(pkg: AttestationProofPackage) -> bool:
    """True iff every package check passes."""
    return verify_attestation_proof_detailed(pkg).valid
