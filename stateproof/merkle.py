"""
StateProof Merkle Tree

Binary hash tree for inclusion proofs over pre-hashed leaves.

Rules:
- The caller hashes its data; leaves arrive as hex digests
- Parent = SHA-256(left_hex + right_hex), concatenating hex strings
- A level with an odd number of nodes pairs its last node with itself
- Empty leaf set: no tree, no root
- Single leaf: the leaf is the root, proofs carry no siblings

Proofs are self-contained: verify_proof needs only the proof itself.

Usage:
    tree = MerkleTree.build(leaf_hashes)
    proof = tree.get_proof(2)
    assert MerkleTree.verify_proof(proof)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .hashing import hash_pair


class SiblingDirection(str, Enum):
    """Side on which a sibling sits relative to the node being proven."""
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class ProofStep:
    """One level of an inclusion proof: a sibling hash and its side."""
    hash: str
    direction: SiblingDirection

    def to_dict(self) -> Dict[str, Any]:
        return {"hash": self.hash, "direction": self.direction.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ProofStep':
        return cls(hash=data["hash"], direction=SiblingDirection(data["direction"]))


@dataclass(frozen=True)
class MerkleProof:
    """Inclusion proof for one leaf, from leaf to root."""
    leaf_hash: str
    leaf_index: int
    siblings: Tuple[ProofStep, ...]
    root: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "leafHash": self.leaf_hash,
            "leafIndex": self.leaf_index,
            "siblings": [step.to_dict() for step in self.siblings],
            "root": self.root,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MerkleProof':
        return cls(
            leaf_hash=data["leafHash"],
            leaf_index=int(data["leafIndex"]),
            siblings=tuple(ProofStep.from_dict(s) for s in data.get("siblings", [])),
            root=data["root"],
        )


def _build_levels(leaves: Tuple[str, ...]) -> Tuple[Tuple[str, ...], ...]:
    """All levels of the tree, leaves first, root level last."""
    if not leaves:
        return ()

    levels: List[Tuple[str, ...]] = [leaves]
    current = leaves
    while len(current) > 1:
        parents = []
        for i in range(0, len(current), 2):
            left = current[i]
            right = current[i + 1] if i + 1 < len(current) else left
            parents.append(hash_pair(left, right))
        current = tuple(parents)
        levels.append(current)
    return tuple(levels)


class MerkleTree:
    """
    Immutable Merkle tree built once from pre-hashed leaves.

    Build with MerkleTree.build(); the constructor is not part of the API.
    """

    __slots__ = ("_leaves", "_levels")

    def __init__(self, leaves: Sequence[str]):
        self._leaves: Tuple[str, ...] = tuple(leaves)
        self._levels = _build_levels(self._leaves)

    @classmethod
    def build(cls, leaves: Sequence[str]) -> 'MerkleTree':
        """
        Build a tree from hex leaf digests.

        The caller is responsible for hashing raw data before passing it in.
        """
        return cls(leaves)

    @property
    def root(self) -> Optional[str]:
        """Root hash, or None for an empty tree."""
        if not self._levels:
            return None
        return self._levels[-1][0]

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    @property
    def leaves(self) -> Tuple[str, ...]:
        return self._leaves

    def get_proof(self, leaf_index: int) -> Optional[MerkleProof]:
        """
        Generate an inclusion proof for the leaf at leaf_index.

        Returns:
            MerkleProof, or None if the tree is empty or the index is out
            of range
        """
        if not self._levels or leaf_index < 0 or leaf_index >= len(self._leaves):
            return None

        siblings: List[ProofStep] = []
        index = leaf_index
        for level in self._levels[:-1]:
            if index % 2 == 0:
                # Last node of an odd level is its own sibling
                sibling_index = index + 1 if index + 1 < len(level) else index
                siblings.append(ProofStep(level[sibling_index], SiblingDirection.RIGHT))
            else:
                siblings.append(ProofStep(level[index - 1], SiblingDirection.LEFT))
            index //= 2

        return MerkleProof(
            leaf_hash=self._leaves[leaf_index],
            leaf_index=leaf_index,
            siblings=tuple(siblings),
            root=self._levels[-1][0],
        )

    @staticmethod
    def verify_proof(proof: MerkleProof) -> bool:
        """
        Verify an inclusion proof without access to the tree.

        Folds the sibling path from the leaf upward and compares the result
        with the proof's root. Malformed proofs verify as False.
        """
        try:
            current = proof.leaf_hash
            for step in proof.siblings:
                if step.direction == SiblingDirection.LEFT:
                    current = hash_pair(step.hash, current)
                else:
                    current = hash_pair(current, step.hash)
            return isinstance(current, str) and current == proof.root
        except (AttributeError, TypeError):
            return False

    def __repr__(self) -> str:
        return f"MerkleTree(leaves={len(self._leaves)}, root={self.root!r})"
