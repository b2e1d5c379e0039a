"""
Wire schemas for externally supplied documents.

Bundles, verifier reports, proofs and event lists arrive as JSON from
other processes. They are validated here before the core sees them; a
document that does not match raises BundleFormatError.

Snapshots stay opaque: only their outer shape is checked, and the values
handed to the core are the caller's own, never pydantic-coerced copies.
Integer fields are strict for the same reason: "10" must not validate
and then hash as a string.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from .bundle import ExportableStateBundle
from .exceptions import BundleFormatError
from .hashing import SHA256_HEX_PATTERN
from .invariants import InvariantEvent
from .merkle import MerkleProof
from .multichain import ChainEvent
from .verdict import Verdict
from .verifier_node import VerifierReport

HEX = SHA256_HEX_PATTERN.pattern


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SubsystemHashesModel(_WireModel):
    ledger: str = Field(pattern=HEX)
    registrum: str = Field(pattern=HEX)
    chains: Optional[Dict[str, str]] = None


class GlobalStateHashModel(_WireModel):
    hash: str = Field(pattern=HEX)
    computed_at: str = Field(alias="computedAt")
    subsystems: SubsystemHashesModel


class StateBundleModel(_WireModel):
    version: StrictInt = Field(ge=1)
    ledger_snapshot: Dict[str, Any] = Field(alias="ledgerSnapshot")
    registrum_snapshot: Any = Field(alias="registrumSnapshot")
    global_state_hash: GlobalStateHashModel = Field(alias="globalStateHash")
    event_hashes: List[str] = Field(alias="eventHashes")
    chain_hashes: Optional[Dict[str, str]] = Field(default=None, alias="chainHashes")
    exported_at: str = Field(default="", alias="exportedAt")
    bundle_hash: str = Field(alias="bundleHash")


class SubsystemCheckModel(_WireModel):
    subsystem: str
    expected: str
    actual: str
    matches: bool


class VerifierReportModel(_WireModel):
    report_id: str = Field(alias="reportId")
    verifier_id: str = Field(alias="verifierId", min_length=1)
    verdict: Verdict
    subsystem_checks: List[SubsystemCheckModel] = Field(default_factory=list, alias="subsystemChecks")
    discrepancies: List[str] = Field(default_factory=list)
    bundle_hash: str = Field(alias="bundleHash")
    verified_at: str = Field(default="", alias="verifiedAt")


class ProofStepModel(_WireModel):
    hash: str
    direction: str = Field(pattern="^(left|right)$")


class MerkleProofModel(_WireModel):
    leaf_hash: str = Field(alias="leafHash")
    leaf_index: StrictInt = Field(alias="leafIndex", ge=0)
    siblings: List[ProofStepModel] = Field(default_factory=list)
    root: str


class ChainEventModel(_WireModel):
    chain_id: str = Field(alias="chainId", min_length=1)
    event_hash: str = Field(alias="eventHash")
    sequence_index: StrictInt = Field(alias="sequenceIndex")
    timestamp: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)


class InvariantEventModel(_WireModel):
    chain_id: str = Field(alias="chainId")
    event_id: str = Field(alias="eventId")
    event_type: str = Field(alias="eventType")
    amount: str
    symbol: str
    sequence_index: StrictInt = Field(alias="sequenceIndex")
    timestamp: str
    linked_event_id: Optional[str] = Field(default=None, alias="linkedEventId")
    settlement_chain_id: Optional[str] = Field(default=None, alias="settlementChainId")


def _validate(model: type, data: Any, what: str) -> None:
    try:
        model.model_validate(data)
    except ValidationError as e:
        raise BundleFormatError(f"Invalid {what}: {e.error_count()} error(s)\n{e}") from e


def _require_list(data: Any, what: str) -> List[Any]:
    if not isinstance(data, list):
        raise BundleFormatError(f"Invalid {what}: expected a JSON array")
    return data


def parse_ledger_snapshot(data: Any) -> Dict[str, Any]:
    """The ledger snapshot must be a JSON object; its contents stay opaque."""
    if not isinstance(data, dict):
        raise BundleFormatError("Invalid ledger snapshot: expected a JSON object")
    return data


def parse_chain_hashes(data: Any) -> Dict[str, str]:
    """Validate a chainId -> hash object."""
    if not isinstance(data, dict):
        raise BundleFormatError("Invalid chain hashes: expected a JSON object")
    for chain_id, value in data.items():
        if not isinstance(value, str):
            raise BundleFormatError(f"Invalid chain hash for {chain_id!r}: expected a string")
    return data


def parse_state_bundle(data: Any) -> ExportableStateBundle:
    """Validate a bundle document and build the bundle from it."""
    _validate(StateBundleModel, data, "state bundle")
    return ExportableStateBundle.from_dict(data)


def parse_verifier_report(data: Any) -> VerifierReport:
    _validate(VerifierReportModel, data, "verifier report")
    return VerifierReport.from_dict(data)


def parse_merkle_proof(data: Any) -> MerkleProof:
    _validate(MerkleProofModel, data, "Merkle proof")
    return MerkleProof.from_dict(data)


def parse_chain_events(data: Any) -> List[ChainEvent]:
    """Validate a JSON array of chain events."""
    items = _require_list(data, "chain events")
    for i, item in enumerate(items):
        _validate(ChainEventModel, item, f"chain event [{i}]")
    return [ChainEvent.from_dict(item) for item in items]


def parse_invariant_events(data: Any) -> List[InvariantEvent]:
    items = _require_list(data, "invariant events")
    for i, item in enumerate(items):
        _validate(InvariantEventModel, item, f"invariant event [{i}]")
    return [InvariantEvent.from_dict(item) for item in items]


def parse_leaf_hashes(data: Any) -> List[str]:
    """Validate a JSON array of hex leaf digests."""
    items = _require_list(data, "leaf hashes")
    for i, item in enumerate(items):
        if not isinstance(item, str) or not SHA256_HEX_PATTERN.fullmatch(item):
            raise BundleFormatError(f"Invalid leaf hash [{i}]: expected 64 lowercase hex characters")
    return items
