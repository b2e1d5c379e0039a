"""
StateProof External Verifier Node

Independently verifies an exported state bundle and produces a
VerifierReport, the input of consensus aggregation.

Verification, from the bundle alone:
1. Bundle integrity (bundleHash and GlobalStateHash recompute)
2. Replay of the ledger and registrum snapshots
3. Per-subsystem hash checks against the bundle's claims
4. Global hash check, including the bundle's chain hashes
5. Strict mode: chain hashes are required
6. Claimed chain hashes are recorded as checks

Chain hashes cannot be recomputed without the chains' event data, so they
are recorded as claimed. Use the multi-chain auditor when the events are
available.
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .bundle import ExportableStateBundle, verify_bundle_integrity
from .global_state import (
    compute_global_state_hash,
    hash_ledger_snapshot,
    hash_registrum_snapshot,
)
from .hashing import canonical_hash
from .logging_config import audit_log
from .replay import ReplayInput, verify_by_replay
from .verdict import Verdict, utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifierConfig:
    """Identity and behaviour of one verifier node."""
    verifier_id: str
    label: Optional[str] = None
    strict_mode: bool = False


@dataclass(frozen=True)
class SubsystemCheck:
    """One expected-versus-recomputed hash comparison."""
    subsystem: str  # ledger | registrum | global | chain:<id>
    expected: str
    actual: str
    matches: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subsystem": self.subsystem,
            "expected": self.expected,
            "actual": self.actual,
            "matches": self.matches,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SubsystemCheck':
        return cls(
            subsystem=data["subsystem"],
            expected=data["expected"],
            actual=data["actual"],
            matches=bool(data["matches"]),
        )


@dataclass(frozen=True)
class VerifierReport:
    """One verifier's verdict on one bundle, with its evidence."""
    report_id: str
    verifier_id: str
    verdict: Verdict
    bundle_hash: str
    subsystem_checks: Tuple[SubsystemCheck, ...] = ()
    discrepancies: Tuple[str, ...] = ()
    verified_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reportId": self.report_id,
            "verifierId": self.verifier_id,
            "verdict": self.verdict.value,
            "subsystemChecks": [c.to_dict() for c in self.subsystem_checks],
            "discrepancies": list(self.discrepancies),
            "bundleHash": self.bundle_hash,
            "verifiedAt": self.verified_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'VerifierReport':
        return cls(
            report_id=data["reportId"],
            verifier_id=data["verifierId"],
            verdict=Verdict(data["verdict"]),
            bundle_hash=data["bundleHash"],
            subsystem_checks=tuple(
                SubsystemCheck.from_dict(c) for c in data.get("subsystemChecks", [])
            ),
            discrepancies=tuple(data.get("discrepancies", [])),
            verified_at=data.get("verifiedAt", ""),
        )


def generate_report_id(verifier_id: str, bundle_hash: str) -> str:
    """Fresh report id; two runs over the same bundle never share one."""
    nonce = secrets.token_hex(16)
    return canonical_hash({
        "verifierId": verifier_id,
        "bundleHash": bundle_hash,
        "nonce": nonce,
    })


def run_verification(bundle: ExportableStateBundle, config: VerifierConfig) -> VerifierReport:
    """
    Verify a state bundle and produce a report.

    Args:
        bundle: The exported bundle to verify
        config: Verifier identity and strictness

    Returns:
        VerifierReport; PASS iff no discrepancy was found
    """
    discrepancies: List[str] = []
    checks: List[SubsystemCheck] = []
    claimed = bundle.global_state_hash

    # Step 1: bundle integrity
    integrity = verify_bundle_integrity(bundle)
    if integrity.verdict == Verdict.FAIL:
        discrepancies.extend(integrity.discrepancies)

    # Step 2: replay. No expected hash: the claimed global hash may cover
    # chain hashes that the snapshots alone cannot reproduce.
    replay = verify_by_replay(ReplayInput(
        ledger_snapshot=bundle.ledger_snapshot,
        registrum_snapshot=bundle.registrum_snapshot,
    ))
    if replay.verdict == Verdict.FAIL:
        discrepancies.extend(d.description for d in replay.discrepancies)

    # Step 3: per-subsystem checks
    ledger_hash = hash_ledger_snapshot(bundle.ledger_snapshot)
    checks.append(SubsystemCheck(
        subsystem="ledger",
        expected=claimed.subsystems.ledger,
        actual=ledger_hash,
        matches=claimed.subsystems.ledger == ledger_hash,
    ))
    if not checks[-1].matches:
        discrepancies.append(
            f"Ledger hash mismatch: bundle claims {claimed.subsystems.ledger}, "
            f"recomputed {ledger_hash}"
        )

    registrum_hash = hash_registrum_snapshot(bundle.registrum_snapshot)
    checks.append(SubsystemCheck(
        subsystem="registrum",
        expected=claimed.subsystems.registrum,
        actual=registrum_hash,
        matches=claimed.subsystems.registrum == registrum_hash,
    ))
    if not checks[-1].matches:
        discrepancies.append(
            f"Registrum hash mismatch: bundle claims {claimed.subsystems.registrum}, "
            f"recomputed {registrum_hash}"
        )

    # Step 4: global check with the bundle's chain hashes
    recomputed = compute_global_state_hash(
        bundle.ledger_snapshot,
        bundle.registrum_snapshot,
        bundle.chain_hashes,
    )
    checks.append(SubsystemCheck(
        subsystem="global",
        expected=claimed.hash,
        actual=recomputed.hash,
        matches=claimed.hash == recomputed.hash,
    ))
    if not checks[-1].matches:
        discrepancies.append(
            f"Global hash mismatch: bundle claims {claimed.hash}, "
            f"recomputed {recomputed.hash}"
        )

    # Step 5: strict mode
    claimed_chains = claimed.subsystems.chains
    if config.strict_mode and not claimed_chains:
        discrepancies.append(
            "Strict mode: no chain hashes found in bundle (expected chain observer data)"
        )

    # Step 6: record claimed chain hashes
    for chain_id in sorted(claimed_chains or {}):
        chain_hash = claimed_chains[chain_id]
        checks.append(SubsystemCheck(
            subsystem=f"chain:{chain_id}",
            expected=chain_hash,
            actual=chain_hash,
            matches=True,
        ))

    verdict = Verdict.from_discrepancies(discrepancies)
    report = VerifierReport(
        report_id=generate_report_id(config.verifier_id, bundle.bundle_hash),
        verifier_id=config.verifier_id,
        verdict=verdict,
        bundle_hash=bundle.bundle_hash,
        subsystem_checks=tuple(checks),
        discrepancies=tuple(discrepancies),
    )
    audit_log.verifier_report(config.verifier_id, report.report_id, verdict.value,
                              bundle.bundle_hash)
    return report


class VerifierNode:
    """
    Stateful verifier that keeps the history of its reports.

    Usage:
        node = VerifierNode(VerifierConfig(verifier_id="verifier-a"))
        report = node.verify(bundle)
    """

    def __init__(self, config: VerifierConfig):
        self._config = config
        self._reports: List[VerifierReport] = []

    @property
    def verifier_id(self) -> str:
        return self._config.verifier_id

    @property
    def config(self) -> VerifierConfig:
        return self._config

    @property
    def reports(self) -> Tuple[VerifierReport, ...]:
        """All reports produced so far, oldest first."""
        return tuple(self._reports)

    def verify(self, bundle: ExportableStateBundle) -> VerifierReport:
        """Verify a bundle and keep the report."""
        report = run_verification(bundle, self._config)
        self._reports.append(report)
        logger.debug("Verifier %s holds %d report(s)", self.verifier_id, len(self._reports))
        return report
