"""
StateProof Multi-Verifier Consensus

Combines verdicts from independent verifier nodes into one system verdict.

Rules:
- Strict majority: PASS iff more than half of the reports are PASS
- An exact tie is FAIL
- Quorum (minimum report count) is tracked separately from the verdict
- Dissenters are listed in input order
- No reports at all: FAIL, no quorum, zero agreement

The aggregator only combines verdicts. Why a node reported FAIL is recorded
in that node's report, not here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple

from .logging_config import audit_log
from .verdict import Verdict, utc_now_iso
from .verifier_node import VerifierReport


@dataclass(frozen=True)
class ConsensusResult:
    """Aggregated outcome of one consensus round."""
    verdict: Verdict
    total_verifiers: int
    pass_count: int
    fail_count: int
    agreement_ratio: float
    quorum_reached: bool
    dissenters: Tuple[str, ...] = ()
    consensus_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "totalVerifiers": self.total_verifiers,
            "passCount": self.pass_count,
            "failCount": self.fail_count,
            "agreementRatio": self.agreement_ratio,
            "quorumReached": self.quorum_reached,
            "dissenters": list(self.dissenters),
            "consensusAt": self.consensus_at,
        }


def is_consensus_reached(reports: Sequence[VerifierReport], minimum_verifiers: int) -> bool:
    """True once at least minimum_verifiers reports are in, whatever they say."""
    return len(reports) >= minimum_verifiers


def aggregate_verifier_reports(
    reports: Sequence[VerifierReport],
    minimum_verifiers: int = 1
) -> ConsensusResult:
    """
    Aggregate verifier reports into a consensus result.

    Args:
        reports: Reports from independent verifiers
        minimum_verifiers: Reports required for quorum

    Returns:
        ConsensusResult with verdict, counts and dissenters
    """
    total = len(reports)

    if total == 0:
        result = ConsensusResult(
            verdict=Verdict.FAIL,
            total_verifiers=0,
            pass_count=0,
            fail_count=0,
            agreement_ratio=0.0,
            quorum_reached=False,
        )
    else:
        pass_count = sum(1 for r in reports if r.verdict == Verdict.PASS)
        fail_count = total - pass_count

        verdict = Verdict.PASS if pass_count > total / 2 else Verdict.FAIL
        agreeing = pass_count if verdict == Verdict.PASS else fail_count

        result = ConsensusResult(
            verdict=verdict,
            total_verifiers=total,
            pass_count=pass_count,
            fail_count=fail_count,
            agreement_ratio=agreeing / total,
            quorum_reached=is_consensus_reached(reports, minimum_verifiers),
            dissenters=tuple(r.verifier_id for r in reports if r.verdict != verdict),
        )

    audit_log.consensus_result(
        result.verdict.value,
        result.total_verifiers,
        result.pass_count,
        result.quorum_reached,
        list(result.dissenters),
    )
    return result
