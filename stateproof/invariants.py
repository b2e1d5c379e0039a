"""
StateProof Cross-Chain Invariants

Structural checks over events observed on several chains:
- asset_conservation: bridge outflows equal bridge inflows per symbol
- no_duplicate_settlement: an event is settled at most once
- event_ordering: sequence indices increase and timestamps never go back
- governance_consistency: governance history is ordered and signers are
  not added twice

Each check returns its violations as evidence. No network access; the
checks only look at the events they are given.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .logging_config import audit_log
from .verdict import Verdict, utc_now_iso

_INTEGER_AMOUNT = re.compile(r"-?[0-9]+")


@dataclass(frozen=True)
class InvariantEvent:
    """A cross-chain event; amounts are integer strings in base units."""
    chain_id: str
    event_id: str
    event_type: str
    amount: str
    symbol: str
    sequence_index: int
    timestamp: str
    linked_event_id: Optional[str] = None
    settlement_chain_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "chainId": self.chain_id,
            "eventId": self.event_id,
            "eventType": self.event_type,
            "amount": self.amount,
            "symbol": self.symbol,
            "sequenceIndex": self.sequence_index,
            "timestamp": self.timestamp,
        }
        if self.linked_event_id is not None:
            d["linkedEventId"] = self.linked_event_id
        if self.settlement_chain_id is not None:
            d["settlementChainId"] = self.settlement_chain_id
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'InvariantEvent':
        return cls(
            chain_id=data["chainId"],
            event_id=data["eventId"],
            event_type=data["eventType"],
            amount=str(data["amount"]),
            symbol=data["symbol"],
            sequence_index=int(data["sequenceIndex"]),
            timestamp=data["timestamp"],
            linked_event_id=data.get("linkedEventId"),
            settlement_chain_id=data.get("settlementChainId"),
        )


@dataclass(frozen=True)
class InvariantCheckResult:
    invariant: str
    violations: Tuple[str, ...] = ()

    @property
    def holds(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invariant": self.invariant,
            "holds": self.holds,
            "violations": list(self.violations),
        }


@dataclass(frozen=True)
class InvariantAuditResult:
    verdict: Verdict
    checks: Tuple[InvariantCheckResult, ...]
    total_violations: int
    audited_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "checks": [c.to_dict() for c in self.checks],
            "totalViolations": self.total_violations,
            "auditedAt": self.audited_at,
        }


def _parse_amount(amount: str) -> Optional[int]:
    if not isinstance(amount, str) or not _INTEGER_AMOUNT.fullmatch(amount):
        return None
    return int(amount)


def check_asset_conservation(events: Sequence[InvariantEvent]) -> InvariantCheckResult:
    """
    Per symbol, everything bridged out must be bridged in.

    An unparsable amount is a violation and does not count toward either
    side.
    """
    violations: List[str] = []
    flows: Dict[str, List[int]] = {}  # symbol -> [outflows, inflows]

    for event in events:
        if event.event_type not in ("bridge_out", "bridge_in"):
            continue

        amount = _parse_amount(event.amount)
        if amount is None:
            violations.append(f'Invalid amount "{event.amount}" for event {event.event_id}')
            continue

        totals = flows.setdefault(event.symbol, [0, 0])
        if event.event_type == "bridge_out":
            totals[0] += amount
        else:
            totals[1] += amount

    for symbol, (outflows, inflows) in flows.items():
        if outflows != inflows:
            violations.append(
                f"Asset conservation violation for {symbol}: "
                f"outflows={outflows}, inflows={inflows}, delta={outflows - inflows}"
            )

    return InvariantCheckResult("asset_conservation", tuple(violations))


def check_no_duplicate_settlement(events: Sequence[InvariantEvent]) -> InvariantCheckResult:
    """Every settlement links to an event, and no event is settled twice."""
    violations: List[str] = []
    settled: Dict[str, str] = {}

    for event in events:
        if event.event_type != "settlement":
            continue

        if not event.linked_event_id:
            violations.append(f"Settlement event {event.event_id} has no linkedEventId")
            continue

        previous = settled.get(event.linked_event_id)
        if previous is not None:
            violations.append(
                f"Duplicate settlement: event {event.linked_event_id} settled by both "
                f"{previous} and {event.event_id}"
            )
        settled[event.linked_event_id] = event.event_id

    return InvariantCheckResult("no_duplicate_settlement", tuple(violations))


def check_event_ordering(events: Sequence[InvariantEvent]) -> InvariantCheckResult:
    """
    Within each chain, sequence indices strictly increase and timestamps
    never decrease. Equal timestamps are allowed (same block).
    """
    violations: List[str] = []
    by_chain: Dict[str, List[InvariantEvent]] = {}
    for event in events:
        by_chain.setdefault(event.chain_id, []).append(event)

    for chain_id, chain_events in by_chain.items():
        ordered = sorted(chain_events, key=lambda e: e.sequence_index)
        for prev, curr in zip(ordered, ordered[1:]):
            if curr.sequence_index <= prev.sequence_index:
                violations.append(
                    f"{chain_id}: non-increasing sequence at index {curr.sequence_index} "
                    f"(event {curr.event_id} after {prev.event_id})"
                )
            if curr.timestamp < prev.timestamp:
                violations.append(
                    f"{chain_id}: timestamp regression at index {curr.sequence_index} "
                    f"({curr.timestamp} < {prev.timestamp})"
                )

    return InvariantCheckResult("event_ordering", tuple(violations))


def _signer_of(event: InvariantEvent) -> Optional[str]:
    # event ids follow "<kind>:<signer>"
    parts = event.event_id.split(":")
    return parts[1] if len(parts) > 1 and parts[1] else None


def check_governance_consistency(events: Sequence[InvariantEvent]) -> InvariantCheckResult:
    """
    governance_* events are strictly ordered, and a signer cannot be added
    while already active. Removing a signer allows adding it again.
    """
    governance = [e for e in events if e.event_type.startswith("governance_")]
    if not governance:
        return InvariantCheckResult("governance_consistency")

    violations: List[str] = []
    ordered = sorted(governance, key=lambda e: e.sequence_index)
    for prev, curr in zip(ordered, ordered[1:]):
        if curr.sequence_index <= prev.sequence_index:
            violations.append(
                f"Governance version regression: {curr.sequence_index} <= {prev.sequence_index}"
            )

    active = set()
    for event in ordered:
        signer = _signer_of(event)
        if signer is None:
            continue
        if event.event_type == "governance_signer_added":
            if signer in active:
                violations.append(f"Duplicate signer addition: {signer} already active")
            active.add(signer)
        elif event.event_type == "governance_signer_removed":
            active.discard(signer)

    return InvariantCheckResult("governance_consistency", tuple(violations))


INVARIANT_CHECKS: Tuple[Callable[[Sequence[InvariantEvent]], InvariantCheckResult], ...] = (
    check_asset_conservation,
    check_no_duplicate_settlement,
    check_event_ordering,
    check_governance_consistency,
)


def audit_cross_chain_invariants(events: Sequence[InvariantEvent]) -> InvariantAuditResult:
    """Run every invariant check, in order, over the same events."""
    checks = tuple(check(events) for check in INVARIANT_CHECKS)
    total = sum(len(c.violations) for c in checks)
    verdict = Verdict.PASS if total == 0 else Verdict.FAIL

    audit_log.invariant_audit(verdict.value, total)
    return InvariantAuditResult(verdict=verdict, checks=checks, total_violations=total)
