"""
Logging setup for StateProof.

Every verifier process emits one JSON object per log line, so outcomes
from independent verifiers can be collected into one stream and compared
side by side.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# Shared by every line logged during one verification run
run_id_var: ContextVar[str] = ContextVar('run_id', default='')


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec='milliseconds').replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        run_id = run_id_var.get()
        if run_id:
            entry["run_id"] = run_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(getattr(record, 'extra_fields', {}))
        return json.dumps(entry, default=str)


class AuditLogger:
    """
    Typed verification events on the ``stateproof.audit`` logger.

    PASS outcomes log at INFO and FAIL outcomes at WARNING, so a tampered
    bundle stands out in any aggregated stream.
    """

    def __init__(self, name: str = "stateproof.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, message: str = "", **fields) -> None:
        if not self._logger.isEnabledFor(level):
            return
        fields["event_type"] = event_type
        self._logger.log(level, "%s: %s", event_type, message,
                         extra={"extra_fields": fields})

    @staticmethod
    def _level_for(verdict: str) -> int:
        return logging.INFO if verdict == "PASS" else logging.WARNING

    def state_hash_computed(self, global_hash: str, ledger_hash: str, registrum_hash: str,
                            chain_count: int = 0) -> None:
        """Log a freshly computed GlobalStateHash."""
        self._log(
            logging.DEBUG,
            "STATE_HASH_COMPUTED",
            global_hash=global_hash,
            ledger_hash=ledger_hash,
            registrum_hash=registrum_hash,
            chain_count=chain_count,
            message=f"Global state hash {global_hash[:16]}"
        )

    def replay_verified(self, verdict: str, original_hash: str, replayed_hash: str,
                        discrepancies: Optional[List[str]] = None) -> None:
        """Log a replay verification outcome."""
        self._log(
            self._level_for(verdict),
            "REPLAY_VERIFIED",
            verdict=verdict,
            original_hash=original_hash,
            replayed_hash=replayed_hash,
            discrepancies=discrepancies or [],
            message=f"Replay verification {verdict}"
        )

    def bundle_verified(self, verdict: str, bundle_hash: str,
                        discrepancies: Optional[List[str]] = None) -> None:
        """Log a bundle integrity check."""
        self._log(
            self._level_for(verdict),
            "BUNDLE_VERIFIED",
            verdict=verdict,
            bundle_hash=bundle_hash,
            discrepancies=discrepancies or [],
            message=f"Bundle integrity {verdict}"
        )

    def chain_audit(self, verdict: str, combined_hash: str, chain_count: int,
                    discrepancies: Optional[List[str]] = None) -> None:
        """Log a multi-chain replay audit."""
        self._log(
            self._level_for(verdict),
            "CHAIN_AUDIT",
            verdict=verdict,
            combined_hash=combined_hash,
            chain_count=chain_count,
            discrepancies=discrepancies or [],
            message=f"Multi-chain audit {verdict} over {chain_count} chain(s)"
        )

    def invariant_audit(self, verdict: str, total_violations: int) -> None:
        """Log a cross-chain invariant audit."""
        self._log(
            self._level_for(verdict),
            "INVARIANT_AUDIT",
            verdict=verdict,
            total_violations=total_violations,
            message=f"Cross-chain invariants {verdict}"
        )

    def verifier_report(self, verifier_id: str, report_id: str, verdict: str,
                        bundle_hash: str) -> None:
        """Log a report produced by a verifier node."""
        self._log(
            self._level_for(verdict),
            "VERIFIER_REPORT",
            verifier_id=verifier_id,
            report_id=report_id,
            verdict=verdict,
            bundle_hash=bundle_hash,
            message=f"Verifier {verifier_id} reported {verdict}"
        )

    def consensus_result(self, verdict: str, total: int, pass_count: int,
                         quorum_reached: bool, dissenters: List[str]) -> None:
        """Log an aggregated consensus verdict."""
        level = self._level_for(verdict)
        if not quorum_reached:
            level = logging.WARNING
        self._log(
            level,
            "CONSENSUS_RESULT",
            verdict=verdict,
            total_verifiers=total,
            pass_count=pass_count,
            quorum_reached=quorum_reached,
            dissenters=dissenters,
            message=f"Consensus {verdict} ({pass_count}/{total} PASS)"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Replace the root handlers with a stderr handler and an optional file.

    stdout is left alone: the CLI writes its JSON results there.
    """
    formatter: logging.Formatter
    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s')

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    root.setLevel(level.upper())
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def set_run_id(run_id: Optional[str] = None) -> str:
    """Tag the current context with ``run_id``, generating a UUID if none is given."""
    if run_id is None:
        run_id = str(uuid.uuid4())
    run_id_var.set(run_id)
    return run_id


def get_run_id() -> str:
    return run_id_var.get()


audit_log = AuditLogger()
