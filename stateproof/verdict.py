"""
Verdicts shared by every verification entry point.

There is no third state: a check either proves consistency (PASS) or it does
not (FAIL).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Sequence


class Verdict(str, Enum):
    """Outcome of a verification, audit or consensus round."""
    PASS = "PASS"
    FAIL = "FAIL"

    @classmethod
    def from_discrepancies(cls, discrepancies: Sequence) -> 'Verdict':
        """PASS iff nothing was found."""
        return cls.PASS if len(discrepancies) == 0 else cls.FAIL


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace("+00:00", "Z")
