"""
StateProof exceptions.

Trust failures (tampered bundles, mismatched hashes, dissenting verifiers)
are reported as result values with a verdict and a discrepancy list. The
exceptions here are reserved for caller bugs: inputs that cannot be
canonicalized, replay requests outside the available history, and documents
that do not match the wire format.
"""


class StateProofError(Exception):
    """Base class for all StateProof contract violations."""


class CanonicalizationError(StateProofError, ValueError):
    """Raised when a value has no RFC 8785 canonical form."""


class ReplayRangeError(StateProofError, IndexError):
    """
    Raised when a replay is requested past the end of the event history.

    Attributes:
        requested: The number of events the caller asked to replay
        available: The number of events actually present
    """

    def __init__(self, chain_id: str, requested: int, available: int):
        self.chain_id = chain_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot replay {requested} event(s) on {chain_id}: "
            f"only {available} available"
        )


class BundleFormatError(StateProofError, ValueError):
    """Raised when a bundle, report or event document is malformed."""
