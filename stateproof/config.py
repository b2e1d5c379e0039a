"""
Configuration module for StateProof tooling.

Environment variables are read once at import. The verification core never
consults this module; only the command-line tools and the default-building
helpers below do.
"""

import os

# ============================================================
# Environment Configuration
# ============================================================

ENV = os.getenv("STATEPROOF_ENV", "dev")  # dev|stage|prod

# Logging
LOG_LEVEL = os.getenv("STATEPROOF_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("STATEPROOF_LOG_JSON", "true").lower() in ("1", "true", "yes")
LOG_FILE = os.getenv("STATEPROOF_LOG_FILE") or None

# Verifier identity
VERIFIER_ID = os.getenv("STATEPROOF_VERIFIER_ID", "verifier-local")
VERIFIER_LABEL = os.getenv("STATEPROOF_VERIFIER_LABEL") or None
STRICT_MODE = os.getenv("STATEPROOF_STRICT_MODE", "").lower() in ("1", "true", "yes")

# Consensus
MIN_VERIFIERS = int(os.getenv("STATEPROOF_MIN_VERIFIERS", "1"))


# ============================================================
# Defaults
# ============================================================

def default_verifier_config():
    """Build a VerifierConfig from the environment."""
    from .verifier_node import VerifierConfig

    return VerifierConfig(
        verifier_id=VERIFIER_ID,
        label=VERIFIER_LABEL,
        strict_mode=STRICT_MODE,
    )


# ============================================================
# Feature Flags
# ============================================================

def is_production() -> bool:
    """Check if running in production mode."""
    return ENV == "prod"


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("STATEPROOF_DEBUG", "").lower() in ("1", "true", "yes")
