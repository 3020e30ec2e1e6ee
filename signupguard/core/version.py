"""
SignupGuard Core — Version Constants

Single source of truth for all version-related values.
Import from here instead of hardcoding versions elsewhere.

Usage:
    from signupguard.core.version import __version__, LOG_SCHEMA_VERSION
"""

# =============================================================================
# PACKAGE VERSION
# =============================================================================

__version__ = "1.0.0"


# =============================================================================
# PERSISTED FORMATS
# =============================================================================

# Bump when the JSON layout of compliance.log / the store file changes.
LOG_SCHEMA_VERSION = "1.0"
STORE_SCHEMA_VERSION = "1.0"
