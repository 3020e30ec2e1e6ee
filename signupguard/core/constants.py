"""
SignupGuard Constants — Numeric Values, Limits, and DOM Identifiers
====================================================================
Non-pattern constants used across the assistant. Timeouts, token sizes,
and the ids of the overlay elements the assistant owns.

Import from: signupguard.core.constants
"""

# =============================================================================
# TOKEN SIZES (bytes of randomness)
# =============================================================================

SESSION_ID_BYTES = 8            # 16 hex chars for recorder session IDs

# =============================================================================
# TIMING
# =============================================================================

DEFAULT_SUBMIT_TIMEOUT_MS = 300000  # 5 minutes for the human to submit
FILL_HIGHLIGHT_MS = 500             # Visual "filled" marker duration

# =============================================================================
# OVERLAY ELEMENT IDS
# =============================================================================

PERMISSION_DIALOG_ID = "signup-permission-dialog"
SUBMIT_BANNER_ID = "signup-submit-banner"
GUIDANCE_PANEL_ID = "signup-guidance-panel"

# The permission dialog and the submit banner share one modal slot.
MODAL_SLOT = "modal"
GUIDANCE_SLOT = "guidance"

# =============================================================================
# STYLES (visual feedback only)
# =============================================================================

FILLED_HIGHLIGHT_STYLE = {
    'border': '2px solid #00b894',
    'background-color': '#e8f8f5',
}

# =============================================================================
# STORE LIMITS
# =============================================================================

MAX_STORE_ENTRIES = 1000
