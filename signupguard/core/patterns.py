"""
SignupGuard Patterns — Single Source of Truth
===============================================
All keyword tables and regex patterns used by form inspection and
autofill matching. Kept as data so every heuristic can be reviewed and
unit-tested on its own.

Import from: signupguard.core.patterns
"""

from signupguard.core.types import AttributeKey

# =============================================================================
# FORM SELECTION
# =============================================================================

# A form whose visible text contains one of these is a signup candidate.
SIGNUP_TEXT_KEYWORDS = [
    'sign up', 'signup', 'register', 'registration', 'create account',
    'create an account', 'join now',
]

# A form whose action URL contains one of these is a signup candidate.
SIGNUP_ACTION_KEYWORDS = [
    'signup', 'sign-up', 'sign_up', 'register', 'registration', 'join',
]

# =============================================================================
# FIELD ENUMERATION
# =============================================================================

FIELD_TAGS = ('input', 'select', 'textarea')

# Input types that are never field candidates.
NON_FIELD_INPUT_TYPES = {'hidden', 'submit', 'button', 'reset', 'image'}

# =============================================================================
# SENSITIVITY DENYLIST — authoritative, cannot be suppressed by callers
# =============================================================================

SENSITIVE_FIELD_PATTERNS = [
    r'(?i)password', r'(?i)passwd', r'(?i)pwd',
    r'(?i)secret',
    r'(?i)token',
    r'(?i)api[\s_-]?key',
    r'(?i)credit[\s_-]?card', r'(?i)card[\s_-]?number', r'(?i)cvv|cvc',
    # "ssn" must not fire inside words like "businessName"
    r'(?i)(?:^|[^a-z])ssn(?:$|[^a-z])', r'SSN', r'(?i)social[\s_-]?security',
]

SENSITIVE_FIELD_TYPES = {'password'}

# =============================================================================
# SUBMIT TARGET
# =============================================================================

SUBMIT_BUTTON_KEYWORDS = ['sign up', 'register', 'submit']

# =============================================================================
# AUTOFILL SYNONYMS — ordered, first match wins
# =============================================================================

# Regexes searched in the lowercased field name (camelCase split into
# words) and label. Short tokens are bounded by non-letters, so "city"
# does not fire inside "ethnicity" nor "ein" inside "protein".
def _word(token: str) -> str:
    return r'(?<![a-z])' + token + r'(?![a-z])'


FIELD_SYNONYMS = [
    (AttributeKey.FIRST_NAME, [r'first[\s_-]?name', _word('fname'), r'given[\s_-]?name']),
    (AttributeKey.LAST_NAME, [r'last[\s_-]?name', _word('lname'), r'surname', r'family[\s_-]?name']),
    (AttributeKey.EMAIL, [r'e-?mail']),
    (AttributeKey.PHONE, [r'phone', _word('mobile'), _word('tel')]),
    (AttributeKey.COMPANY, [r'company', r'business', r'organi[sz]ation']),
    (AttributeKey.WEBSITE, [r'web[\s_-]?site', _word('site'), _word('url'), r'web[\s_-]?address']),
    (AttributeKey.ADDRESS, [r'address', r'street']),
    (AttributeKey.CITY, [_word('city'), _word('town')]),
    (AttributeKey.STATE, [_word('state'), _word('province'), _word('region')]),
    (AttributeKey.ZIP_CODE, [_word('zip'), _word(r'zip[\s_-]?code'), r'postal', r'post[\s_-]?code']),
    (AttributeKey.COUNTRY, [r'country', _word('nation')]),
    (AttributeKey.TAX_ID, [_word('tax'), _word(r'tax[\s_-]?id'), _word('ein'), _word('vat')]),
]

# =============================================================================
# REGISTRY WHITELIST
# =============================================================================

# Tier-1 networks pinned to low risk by explicit partner agreement.
LOW_RISK_PARTNERS = frozenset({'partnerstack', 'reditus'})

# Hostnames that always resolve to tier 0.
SAFE_HOSTNAMES = frozenset({'localhost', 'localhost.localdomain'})
SAFE_HOST_SUFFIXES = ('.local', '.localhost')
