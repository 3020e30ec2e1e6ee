"""
Crypto Layer — ECDSA P-256 signing of critical compliance entries.
"""

from signupguard.core.crypto.signer import EntrySigner, canonical_json

__all__ = ['EntrySigner', 'canonical_json']
