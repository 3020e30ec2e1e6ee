"""
Store Layer — Optional persistence collaborator.
"""

from signupguard.core.store.json_store import JsonComplianceStore

__all__ = ['JsonComplianceStore']
