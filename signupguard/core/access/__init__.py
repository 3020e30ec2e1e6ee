"""
Access Layer — Network registry and ToS risk classification.

Submodules:
- network_registry: Built-in network records plus JSON overrides
- risk_classifier: URL -> Network -> ToS tier -> AutomationPolicy
"""

from signupguard.core.access.network_registry import (
    BUILTIN_NETWORKS,
    load_registry,
    merge_networks,
)

from signupguard.core.access.risk_classifier import (
    RiskClassifier,
    parse_host_and_path,
)

__all__ = [
    'BUILTIN_NETWORKS',
    'load_registry',
    'merge_networks',
    'RiskClassifier',
    'parse_host_and_path',
]
