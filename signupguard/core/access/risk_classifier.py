#!/usr/bin/env python3
"""
SignupGuard Core Access — ToS Risk Classifier
===============================================
Maps a URL to a registry Network, a ToS tier, and an AutomationPolicy.

Classification is two-dimensional, like an approval gate:
- the tier is the "where" (which site, how strict its terms are)
- the policy is the "how much" (max automation mode and risk)

Tier assignment:
    0  loopback, private ranges, link-local, *.local (no registry needed)
    1  generic public sites, and any unknown public domain
    2  strict sites: manual only, human-guided assistance permitted
    3  never automate, observation only

Pure computation: no network I/O, no mutable state after construction.

Import from: signupguard.core.access.risk_classifier
"""

import ipaddress
from typing import Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from signupguard.core.types import (
    AutomationMode, AutomationPolicy, Network, RiskLevel, ToSTier,
)
from signupguard.core.patterns import (
    LOW_RISK_PARTNERS, SAFE_HOSTNAMES, SAFE_HOST_SUFFIXES,
)
from signupguard.core.access.network_registry import BUILTIN_NETWORKS

__all__ = ['RiskClassifier', 'parse_host_and_path']


# =============================================================================
# TIER POLICY TABLE
# =============================================================================

_TIER_POLICIES: Dict[ToSTier, AutomationPolicy] = {
    ToSTier.SAFE: AutomationPolicy(
        permitted=True,
        max_mode=AutomationMode.FULL_AUTO,
        risk_level=RiskLevel.LOW,
        recommended_approach='Full automation permitted. Safe domain.',
    ),
    ToSTier.GENERIC: AutomationPolicy(
        permitted=True,
        max_mode=AutomationMode.FULL_AUTO,
        risk_level=RiskLevel.MEDIUM,
        recommended_approach='Human-in-loop workflow recommended. Auto-promotes with confidence.',
    ),
    ToSTier.HUMAN_GUIDED: AutomationPolicy(
        permitted=False,
        max_mode=AutomationMode.HUMAN_GUIDED,
        risk_level=RiskLevel.HIGH,
        recommended_approach='Manual only. Human-guided assistance permitted. Never fully automates.',
    ),
    ToSTier.NEVER: AutomationPolicy(
        permitted=False,
        max_mode=AutomationMode.NONE,
        risk_level=RiskLevel.EXTREME,
        recommended_approach='Never automate. Human-only mode. Observation only.',
    ),
}


def parse_host_and_path(url: str) -> Tuple[str, str]:
    """Return (lowercased hostname, path) for a URL or bare host string.

    "localhost:3000" and "example.com/signup" are accepted without a scheme.
    """
    if not url:
        return '', ''
    raw = url.strip()
    if '://' not in raw:
        raw = 'http://' + raw.lstrip('/')
    try:
        parts = urlsplit(raw)
        host = parts.hostname or ''
    except ValueError:
        return '', ''
    return host.rstrip('.').lower(), parts.path or '/'


def _is_safe_host(host: str) -> bool:
    if not host:
        return False
    if host in SAFE_HOSTNAMES or host.endswith(SAFE_HOST_SUFFIXES):
        return True
    try:
        addr = ipaddress.ip_address(host)
    except ValueError:
        return False
    return addr.is_loopback or addr.is_private or addr.is_link_local


def _domain_match(host: str, pattern: str) -> Optional[Tuple[int, int]]:
    """Match a host against one domain pattern.

    Returns a specificity tuple (exact, length) or None. Exact patterns
    outrank wildcards; longer patterns outrank shorter ones.
    """
    pattern = pattern.lower()
    if pattern.startswith('*.'):
        suffix = pattern[1:]
        if host.endswith(suffix) and len(host) > len(suffix):
            return (0, len(suffix))
        return None
    if host == pattern:
        return (1, len(pattern))
    return None


class RiskClassifier:
    """Classify URLs and registry ids into ToS tiers and automation policies.

    Usage:
        classifier = RiskClassifier()
        classifier.tos_level("https://affiliate-program.amazon.com/signup")
        # Returns 2
        classifier.classify("amazon-associates").max_mode
        # Returns AutomationMode.HUMAN_GUIDED
    """

    def __init__(self, networks: Optional[Sequence[Network]] = None):
        self._networks: Tuple[Network, ...] = tuple(
            BUILTIN_NETWORKS if networks is None else networks)
        self._by_id: Dict[str, Network] = {n.id: n for n in self._networks}

    @property
    def networks(self) -> Tuple[Network, ...]:
        return self._networks

    def get(self, network_id: str) -> Optional[Network]:
        return self._by_id.get(network_id)

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def detect(self, url: str) -> Optional[Network]:
        """Return the registry network for a URL, or None.

        When several networks match, the most specific pattern wins:
        a path-qualified match beats a domain-only one, then exact beats
        wildcard, then the longer pattern wins.
        """
        host, path = parse_host_and_path(url)
        if not host:
            return None

        best: Optional[Network] = None
        best_score: Tuple[int, int, int] = (-1, -1, -1)
        for network in self._networks:
            score = self._score(network, host, path)
            if score is not None and score > best_score:
                best, best_score = network, score
        return best

    @staticmethod
    def _score(network: Network, host: str, path: str) -> Optional[Tuple[int, int, int]]:
        domain_scores = [s for s in (_domain_match(host, p) for p in network.domain_patterns) if s]
        if not domain_scores:
            return None
        exact, length = max(domain_scores)

        if network.path_patterns:
            lowered = path.lower()
            if not any(lowered.startswith(p.lower()) for p in network.path_patterns):
                return None
            return (1, exact, length)
        return (0, exact, length)

    def tos_level(self, url: str) -> int:
        """Return the ToS tier (0..3) for a URL.

        Safe local hosts are tier 0 regardless of the registry. Unknown
        public domains default to tier 1.
        """
        host, _ = parse_host_and_path(url)
        if _is_safe_host(host):
            return ToSTier.SAFE.value
        network = self.detect(url)
        if network is not None:
            return network.tier.value
        return ToSTier.GENERIC.value

    def is_known_network(self, url: str) -> bool:
        return self.detect(url) is not None

    # -------------------------------------------------------------------------
    # Policy
    # -------------------------------------------------------------------------

    @staticmethod
    def policy_for_tier(tier, network_id: Optional[str] = None) -> AutomationPolicy:
        """Derive the policy for a tier. Out-of-range tiers fail closed to 3."""
        if not isinstance(tier, ToSTier):
            tier = ToSTier.from_value(tier)
        policy = _TIER_POLICIES[tier]
        if tier is ToSTier.GENERIC and network_id in LOW_RISK_PARTNERS:
            return AutomationPolicy(
                permitted=policy.permitted,
                max_mode=policy.max_mode,
                risk_level=RiskLevel.LOW,
                recommended_approach=policy.recommended_approach,
            )
        return policy

    def classify(self, network_id: str) -> Optional[AutomationPolicy]:
        """Return the policy for a registry id, or None if the id is unknown."""
        network = self._by_id.get(network_id)
        if network is None:
            return None
        return self.policy_for_tier(network.tier, network.id)

    def policy_for_url(self, url: str) -> Tuple[int, AutomationPolicy]:
        tier = self.tos_level(url)
        network = self.detect(url)
        network_id = network.id if network is not None and tier != ToSTier.SAFE.value else None
        return tier, self.policy_for_tier(tier, network_id)

    # -------------------------------------------------------------------------
    # Registry queries
    # -------------------------------------------------------------------------

    def list_networks(self, tos_level: Optional[int] = None) -> List[Network]:
        if tos_level is None:
            return list(self._networks)
        return [n for n in self._networks if n.tos_level == tos_level]

    def networks_by_api(self, has_api: bool = True) -> List[Network]:
        return [n for n in self._networks if n.api_available == has_api]

    def networks_by_risk(self, risk_level) -> List[Network]:
        if not isinstance(risk_level, RiskLevel):
            risk_level = RiskLevel(risk_level)
        return [n for n in self._networks
                if self.policy_for_tier(n.tier, n.id).risk_level is risk_level]

    def search(self, query: str) -> List[Network]:
        """Case-insensitive substring search over id, name and domain patterns."""
        q = (query or '').strip().lower()
        if not q:
            return []
        return [
            n for n in self._networks
            if q in n.id.lower() or q in n.name.lower()
            or any(q in p.lower() for p in n.domain_patterns)
        ]
