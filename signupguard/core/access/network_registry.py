#!/usr/bin/env python3
"""
SignupGuard Core Access — Network Registry
============================================
Static registry of known signup sites and their ToS tier.

Built-in records cover the affiliate networks the assistant was written
for. Operators may extend or override them with a JSON file
(config.registry_file) that is read once at startup:

    {"networks": [{"id": "...", "name": "...", "domain_patterns": [...],
                   "tos_level": 1, "api_available": true}]}

Records are frozen Network dataclasses and never change at runtime.

Import from: signupguard.core.access.network_registry
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from signupguard.core.types import Network

logger = logging.getLogger("signupguard.core.access.registry")

__all__ = ['BUILTIN_NETWORKS', 'load_registry', 'merge_networks']


# =============================================================================
# BUILT-IN RECORDS
# =============================================================================

BUILTIN_NETWORKS: Tuple[Network, ...] = (
    Network(
        id='shareasale',
        name='ShareASale',
        domain_patterns=('shareasale.com', '*.shareasale.com'),
        tos_level=1,
        api_available=True,
        signup_url='https://www.shareasale.com/info/affiliates/',
        dashboard_url='https://account.shareasale.com/a-main.cfm',
        notes='Generic ToS. Human-in-loop workflow with prefill is allowed.',
    ),
    Network(
        id='cj-affiliate',
        name='CJ Affiliate',
        domain_patterns=('cj.com', '*.cj.com'),
        tos_level=1,
        api_available=True,
        signup_url='https://signup.cj.com/member/signup/publisher/',
        dashboard_url='https://members.cj.com/',
        notes='Generic ToS. Publisher signup form supports prefill.',
    ),
    Network(
        id='impact',
        name='Impact',
        domain_patterns=('impact.com', '*.impact.com', 'impact.radius.com'),
        tos_level=1,
        api_available=True,
        signup_url='https://app.impact.com/signup/create-partner-account.ihtml',
        dashboard_url='https://app.impact.com/',
        notes='Generic ToS. Partner account creation is multi-step.',
    ),
    Network(
        id='rakuten',
        name='Rakuten Advertising',
        domain_patterns=(
            'rakutenadvertising.com', '*.rakutenadvertising.com',
            'linkshare.com', '*.linkshare.com',
            'linksynergy.com', '*.linksynergy.com',
            'rakutenmarketing.com', '*.rakutenmarketing.com',
        ),
        tos_level=1,
        api_available=True,
        signup_url='https://rakutenadvertising.com/publishers/',
        dashboard_url='https://cli.linksynergy.com/cli/publisher/home.php',
        notes='Generic ToS. Legacy LinkShare domains still serve the dashboard.',
    ),
    Network(
        id='clickbank',
        name='ClickBank',
        domain_patterns=('clickbank.com', '*.clickbank.com'),
        tos_level=1,
        api_available=False,
        signup_url='https://accounts.clickbank.com/signup/',
        dashboard_url='https://accounts.clickbank.com/',
        notes='Generic ToS. No public API, dashboard access only.',
    ),
    Network(
        id='partnerstack',
        name='PartnerStack',
        domain_patterns=('partnerstack.com', '*.partnerstack.com'),
        tos_level=1,
        api_available=True,
        signup_url='https://dash.partnerstack.com/signup',
        dashboard_url='https://dash.partnerstack.com/',
        notes='Partner agreement in place. Low risk.',
    ),
    Network(
        id='reditus',
        name='Reditus',
        domain_patterns=('reditus.com', '*.reditus.com'),
        tos_level=1,
        api_available=True,
        signup_url='https://reditus.com/signup/',
        dashboard_url='https://app.reditus.com/',
        notes='Partner agreement in place. Low risk.',
    ),
    Network(
        id='amazon-associates',
        name='Amazon Associates',
        domain_patterns=(
            'affiliate-program.amazon.com', '*.affiliate-program.amazon.com',
            'associates.amazon.com', 'affiliate.amazon.com',
        ),
        tos_level=2,
        api_available=True,
        signup_url='https://affiliate-program.amazon.com/signup',
        dashboard_url='https://affiliate-program.amazon.com/home',
        notes='Strict ToS. Manual signup only; human-guided assistance permitted.',
    ),
    Network(
        id='teachable',
        name='Teachable',
        domain_patterns=('teachable.com', '*.teachable.com'),
        path_patterns=('/partners',),
        tos_level=2,
        api_available=False,
        signup_url='https://teachable.com/partners',
        dashboard_url='https://teachable.com/partners/dashboard',
        notes='Partner program signup is human-guided only.',
    ),
)


# =============================================================================
# LOADING
# =============================================================================

def merge_networks(base: Iterable[Network], overrides: Iterable[Network]) -> Tuple[Network, ...]:
    """Merge override records into base records by id, preserving order.

    An override with an existing id replaces that record in place; new ids
    are appended.
    """
    merged: Dict[str, Network] = {n.id: n for n in base}
    for network in overrides:
        merged[network.id] = network
    return tuple(merged.values())


def load_registry(path: Optional[Path] = None) -> Tuple[Network, ...]:
    """Return the built-in records, merged with a JSON override file if given.

    A missing file is ignored. A malformed file raises ValueError so a bad
    registry never silently widens automation.
    """
    if path is None:
        return BUILTIN_NETWORKS

    path = Path(path)
    if not path.exists():
        logger.warning("Registry file %s not found, using built-in networks", path)
        return BUILTIN_NETWORKS

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        records = data.get('networks', []) if isinstance(data, dict) else data
        overrides = [Network.from_dict(r) for r in records]
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Invalid registry file {path}: {e}") from e

    logger.info("Loaded %d network override(s) from %s", len(overrides), path)
    return merge_networks(BUILTIN_NETWORKS, overrides)
