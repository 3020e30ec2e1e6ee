#!/usr/bin/env python3
"""
Tests for the ToS risk classifier and the network registry.

Run: python -m pytest tests/test_risk_classifier.py -v
"""

import json
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from signupguard.core.types import AutomationMode, Network, RiskLevel, ToSTier
from signupguard.core.access.network_registry import (
    BUILTIN_NETWORKS, load_registry, merge_networks,
)
from signupguard.core.access.risk_classifier import RiskClassifier, parse_host_and_path


@pytest.fixture
def classifier():
    return RiskClassifier()


# =============================================================================
# Scenarios
# =============================================================================

class TestScenarios:

    def test_amazon_signup_is_human_guided(self, classifier):
        url = "https://affiliate-program.amazon.com/signup"
        tier, policy = classifier.policy_for_url(url)
        assert tier == 2
        assert policy.permitted is False
        assert policy.max_mode == AutomationMode.HUMAN_GUIDED
        assert policy.risk_level == RiskLevel.HIGH

    def test_localhost_is_full_auto(self, classifier):
        tier, policy = classifier.policy_for_url("http://localhost:3000")
        assert tier == 0
        assert policy.permitted is True
        assert policy.max_mode == AutomationMode.FULL_AUTO
        assert policy.risk_level == RiskLevel.LOW


# =============================================================================
# URL parsing
# =============================================================================

class TestParseHost:

    def test_full_url(self):
        assert parse_host_and_path("https://WWW.ShareASale.com/info/") == ("www.shareasale.com", "/info/")

    def test_bare_host_with_port(self):
        assert parse_host_and_path("localhost:3000") == ("localhost", "/")

    def test_trailing_dot_stripped(self):
        assert parse_host_and_path("https://cj.com./x")[0] == "cj.com"

    def test_empty(self):
        assert parse_host_and_path("") == ("", "")


# =============================================================================
# Detection
# =============================================================================

class TestDetect:

    @pytest.mark.parametrize("url,expected", [
        ("https://www.shareasale.com/info/affiliates/", "shareasale"),
        ("https://shareasale.com", "shareasale"),
        ("https://signup.cj.com/member/signup/publisher/", "cj-affiliate"),
        ("https://impact.radius.com/login", "impact"),
        ("https://cli.linksynergy.com/cli/publisher/home.php", "rakuten"),
        ("https://accounts.clickbank.com/signup/", "clickbank"),
        ("https://dash.partnerstack.com/signup", "partnerstack"),
        ("https://app.reditus.com/", "reditus"),
        ("https://associates.amazon.com/", "amazon-associates"),
        ("https://teachable.com/partners/apply", "teachable"),
    ])
    def test_known_networks(self, classifier, url, expected):
        network = classifier.detect(url)
        assert network is not None
        assert network.id == expected

    def test_unknown_domain(self, classifier):
        assert classifier.detect("https://example.org/signup") is None

    def test_path_pattern_required(self, classifier):
        assert classifier.detect("https://teachable.com/courses") is None

    def test_suffix_lookalike_not_matched(self, classifier):
        assert classifier.detect("https://evilcj.com/") is None
        assert classifier.detect("https://cj.com.evil.net/") is None

    def test_amazon_retail_not_matched(self, classifier):
        assert classifier.detect("https://www.amazon.com/dp/B000") is None

    def test_most_specific_wins(self):
        generic = Network(id='generic', name='Generic', domain_patterns=('*.example.com',),
                          tos_level=1, api_available=False)
        exact = Network(id='exact', name='Exact', domain_patterns=('shop.example.com',),
                        tos_level=2, api_available=False)
        pathed = Network(id='pathed', name='Pathed', domain_patterns=('*.example.com',),
                         path_patterns=('/partners',), tos_level=3, api_available=False)
        classifier = RiskClassifier([generic, exact, pathed])

        assert classifier.detect("https://blog.example.com/").id == 'generic'
        assert classifier.detect("https://shop.example.com/").id == 'exact'
        assert classifier.detect("https://shop.example.com/partners/join").id == 'pathed'

    def test_longer_wildcard_beats_shorter(self):
        short = Network(id='short', name='Short', domain_patterns=('*.example.com',),
                        tos_level=1, api_available=False)
        longer = Network(id='longer', name='Longer', domain_patterns=('*.eu.example.com',),
                         tos_level=2, api_available=False)
        classifier = RiskClassifier([short, longer])
        assert classifier.detect("https://shop.eu.example.com").id == 'longer'


# =============================================================================
# Tiers
# =============================================================================

class TestToSLevel:

    @pytest.mark.parametrize("url", [
        "http://localhost:3000",
        "http://127.0.0.1:8080/signup",
        "http://127.5.5.5/",
        "http://[::1]:5000/",
        "http://192.168.1.20/register",
        "http://10.0.0.7/",
        "http://172.16.4.1/",
        "http://169.254.10.10/",
        "http://printer.local/",
    ])
    def test_safe_hosts_are_tier_zero(self, classifier, url):
        assert classifier.tos_level(url) == 0

    def test_unknown_public_domain_defaults_to_tier_one(self, classifier):
        assert classifier.tos_level("https://example.org/signup") == 1
        assert classifier.tos_level("http://8.8.8.8/") == 1

    def test_registry_tier(self, classifier):
        assert classifier.tos_level("https://www.shareasale.com/") == 1
        assert classifier.tos_level("https://affiliate-program.amazon.com/") == 2

    def test_out_of_range_tier_fails_closed(self):
        assert ToSTier.from_value(9) == ToSTier.NEVER
        assert ToSTier.from_value("x") == ToSTier.NEVER


# =============================================================================
# Policies
# =============================================================================

class TestClassify:

    def test_tier_one_generic_is_medium(self, classifier):
        policy = classifier.classify("shareasale")
        assert policy.permitted is True
        assert policy.max_mode == AutomationMode.FULL_AUTO
        assert policy.risk_level == RiskLevel.MEDIUM

    @pytest.mark.parametrize("network_id", ["partnerstack", "reditus"])
    def test_whitelisted_partners_are_low(self, classifier, network_id):
        assert classifier.classify(network_id).risk_level == RiskLevel.LOW

    def test_tier_three_policy(self):
        policy = RiskClassifier.policy_for_tier(3)
        assert policy.permitted is False
        assert policy.max_mode == AutomationMode.NONE
        assert policy.risk_level == RiskLevel.EXTREME

    def test_unknown_id(self, classifier):
        assert classifier.classify("no-such-network") is None

    def test_classify_is_deterministic(self, classifier):
        assert classifier.classify("impact") == classifier.classify("impact")

    def test_safe_url_is_not_pinned_by_registry(self, classifier):
        tier, policy = classifier.policy_for_url("http://127.0.0.1/")
        assert tier == 0
        assert policy.risk_level == RiskLevel.LOW


# =============================================================================
# Registry queries
# =============================================================================

class TestRegistryQueries:

    def test_list_networks_by_tier(self, classifier):
        tier2 = {n.id for n in classifier.list_networks(tos_level=2)}
        assert tier2 == {'amazon-associates', 'teachable'}
        assert len(classifier.list_networks()) == len(BUILTIN_NETWORKS)

    def test_networks_by_api(self, classifier):
        no_api = {n.id for n in classifier.networks_by_api(False)}
        assert no_api == {'clickbank', 'teachable'}

    def test_networks_by_risk(self, classifier):
        low = {n.id for n in classifier.networks_by_risk('low')}
        assert low == {'partnerstack', 'reditus'}
        high = {n.id for n in classifier.networks_by_risk(RiskLevel.HIGH)}
        assert high == {'amazon-associates', 'teachable'}

    def test_search(self, classifier):
        assert [n.id for n in classifier.search("rakuten")] == ['rakuten']
        assert [n.id for n in classifier.search("linkshare")] == ['rakuten']
        assert classifier.search("") == []

    def test_is_known_network(self, classifier):
        assert classifier.is_known_network("https://cj.com/")
        assert not classifier.is_known_network("https://example.org/")


class TestLoadRegistry:

    def test_no_path_returns_builtins(self):
        assert load_registry(None) == BUILTIN_NETWORKS

    def test_missing_file_returns_builtins(self, tmp_path):
        assert load_registry(tmp_path / "absent.json") == BUILTIN_NETWORKS

    def test_override_and_extend(self, tmp_path):
        path = tmp_path / "registry.json"
        path.write_text(json.dumps({"networks": [
            {"id": "clickbank", "name": "ClickBank", "domain_patterns": ["clickbank.com"],
             "tos_level": 3, "api_available": False},
            {"id": "bank", "name": "Some Bank", "domain_patterns": ["*.bank.test"],
             "tos_level": 3, "api_available": False},
        ]}))
        networks = load_registry(path)
        by_id = {n.id: n for n in networks}
        assert by_id['clickbank'].tos_level == 3
        assert 'bank' in by_id
        assert len(networks) == len(BUILTIN_NETWORKS) + 1

        classifier = RiskClassifier(networks)
        assert classifier.tos_level("https://online.bank.test/") == 3

    def test_malformed_file_raises(self, tmp_path):
        path = tmp_path / "registry.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            load_registry(path)

    def test_merge_preserves_order(self):
        a = Network(id='a', name='A', domain_patterns=('a.test',), tos_level=1, api_available=False)
        b = Network(id='b', name='B', domain_patterns=('b.test',), tos_level=1, api_available=False)
        a2 = Network(id='a', name='A2', domain_patterns=('a.test',), tos_level=2, api_available=False)
        merged = merge_networks([a, b], [a2])
        assert [n.name for n in merged] == ['A2', 'B']
