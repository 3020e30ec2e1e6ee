"""
SignupGuard Configuration — AssistantConfig
=============================================
Central configuration dataclass with defaults for all assistant settings.

Import from: signupguard.core.config
"""

import os
from pathlib import Path
from dataclasses import dataclass, field

from signupguard.core.constants import (
    DEFAULT_SUBMIT_TIMEOUT_MS, FILL_HIGHLIGHT_MS, MAX_STORE_ENTRIES,
)


@dataclass
class AssistantConfig:
    base_dir: Path = field(default_factory=lambda: Path(
        os.environ.get('SIGNUPGUARD_HOME', str(Path.home() / '.signupguard'))))
    log_dir: Path = None
    store_file: Path = None
    registry_file: Path = None          # Optional JSON overrides for the network registry
    signing_key_file: Path = None

    persist_log: bool = False           # Write compliance.log under log_dir
    sign_critical_entries: bool = False  # ECDSA-sign critical entries to signed.log

    submit_timeout_ms: int = DEFAULT_SUBMIT_TIMEOUT_MS
    highlight_ms: int = FILL_HIGHLIGHT_MS
    max_store_entries: int = MAX_STORE_ENTRIES

    def __post_init__(self):
        self.base_dir = Path(self.base_dir)
        if self.log_dir is None:
            self.log_dir = self.base_dir / "logs"
        if self.store_file is None:
            self.store_file = self.base_dir / "data" / "compliance_store.json"
        if self.signing_key_file is None:
            self.signing_key_file = self.base_dir / "keys" / "audit_signing_key.pem"
        if self.registry_file is not None:
            self.registry_file = Path(self.registry_file)


__all__ = ['AssistantConfig']
