#!/usr/bin/env python3
"""
SignupGuard Core Audit — Compliance Recorder
==============================================
Append-only, tamper-evident audit trail for every gate decision:
- Chain hashing for integrity (sequence + SHA-256 over the previous hash)
- PII redaction of entry details via PIIProtector
- Optional ECDSA signing of critical entries to signed.log
- Optional forwarding to a persistent store collaborator

Entries are immutable ComplianceLogEntry records. Nothing here ever
removes or rewrites an entry.

Import from: signupguard.core.audit.recorder
"""

import json
import hashlib
import secrets
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional

from signupguard.core.types import ComplianceLevel, ComplianceLogEntry
from signupguard.core.constants import SESSION_ID_BYTES
from signupguard.core.version import LOG_SCHEMA_VERSION
from signupguard.core.analysis.pii_protector import PIIProtector

__all__ = ['ComplianceRecorder', 'GENESIS_HASH']

logger = logging.getLogger("signupguard.core.audit.recorder")

GENESIS_HASH = "0" * 64


def _entry_digest(previous_hash: str, entry: ComplianceLogEntry) -> str:
    body = entry.to_dict()
    body.pop('chain_hash', None)
    payload = json.dumps(body, sort_keys=True, default=str)
    return hashlib.sha256(f"{previous_hash}:{payload}".encode()).hexdigest()


class ComplianceRecorder:
    """Tamper-evident compliance log with PII redaction and optional signing."""

    def __init__(self, config=None, store=None, signer=None):
        self.config = config
        self.store = store
        self.signer = signer
        self.pii_protector = PIIProtector()

        self.session_id = secrets.token_hex(SESSION_ID_BYTES)
        self.previous_hash = GENESIS_HASH
        self.stats = defaultdict(int)
        self._entries: List[ComplianceLogEntry] = []
        self._lock = threading.Lock()

        self.log_file = None
        self.signed_log = None
        if config is not None and config.persist_log:
            config.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = config.log_dir / "compliance.log"
        if config is not None and config.sign_critical_entries and signer is not None:
            config.log_dir.mkdir(parents=True, exist_ok=True)
            self.signed_log = config.log_dir / "signed.log"

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record(self, action: str, level: ComplianceLevel = ComplianceLevel.INFO,
               network_id: Optional[str] = None,
               human_approved: Optional[bool] = None,
               details: Optional[Dict[str, Any]] = None) -> ComplianceLogEntry:
        """Append one entry and return it."""
        if details:
            details = self.pii_protector.redact_for_logging(dict(details))

        with self._lock:
            sequence = len(self._entries) + 1
            draft = ComplianceLogEntry(
                action=action, level=level, network_id=network_id,
                human_approved=human_approved, details=details or {},
                sequence=sequence,
            )
            chain_hash = _entry_digest(self.previous_hash, draft)
            entry = ComplianceLogEntry(
                action=draft.action, level=draft.level, network_id=draft.network_id,
                human_approved=draft.human_approved, timestamp=draft.timestamp,
                details=draft.details, sequence=sequence, chain_hash=chain_hash,
            )
            self._entries.append(entry)
            self.previous_hash = chain_hash
            self.stats[f'{level.value}_{action}'] += 1
            self._write(entry)

        self._mirror(entry)
        self._forward(entry)
        return entry

    def info(self, action: str, **kwargs) -> ComplianceLogEntry:
        return self.record(action, ComplianceLevel.INFO, **kwargs)

    def warning(self, action: str, **kwargs) -> ComplianceLogEntry:
        return self.record(action, ComplianceLevel.WARNING, **kwargs)

    def critical(self, action: str, **kwargs) -> ComplianceLogEntry:
        return self.record(action, ComplianceLevel.CRITICAL, **kwargs)

    def _write(self, entry: ComplianceLogEntry) -> None:
        """Persist to compliance.log / signed.log. Called with the lock held."""
        if self.log_file is None and self.signed_log is None:
            return
        data = entry.to_dict()
        data.update({'session_id': self.session_id, 'schema': LOG_SCHEMA_VERSION})
        try:
            if self.log_file is not None:
                with open(self.log_file, 'a', encoding='utf-8') as f:
                    f.write(json.dumps(data, default=str) + '\n')
            if self.signed_log is not None and entry.level is ComplianceLevel.CRITICAL:
                signed = self.signer.sign_entry(data)
                with open(self.signed_log, 'a', encoding='utf-8') as f:
                    f.write(json.dumps(signed, default=str) + '\n')
        except OSError as e:
            logger.warning("Compliance log write failed: %s", e)

    def _mirror(self, entry: ComplianceLogEntry) -> None:
        if entry.level is ComplianceLevel.CRITICAL:
            logger.warning("[CRITICAL] %s network=%s", entry.action, entry.network_id)
        elif entry.level is ComplianceLevel.WARNING:
            logger.warning("%s network=%s", entry.action, entry.network_id)
        else:
            logger.info("%s network=%s", entry.action, entry.network_id)

    def _forward(self, entry: ComplianceLogEntry) -> None:
        """Hand the entry to the store. Store failures never reach the caller."""
        if self.store is None:
            return
        try:
            ok = self.store.append_compliance_log(entry.to_dict())
        except Exception as e:
            logger.warning("Compliance store write failed for %s: %s", entry.action, e)
            return
        if ok is False:
            logger.warning("Compliance store rejected %s", entry.action)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def entries(self) -> List[ComplianceLogEntry]:
        with self._lock:
            return list(self._entries)

    def entries_for(self, action: str) -> List[ComplianceLogEntry]:
        return [e for e in self.entries if e.action == action]

    def count(self, action: str) -> int:
        return len(self.entries_for(action))

    def verify_chain(self) -> bool:
        """Recompute the hash chain over in-memory entries."""
        previous = GENESIS_HASH
        for expected_seq, entry in enumerate(self.entries, start=1):
            if entry.sequence != expected_seq:
                return False
            if _entry_digest(previous, entry) != entry.chain_hash:
                return False
            previous = entry.chain_hash
        return True
