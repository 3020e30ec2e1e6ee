#!/usr/bin/env python3
"""
SignupGuard Core Store — JSON Compliance Store
================================================
Optional persistence collaborator for the compliance recorder and the
session manager. Holds two collections:

1. Compliance entries, oldest first, bounded to max_entries
2. Per-network signup status ({"status": "completed", "date": ...})

The assistant works fully in memory without a store. When one is given,
writes are fire-and-forget: failures are logged here and reported as a
False return, never raised into the signup workflow.

File: data/compliance_store.json

Import from: signupguard.core.store.json_store
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from signupguard.core.constants import MAX_STORE_ENTRIES
from signupguard.core.version import STORE_SCHEMA_VERSION

__all__ = ['JsonComplianceStore']

logger = logging.getLogger("signupguard.core.store.json_store")


class JsonComplianceStore:
    """Thread-safe JSON file store for compliance entries and network status.

    Usage:
        store = JsonComplianceStore(config.store_file)
        store.append_compliance_log(entry.to_dict())
        store.update_network_status("shareasale", {"status": "completed"})
        store.get_network_status("shareasale")
    """

    def __init__(self, path, max_entries: int = MAX_STORE_ENTRIES,
                 autosave: bool = True):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._entries: List[Dict] = []
        self._networks: Dict[str, Dict] = {}
        self._loaded = False
        self.max_entries = max_entries
        self.autosave = autosave

    def _ensure_loaded(self):
        """Lazy-load from file on first access.

        Must be called with self._lock held.
        """
        if self._loaded:
            return

        if self._path.exists():
            try:
                with open(self._path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self._entries = data.get('entries', [])
                self._networks = data.get('networks', {})
            except (json.JSONDecodeError, OSError) as e:
                logger.error("Cannot read compliance store %s: %s", self._path, e)
                self._entries = []
                self._networks = {}

        self._loaded = True

    # -------------------------------------------------------------------------
    # Collaborator interface
    # -------------------------------------------------------------------------

    def append_compliance_log(self, entry: Dict) -> bool:
        with self._lock:
            self._ensure_loaded()
            self._entries.append(dict(entry))
            if len(self._entries) > self.max_entries:
                self._entries = self._entries[-self.max_entries:]
        return self.save() if self.autosave else True

    def update_network_status(self, network_id: str, status: Dict) -> bool:
        with self._lock:
            self._ensure_loaded()
            record = dict(self._networks.get(network_id, {}))
            record.update(status)
            record['updated_at'] = datetime.now().isoformat()
            self._networks[network_id] = record
        return self.save() if self.autosave else True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_network_status(self, network_id: str) -> Optional[Dict]:
        with self._lock:
            self._ensure_loaded()
            record = self._networks.get(network_id)
            return dict(record) if record is not None else None

    def entries(self, network_id: Optional[str] = None) -> List[Dict]:
        with self._lock:
            self._ensure_loaded()
            if network_id is None:
                return list(self._entries)
            return [e for e in self._entries if e.get('network_id') == network_id]

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self) -> bool:
        """Save the store to disk.

        Returns True on success.
        """
        with self._lock:
            self._ensure_loaded()
            data = {
                '_schema_version': STORE_SCHEMA_VERSION,
                'entries': list(self._entries),
                'networks': dict(self._networks),
            }

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create directory: %s", e)
            return False

        # Write atomically
        tmp_path = self._path.with_suffix('.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, default=str)
                f.write('\n')
            tmp_path.replace(self._path)
            return True
        except OSError as e:
            logger.error("Cannot write compliance store: %s", e)
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass
            return False

    @property
    def path(self) -> str:
        return str(self._path)
