#!/usr/bin/env python3
"""
SignupGuard Core Crypto — Audit Entry Signer
==============================================
ECDSA P-256 signatures over critical compliance entries.

The signing key is a PKCS8 PEM file created on first use (mode 0600).
Each signed record carries the SHA-256 of the canonical entry JSON, the
signature over that hash, and the hash of the previously signed record,
so the signed log forms its own chain.

Import from: signupguard.core.crypto.signer
"""

import os
import json
import hashlib
import logging
import threading
from pathlib import Path
from datetime import datetime
from typing import Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

logger = logging.getLogger("signupguard.core.crypto.signer")

__all__ = ['EntrySigner', 'canonical_json']


def canonical_json(data: Dict) -> str:
    return json.dumps(data, sort_keys=True, separators=(',', ':'))


class EntrySigner:
    """Sign and verify compliance entries with a local EC key."""

    def __init__(self, key_file: Optional[Path] = None, private_key=None):
        self._lock = threading.Lock()
        self.key_file = Path(key_file) if key_file is not None else None
        self.previous_hash = "0" * 64
        if private_key is not None:
            self._key = private_key
        elif self.key_file is not None:
            self._key = self._load_or_create(self.key_file)
        else:
            self._key = ec.generate_private_key(ec.SECP256R1())

    @staticmethod
    def _load_or_create(key_file: Path):
        if key_file.exists():
            key = serialization.load_pem_private_key(key_file.read_bytes(), password=None)
            if not isinstance(key, ec.EllipticCurvePrivateKey):
                raise ValueError(f"{key_file} does not hold an EC private key")
            return key

        key_file.parent.mkdir(parents=True, exist_ok=True)
        key = ec.generate_private_key(ec.SECP256R1())
        key_file.write_bytes(key.private_bytes(
            serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption()))
        try:
            os.chmod(key_file, 0o600)
        except OSError:
            pass
        logger.info("Generated audit signing key: %s", key_file)
        return key

    def public_key_pem(self) -> bytes:
        return self._key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo)

    def sign_entry(self, entry: Dict) -> Dict:
        """Return a signed record for one entry dict."""
        with self._lock:
            entry_hash = hashlib.sha256(canonical_json(entry).encode()).hexdigest()
            signature = self._key.sign(
                f"{self.previous_hash}:{entry_hash}".encode(),
                ec.ECDSA(hashes.SHA256()))
            record = {
                'timestamp': datetime.now().isoformat(),
                'action': entry.get('action'),
                'data': entry,
                'entry_hash': entry_hash,
                'signature': signature.hex(),
                'previous_hash': self.previous_hash,
            }
            self.previous_hash = entry_hash
            return record

    def verify(self, record: Dict, public_key=None) -> bool:
        """Check a signed record's hash and signature."""
        public_key = public_key or self._key.public_key()
        entry_hash = hashlib.sha256(canonical_json(record.get('data', {})).encode()).hexdigest()
        if entry_hash != record.get('entry_hash'):
            return False
        try:
            public_key.verify(
                bytes.fromhex(record.get('signature', '')),
                f"{record.get('previous_hash', '')}:{entry_hash}".encode(),
                ec.ECDSA(hashes.SHA256()))
        except (InvalidSignature, ValueError):
            return False
        return True
