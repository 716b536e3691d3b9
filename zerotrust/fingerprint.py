"""
fingerprint.py
--------------
Deterministic one-way digest of a TransactionEvent, used to correlate and
audit decisions without keeping raw fields around.

SHA-256 over a canonical JSON form (sorted keys, compact separators, every
field included), hex-encoded and truncated. This is a plain hash, not a
zero-knowledge proof.
"""

from __future__ import annotations

import hashlib
import json

from .config import DEFAULT_FINGERPRINT_LENGTH
from .schemas import TransactionEvent


def canonical_payload(event: TransactionEvent) -> bytes:
    return json.dumps(
        event.model_dump(mode="json"),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("utf-8")


def generate_fingerprint(event: TransactionEvent, length: int = DEFAULT_FINGERPRINT_LENGTH) -> str:
    """Return the first `length` hex characters of SHA-256(canonical event)."""
    digest = hashlib.sha256(canonical_payload(event)).hexdigest()
    return digest[:length]
