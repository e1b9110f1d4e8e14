"""Utility helpers for generating deterministic content hashes.

Provides stable hashing of Popolo bills, used to compare classifier runs and
to label dry-run output.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from ..models.bill import Bill


def _normalized_json(payload: Any) -> str:
    """Serialize payload to a deterministic JSON string."""
    return json.dumps(
        payload,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
    )


def calculate_hash(payload: Any) -> str:
    """Produce a SHA-256 hash for the given payload."""
    normalized = _normalized_json(payload)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def compute_bill_hash(bill: Bill) -> str:
    """Compute a deterministic content hash of the bill as sent to billit."""
    return calculate_hash(bill.to_popolo())
