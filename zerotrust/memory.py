"""
ZeroTrust Oracle - Pattern Memory
=================================

Bounded, insertion-ordered store of (event, decision, outcome) entries.
Writers are serialized by a lock; similarity queries run against a snapshot
copied under that lock, so readers never see a half-applied eviction.
"""

import logging
import threading
from collections import OrderedDict
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import DEFAULT_MEMORY_CAPACITY
from .errors import UnknownDecisionError
from .schemas import MemoryEntry, Outcome, TransactionEvent

logger = logging.getLogger(__name__)


def similarity_vector(event: TransactionEvent) -> np.ndarray:
    return np.array(
        [event.amount, event.contract_interactions, event.execution_time_seconds],
        dtype=np.float64,
    )


def cosine_similarity(a: TransactionEvent, b: TransactionEvent) -> float:
    """
    Cosine similarity over (amount, contract_interactions, execution_time_seconds).

    Returns 0.0 when either vector has zero norm.
    """
    va = similarity_vector(a)
    vb = similarity_vector(b)
    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


class PatternMemory:
    """FIFO-bounded memory keyed by decision id."""

    def __init__(self, capacity: int = DEFAULT_MEMORY_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._entries: "OrderedDict[int, MemoryEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, decision_id: int) -> bool:
        with self._lock:
            return decision_id in self._entries

    def append(self, entry: MemoryEntry) -> Optional[MemoryEntry]:
        """
        Append an entry, evicting the oldest one when full.

        Returns the evicted entry, if any.
        """
        decision_id = entry.decision.id
        evicted = None
        with self._lock:
            if decision_id in self._entries:
                raise ValueError(f"Decision {decision_id} is already in memory")
            if len(self._entries) >= self.capacity:
                _, evicted = self._entries.popitem(last=False)
            self._entries[decision_id] = entry

        if evicted is not None:
            logger.debug("Pattern memory full (%d), evicted decision %d", self.capacity, evicted.decision.id)
        return evicted

    def get(self, decision_id: int) -> MemoryEntry:
        with self._lock:
            try:
                return self._entries[decision_id]
            except KeyError:
                raise UnknownDecisionError(decision_id) from None

    def mark_outcome(self, decision_id: int, outcome: Outcome) -> MemoryEntry:
        """Attach the ground-truth outcome to a remembered decision."""
        with self._lock:
            entry = self._entries.get(decision_id)
            if entry is None:
                raise UnknownDecisionError(decision_id)
            entry.outcome = outcome
            return entry

    def snapshot(self) -> Tuple[MemoryEntry, ...]:
        """Oldest-first copy of the current entries."""
        with self._lock:
            return tuple(self._entries.values())

    def find_similar(
        self,
        event: TransactionEvent,
        threshold: float,
        entries: Optional[Sequence[MemoryEntry]] = None,
    ) -> List[MemoryEntry]:
        """Entries whose similarity to `event` is at least `threshold`, oldest first."""
        pool = self.snapshot() if entries is None else entries
        return [e for e in pool if cosine_similarity(e.event, event) >= threshold]

    def best_similarity(
        self,
        event: TransactionEvent,
        entries: Optional[Sequence[MemoryEntry]] = None,
    ) -> float:
        pool = self.snapshot() if entries is None else entries
        if not pool:
            return 0.0
        return max(cosine_similarity(e.event, event) for e in pool)
