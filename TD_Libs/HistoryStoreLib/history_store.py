"""
Bounded, quota-aware history of generated artifacts.

The store keeps a newest-first list of at most max_items artifacts and
mirrors it into a single slot of a StorageMedium as a JSON array of
artifact records.

When the medium rejects a write for capacity reasons the store drops the
oldest candidate and retries, down to a single item. The in-memory list
is updated regardless, so on quota pressure the persisted list can be a
shorter prefix of it (or, if even one item does not fit, stale). Each
mutation reports what actually reached the medium in a PersistOutcome.

Classes:
    PersistStatus: What happened to a write
    PersistOutcome: Status, number of items persisted, error text
    CommittedHistory: The in-memory list after a mutation plus its outcome
    BoundedHistoryStore: The store
"""

import json
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Iterator, Optional, Tuple

from TD_Libs.constants import HISTORY_STORAGE_KEY, MAX_HISTORY_ITEMS
from TD_Libs.exceptions import PersistenceError, QuotaExceededError
from TD_Libs.HistoryStoreLib.artifact import GeneratedArtifact
from TD_Libs.HistoryStoreLib.storage_medium import StorageMedium, get_default_medium

logger = logging.getLogger(__name__)


class PersistStatus(str, Enum):
    PERSISTED = "persisted"
    DEGRADED = "degraded"
    MEMORY_ONLY = "memory_only"
    FAILED = "failed"


@dataclass(frozen=True)
class PersistOutcome:
    """Result of writing the history to the medium.

    Attributes:
        status: PERSISTED (everything written), DEGRADED (a shorter prefix
                written after quota errors), MEMORY_ONLY (not even one item
                fit), FAILED (non-capacity error)
        persisted_count: Items written by this operation
        error: Message of the last error, if any
    """
    status: PersistStatus
    persisted_count: int = 0
    error: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.status == PersistStatus.PERSISTED


@dataclass(frozen=True)
class CommittedHistory:
    """Newest-first artifacts after a mutation, with the persistence outcome."""
    items: Tuple[GeneratedArtifact, ...]
    outcome: PersistOutcome

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[GeneratedArtifact]:
        return iter(self.items)

    def __getitem__(self, index):
        return self.items[index]

    @property
    def timestamps(self) -> Tuple[int, ...]:
        return tuple(item.created_at_ms for item in self.items)


class BoundedHistoryStore:
    """
    Newest-first artifact history persisted to a size-constrained medium.

    Mutations are serialized with a re-entrant lock, so one store may be
    shared between threads.

    Args:
        medium: Storage medium (default: the process-wide medium, resolved on first use)
        key: Slot name inside the medium
        max_items: Upper bound on the in-memory list

    Example:
        >>> store = BoundedHistoryStore(InMemoryMedium(quota_chars=2_000_000))
        >>> committed = store.add(artifact)
        >>> committed.outcome.status
        <PersistStatus.PERSISTED: 'persisted'>
    """

    def __init__(
        self,
        medium: Optional[StorageMedium] = None,
        key: str = HISTORY_STORAGE_KEY,
        max_items: int = MAX_HISTORY_ITEMS,
    ) -> None:
        if int(max_items) < 1:
            raise ValueError(f"max_items must be >= 1, got {max_items}")
        key = str(key).strip()
        if not key:
            raise ValueError("key cannot be empty")

        self.key = key
        self.max_items = int(max_items)
        self._medium = medium
        self._items: Optional[Tuple[GeneratedArtifact, ...]] = None
        self._lock = threading.RLock()

    @property
    def medium(self) -> StorageMedium:
        if self._medium is None:
            self._medium = get_default_medium()
        return self._medium

    @property
    def items(self) -> Tuple[GeneratedArtifact, ...]:
        """Current newest-first list, loaded from the medium on first access."""
        with self._lock:
            if self._items is None:
                self._items = self._load()
            return self._items

    def __len__(self) -> int:
        return len(self.items)

    def get(self, created_at_ms: int) -> Optional[GeneratedArtifact]:
        for item in self.items:
            if item.created_at_ms == created_at_ms:
                return item
        return None

    def reload(self) -> Tuple[GeneratedArtifact, ...]:
        """Discard the in-memory list and read the medium again."""
        with self._lock:
            self._items = None
            return self.items

    def _load(self) -> Tuple[GeneratedArtifact, ...]:
        raw = self.medium.get_item(self.key)
        if raw is None:
            return ()

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning(f"Ignoring unreadable history in '{self.key}': {exc}")
            return ()

        if not isinstance(payload, list):
            logger.warning(f"Ignoring history in '{self.key}': expected a list, got {type(payload).__name__}")
            return ()

        items = []
        for record in payload:
            try:
                items.append(GeneratedArtifact.from_dict(record))
            except ValueError as exc:
                logger.warning(f"Skipping malformed history record: {exc}")
        return tuple(items[: self.max_items])

    def _write(self, items: Tuple[GeneratedArtifact, ...]) -> None:
        serialized = json.dumps([item.to_dict() for item in items])
        self.medium.set_item(self.key, serialized)

    def _persist(self, candidate: Tuple[GeneratedArtifact, ...]) -> PersistOutcome:
        attempt = candidate
        while True:
            try:
                self._write(attempt)
            except QuotaExceededError as exc:
                if len(attempt) > 1:
                    logger.debug(f"Quota exceeded writing {len(attempt)} item(s), retrying with {len(attempt) - 1}")
                    attempt = attempt[:-1]
                    continue
                logger.warning(f"History item too large for storage quota, kept in memory only: {exc}")
                return PersistOutcome(PersistStatus.MEMORY_ONLY, 0, str(exc))
            except (PersistenceError, OSError) as exc:
                logger.error(f"Could not persist history: {exc}")
                return PersistOutcome(PersistStatus.FAILED, 0, str(exc))

            if len(attempt) < len(candidate):
                logger.info(f"Storage quota reached: persisted {len(attempt)} of {len(candidate)} history item(s)")
                return PersistOutcome(PersistStatus.DEGRADED, len(attempt))
            return PersistOutcome(PersistStatus.PERSISTED, len(attempt))

    def add(self, item: GeneratedArtifact) -> CommittedHistory:
        """
        Prepend an artifact and persist the bounded list.

        The list is truncated to max_items before the write. Quota errors
        shrink the written list from the oldest end until it fits or only
        the new item is left. The in-memory list always includes the new
        item.

        Args:
            item: Artifact to add

        Returns:
            CommittedHistory with the new in-memory list and the write outcome
        """
        if not isinstance(item, GeneratedArtifact):
            raise TypeError(f"Expected GeneratedArtifact, got {type(item)}")

        with self._lock:
            updated = ((item,) + self.items)[: self.max_items]
            outcome = self._persist(updated)
            self._items = updated
            return CommittedHistory(updated, outcome)

    def remove(self, ids: AbstractSet[int]) -> CommittedHistory:
        """
        Remove every artifact whose timestamp is in ids and persist the rest.

        If not even the newest remaining artifact fits the quota, the slot is
        emptied so deleted records never come back on the next load.

        Args:
            ids: Timestamps of the artifacts to delete

        Returns:
            CommittedHistory with the remaining artifacts
        """
        with self._lock:
            remaining = tuple(item for item in self.items if item.created_at_ms not in ids)
            outcome = self._persist(remaining) if remaining else self._write_empty()
            if outcome.status == PersistStatus.MEMORY_ONLY:
                emptied = self._write_empty()
                if emptied.status == PersistStatus.FAILED:
                    outcome = emptied
            self._items = remaining
            return CommittedHistory(remaining, outcome)

    def _write_empty(self) -> PersistOutcome:
        try:
            self._write(())
        except (PersistenceError, OSError) as exc:
            logger.error(f"Could not persist history: {exc}")
            return PersistOutcome(PersistStatus.FAILED, 0, str(exc))
        return PersistOutcome(PersistStatus.PERSISTED, 0)

    def clear(self) -> PersistOutcome:
        """Empty the in-memory list and remove the slot from the medium."""
        with self._lock:
            self._items = ()
            try:
                self.medium.remove_item(self.key)
            except (PersistenceError, OSError) as exc:
                logger.error(f"Could not clear persisted history: {exc}")
                return PersistOutcome(PersistStatus.FAILED, 0, str(exc))
            return PersistOutcome(PersistStatus.PERSISTED, 0)
