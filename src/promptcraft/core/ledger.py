"""
Session ledger: the ordered prompt records and the cumulative token counter.

The ledger is the only mutable shared state of a session. Every mutation reads
the current state under the lock and replaces it, so completions that arrive
out of order never overwrite each other with a stale copy.
"""

import threading
from collections.abc import Callable, Iterable

from promptcraft.core.config import DAILY_TOKEN_LIMIT, MAX_RECORDS
from promptcraft.core.models import LedgerStats, PromptRecord, TokenUsage
from promptcraft.logging_config import get_logger

logger = get_logger(__name__)

ChangeListener = Callable[[], None]


class SessionLedger:
    """Ordered prompt records (front = newest) plus a monotonic token counter."""

    def __init__(self, daily_limit: int = DAILY_TOKEN_LIMIT, max_records: int = MAX_RECORDS) -> None:
        self._lock = threading.Lock()
        self._records: tuple[PromptRecord, ...] = ()
        self._tokens = 0
        self._listeners: list[ChangeListener] = []
        self.daily_limit = daily_limit
        self.max_records = max_records

    @property
    def records(self) -> tuple[PromptRecord, ...]:
        """Snapshot of the records, newest first."""
        return self._records

    @property
    def cumulative_tokens(self) -> int:
        return self._tokens

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> PromptRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def stats(self) -> LedgerStats:
        used = self._tokens
        return LedgerStats(
            cumulative_tokens=used,
            daily_limit=self.daily_limit,
            remaining_budget=max(0, self.daily_limit - used),
            percent_used=used / self.daily_limit * 100,
        )

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register listener to be called after every mutation; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def add_usage(self, usage: TokenUsage | None) -> int:
        """
        Add usage.total_token_count to the counter.

        Missing usage or a zero/negative total adds nothing.

        Returns:
            The number of tokens added
        """
        total = usage.total_token_count if usage is not None else 0
        if not total or total < 0:
            return 0
        with self._lock:
            self._tokens += total
            current = self._tokens
        logger.debug("Token usage +%d (session total %d)", total, current)
        self._notify()
        return total

    def prepend(self, records: Iterable[PromptRecord]) -> None:
        """Insert records at the front, preserving their order, then truncate to max_records."""
        batch = tuple(records)
        if not batch:
            return
        with self._lock:
            combined = batch + self._records
            dropped = max(0, len(combined) - self.max_records)
            self._records = combined[: self.max_records]
        if dropped:
            logger.debug("Dropped %d oldest record(s) over cap %d", dropped, self.max_records)
        self._notify()

    def update(
        self, record_id: str, fn: Callable[[PromptRecord], PromptRecord]
    ) -> PromptRecord | None:
        """
        Replace the record with id record_id by fn(current record).

        fn receives the latest state of the record, not a caller-held copy.
        Position and id are preserved.

        Returns:
            The updated record, or None if no record has that id
        """
        with self._lock:
            updated: PromptRecord | None = None
            new_records = []
            for record in self._records:
                if record.id == record_id and updated is None:
                    updated = fn(record)
                    if updated.id != record_id:
                        raise ValueError("Record updates must not change the record id")
                    new_records.append(updated)
                else:
                    new_records.append(record)
            if updated is None:
                logger.debug("Update for unknown record id=%s ignored", record_id)
                return None
            self._records = tuple(new_records)
        self._notify()
        return updated

    def restore(self, records: Iterable[PromptRecord], cumulative_tokens: int) -> None:
        """Load persisted state at start-up. Does not notify listeners."""
        with self._lock:
            self._records = tuple(records)[: self.max_records]
            self._tokens = max(0, int(cumulative_tokens))
