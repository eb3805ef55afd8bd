"""
Result reconciliation: apply completed API operations to the session ledger.

Each transition touches only the fields it owns on the record it targets, so
preview, modify and expand completions for different (or the same) records
may land in any order without losing updates.
"""

import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum

from promptcraft.core.ledger import SessionLedger
from promptcraft.core.models import (
    ExpansionResult,
    GenerationKind,
    PreviewResult,
    PromptRecord,
    TextResult,
)
from promptcraft.logging_config import get_logger

logger = get_logger(__name__)

VISION_RECORD_TITLE = "Structure Extract"


class OperationKind(str, Enum):
    EXPAND = "expand"
    EXTRACT = "extract"
    MODIFY = "modify"
    PREVIEW = "preview"


class OperationStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class Operation:
    """One user-initiated API operation. SUCCEEDED and FAILED are terminal."""

    kind: OperationKind
    record_id: str | None = None
    status: OperationStatus = OperationStatus.PENDING
    error: str | None = None
    record_ids: list[str] = field(default_factory=list)
    cause: BaseException | None = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.status is not OperationStatus.PENDING

    def succeed(self, record_ids: list[str] | None = None) -> None:
        self._finish(OperationStatus.SUCCEEDED)
        if record_ids:
            self.record_ids = list(record_ids)

    @property
    def failed(self) -> bool:
        return self.status is OperationStatus.FAILED

    def fail(self, message: str, cause: BaseException | None = None) -> None:
        self._finish(OperationStatus.FAILED)
        self.error = message
        self.cause = cause

    def _finish(self, status: OperationStatus) -> None:
        if self.done:
            raise RuntimeError(f"{self.kind.value} operation already {self.status.value}")
        self.status = status


class RecordIdFactory:
    """Creation-time record ids: '<epoch ms>-<n>' for batches, '<epoch ms>-vision' for extracts."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_ms = 0

    def _stamp(self) -> str:
        with self._lock:
            now = int(time.time() * 1000)
            # Keep stamps strictly increasing so two batches never share a prefix
            if now <= self._last_ms:
                now = self._last_ms + 1
            self._last_ms = now
            return str(now)

    def batch(self, size: int) -> list[str]:
        stamp = self._stamp()
        return [f"{stamp}-{idx}" for idx in range(size)]

    def vision(self) -> str:
        return f"{self._stamp()}-vision"


class ResultReconciler:
    """Applies operation outcomes to a SessionLedger."""

    def __init__(self, ledger: SessionLedger, ids: RecordIdFactory | None = None) -> None:
        self.ledger = ledger
        self.ids = ids or RecordIdFactory()

    def apply_expansion(self, result: ExpansionResult, style: str) -> list[PromptRecord]:
        """Create one TEXT record per returned prompt; usage is charged once, on the first."""
        self.ledger.add_usage(result.usage)
        ids = self.ids.batch(len(result.prompts))
        records = [
            PromptRecord(
                id=record_id,
                title=draft.title,
                content=draft.content,
                style=style,
                kind=GenerationKind.TEXT,
                usage=result.usage if idx == 0 else None,
            )
            for idx, (record_id, draft) in enumerate(zip(ids, result.prompts))
        ]
        self.ledger.prepend(records)
        logger.info("Expansion added %d record(s)", len(records))
        return records

    def apply_extraction(
        self, result: TextResult, style: str, source_image_url: str
    ) -> PromptRecord:
        """Create the single VISION record for an image extraction."""
        self.ledger.add_usage(result.usage)
        record = PromptRecord(
            id=self.ids.vision(),
            title=VISION_RECORD_TITLE,
            content=result.text,
            style=style,
            kind=GenerationKind.VISION,
            source_image_url=source_image_url,
            usage=result.usage,
        )
        self.ledger.prepend([record])
        logger.info("Extraction added record id=%s", record.id)
        return record

    def apply_modification(self, record_id: str, result: TextResult) -> PromptRecord | None:
        """Replace the content of record_id in place; usage counts even if the record is gone."""
        self.ledger.add_usage(result.usage)
        return self.ledger.update(record_id, lambda r: replace(r, content=result.text))

    def begin_preview(self, record_id: str) -> PromptRecord | None:
        return self.ledger.update(record_id, lambda r: replace(r, is_generating_preview=True))

    def apply_preview(self, record_id: str, result: PreviewResult) -> PromptRecord | None:
        self.ledger.add_usage(result.usage)
        return self.ledger.update(
            record_id,
            lambda r: replace(r, preview_url=result.image_url, is_generating_preview=False),
        )

    def fail_preview(self, record_id: str) -> PromptRecord | None:
        """Clear only the in-flight flag; content and preview are left as they are now."""
        return self.ledger.update(record_id, lambda r: replace(r, is_generating_preview=False))
