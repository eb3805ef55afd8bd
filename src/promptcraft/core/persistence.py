"""
Persistence bridge: mirror the session ledger to local storage and restore it at start-up.

Storage is a directory of small JSON documents, one per namespace key. Writes
are debounced; a failed read or write degrades to in-memory state and is never
raised to the caller.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

from promptcraft.core.config import Config, get_config
from promptcraft.core.ledger import SessionLedger
from promptcraft.core.models import GenerationKind, PromptRecord, TokenUsage
from promptcraft.logging_config import get_logger
from promptcraft.utils.debounce import TrailingDebouncer

logger = get_logger(__name__)

STORAGE_KEY = "promptcraft_v4_storage"
ONBOARDING_KEY = "promptcraft_v4_onboarded"


class LocalStore:
    """String key-value store backed by one file per key under directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key has never been set."""
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        """Write value atomically (temp file + rename)."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, self._path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class PersistedUsage(BaseModel):
    promptTokenCount: int = 0
    candidatesTokenCount: int = 0
    totalTokenCount: int = 0


class PersistedRecord(BaseModel):
    """Schema of one stored record (camelCase, as written by PromptRecord.to_dict)."""

    id: str = Field(..., min_length=1)
    title: str = ""
    content: str = ""
    style: str = ""
    type: Literal["text", "vision"] = "text"
    previewUrl: str | None = None
    sourceImageUrl: str | None = None
    isGeneratingPreview: bool = False
    usage: PersistedUsage | None = None

    def to_record(self) -> PromptRecord:
        # Nothing is in flight after a restart
        return PromptRecord(
            id=self.id,
            title=self.title,
            content=self.content,
            style=self.style,
            kind=GenerationKind(self.type),
            preview_url=self.previewUrl,
            source_image_url=self.sourceImageUrl,
            is_generating_preview=False,
            usage=TokenUsage.from_dict(self.usage.model_dump()) if self.usage else None,
        )


class PersistedState(BaseModel):
    """Schema of the stored ledger blob; also accepts the older results/sessionTokens keys."""

    records: list[PersistedRecord] = Field(
        default_factory=list, validation_alias=AliasChoices("records", "results")
    )
    cumulative_tokens: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("cumulativeTokens", "sessionTokens"),
    )


class PersistenceBridge:
    """Debounced mirror of a SessionLedger into a LocalStore."""

    def __init__(
        self,
        store: LocalStore,
        ledger: SessionLedger,
        config: Config | None = None,
    ) -> None:
        config = config or get_config()
        self.store = store
        self.ledger = ledger
        self.max_saved_items = config.max_saved_items
        self._debouncer = TrailingDebouncer(config.persist_delay, self.save_now)
        self._unsubscribe = None
        self.writes = 0

    def restore(self) -> bool:
        """
        Load the persisted ledger once. Never raises.

        A blob that cannot be parsed or validated is discarded and the ledger
        stays empty.

        Returns:
            True if state was restored
        """
        try:
            raw = self.store.get(STORAGE_KEY)
        except UnicodeDecodeError as e:
            self._discard_saved_state(e)
            return False
        except OSError as e:
            logger.warning("Local storage unavailable, starting empty: %s", e)
            return False
        if not raw:
            return False
        try:
            state = PersistedState.model_validate(json.loads(raw))
            records = [r.to_record() for r in state.records]
        except Exception as e:
            self._discard_saved_state(e)
            return False
        self.ledger.restore(records, state.cumulative_tokens)
        logger.info(
            "Restored %d record(s), %d session tokens", len(self.ledger), state.cumulative_tokens
        )
        return True

    def _discard_saved_state(self, error: Exception) -> None:
        logger.error("Error parsing saved state, discarding it: %s", error)
        try:
            self.store.remove(STORAGE_KEY)
        except OSError as remove_err:
            logger.debug("Could not remove corrupt saved state: %s", remove_err)

    def attach(self) -> None:
        """Start scheduling a debounced save after every ledger mutation."""
        if self._unsubscribe is None:
            self._unsubscribe = self.ledger.subscribe(self._debouncer.trigger)

    def detach(self) -> None:
        """Stop observing the ledger and drop any pending write."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._debouncer.cancel()

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def flush(self) -> bool:
        """Write now if a save is pending. Returns False if nothing was pending."""
        return self._debouncer.flush()

    def snapshot(self) -> dict:
        """Return the JSON-ready blob for the current ledger state (records capped)."""
        return {
            "records": [r.to_dict() for r in self.ledger.records[: self.max_saved_items]],
            "cumulativeTokens": self.ledger.cumulative_tokens,
        }

    def save_now(self) -> None:
        """Write the current snapshot. Failures are logged and swallowed."""
        try:
            data = json.dumps(self.snapshot())
            self.store.set(STORAGE_KEY, data)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error saving state to local storage: %s", e)
            return
        self.writes += 1
        logger.debug("Saved %d bytes to local storage", len(data))

    def needs_onboarding(self) -> bool:
        """True until the first-run guide has been acknowledged."""
        try:
            return not self.store.get(ONBOARDING_KEY)
        except (OSError, UnicodeDecodeError):
            return True

    def complete_onboarding(self) -> None:
        """Record that the first-run guide was acknowledged. Never cleared."""
        if not self.needs_onboarding():
            return
        try:
            self.store.set(ONBOARDING_KEY, "true")
        except OSError as e:
            logger.error("Error setting onboarding complete: %s", e)
