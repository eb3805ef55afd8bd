"""
Prompt session: the command surface a presentation layer drives.

A session owns the option selection, the ledger, the reconciler and the
persistence bridge. Commands compile a request from the current options,
run the provider call off the event loop, and hand the outcome to the
reconciler. Any number of commands may be awaited concurrently; each one is
individually guarded and reports failure through last_error and its Operation.
"""

import asyncio
import re
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from promptcraft.core.compiler import (
    SURPRISE_SEED,
    RequestDescriptor,
    compile_expansion,
    compile_extraction,
    compile_modification,
    compile_preview_request,
)
from promptcraft.core.config import PRO_KEY_REQUIRED_MESSAGE, Config, get_config
from promptcraft.core.images import ImageInput, load_image_input, save_data_url_image
from promptcraft.core.ledger import SessionLedger
from promptcraft.core.models import LedgerStats, PromptRecord
from promptcraft.core.options import (
    DensityMode,
    ImageGenerator,
    LightingMode,
    ModelTier,
    OptionSelection,
    Perspective,
    VisualStyle,
)
from promptcraft.core.persistence import LocalStore, PersistenceBridge
from promptcraft.core.providers import GatewayProvider, default_provider
from promptcraft.core.reconciler import (
    Operation,
    OperationKind,
    ResultReconciler,
)
from promptcraft.logging_config import get_logger, log_prompt_text
from promptcraft.utils.exceptions import (
    ConfigurationError,
    PromptcraftError,
    ValidationError,
)

logger = get_logger(__name__)

T = TypeVar("T")

GENERIC_FAILURE_MESSAGE = "AI Engine offline or network timeout."

_LABEL_PREFIX = re.compile(r"^(Variation|Prompt|Variation\s\d|Prompt\s\d):\s*", re.IGNORECASE)


def clean_prompt_text(text: str) -> str:
    """Strip a leading 'Variation:' / 'Prompt 2:' style label from generated text."""
    return _LABEL_PREFIX.sub("", text).strip()


def user_message(exc: BaseException) -> str:
    """Map an exception to the single-line message shown to the user."""
    if isinstance(exc, PromptcraftError):
        return exc.message
    return GENERIC_FAILURE_MESSAGE


class PromptSession:
    """Options, ledger and commands for one user session."""

    def __init__(
        self,
        provider: GatewayProvider | None = None,
        config: Config | None = None,
        store: LocalStore | None = None,
        options: OptionSelection | None = None,
    ) -> None:
        self.config = config or get_config()
        self.provider = provider or default_provider()
        self.ledger = SessionLedger(self.config.daily_token_limit, self.config.max_records)
        self.reconciler = ResultReconciler(self.ledger)
        self.bridge = PersistenceBridge(
            store or LocalStore(self.config.storage_dir), self.ledger, self.config
        )
        self._options = options or OptionSelection()
        self._active_image: ImageInput | None = None
        self._settings_dirty = False
        self._busy = 0
        # record id -> outstanding modifications
        self._modifying: Counter[str] = Counter()
        self.last_error: str | None = None

    def start(self) -> "PromptSession":
        """Restore persisted state and begin mirroring the ledger to storage."""
        self.bridge.restore()
        self.bridge.attach()
        return self

    def close(self) -> None:
        """Write any pending state and stop persisting."""
        self.bridge.flush()
        self.bridge.detach()

    def flush(self) -> bool:
        return self.bridge.flush()

    # Read surface

    @property
    def records(self) -> tuple[PromptRecord, ...]:
        return self.ledger.records

    @property
    def stats(self) -> LedgerStats:
        return self.ledger.stats()

    @property
    def options(self) -> OptionSelection:
        return self._options

    @property
    def is_busy(self) -> bool:
        """True while an expansion or extraction is outstanding."""
        return self._busy > 0

    @property
    def active_image(self) -> ImageInput | None:
        return self._active_image

    @property
    def settings_dirty(self) -> bool:
        """True when options changed since the active image was last analyzed."""
        return self._settings_dirty

    @property
    def needs_onboarding(self) -> bool:
        return self.bridge.needs_onboarding()

    def get_record(self, record_id: str) -> PromptRecord | None:
        return self.ledger.get(record_id)

    def is_generating_preview(self, record_id: str) -> bool:
        record = self.ledger.get(record_id)
        return bool(record and record.is_generating_preview)

    def is_modifying(self, record_id: str) -> bool:
        return self._modifying[record_id] > 0

    # Option commands

    def apply_options(self, **changes: Any) -> OptionSelection:
        """
        Replace several option fields at once (member, name or label accepted).

        Raises:
            ValidationError: Unknown field or value
            ConfigurationError: PRO tier selected without a pro key
        """
        updated = self._options.with_changes(**changes)
        if updated.model_tier is ModelTier.PRO and not self.config.has_pro_access():
            raise ConfigurationError(PRO_KEY_REQUIRED_MESSAGE)
        if updated != self._options:
            self._options = updated
            if self._active_image is not None:
                self._settings_dirty = True
        return updated

    def set_option(self, name: str, value: Any) -> bool:
        """
        Replace one option field.

        Returns:
            False if the change was rejected; last_error then holds the reason
        """
        try:
            self.apply_options(**{name: value})
        except PromptcraftError as e:
            self.last_error = user_message(e)
            logger.warning("Option change rejected: %s", self.last_error)
            return False
        return True

    def set_style(self, style: VisualStyle | str) -> bool:
        return self.set_option("style", style)

    def set_lighting(self, lighting: LightingMode | str) -> bool:
        return self.set_option("lighting", lighting)

    def set_perspective(self, perspective: Perspective | str) -> bool:
        return self.set_option("perspective", perspective)

    def set_generator(self, generator: ImageGenerator | str) -> bool:
        return self.set_option("generator", generator)

    def set_density(self, density: DensityMode | str) -> bool:
        return self.set_option("density", density)

    def toggle_density(self) -> bool:
        concise = self._options.density is DensityMode.CONCISE
        return self.set_density(DensityMode.EXTENDED if concise else DensityMode.CONCISE)

    def set_model_tier(self, tier: ModelTier | str) -> bool:
        """Select a model tier; PRO is refused unless a pro key is configured."""
        return self.set_option("model_tier", tier)

    # Record helpers

    def bridge_to_seed(self, record_id: str) -> str | None:
        """Return a record's cleaned content for reuse as a new seed."""
        record = self.ledger.get(record_id)
        return clean_prompt_text(record.content) if record else None

    def save_preview(self, record_id: str, path: Path) -> Path:
        """
        Write a record's preview image to path.

        Raises:
            ValidationError: Unknown record or no preview yet
            ImageProcessingError: Preview could not be decoded or written
        """
        record = self.ledger.get(record_id)
        if record is None:
            raise ValidationError(f"Unknown record: {record_id}", field="record_id")
        if not record.preview_url:
            raise ValidationError("Record has no preview image yet", field="record_id")
        return save_data_url_image(record.preview_url, Path(path))

    def complete_onboarding(self) -> None:
        self.bridge.complete_onboarding()

    # Operation plumbing

    def _check_credentials(self, options: OptionSelection | None = None) -> None:
        # Previews pass no options: they always run on the flash key
        if not self.config.api_key:
            raise ConfigurationError("API Key not configured.")
        if options is None:
            return
        if options.model_tier is ModelTier.PRO and not self.config.has_pro_access():
            raise ConfigurationError(PRO_KEY_REQUIRED_MESSAGE)

    def _fail(self, op: Operation, exc: BaseException) -> Operation:
        message = user_message(exc)
        if isinstance(exc, PromptcraftError):
            logger.error("%s failed: %s", op.kind.value, message)
        else:
            logger.exception("%s failed unexpectedly", op.kind.value)
        self.last_error = message
        op.fail(message, cause=exc)
        return op

    def _dispatched(self) -> None:
        # Preconditions passed and the call is about to go out
        self.last_error = None

    async def _call(
        self, fn: Callable[[RequestDescriptor, Config], T], request: RequestDescriptor
    ) -> T:
        return await asyncio.to_thread(fn, request, self.config)

    # Operation commands

    async def submit_seed(self, seed: str, surprise: bool = False) -> Operation:
        """Expand seed (or invent concepts when surprise) into new prompt records."""
        op = Operation(OperationKind.EXPAND)
        options = self._options
        try:
            self._check_credentials(options)
            request = compile_expansion(
                SURPRISE_SEED if surprise else seed, options, surprise=surprise, config=self.config
            )
        except PromptcraftError as e:
            return self._fail(op, e)

        log_prompt_text(logger, "Seed", SURPRISE_SEED if surprise else seed)
        self._dispatched()
        self._busy += 1
        try:
            result = await self._call(self.provider.expand, request)
        except Exception as e:
            return self._fail(op, e)
        finally:
            self._busy -= 1

        records = self.reconciler.apply_expansion(result, options.style.value)
        op.succeed([r.id for r in records])
        return op

    async def submit_image(
        self, source: str | Path | bytes, mime_type: str | None = None
    ) -> Operation:
        """Validate an uploaded image, make it the active image, and extract a prompt from it."""
        try:
            image = load_image_input(source, mime_type, max_bytes=self.config.max_image_bytes)
        except PromptcraftError as e:
            return self._fail(Operation(OperationKind.EXTRACT), e)
        self._active_image = image
        return await self._extract(image)

    async def reanalyze(self) -> Operation:
        """Run extraction again on the active image with the current options."""
        if self._active_image is None:
            return self._fail(
                Operation(OperationKind.EXTRACT),
                ValidationError("No image to analyze", field="image"),
            )
        return await self._extract(self._active_image)

    async def _extract(self, image: ImageInput) -> Operation:
        op = Operation(OperationKind.EXTRACT)
        options = self._options
        try:
            self._check_credentials(options)
            request = compile_extraction(image.data, image.mime_type, options, config=self.config)
        except PromptcraftError as e:
            return self._fail(op, e)

        self._dispatched()
        self._busy += 1
        try:
            result = await self._call(self.provider.extract, request)
        except Exception as e:
            return self._fail(op, e)
        finally:
            self._busy -= 1

        record = self.reconciler.apply_extraction(result, options.style.value, image.data_url)
        if self._options == options:
            self._settings_dirty = False
        op.succeed([record.id])
        return op

    async def request_preview(self, record_id: str) -> Operation:
        """Render a preview image for a record; its in-flight flag is set until the call settles."""
        op = Operation(OperationKind.PREVIEW, record_id=record_id)
        record = self.ledger.get(record_id)
        try:
            if record is None:
                raise ValidationError(f"Unknown record: {record_id}", field="record_id")
            self._check_credentials()
            request = compile_preview_request(record.content, config=self.config)
        except PromptcraftError as e:
            return self._fail(op, e)

        self.reconciler.begin_preview(record_id)
        self._dispatched()
        try:
            result = await self._call(self.provider.preview, request)
        except Exception as e:
            self.reconciler.fail_preview(record_id)
            return self._fail(op, e)

        self.reconciler.apply_preview(record_id, result)
        op.succeed([record_id])
        return op

    async def submit_modification(self, record_id: str, instruction: str) -> Operation:
        """Rewrite a record's content in place according to instruction."""
        op = Operation(OperationKind.MODIFY, record_id=record_id)
        record = self.ledger.get(record_id)
        options = self._options
        try:
            if record is None:
                raise ValidationError(f"Unknown record: {record_id}", field="record_id")
            self._check_credentials(options)
            request = compile_modification(
                record.content, instruction, options, config=self.config
            )
        except PromptcraftError as e:
            return self._fail(op, e)

        self._dispatched()
        self._modifying[record_id] += 1
        try:
            result = await self._call(self.provider.modify, request)
        except Exception as e:
            return self._fail(op, e)
        finally:
            self._modifying[record_id] -= 1
            if self._modifying[record_id] <= 0:
                del self._modifying[record_id]

        self.reconciler.apply_modification(record_id, result)
        op.succeed([record_id])
        return op
