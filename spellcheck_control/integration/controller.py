"""
Spellcheck Control Integration: Trigger Controller.

Connects host events to the rule engine. Each trigger (active document
changed, document opened, layout ready, settings changed) re-evaluates the
rules for the active document and hands the decision to the host workspace.

Decisions may suspend while a query rule waits on the external engine. If a
newer trigger fires in the meantime, or the active document changes, the
older decision is stale and is discarded instead of applied.
"""

import asyncio
import concurrent.futures
import threading
from typing import List, Optional, Protocol, Set

from spellcheck_control.core.config import ConfigManager
from spellcheck_control.core.constants import ConfigKey
from spellcheck_control.core.logging import Logger, get_logger
from spellcheck_control.integration.document import Document, MetadataProvider
from spellcheck_control.rules.engine import RuleEngine
from spellcheck_control.rules.models import Rule
from spellcheck_control.rules.query import QueryEngine
from spellcheck_control.settings import SettingsStore


class Workspace(Protocol):
    """Host editor workspace."""

    def active_document(self) -> Optional[Document]:
        """Document in the focused editor, or None if no editor is focused."""
        ...

    def apply_spellcheck(self, document: Document, enabled: bool) -> None:
        """Set the spellcheck attribute of the editor showing ``document``."""
        ...


class SpellcheckController:
    """
    Re-evaluates spellcheck for the active document on host triggers.

    Attributes:
        engine: Rule engine making the decisions
        settings: Store owning the rule list
        workspace: Host workspace providing the active document
        discard_stale: Drop decisions overtaken by a newer trigger
    """

    def __init__(
        self,
        engine: RuleEngine,
        settings: SettingsStore,
        workspace: Workspace,
        logger: Optional[Logger] = None,
        discard_stale: bool = True,
    ):
        self.engine = engine
        self.settings = settings
        self.workspace = workspace
        self.logger = logger or get_logger()
        self.discard_stale = discard_stale
        self._generation = 0
        self._pending: Set[concurrent.futures.Future] = set()
        self._pending_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: ConfigManager,
        metadata: MetadataProvider,
        workspace: Workspace,
        query_engine: Optional[QueryEngine] = None,
        logger: Optional[Logger] = None,
    ) -> "SpellcheckController":
        """
        Build a controller, its engine and its loaded settings from configuration.

        Args:
            config: Configuration manager
            metadata: Host metadata lookups
            workspace: Host workspace
            query_engine: External query engine, if installed
            logger: Logger (global logger by default)

        Returns:
            Controller ready to receive triggers
        """
        logger = logger or get_logger()
        settings = SettingsStore(config.get(ConfigKey.SETTINGS_FILE), logger=logger)
        settings.load()
        engine = RuleEngine(
            metadata,
            query_engine=query_engine,
            logger=logger,
            strict_folder_boundary=bool(config.get(ConfigKey.STRICT_FOLDER_BOUNDARY, False)),
        )
        return cls(
            engine,
            settings,
            workspace,
            logger=logger,
            discard_stale=bool(config.get(ConfigKey.DISCARD_STALE, True)),
        )

    async def refresh(self, trigger: str = "manual") -> Optional[bool]:
        """
        Decide and apply spellcheck for the active document.

        Args:
            trigger: Name of the event that caused the refresh (for logs)

        Returns:
            The applied decision, or None if there was no active document or
            the decision went stale
        """
        document = self.workspace.active_document()
        if document is None:
            return None

        self._generation += 1
        generation = self._generation

        enabled = await self.engine.decide(document, self.settings.snapshot())

        if self.discard_stale and self._is_stale(generation, document):
            self.logger.debug(
                "Discarding stale decision", trigger=trigger, document=document.path
            )
            return None

        self.workspace.apply_spellcheck(document, enabled)
        self.logger.debug(
            "Spellcheck applied", trigger=trigger, document=document.path, enabled=enabled
        )
        return enabled

    def _is_stale(self, generation: int, document: Document) -> bool:
        if generation != self._generation:
            return True
        return self.workspace.active_document() != document

    async def on_active_document_changed(self) -> Optional[bool]:
        return await self.refresh("active-document-changed")

    async def on_document_opened(self) -> Optional[bool]:
        return await self.refresh("document-opened")

    async def on_layout_ready(self) -> Optional[bool]:
        return await self.refresh("layout-ready")

    async def on_settings_changed(self) -> Optional[bool]:
        return await self.refresh("settings-changed")

    def watch_settings(self) -> None:
        """Refresh whenever the settings store reports a change.

        Must be called from within a running event loop. Changes may be
        committed from any thread; refreshes always run on that loop.
        """
        loop = asyncio.get_running_loop()

        def on_change(rules: List[Rule]) -> None:
            future = asyncio.run_coroutine_threadsafe(self.on_settings_changed(), loop)
            with self._pending_lock:
                self._pending.add(future)
            future.add_done_callback(self._forget)

        self.settings.add_watcher(on_change)

    def _forget(self, future: concurrent.futures.Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    async def drain(self) -> None:
        """Wait for all scheduled refreshes to finish."""
        while True:
            with self._pending_lock:
                pending = list(self._pending)
            if not pending:
                return
            await asyncio.gather(*(asyncio.wrap_future(f) for f in pending))
