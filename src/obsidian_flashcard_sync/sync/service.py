"""One sync run: scan, plan, execute."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from ..anki.client import AnkiClient
from ..anki.remote_store import AnkiRemoteStore
from ..config import Config
from ..domain.entities.sync_plan import SyncPlan
from ..domain.entities.sync_result import SyncResult
from ..domain.interfaces.document_store import IDocumentStore
from ..domain.interfaces.remote_store import IRemoteStore
from ..obsidian.vault_store import VaultDocumentStore
from ..rendering.markdown import MarkdownRenderer
from ..utils.logging import get_logger
from .executor import OrphanAction, SyncExecutor
from .reconciliation import ReconciliationEngine
from .scanner import VaultScanner

logger = get_logger(__name__)


@dataclass
class SyncRun:
    """Plan of a run and, unless it was a dry run, its result."""

    plan: SyncPlan
    result: SyncResult | None = None

    @property
    def dry_run(self) -> bool:
        return self.result is None


class SyncService:
    """Wires scanner, reconciliation and executor for one vault."""

    def __init__(
        self,
        config: Config,
        remote: IRemoteStore,
        documents: IDocumentStore,
        renderer: MarkdownRenderer | None = None,
    ):
        self.config = config
        self.remote = remote
        self.documents = documents
        self.renderer = renderer or MarkdownRenderer()
        self.vault_name = config.effective_vault_name

        self.engine = ReconciliationEngine(
            self.renderer, self.vault_name, ignored_tags=config.ignored_tags
        )
        self.scanner = VaultScanner(
            documents,
            remote,
            self.engine,
            default_deck=config.default_deck,
            default_note_type=config.default_note_type,
        )

    async def plan(self) -> SyncPlan:
        """Scan the vault and Anki without changing either."""
        return await self.scanner.scan()

    async def execute(
        self, plan: SyncPlan, orphan_action: OrphanAction | None = None
    ) -> SyncResult:
        """Apply a previously computed plan."""
        executor = SyncExecutor(
            self.remote,
            self.documents,
            self.renderer,
            self.vault_name,
            orphan_action=orphan_action or self.config.orphan_action,
            default_deck=self.config.default_deck,
        )
        result = await executor.execute(plan)
        logger.info(
            "sync_completed",
            vault=self.vault_name,
            duration_seconds=round(result.duration, 2),
            **result.summary(),
        )
        return result

    async def run(
        self, dry_run: bool = False, orphan_action: OrphanAction | None = None
    ) -> SyncRun:
        """
        Run a full sync.

        Args:
            dry_run: Only compute the plan
            orphan_action: Overrides the configured orphan handling

        Returns:
            The plan and, for a real run, the result
        """
        logger.info("sync_started", vault=self.vault_name, dry_run=dry_run)
        try:
            plan = await self.plan()
            if dry_run:
                return SyncRun(plan=plan)
            return SyncRun(plan=plan, result=await self.execute(plan, orphan_action))
        except Exception as e:
            logger.error("sync_failed", vault=self.vault_name, error=str(e))
            raise


@asynccontextmanager
async def open_sync_service(config: Config) -> AsyncIterator[SyncService]:
    """Build a SyncService talking to AnkiConnect and the configured vault."""
    documents = VaultDocumentStore(config.vault_path)
    async with AnkiClient(config.anki_connect_url, timeout=config.anki_timeout) as client:
        remote = AnkiRemoteStore(
            client, config.effective_vault_name, ignored_tags=config.ignored_tags
        )
        yield SyncService(config, remote, documents)
