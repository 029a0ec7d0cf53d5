"""Pytest configuration and fixtures for the test suite."""

from pathlib import Path

import pytest

from obsidian_flashcard_sync.config import Config, reset_config
from obsidian_flashcard_sync.rendering.markdown import MarkdownRenderer
from obsidian_flashcard_sync.sync.reconciliation import ReconciliationEngine
from obsidian_flashcard_sync.sync.service import SyncService
from tests.fixtures import InMemoryDocumentStore, InMemoryRemoteStore

VAULT_NAME = "Vault"


@pytest.fixture(autouse=True)
def _reset_global_config():
    """Keep the module-level config from leaking between tests."""
    yield
    reset_config()


@pytest.fixture
def renderer() -> MarkdownRenderer:
    """Provide a Markdown renderer."""
    return MarkdownRenderer()


@pytest.fixture
def remote_store() -> InMemoryRemoteStore:
    """Provide an in-memory Anki for the test vault."""
    return InMemoryRemoteStore(vault_name=VAULT_NAME, ignored_tags=("marked", "leech"))


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    """Provide an empty in-memory vault."""
    return InMemoryDocumentStore()


@pytest.fixture
def engine(renderer: MarkdownRenderer) -> ReconciliationEngine:
    """Provide a reconciliation engine ignoring Anki's marked and leech tags."""
    return ReconciliationEngine(renderer, VAULT_NAME, ignored_tags=("marked", "leech"))


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """Provide an empty vault directory on disk."""
    vault = tmp_path / "Vault"
    vault.mkdir()
    return vault


@pytest.fixture
def config(vault_dir: Path) -> Config:
    """Provide a configuration pointing at the on-disk vault."""
    return Config(vault_path=vault_dir, vault_name=VAULT_NAME)


@pytest.fixture
def sync_service(
    config: Config,
    remote_store: InMemoryRemoteStore,
    document_store: InMemoryDocumentStore,
    renderer: MarkdownRenderer,
) -> SyncService:
    """Provide a sync service wired to the in-memory stores."""
    return SyncService(config, remote_store, document_store, renderer)
