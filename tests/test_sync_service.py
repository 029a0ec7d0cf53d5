"""End-to-end sync runs over the in-memory stores."""

import pytest

from obsidian_flashcard_sync.config import Config
from obsidian_flashcard_sync.domain.entities.sync_result import OperationKind
from obsidian_flashcard_sync.sync.service import SyncService
from tests.fixtures import InMemoryDocumentStore, InMemoryRemoteStore, make_note


@pytest.mark.asyncio
async def test_new_flashcard_is_created_and_gains_its_id(config: Config) -> None:
    remote = InMemoryRemoteStore(vault_name="Vault", first_note_id=42)
    documents = InMemoryDocumentStore(
        {"math.md": make_note("NoteType: Basic\nFront: 2+2?\nBack: 4\nTags:\n  - math")}
    )
    service = SyncService(config, remote, documents)

    run = await service.run()

    assert not run.dry_run
    assert run.result is not None
    assert run.result.summary()["created"] == 1
    assert documents.files["math.md"] == (
        "# Note\n\n```flashcard\nNoteType: Basic\nFront: 2+2?\nBack: 4\n"
        "Tags:\n  - math\nAnkiId: 42\n```\n"
    )
    note = remote.notes[42]
    assert note.field_values() == {"Front": "2+2?", "Back": "4"}
    assert note.decks == frozenset({"Default"})
    assert "math" in note.tags
    assert note.is_managed("Vault")


@pytest.mark.asyncio
async def test_second_run_has_nothing_to_do(
    sync_service: SyncService,
    remote_store: InMemoryRemoteStore,
    document_store: InMemoryDocumentStore,
) -> None:
    document_store.files["a.md"] = make_note("Front: Q\nBack: A", "Front: other")
    await sync_service.run()
    remote_store.calls.clear()

    run = await sync_service.run()

    assert not run.plan.has_changes
    assert len(run.plan.unchanged) == 2
    assert run.result is not None
    assert run.result.operations == []
    assert "create_record" not in remote_store.calls


@pytest.mark.asyncio
async def test_dry_run_changes_nothing(
    sync_service: SyncService,
    remote_store: InMemoryRemoteStore,
    document_store: InMemoryDocumentStore,
) -> None:
    remote_store.add_note({"Front": "gone"}, note_id=5)
    document_store.files["a.md"] = make_note("Front: Q")
    before = dict(document_store.files)

    run = await sync_service.run(dry_run=True)

    assert run.dry_run
    assert run.plan.summary()["new"] == 1
    assert run.plan.summary()["deleted"] == 1
    assert document_store.files == before
    assert list(remote_store.notes) == [5]
    assert document_store.writes == []


@pytest.mark.asyncio
async def test_orphan_action_can_be_overridden(
    sync_service: SyncService,
    remote_store: InMemoryRemoteStore,
    document_store: InMemoryDocumentStore,
) -> None:
    remote_store.add_note({"Front": "kept", "Back": "safe"}, note_id=5, source_path="old.md")

    run = await sync_service.run(orphan_action="import")

    assert run.result is not None
    assert run.result.count(OperationKind.IMPORT) == 1
    assert 5 in remote_store.notes
    assert "AnkiId: 5" in document_store.files["old.md"]

    again = await sync_service.run()
    assert not again.plan.has_changes


@pytest.mark.asyncio
async def test_unwritable_note_is_created_again_next_run(
    sync_service: SyncService,
    remote_store: InMemoryRemoteStore,
    document_store: InMemoryDocumentStore,
) -> None:
    document_store.files["a.md"] = make_note("Front: Q")
    document_store.read_only.add("a.md")

    first = await sync_service.run()

    assert first.result is not None
    assert first.result.summary()["created"] == 1
    assert first.result.summary()["write_back_failures"] == 1
    assert first.result.is_partial_success

    second = await sync_service.plan()
    assert len(second.to_create) == 1
    # The note created by the first run has no block pointing at it
    assert [note.id for note in second.to_delete] == list(remote_store.notes)


@pytest.mark.asyncio
async def test_missing_media_is_skipped(
    sync_service: SyncService,
    remote_store: InMemoryRemoteStore,
    document_store: InMemoryDocumentStore,
) -> None:
    document_store.files["a.md"] = make_note("Front: '![[missing.png]]'")

    run = await sync_service.run()

    assert run.plan.media_paths == {"missing.png"}
    assert run.plan.media_items == []
    assert run.result is not None
    assert run.result.media_operations == []
    assert run.result.count(OperationKind.CREATE) == 1
    assert remote_store.media == {}


@pytest.mark.asyncio
async def test_two_new_blocks_write_their_document_once(
    sync_service: SyncService, document_store: InMemoryDocumentStore
) -> None:
    document_store.files["a.md"] = make_note("Front: one", "Front: two")
    document_store.files["b.md"] = make_note("Front: three")

    await sync_service.run()

    assert sorted(document_store.writes) == ["a.md", "b.md"]


@pytest.mark.asyncio
async def test_failed_run_is_reraised(
    sync_service: SyncService, document_store: InMemoryDocumentStore
) -> None:
    async def broken() -> list[str]:
        raise RuntimeError("disk on fire")

    document_store.list_documents = broken  # type: ignore[method-assign]

    with pytest.raises(RuntimeError, match="disk on fire"):
        await sync_service.run()
