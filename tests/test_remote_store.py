"""Tests for the AnkiConnect-backed remote store."""

import json

import httpx
import pytest
import pytest_asyncio
import respx

from obsidian_flashcard_sync.anki.client import AnkiClient
from obsidian_flashcard_sync.anki.remote_store import (
    AnkiRemoteStore,
    file_tag,
    managed_notes_query,
)
from obsidian_flashcard_sync.domain.entities.flashcard import HtmlFlashcard
from obsidian_flashcard_sync.domain.entities.media import MediaItem
from obsidian_flashcard_sync.exceptions import AnkiConnectError

ANKI_URL = "http://localhost:8765"

NOTE_INFO = {
    "noteId": 10,
    "modelName": "Basic",
    "fields": {
        "Front": {"value": "Q", "order": 0},
        "Back": {"value": "A", "order": 1},
        "Extra": {"value": "stale", "order": 2},
    },
    "tags": ["obsidian-synced", "obsidian-vault::Vault", "old", "leech"],
    "cards": [100, 101],
}


class FakeAnkiConnect:
    """Answers AnkiConnect actions from canned results and records requests."""

    def __init__(self, results: dict):
        self.results = results
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        result = self.results.get(payload["action"])
        if isinstance(result, Exception):
            return httpx.Response(200, json={"result": None, "error": str(result)})
        return httpx.Response(200, json={"result": result, "error": None})

    def params(self, action: str) -> list[dict]:
        return [r["params"] for r in self.requests if r["action"] == action]


def html_flashcard(**overrides) -> HtmlFlashcard:
    values = {
        "source_path": "notes/a b.md",
        "note_type": "Basic",
        "deck": "Default",
        "html_fields": {"Front": "Q", "Back": "new"},
        "tags": ("math",),
    }
    values.update(overrides)
    return HtmlFlashcard(**values)


@pytest.fixture
def anki() -> FakeAnkiConnect:
    return FakeAnkiConnect({})


@pytest_asyncio.fixture
async def store(anki: FakeAnkiConnect):
    with respx.mock:
        respx.post(ANKI_URL).mock(side_effect=anki)
        async with AnkiClient(ANKI_URL) as client:
            yield AnkiRemoteStore(client, "Vault", ignored_tags=["leech", "marked"])


def test_managed_notes_query() -> None:
    assert managed_notes_query("My Vault") == (
        'tag:obsidian-synced AND "tag:obsidian-vault::My Vault"'
    )


def test_file_tag_encodes_spaces() -> None:
    assert file_tag("notes/a b.md") == "obsidian-file::notes/a%20b.md"


class TestFetchRecords:
    """Building RemoteNotes from notesInfo and cardsInfo."""

    @pytest.mark.asyncio
    async def test_decks_come_from_cards(
        self, store: AnkiRemoteStore, anki: FakeAnkiConnect
    ) -> None:
        anki.results.update(
            {
                "notesInfo": [NOTE_INFO, {}],
                "cardsInfo": [
                    {"cardId": 100, "deckName": "A"},
                    {"cardId": 101, "deckName": "B"},
                ],
            }
        )

        (note,) = await store.fetch_records([10, 11])

        assert note.id == 10
        assert note.decks == frozenset({"A", "B"})
        assert note.cards == (100, 101)
        assert note.field_values()["Extra"] == "stale"
        assert anki.params("cardsInfo") == [{"cards": [100, 101]}]

    @pytest.mark.asyncio
    async def test_no_ids(self, store: AnkiRemoteStore, anki: FakeAnkiConnect) -> None:
        assert await store.fetch_records([]) == []
        assert anki.requests == []


class TestCreateRecord:
    """Adding notes."""

    @pytest.mark.asyncio
    async def test_tags_and_media(
        self, store: AnkiRemoteStore, anki: FakeAnkiConnect
    ) -> None:
        anki.results["addNote"] = 42
        media = MediaItem(source_path="pics/cat.png", contents=b"img")
        flashcard = html_flashcard(
            html_fields={
                "Front": '<img src="pics/cat.png">',
                "Back": '<img src="https://x.org/a.png">',
            },
            tags=("math", "obsidian-synced"),
        )

        assert await store.create_record(flashcard, [media]) == 42

        (params,) = anki.params("addNote")
        note = params["note"]
        assert note["tags"] == [
            "obsidian-synced",
            "obsidian-vault::Vault",
            "obsidian-file::notes/a%20b.md",
            "math",
        ]
        assert note["fields"]["Front"] == f'<img src="{media.remote_filename}">'
        assert note["fields"]["Back"] == '<img src="https://x.org/a.png">'


class TestUpdateRecord:
    """Updating fields and tags."""

    @pytest.mark.asyncio
    async def test_missing_fields_are_cleared_and_ignored_tags_kept(
        self, store: AnkiRemoteStore, anki: FakeAnkiConnect
    ) -> None:
        anki.results["notesInfo"] = [NOTE_INFO]

        await store.update_record(10, html_flashcard(), [])

        (fields,) = anki.params("updateNoteFields")
        assert fields["note"] == {
            "id": 10,
            "fields": {"Front": "Q", "Back": "new", "Extra": ""},
        }
        (added,) = anki.params("addTags")
        assert added["tags"] == "math obsidian-file::notes/a%20b.md"
        (removed,) = anki.params("removeTags")
        assert removed["tags"] == "old"

    @pytest.mark.asyncio
    async def test_missing_note(self, store: AnkiRemoteStore, anki: FakeAnkiConnect) -> None:
        anki.results["notesInfo"] = [{}]

        with pytest.raises(AnkiConnectError, match="Note not found: 10"):
            await store.update_record(10, html_flashcard(), [])

        assert anki.params("updateNoteFields") == []


class TestMedia:
    """Media lookups and uploads."""

    @pytest.mark.asyncio
    async def test_lookup_error_means_missing(
        self, store: AnkiRemoteStore, anki: FakeAnkiConnect
    ) -> None:
        anki.results["retrieveMediaFile"] = Exception("collection is not available")

        assert not await store.has_media(MediaItem("a.png", b"x"))

    @pytest.mark.asyncio
    async def test_existing_media(self, store: AnkiRemoteStore, anki: FakeAnkiConnect) -> None:
        anki.results["retrieveMediaFile"] = "eA=="

        assert await store.has_media(MediaItem("a.png", b"x"))

    @pytest.mark.asyncio
    async def test_store_media_sends_base64(
        self, store: AnkiRemoteStore, anki: FakeAnkiConnect
    ) -> None:
        item = MediaItem("a.png", b"hi")
        anki.results["storeMediaFile"] = item.remote_filename

        assert await store.store_media(item) == item.remote_filename
        assert anki.params("storeMediaFile") == [
            {"filename": item.remote_filename, "data": "aGk="}
        ]


@pytest.mark.asyncio
async def test_move_to_deck_moves_every_card(
    store: AnkiRemoteStore, anki: FakeAnkiConnect
) -> None:
    anki.results.update({"notesInfo": [NOTE_INFO], "cardsInfo": []})
    (note,) = await store.fetch_records([10])

    await store.move_to_deck(note, "Physics")

    assert anki.params("changeDeck") == [{"cards": [100, 101], "deck": "Physics"}]


@pytest.mark.asyncio
async def test_note_types(store: AnkiRemoteStore, anki: FakeAnkiConnect) -> None:
    anki.results.update({"modelNames": ["Basic"], "modelFieldNames": ["Front", "Back"]})

    (note_type,) = await store.get_note_types()

    assert note_type.name == "Basic"
    assert note_type.fields == ("Front", "Back")


@pytest.mark.asyncio
async def test_version_and_decks(store: AnkiRemoteStore, anki: FakeAnkiConnect) -> None:
    anki.results.update({"version": 6, "deckNames": ["Default", "Math"]})

    assert await store.get_version() == 6
    assert await store.get_deck_names() == ["Default", "Math"]
