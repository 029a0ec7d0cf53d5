"""Defaults and naming contracts shared across the sync service."""

DEFAULT_NOTE_TYPE = "Basic"
DEFAULT_DECK = "Default"
DEFAULT_IGNORED_TAGS = ["marked", "leech"]

# Anki tagging strategy
OBSIDIAN_SYNC_TAG = "obsidian-synced"
OBSIDIAN_VAULT_TAG_PREFIX = "obsidian-vault::"
OBSIDIAN_FILE_TAG_PREFIX = "obsidian-file::"

# Reserved keys inside a flashcard block
NOTE_TYPE_KEY = "NoteType"
ANKI_ID_KEY = "AnkiId"
TAGS_KEY = "Tags"
DECK_KEY = "Deck"
METADATA_FIELDS = (NOTE_TYPE_KEY, ANKI_ID_KEY, TAGS_KEY, DECK_KEY)

# Front matter properties inherited by every block in a note
ANKI_DECK_PROPERTY = "AnkiDeck"
ANKI_TAGS_PROPERTY = "AnkiTags"

# Note type fields filled in automatically when the schema declares them
VAULT_FIELD = "ObsidianVault"
NOTE_FIELD = "ObsidianNote"

FLASHCARD_FENCE = "```flashcard"
FENCE_END = "```"

# Anki note ids are signed 64-bit integers
MAX_ANKI_ID = 2**63 - 1

MEDIA_EXTENSIONS = (
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".webp",
    ".bmp",
    ".mp3",
    ".wav",
    ".ogg",
    ".m4a",
    ".mp4",
    ".webm",
    ".ogv",
)
MEDIA_FILENAME_PREFIX = "obsidian-synced-"

DEFAULT_IMPORT_FILE = "Imported Flashcards.md"

# Start-line drift tolerated when locating a block for id write-back
BACKFILL_LINE_TOLERANCE = 2
