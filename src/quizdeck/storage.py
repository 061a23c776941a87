"""
File-backed persistence for decks, the selected deck and settings.

Layout of the data directory:

    decks.json          all decks, keyed by deck id
    current_deck.json   the selected deck id (absent when nothing is selected)
    settings.yaml       user preferences

Every mutating operation writes through immediately. When a write fails the
in-memory change is rolled back and StorageError propagates, so memory and
disk never disagree about a deck.
"""

import copy
import json
import logging
import os
import random
import re
import string
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union

import yaml

from quizdeck.model import (
    Deck,
    DeckMap,
    Question,
    Settings,
    now_ms,
    MIN_LOW_ACCURACY_THRESHOLD,
    MAX_LOW_ACCURACY_THRESHOLD,
)
from quizdeck.serialization import (
    decks_from_dict,
    decks_to_json,
    settings_from_dict,
    settings_to_yaml,
)
from quizdeck.validation import (
    QuestionDraft,
    parse_question_json,
    repair_decks,
    repair_settings,
)

logger = logging.getLogger(__name__)

DECKS_FILE = "decks.json"
CURRENT_DECK_FILE = "current_deck.json"
SETTINGS_FILE = "settings.yaml"

_ID_ALPHABET = string.ascii_lowercase + string.digits


class StorageError(Exception):
    """Raised when data cannot be read, written or located."""
    pass


class DeckNotFoundError(StorageError, KeyError):
    """Raised when a deck reference matches no deck."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return Exception.__str__(self)


class SettingsError(StorageError, ValueError):
    """Raised when a settings update is out of range."""
    pass


def _random_suffix(length: int) -> str:
    return "".join(random.choices(_ID_ALPHABET, k=length))


def new_deck_id() -> str:
    return f"deck_{now_ms()}_{_random_suffix(7)}"


def new_question_id(deck_id: str, index: int) -> str:
    return f"q_{deck_id}_{index}_{now_ms()}_{_random_suffix(5)}"


class DeckStore:
    """
    All decks plus the selection and settings, persisted under ``data_dir``.

    Call ``load()`` once before use; a fresh store without files starts
    empty with default settings.
    """

    def __init__(self, data_dir: Union[str, Path]) -> None:
        self.data_dir = Path(data_dir)
        self.decks: DeckMap = {}
        self.current_deck_id: Optional[str] = None
        self.settings = Settings()

    # =========================================================================
    # LOW-LEVEL FILE ACCESS
    # =========================================================================

    def _path(self, name: str) -> Path:
        return self.data_dir / name

    def _write(self, name: str, text: Optional[str]) -> None:
        path = self._path(name)
        try:
            if text is None:
                if path.exists():
                    path.unlink()
                    logger.info("Removed %s", path)
                return
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            raise StorageError(f"Could not save {name}: {e}") from e

    def _read(self, name: str) -> Optional[str]:
        path = self._path(name)
        if not path.exists():
            logger.debug("No data found at %s", path)
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            self._discard_corrupted(name, e)
            return None
        except OSError as e:
            raise StorageError(f"Could not read {name}: {e}") from e

    def _discard_corrupted(self, name: str, error: Exception) -> None:
        logger.error("Failed to parse %s, the data is corrupted and will be removed: %s", name, error)
        try:
            self._path(name).unlink()
        except OSError as remove_error:
            logger.error("Failed to remove corrupted %s: %s", name, remove_error)

    # =========================================================================
    # LOAD / SAVE
    # =========================================================================

    def load(self) -> "DeckStore":
        """Read, repair and select. Corrupted files are removed and defaulted."""
        self.settings = self._load_settings()
        self.decks = self._load_decks()
        self.current_deck_id = self._load_current_deck_id()

        if self.current_deck_id and self.current_deck_id not in self.decks:
            logger.warning("Selected deck %r no longer exists; clearing the selection.", self.current_deck_id)
            self.current_deck_id = None
            self.save_current_deck_id()

        logger.info("Loaded %d deck(s) from %s", len(self.decks), self.data_dir)
        return self

    def _load_settings(self) -> Settings:
        text = self._read(SETTINGS_FILE)
        if text is None:
            return Settings()
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            self._discard_corrupted(SETTINGS_FILE, e)
            return Settings()
        if raw is None:
            return Settings()
        repaired, modified = repair_settings(raw)
        settings = settings_from_dict(repaired)
        if modified:
            self._write(SETTINGS_FILE, settings_to_yaml(settings))
        return settings

    def _load_decks(self) -> DeckMap:
        text = self._read(DECKS_FILE)
        if text is None:
            return {}
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            self._discard_corrupted(DECKS_FILE, e)
            return {}
        repaired, modified = repair_decks(raw)
        decks = decks_from_dict(repaired)
        if modified:
            logger.info("Deck data structure was repaired; saving it back.")
            self._write(DECKS_FILE, decks_to_json(decks))
        return decks

    def _load_current_deck_id(self) -> Optional[str]:
        text = self._read(CURRENT_DECK_FILE)
        if text is None:
            return None
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            self._discard_corrupted(CURRENT_DECK_FILE, e)
            return None
        if value is not None and not isinstance(value, str):
            logger.warning("Invalid selected deck id of type %s; resetting it.", type(value).__name__)
            self._write(CURRENT_DECK_FILE, None)
            return None
        return value or None

    def save_decks(self) -> None:
        self._write(DECKS_FILE, decks_to_json(self.decks))

    def save_settings(self) -> None:
        self._write(SETTINGS_FILE, settings_to_yaml(self.settings))

    def save_current_deck_id(self) -> None:
        text = json.dumps(self.current_deck_id) if self.current_deck_id else None
        self._write(CURRENT_DECK_FILE, text)

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def current_deck(self) -> Optional[Deck]:
        if self.current_deck_id is None:
            return None
        return self.decks.get(self.current_deck_id)

    def list_decks(self) -> List[Deck]:
        """Most recently studied first; never-studied decks last, by name."""
        return sorted(
            self.decks.values(),
            key=lambda d: (-(d.last_studied or 0), d.name),
        )

    def get_deck(self, ref: Optional[str] = None) -> Deck:
        """
        Find a deck by id, then by exact name. ``None`` means the selected deck.

        Raises:
            DeckNotFoundError: If nothing matches
        """
        if ref is None:
            deck = self.current_deck
            if deck is None:
                raise DeckNotFoundError("No deck is selected.")
            return deck
        if ref in self.decks:
            return self.decks[ref]
        for deck in self.decks.values():
            if deck.name == ref:
                return deck
        raise DeckNotFoundError(f"Deck not found: {ref}")

    def unique_deck_name(self, base: str) -> str:
        names = {d.name for d in self.decks.values()}
        name = base
        counter = 1
        while name in names:
            counter += 1
            name = f"{base} ({counter})"
        return name

    # =========================================================================
    # DECK OPERATIONS
    # =========================================================================

    def import_deck_file(self, path: Union[str, Path]) -> Deck:
        """
        Import a question file as a new deck and select it.

        The deck is named after the file (without ``.json``), made unique.

        Raises:
            StorageError: If the file is not a readable .json file
            QuestionFormatError: If its contents are not valid questions
        """
        path = Path(path)
        if not path.name.lower().endswith(".json"):
            raise StorageError("Please choose a JSON file (.json).")
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

        drafts = parse_question_json(text)
        base_name = re.sub(r"\.json$", "", path.name, flags=re.IGNORECASE)
        return self.add_deck(base_name, drafts)

    def add_deck(self, name: str, drafts: Sequence[QuestionDraft]) -> Deck:
        """Create a deck from validated drafts, persist it and select it."""
        deck_id = new_deck_id()
        deck = Deck(
            id=deck_id,
            name=self.unique_deck_name(name),
            questions=[
                Question(
                    id=new_question_id(deck_id, index),
                    question=draft.question,
                    options=list(draft.options),
                    correct_answer=draft.correct_answer,
                    explanation=draft.explanation or "",
                )
                for index, draft in enumerate(drafts)
            ],
        )
        self.decks[deck_id] = deck
        try:
            self.save_decks()
        except StorageError:
            del self.decks[deck_id]
            raise
        logger.info("Added deck %r with %d question(s)", deck.name, len(deck.questions))
        self.select_deck(deck_id)
        return deck

    def select_deck(self, ref: str) -> Deck:
        deck = self.get_deck(ref)
        if deck.id == self.current_deck_id:
            logger.debug("Deck %s already selected", deck.id)
            return deck
        previous = self.current_deck_id
        self.current_deck_id = deck.id
        try:
            self.save_current_deck_id()
        except StorageError:
            self.current_deck_id = previous
            raise
        logger.info("Selected deck %s", deck.id)
        return deck

    def delete_deck(self, ref: str) -> Deck:
        """Delete a deck and its whole history. Clears the selection if needed."""
        deck = self.get_deck(ref)
        was_selected = self.current_deck_id == deck.id
        if was_selected:
            self.current_deck_id = None
            try:
                self.save_current_deck_id()
            except StorageError:
                self.current_deck_id = deck.id
                raise

        del self.decks[deck.id]
        try:
            self.save_decks()
        except StorageError:
            self.decks[deck.id] = deck
            logger.error("Deck deletion could not be saved; rolled back.")
            if was_selected:
                self.current_deck_id = deck.id
                try:
                    self.save_current_deck_id()
                except StorageError as restore_error:
                    logger.error("Failed to restore the selection of deck %s: %s", deck.id, restore_error)
            raise
        logger.info("Deleted deck %s", deck.id)
        return deck

    def reset_history(self, ref: Optional[str] = None) -> Deck:
        """Clear every answer and session of a deck (default: the selected one)."""
        deck = self.get_deck(ref)
        original = copy.deepcopy(deck)
        deck.clear_history()
        try:
            self.save_decks()
        except StorageError:
            self.decks[deck.id] = original
            logger.error("History reset could not be saved; rolled back.")
            raise
        logger.info("History reset for deck %s", deck.id)
        return deck

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def update_settings(self, shuffle_options: Optional[bool] = None,
                        low_accuracy_threshold: Optional[int] = None) -> bool:
        """
        Change settings and persist them.

        Returns:
            True if something changed, False if the values were already set

        Raises:
            SettingsError: If the threshold is not an integer in 1..99
        """
        new = Settings(
            shuffle_options=self.settings.shuffle_options,
            low_accuracy_threshold=self.settings.low_accuracy_threshold,
        )
        if shuffle_options is not None:
            new.shuffle_options = bool(shuffle_options)
        if low_accuracy_threshold is not None:
            if (
                isinstance(low_accuracy_threshold, bool)
                or not isinstance(low_accuracy_threshold, int)
                or not MIN_LOW_ACCURACY_THRESHOLD <= low_accuracy_threshold <= MAX_LOW_ACCURACY_THRESHOLD
            ):
                raise SettingsError(
                    f"The low-accuracy threshold must be an integer between "
                    f"{MIN_LOW_ACCURACY_THRESHOLD} and {MAX_LOW_ACCURACY_THRESHOLD}."
                )
            new.low_accuracy_threshold = low_accuracy_threshold

        if new == self.settings:
            logger.info("Settings not saved, no changes detected.")
            return False

        previous = self.settings
        self.settings = new
        try:
            self.save_settings()
        except StorageError:
            self.settings = previous
            raise
        logger.info("Settings saved: %s", new)
        return True
