"""Shared fixtures for quizdeck tests."""

import json

import pytest

from quizdeck.examples import SAMPLE_QUESTIONS, build_example_deck
from quizdeck.storage import DeckStore


@pytest.fixture
def example_deck():
    return build_example_deck()


@pytest.fixture
def empty_store(tmp_path):
    """A loaded store with no files on disk."""
    return DeckStore(tmp_path / "data").load()


@pytest.fixture
def store(empty_store, example_deck):
    """A store holding the example deck, saved and selected."""
    empty_store.decks[example_deck.id] = example_deck
    empty_store.save_decks()
    empty_store.select_deck(example_deck.id)
    return empty_store


@pytest.fixture
def questions_file(tmp_path):
    """A valid import file named 'Geography.json'."""
    path = tmp_path / "Geography.json"
    path.write_text(json.dumps(SAMPLE_QUESTIONS), encoding="utf-8")
    return path
