"""
Tests for study filters and the StudySession state machine.
"""

import random

import pytest

from quizdeck.model import Evaluation
from quizdeck.storage import DeckStore, StorageError
from quizdeck.study import (
    Phase,
    StudyError,
    StudyFilter,
    StudySession,
    filter_questions,
    shuffled,
)


def _ids(questions):
    return [q.id for q in questions]


@pytest.fixture
def ordered_store(store):
    """The example store with shuffling turned off."""
    store.update_settings(shuffle_options=False)
    return store


class TestFilterQuestions:

    @pytest.mark.parametrize("study_filter, expected", [
        (StudyFilter.ALL, ["q1", "q2", "q3", "q4", "q5"]),
        (StudyFilter.LOW_ACCURACY, ["q2"]),
        (StudyFilter.INCORRECT, ["q2"]),
        (StudyFilter.UNANSWERED, ["q4", "q5"]),
        (StudyFilter.DIFFICULT, ["q2"]),
        (StudyFilter.NORMAL, ["q1"]),
        (StudyFilter.EASY, ["q3"]),
    ])
    def test_filters(self, example_deck, study_filter, expected):
        assert _ids(filter_questions(example_deck, study_filter, 50)) == expected

    def test_low_accuracy_uses_threshold(self, example_deck):
        """Should include accuracies equal to the threshold."""
        assert _ids(filter_questions(example_deck, StudyFilter.LOW_ACCURACY, 67)) == ["q1", "q2"]

    def test_evaluation_filter_uses_last_answer_only(self, example_deck):
        """q1 was rated easy first but normal last."""
        assert "q1" not in _ids(filter_questions(example_deck, StudyFilter.EASY, 50))

    def test_all_returns_copy(self, example_deck):
        result = filter_questions(example_deck, StudyFilter.ALL, 50)
        result.pop()
        assert len(example_deck.questions) == 5


class TestShuffled:

    def test_is_permutation(self):
        items = list(range(20))
        result = shuffled(items, random.Random(3))
        assert sorted(result) == items
        assert items == list(range(20))

    def test_seeded_is_reproducible(self):
        assert shuffled("abcdef", random.Random(7)) == shuffled("abcdef", random.Random(7))


class TestStart:

    def test_requires_selected_deck(self, empty_store):
        with pytest.raises(StudyError, match="Select a deck"):
            StudySession.start(empty_store)

    def test_empty_filter_result(self, ordered_store):
        ordered_store.reset_history()
        with pytest.raises(StudyError, match="Low accuracy"):
            StudySession.start(ordered_store, StudyFilter.LOW_ACCURACY)

    def test_unshuffled_order(self, ordered_store, example_deck):
        session = StudySession.start(ordered_store)
        assert session.total == 5
        assert session.position == 1
        assert session.current_question.id == "q1"
        assert session.presented_options == example_deck.questions[0].options
        assert session.phase is Phase.AWAITING_ANSWER

    def test_shuffle_keeps_every_option(self, store):
        session = StudySession.start(store, rng=random.Random(1))
        assert sorted(_ids(session.questions)) == ["q1", "q2", "q3", "q4", "q5"]
        assert sorted(session.presented_options) == sorted(session.current_question.options)


class TestAnswering:

    def test_correct_answer(self, ordered_store):
        session = StudySession.start(ordered_store)
        result = session.answer("Tokyo")

        assert result.correct is True
        assert result.correct_answer == "Tokyo"
        assert result.explanation.startswith("Tokyo")
        assert session.phase is Phase.ANSWERED
        assert session.correct == 1

    def test_incorrect_answer(self, ordered_store):
        session = StudySession.start(ordered_store)
        result = session.answer("Kyoto")
        assert result.correct is False
        assert session.incorrect == 1

    def test_unknown_option_rejected(self, ordered_store):
        session = StudySession.start(ordered_store)
        with pytest.raises(StudyError):
            session.answer("Paris")
        assert session.phase is Phase.AWAITING_ANSWER

    def test_cannot_answer_twice(self, ordered_store):
        session = StudySession.start(ordered_store)
        session.answer("Tokyo")
        with pytest.raises(StudyError):
            session.answer("Tokyo")

    def test_answer_alone_records_nothing(self, ordered_store, example_deck):
        session = StudySession.start(ordered_store)
        session.answer("Tokyo")
        assert example_deck.questions[0].total_count == 3


class TestRetry:

    def test_retry_after_incorrect(self, ordered_store):
        """Should undo the incorrect count and ask the same question again."""
        session = StudySession.start(ordered_store)
        session.answer("Kyoto")
        session.retry()

        assert session.incorrect == 0
        assert session.phase is Phase.AWAITING_ANSWER
        assert session.current_question.id == "q1"

    def test_retry_after_correct_rejected(self, ordered_store):
        session = StudySession.start(ordered_store)
        session.answer("Tokyo")
        with pytest.raises(StudyError, match="incorrect"):
            session.retry()

    def test_only_final_attempt_recorded(self, ordered_store, example_deck):
        session = StudySession.start(ordered_store)
        session.answer("Kyoto")
        session.retry()
        session.answer("Tokyo")
        session.evaluate(Evaluation.EASY)

        q1 = example_deck.questions[0]
        assert q1.total_count == 4
        assert q1.history[-1].correct is True
        assert example_deck.total_incorrect == 3


class TestEvaluate:

    def test_records_and_persists(self, ordered_store, example_deck):
        session = StudySession.start(ordered_store)
        session.answer("Osaka")
        assert session.evaluate(Evaluation.DIFFICULT) is None

        q1 = example_deck.questions[0]
        assert q1.history[-1].correct is False
        assert q1.history[-1].evaluation is Evaluation.DIFFICULT
        assert example_deck.total_incorrect == 4
        assert session.current_question.id == "q2"

        saved = DeckStore(ordered_store.data_dir).load().get_deck(example_deck.id)
        assert saved.questions[0].history[-1].evaluation is Evaluation.DIFFICULT

    def test_last_question_finishes(self, ordered_store, example_deck):
        session = StudySession.start(ordered_store, StudyFilter.UNANSWERED)
        session.answer("Pacific")
        session.evaluate(Evaluation.EASY)
        session.answer("Kenya")
        summary = session.evaluate(Evaluation.NORMAL)

        assert session.finished is True
        assert session.current_question is None
        assert (summary.correct, summary.incorrect, summary.total) == (1, 1, 2)
        assert summary.recorded is True
        assert example_deck.session_history[-1].correct == 1
        assert len(example_deck.session_history) == 3

    def test_save_failure_rolls_back(self, ordered_store, example_deck, monkeypatch):
        session = StudySession.start(ordered_store)
        session.answer("Tokyo")

        def _raise(*args, **kwargs):
            raise StorageError("disk full")
        monkeypatch.setattr(ordered_store, "save_decks", _raise)

        with pytest.raises(StorageError):
            session.evaluate(Evaluation.EASY)

        q1 = example_deck.questions[0]
        assert q1.total_count == 3
        assert example_deck.total_correct == 3
        assert session.phase is Phase.ANSWERED

    def test_deleted_question_reported(self, ordered_store, example_deck):
        session = StudySession.start(ordered_store)
        session.answer("Tokyo")
        example_deck.questions.pop(0)
        with pytest.raises(StudyError, match="no longer"):
            session.evaluate(Evaluation.EASY)


class TestQuit:

    def test_quit_records_pending_answer_without_evaluation(self, ordered_store, example_deck):
        session = StudySession.start(ordered_store)
        session.answer("Tokyo")
        summary = session.quit()

        assert summary.recorded is True
        assert example_deck.questions[0].history[-1].evaluation is None
        assert session.finished is True

        saved = DeckStore(ordered_store.data_dir).load().get_deck(example_deck.id)
        assert saved.questions[0].total_count == 4
        assert len(saved.session_history) == 3

    def test_quit_before_answering_records_no_session(self, ordered_store, example_deck):
        summary = StudySession.start(ordered_store).quit()
        assert summary.total == 0
        assert summary.recorded is False
        assert len(example_deck.session_history) == 2

    def test_quit_twice_rejected(self, ordered_store):
        session = StudySession.start(ordered_store)
        session.quit()
        with pytest.raises(StudyError):
            session.quit()

    def test_finish_save_failure_is_reported(self, ordered_store, monkeypatch):
        session = StudySession.start(ordered_store)
        session.answer("Tokyo")

        def _raise(*args, **kwargs):
            raise StorageError("disk full")
        monkeypatch.setattr(ordered_store, "save_decks", _raise)

        summary = session.quit()
        assert summary.recorded is False
        assert summary.correct == 1
