"""
Tests for the import contract and stored-data repair.

Import is all-or-nothing and must report the failing question number.
Repair must keep every valid record and drop or reset the invalid ones.
"""

import json
import warnings

import pytest
from quizdeck.validation import (
    QuestionFormatError,
    parse_question_json,
    repair_decks,
    repair_settings,
    validate_question_data,
)


def _item(**overrides):
    item = {
        "question": "Capital of France?",
        "options": ["Paris", "Lyon"],
        "correctAnswer": "Paris",
    }
    item.update(overrides)
    return item


class TestParseQuestionJson:

    def test_empty_file_rejected(self):
        with pytest.raises(QuestionFormatError, match="empty"):
            parse_question_json("   \n")

    def test_invalid_json_rejected(self):
        """Should wrap the decoder error."""
        with pytest.raises(QuestionFormatError, match="Could not parse JSON"):
            parse_question_json("[{")

    def test_valid_file(self):
        drafts = parse_question_json(json.dumps([_item(explanation=" Because. ")]))
        assert len(drafts) == 1
        assert drafts[0].explanation == "Because."


class TestValidateQuestionData:

    def test_not_a_list(self):
        with pytest.raises(QuestionFormatError) as exc:
            validate_question_data({"question": "x"})
        assert exc.value.question_number is None

    def test_empty_list(self):
        with pytest.raises(QuestionFormatError, match="does not contain any questions"):
            validate_question_data([])

    def test_trims_all_strings(self):
        """Should trim question, options and answer before matching."""
        drafts = validate_question_data([
            _item(question="  Q?  ", options=[" Paris ", "Lyon  "], correctAnswer=" Paris"),
        ])
        assert drafts[0].question == "Q?"
        assert drafts[0].options == ["Paris", "Lyon"]
        assert drafts[0].correct_answer == "Paris"

    def test_non_string_options_are_stringified(self):
        drafts = validate_question_data([_item(options=[1, 2, 3], correctAnswer="2")])
        assert drafts[0].options == ["1", "2", "3"]

    def test_entry_not_an_object(self):
        with pytest.raises(QuestionFormatError) as exc:
            validate_question_data([_item(), "nope"])
        assert exc.value.question_number == 2
        assert str(exc.value).startswith("Question 2:")

    @pytest.mark.parametrize("question", [None, "", "   ", 5])
    def test_missing_question_text(self, question):
        with pytest.raises(QuestionFormatError, match="'question'"):
            validate_question_data([_item(question=question)])

    def test_too_few_options(self):
        with pytest.raises(QuestionFormatError, match="fewer than 2"):
            validate_question_data([_item(options=["Paris"], correctAnswer="Paris")])

    def test_blank_option_rejects_file(self):
        """Should reject even if two valid options remain."""
        with pytest.raises(QuestionFormatError, match="empty choice"):
            validate_question_data([_item(options=["Paris", "Lyon", "  "])])

    def test_missing_correct_answer(self):
        with pytest.raises(QuestionFormatError, match="'correctAnswer' is missing"):
            validate_question_data([_item(correctAnswer="")])

    def test_correct_answer_must_match_an_option(self):
        """Should list the options in the message."""
        with pytest.raises(QuestionFormatError) as exc:
            validate_question_data([_item(correctAnswer="paris")])
        assert '"Paris", "Lyon"' in str(exc.value)
        assert exc.value.question_number == 1

    def test_explanation_must_be_string(self):
        with pytest.raises(QuestionFormatError, match="'explanation'"):
            validate_question_data([_item(explanation=42)])

    def test_null_explanation_allowed(self):
        drafts = validate_question_data([_item(explanation=None)])
        assert drafts[0].explanation == ""

    def test_first_failure_wins(self):
        with pytest.raises(QuestionFormatError) as exc:
            validate_question_data([_item(), _item(question=""), _item(options=[])])
        assert exc.value.question_number == 2


def _stored_question(**overrides):
    q = {
        "id": "q1",
        "question": "Q?",
        "options": ["a", "b"],
        "correctAnswer": "a",
        "explanation": "",
        "history": [{"ts": 1, "correct": True, "evaluation": "easy"}],
    }
    q.update(overrides)
    return q


def _stored_deck(deck_id="d1", **overrides):
    deck = {
        "id": deck_id,
        "name": "Deck",
        "questions": [_stored_question()],
        "lastStudied": 1,
        "totalCorrect": 1,
        "totalIncorrect": 0,
        "sessionHistory": [{"ts": 1, "correct": 1, "incorrect": 0}],
    }
    deck.update(overrides)
    return deck


class TestRepairDecks:

    def test_valid_data_untouched(self):
        raw = {"d1": _stored_deck()}
        repaired, modified = repair_decks(raw)
        assert modified is False
        assert repaired == raw

    def test_deck_with_mismatched_id_dropped(self):
        with pytest.warns(UserWarning, match="Invalid deck structure"):
            repaired, modified = repair_decks({"other": _stored_deck("d1")})
        assert repaired == {}
        assert modified is True

    def test_scalar_fields_reset(self):
        raw = {"d1": _stored_deck(lastStudied="yesterday", totalCorrect=None,
                                  totalIncorrect=float("nan"), sessionHistory="x")}
        repaired, modified = repair_decks(raw)
        deck = repaired["d1"]
        assert modified is True
        assert deck["lastStudied"] is None
        assert deck["totalCorrect"] == 0
        assert deck["totalIncorrect"] == 0
        assert deck["sessionHistory"] == []

    def test_malformed_sessions_dropped(self):
        raw = {"d1": _stored_deck(sessionHistory=[
            {"ts": 1, "correct": 1, "incorrect": 0},
            {"ts": "x", "correct": 1, "incorrect": 0},
            None,
        ])}
        repaired, modified = repair_decks(raw)
        assert modified is True
        assert len(repaired["d1"]["sessionHistory"]) == 1

    def test_question_with_answer_not_in_options_dropped(self):
        raw = {"d1": _stored_deck(questions=[
            _stored_question(id="good"),
            _stored_question(id="bad", correctAnswer="z"),
        ])}
        with pytest.warns(UserWarning, match="index 1"):
            repaired, modified = repair_decks(raw)
        assert modified is True
        assert [q["id"] for q in repaired["d1"]["questions"]] == ["good"]

    def test_question_with_blank_options_dropped_when_too_few_remain(self):
        raw = {"d1": _stored_deck(questions=[_stored_question(options=["a", " "])])}
        with pytest.warns(UserWarning):
            repaired, _ = repair_decks(raw)
        assert repaired["d1"]["questions"] == []

    def test_infinite_numbers_reset(self):
        """Should treat infinity like any other non-number."""
        raw = {"d1": _stored_deck(lastStudied=float("inf"), totalCorrect=float("-inf"),
                                  sessionHistory=[{"ts": float("inf"), "correct": 1, "incorrect": 0}],
                                  questions=[_stored_question(history=[
                                      {"ts": float("inf"), "correct": True, "evaluation": "easy"},
                                  ])])}
        repaired, modified = repair_decks(raw)
        deck = repaired["d1"]
        assert modified is True
        assert deck["lastStudied"] is None
        assert deck["totalCorrect"] == 0
        assert deck["sessionHistory"] == []
        assert deck["questions"][0]["history"] == []

    def test_large_integers_kept(self):
        raw = {"d1": _stored_deck(totalCorrect=10 ** 400)}
        repaired, modified = repair_decks(raw)
        assert modified is False
        assert repaired["d1"]["totalCorrect"] == 10 ** 400

    def test_history_cleaned(self):
        """Should drop malformed entries and null unknown evaluations."""
        raw = {"d1": _stored_deck(questions=[_stored_question(history=[
            {"ts": 1, "correct": True, "evaluation": "easy"},
            {"ts": 2, "correct": "yes"},
            {"ts": 3, "correct": False, "evaluation": "meh"},
        ])])}
        repaired, modified = repair_decks(raw)
        history = repaired["d1"]["questions"][0]["history"]
        assert modified is True
        assert [h["ts"] for h in history] == [1, 3]
        assert history[1]["evaluation"] is None

    def test_missing_explanation_defaulted(self):
        question = _stored_question()
        del question["explanation"]
        repaired, modified = repair_decks({"d1": _stored_deck(questions=[question])})
        assert modified is True
        assert repaired["d1"]["questions"][0]["explanation"] == ""

    def test_input_not_mutated(self):
        raw = {"d1": _stored_deck(totalCorrect="x")}
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            repair_decks(raw)
        assert raw["d1"]["totalCorrect"] == "x"

    def test_non_mapping_discarded(self):
        with pytest.warns(UserWarning):
            repaired, modified = repair_decks(["not", "a", "mapping"])
        assert repaired == {}
        assert modified is True


class TestRepairSettings:

    def test_defaults_for_empty(self):
        settings, modified = repair_settings({})
        assert settings == {"shuffleOptions": True, "lowAccuracyThreshold": 50}
        assert modified is False

    def test_valid_values_kept(self):
        settings, modified = repair_settings({"shuffleOptions": False, "lowAccuracyThreshold": 30})
        assert settings == {"shuffleOptions": False, "lowAccuracyThreshold": 30}
        assert modified is False

    @pytest.mark.parametrize("threshold", [0, 100, "50", None])
    def test_invalid_threshold_reset(self, threshold):
        with pytest.warns(UserWarning):
            settings, modified = repair_settings({"lowAccuracyThreshold": threshold})
        assert settings["lowAccuracyThreshold"] == 50
        assert modified is True

    def test_invalid_shuffle_reset(self):
        with pytest.warns(UserWarning):
            settings, modified = repair_settings({"shuffleOptions": "no"})
        assert settings["shuffleOptions"] is True
        assert modified is True
