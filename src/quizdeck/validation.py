"""
Validation for quizdeck (Raw Input -> checked question data).

Two jobs live here:

    1. The IMPORT CONTRACT for question files:

        [
          {
            "question": "...",
            "options": ["...", "..."],
            "correctAnswer": "...",
            "explanation": "..."        (optional)
          },
          ...
        ]

       Import is all-or-nothing: the first invalid question rejects the file.

    2. REPAIR of previously stored data. Stored decks and settings are
       checked on load; malformed records are dropped or reset to defaults
       rather than rejected, so one bad record never loses a whole store.

Both work on plain JSON-like values (dicts, lists, str, numbers) and never
touch the filesystem.
"""

import json
import math
import warnings
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from quizdeck.model import (
    Evaluation,
    DEFAULT_LOW_ACCURACY_THRESHOLD,
    MIN_LOW_ACCURACY_THRESHOLD,
    MAX_LOW_ACCURACY_THRESHOLD,
)


VALID_EVALUATIONS = {e.value for e in Evaluation}


class QuestionFormatError(ValueError):
    """Raised when an import file does not follow the question format."""

    def __init__(self, message: str, question_number: Optional[int] = None):
        self.question_number = question_number
        if question_number is not None:
            message = f"Question {question_number}: {message}"
        super().__init__(message)


@dataclass
class QuestionDraft:
    """A validated question from an import file, before it gets an ID."""
    question: str
    options: List[str]
    correct_answer: str
    explanation: str = ""


def _stringify(value: Any) -> str:
    """Render an option value the way it appears in the source JSON."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, int):
        return True
    return math.isfinite(value)


# =========================================================================
# IMPORT CONTRACT
# =========================================================================

def parse_question_json(text: str) -> List[QuestionDraft]:
    """
    Parse the contents of an import file.

    Args:
        text: Raw file contents

    Returns:
        Validated question drafts in file order

    Raises:
        QuestionFormatError: If the content is empty, not JSON, or invalid
    """
    if not text or text.strip() == "":
        raise QuestionFormatError("The file is empty.")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise QuestionFormatError(f"Could not parse JSON, check the format. Details: {e}") from e
    return validate_question_data(data)


def validate_question_data(data: Any) -> List[QuestionDraft]:
    """
    Check parsed JSON against the import contract.

    Rules per question (numbered from 1 in error messages):
        - must be an object
        - 'question' is a non-empty string
        - 'options' is a list of at least two entries, none blank after trimming
        - 'correctAnswer' is a non-empty string matching one trimmed option exactly
        - 'explanation', when present and not null, is a string

    All strings are trimmed in the returned drafts.

    Raises:
        QuestionFormatError: On the first violation
    """
    if not isinstance(data, list):
        raise QuestionFormatError("The data is not a list of questions.")
    if len(data) == 0:
        raise QuestionFormatError("The file does not contain any questions.")

    drafts: List[QuestionDraft] = []
    for number, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            raise QuestionFormatError("Entry is not an object.", number)

        text = item.get("question")
        if not isinstance(text, str) or text.strip() == "":
            raise QuestionFormatError("'question' is missing or empty.", number)

        options = item.get("options")
        if not isinstance(options, list) or len(options) < 2:
            raise QuestionFormatError("'options' is not a list or has fewer than 2 choices.", number)
        trimmed_options = [_stringify(opt).strip() for opt in options]
        trimmed_options = [opt for opt in trimmed_options if opt != ""]
        if len(trimmed_options) != len(options) or len(trimmed_options) < 2:
            raise QuestionFormatError(
                "'options' contains an empty choice or fewer than 2 valid choices.", number
            )

        correct_answer = item.get("correctAnswer")
        if not isinstance(correct_answer, str) or correct_answer.strip() == "":
            raise QuestionFormatError("'correctAnswer' is missing or empty.", number)
        correct_answer = correct_answer.strip()
        if correct_answer not in trimmed_options:
            options_str = ", ".join(f'"{opt}"' for opt in trimmed_options)
            raise QuestionFormatError(
                f"'correctAnswer' (\"{correct_answer}\") was not found in 'options' "
                f"[{options_str}]. It must match one option exactly.",
                number,
            )

        explanation = ""
        raw_explanation = item.get("explanation")
        if raw_explanation is not None:
            if not isinstance(raw_explanation, str):
                raise QuestionFormatError("'explanation' is not a string.", number)
            explanation = raw_explanation.strip()

        drafts.append(QuestionDraft(
            question=text.strip(),
            options=trimmed_options,
            correct_answer=correct_answer,
            explanation=explanation,
        ))

    return drafts


# =========================================================================
# REPAIR OF STORED DATA
# =========================================================================

def _repair_question(raw: Any) -> Tuple[Optional[Dict[str, Any]], bool]:
    """Return (repaired question or None if unusable, modified)."""
    if not (
        isinstance(raw, dict)
        and isinstance(raw.get("id"), str)
        and isinstance(raw.get("question"), str)
        and isinstance(raw.get("options"), list)
        and len(raw["options"]) >= 2
        and isinstance(raw.get("correctAnswer"), str)
    ):
        return None, True

    modified = False
    question = dict(raw)
    options = [_stringify(opt).strip() for opt in raw["options"]]
    question["options"] = [opt for opt in options if opt != ""]
    question["correctAnswer"] = raw["correctAnswer"].strip()
    if len(question["options"]) < 2 or question["correctAnswer"] not in question["options"]:
        return None, True

    history = raw.get("history")
    if not isinstance(history, list):
        history = []
        modified = True
    kept = []
    for entry in history:
        if not (isinstance(entry, dict) and _is_number(entry.get("ts"))
                and isinstance(entry.get("correct"), bool)):
            continue
        entry = dict(entry)
        if entry.get("evaluation") not in VALID_EVALUATIONS and entry.get("evaluation") is not None:
            entry["evaluation"] = None
            modified = True
        elif "evaluation" not in entry:
            entry["evaluation"] = None
        kept.append(entry)
    if len(kept) != len(history):
        modified = True
    question["history"] = kept

    if not isinstance(question.get("explanation"), str):
        question["explanation"] = ""
        modified = True

    return question, modified


def repair_decks(raw: Any) -> Tuple[Dict[str, Dict[str, Any]], bool]:
    """
    Validate a stored deck mapping (deck id -> deck dict) and repair it.

    Invalid decks and questions are dropped with a UserWarning, invalid
    scalar fields are reset to their defaults.

    Returns:
        (repaired mapping, whether anything was changed)
    """
    if not isinstance(raw, dict):
        warnings.warn("Stored deck data is not a mapping; discarding it.", UserWarning)
        return {}, True

    modified = False
    valid: Dict[str, Dict[str, Any]] = {}

    for deck_id, deck in raw.items():
        if not (
            isinstance(deck, dict)
            and deck.get("id") == deck_id
            and isinstance(deck.get("name"), str)
            and isinstance(deck.get("questions"), list)
        ):
            warnings.warn(f"Invalid deck structure removed for ID '{deck_id}'.", UserWarning)
            modified = True
            continue

        repaired = dict(deck)

        if repaired.get("lastStudied") is not None and not _is_number(repaired.get("lastStudied")):
            repaired["lastStudied"] = None
            modified = True
        repaired.setdefault("lastStudied", None)
        for key in ("totalCorrect", "totalIncorrect"):
            if not _is_number(repaired.get(key)):
                repaired[key] = 0
                modified = True

        sessions = repaired.get("sessionHistory")
        if not isinstance(sessions, list):
            repaired["sessionHistory"] = []
            modified = True
        else:
            repaired["sessionHistory"] = [
                s for s in sessions
                if isinstance(s, dict)
                and _is_number(s.get("ts"))
                and _is_number(s.get("correct"))
                and _is_number(s.get("incorrect"))
            ]
            if len(repaired["sessionHistory"]) != len(sessions):
                modified = True

        questions = []
        for index, raw_question in enumerate(deck["questions"]):
            question, question_modified = _repair_question(raw_question)
            modified = modified or question_modified
            if question is None:
                warnings.warn(
                    f"Invalid question removed at index {index} in deck "
                    f"'{deck['name']}' (ID: {deck_id}).",
                    UserWarning,
                )
                continue
            questions.append(question)
        repaired["questions"] = questions

        valid[deck_id] = repaired

    return valid, modified


def repair_settings(raw: Any) -> Tuple[Dict[str, Any], bool]:
    """
    Fill in missing or invalid settings with defaults.

    ``modified`` is True only when a key was present with an invalid value;
    a missing key is silently defaulted.
    """
    settings: Dict[str, Any] = {
        "shuffleOptions": True,
        "lowAccuracyThreshold": DEFAULT_LOW_ACCURACY_THRESHOLD,
    }
    if not isinstance(raw, dict):
        return settings, True

    modified = False

    shuffle = raw.get("shuffleOptions")
    if isinstance(shuffle, bool):
        settings["shuffleOptions"] = shuffle
    elif "shuffleOptions" in raw:
        modified = True

    threshold = raw.get("lowAccuracyThreshold")
    if _is_number(threshold) and MIN_LOW_ACCURACY_THRESHOLD <= threshold <= MAX_LOW_ACCURACY_THRESHOLD:
        settings["lowAccuracyThreshold"] = threshold
    elif "lowAccuracyThreshold" in raw:
        modified = True

    if modified:
        warnings.warn("Settings were repaired to default values for some keys.", UserWarning)

    return settings, modified
