"""
Core Deck Model Objects

Defines the fundamental data structures of a question deck.

These are pure data classes representing:
    - Answer records (one per answered question in a session)
    - Questions (multiple choice, with their answer history)
    - Session records (one per finished or quit study session)
    - Decks (root container, one per imported file)
    - Settings (user preferences)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about files, JSON or the terminal
        - Are fully serializable (see quizdeck.serialization)
        - Only derive values, they never persist anything
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from quizdeck.formatting import percent


DEFAULT_LOW_ACCURACY_THRESHOLD = 50
MIN_LOW_ACCURACY_THRESHOLD = 1
MAX_LOW_ACCURACY_THRESHOLD = 99


def now_ms() -> int:
    """Current time as epoch milliseconds (the unit of every stored timestamp)."""
    return int(time.time() * 1000)


class Evaluation(Enum):
    """Learner's self-assessment given after answering a question."""
    DIFFICULT = "difficult"
    NORMAL = "normal"
    EASY = "easy"


@dataclass
class AnswerRecord:
    """
    One answer to one question.

    Properties:
        ts: Epoch milliseconds when the answer was recorded
        correct: Whether the chosen option was the correct one
        evaluation:
            Self-assessment, or None when the session was quit
            before the learner evaluated the question
    """

    ts: int
    correct: bool
    evaluation: Optional[Evaluation] = None


@dataclass
class Question:
    """
    A multiple-choice question.

    Properties:
        id: Unique identifier, stable for the life of the deck
        question: Question text
        options: Answer choices (at least two, trimmed, non-empty)
        correct_answer: The option that is correct (always one of ``options``)
        explanation: Optional explanation shown after answering
        history: Answer records, oldest first

    INVARIANT:
        correct_answer in options
    """

    id: str
    question: str
    options: List[str]
    correct_answer: str
    explanation: str = ""
    history: List[AnswerRecord] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.history)

    @property
    def correct_count(self) -> int:
        return sum(1 for record in self.history if record.correct)

    @property
    def accuracy(self) -> int:
        """Rounded accuracy in percent, -1 when never answered."""
        return percent(self.correct_count, self.total_count)

    @property
    def last_record(self) -> Optional[AnswerRecord]:
        return self.history[-1] if self.history else None


@dataclass
class SessionRecord:
    """Result of one study session (finished or quit)."""

    ts: int
    correct: int = 0
    incorrect: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.incorrect

    @property
    def accuracy(self) -> int:
        """Rounded accuracy in percent, 0 for an empty session."""
        return max(percent(self.correct, self.total), 0)


@dataclass
class Deck:
    """
    Root container for one imported question file.

    Properties:
        id: Unique deck identifier
        name: Display name (unique across the store)
        questions: Questions in import order
        last_studied: Epoch ms of the last recorded answer, or None
        total_correct / total_incorrect: Cumulative answer counters
        session_history: Session records, oldest first

    The cumulative counters are kept separately from the question histories:
    they are what the overview displays and they survive question edits.
    """

    id: str
    name: str
    questions: List[Question] = field(default_factory=list)
    last_studied: Optional[int] = None
    total_correct: int = 0
    total_incorrect: int = 0
    session_history: List[SessionRecord] = field(default_factory=list)

    @property
    def total_answered(self) -> int:
        return self.total_correct + self.total_incorrect

    @property
    def accuracy(self) -> int:
        """Rounded cumulative accuracy in percent, -1 when nothing was answered."""
        return percent(self.total_correct, self.total_answered)

    def has_history(self) -> bool:
        """True if resetting the history would change anything."""
        return bool(
            self.last_studied
            or self.total_correct > 0
            or self.total_incorrect > 0
            or self.session_history
            or any(q.history for q in self.questions)
        )

    def get_question(self, question_id: str) -> Optional[Question]:
        """
        Retrieve a question by ID.

        Returns:
            Question object or None if not found
        """
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def record_answer(self, question: Question, correct: bool,
                      evaluation: Optional[Evaluation], ts: Optional[int] = None) -> AnswerRecord:
        """Append an answer to ``question`` and update the cumulative counters."""
        ts = ts if ts is not None else now_ms()
        record = AnswerRecord(ts=ts, correct=correct, evaluation=evaluation)
        question.history.append(record)
        if correct:
            self.total_correct += 1
        else:
            self.total_incorrect += 1
        self.last_studied = ts
        return record

    def clear_history(self) -> None:
        """Forget every answer and session; the questions themselves are kept."""
        self.last_studied = None
        self.total_correct = 0
        self.total_incorrect = 0
        self.session_history = []
        for question in self.questions:
            question.history = []


@dataclass
class Settings:
    """User preferences."""

    shuffle_options: bool = True
    low_accuracy_threshold: int = DEFAULT_LOW_ACCURACY_THRESHOLD


DeckMap = Dict[str, Deck]
