"""
Study flow: question filters and the study-session state machine.

A session walks a filtered copy of a deck's questions:

    AWAITING_ANSWER --answer()--> ANSWERED --evaluate()--> AWAITING_ANSWER (next)
                                     |                        ...
                                     +--retry()--> AWAITING_ANSWER (same question)

After the last evaluation, or on quit(), the session is FINISHED and a
SessionRecord is added to the deck if anything was answered.

Answer records are only written on evaluate() (or on quit() for a question
that was answered but not evaluated). A retried wrong answer therefore
leaves no trace in the question history, only the final attempt does.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from quizdeck.model import Deck, Evaluation, Question, SessionRecord, now_ms
from quizdeck.storage import DeckStore, StorageError

logger = logging.getLogger(__name__)


class StudyError(Exception):
    """Raised when a session cannot start or an action is not allowed now."""
    pass


class StudyFilter(Enum):
    """Which questions of the deck a session covers."""
    ALL = "all"
    LOW_ACCURACY = "lowAccuracy"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"
    DIFFICULT = "difficult"
    NORMAL = "normal"
    EASY = "easy"


FILTER_LABELS = {
    StudyFilter.ALL: "All questions",
    StudyFilter.LOW_ACCURACY: "Low accuracy",
    StudyFilter.INCORRECT: "Last answer incorrect",
    StudyFilter.UNANSWERED: "Unanswered",
    StudyFilter.DIFFICULT: "Rated difficult",
    StudyFilter.NORMAL: "Rated normal",
    StudyFilter.EASY: "Rated easy",
}


def filter_questions(deck: Deck, study_filter: StudyFilter,
                     low_accuracy_threshold: int) -> List[Question]:
    """
    Select the questions a session with ``study_filter`` would cover.

    The evaluation filters look only at the most recent answer.
    """
    questions = deck.questions

    if study_filter is StudyFilter.LOW_ACCURACY:
        return [q for q in questions if q.history and q.accuracy <= low_accuracy_threshold]
    if study_filter is StudyFilter.INCORRECT:
        return [q for q in questions if q.history and q.history[-1].correct is False]
    if study_filter is StudyFilter.UNANSWERED:
        return [q for q in questions if not q.history]
    if study_filter in (StudyFilter.DIFFICULT, StudyFilter.NORMAL, StudyFilter.EASY):
        wanted = Evaluation(study_filter.value)
        return [q for q in questions if q.history and q.history[-1].evaluation is wanted]
    return list(questions)


def shuffled(items: List, rng: random.Random) -> List:
    """Fisher-Yates shuffle into a new list."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


class Phase(Enum):
    AWAITING_ANSWER = "awaiting_answer"
    ANSWERED = "answered"
    FINISHED = "finished"


@dataclass
class AnswerResult:
    correct: bool
    selected: str
    correct_answer: str
    explanation: str


@dataclass
class SessionSummary:
    correct: int
    incorrect: int
    recorded: bool

    @property
    def total(self) -> int:
        return self.correct + self.incorrect


class StudySession:
    """
    One pass over a filtered study list of the selected deck.

    Use ``StudySession.start(store, study_filter)`` rather than the
    constructor: it checks the selection and builds the list.
    """

    def __init__(self, store: DeckStore, deck: Deck, questions: List[Question],
                 rng: Optional[random.Random] = None) -> None:
        self.store = store
        self.deck = deck
        self.questions = questions
        self.rng = rng or random.Random()
        self.index = 0
        self.correct = 0
        self.incorrect = 0
        self.phase = Phase.AWAITING_ANSWER if questions else Phase.FINISHED
        self.last_result: Optional[AnswerResult] = None
        self.summary: Optional[SessionSummary] = None
        self._options: List[str] = []
        self._prepare_question()

    @classmethod
    def start(cls, store: DeckStore, study_filter: StudyFilter = StudyFilter.ALL,
              rng: Optional[random.Random] = None) -> "StudySession":
        """
        Build a session for the selected deck.

        Raises:
            StudyError: If no deck is selected or the filter matches nothing
        """
        deck = store.current_deck
        if deck is None:
            raise StudyError("Select a deck before starting to study.")

        questions = filter_questions(deck, study_filter, store.settings.low_accuracy_threshold)
        if not questions:
            raise StudyError(f"No questions match the '{FILTER_LABELS[study_filter]}' filter.")

        rng = rng or random.Random()
        if store.settings.shuffle_options:
            questions = shuffled(questions, rng)

        logger.info("Starting session on deck %r with %d question(s), filter %s",
                    deck.name, len(questions), study_filter.value)
        return cls(store, deck, questions, rng=rng)

    # =========================================================================
    # STATE
    # =========================================================================

    def _prepare_question(self) -> None:
        if self.phase is Phase.FINISHED:
            self._options = []
            return
        options = self.questions[self.index].options
        if self.store.settings.shuffle_options:
            self._options = shuffled(options, self.rng)
        else:
            self._options = list(options)

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase is Phase.FINISHED:
            return None
        return self.questions[self.index]

    @property
    def presented_options(self) -> List[str]:
        """Options of the current question in display order."""
        return list(self._options)

    @property
    def position(self) -> int:
        """1-based number of the current question."""
        return self.index + 1

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def finished(self) -> bool:
        return self.phase is Phase.FINISHED

    def _require(self, phase: Phase, action: str) -> None:
        if self.phase is not phase:
            raise StudyError(f"Cannot {action} while the session is {self.phase.value}.")

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def answer(self, option: str) -> AnswerResult:
        """Submit an option for the current question."""
        self._require(Phase.AWAITING_ANSWER, "answer")
        question = self.questions[self.index]
        if option not in question.options:
            raise StudyError(f"'{option}' is not one of the options.")

        is_correct = option == question.correct_answer
        if is_correct:
            self.correct += 1
        else:
            self.incorrect += 1

        self.last_result = AnswerResult(
            correct=is_correct,
            selected=option,
            correct_answer=question.correct_answer,
            explanation=question.explanation,
        )
        self.phase = Phase.ANSWERED
        return self.last_result

    def retry(self) -> None:
        """Try the current question again after a wrong answer."""
        self._require(Phase.ANSWERED, "retry")
        if self.last_result is None or self.last_result.correct:
            raise StudyError("Only an incorrect answer can be retried.")
        # only the session counter changes; nothing was recorded yet
        self.incorrect = max(0, self.incorrect - 1)
        self.last_result = None
        self.phase = Phase.AWAITING_ANSWER
        logger.debug("Retrying question %d", self.position)

    def evaluate(self, evaluation: Evaluation) -> Optional[SessionSummary]:
        """
        Record the answer with a self-assessment and move to the next question.

        Returns:
            The session summary when this was the last question, else None

        Raises:
            StudyError: If the question no longer exists in the deck
            StorageError: If saving fails (nothing is recorded, state unchanged)
        """
        self._require(Phase.ANSWERED, "evaluate")
        self._record_current(evaluation)

        self.index += 1
        self.last_result = None
        if self.index >= len(self.questions):
            return self._finish()
        self.phase = Phase.AWAITING_ANSWER
        self._prepare_question()
        return None

    def quit(self) -> SessionSummary:
        """
        Stop early. A question that was answered but not evaluated is
        recorded without evaluation; the session itself is recorded too.
        """
        if self.phase is Phase.FINISHED:
            raise StudyError("The session is already finished.")
        if self.phase is Phase.ANSWERED:
            try:
                self._record_current(None, save=False)
            except StudyError as e:
                logger.warning("Could not record the pending answer on quit: %s", e)
        logger.info("Session quit at question %d of %d", self.position, self.total)
        return self._finish()

    # =========================================================================
    # RECORDING
    # =========================================================================

    def _record_current(self, evaluation: Optional[Evaluation], save: bool = True) -> None:
        question_id = self.questions[self.index].id
        question = self.deck.get_question(question_id)
        if question is None:
            raise StudyError(f"Question {question_id} is no longer in deck {self.deck.id}; history not saved.")

        snapshot = (self.deck.total_correct, self.deck.total_incorrect, self.deck.last_studied)
        self.deck.record_answer(question, self.last_result.correct, evaluation)
        if not save:
            return
        try:
            self.store.save_decks()
        except StorageError:
            question.history.pop()
            self.deck.total_correct, self.deck.total_incorrect, self.deck.last_studied = snapshot
            raise

    def _finish(self) -> SessionSummary:
        self.phase = Phase.FINISHED
        recorded = False
        if self.correct > 0 or self.incorrect > 0:
            self.deck.session_history.append(
                SessionRecord(ts=now_ms(), correct=self.correct, incorrect=self.incorrect)
            )
            recorded = True
        try:
            self.store.save_decks()
        except StorageError as e:
            # the answers stay in memory; the caller still gets its summary
            logger.error("Failed to save the session result: %s", e)
            recorded = False
        self.summary = SessionSummary(correct=self.correct, incorrect=self.incorrect, recorded=recorded)
        self._options = []
        logger.info("Session finished: %d correct, %d incorrect", self.correct, self.incorrect)
        return self.summary
