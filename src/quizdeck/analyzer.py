"""
Deck Analyzer: dashboard statistics for a deck.

This module provides read-only analysis of Deck objects:
    - Overview (size, cumulative accuracy, last studied)
    - Session trends (last N sessions)
    - Per-question accuracy with filtering, search, sorting and pagination
    - Accuracy histogram
    - Question detail (recent answers)

IMPORTANT: This is the analysis layer. It does NOT modify the deck.
It only produces reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from quizdeck.model import AnswerRecord, Deck, Question


TREND_SESSIONS = 30
LOW_ACCURACY_MAX = 49
MEDIUM_ACCURACY_MAX = 79
MAX_RECENT_HISTORY = 5
QUESTIONS_PER_PAGE = 10
HISTOGRAM_BIN_WIDTH = 10


class AccuracyFilter(Enum):
    """Dashboard filter on per-question accuracy."""
    ALL = "all"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNANSWERED = "unanswered"


class SortOrder(Enum):
    """Dashboard ordering of per-question statistics."""
    ACCURACY_ASC = "accuracyAsc"
    ACCURACY_DESC = "accuracyDesc"
    MOST_INCORRECT = "mostIncorrect"
    QUESTION_ORDER = "questionOrder"
    LAST_ANSWERED = "lastAnswered"


@dataclass
class DeckOverview:
    name: str
    total_questions: int
    total_answered: int
    total_correct: int
    accuracy: int
    last_studied: Optional[int]


@dataclass
class QuestionStats:
    """Statistics of one question; ``accuracy`` is -1 when never answered."""
    question: Question
    original_index: int
    correct_count: int
    total_count: int
    incorrect_count: int
    accuracy: int
    last_answered: int


@dataclass
class TrendPoint:
    label: str
    ts: int
    correct: int
    incorrect: int
    accuracy: int


@dataclass
class HistogramBin:
    label: str
    lower: int
    upper: int
    count: int
    band: str


@dataclass
class Page:
    items: List[QuestionStats]
    page: int
    total_pages: int
    total_items: int
    start_index: int


@dataclass
class QuestionDetail:
    stats: QuestionStats
    display_number: int
    recent_history: List[AnswerRecord] = field(default_factory=list)


@dataclass
class DashboardReport:
    """Everything the dashboard shows for one deck."""

    overview: DeckOverview
    trends: List[TrendPoint] = field(default_factory=list)
    page: Optional[Page] = None
    histogram: List[HistogramBin] = field(default_factory=list)
    filtered_count: int = 0
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def accuracy_band(accuracy: int) -> Optional[str]:
    """Classify an accuracy as ``low``, ``medium`` or ``high`` (None if unanswered)."""
    if accuracy < 0:
        return None
    if accuracy <= LOW_ACCURACY_MAX:
        return "low"
    if accuracy <= MEDIUM_ACCURACY_MAX:
        return "medium"
    return "high"


def deck_overview(deck: Deck) -> DeckOverview:
    return DeckOverview(
        name=deck.name,
        total_questions=len(deck.questions),
        total_answered=deck.total_answered,
        total_correct=deck.total_correct,
        accuracy=deck.accuracy,
        last_studied=deck.last_studied,
    )


def question_stats(deck: Deck) -> List[QuestionStats]:
    stats = []
    for index, q in enumerate(deck.questions):
        correct = q.correct_count
        total = q.total_count
        stats.append(QuestionStats(
            question=q,
            original_index=index,
            correct_count=correct,
            total_count=total,
            incorrect_count=total - correct,
            accuracy=q.accuracy,
            last_answered=q.history[-1].ts if q.history else 0,
        ))
    return stats


def _matches_filter(s: QuestionStats, accuracy_filter: AccuracyFilter) -> bool:
    acc = s.accuracy
    if accuracy_filter is AccuracyFilter.LOW:
        return acc != -1 and acc <= LOW_ACCURACY_MAX
    if accuracy_filter is AccuracyFilter.MEDIUM:
        return LOW_ACCURACY_MAX < acc <= MEDIUM_ACCURACY_MAX
    if accuracy_filter is AccuracyFilter.HIGH:
        return acc > MEDIUM_ACCURACY_MAX
    if accuracy_filter is AccuracyFilter.UNANSWERED:
        return acc == -1
    return True


def _matches_search(s: QuestionStats, query: str) -> bool:
    q = s.question
    return (
        query in q.question.lower()
        or any(query in opt.lower() for opt in q.options)
        or query in q.correct_answer.lower()
        or query in q.explanation.lower()
    )


def _sort_key(sort_order: SortOrder):
    if sort_order is SortOrder.ACCURACY_ASC:
        # unanswered first, then lowest accuracy
        return lambda s: (s.accuracy != -1, s.accuracy, s.original_index)
    if sort_order is SortOrder.ACCURACY_DESC:
        # unanswered last, then highest accuracy
        return lambda s: (s.accuracy == -1, -s.accuracy, s.original_index)
    if sort_order is SortOrder.MOST_INCORRECT:
        return lambda s: (-s.incorrect_count, s.original_index)
    if sort_order is SortOrder.LAST_ANSWERED:
        return lambda s: (-s.last_answered, s.original_index)
    return lambda s: s.original_index


def filter_and_sort_stats(deck: Deck,
                          accuracy_filter: AccuracyFilter = AccuracyFilter.ALL,
                          search: str = "",
                          sort_order: SortOrder = SortOrder.ACCURACY_ASC) -> List[QuestionStats]:
    """
    Per-question statistics narrowed by accuracy band and a case-insensitive
    search over question text, options, answer and explanation.
    """
    stats = question_stats(deck)
    if accuracy_filter is not AccuracyFilter.ALL:
        stats = [s for s in stats if _matches_filter(s, accuracy_filter)]
    query = (search or "").strip().lower()
    if query:
        stats = [s for s in stats if _matches_search(s, query)]
    return sorted(stats, key=_sort_key(sort_order))


def paginate(items: Sequence[QuestionStats], page: int = 1,
             per_page: int = QUESTIONS_PER_PAGE) -> Page:
    """Slice out one page; out-of-range page numbers are clamped."""
    total_items = len(items)
    total_pages = max(1, -(-total_items // per_page))
    page = max(1, min(page, total_pages))
    start = (page - 1) * per_page
    return Page(
        items=list(items[start:start + per_page]),
        page=page,
        total_pages=total_pages,
        total_items=total_items,
        start_index=start,
    )


def session_trends(deck: Deck, limit: int = TREND_SESSIONS) -> List[TrendPoint]:
    """The most recent ``limit`` sessions, numbered from 1 within the window."""
    sessions = deck.session_history[-limit:] if limit > 0 else []
    return [
        TrendPoint(
            label=f"Session {n}",
            ts=s.ts,
            correct=s.correct,
            incorrect=s.incorrect,
            accuracy=s.accuracy,
        )
        for n, s in enumerate(sessions, start=1)
    ]


def accuracy_histogram(stats: Sequence[QuestionStats]) -> List[HistogramBin]:
    """
    Count answered questions per 10% accuracy bin.

    Bins are ``0-10%``, ``11-20%`` ... ``91-100%``; the first bin includes 0.
    """
    bins = []
    for lower in range(0, 100, HISTOGRAM_BIN_WIDTH):
        upper = lower + HISTOGRAM_BIN_WIDTH
        label_lower = lower if lower == 0 else lower + 1
        if upper <= LOW_ACCURACY_MAX + 1:
            band = "low"
        elif upper <= MEDIUM_ACCURACY_MAX + 1:
            band = "medium"
        else:
            band = "high"
        bins.append(HistogramBin(label=f"{label_lower}-{upper}%", lower=label_lower,
                                 upper=upper, count=0, band=band))

    for s in stats:
        if s.accuracy < 0:
            continue
        index = 0 if s.accuracy <= HISTOGRAM_BIN_WIDTH else (s.accuracy - 1) // HISTOGRAM_BIN_WIDTH
        bins[min(index, len(bins) - 1)].count += 1
    return bins


def question_detail(stats: QuestionStats, display_number: int,
                    max_recent: int = MAX_RECENT_HISTORY) -> QuestionDetail:
    """Detail view of a question; most recent answers first."""
    recent = list(reversed(stats.question.history[-max_recent:])) if max_recent > 0 else []
    return QuestionDetail(stats=stats, display_number=display_number, recent_history=recent)


def analyze_deck(deck: Deck,
                 accuracy_filter: AccuracyFilter = AccuracyFilter.ALL,
                 search: str = "",
                 sort_order: SortOrder = SortOrder.ACCURACY_ASC,
                 page: int = 1,
                 per_page: int = QUESTIONS_PER_PAGE) -> DashboardReport:
    """
    Build the complete dashboard for a deck.

    The histogram covers every question passing the filter and search,
    the page covers only the requested slice.
    """
    report = DashboardReport(overview=deck_overview(deck))
    report.trends = session_trends(deck)

    stats = filter_and_sort_stats(deck, accuracy_filter, search, sort_order)
    report.filtered_count = len(stats)
    report.page = paginate(stats, page, per_page)
    report.histogram = accuracy_histogram(stats)

    if not deck.session_history:
        report.add_warning("No study sessions recorded yet.")
    if not any(s.accuracy >= 0 for s in stats):
        report.add_warning("No answered questions to analyse.")
    if not stats:
        report.add_warning("No questions match the current filter.")

    return report
