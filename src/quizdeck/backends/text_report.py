"""
Plain-text renderer for quizdeck reports.

Converts decks and analyzer reports into terminal-friendly text blocks.

Renderers:
    - deck list and current-deck summary
    - dashboard (overview, trends table, question page or histogram)
    - question detail
    - study session summary
"""

from typing import List, Optional, Sequence

from quizdeck.analyzer import (
    DashboardReport,
    DeckOverview,
    HistogramBin,
    Page,
    QuestionDetail,
    TrendPoint,
)
from quizdeck.formatting import NO_DATA, format_accuracy, format_date
from quizdeck.model import Deck, Settings


RULE_WIDTH = 70
BAR_WIDTH = 40
PREVIEW_LENGTH = 60


def _rule(char: str = "=") -> str:
    return char * RULE_WIDTH


def _preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    text = " ".join(text.split())
    if len(text) > length:
        return text[:length - 3] + "..."
    return text


def render_deck_list(decks: Sequence[Deck], current_deck_id: Optional[str] = None) -> str:
    """One line per deck, the selected deck marked with ``*``."""
    if not decks:
        return "No decks yet. Import a question file with 'quizdeck import FILE'."

    lines = []
    for deck in decks:
        marker = "*" if deck.id == current_deck_id else " "
        studied = f"Last studied: {format_date(deck.last_studied)}" if deck.last_studied else "Not studied"
        accuracy = f"Accuracy: {deck.accuracy}%" if deck.accuracy >= 0 else NO_DATA
        lines.append(f"{marker} {deck.name} ({len(deck.questions)} questions)  [{deck.id}]")
        lines.append(f"    {studied} / {accuracy}")
    return "\n".join(lines)


def render_current_deck(deck: Optional[Deck], settings: Settings,
                        filter_label: Optional[str] = None,
                        filtered_count: Optional[int] = None) -> str:
    if deck is None:
        return "Current deck: (none selected)"

    lines = [
        f"Current deck:   {deck.name}",
        f"Questions:      {len(deck.questions)}",
        f"Last studied:   {format_date(deck.last_studied) if deck.last_studied else '-'}",
        f"Accuracy:       {format_accuracy(deck.total_correct, deck.total_answered)}",
        f"Low accuracy:   <= {settings.low_accuracy_threshold}%",
    ]
    if filter_label is not None and filtered_count is not None:
        lines.append(f"Target ({filter_label}): {filtered_count} question(s)")
    return "\n".join(lines)


def render_overview(overview: DeckOverview) -> str:
    return "\n".join([
        f"Deck:           {overview.name}",
        f"Questions:      {overview.total_questions}",
        f"Answers:        {overview.total_answered}",
        f"Accuracy:       {format_accuracy(overview.total_correct, overview.total_answered)}",
        f"Last studied:   {format_date(overview.last_studied) if overview.last_studied else 'Never'}",
    ])


def render_trends(trends: Sequence[TrendPoint]) -> str:
    if not trends:
        return "No study sessions recorded."
    lines = [f"{'Session':<12} {'Date':<17} {'Correct':>7} {'Wrong':>7} {'Acc.':>5}"]
    for point in trends:
        lines.append(
            f"{point.label:<12} {format_date(point.ts):<17} "
            f"{point.correct:>7} {point.incorrect:>7} {point.accuracy:>4}%"
        )
    return "\n".join(lines)


def render_question_page(page: Page) -> str:
    lines: List[str] = []
    if not page.items:
        lines.append("No questions match the current filter.")
    for offset, stats in enumerate(page.items):
        number = page.start_index + offset + 1
        if stats.accuracy < 0:
            score = "unanswered"
        else:
            score = f"{stats.accuracy}% ({stats.correct_count} / {stats.total_count})"
        lines.append(f"{number:>4}. {_preview(stats.question.question):<{PREVIEW_LENGTH}}  {score}")

    if page.total_pages > 1:
        lines.append(f"page {page.page} / {page.total_pages} ({page.total_items} items)")
    elif page.total_items > 0:
        lines.append(f"{page.total_items} items")
    return "\n".join(lines)


def render_histogram(bins: Sequence[HistogramBin]) -> str:
    if not any(b.count for b in bins):
        return "No answered questions."
    largest = max(b.count for b in bins)
    lines = []
    for b in bins:
        width = round(b.count / largest * BAR_WIDTH) if largest else 0
        lines.append(f"{b.label:>8} {b.band:<6} {'#' * width} {b.count}")
    return "\n".join(lines)


def render_dashboard(report: DashboardReport, view: str = "list") -> str:
    """
    Render a full dashboard.

    Args:
        report: Result of ``analyze_deck``
        view: ``"list"`` for the paged question list, ``"chart"`` for the histogram
    """
    lines = [_rule(), f"DASHBOARD: {report.overview.name}", _rule(), ""]
    lines.append(render_overview(report.overview))
    lines += ["", "SESSION TRENDS", _rule("-"), render_trends(report.trends)]

    lines += ["", "QUESTION ANALYSIS", _rule("-")]
    if view == "chart":
        lines.append(render_histogram(report.histogram))
    elif report.page is not None:
        lines.append(render_question_page(report.page))

    if report.warnings:
        lines += ["", "NOTES"]
        lines += [f"  - {w}" for w in report.warnings]
    return "\n".join(lines)


def render_question_detail(detail: QuestionDetail) -> str:
    stats = detail.stats
    question = stats.question
    if stats.accuracy < 0:
        accuracy = "unanswered (0 / 0)"
    else:
        accuracy = f"{stats.accuracy}% ({stats.correct_count} / {stats.total_count})"

    lines = [
        f"Question {detail.display_number}",
        _rule("-"),
        question.question,
        "",
        f"Answer:    {question.correct_answer}",
        f"Accuracy:  {accuracy}",
        "",
        "Recent answers:",
    ]
    if not detail.recent_history:
        lines.append("  No answers yet.")
    for record in detail.recent_history:
        result = "correct" if record.correct else "incorrect"
        evaluation = record.evaluation.value if record.evaluation else "-"
        lines.append(f"  {format_date(record.ts)}  {result:<9} ({evaluation})")
    return "\n".join(lines)


def render_session_summary(correct: int, incorrect: int) -> str:
    total = correct + incorrect
    return "\n".join([
        "Session complete.",
        f"Correct:   {correct}",
        f"Incorrect: {incorrect}",
        f"Accuracy:  {format_accuracy(correct, total)}",
    ])


__all__ = [
    "render_deck_list",
    "render_current_deck",
    "render_overview",
    "render_trends",
    "render_question_page",
    "render_histogram",
    "render_dashboard",
    "render_question_detail",
    "render_session_summary",
]
