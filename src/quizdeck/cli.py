# src/quizdeck/cli.py
"""Command-line interface for quizdeck."""

import argparse
import logging
import random
import sys
from importlib import metadata
from pathlib import Path
from typing import Callable, List, Optional

from quizdeck import __version__
from quizdeck.analyzer import (
    AccuracyFilter,
    SortOrder,
    analyze_deck,
    filter_and_sort_stats,
    question_detail,
)
from quizdeck.backends.text_report import (
    render_current_deck,
    render_dashboard,
    render_deck_list,
    render_question_detail,
    render_session_summary,
)
from quizdeck.config import AppConfig, ConfigurationError, setup_logging
from quizdeck.model import Evaluation
from quizdeck.prompt import build_prompt
from quizdeck.serialization import deck_to_yaml, questions_to_import_json
from quizdeck.storage import DeckStore, StorageError
from quizdeck.study import FILTER_LABELS, StudyError, StudyFilter, StudySession, filter_questions
from quizdeck.validation import QuestionFormatError

logger = logging.getLogger(__name__)

PACKAGE_NAME = "quizdeck"

EVALUATION_KEYS = {
    "d": Evaluation.DIFFICULT,
    "n": Evaluation.NORMAL,
    "e": Evaluation.EASY,
}


class CommandError(Exception):
    """Raised for invalid command arguments that argparse cannot check."""
    pass


def _package_version() -> str:
    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return __version__


def _ask(prompt: str) -> Optional[str]:
    """Read one line from stdin; None on end of input."""
    try:
        return input(prompt).strip()
    except EOFError:
        return None


def _confirm(question: str) -> bool:
    answer = _ask(f"{question} [y/N]: ")
    return answer is not None and answer.lower() in ("y", "yes")


def _write_output(text: str, output: Optional[str]) -> None:
    if output:
        try:
            Path(output).write_text(text, encoding="utf-8")
        except OSError as e:
            raise CommandError(f"Could not write {output}: {e}") from e
        print(f"Written to {output}")
    else:
        print(text)


# =========================================================================
# DECK COMMANDS
# =========================================================================

def cmd_import(store: DeckStore, args: argparse.Namespace) -> int:
    deck = store.import_deck_file(args.file)
    print(f"Imported deck '{deck.name}' ({len(deck.questions)} questions) and selected it.")
    return 0


def cmd_decks(store: DeckStore, args: argparse.Namespace) -> int:
    print(render_deck_list(store.list_decks(), store.current_deck_id))
    return 0


def cmd_select(store: DeckStore, args: argparse.Namespace) -> int:
    deck = store.select_deck(args.deck)
    print(f"Selected deck '{deck.name}'.")
    return 0


def cmd_delete(store: DeckStore, args: argparse.Namespace) -> int:
    deck = store.get_deck(args.deck)
    if not args.yes and not _confirm(
        f"Delete deck '{deck.name}' and its whole study history? This cannot be undone."
    ):
        print("Cancelled.")
        return 0
    store.delete_deck(deck.id)
    print(f"Deleted deck '{deck.name}'.")
    return 0


def cmd_reset(store: DeckStore, args: argparse.Namespace) -> int:
    deck = store.get_deck(args.deck)
    if not deck.has_history():
        print(f"Deck '{deck.name}' has no history to reset.")
        return 0
    if not args.yes and not _confirm(
        f"Reset all study history of '{deck.name}'? Questions are kept. This cannot be undone."
    ):
        print("Cancelled.")
        return 0
    store.reset_history(deck.id)
    print(f"History of deck '{deck.name}' was reset.")
    return 0


def cmd_status(store: DeckStore, args: argparse.Namespace) -> int:
    deck = store.current_deck
    study_filter = StudyFilter(args.filter)
    count = None
    if deck is not None:
        count = len(filter_questions(deck, study_filter, store.settings.low_accuracy_threshold))
    print(render_current_deck(deck, store.settings, FILTER_LABELS[study_filter], count))
    return 0


# =========================================================================
# STUDY
# =========================================================================

def _run_question(session: StudySession) -> bool:
    """Handle one question; returns False once the session is over."""
    question = session.current_question
    options = session.presented_options
    print()
    print(f"[{session.position}/{session.total}] {question.question}")
    for number, option in enumerate(options, start=1):
        print(f"  {number}. {option}")

    choice = _ask("Answer (number, q to quit): ")
    if choice is None or choice.lower() == "q":
        session.quit()
        return False
    if not choice.isdigit() or not 1 <= int(choice) <= len(options):
        print(f"Please enter a number between 1 and {len(options)}.")
        return True

    result = session.answer(options[int(choice) - 1])
    if result.correct:
        print("Correct!")
    else:
        print(f"Incorrect. The answer is: {result.correct_answer}")
    print(f"Explanation: {result.explanation or 'No explanation.'}")

    while True:
        hint = "[d]ifficult / [n]ormal / [e]asy"
        if not result.correct:
            hint += " / [r]etry"
        action = _ask(f"How well did you know it? {hint} / [q]uit: ")
        if action is None or action.lower() == "q":
            session.quit()
            return False
        action = action.lower()
        if action == "r" and not result.correct:
            session.retry()
            return True
        if action in EVALUATION_KEYS:
            try:
                session.evaluate(EVALUATION_KEYS[action])
            except StorageError as e:
                # the session is still waiting for an evaluation
                print(f"Error: {e}", file=sys.stderr)
                print("The answer was not saved. Choose again to retry.")
                continue
            return not session.finished
        print("Unrecognised choice.")


def cmd_study(store: DeckStore, args: argparse.Namespace) -> int:
    rng = random.Random(args.seed) if args.seed is not None else None
    session = StudySession.start(store, StudyFilter(args.filter), rng=rng)
    print(f"Studying '{session.deck.name}': {session.total} question(s).")

    while not session.finished:
        if not _run_question(session):
            break

    summary = session.summary
    print()
    print(render_session_summary(summary.correct, summary.incorrect))
    if not summary.recorded and summary.total > 0:
        print("Warning: the session result could not be saved.", file=sys.stderr)
    return 0


# =========================================================================
# DASHBOARD
# =========================================================================

def cmd_dashboard(store: DeckStore, args: argparse.Namespace) -> int:
    deck = store.get_deck(args.deck)
    report = analyze_deck(
        deck,
        accuracy_filter=AccuracyFilter(args.accuracy),
        search=args.search,
        sort_order=SortOrder(args.sort),
        page=args.page,
    )
    print(render_dashboard(report, view=args.view))
    return 0


def cmd_detail(store: DeckStore, args: argparse.Namespace) -> int:
    deck = store.get_deck(args.deck)
    stats = filter_and_sort_stats(deck, AccuracyFilter(args.accuracy), args.search, SortOrder(args.sort))
    if not 1 <= args.number <= len(stats):
        raise CommandError(f"Question number must be between 1 and {len(stats)}.")
    print(render_question_detail(question_detail(stats[args.number - 1], args.number)))
    return 0


# =========================================================================
# SETTINGS, EXPORT, PROMPT
# =========================================================================

def cmd_settings(store: DeckStore, args: argparse.Namespace) -> int:
    if args.shuffle is None and args.threshold is None:
        settings = store.settings
        print(f"shuffle: {'on' if settings.shuffle_options else 'off'}")
        print(f"low-accuracy threshold: {settings.low_accuracy_threshold}%")
        return 0
    if store.update_settings(shuffle_options=args.shuffle, low_accuracy_threshold=args.threshold):
        print("Settings saved.")
    else:
        print("No changes.")
    return 0


def cmd_export(store: DeckStore, args: argparse.Namespace) -> int:
    deck = store.get_deck(args.deck)
    if args.format == "yaml":
        text = deck_to_yaml(deck)
    else:
        text = questions_to_import_json(deck)
    _write_output(text, args.output)
    return 0


def cmd_prompt(store: DeckStore, args: argparse.Namespace) -> int:
    if args.count is not None and args.count < 1:
        raise CommandError("--count must be a positive integer.")
    _write_output(build_prompt(topic=args.topic, count=args.count), args.output)
    return 0


# =========================================================================
# PARSER
# =========================================================================

def _add_analysis_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--accuracy", choices=[f.value for f in AccuracyFilter],
                        default=AccuracyFilter.ALL.value, help="Filter questions by accuracy band.")
    parser.add_argument("--search", default="", help="Case-insensitive text search.")
    parser.add_argument("--sort", choices=[s.value for s in SortOrder],
                        default=SortOrder.ACCURACY_ASC.value, help="Sort order of the question list.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PACKAGE_NAME,
        description="Study multiple-choice question decks from the terminal.",
    )
    parser.add_argument("--version", action="store_true", help="Show the version and exit.")
    parser.add_argument("--data-dir", help="Data directory (default: $QUIZDECK_HOME or ~/.quizdeck).")
    parser.add_argument("--log-level", help="Logging level (default: $QUIZDECK_LOG_LEVEL or WARNING).")

    sub = parser.add_subparsers(dest="command")
    filters = [f.value for f in StudyFilter]

    p = sub.add_parser("import", help="Import a JSON question file as a new deck.")
    p.add_argument("file")
    p.set_defaults(handler=cmd_import)

    p = sub.add_parser("decks", help="List decks.")
    p.set_defaults(handler=cmd_decks)

    p = sub.add_parser("select", help="Select the deck to study.")
    p.add_argument("deck", help="Deck id or name.")
    p.set_defaults(handler=cmd_select)

    p = sub.add_parser("delete", help="Delete a deck and its history.")
    p.add_argument("deck", help="Deck id or name.")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation.")
    p.set_defaults(handler=cmd_delete)

    p = sub.add_parser("reset", help="Reset the study history of a deck.")
    p.add_argument("deck", nargs="?", help="Deck id or name (default: selected deck).")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation.")
    p.set_defaults(handler=cmd_reset)

    p = sub.add_parser("status", help="Show the selected deck and the size of a study filter.")
    p.add_argument("--filter", choices=filters, default=StudyFilter.ALL.value)
    p.set_defaults(handler=cmd_status)

    p = sub.add_parser("study", help="Start an interactive study session.")
    p.add_argument("--filter", choices=filters, default=StudyFilter.ALL.value)
    p.add_argument("--seed", type=int, help="Seed for shuffling (reproducible order).")
    p.set_defaults(handler=cmd_study)

    p = sub.add_parser("dashboard", help="Show statistics for a deck.")
    p.add_argument("deck", nargs="?", help="Deck id or name (default: selected deck).")
    _add_analysis_options(p)
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--view", choices=["list", "chart"], default="list")
    p.set_defaults(handler=cmd_dashboard)

    p = sub.add_parser("detail", help="Show one question of the dashboard list in detail.")
    p.add_argument("number", type=int, help="Position in the filtered and sorted list.")
    p.add_argument("deck", nargs="?", help="Deck id or name (default: selected deck).")
    _add_analysis_options(p)
    p.set_defaults(handler=cmd_detail)

    p = sub.add_parser("settings", help="Show or change settings.")
    shuffle = p.add_mutually_exclusive_group()
    shuffle.add_argument("--shuffle", dest="shuffle", action="store_true", default=None)
    shuffle.add_argument("--no-shuffle", dest="shuffle", action="store_false", default=None)
    p.add_argument("--threshold", type=int, help="Low-accuracy threshold in percent (1-99).")
    p.set_defaults(handler=cmd_settings)

    p = sub.add_parser("export", help="Export a deck.")
    p.add_argument("deck", nargs="?", help="Deck id or name (default: selected deck).")
    p.add_argument("--format", choices=["json", "yaml"], default="json",
                   help="json: re-importable questions; yaml: full deck with history.")
    p.add_argument("--output", help="Write to this file instead of stdout.")
    p.set_defaults(handler=cmd_export)

    p = sub.add_parser("prompt", help="Print the prompt for generating questions with an LLM.")
    p.add_argument("--topic")
    p.add_argument("--count", type=int)
    p.add_argument("--output", help="Write to this file instead of stdout.")
    p.set_defaults(handler=cmd_prompt)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"{PACKAGE_NAME} {_package_version()}")
        return 0
    if not args.command:
        parser.print_help()
        return 0

    handler: Callable[[DeckStore, argparse.Namespace], int] = args.handler
    try:
        config = AppConfig.from_env(data_dir=args.data_dir, log_level=args.log_level)
        setup_logging(config.log_level)
        store = DeckStore(config.data_dir).load()
        return handler(store, args)
    except (ConfigurationError, StorageError, QuestionFormatError, StudyError, CommandError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
