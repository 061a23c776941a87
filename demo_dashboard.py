#!/usr/bin/env python3
"""
Demo: Dashboard for the example geography deck.

Shows the full workflow without touching your real data:
1. Import a question file into a scratch data directory
2. Replay a short scripted study session
3. Render the dashboard (list and chart views)
4. Export the deck as YAML
"""

import json
import random
import tempfile
from pathlib import Path

from quizdeck.analyzer import analyze_deck
from quizdeck.backends import render_dashboard, render_session_summary
from quizdeck.examples import SAMPLE_QUESTIONS
from quizdeck.model import Evaluation
from quizdeck.serialization import deck_to_yaml
from quizdeck.storage import DeckStore
from quizdeck.study import StudySession


def main():
    with tempfile.TemporaryDirectory() as tmp:
        tmp_path = Path(tmp)

        # =====================================================================
        # STEP 1: Import
        # =====================================================================
        print("\n1. IMPORTING QUESTIONS...")
        questions_file = tmp_path / "World Geography.json"
        questions_file.write_text(json.dumps(SAMPLE_QUESTIONS, indent=2), encoding="utf-8")

        store = DeckStore(tmp_path / "data").load()
        deck = store.import_deck_file(questions_file)
        print(f"   Loaded deck: {deck.name}")
        print(f"   Questions: {len(deck.questions)}")

        # =====================================================================
        # STEP 2: Study (answers picked at random, rated "normal")
        # =====================================================================
        print("\n2. STUDYING...")
        rng = random.Random(42)
        session = StudySession.start(store, rng=rng)
        while not session.finished:
            session.answer(rng.choice(session.presented_options))
            session.evaluate(Evaluation.NORMAL)
        print(render_session_summary(session.summary.correct, session.summary.incorrect))

        # =====================================================================
        # STEP 3: Dashboard
        # =====================================================================
        print("\n3. DASHBOARD...")
        report = analyze_deck(deck)
        print(render_dashboard(report))
        print()
        print(render_dashboard(report, view="chart"))

        # =====================================================================
        # STEP 4: Export
        # =====================================================================
        print("\n4. EXPORTING...")
        output = Path("example_deck_output.yaml")
        output.write_text(deck_to_yaml(deck), encoding="utf-8")
        print(f"   Deck exported to {output}")


if __name__ == "__main__":
    main()
