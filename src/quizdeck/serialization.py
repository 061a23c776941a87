"""
Serialization helpers for quizdeck objects (Deck, Question, Settings, etc.).

Provides JSON/YAML round-trip via an intermediate dict representation.
Dict keys use the on-disk names (camelCase, e.g. ``correctAnswer``,
``lastStudied``) so stored files stay compatible with the import format.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

import yaml

from quizdeck.model import (
    AnswerRecord,
    Deck,
    DeckMap,
    Evaluation,
    Question,
    SessionRecord,
    Settings,
)


def record_to_dict(r: AnswerRecord) -> Dict[str, Any]:
    return {
        "ts": r.ts,
        "correct": r.correct,
        "evaluation": r.evaluation.value if r.evaluation else None,
    }


def record_from_dict(d: Dict[str, Any]) -> AnswerRecord:
    evaluation = d.get("evaluation")
    return AnswerRecord(
        ts=int(d["ts"]),
        correct=bool(d["correct"]),
        evaluation=Evaluation(evaluation) if evaluation else None,
    )


def question_to_dict(q: Question) -> Dict[str, Any]:
    return {
        "id": q.id,
        "question": q.question,
        "options": list(q.options),
        "correctAnswer": q.correct_answer,
        "explanation": q.explanation,
        "history": [record_to_dict(r) for r in q.history],
    }


def question_from_dict(d: Dict[str, Any]) -> Question:
    return Question(
        id=d["id"],
        question=d["question"],
        options=list(d["options"]),
        correct_answer=d["correctAnswer"],
        explanation=d.get("explanation") or "",
        history=[record_from_dict(r) for r in d.get("history", [])],
    )


def session_to_dict(s: SessionRecord) -> Dict[str, Any]:
    return {"ts": s.ts, "correct": s.correct, "incorrect": s.incorrect}


def session_from_dict(d: Dict[str, Any]) -> SessionRecord:
    return SessionRecord(ts=int(d["ts"]), correct=int(d.get("correct", 0)), incorrect=int(d.get("incorrect", 0)))


def deck_to_dict(deck: Deck) -> Dict[str, Any]:
    return {
        "id": deck.id,
        "name": deck.name,
        "questions": [question_to_dict(q) for q in deck.questions],
        "lastStudied": deck.last_studied,
        "totalCorrect": deck.total_correct,
        "totalIncorrect": deck.total_incorrect,
        "sessionHistory": [session_to_dict(s) for s in deck.session_history],
    }


def deck_from_dict(d: Dict[str, Any]) -> Deck:
    last_studied = d.get("lastStudied")
    return Deck(
        id=d["id"],
        name=d.get("name", ""),
        questions=[question_from_dict(q) for q in d.get("questions", [])],
        last_studied=int(last_studied) if last_studied else None,
        total_correct=int(d.get("totalCorrect", 0)),
        total_incorrect=int(d.get("totalIncorrect", 0)),
        session_history=[session_from_dict(s) for s in d.get("sessionHistory", [])],
    )


def decks_to_dict(decks: DeckMap) -> Dict[str, Any]:
    return {deck_id: deck_to_dict(deck) for deck_id, deck in decks.items()}


def decks_from_dict(d: Dict[str, Any]) -> DeckMap:
    return {deck_id: deck_from_dict(raw) for deck_id, raw in d.items()}


def settings_to_dict(s: Settings) -> Dict[str, Any]:
    return {"shuffleOptions": s.shuffle_options, "lowAccuracyThreshold": s.low_accuracy_threshold}


def settings_from_dict(d: Dict[str, Any]) -> Settings:
    defaults = Settings()
    return Settings(
        shuffle_options=bool(d.get("shuffleOptions", defaults.shuffle_options)),
        low_accuracy_threshold=int(d.get("lowAccuracyThreshold", defaults.low_accuracy_threshold)),
    )


def decks_to_json(decks: DeckMap) -> str:
    return json.dumps(decks_to_dict(decks), ensure_ascii=False)


def decks_from_json(s: str) -> DeckMap:
    return decks_from_dict(json.loads(s))


def deck_to_yaml(deck: Deck) -> str:
    return yaml.safe_dump(deck_to_dict(deck), allow_unicode=True, sort_keys=False)


def deck_from_yaml(s: str) -> Deck:
    return deck_from_dict(yaml.safe_load(s))


def settings_to_yaml(s: Settings) -> str:
    return yaml.safe_dump(settings_to_dict(s), sort_keys=False)


def settings_from_yaml(s: str) -> Settings:
    return settings_from_dict(yaml.safe_load(s) or {})


def questions_to_import_list(deck: Deck) -> List[Dict[str, Any]]:
    """Strip IDs and history, leaving exactly what the import format accepts."""
    items = []
    for q in deck.questions:
        item: Dict[str, Any] = {
            "question": q.question,
            "options": list(q.options),
            "correctAnswer": q.correct_answer,
        }
        if q.explanation:
            item["explanation"] = q.explanation
        items.append(item)
    return items


def questions_to_import_json(deck: Deck) -> str:
    return json.dumps(questions_to_import_list(deck), ensure_ascii=False, indent=2)
