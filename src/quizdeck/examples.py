"""
Example deck builder for demos and tests.

Builds a small geography deck with a known answer history:

    q1  answered 3x: correct, incorrect, correct    (67%, last rated normal)
    q2  answered 2x: incorrect, incorrect           (0%, last rated difficult)
    q3  answered 1x: correct                        (100%, last rated easy)
    q4  never answered
    q5  never answered

plus two recorded sessions.
"""
from quizdeck.model import AnswerRecord, Deck, Evaluation, Question, SessionRecord


EXAMPLE_DECK_ID = "deck_example"
BASE_TS = 1_700_000_000_000
MINUTE_MS = 60_000


SAMPLE_QUESTIONS = [
    {
        "question": "What is the capital of Japan?",
        "options": ["Osaka", "Kyoto", "Tokyo", "Nagoya"],
        "correctAnswer": "Tokyo",
        "explanation": "Tokyo has been the capital since 1868.",
    },
    {
        "question": "Which river is the longest in the world?",
        "options": ["Amazon", "Nile", "Yangtze", "Mississippi"],
        "correctAnswer": "Nile",
        "explanation": "The Nile is usually measured at about 6,650 km.",
    },
    {
        "question": "Which continent is Kenya in?",
        "options": ["Asia", "Africa", "South America"],
        "correctAnswer": "Africa",
    },
    {
        "question": "What is the largest ocean?",
        "options": ["Atlantic", "Indian", "Pacific", "Arctic"],
        "correctAnswer": "Pacific",
        "explanation": "The Pacific covers about a third of the Earth's surface.",
    },
    {
        "question": "Mount Kilimanjaro is located in which country?",
        "options": ["Kenya", "Tanzania", "Uganda"],
        "correctAnswer": "Tanzania",
    },
]


def _ts(minutes: int) -> int:
    return BASE_TS + minutes * MINUTE_MS


def build_example_deck(deck_id: str = EXAMPLE_DECK_ID, name: str = "World Geography") -> Deck:
    deck = Deck(id=deck_id, name=name)

    for index, item in enumerate(SAMPLE_QUESTIONS, start=1):
        deck.questions.append(Question(
            id=f"q{index}",
            question=item["question"],
            options=list(item["options"]),
            correct_answer=item["correctAnswer"],
            explanation=item.get("explanation", ""),
        ))

    q1, q2, q3 = deck.questions[0], deck.questions[1], deck.questions[2]
    q1.history = [
        AnswerRecord(ts=_ts(0), correct=True, evaluation=Evaluation.EASY),
        AnswerRecord(ts=_ts(10), correct=False, evaluation=Evaluation.DIFFICULT),
        AnswerRecord(ts=_ts(20), correct=True, evaluation=Evaluation.NORMAL),
    ]
    q2.history = [
        AnswerRecord(ts=_ts(1), correct=False, evaluation=Evaluation.NORMAL),
        AnswerRecord(ts=_ts(11), correct=False, evaluation=Evaluation.DIFFICULT),
    ]
    q3.history = [
        AnswerRecord(ts=_ts(21), correct=True, evaluation=Evaluation.EASY),
    ]

    deck.total_correct = 3
    deck.total_incorrect = 3
    deck.last_studied = _ts(21)
    deck.session_history = [
        SessionRecord(ts=_ts(5), correct=1, incorrect=1),
        SessionRecord(ts=_ts(25), correct=2, incorrect=2),
    ]
    return deck
