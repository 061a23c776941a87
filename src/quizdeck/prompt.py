"""
Prompt for generating question files with an LLM.

Paste the prompt (plus the study material) into any chat model; the JSON it
answers with can be saved as ``<deck name>.json`` and imported.
"""

from typing import Optional

GENERATION_PROMPT = """\
You are an expert at writing study questions.
From the material I provide, create {count_phrase}multiple-choice questions{topic_phrase}.

Output rules:
- Output ONLY a JSON array, with no text before or after it.
- Each element is an object with these keys:
  - "question": the question text (string, required)
  - "options": the answer choices (array of at least 2 non-empty strings, required)
  - "correctAnswer": the correct choice (string, required); it must be
    exactly identical to one of the strings in "options"
  - "explanation": why the answer is correct (string, optional)
- Do not number or letter the options ("A.", "1)").
- Make wrong options plausible.

Example:
[
  {{
    "question": "What is the capital of Japan?",
    "options": ["Osaka", "Kyoto", "Tokyo", "Nagoya"],
    "correctAnswer": "Tokyo",
    "explanation": "Tokyo has been the capital since 1868."
  }}
]

Material:
"""


def build_prompt(topic: Optional[str] = None, count: Optional[int] = None) -> str:
    """
    Fill in the generation prompt.

    Args:
        topic: Optional subject to focus the questions on
        count: Optional number of questions to request (must be positive)
    """
    if count is not None and count < 1:
        raise ValueError("count must be a positive integer")
    count_phrase = f"{count} " if count else ""
    topic_phrase = f" about {topic.strip()}" if topic and topic.strip() else ""
    return GENERATION_PROMPT.format(count_phrase=count_phrase, topic_phrase=topic_phrase)
