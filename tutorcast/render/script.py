"""Narration script preparation: pause markup, interactive questions, voices."""

from __future__ import annotations

import re
from typing import Any, Iterable

DEFAULT_VOICE = "en-US-JennyNeural"

VOICE_MAP: dict[str, str] = {
    "v2_public_anita@Os4oKCBIgZ": "en-IN-NeerjaNeural",
    "v2_public_lucas@vngv2djh6d": "en-US-GuyNeural",
    "v2_public_rian_red_jacket_lobby@Lnoj8R5x9r": "en-GB-RyanNeural",
}

QUESTION_PAUSE_SECONDS = 5

_BREAK_TAG = re.compile(r'<break time="(\d+)s"\s*/>')
_ANY_TAG = re.compile(r"<[^>]*>")
PAUSE_MARKER = re.compile(r"\.\.\.\s*\[(\d+) second pause\]\s*\.\.\.")

_QUIZ_INTRO = (
    "\n\nNow, let me ask you some questions to test your understanding. "
    "After each question, I'll pause so you can say your answer out loud, "
    "and then I'll tell you if you're correct.\n\n"
)
_QUIZ_OUTRO = "Excellent work! You've completed all the practice questions."


def pause_marker(seconds: int) -> str:
    return f"... [{seconds} second pause] ..."


def get_voice_for_presenter(presenter_id: str | None) -> str:
    """Map a presenter to its voice; unknown presenters get the default voice."""
    return VOICE_MAP.get(presenter_id or "", DEFAULT_VOICE)


def sanitize_script(text: str) -> str:
    """Rewrite <break/> pauses as textual markers and strip every other tag."""
    text = _BREAK_TAG.sub(lambda m: pause_marker(int(m.group(1))), text or "")
    return _ANY_TAG.sub("", text)


def _field(q: Any, name: str) -> str:
    if isinstance(q, dict):
        return str(q.get(name, ""))
    return str(getattr(q, name, ""))


def build_narration(description: str, questions: Iterable[Any] = ()) -> str:
    """
    Sanitized script plus the spoken quiz.

    Each question is read out, followed by a fixed pause and the answer.
    Questions keep their input order; the last one gets the closing remark.
    """
    script = sanitize_script(description)
    questions = list(questions or [])
    if not questions:
        return script

    parts = [script, _QUIZ_INTRO]
    for index, q in enumerate(questions):
        parts.append(f"Question {index + 1}: {_field(q, 'question')} ")
        parts.append(f"{pause_marker(QUESTION_PAUSE_SECONDS)} ")
        parts.append(f"The correct answer is: {_field(q, 'answer')}. ")
        if index == len(questions) - 1:
            parts.append("Great job answering all the questions! ")
        else:
            parts.append("Let's try the next question. ")
    parts.append(_QUIZ_OUTRO)
    return "".join(parts)
