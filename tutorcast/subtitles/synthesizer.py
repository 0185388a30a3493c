"""Caption track synthesis from a narration script with estimated timing."""

from __future__ import annotations

import re
from dataclasses import dataclass

MIN_CUE_SECONDS = 2.0
DEFAULT_WORDS_PER_MINUTE = 150

# Textual pause markers and raw <break/> tags both extend the enclosing cue
_PAUSE = re.compile(
    r'\.\.\.\s*\[(\d+) second pause\]\s*\.\.\.|<break time="(\d+)s"\s*/>'
)
_TAG = re.compile(r"<(?!break\b)[^>]*>")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


class SubtitleFailed(Exception):
    """Raised when a caption track cannot be built from the given input."""


@dataclass
class CaptionCue:
    """A single timed caption."""

    index: int
    start_time: float
    end_time: float
    text: str


def _strip_pauses(script: str) -> tuple[str, list[tuple[int, int]]]:
    """Remove pause markers; return clean text and (offset, seconds) pairs."""
    pieces: list[str] = []
    pauses: list[tuple[int, int]] = []
    length = 0
    last = 0
    for match in _PAUSE.finditer(script):
        piece = script[last:match.start()]
        pieces.append(piece)
        length += len(piece)
        pauses.append((length, int(match.group(1) or match.group(2))))
        pieces.append(" ")
        length += 1
        last = match.end()
    pieces.append(script[last:])
    return "".join(pieces), pauses


def _split_chunks(text: str) -> list[tuple[int, int, str]]:
    """Sentence-like chunks as (start, end, text) spans over the clean text."""
    chunks: list[tuple[int, int, str]] = []
    pos = 0
    for part in _SENTENCE_END.split(text):
        start = text.find(part, pos)
        end = start + len(part)
        pos = end
        cleaned = " ".join(part.split())
        if cleaned:
            chunks.append((start, end, cleaned))
    return chunks


def _pause_owner(chunks: list[tuple[int, int, str]], offset: int) -> int:
    """Index of the chunk a pause at offset belongs to (best effort)."""
    owner = 0
    for i, (start, end, _) in enumerate(chunks):
        if start <= offset <= end:
            return i
        if end <= offset:
            owner = i
    return owner


def synthesize(script: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> list[CaptionCue]:
    """
    Turn a script into back-to-back caption cues starting at 0.

    Each chunk is shown for max(2 s, reading time at words_per_minute), plus any
    pause seconds found at its position in the script.
    """
    if not isinstance(script, str):
        raise SubtitleFailed(f"Script must be text, got {type(script).__name__}")
    if words_per_minute <= 0:
        raise SubtitleFailed("words_per_minute must be positive")

    text, pauses = _strip_pauses(_TAG.sub("", script))
    chunks = _split_chunks(text)
    if not chunks:
        return []

    extra = [0.0] * len(chunks)
    for offset, seconds in pauses:
        extra[_pause_owner(chunks, offset)] += seconds

    cues: list[CaptionCue] = []
    cursor = 0.0
    for i, (_, _, chunk_text) in enumerate(chunks):
        words = len(chunk_text.split())
        duration = max(MIN_CUE_SECONDS, words / words_per_minute * 60) + extra[i]
        end = round(cursor + duration, 3)
        cues.append(CaptionCue(index=i + 1, start_time=cursor, end_time=end, text=chunk_text))
        cursor = end
    return cues


def format_timestamp(seconds: float) -> str:
    """Render seconds as zero-padded HH:MM:SS.mmm."""
    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{ms:03d}"


def to_webvtt(cues: list[CaptionCue]) -> str:
    """Serialize cues as a WebVTT document."""
    blocks = ["WEBVTT", ""]
    for cue in cues:
        blocks.append(str(cue.index))
        blocks.append(f"{format_timestamp(cue.start_time)} --> {format_timestamp(cue.end_time)}")
        blocks.append(cue.text)
        blocks.append("")
    return "\n".join(blocks) + "\n"


def build_caption_file(script: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> str:
    """synthesize + to_webvtt in one call."""
    return to_webvtt(synthesize(script, words_per_minute))
