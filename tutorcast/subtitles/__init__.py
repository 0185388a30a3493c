"""Caption track synthesis and WebVTT serialization."""

from tutorcast.subtitles.synthesizer import (
    CaptionCue,
    SubtitleFailed,
    build_caption_file,
    format_timestamp,
    synthesize,
    to_webvtt,
)

__all__ = [
    "CaptionCue",
    "SubtitleFailed",
    "build_caption_file",
    "format_timestamp",
    "synthesize",
    "to_webvtt",
]
