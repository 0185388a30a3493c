"""Abstract render provider protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

RenderState = Literal["processing", "done", "error"]


class RenderFailed(Exception):
    """Raised when the provider reports an error or the poll budget runs out."""


@dataclass
class RenderStatus:
    """One poll result for a provider-side render job."""

    status: RenderState
    result_url: str | None = None
    error_detail: str | None = None
    raw_status: str = ""  # provider's own status string, e.g. "started"


class RenderProvider(Protocol):
    """Protocol for text-to-video backends (D-ID)."""

    def submit(self, script: str, presenter_id: str, voice_id: str) -> str:
        """Start a render and return the provider job id."""
        ...

    def poll(self, provider_job_id: str) -> RenderStatus:
        """Return the current status of a provider job."""
        ...
