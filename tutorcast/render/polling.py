"""Poll a submitted render until it finishes, fails or runs out of attempts."""

from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from tutorcast.render.base import RenderFailed, RenderProvider, RenderStatus

logger = logging.getLogger(__name__)


def wait_for_render(
    provider: RenderProvider,
    provider_job_id: str,
    *,
    poll_interval: float = 3.0,
    max_polls: int = 60,
    on_poll: Callable[[int, int, RenderStatus], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Block until the provider job is done and return its result URL.

    A poll that fails in transport counts as a missed attempt, not a failure.
    Raises RenderFailed on a provider error or once max_polls is spent.
    """
    attempts = 0
    while attempts < max_polls:
        sleep(poll_interval)
        attempts += 1
        try:
            status = provider.poll(provider_job_id)
        except httpx.HTTPError as e:
            logger.warning("Poll %d/%d for %s failed: %s", attempts, max_polls, provider_job_id, e)
            continue

        logger.info("Poll %d/%d for %s: %s", attempts, max_polls, provider_job_id, status.status)
        if on_poll is not None:
            on_poll(attempts, max_polls, status)

        if status.status == "done":
            if not status.result_url:
                raise RenderFailed("Clip generation finished without a result URL")
            return status.result_url
        if status.status == "error":
            raise RenderFailed(
                "Clip generation failed: " + (status.error_detail or "Unknown error")
            )

    raise RenderFailed(f"Video generation timeout after {attempts} polls")
