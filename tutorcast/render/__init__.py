"""Render adapter layer: text-to-video provider behind a common protocol."""

from tutorcast.render.base import RenderFailed, RenderProvider, RenderStatus
from tutorcast.render.did_provider import DIDRenderProvider
from tutorcast.render.polling import wait_for_render
from tutorcast.render.script import (
    DEFAULT_VOICE,
    VOICE_MAP,
    build_narration,
    get_voice_for_presenter,
    sanitize_script,
)


def get_render_provider(api_key: str | None, base_url: str = "https://api.d-id.com") -> RenderProvider:
    """Return the configured render provider."""
    if not api_key:
        raise ValueError("DID_API_KEY is not configured")
    return DIDRenderProvider(api_key=api_key, base_url=base_url)


__all__ = [
    "DEFAULT_VOICE",
    "DIDRenderProvider",
    "RenderFailed",
    "RenderProvider",
    "RenderStatus",
    "VOICE_MAP",
    "build_narration",
    "get_render_provider",
    "get_voice_for_presenter",
    "sanitize_script",
    "wait_for_render",
]
