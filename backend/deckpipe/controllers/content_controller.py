"""
Content fetcher: outline, bullets, captions and speaker notes.

Every fetch makes one backend call and degrades to an empty result (``[]`` or
``""``) when the backend fails or answers with something unusable.  Nothing
here raises.
"""

import logging
import re
from collections.abc import Awaitable, Callable

from deckpipe.core import ai_generators
from deckpipe.core.lenient_json import lenient_decode

logger = logging.getLogger(__name__)

Complete = Callable[[str, str], Awaitable[str]]

_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*•·]|\d+[.)])\s+")

# Lines where the model parrots our own instruction back at us.
_INSTRUCTION_ECHO_RE = re.compile(
    r"^\s*(?:(?:[-*•·]|\d+[.)])\s+)?"
    r"(?:slide title\s*:|respond (?:only )?in json|return only json|bullet points?\s*:)",
    re.IGNORECASE,
)


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    items = (item.strip() for item in value if isinstance(item, str))
    return [item for item in items if item]


def clean_bullets(bullets: list[str]) -> list[str]:
    """Strip list markers and drop lines that echo the generation instruction."""
    cleaned: list[str] = []
    for bullet in bullets:
        if _INSTRUCTION_ECHO_RE.search(bullet):
            continue
        text = _LIST_MARKER_RE.sub("", bullet).strip()
        if text:
            cleaned.append(text)
    return cleaned


class ContentFetcher:
    def __init__(self, complete: Complete = ai_generators.complete):
        self._complete = complete

    async def _call(self, kind: str, instruction: str) -> str | None:
        try:
            return await self._complete(kind, instruction)
        except Exception:
            logger.warning("Backend call for %s failed", kind, exc_info=True)
            return None

    async def fetch_outline(self, prompt: str) -> list[str]:
        prompt = prompt.strip()
        if not prompt:
            return []
        raw = await self._call("outline", ai_generators.outline_instruction(prompt))
        slides = _string_list((lenient_decode(raw) or {}).get("slides"))
        if raw is not None and not slides:
            logger.warning("Outline reply had no usable slides: %.120r", raw)
        return slides

    async def fetch_bullets(self, title: str) -> list[str]:
        title = title.strip()
        if not title:
            return []
        raw = await self._call("bullets", ai_generators.bullets_instruction(title))
        bullets = _string_list((lenient_decode(raw) or {}).get("bullets"))
        if raw is not None and not bullets:
            logger.warning("Bullets reply for %r had no usable bullets: %.120r", title, raw)
        return bullets

    async def _fetch_text(self, kind: str, instruction: str) -> str:
        raw = await self._call(kind, instruction)
        if raw is None:
            return ""
        parsed = lenient_decode(raw)
        if parsed is None:
            # Plain prose is an acceptable caption/notes reply.
            return "" if "{" in raw else raw.strip()
        value = parsed.get(kind)
        if not isinstance(value, str):
            logger.warning("%s reply missing %r field: %.120r", kind.capitalize(), kind, raw)
            return ""
        return value.strip()

    async def fetch_caption(self, title: str, bullets: list[str]) -> str:
        title = title.strip()
        if not title:
            return ""
        return await self._fetch_text("caption", ai_generators.caption_instruction(title, bullets))

    async def fetch_notes(self, title: str, bullets: list[str]) -> str:
        title = title.strip()
        if not title:
            return ""
        return await self._fetch_text("notes", ai_generators.notes_instruction(title, bullets))
