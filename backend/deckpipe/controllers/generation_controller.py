"""
Deck generation pipeline.

``DeckPipeline.generate_deck`` turns a prompt into a deck and yields a fresh
snapshot every time the deck changes, so callers can render progress:

1. Fetch the outline.  No outline -> a single error slide, and stop.
2. Publish the synthesized *title* and *agenda* slides.
3. Per outline entry, in order: fetch bullets, start the visual job in the
   background, fetch caption and notes together, append the slide and
   publish.  Visuals that finished in the meantime are attached and
   published as well.
4. Wait for the remaining visuals, attach them, publish the complete deck.

Once published, a slide's title and bullets never change; only its visual
is filled in later.
"""

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import date

from deckpipe.controllers.content_controller import ContentFetcher, clean_bullets
from deckpipe.core.job_store import JobStore
from deckpipe.core.visual_poller import VisualPoller
from deckpipe.schemas.deck import Deck, Slide, Visual, VisualKind
from deckpipe.schemas.generation import VisualRequest

logger = logging.getLogger(__name__)

_TITLE_NUMBERING_RE = re.compile(r"^\s*(?:slide\s*)?\d+\s*(?:[.)]|[:\-–](?=\s))\s+", re.IGNORECASE)


class OutlineError(Exception):
    """The outline could not be produced; the deck cannot be built."""


def strip_numbering(title: str) -> str:
    """``"2. Market"`` / ``"Slide 3: Ask"`` -> ``"Market"`` / ``"Ask"``."""
    return _TITLE_NUMBERING_RE.sub("", title).strip() or title.strip()


def _format_date(day: date) -> str:
    return f"{day:%B} {day.day}, {day.year}"


def title_slide(prompt: str, byline: str, day: date) -> Slide:
    return Slide(title=prompt, bullets=[byline, _format_date(day)], kind="title")


def agenda_slide(outline: list[str], max_items: int) -> Slide:
    return Slide(
        title="Agenda",
        bullets=[strip_numbering(entry) for entry in outline[:max_items]],
        kind="agenda",
    )


def error_slide(reason: str) -> Slide:
    return Slide(
        title="Deck generation failed",
        bullets=["We couldn't build an outline for this prompt.", "Please try again or rephrase it."],
        notes=reason,
        kind="error",
    )


class DeckPipeline:
    def __init__(
        self,
        fetcher: ContentFetcher,
        job_store: JobStore,
        poller: VisualPoller,
        *,
        visual_kind: VisualKind = "svg",
        byline: str = "",
        agenda_max_items: int = 5,
        slide_delay: float = 0.0,
        today: Callable[[], date] = date.today,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ):
        self._fetcher = fetcher
        self._job_store = job_store
        self._poller = poller
        self._visual_kind = visual_kind
        self._byline = byline
        self._agenda_max_items = agenda_max_items
        self._slide_delay = slide_delay
        self._today = today
        self._sleep = sleep

    async def _outline(self, prompt: str) -> list[str]:
        outline = await self._fetcher.fetch_outline(prompt)
        if not outline:
            raise OutlineError(f"No outline returned for prompt {prompt!r}")
        return outline

    async def _read_job(self, job_id: str):
        return self._job_store.get(job_id)

    async def _resolve_visual(self, title: str, bullets: list[str], kind: VisualKind) -> Visual | None:
        request = VisualRequest(title=title, bullets=bullets, kind=kind)
        return await self._poller.resolve(
            lambda: self._job_store.create(request),
            self._read_job,
            label=f"slide {title!r}",
        )

    @staticmethod
    def _attach(deck: Deck, index: int, visual: Visual | None) -> None:
        deck.slides[index] = deck.slides[index].model_copy(update={"visual": visual})

    def _attach_finished(self, deck: Deck, pending: dict[int, asyncio.Task]) -> bool:
        finished = [index for index, task in pending.items() if task.done()]
        for index in finished:
            self._attach(deck, index, pending.pop(index).result())
        return bool(finished)

    async def generate_deck(self, prompt: str, visual_kind: VisualKind | None = None) -> AsyncIterator[Deck]:
        """Yield snapshots of the deck for *prompt* as it grows.

        *visual_kind* overrides the pipeline default for this deck only.

        Raises ``ValueError`` for an empty prompt before touching the backend.
        """
        prompt = prompt.strip()
        if not prompt:
            raise ValueError("prompt must not be empty")

        kind = visual_kind or self._visual_kind
        deck = Deck(prompt=prompt)

        try:
            outline = await self._outline(prompt)
        except OutlineError as exc:
            logger.warning("Deck generation aborted: %s", exc)
            deck.slides.append(error_slide(str(exc)))
            deck.status = "failed"
            yield deck.model_copy(deep=True)
            return

        logger.info("Outline for %r has %d slides", prompt, len(outline))
        deck.slides.append(title_slide(prompt, self._byline, self._today()))
        deck.slides.append(agenda_slide(outline, self._agenda_max_items))
        yield deck.model_copy(deep=True)

        pending: dict[int, asyncio.Task] = {}
        try:
            for position, title in enumerate(outline):
                bullets = clean_bullets(await self._fetcher.fetch_bullets(title))
                index = len(deck.slides)
                pending[index] = asyncio.create_task(self._resolve_visual(title, bullets, kind))

                caption, notes = await asyncio.gather(
                    self._fetcher.fetch_caption(title, bullets),
                    self._fetcher.fetch_notes(title, bullets),
                )
                deck.slides.append(Slide(title=title, bullets=bullets, caption=caption, notes=notes))
                yield deck.model_copy(deep=True)

                if self._attach_finished(deck, pending):
                    yield deck.model_copy(deep=True)

                if position < len(outline) - 1 and self._slide_delay > 0:
                    await self._sleep(self._slide_delay)

            for index in sorted(pending):
                visual = await pending[index]
                del pending[index]
                self._attach(deck, index, visual)
                yield deck.model_copy(deep=True)
        finally:
            # Caller walked away mid-stream.
            for task in pending.values():
                task.cancel()

        deck.status = "complete"
        logger.info("Deck for %r complete with %d slides", prompt, len(deck.slides))
        yield deck.model_copy(deep=True)

    async def build_deck(self, prompt: str, visual_kind: VisualKind | None = None) -> Deck:
        """Run ``generate_deck`` to the end and return the final deck."""
        deck = None
        async for deck in self.generate_deck(prompt, visual_kind):
            pass
        return deck
