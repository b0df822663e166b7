import asyncio
import json
from datetime import date

import pytest

from deckpipe.controllers.content_controller import ContentFetcher
from deckpipe.controllers.generation_controller import (
    DeckPipeline,
    agenda_slide,
    strip_numbering,
    title_slide,
)
from deckpipe.core.config import settings
from deckpipe.core.job_store import JobStore
from deckpipe.core.visual_poller import VisualPoller
from deckpipe.main import pipeline_poller
from deckpipe.schemas.deck import Visual

from tests.stubs import ScriptedBackend, deck_backend, instant_visual, never_finishes, no_sleep, title_of

PROMPT = "AI startup pitch for logistics"
OUTLINE = ["Problem", "Solution", "Market"]
FALLBACK = Visual(kind="image", data="https://fallback.test/blackhole.jpg", fallback=True)


def make_pipeline(backend, worker=instant_visual, **kwargs):
    store = JobStore(worker)
    poller = VisualPoller(max_attempts=20, interval=0, max_retries=2, fallback=FALLBACK, sleep=no_sleep)
    kwargs.setdefault("byline", "Generated by Deckpipe")
    kwargs.setdefault("today", lambda: date(2026, 10, 19))
    pipeline = DeckPipeline(ContentFetcher(backend), store, poller, **kwargs)
    return pipeline, store


async def collect(pipeline, prompt=PROMPT, **kwargs):
    return [snapshot async for snapshot in pipeline.generate_deck(prompt, **kwargs)]


@pytest.mark.asyncio
async def test_image_slower_than_one_configured_cycle_is_kept(monkeypatch):
    # Configured cycle covers 0.2s; the image worker may take up to 0.3s.
    for name, value in {
        "IMAGE_REQUEST_TIMEOUT_SECONDS": 0.0,
        "IMAGE_POLL_MAX_ATTEMPTS": 10,
        "IMAGE_POLL_INTERVAL_SECONDS": 0.03,
        "VISUAL_POLL_MAX_ATTEMPTS": 10,
        "VISUAL_POLL_INTERVAL_SECONDS": 0.02,
        "VISUAL_MAX_RETRIES": 3,
    }.items():
        monkeypatch.setattr(settings, name, value)

    started = []

    async def slow_image(request):
        started.append(request.title)
        await asyncio.sleep(0.25)
        return Visual(kind="image", data="https://cdn.test/slow.png")

    store = JobStore(slow_image)
    pipeline = DeckPipeline(ContentFetcher(deck_backend(["Market"])), store, pipeline_poller(), visual_kind="image")
    deck = await pipeline.build_deck(PROMPT)

    assert deck.slides[-1].visual == Visual(kind="image", data="https://cdn.test/slow.png")
    assert started == ["Market"]
    await store.close()


def test_default_poll_cycle_outlasts_the_image_worker():
    poller = pipeline_poller()
    assert (poller.max_attempts - 1) * poller.interval >= settings.IMAGE_WORKER_BUDGET_SECONDS
    assert poller.interval == 3.0


@pytest.mark.asyncio
async def test_deck_has_title_agenda_and_one_slide_per_outline_entry():
    pipeline, store = make_pipeline(deck_backend(OUTLINE))
    snapshots = await collect(pipeline)
    deck = snapshots[-1]

    assert [slide.title for slide in deck.slides] == [PROMPT, "Agenda", *OUTLINE]
    assert deck.status == "complete"
    assert deck.prompt == PROMPT

    title, agenda, *content = deck.slides
    assert title.kind == "title"
    assert title.bullets == ["Generated by Deckpipe", "October 19, 2026"]
    assert agenda.bullets == OUTLINE
    for slide in content:
        assert slide.bullets == [f"{slide.title} point one", f"{slide.title} point two"]
        assert slide.caption == f"Caption for {slide.title}"
        assert slide.notes == f"Notes for {slide.title}"
        assert slide.visual == Visual(kind="svg", data=f"<svg><title>{slide.title}</title></svg>")
    await store.close()


@pytest.mark.asyncio
async def test_snapshots_grow_and_published_content_never_changes():
    pipeline, store = make_pipeline(deck_backend(OUTLINE))
    snapshots = await collect(pipeline)

    assert len(snapshots[0].slides) == 2
    assert all(snapshot.status == "generating" for snapshot in snapshots[:-1])
    for earlier, later in zip(snapshots, snapshots[1:]):
        assert len(later.slides) >= len(earlier.slides)
        for before, after in zip(earlier.slides, later.slides):
            assert (after.title, after.bullets) == (before.title, before.bullets)
            if before.visual is not None:
                assert after.visual == before.visual
    await store.close()


@pytest.mark.asyncio
async def test_snapshots_are_independent_copies():
    pipeline, store = make_pipeline(deck_backend(OUTLINE))
    snapshots = await collect(pipeline)

    snapshots[0].slides[1].bullets.append("tampered")
    snapshots[0].slides.clear()
    assert snapshots[-1].slides[1].bullets == OUTLINE
    await store.close()


@pytest.mark.asyncio
async def test_backend_call_order_per_slide():
    backend = deck_backend(OUTLINE)
    pipeline, store = make_pipeline(backend)
    await collect(pipeline)

    assert backend.kinds()[0] == "outline"
    for title in OUTLINE:
        per_slide = [kind for kind, instruction in backend.calls if title_of(instruction) == title]
        assert per_slide[0] == "bullets"
        assert sorted(per_slide[1:]) == ["caption", "notes"]
    await store.close()


@pytest.mark.asyncio
async def test_malformed_bullets_leave_slide_empty_and_deck_continues():
    def bullets(instruction):
        if title_of(instruction) == "Solution":
            return '{"bullets": ["half an answer"'
        return json.dumps({"bullets": ["fine"]})

    pipeline, store = make_pipeline(deck_backend(OUTLINE, bullets=bullets))
    deck = (await collect(pipeline))[-1]

    assert [slide.title for slide in deck.slides] == [PROMPT, "Agenda", *OUTLINE]
    assert deck.slides[3].bullets == []
    assert deck.slides[2].bullets == ["fine"]
    assert deck.slides[4].bullets == ["fine"]
    assert deck.status == "complete"
    await store.close()


@pytest.mark.asyncio
async def test_stuck_visual_falls_back_without_blocking_the_deck():
    pipeline, store = make_pipeline(deck_backend(OUTLINE), worker=never_finishes)
    deck = (await collect(pipeline))[-1]

    assert deck.status == "complete"
    assert [slide.visual for slide in deck.slides[2:]] == [FALLBACK] * 3
    await store.close()


@pytest.mark.asyncio
async def test_failed_visual_worker_falls_back():
    async def explode(request):
        raise RuntimeError("render farm down")

    pipeline, store = make_pipeline(deck_backend(["Only"]), worker=explode)
    deck = (await collect(pipeline))[-1]

    assert deck.slides[-1].visual == FALLBACK
    await store.close()


@pytest.mark.asyncio
async def test_outline_failure_yields_single_error_slide():
    backend = ScriptedBackend({"outline": "Sorry, I can't help with that."})
    pipeline, store = make_pipeline(backend)
    snapshots = await collect(pipeline)

    assert len(snapshots) == 1
    deck = snapshots[0]
    assert deck.status == "failed"
    assert len(deck.slides) == 1
    assert deck.slides[0].kind == "error"
    assert backend.kinds() == ["outline"]


@pytest.mark.asyncio
async def test_outline_backend_error_yields_error_slide():
    backend = ScriptedBackend({"outline": ConnectionError("502 Bad Gateway")})
    pipeline, store = make_pipeline(backend)
    deck = await pipeline.build_deck(PROMPT)

    assert deck.status == "failed"
    assert [slide.kind for slide in deck.slides] == ["error"]


@pytest.mark.asyncio
async def test_empty_prompt_is_rejected_before_any_backend_call():
    backend = deck_backend(OUTLINE)
    pipeline, store = make_pipeline(backend)

    with pytest.raises(ValueError):
        await pipeline.build_deck("   ")
    assert backend.calls == []
    assert len(store) == 0


@pytest.mark.asyncio
async def test_slide_delay_runs_between_slides_only():
    delays = []

    async def record_sleep(seconds):
        delays.append(seconds)

    pipeline, store = make_pipeline(deck_backend(OUTLINE), slide_delay=0.5, sleep=record_sleep)
    await collect(pipeline)

    assert delays == [0.5, 0.5]
    await store.close()


@pytest.mark.asyncio
async def test_visual_kind_override_reaches_the_worker():
    kinds = []

    async def recording_worker(request):
        kinds.append(request.kind)
        return Visual(kind=request.kind, data="x")

    pipeline, store = make_pipeline(deck_backend(OUTLINE), worker=recording_worker, visual_kind="svg")
    await collect(pipeline, visual_kind="image")

    assert kinds == ["image"] * 3
    await store.close()


@pytest.mark.asyncio
async def test_visual_requests_carry_slide_bullets():
    requests = []

    async def recording_worker(request):
        requests.append((request.title, request.bullets))
        return Visual(kind="svg", data="<svg/>")

    pipeline, store = make_pipeline(deck_backend(["Problem"]), worker=recording_worker)
    await collect(pipeline)

    assert requests == [("Problem", ["Problem point one", "Problem point two"])]
    await store.close()


def test_agenda_strips_numbering_and_caps_items():
    outline = ["1. Problem", "Slide 2: Solution", "3) Market", "Team", "Ask", "Appendix"]
    agenda = agenda_slide(outline, max_items=5)
    assert agenda.title == "Agenda"
    assert agenda.bullets == ["Problem", "Solution", "Market", "Team", "Ask"]

    outline = ["5-Year Plan", "2024-2025 Roadmap", "3.5x Growth", "Slide 4 - Team", "10. Ask"]
    agenda = agenda_slide(outline, max_items=5)
    assert agenda.bullets == ["5-Year Plan", "2024-2025 Roadmap", "3.5x Growth", "Team", "Ask"]


def test_strip_numbering_keeps_titles_that_are_only_numbers():
    assert strip_numbering("2024") == "2024"
    assert strip_numbering("  Market  ") == "Market"


def test_title_slide_formats_date():
    slide = title_slide("Pitch", "By us", date(2026, 3, 7))
    assert slide.bullets == ["By us", "March 7, 2026"]
    assert slide.kind == "title"
