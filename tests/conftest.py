"""Global test configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from deckpipe.api.deps import get_content_fetcher, get_job_store, get_pipeline
from deckpipe.controllers.content_controller import ContentFetcher
from deckpipe.controllers.generation_controller import DeckPipeline
from deckpipe.core.config import settings
from deckpipe.core.job_store import JobStore
from deckpipe.core.visual_poller import VisualPoller
from deckpipe.main import app, fallback_visual

from tests.stubs import SAMPLE_OUTLINE, deck_backend, instant_visual, no_sleep


@pytest.fixture
def saved_decks_dir(tmp_path, monkeypatch):
    """Point the saved-decks folder at a temporary directory."""
    folder = tmp_path / "saved_decks"
    monkeypatch.setattr(settings, "SAVED_DECKS_DIR", folder)
    return folder


@pytest.fixture
def backend():
    return deck_backend(SAMPLE_OUTLINE)


@pytest.fixture
def client(backend, saved_decks_dir):
    """TestClient with the text backend and visual worker replaced by stubs."""
    fetcher = ContentFetcher(backend)
    store = JobStore(instant_visual)
    pipeline = DeckPipeline(
        fetcher,
        store,
        VisualPoller(max_attempts=20, interval=0, max_retries=1, fallback=fallback_visual(), sleep=no_sleep),
        byline="Generated by Deckpipe",
    )

    app.dependency_overrides[get_content_fetcher] = lambda: fetcher
    app.dependency_overrides[get_job_store] = lambda: store
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
