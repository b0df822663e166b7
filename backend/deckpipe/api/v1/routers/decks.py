"""Decks router — stream a deck generation, save and reload decks."""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from deckpipe.api.deps import get_pipeline
from deckpipe.controllers import deck_controller
from deckpipe.controllers.generation_controller import DeckPipeline
from deckpipe.schemas.deck import Deck, SavedDeck
from deckpipe.schemas.generation import GenerateDeckRequest, SavedDeckLocation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/decks", tags=["decks"])


def _sse(data: str, event: str | None = None) -> str:
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {data}\n\n"


@router.post("/generate")
async def generate_deck(
    payload: GenerateDeckRequest,
    pipeline: DeckPipeline = Depends(get_pipeline),
):
    """Generate a deck, streaming a full snapshot as a server-sent event after every change."""

    async def event_stream():
        slides = 0
        async for deck in pipeline.generate_deck(payload.prompt, payload.visual_kind):
            slides = len(deck.slides)
            yield _sse(deck.model_dump_json())
        yield _sse(json.dumps({"slides": slides}), event="end")

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("", response_model=SavedDeckLocation, status_code=status.HTTP_201_CREATED)
def save_deck(deck: Deck):
    """Write the deck to the saved-decks folder."""
    path = deck_controller.save_deck(deck)
    return SavedDeckLocation(name=path.stem, location=str(path))


@router.get("", response_model=list[SavedDeck])
def list_decks():
    """All saved decks, ordered by name."""
    return deck_controller.list_decks()


@router.get("/{name}", response_model=Deck)
def load_deck(name: str):
    """One saved deck by name."""
    try:
        deck = deck_controller.load_deck(name)
    except deck_controller.DeckNameError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if deck is None:
        raise HTTPException(status_code=404, detail="Deck not found")
    return deck
