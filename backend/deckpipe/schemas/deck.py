"""
Pydantic models for decks and slides.

A ``Deck`` is built up slide by slide by the generation pipeline in
``deckpipe.controllers.generation_controller`` and is the unit that gets
streamed to clients and written to disk by ``deckpipe.controllers.deck_controller``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

VisualKind = Literal["image", "svg"]
SlideKind = Literal["title", "agenda", "normal", "error"]
DeckStatus = Literal["generating", "complete", "failed"]


class Visual(BaseModel):
    kind: VisualKind
    data: str  # image URL, or inline <svg> markup
    fallback: bool = False


class Slide(BaseModel):
    title: str
    bullets: list[str] = Field(default_factory=list)
    visual: Visual | None = None
    notes: str = ""
    caption: str = ""
    kind: SlideKind = "normal"


class Deck(BaseModel):
    prompt: str
    slides: list[Slide] = Field(default_factory=list)
    status: DeckStatus = "generating"


class SavedDeck(BaseModel):
    name: str
    deck: Deck
