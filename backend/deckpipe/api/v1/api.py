"""API v1 — aggregates all routers under a single prefix."""

from fastapi import APIRouter

from deckpipe.api.v1.routers import decks, generation, visuals

router = APIRouter()
router.include_router(generation.router)
router.include_router(visuals.router)
router.include_router(decks.router)
