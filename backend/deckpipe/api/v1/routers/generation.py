"""Generation router — outline and per-slide content, one backend call each."""

import asyncio

from fastapi import APIRouter, Depends

from deckpipe.api.deps import get_content_fetcher
from deckpipe.controllers.content_controller import ContentFetcher, clean_bullets
from deckpipe.schemas.generation import OutlineRead, OutlineRequest, SlideContentRead, SlideContentRequest

router = APIRouter(prefix="/generation", tags=["generation"])


@router.post("/outline", response_model=OutlineRead)
async def generate_outline(
    payload: OutlineRequest,
    fetcher: ContentFetcher = Depends(get_content_fetcher),
):
    """Expand a prompt into an ordered list of slide titles."""
    return OutlineRead(slides=await fetcher.fetch_outline(payload.prompt))


@router.post("/slide-content", response_model=SlideContentRead)
async def generate_slide_content(
    payload: SlideContentRequest,
    fetcher: ContentFetcher = Depends(get_content_fetcher),
):
    """Bullets for a slide title, then its caption and speaker notes."""
    bullets = clean_bullets(await fetcher.fetch_bullets(payload.title))
    caption, notes = await asyncio.gather(
        fetcher.fetch_caption(payload.title, bullets),
        fetcher.fetch_notes(payload.title, bullets),
    )
    return SlideContentRead(title=payload.title, bullets=bullets, caption=caption, notes=notes)
