"""
Shared FastAPI dependencies — single source of truth for DI.

The job store, content fetcher and deck pipeline are built once in the app
lifespan (see ``deckpipe.main``) and live on ``app.state``; routers get them
from HERE, never from module globals.
"""

from fastapi import Request

from deckpipe.controllers.content_controller import ContentFetcher
from deckpipe.controllers.generation_controller import DeckPipeline
from deckpipe.core.job_store import JobStore

__all__ = ["get_job_store", "get_content_fetcher", "get_pipeline"]


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_content_fetcher(request: Request) -> ContentFetcher:
    return request.app.state.content_fetcher


def get_pipeline(request: Request) -> DeckPipeline:
    return request.app.state.pipeline
