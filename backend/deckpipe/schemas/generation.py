import datetime
from typing import Annotated

import pydantic

from deckpipe.schemas.deck import Visual, VisualKind

# Stripped, and rejected with a 422 when nothing is left.
NonEmptyStr = Annotated[str, pydantic.StringConstraints(strip_whitespace=True, min_length=1)]


class OutlineRequest(pydantic.BaseModel):
    prompt: NonEmptyStr


class OutlineRead(pydantic.BaseModel):
    slides: list[str]


class SlideContentRequest(pydantic.BaseModel):
    title: NonEmptyStr


class SlideContentRead(pydantic.BaseModel):
    title: str
    bullets: list[str]
    caption: str
    notes: str


class GenerateDeckRequest(pydantic.BaseModel):
    prompt: NonEmptyStr
    visual_kind: VisualKind | None = None  # None -> settings.DEFAULT_VISUAL_KIND


class VisualRequest(pydantic.BaseModel):
    title: NonEmptyStr
    bullets: list[str] = []
    kind: VisualKind = "svg"


class VisualJobRead(pydantic.BaseModel):
    id: str
    status: str  # pending, done
    visual: Visual | None = None
    created_at: datetime.datetime
    completed_at: datetime.datetime | None = None


class SavedDeckLocation(pydantic.BaseModel):
    name: str
    location: str
