"""
Visual producer: the work a visual job performs in the background.

- **svg**   – asks the SVG agent for markup and keeps the first ``<svg>`` element.
- **image** – starts a generation on the image backend and polls it to a URL.

Returns ``None`` when nothing usable came back; the job store records that as
a finished job with an empty result.
"""

import logging

from deckpipe.controllers.content_controller import Complete
from deckpipe.core import ai_generators
from deckpipe.core.image_client import ImageClient
from deckpipe.core.lenient_json import extract_svg
from deckpipe.core.visual_poller import VisualPoller
from deckpipe.schemas.deck import Visual
from deckpipe.schemas.generation import VisualRequest

logger = logging.getLogger(__name__)


class VisualProducer:
    def __init__(
        self,
        complete: Complete = ai_generators.complete,
        image_client: ImageClient | None = None,
        image_poller: VisualPoller | None = None,
    ):
        self._complete = complete
        self._image_client = image_client
        self._image_poller = image_poller or VisualPoller(max_retries=1, fallback=None)

    async def __call__(self, request: VisualRequest) -> Visual | None:
        if request.kind == "image":
            return await self._image(request)
        return await self._svg(request)

    async def _svg(self, request: VisualRequest) -> Visual | None:
        raw = await self._complete("svg", ai_generators.svg_instruction(request.title, request.bullets))
        markup = extract_svg(raw)
        if not markup:
            logger.warning("SVG reply for %r contained no <svg> element", request.title)
            return None
        return Visual(kind="svg", data=markup)

    async def _image(self, request: VisualRequest) -> Visual | None:
        if self._image_client is None:
            logger.warning("Image requested for %r but no image backend is configured", request.title)
            return None

        prompt = ai_generators.image_prompt(request.title, request.bullets)
        client = self._image_client
        url = await self._image_poller.resolve(
            lambda: client.create(prompt),
            client.status,
            label=f"image {request.title!r}",
        )
        if not url:
            return None
        return Visual(kind="image", data=str(url))
