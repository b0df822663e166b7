"""Saved decks — one JSON file per deck under ``settings.SAVED_DECKS_DIR``."""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from deckpipe.core.config import settings
from deckpipe.schemas.deck import Deck, SavedDeck

logger = logging.getLogger(__name__)

_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class DeckNameError(ValueError):
    """A deck name that cannot map to a file inside the saved-decks folder."""


def _folder(folder: Path | None) -> Path:
    return Path(folder or settings.SAVED_DECKS_DIR)


def _sanitize(deck: Deck) -> Deck:
    """Escape ``</script>`` inside inline SVG so a saved deck can be embedded in a page."""
    slides = []
    for slide in deck.slides:
        if slide.visual is not None and slide.visual.kind == "svg":
            markup = re.sub(r"</script>", r"<\\/script>", slide.visual.data, flags=re.IGNORECASE)
            slide = slide.model_copy(update={"visual": slide.visual.model_copy(update={"data": markup})})
        slides.append(slide)
    return deck.model_copy(update={"slides": slides})


def save_deck(deck: Deck, folder: Path | None = None) -> Path:
    """Write *deck* to ``deck-<UTC timestamp>.json`` and return the path."""
    folder = _folder(folder)
    folder.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    path = folder / f"deck-{stamp}.json"
    suffix = 1
    while path.exists():
        path = folder / f"deck-{stamp}-{suffix}.json"
        suffix += 1
    path.write_text(_sanitize(deck).model_dump_json(indent=2), encoding="utf-8")
    logger.info("Saved deck %r to %s", deck.prompt, path)
    return path


def list_decks(folder: Path | None = None) -> list[SavedDeck]:
    """Every readable saved deck, ordered by name."""
    folder = _folder(folder)
    if not folder.is_dir():
        return []

    decks: list[SavedDeck] = []
    for path in sorted(folder.glob("*.json")):
        try:
            deck = Deck.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError):
            logger.warning("Skipping unreadable saved deck %s", path, exc_info=True)
            continue
        decks.append(SavedDeck(name=path.stem, deck=deck))
    return decks


def load_deck(name: str, folder: Path | None = None) -> Deck | None:
    """Load the deck saved as *name*; ``None`` when there is no such deck."""
    if not _SAFE_NAME_RE.match(name) or ".." in name:
        raise DeckNameError(f"Invalid deck name {name!r}")

    path = _folder(folder) / f"{name.removesuffix('.json')}.json"
    if not path.is_file():
        return None
    try:
        return Deck.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError):
        logger.warning("Saved deck %s is unreadable", path, exc_info=True)
        return None
