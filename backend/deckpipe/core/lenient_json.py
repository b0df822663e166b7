"""
Best-effort decoding of model replies.

Models asked for JSON frequently wrap it in prose or Markdown fences
(``Sure! Here you go: ```json {...} ``` ``).  These helpers recover the
payload when one is there and return an empty result when it is not;
they never raise.
"""

import json
import re

_FENCE_RE = re.compile(r"```(?:json|svg|xml)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_SVG_RE = re.compile(r"<svg\b.*?</svg\s*>", re.DOTALL | re.IGNORECASE)


def _strip_fences(text: str) -> str:
    match = _FENCE_RE.search(text)
    return match.group(1) if match else text


def lenient_decode(text: str | None) -> dict | None:
    """Return the JSON object contained in *text*, or ``None``.

    Tries, in order: the whole text, the body of the first Markdown code
    fence, the first ``{`` .. last ``}`` substring, and finally the first
    complete object that parses on its own.  Only objects are
    accepted; a bare list or scalar decodes to ``None``.
    """
    if not text or not text.strip():
        return None

    candidates = [text, _strip_fences(text)]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (TypeError, ValueError):
            continue
        if isinstance(parsed, dict):
            return parsed
    return _first_object(text)


def _first_object(text: str) -> dict | None:
    """First complete JSON object in *text*, ignoring whatever trails it."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(text, start)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)
    return None


def extract_svg(text: str | None) -> str:
    """Return the first ``<svg>...</svg>`` element in *text*, or ``""``."""
    if not text:
        return ""
    match = _SVG_RE.search(text)
    return match.group(0).strip() if match else ""
