"""
Text-generation agents for Deckpipe.

Agents
------
- **outline_agent**  – Ordered list of slide titles for a topic
- **bullets_agent**  – 3–5 bullet points for one slide title
- **caption_agent**  – One-line caption for a finished slide
- **notes_agent**    – Speaker notes for a finished slide
- **svg_agent**      – Inline SVG visual for a slide

Every agent returns raw text.  Replies are decoded leniently by the callers
(see ``deckpipe.core.lenient_json``) because models routinely wrap the JSON
they were asked for in prose.
"""

from typing import Literal

from pydantic_ai import Agent

from deckpipe.core.config import settings

GenerationKind = Literal["outline", "bullets", "caption", "notes", "svg"]


# ---------------------------------------------------------------------------
# 1.  Outline agent
# ---------------------------------------------------------------------------

_OUTLINE_SYSTEM_PROMPT = """\
You are a corporate strategist with experience in executive presentations. \
Given a topic, return a clear, logical outline of slide titles for a slide \
deck that tells a story.  Only respond with JSON: { "slides": [string] }
"""

outline_agent = Agent(
    model=settings.OUTLINE_MODEL,
    output_type=str,
    system_prompt=_OUTLINE_SYSTEM_PROMPT,
    defer_model_check=True,
)


# ---------------------------------------------------------------------------
# 2.  Bullets agent
# ---------------------------------------------------------------------------

_BULLETS_SYSTEM_PROMPT = """\
You are a professional slide assistant.  For a given slide title, respond \
with 3–5 concise bullet points.  Return only JSON: { "bullets": [string] }
"""

bullets_agent = Agent(
    model=settings.CONTENT_MODEL,
    output_type=str,
    system_prompt=_BULLETS_SYSTEM_PROMPT,
    defer_model_check=True,
)


# ---------------------------------------------------------------------------
# 3.  Caption and notes agents
# ---------------------------------------------------------------------------

_CAPTION_SYSTEM_PROMPT = """\
You write captions for presentation visuals.  Given a slide title and its \
bullet points, write a single evocative sentence of at most 20 words.  \
Return only JSON: { "caption": string }
"""

caption_agent = Agent(
    model=settings.CONTENT_MODEL,
    output_type=str,
    system_prompt=_CAPTION_SYSTEM_PROMPT,
    defer_model_check=True,
)

_NOTES_SYSTEM_PROMPT = """\
You write speaker notes.  Given a slide title and its bullet points, write \
what the presenter should say in 2–4 sentences of plain prose.  \
Return only JSON: { "notes": string }
"""

notes_agent = Agent(
    model=settings.CONTENT_MODEL,
    output_type=str,
    system_prompt=_NOTES_SYSTEM_PROMPT,
    defer_model_check=True,
)


# ---------------------------------------------------------------------------
# 4.  SVG agent
# ---------------------------------------------------------------------------

_SVG_SYSTEM_PROMPT = "You respond only with valid SVG markup."

svg_agent = Agent(
    model=settings.SVG_MODEL,
    output_type=str,
    system_prompt=_SVG_SYSTEM_PROMPT,
    defer_model_check=True,
)


_AGENTS: dict[str, Agent] = {
    "outline": outline_agent,
    "bullets": bullets_agent,
    "caption": caption_agent,
    "notes": notes_agent,
    "svg": svg_agent,
}


# ===================================================================
# Instruction builders
# ===================================================================

def _bullet_block(bullets: list[str]) -> str:
    return "\n".join(f"- {b}" for b in bullets) or "- (none)"


def outline_instruction(prompt: str) -> str:
    return f"Topic: {prompt}"


def bullets_instruction(title: str) -> str:
    return f'Slide title: "{title}". Respond in JSON: {{ "bullets": [...] }}'


def caption_instruction(title: str, bullets: list[str]) -> str:
    return f'Slide title: "{title}"\nBullet points:\n{_bullet_block(bullets)}'


def notes_instruction(title: str, bullets: list[str]) -> str:
    return f'Slide title: "{title}"\nBullet points:\n{_bullet_block(bullets)}'


def svg_instruction(title: str, bullets: list[str]) -> str:
    return (
        "You are a designer who creates poetic, minimalist SVG visuals to represent "
        "abstract ideas.  Given a slide title and bullet points, return a single "
        "<svg>...</svg> element that visually represents the concept in a "
        "metaphorical or symbolic way.  Avoid text.  Use a black background with "
        "neon green, purple, or cyan strokes.  Keep it under 20KB.  Return only "
        "valid SVG.\n\n"
        f'Slide title: "{title}"\nBullet points:\n{_bullet_block(bullets)}'
    )


def image_prompt(title: str, bullets: list[str]) -> str:
    return (
        f'Create a surreal conceptual illustration based on the title "{title}" '
        f"and the following phrases:\n\n{_bullet_block(bullets)}\n\n"
        "The image should feel poetic, abstract, and metaphorical."
    )


# ===================================================================
# Entry point
# ===================================================================

async def complete(kind: GenerationKind, instruction: str) -> str:
    """Run the agent registered for *kind* and return its raw text reply.

    Parameters
    ----------
    kind:
        Which agent to use: ``"outline"``, ``"bullets"``, ``"caption"``,
        ``"notes"`` or ``"svg"``.
    instruction:
        The user prompt, usually built by one of the ``*_instruction``
        helpers above.
    """
    result = await _AGENTS[kind].run(instruction)
    return result.output
