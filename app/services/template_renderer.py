"""Prompt template rendering utilities."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from app.services.summary_lengths import LENGTH_PROFILES, SummaryLength

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)

_KEY_POINTS = {
    SummaryLength.SHORT: "2-4",
    SummaryLength.MEDIUM: "4-6",
    SummaryLength.LONG: "6-8",
}


def render_summary_prompt(length: SummaryLength, *, min_words: int | None = None, emphatic: bool = False) -> str:
    """Render the system prompt for a summary of the given length."""

    template = _env.get_template("summary_prompt.txt.jinja")
    return template.render(
        profile=LENGTH_PROFILES[length],
        key_points=_KEY_POINTS[length],
        min_words=min_words,
        emphatic=emphatic,
    ).strip()
