"""Helpers for reading YouTube timed-text XML."""

from __future__ import annotations

import re

_TEXT_ELEMENT_RE = re.compile(r"<text[^>]*>(.*?)</text>", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")

# Order matters: &amp; goes last so "&amp;lt;" decodes to "&lt;" rather than "<".
_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)


def decode_entities(text: str) -> str:
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    return text


def extract_text(timed_text_xml: str) -> str:
    """Concatenate the caption text of every ``<text>`` element.

    Timing attributes are discarded. An input without ``<text>`` elements
    yields an empty string, which callers treat as a failed fetch.
    """

    parts = [decode_entities(match) for match in _TEXT_ELEMENT_RE.findall(timed_text_xml or "")]
    return _WHITESPACE_RE.sub(" ", " ".join(parts)).strip()


def normalise_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()
