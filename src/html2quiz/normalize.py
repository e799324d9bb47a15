"""Text cleanup shared by question titles and answer choices."""

from __future__ import annotations

import re

TITLE_PREFIX_RE = re.compile(r"^[0-9.]+")
# One letter (any script, either case) followed by a dot, e.g. "D." or "b."
ANSWER_PREFIX_RE = re.compile(r"^[^\W\d_]\.")


def collapse_whitespace(text: str) -> str:
    return " ".join(text.replace("\n", " ").split())


def normalize_title(text: str) -> str:
    """Strip a leading question number such as ``15.1`` or ``12.`` and collapse whitespace."""
    return collapse_whitespace(TITLE_PREFIX_RE.sub("", text.strip(), count=1))


def normalize_answer(text: str) -> str:
    """Strip a leading choice letter such as ``D.`` and collapse whitespace."""
    return collapse_whitespace(ANSWER_PREFIX_RE.sub("", text.strip(), count=1))
