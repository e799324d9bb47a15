"""Markup repair applied before strict structural parsing."""

from __future__ import annotations

import re

# Attribute lists are often wrapped across lines, so the body must span newlines.
# The body stops at the first ">" and an optional trailing "/" is absorbed so
# already-closed tags come out unchanged.
IMG_TAG_RE = re.compile(r"<img(?P<body>(?:\s.*?)?)/?>", re.DOTALL)


def fix_img_tags(text: str) -> str:
    return IMG_TAG_RE.sub(r"<img\g<body>/>", text)


def repair_markup(text: str) -> str:
    """Rewrite ``&nbsp;``, ``<br>`` and unclosed ``<img>`` tags so the text parses as XML."""
    content = text.replace("&nbsp;", " ").replace("<br>", "<br/>")
    return fix_img_tags(content)
