"""Standalone page rendering for extracted questions."""

from __future__ import annotations

from typing import Optional, Tuple

from .extract import Question

PAGE_SKELETON = '<!DOCTYPE html>\n<html lang="en"><head><meta charset="utf-8"/></head><body></body></html>'


def page_name(index: int, extension: str = "html") -> str:
    return f"{index}.{extension}"


def navigation(index: int, total: int) -> Tuple[Optional[int], Optional[int]]:
    """Return the 1-based positions of the previous and next pages, if any."""
    prev_index = index - 1 if index > 1 else None
    next_index = index + 1 if index < total else None
    return prev_index, next_index


def _build_soup(question: Question, index: int, total: int, image_path: Optional[str], extension: str):
    try:
        from bs4 import BeautifulSoup  # type: ignore
    except Exception as exc:
        raise RuntimeError(f"beautifulsoup4 not available: {exc}") from exc

    soup = BeautifulSoup(PAGE_SKELETON, "html.parser")
    title_tag = soup.new_tag("title")
    title_tag.string = f"Question {index}"
    soup.head.append(title_tag)

    article = soup.new_tag("article", attrs={"class": "question"})
    soup.body.append(article)

    position = soup.new_tag("p", attrs={"class": "position"})
    position.string = f"Question {index} of {total}"
    article.append(position)

    heading = soup.new_tag("h1")
    heading.string = question.title
    article.append(heading)

    if image_path is not None:
        figure = soup.new_tag("figure")
        figure.append(soup.new_tag("img", attrs={"src": image_path, "alt": question.title}))
        article.append(figure)

    choices = soup.new_tag("ol", attrs={"class": "choices", "type": "A"})
    for choice in question.answer_choices:
        item = soup.new_tag("li")
        if choice.is_answer:
            item["class"] = "answer"
            strong = soup.new_tag("strong")
            strong.string = choice.text
            item.append(strong)
        else:
            item.string = choice.text
        choices.append(item)
    article.append(choices)

    prev_index, next_index = navigation(index, total)
    if prev_index is not None or next_index is not None:
        nav = soup.new_tag("nav")
        if prev_index is not None:
            link = soup.new_tag("a", attrs={"class": "prev", "href": page_name(prev_index, extension)})
            link.string = "Previous"
            nav.append(link)
        if next_index is not None:
            link = soup.new_tag("a", attrs={"class": "next", "href": page_name(next_index, extension)})
            link.string = "Next"
            nav.append(link)
        article.append(nav)

    return soup


def render_html_page(question: Question, index: int, total: int, image_path: Optional[str] = None) -> str:
    soup = _build_soup(question, index, total, image_path, "html")
    return soup.prettify()


def render_markdown_page(question: Question, index: int, total: int, image_path: Optional[str] = None) -> str:
    try:
        from markdownify import markdownify as md_convert  # type: ignore
    except Exception as exc:
        raise RuntimeError(f"markdownify not available: {exc}") from exc

    soup = _build_soup(question, index, total, image_path, "md")
    md_text = md_convert(str(soup.body), heading_style="ATX")
    return md_text.strip() + "\n"


RENDERERS = {
    "html": render_html_page,
    "markdown": render_markdown_page,
}

EXTENSIONS = {
    "html": "html",
    "markdown": "md",
}
