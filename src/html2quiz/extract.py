"""Single-pass extraction of quiz questions from a document's top-level nodes."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .nodes import Element, Node, Text, parse_document
from .normalize import normalize_answer, normalize_title
from .repair import repair_markup

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractorConfig:
    question_class: str = "question"
    image_class: str = "wp-block-image"
    paragraph_tag: str = "p"
    container_tag: str = "div"
    figure_tag: str = "figure"
    img_tag: str = "img"
    src_attribute: str = "src"
    bold_tag: str = "strong"

    @classmethod
    def keys(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def is_paragraph(self, node: Element) -> bool:
        return node.tag == self.paragraph_tag

    def is_question_marker(self, node: Element) -> bool:
        return node.tag == self.paragraph_tag and node.get("class") == self.question_class

    def is_image_container(self, node: Element) -> bool:
        return node.tag == self.container_tag and node.get("class") == self.image_class


@dataclass(frozen=True)
class AnswerChoice:
    text: str
    is_answer: bool


@dataclass(frozen=True)
class Question:
    title: str
    image_src: Optional[str]
    answer_choices: Tuple[AnswerChoice, ...]

    @property
    def correct_choices(self) -> List[AnswerChoice]:
        return [choice for choice in self.answer_choices if choice.is_answer]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "image_src": self.image_src,
            "answer_choices": [asdict(choice) for choice in self.answer_choices],
        }


class ExtractionError(RuntimeError):
    """A structural expectation of the question layout was not met.

    ``question_index`` is 1-based and, like ``title`` and ``value``, is None
    when not known at the point of failure.
    """

    def __init__(
        self,
        expected: str,
        *,
        question_index: Optional[int] = None,
        title: Optional[str] = None,
        value: Optional[str] = None,
    ) -> None:
        self.expected = expected
        self.question_index = question_index
        self.title = title
        self.value = value
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.expected]
        if self.question_index is not None:
            parts.append(f"question {self.question_index}")
        if self.title:
            parts.append(f"title={self.title!r}")
        if self.value is not None:
            parts.append(f"value={self.value!r}")
        return "; ".join(parts)


class _Cursor:
    """Forward-only position over a sequence of sibling nodes."""

    def __init__(self, nodes: Sequence[Node]) -> None:
        self._nodes = nodes
        self.position = 0

    def next_element(self, predicate: Callable[[Element], bool]) -> Optional[Element]:
        while self.position < len(self._nodes):
            node = self._nodes[self.position]
            self.position += 1
            if isinstance(node, Element) and predicate(node):
                return node
        return None


def _node_text(node: Node) -> str:
    if isinstance(node, Text):
        return node.content
    return node.text(" ")


def _image_source(container: Element, config: ExtractorConfig, index: int, title: str) -> str:
    figure = container.child(config.figure_tag)
    if figure is None:
        raise ExtractionError("image container missing figure", question_index=index, title=title)
    img = figure.child(config.img_tag)
    if img is None:
        raise ExtractionError("figure missing img", question_index=index, title=title)
    src = img.get(config.src_attribute)
    if src is None or not src.strip():
        raise ExtractionError("img missing src attribute", question_index=index, title=title, value=src)
    return src.strip()


def extract_answer_choices(paragraph: Element, config: ExtractorConfig) -> List[AnswerChoice]:
    choices: List[AnswerChoice] = []
    for node in paragraph.children:
        if isinstance(node, Text):
            candidate = AnswerChoice(normalize_answer(node.content), False)
        elif node.tag == config.bold_tag:
            candidate = AnswerChoice(normalize_answer(node.text(" ")), True)
        else:
            continue
        if candidate.text:
            choices.append(candidate)
    return choices


def extract_questions(root: Element, config: Optional[ExtractorConfig] = None) -> List[Question]:
    """Walk the root's children once and assemble questions in document order.

    Raises ExtractionError on the first broken question; no partial result is
    returned.
    """
    config = config or ExtractorConfig()
    cursor = _Cursor(root.children)
    questions: List[Question] = []

    def is_body(node: Element) -> bool:
        return config.is_image_container(node) or config.is_paragraph(node)

    while True:
        marker = cursor.next_element(config.is_question_marker)
        if marker is None:
            break
        index = len(questions) + 1
        title = normalize_title(" ".join(_node_text(child) for child in marker.children))

        body = cursor.next_element(is_body)
        if body is None:
            raise ExtractionError("no element after question title", question_index=index, title=title)

        image_src = None
        if config.is_image_container(body):
            image_src = _image_source(body, config, index, title)
            body = cursor.next_element(config.is_paragraph)
            if body is None:
                raise ExtractionError(
                    "expected paragraph after image", question_index=index, title=title, value=image_src
                )

        choices = extract_answer_choices(body, config)
        questions.append(Question(title=title, image_src=image_src, answer_choices=tuple(choices)))
        LOG.debug(
            "Question %d: %r (image=%s, choices=%d, marked=%d)",
            index,
            title,
            image_src or "-",
            len(choices),
            sum(1 for choice in choices if choice.is_answer),
        )

    return questions


def extract_from_text(text: str, config: Optional[ExtractorConfig] = None) -> List[Question]:
    """Repair, parse and extract one document."""
    return extract_questions(parse_document(repair_markup(text)), config)
