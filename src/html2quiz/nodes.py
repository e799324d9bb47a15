"""Element/text node model built from a strict XML parse of a repaired document."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple, Union


class DocumentParseError(RuntimeError):
    """The repaired document is not well-formed markup."""


@dataclass(frozen=True)
class Text:
    content: str


@dataclass(frozen=True)
class Element:
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: Tuple["Node", ...] = ()

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(name, default)

    def child(self, tag: str) -> Optional["Element"]:
        """Return the first direct child element named ``tag``."""
        for node in self.children:
            if isinstance(node, Element) and node.tag == tag:
                return node
        return None

    def texts(self) -> Iterator[str]:
        """Yield the content of every descendant text node in document order."""
        for node in self.children:
            if isinstance(node, Text):
                yield node.content
            else:
                yield from node.texts()

    def text(self, sep: str = " ") -> str:
        return sep.join(self.texts())


Node = Union[Element, Text]


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _convert(elem: ET.Element) -> Element:
    children = []
    if elem.text:
        children.append(Text(elem.text))
    for sub in elem:
        # Comments and processing instructions have a callable tag.
        if isinstance(sub.tag, str):
            children.append(_convert(sub))
        if sub.tail:
            children.append(Text(sub.tail))
    attrs = {_local_name(key): value for key, value in elem.attrib.items()}
    return Element(tag=_local_name(elem.tag), attrs=attrs, children=tuple(children))


def parse_document(text: str) -> Element:
    """Parse ``text`` as XML and return its root element.

    Namespace URIs are dropped from tag and attribute names, so documents are
    read with an empty prefix context.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise DocumentParseError(str(exc)) from exc
    return _convert(root)
