from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator, NamedTuple, Optional

if TYPE_CHECKING:
    from lxml.etree import _Element


class LinkRef(NamedTuple):
    rel: Optional[str]
    type: Optional[str]
    href: Optional[str]
    text: str


def local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def iter_children(element: _Element, name: str) -> Iterator[_Element]:
    """Yield direct children whose local name is ``name``, in any namespace."""
    for child in element:
        tag = child.tag
        if isinstance(tag, str) and local_name(tag) == name:
            yield child


def find_child(element: _Element, name: str) -> Optional[_Element]:
    """First child called ``name``, preferring one with no namespace."""
    plain = element.find(name)
    if plain is not None:
        return plain
    return next(iter_children(element, name), None)


def child_text(element: _Element, name: str) -> str:
    """Text of the first child called ``name``, or ``""``."""
    child = find_child(element, name)
    if child is None or child.text is None:
        return ""
    return child.text


def link_refs(elements: Iterable[_Element]) -> list[LinkRef]:
    return [
        LinkRef(
            rel=el.get("rel"),
            type=el.get("type"),
            href=el.get("href"),
            text=(el.text or "").strip(),
        )
        for el in elements
    ]


def select_link(links: Iterable[LinkRef]) -> str:
    """Return the first bare link of ``links``, or ``""``.

    A bare link carries no rel, type or href attribute and has text. Links
    decorated with any of those are alternates, self references, enclosures
    and the like, and are never picked as the main link.
    """
    for link in links:
        if not link.rel and not link.type and not link.href and link.text:
            return link.text
    return ""
