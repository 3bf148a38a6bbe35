from __future__ import annotations

import datetime
import html as _html_mod
import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Optional

from lxml import etree

from .dates import first_valid_date
from .diagnostics import DiagnosticLog
from .identity import ItemCollector, resolve_identity
from .links import LinkRef, select_link
from .media import make_enclosure
from .models import Feed, Image, Item
from .refresh import next_refresh

if TYPE_CHECKING:
    from lxml.etree import _Element

logger = logging.getLogger(__name__)

ATOM_NAMESPACES = frozenset(
    {
        "http://www.w3.org/2005/Atom",
        "https://www.w3.org/2005/Atom",
    }
)

_XML_LANG_ATTR = "{http://www.w3.org/XML/1998/namespace}lang"


@lru_cache(maxsize=4)
def _atom_ns_tags(atom_ns: str) -> dict[str, str]:
    """Namespace-prefixed tag strings, computed once per namespace."""
    ns = f"{{{atom_ns}}}"
    return {
        name: ns + name
        for name in (
            "entry",
            "id",
            "title",
            "subtitle",
            "summary",
            "content",
            "link",
            "author",
            "name",
            "category",
            "published",
            "updated",
            "logo",
            "icon",
        )
    }


def _text_construct(element: Optional[_Element]) -> str:
    """Render an Atom text construct (title, subtitle, summary) as a string."""
    if element is None:
        return ""
    if element.get("type") == "xhtml":
        return " ".join("".join(element.itertext()).split())
    return element.text or ""


def _inner_xml(element: _Element) -> str:
    parts = [_html_mod.escape(element.text, quote=False)] if element.text else []
    for child in element:
        parts.append(etree.tostring(child, encoding="unicode", with_tail=True))
    return "".join(parts)


def _content_value(element: Optional[_Element]) -> str:
    # type="html" carries escaped markup whose text is the HTML itself;
    # everything else is taken verbatim from the document.
    if element is None:
        return ""
    if element.get("type") == "html":
        return element.text or ""
    return _inner_xml(element)


def _atom_link_refs(links: list[_Element]) -> list[LinkRef]:
    # Atom links keep their target in href; it plays the part of the link text.
    return [
        LinkRef(
            rel=link.get("rel"),
            type=link.get("type"),
            href=None,
            text=(link.get("href") or "").strip(),
        )
        for link in links
    ]


def _author_name(element: _Element, tags: dict[str, str]) -> str:
    author = element.find(tags["author"])
    if author is None:
        return ""
    name = author.find(tags["name"])
    return (name.text or "").strip() if name is not None else ""


def _parse_image(root: _Element, tags: dict[str, str]) -> Optional[Image]:
    for tag in (tags["logo"], tags["icon"]):
        el = root.find(tag)
        if el is not None and el.text and el.text.strip():
            return Image(url=el.text.strip())
    return None


def _parse_entry(
    entry_el: _Element,
    tags: dict[str, str],
    diagnostics: DiagnosticLog,
    *,
    include_content: bool = True,
    include_tags: bool = True,
    include_enclosures: bool = True,
) -> Item:
    title = _text_construct(entry_el.find(tags["title"]))
    links = entry_el.findall(tags["link"])
    link = select_link(_atom_link_refs(links))
    id_el = entry_el.find(tags["id"])

    entry = Item(
        id=resolve_identity(id_el.text if id_el is not None else None, link),
        title=title,
        summary=_text_construct(entry_el.find(tags["summary"])),
        link=link,
    )
    if include_content:
        entry.content = _content_value(entry_el.find(tags["content"]))
    if include_tags:
        entry.categories = [
            (cat.get("term") or "").strip() for cat in entry_el.findall(tags["category"])
        ]

    published = entry_el.findtext(tags["published"]) or ""
    updated = entry_el.findtext(tags["updated"]) or ""
    entry.date, entry.date_valid = first_valid_date(published, updated)
    raw = published.strip() or updated.strip()
    if not entry.date_valid and raw:
        diagnostics.add("invalid-date", f"unparseable date {raw!r}", title)

    if include_enclosures:
        for link_el in links:
            if link_el.get("rel") != "enclosure":
                continue
            entry.enclosures.append(
                make_enclosure(
                    link_el.get("href"),
                    link_el.get("type"),
                    link_el.get("length"),
                    diagnostics,
                    title,
                )
            )

    return entry


def parse_atom(
    root: _Element,
    atom_ns: str,
    diagnostics: DiagnosticLog,
    *,
    now: datetime.datetime,
    default_refresh_interval: datetime.timedelta,
    include_content: bool = True,
    include_tags: bool = True,
    include_enclosures: bool = True,
) -> Feed:
    """Map an Atom ``<feed>`` element onto a ``Feed``.

    Atom has no ttl or skip hints, so the refresh is always the default
    interval from ``now``.
    """
    tags = _atom_ns_tags(atom_ns)

    feed = Feed(
        title=_text_construct(root.find(tags["title"])),
        description=_text_construct(root.find(tags["subtitle"])),
        language=root.get(_XML_LANG_ATTR) or "",
        author=_author_name(root, tags),
        link=select_link(_atom_link_refs(root.findall(tags["link"]))),
        image=_parse_image(root, tags),
        refresh=next_refresh(now, default_interval=default_refresh_interval),
    )
    if include_tags:
        feed.categories = [
            (cat.get("term") or "").strip() for cat in root.findall(tags["category"])
        ]

    collector = ItemCollector(feed, diagnostics)
    for entry_el in root.iterchildren(tags["entry"]):
        collector.add(
            _parse_entry(
                entry_el,
                tags,
                diagnostics,
                include_content=include_content,
                include_tags=include_tags,
                include_enclosures=include_enclosures,
            )
        )

    logger.debug("parsed Atom feed %r with %d entries", feed.title, len(feed.items))
    return feed
