from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Optional

from .dates import first_valid_date
from .diagnostics import DiagnosticLog
from .exceptions import MissingChannel
from .identity import ItemCollector, resolve_identity
from .links import child_text, find_child, iter_children, link_refs, select_link
from .media import media_enclosure, parse_enclosures
from .models import Feed, Image, Item
from .refresh import next_refresh

if TYPE_CHECKING:
    from lxml.etree import _Element

logger = logging.getLogger(__name__)


def _non_negative_int(value: Optional[str]) -> int:
    if not value:
        return 0
    try:
        number = int(value.strip())
    except (ValueError, TypeError):
        return 0
    return max(number, 0)


def _parse_image(element: _Element) -> Optional[Image]:
    """Merge every ``image`` child (RSS ``<image>``, ``itunes:image``...) into one."""
    image: Optional[Image] = None
    for image_el in iter_children(element, "image"):
        if image is None:
            image = Image()
        href = image_el.get("href")
        if href:
            image.href = href.strip()
        title = child_text(image_el, "title")
        if title:
            image.title = title
        url = child_text(image_el, "url").strip()
        if url:
            image.url = url
        width = _non_negative_int(child_text(image_el, "width"))
        if width:
            image.width = width
        height = _non_negative_int(child_text(image_el, "height"))
        if height:
            image.height = height
    return image


def _channel_categories(channel: _Element) -> list[str]:
    # iTunes puts the label in a "text" attribute instead of the element body.
    return [
        (cat.get("text") or cat.text or "").strip()
        for cat in iter_children(channel, "category")
    ]


def _parse_ttl(channel: _Element, diagnostics: DiagnosticLog) -> Optional[int]:
    ttl = child_text(channel, "ttl").strip()
    if not ttl:
        return None
    try:
        return int(ttl)
    except ValueError:
        diagnostics.add("bad-ttl", f"ttl {ttl!r} is not a number of minutes")
        return None


def _skip_hours(channel: _Element, diagnostics: DiagnosticLog) -> list[int]:
    hours: list[int] = []
    container = find_child(channel, "skipHours")
    if container is None:
        return hours
    for hour_el in iter_children(container, "hour"):
        text = (hour_el.text or "").strip()
        try:
            hours.append(int(text))
        except ValueError:
            diagnostics.add("bad-skip-hour", f"skip hour {text!r} is not a number")
    return hours


def _skip_days(channel: _Element) -> list[str]:
    container = find_child(channel, "skipDays")
    if container is None:
        return []
    return [
        (day.text or "").strip()
        for day in iter_children(container, "day")
        if day.text and day.text.strip()
    ]


def _channel_refresh(
    channel: _Element,
    diagnostics: DiagnosticLog,
    *,
    now: datetime.datetime,
    default_interval: datetime.timedelta,
) -> datetime.datetime:
    ttl = _parse_ttl(channel, diagnostics)
    try:
        return next_refresh(
            now,
            ttl=ttl,
            skip_hours=_skip_hours(channel, diagnostics),
            skip_days=_skip_days(channel),
            default_interval=default_interval,
        )
    except OverflowError:
        diagnostics.add("bad-ttl", f"ttl {ttl} minutes is out of range")
        return next_refresh(now, default_interval=default_interval)


def _item_date(
    item: _Element, title: str, diagnostics: DiagnosticLog
) -> tuple[datetime.datetime, bool]:
    """``dc:date`` wins over ``pubDate``; the first one that parses is used."""
    date_text = child_text(item, "date")
    pub_date_text = child_text(item, "pubDate")
    date, valid = first_valid_date(date_text, pub_date_text)
    raw = date_text.strip() or pub_date_text.strip()
    if not valid and raw:
        diagnostics.add("invalid-date", f"unparseable date {raw!r}", title)
    return date, valid


def _parse_item(
    item: _Element,
    diagnostics: DiagnosticLog,
    *,
    include_content: bool = True,
    include_tags: bool = True,
    include_enclosures: bool = True,
) -> Item:
    title = child_text(item, "title")
    link = select_link(link_refs(iter_children(item, "link")))
    guid = find_child(item, "guid")

    entry = Item(
        id=resolve_identity(guid.text if guid is not None else None, link),
        title=title,
        summary=child_text(item, "description"),
        link=link,
        image=_parse_image(item),
    )
    if include_content:
        entry.content = child_text(item, "encoded")
    if include_tags:
        entry.categories = [
            (cat.text or "").strip() for cat in iter_children(item, "category")
        ]

    entry.date, entry.date_valid = _item_date(item, title, diagnostics)

    if include_enclosures:
        entry.enclosures = parse_enclosures(item, diagnostics, title)
        extra = media_enclosure(item, diagnostics, title)
        if extra is not None:
            entry.enclosures.append(extra)

    return entry


def parse_rss(
    root: _Element,
    diagnostics: DiagnosticLog,
    *,
    now: datetime.datetime,
    default_refresh_interval: datetime.timedelta,
    include_content: bool = True,
    include_tags: bool = True,
    include_enclosures: bool = True,
) -> Feed:
    """Map an RSS 2.0 ``<rss>`` element onto a ``Feed``."""
    channel = find_child(root, "channel")
    if channel is None:
        raise MissingChannel("Invalid RSS feed: missing channel element")

    feed = Feed(
        title=child_text(channel, "title"),
        description=child_text(channel, "description"),
        language=child_text(channel, "language"),
        author=child_text(channel, "author") or child_text(channel, "managingEditor"),
        link=select_link(link_refs(iter_children(channel, "link"))),
        image=_parse_image(channel),
    )
    if include_tags:
        feed.categories = _channel_categories(channel)

    feed.refresh = _channel_refresh(
        channel, diagnostics, now=now, default_interval=default_refresh_interval
    )

    collector = ItemCollector(feed, diagnostics)
    for item in iter_children(channel, "item"):
        collector.add(
            _parse_item(
                item,
                diagnostics,
                include_content=include_content,
                include_tags=include_tags,
                include_enclosures=include_enclosures,
            )
        )

    logger.debug("parsed RSS channel %r with %d items", feed.title, len(feed.items))
    return feed
