from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Optional

ZERO_TIME = datetime.datetime(1, 1, 1, tzinfo=datetime.timezone.utc)


@dataclass
class Image:
    title: str = ""
    href: str = ""
    url: str = ""
    width: int = 0
    height: int = 0


@dataclass
class Enclosure:
    url: str = ""
    type: str = ""
    length: int = 0


@dataclass
class Item:
    """One entry of a feed.

    ``date`` is only meaningful when ``date_valid`` is true; otherwise it holds
    ``ZERO_TIME`` so that items compare equal across parses.
    """

    id: str = ""
    title: str = ""
    summary: str = ""
    content: str = ""
    link: str = ""
    categories: list[str] = field(default_factory=list)
    image: Optional[Image] = None
    date: datetime.datetime = ZERO_TIME
    date_valid: bool = False
    enclosures: list[Enclosure] = field(default_factory=list)
    read: bool = False

    def __str__(self) -> str:
        date = self.date.isoformat() if self.date_valid else "unknown date"
        return f"Item {self.title!r} ({self.id}) {date}"


@dataclass
class Feed:
    """Normalized result of parsing one RSS or Atom document."""

    title: str = ""
    description: str = ""
    language: str = ""
    author: str = ""
    link: str = ""
    image: Optional[Image] = None
    categories: list[str] = field(default_factory=list)
    items: list[Item] = field(default_factory=list)
    # Identities seen while parsing; used for dedup, not as a lookup index.
    item_map: set[str] = field(default_factory=set)
    unread: int = 0
    refresh: datetime.datetime = ZERO_TIME

    def __str__(self) -> str:
        lines = [
            f"Feed {self.title!r}",
            f"\tLink: {self.link}",
            f"\tRefresh: {self.refresh.isoformat()}",
            f"\tUnread: {self.unread}",
        ]
        lines.extend(f"\t{item}" for item in self.items)
        return "\n".join(lines)


@dataclass(frozen=True)
class Diagnostic:
    """A recovered, item-level problem found while parsing."""

    code: str
    message: str
    context: str = ""
