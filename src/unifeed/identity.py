from __future__ import annotations

from typing import Optional

from .diagnostics import DiagnosticLog
from .models import Feed, Item


def resolve_identity(explicit_id: Optional[str], link: str) -> str:
    """Stable identity of an item: its guid/id when present, else its link."""
    if explicit_id:
        explicit_id = explicit_id.strip()
        if explicit_id:
            return explicit_id
    return link


class ItemCollector:
    """Adds items to a feed, dropping repeats within one parse.

    ``seen`` lives only as long as the collector; ``feed.item_map`` mirrors it
    so that a finished feed reports which identities it holds.
    """

    def __init__(self, feed: Feed, diagnostics: DiagnosticLog) -> None:
        self.feed = feed
        self.diagnostics = diagnostics
        self.seen: set[str] = set()

    def add(self, item: Item) -> bool:
        if not item.id:
            self.diagnostics.add(
                "item-skipped", "item has no id or link and was ignored", item.title
            )
            return False
        # Repeats are dropped silently.
        if item.id in self.seen:
            return False
        self.seen.add(item.id)
        self.feed.items.append(item)
        self.feed.item_map.add(item.id)
        self.feed.unread += 1
        return True
