"""
unifeed

Normalizes RSS 2.0 and Atom 1.0 documents into one format-agnostic model.

The caller fetches the bytes; unifeed detects the format, maps the fields,
parses dates, resolves item identities (dropping repeats), unifies
enclosures and Media RSS attachments, and works out when the feed should be
fetched again.

Example
-------
from unifeed import parse

feed = parse(raw_bytes)
for item in feed.items:
    print(item.date if item.date_valid else "-", item.title, item.link)
"""
from .exceptions import (
    MalformedDocument,
    MissingChannel,
    MissingFeedRoot,
    ParseError,
    UnrecognizedFormat,
)
from .main import FeedFormat, detect_format, parse
from .models import ZERO_TIME, Diagnostic, Enclosure, Feed, Image, Item
from .refresh import DEFAULT_REFRESH_INTERVAL

__all__ = [
    "DEFAULT_REFRESH_INTERVAL",
    "Diagnostic",
    "Enclosure",
    "Feed",
    "FeedFormat",
    "Image",
    "Item",
    "MalformedDocument",
    "MissingChannel",
    "MissingFeedRoot",
    "ParseError",
    "UnrecognizedFormat",
    "ZERO_TIME",
    "detect_format",
    "parse",
]
