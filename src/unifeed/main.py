from __future__ import annotations

import codecs
import datetime
import enum
import logging
import re
from typing import TYPE_CHECKING, Optional

from lxml import etree

from .atom import ATOM_NAMESPACES, parse_atom
from .diagnostics import DiagnosticLog
from .exceptions import MalformedDocument, MissingFeedRoot, UnrecognizedFormat
from .links import local_name
from .models import Diagnostic, Feed
from .refresh import DEFAULT_REFRESH_INTERVAL
from .rss import parse_rss

if TYPE_CHECKING:
    from lxml.etree import _Element

logger = logging.getLogger(__name__)


class FeedFormat(enum.Enum):
    RSS2_0 = "rss"
    ATOM = "atom"


_RE_XML_DECL_ENCODING = re.compile(
    r'(<\?xml[^>]*encoding=["\'])([^"\']+)(["\'][^>]*\?>)', re.IGNORECASE
)
_RE_XML_DECL_ENCODING_BYTES = re.compile(
    rb'(<\?xml[^>]*encoding=["\'])([^"\']+)(["\'][^>]*\?>)', re.IGNORECASE
)

_UTF8_NAMES = frozenset({"utf-8", "utf8", "us-ascii", "ascii"})


def _detect_xml_encoding(content: bytes) -> str:
    """Detect encoding from XML declaration or BOM.

    Returns the detected encoding or 'utf-8' as default.
    """
    # Check for BOM (Byte Order Mark)
    if content.startswith((b"\xff\xfe", b"\xfe\xff")):
        return "utf-16"
    elif content.startswith(b"\xef\xbb\xbf"):
        return "utf-8"

    encoding_match = _RE_XML_DECL_ENCODING_BYTES.search(content[:2000])
    if encoding_match:
        return encoding_match.group(2).decode("ascii", errors="replace").strip().lower()

    return "utf-8"


def _ensure_utf8_xml_declaration(content: str) -> str:
    """Ensure the XML declaration's encoding matches the UTF-8 bytes we emit."""
    if not content.lstrip().startswith("<?xml"):
        return content
    return _RE_XML_DECL_ENCODING.sub(r"\g<1>utf-8\g<3>", content, count=1)


def _transcode_to_utf8(content: bytes, encoding: str) -> bytes:
    try:
        text = codecs.decode(content, encoding)
    except LookupError:
        # Unknown codec name; lxml gets the raw bytes and its own chance.
        logger.debug("unknown declared encoding %r, leaving bytes as-is", encoding)
        return content
    except UnicodeDecodeError:
        logger.debug("bytes don't match declared encoding %r, replacing", encoding)
        text = codecs.decode(content, encoding, errors="replace")
    return _ensure_utf8_xml_declaration(text.lstrip("\ufeff").lstrip()).encode("utf-8")


def normalize_charset(xml_content: str | bytes) -> bytes:
    """Turn a feed document into UTF-8 bytes ready for the XML parser.

    Raises:
        MalformedDocument: If there is no content at all
    """
    if isinstance(xml_content, str):
        xml_content = _ensure_utf8_xml_declaration(xml_content.lstrip("\ufeff").lstrip())
        xml_content = xml_content.encode("utf-8", errors="replace")

    encoding = _detect_xml_encoding(xml_content)
    if encoding.startswith("utf-16") and b"\x00" not in xml_content[:200]:
        # Labelled UTF-16 but actually single-byte; trust the bytes.
        xml_content = _RE_XML_DECL_ENCODING_BYTES.sub(
            rb"\g<1>utf-8\g<3>", xml_content, count=1
        )
        encoding = "utf-8"

    if encoding.startswith(("utf-16", "utf-32")):
        content = _transcode_to_utf8(xml_content, encoding)
    else:
        content = xml_content.lstrip()
        if content.startswith(b"\xef\xbb\xbf"):
            content = content[3:].lstrip()
        if encoding not in _UTF8_NAMES:
            content = _transcode_to_utf8(content, encoding)

    if not content.strip():
        raise MalformedDocument("Empty content")
    return content


_STRICT_XML_PARSER = etree.XMLParser(
    ns_clean=True,
    recover=False,
    collect_ids=False,
    resolve_entities=False,
    no_network=True,
)


def _parse_xml_root(xml_content: bytes) -> _Element:
    try:
        root = etree.fromstring(xml_content, parser=_STRICT_XML_PARSER)
    except etree.XMLSyntaxError as e:
        raise MalformedDocument(f"Failed to parse XML content: {e}") from e

    if root is None:
        raise MalformedDocument("Failed to parse XML: no root element")
    return root


_NON_FEED_MESSAGES: dict[str, str] = {
    "html": "Received HTML page instead of feed",
    "body": "Received HTML fragment instead of feed",
    "opml": "Received OPML document instead of feed (OPML is an outline format, not a feed)",
    "urlset": "Received XML sitemap instead of feed (sitemap is for search engines, not a feed)",
    "sitemapindex": "Received XML sitemap instead of feed (sitemap is for search engines, not a feed)",
    "rdf": "RSS 1.0 (RDF) feeds are not supported",
}


def _detect_feed_structure(root: _Element) -> tuple[FeedFormat, str]:
    """Classify a document by its root element.

    Returns the format and the root namespace, ``""`` for RSS.
    """
    tag = root.tag
    if not isinstance(tag, str):
        raise UnrecognizedFormat("Document has no element root")

    namespace = tag[1:].split("}", 1)[0] if "}" in tag else None
    root_tag_local = local_name(tag)

    if namespace is None and root_tag_local.lower() == "rss":
        return FeedFormat.RSS2_0, ""

    if namespace in ATOM_NAMESPACES:
        if root_tag_local != "feed":
            raise MissingFeedRoot(
                f"Atom document has <{root_tag_local}> at the root instead of <feed>"
            )
        return FeedFormat.ATOM, namespace

    if root_tag_local == "feed":
        raise UnrecognizedFormat(f"Unknown Atom namespace in feed type: {tag}")

    base_msg = _NON_FEED_MESSAGES.get(root_tag_local.lower())
    if base_msg is not None:
        raise UnrecognizedFormat(base_msg)
    raise UnrecognizedFormat(f"Unknown feed type: {tag}")


def detect_format(source: str | bytes) -> FeedFormat:
    """Tell whether ``source`` is an RSS 2.0 or an Atom document.

    Raises:
        MalformedDocument: If the content is not well-formed XML
        MissingFeedRoot: If an Atom document is not rooted at <feed>
        UnrecognizedFormat: If the root element is neither format
    """
    root = _parse_xml_root(normalize_charset(source))
    return _detect_feed_structure(root)[0]


def parse(
    source: str | bytes,
    *,
    now: Optional[datetime.datetime] = None,
    default_refresh_interval: datetime.timedelta = DEFAULT_REFRESH_INTERVAL,
    diagnostics: Optional[list[Diagnostic]] = None,
    include_content: bool = True,
    include_tags: bool = True,
    include_enclosures: bool = True,
) -> Feed:
    """Parse an RSS 2.0 or Atom 1.0 document into a normalized ``Feed``.

    Args:
        source: Feed document as bytes in any declared encoding, or as str
        now: Reference time for the refresh schedule, defaults to the current UTC time
        default_refresh_interval: Refresh delay used when the feed gives no ttl
        diagnostics: List that receives a ``Diagnostic`` per recovered item-level problem
        include_content: Include per-item content bodies
        include_tags: Include feed and item categories
        include_enclosures: Include enclosures and Media RSS attachments

    Returns:
        The parsed ``Feed``

    Raises:
        MalformedDocument: If the content is empty or not well-formed XML
        MissingChannel: If an RSS document has no <channel>
        MissingFeedRoot: If an Atom document is not rooted at <feed>
        UnrecognizedFormat: If the document is neither RSS 2.0 nor Atom
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    log = DiagnosticLog(diagnostics)

    root = _parse_xml_root(normalize_charset(source))
    feed_type, namespace = _detect_feed_structure(root)

    if feed_type is FeedFormat.RSS2_0:
        return parse_rss(
            root,
            log,
            now=now,
            default_refresh_interval=default_refresh_interval,
            include_content=include_content,
            include_tags=include_tags,
            include_enclosures=include_enclosures,
        )

    return parse_atom(
        root,
        namespace,
        log,
        now=now,
        default_refresh_interval=default_refresh_interval,
        include_content=include_content,
        include_tags=include_tags,
        include_enclosures=include_enclosures,
    )
