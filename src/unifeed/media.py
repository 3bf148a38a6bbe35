"""Enclosures and Yahoo Media RSS attachments.

Declared enclosures carry their own MIME type and size. Media RSS
thumbnails usually don't, so their type is guessed from the file extension.
The guessing functions are best-effort and are only used when the document
itself says nothing.
"""

from __future__ import annotations

import mimetypes
import posixpath
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlsplit

from .diagnostics import DiagnosticLog
from .links import iter_children
from .models import Enclosure

if TYPE_CHECKING:
    from lxml.etree import _Element

MEDIA_NS = "http://search.yahoo.com/mrss/"
_MEDIA_CONTENT_TAG = f"{{{MEDIA_NS}}}content"
_MEDIA_THUMBNAIL_TAG = f"{{{MEDIA_NS}}}thumbnail"
_MEDIA_GROUP_TAG = f"{{{MEDIA_NS}}}group"


def _url_extension(url: str) -> str:
    path = urlsplit(url).path
    return posixpath.splitext(path)[1][1:].lower()


def guess_image_type(url: str) -> str:
    """Heuristic ``image/<ext>`` type from the extension of ``url``.

    Returns ``""`` when the URL path has no extension.
    """
    ext = _url_extension(url)
    return f"image/{ext}" if ext else ""


def guess_type(url: str) -> str:
    """Heuristic MIME type for an enclosure that doesn't declare one."""
    if not url:
        return ""
    mime, _ = mimetypes.guess_type(urlsplit(url).path, strict=False)
    return mime or ""


def parse_length(
    value: Optional[str], diagnostics: DiagnosticLog, context: str = ""
) -> int:
    if not value:
        return 0
    try:
        length = int(value.strip())
    except (ValueError, TypeError):
        diagnostics.add(
            "bad-enclosure-length", f"enclosure length {value!r} is not a number", context
        )
        return 0
    if length < 0:
        diagnostics.add(
            "bad-enclosure-length", f"enclosure length {value!r} is negative", context
        )
        return 0
    return length


def make_enclosure(
    url: Optional[str],
    mime_type: Optional[str],
    length: Optional[str],
    diagnostics: DiagnosticLog,
    context: str = "",
) -> Enclosure:
    url = (url or "").strip()
    mime_type = (mime_type or "").strip()
    if not mime_type:
        mime_type = guess_type(url)
        if mime_type:
            diagnostics.add(
                "guessed-enclosure-type",
                f"enclosure {url!r} has no type, guessed {mime_type}",
                context,
            )
    return Enclosure(
        url=url,
        type=mime_type,
        length=parse_length(length, diagnostics, context),
    )


def parse_enclosures(
    item: _Element, diagnostics: DiagnosticLog, context: str = ""
) -> list[Enclosure]:
    enclosures: list[Enclosure] = []
    for enclosure in iter_children(item, "enclosure"):
        enclosures.append(
            make_enclosure(
                enclosure.get("url"),
                enclosure.get("type"),
                enclosure.get("length"),
                diagnostics,
                context,
            )
        )
    return enclosures


def _media_elements(item: _Element) -> tuple[list[_Element], list[_Element]]:
    contents: list[_Element] = []
    thumbnails: list[_Element] = []
    candidates = list(item)
    for group in item.iterchildren(_MEDIA_GROUP_TAG):
        candidates.extend(group)
    for child in candidates:
        if child.tag == _MEDIA_CONTENT_TAG:
            contents.append(child)
            thumbnails.extend(child.iterchildren(_MEDIA_THUMBNAIL_TAG))
        elif child.tag == _MEDIA_THUMBNAIL_TAG:
            thumbnails.append(child)
    return contents, thumbnails


def media_enclosure(
    item: _Element, diagnostics: DiagnosticLog, context: str = ""
) -> Optional[Enclosure]:
    """The one enclosure synthesized from an item's Media RSS elements.

    A thumbnail is preferred: its size is unknown and its type comes from
    ``guess_image_type``. Without a thumbnail the first ``media:content`` is
    used. Returns ``None`` when the item has no Media RSS elements.
    """
    contents, thumbnails = _media_elements(item)
    if thumbnails:
        url = (thumbnails[0].get("url") or "").strip()
        return Enclosure(url=url, type=guess_image_type(url), length=0)
    if contents:
        content = contents[0]
        url = (content.get("url") or "").strip()
        mime_type = (content.get("type") or "").strip()
        if not mime_type and content.get("medium") == "image":
            mime_type = guess_image_type(url)
        return make_enclosure(
            url, mime_type, content.get("fileSize"), diagnostics, context
        )
    return None
