"""
Post-processing of model replies.

``clean_markdown`` enforces the plain-text style (models do not always follow
the no-bold/no-heading rule) and ``render`` splits the reply into text, link
and image segments for display clients.
"""

import re
from typing import List, Optional, Tuple

from ..types import Segment

_BOLD_RE = re.compile(r"\*\*(.+?)\*\*", re.DOTALL)
_HEADING_RE = re.compile(r"^#{1,6}\s+(.+)$", re.MULTILINE)

# Priority order inside one alternation: image markdown, link markdown, bare URL.
_SEGMENT_RE = re.compile(
    r"!\[(?P<alt>[^\]]*)\]\((?P<img_url>https?://[^\s)]+)\)"
    r"|\[(?P<text>[^\]]+)\]\((?P<link_url>https?://[^\s)]+)\)"
    r"|(?P<bare_url>https?://[^\s<]+)"
)

_IMAGE_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|bmp|ico)(\?.*)?$", re.IGNORECASE)

IMAGE_LINK_TEXT = frozenset({
    "image",
    "thumbnail",
    "full image",
    "nft",
    "view image",
    "view",
    "picture",
    "photo",
    "🖼️",
    "🖼",
    "view nft",
})

# Sentence punctuation that ends a bare URL rather than belonging to it.
_TRAILING_PUNCTUATION = ".,;:!?'\")"

DEFAULT_IMAGE_ALT = "NFT Image"


def clean_markdown(text: str) -> str:
    """Drop ``**bold**`` markers and ``#`` headings, keeping their text."""

    if not text:
        return ""
    text = _BOLD_RE.sub(r"\1", text)
    return _HEADING_RE.sub(r"\1", text)


def is_image_link_text(text: str) -> bool:
    return text.strip().lower() in IMAGE_LINK_TEXT


def is_image_url(url: str) -> bool:
    return bool(_IMAGE_EXTENSION_RE.search(url))


def _image(url: str, alt: str) -> Segment:
    return Segment(
        type="image",
        url=url,
        alt=alt,
        fallback=Segment(type="link", url=url, text=alt),
    )


def _append_text(segments: List[Segment], text: str) -> None:
    if not text:
        return
    if segments and segments[-1].type == "text":
        segments[-1].text = (segments[-1].text or "") + text
    else:
        segments.append(Segment(type="text", text=text))


def _split_trailing(url: str) -> Tuple[str, str]:
    trimmed = url.rstrip(_TRAILING_PUNCTUATION)
    return trimmed, url[len(trimmed):]


def render(text: Optional[str], *, clean: bool = True) -> List[Segment]:
    """Segment a reply into text, link and image parts, in reading order."""

    content = clean_markdown(text or "") if clean else (text or "")
    segments: List[Segment] = []
    cursor = 0

    for match in _SEGMENT_RE.finditer(content):
        _append_text(segments, content[cursor:match.start()])
        cursor = match.end()

        if match.group("img_url"):
            segments.append(_image(match.group("img_url"), match.group("alt") or DEFAULT_IMAGE_ALT))
        elif match.group("link_url"):
            label = match.group("text")
            url = match.group("link_url")
            if is_image_link_text(label):
                segments.append(_image(url, label))
            else:
                segments.append(Segment(type="link", url=url, text=label))
        else:
            url, trailing = _split_trailing(match.group("bare_url"))
            if is_image_url(url):
                segments.append(_image(url, "Image"))
            else:
                segments.append(Segment(type="link", url=url, text=url))
            _append_text(segments, trailing)

    _append_text(segments, content[cursor:])
    return segments


__all__ = [
    "IMAGE_LINK_TEXT",
    "clean_markdown",
    "is_image_link_text",
    "is_image_url",
    "render",
]
