"""
image_extractor.py — Find a usable image for one feed item
===========================================================

An ordered chain of candidate strategies; the first candidate that passes
is_valid_image_url() wins. Each strategy is independently testable.

News chain:
    media:content -> enclosure -> <img src> in HTML -> bare image URLs
    -> media:thumbnail -> channel image

Social chain adds Instagram CDN URLs (scontent*.cdninstagram.com) ahead of
the HTML search, since rss.app proxies bury them in the markup.

The validity check is a heuristic: extension OR image-host substring.
It accepts a cdn-hosted HTML page and rejects an extensionless image on an
unlisted host. Host hints are configurable per deployment.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlparse

from rss_parser import as_list, text_of

IMAGE_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)
IMG_TAG_RE = re.compile(r"<img[^>]*?\ssrc=[\"']([^\"']+)[\"']", re.IGNORECASE)
BARE_IMAGE_URL_RE = re.compile(
    r"https?://[^\s<>\"']+\.(?:jpg|jpeg|png|gif|webp|svg)(?:\?[^\s<>\"']*)?",
    re.IGNORECASE,
)
INSTAGRAM_CDN_RE = re.compile(r"https://scontent[\w.-]*\.cdninstagram\.com/[^\"'\s<>]+")

DEFAULT_HOST_HINTS = (
    "imgur.com", "flickr.com", "unsplash.com", "pixabay.com", "pexels.com", "cdn", "static",
)

_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)


def decode_entities(text: str) -> str:
    """Decode exactly the five entities feeds double-escape into descriptions."""
    if not text:
        return ""
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def is_valid_image_url(url: Any, host_hints: Iterable[str] = DEFAULT_HOST_HINTS) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    if IMAGE_EXTENSION_RE.search(parsed.path):
        return True
    host = parsed.netloc.lower()
    return any(hint in host for hint in host_hints)


def _url_attr(node: Any) -> str:
    if isinstance(node, str):
        return node.strip()
    if isinstance(node, dict):
        return str(node.get("@url") or node.get("url") or node.get("@href") or "").strip()
    return ""


def item_html(item: Dict[str, Any]) -> str:
    """Decoded content:encoded if present, otherwise decoded description."""
    content = decode_entities(text_of(item.get("content:encoded")))
    if content:
        return content
    return decode_entities(text_of(item.get("description")))


# ═══════════════════════════════════════════
# STRATEGIES
# ═══════════════════════════════════════════

class ImageCandidate:
    """One place an image might hide. Yields candidates in preference order."""

    name = "candidate"

    def candidates(self, item: Dict[str, Any], channel: Dict[str, Any]) -> Iterable[str]:
        raise NotImplementedError

    def find(self, item: Dict[str, Any], channel: Dict[str, Any],
             host_hints: Iterable[str] = DEFAULT_HOST_HINTS) -> Optional[str]:
        for url in self.candidates(item, channel):
            if is_valid_image_url(url, host_hints):
                return url
        return None


class MediaContentImage(ImageCandidate):
    name = "media:content"

    def candidates(self, item, channel):
        for media in as_list(item.get("media:content")):
            yield _url_attr(media)
        for group in as_list(item.get("media:group")):
            if isinstance(group, dict):
                for media in as_list(group.get("media:content")):
                    yield _url_attr(media)


class EnclosureImage(ImageCandidate):
    name = "enclosure"

    def candidates(self, item, channel):
        for enclosure in as_list(item.get("enclosure")):
            yield _url_attr(enclosure)


class InlineHtmlImage(ImageCandidate):
    name = "img-tag"

    def candidates(self, item, channel):
        html = item_html(item)
        for match in IMG_TAG_RE.finditer(html):
            yield match.group(1)
            # Only the first <img> counts; later ones are usually tracking pixels
            return


class RegexUrlImage(ImageCandidate):
    name = "image-url"

    def candidates(self, item, channel):
        for match in BARE_IMAGE_URL_RE.finditer(item_html(item)):
            yield match.group(0)


class InstagramCdnImage(ImageCandidate):
    name = "instagram-cdn"

    def candidates(self, item, channel):
        for field in ("content:encoded", "description"):
            for match in INSTAGRAM_CDN_RE.finditer(decode_entities(text_of(item.get(field)))):
                yield match.group(0).replace("&amp;", "&")


class MediaThumbnailImage(ImageCandidate):
    name = "media:thumbnail"

    def candidates(self, item, channel):
        for thumb in as_list(item.get("media:thumbnail")):
            yield _url_attr(thumb)
        for group in as_list(item.get("media:group")):
            if isinstance(group, dict):
                for thumb in as_list(group.get("media:thumbnail")):
                    yield _url_attr(thumb)


class ChannelImage(ImageCandidate):
    name = "channel-image"

    def candidates(self, item, channel):
        for image in as_list((channel or {}).get("image")):
            if isinstance(image, dict):
                yield text_of(image.get("url")).strip()


def news_strategies() -> List[ImageCandidate]:
    return [
        MediaContentImage(),
        EnclosureImage(),
        InlineHtmlImage(),
        RegexUrlImage(),
        MediaThumbnailImage(),
        ChannelImage(),
    ]


def social_strategies() -> List[ImageCandidate]:
    return [
        MediaContentImage(),
        EnclosureImage(),
        InstagramCdnImage(),
        InlineHtmlImage(),
        RegexUrlImage(),
        MediaThumbnailImage(),
        ChannelImage(),
    ]


class ImageExtractor:
    def __init__(self, strategies: Optional[Sequence[ImageCandidate]] = None,
                 host_hints: Iterable[str] = DEFAULT_HOST_HINTS):
        self.strategies = list(strategies) if strategies is not None else news_strategies()
        self.host_hints = tuple(host_hints)

    def extract(self, item: Dict[str, Any], channel: Optional[Dict[str, Any]] = None) -> Optional[str]:
        channel = channel or {}
        for strategy in self.strategies:
            url = strategy.find(item, channel, self.host_hints)
            if url:
                return url
        return None
