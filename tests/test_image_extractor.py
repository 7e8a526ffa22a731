"""
tests/test_image_extractor.py — Image candidate strategies
===========================================================
Each strategy on its own, the chain order, and the validity heuristic.
Items are built from real XML through the parser so attribute and
namespace handling is exercised too.
"""

import pytest

from conftest import rss_doc, rss_item
from image_extractor import (
    ChannelImage, EnclosureImage, ImageExtractor, InlineHtmlImage, InstagramCdnImage,
    MediaContentImage, MediaThumbnailImage, RegexUrlImage, decode_entities,
    is_valid_image_url, news_strategies, social_strategies,
)
from rss_parser import parse_feed_xml


def parse_one(item_xml, channel_extra=""):
    feed = parse_feed_xml(rss_doc("Test", [item_xml], channel_extra))
    return feed.items[0], feed.channel


# ═══════════════════════════════════════════
# VALIDITY HEURISTIC
# ═══════════════════════════════════════════

@pytest.mark.parametrize("url,expected", [
    ("https://example.com/a.jpg", True),
    ("https://example.com/a.JPEG", True),
    ("http://example.com/path/pic.webp", True),
    ("https://example.com/logo.svg", True),
    ("https://cdn.example.com/abc123", True),
    ("https://static.example.com/asset", True),
    ("https://images.unsplash.com/photo-1", True),
    ("https://example.com/article", False),
    ("https://example.com/a.jpg.html", False),
    ("ftp://example.com/a.jpg", False),
    ("/images/a.jpg", False),
    ("", False),
    (None, False),
])
def test_is_valid_image_url(url, expected):
    assert is_valid_image_url(url) is expected


def test_host_hints_are_configurable():
    assert not is_valid_image_url("https://media.example.com/abc", host_hints=())
    assert is_valid_image_url("https://media.example.com/abc", host_hints=("media.example.com",))


def test_decode_entities_only_decodes_the_five():
    assert decode_entities("&lt;b&gt; &amp; &quot;x&quot; &#39;y&#39; &nbsp;") == "<b> & \"x\" 'y' &nbsp;"


# ═══════════════════════════════════════════
# STRATEGIES
# ═══════════════════════════════════════════

def test_media_content_round_trip():
    """A media:content URL in the XML is exactly what comes out."""
    url = "https://img.example.com/photos/story-1.jpg"
    item, channel = parse_one(rss_item(image=url))
    assert ImageExtractor().extract(item, channel) == url


def test_media_content_skips_invalid_candidates():
    extra = ('<media:content url="https://example.com/video-page"/>'
             '<media:content url="https://example.com/second.png"/>')
    item, channel = parse_one(rss_item(extra=extra))
    assert MediaContentImage().find(item, channel) == "https://example.com/second.png"


def test_media_group_content():
    extra = '<media:group><media:content url="https://example.com/grouped.jpg"/></media:group>'
    item, channel = parse_one(rss_item(extra=extra))
    assert MediaContentImage().find(item, channel) == "https://example.com/grouped.jpg"


def test_enclosure_image():
    extra = '<enclosure url="https://example.com/enc.jpeg" type="image/jpeg" length="1"/>'
    item, channel = parse_one(rss_item(extra=extra))
    assert EnclosureImage().find(item, channel) == "https://example.com/enc.jpeg"


def test_enclosure_as_plain_string():
    assert EnclosureImage().find({"enclosure": "https://example.com/plain.png"}, {}) == \
        "https://example.com/plain.png"


def test_inline_img_in_escaped_description():
    description = "&lt;p&gt;Intro&lt;/p&gt;&lt;img class=&quot;x&quot; src=&quot;https://example.com/inline.png&quot;&gt;"
    item, channel = parse_one(rss_item(description=description))
    assert InlineHtmlImage().find(item, channel) == "https://example.com/inline.png"


def test_inline_img_prefers_content_encoded():
    extra = ('<content:encoded><![CDATA[<div><img src="https://example.com/from-content.jpg"></div>]]>'
             '</content:encoded>')
    description = "&lt;img src=&quot;https://example.com/from-description.jpg&quot;&gt;"
    item, channel = parse_one(rss_item(description=description, extra=extra))
    assert InlineHtmlImage().find(item, channel) == "https://example.com/from-content.jpg"


def test_bare_image_url_in_text():
    item, channel = parse_one(rss_item(description="See https://example.com/shot.gif?w=400 for more"))
    assert RegexUrlImage().find(item, channel) == "https://example.com/shot.gif?w=400"


def test_media_thumbnail():
    extra = '<media:thumbnail url="https://example.com/thumb.jpg"/>'
    item, channel = parse_one(rss_item(extra=extra))
    assert MediaThumbnailImage().find(item, channel) == "https://example.com/thumb.jpg"


def test_channel_image_is_last_resort():
    channel_extra = "<image><url>https://example.com/channel-logo.png</url></image>"
    item, channel = parse_one(rss_item(description="no pictures here"), channel_extra)
    assert ChannelImage().find(item, channel) == "https://example.com/channel-logo.png"
    assert ImageExtractor().extract(item, channel) == "https://example.com/channel-logo.png"


def test_no_image_anywhere():
    item, channel = parse_one(rss_item(description="just words"))
    assert ImageExtractor().extract(item, channel) is None


# ═══════════════════════════════════════════
# CHAIN ORDER
# ═══════════════════════════════════════════

def test_media_content_wins_over_enclosure_and_html():
    extra = ('<media:content url="https://example.com/media.jpg"/>'
             '<enclosure url="https://example.com/enclosure.jpg" type="image/jpeg"/>')
    description = "&lt;img src=&quot;https://example.com/html.jpg&quot;&gt;"
    item, channel = parse_one(rss_item(description=description, extra=extra))
    assert ImageExtractor(news_strategies()).extract(item, channel) == "https://example.com/media.jpg"


def test_social_chain_finds_instagram_cdn_url():
    cdn = "https://scontent-fra5-1.cdninstagram.com/v/t51.2885-15/123_n?stp=dst-jpg_e35"
    item, channel = parse_one(rss_item(description=f"Post text {cdn} more"))
    assert InstagramCdnImage().find(item, channel) == cdn
    assert ImageExtractor(social_strategies()).extract(item, channel) == cdn
    assert ImageExtractor(news_strategies()).extract(item, channel) is None
