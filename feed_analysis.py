"""
feed_analysis.py — "Is this feed any good for the dashboard?"
==============================================================
Admin helper behind POST /api/admin/analyze-rss. Reads a parsed feed and
reports structure, categories, frequent words, language, and a weighted
score. Image coverage is measured with the same extractor the news
pipeline uses, so it predicts how many items would actually be shown.

Score weights:
    image coverage  3   (>=80% -> 3, >=50% -> 2, >=20% -> 1)
    item count      2   (>=20 -> 2, >=10 -> 1)
    language        2   (German -> 2, English -> 1)
    categories      1
    title length    1   (average >= 30 chars)
"""

import re
from collections import Counter, OrderedDict
from typing import Any, Dict, List, Optional

from image_extractor import ImageExtractor
from rss_parser import ParsedFeed, as_list, text_of

_WORD_RE = re.compile(r"\b\w{3,}\b")

GERMAN = ("de", "de-de", "de-at", "de-ch", "deutsch")
ENGLISH = ("en", "en-us", "en-gb", "english")


def _category_name(cat: Any) -> str:
    return text_of(cat).strip()


def _verdict(percentage: int) -> str:
    if percentage >= 80:
        return "HIGHLY RECOMMENDED - this feed can be added to the dashboard as is"
    if percentage >= 60:
        return "RECOMMENDED - well suited, with minor limitations"
    if percentage >= 40:
        return "CONDITIONALLY RECOMMENDED - only partly suitable"
    return "NOT RECOMMENDED - not suitable for the dashboard"


def analyze_feed(feed: ParsedFeed, extractor: ImageExtractor,
                 translations: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    translations = translations or {}
    channel, items = feed.channel, feed.items
    item_count = len(items)

    titles: List[str] = []
    desc_lengths: List[int] = []
    words: Counter = Counter()
    categories: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
    has_enclosures = has_categories = False
    with_images = 0

    for item in items:
        title = text_of(item.get("title"))
        description = text_of(item.get("description"))
        if title:
            titles.append(title)
        if description:
            desc_lengths.append(len(description))
        if item.get("enclosure"):
            has_enclosures = True
        if extractor.extract(item, channel):
            with_images += 1

        for cat in as_list(item.get("category")):
            name = _category_name(cat)
            if not name:
                continue
            has_categories = True
            entry = categories.setdefault(name, {"count": 0, "examples": []})
            entry["count"] += 1
            if title and len(entry["examples"]) < 3:
                entry["examples"].append(title)

        words.update(_WORD_RE.findall((description or title).lower()))

    coverage = round(with_images * 100 / item_count) if item_count else 0
    avg_title = round(sum(len(t) for t in titles) / len(titles)) if titles else 0
    avg_desc = round(sum(desc_lengths) / len(desc_lengths)) if desc_lengths else 0
    language = text_of(channel.get("language")).strip() or "unknown"

    common_tags = [
        {"tag": tag, "count": count,
         "examples": [t for t in titles if tag in t.lower()][:3]}
        for tag, count in words.most_common(20)
    ]
    category_mapping = [
        {"category": name, "frequency": data["count"], "examples": data["examples"]}
        for name, data in sorted(categories.items(), key=lambda kv: kv[1]["count"], reverse=True)
    ]
    suggestions = [
        {"originalTag": t["tag"],
         "suggestedTranslation": translations[t["tag"]],
         "confidence": min(95, 60 + (t["count"] / item_count) * 35) if item_count else 60,
         "context": f"Used in {t['count']} out of {item_count} items"}
        for t in common_tags if t["tag"] in translations
    ]

    points, notes = 0, []
    if coverage >= 80:
        points += 3
        notes.append(f"Images available: {coverage}% of items have a usable image")
    elif coverage >= 50:
        points += 2
        notes.append(f"Few images: only {coverage}% of items have a usable image")
    elif coverage >= 20:
        points += 1
        notes.append(f"Very few images: only {coverage}% of items have a usable image, most will be hidden")
    else:
        notes.append(f"No images: {coverage}% of items have a usable image, items will not be displayed")

    if item_count >= 20:
        points += 2
        notes.append(f"Many items: {item_count} in the feed")
    elif item_count >= 10:
        points += 1
        notes.append(f"Few items: only {item_count} in the feed")
    else:
        notes.append(f"Very few items: only {item_count} in the feed")

    if language.lower() in GERMAN:
        points += 2
        notes.append("German language")
    elif language.lower() in ENGLISH:
        points += 1
        notes.append("English language: items are shown untranslated")
    else:
        notes.append(f"Language '{language}' is not suitable for a German dashboard")

    if has_categories:
        points += 1
        notes.append("Categories available")
    else:
        notes.append("No categories (not critical)")

    if avg_title >= 30:
        points += 1
        notes.append(f"Meaningful titles (avg {avg_title} characters)")
    else:
        notes.append(f"Short titles (avg {avg_title} characters)")

    max_points = 9
    percentage = round(points * 100 / max_points)

    return {
        "feedInfo": {
            "title": text_of(channel.get("title")) or "Unknown",
            "description": text_of(channel.get("description")),
            "link": text_of(channel.get("link")),
            "language": language,
            "lastBuildDate": text_of(channel.get("lastBuildDate")),
            "itemCount": item_count,
        },
        "tagAnalysis": {
            "commonTags": common_tags,
            "categoryMapping": category_mapping,
            "languageAnalysis": {
                "detectedLanguages": [language] if language != "unknown" else [],
                "primaryLanguage": language,
            },
            "contentStructure": {
                "hasImages": with_images > 0,
                "hasEnclosures": has_enclosures,
                "hasCategories": has_categories,
                "averageTitleLength": avg_title,
                "averageDescriptionLength": avg_desc,
                "imageCoverage": coverage,
            },
        },
        "translationSuggestions": suggestions,
        "score": {"points": points, "maxPoints": max_points, "percentage": percentage},
        "recommendations": [_verdict(percentage)] + notes,
    }
