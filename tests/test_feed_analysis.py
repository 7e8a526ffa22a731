"""
tests/test_feed_analysis.py — Admin feed report
"""

from config import DashboardConfig
from conftest import rss_doc, rss_item
from feed_analysis import analyze_feed
from image_extractor import ImageExtractor
from rss_parser import parse_feed_xml


def campaign_feed(count=3, language="de"):
    items = [
        rss_item(title=f"Neue Kampagne fuer eine grosse Marke, Folge {i}",
                 image=f"https://img.example.com/c{i}.jpg",
                 description="campaign launch for brand",
                 extra="<category>Agenturen</category>")
        for i in range(count)
    ]
    return parse_feed_xml(rss_doc("Kampagnen", items, f"<language>{language}</language>"))


def test_translations_come_from_config():
    config = DashboardConfig()
    report = analyze_feed(campaign_feed(), ImageExtractor(host_hints=config.image_host_hints),
                          config.tag_translations)
    suggested = {s["originalTag"]: s["suggestedTranslation"] for s in report["translationSuggestions"]}
    assert suggested == {"campaign": "Kampagne", "brand": "Marke"}


def test_custom_translation_table():
    report = analyze_feed(campaign_feed(), ImageExtractor(), {"launch": "Start"})
    assert [s["suggestedTranslation"] for s in report["translationSuggestions"]] == ["Start"]


def test_no_table_means_no_suggestions():
    assert analyze_feed(campaign_feed(), ImageExtractor())["translationSuggestions"] == []


def test_score_for_a_small_german_feed_with_images_and_categories():
    report = analyze_feed(campaign_feed(), ImageExtractor())
    # images 3 + items 0 + German 2 + categories 1 + long titles 1
    assert report["score"] == {"points": 7, "maxPoints": 9, "percentage": 78}
    assert report["recommendations"][0].startswith("RECOMMENDED")
    assert report["tagAnalysis"]["categoryMapping"][0]["category"] == "Agenturen"
    assert report["tagAnalysis"]["categoryMapping"][0]["frequency"] == 3
