"""
mixer.py — Round-robin interleave across sources

    A = [a0 a1 a2 a3], B = [b0 b1], C = [c0 c1 c2]
    mix_round_robin(A + B + C, 9) -> a0 b0 c0 a1 b1 c1 a2 c2 a3

Sources keep their internal order. Source order is the registration order
passed in, then first appearance for anything not listed. Articles are
grouped on `key`; the news pipeline groups on feedId so two feeds sharing
a title still get a slot each.
"""

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional


def group_by_source(articles: Iterable[Dict[str, Any]],
                    source_order: Optional[Iterable[str]] = None,
                    key: str = "source") -> "OrderedDict[str, List[Dict[str, Any]]]":
    groups: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
    for source in source_order or ():
        groups.setdefault(source, [])
    for article in articles:
        groups.setdefault(article.get(key, ""), []).append(article)
    return OrderedDict((k, v) for k, v in groups.items() if v)


def mix_round_robin(articles: List[Dict[str, Any]], page_size: int,
                    source_order: Optional[Iterable[str]] = None, key: str = "source") -> List[Dict[str, Any]]:
    if page_size <= 0 or not articles:
        return []

    groups = list(group_by_source(articles, source_order, key).values())
    mixed: List[Dict[str, Any]] = []
    depth = 0
    longest = max(len(g) for g in groups)
    while depth < longest and len(mixed) < page_size:
        for group in groups:
            if depth < len(group):
                mixed.append(group[depth])
                if len(mixed) >= page_size:
                    break
        depth += 1
    return mixed
