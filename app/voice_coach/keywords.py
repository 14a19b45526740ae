from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable

from .models import KeywordAnalysis, KeywordMatch, KeywordStats
from .vocabulary import KEYWORD_VOCABULARIES


@lru_cache(maxsize=None)
def _term_pattern(term: str) -> re.Pattern:
    # \b is Unicode-aware for str patterns, so accented edges ("interés") work.
    return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)


def detect_keywords(transcript: str) -> KeywordAnalysis:
    text = transcript or ""
    matches: list[KeywordMatch] = []
    if text.strip():
        for category, terms in KEYWORD_VOCABULARIES.items():
            for term in terms:
                count = len(_term_pattern(term).findall(text))
                if count:
                    matches.append(KeywordMatch(word=term, category=category, count=count))

    per_category = {category: 0 for category in KEYWORD_VOCABULARIES}
    for match in matches:
        per_category[match.category] += match.count

    stats = KeywordStats(
        total_keywords=sum(per_category.values()),
        banking_count=per_category["banking"],
        emotional_count=per_category["emotional"],
        protocol_count=per_category["protocol"],
    )
    return KeywordAnalysis(
        keywords=[match.word for match in matches],
        matches=matches,
        stats=stats,
    )


def get_top_keywords(matches: Iterable[KeywordMatch], n: int = 10) -> list[KeywordMatch]:
    # sorted() is stable: equal counts keep their detection order.
    ranked = sorted(matches, key=lambda match: match.count, reverse=True)
    return ranked[: max(n, 0)]


def highlight_keywords(text: str, keywords: Iterable[str]) -> list[tuple[str, bool]]:
    """Split ``text`` into ``(fragment, is_keyword)`` pairs for display.

    Uses the same case-insensitive whole-word matching as detection. Longer
    terms win when two keywords could match at the same position.
    """
    terms = sorted({term for term in keywords if term}, key=len, reverse=True)
    if not text or not terms:
        return [(text, False)] if text else []

    pattern = re.compile(
        r"\b(" + "|".join(re.escape(term) for term in terms) + r")\b",
        re.IGNORECASE,
    )
    fragments: list[tuple[str, bool]] = []
    cursor = 0
    for found in pattern.finditer(text):
        if found.start() > cursor:
            fragments.append((text[cursor : found.start()], False))
        fragments.append((found.group(0), True))
        cursor = found.end()
    if cursor < len(text):
        fragments.append((text[cursor:], False))
    return fragments
