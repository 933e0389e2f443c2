"""Keyword extractor: tiered crisis vocabulary matched against free text.

Matching is case-insensitive substring containment, not tokenized, so
"suicide plan" also fires "suicide". Every tier is scanned; each tier with at
least one hit yields a single indicator carrying that tier's weight and the
keywords that matched.

A language with no list for a tier falls back to the default language's list
for that tier.
"""

from __future__ import annotations

import logging

from crisis_engine.config import KeywordConfig
from crisis_engine.detections.base import RiskIndicator

logger = logging.getLogger(__name__)

Tier = str  # "critical" | "high" | "medium"

TIERS: tuple[Tier, ...] = ("critical", "high", "medium")

KEYWORDS: dict[Tier, dict[str, list[str]]] = {
    "critical": {
        "en": [
            "suicide", "kill myself", "end my life", "want to die", "hurt myself",
            "self harm", "not worth living", "better off dead", "end it all",
            "suicide plan", "goodbye forever", "can't take it anymore",
        ],
        "zh": [
            "自杀", "自殺", "我想死", "结束生命", "伤害自己", "不想活", "死了算了",
            "自残", "生不如死", "一了百了",
        ],
        "bn": [
            "আত্মহত্যা", "মরে যেতে চাই", "নিজেকে মেরে ফেলব", "বাঁচতে চাই না",
            "আর পারছি না", "শেষ করে দেব",
        ],
        "ta": ["தற்கொலை", "இறக்க விரும்புகிறேன்", "உயிர் வாழ விரும்பவில்லை"],
        "my": ["မိမိကိုယ်ကို သတ်", "သေချင်", "မနေချင်တော့"],
        "id": ["bunuh diri", "ingin mati", "tidak ingin hidup", "mengakhiri hidup"],
    },
    "high": {
        "en": [
            "hopeless", "no point", "give up", "can't go on", "worthless",
            "everyone better without me", "no way out", "can't handle",
            "unbearable pain", "desperate", "trapped",
        ],
        "zh": [
            "绝望", "没有希望", "放弃", "没有意义", "撑不下去", "无法忍受",
            "走投无路", "痛不欲生",
        ],
        "bn": [
            "নিরাশ", "আশা নেই", "হার মেনে নিয়েছি", "কোন উপায় নেই",
            "সহ্য করতে পারছি না",
        ],
        "ta": ["நம்பிக்கையற்ற", "கைவிட", "பயனற்ற", "வழியில்லை"],
        "my": ["မျှော်လင့်ချက်မရှိ", "စွန့်လွှတ်", "မရရှိနိုင်"],
        "id": ["putus asa", "menyerah", "tidak ada jalan", "tidak berguna"],
    },
    "medium": {
        "en": [
            "very depressed", "extremely sad", "panic attacks", "can't sleep",
            "losing control", "overwhelming anxiety", "feel empty",
            "nothing matters", "isolating myself",
        ],
        "zh": [
            "非常抑郁", "极度悲伤", "恐慌发作", "睡不着", "失去控制",
            "压倒性焦虑", "感到空虚",
        ],
        "bn": [
            "খুব বিষণ্ন", "অতিরিক্ত দুঃখ", "আতঙ্কের আক্রমণ", "ঘুম আসে না",
            "নিয়ন্ত্রণ হারাচ্ছি",
        ],
        "ta": ["மிகவும் சோகம்", "அதிக கவலை", "தூக்கம் வரவில்லை"],
        "my": ["အလွန်ဝမ်းနည်း", "အလွန်စိုးရိမ်", "အိပ်မရ"],
        "id": ["sangat sedih", "sangat cemas", "tidak bisa tidur", "panik"],
    },
}


def supported_languages() -> set[str]:
    return {lang for tier in KEYWORDS.values() for lang in tier}


def keywords_for(tier: Tier, language: str, default_language: str = "en") -> list[str]:
    lists = KEYWORDS[tier]
    return lists.get(language) or lists.get(default_language, [])


_APOSTROPHES = str.maketrans({"\u2019": "'", "\u2018": "'", "\u02bc": "'"})


def _normalize(text: str) -> str:
    # Mobile keyboards type curly apostrophes.
    return text.translate(_APOSTROPHES).casefold()


def _weight(tier: Tier, config: KeywordConfig) -> int:
    return {
        "critical": config.critical_weight,
        "high": config.high_weight,
        "medium": config.medium_weight,
    }[tier]


def extract(text: object, language: object, config: KeywordConfig) -> list[RiskIndicator]:
    """Return one RiskIndicator per keyword tier with at least one hit."""
    if not isinstance(text, str) or not text.strip():
        return []
    if not isinstance(language, str) or not language:
        language = config.default_language

    lowered = _normalize(text)
    indicators: list[RiskIndicator] = []
    for tier in TIERS:
        hits = tuple(
            kw for kw in keywords_for(tier, language.lower(), config.default_language)
            if _normalize(kw) in lowered
        )
        if hits:
            indicators.append(
                RiskIndicator(
                    source="keyword",
                    weight=_weight(tier, config),
                    label=f"{tier}_keyword",
                    matches=hits,
                )
            )

    if indicators:
        logger.debug(
            "KEYWORD_TIERS_MATCHED",
            extra={"language": language, "tiers": [i.label for i in indicators]},
        )
    return indicators
