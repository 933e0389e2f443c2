"""Unit tests for the keyword extractor."""

from __future__ import annotations

from crisis_engine.config import KeywordConfig
from crisis_engine.detections import keywords


def test_critical_keyword_fires_critical_tier(keyword_config: KeywordConfig) -> None:
    result = keywords.extract("I have a suicide plan", "en", keyword_config)
    assert [i.label for i in result] == ["critical_keyword"]
    assert result[0].weight == 10
    assert "suicide" in result[0].matches
    assert "suicide plan" in result[0].matches


def test_match_is_case_insensitive(keyword_config: KeywordConfig) -> None:
    result = keywords.extract("Feeling HOPELESS today", "en", keyword_config)
    assert len(result) == 1
    assert result[0].label == "high_keyword"
    assert result[0].weight == 7


def test_substring_match_is_not_tokenized(keyword_config: KeywordConfig) -> None:
    # "trapped" inside "entrapped" still counts
    result = keywords.extract("I feel entrapped", "en", keyword_config)
    assert [i.label for i in result] == ["high_keyword"]


def test_one_indicator_per_tier_across_tiers(keyword_config: KeywordConfig) -> None:
    text = "I can't sleep, I feel hopeless and worthless, I want to die"
    result = keywords.extract(text, "en", keyword_config)
    assert [i.label for i in result] == ["critical_keyword", "high_keyword", "medium_keyword"]
    high = result[1]
    assert set(high.matches) == {"hopeless", "worthless"}


def test_dedicated_language_list_is_used(keyword_config: KeywordConfig) -> None:
    result = keywords.extract("我想死", "zh", keyword_config)
    assert [i.label for i in result] == ["critical_keyword"]


def test_unknown_language_falls_back_to_default(keyword_config: KeywordConfig) -> None:
    result = keywords.extract("i want to die", "fr", keyword_config)
    assert [i.label for i in result] == ["critical_keyword"]


def test_dedicated_language_does_not_match_default_list(keyword_config: KeywordConfig) -> None:
    # zh has its own lists, so English vocabulary is not consulted
    assert keywords.extract("i want to die", "zh", keyword_config) == []


def test_weights_are_configurable() -> None:
    config = KeywordConfig(critical_weight=12)
    result = keywords.extract("suicide", "en", config)
    assert result[0].weight == 12


def test_no_match_returns_empty(keyword_config: KeywordConfig) -> None:
    assert keywords.extract("Had a nice walk in the park", "en", keyword_config) == []


def test_malformed_input_returns_empty(keyword_config: KeywordConfig) -> None:
    assert keywords.extract(None, "en", keyword_config) == []
    assert keywords.extract(42, "en", keyword_config) == []
    assert keywords.extract("   ", "en", keyword_config) == []


def test_missing_language_uses_default(keyword_config: KeywordConfig) -> None:
    result = keywords.extract("hopeless", None, keyword_config)
    assert [i.label for i in result] == ["high_keyword"]


def test_supported_languages() -> None:
    assert {"en", "zh", "bn", "ta", "my", "id"} <= keywords.supported_languages()


def test_typographic_apostrophe_matches(keyword_config: KeywordConfig) -> None:
    result = keywords.extract("I can’t take it anymore", "en", keyword_config)
    assert result[0].label == "critical_keyword"
    assert "can't take it anymore" in result[0].matches
