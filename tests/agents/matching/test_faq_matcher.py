import pytest

from agents.matching import text_similarity as ts
from agents.matching.faq_matcher import FAQMatcher, MatchCandidate, filter_relevant_matches
from agents.tools.builtin.faq import FAQTool
from tests.conftest import DummyLLM

HOTEL_FAQS = [
    {"question": "What time is check-in?", "answer": "Check-in starts at 3 PM.", "category": "stay"},
    {"question": "What time is check-out?", "answer": "Check-out is at 11 AM.", "category": "stay"},
    {"question": "Do you have free parking?", "answer": "Yes, parking is free for guests."},
]


def test_check_in_beats_check_out():
    result = FAQMatcher().match("What time is check-in?", HOTEL_FAQS)

    assert result.success is True
    assert result.matching_method == "enhanced_text"
    assert result.fallback_used is True
    assert result.matched_faq.answer == "Check-in starts at 3 PM."
    assert all(m.question != "What time is check-out?" for m in result.all_matches)


def test_negation_penalty_lowers_antonym_score():
    same = ts.enhanced_similarity("what time is check-in", "what time is check-in")
    opposite = ts.enhanced_similarity("what time is check-in", "what time is check-out")
    assert same == pytest.approx(1.0)
    assert opposite < same - 0.3


def test_below_threshold_yields_no_match():
    result = FAQMatcher().match(
        "How do I reset my password?",
        [{"question": "Do you have free parking?", "answer": "Yes."}],
        {"threshold": 0.6},
    )

    assert result.matched_faq is None
    assert result.success is False
    assert result.all_matches == []


def test_explicit_zero_threshold_is_respected():
    faqs = [{"question": "Do you have free parking?", "answer": "Yes."}]

    zero = FAQMatcher(default_threshold=0.9).match("How do I reset my password?", faqs, {"threshold": 0})
    unset = FAQMatcher(default_threshold=0.9).match("How do I reset my password?", faqs, {})

    assert zero.debug["threshold_used"] == 0.0
    assert zero.matched_faq is not None
    assert unset.debug["threshold_used"] == 0.9
    assert unset.matched_faq is None


def test_semantic_stage_used_when_agent_key_present():
    embedder = DummyLLM(
        embeddings={
            "When can I arrive?": [1.0, 0.0, 0.1],
            "What time is check-in?": [0.9, 0.1, 0.1],
            "What time is check-out?": [0.0, 1.0, 0.0],
            "Do you have free parking?": [0.0, 0.0, 1.0],
        }
    )
    result = FAQMatcher(embedder).match(
        "When can I arrive?", HOTEL_FAQS, {"_agent_api_key": {"key": "sk-1"}, "embedding_model": "emb-small"}
    )

    assert result.matching_method == "semantic"
    assert result.fallback_used is False
    assert result.matched_faq.question == "What time is check-in?"
    assert result.matched_faq.method == "semantic"
    assert embedder.embed_calls[0] == {"text": "When can I arrive?", "model": "emb-small", "api_key": "sk-1"}


def test_embedding_failure_falls_back_to_lexical():
    embedder = DummyLLM(embeddings={})
    result = FAQMatcher(embedder).match("What time is check-in?", HOTEL_FAQS, {"_agent_api_key": "sk-1"})

    assert result.matching_method == "enhanced_text"
    assert result.matched_faq.question == "What time is check-in?"


def test_semantic_skipped_without_agent_key():
    embedder = DummyLLM(embeddings={"x": [1.0]})
    FAQMatcher(embedder).match("What time is check-in?", HOTEL_FAQS, {})
    assert embedder.embed_calls == []


def test_configured_antonyms_override_defaults():
    faqs = [{"question": "How do I enable alerts", "answer": "on"}, {"question": "How do I disable alerts", "answer": "off"}]

    default = FAQMatcher().match("How do I enable alerts", faqs, {"threshold": 0.1})
    no_antonyms = FAQMatcher().match("How do I enable alerts", faqs, {"threshold": 0.1, "antonym_pairs": []})

    scores = {m.question: m.confidence for m in default.all_matches}
    relaxed = {m.question: m.confidence for m in no_antonyms.all_matches}
    assert default.matched_faq.answer == "on"
    assert relaxed.get("How do I disable alerts", 0) >= scores.get("How do I disable alerts", 0)


def test_filter_relevant_matches_caps_ambiguous_results():
    matches = [MatchCandidate(f"q{i}", "a", "general", 0.9 - i * 0.01, "enhanced_text") for i in range(5)]
    assert [m.question for m in filter_relevant_matches(matches, 0.3)] == ["q0", "q1", "q2"]


def test_filter_relevant_matches_drops_far_below_best():
    matches = [
        MatchCandidate("best", "a", "general", 0.95, "semantic"),
        MatchCandidate("weak", "a", "general", 0.5, "semantic"),
    ]
    assert [m.question for m in filter_relevant_matches(matches, 0.3)] == ["best"]


def test_faq_tool_without_faqs_reports_error():
    result = FAQTool().execute({"question": "anything"}, {})
    assert result == {
        "question": "anything",
        "matched_faq": None,
        "success": False,
        "error": "No FAQ data configured",
    }


def test_faq_tool_returns_serialisable_match():
    result = FAQTool().execute({"question": "What time is check-in?"}, {"faqs": HOTEL_FAQS, "threshold": 0.3})

    assert result["matched_faq"]["answer"] == "Check-in starts at 3 PM."
    assert result["detected_language"] == "en"
    assert "error" not in result
    assert result["debug"]["threshold_used"] == 0.3


def test_detect_language_and_abbreviations():
    assert ts.detect_language("hola, donde esta el hotel? gracias") == "es"
    assert ts.detect_language("where is the hotel") == "en"
    assert ts.normalize("Whats ur pwd?") == "what is your password"
