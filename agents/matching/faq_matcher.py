"""
Hybrid FAQ matcher: embeddings first, weighted lexical scoring as fallback, plain Jaccard as last resort.

Every stage either yields ranked candidates or hands over to the next one; a total failure yields
``matched_faq=None`` rather than an exception.
"""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from agents.llm.base_llm import BaseLLM
from agents.matching import text_similarity as ts
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.3
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
MAX_RETURNED_MATCHES = 5

SEMANTIC = "semantic"
ENHANCED_TEXT = "enhanced_text"
BASIC_TEXT = "basic_text"


@dataclass
class FAQEntry:
    question: str
    answer: str
    category: str = "general"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FAQEntry":
        return cls(
            question=str(data.get("question", "")),
            answer=str(data.get("answer", "")),
            category=data.get("category") or "general",
        )


@dataclass
class MatchCandidate:
    question: str
    answer: str
    category: str
    confidence: float
    method: str


@dataclass
class FAQMatchResult:
    question: str
    detected_language: str
    matched_faq: Optional[MatchCandidate]
    all_matches: List[MatchCandidate] = field(default_factory=list)
    success: bool = False
    matching_method: str = ENHANCED_TEXT
    fallback_used: bool = False
    execution_time_ms: int = 0
    error: Optional[str] = None
    debug: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.error is None:
            data.pop("error")
        return data


def filter_relevant_matches(matches: List[MatchCandidate], threshold: float = DEFAULT_THRESHOLD) -> List[MatchCandidate]:
    """Absolute threshold, then a bar relative to the best score, then an ambiguity cut to three."""
    if not matches:
        return []

    ranked = sorted(matches, key=lambda m: m.confidence, reverse=True)
    above = [m for m in ranked if m.confidence >= threshold]
    if not above:
        return []

    best = above[0].confidence
    ratio = 0.8 if above[0].method == SEMANTIC else 0.7
    min_score = max(threshold, best * ratio)
    if best < 0.5:
        min_score = max(min_score, best * 0.85)

    relevant = [m for m in above if m.confidence >= min_score]
    if len(relevant) > 3 and relevant[0].confidence - relevant[2].confidence < 0.1:
        return relevant[:3]
    return relevant


class FAQMatcher:
    def __init__(self, embedder: BaseLLM | None = None, *, default_threshold: float = DEFAULT_THRESHOLD):
        self.embedder = embedder
        self.default_threshold = default_threshold

    def match(
        self,
        question: str,
        faq_entries: Sequence[FAQEntry | Dict[str, Any]],
        config: Dict[str, Any] | None = None,
        language: str = "auto",
    ) -> FAQMatchResult:
        start = time.perf_counter()
        config = config or {}
        entries = [e if isinstance(e, FAQEntry) else FAQEntry.from_dict(e) for e in faq_entries]
        detected = ts.detect_language(question) if language in (None, "", "auto") else language
        configured = config.get("threshold")
        threshold = float(self.default_threshold if configured is None else configured)

        def finish(candidates: List[MatchCandidate], method: str, total: int, **extra: Any) -> FAQMatchResult:
            best = candidates[0] if candidates else None
            result = FAQMatchResult(
                question=question,
                detected_language=detected,
                matched_faq=best,
                all_matches=candidates[:MAX_RETURNED_MATCHES],
                success=best is not None,
                matching_method=method,
                fallback_used=method != SEMANTIC,
                execution_time_ms=int((time.perf_counter() - start) * 1000),
                debug={"total_matches": total, "matches_after_filtering": len(candidates), "threshold_used": threshold},
                **extra,
            )
            logger.info(
                "faq_matched",
                method=method,
                language=detected,
                matched=best.question if best else None,
                confidence=round(best.confidence, 3) if best else None,
            )
            return result

        semantic = self._semantic_candidates(question, entries, config)
        if semantic:
            relevant = filter_relevant_matches(semantic, threshold)
            if relevant:
                return finish(relevant, SEMANTIC, len(semantic))

        try:
            antonyms = ts.as_pairs(config.get("antonym_pairs"))
            clusters = ts.as_clusters(config.get("topic_clusters"))
            lexical = [
                self._candidate(
                    entry,
                    ts.enhanced_similarity(
                        question,
                        entry.question,
                        detected,
                        antonym_pairs=ts.ANTONYM_PAIRS if antonyms is None else antonyms,
                        topic_clusters=ts.TOPIC_CLUSTERS if clusters is None else clusters,
                    ),
                    ENHANCED_TEXT,
                )
                for entry in entries
            ]
        except Exception as exc:
            logger.warning("faq_lexical_matching_failed", error=str(exc), exc_info=True)
            basic = [self._candidate(e, ts.basic_similarity(question, e.question), BASIC_TEXT) for e in entries]
            return finish(filter_relevant_matches(basic, threshold), BASIC_TEXT, len(basic), error=str(exc))

        return finish(filter_relevant_matches(lexical, threshold), ENHANCED_TEXT, len(lexical))

    def _semantic_candidates(
        self, question: str, entries: List[FAQEntry], config: Dict[str, Any]
    ) -> List[MatchCandidate]:
        agent_key = config.get("_agent_api_key")
        if not agent_key or self.embedder is None:
            return []

        model = config.get("embedding_model") or DEFAULT_EMBEDDING_MODEL
        kwargs: Dict[str, Any] = {}
        key = agent_key.get("key") if isinstance(agent_key, dict) else agent_key
        if isinstance(key, str) and key:
            kwargs["api_key"] = key

        try:
            question_vector = self.embedder.embed(question.strip(), model, **kwargs)
        except Exception as exc:
            logger.info("faq_semantic_unavailable", error=str(exc))
            return []

        candidates: List[MatchCandidate] = []
        for entry in entries:
            if not entry.question.strip():
                continue
            try:
                vector = self.embedder.embed(entry.question.strip(), model, **kwargs)
            except Exception as exc:
                logger.debug("faq_embedding_failed", faq=entry.question, error=str(exc))
                continue
            similarity = ts.cosine_similarity(question_vector, vector)
            candidates.append(self._candidate(entry, max(0.0, min(1.0, similarity)), SEMANTIC))

        candidates.sort(key=lambda m: m.confidence, reverse=True)
        return candidates

    @staticmethod
    def _candidate(entry: FAQEntry, confidence: float, method: str) -> MatchCandidate:
        return MatchCandidate(
            question=entry.question,
            answer=entry.answer,
            category=entry.category,
            confidence=confidence,
            method=method,
        )
