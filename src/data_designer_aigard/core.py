# Heuristic AI-text scoring: chunk the document, score each chunk locally, optionally ask an
# external classifier, and merge everything into one document verdict.
#
# Local scoring is synchronous and deterministic. The async entry point awaits the external
# classifier once per chunk, in order; cancelling the awaiting task discards partial results.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Sequence

from data_designer_aigard.errors import ExternalUnavailableError, InputTooShortError
from data_designer_aigard.external import ExternalClassifier, ExternalVerdict, NullClassifier
from data_designer_aigard.fusion import ChunkVerdict, early_exit, fuse
from data_designer_aigard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters
from data_designer_aigard.markers import DEFAULT_MARKERS, MarkerSet, match_markers
from data_designer_aigard.signals import run_signals
from data_designer_aigard.text import sentence_spans, words

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocumentVerdict:
    ai_score: int
    label: str
    confidence: float
    chunks: int
    evidence: tuple[str, ...]
    metrics: dict[str, object]
    explanation: str
    local_probability: float
    external_probability: Optional[float] = None
    external_errors: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, object]:
        return {
            "ai_score": self.ai_score,
            "label": self.label,
            "confidence": round(self.confidence, 2),
            "chunks": self.chunks,
            "evidence": list(self.evidence),
            "metrics": dict(self.metrics),
            "explanation": self.explanation,
            "local_probability": round(self.local_probability, 4),
            "external_probability": None if self.external_probability is None else round(self.external_probability, 4),
            "external_errors": list(self.external_errors),
        }


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------


def split_chunks(text: str, max_chunk_size: int = DEFAULT_HYPERPARAMETERS.max_chunk_size) -> list[str]:
    """Greedily pack whole sentences into chunks of at most ``max_chunk_size`` characters.

    A sentence longer than the limit is never cut; it becomes a chunk of its own.
    """
    if len(text) <= max_chunk_size:
        return [text]

    chunks: list[str] = []
    current = ""
    for span in sentence_spans(text):
        sentence = span.strip()
        if not sentence:
            continue
        candidate = f"{current} {sentence}" if current else sentence
        if current and len(candidate) > max_chunk_size:
            chunks.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks or [text[:max_chunk_size]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _deduplicate(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _local_confidence(verdicts: Sequence[ChunkVerdict]) -> str:
    levels = {v.local_confidence for v in verdicts}
    if "high" in levels:
        return "high"
    if "low" in levels:
        return "low"
    return "medium"


def _label(probability: float, hp: Hyperparameters) -> str:
    if probability < hp.human_label_max:
        return "HUMAN"
    if probability > hp.ai_label_min:
        return "AI"
    return "MIXED"


def _prepare(text: str, hp: Hyperparameters) -> list[str]:
    stripped = (text or "").strip()
    if len(stripped) < hp.min_text_chars:
        raise InputTooShortError(len(stripped), hp.min_text_chars)
    return split_chunks(stripped, hp.max_chunk_size)


def _signal_means(verdicts: Sequence[ChunkVerdict]) -> dict[str, int]:
    totals: dict[str, list[int]] = {}
    for v in verdicts:
        for name, value in v.signal_scores.items():
            totals.setdefault(name, []).append(value)
    return {name: _round_half_up(_mean(values)) for name, values in totals.items()}


# ---------------------------------------------------------------------------
# Scoring and aggregation
# ---------------------------------------------------------------------------


def score_chunk(
    chunk: str,
    hyperparameters: Hyperparameters | None = None,
    markers: MarkerSet = DEFAULT_MARKERS,
) -> ChunkVerdict:
    """Score one chunk locally: dictionary early exits first, full signal fusion otherwise."""
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    match = match_markers(chunk, markers)
    verdict = early_exit(match, hp)
    if verdict is None:
        verdict = fuse(match, run_signals(chunk, hp), hp)
    else:
        verdict = replace(verdict, word_count=len(words(chunk, hp.lexical_word_min_length)))
    logger.debug(
        f"Scored chunk of {len(chunk)} chars: probability={verdict.probability:.2f} "
        f"early_exit={verdict.early_exit} rules={list(verdict.rules_fired)}"
    )
    return verdict


def aggregate(
    local: Sequence[ChunkVerdict],
    external: Sequence[Optional[ExternalVerdict]],
    hyperparameters: Hyperparameters | None = None,
    errors: Sequence[str] = (),
) -> DocumentVerdict:
    """Merge per-chunk verdicts into one document verdict.

    Chunks without an external verdict (no classifier, or a dictionary early exit) only
    contribute to the local mean. When no chunk has one, the blend is 100% local.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    if not local:
        raise ValueError("aggregate() needs at least one chunk verdict")

    local_p = _mean([v.probability for v in local])
    answered = [e for e in external if e is not None]
    if answered:
        external_p: Optional[float] = _mean([e.ai_probability for e in answered])
        external_confidence = _mean([e.confidence for e in answered])
        combined = local_p * hp.local_weight + external_p * hp.external_weight
    else:
        external_p = None
        external_confidence = hp.neutral_confidence
        combined = local_p
    if local_p >= hp.local_floor_min:
        combined = max(combined, local_p * hp.local_floor_ratio)
    combined = max(0.0, min(1.0, combined))

    if local_p >= hp.high_confidence_local:
        confidence = hp.high_confidence
    elif local_p >= hp.medium_confidence_local:
        confidence = hp.medium_confidence
    else:
        confidence = external_confidence

    phrases: list[str] = []
    for i, verdict in enumerate(local):
        phrases.extend(verdict.evidence)
        if i < len(external) and external[i] is not None:
            phrases.extend(external[i].suspicious_phrases)

    explanation = (
        next((e.reasoning for e in answered if e.reasoning), "")
        or next((v.explanation for v in local if v.explanation), "")
        or "Analysis complete"
    )

    metrics: dict[str, object] = {
        "lexical": round(100 - _mean([v.cv for v in local]), 1),
        "variation": round(_mean([v.std for v in local]), 1),
        "sentence_avg": round(_mean([v.avg for v in local]), 1),
        "local_probability": _round_half_up(local_p * 100),
        "external_probability": None if external_p is None else _round_half_up(external_p * 100),
        "signals": _signal_means(local),
        "local_confidence": _local_confidence(local),
        "word_count": sum(v.word_count for v in local),
        "dictionary_matches": sum(v.dictionary_matches for v in local),
        "found_markers": _deduplicate([m for v in local for m in v.found_markers]),
        "is_perfect": any(v.is_perfect for v in local),
        "has_slang_with_logic": any(v.has_slang_with_logic for v in local),
    }

    return DocumentVerdict(
        ai_score=_round_half_up(combined * 100),
        label=_label(combined, hp),
        confidence=confidence,
        chunks=len(local),
        evidence=tuple(_deduplicate(phrases)[: hp.evidence_cap]),
        metrics=metrics,
        explanation=explanation,
        local_probability=local_p,
        external_probability=external_p,
        external_errors=tuple(errors),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_text(
    text: str,
    hyperparameters: Hyperparameters | None = None,
    *,
    markers: MarkerSet = DEFAULT_MARKERS,
) -> DocumentVerdict:
    """Score text for signs of machine generation using local heuristics only.

    Args:
        text: The passage to analyze.
        hyperparameters: Optional tuning overrides. Uses the structural weighting if omitted.
        markers: Marker dictionary; the built-in one if omitted.

    Returns:
        DocumentVerdict with ai_score (0-100), label, confidence, evidence and metrics.

    Raises:
        InputTooShortError: the stripped text is shorter than ``min_text_chars``.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    chunks = _prepare(text, hp)
    verdicts = [score_chunk(chunk, hp, markers) for chunk in chunks]
    return aggregate(verdicts, [None] * len(verdicts), hp)


async def analyze_text_async(
    text: str,
    classifier: Optional[ExternalClassifier] = None,
    hyperparameters: Hyperparameters | None = None,
    *,
    markers: MarkerSet = DEFAULT_MARKERS,
    require_external: bool = False,
    on_progress: Optional[ProgressCallback] = None,
) -> DocumentVerdict:
    """Score text locally and blend in an external classifier's verdict per chunk.

    The classifier is skipped for chunks decided by dictionary evidence. A classifier failure
    on one chunk is replaced by the neutral verdict and reported in ``external_errors``,
    unless ``require_external`` is set, in which case the failure is raised.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    chunks = _prepare(text, hp)
    configured = classifier is not None and not isinstance(classifier, NullClassifier)
    if require_external and not configured:
        raise ExternalUnavailableError("External classifier is required but not configured")

    local: list[ChunkVerdict] = []
    external: list[Optional[ExternalVerdict]] = []
    errors: list[str] = []
    for i, chunk in enumerate(chunks):
        verdict = score_chunk(chunk, hp, markers)
        answer: Optional[ExternalVerdict] = None
        if configured and verdict.early_exit is None:
            try:
                answer = await classifier.classify(chunk)
            except ExternalUnavailableError as exc:
                if require_external:
                    raise
                logger.warning(f"External classifier failed on chunk {i + 1}/{len(chunks)}, using neutral verdict: {exc}")
                errors.append(str(exc))
                answer = ExternalVerdict.neutral()
        local.append(verdict)
        external.append(answer)
        if on_progress is not None:
            on_progress(i + 1, len(chunks))

    return aggregate(local, external, hp, errors)
