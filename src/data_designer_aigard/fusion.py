# Per-chunk fusion policy: an ordered decision table over marker matches and signals.
#
# Evaluation order:
#   1. early exits (first match wins; structural signals are never computed)
#   2. weighted blend of signal scores
#   3. adjustment rules, applied top to bottom (deductions, floors, consensus, dampeners)
#   4. clamp

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Callable, Optional

from data_designer_aigard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters
from data_designer_aigard.markers import MarkerMatch
from data_designer_aigard.signals import SIGNALS, AnalysisResult

_STRUCTURAL_SIGNALS = tuple(s.name for s in SIGNALS if s.family == "structural")

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChunkVerdict:
    probability: float
    evidence: tuple[str, ...]
    cv: float = 50.0
    std: float = 0.0
    avg: float = 0.0
    signal_scores: dict[str, int] = field(default_factory=dict)
    early_exit: Optional[str] = None
    rules_fired: tuple[str, ...] = ()
    explanation: str = ""
    local_confidence: str = "medium"
    word_count: int = 0
    dictionary_matches: int = 0
    found_markers: tuple[str, ...] = ()
    is_perfect: bool = False
    has_slang_with_logic: bool = False

    def to_payload(self) -> dict[str, object]:
        return {
            "probability": round(self.probability, 4),
            "evidence": list(self.evidence),
            "cv": self.cv,
            "std": self.std,
            "avg": self.avg,
            "signal_scores": dict(self.signal_scores),
            "early_exit": self.early_exit,
            "rules_fired": list(self.rules_fired),
            "explanation": self.explanation,
            "local_confidence": self.local_confidence,
            "word_count": self.word_count,
            "dictionary_matches": self.dictionary_matches,
            "found_markers": list(self.found_markers),
            "is_perfect": self.is_perfect,
            "has_slang_with_logic": self.has_slang_with_logic,
        }


@dataclass(frozen=True)
class FusionContext:
    markers: MarkerMatch
    signals: Mapping[str, AnalysisResult]
    hp: Hyperparameters

    def score(self, name: str) -> float:
        result = self.signals.get(name)
        return result.score if result is not None else 0.5

    def detail(self, name: str, key: str, default: object = 0) -> object:
        result = self.signals.get(name)
        return result.details.get(key, default) if result is not None else default

    def human_signal(self, name: str) -> bool:
        result = self.signals.get(name)
        return result is not None and result.human_signal


@dataclass(frozen=True)
class _Rule:
    name: str
    description: str
    apply: Callable[[float, FusionContext], float]


_ExitRule = Callable[[MarkerMatch, Hyperparameters], Optional[ChunkVerdict]]

# ---------------------------------------------------------------------------
# Early exits
# ---------------------------------------------------------------------------


def _exit_strong_markers(markers: MarkerMatch, hp: Hyperparameters) -> Optional[ChunkVerdict]:
    if markers.strong_count < 1:
        return None
    one, two, many = hp.strong_exit_probabilities
    probability = many if markers.strong_count >= 3 else two if markers.strong_count >= 2 else one
    shown = ", ".join(markers.strong_found[: hp.exit_evidence_cap])
    return ChunkVerdict(
        probability=probability,
        evidence=(f"[HUMAN] {shown}",),
        signal_scores={name: hp.strong_exit_signal_score for name in _STRUCTURAL_SIGNALS},
        early_exit="strong_markers",
        explanation=f"Human markers found: {shown}",
        local_confidence="high",
        dictionary_matches=markers.strong_count,
        found_markers=markers.strong_found,
    )


def _exit_weak_markers(markers: MarkerMatch, hp: Hyperparameters) -> Optional[ChunkVerdict]:
    if markers.weak_count < hp.weak_exit_min_count:
        return None
    shown = ", ".join(markers.weak_found[: hp.exit_evidence_cap])
    return ChunkVerdict(
        probability=hp.weak_exit_probability,
        evidence=(f"[MARKERS] {markers.weak_count} phrases: {shown}",),
        signal_scores={name: hp.weak_exit_signal_score for name in _STRUCTURAL_SIGNALS},
        early_exit="weak_markers",
        explanation=f"{markers.weak_count} hedging phrases typical of human writing",
        local_confidence="medium",
        dictionary_matches=markers.weak_count,
        found_markers=markers.weak_found,
    )


_EARLY_EXITS: list[_ExitRule] = [
    _exit_strong_markers,
    _exit_weak_markers,
]


def early_exit(markers: MarkerMatch, hyperparameters: Hyperparameters | None = None) -> Optional[ChunkVerdict]:
    """Return a verdict straight from dictionary evidence, or None when the full blend must run."""
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    for rule in _EARLY_EXITS:
        verdict = rule(markers, hp)
        if verdict is not None:
            return verdict
    return None


# ---------------------------------------------------------------------------
# Adjustment rules
# ---------------------------------------------------------------------------


def _deduct_human_signals(p: float, ctx: FusionContext) -> float:
    for name, amount in ctx.hp.human_signal_deductions.items():
        if ctx.human_signal(name):
            p -= amount
    return p


def _floor_perfect_text(p: float, ctx: FusionContext) -> float:
    if ctx.detail("perfection", "is_perfect", False):
        return max(p, ctx.hp.perfect_text_floor)
    return p


def _has_slang_with_logic(ctx: FusionContext) -> bool:
    return bool(ctx.detail("drift", "has_slang", False)) and ctx.detail("drift", "continuity") > ctx.hp.slang_continuity_threshold


def _floor_slang_with_logic(p: float, ctx: FusionContext) -> float:
    if _has_slang_with_logic(ctx):
        return max(p, ctx.hp.slang_logic_floor)
    return p


def _floor_template_phrases(p: float, ctx: FusionContext) -> float:
    if ctx.detail("connectors", "perfect") >= ctx.hp.template_phrase_min:
        return max(p, ctx.hp.template_phrase_floor)
    return p


def _consensus(p: float, ctx: FusionContext) -> float:
    hp = ctx.hp
    agreeing = sum(1 for name, bound in hp.consensus_thresholds.items() if ctx.score(name) > bound)
    if agreeing >= hp.consensus_strong_min:
        return max(p, hp.consensus_strong_floor)
    if agreeing == 2:
        return min(1.0, p * hp.consensus_pair_multiplier)
    return p


def _dampen_tangents(p: float, ctx: FusionContext) -> float:
    if ctx.detail("drift", "tangents") >= ctx.hp.tangent_min:
        return p * ctx.hp.tangent_multiplier
    return p


def _dampen_imperfect_connectors(p: float, ctx: FusionContext) -> float:
    if ctx.detail("connectors", "imperfect") > 0:
        return p * ctx.hp.imperfect_connector_multiplier
    return p


def _dampen_flaws(p: float, ctx: FusionContext) -> float:
    if ctx.detail("perfection", "total") >= ctx.hp.flaw_min:
        return p * ctx.hp.flaw_multiplier
    return p


def _dampen_weak_markers(p: float, ctx: FusionContext) -> float:
    hp = ctx.hp
    if ctx.markers.weak_count >= hp.weak_marker_many:
        return p * hp.weak_marker_many_multiplier
    if ctx.markers.weak_count >= 1:
        return p * hp.weak_marker_some_multiplier
    return p


_ADJUSTMENTS: list[_Rule] = [
    _Rule("human_signal_deductions", "human-signal deductions", _deduct_human_signals),
    _Rule("perfect_text_floor", "flawless text floor", _floor_perfect_text),
    _Rule("slang_logic_floor", "slang with perfect logic floor", _floor_slang_with_logic),
    _Rule("template_phrase_floor", "template phrase floor", _floor_template_phrases),
    _Rule("consensus", "multi-signal consensus", _consensus),
    _Rule("tangent_dampener", "topic shifts", _dampen_tangents),
    _Rule("imperfect_connector_dampener", "natural connector variants", _dampen_imperfect_connectors),
    _Rule("flaw_dampener", "imperfections", _dampen_flaws),
    _Rule("weak_marker_dampener", "hedging phrases", _dampen_weak_markers),
]

# ---------------------------------------------------------------------------
# Evidence trail
# ---------------------------------------------------------------------------


def _evidence(ctx: FusionContext) -> list[str]:
    hp = ctx.hp
    found: list[str] = []
    if ctx.detail("perfection", "is_perfect", False):
        found.append("[AI] Perfect text")
    if ctx.detail("drift", "has_slang", False) and ctx.detail("drift", "continuity") > hp.slang_logic_evidence_continuity:
        found.append("Slang with perfect logic")
    perfect = ctx.detail("connectors", "perfect")
    if perfect > 0:
        found.append(f"{perfect} template phrases")
    imperfect = ctx.detail("connectors", "imperfect")
    if imperfect > 0:
        found.append(f"{imperfect} natural phrases")
    tangents = ctx.detail("drift", "tangents")
    if tangents > 0:
        found.append(f"{tangents} topic shifts")
    flaws = ctx.detail("perfection", "total")
    if flaws > 0:
        found.append(f"{flaws} imperfections")
    if ctx.detail("perfection", "corrections") > 0:
        found.append("Self-corrections")
    if ctx.signals.get("burstiness") is not None and ctx.signals["burstiness"].applicable:
        cv = ctx.detail("burstiness", "cv", 50)
        if cv < hp.uniform_structure_cv:
            found.append(f"Uniform structure CV={cv}%")
    if ctx.markers.weak_count > 0:
        found.append(f"{ctx.markers.weak_count} hedging phrases")

    if ctx.human_signal("lexical_richness"):
        found.append(f"Rich vocabulary (TTR={ctx.detail('lexical_richness', 'ttr')}%)")
    if ctx.human_signal("emotion"):
        found.append("Emotional markers")
    if ctx.human_signal("rhythm"):
        found.append(f"Variable rhythm (CV={ctx.detail('rhythm', 'cv')}%)")
    if ctx.human_signal("density"):
        found.append("High fact density")
    numbered = ctx.detail("formal", "numbered")
    if numbered > 0:
        found.append(f"{numbered} numbered items")
    if ctx.detail("quirks", "ironic_quotes") > 0:
        found.append("Ironic quotes")
    return found


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def local_confidence(word_count: int, hp: Hyperparameters) -> str:
    """Confidence in the local verdict from sample size alone."""
    if word_count > hp.confidence_high_words:
        return "high"
    if word_count > hp.confidence_medium_words:
        return "medium"
    return "low"


def weighted_blend(signals: Mapping[str, AnalysisResult], hp: Hyperparameters) -> float:
    total = hp.base_weight
    for name, weight in hp.signal_weights.items():
        result = signals.get(name)
        if result is not None:
            total += weight * result.score
    return total


def fuse(
    markers: MarkerMatch,
    signals: Mapping[str, AnalysisResult],
    hyperparameters: Hyperparameters | None = None,
) -> ChunkVerdict:
    """Combine signal scores into one chunk probability with an evidence trail."""
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    ctx = FusionContext(markers=markers, signals=signals, hp=hp)

    blend = weighted_blend(signals, hp)
    p = blend
    fired: list[_Rule] = []
    for rule in _ADJUSTMENTS:
        adjusted = rule.apply(p, ctx)
        if adjusted != p:
            fired.append(rule)
        p = adjusted
    p = max(hp.probability_min, min(hp.probability_max, p))

    explanation = f"Weighted blend {blend:.2f}"
    if fired:
        explanation += "; adjusted for " + ", ".join(r.description for r in fired)
    explanation += f"; local probability {p:.2f}"

    burst = signals.get("burstiness")
    word_count = ctx.detail("lexical_richness", "total_words")
    return ChunkVerdict(
        probability=p,
        evidence=tuple(_evidence(ctx)),
        cv=burst.details.get("cv", 50) if burst is not None else 50,
        std=burst.details.get("std", 0.0) if burst is not None else 0.0,
        avg=burst.details.get("avg", 0.0) if burst is not None else 0.0,
        signal_scores={name: result.percent for name, result in signals.items()},
        rules_fired=tuple(r.name for r in fired),
        explanation=explanation,
        local_confidence=local_confidence(word_count, hp),
        word_count=word_count,
        dictionary_matches=markers.strong_count + markers.weak_count,
        found_markers=markers.strong_found + markers.weak_found,
        is_perfect=bool(ctx.detail("perfection", "is_perfect", False)),
        has_slang_with_logic=_has_slang_with_logic(ctx),
    )
