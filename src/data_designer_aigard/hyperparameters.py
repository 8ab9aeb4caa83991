from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

STRUCTURAL_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "perfection": 0.30,
    "drift": 0.25,
    "connectors": 0.20,
    "predictability": 0.15,
    "burstiness": 0.10,
})
LEXICAL_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "rhythm": 0.35,
    "density": 0.25,
})
LEXICAL_DEDUCTIONS: Mapping[str, float] = MappingProxyType({
    "lexical_richness": 0.12,
    "emotion": 0.08,
    "rhythm": 0.10,
    "density": 0.08,
})
CONSENSUS_THRESHOLDS: Mapping[str, float] = MappingProxyType({
    "perfection": 0.75,
    "drift": 0.70,
    "connectors": 0.65,
    "predictability": 0.60,
})

_MAPPING_FIELDS = ("signal_weights", "human_signal_deductions", "consensus_thresholds")


@dataclass(frozen=True)
class Hyperparameters:
    """Tunable thresholds, weights, and fusion constants used by the engine."""

    min_text_chars: int = 50
    max_chunk_size: int = 5000

    # Signal minimum sample sizes
    lexical_min_words: int = 20
    lexical_word_min_length: int = 3
    rare_word_min_length: int = 8
    rhythm_min_sentences: int = 4
    rhythm_sentence_min_chars: int = 3
    burstiness_min_sentences: int = 3
    density_min_sentences: int = 2
    density_sentence_min_chars: int = 5
    connector_sentence_min_chars: int = 5
    drift_min_sentences: int = 4
    drift_sentence_min_chars: int = 8
    drift_word_min_length: int = 4
    drift_slang_min_count: int = 2
    perfection_word_min_length: int = 4
    perfection_min_sentences: int = 3
    perfection_sentence_min_chars: int = 5
    perfection_repeat_min_count: int = 3
    predictability_min_words: int = 15
    predictability_word_min_length: int = 2
    predictability_sequence_bonus: float = 0.4
    predictability_share_weight: float = 0.6

    # Early exits
    strong_exit_probabilities: tuple[float, float, float] = (0.20, 0.10, 0.05)
    weak_exit_min_count: int = 5
    weak_exit_probability: float = 0.25
    exit_evidence_cap: int = 3
    strong_exit_signal_score: int = 10
    weak_exit_signal_score: int = 20

    # Weighted blend
    signal_weights: Mapping[str, float] = field(default_factory=lambda: STRUCTURAL_WEIGHTS, hash=False)
    base_weight: float = 0.0
    human_signal_deductions: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}), hash=False)

    # Floors and consensus
    perfect_text_floor: float = 0.90
    slang_continuity_threshold: float = 85.0
    slang_logic_floor: float = 0.85
    template_phrase_min: int = 4
    template_phrase_floor: float = 0.80
    consensus_thresholds: Mapping[str, float] = field(default_factory=lambda: CONSENSUS_THRESHOLDS, hash=False)
    consensus_strong_min: int = 3
    consensus_strong_floor: float = 0.92
    consensus_pair_multiplier: float = 1.15

    # Dampeners
    tangent_min: int = 2
    tangent_multiplier: float = 0.75
    imperfect_connector_multiplier: float = 0.80
    flaw_min: int = 3
    flaw_multiplier: float = 0.70
    weak_marker_many: int = 3
    weak_marker_many_multiplier: float = 0.85
    weak_marker_some_multiplier: float = 0.92

    probability_min: float = 0.01
    probability_max: float = 0.95

    # Evidence trail
    slang_logic_evidence_continuity: float = 80.0
    uniform_structure_cv: float = 30.0

    # Document aggregation
    local_weight: float = 0.90
    external_weight: float = 0.10
    local_floor_min: float = 0.30
    local_floor_ratio: float = 0.95
    human_label_max: float = 0.25
    ai_label_min: float = 0.40
    high_confidence_local: float = 0.50
    high_confidence: float = 0.92
    medium_confidence_local: float = 0.35
    medium_confidence: float = 0.78
    neutral_confidence: float = 0.5
    evidence_cap: int = 15

    # Local confidence by word count
    confidence_high_words: int = 150
    confidence_medium_words: int = 80

    def __post_init__(self) -> None:
        for name in _MAPPING_FIELDS:
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @classmethod
    def lexical_preset(cls) -> Hyperparameters:
        """Rhythm/density blend with a fixed base and deductions for human signals."""
        return replace(
            cls(),
            signal_weights=LEXICAL_WEIGHTS,
            base_weight=0.40,
            human_signal_deductions=LEXICAL_DEDUCTIONS,
        )


DEFAULT_HYPERPARAMETERS = Hyperparameters()
