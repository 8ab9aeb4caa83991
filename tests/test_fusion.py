from dataclasses import replace

import pytest

from data_designer_aigard.fusion import early_exit, fuse, local_confidence, weighted_blend
from data_designer_aigard.hyperparameters import DEFAULT_HYPERPARAMETERS, STRUCTURAL_WEIGHTS, Hyperparameters
from data_designer_aigard.markers import MarkerMatch
from data_designer_aigard.signals import AnalysisResult

NO_MARKERS = MarkerMatch(strong_found=(), weak_found=())


def _signals(
    perfection=0.5, drift=0.5, connectors=0.5, predictability=0.5, burstiness=0.5,
    perfection_details=None, drift_details=None, connector_details=None,
):
    return {
        "perfection": AnalysisResult("perfection", perfection, details=perfection_details or {}),
        "drift": AnalysisResult("drift", drift, details=drift_details or {}),
        "connectors": AnalysisResult("connectors", connectors, details=connector_details or {}),
        "predictability": AnalysisResult("predictability", predictability),
        "burstiness": AnalysisResult("burstiness", burstiness),
    }


class TestEarlyExit:
    @pytest.mark.parametrize("count,expected", [(1, 0.20), (2, 0.10), (3, 0.05), (6, 0.05)])
    def test_strong_marker_probabilities(self, count, expected):
        markers = MarkerMatch(strong_found=tuple(f"m{i}" for i in range(count)), weak_found=())
        verdict = early_exit(markers)
        assert verdict.probability == expected
        assert verdict.early_exit == "strong_markers"

    def test_strong_evidence_shows_first_three(self):
        verdict = early_exit(MarkerMatch(strong_found=("a", "b", "c", "d"), weak_found=()))
        assert verdict.evidence == ("[HUMAN] a, b, c",)
        assert verdict.found_markers == ("a", "b", "c", "d")
        assert verdict.dictionary_matches == 4
        assert verdict.local_confidence == "high"
        assert set(verdict.signal_scores) == set(STRUCTURAL_WEIGHTS)
        assert set(verdict.signal_scores.values()) == {10}

    def test_weak_marker_exit(self):
        verdict = early_exit(MarkerMatch(strong_found=(), weak_found=("a", "b", "c", "d", "e")))
        assert verdict.probability == 0.25
        assert verdict.evidence == ("[MARKERS] 5 phrases: a, b, c",)
        assert set(verdict.signal_scores.values()) == {20}

    def test_strong_takes_precedence(self):
        verdict = early_exit(MarkerMatch(strong_found=("a",), weak_found=("a", "b", "c", "d", "e")))
        assert verdict.early_exit == "strong_markers"
        assert verdict.probability == 0.20

    def test_no_exit(self):
        assert early_exit(NO_MARKERS) is None
        assert early_exit(MarkerMatch(strong_found=(), weak_found=("a", "b", "c", "d"))) is None


class TestFuse:
    def test_neutral_signals(self):
        assert weighted_blend(_signals(), DEFAULT_HYPERPARAMETERS) == pytest.approx(0.5)
        verdict = fuse(NO_MARKERS, _signals())
        assert verdict.probability == pytest.approx(0.5)
        assert verdict.rules_fired == ()
        assert verdict.early_exit is None

    def test_perfect_text_floor(self):
        verdict = fuse(NO_MARKERS, _signals(perfection_details={"is_perfect": True, "total": 0}))
        assert verdict.probability == pytest.approx(0.90)
        assert "[AI] Perfect text" in verdict.evidence
        assert verdict.is_perfect
        assert "perfect_text_floor" in verdict.rules_fired

    def test_slang_with_logic_floor(self):
        verdict = fuse(NO_MARKERS, _signals(drift_details={"has_slang": True, "continuity": 100, "tangents": 0}))
        assert verdict.probability == pytest.approx(0.85)
        assert "Slang with perfect logic" in verdict.evidence
        assert verdict.has_slang_with_logic

    def test_template_phrase_floor(self):
        verdict = fuse(NO_MARKERS, _signals(connector_details={"perfect": 4, "imperfect": 0}))
        assert verdict.probability == pytest.approx(0.80)
        assert "4 template phrases" in verdict.evidence

    def test_strong_consensus(self):
        verdict = fuse(NO_MARKERS, _signals(perfection=0.8, drift=0.75, connectors=0.7))
        assert verdict.probability == pytest.approx(0.92)
        assert verdict.rules_fired == ("consensus",)

    def test_pair_consensus(self):
        verdict = fuse(NO_MARKERS, _signals(perfection=0.8, drift=0.75))
        assert verdict.probability == pytest.approx(0.6525 * 1.15)

    def test_tangent_dampener(self):
        verdict = fuse(NO_MARKERS, _signals(drift_details={"tangents": 2, "continuity": 50}))
        assert verdict.probability == pytest.approx(0.375)
        assert verdict.rules_fired == ("tangent_dampener",)
        assert "2 topic shifts" in verdict.evidence
        assert "topic shifts" in verdict.explanation

    def test_imperfect_connector_dampener(self):
        verdict = fuse(NO_MARKERS, _signals(connector_details={"perfect": 0, "imperfect": 1}))
        assert verdict.probability == pytest.approx(0.40)
        assert "1 natural phrases" in verdict.evidence

    def test_flaw_dampener(self):
        verdict = fuse(NO_MARKERS, _signals(perfection_details={"total": 3, "corrections": 1}))
        assert verdict.probability == pytest.approx(0.35)
        assert "3 imperfections" in verdict.evidence
        assert "Self-corrections" in verdict.evidence

    @pytest.mark.parametrize("weak,multiplier", [(1, 0.92), (2, 0.92), (3, 0.85), (4, 0.85)])
    def test_weak_marker_dampener(self, weak, multiplier):
        markers = MarkerMatch(strong_found=(), weak_found=tuple(f"w{i}" for i in range(weak)))
        verdict = fuse(markers, _signals())
        assert verdict.probability == pytest.approx(0.5 * multiplier)
        assert f"{weak} hedging phrases" in verdict.evidence
        assert verdict.dictionary_matches == weak
        assert verdict.found_markers == markers.weak_found

    def test_clamped_to_bounds(self):
        low = fuse(NO_MARKERS, _signals(0.0, 0.0, 0.0, 0.0, 0.0))
        high = fuse(NO_MARKERS, _signals(1.0, 1.0, 1.0, 1.0, 1.0))
        assert low.probability == pytest.approx(0.01)
        assert high.probability == pytest.approx(0.95)

    def test_lexical_preset(self):
        hp = Hyperparameters.lexical_preset()
        signals = {
            "rhythm": AnalysisResult("rhythm", 0.9),
            "density": AnalysisResult("density", 0.55),
            "lexical_richness": AnalysisResult("lexical_richness", 0.3, human_signal=True, details={"ttr": 72}),
        }
        verdict = fuse(NO_MARKERS, signals, hp)
        assert verdict.probability == pytest.approx(0.40 + 0.9 * 0.35 + 0.55 * 0.25 - 0.12)
        assert verdict.rules_fired == ("human_signal_deductions",)
        assert "Rich vocabulary (TTR=72%)" in verdict.evidence

    def test_payload(self):
        payload = fuse(NO_MARKERS, _signals()).to_payload()
        assert payload["signal_scores"] == {name: 50 for name in STRUCTURAL_WEIGHTS}
        assert payload["early_exit"] is None

    @pytest.mark.parametrize("words,expected", [(0, "low"), (80, "low"), (81, "medium"), (150, "medium"), (151, "high")])
    def test_local_confidence_by_word_count(self, words, expected):
        assert local_confidence(words, DEFAULT_HYPERPARAMETERS) == expected


class TestHyperparameters:
    def test_weight_tables_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_HYPERPARAMETERS.signal_weights["drift"] = 1.0
        with pytest.raises(TypeError):
            DEFAULT_HYPERPARAMETERS.consensus_thresholds["drift"] = 0.0
        with pytest.raises(TypeError):
            Hyperparameters.lexical_preset().human_signal_deductions["emotion"] = 0.5

    def test_overrides_do_not_leak(self):
        weights = {"perfection": 1.0}
        custom = replace(DEFAULT_HYPERPARAMETERS, signal_weights=weights)
        weights["drift"] = 1.0
        assert dict(custom.signal_weights) == {"perfection": 1.0}
        assert DEFAULT_HYPERPARAMETERS.signal_weights == STRUCTURAL_WEIGHTS

    def test_hashable_and_comparable(self):
        assert hash(Hyperparameters()) == hash(DEFAULT_HYPERPARAMETERS)
        assert Hyperparameters() == DEFAULT_HYPERPARAMETERS
        assert Hyperparameters.lexical_preset() != DEFAULT_HYPERPARAMETERS
