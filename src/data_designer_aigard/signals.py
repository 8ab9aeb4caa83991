# Independent statistical and lexical signals over a passage of text.
#
# Every signal maps text to a score in [0, 1] where higher means "reads as machine
# generated". Signals never look at each other's output; the fusion policy combines
# them by name. Structure-sensitive signals receive neutralized text.

from __future__ import annotations

import math
import re
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Callable

from data_designer_aigard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters
from data_designer_aigard.text import neutralize, sentences, words

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisResult:
    name: str
    score: float
    applicable: bool = True
    human_signal: bool = False
    details: dict[str, object] = field(default_factory=dict)

    @property
    def percent(self) -> int:
        return math.floor(self.score * 100 + 0.5)

    def to_payload(self) -> dict[str, object]:
        return {
            "name": self.name,
            "score": round(self.score, 4),
            "applicable": self.applicable,
            "human_signal": self.human_signal,
            "details": dict(self.details),
        }


SignalScorer = Callable[[str, Hyperparameters], AnalysisResult]


@dataclass(frozen=True)
class Signal:
    name: str
    family: str
    neutralized: bool
    scorer: SignalScorer


# ---------------------------------------------------------------------------
# Compiled patterns and word lists
# ---------------------------------------------------------------------------

_EVALUATIVE_STEMS = (
    "отличн", "ужасн", "прекрасн", "кошмарн", "великолепн", "отвратительн",
    "потрясающ", "безобразн", "замечательн", "омерзительн", "восхитительн",
    "идиот", "дурак", "гений", "молодец", "умница", "балбес", "тупица",
    "красота", "ужас", "кошмар", "прелесть", "гадость", "мерзость",
    "обожаю", "ненавижу", "терпеть не могу", "души не чаю",
    "amazing", "terrible", "wonderful", "horrible", "fantastic", "disgusting",
)
_PERSONAL_PRONOUN_RE = re.compile(r"\b(?:я|мне|меня|мой|моя|моё|мои|по-моему|i|me|my|mine)\b")
_ELLIPSIS_RE = re.compile(r"\.{3}")

_DENSITY_RES = [
    re.compile(r"\d+[.,]\d+"),
    re.compile(r"\d+\s*(?:мм|см|км|кг|мл|м|г|л|°|градус|бар|атм|psi|rpm)(?![a-zа-яё])", re.IGNORECASE),
    re.compile(r"\d+\s*(?:вольт|ампер|ватт|квт|мгц|гц|вт|ом|в|а)(?![a-zа-яё])", re.IGNORECASE),
    re.compile(r"\b[A-Z]{2,}[0-9]+\b"),
    re.compile(r"\b\d{1,2}[.:]\d{2}\b"),
]

_PERFECT_CLICHE_RES = [
    re.compile(r"^тут такое дело", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^ну,?\s*(?:ты\s+)?знаешь", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^короче,?\s", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^смотри,?\s", re.IGNORECASE | re.MULTILINE),
    re.compile(r"и в (?:этом|том|её|его) .{0,20}было", re.IGNORECASE),
    re.compile(r",?\s*если честно[.,]?$", re.IGNORECASE | re.MULTILINE),
    re.compile(r",?\s*на самом деле", re.IGNORECASE),
    re.compile(r",?\s*по большому счёту", re.IGNORECASE),
    re.compile(r"типа того", re.IGNORECASE),
    re.compile(r"вот и всё", re.IGNORECASE),
    re.compile(r"вот такие дела", re.IGNORECASE),
    re.compile(r"^here's the thing", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^you know what", re.IGNORECASE | re.MULTILINE),
    re.compile(r",?\s*to be honest[.,]?$", re.IGNORECASE | re.MULTILINE),
    re.compile(r",?\s*at the end of the day", re.IGNORECASE),
]
_IMPERFECT_CLICHE_RES = [
    re.compile(r"такое тут дело", re.IGNORECASE),
    re.compile(r"знаешь,?\s*ну", re.IGNORECASE),
    re.compile(r"честно если", re.IGNORECASE),
]

_SLANG_RES = [
    re.compile(r"\b(?:блин|чёрт|бля|капец|жесть|короче|кароче|типа|ваще|чё|норм)\b", re.IGNORECASE),
    re.compile(r"\b(?:damn|shit|fuck|dude|gonna|wanna|kinda)\b", re.IGNORECASE),
]

_COMMON_WORDS = frozenset({
    "и", "в", "на", "с", "что", "как", "это", "но", "а",
    "было", "быть", "этот", "который", "можно", "нужно", "очень", "более", "также",
    "the", "a", "is", "are", "was", "i", "you", "he", "she", "it", "we", "they",
    "have", "been", "this", "that", "with", "from", "would", "could", "should",
    "there", "their", "about", "which", "when", "what", "were", "will", "your",
    "some", "them", "than", "then",
})

_MULTI_SPACE_RE = re.compile(r"[ \t]{2,}")
_COMMA_RUN_RE = re.compile(r",{2,}")
_ODDITY_RES = [
    re.compile(r"\.{3}\s*[а-яёa-z]"),
    re.compile(r"[!?]\s*[а-яёa-z]"),
    re.compile(r"—\s*$", re.MULTILINE),
]
_SELF_CORRECTION_RE = re.compile(
    r"\b(?:то есть|в смысле|точнее|вернее|i mean|actually|wait|no)\b", re.IGNORECASE
)

_CANNED_SEQUENCES = (
    "в первую очередь", "в конечном итоге", "на самом деле", "тем не менее",
    "следует отметить", "важно отметить", "таким образом",
    "it is important", "in order to", "as a result", "in conclusion",
)

_NUMBERED_LINE_RE = re.compile(r"^\s*\d+[.)]\s", re.MULTILINE)
_HEADER_LINE_RE = re.compile(r"^[А-ЯЁA-Z][а-яёa-z\s]{2,}:", re.MULTILINE)

_IRONIC_QUOTE_RE = re.compile(r"[«\"][а-яёa-z]+[»\"]", re.IGNORECASE)
_COMPOUND_WORD_RE = re.compile(r"[а-яё]+-[а-яё]+", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Score bands: (exclusive lower bound, score), first match wins
# ---------------------------------------------------------------------------

_BURSTINESS_BANDS = ((20.0, 0.90), (30.0, 0.70), (40.0, 0.50), (55.0, 0.30))
_DENSITY_BANDS = ((1.5, 0.20), (1.0, 0.30), (0.5, 0.45))
_CONNECTOR_DENSITY_BANDS = ((0.3, 0.90), (0.2, 0.75), (0.1, 0.55))
_CONNECTOR_COUNT_BANDS = ((3, 0.65), (2, 0.45), (1, 0.30))
_PREDICTABILITY_BANDS = ((0.50, 0.95), (0.35, 0.80), (0.25, 0.65), (0.15, 0.45))


def _band_above(value: float, bands: tuple[tuple[float, float], ...], default: float) -> float:
    for bound, score in bands:
        if value > bound:
            return score
    return default


def _band_below(value: float, bands: tuple[tuple[float, float], ...], default: float) -> float:
    for bound, score in bands:
        if value < bound:
            return score
    return default


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _dispersion(values: list[float]) -> tuple[float, float, float]:
    """Return (mean, population std, coefficient of variation in percent)."""
    mean = sum(values) / len(values)
    std = math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))
    cv = (std / mean) * 100 if mean > 0 else 0.0
    return mean, std, cv


def _not_applicable(name: str, **details: object) -> AnalysisResult:
    return AnalysisResult(name, 0.5, applicable=False, details=details)


# ---------------------------------------------------------------------------
# Lexical family
# ---------------------------------------------------------------------------


def _signal_lexical_richness(text: str, hp: Hyperparameters) -> AnalysisResult:
    tokens = words(text, hp.lexical_word_min_length)
    if len(tokens) < hp.lexical_min_words:
        return _not_applicable("lexical_richness", ttr=50, total_words=len(tokens))

    unique = set(tokens)
    ttr = len(unique) / len(tokens)
    rare_ratio = len({w for w in tokens if len(w) >= hp.rare_word_min_length}) / len(tokens)

    human, rich = 0.0, False
    if ttr > 0.70:
        human, rich = 0.35, True
    elif ttr > 0.60:
        human, rich = 0.25, True
    elif ttr > 0.50:
        human = 0.15
    elif ttr < 0.35:
        human = -0.15
    if rare_ratio > 0.15:
        human += 0.10

    return AnalysisResult(
        "lexical_richness",
        _clamp(0.5 - human),
        human_signal=rich,
        details={
            "ttr": round(ttr * 100),
            "unique_words": len(unique),
            "total_words": len(tokens),
            "rare_ratio": round(rare_ratio * 100),
        },
    )


def _signal_emotion(text: str, hp: Hyperparameters) -> AnalysisResult:
    lowered = text.lower()
    evaluative = sum(1 for stem in _EVALUATIVE_STEMS if stem in lowered)
    punctuation = text.count("!") + text.count("?") + len(_ELLIPSIS_RE.findall(text))
    pronouns = len(_PERSONAL_PRONOUN_RE.findall(lowered))

    human = 0.0
    if evaluative >= 3:
        human += 0.20
    elif evaluative >= 1:
        human += 0.10
    if punctuation >= 5:
        human += 0.15
    elif punctuation >= 2:
        human += 0.08
    if pronouns >= 5:
        human += 0.10
    elif pronouns >= 2:
        human += 0.05
    human = min(0.40, human)

    return AnalysisResult(
        "emotion",
        0.5 - human,
        human_signal=evaluative > 0 or punctuation > 2,
        details={
            "evaluative_count": evaluative,
            "emotional_punctuation": punctuation,
            "personal_pronouns": pronouns,
        },
    )


def _signal_rhythm(text: str, hp: Hyperparameters) -> AnalysisResult:
    sents = sentences(text, hp.rhythm_sentence_min_chars)
    if len(sents) < hp.rhythm_min_sentences:
        return _not_applicable("rhythm", cv=50, std=0.0, avg=0)

    lengths = [len(s.split()) for s in sents]
    mean, std, cv = _dispersion(lengths)
    max_jump = max(abs(b - a) for a, b in zip(lengths, lengths[1:]))
    extreme = any(n < 4 for n in lengths) and any(n > 15 for n in lengths)
    big_jump = max_jump > mean * 1.5

    human = False
    if cv > 60 and big_jump:
        score, human = 0.15, True
    elif cv > 50 or extreme:
        score, human = 0.25, True
    elif cv > 40:
        score = 0.40
    elif cv > 30:
        score = 0.60
    elif cv > 20:
        score = 0.80
    else:
        score = 0.90

    return AnalysisResult(
        "rhythm",
        score,
        human_signal=human,
        details={
            "cv": round(cv),
            "std": round(std, 1),
            "avg": round(mean),
            "max_jump": max_jump,
            "extreme_variation": extreme,
            "big_jump": big_jump,
        },
    )


def _signal_density(text: str, hp: Hyperparameters) -> AnalysisResult:
    sents = sentences(text, hp.density_sentence_min_chars)
    if len(sents) < hp.density_min_sentences:
        return _not_applicable("density", specific_count=0)

    specific = sum(len(p.findall(text)) for p in _DENSITY_RES)
    per_sentence = specific / len(sents)
    score = _band_above(per_sentence, _DENSITY_BANDS, 0.55)

    return AnalysisResult(
        "density",
        score,
        human_signal=per_sentence > 1.0,
        details={"specific_count": specific, "density_per_sentence": round(per_sentence, 2)},
    )


def _signal_formal(text: str, hp: Hyperparameters) -> AnalysisResult:
    numbered = len(_NUMBERED_LINE_RE.findall(text))
    headers = len(_HEADER_LINE_RE.findall(text))
    score = 0.0
    if numbered >= 5:
        score += 0.50
    elif numbered >= 3:
        score += 0.35
    elif numbered >= 1:
        score += 0.15
    if headers >= 3:
        score += 0.30
    elif headers >= 1:
        score += 0.15
    return AnalysisResult("formal", min(1.0, score), details={"numbered": numbered, "headers": headers})


def _signal_quirks(text: str, hp: Hyperparameters) -> AnalysisResult:
    ironic = len(_IRONIC_QUOTE_RE.findall(text))
    compounds = len(_COMPOUND_WORD_RE.findall(text))
    human = 0.0
    if ironic >= 1:
        human += 0.15
    if compounds >= 2:
        human += 0.10
    return AnalysisResult(
        "quirks",
        0.5 - human,
        human_signal=human > 0,
        details={"ironic_quotes": ironic, "compound_words": compounds},
    )


# ---------------------------------------------------------------------------
# Structural family
# ---------------------------------------------------------------------------


def _signal_connectors(text: str, hp: Hyperparameters) -> AnalysisResult:
    perfect = sum(1 for p in _PERFECT_CLICHE_RES if p.search(text))
    imperfect = sum(1 for p in _IMPERFECT_CLICHE_RES if p.search(text))
    sents = sentences(text, hp.connector_sentence_min_chars)
    density = perfect / len(sents) if sents else 0.0

    score = _band_above(density, _CONNECTOR_DENSITY_BANDS, 0.0)
    if not score:
        score = next((s for n, s in _CONNECTOR_COUNT_BANDS if perfect >= n), 0.15)
    if imperfect > 0:
        score *= 0.6

    return AnalysisResult(
        "connectors",
        score,
        human_signal=imperfect > 0,
        details={"perfect": perfect, "imperfect": imperfect, "density": round(density, 2)},
    )


def _signal_drift(text: str, hp: Hyperparameters) -> AnalysisResult:
    sents = sentences(text, hp.drift_sentence_min_chars)
    if len(sents) < hp.drift_min_sentences:
        return _not_applicable("drift", has_slang=False, continuity=50, tangents=0)

    slang = sum(len(p.findall(text)) for p in _SLANG_RES)
    has_slang = slang >= hp.drift_slang_min_count
    topics = [
        [w for w in words(s, hp.drift_word_min_length) if w not in _COMMON_WORDS]
        for s in sents
    ]

    continuity = tangents = 0
    for i in range(1, len(topics)):
        prev = set(topics[i - 1])
        shared = sum(1 for w in topics[i] if w in prev)
        if shared > 0:
            continuity += 1
        if i < len(topics) - 1 and shared == 0 and topics[i]:
            following = set(topics[i + 1])
            if not any(w in following for w in topics[i]):
                tangents += 1

    ratio = continuity / (len(sents) - 1) * 100
    if has_slang and ratio > 85:
        score = 0.85
    elif has_slang and ratio > 70:
        score = 0.70
    elif not has_slang and ratio > 90:
        score = 0.60
    elif ratio > 80:
        score = 0.50
    elif tangents > 0:
        score = 0.20
    else:
        score = 0.35

    return AnalysisResult(
        "drift",
        score,
        human_signal=tangents > 0,
        details={
            "has_slang": has_slang,
            "slang_count": slang,
            "continuity": round(ratio),
            "tangents": tangents,
        },
    )


def _signal_perfection(text: str, hp: Hyperparameters) -> AnalysisResult:
    counts = Counter(words(text, hp.perfection_word_min_length))
    repeated = sum(
        1 for w, c in counts.items()
        if c >= hp.perfection_repeat_min_count and w not in _COMMON_WORDS and len(w) > 4
    )
    grammar = len(_MULTI_SPACE_RE.findall(text)) + len(_COMMA_RUN_RE.findall(text))
    oddities = sum(len(p.findall(text)) for p in _ODDITY_RES)
    corrections = len(_SELF_CORRECTION_RE.findall(text))
    total = repeated + grammar + oddities + corrections

    details = {
        "total": total,
        "repeated_words": repeated,
        "grammar": grammar,
        "oddities": oddities,
        "corrections": corrections,
        "is_perfect": False,
    }
    sents = sentences(text, hp.perfection_sentence_min_chars)
    if len(sents) < hp.perfection_min_sentences:
        return AnalysisResult("perfection", 0.5, applicable=False, human_signal=total > 0, details=details)

    density = total / len(sents)
    is_perfect = total == 0
    details["is_perfect"] = is_perfect
    if is_perfect:
        score = 0.95 if len(sents) >= 5 else 0.85
    elif density < 0.1 and len(sents) >= 5:
        score = 0.75
    elif density < 0.2:
        score = 0.55
    elif density < 0.3:
        score = 0.35
    else:
        score = 0.15

    return AnalysisResult("perfection", score, human_signal=total > 0, details=details)


def _signal_predictability(text: str, hp: Hyperparameters) -> AnalysisResult:
    tokens = words(text, hp.predictability_word_min_length)
    if len(tokens) < hp.predictability_min_words:
        return _not_applicable("predictability", sequences=0, dominant_share=0.0)

    lowered = text.lower()
    sequences = sum(1 for s in _CANNED_SEQUENCES if s in lowered)

    followers: dict[str, Counter[str]] = defaultdict(Counter)
    for prev, cur in zip(tokens, tokens[1:]):
        followers[prev][cur] += 1

    hits = total = 0
    for prev, cur in zip(tokens, tokens[1:]):
        options = followers[prev]
        if len(options) > 1:
            total += 1
            # max() keeps the first-seen follower on ties
            if max(options, key=options.__getitem__) == cur:
                hits += 1

    share = hits / total if total else 0.0
    combined = (hp.predictability_sequence_bonus if sequences else 0.0) + share * hp.predictability_share_weight
    score = _band_above(combined, _PREDICTABILITY_BANDS, 0.20)

    return AnalysisResult(
        "predictability",
        score,
        details={"sequences": sequences, "dominant_share": round(share, 3), "combined": round(combined, 3)},
    )


def _signal_burstiness(text: str, hp: Hyperparameters) -> AnalysisResult:
    sents = sentences(text, hp.rhythm_sentence_min_chars)
    if len(sents) < hp.burstiness_min_sentences:
        return _not_applicable("burstiness", cv=50, std=0.0, avg=0.0)

    complexities = [len(s.split()) + s.count(",") * 2 + s.count("—") * 3 for s in sents]
    mean, std, cv = _dispersion(complexities)
    score = _band_below(cv, _BURSTINESS_BANDS, 0.15)

    return AnalysisResult(
        "burstiness",
        score,
        details={"cv": round(cv), "std": round(std, 2), "avg": round(mean, 2)},
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

SIGNALS: tuple[Signal, ...] = (
    Signal("lexical_richness", "lexical", False, _signal_lexical_richness),
    Signal("emotion", "lexical", False, _signal_emotion),
    Signal("rhythm", "lexical", True, _signal_rhythm),
    Signal("density", "lexical", False, _signal_density),
    Signal("formal", "lexical", False, _signal_formal),
    Signal("quirks", "lexical", False, _signal_quirks),
    Signal("connectors", "structural", False, _signal_connectors),
    Signal("drift", "structural", True, _signal_drift),
    Signal("perfection", "structural", False, _signal_perfection),
    Signal("predictability", "structural", True, _signal_predictability),
    Signal("burstiness", "structural", True, _signal_burstiness),
)


def run_signals(
    text: str,
    hyperparameters: Hyperparameters | None = None,
    signals: tuple[Signal, ...] = SIGNALS,
) -> dict[str, AnalysisResult]:
    """Score ``text`` with every registered signal, keyed by signal name."""
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    masked = neutralize(text) if any(s.neutralized for s in signals) else text
    return {s.name: s.scorer(masked if s.neutralized else text, hp) for s in signals}
