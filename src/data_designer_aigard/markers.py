"""Curated human-authorship markers: folk idioms, garage jargon, conversational fillers, slang.

Generative models rarely produce these phrases unprompted, so a single strong hit is
treated as near-decisive evidence of a human author. Weak markers are hedges and
discourse fillers that models also emit; they only nudge the score.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

_IDIOMS = (
    "пляска святого витта", "святого витта", "корень зла", "божеский вид",
    "привести в божеский", "ни богу свечка", "ни черту кочерга",
    "как бог на душу", "бог весть", "черт знает", "леший знает",
    "горе-мастер", "горе-специалист", "горе-механик", "горе-водитель",
    "чудо-юдо", "диво дивное", "чудо в перьях", "птица редкая",
    "ни рыба ни мясо", "ни два ни полтора", "ни туда ни сюда",
    "гаражная магия", "колхозный тюнинг", "совковый подход",
    "руки чешутся", "глаза разбегаются", "уши вянут", "волосы дыбом",
    "мурашки по коже", "сердце ёкнуло", "душа не на месте",
    "кровь из глаз", "мозг выносит", "крышу сносит",
    "как мертвому припарка", "на козе не подъедешь", "с боку припека",
    "от корки до корки", "через пень-колоду", "как кур в ощип", "собаку съел",
    "в ус не дует", "как с гуся вода", "палец о палец", "с горем пополам",
    "на вольные хлеба", "куда макар телят не гонял", "семь верст до небес",
    "как снег на голову", "из пальца высосано", "черным по белому",
    "с иголочки", "на честном слове", "как на дрожжах", "не разлей вода",
)
_TECHNICAL = (
    "прикипело", "сорвал резьбу", "закис болт", "пробило прокладку", "шлифануть",
    "на соплях", "синяя изолента", "вэдэшка", "вэдэхой брызнуть", "в гаражах",
    "смерть мотору", "жижа", "залипуха", "хрустит граната",
    "стучат пальцы", "пальцы звенят", "жрет бензин", "подсос воздуха",
    "8-клапанная", "8-клапанник", "16-клапанка", "16-клапанник", "шеснарь", "восьмиклоп",
    "грм", "цепь грм", "ремень грм", "метки грм", "выставить метки",
    "гнуть клапана", "загнуло клапана", "ремень генератора", "ролик натяжителя",
    "помпа", "термостат заклинил", "тосол", "антифриз", "фриз", "ож", "охлаждайка",
    "заглушка", "сальник", "прокладка клапанной", "маслосъемные",
    "тяга", "рулевые наконечники", "шаровая", "сайлентблок",
    "на низах", "на верхах", "тянет", "не тянет", "троит", "двоит",
    "масложор", "жрет масло", "дымит", "сизый дым", "белый дым",
    "стартер крутит", "не заводится", "схватывает", "глохнет",
    "форсунки", "инжектор", "карбюратор", "карб", "солекс", "озон",
    "свечи", "катушка", "бронепровода", "трамблер", "датчик коленвала",
)
_CONVERSATIONAL = (
    "врать не буду", "чего греха таить", "положа руку на сердце",
    "как сейчас помню", "давным-давно", "на авось", "как-то раз",
    "блин", "ёлки", "ёлки-палки", "ёпрст", "чёрт", "черт возьми",
    "короче", "ну вот", "слушай", "смотри", "знаешь",
)
_SLANG = (
    "кринж", "кринжатина", "рофл", "треш", "дичь", "годнота", "зачетно", "на изи",
    "по фану", "не зашло", "от слова совсем", "токсик", "душнила", "пруфы",
    "инфа сотка", "хайп", "чекайте", "баян", "жиза", "рил", "кэп",
)

_STRONG = (
    "масложор", "на соплях", "гаражная магия", "колхозный тюнинг",
    "грм", "8-клапанная", "16-клапанка", "шеснарь", "загнуло клапана",
    "троит", "двоит", "восьмиклоп", "вэдэшка", "синяя изолента",
    "кринж", "жиза", "рил", "инфа сотка", "годнота", "дичь", "треш",
    "говнокод", "костыль", "хотфикс", "баян", "душнила",
    "крышу сносит", "мозг выносит", "кровь из глаз",
    "собаку съел", "как с гуся вода", "ни рыба ни мясо",
    "блин", "чёрт", "ёлки-палки", "капец", "жесть",
)
_WEAK = (
    "наверное", "наверно", "возможно", "вероятно", "пожалуй",
    "видимо", "похоже", "кажется", "мне кажется", "я думаю",
    "вроде", "вроде бы", "вроде как", "как бы",
    "на самом деле", "честно говоря", "в общем", "в общем-то",
    "собственно", "кстати", "между прочим", "если честно", "по правде говоря",
)

# Entries that are prefixes of ordinary words ("смотри" of "смотрит", "тянет" of "тянется").
_WHOLE_WORDS = ("смотри", "слушай", "тянет", "не тянет", "помпа", "свечи")
_WHOLE_WORD_MAX_LENGTH = 4

_LETTER_BEFORE = r"(?<![a-zа-яё0-9])"
_LETTER_AFTER = r"(?![a-zа-яё0-9])"


def _normalize(phrases: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(p.lower() for p in phrases)


@dataclass(frozen=True)
class MarkerSet:
    """Read-only phrase dictionary shared by every analysis call."""

    categories: Mapping[str, tuple[str, ...]]
    strong: tuple[str, ...]
    weak: tuple[str, ...]
    whole_words: tuple[str, ...] = ()
    _patterns: dict[str, re.Pattern[str]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        categories = MappingProxyType({name: _normalize(p) for name, p in self.categories.items()})
        object.__setattr__(self, "categories", categories)
        object.__setattr__(self, "strong", _normalize(self.strong))
        object.__setattr__(self, "weak", _normalize(self.weak))
        object.__setattr__(self, "whole_words", _normalize(self.whole_words))
        phrases = {*self.strong, *self.weak, *self.dictionary}
        object.__setattr__(self, "_patterns", {p: re.compile(self._pattern(p)) for p in phrases})

    def _pattern(self, phrase: str) -> str:
        # A phrase must start at a word start. Short entries and listed whole words must also
        # end at a word end; any other tail may run into an inflection.
        pattern = _LETTER_BEFORE + re.escape(phrase)
        if len(phrase) <= _WHOLE_WORD_MAX_LENGTH or phrase in self.whole_words:
            pattern += _LETTER_AFTER
        return pattern

    @property
    def dictionary(self) -> tuple[str, ...]:
        return tuple(p for phrases in self.categories.values() for p in phrases)

    def contains(self, lowered: str, phrase: str) -> bool:
        return self._patterns[phrase].search(lowered) is not None


DEFAULT_MARKERS = MarkerSet(
    categories={
        "idioms": _IDIOMS,
        "technical": _TECHNICAL,
        "conversational": _CONVERSATIONAL,
        "slang": _SLANG,
    },
    strong=_STRONG,
    weak=_WEAK,
    whole_words=_WHOLE_WORDS,
)


@dataclass(frozen=True)
class MarkerMatch:
    strong_found: tuple[str, ...]
    weak_found: tuple[str, ...]

    @property
    def strong_count(self) -> int:
        return len(self.strong_found)

    @property
    def weak_count(self) -> int:
        return len(self.weak_found)


def match_markers(text: str, markers: MarkerSet = DEFAULT_MARKERS) -> MarkerMatch:
    """Find dictionary phrases in ``text``, each phrase counted once however often it occurs.

    Strong phrases are scanned first, then weak ones, then the whole raw dictionary;
    dictionary hits not already found as strong are promoted to strong.
    """
    lowered = text.lower()
    strong = [p for p in markers.strong if markers.contains(lowered, p)]
    weak = [p for p in markers.weak if markers.contains(lowered, p)]
    seen = set(strong)
    for phrase in markers.dictionary:
        if phrase not in seen and markers.contains(lowered, phrase):
            seen.add(phrase)
            strong.append(phrase)
    return MarkerMatch(strong_found=tuple(strong), weak_found=tuple(weak))
