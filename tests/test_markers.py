import dataclasses

import pytest

from data_designer_aigard.markers import DEFAULT_MARKERS, MarkerSet, match_markers


class TestMatchMarkers:
    def test_strong_then_dictionary_promotion(self):
        match = match_markers("Короче, движок троит и жрет масло")
        assert match.strong_found == ("троит", "жрет масло", "короче")
        assert match.weak_count == 0

    def test_repeated_phrase_counts_once(self):
        assert match_markers("блин, блин, опять блин").strong_count == 1

    def test_weak_hedges(self):
        match = match_markers("Возможно, кажется, вроде, кстати, пожалуй всё нормально")
        assert match.weak_found == ("возможно", "пожалуй", "кажется", "вроде", "кстати")
        assert match.strong_count == 0

    def test_case_insensitive(self):
        assert "на соплях" in match_markers("Всё держится НА СОПЛЯХ!").strong_found

    def test_phrase_must_start_a_word(self):
        assert match_markers("Это можно сделать").strong_count == 0
        assert "ож" in match_markers("ОЖ закипела").strong_found

    def test_inflected_tail_still_matches(self):
        assert "кринж" in match_markers("Это полный кринжатина").strong_found
        assert "сальник" in match_markers("Потёк сальника").strong_found

    @pytest.mark.parametrize(
        "text",
        [
            "Ожидается, что решение примут завтра.",
            "Он смотрит в окно.",
            "Смотрите также раздел ниже.",
            "Озоновый слой истончается.",
            "Тягач застрял у склада.",
            "Карбоновый капот легче стального.",
            "На завтрак были блины.",
        ],
    )
    def test_short_entries_match_whole_words_only(self, text):
        assert match_markers(text).strong_count == 0

    def test_short_entries_still_match_alone(self):
        assert "смотри" in match_markers("Смотри, что вышло").strong_found
        assert "тяга" in match_markers("Пропала тяга на подъёме").strong_found
        assert "блин" in match_markers("Блин, опять дождь").strong_found

    def test_custom_whole_words(self):
        markers = MarkerSet(categories={}, strong=("отстань",), weak=(), whole_words=("отстань",))
        assert match_markers("отстаньте от него", markers).strong_count == 0
        assert match_markers("отстань, хватит", markers).strong_count == 1

    def test_plain_english_has_no_markers(self):
        match = match_markers("The committee reviewed the annual budget proposal.")
        assert match.strong_count == 0
        assert match.weak_count == 0


class TestMarkerSet:
    def test_custom_set_is_lowercased(self):
        markers = MarkerSet(categories={"custom": ("Foo Bar",)}, strong=("Baz",), weak=("Maybe",))
        match = match_markers("foo bar, baz, maybe", markers)
        assert match.strong_found == ("baz", "foo bar")
        assert match.weak_found == ("maybe",)

    def test_dictionary_flattens_categories(self):
        assert set(DEFAULT_MARKERS.categories) == {"idioms", "technical", "conversational", "slang"}
        assert "собаку съел" in DEFAULT_MARKERS.dictionary
        assert "кринж" in DEFAULT_MARKERS.dictionary

    def test_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_MARKERS.categories["slang"] = ()
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_MARKERS.strong = ()
