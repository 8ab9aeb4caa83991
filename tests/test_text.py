from data_designer_aigard.text import neutralize, sentence_spans, sentences, words


class TestSegmentation:
    def test_words_are_lowercase_letter_runs(self):
        assert words("Hello, мир! A b cd", 2) == ["hello", "мир", "cd"]

    def test_yo_is_a_letter(self):
        assert words("Ёлка стоит") == ["ёлка", "стоит"]

    def test_sentences_drop_short_fragments(self):
        assert sentences("Hi. This is long enough! Ok?", 3) == ["This is long enough"]

    def test_empty_input(self):
        assert words("") == []
        assert sentences("") == []
        assert sentence_spans("") == []

    def test_sentence_spans_keep_punctuation(self):
        assert sentence_spans("One. Two!  Three?") == ["One.", "Two!", "Three?"]


class TestNeutralize:
    def test_unit_bearing_numbers(self):
        assert neutralize("150 kg") == "[SPEC]"
        assert neutralize("мотор на 90 л.с.") == "мотор на [SPEC]."
        assert neutralize("скидка 15%") == "скидка [SPEC]"

    def test_years(self):
        assert neutralize("В 2015 году") == "В [YEAR]"
        assert neutralize("since 1998") == "since [YEAR]"

    def test_longer_digit_runs_are_not_years(self):
        assert neutralize("id 123456") == "id [NUM]"

    def test_bare_numbers(self):
        assert neutralize("42 cats") == "[NUM] cats"

    def test_brands_and_places(self):
        assert neutralize("Toyota and BMW") == "[BRAND] and [BRAND]"
        assert neutralize("Москва") == "[PLACE]"

    def test_units_are_masked_before_years(self):
        assert neutralize("2015 kg") == "[SPEC]"

    def test_brand_inside_word_is_kept(self):
        assert neutralize("Fordham") == "Fordham"

    def test_swapped_entities_neutralize_identically(self):
        a = "In 2015 the Toyota plant shipped 150 kg of parts and 42 crates."
        b = "In 2019 the Honda plant shipped 90 kg of parts and 7 crates."
        assert neutralize(a) == neutralize(b)
        assert neutralize(a) == "In [YEAR] the [BRAND] plant shipped [SPEC] of parts and [NUM] crates."
