"""Tests for proportional redistribution of translated text."""

import copy

from wordshift.redistribution import normalise_whitespace, redistribute
from wordshift.structures import Run


def make_runs(*texts):
    return [Run(text=text, formatting={"bold": idx % 2 == 0}) for idx, text in enumerate(texts)]


def texts(runs):
    return [run.text for run in runs]


class TestNormaliseWhitespace:
    """Tests for normalise_whitespace"""

    def test_collapses_and_trims(self):
        assert normalise_whitespace("  Bonjour\n\t le   monde  ") == "Bonjour le monde"

    def test_blank_becomes_empty(self):
        assert normalise_whitespace(" \n ") == ""


class TestRedistribute:
    """Tests for redistribute"""

    def test_single_run_receives_whole_translation(self):
        runs = make_runs("Hello world. ")
        assert redistribute(runs, "Bonjour le monde.")
        assert texts(runs) == ["Bonjour le monde."]

    def test_proportional_split(self):
        runs = make_runs("The quick ", "brown fox jumps. ")
        assert [len(run.text) for run in runs] == [10, 17]
        translated = "aaaa bbbb cccc dddd eeee ffff gggg hhhhi"
        assert len(translated) == 40

        redistribute(runs, translated)

        assert texts(runs) == ["aaaa bbbb cccc ", "dddd eeee ffff gggg hhhhi"]

    def test_space_inserted_between_fused_chunks(self):
        runs = make_runs("ab", "cd")
        redistribute(runs, "wxyz")
        assert texts(runs) == ["wx", " yz"]

    def test_no_space_when_chunk_follows_whitespace(self):
        runs = make_runs("Hello ", "world.")
        redistribute(runs, "Bonjour monde.")
        assert texts(runs) == ["Bonjour", " monde."]

    def test_rounding_remainder_goes_to_last_run(self):
        runs = make_runs("a", "b", "c")
        redistribute(runs, "abcd")
        assert texts(runs) == ["a", " b", " cd"]

    def test_chunk_clamped_to_remaining_text(self):
        runs = make_runs("a", "b")
        redistribute(runs, "abc")
        assert texts(runs) == ["ab", " c"]

    def test_short_translation_leaves_trailing_runs_empty(self):
        runs = make_runs("aaaaa", "bbbbb", "ccccc")
        redistribute(runs, "xy")
        assert texts(runs) == ["x", " y", ""]

    def test_runs_past_short_translation_hold_no_stray_space(self):
        runs = make_runs("aaaaaaaa", "b", "c")
        redistribute(runs, "xyz")
        assert texts(runs) == ["xy", "", " z"]
        assert not any(text.isspace() for text in texts(runs))

    def test_translation_is_normalised(self):
        runs = make_runs("Hello world.")
        redistribute(runs, "  Bonjour \n  le monde.  ")
        assert texts(runs) == ["Bonjour le monde."]

    def test_zero_length_runs_are_skipped(self):
        runs = make_runs("", "Hello", "")
        redistribute(runs, "Bonjour")
        assert texts(runs) == ["", "Bonjour", ""]

    def test_remainder_skips_trailing_empty_run(self):
        runs = make_runs("a", "b", "")
        redistribute(runs, "abcd")
        assert runs[2].text == ""
        assert runs[1].text.endswith("d")

    def test_all_empty_batch_is_untouched(self):
        runs = make_runs("", "")
        assert redistribute(runs, "Bonjour") is False
        assert texts(runs) == ["", ""]

    def test_empty_translation_is_ignored(self):
        runs = make_runs("Hello")
        assert redistribute(runs, "") is False
        assert redistribute(runs, "   ") is False
        assert texts(runs) == ["Hello"]

    def test_formatting_is_preserved(self):
        runs = make_runs("Hello ", "brave ", "new world.")
        before = [copy.deepcopy(run.formatting) for run in runs]
        identities = [run.formatting for run in runs]

        redistribute(runs, "Bonjour le nouveau monde courageux.")

        assert [run.formatting for run in runs] == before
        assert all(run.formatting is ident for run, ident in zip(runs, identities))

    def test_text_is_conserved(self):
        cases = [
            (("Hello ", "brave ", "new world."), "Bonjour le nouveau monde courageux."),
            (("a", "b", "c"), "abcd"),
            (("aaaaa", "bbbbb", "ccccc"), "xy"),
            (("The quick ", "", "brown fox jumps. "), "Der schnelle braune Fuchs springt."),
            (("Short",), "Un texte bien plus long que l'original."),
        ]
        for originals, translated in cases:
            runs = make_runs(*originals)
            redistribute(runs, translated)
            normalised = normalise_whitespace(translated)
            joined = "".join(texts(runs))
            assert joined.replace(" ", "") == normalised.replace(" ", "")
            inserted = len(joined) - len(normalised)
            assert 0 <= inserted <= len(runs) - 1
