import pytest

from cityguide.src.utils.text_utils import clean_text, collapse_whitespace, truncate


def test_clean_text_strips_invisible_characters_and_extra_spaces():
    raw = "\ufeffMangalore\u200b   is a\tport   city.  \n   On the coast. "
    assert clean_text(raw) == "Mangalore is a port city.\nOn the coast."


def test_clean_text_keeps_paragraph_breaks_but_collapses_blank_runs():
    raw = "First paragraph.\n\n\n\n\nSecond paragraph."
    assert clean_text(raw) == "First paragraph.\n\nSecond paragraph."


def test_clean_text_empty_page():
    assert clean_text("  \n\t \n") == ""


def test_collapse_whitespace():
    assert collapse_whitespace("  Kudla \n  beaches\t guide ") == "Kudla beaches guide"


def test_truncate_slices_to_limit():
    assert truncate("a" * 1500, 1000) == "a" * 1000
    assert truncate("short", 1000) == "short"


def test_truncate_rejects_negative_limit():
    with pytest.raises(ValueError):
        truncate("text", -1)
