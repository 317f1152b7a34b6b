from __future__ import annotations

import pytest

from regsearch.search.snippets import SnippetStyle


def test_headline_options_render_markers_and_window() -> None:
    options = SnippetStyle().headline_options()

    assert 'StartSel=">>>"' in options
    assert 'StopSel="<<<"' in options
    assert "MaxWords=32" in options
    assert "MinWords=16" in options


def test_highlighted_terms_extracts_marked_words() -> None:
    style = SnippetStyle()

    terms = style.highlighted_terms("any >>>Incident<<< >>>reporting<<< shall include")

    assert terms == ["Incident", "reporting"]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"start_marker": ""},
        {"max_words": 0},
        {"max_words": 65},
        {"max_words": 10, "min_words": 20},
    ],
)
def test_invalid_styles_are_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        SnippetStyle(**kwargs)


def test_headline_markers_cannot_contain_separators() -> None:
    with pytest.raises(ValueError):
        SnippetStyle(start_marker="[,").headline_options()
