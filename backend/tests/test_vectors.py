import math

import pytest

from huddle.utils.text import extract_text, normalise_line
from huddle.utils.vectors import cosine, mean


@pytest.mark.parametrize(
    "a, b",
    [
        ([1.0, 2.0, 3.0], [3.0, -1.0, 0.5]),
        ([0.2, 0.4], [0.1, 0.1, 0.9]),
        ([-1.0, 0.0], [0.0, 5.0]),
    ],
)
def test_cosine_is_symmetric(a, b):
    assert cosine(a, b) == pytest.approx(cosine(b, a))


def test_cosine_of_vector_with_itself_is_one():
    assert cosine([0.3, -0.7, 2.0], [0.3, -0.7, 2.0]) == pytest.approx(1.0)


def test_cosine_with_zero_vector_is_zero():
    assert cosine([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 0.0
    assert cosine([], [1.0]) == 0.0
    assert not math.isnan(cosine([0.0], [0.0]))


def test_cosine_pads_shorter_vector_with_zeros():
    assert cosine([1.0], [1.0, 0.0, 0.0]) == pytest.approx(1.0)
    assert cosine([1.0, 1.0], [1.0]) == pytest.approx(1.0 / math.sqrt(2.0))


def test_mean_uses_longest_dimension():
    assert mean([[1.0, 2.0], [3.0]]) == pytest.approx([2.0, 1.0])
    assert mean([[1.0, 1.0, 1.0]]) == pytest.approx([1.0, 1.0, 1.0])


def test_mean_of_nothing_is_empty():
    assert mean([]) == []


def test_extract_text_prefers_text_field():
    assert extract_text({"text": "  one line  ", "fact": "ignored"}) == "one line"


def test_extract_text_joins_legacy_fields():
    payload = {"fact": "trucks idle", "constraint": "", "hope": "better routing "}
    assert extract_text(payload) == "trucks idle better routing"
    assert extract_text('{"hope": "sleep"}') == "sleep"
    assert extract_text(None) == ""


def test_normalise_line_collapses_whitespace():
    record = normalise_line({"text": "too   many\nspaces"})
    assert record["clean_text"] == "too many spaces"
    assert record["tags"] == [] and record["red_flags"] == []
