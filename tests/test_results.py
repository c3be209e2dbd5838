import pytest

from evalq.core.errors import ParseError
from evalq.core.results import last_line, normalize_score, parse_accuracy, parse_score


def test_last_line_skips_trailing_blanks():
    assert last_line('starting...\n{"accuracy": 0.9}\n\n  \n') == '{"accuracy": 0.9}'


def test_diagnostics_before_result_are_ignored():
    out = 'starting...\nwarning: slow\n{"accuracy": 91.5, "loss": 0.2}\n'
    assert parse_accuracy(out) == 91.5


@pytest.mark.parametrize(
    "value, expected",
    [(0.85, 85.0), (0, 0), (1, 1), (1.0, 1.0), (0.5, 50.0), (85, 85), (120, 120)],
)
def test_normalize_only_rescales_open_unit_interval(value, expected):
    assert normalize_score(value) == pytest.approx(expected)


def test_missing_or_null_accuracy_defaults_to_zero():
    assert parse_accuracy('{"loss": 1.2}') == 0
    assert parse_accuracy('{"accuracy": null}') == 0


def test_parse_score_fraction():
    assert parse_score('{"accuracy": 0.85}') == pytest.approx(85.0)


@pytest.mark.parametrize(
    "out",
    [
        "starting...\nwarning: slow\n{not-json}",
        "",
        "\n\n",
        "[0.9]",
        '{"accuracy": "0.9"}',
        '{"accuracy": true}',
        '{"accuracy": NaN}',
    ],
)
def test_malformed_output_raises_parse_error(out):
    with pytest.raises(ParseError):
        parse_score(out)


def test_huge_integer_accuracy_is_parse_error():
    out = '{"accuracy": 1' + "0" * 400 + "}"
    with pytest.raises(ParseError):
        parse_score(out)
