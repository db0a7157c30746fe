import pytest

from main import parse_line


@pytest.mark.parametrize(
    "line, expected",
    [
        ("What is it? | https://a", ("What is it?", ["https://a"])),
        ("Compare |https://a  https://b ", ("Compare", ["https://a", "https://b"])),
    ],
)
def test_parse_line(line, expected):
    assert parse_line(line) == expected


@pytest.mark.parametrize("line", ["no urls here", "| https://a", "question |   "])
def test_parse_line_rejects_incomplete(line):
    assert parse_line(line) is None
