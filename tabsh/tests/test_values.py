import pytest

from tabsh.models.values import Float, Integer, Size, Text, extract_bytes, format_size, parse_size


# ---------- parse_size ----------
@pytest.mark.parametrize(
    "text, expected",
    [
        ("1KB", 1024),
        ("1.5MB", 1572864),
        ("500", 500),
        ("abc", 0),
        ("10kb", 10240),
        ("10k", 10240),
        ("2.5 MB", 2621440),
        ("3g", 3 * 1024 ** 3),
        ("1 GB", 1024 ** 3),
        ("12b", 12),
        ("  7 B", 7),
    ],
)
def test_parse_size_common_inputs(text, expected):
    """parse_size understands magnitudes with optional, case-insensitive units."""
    assert parse_size(text) == expected


def test_parse_size_unknown_unit_keeps_bare_number():
    """An unrecognized unit falls back to the number itself, truncated."""
    assert parse_size("7xyz") == 7
    assert parse_size("9.9 parsecs") == 9


def test_parse_size_is_total():
    """parse_size never raises; unparseable input is zero."""
    for junk in ("", "   ", "-", "kb", "MB 10", None, 12):
        assert parse_size(junk) == 0  # type: ignore[arg-type]


def test_parse_size_ignores_trailing_words_after_unit():
    """Only the first word after the number is considered as a unit."""
    assert parse_size("10 kb please") == 10240


# ---------- format_size / extract_bytes ----------
def test_format_size_picks_largest_unit():
    """format_size uses two decimals and the largest unit with magnitude >= 1."""
    assert format_size(0) == "0.00 B"
    assert format_size(512) == "512.00 B"
    assert format_size(1024) == "1.00 KB"
    assert format_size(1536) == "1.50 KB"
    assert format_size(10 * 1024 * 1024) == "10.00 MB"
    assert format_size(3 * 1024 ** 3) == "3.00 GB"


def test_format_size_caps_at_gigabytes():
    """Sizes beyond GB stay in GB so they can be parsed back."""
    text = format_size(5 * 1024 ** 4)
    assert text == "5120.00 GB"
    assert extract_bytes(text) == 5 * 1024 ** 4


def test_extract_bytes_two_token_form():
    """extract_bytes reads the 'magnitude unit' form written by producers."""
    assert extract_bytes("2.00 MB") == 2 * 1024 * 1024
    assert extract_bytes("500 KB") == 500 * 1024
    assert extract_bytes("12 B") == 12


def test_extract_bytes_falls_back_to_parse_size():
    """Strings that are not 'magnitude unit' go through parse_size."""
    assert extract_bytes("2.5MB") == 2621440
    assert extract_bytes("-") == 0
    assert extract_bytes("10 kb") == 10240


# ---------- values ----------
def test_size_keeps_display_and_bytes_together():
    """Size.parse and Size.from_bytes keep the display text and magnitude coupled."""
    s = Size.parse("500 KB")
    assert s.display == "500 KB" and s.bytes == 512000
    t = Size.from_bytes(2048)
    assert t.display == "2.00 KB" and t.bytes == 2048


def test_value_rendering():
    """Each variant renders the way the table grid prints it."""
    assert Text("a.txt").render() == "a.txt"
    assert Integer(42).render() == "42"
    assert Float(1.5).render() == "1.50"
    assert Size("10.00 MB", 10485760).render() == "10.00 MB"


def test_values_are_immutable():
    """Cells cannot be changed after construction."""
    v = Text("x")
    with pytest.raises(AttributeError):
        v.value = "y"  # type: ignore[misc]
