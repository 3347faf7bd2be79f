import pytest

# Target module
import quantfmt.core.utils as utils


# -------------------------------
# trim_zeroes
# -------------------------------

@pytest.mark.parametrize("text, kwargs, expected", [
    ("150.0000", {}, "150"),
    ("150.0000", {"keep_decimal_point": True}, "150."),
    ("150.0000", {"keep_decimal_point": True, "keep_single_zero": True}, "150.0"),
    ("1.2500", {}, "1.25"),
    ("0.0000", {}, "0"),
    ("42", {}, "42"),
    ("42", {"keep_decimal_point": True}, "42."),
    ("42", {"keep_decimal_point": True, "keep_single_zero": True}, "42.0"),
])
def test_trim_zeroes(text, kwargs, expected):
    assert utils.trim_zeroes(text, **kwargs) == expected


# -------------------------------
# group_thousands / pad_integer_part
# -------------------------------

@pytest.mark.parametrize("text, expected", [
    ("1", "1"),
    ("999", "999"),
    ("1000", "1,000"),
    ("1234567.891", "1,234,567.891"),
])
def test_group_thousands(text, expected):
    assert utils.group_thousands(text) == expected


def test_pad_integer_part():
    assert utils.pad_integer_part("5.00", 3) == "005.00"
    assert utils.pad_integer_part("1234", 2) == "1234"


# -------------------------------
# fixed / reduce_fraction
# -------------------------------

def test_fixed():
    assert utils.fixed(1.5, 3) == "1.500"
    assert utils.fixed(2.0, 0) == "2"


@pytest.mark.parametrize("num, den, expected", [
    (4, 8, (1, 2)),
    (6, 8, (3, 4)),
    (3, 8, (3, 8)),
])
def test_reduce_fraction(num, den, expected):
    assert utils.reduce_fraction(num, den) == expected
