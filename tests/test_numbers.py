"""Tests for user-typed number parsing and display formatting."""

import pytest

from portfolio_bot.utils.numbers import beautiful_number, clean_and_validate_number


class TestCleanAndValidateNumber:
    @pytest.mark.parametrize("text, expected", [
        ("1250", 1250.0),
        ("1,250,000", 1250000.0),
        ("1 250 000", 1250000.0),
        ("12.5", 12.5),
        ("۱۲۳", 123.0),
        ("٤٥٦", 456.0),
        ("۱٫۵", 1.5),
        ("$ 99", 99.0),
    ])
    def test_parses(self, text, expected) -> None:
        assert clean_and_validate_number(text) == expected

    @pytest.mark.parametrize("text", ["", "soon", "1.2.3", ".", None])
    def test_rejects(self, text) -> None:
        assert clean_and_validate_number(text) is None


class TestBeautifulNumber:
    def test_zero(self) -> None:
        assert beautiful_number(0) == "0"

    def test_thousands_and_trailing_zeros(self) -> None:
        assert beautiful_number(-1500.5) == "-1,500.5"
        assert beautiful_number(60000.0) == "60,000"

    def test_string_input(self) -> None:
        assert beautiful_number("1250") == "1,250"
        assert beautiful_number("n/a") is None

    def test_localized_digits(self) -> None:
        assert beautiful_number(1200, localized_digits=True) == "۱,۲۰۰"

    def test_custom_delimiter(self) -> None:
        assert beautiful_number(1200, delimiter="'") == "1'200"
